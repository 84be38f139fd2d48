# =============================================================================
# Database Engine & Session Management
# =============================================================================
#
# DESIGN DECISION: Async SQLAlchemy Engine
# FastAPI is an async framework, so database I/O goes through SQLAlchemy's
# async engine:
# - All DB queries use `await` (e.g., `await session.execute(...)`)
# - PostgreSQL uses the `asyncpg` driver; SQLite uses `aiosqlite`
# - Sessions are created per-request via FastAPI's dependency injection
#
# SESSION LIFECYCLE:
# 1. FastAPI request arrives
# 2. `get_async_session` dependency creates a new session
# 3. Route handler uses session for DB operations
# 4. Session commits on exit and is closed when the request completes
# 5. On exception, the transaction is rolled back
#
# COMMIT POLICY:
# 1. Dependency-injected (get_async_session via Depends):
#    Commits when the request handler returns. Handlers call
#    session.flush() when they need server defaults (timestamps) before
#    building the response.
#
# 2. Self-managed (async_session_factory() directly):
#    Used by the chat pipeline to persist messages outside the request
#    session. These MUST commit explicitly.
# =============================================================================

from collections.abc import AsyncGenerator

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool

from lifedesk.config import settings


def _engine_kwargs(database_url: str) -> dict:
    """
    Pool settings per backend.

    SQLite connections are cheap and bound to the thread/loop that opened
    them, so they are not pooled. PostgreSQL keeps a small pool:
    - pool_size=5: persistent connections
    - max_overflow=10: extra connections allowed during bursts
    """
    if database_url.startswith("sqlite"):
        return {"poolclass": NullPool}
    return {"pool_size": 5, "max_overflow": 10}


# ---------------------------------------------------------------------------
# Async Engine
# ---------------------------------------------------------------------------
async_engine: AsyncEngine = create_async_engine(
    settings.database_url,
    echo=settings.database_echo,
    **_engine_kwargs(settings.database_url),
)

# ---------------------------------------------------------------------------
# Session Factory
# ---------------------------------------------------------------------------
# expire_on_commit=False: attributes stay loaded after commit. Without it,
# touching an attribute after commit triggers lazy IO, which fails in
# async context outside of a session.
# ---------------------------------------------------------------------------
async_session_factory = async_sessionmaker(
    bind=async_engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def create_tables(engine: AsyncEngine | None = None) -> None:
    """Create every table known to the ORM metadata (idempotent)."""
    from lifedesk.db.models import Base

    target = engine or async_engine
    async with target.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def get_async_session() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency that provides a database session per request.

    Usage in route handlers:
        @router.get("/todos")
        async def list_todos(session: AsyncSession = Depends(get_async_session)):
            result = await session.execute(select(Todo))
            return result.scalars().all()

    The session is closed when the request completes.
    If an exception occurs, the transaction is rolled back.
    """
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
