# =============================================================================
# Shared Test Fixtures
# =============================================================================
#
# The whole suite runs offline against a throwaway SQLite database:
#
# - DATABASE_URL / STORAGE_DIR point at a temp directory and are set BEFORE
#   any lifedesk module is imported (settings and the engine are built at
#   import time).
# - Provider API keys are blanked, so nothing can reach a real model.
# - The tiktoken encoder is replaced by a one-token-per-character stand-in;
#   the real encoder downloads its BPE file on first use.
# =============================================================================

from __future__ import annotations

import asyncio
import os
import tempfile
from pathlib import Path

import pytest

_TMP_DIR = Path(tempfile.mkdtemp(prefix="lifedesk-tests-"))

os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_TMP_DIR / 'lifedesk.db'}"
os.environ["STORAGE_DIR"] = str(_TMP_DIR / "storage")
os.environ["AUTO_CREATE_TABLES"] = "true"
os.environ["EMBEDDING_PROVIDER"] = "hash"
os.environ["LLM_PROVIDER"] = "openai_compatible"
for _key in ("LLM_API_KEY", "GEMINI_API_KEY", "OPENAI_API_KEY", "ANTHROPIC_API_KEY"):
    os.environ[_key] = ""

from fastapi.testclient import TestClient  # noqa: E402

from lifedesk.db.engine import async_engine  # noqa: E402
from lifedesk.db.models import Base  # noqa: E402
from lifedesk.main import app  # noqa: E402
from lifedesk.services import llm, tokens  # noqa: E402


def _run(coro):
    """Helper to run async functions in sync tests."""
    return asyncio.run(coro)


class CharEncoder:
    """One token per character."""

    def encode(self, text: str) -> list[int]:
        return [ord(c) for c in text]

    def decode(self, token_ids: list[int]) -> str:
        return "".join(chr(t) for t in token_ids)


async def _reset_database() -> None:
    async with async_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)


@pytest.fixture(autouse=True)
def offline_providers(monkeypatch):
    monkeypatch.setattr(tokens, "_encoder", CharEncoder())
    monkeypatch.setattr(llm, "_provider", None)


@pytest.fixture
def fresh_db():
    """Empty tables for service-level tests."""
    _run(_reset_database())


@pytest.fixture
def client(fresh_db):
    """A TestClient over the app, running its startup hooks."""
    with TestClient(app) as test_client:
        yield test_client
