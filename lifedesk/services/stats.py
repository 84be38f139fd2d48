# =============================================================================
# Derived Values — Goals, Notes, Finance Summaries and the Dashboard
# =============================================================================
#
# Everything here is computed from stored rows at read time; nothing is
# cached or written back except goal status (set by the progress route).
#
#   Goals     — progress percent, completion status, days to deadline
#   Notes     — tag parsing, case-insensitive search
#   Finance   — month windows, income/expense totals, per-category totals
#   Dashboard — cross-table counts and the recent-activity feed
# =============================================================================

from __future__ import annotations

import datetime as dt
import logging
import math
from collections.abc import Iterable
from dataclasses import dataclass, field

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from lifedesk.db.models import Event, Expense, Goal, Habit, Note, Todo

logger = logging.getLogger(__name__)

EXPENSE_CATEGORIES = [
    "Food & Dining", "Transportation", "Shopping", "Entertainment",
    "Bills & Utilities", "Healthcare", "Education", "Travel",
    "Business", "Personal Care", "Gifts & Donations", "Other",
]

INCOME_CATEGORIES = [
    "Salary", "Freelance", "Business", "Investment", "Bonus", "Other",
]

UPCOMING_WINDOW = dt.timedelta(days=7)
RECENT_TODOS = 3
RECENT_EVENTS = 2
RECENT_ACTIVITY_LIMIT = 5


def _utcnow() -> dt.datetime:
    return dt.datetime.now(dt.UTC)


def utc_today() -> dt.date:
    return _utcnow().date()


# ---------------------------------------------------------------------------
# Goals
# ---------------------------------------------------------------------------


def goal_status(current_value: float, target_value: float) -> str:
    return "completed" if current_value >= target_value else "active"


def progress_percent(current_value: float, target_value: float) -> float:
    """Share of the target reached, capped at 100. Zero for a non-positive target."""
    if target_value <= 0:
        return 0.0
    return min(current_value / target_value * 100, 100.0)


def days_until_deadline(
    deadline: dt.date | None,
    now: dt.datetime | None = None,
) -> int | None:
    """
    Whole days until midnight UTC of `deadline`, rounded up.

    Negative once the deadline has passed; None without a deadline.
    """
    if deadline is None:
        return None
    now = now or _utcnow()
    target = dt.datetime.combine(deadline, dt.time.min, tzinfo=dt.UTC)
    return math.ceil((target - now).total_seconds() / 86400)


# ---------------------------------------------------------------------------
# Notes
# ---------------------------------------------------------------------------


def parse_tags(tags: str | list[str] | None) -> list[str]:
    """
    Normalise tags given as "a, b,,c" or ["a", " b "] to ["a", "b", "c"].

    Entries are trimmed and empty ones dropped; order is kept. Raises
    ValueError for anything that is not a string or a list of strings.
    """
    if tags is None:
        return []
    if isinstance(tags, str):
        items = tags.split(",")
    elif isinstance(tags, (list, tuple)):
        items = tags
    else:
        raise ValueError("tags must be a string or a list of strings")
    if not all(isinstance(tag, str) for tag in items):
        raise ValueError("tags must be a string or a list of strings")
    return [tag.strip() for tag in items if tag.strip()]


def note_matches(note: Note, query: str) -> bool:
    """Case-insensitive substring match over title, content and tags."""
    needle = query.strip().lower()
    if not needle:
        return True
    return (
        needle in (note.title or "").lower()
        or needle in (note.content or "").lower()
        or any(needle in tag.lower() for tag in note.tags or [])
    )


# ---------------------------------------------------------------------------
# Finance
# ---------------------------------------------------------------------------


@dataclass
class CategoryTotal:
    category: str
    total: float
    count: int


@dataclass
class FinanceSummary:
    month: str
    total_income: float = 0.0
    total_expenses: float = 0.0
    net: float = 0.0
    categories: list[CategoryTotal] = field(default_factory=list)


def month_bounds(month: str | None, today: dt.date | None = None) -> tuple[dt.date, dt.date]:
    """
    `[first day, first day of next month)` for "YYYY-MM".

    Defaults to the current month.

    Raises:
        ValueError: If `month` is not a valid "YYYY-MM" string.
    """
    if month is None:
        today = today or utc_today()
        start = today.replace(day=1)
    else:
        try:
            start = dt.datetime.strptime(month, "%Y-%m").date()
        except ValueError as exc:
            raise ValueError(f"Invalid month '{month}', expected YYYY-MM") from exc

    if start.month == 12:
        end = start.replace(year=start.year + 1, month=1)
    else:
        end = start.replace(month=start.month + 1)
    return start, end


def summarize_transactions(month: str, rows: Iterable[Expense]) -> FinanceSummary:
    """Totals for one month of transactions; categories cover expenses only."""
    summary = FinanceSummary(month=month)
    by_category: dict[str, CategoryTotal] = {}

    for row in rows:
        if row.type == "income":
            summary.total_income += row.amount
            continue
        summary.total_expenses += row.amount
        entry = by_category.setdefault(row.category, CategoryTotal(row.category, 0.0, 0))
        entry.total += row.amount
        entry.count += 1

    summary.net = summary.total_income - summary.total_expenses
    summary.categories = sorted(by_category.values(), key=lambda c: c.total, reverse=True)
    return summary


async def list_transactions(session: AsyncSession, start: dt.date, end: dt.date) -> list[Expense]:
    stmt = (
        select(Expense)
        .where(Expense.date >= start, Expense.date < end)
        .order_by(Expense.date.desc(), Expense.created_at.desc())
    )
    return list((await session.execute(stmt)).scalars().all())


# ---------------------------------------------------------------------------
# Dashboard
# ---------------------------------------------------------------------------


def completion_rate(total: int, completed: int) -> int:
    return round(completed / total * 100) if total > 0 else 0


async def _count(session: AsyncSession, stmt) -> int:
    return (await session.execute(stmt)).scalar_one() or 0


async def dashboard(session: AsyncSession, now: dt.datetime | None = None) -> dict:
    """Counts across every domain plus the five most recent activities."""
    now = now or _utcnow()
    month_start = now.date().replace(day=1)
    window_end = now + UPCOMING_WINDOW

    total_todos = await _count(session, select(func.count(Todo.id)))
    completed_todos = await _count(
        session, select(func.count(Todo.id)).where(Todo.completed.is_(True)),
    )

    upcoming_stmt = select(Event).where(
        Event.start_date >= now, Event.start_date <= window_end,
    )
    upcoming = list((await session.execute(upcoming_stmt)).scalars().all())

    monthly_expenses = (
        await session.execute(
            select(func.coalesce(func.sum(Expense.amount), 0.0)).where(
                Expense.type == "expense", Expense.date >= month_start,
            )
        )
    ).scalar_one()

    stats = {
        "total_todos": total_todos,
        "completed_todos": completed_todos,
        "completion_rate": completion_rate(total_todos, completed_todos),
        "upcoming_events": len(upcoming),
        "total_goals": await _count(session, select(func.count(Goal.id))),
        "active_habits": await _count(
            session, select(func.count(Habit.id)).where(Habit.active.is_(True)),
        ),
        "monthly_expenses": float(monthly_expenses),
        "total_notes": await _count(session, select(func.count(Note.id))),
    }

    recent_todos = (
        await session.execute(
            select(Todo).order_by(Todo.created_at.desc()).limit(RECENT_TODOS)
        )
    ).scalars().all()
    recent_events = sorted(upcoming, key=lambda e: e.created_at, reverse=True)[:RECENT_EVENTS]

    activities = [
        {"type": "Todo", "title": todo.title, "date": todo.created_at}
        for todo in recent_todos
    ] + [
        {"type": "Event", "title": event.title, "date": event.created_at}
        for event in recent_events
    ]
    activities.sort(key=lambda a: a["date"], reverse=True)

    logger.debug("Dashboard stats: %s", stats)
    return {"stats": stats, "recent_activities": activities[:RECENT_ACTIVITY_LIMIT]}
