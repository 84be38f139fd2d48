# =============================================================================
# Finance API — Transactions and Monthly Summary
# =============================================================================
#
#   GET    /expenses?month=YYYY-MM          — that month's transactions, newest first
#   POST   /expenses                        — income or expense (amount > 0)
#   DELETE /expenses/{id}
#   GET    /expenses/summary?month=YYYY-MM  — income, expenses, net, by-category
#   GET    /expenses/categories             — suggested category names
#
# `month` defaults to the current (UTC) month. A month covers
# [first day, first day of the next month).
# =============================================================================

from __future__ import annotations

import logging
import uuid

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from lifedesk.api.deps import get_object_or_404
from lifedesk.db.engine import get_async_session
from lifedesk.db.models import Expense
from lifedesk.models.requests import ExpenseCreate
from lifedesk.models.responses import CategoriesResponse, ExpenseResponse, FinanceSummaryResponse
from lifedesk.services.stats import (
    EXPENSE_CATEGORIES,
    INCOME_CATEGORIES,
    list_transactions,
    month_bounds,
    summarize_transactions,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Finance"])

_MONTH_QUERY = Query(default=None, description="Month as YYYY-MM (default: current month)")


def _bounds_or_400(month: str | None):
    try:
        return month_bounds(month)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e


@router.get("/expenses", response_model=list[ExpenseResponse], summary="List transactions")
async def list_expenses(
    month: str | None = _MONTH_QUERY,
    session: AsyncSession = Depends(get_async_session),
) -> list[ExpenseResponse]:
    start, end = _bounds_or_400(month)
    rows = await list_transactions(session, start, end)
    return [ExpenseResponse.model_validate(r) for r in rows]


@router.get(
    "/expenses/summary", response_model=FinanceSummaryResponse, summary="Monthly summary",
)
async def expense_summary(
    month: str | None = _MONTH_QUERY,
    session: AsyncSession = Depends(get_async_session),
) -> FinanceSummaryResponse:
    start, end = _bounds_or_400(month)
    rows = await list_transactions(session, start, end)
    summary = summarize_transactions(start.strftime("%Y-%m"), rows)
    return FinanceSummaryResponse.model_validate(summary)


@router.get(
    "/expenses/categories", response_model=CategoriesResponse, summary="Category names",
)
async def expense_categories() -> CategoriesResponse:
    return CategoriesResponse(expense=EXPENSE_CATEGORIES, income=INCOME_CATEGORIES)


@router.post(
    "/expenses", response_model=ExpenseResponse, status_code=201, summary="Add a transaction",
)
async def create_expense(
    request: ExpenseCreate,
    session: AsyncSession = Depends(get_async_session),
) -> ExpenseResponse:
    expense = Expense(**request.model_dump())
    session.add(expense)
    await session.flush()

    logger.info(
        "Transaction created: id=%s, %s %.2f (%s)",
        expense.id, expense.type, expense.amount, expense.category,
    )
    return ExpenseResponse.model_validate(expense)


@router.delete("/expenses/{expense_id}", status_code=204, summary="Delete a transaction")
async def delete_expense(
    expense_id: uuid.UUID,
    session: AsyncSession = Depends(get_async_session),
) -> None:
    expense = await get_object_or_404(session, Expense, expense_id, label="Transaction")
    await session.delete(expense)
