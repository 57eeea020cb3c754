from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Optional

from sqlalchemy import func

from driverpay_api.extensions import db
from driverpay_api.models.ledger import Deduction, Expense
from .payroll_common import day_bounds, money


def _windowed(q, column, start: Optional[date], end: Optional[date]):
    lo, hi = day_bounds(start, end)
    if lo is not None:
        q = q.filter(column >= lo)
    if hi is not None:
        q = q.filter(column < hi)
    return q


def deductions_total(driver_id: int, start: Optional[date], end: Optional[date]) -> Decimal:
    q = db.session.query(func.coalesce(func.sum(Deduction.amount), 0)).filter(Deduction.driver_id == driver_id)
    q = _windowed(q, Deduction.created_at, start, end)
    return money(q.scalar())


def approved_expenses_total(driver_id: int, start: Optional[date], end: Optional[date]) -> Decimal:
    q = (
        db.session.query(func.coalesce(func.sum(Expense.cost), 0))
        .filter(Expense.driver_id == driver_id, Expense.status == "approved")
    )
    q = _windowed(q, Expense.created_at, start, end)
    return money(q.scalar())
