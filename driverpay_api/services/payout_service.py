from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError

from driverpay_api.common.errors import NotFound, PersistenceError, StatementLocked, ValidationError
from driverpay_api.config import EngineConfig
from driverpay_api.extensions import db
from driverpay_api.models.driver import Driver
from driverpay_api.models.statements import PayStatement, STATEMENT_PAID, STATEMENT_PENDING
from .earnings import EarningsAggregator, EarningsBreakdown, admin_commission, completed_routes
from .ledger_totals import deductions_total
from .payroll_common import upsert
from .statements import PayoutFigures

log = logging.getLogger(__name__)

STATEMENT_KEY = ("driver_id", "period_start", "period_end")
STATEMENT_UPDATE_COLS = ("gross_earnings", "admin_cut", "total_deductions", "net_payout", "updated_at")


@dataclass
class PayoutResult:
    statement: PayStatement
    figures: PayoutFigures
    earnings: EarningsBreakdown


class PayoutCalculator:
    """
    Ad hoc payout for one driver over one period.

    net_payout = gross earnings - dispatcher admin cut - deduction ledger.
    Expenses are not part of this pipeline. The statement is upserted on
    (driver, period_start, period_end) so repeated calls keep one row.
    """

    def __init__(self, config: EngineConfig):
        self.config = config
        self.earnings = EarningsAggregator(config)

    def compute(self, driver_id: int, period_start: Optional[date] = None,
                period_end: Optional[date] = None, today: Optional[date] = None) -> PayoutResult:
        driver = db.session.get(Driver, driver_id)
        if driver is None:
            raise NotFound(f"Driver {driver_id} not found")

        # an open bound is stored as today, which must still give end >= start
        today = today or date.today()
        stored_start, stored_end = period_start or today, period_end or today
        if stored_end < stored_start:
            raise ValidationError(
                f"period_end ({stored_end.isoformat()}) must be on or after "
                f"period_start ({stored_start.isoformat()})"
            )

        routes = completed_routes(driver.id, period_start, period_end)
        breakdown = self.earnings.aggregate(driver, routes, period_start, period_end)
        figures = PayoutFigures(
            gross_earnings=breakdown.total,
            admin_cut=admin_commission(routes),
            total_deductions=deductions_total(driver.id, period_start, period_end),
        )
        log.info(
            "payout driver=%s period=%s..%s gross=%s admin_cut=%s deductions=%s net=%s",
            driver.id, period_start, period_end, figures.gross_earnings,
            figures.admin_cut, figures.total_deductions, figures.net_payout,
        )

        stmt = self._persist(driver, stored_start, stored_end, figures)
        return PayoutResult(statement=stmt, figures=figures, earnings=breakdown)

    def _persist(self, driver: Driver, start: date, end: date, figures: PayoutFigures) -> PayStatement:
        key = {"driver_id": driver.id, "period_start": start, "period_end": end}

        existing = PayStatement.query.filter_by(**key).first()
        if existing is not None and existing.status == STATEMENT_PAID:
            raise StatementLocked(
                f"Pay statement {existing.id} for driver {driver.id} ({start}..{end}) is already paid"
            )

        now = datetime.utcnow()
        values = {
            **key,
            "gross_earnings": figures.gross_earnings,
            "admin_cut": figures.admin_cut,
            "total_deductions": figures.total_deductions,
            "net_payout": figures.net_payout,
            "status": STATEMENT_PENDING,
            "created_at": now,
            "updated_at": now,
        }
        try:
            upsert(PayStatement, STATEMENT_KEY, values, STATEMENT_UPDATE_COLS,
                   where=PayStatement.__table__.c.status != STATEMENT_PAID)
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            log.exception("failed to save pay statement for driver %s", driver.id)
            raise PersistenceError(f"Could not save pay statement for driver {driver.id}") from e

        stmt = PayStatement.query.filter_by(**key).one()
        if stmt.status == STATEMENT_PAID:
            # paid between our check and the upsert; the guarded upsert left it alone
            raise StatementLocked(f"Pay statement {stmt.id} for driver {driver.id} ({start}..{end}) is already paid")
        return stmt


def mark_statement_paid(statement_id: int, payment_reference: str, paid_at: Optional[datetime] = None) -> PayStatement:
    stmt = db.session.get(PayStatement, statement_id)
    if stmt is None:
        raise NotFound(f"Pay statement {statement_id} not found")
    if stmt.status == STATEMENT_PAID:
        raise StatementLocked(f"Pay statement {statement_id} is already paid")

    stmt.status = STATEMENT_PAID
    stmt.paid_at = paid_at or datetime.utcnow()
    stmt.payment_reference = payment_reference
    try:
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        log.exception("failed to mark pay statement %s paid", statement_id)
        raise PersistenceError(f"Could not update pay statement {statement_id}") from e
    return stmt
