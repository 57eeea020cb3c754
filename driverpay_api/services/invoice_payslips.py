from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError

from driverpay_api.common.errors import AggregationWarning, NotFound
from driverpay_api.config import EngineConfig
from driverpay_api.extensions import db
from driverpay_api.models.driver import Driver
from driverpay_api.models.invoice import DailyPayQty, Invoice, InvoiceWeeklyPay
from driverpay_api.models.statements import Payslip
from .ledger_totals import deductions_total
from .payroll_common import ZERO, money, upsert
from .rate_resolver import resolve_rate_for_driver
from .statements import InvoicePayslipFigures

log = logging.getLogger(__name__)

PAYSLIP_KEY = ("driver_id", "invoice_number")
PAYSLIP_UPDATE_COLS = (
    "invoice_date", "period_start", "period_end", "operator_id",
    "gross_pay", "deductions", "net_pay", "generated_by", "generated_at",
)


@dataclass
class BatchResult:
    payslips: List[Dict[str, Any]] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    @property
    def generated(self) -> int:
        return len(self.payslips)


class InvoicePayslipGenerator:
    """
    One payslip per operator billed on an invoice.

    Operators are processed one at a time and each one commits on its own, so
    a skipped or failed operator never rolls back the others. The payslip is
    upserted on (driver_id, invoice_number); re-running an invoice rewrites
    the figures in place.
    """

    def __init__(self, config: EngineConfig):
        self.config = config

    def _invoices(self, invoice_number: Optional[str]) -> List[Invoice]:
        q = Invoice.query
        if invoice_number:
            q = q.filter(Invoice.invoice_number == invoice_number)
        rows = q.order_by(Invoice.invoice_date.asc(), Invoice.invoice_number.asc()).all()
        if not rows:
            if invoice_number:
                raise NotFound(f"Invoice {invoice_number} not found")
            raise NotFound("No invoices found")
        return rows

    def _operators(self, invoice_number: str) -> List[str]:
        weekly = db.session.query(InvoiceWeeklyPay.operator_id).filter(
            InvoiceWeeklyPay.invoice_number == invoice_number)
        daily = db.session.query(DailyPayQty.operator_id).filter(
            DailyPayQty.invoice_number == invoice_number)
        ops = {row[0] for row in weekly.all()} | {row[0] for row in daily.all()}
        return sorted(op for op in ops if op)

    def _quantity(self, invoice_number: str, operator_id: str) -> int:
        total = (
            db.session.query(func.coalesce(func.sum(DailyPayQty.total_qty), 0))
            .filter(DailyPayQty.invoice_number == invoice_number, DailyPayQty.operator_id == operator_id)
            .scalar()
        )
        return int(total or 0)

    def _generate_one(self, invoice: Invoice, operator_id: str, generated_by: Optional[str]) -> Dict[str, Any]:
        driver = Driver.query.filter(Driver.operator_id == operator_id).first()
        if driver is None:
            raise AggregationWarning(operator_id, f"No driver found for operator {operator_id} - skipping")

        as_of = invoice.period_end or invoice.invoice_date
        rate = resolve_rate_for_driver(driver, as_of)
        if rate is None or not rate.usable:
            raise AggregationWarning(
                operator_id,
                f"No valid driver rate found for operator {operator_id} - skipping payslip generation",
            )

        qty = self._quantity(invoice.invoice_number, operator_id)
        if qty <= 0:
            raise AggregationWarning(
                operator_id,
                f"No delivered quantity found for operator {operator_id} on invoice "
                f"{invoice.invoice_number} - skipping payslip generation",
            )

        if self.config.batch_deductions_from_ledger:
            deductions = deductions_total(driver.id, invoice.period_start, invoice.period_end)
        else:
            deductions = ZERO
        figures = InvoicePayslipFigures(gross_pay=money(qty * rate.amount), deductions=deductions)

        values = {
            "driver_id": driver.id,
            "invoice_number": invoice.invoice_number,
            "invoice_date": invoice.invoice_date,
            "period_start": invoice.period_start,
            "period_end": invoice.period_end,
            "operator_id": operator_id,
            "gross_pay": figures.gross_pay,
            "deductions": figures.deductions,
            "net_pay": figures.net_pay,
            "generated_by": generated_by,
            "generated_at": datetime.utcnow(),
        }
        existed = upsert(Payslip, PAYSLIP_KEY, values, PAYSLIP_UPDATE_COLS)
        db.session.commit()

        return {
            "driver_id": driver.id,
            "invoice_number": invoice.invoice_number,
            "operator_id": operator_id,
            "quantity": qty,
            "rate": rate.amount,
            "gross_pay": figures.gross_pay,
            "deductions": figures.deductions,
            "net_pay": figures.net_pay,
            "created": not existed,
            "updated": existed,
        }

    def run(self, invoice_number: Optional[str] = None, generated_by: Optional[str] = None) -> BatchResult:
        result = BatchResult()
        for invoice in self._invoices(invoice_number):
            for operator_id in self._operators(invoice.invoice_number):
                try:
                    result.payslips.append(self._generate_one(invoice, operator_id, generated_by))
                except AggregationWarning as w:
                    log.warning("invoice %s: %s", invoice.invoice_number, w.message)
                    result.warnings.append(w.message)
                except SQLAlchemyError as e:
                    db.session.rollback()
                    log.exception("invoice %s: failed to save payslip for operator %s",
                                  invoice.invoice_number, operator_id)
                    result.warnings.append(
                        f"Failed to save payslip for operator {operator_id} on invoice "
                        f"{invoice.invoice_number}: {e.__class__.__name__}"
                    )
        log.info("payslip batch done: %s generated, %s warnings", result.generated, len(result.warnings))
        return result
