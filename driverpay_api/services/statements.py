"""
Net-pay formulas, one per statement variant.

The three pipelines disagree on what is subtracted and added, and that
disagreement is kept explicit: each variant owns its formula and nothing
converts one into another.

- PayoutFigures          gross - admin cut - deduction ledger       (PayStatement)
- PreviewPayslipFigures  gross + approved expenses - flat deduction (single payslip)
- InvoicePayslipFigures  gross - deductions                         (batch Payslip)
"""
from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import ClassVar, Union

from .payroll_common import money


@dataclass(frozen=True)
class PayoutFigures:
    kind: ClassVar[str] = "pay_statement"

    gross_earnings: Decimal
    admin_cut: Decimal
    total_deductions: Decimal

    @property
    def net_payout(self) -> Decimal:
        return money(self.gross_earnings - self.admin_cut - self.total_deductions)


@dataclass(frozen=True)
class PreviewPayslipFigures:
    kind: ClassVar[str] = "preview_payslip"

    gross_pay: Decimal
    approved_expenses: Decimal
    flat_deduction: Decimal

    @property
    def net_pay(self) -> Decimal:
        return money(self.gross_pay + self.approved_expenses - self.flat_deduction)


@dataclass(frozen=True)
class InvoicePayslipFigures:
    kind: ClassVar[str] = "invoice_payslip"

    gross_pay: Decimal
    deductions: Decimal

    @property
    def net_pay(self) -> Decimal:
        return money(self.gross_pay - self.deductions)


StatementFigures = Union[PayoutFigures, PreviewPayslipFigures, InvoicePayslipFigures]
