from datetime import datetime
from driverpay_api.extensions import db


class Invoice(db.Model):
    """Carrier billing period header."""
    __tablename__ = "invoices"

    id = db.Column(db.Integer, primary_key=True)
    invoice_number = db.Column(db.String(64), unique=True, nullable=False)
    invoice_date = db.Column(db.Date, nullable=False)
    period_start = db.Column(db.Date)
    period_end = db.Column(db.Date)

    net_total = db.Column(db.Numeric(14, 2))
    gross_total = db.Column(db.Numeric(14, 2))
    created_at = db.Column(db.DateTime, default=datetime.utcnow)


class InvoiceWeeklyPay(db.Model):
    """Per-operator weekly line of an invoice."""
    __tablename__ = "invoice_weekly_pay"

    id = db.Column(db.Integer, primary_key=True)
    invoice_number = db.Column(db.String(64), db.ForeignKey("invoices.invoice_number", ondelete="CASCADE"),
                               nullable=False, index=True)
    operator_id = db.Column(db.String(64), nullable=False)
    tour = db.Column(db.String(32), nullable=False, default="")
    delivered_qty = db.Column(db.Integer, default=0)
    amount_total = db.Column(db.Numeric(14, 2))

    __table_args__ = (
        db.UniqueConstraint("invoice_number", "operator_id", "tour", name="uq_weekly_pay_invoice_operator_tour"),
    )


class DailyPayQty(db.Model):
    """Per-operator-per-day delivered quantity tied to an invoice."""
    __tablename__ = "daily_pay_qty"

    id = db.Column(db.Integer, primary_key=True)
    invoice_number = db.Column(db.String(64), db.ForeignKey("invoices.invoice_number", ondelete="CASCADE"),
                               nullable=False, index=True)
    working_day = db.Column(db.Date, nullable=False)
    operator_id = db.Column(db.String(64), nullable=False)
    tour = db.Column(db.String(32), nullable=False, default="")
    total_qty = db.Column(db.Integer, nullable=False, default=0)

    __table_args__ = (
        db.UniqueConstraint("invoice_number", "working_day", "operator_id", "tour",
                            name="uq_daily_pay_qty_invoice_day_operator_tour"),
        db.Index("ix_daily_pay_qty_invoice_operator", "invoice_number", "operator_id"),
    )
