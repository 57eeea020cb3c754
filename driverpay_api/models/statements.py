from datetime import datetime
from driverpay_api.extensions import db

STATEMENT_PENDING = "pending"
STATEMENT_PAID = "paid"


class PayStatement(db.Model):
    __tablename__ = "pay_statements"

    id = db.Column(db.Integer, primary_key=True)
    driver_id = db.Column(db.Integer, db.ForeignKey("drivers.id", ondelete="CASCADE"), nullable=False, index=True)
    period_start = db.Column(db.Date, nullable=False)
    period_end = db.Column(db.Date, nullable=False)

    gross_earnings = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    admin_cut = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    total_deductions = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    net_payout = db.Column(db.Numeric(12, 2), nullable=False, default=0)

    status = db.Column(db.String(16), nullable=False, default=STATEMENT_PENDING)
    paid_at = db.Column(db.DateTime)
    payment_reference = db.Column(db.String(120))

    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        db.UniqueConstraint("driver_id", "period_start", "period_end", name="uq_pay_statement_driver_period"),
    )

    driver = db.relationship("Driver", lazy="joined")


class Payslip(db.Model):
    __tablename__ = "payslips"

    id = db.Column(db.Integer, primary_key=True)
    driver_id = db.Column(db.Integer, db.ForeignKey("drivers.id", ondelete="CASCADE"), nullable=False, index=True)
    invoice_number = db.Column(db.String(64), nullable=False, index=True)
    invoice_date = db.Column(db.Date)
    period_start = db.Column(db.Date)
    period_end = db.Column(db.Date)
    operator_id = db.Column(db.String(64))

    gross_pay = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    deductions = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    net_pay = db.Column(db.Numeric(12, 2), nullable=False, default=0)

    generated_by = db.Column(db.String(64))
    generated_at = db.Column(db.DateTime, default=datetime.utcnow)

    __table_args__ = (
        db.UniqueConstraint("driver_id", "invoice_number", name="uq_payslip_driver_invoice"),
    )

    driver = db.relationship("Driver", lazy="joined")
