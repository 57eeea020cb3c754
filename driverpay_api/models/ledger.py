from datetime import datetime
from driverpay_api.extensions import db


class Deduction(db.Model):
    __tablename__ = "deductions"

    id = db.Column(db.Integer, primary_key=True)
    driver_id = db.Column(db.Integer, db.ForeignKey("drivers.id", ondelete="CASCADE"), nullable=False, index=True)
    amount = db.Column(db.Numeric(12, 2), nullable=False)
    deduction_type = db.Column(db.String(40), default="manual")
    reason = db.Column(db.String(255), nullable=False)

    created_by = db.Column(db.String(64))
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)


class Expense(db.Model):
    __tablename__ = "expenses"

    id = db.Column(db.Integer, primary_key=True)
    driver_id = db.Column(db.Integer, db.ForeignKey("drivers.id", ondelete="CASCADE"), nullable=False, index=True)
    cost = db.Column(db.Numeric(12, 2), nullable=False)
    reason = db.Column(db.String(255))
    status = db.Column(db.Enum("pending", "approved", "rejected", name="expense_status_enum"),
                       nullable=False, default="pending")

    reviewed_by = db.Column(db.String(64))
    reviewed_at = db.Column(db.DateTime)
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)


class WeeklyEarning(db.Model):
    """Pre-aggregated weekly gross from the older earnings path."""
    __tablename__ = "earnings"

    id = db.Column(db.Integer, primary_key=True)
    driver_id = db.Column(db.Integer, db.ForeignKey("drivers.id", ondelete="CASCADE"), nullable=False, index=True)
    week_start_date = db.Column(db.Date, nullable=False)
    week_end_date = db.Column(db.Date, nullable=False)
    gross_amount = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    route_count = db.Column(db.Integer)

    created_at = db.Column(db.DateTime, default=datetime.utcnow)
