from datetime import datetime, date
from driverpay_api.extensions import db


class DriverRate(db.Model):
    """Effective-dated per-parcel rate for a driver / operator."""
    __tablename__ = "driver_rates"

    id = db.Column(db.Integer, primary_key=True)
    driver_id = db.Column(db.Integer, db.ForeignKey("drivers.id", ondelete="CASCADE"), nullable=True)
    operator_id = db.Column(db.String(64), nullable=True)

    rate = db.Column(db.Numeric(10, 4), nullable=False)
    effective_date = db.Column(db.Date, nullable=False, default=date.today)

    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        db.Index("ix_driver_rates_operator_effective", "operator_id", "effective_date"),
        db.Index("ix_driver_rates_driver_effective", "driver_id", "effective_date"),
    )
