from datetime import datetime
from driverpay_api.extensions import db


class Dispatcher(db.Model):
    __tablename__ = "dispatchers"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), nullable=False)
    contact_email = db.Column(db.String(255))
    active = db.Column(db.Boolean, nullable=False, default=True)

    # commercial terms
    driver_parcel_rate = db.Column(db.Numeric(10, 4))          # paid to driver per parcel
    default_deduction_rate = db.Column(db.Numeric(12, 2))      # flat deduction per payslip
    # Stored as "admin_commission_percentage" but it is an absolute amount per parcel.
    admin_commission_per_parcel = db.Column(
        "admin_commission_percentage", db.Numeric(10, 4), nullable=False, default=0
    )

    created_at = db.Column(db.DateTime, default=datetime.utcnow)


class Driver(db.Model):
    __tablename__ = "drivers"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(160), nullable=False)
    email = db.Column(db.String(255), unique=True, nullable=False)
    operator_id = db.Column(db.String(64), unique=True, nullable=True)  # carrier-side key

    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
