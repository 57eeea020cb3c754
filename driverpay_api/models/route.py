from datetime import datetime
from driverpay_api.extensions import db

ROUTE_COMPLETED = "completed"


class Route(db.Model):
    __tablename__ = "routes"

    id = db.Column(db.Integer, primary_key=True)
    driver_id = db.Column(db.Integer, db.ForeignKey("drivers.id", ondelete="SET NULL"), nullable=True)
    dispatcher_id = db.Column(db.Integer, db.ForeignKey("dispatchers.id", ondelete="SET NULL"), nullable=True)

    scheduled_date = db.Column(db.Date, nullable=False)
    status = db.Column(db.String(20), default="pending")   # pending/in_progress/completed/cancelled

    parcel_count_total = db.Column(db.Integer)
    parcels_delivered = db.Column(db.Integer)
    carrier_rate_per_parcel = db.Column(db.Numeric(10, 4))  # supplied by the carrier

    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    __table_args__ = (
        db.Index("ix_routes_driver_date", "driver_id", "scheduled_date"),
    )

    driver = db.relationship("Driver", lazy="joined")
    dispatcher = db.relationship("Dispatcher", lazy="joined")
