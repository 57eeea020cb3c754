from datetime import date, datetime
from decimal import Decimal

import pytest
from flask_jwt_extended import create_access_token

from driverpay_api import create_app
from driverpay_api.config import AppConfig, EngineConfig
from driverpay_api.extensions import db
from driverpay_api.models.driver import Dispatcher, Driver
from driverpay_api.models.invoice import DailyPayQty, Invoice, InvoiceWeeklyPay
from driverpay_api.models.ledger import Deduction, Expense, WeeklyEarning
from driverpay_api.models.rates import DriverRate
from driverpay_api.models.route import Route

TEST_JWT_SECRET = "test-jwt-secret-0123456789abcdef0123456789"

# the reference week used across the suite
WEEK_START = date(2024, 7, 1)
WEEK_END = date(2024, 7, 7)


def _mk_app(engine=None):
    cfg = AppConfig(
        database_url="sqlite:///:memory:",
        jwt_secret_key=TEST_JWT_SECRET,
        log_level="DEBUG",
        engine=engine or EngineConfig(),
    )
    app = create_app(cfg)
    app.config["TESTING"] = True
    return app


@pytest.fixture
def app():
    app = _mk_app()
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


def _bearer(identity, roles):
    token = create_access_token(identity=identity, additional_claims={"roles": roles})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def auth_headers(app):
    return _bearer("finance-1", ["finance"])


@pytest.fixture
def bearer(app):
    """Token factory for role checks: bearer("u1", ["driver"])."""
    return _bearer


class Seed:
    """Small row builders; every call commits."""

    def _save(self, obj):
        db.session.add(obj)
        db.session.commit()
        return obj

    def dispatcher(self, name="North Depot", rate="0.85", deduction="15.00", commission="0", active=True):
        return self._save(Dispatcher(
            name=name, active=active,
            driver_parcel_rate=Decimal(rate) if rate is not None else None,
            default_deduction_rate=Decimal(deduction) if deduction is not None else None,
            admin_commission_per_parcel=Decimal(commission),
        ))

    def driver(self, name="Alice", operator_id="OP-A", email=None):
        email = email or f"{name.lower()}@drivers.test"
        return self._save(Driver(name=name, email=email, operator_id=operator_id))

    def rate(self, rate, effective, operator_id=None, driver=None):
        return self._save(DriverRate(
            operator_id=operator_id, driver_id=driver.id if driver else None,
            rate=Decimal(rate), effective_date=effective,
        ))

    def route(self, driver, on, delivered, carrier_rate="0.85", dispatcher=None,
              status="completed", total=None):
        return self._save(Route(
            driver_id=driver.id, dispatcher_id=dispatcher.id if dispatcher else None,
            scheduled_date=on, status=status,
            parcel_count_total=total if total is not None else delivered,
            parcels_delivered=delivered,
            carrier_rate_per_parcel=Decimal(carrier_rate) if carrier_rate is not None else None,
        ))

    def deduction(self, driver, amount, at, reason="van hire"):
        return self._save(Deduction(driver_id=driver.id, amount=Decimal(amount), reason=reason, created_at=at))

    def expense(self, driver, cost, at, status="approved"):
        return self._save(Expense(driver_id=driver.id, cost=Decimal(cost), status=status, created_at=at))

    def weekly(self, driver, start, end, gross):
        return self._save(WeeklyEarning(driver_id=driver.id, week_start_date=start, week_end_date=end,
                                        gross_amount=Decimal(gross)))

    def invoice(self, number="INV-1001", start=WEEK_START, end=WEEK_END, invoice_date=date(2024, 7, 8)):
        return self._save(Invoice(invoice_number=number, invoice_date=invoice_date,
                                  period_start=start, period_end=end))

    def daily_qty(self, invoice, operator_id, day, qty, tour="T1"):
        return self._save(DailyPayQty(invoice_number=invoice.invoice_number, working_day=day,
                                      operator_id=operator_id, tour=tour, total_qty=qty))

    def weekly_pay(self, invoice, operator_id, qty=0, tour="T1"):
        return self._save(InvoiceWeeklyPay(invoice_number=invoice.invoice_number, operator_id=operator_id,
                                           tour=tour, delivered_qty=qty))


@pytest.fixture
def seed(app):
    return Seed()


@pytest.fixture
def worked_week(seed):
    """
    Alice: 120 parcels over four completed routes at 0.85 for a dispatcher that
    keeps 0.05 per parcel, one 15.00 deduction, 22.00 of approved expenses.
    """
    disp = seed.dispatcher(rate="0.85", deduction="15.00", commission="0.05")
    alice = seed.driver("Alice", "OP-A")
    for day in range(1, 5):
        seed.route(alice, date(2024, 7, day), 30, carrier_rate="0.85", dispatcher=disp)
    seed.deduction(alice, "15.00", datetime(2024, 7, 3, 10, 0))
    seed.expense(alice, "12.00", datetime(2024, 7, 2, 9, 0))
    seed.expense(alice, "10.00", datetime(2024, 7, 5, 18, 0))
    seed.expense(alice, "50.00", datetime(2024, 7, 5, 18, 0), status="pending")
    seed.expense(alice, "7.00", datetime(2024, 7, 6, 8, 0), status="rejected")
    return alice
