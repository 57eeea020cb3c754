from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Optional

from sqlalchemy import case, or_

from driverpay_api.common.errors import RateUnavailable
from driverpay_api.models.driver import Dispatcher, Driver
from driverpay_api.models.rates import DriverRate
from .payroll_common import to_decimal


@dataclass(frozen=True)
class ResolvedRate:
    amount: Decimal
    effective_date: Optional[date]
    source: str                      # "schedule" | "dispatcher" | "dispatcher_fallback" | "carrier"
    reference: Optional[str] = None  # operator id / dispatcher id the rate came from

    @property
    def usable(self) -> bool:
        return self.amount > 0


@dataclass(frozen=True)
class DispatcherTerms:
    dispatcher_id: int
    rate: Optional[Decimal]
    default_deduction: Decimal


def _latest(q, as_of: date) -> Optional[DriverRate]:
    return (
        q.filter(DriverRate.effective_date <= as_of)
        .order_by(DriverRate.effective_date.desc(), DriverRate.id.desc())
        .first()
    )


def resolve_rate(operator_id: str, as_of: date) -> Optional[ResolvedRate]:
    """
    Rate valid for `operator_id` on `as_of`: the row with the greatest
    effective_date that is <= as_of. Future-dated rows are never picked.

    Returns None when nothing qualifies; callers decide whether that skips,
    warns or fails. A zero-valued row is returned as-is (see ResolvedRate.usable).
    """
    if not operator_id:
        return None
    row = _latest(DriverRate.query.filter(DriverRate.operator_id == operator_id), as_of)
    if row is None:
        return None
    return ResolvedRate(to_decimal(row.rate), row.effective_date, "schedule", operator_id)


def resolve_rate_for_driver(driver: Driver, as_of: date) -> Optional[ResolvedRate]:
    """
    Latest row on or before `as_of` across the rows keyed by the driver and
    the rows keyed by its operator id. A driver-keyed row only wins a tie on
    the same effective_date.
    """
    keyed = DriverRate.driver_id == driver.id
    if driver.operator_id:
        keyed = or_(keyed, DriverRate.operator_id == driver.operator_id)
    row = (
        DriverRate.query
        .filter(keyed, DriverRate.effective_date <= as_of)
        .order_by(
            DriverRate.effective_date.desc(),
            case((DriverRate.driver_id == driver.id, 0), else_=1),
            DriverRate.id.desc(),
        )
        .first()
    )
    if row is None:
        return None
    return ResolvedRate(to_decimal(row.rate), row.effective_date, "schedule", driver.operator_id)


def require_rate(rate: Optional[ResolvedRate], who: str) -> ResolvedRate:
    if rate is None or not rate.usable:
        raise RateUnavailable(f"No valid rate found for {who}")
    return rate


def dispatcher_terms(dispatcher: Optional[Dispatcher]) -> Optional[DispatcherTerms]:
    if dispatcher is None:
        return None
    rate = to_decimal(dispatcher.driver_parcel_rate) if dispatcher.driver_parcel_rate is not None else None
    return DispatcherTerms(dispatcher.id, rate, to_decimal(dispatcher.default_deduction_rate))


def active_dispatcher_fallback() -> Optional[DispatcherTerms]:
    """
    Last-resort policy: terms of the first active dispatcher that defines a
    positive driver rate. Only used when EngineConfig.allow_dispatcher_rate_fallback.
    """
    q = (
        Dispatcher.query
        .filter(Dispatcher.active.is_(True))
        .filter(Dispatcher.driver_parcel_rate > 0)
        .order_by(Dispatcher.id.asc())
    )
    return dispatcher_terms(q.first())
