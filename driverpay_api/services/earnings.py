from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Dict, List, Optional

from driverpay_api.config import EngineConfig
from driverpay_api.models.driver import Driver
from driverpay_api.models.ledger import WeeklyEarning
from driverpay_api.models.route import Route, ROUTE_COMPLETED
from .payroll_common import ZERO, money, to_decimal
from .rate_resolver import ResolvedRate, require_rate, resolve_rate_for_driver

log = logging.getLogger(__name__)


def completed_routes(driver_id: int, start: Optional[date], end: Optional[date]) -> List[Route]:
    q = Route.query.filter(Route.driver_id == driver_id, Route.status == ROUTE_COMPLETED)
    if start:
        q = q.filter(Route.scheduled_date >= start)
    if end:
        q = q.filter(Route.scheduled_date <= end)
    return q.order_by(Route.scheduled_date.asc(), Route.id.asc()).all()


def delivered_parcels(route: Route) -> int:
    """Delivered count, or the route's total when no delivered count was recorded."""
    if route.parcels_delivered is not None:
        return int(route.parcels_delivered)
    return int(route.parcel_count_total or 0)


@dataclass(frozen=True)
class EarningsBreakdown:
    route_gross: Decimal
    legacy_gross: Decimal
    parcels: int

    @property
    def total(self) -> Decimal:
        return money(self.route_gross + self.legacy_gross)


class EarningsAggregator:
    """Gross earnings for one driver over a period, from routes and legacy weekly rows."""

    def __init__(self, config: EngineConfig):
        self.config = config

    def _schedule_rate(self, driver: Driver, on: date, cache: Dict[date, ResolvedRate]) -> ResolvedRate:
        if on not in cache:
            cache[on] = require_rate(resolve_rate_for_driver(driver, on), f"driver {driver.id} on {on.isoformat()}")
        return cache[on]

    def route_gross(self, driver: Driver, routes: List[Route]) -> Decimal:
        total = Decimal("0")
        cache: Dict[date, ResolvedRate] = {}
        for r in routes:
            parcels = delivered_parcels(r)
            if not parcels:
                continue
            if self.config.route_rate_source == "carrier" and r.carrier_rate_per_parcel is not None:
                rate = to_decimal(r.carrier_rate_per_parcel)
            else:
                rate = self._schedule_rate(driver, r.scheduled_date, cache).amount
            total += parcels * rate
        return money(total)

    def legacy_weekly_gross(self, driver_id: int, start: Optional[date], end: Optional[date]) -> Decimal:
        q = WeeklyEarning.query.filter(WeeklyEarning.driver_id == driver_id)
        if start:
            q = q.filter(WeeklyEarning.week_start_date >= start)
        if end:
            q = q.filter(WeeklyEarning.week_end_date <= end)
        return money(sum((to_decimal(w.gross_amount) for w in q.all()), Decimal("0")))

    def aggregate(self, driver: Driver, routes: List[Route], start: Optional[date], end: Optional[date]) -> EarningsBreakdown:
        route_gross = self.route_gross(driver, routes) if self.config.include_route_earnings else ZERO
        legacy = (
            self.legacy_weekly_gross(driver.id, start, end)
            if self.config.include_legacy_weekly_earnings else ZERO
        )
        if route_gross and legacy:
            log.warning(
                "driver %s has both route earnings (%s) and legacy weekly earnings (%s) for %s..%s; both are summed",
                driver.id, route_gross, legacy, start, end,
            )
        return EarningsBreakdown(route_gross, legacy, sum(delivered_parcels(r) for r in routes))


def admin_commission(routes: List[Route]) -> Decimal:
    """Amount retained per parcel by the dispatcher attached to each route."""
    cut = Decimal("0")
    for r in routes:
        if r.dispatcher_id is None or r.dispatcher is None:
            continue
        cut += delivered_parcels(r) * to_decimal(r.dispatcher.admin_commission_per_parcel)
    return money(cut)
