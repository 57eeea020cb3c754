from __future__ import annotations

import logging
from dataclasses import dataclass, asdict
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple

from driverpay_api.common.errors import NotFound, RateUnavailable
from driverpay_api.config import EngineConfig
from driverpay_api.extensions import db
from driverpay_api.models.driver import Driver
from driverpay_api.models.route import Route
from .earnings import completed_routes, delivered_parcels
from .ledger_totals import approved_expenses_total
from .payroll_common import ZERO, money
from .rate_resolver import (
    DispatcherTerms, ResolvedRate, active_dispatcher_fallback, dispatcher_terms, resolve_rate_for_driver,
)
from .statements import PreviewPayslipFigures

log = logging.getLogger(__name__)


@dataclass
class PayslipDTO:
    driver_details: Dict[str, Any]
    period: Dict[str, Any]
    performance: Dict[str, Any]
    financial: Dict[str, Any]
    breakdown: Dict[str, Any]
    generated_at: str


class PayslipService:
    """On-demand payslip preview for one driver. Nothing is persisted."""

    def __init__(self, config: EngineConfig):
        self.config = config

    def _route_terms(self, routes: List[Route]) -> Optional[DispatcherTerms]:
        # earliest in-period route that carries a dispatcher
        for r in routes:
            if r.dispatcher_id is not None and r.dispatcher is not None:
                return dispatcher_terms(r.dispatcher)
        return None

    def resolve_terms(self, driver: Driver, routes: List[Route], as_of: date) -> Tuple[ResolvedRate, Decimal]:
        """
        Rate and flat deduction for the payslip, in order:
        1) dispatcher of the driver's routes in the period
        2) the driver's rate schedule on `as_of`
        3) first active dispatcher (only if allow_dispatcher_rate_fallback)
        """
        terms = self._route_terms(routes)
        if terms is not None and terms.rate is not None and terms.rate > 0:
            return ResolvedRate(terms.rate, None, "dispatcher", str(terms.dispatcher_id)), terms.default_deduction

        sched = resolve_rate_for_driver(driver, as_of)
        if sched is not None and sched.usable:
            return sched, (terms.default_deduction if terms is not None else ZERO)

        if self.config.allow_dispatcher_rate_fallback:
            fb = active_dispatcher_fallback()
            if fb is not None:
                log.info("driver %s: using active dispatcher %s as rate fallback", driver.id, fb.dispatcher_id)
                return (
                    ResolvedRate(fb.rate, None, "dispatcher_fallback", str(fb.dispatcher_id)),
                    fb.default_deduction,
                )

        raise RateUnavailable(f"No valid rate found for driver {driver.id} as of {as_of.isoformat()}")

    def build_payslip_dto(self, driver_id: int, period_start: date, period_end: date,
                          now: Optional[datetime] = None) -> dict:
        driver = db.session.get(Driver, driver_id)
        if driver is None:
            raise NotFound("Driver not found")

        routes = completed_routes(driver.id, period_start, period_end)
        packages = sum(delivered_parcels(r) for r in routes)
        rate, flat_deduction = self.resolve_terms(driver, routes, period_end)
        expenses = approved_expenses_total(driver.id, period_start, period_end)

        figures = PreviewPayslipFigures(
            gross_pay=money(packages * rate.amount),
            approved_expenses=expenses,
            flat_deduction=money(flat_deduction),
        )

        dto = PayslipDTO(
            driver_details={
                "id": driver.id,
                "name": driver.name,
                "email": driver.email,
                "operator_id": driver.operator_id,
            },
            period={
                "start": period_start.isoformat(),
                "end": period_end.isoformat(),
            },
            performance={
                "total_packages_completed": packages,
                "routes_completed": len(routes),
                "applied_rate": rate.amount,
                "rate_source": rate.source,
            },
            financial={
                "gross_pay": figures.gross_pay,
                "total_deductions": figures.flat_deduction,
                "total_expenses": figures.approved_expenses,
                "net_pay": figures.net_pay,
            },
            breakdown={
                "earnings_from_parcels": figures.gross_pay,
                "approved_expenses": figures.approved_expenses,
                "default_deductions": figures.flat_deduction,
            },
            generated_at=(now or datetime.utcnow()).isoformat(),
        )
        return asdict(dto)
