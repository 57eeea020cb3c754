from datetime import date
from decimal import Decimal

import pytest

from driverpay_api.common.errors import RateUnavailable
from driverpay_api.config import EngineConfig
from driverpay_api.services.payslip_service import PayslipService
from driverpay_api.services.rate_resolver import (
    active_dispatcher_fallback, require_rate, resolve_rate, resolve_rate_for_driver,
)


def test_rate_precedence_latest_effective_on_or_before(seed):
    seed.rate("0.80", date(2024, 1, 1), operator_id="OP-A")
    seed.rate("0.85", date(2024, 6, 1), operator_id="OP-A")

    assert resolve_rate("OP-A", date(2024, 7, 1)).amount == Decimal("0.85")
    assert resolve_rate("OP-A", date(2024, 3, 1)).amount == Decimal("0.80")
    assert resolve_rate("OP-A", date(2023, 12, 1)) is None


def test_rate_effective_on_the_day_itself(seed):
    seed.rate("0.85", date(2024, 6, 1), operator_id="OP-A")
    got = resolve_rate("OP-A", date(2024, 6, 1))
    assert got.amount == Decimal("0.85")
    assert got.effective_date == date(2024, 6, 1)
    assert got.source == "schedule"


def test_future_rate_never_picked(seed):
    seed.rate("0.80", date(2024, 1, 1), operator_id="OP-A")
    seed.rate("9.99", date(2030, 1, 1), operator_id="OP-A")
    assert resolve_rate("OP-A", date(2024, 7, 1)).amount == Decimal("0.80")


def test_other_operator_rows_ignored(seed):
    seed.rate("0.85", date(2024, 1, 1), operator_id="OP-B")
    assert resolve_rate("OP-A", date(2024, 7, 1)) is None
    assert resolve_rate("", date(2024, 7, 1)) is None


def test_zero_rate_is_returned_but_not_usable(seed):
    seed.rate("0", date(2024, 1, 1), operator_id="OP-A")
    got = resolve_rate("OP-A", date(2024, 7, 1))
    assert got is not None
    assert got.usable is False
    with pytest.raises(RateUnavailable):
        require_rate(got, "operator OP-A")


def test_driver_keyed_row_wins_only_a_same_day_tie(seed):
    alice = seed.driver("Alice", "OP-A")
    seed.rate("0.85", date(2024, 1, 1), operator_id="OP-A")
    seed.rate("0.95", date(2024, 1, 1), driver=alice)

    got = resolve_rate_for_driver(alice, date(2024, 7, 1))
    assert got.amount == Decimal("0.95")


def test_newer_operator_row_beats_older_driver_row(seed):
    alice = seed.driver("Alice", "OP-A")
    seed.rate("0.80", date(2023, 1, 1), driver=alice)
    seed.rate("0.85", date(2024, 6, 1), operator_id="OP-A")

    got = resolve_rate_for_driver(alice, date(2024, 7, 1))
    assert got.amount == Decimal("0.85")
    assert got.effective_date == date(2024, 6, 1)
    # before the operator row took effect the driver row still applies
    assert resolve_rate_for_driver(alice, date(2024, 5, 31)).amount == Decimal("0.80")


def test_newer_driver_row_beats_older_operator_row(seed):
    alice = seed.driver("Alice", "OP-A")
    seed.rate("0.85", date(2024, 1, 1), operator_id="OP-A")
    seed.rate("0.90", date(2024, 6, 1), driver=alice)

    assert resolve_rate_for_driver(alice, date(2024, 7, 1)).amount == Decimal("0.90")


def test_driver_without_operator_id_uses_own_rows(seed):
    solo = seed.driver("Solo", None)
    seed.rate("0.70", date(2024, 1, 1), driver=solo)
    seed.rate("9.99", date(2024, 1, 1), operator_id="OP-A")

    assert resolve_rate_for_driver(solo, date(2024, 7, 1)).amount == Decimal("0.70")


def test_driver_lookup_falls_back_to_operator(seed):
    alice = seed.driver("Alice", "OP-A")
    seed.rate("0.85", date(2024, 1, 1), operator_id="OP-A")
    assert resolve_rate_for_driver(alice, date(2024, 7, 1)).amount == Decimal("0.85")


def test_active_dispatcher_fallback_skips_inactive_and_rateless(seed):
    seed.dispatcher("Closed", rate="1.10", active=False)
    seed.dispatcher("No rate", rate=None)
    live = seed.dispatcher("Live", rate="0.70", deduction="12.50")

    terms = active_dispatcher_fallback()
    assert terms.dispatcher_id == live.id
    assert terms.rate == Decimal("0.70")
    assert terms.default_deduction == Decimal("12.50")


def test_payslip_terms_use_fallback_dispatcher_when_enabled(seed):
    alice = seed.driver("Alice", "OP-A")
    seed.dispatcher("Live", rate="0.70", deduction="12.50")

    rate, deduction = PayslipService(EngineConfig()).resolve_terms(alice, [], date(2024, 7, 7))
    assert rate.source == "dispatcher_fallback"
    assert rate.amount == Decimal("0.70")
    assert deduction == Decimal("12.50")


def test_payslip_terms_without_fallback_raise(seed):
    alice = seed.driver("Alice", "OP-A")
    seed.dispatcher("Live", rate="0.70")

    svc = PayslipService(EngineConfig(allow_dispatcher_rate_fallback=False))
    with pytest.raises(RateUnavailable):
        svc.resolve_terms(alice, [], date(2024, 7, 7))


def test_payslip_terms_schedule_before_fallback(seed):
    alice = seed.driver("Alice", "OP-A")
    seed.dispatcher("Live", rate="0.70", deduction="12.50")
    seed.rate("0.85", date(2024, 1, 1), operator_id="OP-A")

    rate, deduction = PayslipService(EngineConfig()).resolve_terms(alice, [], date(2024, 7, 7))
    assert rate.source == "schedule"
    assert rate.amount == Decimal("0.85")
    # no route dispatcher in the period, so no flat deduction
    assert deduction == Decimal("0.00")
