from datetime import date

import pytest
from marshmallow import ValidationError

from driverpay_api.schemas.compensation_schema import (
    BatchPayslipRequestSchema, MarkPaidRequestSchema, PayoutRequestSchema, SinglePayslipRequestSchema,
)


def test_payout_period_optional():
    got = PayoutRequestSchema().load({"driver_id": "7"})
    assert got == {"driver_id": 7, "period_start": None, "period_end": None}


def test_payout_rejects_bad_driver_and_reversed_period():
    with pytest.raises(ValidationError) as exc:
        PayoutRequestSchema().load({"driver_id": 0})
    assert "driver_id" in exc.value.messages

    with pytest.raises(ValidationError) as exc:
        PayoutRequestSchema().load({"driver_id": 1, "period_start": "2024-07-07", "period_end": "2024-07-01"})
    assert "period_end" in exc.value.messages


def test_single_payslip_needs_both_dates():
    with pytest.raises(ValidationError) as exc:
        SinglePayslipRequestSchema().load({"driver_id": 1, "period_start_date": "2024-07-01"})
    assert "period_end_date" in exc.value.messages

    got = SinglePayslipRequestSchema().load(
        {"driver_id": 1, "period_start_date": "2024-07-01", "period_end_date": "2024-07-07", "extra": "ignored"}
    )
    assert got["period_end_date"] == date(2024, 7, 7)
    assert "extra" not in got


def test_single_payslip_reversed_period():
    with pytest.raises(ValidationError) as exc:
        SinglePayslipRequestSchema().load(
            {"driver_id": 1, "period_start_date": "2024-07-07", "period_end_date": "2024-07-01"}
        )
    assert "period_end_date" in exc.value.messages


def test_batch_blank_invoice_means_all():
    assert BatchPayslipRequestSchema().load({}) == {"invoice_number": None}
    assert BatchPayslipRequestSchema().load({"invoice_number": "   "}) == {"invoice_number": None}
    assert BatchPayslipRequestSchema().load({"invoice_number": " INV-1 "}) == {"invoice_number": "INV-1"}


def test_mark_paid_requires_reference():
    with pytest.raises(ValidationError):
        MarkPaidRequestSchema().load({})
    assert MarkPaidRequestSchema().load({"payment_reference": "BACS-1"})["paid_at"] is None
