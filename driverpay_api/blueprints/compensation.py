from __future__ import annotations

from typing import Any, Dict

from flask import Blueprint, current_app, jsonify, request
from marshmallow import ValidationError as SchemaValidationError

from driverpay_api.common.auth import FINANCE_ROLES, current_actor, requires_roles
from driverpay_api.common.errors import ValidationError
from driverpay_api.models.statements import PayStatement
from driverpay_api.schemas.compensation_schema import (
    BatchPayslipRequestSchema, PayoutRequestSchema, SinglePayslipRequestSchema,
)
from driverpay_api.services.invoice_payslips import InvoicePayslipGenerator
from driverpay_api.services.payout_service import PayoutCalculator
from driverpay_api.services.payslip_service import PayslipService

bp = Blueprint("compensation", __name__, url_prefix="/api/v1/compensation")

# ---------- helpers ----------
def _engine_config():
    return current_app.config["ENGINE_CONFIG"]

def _load(schema) -> Dict[str, Any]:
    j = request.get_json(silent=True)
    if j is None:
        j = {}
    if not isinstance(j, dict):
        raise ValidationError("Request body must be a JSON object")
    try:
        return schema.load(j)
    except SchemaValidationError as e:
        raise ValidationError("Invalid request", payload=e.messages) from e

def _iso(d):
    return d.isoformat() if d else None

def row_statement(s: PayStatement) -> Dict[str, Any]:
    return {
        "id": s.id,
        "driver_id": s.driver_id,
        "period_start": _iso(s.period_start),
        "period_end": _iso(s.period_end),
        "gross_earnings": s.gross_earnings,
        "admin_cut": s.admin_cut,
        "total_deductions": s.total_deductions,
        "net_payout": s.net_payout,
        "status": s.status,
        "paid_at": _iso(s.paid_at),
        "payment_reference": s.payment_reference,
        "created_at": _iso(s.created_at),
        "updated_at": _iso(s.updated_at),
    }

# ---------- routes ----------
@bp.post("/compute-payout")
@requires_roles(*FINANCE_ROLES)
def compute_payout():
    """Compute and upsert one PayStatement for a driver/period."""
    j = _load(PayoutRequestSchema())
    res = PayoutCalculator(_engine_config()).compute(j["driver_id"], j["period_start"], j["period_end"])
    current_app.logger.info("compute-payout driver=%s statement=%s", j["driver_id"], res.statement.id)
    return jsonify({
        "success": True,
        "pay_statement": row_statement(res.statement),
        "gross_earnings": res.figures.gross_earnings,
        "admin_cut": res.figures.admin_cut,
        "total_deductions": res.figures.total_deductions,
        "net_payout": res.figures.net_payout,
        "earnings_sources": {
            "routes": res.earnings.route_gross,
            "legacy_weekly": res.earnings.legacy_gross,
        },
    })

@bp.post("/compute-single-payslip")
@requires_roles(*FINANCE_ROLES)
def compute_single_payslip():
    """Preview payslip for a driver/period; nothing is stored."""
    j = _load(SinglePayslipRequestSchema())
    dto = PayslipService(_engine_config()).build_payslip_dto(
        j["driver_id"], j["period_start_date"], j["period_end_date"]
    )
    return jsonify(dto)

@bp.post("/compute-batch-payslips")
@requires_roles(*FINANCE_ROLES)
def compute_batch_payslips():
    """Generate/refresh payslips for every operator on one invoice (or all invoices)."""
    j = _load(BatchPayslipRequestSchema())
    res = InvoicePayslipGenerator(_engine_config()).run(j["invoice_number"], generated_by=current_actor())
    payload: Dict[str, Any] = {
        "success": True,
        "payslips_generated": res.generated,
        "payslips": res.payslips,
    }
    if res.warnings:
        payload["warnings"] = res.warnings
    return jsonify(payload)
