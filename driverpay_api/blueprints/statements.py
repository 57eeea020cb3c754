from flask import Blueprint, current_app, jsonify, request
from marshmallow import ValidationError as SchemaValidationError

from driverpay_api.blueprints.compensation import row_statement
from driverpay_api.common.auth import FINANCE_ROLES, requires_roles
from driverpay_api.common.errors import ValidationError
from driverpay_api.common.http import ok
from driverpay_api.models.statements import PayStatement, Payslip
from driverpay_api.schemas.compensation_schema import MarkPaidRequestSchema
from driverpay_api.services.payout_service import mark_statement_paid

bp = Blueprint("statements", __name__, url_prefix="/api/v1")

def _page_limit():
    try:
        page = max(int(request.args.get("page", 1)), 1)
        size = min(max(int(request.args.get("size", 50)), 1), 200)
    except ValueError:
        page, size = 1, 50
    return page, size

def _int_arg(name):
    raw = (request.args.get(name) or "").strip()
    if not raw:
        return None
    try:
        return int(raw)
    except ValueError:
        raise ValidationError(f"{name} must be integer")

def _row_payslip(p: Payslip):
    return {
        "id": p.id,
        "driver_id": p.driver_id,
        "driver_name": p.driver.name if p.driver else None,
        "invoice_number": p.invoice_number,
        "invoice_date": p.invoice_date.isoformat() if p.invoice_date else None,
        "period_start": p.period_start.isoformat() if p.period_start else None,
        "period_end": p.period_end.isoformat() if p.period_end else None,
        "operator_id": p.operator_id,
        "gross_pay": p.gross_pay,
        "deductions": p.deductions,
        "net_pay": p.net_pay,
        "generated_by": p.generated_by,
        "generated_at": p.generated_at.isoformat() if p.generated_at else None,
    }

@bp.get("/payslips")
@requires_roles(*FINANCE_ROLES)
def list_payslips():
    """
    List stored payslips, newest invoice first.
    Optional filters: invoice_number, driver_id.
    """
    q = Payslip.query
    inv = (request.args.get("invoice_number") or "").strip()
    if inv:
        q = q.filter(Payslip.invoice_number == inv)
    driver_id = _int_arg("driver_id")
    if driver_id is not None:
        q = q.filter(Payslip.driver_id == driver_id)

    page, size = _page_limit()
    total = q.count()
    rows = (q.order_by(Payslip.invoice_date.desc(), Payslip.id.desc())
             .offset((page - 1) * size).limit(size).all())
    return ok([_row_payslip(p) for p in rows], page=page, size=size, total=total)

@bp.get("/pay-statements")
@requires_roles(*FINANCE_ROLES)
def list_pay_statements():
    q = PayStatement.query
    driver_id = _int_arg("driver_id")
    if driver_id is not None:
        q = q.filter(PayStatement.driver_id == driver_id)
    status = (request.args.get("status") or "").strip().lower()
    if status:
        q = q.filter(PayStatement.status == status)

    page, size = _page_limit()
    total = q.count()
    rows = (q.order_by(PayStatement.period_end.desc(), PayStatement.id.desc())
             .offset((page - 1) * size).limit(size).all())
    return ok([row_statement(s) for s in rows], page=page, size=size, total=total)

@bp.post("/pay-statements/<int:statement_id>/mark-paid")
@requires_roles(*FINANCE_ROLES)
def mark_paid(statement_id: int):
    j = request.get_json(silent=True) or {}
    try:
        data = MarkPaidRequestSchema().load(j)
    except SchemaValidationError as e:
        raise ValidationError("Invalid request", payload=e.messages) from e
    stmt = mark_statement_paid(statement_id, data["payment_reference"], data["paid_at"])
    current_app.logger.info("pay statement %s marked paid (%s)", stmt.id, stmt.payment_reference)
    return ok(row_statement(stmt))
