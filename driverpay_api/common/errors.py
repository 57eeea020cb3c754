# driverpay_api/common/errors.py
from flask import current_app
from werkzeug.exceptions import HTTPException
from sqlalchemy.exc import IntegrityError
from driverpay_api.common.http import fail


class APIError(Exception):
    """Custom API Error class."""
    status_code = 400
    code = "API_ERROR"

    def __init__(self, message, code=None, status_code=None, payload=None):
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code
        if status_code is not None:
            self.status_code = status_code
        self.payload = payload


class NotFound(APIError):
    status_code = 404
    code = "NOT_FOUND"


class RateUnavailable(NotFound):
    code = "RATE_UNAVAILABLE"


class ValidationError(APIError):
    status_code = 400
    code = "VALIDATION_ERROR"


class StatementLocked(APIError):
    status_code = 409
    code = "STATEMENT_LOCKED"


class PersistenceError(APIError):
    status_code = 500
    code = "PERSISTENCE_ERROR"


class AggregationWarning(Exception):
    """Non-fatal: one operator in a batch lacks data and is skipped."""

    def __init__(self, operator_id, message):
        super().__init__(message)
        self.operator_id = operator_id
        self.message = message


def register_error_handlers(app):
    @app.errorhandler(APIError)
    def _api_error(e: APIError):
        return fail(e.message, status=e.status_code, code=e.code, details=e.payload)

    @app.errorhandler(HTTPException)
    def _http(e: HTTPException):
        return fail(e.description or e.name, status=e.code or 500)

    @app.errorhandler(IntegrityError)
    def _integrity(e: IntegrityError):
        # 409 for unique/FK violations
        current_app.logger.warning("integrity error: %s", getattr(e, "orig", e))
        return fail("Duplicate or FK constraint failed", status=409, code="CONSTRAINT_ERROR")

    @app.errorhandler(Exception)
    def _500(e: Exception):
        current_app.logger.exception(e)
        return fail("Internal server error", status=500)
