# driverpay_api/common/auth.py
from __future__ import annotations

from functools import wraps
from typing import Optional, Set

from flask_jwt_extended import jwt_required, get_jwt, get_jwt_identity

from driverpay_api.common.http import fail

FINANCE_ROLES = ("finance", "admin")


def _claim_roles() -> Set[str]:
    claims = get_jwt() or {}
    roles = claims.get("roles") or []
    if isinstance(roles, str):
        roles = [roles]
    return {str(r).lower() for r in roles}


def current_actor() -> Optional[str]:
    """JWT identity of the caller, recorded as generated_by on payslips."""
    uid = get_jwt_identity()
    return str(uid) if uid is not None else None


def requires_roles(*codes: str):
    """
    Require that the current user has AT LEAST ONE of the given role codes.
    - Roles come from the 'roles' claim issued by the identity service.
    - 'admin' role always passes.
    """
    wanted = {c.lower() for c in codes}

    def outer(fn):
        @wraps(fn)
        @jwt_required()
        def inner(*args, **kwargs):
            if get_jwt_identity() is None:
                return fail("Unauthorized", status=401)

            roles = _claim_roles()
            if "admin" in roles:
                return fn(*args, **kwargs)

            if not roles & wanted:
                return fail("Forbidden", status=403)

            return fn(*args, **kwargs)
        return inner
    return outer
