# driverpay_api/common/http.py
from flask import jsonify

def ok(data=None, status=200, **meta):
    payload = {"success": True, "data": data}
    if meta:
        payload["meta"] = meta
    return jsonify(payload), status

def fail(message="Bad Request", status=400, code=None, details=None):
    payload = {"success": False, "error": message}
    if code: payload["code"] = code
    if details: payload["details"] = details
    return jsonify(payload), status
