# --- couponstack/utils/api.py ---
from datetime import datetime, timezone
from flask import jsonify

def _api_time_human() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S")

def api_ok(message, data=None):
    return {
        "status": True,
        "message": message,
        "data": data if data is not None else {},
        "api_time": _api_time_human(),
    }

def api_error(message, data=None):
    return {
        "status": False,
        "message": message,
        "data": data if data is not None else {},
        "api_time": _api_time_human(),
    }

# ---- standard API response format ------------------------------------------
def ok(msg, data=None, status=200):
    r = jsonify(api_ok(msg, data)); r.status_code = status; return r

def err(msg, status=400, data=None):
    r = jsonify(api_error(msg, data)); r.status_code = status; return r

def cart_ok(msg, cart, data=None, status=200):
    """ok() that also echoes the cart id so anonymous clients can keep it."""
    r = ok(msg, data if data is not None else cart.as_api(), status)
    r.headers["X-Cart-Id"] = cart.uuid
    return r
