# ------- couponstack/utils/decorators.py -------
from functools import wraps
from flask import request
from flask_jwt_extended import get_jwt_identity, verify_jwt_in_request

def current_user_id() -> int | None:
    """Requester id from an optional bearer token; None for anonymous carts."""
    verify_jwt_in_request(optional=True)
    uid = get_jwt_identity()
    try:
        return int(uid) if uid is not None else None
    except (TypeError, ValueError):
        return None

def with_requester(fn):
    """Inject ``user_id`` (or None) into the view's keyword arguments."""
    @wraps(fn)
    def wrapper(*args, **kwargs):
        kwargs["user_id"] = current_user_id()
        return fn(*args, **kwargs)
    return wrapper

def json_body() -> dict:
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}
