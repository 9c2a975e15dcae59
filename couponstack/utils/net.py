# couponstack/utils/net.py
from flask import request

def client_ip() -> str | None:
    forwarded = request.headers.get("X-Forwarded-For", "")
    if forwarded:
        # left-most entry is the caller
        return forwarded.split(",")[0].strip() or None
    return request.headers.get("X-Real-IP") or request.remote_addr or None

def request_log_context() -> dict:
    """Fields bound to every log line emitted while serving the request."""
    ctx = {"request_path": request.path, "method": request.method, "client_ip": client_ip()}
    cart_id = request.headers.get("X-Cart-Id")
    if cart_id:
        ctx["cart_id"] = cart_id
    return ctx
