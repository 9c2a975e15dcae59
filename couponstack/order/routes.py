# couponstack/order/routes.py
from datetime import datetime, timedelta
from flask import request
from ..extensions import db
from ..model import Order
from ..utils.api import err, ok
from ..utils.decorators import with_requester
from . import bp

@bp.get("")
@with_requester
def list_orders(user_id=None):
    """
    Query params:
      - page, per_page
      - code=ORD-...
      - start=YYYY-MM-DD
      - end=YYYY-MM-DD (inclusive)
    Signed-in requesters only see their own orders.
    """
    q = Order.query
    if user_id is not None:
        q = q.filter(Order.user_id == user_id)

    code  = request.args.get("code")
    start = request.args.get("start")
    end   = request.args.get("end")

    if code: q = q.filter(Order.code == code)
    try:
        if start:
            q = q.filter(Order.created_at >= datetime.fromisoformat(start))
        if end:
            # make end inclusive for the whole day
            q = q.filter(Order.created_at < datetime.fromisoformat(end) + timedelta(days=1))
        page = int(request.args.get("page", 1))
        per  = min(int(request.args.get("per_page", 20)), 100)
    except ValueError:
        return err("invalid query parameters", 422)

    q = q.order_by(Order.created_at.desc(), Order.id.desc())
    paged = q.paginate(page=page, per_page=per, error_out=False)

    return ok("orders", {
        "page": page,
        "per_page": per,
        "total": paged.total,
        "items": [o.as_api() for o in paged.items],
    })

@bp.get("/<int:order_id>")
def get_order(order_id: int):
    o = db.session.get(Order, order_id)
    if not o: return err("order not found", 404)
    return ok("order", o.as_api())
