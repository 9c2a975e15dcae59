# couponstack/cli.py
import click
from flask.cli import with_appcontext
from .errors import ConflictError
from .extensions import db
from .model import Cart
from .services.cart_service import recalc_cart
from .services.coupon_service import create_coupon_from_payload
from .services.settings_service import create_local_store

@click.command("create-coupon")
@with_appcontext
@click.option("--code", required=True)
@click.option("--name", required=True)
@click.option("--type", "discount_type", type=click.Choice(["percentage", "fixed"]), default="percentage")
@click.option("--value", required=True, type=float)
@click.option("--valid-until", required=True, help="ISO8601, e.g. 2026-12-31T23:59:59Z")
@click.option("--valid-from", default=None)
@click.option("--min-order", default=None, type=float)
@click.option("--max-discount", default=None, type=float)
@click.option("--store", "stores", multiple=True, help="restrict to a store tag or domain (repeatable)")
@click.option("--usage-limit", default=None, type=int)
@click.option("--per-user", default=1, type=int)
@click.option("--priority", default=0, type=int)
def create_coupon(code, name, discount_type, value, valid_until, valid_from, min_order,
                  max_discount, stores, usage_limit, per_user, priority):
    try:
        c = create_coupon_from_payload({
            "code": code, "name": name, "discount_type": discount_type,
            "discount_value": value, "valid_until": valid_until, "valid_from": valid_from,
            "min_order_amount": min_order, "max_discount_amount": max_discount,
            "applicable_stores": list(stores), "usage_limit": usage_limit,
            "usage_limit_per_user": per_user, "priority": priority,
        })
    except (ValueError, ConflictError) as e:
        db.session.rollback()
        raise click.ClickException(str(e))
    db.session.commit()
    click.echo(f"Coupon created: {c.id} {c.code}")

@click.command("add-local-store")
@with_appcontext
@click.option("--domain", required=True)
@click.option("--name", required=True)
@click.option("--disabled", is_flag=True, default=False)
def add_local_store(domain, name, disabled):
    try:
        s = create_local_store({"domain": domain, "name": name, "enabled": not disabled})
    except ValueError as e:
        db.session.rollback()
        raise click.ClickException(str(e))
    db.session.commit()
    click.echo(f"Local store added: {s.id} {s.domain}")

@click.command("recalc-carts")
@with_appcontext
def recalc_carts():
    """Recompute the discount summary of every active cart."""
    carts = Cart.query.filter_by(status="active").all()
    for cart in carts:
        recalc_cart(cart)
    db.session.commit()
    click.echo(f"Recalculated {len(carts)} cart(s)")

def register_cli(app):
    app.cli.add_command(create_coupon)
    app.cli.add_command(add_local_store)
    app.cli.add_command(recalc_carts)
