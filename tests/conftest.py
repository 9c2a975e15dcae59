from datetime import datetime
from decimal import Decimal

import pytest

from couponstack import create_app
from couponstack.config import TestConfig
from couponstack.extensions import db as _db
from couponstack.model import Coupon, LocalStoreSetting

NOW = datetime(2025, 6, 15, 12, 0, 0)


@pytest.fixture()
def app():
    app = create_app(TestConfig)
    yield app
    with app.app_context():
        _db.session.remove()
        _db.drop_all()


@pytest.fixture()
def client(app):
    return app.test_client()


@pytest.fixture()
def ctx(app):
    """An open app context for service-level tests."""
    with app.app_context():
        yield _db.session
        _db.session.rollback()


@pytest.fixture()
def make_coupon(ctx):
    def _make(code="SAVE10", **overrides):
        fields = dict(
            code=code,
            name=code.title(),
            discount_type="percentage",
            discount_value=Decimal("10"),
            min_order_amount=Decimal("0"),
            applicable_stores=[],
            valid_from=datetime(2025, 1, 1),
            valid_until=datetime(2025, 12, 31),
            usage_limit=None,
            used_count=0,
            usage_limit_per_user=1,
            is_active=True,
            priority=0,
        )
        fields.update(overrides)
        c = Coupon(**fields)
        _db.session.add(c)
        _db.session.flush()
        return c
    return _make


@pytest.fixture()
def local_store(ctx):
    s = LocalStoreSetting(name="My Shop", domain="myshop.com", enabled=True, position=1)
    _db.session.add(s)
    _db.session.flush()
    return s
