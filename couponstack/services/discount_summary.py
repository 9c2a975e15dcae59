# couponstack/services/discount_summary.py
from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal

from ..utils.money import D, ZERO, round_money_capped, to_float


@dataclass(frozen=True)
class AppliedDiscount:
    code: str
    coupon_id: int | None
    discount_amount: Decimal
    discount_type: str
    applicable_stores: tuple[str, ...] = ()

    def as_api(self) -> dict:
        return {
            "code": self.code,
            "coupon_id": self.coupon_id,
            "discount_amount": to_float(self.discount_amount),
            "discount_type": self.discount_type,
            "applicable_stores": list(self.applicable_stores),
        }


@dataclass(frozen=True)
class DiscountSummary:
    total_discount: Decimal = ZERO
    coupons_used: int = 0
    store_breakdown: dict[str, Decimal] = field(default_factory=dict)
    applied_coupons: tuple[AppliedDiscount, ...] = ()

    @classmethod
    def empty(cls) -> "DiscountSummary":
        return cls()

    def as_api(self) -> dict:
        return {
            "total_discount": to_float(self.total_discount),
            "coupons_used": self.coupons_used,
            "store_breakdown": {k: to_float(v) for k, v in self.store_breakdown.items()},
            "applied_coupons": [c.as_api() for c in self.applied_coupons],
        }

    @classmethod
    def from_api(cls, data: dict | None) -> "DiscountSummary":
        """Rebuild a summary previously stored with ``as_api()``."""
        if not data:
            return cls.empty()
        return cls(
            total_discount=D(data.get("total_discount")),
            coupons_used=int(data.get("coupons_used") or 0),
            store_breakdown={k: D(v) for k, v in (data.get("store_breakdown") or {}).items()},
            applied_coupons=tuple(
                AppliedDiscount(
                    code=c.get("code"),
                    coupon_id=c.get("coupon_id"),
                    discount_amount=D(c.get("discount_amount")),
                    discount_type=c.get("discount_type"),
                    applicable_stores=tuple(c.get("applicable_stores") or ()),
                )
                for c in (data.get("applied_coupons") or [])
            ),
        )


class SummaryBuilder:
    """Folds per-coupon contributions into one DiscountSummary.

    Amounts are accumulated unrounded; only the published total is rounded.
    """

    def __init__(self):
        self.total = ZERO
        self._applied: list[AppliedDiscount] = []
        self._breakdown: dict[str, Decimal] = {}

    def remaining(self, cart_total: Decimal) -> Decimal:
        return max(ZERO, cart_total - self.total)

    def add(self, code, coupon_id, discount_type, stores, amount: Decimal, shares: dict[str, Decimal]):
        if amount <= 0:
            return
        self.total += amount
        self._applied.append(AppliedDiscount(
            code=code,
            coupon_id=coupon_id,
            discount_amount=amount,
            discount_type=discount_type,
            applicable_stores=tuple(stores),
        ))
        for key, share in shares.items():
            self._breakdown[key] = self._breakdown.get(key, ZERO) + share

    def build(self, cart_total: Decimal) -> DiscountSummary:
        return DiscountSummary(
            total_discount=round_money_capped(self.total, cart_total),
            coupons_used=len(self._applied),
            store_breakdown=dict(self._breakdown),
            applied_coupons=tuple(self._applied),
        )
