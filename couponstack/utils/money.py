# couponstack/utils/money.py

from decimal import Decimal, ROUND_DOWN, ROUND_HALF_UP

Money = Decimal

ZERO = Decimal("0")
CENT = Decimal("0.01")
HUNDRED = Decimal("100")

def D(x) -> Money:
    return x if isinstance(x, Decimal) else Decimal(str(x or "0"))

def round_money(x: Money) -> Money:
    return D(x).quantize(CENT, rounding=ROUND_HALF_UP)

def round_money_capped(x: Money, cap: Money) -> Money:
    # half-up unless that would push the value past cap
    rounded = round_money(x)
    if rounded > cap:
        rounded = D(cap).quantize(CENT, rounding=ROUND_DOWN)
    return rounded

def to_float(x) -> float:
    return float(D(x))
