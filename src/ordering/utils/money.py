"""Fixed-point money helpers.

Amounts are carried as ``Decimal`` through pricing and rounded half-up to
cents once, when they are about to be persisted.
"""

from decimal import ROUND_HALF_UP, Decimal

Money = Decimal

CENTS = Decimal("0.01")


def D(x) -> Money:
    return x if isinstance(x, Decimal) else Decimal(str(x or "0"))


def round_money(x) -> Money:
    return D(x).quantize(CENTS, rounding=ROUND_HALF_UP)
