"""Integer kernel - nth root, vector max and decimal scaling."""

from __future__ import annotations

from decimal import Decimal, localcontext
from typing import Sequence, TypeVar

from fpmmindex.errors import ArithmeticDomainFault

T = TypeVar("T")

# Enough significant digits to hold any 256-bit amount scaled down exactly
SCALED_PRECISION = 100


def nth_root(value: int, n: int) -> int:
    """Return floor(value ** (1/n)) using integer Newton iteration.

    The seed 2**ceil(bits/n) lies above the true root, so the iterate decreases
    strictly until it reaches the floor root, then stops decreasing.
    Guarantees r**n <= value < (r+1)**n for any non-negative integer.
    """
    if n < 1:
        raise ArithmeticDomainFault(f"nth_root: degree must be positive, got {n}")
    if value < 0:
        raise ArithmeticDomainFault(f"nth_root: negative radicand {value}")
    if value == 0:
        return 0
    if n == 1:
        return value
    x = 1 << -(-value.bit_length() // n)
    while True:
        y = ((n - 1) * x + value // x ** (n - 1)) // n
        if y >= x:
            return x
        x = y


def product(values: Sequence[int]) -> int:
    result = 1
    for v in values:
        result *= v
    return result


def vector_max(values: Sequence[T]) -> T:
    """Largest element; the first occurrence wins on ties."""
    if not values:
        raise ValueError("vector_max of empty sequence")
    best = values[0]
    for v in values[1:]:
        if v > best:
            best = v
    return best


def increment(x: int) -> int:
    return x + 1


def scale_amount(amount: int, scale: int) -> Decimal:
    """Raw integer amount -> human units given the collateral scale (10**decimals)."""
    if scale <= 0:
        raise ArithmeticDomainFault(f"collateral scale must be positive, got {scale}")
    with localcontext() as ctx:
        ctx.prec = SCALED_PRECISION
        return Decimal(amount) / Decimal(scale)


def add_scaled(total: Decimal, amount: int, scale: int) -> Decimal:
    """Add one amount, scaled by its own collateral, to a running scaled total.

    For totals spanning several collateral tokens: each delta keeps its own decimals.
    """
    delta = scale_amount(amount, scale)
    with localcontext() as ctx:
        ctx.prec = SCALED_PRECISION
        return total + delta
