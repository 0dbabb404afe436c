"""Outcome prices from reserves - product-of-others normalization."""

from __future__ import annotations

from decimal import Decimal, localcontext
from typing import Sequence

DEFAULT_PRICE_PRECISION = 40


def calculate_prices(amounts: Sequence[int], precision: int = DEFAULT_PRICE_PRECISION) -> list[Decimal]:
    """P[i] = W[i] / sum(W) where W[i] is the product of every reserve except R[i].

    A cheap outcome is one the pool holds a lot of, so its weight is the mass of the
    other reserves. Returns the all-zero vector when there is no liquidity, or when two or
    more reserves are empty and every weight collapses to zero.
    """
    n = len(amounts)
    zeros = [Decimal(0)] * n
    if not any(amounts):
        return zeros
    weights = []
    for i in range(n):
        w = 1
        for j, amount in enumerate(amounts):
            if j != i:
                w *= amount
        weights.append(w)
    total = sum(weights)
    if total == 0:
        return zeros
    with localcontext() as ctx:
        ctx.prec = precision
        return [Decimal(w) / Decimal(total) for w in weights]
