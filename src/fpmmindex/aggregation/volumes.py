"""Per-market collateral volume and fee accumulators."""

from __future__ import annotations

from fpmmindex.amm.maths import scale_amount
from fpmmindex.chain import timestamp_to_day
from fpmmindex.models.market import Market
from fpmmindex.models.trade import TRADE_TYPE_BUY, TRADE_TYPE_SELL


def record_volume(market: Market, amount: int, kind: str, scale: int, timestamp: int) -> Market:
    """Add a trade's gross collateral amount to total and buy/sell volume.

    lastActiveDay only moves forward; an older timestamp leaves it alone.
    """
    if kind == TRADE_TYPE_BUY:
        side = "collateral_buy_volume"
    elif kind == TRADE_TYPE_SELL:
        side = "collateral_sell_volume"
    else:
        raise ValueError(f"unknown trade kind {kind!r}")
    total = market.collateral_volume + amount
    side_total = getattr(market, side) + amount
    day = timestamp_to_day(timestamp)
    return market.model_copy(
        update={
            "collateral_volume": total,
            "scaled_collateral_volume": scale_amount(total, scale),
            side: side_total,
            f"scaled_{side}": scale_amount(side_total, scale),
            "last_active_day": max(market.last_active_day, day),
        }
    )


def record_fee(market: Market, fee_amount: int, scale: int) -> Market:
    fee_volume = market.fee_volume + fee_amount
    return market.model_copy(
        update={
            "fee_volume": fee_volume,
            "scaled_fee_volume": scale_amount(fee_volume, scale),
        }
    )
