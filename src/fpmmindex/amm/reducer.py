"""Market state machine - pure transitions from (Market, event) to a new Market.

Every transition validates first and builds a fresh Market with `model_copy`; the
input Market is never mutated, so a fault leaves the caller's state untouched.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Sequence

from fpmmindex.amm.maths import increment, nth_root, product, scale_amount
from fpmmindex.amm.prices import DEFAULT_PRICE_PRECISION, calculate_prices
from fpmmindex.chain import timestamp_to_day
from fpmmindex.errors import InconsistentCondition, InvalidEvent, NegativeBalanceFault
from fpmmindex.models.events import MarketCreation
from fpmmindex.models.market import Condition, Market

# Factory creations that carry no condition ids are binary markets.
DEFAULT_OUTCOME_SLOT_COUNT = 2


def _check_vector(market: Market, values: Sequence[int], name: str) -> None:
    if len(values) != market.outcome_slot_count:
        raise InvalidEvent(
            f"market {market.id}: {name} has {len(values)} entries, expected {market.outcome_slot_count}"
        )


def _check_outcome(market: Market, outcome_index: int) -> None:
    if not 0 <= outcome_index < market.outcome_slot_count:
        raise InvalidEvent(
            f"market {market.id}: outcome index {outcome_index} out of range 0..{market.outcome_slot_count - 1}"
        )


def _check_reserves(market: Market, old: Sequence[int], new: Sequence[int]) -> None:
    for i, amount in enumerate(new):
        if amount < 0:
            raise NegativeBalanceFault("reserve", f"{market.id}[{i}]", old[i], amount - old[i])


def liquidity_fields(amounts: Sequence[int], scale: int) -> dict[str, int | Decimal]:
    """Liquidity parameter L = nth_root(prod R, N) and its scaled counterpart."""
    liquidity = nth_root(product(amounts), len(amounts))
    return {
        "liquidity_parameter": liquidity,
        "scaled_liquidity_parameter": scale_amount(liquidity, scale),
    }


def resolve_outcome_slot_count(event: MarketCreation, conditions: Sequence[Condition]) -> int:
    """Outcome count implied by the referenced conditions, checked against the declared count."""
    if not conditions:
        return event.outcome_slot_count or DEFAULT_OUTCOME_SLOT_COUNT
    implied = product([c.outcome_slot_count for c in conditions])
    if event.outcome_slot_count is not None and event.outcome_slot_count != implied:
        raise InconsistentCondition(
            f"market {event.market}: declared {event.outcome_slot_count} outcome slots, "
            f"conditions imply {implied}"
        )
    return implied


def create_market(
    event: MarketCreation,
    conditions: Sequence[Condition],
) -> tuple[Market, list[Condition]]:
    """Initialise a market with zero reserves/prices and link it to its conditions.

    Returns the new Market and the updated Condition rows.
    """
    n = resolve_outcome_slot_count(event, conditions)
    market = Market(
        id=event.market,
        creator=event.creator,
        creation_timestamp=event.timestamp,
        creation_transaction_hash=event.transaction_hash,
        collateral_token=event.collateral_token,
        fee=event.fee,
        condition_ids=[c.id for c in conditions],
        outcome_slot_count=n,
        # Market maker starts with no tokens so prices start at zero
        outcome_token_amounts=[0] * n,
        outcome_token_prices=[Decimal(0)] * n,
        last_active_day=timestamp_to_day(event.timestamp),
    )
    linked = [link_market(c, event.market) for c in conditions]
    return market, linked


def link_market(condition: Condition, market_id: str) -> Condition:
    if market_id in condition.markets:
        return condition
    return condition.model_copy(update={"markets": [*condition.markets, market_id]})


def apply_funding_added(
    market: Market,
    amounts_added: Sequence[int],
    shares_minted: int,
    scale: int,
    precision: int = DEFAULT_PRICE_PRECISION,
) -> Market:
    """Add per-outcome amounts to reserves. Prices only move when this is the first liquidity."""
    _check_vector(market, amounts_added, "amounts_added")
    new_amounts = [old + added for old, added in zip(market.outcome_token_amounts, amounts_added)]
    update: dict = {
        "outcome_token_amounts": new_amounts,
        "total_supply": market.total_supply + shares_minted,
        "liquidity_add_quantity": increment(market.liquidity_add_quantity),
        **liquidity_fields(new_amounts, scale),
    }
    if market.total_supply == 0:
        # The market maker previously had zero liquidity: initial price discovery
        update["outcome_token_prices"] = calculate_prices(new_amounts, precision)
    return market.model_copy(update=update)


def apply_funding_removed(
    market: Market,
    amounts_removed: Sequence[int],
    shares_burnt: int,
    scale: int,
    precision: int = DEFAULT_PRICE_PRECISION,
) -> Market:
    """Remove per-outcome amounts from reserves. Prices zero out once supply reaches zero."""
    _check_vector(market, amounts_removed, "amounts_removed")
    old = market.outcome_token_amounts
    new_amounts = [o - removed for o, removed in zip(old, amounts_removed)]
    _check_reserves(market, old, new_amounts)
    total_supply = market.total_supply - shares_burnt
    if total_supply < 0:
        raise NegativeBalanceFault("total_supply", market.id, market.total_supply, -shares_burnt)
    update: dict = {
        "outcome_token_amounts": new_amounts,
        "total_supply": total_supply,
        "liquidity_remove_quantity": increment(market.liquidity_remove_quantity),
        **liquidity_fields(new_amounts, scale),
    }
    if total_supply == 0:
        update["outcome_token_prices"] = [Decimal(0)] * market.outcome_slot_count
    return market.model_copy(update=update)


def _apply_trade(
    market: Market,
    new_amounts: list[int],
    scale: int,
    precision: int,
    counter: str,
) -> Market:
    _check_reserves(market, market.outcome_token_amounts, new_amounts)
    return market.model_copy(
        update={
            "outcome_token_amounts": new_amounts,
            "outcome_token_prices": calculate_prices(new_amounts, precision),
            "trades_quantity": increment(market.trades_quantity),
            counter: increment(getattr(market, counter)),
            **liquidity_fields(new_amounts, scale),
        }
    )


def apply_buy(
    market: Market,
    outcome_index: int,
    net_investment_amount: int,
    outcome_tokens_bought: int,
    scale: int,
    precision: int = DEFAULT_PRICE_PRECISION,
) -> Market:
    """Net investment is split into a full set; the bought outcome's tokens leave the pool."""
    _check_outcome(market, outcome_index)
    new_amounts = []
    for i, old in enumerate(market.outcome_token_amounts):
        if i == outcome_index:
            new_amounts.append(old + net_investment_amount - outcome_tokens_bought)
        else:
            new_amounts.append(old + net_investment_amount)
    return _apply_trade(market, new_amounts, scale, precision, "buys_quantity")


def apply_sell(
    market: Market,
    outcome_index: int,
    net_return_amount: int,
    outcome_tokens_sold: int,
    scale: int,
    precision: int = DEFAULT_PRICE_PRECISION,
) -> Market:
    """Sold tokens enter the pool; full sets worth the net return are merged out."""
    _check_outcome(market, outcome_index)
    new_amounts = []
    for i, old in enumerate(market.outcome_token_amounts):
        if i == outcome_index:
            new_amounts.append(old + outcome_tokens_sold - net_return_amount)
        else:
            new_amounts.append(old - net_return_amount)
    return _apply_trade(market, new_amounts, scale, precision, "sells_quantity")
