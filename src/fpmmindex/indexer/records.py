"""Immutable fact rows built straight from events."""

from __future__ import annotations

from fpmmindex.amm.maths import vector_max
from fpmmindex.models.events import Buy, CurrentPrice, FundingAdded, FundingRemoved, Sell
from fpmmindex.models.trade import (
    TRADE_TYPE_BUY,
    TRADE_TYPE_SELL,
    FundingAddition,
    FundingRemoval,
    Trade,
    TradePrice,
)


def record_buy(event: Buy) -> Trade:
    return Trade(
        id=event.key,
        type=TRADE_TYPE_BUY,
        timestamp=event.timestamp,
        transaction_hash=event.transaction_hash,
        market=event.address,
        user=event.buyer,
        trade_amount=event.investment_amount,
        fee_amount=event.fee_amount,
        net_trade_amount=event.net_investment_amount,
        outcome_index=event.outcome_index,
        outcome_tokens_amount=event.outcome_tokens_bought,
        question_id=event.question_id,
    )


def record_sell(event: Sell) -> Trade:
    return Trade(
        id=event.key,
        type=TRADE_TYPE_SELL,
        timestamp=event.timestamp,
        transaction_hash=event.transaction_hash,
        market=event.address,
        user=event.seller,
        trade_amount=event.return_amount,
        fee_amount=event.fee_amount,
        net_trade_amount=event.net_return_amount,
        outcome_index=event.outcome_index,
        outcome_tokens_amount=event.outcome_tokens_sold,
        question_id=event.question_id,
    )


def record_funding_addition(event: FundingAdded) -> FundingAddition:
    # Outcome tokens added are limited by the cheapest outcome; the largest amount is
    # the collateral the funder split, the rest of each outcome went back as refund.
    added_funds = vector_max(event.amounts_added)
    return FundingAddition(
        id=event.key,
        timestamp=event.timestamp,
        transaction_hash=event.transaction_hash,
        market=event.address,
        funder=event.funder,
        amounts_added=list(event.amounts_added),
        amounts_refunded=[added_funds - a for a in event.amounts_added],
        added_funds=added_funds,
        shares_minted=event.shares_minted,
    )


def record_funding_removal(event: FundingRemoved) -> FundingRemoval:
    return FundingRemoval(
        id=event.key,
        timestamp=event.timestamp,
        transaction_hash=event.transaction_hash,
        market=event.address,
        funder=event.funder,
        amounts_removed=list(event.amounts_removed),
        collateral_removed=event.collateral_removed_from_fee_pool,
        shares_burnt=event.shares_burnt,
    )


def record_trade_price(event: CurrentPrice) -> TradePrice:
    return TradePrice(
        id=event.key,
        market=event.address,
        question_id=event.question_id,
        long_token_price=event.long_price,
        short_token_price=event.short_price,
        timestamp=event.price_timestamp if event.price_timestamp is not None else event.timestamp,
    )
