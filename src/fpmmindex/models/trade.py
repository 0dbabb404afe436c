"""Immutable trade and funding facts - append-only, keyed by event key."""

from __future__ import annotations

from typing import ClassVar, Literal

from pydantic import Field

from fpmmindex.models.base import Entity

TRADE_TYPE_BUY = "BUY"
TRADE_TYPE_SELL = "SELL"

TradeKind = Literal["BUY", "SELL"]


class Trade(Entity):
    """One buy or one sell against a market."""

    entity_type: ClassVar[str] = "trade"

    type: TradeKind
    timestamp: int
    transaction_hash: str
    market: str
    user: str
    trade_amount: int = Field(..., ge=0)
    fee_amount: int = Field(..., ge=0)
    net_trade_amount: int = Field(..., ge=0)
    outcome_index: int = Field(..., ge=0)
    outcome_tokens_amount: int = Field(..., ge=0)
    question_id: str | None = None


class FundingAddition(Entity):
    entity_type: ClassVar[str] = "funding_addition"

    timestamp: int
    transaction_hash: str
    market: str
    funder: str
    amounts_added: list[int]
    amounts_refunded: list[int]
    added_funds: int
    shares_minted: int


class FundingRemoval(Entity):
    entity_type: ClassVar[str] = "funding_removal"

    timestamp: int
    transaction_hash: str
    market: str
    funder: str
    amounts_removed: list[int]
    collateral_removed: int
    shares_burnt: int


class TradePrice(Entity):
    """Point-in-time long/short price announcement."""

    entity_type: ClassVar[str] = "trade_price"

    market: str
    question_id: str | None = None
    long_token_price: int
    short_token_price: int
    timestamp: int
