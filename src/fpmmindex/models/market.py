"""Market, Condition and per-market metadata entities."""

from __future__ import annotations

from decimal import Decimal
from typing import ClassVar

from pydantic import Field, model_validator

from fpmmindex.models.base import Entity


class Condition(Entity):
    """Outcome-resolution condition shared by any number of markets."""

    entity_type: ClassVar[str] = "condition"

    oracle: str | None = None
    question_id: str | None = None
    outcome_slot_count: int = Field(..., ge=1)
    markets: list[str] = Field(default_factory=list)


class CollateralToken(Entity):
    """Collateral ERC20 metadata. Decimals never change once resolved."""

    entity_type: ClassVar[str] = "collateral_token"

    decimals: int = Field(..., ge=0)

    @property
    def scale(self) -> int:
        return 10**self.decimals


class Market(Entity):
    """One fixed-product market maker. Reserves R, prices P, LP supply and accumulators."""

    entity_type: ClassVar[str] = "market"

    creator: str
    creation_timestamp: int
    creation_transaction_hash: str
    collateral_token: str
    fee: int = Field(0, ge=0)
    condition_ids: list[str] = Field(default_factory=list)
    outcome_slot_count: int = Field(..., ge=1)
    outcome_token_amounts: list[int]
    outcome_token_prices: list[Decimal]
    total_supply: int = 0
    liquidity_parameter: int = 0
    scaled_liquidity_parameter: Decimal = Decimal(0)

    collateral_volume: int = 0
    scaled_collateral_volume: Decimal = Decimal(0)
    collateral_buy_volume: int = 0
    scaled_collateral_buy_volume: Decimal = Decimal(0)
    collateral_sell_volume: int = 0
    scaled_collateral_sell_volume: Decimal = Decimal(0)
    fee_volume: int = 0
    scaled_fee_volume: Decimal = Decimal(0)

    trades_quantity: int = 0
    buys_quantity: int = 0
    sells_quantity: int = 0
    liquidity_add_quantity: int = 0
    liquidity_remove_quantity: int = 0
    last_active_day: int = 0

    @model_validator(mode="after")
    def _vectors_match_slot_count(self) -> Market:
        n = self.outcome_slot_count
        if len(self.outcome_token_amounts) != n or len(self.outcome_token_prices) != n:
            raise ValueError(f"reserve and price vectors must have {n} entries")
        return self


class MarketAnnouncement(Entity):
    """LP token metadata announced by the market contract itself (FPMMCreated)."""

    entity_type: ClassVar[str] = "market_announcement"

    creator: str
    token_name: str = ""
    token_symbol: str = ""
    condition_id: str
    timestamp: int


class Player(Entity):
    """Latest long/short prices reported for a market, keyed by market address."""

    entity_type: ClassVar[str] = "player"

    question_id: str | None = None
    current_long_token_price: int = 0
    current_short_token_price: int = 0
    timestamp: int = 0
