"""Inbound chain events - one typed model per log kind, discriminated by `kind`."""

from __future__ import annotations

from typing import Annotated, Any, Literal, Union

from pydantic import (
    AliasChoices,
    BaseModel,
    Field,
    NonNegativeInt,
    TypeAdapter,
    field_validator,
    model_validator,
)

from fpmmindex.chain import event_key, normalize_address

_ADDRESS_FIELDS = (
    "address",
    "transaction_hash",
    "market",
    "creator",
    "collateral_token",
    "conditional_tokens",
    "condition_id",
    "oracle",
    "question_id",
    "funder",
    "buyer",
    "seller",
    "from_address",
    "to_address",
    "from",
    "to",
)


class ChainEventBase(BaseModel):
    """Fields every log carries: emitting contract, position in the chain, block time."""

    kind: str
    address: str
    block_number: NonNegativeInt
    log_index: NonNegativeInt
    timestamp: NonNegativeInt
    transaction_hash: str

    @model_validator(mode="before")
    @classmethod
    def _normalize_hex(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        out = dict(data)
        for name in _ADDRESS_FIELDS:
            value = out.get(name)
            if isinstance(value, str) and value:
                out[name] = normalize_address(value)
        return out

    @property
    def key(self) -> str:
        return event_key(self.transaction_hash, self.log_index, self.kind)

    @property
    def position(self) -> tuple[int, int]:
        return (self.block_number, self.log_index)


class ConditionPreparation(ChainEventBase):
    kind: Literal["condition_preparation"] = "condition_preparation"
    condition_id: str
    oracle: str | None = None
    question_id: str | None = None
    outcome_slot_count: int = Field(..., ge=1)


class MarketCreation(ChainEventBase):
    """Factory log announcing a new market maker at `market`."""

    kind: Literal["market_creation"] = "market_creation"
    market: str
    creator: str
    conditional_tokens: str | None = None
    collateral_token: str
    condition_ids: list[str] = Field(default_factory=list)
    fee: NonNegativeInt = 0
    outcome_slot_count: int | None = Field(None, ge=1)

    @field_validator("condition_ids")
    @classmethod
    def _normalize_conditions(cls, v: list[str]) -> list[str]:
        return [normalize_address(c) for c in v]


class MarketAnnounced(ChainEventBase):
    """Market contract's own FPMMCreated log with LP token metadata."""

    kind: Literal["market_announced"] = "market_announced"
    creator: str
    token_name: str = ""
    token_symbol: str = ""
    condition_id: str


class FundingAdded(ChainEventBase):
    kind: Literal["funding_added"] = "funding_added"
    funder: str
    amounts_added: list[NonNegativeInt]
    shares_minted: NonNegativeInt


class FundingRemoved(ChainEventBase):
    kind: Literal["funding_removed"] = "funding_removed"
    funder: str
    amounts_removed: list[NonNegativeInt]
    collateral_removed_from_fee_pool: NonNegativeInt = 0
    shares_burnt: NonNegativeInt


class Buy(ChainEventBase):
    """Buy of outcome tokens. net_investment_amount defaults to investment - fee."""

    kind: Literal["buy"] = "buy"
    buyer: str
    investment_amount: NonNegativeInt
    fee_amount: NonNegativeInt = 0
    net_investment_amount: NonNegativeInt | None = None
    outcome_index: NonNegativeInt
    outcome_tokens_bought: NonNegativeInt
    question_id: str | None = None
    total_trade_volume: NonNegativeInt | None = None

    @model_validator(mode="after")
    def _net_is_gross_minus_fee(self) -> Buy:
        expected = self.investment_amount - self.fee_amount
        if expected < 0:
            raise ValueError("fee_amount exceeds investment_amount")
        if self.net_investment_amount is None:
            self.net_investment_amount = expected
        elif self.net_investment_amount != expected:
            raise ValueError(
                f"net_investment_amount {self.net_investment_amount} != investment - fee ({expected})"
            )
        return self


class Sell(ChainEventBase):
    """Sell of outcome tokens. net_return_amount defaults to return + fee."""

    kind: Literal["sell"] = "sell"
    seller: str
    return_amount: NonNegativeInt
    fee_amount: NonNegativeInt = 0
    net_return_amount: NonNegativeInt | None = None
    outcome_index: NonNegativeInt
    outcome_tokens_sold: NonNegativeInt
    question_id: str | None = None
    total_trade_volume: NonNegativeInt | None = None

    @model_validator(mode="after")
    def _net_is_gross_plus_fee(self) -> Sell:
        expected = self.return_amount + self.fee_amount
        if self.net_return_amount is None:
            self.net_return_amount = expected
        elif self.net_return_amount != expected:
            raise ValueError(
                f"net_return_amount {self.net_return_amount} != return + fee ({expected})"
            )
        return self


class PoolShareTransfer(ChainEventBase):
    """ERC20 Transfer of LP shares emitted by the market. Null endpoints are mint/burn."""

    kind: Literal["pool_share_transfer"] = "pool_share_transfer"
    from_address: str = Field(validation_alias=AliasChoices("from_address", "from"))
    to_address: str = Field(validation_alias=AliasChoices("to_address", "to"))
    value: NonNegativeInt


class CurrentPrice(ChainEventBase):
    """LongShortCurrentPrice announcement."""

    kind: Literal["current_price"] = "current_price"
    long_price: NonNegativeInt
    short_price: NonNegativeInt
    price_timestamp: NonNegativeInt | None = None
    question_id: str | None = None


ChainEvent = Annotated[
    Union[
        ConditionPreparation,
        MarketCreation,
        MarketAnnounced,
        FundingAdded,
        FundingRemoved,
        Buy,
        Sell,
        PoolShareTransfer,
        CurrentPrice,
    ],
    Field(discriminator="kind"),
]

_event_adapter: TypeAdapter[ChainEvent] = TypeAdapter(ChainEvent)


def parse_event(payload: dict[str, Any]) -> ChainEvent:
    """Validate a raw payload into its typed event. Raises pydantic.ValidationError."""
    return _event_adapter.validate_python(payload)
