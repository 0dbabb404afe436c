"""Account, pool membership and holdings ledgers."""

from __future__ import annotations

from decimal import Decimal
from typing import ClassVar

from pydantic import Field

from fpmmindex.models.base import Entity


class Account(Entity):
    """One economic participant. investment_amount is signed (negative = net withdrawer)."""

    entity_type: ClassVar[str] = "account"

    creation_timestamp: int
    last_seen_timestamp: int
    trades_quantity: int = 0
    collateral_volume: int = 0
    scaled_collateral_volume: Decimal = Decimal(0)
    investment_amount: int = 0


class PoolMembership(Entity):
    """LP-share balance of one holder in one market."""

    entity_type: ClassVar[str] = "pool_membership"

    market: str
    holder: str
    amount: int = 0


class UserHolding(Entity):
    """Aggregate outcome-token balance of a user in one market (all outcomes)."""

    entity_type: ClassVar[str] = "user_holding"

    user: str
    market: str
    question_id: str | None = None
    tokens: int = Field(0, ge=0)


class UserPosition(Entity):
    """Per-outcome position with its own investment ledger."""

    entity_type: ClassVar[str] = "user_position"

    user: str
    market: str
    outcome_index: int = Field(..., ge=0)
    question_id: str | None = None
    holding: str
    investment_amount: int = 0
    tokens: int = Field(0, ge=0)
