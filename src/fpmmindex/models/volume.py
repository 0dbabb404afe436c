"""Protocol-wide and per-question volume rollups."""

from __future__ import annotations

from decimal import Decimal
from typing import ClassVar

from fpmmindex.models.base import Entity

GLOBAL_VOLUME_ID = "global"


class GlobalVolume(Entity):
    """Process-wide totals. Created on first trade, only ever added to."""

    entity_type: ClassVar[str] = "global_volume"

    id: str = GLOBAL_VOLUME_ID
    trades_quantity: int = 0
    collateral_volume: int = 0
    scaled_collateral_volume: Decimal = Decimal(0)
    collateral_buy_volume: int = 0
    scaled_collateral_buy_volume: Decimal = Decimal(0)
    collateral_sell_volume: int = 0
    scaled_collateral_sell_volume: Decimal = Decimal(0)
    fee_volume: int = 0
    scaled_fee_volume: Decimal = Decimal(0)


class PlayerVolume(Entity):
    """Running trade volume of one question, as reported by the market contract."""

    entity_type: ClassVar[str] = "player_volume"

    total_trade_volume: int = 0
    trades_quantity: int = 0
    last_day: int = 0
    last_timestamp: int = 0
    last_transaction_hash: str = ""


class PlayerVolumeByTransaction(Entity):
    """Snapshot of a question's volume as of one transaction."""

    entity_type: ClassVar[str] = "player_volume_by_transaction"

    question_id: str
    transaction_hash: str
    total_trade_volume: int
    day: int
    timestamp: int
