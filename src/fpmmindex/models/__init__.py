"""Canonical schema (Pydantic) - persisted entities and inbound chain events."""

from fpmmindex.models.account import Account, PoolMembership, UserHolding, UserPosition
from fpmmindex.models.base import Entity
from fpmmindex.models.events import (
    Buy,
    ChainEvent,
    ConditionPreparation,
    CurrentPrice,
    FundingAdded,
    FundingRemoved,
    MarketAnnounced,
    MarketCreation,
    PoolShareTransfer,
    Sell,
    parse_event,
)
from fpmmindex.models.market import CollateralToken, Condition, Market, MarketAnnouncement, Player
from fpmmindex.models.processing import IndexCursor, ProcessedEvent
from fpmmindex.models.trade import (
    TRADE_TYPE_BUY,
    TRADE_TYPE_SELL,
    FundingAddition,
    FundingRemoval,
    Trade,
    TradePrice,
)
from fpmmindex.models.volume import GlobalVolume, PlayerVolume, PlayerVolumeByTransaction

__all__ = [
    "Entity",
    "Market",
    "Condition",
    "CollateralToken",
    "MarketAnnouncement",
    "Player",
    "Trade",
    "TradePrice",
    "FundingAddition",
    "FundingRemoval",
    "TRADE_TYPE_BUY",
    "TRADE_TYPE_SELL",
    "Account",
    "PoolMembership",
    "UserHolding",
    "UserPosition",
    "GlobalVolume",
    "PlayerVolume",
    "PlayerVolumeByTransaction",
    "ProcessedEvent",
    "IndexCursor",
    "ChainEvent",
    "ConditionPreparation",
    "MarketCreation",
    "MarketAnnounced",
    "FundingAdded",
    "FundingRemoved",
    "Buy",
    "Sell",
    "PoolShareTransfer",
    "CurrentPrice",
    "parse_event",
]
