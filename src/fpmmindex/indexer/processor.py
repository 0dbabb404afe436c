"""Event router - folds one chain event into the entity store, all or nothing.

Each event runs against a fresh UnitOfWork. Lookups happen before any transition,
transitions stage new rows, and the staged rows plus the event's ProcessedEvent
marker are committed in one store write. An IndexerError discards the staging area,
so a rejected event leaves no partial state behind.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Callable

import structlog
from pydantic import ValidationError

from fpmmindex.aggregation.totals import load_global_volume, update_global_volume, update_player_volume
from fpmmindex.aggregation.volumes import record_fee, record_volume
from fpmmindex.amm.prices import DEFAULT_PRICE_PRECISION
from fpmmindex.amm.reducer import (
    apply_buy,
    apply_funding_added,
    apply_funding_removed,
    apply_sell,
    create_market,
    link_market,
)
from fpmmindex.chain import is_null_address
from fpmmindex.collateral import CollateralRegistry
from fpmmindex.errors import DuplicateEvent, IndexerError, ReferenceNotFound
from fpmmindex.indexer.records import (
    record_buy,
    record_funding_addition,
    record_funding_removal,
    record_sell,
    record_trade_price,
)
from fpmmindex.ledger.accounts import (
    increment_account_trades,
    mark_account_as_seen,
    require_account,
    update_user_volume,
)
from fpmmindex.ledger.pool import transfer_pool_shares
from fpmmindex.ledger.positions import update_investment_amount, update_user_holdings
from fpmmindex.models import (
    Buy,
    ChainEvent,
    CollateralToken,
    Condition,
    ConditionPreparation,
    CurrentPrice,
    FundingAdded,
    FundingRemoved,
    Market,
    MarketAnnounced,
    MarketAnnouncement,
    MarketCreation,
    Player,
    PlayerVolume,
    PoolShareTransfer,
    ProcessedEvent,
    Sell,
    Trade,
    parse_event,
)
from fpmmindex.storage.store import EntityStore
from fpmmindex.storage.unit_of_work import UnitOfWork

log = structlog.get_logger(__name__)

APPLIED = "applied"
REJECTED = "rejected"
SKIPPED = "skipped"
INVALID = "invalid"

# Expected under correct upstream ordering only when the event targets something untracked
_QUIET_FAULTS = (ReferenceNotFound, DuplicateEvent)


@dataclass
class ProcessorStats:
    applied: int = 0
    rejected: int = 0
    skipped: int = 0
    invalid: int = 0

    @property
    def total(self) -> int:
        return self.applied + self.rejected + self.skipped + self.invalid

    def as_dict(self) -> dict[str, int]:
        return asdict(self)


class EventProcessor:
    """Routes events by kind to the reducer and its downstream aggregators."""

    def __init__(
        self,
        store: EntityStore,
        collateral: CollateralRegistry,
        price_precision: int = DEFAULT_PRICE_PRECISION,
    ) -> None:
        self.store = store
        self.collateral = collateral
        self.price_precision = price_precision
        self.stats = ProcessorStats()
        self._handlers: dict[str, Callable[[UnitOfWork, Any], None]] = {
            "condition_preparation": self._on_condition_preparation,
            "market_creation": self._on_market_creation,
            "market_announced": self._on_market_announced,
            "funding_added": self._on_funding_added,
            "funding_removed": self._on_funding_removed,
            "buy": self._on_buy,
            "sell": self._on_sell,
            "pool_share_transfer": self._on_pool_share_transfer,
            "current_price": self._on_current_price,
        }

    def process_payload(self, payload: dict[str, Any]) -> str:
        """Validate a raw payload and process it. Undecodable payloads are logged and counted."""
        try:
            event = parse_event(payload)
        except ValidationError as e:
            self.stats.invalid += 1
            log.warning(
                "invalid_event",
                kind=payload.get("kind"),
                block_number=payload.get("block_number"),
                log_index=payload.get("log_index"),
                errors=e.error_count(),
                detail=e.errors()[0]["msg"] if e.errors() else None,
            )
            return INVALID
        return self.process(event)

    def process(self, event: ChainEvent) -> str:
        """Apply one event. Returns applied, rejected or skipped (already seen)."""
        if self.store.load(ProcessedEvent, event.key) is not None:
            self.stats.skipped += 1
            log.debug("event_already_processed", key=event.key)
            return SKIPPED
        uow = UnitOfWork(self.store)
        try:
            self._handlers[event.kind](uow, event)
        except IndexerError as exc:
            uow.rollback()
            self._reject(event, exc)
            return REJECTED
        uow.add(self._marker(event, APPLIED))
        uow.commit()
        self.stats.applied += 1
        return APPLIED

    def _marker(self, event: ChainEvent, status: str, reason: str | None = None) -> ProcessedEvent:
        return ProcessedEvent(
            id=event.key,
            kind=event.kind,
            block_number=event.block_number,
            log_index=event.log_index,
            status=status,
            reason=reason,
        )

    def _reject(self, event: ChainEvent, exc: IndexerError) -> None:
        emit = log.warning if isinstance(exc, _QUIET_FAULTS) else log.error
        emit(
            "event_rejected",
            kind=event.kind,
            key=event.key,
            address=event.address,
            fault=type(exc).__name__,
            reason=str(exc),
        )
        self.store.save(self._marker(event, REJECTED, reason=str(exc)))
        self.stats.rejected += 1

    def _require_market(self, uow: UnitOfWork, market_id: str) -> Market:
        market = uow.get(Market, market_id)
        if market is None:
            raise ReferenceNotFound("market", market_id)
        return market

    def _require_condition(self, uow: UnitOfWork, condition_id: str) -> Condition:
        condition = uow.get(Condition, condition_id)
        if condition is None:
            raise ReferenceNotFound("condition", condition_id)
        return condition

    def _collateral(self, uow: UnitOfWork, token: str) -> CollateralToken:
        """Stored decimals win over the registry. Only resolved decimals are stored."""
        stored = uow.get(CollateralToken, token)
        if stored is not None:
            return stored
        resolved = self.collateral.resolve(token)
        if resolved is not None:
            uow.add(resolved)
            return resolved
        return self.collateral.fallback(token)

    # --- creation -----------------------------------------------------------

    def _on_condition_preparation(self, uow: UnitOfWork, event: ConditionPreparation) -> None:
        if uow.get(Condition, event.condition_id) is not None:
            log.info("condition_already_prepared", condition=event.condition_id)
            return
        uow.add(
            Condition(
                id=event.condition_id,
                oracle=event.oracle,
                question_id=event.question_id,
                outcome_slot_count=event.outcome_slot_count,
            )
        )

    def _on_market_creation(self, uow: UnitOfWork, event: MarketCreation) -> None:
        if uow.get(Market, event.market) is not None:
            raise DuplicateEvent(f"market {event.market} already exists")
        conditions = [self._require_condition(uow, cid) for cid in event.condition_ids]
        self._collateral(uow, event.collateral_token)
        market, linked = create_market(event, conditions)
        uow.add(market)
        for condition in linked:
            uow.add(condition)
        log.info(
            "market_created",
            market=market.id,
            outcomes=market.outcome_slot_count,
            collateral=market.collateral_token,
        )

    def _on_market_announced(self, uow: UnitOfWork, event: MarketAnnounced) -> None:
        condition = self._require_condition(uow, event.condition_id)
        uow.add(link_market(condition, event.address))
        uow.add(
            MarketAnnouncement(
                id=event.address,
                creator=event.creator,
                token_name=event.token_name,
                token_symbol=event.token_symbol,
                condition_id=event.condition_id,
                timestamp=event.timestamp,
            )
        )

    # --- liquidity ----------------------------------------------------------

    def _on_funding_added(self, uow: UnitOfWork, event: FundingAdded) -> None:
        market = self._require_market(uow, event.address)
        scale = self._collateral(uow, market.collateral_token).scale
        market = apply_funding_added(
            market, event.amounts_added, event.shares_minted, scale, self.price_precision
        )
        uow.add(market)
        mark_account_as_seen(uow, event.funder, event.timestamp)
        uow.add(record_funding_addition(event))

    def _on_funding_removed(self, uow: UnitOfWork, event: FundingRemoved) -> None:
        market = self._require_market(uow, event.address)
        scale = self._collateral(uow, market.collateral_token).scale
        market = apply_funding_removed(
            market, event.amounts_removed, event.shares_burnt, scale, self.price_precision
        )
        uow.add(market)
        mark_account_as_seen(uow, event.funder, event.timestamp)
        uow.add(record_funding_removal(event))

    def _on_pool_share_transfer(self, uow: UnitOfWork, event: PoolShareTransfer) -> None:
        self._require_market(uow, event.address)
        for address in (event.from_address, event.to_address):
            if not is_null_address(address):
                require_account(uow, address, event.timestamp)
        transfer_pool_shares(uow, event.address, event.from_address, event.to_address, event.value)

    # --- trades -------------------------------------------------------------

    def _on_buy(self, uow: UnitOfWork, event: Buy) -> None:
        market = self._require_market(uow, event.address)
        scale = self._collateral(uow, market.collateral_token).scale
        market = apply_buy(
            market,
            event.outcome_index,
            event.net_investment_amount,
            event.outcome_tokens_bought,
            scale,
            self.price_precision,
        )
        self._fold_trade(uow, market, record_buy(event), scale, event.total_trade_volume)

    def _on_sell(self, uow: UnitOfWork, event: Sell) -> None:
        market = self._require_market(uow, event.address)
        scale = self._collateral(uow, market.collateral_token).scale
        market = apply_sell(
            market,
            event.outcome_index,
            event.net_return_amount,
            event.outcome_tokens_sold,
            scale,
            self.price_precision,
        )
        self._fold_trade(uow, market, record_sell(event), scale, event.total_trade_volume)

    def _fold_trade(
        self,
        uow: UnitOfWork,
        market: Market,
        trade: Trade,
        scale: int,
        total_trade_volume: int | None,
    ) -> None:
        """Downstream consumers of a trade, after the reducer produced the new reserves."""
        market = record_volume(market, trade.trade_amount, trade.type, scale, trade.timestamp)
        market = record_fee(market, trade.fee_amount, scale)
        uow.add(market)

        update_user_volume(uow, trade.user, trade.trade_amount, scale, trade.timestamp)
        if trade.question_id is not None and total_trade_volume is not None:
            running, snapshot = update_player_volume(
                uow.get(PlayerVolume, trade.question_id),
                trade.timestamp,
                trade.question_id,
                total_trade_volume,
                trade.transaction_hash,
            )
            uow.add(running)
            uow.add(snapshot)
        mark_account_as_seen(uow, trade.user, trade.timestamp)
        increment_account_trades(uow, trade.user, trade.timestamp)
        uow.add(trade)
        update_user_holdings(uow, trade)
        update_investment_amount(uow, trade)
        uow.add(
            update_global_volume(
                load_global_volume(uow), trade.trade_amount, trade.fee_amount, scale, trade.type
            )
        )
        log.debug(
            "trade_applied",
            market=market.id,
            type=trade.type,
            user=trade.user,
            amount=trade.trade_amount,
            reserves=market.outcome_token_amounts,
        )

    # --- prices -------------------------------------------------------------

    def _on_current_price(self, uow: UnitOfWork, event: CurrentPrice) -> None:
        self._require_market(uow, event.address)
        price = record_trade_price(event)
        player = uow.get(Player, event.address) or Player(id=event.address)
        uow.add(
            player.model_copy(
                update={
                    "question_id": event.question_id or player.question_id,
                    "current_long_token_price": event.long_price,
                    "current_short_token_price": event.short_price,
                    "timestamp": price.timestamp,
                }
            )
        )
        uow.add(price)
