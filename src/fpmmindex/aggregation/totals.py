"""Protocol-wide and per-question rollups."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fpmmindex.amm.maths import add_scaled, increment
from fpmmindex.chain import join_id, timestamp_to_day
from fpmmindex.models.trade import TRADE_TYPE_BUY, TRADE_TYPE_SELL
from fpmmindex.models.volume import (
    GLOBAL_VOLUME_ID,
    GlobalVolume,
    PlayerVolume,
    PlayerVolumeByTransaction,
)

if TYPE_CHECKING:
    from fpmmindex.storage.unit_of_work import UnitOfWork


def load_global_volume(uow: UnitOfWork) -> GlobalVolume:
    """Return the totals row, created empty on the first trade ever seen."""
    totals = uow.get(GlobalVolume, GLOBAL_VOLUME_ID)
    if totals is None:
        totals = GlobalVolume()
    return totals


def update_global_volume(
    totals: GlobalVolume,
    amount: int,
    fee: int,
    scale: int,
    kind: str,
) -> GlobalVolume:
    """Add one trade to the protocol totals. Never resets or subtracts.

    Scaled totals grow by this trade's own scaled amount, since markets differ in collateral.
    """
    if kind == TRADE_TYPE_BUY:
        side = "collateral_buy_volume"
    elif kind == TRADE_TYPE_SELL:
        side = "collateral_sell_volume"
    else:
        raise ValueError(f"unknown trade kind {kind!r}")
    scaled_side = f"scaled_{side}"
    return totals.model_copy(
        update={
            "trades_quantity": increment(totals.trades_quantity),
            "collateral_volume": totals.collateral_volume + amount,
            "scaled_collateral_volume": add_scaled(totals.scaled_collateral_volume, amount, scale),
            side: getattr(totals, side) + amount,
            scaled_side: add_scaled(getattr(totals, scaled_side), amount, scale),
            "fee_volume": totals.fee_volume + fee,
            "scaled_fee_volume": add_scaled(totals.scaled_fee_volume, fee, scale),
        }
    )


def player_volume_snapshot_id(transaction_hash: str, question_id: str) -> str:
    return join_id(transaction_hash, question_id)


def update_player_volume(
    current: PlayerVolume | None,
    timestamp: int,
    question_id: str,
    total_trade_volume: int,
    tx_id: str,
) -> tuple[PlayerVolume, PlayerVolumeByTransaction]:
    """Fold the contract-reported running volume of a question.

    The running row never regresses even if a lower figure arrives; the
    per-transaction snapshot keeps the reported value verbatim.
    """
    day = timestamp_to_day(timestamp)
    if current is None:
        current = PlayerVolume(id=question_id)
    running = current.model_copy(
        update={
            "total_trade_volume": max(current.total_trade_volume, total_trade_volume),
            "trades_quantity": increment(current.trades_quantity),
            "last_day": max(current.last_day, day),
            "last_timestamp": max(current.last_timestamp, timestamp),
            "last_transaction_hash": tx_id,
        }
    )
    snapshot = PlayerVolumeByTransaction(
        id=player_volume_snapshot_id(tx_id, question_id),
        question_id=question_id,
        transaction_hash=tx_id,
        total_trade_volume=total_trade_volume,
        day=day,
        timestamp=timestamp,
    )
    return running, snapshot
