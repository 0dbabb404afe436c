"""Volume, fee and protocol/question rollups."""

from decimal import Decimal

import pytest

from conftest import CONDITION, QUESTION, EventBuilder
from fpmmindex.aggregation.totals import (
    load_global_volume,
    player_volume_snapshot_id,
    update_global_volume,
    update_player_volume,
)
from fpmmindex.aggregation.volumes import record_fee, record_volume
from fpmmindex.amm.reducer import create_market
from fpmmindex.models import Condition, GlobalVolume, parse_event
from fpmmindex.storage.store import MemoryStore
from fpmmindex.storage.unit_of_work import UnitOfWork

SCALE = 10**6
DAY = 86400


@pytest.fixture
def market():
    event = parse_event(EventBuilder().creation(condition_ids=[CONDITION]))
    market, _ = create_market(event, [Condition(id=CONDITION, outcome_slot_count=2)])
    return market


def test_buy_and_sell_volume_accumulate(market):
    day = market.last_active_day
    market = record_volume(market, 1_500_000, "BUY", SCALE, day * DAY + 10)
    market = record_volume(market, 500_000, "SELL", SCALE, day * DAY + 20)
    assert market.collateral_volume == 2_000_000
    assert market.scaled_collateral_volume == Decimal(2)
    assert market.collateral_buy_volume == 1_500_000
    assert market.scaled_collateral_buy_volume == Decimal("1.5")
    assert market.collateral_sell_volume == 500_000
    assert market.scaled_collateral_sell_volume == Decimal("0.5")


def test_last_active_day_only_moves_forward(market):
    start = market.last_active_day
    later = record_volume(market, 1, "BUY", SCALE, (start + 3) * DAY)
    assert later.last_active_day == start + 3
    earlier = record_volume(later, 1, "SELL", SCALE, (start + 1) * DAY)
    assert earlier.last_active_day == start + 3
    assert earlier.collateral_volume == 2


def test_unknown_trade_kind_rejected(market):
    with pytest.raises(ValueError):
        record_volume(market, 1, "SWAP", SCALE, 0)


def test_fee_accumulates(market):
    market = record_fee(market, 250_000, SCALE)
    market = record_fee(market, 0, SCALE)
    market = record_fee(market, 750_000, SCALE)
    assert market.fee_volume == 1_000_000
    assert market.scaled_fee_volume == Decimal(1)


def test_zero_fee_leaves_volume_at_zero(market):
    assert record_fee(market, 0, SCALE).fee_volume == 0


def test_global_volume_created_on_first_use():
    uow = UnitOfWork(MemoryStore())
    totals = load_global_volume(uow)
    assert totals == GlobalVolume()
    assert uow.pending == []


def test_global_volume_sums_trades():
    totals = GlobalVolume()
    totals = update_global_volume(totals, 3_000_000, 30_000, SCALE, "BUY")
    totals = update_global_volume(totals, 1_000_000, 10_000, SCALE, "SELL")
    assert totals.trades_quantity == 2
    assert totals.collateral_volume == 4_000_000
    assert totals.collateral_buy_volume == 3_000_000
    assert totals.collateral_sell_volume == 1_000_000
    assert totals.fee_volume == 40_000
    assert totals.scaled_fee_volume == Decimal("0.04")
    assert totals.scaled_collateral_volume == Decimal(4)


def test_global_volume_is_read_through_uow():
    store = MemoryStore()
    store.save(update_global_volume(GlobalVolume(), 7, 0, SCALE, "BUY"))
    uow = UnitOfWork(store)
    assert load_global_volume(uow).collateral_volume == 7


def test_player_volume_running_and_snapshot():
    running, snap = update_player_volume(None, 5 * DAY + 1, QUESTION, 1000, "0xt1")
    assert running.id == QUESTION
    assert running.total_trade_volume == 1000
    assert running.trades_quantity == 1
    assert running.last_day == 5
    assert snap.id == player_volume_snapshot_id("0xt1", QUESTION) == f"0xt1-{QUESTION}"
    assert snap.total_trade_volume == 1000
    assert snap.day == 5

    running, snap = update_player_volume(running, 6 * DAY, QUESTION, 2500, "0xt2")
    assert running.total_trade_volume == 2500
    assert running.trades_quantity == 2
    assert running.last_day == 6
    assert running.last_transaction_hash == "0xt2"


def test_player_volume_never_regresses():
    running, _ = update_player_volume(None, DAY, QUESTION, 5000, "0xt1")
    running, snap = update_player_volume(running, 2 * DAY, QUESTION, 4000, "0xt2")
    assert running.total_trade_volume == 5000
    assert snap.total_trade_volume == 4000


def test_global_volume_mixes_collateral_decimals():
    usdc, dai = 10**6, 10**18
    totals = update_global_volume(GlobalVolume(), 1_000 * usdc, 2 * usdc, usdc, "BUY")
    totals = update_global_volume(totals, dai, dai // 100, dai, "SELL")
    assert totals.scaled_collateral_volume == Decimal(1_001)
    assert totals.scaled_collateral_buy_volume == Decimal(1_000)
    assert totals.scaled_collateral_sell_volume == Decimal(1)
    assert totals.scaled_fee_volume == Decimal("2.01")


def test_global_scaled_volume_never_decreases():
    usdc, dai = 10**6, 10**18
    totals = update_global_volume(GlobalVolume(), 10**9 * usdc, 0, usdc, "BUY")
    before = totals.scaled_collateral_volume
    totals = update_global_volume(totals, 1, 0, dai, "BUY")
    assert totals.scaled_collateral_volume > before
