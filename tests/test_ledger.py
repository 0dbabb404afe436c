"""Accounts, outcome-token holdings and LP-share membership."""

import pytest

from conftest import ALICE, BOB, MARKET, QUESTION, ZERO
from fpmmindex.errors import NegativeBalanceFault, ReferenceNotFound
from fpmmindex.ledger.accounts import (
    increment_account_trades,
    mark_account_as_seen,
    require_account,
    update_user_volume,
)
from fpmmindex.ledger.pool import load_pool_membership, pool_membership_id, transfer_pool_shares
from fpmmindex.ledger.positions import (
    apply_trade_to_holdings,
    holding_id,
    position_id,
    update_investment_amount,
    update_user_holdings,
)
from fpmmindex.models import Account, PoolMembership, Trade, UserHolding, UserPosition
from fpmmindex.storage.store import MemoryStore
from fpmmindex.storage.unit_of_work import UnitOfWork

SCALE = 10**6


def _trade(kind: str, tokens: int, amount: int, fee: int = 0, outcome: int = 0, tx: str = "0x01") -> Trade:
    net = amount - fee if kind == "BUY" else amount + fee
    return Trade(
        id=f"{tx}-{outcome}-{kind.lower()}",
        type=kind,
        timestamp=1_700_000_000,
        transaction_hash=tx,
        market=MARKET,
        user=BOB,
        trade_amount=amount,
        fee_amount=fee,
        net_trade_amount=net,
        outcome_index=outcome,
        outcome_tokens_amount=tokens,
        question_id=QUESTION,
    )


@pytest.fixture
def uow():
    return UnitOfWork(MemoryStore())


# --- accounts ---------------------------------------------------------------


def test_require_account_is_get_or_create(uow):
    first = require_account(uow, ALICE, 100)
    assert first.creation_timestamp == 100
    again = require_account(uow, ALICE, 200)
    assert again.creation_timestamp == 100
    assert again.last_seen_timestamp == 100
    assert len(uow.pending) == 1


def test_last_seen_only_moves_forward(uow):
    require_account(uow, ALICE, 100)
    assert mark_account_as_seen(uow, ALICE, 300).last_seen_timestamp == 300
    assert mark_account_as_seen(uow, ALICE, 200).last_seen_timestamp == 300
    assert uow.get(Account, ALICE).last_seen_timestamp == 300


def test_trade_counter_and_volume(uow):
    increment_account_trades(uow, BOB, 100)
    increment_account_trades(uow, BOB, 150)
    update_user_volume(uow, BOB, 2_500_000, SCALE, 150)
    account = uow.get(Account, BOB)
    assert account.trades_quantity == 2
    assert account.collateral_volume == 2_500_000
    assert str(account.scaled_collateral_volume) == "2.5"
    assert account.last_seen_timestamp == 150


def test_nothing_reaches_store_before_commit():
    store = MemoryStore()
    uow = UnitOfWork(store)
    require_account(uow, ALICE, 1)
    assert store.load(Account, ALICE) is None
    assert uow.commit() == 1
    assert store.load(Account, ALICE).id == ALICE


# --- holdings ---------------------------------------------------------------


def test_buy_creates_holding_and_position():
    holding, position = apply_trade_to_holdings(None, None, _trade("BUY", 60, 100, fee=1))
    assert holding.id == holding_id(BOB, MARKET)
    assert holding.tokens == 60
    assert holding.question_id == QUESTION
    assert position.id == position_id(BOB, MARKET, 0)
    assert position.holding == holding.id
    assert position.tokens == 60
    assert position.investment_amount == 99


def test_sell_reduces_position_by_net_return():
    holding, position = apply_trade_to_holdings(None, None, _trade("BUY", 60, 100))
    holding, position = apply_trade_to_holdings(holding, position, _trade("SELL", 20, 30, fee=2))
    assert holding.tokens == 40
    assert position.tokens == 40
    assert position.investment_amount == 100 - 32


def test_sell_that_empties_position_is_allowed():
    holding, position = apply_trade_to_holdings(None, None, _trade("BUY", 60, 100))
    holding, position = apply_trade_to_holdings(holding, position, _trade("SELL", 60, 90))
    assert holding.tokens == 0
    assert position.tokens == 0


def test_sell_overdraw_leaves_both_rows_unchanged(uow):
    update_user_holdings(uow, _trade("BUY", 10, 20))
    before_h = uow.get(UserHolding, holding_id(BOB, MARKET))
    before_p = uow.get(UserPosition, position_id(BOB, MARKET, 0))
    with pytest.raises(NegativeBalanceFault) as exc:
        update_user_holdings(uow, _trade("SELL", 11, 5))
    assert exc.value.ledger == "user_position"
    assert uow.get(UserHolding, holding_id(BOB, MARKET)) == before_h
    assert uow.get(UserPosition, position_id(BOB, MARKET, 0)) == before_p


def test_sell_of_unheld_outcome_faults_even_with_other_holdings(uow):
    update_user_holdings(uow, _trade("BUY", 10, 20, outcome=0))
    with pytest.raises(NegativeBalanceFault):
        update_user_holdings(uow, _trade("SELL", 5, 5, outcome=1))


def test_holding_aggregates_outcomes(uow):
    update_user_holdings(uow, _trade("BUY", 10, 20, outcome=0))
    update_user_holdings(uow, _trade("BUY", 7, 20, outcome=1))
    assert uow.get(UserHolding, holding_id(BOB, MARKET)).tokens == 17
    assert uow.get(UserPosition, position_id(BOB, MARKET, 1)).tokens == 7


def test_investment_amount_buy_and_sell(uow):
    require_account(uow, BOB, 1)
    update_investment_amount(uow, _trade("BUY", 10, 100, fee=1))
    assert uow.get(Account, BOB).investment_amount == 99
    update_investment_amount(uow, _trade("SELL", 10, 120, fee=2))
    assert uow.get(Account, BOB).investment_amount == 99 - 122


def test_investment_amount_requires_account(uow):
    with pytest.raises(ReferenceNotFound):
        update_investment_amount(uow, _trade("BUY", 1, 1))


# --- pool shares ------------------------------------------------------------


def _balance(uow, holder):
    return load_pool_membership(uow, MARKET, holder).amount


def test_mint_transfer_burn(uow):
    transfer_pool_shares(uow, MARKET, ZERO, ALICE, 100)
    assert _balance(uow, ALICE) == 100
    transfer_pool_shares(uow, MARKET, ALICE, BOB, 30)
    assert _balance(uow, ALICE) == 70
    assert _balance(uow, BOB) == 30
    transfer_pool_shares(uow, MARKET, BOB, ZERO, 30)
    assert _balance(uow, BOB) == 0
    assert uow.get(PoolMembership, pool_membership_id(MARKET, ZERO)) is None


def test_pool_overdraw_stages_nothing(uow):
    transfer_pool_shares(uow, MARKET, ZERO, ALICE, 10)
    staged = len(uow.pending)
    with pytest.raises(NegativeBalanceFault):
        transfer_pool_shares(uow, MARKET, ALICE, BOB, 11)
    assert len(uow.pending) == staged
    assert _balance(uow, ALICE) == 10
    assert uow.get(PoolMembership, pool_membership_id(MARKET, BOB)) is None


def test_self_transfer_keeps_balance(uow):
    transfer_pool_shares(uow, MARKET, ZERO, ALICE, 10)
    changed = transfer_pool_shares(uow, MARKET, ALICE, ALICE, 4)
    assert len(changed) == 1
    assert _balance(uow, ALICE) == 10


def test_user_volume_mixes_collateral_decimals(uow):
    update_user_volume(uow, BOB, 10**6, 10**6, 100)
    update_user_volume(uow, BOB, 10**18, 10**18, 200)
    account = uow.get(Account, BOB)
    assert account.collateral_volume == 10**6 + 10**18
    assert account.scaled_collateral_volume == 2
