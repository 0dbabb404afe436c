"""Holdings ledger - aggregate per (user, market) and fine per (user, market, outcome).

Both rows of one trade come out of a single transition so they are always updated
together; a sell that would overdraw either one fails before anything is staged.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from fpmmindex.chain import join_id
from fpmmindex.errors import NegativeBalanceFault, ReferenceNotFound
from fpmmindex.models.account import Account, UserHolding, UserPosition
from fpmmindex.models.trade import TRADE_TYPE_BUY, TRADE_TYPE_SELL, Trade

if TYPE_CHECKING:
    from fpmmindex.storage.unit_of_work import UnitOfWork


def holding_id(user: str, market: str) -> str:
    return join_id(user, market)


def position_id(user: str, market: str, outcome_index: int) -> str:
    return join_id(user, market, outcome_index)


def apply_trade_to_holdings(
    holding: UserHolding | None,
    position: UserPosition | None,
    trade: Trade,
) -> tuple[UserHolding, UserPosition]:
    """Return the new (holding, position) pair for one trade, or raise NegativeBalanceFault."""
    hid = holding_id(trade.user, trade.market)
    if holding is None:
        holding = UserHolding(id=hid, user=trade.user, market=trade.market, question_id=trade.question_id)
    if position is None:
        position = UserPosition(
            id=position_id(trade.user, trade.market, trade.outcome_index),
            user=trade.user,
            market=trade.market,
            outcome_index=trade.outcome_index,
            question_id=trade.question_id,
            holding=hid,
        )
    tokens = trade.outcome_tokens_amount
    if trade.type == TRADE_TYPE_BUY:
        token_delta, investment_delta = tokens, trade.net_trade_amount
    elif trade.type == TRADE_TYPE_SELL:
        token_delta, investment_delta = -tokens, -trade.net_trade_amount
    else:
        raise ValueError(f"unknown trade kind {trade.type!r}")

    if position.tokens + token_delta < 0:
        raise NegativeBalanceFault("user_position", position.id, position.tokens, token_delta)
    if holding.tokens + token_delta < 0:
        raise NegativeBalanceFault("user_holding", holding.id, holding.tokens, token_delta)

    new_holding = holding.model_copy(
        update={
            "tokens": holding.tokens + token_delta,
            "question_id": holding.question_id or trade.question_id,
        }
    )
    new_position = position.model_copy(
        update={
            "tokens": position.tokens + token_delta,
            "investment_amount": position.investment_amount + investment_delta,
            "question_id": position.question_id or trade.question_id,
        }
    )
    return new_holding, new_position


def update_user_holdings(uow: UnitOfWork, trade: Trade) -> tuple[UserHolding, UserPosition]:
    holding = uow.get(UserHolding, holding_id(trade.user, trade.market))
    position = uow.get(UserPosition, position_id(trade.user, trade.market, trade.outcome_index))
    holding, position = apply_trade_to_holdings(holding, position, trade)
    uow.add(holding)
    uow.add(position)
    return holding, position


def update_investment_amount(uow: UnitOfWork, trade: Trade) -> Account:
    """Account-level running ledger: += gross - fee on buy, -= gross + fee on sell.

    Distinct from the per-position investment, which moves by the net trade amount.
    """
    account = uow.get(Account, trade.user)
    if account is None:
        raise ReferenceNotFound("account", trade.user)
    if trade.type == TRADE_TYPE_BUY:
        delta = trade.trade_amount - trade.fee_amount
    else:
        delta = -(trade.trade_amount + trade.fee_amount)
    account = account.model_copy(update={"investment_amount": account.investment_amount + delta})
    uow.add(account)
    return account
