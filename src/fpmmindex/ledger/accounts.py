"""Account registry - idempotent upsert, last-seen tracking, trade counters, volume."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fpmmindex.amm.maths import add_scaled, increment
from fpmmindex.models.account import Account

if TYPE_CHECKING:
    from fpmmindex.storage.unit_of_work import UnitOfWork


def require_account(uow: UnitOfWork, account_id: str, timestamp: int) -> Account:
    """Get-or-create. Creating stages the new row; an existing row is returned untouched."""
    account = uow.get(Account, account_id)
    if account is None:
        account = Account(id=account_id, creation_timestamp=timestamp, last_seen_timestamp=timestamp)
        uow.add(account)
    return account


def mark_account_as_seen(uow: UnitOfWork, account_id: str, timestamp: int) -> Account:
    account = require_account(uow, account_id, timestamp)
    if timestamp > account.last_seen_timestamp:
        account = account.model_copy(update={"last_seen_timestamp": timestamp})
        uow.add(account)
    return account


def increment_account_trades(uow: UnitOfWork, account_id: str, timestamp: int) -> Account:
    account = require_account(uow, account_id, timestamp)
    account = account.model_copy(
        update={
            "trades_quantity": increment(account.trades_quantity),
            "last_seen_timestamp": max(account.last_seen_timestamp, timestamp),
        }
    )
    uow.add(account)
    return account


def update_user_volume(uow: UnitOfWork, account_id: str, amount: int, scale: int, timestamp: int) -> Account:
    """Add a trade's gross collateral amount to the account's cumulative volume."""
    account = require_account(uow, account_id, timestamp)
    account = account.model_copy(
        update={
            "collateral_volume": account.collateral_volume + amount,
            "scaled_collateral_volume": add_scaled(account.scaled_collateral_volume, amount, scale),
        }
    )
    uow.add(account)
    return account
