"""LP-share membership - who holds how many pool shares of which market."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fpmmindex.chain import is_null_address, join_id
from fpmmindex.errors import NegativeBalanceFault
from fpmmindex.models.account import PoolMembership

if TYPE_CHECKING:
    from fpmmindex.storage.unit_of_work import UnitOfWork


def pool_membership_id(market: str, holder: str) -> str:
    return join_id(market, holder)


def load_pool_membership(uow: UnitOfWork, market: str, holder: str) -> PoolMembership:
    mid = pool_membership_id(market, holder)
    membership = uow.get(PoolMembership, mid)
    if membership is None:
        membership = PoolMembership(id=mid, market=market, holder=holder)
    return membership


def transfer_pool_shares(
    uow: UnitOfWork,
    market: str,
    from_address: str,
    to_address: str,
    amount: int,
) -> list[PoolMembership]:
    """Debit sender and credit recipient; the null address side is a mint or burn and has no row.

    Returns the staged memberships. Overdrawing the sender raises before anything is staged.
    """
    changed = []
    if not is_null_address(from_address):
        sender = load_pool_membership(uow, market, from_address)
        if sender.amount - amount < 0:
            raise NegativeBalanceFault("pool_membership", sender.id, sender.amount, -amount)
        changed.append(sender.model_copy(update={"amount": sender.amount - amount}))
    if not is_null_address(to_address):
        if changed and to_address == from_address:
            recipient = changed.pop()
        else:
            recipient = load_pool_membership(uow, market, to_address)
        changed.append(recipient.model_copy(update={"amount": recipient.amount + amount}))
    for membership in changed:
        uow.add(membership)
    return changed
