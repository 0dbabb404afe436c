"""Shared fixtures: in-memory store, collateral registry, processor and an event builder."""

import shutil
import tempfile
from decimal import Decimal, localcontext
from pathlib import Path

import pytest

from fpmmindex.collateral import CollateralRegistry
from fpmmindex.indexer.processor import EventProcessor
from fpmmindex.storage.db import get_connection, init_schema
from fpmmindex.storage.store import MemoryStore

MARKET = "0x" + "aa" * 20
OTHER_MARKET = "0x" + "ab" * 20
FACTORY = "0x" + "fa" * 20
COLLATERAL = "0x" + "cc" * 20
CONDITIONAL_TOKENS = "0x" + "c7" * 20
CONDITION = "0x" + "11" * 32
QUESTION = "0x" + "99" * 32
ALICE = "0x" + "a1" * 20
BOB = "0x" + "b0" * 20
ZERO = "0x" + "00" * 20


def price_sum(prices) -> Decimal:
    """Sum prices without rounding them back to the default 28 digits."""
    with localcontext() as ctx:
        ctx.prec = 120
        return sum(prices, Decimal(0))


class EventBuilder:
    """Builds raw event payloads with increasing chain positions."""

    def __init__(self) -> None:
        self.block = 100
        self.log_index = 0
        self.timestamp = 1_700_000_000

    def next_block(self, seconds: int = 12) -> None:
        self.block += 1
        self.log_index = 0
        self.timestamp += seconds

    def _event(self, kind: str, address: str, tx: str | None = None, **params) -> dict:
        self.log_index += 1
        payload = {
            "kind": kind,
            "address": address,
            "block_number": self.block,
            "log_index": self.log_index,
            "timestamp": self.timestamp,
            "transaction_hash": tx or "0x%064x" % (self.block * 1000 + self.log_index),
        }
        payload.update(params)
        return payload

    def condition(self, condition_id: str = CONDITION, slots: int = 2, **kw) -> dict:
        return self._event(
            "condition_preparation",
            CONDITIONAL_TOKENS,
            condition_id=condition_id,
            outcome_slot_count=slots,
            question_id=QUESTION,
            **kw,
        )

    def creation(
        self,
        market: str = MARKET,
        condition_ids: list[str] | None = None,
        collateral: str = COLLATERAL,
        **kw,
    ) -> dict:
        return self._event(
            "market_creation",
            FACTORY,
            market=market,
            creator=ALICE,
            collateral_token=collateral,
            conditional_tokens=CONDITIONAL_TOKENS,
            condition_ids=[CONDITION] if condition_ids is None else condition_ids,
            fee=10**16,
            **kw,
        )

    def funding_added(self, amounts: list[int], shares: int, funder: str = ALICE, market: str = MARKET, **kw) -> dict:
        return self._event(
            "funding_added", market, funder=funder, amounts_added=amounts, shares_minted=shares, **kw
        )

    def funding_removed(self, amounts: list[int], shares: int, funder: str = ALICE, market: str = MARKET, **kw) -> dict:
        return self._event(
            "funding_removed",
            market,
            funder=funder,
            amounts_removed=amounts,
            shares_burnt=shares,
            collateral_removed_from_fee_pool=0,
            **kw,
        )

    def buy(
        self,
        outcome_index: int,
        investment: int,
        tokens: int,
        fee: int = 0,
        buyer: str = BOB,
        market: str = MARKET,
        **kw,
    ) -> dict:
        return self._event(
            "buy",
            market,
            buyer=buyer,
            investment_amount=investment,
            fee_amount=fee,
            outcome_index=outcome_index,
            outcome_tokens_bought=tokens,
            **kw,
        )

    def sell(
        self,
        outcome_index: int,
        return_amount: int,
        tokens: int,
        fee: int = 0,
        seller: str = BOB,
        market: str = MARKET,
        **kw,
    ) -> dict:
        return self._event(
            "sell",
            market,
            seller=seller,
            return_amount=return_amount,
            fee_amount=fee,
            outcome_index=outcome_index,
            outcome_tokens_sold=tokens,
            **kw,
        )

    def transfer(self, frm: str, to: str, value: int, market: str = MARKET, **kw) -> dict:
        return self._event("pool_share_transfer", market, **{"from": frm, "to": to, "value": value}, **kw)

    def current_price(self, long_price: int, short_price: int, market: str = MARKET, **kw) -> dict:
        return self._event(
            "current_price", market, long_price=long_price, short_price=short_price, question_id=QUESTION, **kw
        )


@pytest.fixture
def events() -> EventBuilder:
    return EventBuilder()


@pytest.fixture
def store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def registry() -> CollateralRegistry:
    return CollateralRegistry(known_decimals={COLLATERAL: 6})


@pytest.fixture
def processor(store, registry) -> EventProcessor:
    return EventProcessor(store, registry)


@pytest.fixture
def funded_market(processor, events):
    """Binary market with reserves [100, 100] and 100 LP shares held by ALICE."""
    for payload in (
        events.condition(),
        events.creation(),
        events.transfer(ZERO, ALICE, 100),
        events.funding_added([100, 100], 100),
    ):
        assert processor.process_payload(payload) == "applied"
    events.next_block()
    return processor


@pytest.fixture
def temp_db():
    tmp = tempfile.mkdtemp()
    path = Path(tmp) / "test.duckdb"
    conn = get_connection(path)
    init_schema(conn)
    yield conn
    conn.close()
    shutil.rmtree(tmp, ignore_errors=True)
