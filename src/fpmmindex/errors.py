"""Per-event fault taxonomy. A fault aborts one event's reduction, never the stream."""

from __future__ import annotations


class IndexerError(Exception):
    """Base class for faults scoped to a single event."""


class ReferenceNotFound(IndexerError):
    """A Market, Condition, Account or collateral token the event depends on is absent."""

    def __init__(self, entity: str, entity_id: str) -> None:
        super().__init__(f"{entity} {entity_id} not found")
        self.entity = entity
        self.entity_id = entity_id


class NegativeBalanceFault(IndexerError):
    """Applying the event would drive a reserve, position or membership balance below zero."""

    def __init__(self, ledger: str, key: str, balance: int, delta: int) -> None:
        super().__init__(f"{ledger} {key}: balance {balance} cannot absorb {delta}")
        self.ledger = ledger
        self.key = key
        self.balance = balance
        self.delta = delta


class ArithmeticDomainFault(IndexerError):
    """Numeric kernel called outside its domain. Always a logic defect upstream."""


class InvalidEvent(IndexerError):
    """Event parameters are inconsistent with the market they target."""


class InconsistentCondition(IndexerError):
    """Declared outcome slot count disagrees with the referenced conditions."""


class DuplicateEvent(IndexerError):
    """Event would create an entity that already exists."""
