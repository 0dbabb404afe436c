"""Indexer bookkeeping - idempotency ledger and replay cursor."""

from __future__ import annotations

from typing import ClassVar, Literal

from fpmmindex.models.base import Entity

DEFAULT_CURSOR_ID = "default"


class ProcessedEvent(Entity):
    """Terminal outcome of one event key. Presence means the event must not run again."""

    entity_type: ClassVar[str] = "processed_event"

    kind: str
    block_number: int
    log_index: int
    status: Literal["applied", "rejected"]
    reason: str | None = None


class IndexCursor(Entity):
    """Last (block_number, log_index) folded from the raw event log."""

    entity_type: ClassVar[str] = "index_cursor"

    id: str = DEFAULT_CURSOR_ID
    block_number: int = -1
    log_index: int = -1
    events_processed: int = 0

    @property
    def position(self) -> tuple[int, int]:
        return (self.block_number, self.log_index)
