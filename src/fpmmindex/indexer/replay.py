"""Deterministic fold of the raw event log into the entity store, resumable by cursor."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Iterator

import structlog

from fpmmindex.indexer.processor import EventProcessor
from fpmmindex.models.processing import DEFAULT_CURSOR_ID, IndexCursor

log = structlog.get_logger(__name__)


def stream_raw_events(
    conn: Any,
    after: tuple[int, int] | None = None,
    address: str | None = None,
    to_block: int | None = None,
) -> Iterator[tuple[dict[str, Any], int, int]]:
    """Yield (payload, block_number, log_index) in chain order, strictly after `after`."""
    conditions = []
    params: list[Any] = []
    if after is not None:
        conditions.append("(block_number > ? OR (block_number = ? AND log_index > ?))")
        params.extend([after[0], after[0], after[1]])
    if address:
        conditions.append("address = ?")
        params.append(address)
    if to_block is not None:
        conditions.append("block_number <= ?")
        params.append(to_block)
    where = " AND ".join(conditions) if conditions else "1=1"
    sql = f"SELECT payload, block_number, log_index FROM raw_events WHERE {where} ORDER BY block_number ASC, log_index ASC"
    rows = conn.execute(sql, params).fetchall()
    for payload_json, block_number, log_index in rows:
        try:
            payload = json.loads(payload_json) if isinstance(payload_json, str) else payload_json
        except (TypeError, json.JSONDecodeError):
            log.warning("undecodable_raw_event", block_number=block_number, log_index=log_index)
            continue
        yield (payload, block_number, log_index)


@dataclass
class IndexRunResult:
    events_seen: int = 0
    statuses: dict[str, int] = field(default_factory=dict)
    cursor: tuple[int, int] | None = None


def run_index(
    conn: Any,
    processor: EventProcessor,
    to_block: int | None = None,
    checkpoint_every: int = 500,
    cursor_id: str = DEFAULT_CURSOR_ID,
) -> IndexRunResult:
    """Process every logged event after the stored cursor, in order.

    The cursor is only an optimisation: events already folded are skipped by their
    ProcessedEvent marker, so a crash between checkpoints replays safely.
    """
    store = processor.store
    cursor = store.load(IndexCursor, cursor_id) or IndexCursor(id=cursor_id)
    after = cursor.position if cursor.block_number >= 0 else None
    result = IndexRunResult(cursor=after)
    since_checkpoint = 0
    for payload, block_number, log_index in stream_raw_events(conn, after=after, to_block=to_block):
        status = processor.process_payload(payload)
        result.events_seen += 1
        result.statuses[status] = result.statuses.get(status, 0) + 1
        cursor = cursor.model_copy(
            update={
                "block_number": block_number,
                "log_index": log_index,
                "events_processed": cursor.events_processed + 1,
            }
        )
        since_checkpoint += 1
        if since_checkpoint >= checkpoint_every:
            store.save(cursor)
            since_checkpoint = 0
    if since_checkpoint:
        store.save(cursor)
    result.cursor = cursor.position if cursor.block_number >= 0 else None
    log.info("index_run_complete", events=result.events_seen, **result.statuses)
    return result
