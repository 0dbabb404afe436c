"""Raw chain event append and query - the ordered input of the indexer."""

from __future__ import annotations

import json
from pathlib import Path
from typing import TYPE_CHECKING, Any, Iterable, Iterator

import structlog

from fpmmindex.chain import normalize_address

if TYPE_CHECKING:
    from duckdb import DuckDBPyConnection

log = structlog.get_logger(__name__)

EventRow = tuple[int, int, str, str, str, int, int, str]


def _int(value: Any) -> int | None:
    if value is None:
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def prepare_event_row(payload: dict[str, Any], ingest_ts: int) -> EventRow | None:
    """Build a raw_events row from one decoded log. Returns None when positional fields are missing."""
    block_number = _int(payload.get("block_number"))
    log_index = _int(payload.get("log_index"))
    timestamp = _int(payload.get("timestamp"))
    kind = str(payload.get("kind") or "")
    if block_number is None or log_index is None or timestamp is None or not kind:
        return None
    address = normalize_address(str(payload.get("address") or ""))
    tx = normalize_address(str(payload.get("transaction_hash") or ""))
    return (block_number, log_index, kind, address, tx, timestamp, ingest_ts, json.dumps(payload))


def append_raw_events_batch(conn: DuckDBPyConnection, rows: list[EventRow]) -> None:
    """Append raw events. A (block_number, log_index) already in the log is left as is."""
    if not rows:
        return
    conn.executemany(
        """
        INSERT INTO raw_events (block_number, log_index, kind, address, transaction_hash, timestamp, ingest_ts, payload)
        VALUES (?, ?, ?, ?, ?, ?, ?, ?)
        ON CONFLICT DO NOTHING
        """,
        rows,
    )


def read_jsonl_events(path: str | Path) -> Iterator[dict[str, Any]]:
    """Yield decoded events from a JSON-lines file, skipping blank and malformed lines."""
    with open(path) as f:
        for lineno, line in enumerate(f, start=1):
            line = line.strip()
            if not line:
                continue
            try:
                payload = json.loads(line)
            except json.JSONDecodeError:
                log.warning("malformed_event_line", path=str(path), line=lineno)
                continue
            if isinstance(payload, dict):
                yield payload
            else:
                log.warning("non_object_event_line", path=str(path), line=lineno)


def import_events(
    conn: DuckDBPyConnection,
    payloads: Iterable[dict[str, Any]],
    ingest_ts: int,
    batch_size: int = 500,
) -> tuple[int, int]:
    """Append payloads to the log in batches. Returns (accepted, skipped)."""
    accepted = skipped = 0
    batch: list[EventRow] = []
    for payload in payloads:
        row = prepare_event_row(payload, ingest_ts)
        if row is None:
            skipped += 1
            log.warning("event_missing_position", kind=payload.get("kind"))
            continue
        batch.append(row)
        accepted += 1
        if len(batch) >= batch_size:
            append_raw_events_batch(conn, batch)
            batch = []
    append_raw_events_batch(conn, batch)
    return accepted, skipped


def log_stats(conn: DuckDBPyConnection) -> dict[str, Any]:
    """Return event log statistics: total count, block range, count by kind and by address."""
    total = conn.execute("SELECT COUNT(*) FROM raw_events").fetchone()[0]
    range_row = conn.execute(
        "SELECT MIN(block_number), MAX(block_number) FROM raw_events"
    ).fetchone()
    by_kind = conn.execute(
        "SELECT kind, COUNT(*) AS cnt FROM raw_events GROUP BY kind ORDER BY cnt DESC"
    ).fetchall()
    by_address = conn.execute(
        "SELECT address, COUNT(*) AS cnt FROM raw_events GROUP BY address ORDER BY cnt DESC LIMIT 20"
    ).fetchall()
    return {
        "total_events": total,
        "min_block": range_row[0],
        "max_block": range_row[1],
        "by_kind": [{"kind": r[0], "count": r[1]} for r in by_kind],
        "by_address": [{"address": r[0], "count": r[1]} for r in by_address],
    }
