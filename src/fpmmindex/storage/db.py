"""DuckDB connection and schema init."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

import duckdb

if TYPE_CHECKING:
    from duckdb import DuckDBPyConnection

# Payloads are VARCHAR holding JSON text so 256-bit integers round-trip exactly.
SCHEMA_SQL = """
-- Raw chain event log (append-only, ordered by position in the chain)
CREATE TABLE IF NOT EXISTS raw_events (
    block_number     BIGINT NOT NULL,
    log_index        INTEGER NOT NULL,
    kind             VARCHAR NOT NULL,
    address          VARCHAR NOT NULL,
    transaction_hash VARCHAR NOT NULL,
    timestamp        BIGINT NOT NULL,
    ingest_ts        BIGINT NOT NULL,
    payload          VARCHAR NOT NULL,
    PRIMARY KEY (block_number, log_index)
);

-- Materialized entities (markets, accounts, positions, rollups, bookkeeping)
CREATE TABLE IF NOT EXISTS entities (
    entity_type     VARCHAR NOT NULL,
    id              VARCHAR NOT NULL,
    payload         VARCHAR NOT NULL,
    updated_at      BIGINT NOT NULL,
    PRIMARY KEY (entity_type, id)
);
"""


def get_connection(db_path: str | Path, read_only: bool = False) -> DuckDBPyConnection:
    """Return a DuckDB connection. Caller must close or use as context manager.
    Use read_only=True for inspection commands while an index run holds the write lock."""
    path = Path(db_path)
    if not read_only:
        path.parent.mkdir(parents=True, exist_ok=True)
    return duckdb.connect(str(path), read_only=read_only)


def init_schema(conn: DuckDBPyConnection) -> None:
    """Create tables if they do not exist."""
    for stmt in SCHEMA_SQL.split(";"):
        stmt = stmt.strip()
        if stmt:
            try:
                conn.execute(stmt)
            except duckdb.Error as e:
                if "already exists" not in str(e).lower():
                    raise
