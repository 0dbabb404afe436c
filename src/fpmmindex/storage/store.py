"""Entity store - key-value load/save of pydantic entities, in memory or in DuckDB."""

from __future__ import annotations

import time
from typing import TYPE_CHECKING, Iterable, Iterator, Protocol, TypeVar

import duckdb
import structlog

from fpmmindex.models.base import Entity

if TYPE_CHECKING:
    from duckdb import DuckDBPyConnection

log = structlog.get_logger(__name__)

E = TypeVar("E", bound=Entity)


class EntityStore(Protocol):
    """Linearizable per-id load/save. save_many is all-or-nothing."""

    def load(self, model: type[E], entity_id: str) -> E | None: ...
    def save(self, entity: Entity) -> None: ...
    def save_many(self, entities: Iterable[Entity]) -> None: ...
    def iter_entities(self, model: type[E]) -> Iterator[E]: ...


class MemoryStore:
    """Dict-backed store. Rows are kept serialized so loads never alias saved objects."""

    def __init__(self) -> None:
        self._rows: dict[tuple[str, str], str] = {}

    def load(self, model: type[E], entity_id: str) -> E | None:
        raw = self._rows.get((model.entity_type, entity_id))
        if raw is None:
            return None
        return model.model_validate_json(raw)

    def save(self, entity: Entity) -> None:
        self.save_many([entity])

    def save_many(self, entities: Iterable[Entity]) -> None:
        staged = {(e.entity_type, e.id): e.model_dump_json() for e in entities}
        self._rows.update(staged)

    def iter_entities(self, model: type[E]) -> Iterator[E]:
        for (entity_type, _), raw in sorted(self._rows.items()):
            if entity_type == model.entity_type:
                yield model.model_validate_json(raw)

    def snapshot(self) -> dict[tuple[str, str], str]:
        """Copy of every serialized row, for state comparisons."""
        return dict(self._rows)

    def __len__(self) -> int:
        return len(self._rows)


class DuckDBStore:
    """Entities table in DuckDB. One transaction per save_many."""

    def __init__(self, conn: DuckDBPyConnection) -> None:
        self.conn = conn

    def load(self, model: type[E], entity_id: str) -> E | None:
        row = self.conn.execute(
            "SELECT payload FROM entities WHERE entity_type = ? AND id = ?",
            [model.entity_type, entity_id],
        ).fetchone()
        if not row:
            return None
        return model.model_validate_json(row[0])

    def save(self, entity: Entity) -> None:
        self.save_many([entity])

    def save_many(self, entities: Iterable[Entity]) -> None:
        now_ms = int(time.time() * 1000)
        rows = [[e.entity_type, e.id, e.model_dump_json(), now_ms] for e in entities]
        if not rows:
            return
        self.conn.execute("BEGIN TRANSACTION")
        try:
            self.conn.executemany(
                """
                INSERT INTO entities (entity_type, id, payload, updated_at)
                VALUES (?, ?, ?, ?)
                ON CONFLICT (entity_type, id) DO UPDATE SET
                    payload = excluded.payload,
                    updated_at = excluded.updated_at
                """,
                rows,
            )
        except duckdb.Error:
            self.conn.execute("ROLLBACK")
            log.error("entity_commit_failed", rows=len(rows))
            raise
        self.conn.execute("COMMIT")

    def iter_entities(self, model: type[E]) -> Iterator[E]:
        rows = self.conn.execute(
            "SELECT payload FROM entities WHERE entity_type = ? ORDER BY id",
            [model.entity_type],
        ).fetchall()
        for (payload,) in rows:
            yield model.model_validate_json(payload)

    def count_by_type(self) -> dict[str, int]:
        rows = self.conn.execute(
            "SELECT entity_type, COUNT(*) FROM entities GROUP BY entity_type ORDER BY entity_type"
        ).fetchall()
        return {r[0]: r[1] for r in rows}
