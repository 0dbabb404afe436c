"""Staging area for one event's writes - reads see staged rows, commit writes them all at once."""

from __future__ import annotations

from typing import TypeVar

from fpmmindex.models.base import Entity
from fpmmindex.storage.store import EntityStore

E = TypeVar("E", bound=Entity)


class UnitOfWork:
    """Collects every entity an event touches; nothing reaches the store until commit()."""

    def __init__(self, store: EntityStore) -> None:
        self.store = store
        self._staged: dict[tuple[str, str], Entity] = {}

    def get(self, model: type[E], entity_id: str) -> E | None:
        staged = self._staged.get((model.entity_type, entity_id))
        if staged is not None:
            return staged  # type: ignore[return-value]
        return self.store.load(model, entity_id)

    def add(self, entity: Entity) -> None:
        self._staged[(entity.entity_type, entity.id)] = entity

    @property
    def pending(self) -> list[Entity]:
        return list(self._staged.values())

    def commit(self) -> int:
        """Write every staged entity in one store transaction. Returns the row count."""
        rows = self.pending
        self.store.save_many(rows)
        self._staged.clear()
        return len(rows)

    def rollback(self) -> None:
        self._staged.clear()
