"""Entity base - every persisted row has a type tag and a string id."""

from __future__ import annotations

from typing import ClassVar

from pydantic import BaseModel


class Entity(BaseModel):
    """Persisted entity. Stored by (entity_type, id) as JSON."""

    entity_type: ClassVar[str] = ""

    id: str
