from __future__ import annotations

import enum
from typing import Any, Protocol

from .document import JsonValue


class DeleteOutcome(enum.Enum):
    DELETED = "deleted"
    MISSING_CATEGORY = "missing_category"
    MISSING_ID = "missing_id"

    def __bool__(self) -> bool:
        return self is DeleteOutcome.DELETED


class KeyValueDocumentStore(Protocol):
    """
    Minimal DB-friendly interface: a single JSON-like document persisted under a key.
    """

    def exists(self) -> bool:
        """Whether a document has been persisted yet."""
        ...

    def load(self) -> dict[str, Any]:
        """Load and return the full document."""
        ...

    def save(self, doc: dict[str, Any]) -> None:
        """Persist the full document atomically."""
        ...


class RecordStore(Protocol):
    def allocate_next_id(self, category: str) -> int: ...

    def declare_constraint(self, category: str, constraint_type: str, field: str) -> bool: ...
    def is_constrained(self, category: str, constraint_type: str, field: str) -> bool: ...
    def is_unique(self, category: str, field: str, value: JsonValue) -> bool: ...

    def insert_with_auto_id(self, category: str, record: dict[str, Any]) -> int: ...
    def put(self, key: str, value: Any) -> None: ...
    def get(self, key: str) -> JsonValue | None: ...
    def delete(self, key: str) -> DeleteOutcome: ...
