from __future__ import annotations

import asyncio
from typing import Any, Callable, Mapping, Protocol, TypeVar

from .document import JsonValue
from .store import DeleteOutcome, JsonDB

T = TypeVar("T")


class AsyncRecordRepository(Protocol):
    async def allocate_next_id(self, category: str) -> int: ...

    async def declare_constraint(self, category: str, constraint_type: str, field: str) -> bool: ...
    async def is_constrained(self, category: str, constraint_type: str, field: str) -> bool: ...
    async def is_unique(self, category: str, field: str, value: JsonValue) -> bool: ...

    async def insert_with_auto_id(self, category: str, record: Mapping[str, Any]) -> int: ...
    async def put(self, key: str, value: Any) -> None: ...
    async def get(self, key: str) -> JsonValue | None: ...
    async def delete(self, key: str) -> DeleteOutcome: ...
    async def records(self, category: str) -> dict[str, JsonValue]: ...
    async def constraints(self, category: str) -> dict[str, list[str]]: ...


class AsyncJsonDB(AsyncRecordRepository):
    """
    Async wrapper around JsonDB.

    Uses asyncio.to_thread to avoid blocking the event loop on file I/O, and
    a single asyncio.Lock so that read-check-write sequences (id allocation,
    uniqueness checks) never interleave. The lock only covers callers that
    share this wrapper; other processes on the same file are not excluded.
    """

    def __init__(self, db: JsonDB) -> None:
        self._db = db
        self._lock = asyncio.Lock()

    @property
    def db(self) -> JsonDB:
        return self._db

    async def _call(self, fn: Callable[..., T], *args: Any) -> T:
        async with self._lock:
            return await asyncio.to_thread(fn, *args)

    async def allocate_next_id(self, category: str) -> int:
        return await self._call(self._db.allocate_next_id, category)

    async def declare_constraint(self, category: str, constraint_type: str, field: str) -> bool:
        return await self._call(self._db.declare_constraint, category, constraint_type, field)

    async def is_constrained(self, category: str, constraint_type: str, field: str) -> bool:
        return await self._call(self._db.is_constrained, category, constraint_type, field)

    async def is_unique(self, category: str, field: str, value: JsonValue) -> bool:
        return await self._call(self._db.is_unique, category, field, value)

    async def insert_with_auto_id(self, category: str, record: Mapping[str, Any]) -> int:
        return await self._call(self._db.insert_with_auto_id, category, record)

    async def put(self, key: str, value: Any) -> None:
        await self._call(self._db.put, key, value)

    async def get(self, key: str) -> JsonValue | None:
        return await self._call(self._db.get, key)

    async def delete(self, key: str) -> DeleteOutcome:
        return await self._call(self._db.delete, key)

    async def records(self, category: str) -> dict[str, JsonValue]:
        return await self._call(self._db.records, category)

    async def constraints(self, category: str) -> dict[str, list[str]]:
        return await self._call(self._db.constraints, category)
