from __future__ import annotations

from typing import Any


class JsonDbError(Exception):
    """Base class for every error raised by the document store."""


class StoreError(JsonDbError):
    """
    The backing file cannot be brought into (or kept in) a consistent state.

    The store cannot operate after one of these; the embedding application
    decides whether to abort.
    """


class StoreInitError(StoreError):
    pass


class StorePersistError(StoreError):
    pass


class DuplicateFieldValueError(JsonDbError, ValueError):
    def __init__(self, category: str, field: str, value: Any):
        self.category = category
        self.field = field
        self.value = value
        super().__init__(f"{field} {value} already exists")


class InvalidKeyError(JsonDbError, ValueError):
    pass


class ReservedCategoryError(JsonDbError, ValueError):
    pass


class InvalidValueError(JsonDbError, ValueError):
    pass


class ValueTypeError(JsonDbError, TypeError):
    def __init__(self, expected: str, value: Any, *, where: str | None = None):
        self.expected = expected
        self.actual = type(value).__name__
        location = f" at {where}" if where else ""
        super().__init__(f"expected {expected}{location}, got {self.actual}")
