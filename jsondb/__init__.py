from __future__ import annotations

from .document import JsonValue, ReservedSections
from .errors import (
    DuplicateFieldValueError,
    InvalidKeyError,
    InvalidValueError,
    JsonDbError,
    ReservedCategoryError,
    StoreError,
    StoreInitError,
    StorePersistError,
    ValueTypeError,
)
from .passwords import check_password, hash_password
from .repositories import AsyncJsonDB, AsyncRecordRepository
from .store import DeleteOutcome, JsonDB, record_key, split_key

__all__ = [
    "JsonDB",
    "AsyncJsonDB",
    "AsyncRecordRepository",
    "DeleteOutcome",
    "JsonValue",
    "ReservedSections",
    "record_key",
    "split_key",
    "hash_password",
    "check_password",
    "JsonDbError",
    "StoreError",
    "StoreInitError",
    "StorePersistError",
    "DuplicateFieldValueError",
    "InvalidKeyError",
    "InvalidValueError",
    "ReservedCategoryError",
    "ValueTypeError",
]
