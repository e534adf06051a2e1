from __future__ import annotations

import copy
import logging
from pathlib import Path
from typing import Any, Callable, Mapping, TypeVar

from pydantic import ValidationError

from settings import Settings, get_settings

from .disk_store import DiskJsonDocumentStore
from .document import (
    AUTO_INCREMENT,
    CONSTRAINTS,
    RESERVED_KEYS,
    UNIQUE,
    JsonValue,
    ReservedSections,
    as_int,
    as_mapping,
    as_str,
    new_document,
    same_value,
    validate_record,
    validate_value,
)
from .errors import (
    DuplicateFieldValueError,
    InvalidKeyError,
    ReservedCategoryError,
    StoreInitError,
    StorePersistError,
)
from .interfaces import DeleteOutcome, KeyValueDocumentStore, RecordStore
from .paths import default_db_path

logger = logging.getLogger(__name__)

KEY_SEPARATOR = "/"

T = TypeVar("T")


def record_key(category: str, record_id: int | str) -> str:
    return f"{category}{KEY_SEPARATOR}{record_id}"


def split_key(key: str) -> tuple[str, str]:
    """Split "<category>/<id>" on the first separator."""
    if not isinstance(key, str) or KEY_SEPARATOR not in key:
        raise InvalidKeyError(f"key must look like 'category{KEY_SEPARATOR}id', got {key!r}")
    category, _, record_id = key.partition(KEY_SEPARATOR)
    if not category or not record_id:
        raise InvalidKeyError(f"key must look like 'category{KEY_SEPARATOR}id', got {key!r}")
    _check_category(category)
    return category, record_id


def _check_category(category: str) -> None:
    if not isinstance(category, str) or not category:
        raise InvalidKeyError(f"category must be a non-empty string, got {category!r}")
    if category in RESERVED_KEYS:
        raise ReservedCategoryError(f"'{category}' is reserved and cannot be used as a category")


class JsonDB(RecordStore):
    """
    Persistent key/value store backed by one JSON document.

    Records live at document[category][id]; auto-increment counters and
    constraint declarations live in the reserved top-level sections.

    Every mutation builds the next document on a copy, writes the whole
    document to disk, and only then replaces the in-memory state, so a
    failed write never leaves memory ahead of disk. Reads never touch disk.

    Not safe for concurrent use. There is no locking around the file or the
    in-memory document: two threads or processes sharing a backing file can
    issue duplicate ids, lose updates and miss uniqueness violations.
    Callers that share one instance must serialize access themselves (see
    AsyncJsonDB).
    """

    def __init__(
        self,
        path: str | Path | None = None,
        *,
        backend: KeyValueDocumentStore | None = None,
        settings: Settings | None = None,
    ):
        if backend is None:
            s = settings or get_settings()
            db_path = Path(path) if path is not None else default_db_path(s)
            backend = DiskJsonDocumentStore(db_path, indent=s.indent, sort_keys=s.sort_keys)
        self._backend = backend
        self._doc = self._open()

    def _open(self) -> dict[str, Any]:
        if not self._backend.exists():
            doc = new_document()
            try:
                self._backend.save(doc)
            except StorePersistError as e:
                raise StoreInitError(f"Unable to create the database file: {e}") from e
            logger.info("Created empty database at %s", self.path)
            return doc

        doc = self._backend.load()
        try:
            ReservedSections.from_disk_doc(doc)
        except ValidationError as e:
            raise StoreInitError(f"The database file has malformed reserved sections: {e}") from e
        logger.debug("Loaded database from %s (%d top-level keys)", self.path, len(doc))
        return doc

    @property
    def path(self) -> Path | None:
        return getattr(self._backend, "path", None)

    @property
    def document(self) -> dict[str, Any]:
        return copy.deepcopy(self._doc)

    def reload(self) -> None:
        self._doc = self._open()

    # ------------------------------------------------------------------
    # persistence
    # ------------------------------------------------------------------

    def _mutate(self, fn: Callable[[dict[str, Any]], T]) -> T:
        draft = copy.deepcopy(self._doc)
        result = fn(draft)
        self._backend.save(draft)
        self._doc = draft
        return result

    # ------------------------------------------------------------------
    # identifier allocation
    # ------------------------------------------------------------------

    @staticmethod
    def _bump_counter(doc: dict[str, Any], category: str) -> int:
        counters = doc.get(AUTO_INCREMENT)
        if counters is None:
            counters = doc[AUTO_INCREMENT] = {}
        counters = as_mapping(counters, where=AUTO_INCREMENT)

        last = counters.get(category)
        next_id = 1 if last is None else as_int(last, where=f"{AUTO_INCREMENT}.{category}") + 1
        counters[category] = next_id
        return next_id

    def allocate_next_id(self, category: str) -> int:
        _check_category(category)
        next_id = self._mutate(lambda doc: self._bump_counter(doc, category))
        logger.debug("Allocated id %d for category '%s'", next_id, category)
        return next_id

    # ------------------------------------------------------------------
    # constraints
    # ------------------------------------------------------------------

    def declare_constraint(self, category: str, constraint_type: str, field: str) -> bool:
        """Register field under constraint_type for category. Returns False if already registered."""
        _check_category(category)
        as_str(constraint_type, where=f"{CONSTRAINTS}.{category}")
        as_str(field, where=f"{CONSTRAINTS}.{category}.{constraint_type}")
        if self.is_constrained(category, constraint_type, field):
            return False

        def _add(doc: dict[str, Any]) -> None:
            registry = as_mapping(doc.setdefault(CONSTRAINTS, {}), where=CONSTRAINTS)
            by_type = as_mapping(registry.setdefault(category, {}), where=f"{CONSTRAINTS}.{category}")
            by_type.setdefault(constraint_type, []).append(field)

        self._mutate(_add)
        logger.info("Declared %s constraint on %s.%s", constraint_type, category, field)
        return True

    def is_constrained(self, category: str, constraint_type: str, field: str) -> bool:
        registry = self._doc.get(CONSTRAINTS)
        if not isinstance(registry, dict):
            return False
        by_type = registry.get(category)
        if not isinstance(by_type, dict):
            return False
        fields = by_type.get(constraint_type)
        if not isinstance(fields, list):
            return False
        return field in fields

    def constraints(self, category: str) -> dict[str, list[str]]:
        registry = self._doc.get(CONSTRAINTS)
        by_type = registry.get(category) if isinstance(registry, dict) else None
        return copy.deepcopy(by_type) if isinstance(by_type, dict) else {}

    def is_unique(self, category: str, field: str, value: JsonValue) -> bool:
        if not self.is_constrained(category, UNIQUE, field):
            return True

        records = self._doc.get(category)
        if not isinstance(records, dict):
            return True
        for rec in records.values():
            if isinstance(rec, dict) and field in rec and same_value(rec[field], value):
                return False
        return True

    # ------------------------------------------------------------------
    # record access
    # ------------------------------------------------------------------

    @staticmethod
    def _records_for_write(doc: dict[str, Any], category: str) -> dict[str, Any]:
        records = doc.get(category)
        if records is None:
            records = doc[category] = {}
        return as_mapping(records, where=category)

    def insert_with_auto_id(self, category: str, record: Mapping[str, Any]) -> int:
        """
        Store record under the next id of category and return that id.

        Raises DuplicateFieldValueError, without allocating an id or writing
        anything, if a field declared unique already holds the same value.
        """
        _check_category(category)
        rec = validate_record(record)

        for field, value in rec.items():
            if not self.is_unique(category, field, value):
                logger.warning("Rejected %s record: %s %r already exists", category, field, value)
                raise DuplicateFieldValueError(category, field, value)

        def _insert(doc: dict[str, Any]) -> int:
            new_id = self._bump_counter(doc, category)
            self._records_for_write(doc, category)[str(new_id)] = rec
            return new_id

        new_id = self._mutate(_insert)
        logger.info("Inserted %s", record_key(category, new_id))
        return new_id

    def put(self, key: str, value: Any) -> None:
        category, record_id = split_key(key)
        val = validate_value(value)

        def _put(doc: dict[str, Any]) -> None:
            self._records_for_write(doc, category)[record_id] = val

        self._mutate(_put)

    def get(self, key: str) -> JsonValue | None:
        """Return a copy of the value at key, or None if the category or id is absent."""
        category, record_id = split_key(key)
        records = self._doc.get(category)
        if not isinstance(records, dict) or record_id not in records:
            logger.warning("The key '%s' does not exist.", key)
            return None
        return copy.deepcopy(records[record_id])

    def __contains__(self, key: str) -> bool:
        category, record_id = split_key(key)
        records = self._doc.get(category)
        return isinstance(records, dict) and record_id in records

    def records(self, category: str) -> dict[str, JsonValue]:
        _check_category(category)
        records = self._doc.get(category)
        return copy.deepcopy(records) if isinstance(records, dict) else {}

    def delete(self, key: str) -> DeleteOutcome:
        category, record_id = split_key(key)
        records = self._doc.get(category)
        if not isinstance(records, dict):
            logger.warning("The category '%s' does not exist.", category)
            return DeleteOutcome.MISSING_CATEGORY
        if record_id not in records:
            logger.warning("The ID '%s' does not exist in category '%s'.", record_id, category)
            return DeleteOutcome.MISSING_ID

        def _delete(doc: dict[str, Any]) -> None:
            del doc[category][record_id]

        self._mutate(_delete)
        logger.info("Deleted %s", key)
        return DeleteOutcome.DELETED
