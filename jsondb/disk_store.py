from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from json_store import atomic_write_text, dumps_json, read_json

from .errors import StoreInitError, StorePersistError
from .interfaces import KeyValueDocumentStore
from .paths import ensure_dir

logger = logging.getLogger(__name__)


class DiskJsonDocumentStore(KeyValueDocumentStore):
    """
    Stores a single JSON document on disk at a fixed path.

    - Creates the containing directory on construction.
    - load() raises StoreInitError on unreadable/invalid content (no silent {}).
    - save() serializes fully before touching the file, then writes atomically.
    """

    def __init__(self, path: Path, *, indent: int = 2, sort_keys: bool = False):
        self._path = Path(path)
        self._indent = indent
        self._sort_keys = sort_keys
        try:
            ensure_dir(self._path.parent)
        except OSError as e:
            raise StoreInitError(f"Unable to create the database directory {self._path.parent}: {e}") from e

    @property
    def path(self) -> Path:
        return self._path

    def exists(self) -> bool:
        return self._path.exists()

    def load(self) -> dict[str, Any]:
        try:
            raw = read_json(self._path)
        except OSError as e:
            raise StoreInitError(f"Unable to load the database file {self._path}: {e}") from e
        except json.JSONDecodeError as e:
            raise StoreInitError(f"The database file {self._path} is not valid JSON: {e}") from e
        if raw is None:
            raise StoreInitError(f"The database file {self._path} does not exist")
        if not isinstance(raw, dict):
            raise StoreInitError(
                f"The database file {self._path} must hold a JSON object, got {type(raw).__name__}"
            )
        return raw

    def save(self, doc: dict[str, Any]) -> None:
        try:
            text = dumps_json(doc, indent=self._indent, sort_keys=self._sort_keys)
        except (TypeError, ValueError) as e:
            raise StorePersistError(f"Unable to serialize the database: {e}") from e
        try:
            atomic_write_text(self._path, text)
        except OSError as e:
            raise StorePersistError(f"Unable to save the database file {self._path}: {e}") from e
        logger.debug("Saved %s (%d bytes)", self._path, len(text.encode("utf-8")))
