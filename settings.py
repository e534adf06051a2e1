from __future__ import annotations

import logging
import os
from dataclasses import dataclass


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw.strip())
    except ValueError as e:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from e


LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


@dataclass(frozen=True)
class Settings:
    # Backing file
    data_dir: str
    db_file: str

    # Serialization
    indent: int
    sort_keys: bool

    # Logging
    log_level: str
    debug_log_requests: bool


def get_settings() -> Settings:
    data_dir = os.getenv("JSONDB_DATA_DIR", "database").strip() or "database"
    db_file = os.getenv("JSONDB_FILE", "database.json").strip() or "database.json"

    indent = _env_int("JSONDB_INDENT", 2)
    sort_keys = _env_bool("JSONDB_SORT_KEYS", False)

    log_level = os.getenv("LOG_LEVEL", "INFO").strip().upper() or "INFO"
    debug_log_requests = _env_bool("DEBUG_LOG_REQUESTS", False)

    return Settings(
        data_dir=data_dir,
        db_file=db_file,
        indent=indent,
        sort_keys=sort_keys,
        log_level=log_level,
        debug_log_requests=debug_log_requests,
    )


def configure_logging(settings: Settings) -> None:
    """Root handler via basicConfig (no-op if one exists); the jsondb loggers always follow log_level."""
    logging.basicConfig(level=settings.log_level, format=LOG_FORMAT)
    logging.getLogger("jsondb").setLevel(settings.log_level)
