from __future__ import annotations

from pathlib import Path

from settings import Settings, get_settings


def project_root() -> Path:
    # jsondb/paths.py -> jsondb -> project root
    return Path(__file__).resolve().parents[1]


def ensure_dir(path: Path) -> Path:
    path.mkdir(parents=True, exist_ok=True)
    return path


def default_db_path(settings: Settings | None = None) -> Path:
    """
    Resolve the backing file from settings.

    A relative data_dir is taken relative to the current working directory,
    the same place a process started from the project root would write to.
    """
    s = settings or get_settings()
    return Path(s.data_dir) / s.db_file
