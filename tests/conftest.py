from __future__ import annotations

from pathlib import Path
import sys


import pytest


# Ensure the repository root (parent of ./tests) is importable during pytest collection.
# This avoids ModuleNotFoundError for imports like `import jsondb...` under pytest import modes
# that don't automatically prepend the cwd/rootdir to sys.path.
REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))


@pytest.fixture
def sandbox_project(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Path:
    """
    Point settings at a temp directory so tests never touch a real ./database.
    """
    for name in ("JSONDB_FILE", "JSONDB_INDENT", "JSONDB_SORT_KEYS", "LOG_LEVEL", "DEBUG_LOG_REQUESTS"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("JSONDB_DATA_DIR", str(tmp_path / "database"))
    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest.fixture
def db_path(sandbox_project: Path) -> Path:
    return sandbox_project / "database" / "database.json"
