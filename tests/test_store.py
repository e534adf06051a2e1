from __future__ import annotations

import json
import logging

import pytest

from jsondb import (
    DeleteOutcome,
    DuplicateFieldValueError,
    InvalidKeyError,
    InvalidValueError,
    JsonDB,
    ReservedCategoryError,
    StoreInitError,
    StorePersistError,
    ValueTypeError,
    hash_password,
)
from jsondb.disk_store import DiskJsonDocumentStore


def _on_disk(path):
    return json.loads(path.read_text(encoding="utf-8"))


class FlakyBackend(DiskJsonDocumentStore):
    fail = False

    def save(self, doc):
        if self.fail:
            raise StorePersistError("disk full")
        super().save(doc)


def test_init_creates_directory_and_empty_document(db_path):
    assert not db_path.parent.exists()

    db = JsonDB()

    assert db.path == db_path
    assert db_path.exists()
    assert _on_disk(db_path) == {"auto_increment": {}}
    assert db.document == {"auto_increment": {}}


def test_init_with_explicit_path(tmp_path):
    path = tmp_path / "a" / "b" / "store.json"
    JsonDB(path)
    assert _on_disk(path) == {"auto_increment": {}}


def test_init_loads_existing_file(tmp_path):
    path = tmp_path / "db.json"
    path.write_text(json.dumps({"auto_increment": {"user": 4}, "user": {"4": {"username": "bob"}}}), encoding="utf-8")

    db = JsonDB(path)

    assert db.get("user/4") == {"username": "bob"}
    assert db.allocate_next_id("user") == 5


@pytest.mark.parametrize(
    "content",
    [
        "{not json",
        "",
        "[1, 2, 3]",
        json.dumps({"auto_increment": {"user": "3"}}),
        json.dumps({"auto_increment": [], "constraints": {}}),
        json.dumps({"constraints": {"user": {"unique": "username"}}}),
    ],
)
def test_init_rejects_invalid_file(tmp_path, content):
    path = tmp_path / "db.json"
    path.write_text(content, encoding="utf-8")

    with pytest.raises(StoreInitError):
        JsonDB(path)


def test_init_fails_when_directory_cannot_be_created(tmp_path):
    blocker = tmp_path / "not_a_dir"
    blocker.write_text("x", encoding="utf-8")

    with pytest.raises(StoreInitError):
        JsonDB(blocker / "db.json")


def test_missing_auto_increment_section_is_treated_as_empty(tmp_path):
    path = tmp_path / "db.json"
    path.write_text("{}", encoding="utf-8")

    db = JsonDB(path)

    assert db.allocate_next_id("user") == 1
    assert _on_disk(path)["auto_increment"] == {"user": 1}


def test_allocate_next_id_is_per_category_and_persisted(tmp_path):
    path = tmp_path / "db.json"
    db = JsonDB(path)

    assert [db.allocate_next_id("user") for _ in range(3)] == [1, 2, 3]
    assert db.allocate_next_id("post") == 1
    assert db.allocate_next_id("user") == 4
    assert db.allocate_next_id("post") == 2

    assert _on_disk(path)["auto_increment"] == {"user": 4, "post": 2}


def test_allocate_next_id_rejects_non_integer_counter(tmp_path):
    path = tmp_path / "db.json"
    db = JsonDB(path)
    db._doc["auto_increment"]["user"] = "7"

    with pytest.raises(ValueTypeError):
        db.allocate_next_id("user")


def test_declare_constraint_is_idempotent(tmp_path):
    path = tmp_path / "db.json"
    db = JsonDB(path)

    assert db.declare_constraint("user", "unique", "username") is True
    before = path.stat().st_mtime_ns
    assert db.declare_constraint("user", "unique", "username") is False

    assert db.constraints("user") == {"unique": ["username"]}
    assert _on_disk(path)["constraints"] == {"user": {"unique": ["username"]}}
    assert path.stat().st_mtime_ns == before


def test_is_constrained_lookup(tmp_path):
    db = JsonDB(tmp_path / "db.json")
    db.declare_constraint("user", "unique", "email")

    assert db.is_constrained("user", "unique", "email")
    assert not db.is_constrained("user", "unique", "username")
    assert not db.is_constrained("user", "indexed", "email")
    assert not db.is_constrained("post", "unique", "email")


def test_is_unique_only_checks_constrained_fields(tmp_path):
    db = JsonDB(tmp_path / "db.json")
    db.insert_with_auto_id("user", {"username": "alice", "city": "Paris"})
    db.declare_constraint("user", "unique", "username")

    assert db.is_unique("user", "city", "Paris")
    assert not db.is_unique("user", "username", "alice")
    assert db.is_unique("user", "username", "bob")


def test_is_unique_distinguishes_bool_from_int(tmp_path):
    db = JsonDB(tmp_path / "db.json")
    db.declare_constraint("flag", "unique", "value")
    db.insert_with_auto_id("flag", {"value": 1})

    assert db.is_unique("flag", "value", True)
    assert not db.is_unique("flag", "value", 1.0)


def test_duplicate_insert_is_rejected_without_side_effects(tmp_path):
    path = tmp_path / "db.json"
    db = JsonDB(path)
    db.declare_constraint("user", "unique", "username")
    assert db.insert_with_auto_id("user", {"username": "alice"}) == 1
    snapshot = _on_disk(path)

    with pytest.raises(DuplicateFieldValueError) as exc_info:
        db.insert_with_auto_id("user", {"username": "alice", "age": 3})

    assert exc_info.value.field == "username"
    assert exc_info.value.value == "alice"
    assert str(exc_info.value) == "username alice already exists"
    assert _on_disk(path) == snapshot
    assert db.document == snapshot
    assert db.allocate_next_id("user") == 2


def test_deleted_record_frees_unique_value(tmp_path):
    db = JsonDB(tmp_path / "db.json")
    db.declare_constraint("user", "unique", "username")
    db.insert_with_auto_id("user", {"username": "alice"})

    assert db.delete("user/1") is DeleteOutcome.DELETED
    assert db.insert_with_auto_id("user", {"username": "alice"}) == 2


def test_insert_rejects_non_json_record(tmp_path):
    db = JsonDB(tmp_path / "db.json")

    with pytest.raises(InvalidValueError):
        db.insert_with_auto_id("user", {"tags": {"a", "b"}})
    with pytest.raises(InvalidValueError):
        db.insert_with_auto_id("user", ["not", "a", "mapping"])

    assert db.document == {"auto_increment": {}}


def test_insert_does_not_alias_caller_record(tmp_path):
    db = JsonDB(tmp_path / "db.json")
    record = {"username": "alice", "roles": ["admin"]}
    db.insert_with_auto_id("user", record)

    record["roles"].append("owner")
    got = db.get("user/1")
    got["username"] = "mallory"

    assert db.get("user/1") == {"username": "alice", "roles": ["admin"]}


def test_put_get_and_reload_roundtrip(tmp_path):
    path = tmp_path / "db.json"
    db = JsonDB(path)
    db.put("settings/theme", "dark")
    db.put("settings/limits", {"max": 10, "ratio": 0.5, "enabled": True, "note": None, "tags": ["a", "b"]})
    db.put("user/abc/def", {"nested": {"k": 1}})

    reopened = JsonDB(path)

    assert reopened.document == db.document
    assert reopened.get("settings/theme") == "dark"
    assert reopened.get("settings/limits")["tags"] == ["a", "b"]
    # split happens on the first separator only
    assert reopened.get("user/abc/def") == {"nested": {"k": 1}}
    assert reopened.records("user") == {"abc/def": {"nested": {"k": 1}}}


def test_put_overwrites(tmp_path):
    db = JsonDB(tmp_path / "db.json")
    db.put("user/1", {"username": "alice"})
    db.put("user/1", {"username": "bob"})

    assert db.get("user/1") == {"username": "bob"}


def test_put_into_non_mapping_category_fails(tmp_path):
    path = tmp_path / "db.json"
    path.write_text(json.dumps({"auto_increment": {}, "version": 3}), encoding="utf-8")
    db = JsonDB(path)

    with pytest.raises(ValueTypeError):
        db.put("version/1", "x")
    assert _on_disk(path) == {"auto_increment": {}, "version": 3}


def test_get_missing_returns_none_and_logs(tmp_path, caplog):
    db = JsonDB(tmp_path / "db.json")
    db.put("user/1", {"username": "alice"})

    with caplog.at_level(logging.WARNING, logger="jsondb.store"):
        assert db.get("user/2") is None
        assert db.get("post/1") is None

    assert "user/2" in caplog.text
    assert "post/1" in caplog.text
    assert "user/1" in db
    assert "user/2" not in db


def test_delete_then_get(tmp_path):
    path = tmp_path / "db.json"
    db = JsonDB(path)
    db.put("user/1", {"username": "alice"})

    assert db.delete("user/1") is DeleteOutcome.DELETED
    assert db.get("user/1") is None
    assert _on_disk(path)["user"] == {}


def test_delete_reports_missing_category_and_id(tmp_path):
    path = tmp_path / "db.json"
    db = JsonDB(path)
    db.put("user/1", {"username": "alice"})
    snapshot = db.document

    missing_category = db.delete("post/1")
    missing_id = db.delete("user/9")

    assert missing_category is DeleteOutcome.MISSING_CATEGORY
    assert missing_id is DeleteOutcome.MISSING_ID
    assert not missing_id
    assert db.document == snapshot
    assert _on_disk(path) == snapshot


@pytest.mark.parametrize("key", ["user", "/1", "user/", ""])
def test_malformed_keys_are_rejected(tmp_path, key):
    db = JsonDB(tmp_path / "db.json")

    with pytest.raises(InvalidKeyError):
        db.get(key)


@pytest.mark.parametrize("category", ["auto_increment", "constraints"])
def test_reserved_categories_are_rejected(tmp_path, category):
    db = JsonDB(tmp_path / "db.json")

    with pytest.raises(ReservedCategoryError):
        db.insert_with_auto_id(category, {"a": 1})
    with pytest.raises(ReservedCategoryError):
        db.put(f"{category}/x", 1)
    with pytest.raises(ReservedCategoryError):
        db.allocate_next_id(category)


def test_failed_write_leaves_memory_and_disk_unchanged(tmp_path):
    path = tmp_path / "db.json"
    backend = FlakyBackend(path)
    db = JsonDB(backend=backend)
    db.put("user/1", {"username": "alice"})
    snapshot = db.document

    backend.fail = True
    with pytest.raises(StorePersistError):
        db.allocate_next_id("user")
    with pytest.raises(StorePersistError):
        db.put("user/2", {"username": "bob"})
    with pytest.raises(StorePersistError):
        db.delete("user/1")

    assert db.document == snapshot
    assert _on_disk(path) == snapshot

    backend.fail = False
    assert db.allocate_next_id("user") == 1


def test_initial_write_failure_is_an_init_error(tmp_path):
    backend = FlakyBackend(tmp_path / "db.json")
    backend.fail = True

    with pytest.raises(StoreInitError):
        JsonDB(backend=backend)


def test_reload_picks_up_external_changes(tmp_path):
    path = tmp_path / "db.json"
    db = JsonDB(path)
    path.write_text(json.dumps({"auto_increment": {"user": 1}, "user": {"1": {"username": "x"}}}), encoding="utf-8")

    assert db.get("user/1") is None
    db.reload()
    assert db.get("user/1") == {"username": "x"}


def test_end_to_end_unique_username(db_path):
    db = JsonDB()
    db.declare_constraint("user", "unique", "username")
    user = {"username": "Alice", "password": hash_password("password123")}

    assert db.insert_with_auto_id("user", user) == 1
    with pytest.raises(DuplicateFieldValueError):
        db.insert_with_auto_id("user", user)

    on_disk = _on_disk(db_path)
    assert on_disk["auto_increment"]["user"] == 1
    assert on_disk["user"] == {"1": user}


@pytest.mark.parametrize("bad", [float("nan"), float("inf"), float("-inf")])
def test_non_finite_numbers_are_rejected_before_writing(tmp_path, bad):
    path = tmp_path / "db.json"
    db = JsonDB(path)

    with pytest.raises(InvalidValueError, match="finite"):
        db.put("metrics/1", bad)
    with pytest.raises(InvalidValueError, match="finite"):
        db.put("metrics/1", {"series": [1.0, bad]})
    with pytest.raises(InvalidValueError, match="finite"):
        db.insert_with_auto_id("metrics", {"value": bad})

    assert db.document == {"auto_increment": {}}
    assert _on_disk(path) == {"auto_increment": {}}


@pytest.mark.parametrize(
    ("constraint_type", "field"),
    [("unique", 5), ("unique", None), (1, "username")],
)
def test_declare_constraint_rejects_non_string_names(tmp_path, constraint_type, field):
    path = tmp_path / "db.json"
    db = JsonDB(path)

    with pytest.raises(ValueTypeError):
        db.declare_constraint("user", constraint_type, field)

    assert "constraints" not in _on_disk(path)
    assert JsonDB(path).document == {"auto_increment": {}}


def test_record_store_delete_is_typed_as_delete_outcome():
    import typing

    from jsondb.interfaces import RecordStore

    assert typing.get_type_hints(RecordStore.delete)["return"] is DeleteOutcome
    assert typing.get_type_hints(JsonDB.delete)["return"] is DeleteOutcome
