from __future__ import annotations

import os

import pytest

from textdb.core.errors import (
    DuplicateKeyError,
    KeyNotFoundError,
    NameValidationError,
    SeparatorConflictError,
    StoreClosedError,
)
from textdb.core.store.database import TextDatabase
from tests.helpers.store_files import SEP, read_raw


def test_construction_creates_root_and_empty_file(make_store, store_root):
    db = make_store("Players")
    assert os.path.isdir(store_root)
    assert db.path == os.path.join(str(store_root), "Players.txt")
    assert read_raw(db.path) == ""
    assert db.count() == 0


def test_set_is_visible_before_any_sync(make_store):
    db = make_store()
    db.set("k", "v")
    assert db.get("k") == "v"
    assert db["k"] == "v"
    assert db.try_get("k") == "v"
    assert db.contains_key("k") and "k" in db
    assert db.count() == 1 and len(db) == 1
    # nothing reached the disk yet
    assert read_raw(db.path) == ""
    assert db.pending_count() == 1


def test_set_upserts(make_store):
    db = make_store()
    db.set("k", "1")
    db["k"] = "2"
    assert db.get("k") == "2"
    assert db.count() == 1


@pytest.mark.parametrize("key,value", [("a" + SEP, "b"), ("a", "b" + SEP), (SEP, SEP)])
def test_separator_in_key_or_value_is_rejected(make_store, key, value):
    db = make_store()
    db.set("existing", "1")
    with pytest.raises(SeparatorConflictError):
        db.set(key, value)
    with pytest.raises(SeparatorConflictError):
        db.add(key, value)
    assert db.snapshot() == {"existing": "1"}
    assert db.pending_count() == 1


def test_separator_rejection_is_a_value_error(make_store):
    db = make_store()
    with pytest.raises(ValueError):
        db.set("a", "b" + SEP)


def test_add_rejects_existing_key(make_store):
    db = make_store()
    db.add("k", "1")
    with pytest.raises(DuplicateKeyError) as ei:
        db.add("k", "2")
    assert ei.value.context["key"] == "k"
    assert db.get("k") == "1"
    assert db.pending_count() == 1


def test_get_missing_key(make_store):
    db = make_store()
    with pytest.raises(KeyNotFoundError):
        db.get("nope")
    with pytest.raises(KeyError):
        db["nope"]
    assert db.try_get("nope") is None
    assert "nope" not in db


def test_remove_missing_key_is_not_an_error(make_store):
    db = make_store()
    db.set("a", "1")
    db.remove("a")
    db.remove("a")
    assert db.count() == 0


def test_clear(make_store):
    db = make_store()
    for i in range(3):
        db.set(f"k{i}", str(i))
    db.clear()
    assert db.count() == 0
    assert db.keys() == ()


def test_keys_and_values_are_restartable_snapshots(make_store):
    db = make_store()
    db.set("a", "1")
    db.set("b", "2")
    keys = db.keys()
    values = db.values()
    db.set("c", "3")
    assert sorted(keys) == ["a", "b"]
    assert sorted(keys) == ["a", "b"]
    assert sorted(values) == ["1", "2"]
    assert sorted(db) == ["a", "b", "c"]
    assert dict(db.items()) == {"a": "1", "b": "2", "c": "3"}


def test_non_string_arguments_rejected(make_store):
    db = make_store()
    with pytest.raises(TypeError):
        db.set("a", 1)  # type: ignore[arg-type]
    with pytest.raises(TypeError):
        db.add(1, "a")  # type: ignore[arg-type]
    with pytest.raises(TypeError):
        db.remove(None)  # type: ignore[arg-type]
    assert db.count() == 0


def test_writes_after_close_are_rejected(make_store):
    db = make_store()
    db.set("a", "1")
    db.close()
    assert db.closed
    with pytest.raises(StoreClosedError):
        db.set("b", "2")
    # reads still work
    assert db.get("a") == "1"
    # idempotent
    assert db.close() is None


@pytest.mark.parametrize("name", ["", "a/b", "a\\b", "a:b", "what?", "x*", "tab\tname", "..", "trailing.", "CON", "nul.txt"])
def test_unsafe_names_rejected(store_root, name):
    with pytest.raises(NameValidationError):
        TextDatabase(name, root_dir=str(store_root))
    assert not os.path.exists(store_root)


def test_name_error_lists_forbidden_characters(store_root):
    with pytest.raises(NameValidationError) as ei:
        TextDatabase("a<b>c", root_dir=str(store_root))
    assert "'<'" in str(ei.value) and "'>'" in str(ei.value)
    assert ei.value.context["forbidden"] == ["<", ">"]


def test_custom_separator(make_store):
    db = make_store("Lines", separator="\n")
    db.set("a", "1" + SEP)  # default separator is an ordinary character here
    with pytest.raises(SeparatorConflictError):
        db.set("b", "two\nlines")
    db.sync()
    with open(db.path, "rb") as f:
        assert f.read() == ("a\n1" + SEP).encode("utf-8")


def test_repr_mentions_name_and_counts(make_store):
    db = make_store("Shown")
    db.set("a", "1")
    r = repr(db)
    assert "Shown" in r and "entries=1" in r and "pending=1" in r
