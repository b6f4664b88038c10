"""Tests for the BlobCache engine."""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass
from pathlib import Path

import pytest
from pydantic import BaseModel

from blobcache import (
    BackingStoreError,
    BlobCache,
    CacheFormatError,
    CacheProfile,
    FileBackingStore,
    InvalidArgumentError,
    JsonNumber,
    MemoryBackingStore,
    NotInitializedError,
    SQLiteBackingStore,
    StoreBackend,
    TypeCoercionError,
)
from blobcache.config.models import CacheSettings
from blobcache.core import decode
from blobcache.services import LockRegistry
from blobcache.shared.errors import ErrorCode


class Profile(BaseModel):
    name: str
    tags: list[str] = []


@dataclass
class Pair:
    left: int
    right: int


class RejectingStore(MemoryBackingStore):
    """Store whose writes are never committed."""

    def put(self, storage_key: str, value: str) -> bool:
        return False


class TestInitialization:
    """Test cases for binding the engine to a store."""

    def test_new_engine_is_unbound(self):
        cache = BlobCache()
        assert cache.is_initialized is False
        assert cache.store is None

    def test_empty_storage_key_is_rejected(self):
        with pytest.raises(InvalidArgumentError):
            BlobCache(storage_key="")

    def test_initialize_same_identity_is_noop(self, memory_store, lock_registry):
        cache = BlobCache(lock_registry=lock_registry)
        cache.initialize(memory_store)
        cache.set("a", 1)
        cache.initialize(memory_store)
        assert cache.store is memory_store
        assert cache.get("a") == 1

    def test_initialize_other_identity_rebinds(self, lock_registry):
        first, second = MemoryBackingStore(), MemoryBackingStore()
        cache = BlobCache(lock_registry=lock_registry)
        cache.initialize(first)
        cache.set("a", 1)
        cache.initialize(second)
        assert cache.store is second
        assert cache.contains_key("a") is False

    def test_initialize_with_path_uses_backend(self, temp_dir: Path, lock_registry):
        cache = BlobCache(backend=StoreBackend.FILE, lock_registry=lock_registry)
        cache.initialize(temp_dir / "prefs.json")
        assert isinstance(cache.store, FileBackingStore)

    def test_reinitialize_same_sqlite_path_opens_nothing(self, temp_dir: Path, lock_registry, mocker):
        cache = BlobCache(backend="sqlite", lock_registry=lock_registry)
        cache.initialize(temp_dir / "cache.db")
        store = cache.store
        connect = mocker.spy(sqlite3, "connect")
        cache.initialize(str(temp_dir / "cache.db"))
        assert connect.call_count == 0
        assert cache.store is store
        cache.close()

    def test_rebind_closes_store_opened_from_path(self, temp_dir: Path, lock_registry):
        cache = BlobCache(backend="sqlite", lock_registry=lock_registry)
        cache.initialize(temp_dir / "first.db")
        first = cache.store
        cache.initialize(temp_dir / "second.db")
        assert first.conn is None
        assert cache.store.conn is not None
        cache.close()

    def test_rebind_keeps_caller_store_open(self, temp_dir: Path, lock_registry):
        owned_by_caller = SQLiteBackingStore(temp_dir / "caller.db")
        cache = BlobCache(lock_registry=lock_registry)
        cache.initialize(owned_by_caller)
        cache.initialize(MemoryBackingStore())
        assert owned_by_caller.conn is not None
        owned_by_caller.close()

    def test_close_unbinds_and_closes(self, temp_dir: Path, lock_registry):
        cache = BlobCache(backend="sqlite", lock_registry=lock_registry)
        cache.initialize(temp_dir / "cache.db")
        store = cache.store
        cache.close()
        assert store.conn is None
        assert cache.is_initialized is False
        with pytest.raises(NotInitializedError):
            cache.get("a")

    def test_close_unbound_engine_is_noop(self):
        BlobCache().close()

    def test_from_settings(self, memory_store, lock_registry):
        settings = CacheSettings(profile="lenient", storage_key="custom")
        cache = BlobCache.from_settings(settings, store=memory_store, lock_registry=lock_registry)
        assert cache.profile is CacheProfile.LENIENT
        assert cache.storage_key == "custom"
        cache.set("a", 1)
        assert memory_store.get("custom") == '{"a":1}'

    def test_from_settings_without_store_is_unbound(self):
        assert BlobCache.from_settings(CacheSettings()).is_initialized is False


class TestStrictBeforeInitialize:
    """Every operation raises before initialize() in the strict profile."""

    @pytest.mark.parametrize(
        ("operation", "args"),
        [
            ("get_all_raw", ()),
            ("get_all", ()),
            ("get", ("a",)),
            ("keys", ()),
            ("contains_key", ("a",)),
            ("set", ("a", 1)),
            ("set_all", ({"a": 1},)),
            ("remove", ("a",)),
            ("clear", ()),
            ("get_int", ("a",)),
            ("get_string", ("a",)),
        ],
    )
    def test_raises_not_initialized(self, operation, args):
        cache = BlobCache()
        with pytest.raises(NotInitializedError):
            getattr(cache, operation)(*args)


class TestLenientBeforeInitialize:
    """Operations are ignored before initialize() in the lenient profile."""

    def test_reads_return_none_or_false(self):
        cache = BlobCache(profile=CacheProfile.LENIENT)
        assert cache.get_all_raw() is None
        assert cache.get("a") is None
        assert cache.get_int("a") is None
        assert cache.get_bool("a") is None
        assert cache.contains_key("a") is False
        assert cache.remove("a") is False
        assert cache.keys() == []

    def test_writes_are_ignored(self):
        cache = BlobCache(profile=CacheProfile.LENIENT)
        cache.set("a", 1)
        cache.set_all({"b": 2})
        cache.clear()
        assert cache.is_initialized is False

    def test_warning_is_logged(self, caplog):
        cache = BlobCache(profile=CacheProfile.LENIENT)
        with caplog.at_level("WARNING", logger="blobcache.services.blob_cache"):
            cache.get("a")
        assert "before initialize" in caplog.text


class TestReadWrite:
    """Test cases for get/set semantics."""

    def test_empty_store(self, cache: BlobCache):
        assert cache.get_all_raw() == ""
        assert cache.get_all() == {}
        assert cache.keys() == []

    def test_round_trip_of_each_value_kind(self, cache: BlobCache):
        cache.set("s", "text")
        cache.set("i", 12)
        cache.set("f", 1.5)
        cache.set("b", True)
        cache.set("l", [1, "two", None])
        cache.set("o", {"nested": {"x": 1}})
        assert cache.get("s") == "text"
        assert cache.get("i") == 12
        assert cache.get("f") == 1.5
        assert cache.get("b") is True
        assert cache.get("l") == [1, "two", None]
        assert cache.get("o") == {"nested": {"x": 1}}

    def test_set_is_idempotent(self, cache: BlobCache):
        cache.set("a", {"x": [1, 2]})
        first = cache.get_all_raw()
        cache.set("a", {"x": [1, 2]})
        assert cache.get_all_raw() == first

    def test_last_write_wins(self, cache: BlobCache):
        cache.set("a", 1)
        cache.set("a", "two")
        assert cache.get("a") == "two"

    def test_set_keeps_unrelated_entries(self, cache: BlobCache):
        cache.set("a", 1)
        cache.set("b", 2)
        assert cache.get_all() == {"a": 1, "b": 2}

    def test_persisted_document_has_sorted_keys(self, cache: BlobCache, memory_store):
        cache.set("zeta", 1)
        cache.set("alpha", 2)
        assert memory_store.get("key_cache") == '{"alpha":2,"zeta":1}'

    def test_large_integer_is_not_rounded(self, cache: BlobCache):
        cache.set("big", 9007199254740993)
        assert cache.get_long("big") == 9007199254740993
        assert cache.get_all_raw() == '{"big":9007199254740993}'

    def test_number_text_written_elsewhere_is_preserved(self, cache: BlobCache, memory_store):
        memory_store.put("key_cache", '{"price":1.10}')
        cache.set("other", "x")
        assert memory_store.get("key_cache") == '{"other":"x","price":1.10}'

    def test_models_are_stored_as_json_objects(self, cache: BlobCache):
        cache.set("profile", Profile(name="Ann", tags=["a"]))
        assert cache.get("profile") == {"name": "Ann", "tags": ["a"]}
        assert cache.get_object("profile", Profile) == Profile(name="Ann", tags=["a"])

    def test_non_string_key_is_rejected(self, cache: BlobCache):
        with pytest.raises(InvalidArgumentError):
            cache.set(1, "value")  # type: ignore[arg-type]

    def test_unstorable_value_does_not_touch_store(self, cache: BlobCache, memory_store):
        cache.set("a", 1)
        with pytest.raises(InvalidArgumentError):
            cache.set("b", float("nan"))
        assert memory_store.get("key_cache") == '{"a":1}'

    def test_two_engines_on_same_store_see_each_other(self, memory_store, lock_registry):
        writer = BlobCache(lock_registry=lock_registry)
        reader = BlobCache(lock_registry=lock_registry)
        writer.initialize(memory_store)
        reader.initialize(memory_store)
        writer.set("shared", "value")
        assert reader.get("shared") == "value"


class TestSetAll:
    """Test cases for set_all()."""

    def test_merges_and_keeps_existing(self, cache: BlobCache):
        cache.set("keep", 1)
        cache.set_all({"a": 2, "keep": 1, "b": [True]})
        assert cache.get_all() == {"a": 2, "b": [True], "keep": 1}

    def test_single_write(self, cache: BlobCache, memory_store, mocker):
        spy = mocker.spy(memory_store, "put")
        cache.set_all({"a": 1, "b": 2, "c": 3})
        assert spy.call_count == 1

    def test_empty_mapping_keeps_document(self, cache: BlobCache):
        cache.set("a", 1)
        cache.set_all({})
        assert cache.get_all() == {"a": 1}

    @pytest.mark.parametrize("entries", [None, [("a", 1)], "a=1"])
    def test_non_mapping_raises(self, cache: BlobCache, entries):
        with pytest.raises(InvalidArgumentError):
            cache.set_all(entries)  # type: ignore[arg-type]


class TestContainsAndRemove:
    """Test cases for contains_key(), remove() and clear()."""

    def test_contains_key(self, cache: BlobCache):
        cache.set("a", 1)
        assert cache.contains_key("a") is True
        assert cache.contains_key("b") is False
        assert "a" in cache
        assert 5 not in cache

    @pytest.mark.parametrize("key", ["", " ", "\t\n"])
    def test_blank_key_is_never_present(self, cache: BlobCache, memory_store, mocker, key):
        spy = mocker.spy(memory_store, "get")
        assert cache.contains_key(key) is False
        assert spy.call_count == 0

    def test_stored_null_is_present(self, cache: BlobCache):
        cache.set("nothing", None)
        assert cache.contains_key("nothing") is True
        assert cache.get("nothing") is None

    def test_remove_present_key(self, cache: BlobCache):
        cache.set_all({"a": 1, "b": 2})
        assert cache.remove("a") is True
        assert cache.get_all() == {"b": 2}

    def test_remove_absent_key_does_not_write(self, cache: BlobCache, memory_store, mocker):
        cache.set("a", 1)
        spy = mocker.spy(memory_store, "put")
        assert cache.remove("missing") is False
        assert spy.call_count == 0

    def test_clear_erases_everything(self, cache: BlobCache, memory_store):
        cache.set_all({"a": 1, "b": 2})
        cache.clear()
        assert cache.get_all_raw() == ""
        assert cache.keys() == []
        assert cache.contains_key("a") is False
        assert cache.contains_key("b") is False

    def test_keys_are_sorted(self, cache: BlobCache):
        cache.set_all({"c": 1, "a": 2, "b": 3})
        assert cache.keys() == ["a", "b", "c"]


class TestTypedGettersStrict:
    """Typed getters in the strict profile."""

    def test_absent_keys_return_sentinels(self, cache: BlobCache):
        assert cache.get_bool("x") is False
        assert cache.get_int("x") == -1
        assert cache.get_long("x") == -1
        assert cache.get_float("x") == -1.0
        assert cache.get_double("x") == -1.0
        assert cache.get_string("x") == ""
        assert cache.get_object("x", Profile) is None

    def test_default_overrides_sentinel(self, cache: BlobCache):
        assert cache.get_int("x", default=7) == 7
        assert cache.get_string("x", default=None) is None
        assert cache.get_object("x", Pair, default=Pair(0, 0)) == Pair(0, 0)

    def test_stored_null_counts_as_absent(self, cache: BlobCache):
        cache.set("n", None)
        assert cache.get_int("n") == -1
        assert cache.get_string("n") == ""

    def test_present_values(self, cache: BlobCache):
        cache.set_all(
            {
                "flag": True,
                "count": 42,
                "big": 2**40,
                "ratio": 0.25,
                "name": "blob",
                "pair": {"left": 1, "right": 2},
            }
        )
        assert cache.get_bool("flag") is True
        assert cache.get_int("count") == 42
        assert cache.get_long("big") == 2**40
        assert cache.get_float("ratio") == 0.25
        assert cache.get_double("ratio") == 0.25
        assert cache.get_string("name") == "blob"
        assert cache.get_string("count") == "42"
        assert cache.get_object("pair", Pair) == Pair(1, 2)

    def test_string_values_are_parsed(self, cache: BlobCache):
        cache.set_all({"n": "123", "b": "TRUE", "d": "2.5"})
        assert cache.get_int("n") == 123
        assert cache.get_bool("b") is True
        assert cache.get_double("d") == 2.5

    def test_int_overflow_raises(self, cache: BlobCache):
        cache.set("big", 2**40)
        with pytest.raises(CacheFormatError):
            cache.get_int("big")

    def test_unparsable_value_raises(self, cache: BlobCache):
        cache.set("word", "hello")
        with pytest.raises(CacheFormatError):
            cache.get_int("word")
        with pytest.raises(CacheFormatError):
            cache.get_double("word")

    def test_object_validation_failure_raises(self, cache: BlobCache):
        cache.set("pair", {"left": "x"})
        with pytest.raises(TypeCoercionError):
            cache.get_object("pair", Pair)


class TestTypedGettersLenient:
    """Typed getters in the lenient profile."""

    def test_absent_keys_return_none(self, lenient_cache: BlobCache):
        assert lenient_cache.get_bool("x") is None
        assert lenient_cache.get_int("x") is None
        assert lenient_cache.get_long("x") is None
        assert lenient_cache.get_float("x") is None
        assert lenient_cache.get_double("x") is None
        assert lenient_cache.get_string("x") is None

    def test_default_is_returned_when_given(self, lenient_cache: BlobCache):
        assert lenient_cache.get_long("x", default=0) == 0
        assert lenient_cache.get_bool("x", default=True) is True

    def test_coercion_failure_still_raises(self, lenient_cache: BlobCache):
        lenient_cache.set("word", "hello")
        with pytest.raises(CacheFormatError):
            lenient_cache.get_long("word")


class TestCorruptDocument:
    """Behaviour when the persisted text is not a JSON object."""

    def test_strict_invalid_json_raises(self, cache: BlobCache, memory_store):
        memory_store.put("key_cache", "{broken")
        with pytest.raises(CacheFormatError):
            cache.get("a")
        with pytest.raises(CacheFormatError):
            cache.set("a", 1)

    def test_strict_get_all_raw_returns_text_unchanged(self, cache: BlobCache, memory_store):
        memory_store.put("key_cache", "{broken")
        assert cache.get_all_raw() == "{broken"

    def test_lenient_invalid_json_is_empty(self, lenient_cache: BlobCache, memory_store):
        memory_store.put("key_cache", "{broken")
        assert lenient_cache.get("a") is None
        lenient_cache.set("a", 1)
        assert memory_store.get("key_cache") == '{"a":1}'

    def test_strict_lone_surrogate_escape_is_invalid_json(self, cache: BlobCache, memory_store):
        memory_store.put("key_cache", r'{"s":"\ud800"}')
        with pytest.raises(CacheFormatError) as exc_info:
            cache.set("other", 1)
        assert exc_info.value.code == ErrorCode.INVALID_JSON

    def test_lenient_lone_surrogate_escape_is_replaced(self, lenient_cache: BlobCache, memory_store):
        memory_store.put("key_cache", r'{"s":"\ud800"}')
        lenient_cache.set("other", 1)
        assert memory_store.get("key_cache") == '{"other":1}'

    @pytest.mark.parametrize(("key", "value"), [("s", "\ud800"), ("\udc00", "x")])
    def test_lone_surrogate_write_is_rejected(self, cache: BlobCache, memory_store, key, value):
        cache.set("kept", "yes")
        with pytest.raises(InvalidArgumentError):
            cache.set(key, value)
        assert memory_store.get("key_cache") == '{"kept":"yes"}'

    @pytest.mark.parametrize("text", ["[1,2]", '"text"', "7"])
    def test_non_object_raises_in_both_profiles(self, cache, lenient_cache, memory_store, text):
        memory_store.put("key_cache", text)
        with pytest.raises(CacheFormatError):
            cache.get_all()
        with pytest.raises(CacheFormatError):
            lenient_cache.get_all()


class TestPersistence:
    """Durability through the file and sqlite stores."""

    def test_values_survive_new_engine(self, temp_dir: Path, lock_registry):
        path = temp_dir / "prefs.json"
        first = BlobCache(lock_registry=lock_registry)
        first.initialize(path)
        first.set_all({"big": 9007199254740993, "name": "x"})

        second = BlobCache(lock_registry=LockRegistry())
        second.initialize(path)
        assert second.get_long("big") == 9007199254740993
        assert decode(second.get_all_raw()) == {"big": 9007199254740993, "name": "x"}

    def test_sqlite_backend(self, temp_dir: Path, lock_registry):
        cache = BlobCache(backend="sqlite", lock_registry=lock_registry)
        cache.initialize(temp_dir / "cache.db")
        try:
            cache.set("a", JsonNumber("1.000"))
            assert cache.get_all_raw() == '{"a":1.000}'
        finally:
            cache.close()

    @pytest.mark.parametrize(("backend", "name"), [("file", "prefs.json"), ("sqlite", "cache.db")])
    def test_clear_removes_every_key(self, temp_dir: Path, lock_registry, backend, name):
        cache = BlobCache(backend=backend, lock_registry=lock_registry)
        cache.initialize(temp_dir / name)
        try:
            cache.set_all({"a": 1, "b": {"c": 2}})
            cache.clear()
            assert cache.contains_key("a") is False
            assert cache.contains_key("b") is False
            assert cache.get_all() == {}
        finally:
            cache.close()

    def test_uncommitted_write_raises(self, lock_registry):
        cache = BlobCache(lock_registry=lock_registry)
        cache.initialize(RejectingStore())
        with pytest.raises(BackingStoreError):
            cache.set("a", 1)
