"""Tests for the key-value store backends."""

from __future__ import annotations

import pytest

from saved_pages.storage import FilesystemKVStore, MemoryKVStore, SQLiteKVStore, open_store
from saved_pages.types import CacheConfig, KeyValueStore, StorageUnavailable


@pytest.fixture(params=["memory", "filesystem", "sqlite"])
def store(request, tmp_store_dir):
    if request.param == "memory":
        yield MemoryKVStore()
    elif request.param == "filesystem":
        yield FilesystemKVStore(root=tmp_store_dir / "fs")
    else:
        s = SQLiteKVStore(db_path=tmp_store_dir / "kv.db")
        yield s
        s.close()


class TestKVContract:
    def test_satisfies_protocol(self, store):
        assert isinstance(store, KeyValueStore)

    @pytest.mark.asyncio
    async def test_set_get(self, store):
        value = {"ownerId": "u1", "response": {"pages": [{"id": "a"}]}, "timestamp": 5}
        await store.set("k", value)
        assert await store.get("k") == value

    @pytest.mark.asyncio
    async def test_missing_is_none(self, store):
        assert await store.get("missing") is None

    @pytest.mark.asyncio
    async def test_remove(self, store):
        await store.set("a", 1)
        await store.set("b", 2)
        await store.remove("a")
        await store.remove("never-set")
        assert store.keys() == ["b"]

    @pytest.mark.asyncio
    async def test_clear(self, store):
        await store.set("a", 1)
        await store.set("b", {"x": [1, 2]})
        await store.clear()
        assert store.keys() == []
        assert await store.get("b") is None

    @pytest.mark.asyncio
    async def test_returned_values_are_copies(self, store):
        await store.set("k", {"items": [1]})
        got = await store.get("k")
        got["items"].append(2)
        assert await store.get("k") == {"items": [1]}


class TestFilesystemKVStore:
    @pytest.mark.asyncio
    async def test_persists_across_instances(self, tmp_store_dir):
        await FilesystemKVStore(tmp_store_dir).set("k", {"v": 1})
        assert await FilesystemKVStore(tmp_store_dir).get("k") == {"v": 1}

    @pytest.mark.asyncio
    async def test_corrupt_file_reads_as_empty(self, tmp_store_dir):
        (tmp_store_dir / "_store.json").write_text("{not json")
        store = FilesystemKVStore(tmp_store_dir)
        assert await store.get("k") is None
        await store.set("k", 1)
        assert await store.get("k") == 1

    @pytest.mark.asyncio
    async def test_unwritable_root_raises_storage_unavailable(self, tmp_store_dir):
        blocker = tmp_store_dir / "file"
        blocker.write_text("x")
        store = FilesystemKVStore(blocker / "sub")
        with pytest.raises(StorageUnavailable):
            await store.set("k", 1)


class TestSQLiteKVStore:
    @pytest.mark.asyncio
    async def test_persists_across_connections(self, tmp_sqlite_db):
        s1 = SQLiteKVStore(tmp_sqlite_db)
        await s1.set("k", [1, 2, 3])
        s1.close()
        s2 = SQLiteKVStore(tmp_sqlite_db)
        assert await s2.get("k") == [1, 2, 3]
        s2.close()

    @pytest.mark.asyncio
    async def test_overwrite(self, tmp_sqlite_db):
        s = SQLiteKVStore(tmp_sqlite_db)
        await s.set("k", 1)
        await s.set("k", 2)
        assert await s.get("k") == 2
        assert s.keys() == ["k"]
        s.close()

    @pytest.mark.asyncio
    async def test_unopenable_path_raises_storage_unavailable(self, tmp_store_dir):
        blocker = tmp_store_dir / "file"
        blocker.write_text("x")
        s = SQLiteKVStore(blocker / "kv.db")
        with pytest.raises(StorageUnavailable):
            await s.get("k")


class TestOpenStore:
    def test_backends(self, tmp_store_dir):
        assert isinstance(open_store(CacheConfig(backend="memory")), MemoryKVStore)
        fs = open_store(CacheConfig(backend="filesystem", root=str(tmp_store_dir)))
        assert isinstance(fs, FilesystemKVStore)
        db = open_store(CacheConfig(backend="sqlite", sqlite_path=str(tmp_store_dir / "c.db")))
        assert isinstance(db, SQLiteKVStore)

    def test_unknown_backend(self):
        with pytest.raises(ValueError):
            open_store(CacheConfig(backend="redis"))
