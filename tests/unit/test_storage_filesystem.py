"""Unit tests for context_store.storage.filesystem.FileContextStore.

Uses pytest's tmp_path fixture to isolate all file I/O.
"""
from __future__ import annotations

import threading
from pathlib import Path
from types import SimpleNamespace

import pytest
import yaml

from context_store.config import StoreSettings
from context_store.errors import FailureKind, StorageFailure
from context_store.storage.filesystem import FileContextStore


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def data_folder(tmp_path: Path) -> Path:
    return tmp_path / "plugin-data"


@pytest.fixture()
def store(data_folder: Path) -> FileContextStore:
    backend = FileContextStore()
    backend.initialize(data_folder)
    return backend


# ---------------------------------------------------------------------------
# initialize
# ---------------------------------------------------------------------------


class TestFileContextStoreInitialize:
    def test_creates_storage_directory(self, data_folder: Path) -> None:
        backend = FileContextStore()
        backend.initialize(data_folder)
        assert (data_folder / "storage").is_dir()
        assert backend.base_directory == data_folder / "storage"
        assert backend.initialized

    def test_custom_storage_directory_name(self, data_folder: Path) -> None:
        backend = FileContextStore()
        backend.storage_directory_name = "saves"
        backend.initialize(data_folder)
        assert backend.base_directory == data_folder / "saves"

    def test_accepts_string_path(self, data_folder: Path) -> None:
        backend = FileContextStore()
        backend.initialize(str(data_folder))
        assert isinstance(backend.base_directory, Path)

    def test_accepts_host_object(self, data_folder: Path) -> None:
        backend = FileContextStore()
        backend.initialize(SimpleNamespace(data_folder=data_folder))
        assert backend.base_directory == data_folder / "storage"

    def test_initialize_twice_is_safe(self, data_folder: Path) -> None:
        backend = FileContextStore()
        backend.initialize(data_folder)
        backend.save("c", "k", 1)
        backend.initialize(data_folder)
        assert backend.load("c", "k") == 1

    def test_unusable_data_folder_raises_io_failure(self, tmp_path: Path) -> None:
        blocker = tmp_path / "not-a-dir"
        blocker.write_text("file", encoding="utf-8")
        backend = FileContextStore()
        with pytest.raises(StorageFailure) as excinfo:
            backend.initialize(blocker)
        assert excinfo.value.kind is FailureKind.IO
        assert excinfo.value.cause is not None
        assert not backend.initialized

    def test_unsupported_data_folder_type_raises(self) -> None:
        with pytest.raises(StorageFailure):
            FileContextStore().initialize(42)  # type: ignore[arg-type]

    def test_from_settings(self, data_folder: Path) -> None:
        settings = StoreSettings(data_folder=data_folder, storage_directory_name="db")
        backend = FileContextStore.from_settings(settings)
        assert backend.initialized
        assert backend.base_directory == data_folder / "db"

    def test_repr_contains_base_directory(self, store: FileContextStore) -> None:
        assert "storage" in repr(store)


# ---------------------------------------------------------------------------
# Uninitialized use
# ---------------------------------------------------------------------------


class TestFileContextStoreUninitialized:
    @pytest.mark.parametrize(
        "call",
        [
            lambda s: s.save("c", "k", 1),
            lambda s: s.load("c", "k"),
            lambda s: s.exists("c", "k"),
            lambda s: s.delete("c"),
            lambda s: s.delete_key("c", "k"),
            lambda s: s.list_contexts(),
            lambda s: s.list_keys("c"),
        ],
    )
    def test_operations_require_initialize(self, call) -> None:
        with pytest.raises(StorageFailure) as excinfo:
            call(FileContextStore())
        assert excinfo.value.kind is FailureKind.UNINITIALIZED


# ---------------------------------------------------------------------------
# On-disk layout
# ---------------------------------------------------------------------------


class TestFileContextStoreLayout:
    def test_save_writes_yaml_document(self, store: FileContextStore) -> None:
        store.save("players", "alice", 42)
        path = store.base_directory / "players.yml"
        assert path.is_file()
        assert yaml.safe_load(path.read_text(encoding="utf-8")) == {"alice": 42}

    def test_dotted_key_writes_nested_mapping(self, store: FileContextStore) -> None:
        store.save("world", "spawn.x", 10)
        store.save("world", "spawn.z", -3)
        raw = yaml.safe_load((store.base_directory / "world.yml").read_text(encoding="utf-8"))
        assert raw == {"spawn": {"x": 10, "z": -3}}
        assert store.list_keys("world") == {"spawn"}
        assert store.load("world", "spawn") == {"x": 10, "z": -3}

    def test_no_temporary_files_left_behind(self, store: FileContextStore) -> None:
        store.save("c", "k", "v")
        assert [p.name for p in store.base_directory.iterdir()] == ["c.yml"]

    def test_external_edits_are_visible(self, store: FileContextStore) -> None:
        store.save("c", "k", "old")
        (store.base_directory / "c.yml").write_text("k: new\nother: 1\n", encoding="utf-8")
        assert store.load("c", "k") == "new"
        assert store.list_keys("c") == {"k", "other"}

    def test_externally_added_document_is_listed(self, store: FileContextStore) -> None:
        (store.base_directory / "manual.yml").write_text("a: 1\n", encoding="utf-8")
        assert store.list_contexts() == {"manual"}

    def test_list_contexts_ignores_other_files(self, store: FileContextStore) -> None:
        (store.base_directory / "notes.txt").write_text("x", encoding="utf-8")
        (store.base_directory / "nested.yml").mkdir()
        store.save("real", "k", 1)
        assert store.list_contexts() == {"real"}

    def test_context_with_dot_keeps_full_stem(self, store: FileContextStore) -> None:
        store.save("v1.2", "k", 1)
        assert store.list_contexts() == {"v1.2"}

    def test_empty_document_has_no_keys(self, store: FileContextStore) -> None:
        (store.base_directory / "blank.yml").write_text("", encoding="utf-8")
        assert store.list_keys("blank") == set()
        assert store.load("blank", "k") is None

    def test_deleted_storage_directory_lists_nothing(self, store: FileContextStore) -> None:
        store.base_directory.rmdir()
        assert store.list_contexts() == set()


# ---------------------------------------------------------------------------
# Error normalisation
# ---------------------------------------------------------------------------


class TestFileContextStoreErrors:
    def test_malformed_yaml_raises_encoding_failure(self, store: FileContextStore) -> None:
        (store.base_directory / "bad.yml").write_text("a: [1, 2\n", encoding="utf-8")
        with pytest.raises(StorageFailure) as excinfo:
            store.load("bad", "a")
        assert excinfo.value.kind is FailureKind.ENCODING
        assert isinstance(excinfo.value.__cause__, yaml.YAMLError)

    def test_non_utf8_document_raises_encoding_failure(
        self, store: FileContextStore
    ) -> None:
        (store.base_directory / "bad.yml").write_bytes(b"a: \xff\xfe\n")
        for call in (
            lambda: store.load("bad", "a"),
            lambda: store.exists("bad", "a"),
            lambda: store.list_keys("bad"),
            lambda: store.save("bad", "b", 1),
            lambda: store.delete_key("bad", "a"),
        ):
            with pytest.raises(StorageFailure) as excinfo:
                call()
            assert excinfo.value.kind is FailureKind.ENCODING
            assert isinstance(excinfo.value.__cause__, UnicodeDecodeError)

    def test_non_mapping_document_raises_encoding_failure(
        self, store: FileContextStore
    ) -> None:
        (store.base_directory / "list.yml").write_text("- 1\n- 2\n", encoding="utf-8")
        with pytest.raises(StorageFailure) as excinfo:
            store.list_keys("list")
        assert excinfo.value.kind is FailureKind.ENCODING

    def test_save_over_malformed_document_fails(self, store: FileContextStore) -> None:
        path = store.base_directory / "bad.yml"
        path.write_text("a: [1, 2\n", encoding="utf-8")
        with pytest.raises(StorageFailure):
            store.save("bad", "b", 1)
        assert path.read_text(encoding="utf-8") == "a: [1, 2\n"

    def test_unrepresentable_value_leaves_document_untouched(
        self, store: FileContextStore
    ) -> None:
        store.save("c", "k", 1)
        with pytest.raises(StorageFailure) as excinfo:
            store.save("c", "k", object())
        assert excinfo.value.kind is FailureKind.ENCODING
        assert store.load("c", "k") == 1

    def test_empty_key_raises_encoding_failure(self, store: FileContextStore) -> None:
        with pytest.raises(StorageFailure) as excinfo:
            store.save("c", "", 1)
        assert excinfo.value.kind is FailureKind.ENCODING

    def test_directory_in_place_of_document_raises_io_failure(
        self, store: FileContextStore
    ) -> None:
        (store.base_directory / "dir.yml").mkdir()
        with pytest.raises(StorageFailure) as excinfo:
            store.load("dir", "k")
        assert excinfo.value.kind is FailureKind.IO


# ---------------------------------------------------------------------------
# Path traversal
# ---------------------------------------------------------------------------


class TestFileContextStorePathTraversal:
    @pytest.mark.parametrize(
        "context", ["../escape", "a/b", "..\\win", "", ".", "..", "nul\x00byte"]
    )
    def test_unsafe_context_rejected(self, store: FileContextStore, context: str) -> None:
        with pytest.raises(StorageFailure) as excinfo:
            store.save(context, "k", 1)
        assert excinfo.value.kind is FailureKind.INVALID_CONTEXT

    def test_nothing_written_outside_storage_directory(
        self, store: FileContextStore, data_folder: Path
    ) -> None:
        with pytest.raises(StorageFailure):
            store.save("../escape", "k", 1)
        assert not (data_folder / "escape.yml").exists()

    def test_unsafe_context_rejected_on_read(self, store: FileContextStore) -> None:
        with pytest.raises(StorageFailure):
            store.load("../../etc/passwd", "root")


# ---------------------------------------------------------------------------
# Concurrency
# ---------------------------------------------------------------------------


class TestFileContextStoreConcurrency:
    def test_concurrent_saves_to_one_context_keep_every_key(
        self, store: FileContextStore
    ) -> None:
        def writer(index: int) -> None:
            for round_ in range(5):
                store.save("shared", f"key-{index}", round_)

        threads = [threading.Thread(target=writer, args=(i,)) for i in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert store.list_keys("shared") == {f"key-{i}" for i in range(8)}
        assert all(store.load("shared", f"key-{i}") == 4 for i in range(8))

    def test_lock_table_empty_after_operations(self, store: FileContextStore) -> None:
        store.save("a", "k", 1)
        store.load("a", "k")
        store.list_keys("a")
        store.delete("a")
        assert store._locks == {}

    def test_rejected_context_takes_no_lock(self, store: FileContextStore) -> None:
        for call in (
            lambda: store.load("../x", "k"),
            lambda: store.exists("../x", "k"),
            lambda: store.list_keys("../x"),
        ):
            with pytest.raises(StorageFailure):
                call()
        assert store._locks == {}

    def test_lock_entry_kept_while_held(self, store: FileContextStore) -> None:
        with store._locked("a"):
            assert store._locks["a"].users == 1
            assert store._locks["a"].lock.locked()
        assert "a" not in store._locks

    def test_missing_directory_reports_uninitialized(self) -> None:
        backend = FileContextStore()
        backend._initialized = True
        with pytest.raises(StorageFailure) as excinfo:
            backend.list_contexts()
        assert excinfo.value.kind is FailureKind.UNINITIALIZED
