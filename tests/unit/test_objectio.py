"""Unit tests for context_store.objectio."""
from __future__ import annotations

import io
import pickle
from pathlib import Path

import pytest

from context_store.errors import StorageFailure
from context_store.objectio import (
    PickleCodec,
    YamlCodec,
    load_from_file,
    load_from_stream,
    save_to_file,
    save_to_stream,
)
from context_store.values import RecordRegistry


class Inventory:
    def __init__(self, items: list[str]) -> None:
        self.items = items

    def serialize(self) -> dict[str, list[str]]:
        return {"items": self.items}

    @classmethod
    def deserialize(cls, data: dict[str, list[str]]) -> Inventory:
        return cls(data["items"])


class _ClosingBytesIO(io.BytesIO):
    """BytesIO that keeps its contents readable after close()."""

    def close(self) -> None:
        self.final_value = self.getvalue()
        super().close()


@pytest.fixture()
def registry() -> RecordRegistry:
    records = RecordRegistry()
    records.serializable("inventory")(Inventory)
    return records


class TestStreamHelpers:
    def test_save_closes_stream(self) -> None:
        stream = _ClosingBytesIO()
        save_to_stream({"a": 1}, stream, PickleCodec())
        assert stream.closed
        assert pickle.loads(stream.final_value) == {"a": 1}

    def test_load_closes_stream(self) -> None:
        stream = io.BytesIO(pickle.dumps([1, 2]))
        assert load_from_stream(stream, PickleCodec()) == [1, 2]
        assert stream.closed

    def test_unknown_pickled_class_loads_as_none(self) -> None:
        payload = pickle.dumps(Inventory(["x"]))
        payload = payload.replace(b"Inventory", b"Nonexist1")
        assert load_from_stream(io.BytesIO(payload), PickleCodec()) is None


class TestFileHelpers:
    def test_pickle_file_round_trip(self, tmp_path: Path) -> None:
        path = tmp_path / "obj.bin"
        save_to_file({"nested": [1, 2, {"k": "v"}]}, path, PickleCodec())
        assert load_from_file(path, PickleCodec()) == {"nested": [1, 2, {"k": "v"}]}

    def test_yaml_file_round_trip_with_record(
        self, tmp_path: Path, registry: RecordRegistry
    ) -> None:
        path = tmp_path / "inv.yml"
        codec = YamlCodec(registry)
        save_to_file(Inventory(["sword", "shield"]), path, codec)
        assert "inventory" in path.read_text(encoding="utf-8")
        loaded = load_from_file(path, codec)
        assert isinstance(loaded, Inventory)
        assert loaded.items == ["sword", "shield"]

    def test_yaml_unknown_record_loads_as_none(
        self, tmp_path: Path, registry: RecordRegistry
    ) -> None:
        path = tmp_path / "inv.yml"
        save_to_file(Inventory(["x"]), path, YamlCodec(registry))
        assert load_from_file(path, YamlCodec(RecordRegistry())) is None

    def test_yaml_rejects_unrepresentable(self, tmp_path: Path) -> None:
        with pytest.raises(StorageFailure):
            save_to_file(object(), tmp_path / "x.yml", YamlCodec())

    def test_missing_file_raises(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            load_from_file(tmp_path / "absent.bin", PickleCodec())
