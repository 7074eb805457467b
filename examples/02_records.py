#!/usr/bin/env python3
"""Example: Storing custom types

Registers a plain class and a pydantic model as records, stores them,
and writes a single object to a file with the object stream helpers.

Usage:
    python examples/02_records.py

Requirements:
    pip install context-store
"""
from __future__ import annotations

import tempfile
from pathlib import Path

from pydantic import BaseModel

from context_store import (
    FileContextStore,
    YamlCodec,
    default_registry,
    load_from_file,
    save_to_file,
    serializable,
)


@serializable("location")
class Location:
    def __init__(self, world: str, x: int, z: int) -> None:
        self.world = world
        self.x = x
        self.z = z

    def serialize(self) -> dict[str, object]:
        return {"world": self.world, "x": self.x, "z": self.z}

    @classmethod
    def deserialize(cls, data: dict[str, object]) -> Location:
        return cls(str(data["world"]), int(data["x"]), int(data["z"]))

    def __repr__(self) -> str:
        return f"Location({self.world!r}, {self.x}, {self.z})"


class Home(BaseModel):
    owner: str
    public: bool = False


default_registry.register_model("home", Home)


def main() -> None:
    with tempfile.TemporaryDirectory() as tmp:
        storage = FileContextStore()
        storage.initialize(Path(tmp))

        storage.save("homes", "alice", Home(owner="alice", public=True))
        storage.save("warps", "spawn", Location("overworld", 0, 0))

        print(f"  alice's home: {storage.load('homes', 'alice')!r}")
        print(f"  spawn warp:   {storage.load('warps', 'spawn')!r}")

        path = Path(tmp) / "single.yml"
        save_to_file(Location("nether", 8, -8), path, YamlCodec())
        print(f"  from file:    {load_from_file(path, YamlCodec())!r}")


if __name__ == "__main__":
    main()
