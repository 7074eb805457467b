#!/usr/bin/env python3
"""Example: Quickstart

Saves, lists, and deletes values with the YAML file backend.

Usage:
    python examples/01_quickstart.py

Requirements:
    pip install context-store
"""
from __future__ import annotations

import tempfile
from pathlib import Path

import context_store
from context_store import FileContextStore


def main() -> None:
    print(f"context-store version: {context_store.__version__}")

    with tempfile.TemporaryDirectory() as tmp:
        storage = FileContextStore()
        storage.initialize(Path(tmp))

        storage.save("players", "alice", 42)
        storage.save("players", "bob", {"rank": "gold", "wins": [1, 4, 9]})
        storage.save("world", "spawn.x", 120)

        print(f"  contexts: {sorted(storage.list_contexts())}")
        print(f"  players keys: {sorted(storage.list_keys('players'))}")
        print(f"  alice: {storage.load('players', 'alice')}")
        print(f"  spawn: {storage.load('world', 'spawn')}")

        document = storage.base_directory / "players.yml"
        print(f"\n{document.name}:\n{document.read_text(encoding='utf-8')}")

        storage.delete_key("players", "alice")
        storage.delete("world")
        print(f"  after deletes: {sorted(storage.list_contexts())}")


if __name__ == "__main__":
    main()
