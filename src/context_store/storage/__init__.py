"""Storage backend subpackage.

All backends implement the ``StorageBackend`` ABC.

Public surface
--------------
- StorageBackend        — abstract base class
- FileContextStore      — one YAML document per context
- InMemoryContextStore  — in-process dict (useful for testing)
- validate_context      — context identifier check shared by backends
"""
from __future__ import annotations

from context_store.storage.base import StorageBackend, validate_context
from context_store.storage.filesystem import FileContextStore
from context_store.storage.memory import InMemoryContextStore

__all__ = [
    "FileContextStore",
    "InMemoryContextStore",
    "StorageBackend",
    "validate_context",
]
