"""context-store — Back-end agnostic two-level key/value persistence.

Values are saved under a *context* and a *key*::

    from context_store import FileContextStore

    storage = FileContextStore()
    storage.initialize("/srv/myapp/data")
    storage.save("players", "alice", {"score": 42})
    storage.load("players", "alice")   # -> {"score": 42}

Public API
----------
The stable public surface is everything exported from this module.
Anything inside submodules not re-exported here is considered private
and may change without notice.
"""
from __future__ import annotations

# Errors
from context_store.errors import FailureKind, StorageFailure

# Values and records
from context_store.values import (
    RecordRegistry,
    RecordType,
    default_registry,
    decode_value,
    encode_value,
    is_representable,
    serializable,
)
from context_store.document import ContextDocument

# Storage backends
from context_store.storage.base import StorageBackend, validate_context
from context_store.storage.filesystem import FileContextStore
from context_store.storage.memory import InMemoryContextStore

# Configuration
from context_store.config import StoreSettings

# Object streams
from context_store.objectio import (
    Codec,
    PickleCodec,
    UnknownTypeError,
    YamlCodec,
    load_from_file,
    load_from_stream,
    save_to_file,
    save_to_stream,
)

# Logging
from context_store.debuglog import DebugLogger

__version__: str = "0.1.0"

__all__ = [
    "__version__",
    # Errors
    "FailureKind",
    "StorageFailure",
    # Values
    "ContextDocument",
    "RecordRegistry",
    "RecordType",
    "decode_value",
    "default_registry",
    "encode_value",
    "is_representable",
    "serializable",
    # Storage
    "FileContextStore",
    "InMemoryContextStore",
    "StorageBackend",
    "validate_context",
    # Configuration
    "StoreSettings",
    # Object streams
    "Codec",
    "PickleCodec",
    "UnknownTypeError",
    "YamlCodec",
    "load_from_file",
    "load_from_stream",
    "save_to_file",
    "save_to_stream",
    # Logging
    "DebugLogger",
]
