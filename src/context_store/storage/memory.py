"""In-memory storage backend.

Keeps every context as a :class:`~context_store.document.ContextDocument`
in a plain dict.  All data is lost when the process exits.  Values pass
through the same encode/decode path as the file backend, so the same
values are accepted and records round-trip identically.

Classes
-------
- InMemoryContextStore  — dict-backed ephemeral storage
"""
from __future__ import annotations

from typing import Any

from context_store.document import ContextDocument
from context_store.errors import FailureKind, StorageFailure
from context_store.storage.base import DataFolder, StorageBackend, validate_context
from context_store.values import RecordRegistry, decode_value, encode_value


class InMemoryContextStore(StorageBackend):
    """Ephemeral, in-process storage backend.

    Parameters
    ----------
    registry:
        Record registry used to encode and decode record values.
    """

    def __init__(self, registry: RecordRegistry | None = None) -> None:
        self._registry = registry
        self._documents: dict[str, ContextDocument] = {}
        self._initialized = False

    def _get(self, context: str, key: str) -> Any:
        document = self._documents.get(validate_context(context))
        if document is None:
            return None
        try:
            return document.get(key)
        except ValueError as exc:
            raise StorageFailure(str(exc), cause=exc, kind=FailureKind.ENCODING) from exc

    # ------------------------------------------------------------------
    # StorageBackend interface
    # ------------------------------------------------------------------

    def initialize(self, data_folder: DataFolder | None = None) -> None:
        """Mark the store ready; ``data_folder`` is accepted and ignored."""
        self._initialized = True

    def save(self, context: str, key: str, value: Any) -> None:
        self._require_initialized()
        validate_context(context)
        encoded = encode_value(value, self._registry)
        document = self._documents.get(context)
        if document is None:
            document = ContextDocument()
        try:
            document.set(key, encoded)
        except ValueError as exc:
            raise StorageFailure(str(exc), cause=exc, kind=FailureKind.ENCODING) from exc
        self._documents[context] = document

    def load(self, context: str, key: str) -> Any:
        self._require_initialized()
        return decode_value(self._get(context, key), self._registry)

    def exists(self, context: str, key: str) -> bool:
        self._require_initialized()
        return self._get(context, key) is not None

    def delete(self, context: str) -> None:
        self._require_initialized()
        self._documents.pop(validate_context(context), None)

    def delete_key(self, context: str, key: str) -> None:
        self._require_initialized()
        document = self._documents.get(validate_context(context))
        if document is None:
            return
        try:
            document.set(key, None)
        except ValueError as exc:
            raise StorageFailure(str(exc), cause=exc, kind=FailureKind.ENCODING) from exc

    def list_contexts(self) -> set[str]:
        self._require_initialized()
        return set(self._documents)

    def list_keys(self, context: str) -> set[str]:
        self._require_initialized()
        document = self._documents.get(validate_context(context))
        return document.keys() if document is not None else set()

    # ------------------------------------------------------------------
    # Extras
    # ------------------------------------------------------------------

    def clear(self) -> None:
        """Remove all stored contexts."""
        self._documents.clear()

    def __len__(self) -> int:
        return len(self._documents)

    def __repr__(self) -> str:
        return f"InMemoryContextStore(contexts={len(self._documents)})"
