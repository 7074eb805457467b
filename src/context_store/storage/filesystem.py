"""YAML file storage backend.

Each context is stored as an individual YAML document named
``<base_directory>/<context>.yml`` where ``base_directory`` is
``<data_folder>/<storage_directory_name>``.  Keys are entries inside the
document; dotted keys address nested mappings.

Every operation reads the document from disk, so changes made to the
files by other programs are visible on the next call.  Writes replace the
whole document through a temporary file.

Classes
-------
- FileContextStore  — one-YAML-document-per-context storage
"""
from __future__ import annotations

import logging
import os
import threading
from pathlib import Path
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any, Iterator

import yaml

from context_store.document import ContextDocument
from context_store.errors import FailureKind, StorageFailure
from context_store.storage.base import (
    DataFolder,
    StorageBackend,
    resolve_data_folder,
    validate_context,
)
from context_store.values import RecordRegistry, decode_value, encode_value

if TYPE_CHECKING:
    from context_store.config import StoreSettings

logger = logging.getLogger(__name__)

DEFAULT_STORAGE_DIRECTORY_NAME: str = "storage"
DEFAULT_DOCUMENT_EXTENSION: str = ".yml"


class _LockEntry:
    __slots__ = ("lock", "users")

    def __init__(self) -> None:
        self.lock = threading.Lock()
        self.users = 0


class FileContextStore(StorageBackend):
    """Stores each context as a YAML document on disk.

    Parameters
    ----------
    storage_directory_name:
        Name of the sub-directory of the data folder that holds the
        documents.  Defaults to ``"storage"``.
    document_extension:
        File extension of context documents, including the leading dot.
    registry:
        Record registry used to encode and decode record values.  Uses
        :data:`context_store.values.default_registry` when omitted.
    """

    def __init__(
        self,
        storage_directory_name: str = DEFAULT_STORAGE_DIRECTORY_NAME,
        document_extension: str = DEFAULT_DOCUMENT_EXTENSION,
        registry: RecordRegistry | None = None,
    ) -> None:
        self._storage_directory_name = storage_directory_name
        self._document_extension = document_extension
        self._registry = registry
        self._base_directory: Path | None = None
        self._initialized = False
        self._locks: dict[str, _LockEntry] = {}
        self._locks_guard = threading.Lock()

    @classmethod
    def from_settings(cls, settings: StoreSettings) -> FileContextStore:
        """Build a store from ``settings`` and initialize it."""
        store = cls(
            storage_directory_name=settings.storage_directory_name,
            document_extension=settings.document_extension,
        )
        store.initialize(settings.data_folder)
        return store

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def storage_directory_name(self) -> str:
        """Name of the storage sub-directory, applied by ``initialize``."""
        return self._storage_directory_name

    @storage_directory_name.setter
    def storage_directory_name(self, name: str) -> None:
        self._storage_directory_name = name

    @property
    def base_directory(self) -> Path | None:
        """Directory holding the documents; None before ``initialize``."""
        return self._base_directory

    @property
    def document_extension(self) -> str:
        return self._document_extension

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _directory(self) -> Path:
        if self._base_directory is None:
            raise StorageFailure(
                "FileContextStore has no storage directory; call initialize() first",
                kind=FailureKind.UNINITIALIZED,
            )
        return self._base_directory

    def _path_for(self, context: str) -> Path:
        validate_context(context)
        return self._directory() / f"{context}{self._document_extension}"

    @contextmanager
    def _locked(self, context: str) -> Iterator[None]:
        """Hold the lock of ``context`` for the duration of the block.

        Lock entries are reference counted and dropped once no caller
        holds or waits on them, so the table only contains contexts that
        are in use.
        """
        with self._locks_guard:
            entry = self._locks.get(context)
            if entry is None:
                entry = _LockEntry()
                self._locks[context] = entry
            entry.users += 1
        try:
            with entry.lock:
                yield
        finally:
            with self._locks_guard:
                entry.users -= 1
                if entry.users == 0:
                    del self._locks[context]

    def _read_document(self, path: Path) -> ContextDocument | None:
        """Return the parsed document at ``path`` or None if it is absent."""
        try:
            raw = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except UnicodeDecodeError as exc:
            raise StorageFailure(
                f"Document {path} is not valid UTF-8",
                cause=exc,
                kind=FailureKind.ENCODING,
            ) from exc
        except OSError as exc:
            raise StorageFailure(
                f"Could not read {path}", cause=exc, kind=FailureKind.IO
            ) from exc
        try:
            return ContextDocument.from_yaml(raw)
        except (yaml.YAMLError, ValueError) as exc:
            raise StorageFailure(
                f"Malformed document {path}", cause=exc, kind=FailureKind.ENCODING
            ) from exc

    def _write_document(self, path: Path, document: ContextDocument) -> None:
        try:
            text = document.to_yaml()
        except yaml.YAMLError as exc:
            raise StorageFailure(
                f"Could not encode {path}", cause=exc, kind=FailureKind.ENCODING
            ) from exc
        tmp = path.with_name(f".{path.name}.tmp")
        try:
            tmp.write_text(text, encoding="utf-8")
            os.replace(tmp, path)
        except OSError as exc:
            raise StorageFailure(
                f"Could not write {path}", cause=exc, kind=FailureKind.IO
            ) from exc

    def _lookup(self, context: str, key: str) -> Any:
        document = self._read_document(self._path_for(context))
        if document is None:
            return None
        try:
            return document.get(key)
        except ValueError as exc:
            raise StorageFailure(str(exc), cause=exc, kind=FailureKind.ENCODING) from exc

    # ------------------------------------------------------------------
    # StorageBackend interface
    # ------------------------------------------------------------------

    def initialize(self, data_folder: DataFolder) -> None:
        """Create ``<data_folder>/<storage_directory_name>`` if needed."""
        try:
            base_directory = Path(resolve_data_folder(data_folder)) / self._storage_directory_name
            base_directory.mkdir(parents=True, exist_ok=True)
        except StorageFailure:
            raise
        except (OSError, TypeError) as exc:
            raise StorageFailure(
                f"Could not prepare storage directory under {data_folder!r}",
                cause=exc,
                kind=FailureKind.IO,
            ) from exc
        self._base_directory = base_directory
        self._initialized = True
        logger.debug("FileContextStore: initialized at %s", base_directory)

    def save(self, context: str, key: str, value: Any) -> None:
        """Read the context's document, set ``key``, and write it back."""
        self._require_initialized()
        path = self._path_for(context)
        encoded = encode_value(value, self._registry)
        with self._locked(context):
            document = self._read_document(path)
            if document is None:
                document = ContextDocument()
            try:
                document.set(key, encoded)
            except ValueError as exc:
                raise StorageFailure(
                    str(exc), cause=exc, kind=FailureKind.ENCODING
                ) from exc
            self._write_document(path, document)
        logger.debug("FileContextStore: saved %r in context %r", key, context)

    def load(self, context: str, key: str) -> Any:
        self._require_initialized()
        validate_context(context)
        with self._locked(context):
            data = self._lookup(context, key)
        return decode_value(data, self._registry)

    def exists(self, context: str, key: str) -> bool:
        self._require_initialized()
        validate_context(context)
        with self._locked(context):
            return self._lookup(context, key) is not None

    def delete(self, context: str) -> None:
        """Remove the context's document, ignoring a missing file."""
        self._require_initialized()
        path = self._path_for(context)
        with self._locked(context):
            try:
                path.unlink()
            except FileNotFoundError:
                return
            except OSError as exc:
                raise StorageFailure(
                    f"Could not delete {path}", cause=exc, kind=FailureKind.IO
                ) from exc
        logger.debug("FileContextStore: deleted context %r", context)

    def delete_key(self, context: str, key: str) -> None:
        """Unset ``key`` and rewrite the document; no-op if the file is absent."""
        self._require_initialized()
        path = self._path_for(context)
        with self._locked(context):
            document = self._read_document(path)
            if document is None:
                return
            try:
                document.set(key, None)
            except ValueError as exc:
                raise StorageFailure(
                    str(exc), cause=exc, kind=FailureKind.ENCODING
                ) from exc
            self._write_document(path, document)
        logger.debug("FileContextStore: deleted %r from context %r", key, context)

    def list_contexts(self) -> set[str]:
        """Return context identifiers derived from document file names."""
        self._require_initialized()
        directory = self._directory()
        extension = self._document_extension
        try:
            return {
                path.name[: -len(extension)]
                for path in directory.iterdir()
                if path.name.endswith(extension)
                and len(path.name) > len(extension)
                and path.is_file()
            }
        except FileNotFoundError:
            return set()
        except OSError as exc:
            raise StorageFailure(
                f"Could not list {directory}", cause=exc, kind=FailureKind.IO
            ) from exc

    def list_keys(self, context: str) -> set[str]:
        self._require_initialized()
        path = self._path_for(context)
        with self._locked(context):
            document = self._read_document(path)
        if document is None:
            return set()
        return document.keys()

    def __repr__(self) -> str:
        location = str(self._base_directory) if self._base_directory else None
        return (
            f"FileContextStore(base_directory={location!r}, "
            f"initialized={self._initialized})"
        )
