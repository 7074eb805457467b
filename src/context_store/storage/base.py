"""Abstract base class for context storage backends.

Storage is a two-level key system: a *context* groups related values and
a *key* addresses one value inside its context.  How the two levels map
onto a concrete medium is up to the backend; the file backend uses one
YAML document per context, a database backend could use one table per
context.

Every operation raises only :class:`~context_store.errors.StorageFailure`.
Missing data is never an error: ``load`` returns None, ``exists``
returns False and the listing operations return empty sets.

Classes
-------
- StorageBackend  — abstract base for all backends

Functions
---------
- validate_context     — reject context identifiers unsafe for use as names
- resolve_data_folder  — accept a path or a host object with ``data_folder``
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from os import PathLike
from typing import Any, Protocol, Union, runtime_checkable

from context_store.errors import FailureKind, StorageFailure

_FORBIDDEN_CONTEXT_CHARS: frozenset[str] = frozenset({"/", "\\", "\x00"})
_RESERVED_CONTEXTS: frozenset[str] = frozenset({".", ".."})


@runtime_checkable
class DataFolderProvider(Protocol):
    """Host application object exposing the directory its data lives in."""

    data_folder: Any


DataFolder = Union[str, PathLike, DataFolderProvider]


def validate_context(context: str) -> str:
    """Return ``context`` unchanged if it is safe to use as a name.

    Raises
    ------
    StorageFailure
        With ``kind=INVALID_CONTEXT`` if ``context`` is empty, is ``.`` or
        ``..``, or contains a path separator or NUL byte.
    """
    if not isinstance(context, str) or not context:
        raise StorageFailure(
            f"Context must be a non-empty string, got {context!r}",
            kind=FailureKind.INVALID_CONTEXT,
        )
    if context in _RESERVED_CONTEXTS or _FORBIDDEN_CONTEXT_CHARS.intersection(context):
        raise StorageFailure(
            f"Context {context!r} is not a valid identifier",
            kind=FailureKind.INVALID_CONTEXT,
        )
    return context


class StorageBackend(ABC):
    """Back-end agnostic store for named values.

    Usage::

        storage = FileContextStore()
        storage.initialize(plugin_data_dir)
        storage.save("players", "alice", 42)
        storage.load("players", "alice")   # -> 42

    ``initialize`` must succeed before any other operation is called;
    until then every operation raises ``StorageFailure`` with
    ``kind=UNINITIALIZED``.

    Values must be representable (see :mod:`context_store.values`).
    """

    _initialized: bool = False

    @property
    def initialized(self) -> bool:
        return self._initialized

    def _require_initialized(self) -> None:
        if not self._initialized:
            raise StorageFailure(
                f"Cannot use {type(self).__name__} without calling initialize() first",
                kind=FailureKind.UNINITIALIZED,
            )

    @abstractmethod
    def initialize(self, data_folder: DataFolder) -> None:
        """Prepare the backend for use.

        Parameters
        ----------
        data_folder:
            The host application's data directory, either as a path or as
            an object with a ``data_folder`` attribute.

        Raises
        ------
        StorageFailure
            If the backend cannot be prepared.
        """

    @abstractmethod
    def save(self, context: str, key: str, value: Any) -> None:
        """Store ``value`` under ``key`` in ``context``.

        The context is created if absent and any previous value for
        ``key`` is overwritten.  Saving ``None`` unsets the key.

        Raises
        ------
        StorageFailure
            On I/O error or if ``value`` is not representable.
        """

    @abstractmethod
    def load(self, context: str, key: str) -> Any:
        """Return the value stored under ``key`` in ``context``.

        Returns
        -------
        Any
            The stored value, or None if the context or key is absent.

        Raises
        ------
        StorageFailure
            On I/O or decoding error.
        """

    @abstractmethod
    def exists(self, context: str, key: str) -> bool:
        """Return True if ``key`` is set in ``context``."""

    @abstractmethod
    def delete(self, context: str) -> None:
        """Remove ``context`` and everything stored in it.

        Deleting a context that does not exist is a no-op.
        """

    @abstractmethod
    def delete_key(self, context: str, key: str) -> None:
        """Unset ``key`` in ``context``, leaving other keys intact.

        A no-op if the context or key does not exist.
        """

    @abstractmethod
    def list_contexts(self) -> set[str]:
        """Return the identifiers of all stored contexts."""

    @abstractmethod
    def list_keys(self, context: str) -> set[str]:
        """Return the top-level keys set in ``context``.

        Returns an empty set if the context does not exist.
        """


def resolve_data_folder(data_folder: DataFolder) -> str | PathLike:
    """Return the directory path carried by ``data_folder``."""
    if isinstance(data_folder, (str, PathLike)):
        return data_folder
    if isinstance(data_folder, DataFolderProvider):
        return data_folder.data_folder
    raise StorageFailure(
        f"Expected a path or an object with a data_folder attribute, got "
        f"{type(data_folder).__name__}",
        kind=FailureKind.IO,
    )
