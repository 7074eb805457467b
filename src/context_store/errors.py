"""Error types surfaced across the storage contract.

Every failure inside a backend is normalised into a single
``StorageFailure``.  The ``kind`` attribute tells callers which class of
problem occurred without forcing them to catch backend-specific errors.

Classes
-------
- FailureKind     — enum of failure categories
- StorageFailure  — the one exception raised by every backend operation
"""
from __future__ import annotations

from enum import Enum


class FailureKind(str, Enum):
    """Categories of storage failure."""

    UNINITIALIZED = "uninitialized"
    IO = "io"
    ENCODING = "encoding"
    INVALID_CONTEXT = "invalid_context"


class StorageFailure(Exception):
    """Raised when a storage operation cannot be completed.

    Parameters
    ----------
    message:
        Human-readable description.  When omitted, the string form of
        ``cause`` is used.
    cause:
        The underlying exception, if any.  Also available as
        ``__cause__`` when raised with ``raise ... from``.
    kind:
        The failure category.  Defaults to ``FailureKind.IO``.
    """

    def __init__(
        self,
        message: str | None = None,
        cause: BaseException | None = None,
        kind: FailureKind = FailureKind.IO,
    ) -> None:
        self.message = message
        self.cause = cause
        self.kind = kind
        if message is None and cause is not None:
            message = f"{type(cause).__name__}: {cause}"
        super().__init__(message or "storage failure")

    def __repr__(self) -> str:
        return f"StorageFailure(kind={self.kind.value!r}, message={str(self)!r})"
