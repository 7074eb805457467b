"""Representable values and self-describing record types.

A stored value is one of a closed set of variants:

- ``None`` (meaning "unset")
- ``bool``, ``int``, ``float``, ``str``
- ``list`` / ``tuple`` of values (tuples are stored as lists)
- ``dict`` mapping ``str`` to values
- an instance of a type registered with a :class:`RecordRegistry`

Records are encoded as mappings carrying their alias under the reserved
``"=="`` key, so a stored document stays readable and can be decoded
without importing arbitrary classes.

Classes
-------
- RecordType      — one registered alias with its encode/decode pair
- RecordRegistry  — alias <-> type table used when encoding and decoding

Functions
---------
- is_representable  — check whether a value can be stored
- encode_value      — convert a value to plain YAML-safe data
- decode_value      — convert plain data back, rebuilding records
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, TypeVar

from pydantic import BaseModel

from context_store.errors import FailureKind, StorageFailure

RECORD_ALIAS_KEY: str = "=="

_SCALAR_TYPES: tuple[type, ...] = (bool, int, float, str)

_T = TypeVar("_T")


@dataclass(frozen=True)
class RecordType:
    """A registered record type.

    Parameters
    ----------
    alias:
        Stable name written into stored documents.
    cls:
        The Python class instances of which are encoded with ``encode``.
    encode:
        Callable turning an instance into a ``dict[str, Any]`` of
        representable values.
    decode:
        Callable rebuilding an instance from that mapping.
    """

    alias: str
    cls: type
    encode: Callable[[Any], dict[str, Any]]
    decode: Callable[[dict[str, Any]], Any]


class RecordRegistry:
    """Table of record types known to a store.

    Example
    -------
    >>> registry = RecordRegistry()
    >>> @registry.serializable("point")
    ... class Point:
    ...     def __init__(self, x, y):
    ...         self.x, self.y = x, y
    ...     def serialize(self):
    ...         return {"x": self.x, "y": self.y}
    ...     @classmethod
    ...     def deserialize(cls, data):
    ...         return cls(data["x"], data["y"])
    >>> "point" in registry
    True
    """

    def __init__(self) -> None:
        self._by_alias: dict[str, RecordType] = {}
        self._by_class: dict[type, RecordType] = {}

    def register(
        self,
        alias: str,
        cls: type,
        encode: Callable[[Any], dict[str, Any]],
        decode: Callable[[dict[str, Any]], Any],
    ) -> RecordType:
        """Register ``cls`` under ``alias``.

        Raises
        ------
        ValueError
            If ``alias`` is empty or already bound to a different class.
        """
        if not alias:
            raise ValueError("Record alias must be a non-empty string.")
        existing = self._by_alias.get(alias)
        if existing is not None and existing.cls is not cls:
            raise ValueError(
                f"Record alias {alias!r} is already registered for "
                f"{existing.cls.__qualname__}."
            )
        record_type = RecordType(alias=alias, cls=cls, encode=encode, decode=decode)
        self._by_alias[alias] = record_type
        self._by_class[cls] = record_type
        return record_type

    def serializable(self, alias: str | None = None) -> Callable[[type[_T]], type[_T]]:
        """Class decorator registering a class with ``serialize``/``deserialize``.

        The class must define ``serialize(self) -> dict`` and a
        ``deserialize(cls, data)`` classmethod.  ``alias`` defaults to the
        class's qualified name.
        """

        def decorator(cls: type[_T]) -> type[_T]:
            self.register(
                alias or cls.__qualname__,
                cls,
                lambda obj: obj.serialize(),
                cls.deserialize,  # type: ignore[attr-defined]
            )
            return cls

        return decorator

    def register_model(self, alias: str, model_cls: type[BaseModel]) -> RecordType:
        """Register a pydantic model, stored via its JSON-mode dump."""
        return self.register(
            alias,
            model_cls,
            lambda model: model.model_dump(mode="json"),
            model_cls.model_validate,
        )

    def for_value(self, value: object) -> RecordType | None:
        """Return the record type for ``value``, searching its MRO."""
        for klass in type(value).__mro__:
            record_type = self._by_class.get(klass)
            if record_type is not None:
                return record_type
        return None

    def for_alias(self, alias: str) -> RecordType | None:
        return self._by_alias.get(alias)

    def aliases(self) -> set[str]:
        return set(self._by_alias)

    def __contains__(self, alias: object) -> bool:
        return alias in self._by_alias

    def __len__(self) -> int:
        return len(self._by_alias)

    def __repr__(self) -> str:
        return f"RecordRegistry(aliases={sorted(self._by_alias)!r})"


default_registry = RecordRegistry()


def serializable(alias: str | None = None) -> Callable[[type[_T]], type[_T]]:
    """Register a class with the module-level :data:`default_registry`."""
    return default_registry.serializable(alias)


def _plain_scalar(value: Any) -> Any:
    # Subclasses such as str-mixin enums are stored as their base type.
    if isinstance(value, str):
        return str.__str__(value)
    if isinstance(value, bool):
        return bool(value)
    if isinstance(value, int):
        return int(value)
    return float(value)


def is_representable(value: object, registry: RecordRegistry | None = None) -> bool:
    """Return True if ``value`` can be stored by a backend."""
    try:
        encode_value(value, registry)
    except StorageFailure:
        return False
    return True


def encode_value(value: Any, registry: RecordRegistry | None = None) -> Any:
    """Convert ``value`` into plain data suitable for a YAML document.

    Raises
    ------
    StorageFailure
        With ``kind=ENCODING`` if ``value`` (or anything nested in it) is
        not representable.
    """
    registry = registry if registry is not None else default_registry
    return _encode(value, registry, set())


def _encode(value: Any, registry: RecordRegistry, active: set[int]) -> Any:
    if value is None or type(value) in _SCALAR_TYPES:
        return value
    if isinstance(value, _SCALAR_TYPES):
        return _plain_scalar(value)
    # ids of the containers currently being encoded, to reject cycles
    if id(value) in active:
        raise StorageFailure(
            f"Cannot store a self-referencing {type(value).__qualname__}",
            kind=FailureKind.ENCODING,
        )
    active.add(id(value))
    try:
        return _encode_composite(value, registry, active)
    finally:
        active.discard(id(value))


def _encode_composite(value: Any, registry: RecordRegistry, active: set[int]) -> Any:
    if isinstance(value, (list, tuple)):
        return [_encode(item, registry, active) for item in value]
    if isinstance(value, dict):
        encoded: dict[str, Any] = {}
        for key, item in value.items():
            if not isinstance(key, str):
                raise StorageFailure(
                    f"Mapping keys must be strings, got {type(key).__name__}",
                    kind=FailureKind.ENCODING,
                )
            if key == RECORD_ALIAS_KEY:
                raise StorageFailure(
                    f"Mapping key {RECORD_ALIAS_KEY!r} is reserved for records",
                    kind=FailureKind.ENCODING,
                )
            encoded[str.__str__(key)] = _encode(item, registry, active)
        return encoded

    record_type = registry.for_value(value)
    if record_type is None:
        raise StorageFailure(
            f"Values of type {type(value).__qualname__} cannot be stored; "
            "register the type as a record first",
            kind=FailureKind.ENCODING,
        )
    try:
        fields = record_type.encode(value)
    except Exception as exc:
        raise StorageFailure(
            f"Record {record_type.alias!r} failed to encode",
            cause=exc,
            kind=FailureKind.ENCODING,
        ) from exc
    if not isinstance(fields, dict):
        raise StorageFailure(
            f"Record {record_type.alias!r} must encode to a mapping",
            kind=FailureKind.ENCODING,
        )
    encoded_record = _encode_composite(fields, registry, active)
    return {RECORD_ALIAS_KEY: record_type.alias, **encoded_record}


def decode_value(data: Any, registry: RecordRegistry | None = None) -> Any:
    """Rebuild a value previously produced by :func:`encode_value`.

    Raises
    ------
    StorageFailure
        With ``kind=ENCODING`` if a record alias is unknown or its decoder
        fails.
    """
    registry = registry if registry is not None else default_registry
    if isinstance(data, list):
        return [decode_value(item, registry) for item in data]
    if not isinstance(data, dict):
        return data

    fields = {
        str(key): decode_value(item, registry)
        for key, item in data.items()
        if key != RECORD_ALIAS_KEY
    }
    if RECORD_ALIAS_KEY not in data:
        return fields

    alias = data[RECORD_ALIAS_KEY]
    record_type = registry.for_alias(alias)
    if record_type is None:
        raise StorageFailure(
            f"Unknown record alias {alias!r}", kind=FailureKind.ENCODING
        )
    try:
        return record_type.decode(fields)
    except Exception as exc:
        raise StorageFailure(
            f"Record {alias!r} failed to decode",
            cause=exc,
            kind=FailureKind.ENCODING,
        ) from exc
