"""Save and load single objects to streams and files.

These helpers are stateless: the serialization format is supplied by the
caller as a :class:`Codec`.  Two codecs are provided:

- :class:`PickleCodec` for arbitrary picklable objects
- :class:`YamlCodec` for representable values and registered records

When a stream names a type the reader cannot resolve, the load helpers
return None instead of raising.

Functions
---------
- save_to_stream / load_from_stream
- save_to_file / load_from_file
"""
from __future__ import annotations

import pickle
from pathlib import Path
from typing import IO, Any, Protocol

import yaml

from context_store.errors import StorageFailure
from context_store.values import RecordRegistry, decode_value, encode_value


class UnknownTypeError(Exception):
    """Raised by a codec when stored data names a type it cannot resolve."""


class Codec(Protocol):
    """Serialization format used by the stream helpers."""

    def dump(self, obj: Any, stream: IO[bytes]) -> None: ...

    def load(self, stream: IO[bytes]) -> Any: ...


class PickleCodec:
    """Pickle-based codec.

    Only load data from trusted sources: unpickling can run arbitrary code.
    """

    def __init__(self, protocol: int = pickle.HIGHEST_PROTOCOL) -> None:
        self.protocol = protocol

    def dump(self, obj: Any, stream: IO[bytes]) -> None:
        pickle.dump(obj, stream, protocol=self.protocol)

    def load(self, stream: IO[bytes]) -> Any:
        try:
            return pickle.load(stream)
        except (AttributeError, ModuleNotFoundError) as exc:
            raise UnknownTypeError(str(exc)) from exc


class YamlCodec:
    """YAML codec restricted to representable values.

    Parameters
    ----------
    registry:
        Record registry used to encode and decode record values.
    """

    def __init__(self, registry: RecordRegistry | None = None) -> None:
        self.registry = registry

    def dump(self, obj: Any, stream: IO[bytes]) -> None:
        text = yaml.safe_dump(
            encode_value(obj, self.registry),
            default_flow_style=False,
            allow_unicode=True,
            sort_keys=False,
        )
        stream.write(text.encode("utf-8"))

    def load(self, stream: IO[bytes]) -> Any:
        data = yaml.safe_load(stream)
        try:
            return decode_value(data, self.registry)
        except StorageFailure as exc:
            raise UnknownTypeError(str(exc)) from exc


def save_to_stream(obj: Any, stream: IO[bytes], codec: Codec) -> None:
    """Write ``obj`` to ``stream`` with ``codec``, then close the stream."""
    try:
        codec.dump(obj, stream)
        stream.flush()
    finally:
        stream.close()


def load_from_stream(stream: IO[bytes], codec: Codec) -> Any:
    """Read one object from ``stream`` with ``codec``, then close the stream.

    Returns
    -------
    Any
        The loaded object, or None if the stream names an unknown type.
    """
    try:
        return codec.load(stream)
    except UnknownTypeError:
        return None
    finally:
        stream.close()


def save_to_file(obj: Any, path: str | Path, codec: Codec) -> None:
    save_to_stream(obj, open(path, "wb"), codec)


def load_from_file(path: str | Path, codec: Codec) -> Any:
    return load_from_stream(open(path, "rb"), codec)
