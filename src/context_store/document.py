"""In-memory form of one context's YAML document.

Keys are dotted paths: ``"spawn.world"`` addresses the ``world`` entry of
the ``spawn`` mapping.  Setting a path to ``None`` unsets it.  The
document holds plain data only; turning values into plain data (and back)
is the job of :mod:`context_store.values`.

Classes
-------
- ContextDocument  — dotted-path mapping with YAML load/dump
"""
from __future__ import annotations

import copy
from typing import Any

import yaml

PATH_SEPARATOR: str = "."


def _split_path(path: str) -> list[str]:
    parts = path.split(PATH_SEPARATOR)
    if not path or any(part == "" for part in parts):
        raise ValueError(f"Invalid key path {path!r}")
    return parts


def _normalise_keys(data: Any) -> Any:
    if isinstance(data, dict):
        return {str(key): _normalise_keys(value) for key, value in data.items()}
    if isinstance(data, list):
        return [_normalise_keys(item) for item in data]
    return data


class ContextDocument:
    """A nested mapping addressed by dotted key paths.

    Parameters
    ----------
    data:
        Optional initial mapping.  It is deep-copied.
    """

    def __init__(self, data: dict[str, Any] | None = None) -> None:
        self._data: dict[str, Any] = copy.deepcopy(data) if data else {}

    # ------------------------------------------------------------------
    # Path access
    # ------------------------------------------------------------------

    def get(self, path: str) -> Any:
        """Return the value at ``path`` or None if it is not set."""
        node: Any = self._data
        for part in _split_path(path):
            if not isinstance(node, dict):
                return None
            node = node.get(part)
            if node is None:
                return None
        return node

    def set(self, path: str, value: Any) -> None:
        """Set ``path`` to ``value``; ``None`` removes the entry.

        Missing intermediate mappings are created.  A non-mapping value
        in the way of an intermediate segment is replaced by a mapping.
        Removing the last entry of a nested mapping leaves the (empty)
        mapping in place.
        """
        parts = _split_path(path)
        parent: dict[str, Any] = self._data
        for part in parts[:-1]:
            child = parent.get(part)
            if not isinstance(child, dict):
                if value is None:
                    return
                child = {}
                parent[part] = child
            parent = child

        if value is None:
            parent.pop(parts[-1], None)
        else:
            parent[parts[-1]] = value

    def is_set(self, path: str) -> bool:
        return self.get(path) is not None

    def keys(self) -> set[str]:
        """Return the top-level keys (nested mappings are not flattened)."""
        return set(self._data)

    def to_dict(self) -> dict[str, Any]:
        return copy.deepcopy(self._data)

    # ------------------------------------------------------------------
    # YAML
    # ------------------------------------------------------------------

    def to_yaml(self) -> str:
        """Serialise the document to a YAML string."""
        if not self._data:
            return ""
        return yaml.safe_dump(
            self._data,
            default_flow_style=False,
            allow_unicode=True,
            sort_keys=False,
        )

    @classmethod
    def from_yaml(cls, raw: str) -> ContextDocument:
        """Parse a YAML string into a document.

        An empty string yields an empty document.

        Raises
        ------
        yaml.YAMLError
            If ``raw`` is not valid YAML.
        ValueError
            If the top level of ``raw`` is not a mapping.
        """
        data = yaml.safe_load(raw)
        if data is None:
            return cls()
        if not isinstance(data, dict):
            raise ValueError(
                f"Expected a mapping at the top level, got {type(data).__name__}"
            )
        document = cls()
        document._data = _normalise_keys(data)
        return document

    def __len__(self) -> int:
        return len(self._data)

    def __contains__(self, path: object) -> bool:
        if not isinstance(path, str):
            return False
        try:
            return self.is_set(path)
        except ValueError:
            return False

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ContextDocument):
            return NotImplemented
        return self._data == other._data

    def __repr__(self) -> str:
        return f"ContextDocument(keys={sorted(self._data)!r})"
