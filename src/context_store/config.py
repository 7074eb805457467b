"""Store configuration.

Classes
-------
- StoreSettings  — where a FileContextStore keeps its documents
"""
from __future__ import annotations

import os
from pathlib import Path

from pydantic import BaseModel, Field, field_validator

ENV_DATA_DIR: str = "CONTEXT_STORE_DATA_DIR"
ENV_DIRECTORY_NAME: str = "CONTEXT_STORE_DIRECTORY_NAME"

_DEFAULT_DATA_FOLDER: Path = Path.home() / ".context-store"


class StoreSettings(BaseModel):
    """Location settings for a file-backed store.

    Parameters
    ----------
    data_folder:
        The host application's data directory.
    storage_directory_name:
        Sub-directory of ``data_folder`` holding the context documents.
    document_extension:
        File extension of context documents, including the leading dot.
    """

    data_folder: Path = Field(default_factory=lambda: _DEFAULT_DATA_FOLDER)
    storage_directory_name: str = Field(default="storage", min_length=1)
    document_extension: str = ".yml"

    @field_validator("storage_directory_name")
    @classmethod
    def _plain_directory_name(cls, value: str) -> str:
        if "/" in value or "\\" in value or value in {".", ".."}:
            raise ValueError(f"storage_directory_name must be a plain name, got {value!r}")
        return value

    @field_validator("document_extension")
    @classmethod
    def _dotted_extension(cls, value: str) -> str:
        if not value.startswith(".") or len(value) < 2:
            raise ValueError(f"document_extension must start with '.', got {value!r}")
        return value

    @classmethod
    def from_env(cls, **overrides: object) -> StoreSettings:
        """Build settings from ``CONTEXT_STORE_*`` environment variables.

        Keyword arguments that are not None take precedence over the
        environment.
        """
        values: dict[str, object] = {}
        data_dir = os.environ.get(ENV_DATA_DIR)
        if data_dir:
            values["data_folder"] = Path(data_dir)
        directory_name = os.environ.get(ENV_DIRECTORY_NAME)
        if directory_name:
            values["storage_directory_name"] = directory_name
        values.update({key: value for key, value in overrides.items() if value is not None})
        return cls.model_validate(values)
