"""Persistence backends for user preferences (JSON file and in-memory)."""

from __future__ import annotations

import json
import logging
import os
import threading
from pathlib import Path
from typing import Any, Optional, Protocol

from .config import BACKEND_MEMORY, PreferencesConfig
from .errors import PreferencesStoreError


class PreferencesStoreLike(Protocol):
    """Stores one flat mapping of preference values."""
    def load(self) -> Optional[dict[str, Any]]:
        ...

    def save(self, values: dict[str, Any]) -> None:
        ...

    def clear(self) -> None:
        ...


class InMemoryPreferencesStore:
    def __init__(self, values: Optional[dict[str, Any]] = None):
        self._values = dict(values) if values is not None else None
        self._lock = threading.Lock()

    def load(self) -> Optional[dict[str, Any]]:
        with self._lock:
            return dict(self._values) if self._values is not None else None

    def save(self, values: dict[str, Any]) -> None:
        with self._lock:
            self._values = dict(values)

    def clear(self) -> None:
        with self._lock:
            self._values = None


class JsonPreferencesStore:
    """Preferences kept in a small JSON object on disk.

    Writes go to a sibling temporary file that replaces the target, so a crash
    mid-write leaves the previous file intact. A missing file loads as `None`.
    """

    def __init__(self, path: Path | str, logger: Optional[logging.Logger] = None):
        self._path = Path(path)
        self._logger = logger or logging.getLogger("preferences")
        self._lock = threading.Lock()

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> Optional[dict[str, Any]]:
        with self._lock:
            try:
                with open(self._path, encoding="utf-8") as handle:
                    values = json.load(handle)
            except FileNotFoundError:
                return None
            except (OSError, ValueError) as error:
                raise PreferencesStoreError(
                    f"Failed to read preferences {self._path}: {error}"
                ) from error

        if not isinstance(values, dict):
            raise PreferencesStoreError(
                f"Preferences file {self._path} must contain a JSON object"
            )
        return values

    def save(self, values: dict[str, Any]) -> None:
        temp_path = self._path.with_name(self._path.name + ".tmp")
        with self._lock:
            try:
                self._path.parent.mkdir(parents=True, exist_ok=True)
                with open(temp_path, "w", encoding="utf-8") as handle:
                    json.dump(values, handle, indent=2, sort_keys=True)
                os.replace(temp_path, self._path)
            except OSError as error:
                raise PreferencesStoreError(
                    f"Failed to write preferences {self._path}: {error}"
                ) from error
        self._logger.debug("Preferences saved to %s", self._path)

    def clear(self) -> None:
        with self._lock:
            try:
                self._path.unlink(missing_ok=True)
            except OSError as error:
                raise PreferencesStoreError(
                    f"Failed to remove preferences {self._path}: {error}"
                ) from error


def build_preferences_store(
    config: PreferencesConfig,
    *,
    logger: Optional[logging.Logger] = None,
) -> PreferencesStoreLike:
    if config.backend == BACKEND_MEMORY:
        return InMemoryPreferencesStore()
    return JsonPreferencesStore(config.path, logger=logger)
