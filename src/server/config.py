"""Settings for the local UI server: bind address and optional web UI entry page."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional


class ServerConfigurationError(Exception):
    """Raised when UI server configuration is invalid."""


WEBSOCKET_PATH = "/ws"
ROOT_PATH = "/"
INDEX_PATH = "/index.html"
HEALTHZ_PATH = "/healthz"

_PORT_RANGE = range(1, 65536)


def _check_index_file(raw_path: str) -> None:
    path = Path(raw_path)
    if not path.exists():
        raise ServerConfigurationError(f"UI index file not found: {path}")
    if not path.is_file():
        raise ServerConfigurationError(f"UI index path is not a file: {path}")


@dataclass(frozen=True)
class UIServerConfig:
    """Bind address plus the page served at `/`.

    Leaving `index_file` empty serves a small built-in page instead; the
    websocket and `/healthz` endpoints are always available. The index file is
    only checked when the server is enabled.
    """
    enabled: bool = True
    host: str = "127.0.0.1"
    port: int = 8765
    index_file: str = ""

    def __post_init__(self) -> None:
        if not self.host.strip():
            raise ServerConfigurationError("ui_server.host cannot be empty")
        if self.port not in _PORT_RANGE:
            raise ServerConfigurationError(
                f"ui_server.port must be in [1, 65535], got: {self.port}"
            )
        if self.enabled and self.index_file:
            _check_index_file(self.index_file)

    @property
    def websocket_path(self) -> str:
        return WEBSOCKET_PATH

    @property
    def index_path(self) -> Optional[Path]:
        return Path(self.index_file) if self.index_file else None

    @classmethod
    def from_settings(cls, settings) -> "UIServerConfig":
        return cls(
            enabled=bool(settings.enabled),
            host=settings.host.strip(),
            port=settings.port,
            index_file=(settings.index_file or "").strip(),
        )
