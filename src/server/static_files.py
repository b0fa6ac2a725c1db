"""Static web UI assets served next to the websocket endpoint."""

from __future__ import annotations

import mimetypes
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .config import INDEX_PATH, ROOT_PATH

_TEXT_APPLICATION_TYPES = {
    "application/javascript",
    "application/json",
    "application/xml",
}

FALLBACK_INDEX_HTML = (
    b"<!doctype html><title>Flow Timer</title>"
    b"<p>Flow timer is running. Connect a client to the <code>/ws</code> websocket.</p>\n"
)


@dataclass(frozen=True)
class StaticAsset:
    body: bytes
    content_type: str


def resolve_static_file(ui_root: Path, request_path: str) -> Optional[Path]:
    """Resolve `request_path` to a file inside `ui_root`, refusing traversal."""
    relative = (request_path or "").lstrip("/")
    if not relative:
        return None

    root = ui_root.resolve()
    candidate = (root / relative).resolve()
    if root not in candidate.parents or not candidate.is_file():
        return None
    return candidate


def guess_content_type(path: Path) -> str:
    mime_type, _ = mimetypes.guess_type(str(path))
    if not mime_type:
        return "application/octet-stream"
    if mime_type.startswith("text/") or mime_type in _TEXT_APPLICATION_TYPES:
        return f"{mime_type}; charset=utf-8"
    return mime_type


class StaticSite:
    """Index page plus sibling assets; without an index file a placeholder page is served."""

    def __init__(self, index_file: Optional[Path]):
        self._index_file = index_file
        self._index = StaticAsset(
            body=index_file.read_bytes() if index_file is not None else FALLBACK_INDEX_HTML,
            content_type="text/html; charset=utf-8",
        )

    def lookup(self, request_path: str) -> Optional[StaticAsset]:
        if request_path in (ROOT_PATH, INDEX_PATH):
            return self._index
        if self._index_file is None:
            return None

        path = resolve_static_file(self._index_file.parent, request_path)
        if path is None:
            return None
        return StaticAsset(body=path.read_bytes(), content_type=guess_content_type(path))
