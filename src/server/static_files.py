"""Static asset lookup for the timer UI directory."""

from __future__ import annotations

import mimetypes
from pathlib import Path
from typing import Optional

_TEXT_TYPES = frozenset({"application/javascript", "application/json", "image/svg+xml"})


def resolve_static_file(ui_root: Path, request_path: str) -> Optional[Path]:
    """Map a request path onto a file under ``ui_root``.

    Returns ``None`` for the root path, dotfiles, anything escaping the
    root, and anything that is not a regular file.
    """
    root = ui_root.resolve()
    relative = (request_path or "").lstrip("/")
    if not relative:
        return None
    if any(part.startswith(".") for part in Path(relative).parts):
        return None

    candidate = (root / relative).resolve()
    if root not in candidate.parents or not candidate.is_file():
        return None
    return candidate


def guess_content_type(path: Path) -> str:
    mime_type, _ = mimetypes.guess_type(path.name)
    if not mime_type:
        return "application/octet-stream"
    if mime_type.startswith("text/") or mime_type in _TEXT_TYPES:
        return f"{mime_type}; charset=utf-8"
    return mime_type
