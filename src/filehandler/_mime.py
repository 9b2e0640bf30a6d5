"""MIME type lookup by file extension."""

from __future__ import annotations

import mimetypes

DEFAULT_MIME_TYPE = "application/octet-stream"


def guess_mime_type(file_name: str) -> str:
    """Return the MIME type registered for the extension of ``file_name``.

    Falls back to ``application/octet-stream`` for unknown or missing extensions.
    """
    mime_type, _ = mimetypes.guess_type(file_name, strict=False)
    return mime_type or DEFAULT_MIME_TYPE
