"""Type aliases used throughout filehandler."""

from __future__ import annotations

from typing import BinaryIO

UploadContent = BinaryIO | bytes
