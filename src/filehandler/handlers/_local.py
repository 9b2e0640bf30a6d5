"""Local filesystem handler: stdlib-only reference implementation."""

from __future__ import annotations

import shutil
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING, BinaryIO

from filehandler._config import LocalSettings
from filehandler._errors import (
    AlreadyExists,
    FileHandlerError,
    InvalidArgument,
    InvalidConfig,
    NotFound,
    TransportFailure,
    Unauthorized,
)
from filehandler._handler import FileHandler
from filehandler._mime import guess_mime_type
from filehandler._models import FileDescriptor, ListingPage

if TYPE_CHECKING:
    from collections.abc import Iterator

    from filehandler._types import UploadContent

_CHUNK_SIZE = 65536


class LocalHandler(FileHandler):
    """File handler over a local directory tree.

    :param root: Directory all relative paths resolve against. Created if missing.
    """

    def __init__(self, root: str | None = None) -> None:
        self._root: Path | None = None
        if root is not None:
            self.load_settings(LocalSettings(root=root))

    @property
    def name(self) -> str:
        return "local"

    def load_settings(self, settings: object) -> None:
        if not isinstance(settings, LocalSettings):
            raise InvalidConfig("Invalid settings.", backend=self.name)
        settings.validate()
        root = Path(settings.root).resolve()
        root.mkdir(parents=True, exist_ok=True)
        self._root = root

    # region: path safety
    def _resolve(self, path: str = "") -> Path:
        """Resolve a relative path to an absolute path within root.

        ``.resolve()`` follows symlinks, and ``relative_to(root)`` then
        rejects any path that escapes the root, symlinks included.

        :raises InvalidArgument: If the resolved path escapes the root.
        """
        if self._root is None:
            raise InvalidConfig("Settings have not been loaded.", backend=self.name)
        resolved = (self._root / path.replace("\\", "/").lstrip("/")).resolve()
        try:
            resolved.relative_to(self._root)
        except ValueError:
            raise InvalidArgument(f"Path escapes root directory: {path}", path=path, backend=self.name) from None
        return resolved

    @contextmanager
    def _errors(self, path: str = "") -> Iterator[None]:
        """Map OS exceptions to filehandler errors."""
        try:
            yield
        except FileHandlerError:
            raise
        except FileNotFoundError:
            raise NotFound(f"Not found: {path}", path=path, backend=self.name) from None
        except PermissionError:
            raise Unauthorized(f"Permission denied: {path}", path=path, backend=self.name) from None
        except OSError as exc:
            raise TransportFailure(str(exc), path=path, backend=self.name) from exc

    # endregion

    def can_connect(self) -> bool:
        return self._root is not None and self._root.is_dir()

    def path_exists(self, path: str) -> bool:
        self._require(path, "Path")
        return self._resolve(path).exists()

    def list_directory(
        self,
        relative_directory: str = "",
        page_size: int = 100,
        page_token: str | None = None,
    ) -> ListingPage:
        full = self._resolve(relative_directory)
        with self._errors(relative_directory):
            entries = sorted(full.iterdir(), key=lambda p: p.name)
            files = [
                FileDescriptor(
                    name=item.name,
                    size=item.stat().st_size if item.is_file() else 0,
                    created_at=datetime.fromtimestamp(item.stat().st_mtime, tz=timezone.utc),
                    mime_type=guess_mime_type(item.name) if item.is_file() else None,
                )
                for item in entries
            ]
        return ListingPage(files=tuple(files))

    def lookup(self, file_name: str, relative_path: str = "") -> FileDescriptor:
        self._require(file_name, "File name")
        full = self._resolve(self._join(relative_path, file_name))
        if not full.is_file():
            raise NotFound("File not found.", path=file_name, backend=self.name)
        with self._errors(file_name):
            st = full.stat()
        return FileDescriptor(
            name=file_name,
            size=st.st_size,
            created_at=datetime.fromtimestamp(st.st_mtime, tz=timezone.utc),
            mime_type=guess_mime_type(file_name),
        )

    def download(self, destination: BinaryIO, relative_file_location: str = "") -> None:
        full = self._resolve(relative_file_location)
        with self._errors(relative_file_location):
            if not full.is_file():
                raise NotFound("File not found.", path=relative_file_location, backend=self.name)
            with full.open("rb") as src:
                shutil.copyfileobj(src, destination, _CHUNK_SIZE)

    def upload(self, content: UploadContent, file_name: str, relative_upload_path: str = "") -> None:
        stream, _ = self._as_stream(content)
        self._require(file_name, "File name")
        full = self._resolve(self._join(relative_upload_path, file_name))
        with self._errors(file_name):
            full.parent.mkdir(parents=True, exist_ok=True)
            with full.open("wb") as dst:
                shutil.copyfileobj(stream, dst, _CHUNK_SIZE)

    def create_directory(self, relative_path: str) -> None:
        self._require(relative_path, "Relative path")
        full = self._resolve(relative_path)
        with self._errors(relative_path):
            full.mkdir(parents=True, exist_ok=True)

    def move(self, source_path: str, dest_path: str) -> None:
        self._require(source_path, "Source path")
        self._require(dest_path, "Destination path")
        src_full = self._resolve(source_path)
        dst_full = self._resolve(dest_path)
        if not src_full.exists():
            raise NotFound("File not found.", path=source_path, backend=self.name)
        if dst_full.exists():
            raise AlreadyExists("Destination already exists.", path=dest_path, backend=self.name)
        with self._errors(source_path):
            shutil.move(str(src_full), str(dst_full))

    def delete(self, file_name: str) -> None:
        self._require(file_name, "File name")
        full = self._resolve(file_name)
        with self._errors(file_name):
            full.unlink()
