"""FileHandler abstract base class: the contract shared by every storage handler."""

from __future__ import annotations

import abc
import io
from typing import TYPE_CHECKING, BinaryIO

from filehandler._errors import InvalidArgument

if TYPE_CHECKING:
    from filehandler._models import FileDescriptor, ListingPage
    from filehandler._types import UploadContent


class FileHandler(abc.ABC):
    """Abstract base class for all file handlers.

    Every handler must implement all abstract methods. Handler-native
    exceptions must never leak; they are mapped to ``filehandler`` errors.
    """

    @property
    @abc.abstractmethod
    def name(self) -> str:
        """Unique identifier for this handler type (e.g. ``'ftp'``, ``'local'``)."""

    @abc.abstractmethod
    def can_connect(self) -> bool:
        """Return ``True`` if the store answers a trivial request. Never raises."""

    @abc.abstractmethod
    def load_settings(self, settings: object) -> None:
        """Validate and install connection settings.

        :raises InvalidConfig: If ``settings`` is of the wrong type or malformed.
        :raises MissingField: If a required field is blank.
        """

    @abc.abstractmethod
    def lookup(self, file_name: str, relative_path: str = "") -> FileDescriptor:
        """Get metadata for a file.

        :raises InvalidArgument: If ``file_name`` is blank.
        :raises NotFound: If the file does not exist.
        """

    @abc.abstractmethod
    def list_directory(
        self,
        relative_directory: str = "",
        page_size: int = 100,
        page_token: str | None = None,
    ) -> ListingPage:
        """List the entries of a directory.

        :param relative_directory: Directory to list; blank lists the base location.
        :param page_size: Maximum entries per page, where the store supports paging.
        :param page_token: Continuation token from a previous page.
        """

    @abc.abstractmethod
    def move(self, source_path: str, dest_path: str) -> None:
        """Move/rename a file.

        :raises NotFound: If ``source_path`` does not exist.
        :raises AlreadyExists: If ``dest_path`` already exists.
        """

    @abc.abstractmethod
    def download(self, destination: BinaryIO, relative_file_location: str = "") -> None:
        """Copy the content of a remote file into ``destination``."""

    @abc.abstractmethod
    def upload(self, content: UploadContent, file_name: str, relative_upload_path: str = "") -> None:
        """Store ``content`` as ``relative_upload_path/file_name``.

        Missing directories in ``relative_upload_path`` are created.

        :raises InvalidArgument: If ``content`` is empty or ``file_name`` is blank.
        """

    @abc.abstractmethod
    def create_directory(self, relative_path: str) -> None:
        """Create a directory and any missing parents. Existing ones are left alone.

        :raises InvalidArgument: If ``relative_path`` is blank.
        """

    @abc.abstractmethod
    def path_exists(self, path: str) -> bool:
        """Check if a file or directory exists. Never raises ``NotFound``.

        :raises InvalidArgument: If ``path`` is blank.
        """

    @abc.abstractmethod
    def delete(self, file_name: str) -> None:
        """Delete a file.

        :raises InvalidArgument: If ``file_name`` is blank.
        """

    def close(self) -> None:  # noqa: B027
        """Release resources. Default is a no-op."""

    def __enter__(self) -> FileHandler:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    # region: argument helpers shared by handlers

    def _require(self, value: str | None, what: str) -> str:
        """Return ``value`` or raise if it is blank."""
        if value is None or not value.strip():
            raise InvalidArgument(f"{what} must not be blank.", backend=self.name)
        return value

    @staticmethod
    def _join(directory: str | None, name: str) -> str:
        """Join a possibly blank relative directory and an entry name."""
        if directory is None or not directory.strip():
            return name
        return f"{directory.rstrip('/')}/{name}"

    def _as_stream(self, content: UploadContent | None) -> tuple[BinaryIO, int]:
        """Return a readable stream over ``content`` and its length.

        Seekable streams are measured from their current position without
        being consumed. Other streams are buffered in memory.

        :raises InvalidArgument: If ``content`` is absent or empty.
        """
        if content is None:
            raise InvalidArgument("Content must not be empty.", backend=self.name)
        if isinstance(content, (bytes, bytearray)):
            stream: BinaryIO = io.BytesIO(content)
            length = len(content)
        elif content.seekable():
            start = content.tell()
            length = content.seek(0, io.SEEK_END) - start
            content.seek(start)
            stream = content
        else:
            data = content.read()
            stream = io.BytesIO(data)
            length = len(data)
        if length <= 0:
            raise InvalidArgument("Content must not be empty.", backend=self.name)
        return stream, length

    # endregion
