"""Immutable descriptor and listing models."""

from __future__ import annotations

import dataclasses
from typing import TYPE_CHECKING

from filehandler._errors import InvalidArgument

if TYPE_CHECKING:
    from collections.abc import Iterator
    from datetime import datetime


@dataclasses.dataclass(frozen=True)
class FileDescriptor:
    """Immutable snapshot of one remote file or directory entry.

    :param name: Entry name. Never ``.`` or ``..``.
    :param size: Size in bytes (``0`` when the source does not report it).
    :param created_at: Timestamp reported by the server, if any.
    :param mime_type: MIME type inferred from the name, if looked up.
    :param raw: The listing line the entry was parsed from, kept for diagnostics.
    """

    name: str
    size: int = 0
    created_at: datetime | None = None
    mime_type: str | None = None
    raw: str | None = None

    def __post_init__(self) -> None:
        if self.name in (".", ".."):
            raise InvalidArgument(f"Descriptor name must not be {self.name!r}", path=self.name)


@dataclasses.dataclass(frozen=True)
class ListingPage:
    """One page of a directory listing.

    :param files: Entries in the order the server returned them.
    :param next_page_token: Continuation token; ``None`` when the listing is complete.
    """

    files: tuple[FileDescriptor, ...] = ()
    next_page_token: str | None = None

    @property
    def names(self) -> list[str]:
        return [f.name for f in self.files]

    def __iter__(self) -> Iterator[FileDescriptor]:
        return iter(self.files)

    def __len__(self) -> int:
        return len(self.files)
