"""Location: immutable absolute address of a remote entry."""

from __future__ import annotations

import posixpath
from typing import Final
from urllib.parse import quote, unquote, urlsplit, urlunsplit

from filehandler._errors import InvalidArgument, InvalidConfig


class Location:
    """An absolute address: scheme, authority and server path.

    Built from a base URL with :meth:`parse` and extended with :meth:`join`.
    The path is kept unquoted, ready to be sent as a command argument.

    :param scheme: URL scheme, lowercased.
    :param netloc: URL authority (``host[:port]``, possibly with user info).
    :param path: Absolute server path, always starting with ``/``.
    """

    __slots__ = ("_scheme", "_netloc", "_path")
    _scheme: Final[str]  # type: ignore[misc]
    _netloc: Final[str]  # type: ignore[misc]
    _path: Final[str]  # type: ignore[misc]

    def __init__(self, scheme: str, netloc: str, path: str = "/") -> None:
        object.__setattr__(self, "_scheme", scheme.lower())
        object.__setattr__(self, "_netloc", netloc)
        object.__setattr__(self, "_path", path if path.startswith("/") else f"/{path}")

    @classmethod
    def parse(cls, url: str) -> Location:
        """Parse a base URL.

        :raises InvalidConfig: If the URL has no scheme or no host.
        """
        try:
            parts = urlsplit(url.strip())
            host = parts.hostname
            parts.port  # noqa: B018 -- raises ValueError on a malformed port
        except ValueError as exc:
            raise InvalidConfig(f"Malformed URL: {exc}", path=url) from None
        if not parts.scheme or not host:
            raise InvalidConfig("URL must include a scheme and a host", path=url)
        return cls(parts.scheme, parts.netloc, unquote(parts.path) or "/")

    @staticmethod
    def _normalize(relative: str) -> tuple[str, bool]:
        p = relative.replace("\\", "/")
        parts: list[str] = []
        for segment in p.split("/"):
            if segment == "" or segment == ".":
                continue
            if segment == "..":
                raise InvalidArgument("Path contains '..' segment", path=relative)
            parts.append(segment)
        return "/".join(parts), p.endswith("/")

    def join(self, relative: str) -> Location:
        """Append a relative path to this location.

        A blank ``relative`` returns this location unchanged. Otherwise empty
        and ``.`` segments are dropped and a trailing ``/`` is kept.

        :raises InvalidArgument: If ``relative`` contains a ``..`` segment.
        """
        if not relative or not relative.strip():
            return self
        joined, trailing = self._normalize(relative)
        if not joined:
            return self
        path = f"{self._path.rstrip('/')}/{joined}"
        if trailing:
            path += "/"
        return Location(self._scheme, self._netloc, path)

    @property
    def scheme(self) -> str:
        return self._scheme

    @property
    def host(self) -> str:
        return urlsplit(self.url).hostname or ""

    @property
    def port(self) -> int | None:
        return urlsplit(self.url).port

    @property
    def path(self) -> str:
        """Absolute server path."""
        return self._path

    @property
    def url(self) -> str:
        return urlunsplit((self._scheme, self._netloc, quote(self._path), "", ""))

    @property
    def name(self) -> str:
        """Final path segment. Empty when the path ends with ``/``."""
        return self._path.rsplit("/", 1)[-1]

    @property
    def parent(self) -> str:
        """Server path of the directory containing this location."""
        return posixpath.dirname(self._path.rstrip("/")) or "/"

    @property
    def suffix(self) -> str:
        """Extension of the final segment including the dot, or empty string.

        ``archive.`` has no extension; ``.profile`` has the extension ``.profile``.
        """
        name = self.name
        dot = name.rfind(".")
        if dot == -1 or dot == len(name) - 1:
            return ""
        return name[dot:]

    @property
    def looks_like_directory(self) -> bool:
        """Guess whether this location names a directory.

        A final segment without an extension is taken to be a directory. This
        is a naming heuristic, not a server lookup: extensionless files and
        directories with a dot in their name are misclassified. A trailing
        ``/`` always reads as a directory.
        """
        return not self.suffix

    def relative_to(self, other: Location) -> str:
        """Path of this location relative to the directory containing ``other``."""
        return posixpath.relpath(self._path.rstrip("/") or "/", other.parent)

    def __str__(self) -> str:
        return self.url

    def __repr__(self) -> str:
        return f"Location({self.url!r})"

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Location):
            return (self._scheme, self._netloc, self._path) == (other._scheme, other._netloc, other._path)
        return NotImplemented

    def __hash__(self) -> int:
        return hash((self._scheme, self._netloc, self._path))

    def __setattr__(self, name: str, value: object) -> None:
        raise AttributeError(f"Location is immutable: cannot set '{name}'")

    def __delattr__(self, name: str) -> None:
        raise AttributeError(f"Location is immutable: cannot delete '{name}'")


def resolve(base: Location | str, relative: str = "") -> Location:
    """Join ``relative`` onto ``base``.

    :param base: A parsed location or a base URL string.
    :param relative: Relative path; blank returns ``base`` unchanged.
    """
    if isinstance(base, str):
        base = Location.parse(base)
    return base.join(relative)
