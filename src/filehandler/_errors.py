"""Normalized error hierarchy for filehandler."""

from __future__ import annotations

import enum
from typing import ClassVar, Optional


class ErrorKind(enum.Enum):
    """Stable, protocol-independent classification of a failure."""

    INVALID_CONFIG = "invalid_config"
    MISSING_FIELD = "missing_field"
    INVALID_ARGUMENT = "invalid_argument"
    NOT_FOUND = "not_found"
    ALREADY_EXISTS = "already_exists"
    UNAUTHORIZED = "unauthorized"
    TIMEOUT = "timeout"
    TRANSPORT_FAILURE = "transport_failure"


class FileHandlerError(Exception):
    """Base class for all filehandler errors.

    :param message: Human-readable error description.
    :param path: The path involved in the error, if any.
    :param backend: The handler name involved, if any.
    """

    kind: ClassVar[ErrorKind] = ErrorKind.TRANSPORT_FAILURE

    def __init__(self, message: str = "", *, path: Optional[str] = None, backend: Optional[str] = None) -> None:
        self.path = path
        self.backend = backend
        super().__init__(message)

    def __str__(self) -> str:
        parts = [super().__str__()]
        if self.path is not None:
            parts.append(f"path={self.path!r}")
        if self.backend is not None:
            parts.append(f"backend={self.backend!r}")
        return " | ".join(parts) if len(parts) > 1 else parts[0]

    def __repr__(self) -> str:
        cls = type(self).__name__
        args = [repr(super().__str__())]
        if self.path is not None:
            args.append(f"path={self.path!r}")
        if self.backend is not None:
            args.append(f"backend={self.backend!r}")
        return f"{cls}({', '.join(args)})"


class InvalidConfig(FileHandlerError):
    """Raised when settings are of the wrong type, malformed, or not loaded."""

    kind = ErrorKind.INVALID_CONFIG


class MissingField(InvalidConfig):
    """Raised when a required settings field is blank.

    :param field: Name of the missing field.
    """

    kind = ErrorKind.MISSING_FIELD

    def __init__(
        self,
        message: str = "",
        *,
        path: Optional[str] = None,
        backend: Optional[str] = None,
        field: str = "",
    ) -> None:
        self.field = field
        super().__init__(message, path=path, backend=backend)


class InvalidArgument(FileHandlerError):
    """Raised when a caller supplies a required value as blank or absent."""

    kind = ErrorKind.INVALID_ARGUMENT


class NotFound(FileHandlerError):
    """Raised when a file or directory does not exist."""

    kind = ErrorKind.NOT_FOUND


class AlreadyExists(FileHandlerError):
    """Raised when a target already exists."""

    kind = ErrorKind.ALREADY_EXISTS


class Unauthorized(FileHandlerError):
    """Raised when the server rejects the credentials."""

    kind = ErrorKind.UNAUTHORIZED


class Timeout(FileHandlerError):
    """Raised when the transport gives up waiting for the server."""

    kind = ErrorKind.TIMEOUT


class TransportFailure(FileHandlerError):
    """Catch-all for failed exchanges. The original error is chained as ``__cause__``."""

    kind = ErrorKind.TRANSPORT_FAILURE


_ERRORS_BY_KIND: dict[ErrorKind, type[FileHandlerError]] = {
    cls.kind: cls
    for cls in (
        InvalidConfig,
        MissingField,
        InvalidArgument,
        NotFound,
        AlreadyExists,
        Unauthorized,
        Timeout,
        TransportFailure,
    )
}


def error_for(kind: ErrorKind) -> type[FileHandlerError]:
    """Return the exception class raised for ``kind``."""
    return _ERRORS_BY_KIND[kind]
