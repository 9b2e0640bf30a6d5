"""Uniform file handlers for remote stores, with FTP as the primary protocol."""

from filehandler._config import FtpSettings, HandlerConfig, LocalSettings, RegistryConfig
from filehandler._errors import (
    AlreadyExists,
    ErrorKind,
    FileHandlerError,
    InvalidArgument,
    InvalidConfig,
    MissingField,
    NotFound,
    Timeout,
    TransportFailure,
    Unauthorized,
)
from filehandler._handler import FileHandler
from filehandler._location import Location, resolve
from filehandler._mime import guess_mime_type
from filehandler._models import FileDescriptor, ListingPage
from filehandler._registry import Registry, register_handler
from filehandler.handlers import FTPHandler, HostKeyPolicy, LocalHandler, SFTPHandler, SftpSettings

__version__ = "0.1.0"

__all__ = [
    # Core
    "FileHandler",
    "Registry",
    "register_handler",
    # Handlers
    "FTPHandler",
    "LocalHandler",
    "SFTPHandler",
    "HostKeyPolicy",
    # Paths & Models
    "Location",
    "resolve",
    "FileDescriptor",
    "ListingPage",
    "guess_mime_type",
    # Config
    "FtpSettings",
    "LocalSettings",
    "SftpSettings",
    "HandlerConfig",
    "RegistryConfig",
    # Errors
    "ErrorKind",
    "FileHandlerError",
    "InvalidConfig",
    "MissingField",
    "InvalidArgument",
    "NotFound",
    "AlreadyExists",
    "Unauthorized",
    "Timeout",
    "TransportFailure",
    # Version
    "__version__",
]
