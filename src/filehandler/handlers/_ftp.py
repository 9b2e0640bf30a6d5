"""FTP handler built on :mod:`ftplib`.

Every exchange opens its own control connection and closes it before
returning. Nothing is pooled, cached, or retried.
"""

from __future__ import annotations

import ftplib
import logging
import posixpath
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import TYPE_CHECKING, BinaryIO, NoReturn

from filehandler._config import FtpSettings
from filehandler._errors import (
    AlreadyExists,
    ErrorKind,
    FileHandlerError,
    InvalidConfig,
    NotFound,
    error_for,
)
from filehandler._handler import FileHandler
from filehandler._location import Location
from filehandler._mime import guess_mime_type
from filehandler._models import FileDescriptor, ListingPage

if TYPE_CHECKING:
    from collections.abc import Iterator

    from filehandler._types import UploadContent

log = logging.getLogger(__name__)

# socket.timeout is TimeoutError, itself an OSError. ftplib decodes replies
# and listings strictly, so a foreign file name raises UnicodeDecodeError.
TRANSPORT_ERRORS = (ftplib.Error, OSError, EOFError, UnicodeDecodeError)

# Reply code for "530 Not logged in."
_NOT_LOGGED_IN = "530"

_DEFAULT_TIMEOUT = 30.0
_BLOCK_SIZE = 8192

_MESSAGES = {
    ErrorKind.UNAUTHORIZED: "Unauthorized: invalid credentials.",
    ErrorKind.TIMEOUT: "Connection to the FTP server timed out.",
    ErrorKind.TRANSPORT_FAILURE: "FTP exchange failed",
}


# region: error classification


def classify(exc: BaseException) -> ErrorKind:
    """Map a failed exchange to a domain error kind.

    Credential rejection is detected from the ``530`` reply code. Server
    replies often echo the path, so for :class:`ftplib.Error` only the
    leading code is compared. Other errors carry no reply code and fall
    back to looking for ``530`` anywhere in their text.
    """
    if isinstance(exc, FileHandlerError):
        return exc.kind
    if isinstance(exc, TimeoutError):
        return ErrorKind.TIMEOUT
    text = str(exc)
    if isinstance(exc, ftplib.Error):
        rejected = text[:3] == _NOT_LOGGED_IN
    else:
        rejected = _NOT_LOGGED_IN in text
    if rejected:
        return ErrorKind.UNAUTHORIZED
    return ErrorKind.TRANSPORT_FAILURE


# endregion

# region: listing parser


def parse_listing_line(line: str) -> FileDescriptor | None:
    """Parse one ``LIST`` line into a descriptor.

    The entry name is the last whitespace-delimited token, which fits the
    common Unix ``ls -l`` layout but truncates names containing spaces.
    Returns ``None`` for blank lines and for ``.`` / ``..``.
    """
    tokens = line.split()
    if not tokens:
        return None
    name = tokens[-1].rstrip("/")
    if name in ("", ".", ".."):
        return None
    return FileDescriptor(name=name, raw=line)


def parse_mdtm(reply: str) -> datetime:
    """Parse an ``MDTM`` reply (``213 YYYYMMDDHHMMSS[.sss]``) as a UTC timestamp."""
    stamp = reply[4:].strip() if reply[:3] == "213" else reply.strip()
    return datetime.strptime(stamp[:14], "%Y%m%d%H%M%S").replace(tzinfo=timezone.utc)


# endregion


class FTPHandler(FileHandler):
    """File handler for a store reachable over plain FTP.

    Settings can be passed to the constructor as keyword options or
    installed later with :meth:`load_settings`.

    :param url: Base URL (``ftp://host[:port][/path]``).
    :param user: Login name.
    :param password: Login password.
    :param timeout: Socket timeout in seconds for connect and each reply.
    :param encoding: Encoding of the control connection.
    """

    def __init__(
        self,
        url: str | None = None,
        *,
        user: str | None = None,
        password: str | None = None,
        timeout: float = _DEFAULT_TIMEOUT,
        encoding: str = "utf-8",
    ) -> None:
        self._timeout = timeout
        self._encoding = encoding
        self._settings: FtpSettings | None = None
        self._base: Location | None = None
        if url is not None:
            self.load_settings(FtpSettings(url=url, user=user, password=password))

    @property
    def name(self) -> str:
        return "ftp"

    def __repr__(self) -> str:
        base = self._base.url if self._base is not None else None
        return f"FTPHandler(url={base!r})"

    # region: settings

    def load_settings(self, settings: object) -> None:
        if not isinstance(settings, FtpSettings):
            raise InvalidConfig("Invalid settings.", backend=self.name)
        settings.validate()
        base = Location.parse(settings.url)
        if base.scheme != "ftp":
            raise InvalidConfig(f"Unsupported URL scheme {base.scheme!r}", path=settings.url, backend=self.name)
        self._settings = settings
        self._base = base

    def _require_settings(self) -> tuple[FtpSettings, Location]:
        if self._settings is None or self._base is None:
            raise InvalidConfig("Settings have not been loaded.", backend=self.name)
        return self._settings, self._base

    def _resolve(self, relative: str = "") -> Location:
        _, base = self._require_settings()
        return base.join(relative)

    # endregion

    # region: connection scope

    @contextmanager
    def _session(self) -> Iterator[ftplib.FTP]:
        """Open, log in, and always release one control connection."""
        settings, base = self._require_settings()
        ftp = ftplib.FTP(timeout=self._timeout, encoding=self._encoding)
        clean = False
        try:
            ftp.connect(base.host, base.port or ftplib.FTP_PORT)
            if settings.credentials_available:
                ftp.login(settings.user or "", settings.password or "")
            else:
                ftp.login()
            # SIZE is refused by many servers in ASCII mode
            ftp.voidcmd("TYPE I")
            yield ftp
            clean = True
        finally:
            if clean:
                try:
                    ftp.quit()
                except TRANSPORT_ERRORS:
                    log.debug("QUIT failed, closing socket", exc_info=True)
            ftp.close()

    def _raise_classified(self, exc: BaseException, path: str) -> NoReturn:
        kind = classify(exc)
        message = _MESSAGES.get(kind, "")
        if kind is ErrorKind.TRANSPORT_FAILURE:
            message = f"{message}: {exc}"
        raise error_for(kind)(message, path=path, backend=self.name) from exc

    @contextmanager
    def _errors(self, path: str = "") -> Iterator[None]:
        """Map ftplib/socket exceptions to filehandler errors."""
        try:
            yield
        except FileHandlerError:
            raise
        except TRANSPORT_ERRORS as exc:
            self._raise_classified(exc, path)

    # endregion

    # region: existence and connectivity

    def can_connect(self) -> bool:
        try:
            with self._session() as ftp:
                ftp.pwd()
            return True
        except (FileHandlerError, *TRANSPORT_ERRORS):
            log.debug("PWD failed", exc_info=True)
            return False

    def path_exists(self, path: str) -> bool:
        self._require(path, "Path")
        location = self._resolve(path)
        try:
            with self._session() as ftp:
                if location.looks_like_directory:
                    log.debug("NLST %s", location.path)
                    ftp.nlst(location.path)
                else:
                    log.debug("SIZE %s", location.path)
                    ftp.size(location.path)
        except TRANSPORT_ERRORS as exc:
            if classify(exc) in (ErrorKind.UNAUTHORIZED, ErrorKind.TIMEOUT):
                self._raise_classified(exc, path)
            log.debug("Treating %s as absent: %s", location.path, exc)
            return False
        return True

    # endregion

    # region: listing and metadata

    def list_directory(
        self,
        relative_directory: str = "",
        page_size: int = 100,
        page_token: str | None = None,
    ) -> ListingPage:
        # FTP has no paging: page_size and page_token are ignored
        location = self._resolve(relative_directory)
        lines: list[str] = []
        with self._errors(relative_directory):
            with self._session() as ftp:
                log.debug("LIST %s", location.path)
                ftp.retrlines(f"LIST {location.path}", lines.append)
        files = [d for d in (parse_listing_line(line) for line in lines) if d is not None]
        return ListingPage(files=tuple(files))

    def lookup(self, file_name: str, relative_path: str = "") -> FileDescriptor:
        self._require(file_name, "File name")
        rel = self._join(relative_path, file_name)
        if not self.path_exists(rel):
            raise NotFound("File not found.", path=rel, backend=self.name)
        location = self._resolve(rel)
        with self._errors(rel):
            with self._session() as ftp:
                log.debug("SIZE %s", location.path)
                size = ftp.size(location.path)
            with self._session() as ftp:
                log.debug("MDTM %s", location.path)
                reply = ftp.sendcmd(f"MDTM {location.path}")
        try:
            modified = parse_mdtm(reply)
        except ValueError as exc:
            self._raise_classified(exc, rel)
        return FileDescriptor(
            name=file_name,
            size=size or 0,
            created_at=modified,
            mime_type=guess_mime_type(file_name),
        )

    # endregion

    # region: transfers

    def download(self, destination: BinaryIO, relative_file_location: str = "") -> None:
        location = self._resolve(relative_file_location)
        with self._errors(relative_file_location):
            with self._session() as ftp:
                log.debug("RETR %s", location.path)
                ftp.retrbinary(f"RETR {location.path}", destination.write, blocksize=_BLOCK_SIZE)

    def upload(self, content: UploadContent, file_name: str, relative_upload_path: str = "") -> None:
        stream, length = self._as_stream(content)
        self._require(file_name, "File name")
        has_dir = bool(relative_upload_path and relative_upload_path.strip())
        rel = self._join(relative_upload_path, file_name)
        location = self._resolve(rel)

        if has_dir and not self.path_exists(self._join(relative_upload_path, "")):
            self.create_directory(relative_upload_path)

        with self._errors(rel):
            with self._session() as ftp:
                log.debug("STOR %s (%d bytes)", location.path, length)
                ftp.storbinary(f"STOR {location.path}", stream, blocksize=_BLOCK_SIZE)

    def create_directory(self, relative_path: str) -> None:
        self._require(relative_path, "Relative path")
        # rejects '..' before the first exchange
        self._resolve(relative_path)
        segments = [s for s in relative_path.replace("\\", "/").split("/") if s.strip()]
        prefix = ""
        for segment in segments:
            prefix += f"{segment}/"
            if self.path_exists(prefix):
                continue
            location = self._resolve(prefix)
            with self._errors(prefix):
                with self._session() as ftp:
                    log.debug("MKD %s", location.path)
                    ftp.mkd(location.path.rstrip("/"))

    def move(self, source_path: str, dest_path: str) -> None:
        self._require(source_path, "Source path")
        self._require(dest_path, "Destination path")
        source = self._resolve(source_path)
        dest = self._resolve(dest_path)

        if not self.path_exists(source_path):
            raise NotFound("File not found.", path=source_path, backend=self.name)
        if self.path_exists(dest_path):
            raise AlreadyExists("Destination already exists.", path=dest_path, backend=self.name)

        target = dest.relative_to(source)
        with self._errors(source_path):
            with self._session() as ftp:
                log.debug("RNFR %s RNTO %s", source.path, target)
                ftp.cwd(source.parent)
                ftp.rename(posixpath.basename(source.path.rstrip("/")), target)

    def delete(self, file_name: str) -> None:
        self._require(file_name, "File name")
        location = self._resolve(file_name)
        with self._errors(file_name):
            with self._session() as ftp:
                log.debug("DELE %s", location.path)
                ftp.delete(location.path)

    # endregion
