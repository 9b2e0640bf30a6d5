"""SFTP handler using pure paramiko."""

from __future__ import annotations

import contextlib
import dataclasses
import errno
import logging
import os
import posixpath
import shutil
import stat
from contextlib import contextmanager
from datetime import datetime, timezone
from enum import Enum
from typing import TYPE_CHECKING, Any, BinaryIO

from filehandler._errors import (
    AlreadyExists,
    FileHandlerError,
    InvalidConfig,
    MissingField,
    NotFound,
    Timeout,
    TransportFailure,
    Unauthorized,
)
from filehandler._handler import FileHandler
from filehandler._location import Location
from filehandler._mime import guess_mime_type
from filehandler._models import FileDescriptor, ListingPage

if TYPE_CHECKING:
    from collections.abc import Iterator

    from filehandler._types import UploadContent

log = logging.getLogger(__name__)

# RFC 4253 compliant chunk size for SFTP data transfer
_CHUNK_SIZE = 32768


class HostKeyPolicy(Enum):
    """Controls how unknown remote host keys are handled.

    :cvar STRICT: Reject unknown hosts (production default).
    :cvar TRUST_ON_FIRST_USE: Save on first connect, verify after.
    :cvar AUTO_ADD: Accept any key (dev/testing ONLY).
    """

    STRICT = "strict"
    TRUST_ON_FIRST_USE = "tofu"
    AUTO_ADD = "auto"


@dataclasses.dataclass(frozen=True)
class SftpSettings:
    """Connection settings for an SFTP store.

    :param host: Server hostname. Required.
    :param port: SSH port.
    :param username: SSH username.
    :param password: SSH password.
    :param base_path: Server directory all relative paths resolve against.
    :param host_key_policy: Host key verification policy.
    :param host_keys_path: known_hosts file (default: ``~/.ssh/known_hosts``).
    :param timeout: Connect, banner and auth timeout in seconds.
    """

    host: str
    port: int = 22
    username: str | None = None
    password: str | None = None
    base_path: str = "/"
    host_key_policy: HostKeyPolicy = HostKeyPolicy.STRICT
    host_keys_path: str | None = None
    timeout: float = 10

    def __post_init__(self) -> None:
        # Config files carry the policy as its string value
        if not isinstance(self.host_key_policy, HostKeyPolicy):
            try:
                policy = HostKeyPolicy(self.host_key_policy)
            except ValueError:
                raise InvalidConfig(f"Unknown host key policy {self.host_key_policy!r}") from None
            object.__setattr__(self, "host_key_policy", policy)

    def validate(self) -> None:
        """Check required fields.

        :raises MissingField: If ``host`` is blank.
        """
        if not self.host or not self.host.strip():
            raise MissingField("host must not be blank.", field="host")

    def __repr__(self) -> str:
        masked = "***" if self.password else None
        return f"SftpSettings(host={self.host!r}, port={self.port!r}, username={self.username!r}, password={masked!r})"


class SFTPHandler(FileHandler):
    """File handler over SFTP.

    Unlike the FTP handler, one SSH session is opened lazily and reused
    until :meth:`close`. Connection attempts are retried with tenacity.

    :param host: Server hostname. When given, settings are loaded immediately.
    :param pkey: paramiko.PKey instance for key-based auth.
    :param connect_kwargs: Extra kwargs passed to ``SSHClient.connect()``.
    :param options: Remaining :class:`SftpSettings` fields.
    """

    def __init__(
        self,
        host: str | None = None,
        *,
        pkey: Any = None,
        connect_kwargs: dict[str, Any] | None = None,
        **options: Any,
    ) -> None:
        self._pkey = pkey
        self._connect_kwargs = connect_kwargs or {}
        self._settings: SftpSettings | None = None
        self._base: Location | None = None
        self._ssh_client: Any = None
        self._sftp_client: Any = None
        if host is not None:
            self.load_settings(SftpSettings(host=host, **options))

    @property
    def name(self) -> str:
        return "sftp"

    def load_settings(self, settings: object) -> None:
        if not isinstance(settings, SftpSettings):
            raise InvalidConfig("Invalid settings.", backend=self.name)
        settings.validate()
        self._close_clients()
        self._settings = settings
        self._base = Location("sftp", f"{settings.host}:{settings.port}", settings.base_path or "/")

    def _require_settings(self) -> tuple[SftpSettings, Location]:
        if self._settings is None or self._base is None:
            raise InvalidConfig("Settings have not been loaded.", backend=self.name)
        return self._settings, self._base

    def _sftp_path(self, path: str = "") -> str:
        """Convert a relative path to an absolute SFTP path."""
        _, base = self._require_settings()
        return base.join(path).path.rstrip("/") or "/"

    # region: lazy connection

    @property
    def _sftp(self) -> Any:
        """Lazy SFTP client with automatic reconnection on staleness."""
        if not self._is_connected():
            self._connect()
        return self._sftp_client

    def _connect(self) -> None:
        """Establish SSH + SFTP connection with tenacity retry."""
        import paramiko
        from tenacity import (
            before_sleep_log,
            retry,
            retry_if_exception_type,
            retry_if_not_exception_type,
            stop_after_attempt,
            wait_exponential,
        )

        settings, _ = self._require_settings()
        self._close_clients()
        ssh = self._create_ssh_client(settings)

        @retry(
            retry=retry_if_exception_type((paramiko.SSHException, OSError, EOFError))
            & retry_if_not_exception_type(paramiko.AuthenticationException),
            stop=stop_after_attempt(3),
            wait=wait_exponential(multiplier=1, min=2, max=10),
            before_sleep=before_sleep_log(log, logging.WARNING),  # type: ignore[arg-type,unused-ignore]
            reraise=True,
        )
        def _do_connect() -> None:
            log.info("Connecting to %s:%d as %s", settings.host, settings.port, settings.username)
            ssh.connect(
                hostname=settings.host,
                port=settings.port,
                username=settings.username,
                password=settings.password,
                pkey=self._pkey,
                timeout=settings.timeout,
                banner_timeout=settings.timeout,
                auth_timeout=settings.timeout,
                channel_timeout=settings.timeout,
                **self._connect_kwargs,
            )

        _do_connect()
        self._ssh_client = ssh
        self._sftp_client = ssh.open_sftp()
        log.info("SFTP connection established.")

    def _create_ssh_client(self, settings: SftpSettings) -> Any:
        """Create and configure an SSHClient with host key policy."""
        import paramiko

        ssh = paramiko.SSHClient()
        if settings.host_key_policy in (HostKeyPolicy.STRICT, HostKeyPolicy.TRUST_ON_FIRST_USE):
            keys_path = settings.host_keys_path or os.path.expanduser("~/.ssh/known_hosts")
            if os.path.isfile(keys_path):
                ssh.load_host_keys(keys_path)

        if settings.host_key_policy == HostKeyPolicy.TRUST_ON_FIRST_USE:
            ssh.set_missing_host_key_policy(paramiko.AutoAddPolicy())
        elif settings.host_key_policy == HostKeyPolicy.AUTO_ADD:
            log.warning("AUTO_ADD host key policy -- NOT safe for production.")
            ssh.set_missing_host_key_policy(paramiko.AutoAddPolicy())
        return ssh

    def _is_connected(self) -> bool:
        """Check if the SFTP connection is alive."""
        if self._sftp_client is None or self._ssh_client is None:
            return False
        try:
            self._sftp_client.stat(".")
            return True
        except Exception:  # pragma: no cover -- requires transport failure
            return False

    def _close_clients(self) -> None:
        """Close SFTP and SSH clients if open."""
        if self._sftp_client is not None:
            with contextlib.suppress(Exception):
                self._sftp_client.close()
            self._sftp_client = None
        if self._ssh_client is not None:
            with contextlib.suppress(Exception):
                self._ssh_client.close()
            self._ssh_client = None

    # endregion

    # region: error mapping

    @contextmanager
    def _errors(self, path: str = "") -> Iterator[None]:
        """Map paramiko/OS exceptions to filehandler errors."""
        import paramiko

        try:
            yield
        except FileHandlerError:
            raise
        except paramiko.AuthenticationException:
            raise Unauthorized("Unauthorized: invalid credentials.", path=path, backend=self.name) from None
        except TimeoutError as exc:
            raise Timeout("Connection to the SFTP server timed out.", path=path, backend=self.name) from exc
        except FileNotFoundError:
            raise NotFound(f"Not found: {path}", path=path, backend=self.name) from None
        except OSError as exc:
            code = getattr(exc, "errno", None)
            if code == errno.ENOENT:
                raise NotFound(f"Not found: {path}", path=path, backend=self.name) from None
            if code == errno.EACCES:
                raise Unauthorized(f"Permission denied: {path}", path=path, backend=self.name) from None
            raise TransportFailure(str(exc), path=path, backend=self.name) from exc
        except (paramiko.SSHException, EOFError) as exc:
            raise TransportFailure(str(exc), path=path, backend=self.name) from exc

    def _stat(self, path: str) -> Any:
        """Return attributes for ``path`` or ``None`` if it is missing."""
        try:
            return self._sftp.stat(self._sftp_path(path))
        except OSError as exc:
            if isinstance(exc, TimeoutError):
                raise
            if getattr(exc, "errno", None) == errno.ENOENT or isinstance(exc, FileNotFoundError):
                return None
            raise

    # endregion

    def can_connect(self) -> bool:
        try:
            with self._errors():
                self._sftp.stat(self._sftp_path())
            return True
        except FileHandlerError:
            log.debug("SFTP connectivity check failed", exc_info=True)
            return False

    def path_exists(self, path: str) -> bool:
        self._require(path, "Path")
        with self._errors(path):
            return self._stat(path) is not None

    def list_directory(
        self,
        relative_directory: str = "",
        page_size: int = 100,
        page_token: str | None = None,
    ) -> ListingPage:
        with self._errors(relative_directory):
            entries = self._sftp.listdir_attr(self._sftp_path(relative_directory))
        files = [
            FileDescriptor(
                name=attr.filename,
                size=int(attr.st_size or 0) if stat.S_ISREG(attr.st_mode or 0) else 0,
                created_at=_mtime(attr),
                mime_type=guess_mime_type(attr.filename) if stat.S_ISREG(attr.st_mode or 0) else None,
                raw=str(attr),
            )
            for attr in entries
            if attr.filename not in (".", "..")
        ]
        return ListingPage(files=tuple(files))

    def lookup(self, file_name: str, relative_path: str = "") -> FileDescriptor:
        self._require(file_name, "File name")
        rel = self._join(relative_path, file_name)
        with self._errors(rel):
            attrs = self._stat(rel)
        if attrs is None or not stat.S_ISREG(attrs.st_mode or 0):
            raise NotFound("File not found.", path=rel, backend=self.name)
        return FileDescriptor(
            name=file_name,
            size=int(attrs.st_size or 0),
            created_at=_mtime(attrs),
            mime_type=guess_mime_type(file_name),
        )

    def download(self, destination: BinaryIO, relative_file_location: str = "") -> None:
        with self._errors(relative_file_location):
            with self._sftp.file(self._sftp_path(relative_file_location), "r") as src:
                src.prefetch()
                shutil.copyfileobj(src, destination, _CHUNK_SIZE)

    def upload(self, content: UploadContent, file_name: str, relative_upload_path: str = "") -> None:
        stream, _ = self._as_stream(content)
        self._require(file_name, "File name")
        rel = self._join(relative_upload_path, file_name)
        if relative_upload_path and relative_upload_path.strip() and not self.path_exists(relative_upload_path):
            self.create_directory(relative_upload_path)
        with self._errors(rel):
            with self._sftp.file(self._sftp_path(rel), "w") as dst:
                shutil.copyfileobj(stream, dst, _CHUNK_SIZE)

    def create_directory(self, relative_path: str) -> None:
        self._require(relative_path, "Relative path")
        # rejects '..' before the first exchange
        self._sftp_path(relative_path)
        segments = [s for s in relative_path.replace("\\", "/").split("/") if s.strip()]
        prefix = ""
        with self._errors(relative_path):
            for segment in segments:
                prefix = posixpath.join(prefix, segment)
                if self._stat(prefix) is None:
                    self._sftp.mkdir(self._sftp_path(prefix))

    def move(self, source_path: str, dest_path: str) -> None:
        self._require(source_path, "Source path")
        self._require(dest_path, "Destination path")
        with self._errors(source_path):
            if self._stat(source_path) is None:
                raise NotFound("File not found.", path=source_path, backend=self.name)
            if self._stat(dest_path) is not None:
                raise AlreadyExists("Destination already exists.", path=dest_path, backend=self.name)
            self._sftp.rename(self._sftp_path(source_path), self._sftp_path(dest_path))

    def delete(self, file_name: str) -> None:
        self._require(file_name, "File name")
        with self._errors(file_name):
            self._sftp.remove(self._sftp_path(file_name))

    def close(self) -> None:
        self._close_clients()


def _mtime(attrs: Any) -> datetime | None:
    if attrs.st_mtime is None:
        return None
    return datetime.fromtimestamp(attrs.st_mtime, tz=timezone.utc)
