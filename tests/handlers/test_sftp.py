"""SFTP handler tests against an in-process paramiko server.

Requires: paramiko, tenacity. All tests are skipped if they are not installed.
"""

from __future__ import annotations

import io
import os
from typing import TYPE_CHECKING

import pytest

# Guard: skip entire module if dependencies are missing
pytest.importorskip("paramiko", reason="paramiko not installed")
pytest.importorskip("tenacity", reason="tenacity not installed")

from filehandler._config import FtpSettings  # noqa: E402
from filehandler._errors import (  # noqa: E402
    AlreadyExists,
    InvalidArgument,
    InvalidConfig,
    MissingField,
    NotFound,
    Unauthorized,
)
from filehandler.handlers import HostKeyPolicy, SFTPHandler, SftpSettings  # noqa: E402
from tests.handlers.sftp_server import PASSWORD, USER  # noqa: E402

if TYPE_CHECKING:
    from collections.abc import Iterator

pytestmark = pytest.mark.integration


def _handler(port: int, base_path: str, password: str = PASSWORD) -> SFTPHandler:
    return SFTPHandler(
        "127.0.0.1",
        port=port,
        username=USER,
        password=password,
        base_path=base_path,
        host_key_policy=HostKeyPolicy.AUTO_ADD,
        connect_kwargs={"allow_agent": False, "look_for_keys": False},
    )


@pytest.fixture()
def sftp(sftp_base: tuple[int, str, str]) -> Iterator[SFTPHandler]:
    port, base_path, _ = sftp_base
    handler = _handler(port, base_path)
    yield handler
    handler.close()


# region: settings
class TestSFTPSettings:
    def test_name_is_sftp(self) -> None:
        assert SFTPHandler().name == "sftp"

    def test_lazy_connection(self) -> None:
        """Construction must not make network calls."""
        handler = SFTPHandler("nonexistent.invalid", port=2, username="x", password="x")
        assert handler.name == "sftp"

    @pytest.mark.parametrize("host", ["", "   "])
    def test_blank_host(self, host: str) -> None:
        with pytest.raises(MissingField, match="host") as exc_info:
            SFTPHandler(host)
        assert exc_info.value.field == "host"

    def test_wrong_settings_type(self) -> None:
        with pytest.raises(InvalidConfig):
            SFTPHandler().load_settings(FtpSettings(url="ftp://host"))

    def test_policy_from_string(self) -> None:
        assert SftpSettings(host="h", host_key_policy="tofu").host_key_policy is HostKeyPolicy.TRUST_ON_FIRST_USE  # type: ignore[arg-type]

    def test_unknown_policy(self) -> None:
        with pytest.raises(InvalidConfig, match="host key policy"):
            SftpSettings(host="h", host_key_policy="yolo")  # type: ignore[arg-type]

    def test_unknown_option(self) -> None:
        with pytest.raises(TypeError):
            SFTPHandler("h", colour="blue")

    def test_repr_masks_password(self) -> None:
        assert "hunter2" not in repr(SftpSettings(host="h", password="hunter2"))

    def test_operation_before_settings(self) -> None:
        with pytest.raises(InvalidConfig, match="not been loaded"):
            SFTPHandler().list_directory()

    def test_dotdot_rejected_before_connecting(self) -> None:
        handler = SFTPHandler("nonexistent.invalid", port=2, username="x", password="x")
        with pytest.raises(InvalidArgument):
            handler.create_directory("a/../b")
        assert handler._sftp_client is None

    def test_host_key_policy_values(self) -> None:
        assert HostKeyPolicy.STRICT.value == "strict"
        assert HostKeyPolicy.TRUST_ON_FIRST_USE.value == "tofu"
        assert HostKeyPolicy.AUTO_ADD.value == "auto"


# endregion


# region: connection
class TestSFTPConnection:
    def test_can_connect(self, sftp: SFTPHandler) -> None:
        assert sftp.can_connect() is True

    def test_connection_reused(self, sftp: SFTPHandler) -> None:
        sftp.can_connect()
        client = sftp._sftp_client
        sftp.path_exists("a.txt")
        assert sftp._sftp_client is client

    def test_reconnects_after_close(self, sftp: SFTPHandler) -> None:
        sftp.can_connect()
        sftp.close()
        assert sftp._sftp_client is None
        assert sftp.can_connect() is True

    def test_rejected_password(self, sftp_base: tuple[int, str, str]) -> None:
        port, base_path, _ = sftp_base
        with _handler(port, base_path, password="wrong") as handler:
            assert handler.can_connect() is False
            with pytest.raises(Unauthorized):
                handler.path_exists("a.txt")


# endregion


# region: operations
class TestSFTPOperations:
    def test_upload_creates_directories(self, sftp: SFTPHandler, sftp_base: tuple[int, str, str]) -> None:
        _, _, local = sftp_base
        sftp.upload(b"hello", "a.txt", "x/y")
        with open(os.path.join(local, "x", "y", "a.txt"), "rb") as f:
            assert f.read() == b"hello"

    def test_lookup(self, sftp: SFTPHandler) -> None:
        sftp.upload(b"12345", "report.pdf", "docs")
        info = sftp.lookup("report.pdf", "docs")
        assert info.size == 5
        assert info.mime_type == "application/pdf"
        assert info.created_at is not None

    def test_lookup_directory(self, sftp: SFTPHandler) -> None:
        sftp.create_directory("docs")
        with pytest.raises(NotFound):
            sftp.lookup("docs")

    def test_listing(self, sftp: SFTPHandler) -> None:
        sftp.upload(b"1", "a.txt")
        sftp.create_directory("sub")
        page = sftp.list_directory()
        assert sorted(page.names) == ["a.txt", "sub"]
        sizes = {f.name: f.size for f in page}
        assert sizes["a.txt"] == 1
        assert sizes["sub"] == 0

    def test_create_directory_idempotent(self, sftp: SFTPHandler, sftp_base: tuple[int, str, str]) -> None:
        _, _, local = sftp_base
        sftp.create_directory("a/b")
        sftp.create_directory("a/b")
        assert os.path.isdir(os.path.join(local, "a", "b"))

    def test_move(self, sftp: SFTPHandler) -> None:
        sftp.upload(b"data", "a.txt")
        sftp.move("a.txt", "b.txt")
        assert sftp.path_exists("a.txt") is False
        buf = io.BytesIO()
        sftp.download(buf, "b.txt")
        assert buf.getvalue() == b"data"

    def test_move_destination_exists(self, sftp: SFTPHandler) -> None:
        sftp.upload(b"a", "a.txt")
        sftp.upload(b"b", "b.txt")
        with pytest.raises(AlreadyExists):
            sftp.move("a.txt", "b.txt")

    def test_delete_missing(self, sftp: SFTPHandler) -> None:
        with pytest.raises(NotFound):
            sftp.delete("missing.txt")

    def test_download_missing(self, sftp: SFTPHandler) -> None:
        with pytest.raises(NotFound):
            sftp.download(io.BytesIO(), "missing.txt")


# endregion
