"""Handler test fixtures -- parameterized for conformance testing."""

from __future__ import annotations

import ftplib
import functools
import os
import shutil
import tempfile
import uuid
from typing import TYPE_CHECKING

import pytest

from filehandler.handlers import FTPHandler, LocalHandler
from tests.handlers.fake_ftp import FAKE_PASSWORD, FAKE_URL, FAKE_USER, FakeFTP, FakeFTPServer

if TYPE_CHECKING:
    from collections.abc import Iterator

    from filehandler._handler import FileHandler


def _pyftpdlib_available() -> bool:
    try:
        import pyftpdlib  # noqa: F401

        return True
    except ImportError:
        return False


def _sftp_available() -> bool:
    try:
        import paramiko  # noqa: F401
        import tenacity  # noqa: F401

        return True
    except ImportError:
        return False


def _fresh_dir(root: str) -> str:
    name = f"test_{uuid.uuid4().hex[:8]}"
    os.makedirs(os.path.join(root, name))
    return name


@pytest.fixture()
def fake_server(monkeypatch: pytest.MonkeyPatch) -> FakeFTPServer:
    """Route ``ftplib.FTP`` to an in-memory server with a ``/base`` directory."""
    server = FakeFTPServer(credentials=(FAKE_USER, FAKE_PASSWORD))
    server.add_dir("/base")
    monkeypatch.setattr(ftplib, "FTP", functools.partial(FakeFTP, server))
    return server


@pytest.fixture()
def fake_handler(fake_server: FakeFTPServer) -> FTPHandler:
    return FTPHandler(FAKE_URL, user=FAKE_USER, password=FAKE_PASSWORD)


@pytest.fixture(scope="session")
def ftp_server() -> Iterator[tuple[int, str] | None]:
    """Start an in-process FTP server for the test session.

    Yields the port and the served root directory.
    """
    if not _pyftpdlib_available():
        yield None
        return

    from tests.handlers.ftp_server import start_ftp_server, stop_ftp_server

    root = tempfile.mkdtemp(prefix="ftp_test_")
    server, thread, port = start_ftp_server(root=root)

    yield port, root

    stop_ftp_server(server, thread)
    shutil.rmtree(root, ignore_errors=True)


@pytest.fixture()
def ftp_base(ftp_server: tuple[int, str] | None) -> tuple[str, str]:
    """Create a fresh base directory on the FTP server.

    :returns: The base URL and the local directory backing it.
    """
    if ftp_server is None:
        pytest.skip("pyftpdlib not installed")
    port, root = ftp_server
    name = _fresh_dir(root)
    return f"ftp://127.0.0.1:{port}/{name}", os.path.join(root, name)


@pytest.fixture(scope="session")
def sftp_server() -> Iterator[tuple[int, str] | None]:
    """Start an in-process SFTP server for the test session.

    Yields the port and the served root directory.
    """
    if not _sftp_available():
        yield None
        return

    from tests.handlers.sftp_server import start_sftp_server, stop_sftp_server

    root = tempfile.mkdtemp(prefix="sftp_test_")
    thread, port, stop, listener = start_sftp_server(root=root)

    yield port, root

    stop_sftp_server(thread, stop, listener)
    shutil.rmtree(root, ignore_errors=True)


@pytest.fixture()
def sftp_base(sftp_server: tuple[int, str] | None) -> tuple[int, str, str]:
    """Create a fresh base directory on the SFTP server.

    :returns: The port, the base path on the server, and the local directory backing it.
    """
    if sftp_server is None:
        pytest.skip("paramiko/tenacity not installed")
    port, root = sftp_server
    name = _fresh_dir(root)
    return port, f"/{name}", os.path.join(root, name)


_ftp_param = pytest.param(
    "ftp",
    marks=[
        pytest.mark.skipif(not _pyftpdlib_available(), reason="pyftpdlib not installed"),
        pytest.mark.integration,
    ],
)

_sftp_param = pytest.param(
    "sftp",
    marks=[
        pytest.mark.skipif(not _sftp_available(), reason="paramiko/tenacity not installed"),
        pytest.mark.integration,
    ],
)


@pytest.fixture(params=["local", _ftp_param, _sftp_param])
def handler(request: pytest.FixtureRequest, tmp_path: object) -> Iterator[FileHandler]:
    """Parameterized handler fixture. Add new handlers here."""
    if request.param == "local":
        yield LocalHandler(root=str(tmp_path))
    elif request.param == "ftp":
        from tests.handlers.ftp_server import PASSWORD, USER

        url, _ = request.getfixturevalue("ftp_base")
        h = FTPHandler(url, user=USER, password=PASSWORD, timeout=10)
        yield h
        h.close()
    elif request.param == "sftp":
        from filehandler.handlers import HostKeyPolicy, SFTPHandler
        from tests.handlers.sftp_server import PASSWORD as SFTP_PASSWORD
        from tests.handlers.sftp_server import USER as SFTP_USER

        port, base_path, _ = request.getfixturevalue("sftp_base")
        h = SFTPHandler(
            "127.0.0.1",
            port=port,
            username=SFTP_USER,
            password=SFTP_PASSWORD,
            base_path=base_path,
            host_key_policy=HostKeyPolicy.AUTO_ADD,
            connect_kwargs={"allow_agent": False, "look_for_keys": False},
        )
        yield h
        h.close()
    else:
        pytest.skip(f"Unknown handler: {request.param}")
