"""Handler implementations."""

from filehandler.handlers._ftp import FTPHandler
from filehandler.handlers._local import LocalHandler
from filehandler.handlers._sftp import HostKeyPolicy, SFTPHandler, SftpSettings

__all__ = ["FTPHandler", "HostKeyPolicy", "LocalHandler", "SFTPHandler", "SftpSettings"]
