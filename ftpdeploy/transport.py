"""FTP/FTPS transport for ftpdeploy.

``FtpSession`` wraps a single ``ftplib`` control connection and exposes the
small set of operations the sync engine needs. ``ftplib`` exceptions are
translated here so that the engine only sees ``FtpConnectionError`` (fatal)
and ``FtpTransferError`` (per entry).
"""

import ftplib
import io
import logging
import posixpath
from contextlib import contextmanager
from pathlib import Path
from typing import BinaryIO, Iterator, Optional

from .exceptions import (
    FtpAuthenticationError,
    FtpConnectionError,
    FtpPermissionError,
    FtpTransferError,
)
from .utils import DEFAULT_PORT, DEFAULT_TIMEOUT, parse_mdtm

logger = logging.getLogger(__name__)

# Errors that mean the control connection itself is unusable
CONNECTION_ERRORS = (EOFError, OSError, ftplib.error_reply, ftplib.error_proto)

# NLST replies that mean "nothing to list"
EMPTY_LISTING_REPLIES = ("450", "550")


@contextmanager
def translate_errors(operation: str) -> Iterator[None]:
    """Translate ``ftplib`` exceptions raised inside the block.

    Args:
        operation: Short description used in the error message
    """
    try:
        yield
    except ftplib.error_perm as e:
        raise FtpPermissionError(f"{operation}: {e}") from e
    except ftplib.error_temp as e:
        raise FtpTransferError(f"{operation}: {e}") from e
    except CONNECTION_ERRORS as e:
        raise FtpConnectionError(f"{operation}: {e}") from e


class LocalReadError(Exception):
    """Raised when reading the local file fails in the middle of a transfer."""


class LocalFileReader:
    """Wraps a local file handed to ``storbinary``/``storlines``.

    ftplib reports socket failures as ``OSError``, which is also what a
    failing local read raises. Read errors are re-raised as
    ``LocalReadError`` so they stay apart from connection errors.
    """

    def __init__(self, fh: BinaryIO):
        self._fh = fh

    def read(self, size: int = -1) -> bytes:
        try:
            return self._fh.read(size)
        except OSError as e:
            raise LocalReadError(str(e)) from e

    def readline(self, size: int = -1) -> bytes:
        try:
            return self._fh.readline(size)
        except OSError as e:
            raise LocalReadError(str(e)) from e


class FtpSession:
    """A logged in FTP control connection.

    All operations are strictly sequential; the session must not be shared
    between threads.
    """

    def __init__(self, ftp: ftplib.FTP):
        """Initialize session.

        Args:
            ftp: Connected and authenticated ftplib client
        """
        self.ftp = ftp

    def change_directory(self, path: str) -> bool:
        """Change the remote working directory.

        Returns:
            True on success, False if the directory is missing or not
            accessible
        """
        try:
            with translate_errors(f"CWD {path}"):
                self.ftp.cwd(path)
        except FtpTransferError as e:
            logger.debug(f"Cannot change directory: {e}")
            return False
        return True

    def current_directory(self) -> str:
        with translate_errors("PWD"):
            return self.ftp.pwd()

    def directory_exists(self, path: str) -> bool:
        """Check whether a remote directory exists.

        The working directory is restored afterwards.
        """
        previous = self.current_directory()
        exists = self.change_directory(path)
        if exists:
            with translate_errors(f"CWD {previous}"):
                self.ftp.cwd(previous)
        return exists

    def create_directory(self, path: str) -> None:
        """Create a single remote directory."""
        with translate_errors(f"MKD {path}"):
            self.ftp.mkd(path)

    def create_directory_recursive(self, path: str) -> None:
        """Create a remote directory and any missing parents."""
        current = ""
        for part in [p for p in path.split("/") if p]:
            current = f"{current}/{part}"
            if not self.directory_exists(current):
                self.create_directory(current)

    def list_names(self, path: str) -> set[str]:
        """List the basenames of the entries in a remote directory.

        Servers answer NLST on an empty directory with 550 or, like
        ProFTPD, 450 "No files found"; both are reported as an empty set.
        """
        with translate_errors(f"NLST {path}"):
            try:
                names = self.ftp.nlst(path)
            except (ftplib.error_perm, ftplib.error_temp) as e:
                if str(e)[:3] not in EMPTY_LISTING_REPLIES:
                    raise
                logger.debug(f"Empty listing for {path}: {e}")
                return set()
        # Some servers prefix names with the listed path
        return {posixpath.basename(name.rstrip("/")) for name in names} - {".", ".."}

    def file_size(self, name: str) -> Optional[int]:
        """Return the size of a remote file, or None if unavailable."""
        try:
            with translate_errors(f"SIZE {name}"):
                # SIZE is only reliable in binary mode
                self.ftp.voidcmd("TYPE I")
                return self.ftp.size(name)
        except FtpTransferError as e:
            logger.debug(f"Size unavailable: {e}")
            return None

    def file_modified_at(self, name: str) -> Optional[float]:
        """Return the modification time of a remote file as Unix timestamp."""
        try:
            with translate_errors(f"MDTM {name}"):
                response = self.ftp.sendcmd(f"MDTM {name}")
        except FtpTransferError as e:
            logger.debug(f"Modification time unavailable: {e}")
            return None
        return parse_mdtm(response)

    def set_passive(self, passive: bool) -> None:
        self.ftp.set_pasv(passive)

    def upload(self, remote_name: str, local_path: Path, binary: bool = True) -> bool:
        """Upload a local file into the current remote directory.

        Args:
            remote_name: Target file name relative to the working directory
            local_path: Local file to send
            binary: Transfer in binary (TYPE I) or ASCII mode

        Returns:
            True if the server acknowledged the transfer

        Raises:
            FtpTransferError: If the local file cannot be read or the server
                rejects the transfer
            FtpConnectionError: If the connection is lost
        """
        try:
            fh = Path(local_path).open("rb")
        except OSError as e:
            raise FtpTransferError(f"Cannot read {local_path}: {e}") from e

        reader = LocalFileReader(fh)
        with fh:
            try:
                with translate_errors(f"STOR {remote_name}"):
                    if binary:
                        response = self.ftp.storbinary(f"STOR {remote_name}", reader)
                    else:
                        response = self.ftp.storlines(f"STOR {remote_name}", reader)
            except LocalReadError as e:
                self._discard_reply(f"STOR {remote_name}")
                raise FtpTransferError(f"Cannot read {local_path}: {e}") from e
        return response.startswith("2")

    def _discard_reply(self, operation: str) -> None:
        # An aborted STOR still gets a final reply on the control connection
        try:
            with translate_errors(operation):
                self.ftp.voidresp()
        except FtpTransferError as e:
            logger.debug(f"Aborted transfer: {e}")

    def read_text_file(self, name: str) -> Optional[str]:
        """Fetch a small remote file as UTF-8 text.

        Returns:
            File content, or None if the file cannot be retrieved or decoded
        """
        buffer = io.BytesIO()
        try:
            with translate_errors(f"RETR {name}"):
                self.ftp.retrbinary(f"RETR {name}", buffer.write)
        except FtpTransferError as e:
            logger.debug(f"Cannot read remote file: {e}")
            return None

        try:
            return buffer.getvalue().decode("utf-8")
        except UnicodeDecodeError:
            logger.warning(f"Remote file {name} is not valid UTF-8")
            return None

    def write_text_file(self, name: str, content: str) -> None:
        """Write a small UTF-8 text file to the remote server."""
        with translate_errors(f"STOR {name}"):
            self.ftp.storbinary(f"STOR {name}", io.BytesIO(content.encode("utf-8")))

    def close(self) -> None:
        """Close the control connection, quietly if the server is gone."""
        try:
            self.ftp.quit()
        except (*CONNECTION_ERRORS, ftplib.error_perm, ftplib.error_temp):
            self.ftp.close()


def connect(
    host: str,
    user: str,
    password: str,
    port: int = DEFAULT_PORT,
    secure: bool = True,
    timeout: float = DEFAULT_TIMEOUT,
) -> FtpSession:
    """Open and authenticate an FTP or explicit FTPS connection.

    Args:
        host: Server host name
        user: Login name
        password: Login password
        port: Control port
        secure: Negotiate TLS (AUTH TLS) and protect the data channel
        timeout: Socket timeout in seconds

    Returns:
        Authenticated session

    Raises:
        FtpConnectionError: If the host is unreachable or TLS fails
        FtpAuthenticationError: If the login is rejected
    """
    ftp: ftplib.FTP = ftplib.FTP_TLS() if secure else ftplib.FTP()
    logger.debug(f"Connecting to {host}:{port} (secure={secure})")

    try:
        ftp.connect(host=host, port=port, timeout=timeout)
    except (*CONNECTION_ERRORS, ftplib.Error) as e:
        raise FtpConnectionError(f"Cannot connect to {host}:{port}: {e}") from e

    try:
        ftp.login(user=user, passwd=password)
        if secure:
            ftp.prot_p()
    except ftplib.error_perm as e:
        ftp.close()
        raise FtpAuthenticationError(f"Login rejected for {user}@{host}: {e}") from e
    except (*CONNECTION_ERRORS, ftplib.Error) as e:
        ftp.close()
        raise FtpConnectionError(f"Login to {host} failed: {e}") from e

    return FtpSession(ftp)
