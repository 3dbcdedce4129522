"""Shared fixtures: an in-memory FTP server and local tree helpers."""

import os
import posixpath
from pathlib import Path
from typing import Optional
from unittest.mock import Mock

import pytest

from ftpdeploy.exceptions import FtpConnectionError, FtpPermissionError
from ftpdeploy.output import OutputFormatter

MUTATING_CALLS = ("mkdir", "mkdir_recursive", "upload", "write")


class FakeFtpSession:
    """In-memory stand-in for FtpSession that records every call."""

    def __init__(
        self,
        directories: Optional[set[str]] = None,
        files: Optional[dict[str, tuple[int, float]]] = None,
    ):
        self.directories = {"/"} | set(directories or ())
        self.files: dict[str, dict] = {}
        for path, (size, mtime) in (files or {}).items():
            self.add_file(path, b"x" * size, mtime)
        self.cwd = "/"
        self.passive = False
        self.closed = False
        self.calls: list[tuple[str, object]] = []
        self.upload_time = 2_000_000_000.0
        self.fail_uploads: set[str] = set()
        self.fail_mkdir: set[str] = set()
        self.drop_connection_on: Optional[str] = None

    def add_file(self, path: str, content: bytes, mtime: float = 0.0) -> None:
        self.files[path] = {"content": content, "size": len(content), "mtime": mtime}

    def _abs(self, name: str) -> str:
        if name.startswith("/"):
            return posixpath.normpath(name)
        return posixpath.normpath(posixpath.join(self.cwd, name))

    def mutating_calls(self) -> list[tuple[str, object]]:
        return [call for call in self.calls if call[0] in MUTATING_CALLS]

    def uploaded(self) -> list[str]:
        return [str(path) for op, path in self.calls if op == "upload"]

    def change_directory(self, path: str) -> bool:
        self.calls.append(("cwd", path))
        if path in self.directories:
            self.cwd = path
            return True
        return False

    def directory_exists(self, path: str) -> bool:
        self.calls.append(("exists", path))
        return path in self.directories

    def create_directory(self, path: str) -> None:
        path = self._abs(path)
        self.calls.append(("mkdir", path))
        if path in self.fail_mkdir or posixpath.dirname(path) not in self.directories:
            raise FtpPermissionError(f"MKD {path}: 550 Permission denied")
        self.directories.add(path)

    def create_directory_recursive(self, path: str) -> None:
        self.calls.append(("mkdir_recursive", path))
        if path in self.fail_mkdir:
            raise FtpPermissionError(f"MKD {path}: 550 Permission denied")
        while path != "/":
            self.directories.add(path)
            path = posixpath.dirname(path)

    def list_names(self, path: str) -> set[str]:
        self.calls.append(("list", path))
        children = self.directories | set(self.files)
        return {
            posixpath.basename(child)
            for child in children
            if child != "/" and posixpath.dirname(child) == path
        }

    def file_size(self, name: str) -> Optional[int]:
        self.calls.append(("size", self._abs(name)))
        info = self.files.get(self._abs(name))
        return info["size"] if info else None

    def file_modified_at(self, name: str) -> Optional[float]:
        self.calls.append(("mdtm", self._abs(name)))
        info = self.files.get(self._abs(name))
        return info["mtime"] if info else None

    def set_passive(self, passive: bool) -> None:
        self.calls.append(("pasv", passive))
        self.passive = passive

    def upload(self, remote_name: str, local_path: Path, binary: bool = True) -> bool:
        path = self._abs(remote_name)
        self.calls.append(("upload", path))
        if self.drop_connection_on == path:
            raise FtpConnectionError("Connection closed by server")
        if path in self.fail_uploads:
            raise FtpPermissionError(f"STOR {remote_name}: 553 Permission denied")
        self.add_file(path, Path(local_path).read_bytes(), self.upload_time)
        return True

    def read_text_file(self, name: str) -> Optional[str]:
        path = self._abs(name)
        self.calls.append(("read", path))
        info = self.files.get(path)
        return info["content"].decode("utf-8") if info else None

    def write_text_file(self, name: str, content: str) -> None:
        path = self._abs(name)
        self.calls.append(("write", path))
        self.add_file(path, content.encode("utf-8"), self.upload_time)

    def close(self) -> None:
        self.closed = True


def write_file(root: Path, relative_path: str, size: int, mtime: float) -> Path:
    """Create a file of ``size`` bytes with a fixed modification time."""
    path = root / relative_path
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(b"a" * size)
    os.utime(path, (mtime, mtime))
    return path


@pytest.fixture
def fake_session():
    """Create an empty in-memory FTP session."""
    return FakeFtpSession()


@pytest.fixture
def mock_output():
    """Create a mock output formatter."""
    output = Mock(spec=OutputFormatter)
    output.quiet = True  # Suppress output during tests
    output.json_output = False
    return output
