"""Tests for the revision marker manager."""

from unittest.mock import Mock

import pytest
from conftest import FakeFtpSession

from ftpdeploy.exceptions import FtpPermissionError
from ftpdeploy.sync.marker import RevisionMarkerManager
from ftpdeploy.sync.remote import RemoteStateProber


@pytest.fixture
def manager():
    return RevisionMarkerManager(RemoteStateProber(), "/www")


class TestRevisionMarkerManager:
    """Tests for reading and writing the marker."""

    def test_read_missing_marker(self, manager):
        session = FakeFtpSession(directories={"/www"})

        assert manager.read(session) is None
        assert not any(op == "read" for op, _ in session.calls)

    def test_read_strips_whitespace(self, manager):
        session = FakeFtpSession(directories={"/www"})
        session.add_file("/www/.git-commit", b"4f2a9c1\r\n")

        assert manager.read(session) == "4f2a9c1"

    def test_read_empty_marker(self, manager):
        session = FakeFtpSession(directories={"/www"})
        session.add_file("/www/.git-commit", b"  \n")

        assert manager.read(session) is None

    def test_read_failure_means_no_marker(self, manager):
        session = Mock()
        session.directory_exists.return_value = True
        session.list_names.return_value = {".git-commit"}
        session.read_text_file.side_effect = FtpPermissionError("550 denied")

        assert manager.read(session) is None

    def test_unreadable_content_means_no_marker(self, manager):
        session = Mock()
        session.directory_exists.return_value = True
        session.list_names.return_value = {".git-commit"}
        session.read_text_file.return_value = None

        assert manager.read(session) is None

    def test_write_overwrites(self, manager):
        session = FakeFtpSession(directories={"/www"})
        session.add_file("/www/.git-commit", b"old")

        manager.write(session, "new")

        assert session.files["/www/.git-commit"]["content"] == b"new"

    def test_custom_marker_name(self):
        manager = RevisionMarkerManager(RemoteStateProber(), "/", ".revision")
        session = FakeFtpSession()
        session.add_file("/.revision", b"abc")

        assert manager.marker_path == "/.revision"
        assert manager.read(session) == "abc"
