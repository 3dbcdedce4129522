"""Unit tests for utility functions."""

import pytest

from ftpdeploy.utils import (
    ancestor_paths,
    format_size,
    join_remote,
    normalize_relative_path,
    normalize_remote_path,
    parse_mdtm,
    remote_basename,
    remote_parent,
)


class TestNormalizeRemotePath:
    """Tests for normalize_remote_path function."""

    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("", "/"),
            ("/", "/"),
            ("www", "/www"),
            ("/www/", "/www"),
            ("//www///site//", "/www/site"),
            ("\\www\\site", "/www/site"),
            ("www\\/site", "/www/site"),
        ],
    )
    def test_normalization(self, raw, expected):
        assert normalize_remote_path(raw) == expected

    def test_relative_path(self):
        assert normalize_relative_path("/a//b/") == "a/b"


class TestRemotePathHelpers:
    """Tests for joining and splitting remote paths."""

    def test_join_root(self):
        assert join_remote("/", "a/b") == "/a/b"

    def test_join_directory(self):
        assert join_remote("/www", "a") == "/www/a"

    def test_join_empty(self):
        assert join_remote("/www", "") == "/www"

    def test_parent_and_basename(self):
        assert remote_parent("/www/a") == "/www"
        assert remote_parent("/www") == "/"
        assert remote_basename("/www/a") == "a"

    def test_ancestor_paths(self):
        assert ancestor_paths("a/b/c.txt") == ["a", "a/b"]
        assert ancestor_paths("c.txt") == []


class TestParseMdtm:
    """Tests for parse_mdtm function."""

    def test_full_reply(self):
        assert parse_mdtm("213 20240102030405") == 1704164645.0

    def test_without_code(self):
        assert parse_mdtm("20240102030405") == 1704164645.0

    def test_fractional_seconds(self):
        assert parse_mdtm("213 20240102030405.250") == pytest.approx(1704164645.25)

    def test_invalid(self):
        assert parse_mdtm("213 yesterday") is None
        assert parse_mdtm(None) is None
        assert parse_mdtm("") is None


class TestFormatSize:
    """Tests for format_size function."""

    def test_bytes(self):
        assert format_size(100) == "100 B"

    def test_kilobytes(self):
        assert format_size(1536) == "1.5 KB"

    def test_megabytes(self):
        assert format_size(5 * 1024 * 1024) == "5.0 MB"
