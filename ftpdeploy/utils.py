"""Utility functions for ftpdeploy."""

import posixpath
import re
from datetime import datetime, timezone
from typing import Optional

# =============================================================================
# Constants
# =============================================================================

# Default FTP control port
DEFAULT_PORT: int = 21

# Control connection timeout in seconds
DEFAULT_TIMEOUT: float = 30.0

# Remote file holding the last deployed revision id
DEFAULT_MARKER_NAME: str = ".git-commit"

# git --diff-filter letters for changes that must be deployed
# (Added, Copied, Modified, Renamed, Type changed). Deletions are never sent.
DEPLOYABLE_CHANGES: str = "ACMRT"

# Directories skipped when ignoring version control metadata
VCS_DIRECTORIES: frozenset[str] = frozenset(
    {".svn", "_svn", "CVS", "_darcs", ".arch-params", ".monotone", ".bzr", ".git", ".hg"}
)

_SEPARATORS = re.compile(r"[\\/]+")


# =============================================================================
# Remote path utilities
# =============================================================================


def normalize_remote_path(path: str) -> str:
    """Normalize a remote directory into an absolute path.

    Repeated separators (forward or backslashes) are collapsed and trailing
    separators stripped. The result always starts with ``/``.

    Args:
        path: Remote path as typed by the user

    Returns:
        Absolute normalized path, ``/`` for the root

    Examples:
        >>> normalize_remote_path("www//site/")
        '/www/site'
        >>> normalize_remote_path("")
        '/'
    """
    return "/" + _SEPARATORS.sub("/", path).strip("/")


def normalize_relative_path(path: str) -> str:
    """Normalize a local relative path to forward slashes without edges."""
    return _SEPARATORS.sub("/", path).strip("/")


def join_remote(directory: str, relative_path: str) -> str:
    """Join a remote directory and a relative path.

    Args:
        directory: Absolute remote directory
        relative_path: Slash separated path below it (may be empty)

    Returns:
        Absolute remote path
    """
    relative_path = normalize_relative_path(relative_path)
    if not relative_path:
        return directory
    if directory == "/":
        return "/" + relative_path
    return f"{directory}/{relative_path}"


def remote_parent(path: str) -> str:
    """Return the parent directory of an absolute remote path."""
    return posixpath.dirname(path) or "/"


def remote_basename(path: str) -> str:
    """Return the last segment of a remote path."""
    return posixpath.basename(path.rstrip("/"))


def ancestor_paths(relative_path: str) -> list[str]:
    """List the ancestor directories of a relative path, outermost first.

    Examples:
        >>> ancestor_paths("a/b/file.txt")
        ['a', 'a/b']
    """
    parts = normalize_relative_path(relative_path).split("/")[:-1]
    return ["/".join(parts[: i + 1]) for i in range(len(parts))]


# =============================================================================
# Timestamp utilities
# =============================================================================


def parse_mdtm(response: Optional[str]) -> Optional[float]:
    """Parse an MDTM reply into a Unix timestamp.

    Servers answer ``213 YYYYMMDDhhmmss[.sss]`` in UTC.

    Args:
        response: Raw reply line, with or without the 213 code

    Returns:
        Unix timestamp or None if the reply cannot be parsed
    """
    if not response:
        return None

    value = response.strip()
    if value.startswith("213"):
        value = value[3:].strip()

    seconds, _, fraction = value.partition(".")
    try:
        dt = datetime.strptime(seconds, "%Y%m%d%H%M%S").replace(tzinfo=timezone.utc)
    except ValueError:
        return None

    timestamp = dt.timestamp()
    if fraction.isdigit():
        timestamp += float(f"0.{fraction}")
    return timestamp


# =============================================================================
# Size formatting utilities
# =============================================================================


def format_size(size_bytes: int) -> str:
    """Format file size in human-readable format.

    Args:
        size_bytes: Size in bytes

    Returns:
        Human-readable size string (e.g., "1.5 MB")
    """
    if size_bytes < 1024:
        return f"{size_bytes} B"
    elif size_bytes < 1024 * 1024:
        return f"{size_bytes / 1024:.1f} KB"
    elif size_bytes < 1024 * 1024 * 1024:
        return f"{size_bytes / (1024 * 1024):.1f} MB"
    else:
        return f"{size_bytes / (1024 * 1024 * 1024):.1f} GB"
