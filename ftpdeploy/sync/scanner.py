"""Directory scanning utilities for deployments."""

import logging
from dataclasses import dataclass
from fnmatch import fnmatch
from pathlib import Path
from typing import Iterable, Optional

from ..utils import VCS_DIRECTORIES, ancestor_paths, normalize_relative_path

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LocalEntry:
    """Represents a local file or directory to deploy."""

    path: Path
    """Absolute path to the entry"""

    relative_path: str
    """Path below the source root (forward slashes, unique per run)"""

    is_directory: bool = False
    """Whether the entry is a directory"""

    size: int = 0
    """File size in bytes (0 for directories)"""

    mtime: float = 0.0
    """Last modification time (Unix timestamp)"""

    @property
    def name(self) -> str:
        """Basename of the entry."""
        return self.relative_path.rsplit("/", 1)[-1]

    @property
    def parent(self) -> str:
        """Relative path of the parent directory ("" for top level)."""
        return self.relative_path.rpartition("/")[0]

    @classmethod
    def from_path(cls, path: Path, relative_path: str) -> "LocalEntry":
        """Create a LocalEntry by reading filesystem metadata.

        Args:
            path: Path to the file or directory
            relative_path: Path to deploy it under

        Returns:
            LocalEntry instance

        Raises:
            OSError: If the path cannot be stat'ed
        """
        stat = path.stat()
        is_directory = path.is_dir()
        return cls(
            path=path.absolute(),
            relative_path=normalize_relative_path(relative_path),
            is_directory=is_directory,
            size=0 if is_directory else stat.st_size,
            mtime=stat.st_mtime,
        )


class DirectoryScanner:
    """Scans source directories into an ordered list of entries.

    All directories are returned before all files, and directories are
    sorted by path, so a directory always comes before its descendants.

    Examples:
        >>> scanner = DirectoryScanner(exclude=["cache", "*.log"])
        >>> entries = scanner.scan([Path("public")])
    """

    def __init__(
        self,
        include: Optional[list[str]] = None,
        exclude: Optional[list[str]] = None,
        ignore_vcs: bool = True,
        follow_links: bool = False,
    ):
        """Initialize directory scanner.

        Args:
            include: Glob patterns a file's relative path must match
                (any of them). Empty means every file.
            exclude: Glob patterns matched against the relative path and
                each of its segments. Matching directories are pruned.
            ignore_vcs: Skip version control metadata directories
            follow_links: Descend into symlinked directories. A link to a
                directory that was already scanned is skipped.
        """
        self.include = include or []
        self.exclude = exclude or []
        self.ignore_vcs = ignore_vcs
        self.follow_links = follow_links

    def is_excluded(self, relative_path: str) -> bool:
        """Check if a relative path is excluded by pattern or VCS rules."""
        segments = relative_path.split("/")
        if self.ignore_vcs and any(s in VCS_DIRECTORIES for s in segments):
            return True

        for pattern in self.exclude:
            if fnmatch(relative_path, pattern):
                return True
            if any(fnmatch(segment, pattern) for segment in segments):
                return True
        return False

    def is_included(self, relative_path: str) -> bool:
        """Check if a file passes the include patterns."""
        if not self.include:
            return True
        return any(fnmatch(relative_path, pattern) for pattern in self.include)

    def accepts_file(self, relative_path: str) -> bool:
        return not self.is_excluded(relative_path) and self.is_included(
            relative_path
        )

    def _walk(
        self, directory: Path, base_path: Path, visited: set[Path]
    ) -> tuple[list[LocalEntry], list[LocalEntry]]:
        directories: list[LocalEntry] = []
        files: list[LocalEntry] = []
        visited.add(directory.resolve())

        try:
            items = sorted(directory.iterdir(), key=lambda p: p.name)
        except PermissionError as e:
            logger.warning(f"Cannot read directory {directory}: {e}")
            return directories, files

        for item in items:
            relative_path = item.relative_to(base_path).as_posix()
            if self.is_excluded(relative_path):
                logger.debug(f"Excluded: {relative_path}")
                continue

            if item.is_symlink() and item.is_dir():
                if not self.follow_links:
                    logger.debug(f"Not following symlinked directory: {relative_path}")
                    continue
                if item.resolve() in visited:
                    logger.warning(f"Skipping symlink loop: {relative_path}")
                    continue

            try:
                entry = LocalEntry.from_path(item, relative_path)
            except OSError as e:
                logger.warning(f"Cannot read {item}: {e}")
                continue

            if entry.is_directory:
                directories.append(entry)
                sub_directories, sub_files = self._walk(item, base_path, visited)
                directories.extend(sub_directories)
                files.extend(sub_files)
            elif self.is_included(relative_path):
                files.append(entry)

        return directories, files

    def scan(self, sources: Iterable[Path]) -> list[LocalEntry]:
        """Recursively scan source directories.

        Entries from several sources are merged by relative path; the first
        source wins.

        Args:
            sources: Source root directories

        Returns:
            Directories (sorted by path) followed by files
        """
        directories: dict[str, LocalEntry] = {}
        files: dict[str, LocalEntry] = {}

        for source in sources:
            source_dirs, source_files = self._walk(source, source, set())
            for entry in source_dirs:
                directories.setdefault(entry.relative_path, entry)
            for entry in source_files:
                files.setdefault(entry.relative_path, entry)

        if self.include:
            # Only keep directories that lead to an included file
            needed = {a for f in files for a in ancestor_paths(f)}
            directories = {p: e for p, e in directories.items() if p in needed}

        ordered = [directories[path] for path in sorted(directories)]
        return ordered + list(files.values())
