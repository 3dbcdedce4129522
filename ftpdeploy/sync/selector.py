"""Selection of the local entries a run has to process."""

import logging
from pathlib import Path
from typing import Optional

from ..output import OutputFormatter
from ..transport import FtpSession
from ..utils import DEPLOYABLE_CHANGES, normalize_relative_path
from ..vcs import GitRepository
from .config import SyncConfiguration
from .marker import RevisionMarkerManager
from .scanner import DirectoryScanner, LocalEntry

logger = logging.getLogger(__name__)


class ChangeSelector:
    """Produces the ordered entries for a run.

    In full mode the source roots are scanned. In incremental mode the file
    set comes from git: the diff between the remote marker and the current
    revision, or every tracked file when the server has no marker.
    Explicit files are appended in both modes.
    """

    def __init__(
        self,
        config: SyncConfiguration,
        marker: RevisionMarkerManager,
        output: OutputFormatter,
        repository: Optional[GitRepository] = None,
    ):
        """Initialize change selector.

        Args:
            config: Run configuration
            marker: Revision marker manager for incremental mode
            output: Output formatter for progress messages
            repository: git repository (required in incremental mode)
        """
        self.config = config
        self.marker = marker
        self.output = output
        self.repository = repository
        self.scanner = DirectoryScanner(
            include=list(config.include),
            exclude=list(config.exclude),
            ignore_vcs=config.ignore_vcs,
            follow_links=config.follow_links,
        )
        self.base_revision: Optional[str] = None
        self.current_revision: Optional[str] = None

    def select(self, session: FtpSession) -> list[LocalEntry]:
        """Return the entries to process, directories first.

        Raises:
            VcsError: If git cannot be queried in incremental mode
        """
        if self.config.incremental:
            entries = self._select_incremental(session)
        else:
            entries = self.scanner.scan(self.config.sources)

        seen = {entry.relative_path for entry in entries}
        for entry in self._explicit_entries():
            if entry.relative_path not in seen:
                seen.add(entry.relative_path)
                entries.append(entry)
        return entries

    def _select_incremental(self, session: FtpSession) -> list[LocalEntry]:
        if self.repository is None:
            self.repository = GitRepository(self.config.repository)

        self.output.info("Checking remote site for git info...")
        self.current_revision = self.repository.current_revision_id()
        self.base_revision = self.marker.read(session)

        if self.base_revision:
            self.output.info(f"Remote site has version {self.base_revision}.")
            self.output.info("Scanning for changes...")
            paths = self.repository.diff_names_between(
                self.base_revision, self.current_revision, DEPLOYABLE_CHANGES
            )
        else:
            self.output.info("No git info found on remote site.")
            self.output.info("Adding all files in repository...")
            paths = self.repository.list_tracked_files()

        entries: list[LocalEntry] = []
        for path in paths:
            relative_path = normalize_relative_path(path)
            if self.scanner.is_excluded(relative_path):
                logger.debug(f"Excluded: {relative_path}")
                continue
            entry = self._load(self.repository.root / relative_path, relative_path)
            if entry is not None and not entry.is_directory:
                entries.append(entry)
        return entries

    def _explicit_entries(self) -> list[LocalEntry]:
        entries: list[LocalEntry] = []
        for name in self.config.files:
            path = Path(name)
            if path.is_absolute():
                relative_path = self._relative_to_sources(path)
            else:
                relative_path = normalize_relative_path(path.as_posix())
                path = self.config.repository / path
            entry = self._load(path, relative_path)
            if entry is not None:
                entries.append(entry)
        return entries

    def _relative_to_sources(self, path: Path) -> str:
        for source in self.config.sources:
            try:
                return path.relative_to(source.absolute()).as_posix()
            except ValueError:
                continue
        return path.name

    def _load(self, path: Path, relative_path: str) -> Optional[LocalEntry]:
        try:
            return LocalEntry.from_path(path, relative_path)
        except OSError as e:
            self.output.warning(f"Skipping missing local file {relative_path}: {e}")
            return None
