"""Ensures remote directories exist before anything is sent into them."""

import logging
from typing import Optional

from ..exceptions import FtpTransferError
from ..output import OutputFormatter
from ..transport import FtpSession
from ..utils import ancestor_paths, join_remote, remote_basename, remote_parent
from .remote import RemoteStateProber

logger = logging.getLogger(__name__)


class DirectoryMaterializer:
    """Creates missing remote directories, once per path per run.

    In dry-run mode nothing is created; planned directories are recorded as
    existing so that the rest of the run behaves as if they had been made.
    """

    def __init__(
        self,
        prober: RemoteStateProber,
        target_directory: str,
        output: OutputFormatter,
        dry_run: bool = False,
    ):
        """Initialize materializer.

        Args:
            prober: Remote state prober shared with the rest of the run
            target_directory: Absolute normalized remote target root
            output: Output formatter for progress messages
            dry_run: Report creations without performing them
        """
        self.prober = prober
        self.target_directory = target_directory
        self.output = output
        self.dry_run = dry_run
        self._ready: set[str] = set()
        self._failed: dict[str, str] = {}
        self.created = 0
        self.existing = 0

    def prepare_target(self, session: FtpSession) -> None:
        """Create the target root recursively if it is missing.

        Raises:
            FtpTransferError: If the root cannot be created
            FtpConnectionError: If the connection is lost
        """
        state = self.prober.directory_state(session, self.target_directory)
        if not state.exists:
            self.output.progress_message(
                f"Creating directory: {self.target_directory}"
            )
            if not self.dry_run:
                session.create_directory_recursive(self.target_directory)
            self.prober.record_directory(self.target_directory)
        self._ready.add(self.target_directory)

    def failure_for(self, relative_path: str) -> Optional[str]:
        """Return the creation error of a directory, if it failed."""
        return self._failed.get(relative_path)

    def ensure_directory(self, session: FtpSession, relative_path: str) -> bool:
        """Ensure a directory below the target root exists.

        Args:
            session: Open FTP session
            relative_path: Directory path relative to the target root

        Returns:
            True if the directory exists (or will in dry-run), False if its
            creation failed

        Raises:
            FtpConnectionError: If the connection is lost
        """
        remote_path = join_remote(self.target_directory, relative_path)
        if remote_path in self._ready:
            return True
        if relative_path in self._failed:
            return False

        parent = self.prober.directory_state(session, remote_parent(remote_path))
        if remote_basename(remote_path) in parent:
            logger.debug(f"Directory exists: {relative_path}")
            self.existing += 1
            self._ready.add(remote_path)
            return True

        self.output.progress_message(f"Creating directory: {relative_path}")
        if not self.dry_run:
            try:
                session.create_directory(remote_path)
            except FtpTransferError as e:
                logger.debug(f"Creating {remote_path} failed: {e}")
                self._failed[relative_path] = str(e)
                return False

        self.created += 1
        self.prober.record_directory(remote_path)
        self._ready.add(remote_path)
        return True

    def ensure_parents(self, session: FtpSession, relative_path: str) -> bool:
        """Ensure every ancestor directory of a path exists.

        Returns:
            False as soon as one ancestor cannot be created
        """
        for ancestor in ancestor_paths(relative_path):
            if not self.ensure_directory(session, ancestor):
                return False
        return True

