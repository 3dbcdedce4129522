"""Transfer execution for directory and file entries."""

import logging
import time
from typing import Optional

from ..exceptions import FtpTransferError
from ..output import OutputFormatter
from ..transport import FtpSession
from ..utils import format_size, join_remote
from .comparator import SyncAction, SyncDecision
from .materializer import DirectoryMaterializer
from .remote import RemoteStateProber
from .result import EntryFailure
from .scanner import LocalEntry

logger = logging.getLogger(__name__)


class TransferExecutor:
    """Performs the remote side effects of a deployment.

    Per-entry problems are returned as EntryFailure values so the run can
    continue; FtpConnectionError is left to propagate.
    """

    def __init__(
        self,
        prober: RemoteStateProber,
        materializer: DirectoryMaterializer,
        target_directory: str,
        output: OutputFormatter,
        dry_run: bool = False,
    ):
        """Initialize transfer executor.

        Args:
            prober: Remote state prober (tracks the working directory)
            materializer: Directory materializer for directory entries
            target_directory: Absolute normalized remote target root
            output: Output formatter for progress messages
            dry_run: Report transfers without performing them
        """
        self.prober = prober
        self.materializer = materializer
        self.target_directory = target_directory
        self.output = output
        self.dry_run = dry_run
        self.uploads = 0
        self.skips = 0

    def create_directory(
        self, session: FtpSession, entry: LocalEntry
    ) -> Optional[EntryFailure]:
        """Materialize a directory entry.

        Returns:
            EntryFailure if the directory could not be created
        """
        if self.materializer.ensure_directory(session, entry.relative_path):
            return None
        reason = self.materializer.failure_for(entry.relative_path)
        return EntryFailure(entry.relative_path, f"Cannot create directory: {reason}")

    def transfer(
        self, session: FtpSession, decision: SyncDecision
    ) -> Optional[EntryFailure]:
        """Carry out an upload or skip decision for a file.

        Args:
            session: Open FTP session
            decision: Decision produced by the policy evaluator

        Returns:
            EntryFailure if the upload failed, None otherwise
        """
        entry = decision.entry

        if decision.action == SyncAction.SKIP:
            self.skips += 1
            self.output.progress_message(
                f"Skipping: {entry.relative_path} ({decision.reason.lower()})"
            )
            return None

        self.output.progress_message(
            f"Uploading: {entry.relative_path} ({format_size(entry.size)})"
        )
        if self.dry_run:
            self.uploads += 1
            return None

        directory = join_remote(self.target_directory, entry.parent)
        session.set_passive(True)
        if not self.prober.enter_directory(session, directory):
            return EntryFailure(
                entry.relative_path, f"Cannot change to remote directory {directory}"
            )

        start = time.time()
        try:
            uploaded = session.upload(entry.name, entry.path, binary=True)
        except FtpTransferError as e:
            return EntryFailure(entry.relative_path, str(e))

        if not uploaded:
            return EntryFailure(entry.relative_path, "Upload rejected by server")

        logger.debug(
            f"Upload of {entry.relative_path} took {time.time() - start:.2f}s"
        )
        self.uploads += 1
        self.prober.record_entry(join_remote(directory, entry.name))
        return None
