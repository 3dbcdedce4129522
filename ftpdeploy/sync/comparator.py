"""Skip policy evaluation for files that may already exist remotely."""

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from .remote import RemoteDirectoryState, RemoteFileMetadata
from .scanner import LocalEntry

MetadataFetcher = Callable[[bool, bool], RemoteFileMetadata]


class SyncAction(str, Enum):
    """Actions that can be taken for a file."""

    UPLOAD = "upload"
    """Send the local file"""

    SKIP = "skip"
    """Leave the remote file alone"""


class ExistingFilePolicy(str, Enum):
    """What to do with an existing remote file when no skip policy is set."""

    OVERWRITE = "overwrite"
    """Always upload over it (deploy behavior)"""

    KEEP = "keep"
    """Always leave it and report a skip (mirror behavior)"""


@dataclass
class SyncDecision:
    """Represents a decision about how to deploy a file."""

    action: SyncAction
    """Action to take"""

    reason: str
    """Human-readable reason for this decision"""

    entry: LocalEntry
    """Local file the decision is about"""

    remote: Optional[RemoteFileMetadata] = None
    """Remote metadata consulted, if any"""

    @property
    def relative_path(self) -> str:
        return self.entry.relative_path


class SyncPolicyEvaluator:
    """Decides whether a local file must be uploaded.

    Rules are applied in a fixed order, and remote metadata is only fetched
    for the rules that are enabled:

    ====================  ==================  ===========================
    policy                probe               skips when
    ====================  ==================  ===========================
    skip_size_equal       SIZE                remote size == local size
    skip_unmodified       MDTM                remote mtime >= local mtime
    ====================  ==================  ===========================
    """

    def __init__(
        self,
        skip_size_equal: bool = False,
        skip_unmodified: bool = False,
        existing_files: ExistingFilePolicy = ExistingFilePolicy.OVERWRITE,
    ):
        """Initialize evaluator.

        Args:
            skip_size_equal: Skip files whose remote size equals the local one
            skip_unmodified: Skip files whose remote copy is not older
            existing_files: Behavior for existing files when both skip
                policies are disabled
        """
        self.skip_size_equal = skip_size_equal
        self.skip_unmodified = skip_unmodified
        self.existing_files = existing_files

    @property
    def needs_metadata(self) -> bool:
        return self.skip_size_equal or self.skip_unmodified

    def evaluate(
        self,
        entry: LocalEntry,
        parent: RemoteDirectoryState,
        fetch_metadata: MetadataFetcher,
    ) -> SyncDecision:
        """Decide whether to upload a file.

        Args:
            entry: Local file
            parent: State of the remote directory that will hold the file
            fetch_metadata: Callable ``(want_size, want_mtime)`` returning
                the remote file's RemoteFileMetadata

        Returns:
            SyncDecision for the file
        """
        if entry.name not in parent:
            return SyncDecision(SyncAction.UPLOAD, "New file", entry)

        if not self.needs_metadata:
            if self.existing_files == ExistingFilePolicy.KEEP:
                return SyncDecision(SyncAction.SKIP, "Remote file exists", entry)
            return SyncDecision(SyncAction.UPLOAD, "Overwriting remote file", entry)

        if self.skip_size_equal:
            metadata = fetch_metadata(True, False)
            if metadata.size is not None and metadata.size == entry.size:
                return SyncDecision(
                    SyncAction.SKIP, "Same size on remote", entry, metadata
                )

        if self.skip_unmodified:
            metadata = fetch_metadata(False, True)
            # MDTM has whole second resolution
            if metadata.mtime is not None and metadata.mtime >= int(entry.mtime):
                return SyncDecision(
                    SyncAction.SKIP, "Remote file is not older", entry, metadata
                )

        return SyncDecision(SyncAction.UPLOAD, "Remote file differs", entry)
