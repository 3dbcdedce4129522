"""Remote revision marker for incremental deployments.

The marker is a small text file at the target root holding the id of the
last revision deployed without errors. Incremental runs diff against it.
"""

import logging
from typing import Optional

from ..exceptions import FtpTransferError
from ..transport import FtpSession
from ..utils import DEFAULT_MARKER_NAME, join_remote
from .remote import RemoteStateProber

logger = logging.getLogger(__name__)


class RevisionMarkerManager:
    """Reads and writes the revision marker file."""

    def __init__(
        self,
        prober: RemoteStateProber,
        target_directory: str,
        marker_name: str = DEFAULT_MARKER_NAME,
    ):
        self.prober = prober
        self.target_directory = target_directory
        self.marker_name = marker_name

    @property
    def marker_path(self) -> str:
        return join_remote(self.target_directory, self.marker_name)

    def read(self, session: FtpSession) -> Optional[str]:
        """Read the last deployed revision.

        A missing, empty or unreadable marker is reported as None; it is
        never an error.

        Args:
            session: Open FTP session

        Returns:
            Revision id or None
        """
        state = self.prober.directory_state(session, self.target_directory)
        if self.marker_name not in state:
            logger.debug(f"No marker at {self.marker_path}")
            return None

        try:
            content = session.read_text_file(self.marker_path)
        except FtpTransferError as e:
            logger.warning(f"Failed to read revision marker: {e}")
            return None

        revision = content.strip() if content else ""
        if not revision:
            logger.warning(f"Revision marker {self.marker_path} is empty")
            return None
        return revision

    def write(self, session: FtpSession, revision: str) -> None:
        """Record a revision as deployed, replacing any previous marker.

        Raises:
            FtpTransferError: If the server rejects the write
        """
        session.write_text_file(self.marker_path, revision)
        self.prober.record_entry(self.marker_path)
        logger.debug(f"Wrote revision {revision} to {self.marker_path}")
