"""Remote state probing with per-run caching."""

import logging
from dataclasses import dataclass, field
from typing import Optional

from ..transport import FtpSession
from ..utils import join_remote, remote_basename, remote_parent

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RemoteDirectoryState:
    """Existence and listing of one remote directory."""

    path: str
    """Absolute remote path"""

    exists: bool
    """Whether the directory exists on the server"""

    entry_names: frozenset[str] = field(default_factory=frozenset)
    """Basenames of the entries in the directory"""

    def __contains__(self, name: str) -> bool:
        return name in self.entry_names


@dataclass(frozen=True)
class RemoteFileMetadata:
    """Size and modification time of an existing remote file.

    Fields are None when they were not requested or the server could not
    report them.
    """

    size: Optional[int] = None
    mtime: Optional[float] = None


class RemoteStateProber:
    """Queries remote directories and files over one session.

    Directory states are fetched at most once per path per run. The prober
    also tracks which directory the session is expected to be in, so
    directory changes are only issued when needed.
    """

    def __init__(self) -> None:
        self._states: dict[str, RemoteDirectoryState] = {}
        self.current_directory: Optional[str] = None
        self.probe_count = 0

    def directory_state(self, session: FtpSession, path: str) -> RemoteDirectoryState:
        """Get the state of a remote directory, probing it on first use.

        Args:
            session: Open FTP session
            path: Absolute normalized remote directory

        Returns:
            RemoteDirectoryState for the path
        """
        state = self._states.get(path)
        if state is not None:
            return state

        self.probe_count += 1
        if session.directory_exists(path):
            state = RemoteDirectoryState(
                path=path, exists=True, entry_names=frozenset(session.list_names(path))
            )
        else:
            state = RemoteDirectoryState(path=path, exists=False)
        logger.debug(
            f"Probed {path}: exists={state.exists}, {len(state.entry_names)} entries"
        )
        self._states[path] = state
        return state

    def record_directory(self, path: str) -> None:
        """Record that a directory now exists (created or planned in dry-run).

        The new directory is known to be empty and its parent listing gains
        its basename.
        """
        self._states[path] = RemoteDirectoryState(path=path, exists=True)
        self.record_entry(path)

    def record_entry(self, path: str) -> None:
        """Add a path's basename to its cached parent listing, if cached."""
        if path == "/":
            return
        parent = self._states.get(remote_parent(path))
        if parent is not None and remote_basename(path) not in parent.entry_names:
            self._states[parent.path] = RemoteDirectoryState(
                path=parent.path,
                exists=True,
                entry_names=parent.entry_names | {remote_basename(path)},
            )

    def enter_directory(self, session: FtpSession, path: str) -> bool:
        """Make ``path`` the session's working directory.

        Returns:
            True if the session is now in ``path``
        """
        if self.current_directory == path:
            return True
        if session.change_directory(path):
            self.current_directory = path
            return True
        self.current_directory = None
        return False

    def file_metadata(
        self,
        session: FtpSession,
        directory: str,
        name: str,
        want_size: bool = False,
        want_mtime: bool = False,
    ) -> RemoteFileMetadata:
        """Fetch metadata of a file in ``directory``.

        Only the requested fields are queried. SIZE and MDTM address the
        file by absolute path and never change the working directory.

        Args:
            session: Open FTP session
            directory: Absolute remote directory containing the file
            name: File basename
            want_size: Query the size
            want_mtime: Query the modification time

        Returns:
            RemoteFileMetadata with the requested fields
        """
        if not (want_size or want_mtime):
            return RemoteFileMetadata()

        path = join_remote(directory, name)
        size = session.file_size(path) if want_size else None
        mtime = session.file_modified_at(path) if want_mtime else None
        return RemoteFileMetadata(size=size, mtime=mtime)
