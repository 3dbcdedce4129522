"""Git queries used by incremental deployments."""

import logging
import subprocess
from pathlib import Path
from typing import Optional, Union

from .exceptions import VcsError
from .utils import DEPLOYABLE_CHANGES

logger = logging.getLogger(__name__)


class GitRepository:
    """Runs read-only git commands against one working tree.

    Paths returned by this class are relative to the repository root and
    always use forward slashes.
    """

    def __init__(self, root: Union[Path, str, None] = None, git: str = "git"):
        """Initialize repository wrapper.

        Args:
            root: Working tree root (defaults to the current directory)
            git: git executable
        """
        self.root = Path(root) if root is not None else Path.cwd()
        self.git = git

    def _run(self, *args: str) -> str:
        command = [self.git, *args]
        logger.debug(f"Running {' '.join(command)} in {self.root}")
        try:
            result = subprocess.run(
                command,
                cwd=str(self.root),
                capture_output=True,
                text=True,
                check=True,
            )
        except FileNotFoundError as e:
            raise VcsError(f"git executable not found: {self.git}") from e
        except subprocess.CalledProcessError as e:
            message = (e.stderr or "").strip() or f"exit status {e.returncode}"
            raise VcsError(f"git {args[0]} failed: {message}") from e
        return result.stdout

    @staticmethod
    def _split_paths(output: str) -> list[str]:
        return [path for path in output.split("\0") if path]

    def current_revision_id(self) -> str:
        """Resolve the commit id of HEAD."""
        revision = self._run("rev-parse", "HEAD").strip()
        if not revision:
            raise VcsError("git rev-parse returned no revision")
        return revision

    def diff_names_between(
        self,
        from_revision: str,
        to_revision: str,
        filters: Optional[str] = DEPLOYABLE_CHANGES,
    ) -> list[str]:
        """List paths changed between two revisions.

        Args:
            from_revision: Base revision
            to_revision: Target revision
            filters: git ``--diff-filter`` letters, None for all changes

        Returns:
            Changed paths in git order
        """
        args = ["diff", "--name-only", "-z", "--no-renames"]
        if filters:
            args.append(f"--diff-filter={filters}")
        args.extend([from_revision, to_revision, "--"])
        return self._split_paths(self._run(*args))

    def list_tracked_files(self) -> list[str]:
        """List every tracked path in the working tree."""
        return self._split_paths(self._run("ls-files", "-z", "--full-name"))
