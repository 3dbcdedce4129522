"""Immutable run configuration for a deployment."""

from dataclasses import dataclass, field
from pathlib import Path

from ..exceptions import FtpDeployConfigError
from ..utils import DEFAULT_MARKER_NAME, DEFAULT_PORT, DEFAULT_TIMEOUT
from .comparator import ExistingFilePolicy


@dataclass(frozen=True)
class SyncConfiguration:
    """All parameters of one deployment run.

    Built by DeployTask; never mutated while a run is in progress.
    """

    host: str
    user: str = "anonymous"
    password: str = field(default="", repr=False)
    port: int = DEFAULT_PORT
    secure: bool = True
    timeout: float = DEFAULT_TIMEOUT

    target_directory: str = "/"
    """Absolute normalized remote root"""

    sources: tuple[Path, ...] = ()
    """Local source roots scanned in full mode"""

    files: tuple[str, ...] = ()
    """Explicit extra files"""

    include: tuple[str, ...] = ()
    exclude: tuple[str, ...] = ()
    ignore_vcs: bool = True
    follow_links: bool = False
    """Descend into symlinked source directories"""

    skip_size_equal: bool = False
    skip_unmodified: bool = False
    existing_files: ExistingFilePolicy = ExistingFilePolicy.OVERWRITE

    incremental: bool = False
    """Select files from the git diff against the remote marker"""

    dry_run: bool = False

    repository: Path = field(default_factory=Path.cwd)
    """git working tree root, also the base for relative explicit files"""

    marker_name: str = DEFAULT_MARKER_NAME

    @property
    def url(self) -> str:
        """Display URL of the deployment target (without password)."""
        scheme = "ftps" if self.secure else "ftp"
        port = "" if self.port == DEFAULT_PORT else f":{self.port}"
        return f"{scheme}://{self.user}@{self.host}{port}{self.target_directory}"

    def validate(self) -> None:
        """Check the configuration for a run.

        Raises:
            FtpDeployConfigError: If the configuration cannot be deployed
        """
        if not self.host:
            raise FtpDeployConfigError("No FTP host configured")
        if not 1 <= self.port <= 65535:
            raise FtpDeployConfigError(f"Invalid port: {self.port}")
        if not self.target_directory.startswith("/"):
            raise FtpDeployConfigError(
                f"Target directory must be absolute: {self.target_directory}"
            )
        if not self.incremental and not (self.sources or self.files):
            raise FtpDeployConfigError("Nothing to deploy: no sources or files given")
        for source in self.sources:
            if not source.is_dir():
                raise FtpDeployConfigError(f"Source is not a directory: {source}")
