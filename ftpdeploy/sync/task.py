"""Fluent deploy task builder and the connect/run/close wrapper."""

from dataclasses import replace
from pathlib import Path
from typing import Any, Callable, Optional, Union

from ..exceptions import FtpConnectionError
from ..output import OutputFormatter
from ..transport import FtpSession, connect
from ..utils import normalize_remote_path
from ..vcs import GitRepository
from .comparator import ExistingFilePolicy
from .config import SyncConfiguration
from .engine import DeployEngine
from .result import DeployResult

Connector = Callable[..., FtpSession]


def deploy(
    config: SyncConfiguration,
    output: Optional[OutputFormatter] = None,
    repository: Optional[GitRepository] = None,
    connector: Connector = connect,
) -> DeployResult:
    """Connect, run a deployment and close the connection.

    Args:
        config: Validated run configuration
        output: Output formatter for progress messages
        repository: git repository for incremental mode
        connector: Session factory, ``connect`` by default

    Returns:
        DeployResult; a failed connection or login is a FATAL result
    """
    output = output or OutputFormatter()
    try:
        session = connector(
            host=config.host,
            user=config.user,
            password=config.password,
            port=config.port,
            secure=config.secure,
            timeout=config.timeout,
        )
    except FtpConnectionError as e:
        return DeployResult.fatal(str(e), dry_run=config.dry_run)

    try:
        return DeployEngine(config, output, repository).run(session)
    finally:
        session.close()


class DeployTask:
    """Builds a deployment step by step.

    Every setter returns the task, so calls can be chained in any order;
    ``run()`` (or ``build()``) must come last.

    Examples:
        >>> result = (
        ...     DeployTask("ftp.example.com", "deploy", "secret")
        ...     .dir("/www")
        ...     .from_("public")
        ...     .exclude("*.log")
        ...     .skip_size_equal()
        ...     .run()
        ... )
    """

    def __init__(self, host: str, user: str = "anonymous", password: str = ""):
        """Initialize deploy task.

        Args:
            host: FTP host to connect to
            user: User to log in as
            password: Password to log in with
        """
        self._config = SyncConfiguration(host=host, user=user, password=password)

    def _set(self, **changes: Any) -> "DeployTask":
        self._config = replace(self._config, **changes)
        return self

    def port(self, port: int) -> "DeployTask":
        """Set the control port."""
        return self._set(port=int(port))

    def timeout(self, seconds: float) -> "DeployTask":
        return self._set(timeout=float(seconds))

    def dir(self, directory: str) -> "DeployTask":
        """Set the remote directory to deploy to."""
        return self._set(target_directory=normalize_remote_path(directory))

    def from_(self, directory: Union[str, Path]) -> "DeployTask":
        """Add a local source directory to scan."""
        return self._set(sources=self._config.sources + (Path(directory),))

    def files(self, files: Union[str, Path, list[Union[str, Path]]]) -> "DeployTask":
        """Add a file or list of files to deploy explicitly."""
        if isinstance(files, (str, Path)):
            files = [files]
        return self._set(files=self._config.files + tuple(str(f) for f in files))

    def matching(self, pattern: str) -> "DeployTask":
        """Add a glob pattern files must match."""
        return self._set(include=self._config.include + (pattern,))

    def exclude(self, pattern: str) -> "DeployTask":
        """Add a glob pattern of paths to leave out."""
        return self._set(exclude=self._config.exclude + (pattern,))

    def secure(self, secure: bool = True) -> "DeployTask":
        """Enable or disable FTPS."""
        return self._set(secure=secure)

    def skip_size_equal(self, enabled: bool = True) -> "DeployTask":
        """Skip files whose remote size equals the local size."""
        return self._set(skip_size_equal=enabled)

    def skip_unmodified(self, enabled: bool = True) -> "DeployTask":
        """Skip files whose remote copy is as new as the local one."""
        return self._set(skip_unmodified=enabled)

    def keep_existing(self) -> "DeployTask":
        """Leave existing remote files alone when no skip policy is set."""
        return self._set(existing_files=ExistingFilePolicy.KEEP)

    def overwrite_existing(self) -> "DeployTask":
        """Overwrite existing remote files when no skip policy is set."""
        return self._set(existing_files=ExistingFilePolicy.OVERWRITE)

    def git_diff(self, enabled: bool = True) -> "DeployTask":
        """Deploy only files changed since the revision on the server."""
        return self._set(incremental=enabled)

    def repository(self, path: Union[str, Path]) -> "DeployTask":
        """Set the git working tree used for incremental deploys."""
        return self._set(repository=Path(path))

    def ignore_vcs(self, ignore: bool = True) -> "DeployTask":
        """Enable or disable skipping of VCS metadata directories."""
        return self._set(ignore_vcs=ignore)

    def follow_links(self, follow: bool = True) -> "DeployTask":
        """Enable or disable descending into symlinked directories."""
        return self._set(follow_links=follow)

    def dry_run(self, enabled: bool = True) -> "DeployTask":
        """Report the plan without changing anything remotely."""
        return self._set(dry_run=enabled)

    def build(self) -> SyncConfiguration:
        """Finalize the task into a validated configuration.

        Raises:
            FtpDeployConfigError: If the configuration is incomplete
        """
        self._config.validate()
        return self._config

    def run(
        self,
        output: Optional[OutputFormatter] = None,
        connector: Connector = connect,
    ) -> DeployResult:
        """Build the configuration and deploy it."""
        return deploy(self.build(), output=output, connector=connector)

