"""ftpdeploy - incremental, git-aware deployments over FTP/FTPS."""

from .exceptions import (
    FtpAuthenticationError,
    FtpConnectionError,
    FtpDeployConfigError,
    FtpDeployError,
    FtpPermissionError,
    FtpTransferError,
    VcsError,
)
from .sync import DeployResult, DeployTask, RunStatus, SyncConfiguration, deploy
from .transport import FtpSession, connect
from .vcs import GitRepository

__all__ = [
    "DeployTask",
    "DeployResult",
    "RunStatus",
    "SyncConfiguration",
    "deploy",
    "connect",
    "FtpSession",
    "GitRepository",
    "FtpDeployError",
    "FtpDeployConfigError",
    "FtpConnectionError",
    "FtpAuthenticationError",
    "FtpTransferError",
    "FtpPermissionError",
    "VcsError",
]
