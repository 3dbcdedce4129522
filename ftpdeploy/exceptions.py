"""Exceptions raised by ftpdeploy."""


class FtpDeployError(Exception):
    """Base exception for all ftpdeploy errors."""


class FtpDeployConfigError(FtpDeployError):
    """Raised when the deploy configuration is invalid or incomplete."""


class FtpConnectionError(FtpDeployError):
    """Raised when the control connection is lost or cannot be established.

    Connection errors are fatal: the deployment aborts immediately.
    """


class FtpAuthenticationError(FtpConnectionError):
    """Raised when the server rejects the login credentials."""


class FtpTransferError(FtpDeployError):
    """Raised when a single remote operation is rejected by the server.

    Transfer errors only affect the entry being processed.
    """


class FtpPermissionError(FtpTransferError):
    """Raised when the server denies access to a path (5xx reply)."""


class VcsError(FtpDeployError):
    """Raised when a git query fails (not a repository, unknown revision)."""
