"""CLI interface for ftpdeploy."""

import logging
from pathlib import Path
from typing import Any, Optional

import click

from .config import config
from .exceptions import FtpConnectionError, FtpDeployConfigError, VcsError
from .output import OutputFormatter
from .sync import DeployResult, DeployTask, RunStatus, deploy
from .sync.marker import RevisionMarkerManager
from .sync.remote import RemoteStateProber
from .transport import connect
from .utils import DEFAULT_MARKER_NAME, normalize_remote_path
from .vcs import GitRepository

logger = logging.getLogger(__name__)


def connection_options(func: Any) -> Any:
    """Add the shared connection options to a command."""
    options = [
        click.option("--host", "-H", envvar="FTPDEPLOY_HOST", help="FTP host"),
        click.option("--user", "-u", envvar="FTPDEPLOY_USER", help="FTP user"),
        click.option(
            "--password",
            "-p",
            envvar="FTPDEPLOY_PASSWORD",
            help="FTP password (prompted if not configured)",
        ),
        click.option(
            "--port", "-P", type=int, envvar="FTPDEPLOY_PORT", help="FTP port"
        ),
        click.option(
            "--secure/--insecure",
            default=True,
            help="Use FTPS (explicit TLS). Enabled by default.",
        ),
        click.option(
            "--target-dir",
            "-t",
            default="/",
            help="Remote directory to deploy to (default: /)",
        ),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def resolve_connection(
    ctx: Any,
    out: OutputFormatter,
    host: Optional[str],
    user: Optional[str],
    password: Optional[str],
    port: Optional[int],
) -> tuple[str, str, str, int]:
    """Merge connection options with the stored configuration.

    Exits with status 1 if no host is available.
    """
    host = host or config.host
    user = user or config.user or "anonymous"
    if not host:
        out.error("No FTP host configured. Use --host or run 'ftpdeploy init'.")
        ctx.exit(1)
    if password is None:
        password = config.password
    if password is None:
        password = click.prompt(f"Password for {user}@{host}", hide_input=True)
    try:
        resolved_port = port or config.port
    except FtpDeployConfigError as e:
        out.error(str(e))
        ctx.exit(1)
    return str(host), user, password, resolved_port


@click.group()
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output")
@click.option("--json", is_flag=True, help="Output in JSON format")
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    help="Enable verbose/debug logging output",
)
@click.version_option(package_name="ftpdeploy")
@click.pass_context
def main(ctx: Any, quiet: bool, json: bool, verbose: bool) -> None:
    """ftpdeploy - Deploy a local tree to an FTP/FTPS server."""
    ctx.ensure_object(dict)
    ctx.obj["out"] = OutputFormatter(json_output=json, quiet=quiet)
    ctx.obj["verbose"] = verbose

    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%H:%M:%S",
        )
        logging.getLogger("ftpdeploy").setLevel(logging.DEBUG)
    else:
        logging.basicConfig(level=logging.WARNING)


@main.command()
@click.option("--host", "-H", prompt="FTP host", help="FTP host")
@click.option("--user", "-u", prompt="FTP user", help="FTP user")
@click.option(
    "--password",
    "-p",
    prompt="FTP password",
    hide_input=True,
    default="",
    help="FTP password (leave empty to be prompted on every run)",
)
@click.option("--port", "-P", type=int, default=21, help="FTP port (default: 21)")
@click.pass_context
def init(ctx: Any, host: str, user: str, password: str, port: int) -> None:
    """Store connection settings in ~/.config/ftpdeploy/config."""
    out: OutputFormatter = ctx.obj["out"]

    try:
        config.save(host=host, user=user, password=password or None, port=str(port))
    except (OSError, FtpDeployConfigError) as e:
        out.error(f"Failed to save configuration: {e}")
        ctx.exit(1)

    out.print_summary(
        "Initialization Complete",
        [
            ("Status", "✓ Configuration saved successfully"),
            ("Config file", str(config.get_config_path())),
        ],
    )


@main.command(name="deploy")
@click.argument("sources", nargs=-1, type=click.Path(exists=True, file_okay=False))
@connection_options
@click.option(
    "--file",
    "-f",
    "files",
    multiple=True,
    help="Extra file to deploy (repeatable)",
)
@click.option(
    "--include",
    "-i",
    multiple=True,
    help="Only deploy files matching this glob pattern (repeatable)",
)
@click.option(
    "--exclude",
    "-e",
    multiple=True,
    help="Leave out paths matching this glob pattern (repeatable)",
)
@click.option(
    "--skip-size-equal",
    is_flag=True,
    help="Skip files whose remote size equals the local size",
)
@click.option(
    "--skip-unmodified",
    is_flag=True,
    help="Skip files whose remote copy is not older than the local file",
)
@click.option(
    "--keep-existing",
    is_flag=True,
    help="Never overwrite existing remote files when no skip option is set",
)
@click.option(
    "--git-diff",
    is_flag=True,
    help="Deploy only files changed since the revision recorded on the server",
)
@click.option(
    "--repository",
    type=click.Path(exists=True, file_okay=False),
    default=".",
    help="git working tree for --git-diff (default: current directory)",
)
@click.option(
    "--no-ignore-vcs",
    is_flag=True,
    help="Also deploy version control directories such as .git",
)
@click.option(
    "--follow-links",
    is_flag=True,
    help="Descend into symlinked directories (skipped by default)",
)
@click.option("--dry-run", is_flag=True, help="Show what would be deployed")
@click.pass_context
def deploy_command(
    ctx: Any,
    sources: tuple[str, ...],
    host: Optional[str],
    user: Optional[str],
    password: Optional[str],
    port: Optional[int],
    secure: bool,
    target_dir: str,
    files: tuple[str, ...],
    include: tuple[str, ...],
    exclude: tuple[str, ...],
    skip_size_equal: bool,
    skip_unmodified: bool,
    keep_existing: bool,
    git_diff: bool,
    repository: str,
    no_ignore_vcs: bool,
    follow_links: bool,
    dry_run: bool,
) -> None:
    """Deploy SOURCES to the remote target directory.

    Examples:

        ftpdeploy deploy public -H ftp.example.com -u web -t /www

        ftpdeploy deploy public --skip-size-equal --skip-unmodified

        ftpdeploy deploy --git-diff -t /www          # Only changed files

        ftpdeploy deploy public --dry-run            # Preview
    """
    out: OutputFormatter = ctx.obj["out"]
    host, user, password, port = resolve_connection(
        ctx, out, host, user, password, port
    )

    task = (
        DeployTask(host, user, password)
        .port(port)
        .secure(secure)
        .dir(target_dir)
        .skip_size_equal(skip_size_equal)
        .skip_unmodified(skip_unmodified)
        .git_diff(git_diff)
        .repository(repository)
        .ignore_vcs(not no_ignore_vcs)
        .follow_links(follow_links)
        .dry_run(dry_run)
    )
    for source in sources:
        task.from_(source)
    if files:
        task.files(list(files))
    for pattern in include:
        task.matching(pattern)
    for pattern in exclude:
        task.exclude(pattern)
    if keep_existing:
        task.keep_existing()

    try:
        sync_config = task.build()
    except FtpDeployConfigError as e:
        out.error(str(e))
        ctx.exit(1)
        return

    result = deploy(sync_config, output=out)
    _report(out, result)
    if not result.ok:
        ctx.exit(1)


def _report(out: OutputFormatter, result: DeployResult) -> None:
    """Display the outcome of a deployment."""
    if out.json_output:
        out.output_json(result.to_dict())
        return

    if result.status == RunStatus.FATAL:
        out.error(f"Error: {result.reason}")
        return

    stats = result.stats
    out.print("")
    items = [
        ("Uploaded", str(stats["uploads"])),
        ("Skipped", str(stats["skips"])),
        ("Directories created", str(stats["directories_created"])),
    ]
    if result.revision:
        items.append(("Revision", result.revision))

    if result.status == RunStatus.PARTIAL_FAILURE:
        out.print_summary("Deploy Completed With Errors", items)
        out.error(f"{len(result.failures)} path(s) failed:")
        for failure in result.failures:
            out.error(f"  {failure.relative_path}: {failure.reason}")
    elif result.dry_run:
        out.print_summary("Dry Run Complete", items)
    else:
        out.print_summary("Deploy Complete", items)
        out.success("All files deployed.")


@main.command()
@connection_options
@click.option(
    "--repository",
    type=click.Path(exists=True, file_okay=False),
    default=".",
    help="git working tree (default: current directory)",
)
@click.pass_context
def status(
    ctx: Any,
    host: Optional[str],
    user: Optional[str],
    password: Optional[str],
    port: Optional[int],
    secure: bool,
    target_dir: str,
    repository: str,
) -> None:
    """Compare the revision deployed on the server with local HEAD."""
    out: OutputFormatter = ctx.obj["out"]
    host, user, password, port = resolve_connection(
        ctx, out, host, user, password, port
    )
    target = normalize_remote_path(target_dir)

    try:
        local_revision: Optional[str] = GitRepository(Path(repository)).current_revision_id()
    except VcsError as e:
        logger.debug(f"No local revision: {e}")
        local_revision = None

    try:
        session = connect(host, user, password, port=port, secure=secure)
    except FtpConnectionError as e:
        out.error(f"Error: {e}")
        ctx.exit(1)
        return

    try:
        marker = RevisionMarkerManager(RemoteStateProber(), target, DEFAULT_MARKER_NAME)
        remote_revision = marker.read(session)
    except FtpConnectionError as e:
        out.error(f"Error: {e}")
        ctx.exit(1)
        return
    finally:
        session.close()

    if out.json_output:
        out.output_json(
            {
                "target": target,
                "remote_revision": remote_revision,
                "local_revision": local_revision,
                "up_to_date": bool(remote_revision)
                and remote_revision == local_revision,
            }
        )
        return

    out.info(f"Target:          {target}")
    out.info(f"Remote revision: {remote_revision or '(none)'}")
    out.info(f"Local revision:  {local_revision or '(not a git repository)'}")
    if remote_revision and remote_revision == local_revision:
        out.success("Remote site is up to date.")
    elif remote_revision:
        out.warning("Remote site is behind local HEAD.")
    else:
        out.warning("No revision recorded; the next --git-diff deploy sends all files.")
