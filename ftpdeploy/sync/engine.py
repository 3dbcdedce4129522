"""Core deploy engine that orchestrates a synchronization run."""

import logging
import time
from typing import Optional

from rich.progress import Progress, SpinnerColumn, TextColumn

from ..exceptions import FtpConnectionError, FtpTransferError, VcsError
from ..output import OutputFormatter
from ..transport import FtpSession
from ..utils import join_remote
from ..vcs import GitRepository
from .comparator import SyncPolicyEvaluator
from .config import SyncConfiguration
from .marker import RevisionMarkerManager
from .materializer import DirectoryMaterializer
from .operations import TransferExecutor
from .remote import RemoteFileMetadata, RemoteStateProber
from .result import DeployResult, EntryFailure, RunStatus, empty_stats
from .scanner import LocalEntry
from .selector import ChangeSelector

logger = logging.getLogger(__name__)


class DeployEngine:
    """Runs one deployment over an already authenticated session.

    The run goes: prepare target root, select entries, then for each entry
    materialize parents, evaluate skip policies and transfer. The revision
    marker is only advanced after an incremental run without failures.
    """

    def __init__(
        self,
        config: SyncConfiguration,
        output: Optional[OutputFormatter] = None,
        repository: Optional[GitRepository] = None,
    ):
        """Initialize deploy engine.

        Args:
            config: Run configuration
            output: Output formatter for displaying progress/status
            repository: git repository for incremental mode (defaults to
                one rooted at ``config.repository``)
        """
        self.config = config
        self.output = output or OutputFormatter()
        self.repository = repository

    def run(self, session: FtpSession) -> DeployResult:
        """Deploy over an open session.

        Args:
            session: Authenticated FTP session, used exclusively by this run

        Returns:
            DeployResult; connection, target root and git errors produce a
            FATAL result instead of raising

        Examples:
            >>> session = connect("ftp.example.com", "deploy", "secret")
            >>> result = DeployEngine(config).run(session)
            >>> print(result.status)
        """
        config = self.config
        stats = empty_stats()

        prober = RemoteStateProber()
        materializer = DirectoryMaterializer(
            prober, config.target_directory, self.output, dry_run=config.dry_run
        )
        executor = TransferExecutor(
            prober, materializer, config.target_directory, self.output, config.dry_run
        )
        evaluator = SyncPolicyEvaluator(
            skip_size_equal=config.skip_size_equal,
            skip_unmodified=config.skip_unmodified,
            existing_files=config.existing_files,
        )
        marker = RevisionMarkerManager(prober, config.target_directory, config.marker_name)
        selector = ChangeSelector(config, marker, self.output, self.repository)

        if config.dry_run:
            self.output.info("Dry run: No changes will be made")

        try:
            materializer.prepare_target(session)
        except (FtpConnectionError, FtpTransferError) as e:
            return DeployResult.fatal(
                f"Cannot prepare target directory {config.target_directory}: {e}",
                stats,
                config.dry_run,
            )

        try:
            entries = self._select(selector, session)
        except VcsError as e:
            return DeployResult.fatal(f"git error: {e}", stats, config.dry_run)
        except FtpConnectionError as e:
            return DeployResult.fatal(str(e), stats, config.dry_run)

        stats["entries"] = len(entries)
        self.output.info(f"Deploying {len(entries)} file(s) to \"{config.url}\"...")

        failures: list[EntryFailure] = []
        start = time.time()
        try:
            for entry in entries:
                failure = self._process_entry(
                    session, entry, prober, materializer, evaluator, executor
                )
                if failure is not None:
                    self.output.error(
                        f"Error deploying {failure.relative_path}: {failure.reason}"
                    )
                    failures.append(failure)
        except FtpConnectionError as e:
            stats.update(self._collect(materializer, executor, failures))
            return DeployResult.fatal(str(e), stats, config.dry_run)
        logger.debug(f"Processed {len(entries)} entries in {time.time() - start:.2f}s")

        revision: Optional[str] = None
        if config.incremental and not failures:
            try:
                revision = self._write_marker(session, marker, selector)
            except FtpConnectionError as e:
                stats.update(self._collect(materializer, executor, failures))
                return DeployResult.fatal(str(e), stats, config.dry_run)
            except FtpTransferError as e:
                failures.append(EntryFailure(config.marker_name, str(e)))

        stats.update(self._collect(materializer, executor, failures))
        status = RunStatus.PARTIAL_FAILURE if failures else RunStatus.SUCCESS
        return DeployResult(
            status=status,
            failures=failures,
            stats=stats,
            revision=revision,
            dry_run=config.dry_run,
        )

    def _select(self, selector: ChangeSelector, session: FtpSession) -> list[LocalEntry]:
        if self.output.quiet or self.output.json_output:
            return selector.select(session)

        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            transient=True,
        ) as progress:
            task = progress.add_task("Scanning files to upload...", total=None)
            entries = selector.select(session)
            progress.update(task, description=f"Found {len(entries)} entries")
        return entries

    def _process_entry(
        self,
        session: FtpSession,
        entry: LocalEntry,
        prober: RemoteStateProber,
        materializer: DirectoryMaterializer,
        evaluator: SyncPolicyEvaluator,
        executor: TransferExecutor,
    ) -> Optional[EntryFailure]:
        """Materialize, evaluate and transfer a single entry.

        A server rejection while probing or creating anything for this entry
        becomes its EntryFailure; only FtpConnectionError ends the run.
        """
        try:
            return self._deploy_entry(
                session, entry, prober, materializer, evaluator, executor
            )
        except FtpTransferError as e:
            logger.debug(f"{entry.relative_path}: {e}")
            return EntryFailure(entry.relative_path, str(e))

    def _deploy_entry(
        self,
        session: FtpSession,
        entry: LocalEntry,
        prober: RemoteStateProber,
        materializer: DirectoryMaterializer,
        evaluator: SyncPolicyEvaluator,
        executor: TransferExecutor,
    ) -> Optional[EntryFailure]:
        if not materializer.ensure_parents(session, entry.relative_path):
            return EntryFailure(
                entry.relative_path, "Cannot create parent directory on remote"
            )

        if entry.is_directory:
            return executor.create_directory(session, entry)

        directory = join_remote(self.config.target_directory, entry.parent)
        parent_state = prober.directory_state(session, directory)

        def fetch_metadata(want_size: bool, want_mtime: bool) -> RemoteFileMetadata:
            return prober.file_metadata(
                session, directory, entry.name, want_size, want_mtime
            )

        decision = evaluator.evaluate(entry, parent_state, fetch_metadata)
        logger.debug(
            f"{entry.relative_path}: {decision.action.value} ({decision.reason})"
        )
        return executor.transfer(session, decision)

    def _write_marker(
        self,
        session: FtpSession,
        marker: RevisionMarkerManager,
        selector: ChangeSelector,
    ) -> Optional[str]:
        revision = selector.current_revision
        if revision is None:
            return None

        self.output.progress_message(f"Writing revision marker: {revision}")
        if self.config.dry_run:
            return None
        marker.write(session, revision)
        return revision

    @staticmethod
    def _collect(
        materializer: DirectoryMaterializer,
        executor: TransferExecutor,
        failures: list[EntryFailure],
    ) -> dict[str, int]:
        return {
            "uploads": executor.uploads,
            "skips": executor.skips,
            "directories_created": materializer.created,
            "directories_existing": materializer.existing,
            "failures": len(failures),
        }
