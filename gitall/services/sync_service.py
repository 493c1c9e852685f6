"""
Batch synchronization service for gitall.

Orchestrates clone, update (pull), fetch, status and list across every
repository of one account and one target directory. Used by the
`gitall clone`, `gitall update`, `gitall fetch`, `gitall status` and
`gitall list` commands.
"""

import fnmatch
import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, Optional

from ..domain import urls
from ..domain.operation import (
    LocalRepoInfo,
    OperationStatus,
    RepoOutcome,
    SyncState,
    SyncSummary,
)
from ..domain.repository import Protocol, RepoDescriptor, SyncTarget
from ..exit_codes import ConfigurationError, SubprocessFailure
from ..infra.git_client import GitCommands, ProcessRunner
from ..infra.github_client import RemoteInventory
from ..infra.sinks import BufferSink, OutputSink
from .scanner import LocalScanner

logger = logging.getLogger(__name__)

ACTIONS = ("clone", "update", "fetch", "status")


@dataclass
class SyncOptions:
    """Options for a sync run."""
    parallel: int = 1  # Number of concurrent subprocesses (1 = sequential)
    dry_run: bool = False  # clone only: report, do not spawn
    no_forks: bool = False
    no_archived: bool = False
    name_pattern: Optional[str] = None  # glob matched against the repo name


class SyncEngine:
    """
    Runs one clone/update/fetch/status pass over a SyncTarget.

    Each call returns a fresh SyncSummary; the engine keeps no per-run
    state, so one engine can serve several runs.

    Example:
        engine = SyncEngine(target, inventory, runner, log_sink, console_sink)
        summary = engine.clone()
        print(f"{summary.successful} cloned, {summary.skipped} already present")
    """

    def __init__(
        self,
        target: SyncTarget,
        inventory: Optional[RemoteInventory] = None,
        runner: Optional[ProcessRunner] = None,
        log_sink: Optional[OutputSink] = None,
        console_sink: Optional[OutputSink] = None,
        scanner: Optional[LocalScanner] = None,
        commands: Optional[GitCommands] = None,
        options: Optional[SyncOptions] = None
    ):
        """
        Initialize SyncEngine.

        Args:
            target: Validated user/directory/protocol
            inventory: Remote inventory (only needed for clone)
            runner: Subprocess runner
            log_sink: Receives clone, pull and fetch output
            console_sink: Receives status output
            scanner: Local repository discovery
            commands: git argument templates
            options: Parallelism, dry-run and inventory filters
        """
        self.target = target
        self.inventory = inventory
        self.runner = runner or ProcessRunner()
        self.log_sink = log_sink
        self.console_sink = console_sink
        self.scanner = scanner or LocalScanner()
        self.commands = commands or GitCommands()
        self.options = options or SyncOptions()

    def run(self, action: str) -> SyncSummary:
        """Dispatch to clone, update, fetch or status by name."""
        if action not in ACTIONS:
            raise ConfigurationError(
                f"Action [{action}] is not valid (expected one of: {', '.join(ACTIONS)})"
            )
        return getattr(self, action)()

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------

    def clone(self) -> SyncSummary:
        """
        Clone every inventory repository not yet present in the target.

        Safe to re-run: a repository whose directory already exists is
        skipped without spawning git.

        Raises:
            ConfigurationError: target directory vanished
            FetchFailed: the inventory could not be retrieved
        """
        summary = self._start("clone")
        summary.dry_run = self.options.dry_run
        if self.inventory is None:
            self._fail(summary, "clone needs a remote inventory")
            raise ConfigurationError("clone needs a remote inventory")

        summary.state = SyncState.FETCHING_INVENTORY
        try:
            repos = self.inventory.fetch(self.target.user)
        except Exception:
            self._fail(summary, "fetching inventory failed")
            raise

        repos = self._filter(repos)
        summary.state = SyncState.DISPATCHING
        sink = self._require(self.log_sink, "log")

        self._dispatch(summary, repos, lambda repo: self._clone_one(repo, sink))

        summary.state = SyncState.COMPLETED
        logger.info(
            f"Cloned [{summary.total}] repositories for user [{self.target.user}] "
            f"to [{self.target.target_dir}]"
        )
        return summary

    def update(self) -> SyncSummary:
        """Pull every local repository, output to the log sink."""
        summary = self._start("update")
        logger.info(
            f"Doing update for [{self.target.user}] on repos in dir [{self.target.target_dir}]"
        )
        local = self._discover(summary)
        sink = self._require(self.log_sink, "log")
        bases = urls.base_urls(self.target.user, self.target.host)

        def pull(path: Path) -> RepoOutcome:
            self._note(sink, f"Updating repo [{path}]")
            command, args = self.commands.pull(
                path,
                bases[Protocol.SSH],
                bases[Protocol.HTTPS],
                self.target.protocol,
            )
            return self._spawn(path.name, str(path), "pulled", command, args, sink)

        self._dispatch(summary, local, pull)

        summary.state = SyncState.COMPLETED
        logger.info(f"Updated [{summary.total}] repos")
        return summary

    def fetch(self) -> SyncSummary:
        """Fetch all remotes of every local repository, output to the log sink."""
        summary = self._start("fetch")
        local = self._discover(summary)
        sink = self._require(self.log_sink, "log")
        logger.info(f"Fetching [{len(local)}] repos in [{self.target.target_dir}]")

        def fetch_one(path: Path) -> RepoOutcome:
            self._note(sink, f"Fetching repo [{path}]")
            command, args = self.commands.fetch(path)
            return self._spawn(path.name, str(path), "fetched", command, args, sink)

        self._dispatch(summary, local, fetch_one)

        summary.state = SyncState.COMPLETED
        logger.info(f"Fetched [{summary.total}] repos")
        return summary

    def status(self) -> SyncSummary:
        """Show git status of every local repository on the console sink."""
        summary = self._start("status")
        local = self._discover(summary)
        sink = self._require(self.console_sink, "console")

        def show(path: Path) -> RepoOutcome:
            self._note(sink, f"==> {path.name}")
            command, args = self.commands.status(path)
            return self._spawn(path.name, str(path), "status", command, args, sink)

        self._dispatch(summary, local, show)

        summary.state = SyncState.COMPLETED
        logger.info(f"Checked status of [{summary.total}] repos")
        return summary

    def list_local(self) -> List[LocalRepoInfo]:
        """
        Report branch, clean/dirty state and origin URL of every local clone.

        Local only: no network call is made and nothing is written to the
        log file. A clone whose branch cannot be read is reported with
        ``error`` set.
        """
        local = self.scanner.discover(self.target.target_dir)
        infos = self._map(self._describe, local)
        logger.info(f"Listed [{len(infos)}] repos in [{self.target.target_dir}]")
        return infos

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------

    def _start(self, action: str) -> SyncSummary:
        summary = SyncSummary(
            action=action,
            user=self.target.user,
            target_dir=str(self.target.target_dir),
        )
        if not self.target.target_dir.is_dir():
            message = f"Target directory [{self.target.target_dir}] does not exist"
            self._fail(summary, message)
            raise ConfigurationError(message)
        return summary

    def _fail(self, summary: SyncSummary, reason: str) -> None:
        summary.state = SyncState.FAILED
        logger.debug(f"{summary.action} failed: {reason}")

    def _discover(self, summary: SyncSummary) -> List[Path]:
        try:
            local = self.scanner.discover(self.target.target_dir)
        except Exception:
            self._fail(summary, "scanning target directory failed")
            raise
        summary.state = SyncState.DISPATCHING
        return local

    @staticmethod
    def _require(sink: Optional[OutputSink], kind: str) -> OutputSink:
        if sink is None:
            raise ConfigurationError(f"No {kind} sink configured")
        return sink

    def _filter(self, repos: List[RepoDescriptor]) -> List[RepoDescriptor]:
        opts = self.options
        kept = []
        for repo in repos:
            if opts.no_forks and repo.fork:
                continue
            if opts.no_archived and repo.archived:
                continue
            if opts.name_pattern and not fnmatch.fnmatchcase(repo.name, opts.name_pattern):
                continue
            kept.append(repo)

        if len(kept) != len(repos):
            logger.info(f"Filtered inventory down to {len(kept)} of {len(repos)} repositories")
        return kept

    def _dispatch(self, summary: SyncSummary, items: list, handle: Callable) -> None:
        """Run handle for every item and record the outcomes in order."""
        for outcome in self._map(handle, items):
            summary.add_outcome(outcome)

    def _map(self, handle: Callable, items: list) -> list:
        """Apply handle to every item, sequentially or on a thread pool.

        Results keep the order of items. On Ctrl+C the running children
        are killed before the pool is torn down.
        """
        if self.options.parallel > 1 and len(items) > 1:
            with ThreadPoolExecutor(max_workers=self.options.parallel) as executor:
                try:
                    return list(executor.map(handle, items))
                except KeyboardInterrupt:
                    self.runner.kill_all()
                    raise
        try:
            return [handle(item) for item in items]
        except KeyboardInterrupt:
            self.runner.kill_all()
            raise

    def _describe(self, path: Path) -> LocalRepoInfo:
        info = LocalRepoInfo(name=path.name, path=str(path))

        result, branch = self._query(*self.commands.branch(path))
        if not result.ok:
            info.error = f"not a git repository or no commits ({branch.strip() or result.returncode})"
            return info
        info.branch = branch.strip()

        _, remote = self._query(*self.commands.remote_url(path))
        info.remote_url = remote.strip()

        result, changes = self._query(*self.commands.porcelain(path))
        info.clean = result.ok and not changes.strip()
        return info

    def _query(self, command: str, args: List[str]):
        """Run a short git query and return (result, captured output)."""
        sink = BufferSink()
        result = self.runner.run(command, args, sink).result()
        return result, sink.text()

    def _clone_one(self, repo: RepoDescriptor, sink: OutputSink) -> RepoOutcome:
        path = self.target.target_dir / repo.name

        if path.is_dir():
            logger.info(f"Repo [{repo.name}] already exists in [{self.target.target_dir}]")
            self._note(sink, f"Not cloning repo [{repo.name}] it already exists at [{path}]")
            return RepoOutcome(
                repo_name=repo.name,
                repo_path=str(path),
                status=OperationStatus.SKIPPED,
                action="exists",
                message="already exists",
            )

        url = urls.resolve(self.target.protocol, self.target.user, repo.name, self.target.host)

        if self.options.dry_run:
            logger.info(f"Would clone repo [{url}]")
            return RepoOutcome(
                repo_name=repo.name,
                repo_path=str(path),
                status=OperationStatus.DRY_RUN,
                action="would_clone",
                message=url,
            )

        logger.info(f"Cloning repo [{url}]")
        self._note(sink, f"Cloning repo [{url}]")
        command, args = self.commands.clone(self.target.target_dir, url, repo.name)
        return self._spawn(repo.name, str(path), "cloned", command, args, sink)

    def _spawn(
        self,
        name: str,
        path: str,
        action: str,
        command: str,
        args: List[str],
        sink: OutputSink
    ) -> RepoOutcome:
        """Run one subprocess; a failure is recorded, never raised."""
        result = self.runner.run(command, args, sink).result()
        try:
            result.check()
        except SubprocessFailure as e:
            logger.warning(f"{name}: {e}")
            return RepoOutcome(
                repo_name=name,
                repo_path=path,
                status=OperationStatus.FAILED,
                action=action,
                error=str(e),
                returncode=result.returncode,
            )
        return RepoOutcome(
            repo_name=name,
            repo_path=path,
            status=OperationStatus.SUCCESS,
            action=action,
            message=result.output_error and f"output lost: {result.output_error}",
            returncode=result.returncode,
        )

    @staticmethod
    def _note(sink: OutputSink, text: str) -> None:
        """Write one engine line; a broken sink does not stop the batch."""
        try:
            sink.write_line(text)
        except (OSError, ValueError) as e:
            logger.error(f"Could not write '{text}': {e}")

