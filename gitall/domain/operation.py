"""
Operation result domain objects for gitall.

Provides the result types produced by a sync run: the exit status of one
git subprocess, the outcome for one repository, and the summary of a
whole clone/update/fetch/status pass, and the local inventory entry
reported by list.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Any, List, Optional, Tuple

from ..exit_codes import SubprocessFailure


class SyncState(Enum):
    """Lifecycle of one engine invocation."""
    VALIDATING = "validating"
    FETCHING_INVENTORY = "fetching_inventory"
    DISPATCHING = "dispatching"
    COMPLETED = "completed"
    FAILED = "failed"


class OperationStatus(Enum):
    """Status of an individual repository operation."""
    SUCCESS = "success"
    SKIPPED = "skipped"
    FAILED = "failed"
    DRY_RUN = "dry_run"


@dataclass(frozen=True)
class ProcessResult:
    """
    Exit status of one subprocess.

    Output is never stored here; it was streamed to a sink while the
    process ran.
    """
    command: str
    args: Tuple[str, ...]
    returncode: int
    timed_out: bool = False
    output_error: Optional[str] = None  # set when the sink rejected output

    @property
    def ok(self) -> bool:
        return self.returncode == 0 and not self.timed_out

    @property
    def command_line(self) -> str:
        return " ".join((self.command,) + tuple(self.args))

    def check(self) -> 'ProcessResult':
        """Raise SubprocessFailure unless the process exited 0."""
        if not self.ok:
            raise SubprocessFailure(self.command_line, self.returncode, self.timed_out)
        return self


@dataclass
class RepoOutcome:
    """
    What happened to one repository during a sync pass.
    """
    repo_name: str
    repo_path: str
    status: OperationStatus
    action: str  # e.g., "cloned", "pulled", "fetched", "status", "exists", "would_clone"
    message: Optional[str] = None
    error: Optional[str] = None
    returncode: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        result = {
            'name': self.repo_name,
            'path': self.repo_path,
            'status': self.status.value,
            'action': self.action,
        }
        if self.message:
            result['message'] = self.message
        if self.error:
            result['error'] = self.error
        if self.returncode is not None:
            result['returncode'] = self.returncode
        return result


@dataclass
class SyncSummary:
    """
    Summary of one clone/update/fetch/status run.

    Created fresh for every invocation so concurrent runs never share
    state.
    """
    action: str  # "clone", "update", "fetch" or "status"
    user: str
    target_dir: str
    state: SyncState = SyncState.VALIDATING
    total: int = 0
    successful: int = 0
    skipped: int = 0
    failed: int = 0
    dry_run: bool = False
    details: List[RepoOutcome] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        """True if the run completed without per-repository failures."""
        return self.state == SyncState.COMPLETED and self.failed == 0

    @property
    def spawned(self) -> int:
        """Number of repositories for which a subprocess was started."""
        return sum(1 for d in self.details if d.returncode is not None)

    def add_outcome(self, outcome: RepoOutcome) -> None:
        """Add a repository outcome and update counts."""
        self.details.append(outcome)
        self.total += 1

        if outcome.status == OperationStatus.SUCCESS:
            self.successful += 1
        elif outcome.status == OperationStatus.SKIPPED:
            self.skipped += 1
        elif outcome.status == OperationStatus.FAILED:
            self.failed += 1
            if outcome.error:
                self.errors.append(f"{outcome.repo_name}: {outcome.error}")
        elif outcome.status == OperationStatus.DRY_RUN:
            self.successful += 1

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            'type': 'summary',
            'action': self.action,
            'user': self.user,
            'target_dir': self.target_dir,
            'state': self.state.value,
            'total': self.total,
            'successful': self.successful,
            'skipped': self.skipped,
            'failed': self.failed,
            'dry_run': self.dry_run,
            'errors': list(self.errors),
        }


@dataclass
class LocalRepoInfo:
    """
    Local state of one clone, as shown by `gitall list`.

    ``clean`` means `git status --porcelain` printed nothing. ``error`` is
    set instead when the branch could not be read.
    """
    name: str
    path: str
    branch: str = ""
    clean: bool = True
    remote_url: str = ""
    error: Optional[str] = None

    @property
    def state(self) -> str:
        if self.error:
            return "error"
        return "clean" if self.clean else "dirty"

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        result = {
            'name': self.name,
            'path': self.path,
            'branch': self.branch,
            'clean': self.clean,
            'state': self.state,
        }
        if self.remote_url:
            result['remote_url'] = self.remote_url
        if self.error:
            result['error'] = self.error
        return result
