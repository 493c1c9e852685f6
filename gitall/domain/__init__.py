"""
Domain layer for gitall.

Contains pure domain objects with no I/O or side effects:
- RepoDescriptor: One repository reported by the hosting API
- SyncTarget: Validated user/directory/protocol for a run
- SyncSummary: Per-run result with one RepoOutcome per repository
- LocalRepoInfo: Branch, cleanliness and remote of one local clone
- urls: Clone URL resolution
"""

from .repository import DEFAULT_HOST, Protocol, RepoDescriptor, SyncTarget
from .operation import (
    LocalRepoInfo,
    OperationStatus,
    ProcessResult,
    RepoOutcome,
    SyncState,
    SyncSummary,
)
from . import urls

__all__ = [
    'DEFAULT_HOST',
    'Protocol',
    'RepoDescriptor',
    'SyncTarget',
    'LocalRepoInfo',
    'OperationStatus',
    'ProcessResult',
    'RepoOutcome',
    'SyncState',
    'SyncSummary',
    'urls',
]
