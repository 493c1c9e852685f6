"""
gitall - Keep a directory of git clones in step with a GitHub account.

Quick Start:
    from gitall import SyncEngine, SyncTarget, RemoteInventory
    from gitall.infra import FileSink, ConsoleSink

    target = SyncTarget(user="octocat", target_dir="~/src/octocat", protocol="ssh")
    engine = SyncEngine(
        target,
        inventory=RemoteInventory(),
        log_sink=FileSink("~/.gitall/gitall.log"),
        console_sink=ConsoleSink(),
    )

    engine.clone()    # clone what is missing
    engine.update()   # git pull in every clone
    engine.status()   # git status of every clone, on stdout
"""

__version__ = "0.3.0"

from .domain import Protocol, RepoDescriptor, SyncTarget, SyncSummary
from .infra import RemoteInventory, ProcessRunner
from .services import LocalScanner, SyncEngine, SyncOptions
from .exit_codes import (
    CommandError,
    ConfigurationError,
    UnsupportedProtocol,
    FetchFailed,
    DirectoryUnreadable,
    SubprocessFailure,
)

__all__ = [
    "__version__",
    "Protocol",
    "RepoDescriptor",
    "SyncTarget",
    "SyncSummary",
    "RemoteInventory",
    "ProcessRunner",
    "LocalScanner",
    "SyncEngine",
    "SyncOptions",
    "CommandError",
    "ConfigurationError",
    "UnsupportedProtocol",
    "FetchFailed",
    "DirectoryUnreadable",
    "SubprocessFailure",
]
