"""
Infrastructure layer for gitall.

Contains abstractions for external systems:
- ProcessRunner: git subprocess execution with streamed output
- GitCommands: clone/pull/fetch/status/list argument templates
- RemoteInventory: GitHub API access
- FileSink / ConsoleSink / BufferSink: output destinations

These provide clean interfaces that can be mocked for testing.
"""

from .git_client import GitCommands, ProcessRunner
from .github_client import RemoteInventory
from .sinks import BufferSink, ConsoleSink, FileSink, OutputSink

__all__ = [
    'GitCommands',
    'ProcessRunner',
    'RemoteInventory',
    'BufferSink',
    'ConsoleSink',
    'FileSink',
    'OutputSink',
]
