"""
Shared test doubles for gitall tests.
"""

import threading
from concurrent.futures import Future
from pathlib import Path

import pytest

from gitall.domain.operation import ProcessResult
from gitall.domain.repository import RepoDescriptor
from gitall.infra.sinks import OutputSink


class RecordingSink(OutputSink):
    """Keeps every chunk in memory."""

    def __init__(self):
        super().__init__()
        self.chunks = []

    def _write(self, data):
        self.chunks.append(data)

    @property
    def text(self):
        return b"".join(self.chunks).decode("utf-8")


class FailingSink(OutputSink):
    """Rejects every write, like a log file on a full disk."""

    def __init__(self):
        super().__init__()
        self.attempts = 0

    def _write(self, data):
        self.attempts += 1
        raise OSError(28, "No space left on device")


class FakeRunner:
    """
    Records run() calls and returns already-completed futures.

    returncodes maps a repository directory name to the exit status to
    report (default 0). on_run is called with (command, args) before the
    result is produced. output is written to the sink on every call; it may
    be a callable (command, args) -> bytes.
    """

    def __init__(self, returncodes=None, on_run=None, output=b""):
        self.calls = []
        self.returncodes = returncodes or {}
        self.on_run = on_run
        self.output = output
        self._lock = threading.Lock()

    def run(self, command, args, sink, cwd=None):
        with self._lock:
            self.calls.append((command, list(args)))
        if self.on_run:
            self.on_run(command, list(args))
        output = self.output(command, list(args)) if callable(self.output) else self.output
        if output:
            sink.write(output)

        code = 0
        for name, rc in self.returncodes.items():
            if any(Path(a).name == name for a in args):
                code = rc

        future = Future()
        future.set_result(ProcessResult(command, tuple(args), code))
        return future

    def kill_all(self):
        pass

    def shutdown(self):
        pass


class FakeInventory:
    """Returns a fixed list of names or raises a fixed error."""

    def __init__(self, names=(), error=None):
        self.names = list(names)
        self.error = error
        self.fetches = 0

    def fetch(self, user):
        self.fetches += 1
        if self.error:
            raise self.error
        return [RepoDescriptor(name=n) for n in self.names]


def make_repo(root: Path, name: str) -> Path:
    """Create root/name/.git as a directory."""
    path = root / name
    (path / ".git").mkdir(parents=True)
    return path


@pytest.fixture
def log_sink():
    return RecordingSink()


@pytest.fixture
def console_sink():
    return RecordingSink()


def git_answers(porcelain=b""):
    """Canned output for the branch, remote and porcelain queries."""
    def answer(command, args):
        if 'rev-parse' in args:
            return b"main\n"
        if 'config' in args:
            return f"git@github.com:alice/{Path(args[1]).name}.git\n".encode()
        if '--porcelain' in args:
            return porcelain
        return b""
    return answer
