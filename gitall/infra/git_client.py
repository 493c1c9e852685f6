"""
Git process execution for gitall.

Provides a clean abstraction over running git as a child process.
All subprocesses go through ProcessRunner, making them:
- Easy to replace with a fake in tests
- Streamed to an injected sink instead of buffered
- Bounded by a per-process timeout
"""

import os
import signal
import subprocess
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from pathlib import Path
from typing import List, Optional, Sequence, Tuple
import logging

from ..domain.operation import ProcessResult
from ..domain.repository import Protocol
from .sinks import OutputSink

logger = logging.getLogger(__name__)

CHUNK_SIZE = 4096
COMMAND_NOT_FOUND = 127
COMMAND_NOT_EXECUTABLE = 126

# Seconds to wait for the pipes to reach EOF once the child has exited
READER_GRACE = 5.0


class ProcessRunner:
    """
    Spawns external commands and streams their output to a sink.

    stdout and stderr are each drained by their own reader thread, so
    chunks within one stream keep their arrival order while the two
    streams may interleave.

    On POSIX each child leads its own process group. A timeout kills the
    whole group, which includes the ssh or git-remote-https helpers git
    starts and which hold the output pipes open.

    Example:
        runner = ProcessRunner(timeout=600)
        future = runner.run("git", ["status"], ConsoleSink(), cwd="/repo")
        result = future.result()
        if not result.ok:
            print(f"git exited {result.returncode}")
    """

    def __init__(self, timeout: Optional[float] = 600, max_workers: int = 4):
        """
        Initialize ProcessRunner.

        Args:
            timeout: Seconds before a child is killed (None disables)
            max_workers: Upper bound on processes supervised at once
        """
        self.timeout = timeout
        self._executor = ThreadPoolExecutor(
            max_workers=max(1, max_workers),
            thread_name_prefix="gitall-proc",
        )
        self._lock = threading.Lock()
        self._live = set()

    def run(
        self,
        command: str,
        args: Sequence[str],
        sink: OutputSink,
        cwd: Optional[str] = None
    ) -> Future:
        """
        Start a process; return a Future resolving to its ProcessResult.

        Args:
            command: Executable name (e.g. "git")
            args: Arguments after the executable
            sink: Receives every output chunk as bytes
            cwd: Working directory for the child
        """
        return self._executor.submit(self._supervise, command, tuple(args), sink, cwd)

    def run_sync(
        self,
        command: str,
        args: Sequence[str],
        sink: OutputSink,
        cwd: Optional[str] = None
    ) -> ProcessResult:
        """Run a process and wait for it to finish."""
        return self.run(command, args, sink, cwd).result()

    def kill_all(self) -> None:
        """Kill every child that is still running (used on Ctrl+C)."""
        with self._lock:
            live = list(self._live)
        for proc in live:
            _kill(proc)

    def shutdown(self) -> None:
        self._executor.shutdown(wait=True)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.shutdown()

    def _supervise(
        self,
        command: str,
        args: Tuple[str, ...],
        sink: OutputSink,
        cwd: Optional[str]
    ) -> ProcessResult:
        cmd_str = " ".join((command,) + args)
        logger.debug(f"Running command in '{cwd or '.'}': {cmd_str}")
        errors: List[str] = []

        try:
            proc = subprocess.Popen(
                [command, *args],
                cwd=cwd,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                start_new_session=(os.name == 'posix'),
            )
        except OSError as e:
            logger.error(f"Could not start {command}: {e}")
            _deliver(sink, f"{cmd_str}: {e}\n".encode('utf-8'), errors)
            returncode = COMMAND_NOT_FOUND if isinstance(e, FileNotFoundError) else COMMAND_NOT_EXECUTABLE
            return ProcessResult(command, args, returncode, output_error=_first(errors))

        with self._lock:
            self._live.add(proc)

        readers = [
            threading.Thread(target=_pump, args=(proc.stdout, sink, errors), daemon=True),
            threading.Thread(target=_pump, args=(proc.stderr, sink, errors), daemon=True),
        ]
        for reader in readers:
            reader.start()

        timed_out = False
        try:
            returncode = proc.wait(timeout=self.timeout)
        except subprocess.TimeoutExpired:
            logger.warning(f"Command timed out after {self.timeout}s: {cmd_str}")
            _kill(proc)
            proc.wait()
            returncode = -1
            timed_out = True
        finally:
            with self._lock:
                self._live.discard(proc)

        for reader in readers:
            reader.join(timeout=READER_GRACE)
            if reader.is_alive():
                # A detached grandchild still holds the pipe; stop waiting for it
                logger.warning(f"Output of '{cmd_str}' still open after exit; no longer reading it")

        output_error = _first(errors)
        if output_error:
            logger.error(f"Output of '{cmd_str}' was lost: {output_error}")

        return ProcessResult(command, args, returncode, timed_out, output_error)


def _kill(proc: subprocess.Popen) -> None:
    """Kill a child and, on POSIX, every process in its group."""
    if proc.poll() is not None:
        return
    if os.name == 'posix':
        try:
            os.killpg(proc.pid, signal.SIGKILL)
        except ProcessLookupError:
            pass
    else:
        proc.kill()


def _deliver(sink: OutputSink, data: bytes, errors: List[str]) -> None:
    """Write to the sink; a failing sink is recorded, not raised."""
    try:
        sink.write(data)
    except (OSError, ValueError) as e:
        if not errors:
            errors.append(str(e))


def _pump(stream, sink: OutputSink, errors: List[str]) -> None:
    """Forward chunks from a pipe to the sink until EOF.

    Reading continues after a sink error so the child never blocks on a
    full pipe.
    """
    with stream:
        while True:
            chunk = stream.read1(CHUNK_SIZE)
            if not chunk:
                break
            if errors:
                continue
            _deliver(sink, chunk, errors)


def _first(errors: List[str]) -> Optional[str]:
    return errors[0] if errors else None


class GitCommands:
    """
    Argument templates for the git invocations gitall performs.

    Each method returns (command, args) ready for ProcessRunner.run.
    """

    def __init__(self, executable: str = "git"):
        self.executable = executable

    def clone(self, target_dir: Path, url: str, name: str) -> Tuple[str, List[str]]:
        return self.executable, ["clone", url, str(Path(target_dir) / name)]

    def pull(
        self,
        repo_path: Path,
        ssh_base: str,
        https_base: str,
        protocol: Protocol = Protocol.SSH
    ) -> Tuple[str, List[str]]:
        """
        Pull through the selected protocol whichever way origin is configured.

        A one-shot ``url.<base>.insteadOf`` rewrite maps the other account
        base onto the selected one.
        """
        if protocol == Protocol.SSH:
            preferred, other = ssh_base, https_base
        else:
            preferred, other = https_base, ssh_base
        rewrite = f"url.{preferred}/.insteadOf={other}/"
        return self.executable, ["-c", rewrite, "-C", str(repo_path), "pull"]

    def fetch(self, repo_path: Path) -> Tuple[str, List[str]]:
        """Update remote-tracking branches only; the working tree is untouched."""
        return self.executable, ["-C", str(repo_path), "fetch", "--all", "--prune"]

    def status(self, repo_path: Path) -> Tuple[str, List[str]]:
        return self.executable, ["-C", str(repo_path), "status", "--short", "--branch"]

    # Queries used by list; their output is parsed, not logged

    def branch(self, repo_path: Path) -> Tuple[str, List[str]]:
        return self.executable, ["-C", str(repo_path), "rev-parse", "--abbrev-ref", "HEAD"]

    def remote_url(self, repo_path: Path) -> Tuple[str, List[str]]:
        return self.executable, ["-C", str(repo_path), "config", "--get", "remote.origin.url"]

    def porcelain(self, repo_path: Path) -> Tuple[str, List[str]]:
        return self.executable, ["-C", str(repo_path), "status", "--porcelain"]
