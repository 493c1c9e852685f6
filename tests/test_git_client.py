"""
Tests for ProcessRunner and the git command templates.

ProcessRunner tests spawn the current Python interpreter so they run
without git and on any platform.
"""

import os
import sys
import time
from pathlib import Path
from unittest.mock import patch

import pytest

from gitall.domain.repository import Protocol
from gitall.infra import git_client
from gitall.infra.git_client import (
    COMMAND_NOT_EXECUTABLE,
    COMMAND_NOT_FOUND,
    READER_GRACE,
    GitCommands,
    ProcessRunner,
)

from conftest import FailingSink, RecordingSink

# A child that starts a helper sharing its stdout/stderr, then hangs
WITH_HELPER = (
    "import subprocess, sys, time\n"
    "subprocess.Popen([sys.executable, '-c', 'import time; time.sleep(20)'])\n"
    "time.sleep(20)\n"
)

# A child that leaves a helper in its own session holding the pipes, then exits
WITH_DETACHED_HELPER = (
    "import subprocess, sys\n"
    "subprocess.Popen([sys.executable, '-c', 'import time; time.sleep(5)'], start_new_session=True)\n"
)


@pytest.fixture
def runner():
    with ProcessRunner(timeout=30, max_workers=2) as r:
        yield r


class TestProcessRunner:
    """Tests for ProcessRunner.run."""

    def test_streams_stdout_and_stderr(self, runner):
        sink = RecordingSink()
        code = "import sys; sys.stdout.write('out-line\\n'); sys.stderr.write('err-line\\n')"

        result = runner.run(sys.executable, ["-c", code], sink).result()

        assert result.returncode == 0
        assert result.ok
        assert "out-line" in sink.text
        assert "err-line" in sink.text

    def test_nonzero_exit_is_reported_not_raised(self, runner):
        sink = RecordingSink()

        result = runner.run_sync(sys.executable, ["-c", "import sys; sys.exit(3)"], sink)

        assert result.returncode == 3
        assert not result.ok
        assert result.timed_out is False

    def test_output_order_within_stream(self, runner):
        sink = RecordingSink()
        code = "import sys\nfor i in range(200):\n    print(i, flush=True)"

        runner.run_sync(sys.executable, ["-c", code], sink)

        numbers = [int(line) for line in sink.text.split()]
        assert numbers == list(range(200))

    def test_returns_future(self, runner):
        sink = RecordingSink()

        future = runner.run(sys.executable, ["-c", "pass"], sink)

        assert future.result(timeout=30).returncode == 0

    def test_cwd(self, runner, tmp_path):
        sink = RecordingSink()

        runner.run_sync(sys.executable, ["-c", "import os; print(os.getcwd())"], sink, cwd=str(tmp_path))

        assert Path(sink.text.strip()).resolve() == tmp_path.resolve()

    def test_timeout_kills_process(self):
        sink = RecordingSink()
        with ProcessRunner(timeout=0.5) as runner:
            result = runner.run_sync(sys.executable, ["-c", "import time; time.sleep(30)"], sink)

        assert result.timed_out is True
        assert result.returncode == -1
        assert not result.ok

    def test_missing_executable(self, runner):
        sink = RecordingSink()

        result = runner.run_sync("gitall-no-such-binary", ["--version"], sink)

        assert result.returncode == COMMAND_NOT_FOUND
        assert "gitall-no-such-binary" in sink.text

    def test_result_carries_command(self, runner):
        result = runner.run_sync(sys.executable, ["-c", "pass"], RecordingSink())

        assert result.command == sys.executable
        assert result.args == ("-c", "pass")

    @pytest.mark.skipif(os.name != 'posix', reason="process groups are POSIX only")
    def test_timeout_also_kills_helper_processes(self):
        """The helper holds the pipes open; the run must still end at the timeout."""
        sink = RecordingSink()
        started = time.monotonic()
        with ProcessRunner(timeout=0.5) as runner:
            result = runner.run_sync(sys.executable, ["-c", WITH_HELPER], sink)
        elapsed = time.monotonic() - started

        assert result.timed_out is True
        assert elapsed < READER_GRACE

    def test_exit_does_not_wait_for_detached_helper(self, monkeypatch):
        monkeypatch.setattr(git_client, 'READER_GRACE', 0.5)
        started = time.monotonic()
        with ProcessRunner(timeout=30) as runner:
            result = runner.run_sync(sys.executable, ["-c", WITH_DETACHED_HELPER], RecordingSink())
        elapsed = time.monotonic() - started

        assert result.returncode == 0
        assert elapsed < 4

    def test_kill_all_stops_running_children(self):
        with ProcessRunner(timeout=30) as runner:
            future = runner.run(sys.executable, ["-c", "import time; time.sleep(30)"], RecordingSink())
            deadline = time.monotonic() + 10
            while not runner._live and time.monotonic() < deadline:
                time.sleep(0.05)

            runner.kill_all()
            result = future.result(timeout=10)

        assert result.returncode != 0
        assert result.timed_out is False

    def test_failing_sink_does_not_stall_child(self):
        """Output keeps being drained after the sink fails, and the error is reported."""
        sink = FailingSink()
        code = "import sys; sys.stdout.write('x' * 1000000); sys.stdout.flush()"

        with ProcessRunner(timeout=20) as runner:
            result = runner.run_sync(sys.executable, ["-c", code], sink)

        assert result.returncode == 0
        assert result.timed_out is False
        assert "No space left on device" in result.output_error
        assert sink.attempts == 1

    def test_unexpected_spawn_error_is_a_result(self, runner):
        sink = RecordingSink()

        with patch('gitall.infra.git_client.subprocess.Popen',
                   side_effect=OSError(7, "Argument list too long")):
            result = runner.run_sync("git", ["status"], sink)

        assert result.returncode == COMMAND_NOT_EXECUTABLE
        assert not result.ok
        assert "Argument list too long" in sink.text


class TestGitCommands:
    """Tests for the clone/pull/status argument templates."""

    def test_clone(self, tmp_path):
        command, args = GitCommands().clone(tmp_path, "git@github.com:alice/x.git", "x")

        assert command == "git"
        assert args == ["clone", "git@github.com:alice/x.git", str(tmp_path / "x")]

    def test_pull_ssh_rewrites_https_remotes(self, tmp_path):
        command, args = GitCommands().pull(
            tmp_path / "x", "git@github.com:alice", "https://github.com/alice", Protocol.SSH
        )

        assert command == "git"
        assert args == [
            "-c", "url.git@github.com:alice/.insteadOf=https://github.com/alice/",
            "-C", str(tmp_path / "x"),
            "pull",
        ]

    def test_pull_https_rewrites_ssh_remotes(self, tmp_path):
        _, args = GitCommands().pull(
            tmp_path / "x", "git@github.com:alice", "https://github.com/alice", Protocol.HTTPS
        )

        assert args[1] == "url.https://github.com/alice/.insteadOf=git@github.com:alice/"

    def test_pull_svn_uses_https_base(self, tmp_path):
        _, args = GitCommands().pull(
            tmp_path / "x", "git@github.com:alice", "https://github.com/alice", Protocol.SVN
        )

        assert args[1].startswith("url.https://github.com/alice/.insteadOf=")

    def test_status(self, tmp_path):
        command, args = GitCommands().status(tmp_path / "x")

        assert command == "git"
        assert args == ["-C", str(tmp_path / "x"), "status", "--short", "--branch"]

    def test_fetch(self, tmp_path):
        command, args = GitCommands().fetch(tmp_path / "x")

        assert command == "git"
        assert args == ["-C", str(tmp_path / "x"), "fetch", "--all", "--prune"]

    def test_list_queries(self, tmp_path):
        commands = GitCommands()
        repo = tmp_path / "x"

        assert commands.branch(repo)[1][2:] == ["rev-parse", "--abbrev-ref", "HEAD"]
        assert commands.remote_url(repo)[1][2:] == ["config", "--get", "remote.origin.url"]
        assert commands.porcelain(repo)[1][2:] == ["status", "--porcelain"]

    def test_custom_executable(self, tmp_path):
        command, _ = GitCommands(executable="/usr/local/bin/git").status(tmp_path)
        assert command == "/usr/local/bin/git"
