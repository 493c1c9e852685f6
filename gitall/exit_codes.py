"""
Standard exit codes and error taxonomy for gitall commands.

Following Unix/POSIX conventions for command-line tools.
"""
from typing import Optional

# Standard POSIX exit codes
SUCCESS = 0              # Successful termination
GENERAL_ERROR = 1        # General errors
USAGE_ERROR = 2          # Misuse of shell command (wrong arguments, etc.)

# Application-specific exit codes (64-113 are typically available)
API_ERROR = 65           # Remote inventory request failed
INTERRUPTED = 130        # Terminated by Ctrl+C (SIGINT)


class CommandError(Exception):
    """
    Exception that commands can raise to indicate specific exit codes.
    """
    def __init__(self, message: str, exit_code: int = GENERAL_ERROR):
        super().__init__(message)
        self.exit_code = exit_code


class ConfigurationError(CommandError):
    """Raised when the sync target is invalid. Nothing has been spawned yet."""
    def __init__(self, message: str):
        super().__init__(message, GENERAL_ERROR)


class UnsupportedProtocol(ConfigurationError):
    """Raised for a transport protocol other than ssh, https or svn."""
    def __init__(self, protocol: str):
        super().__init__(
            f"Protocol [{protocol}] is not supported (expected one of: ssh, https, svn)"
        )
        self.protocol = protocol


class FetchFailed(CommandError):
    """Raised when the remote inventory cannot be retrieved."""
    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message, API_ERROR)
        self.status_code = status_code


class DirectoryUnreadable(CommandError):
    """Raised when the target directory is missing or cannot be listed."""
    def __init__(self, path: str, reason: str = "does not exist or is not a directory"):
        super().__init__(f"Directory [{path}] {reason}", GENERAL_ERROR)
        self.path = path


class SubprocessFailure(CommandError):
    """A single git invocation exited non-zero. Recovered per repository."""
    def __init__(self, command: str, returncode: int, timed_out: bool = False):
        if timed_out:
            message = f"'{command}' timed out"
        else:
            message = f"'{command}' exited with status {returncode}"
        super().__init__(message, GENERAL_ERROR)
        self.command = command
        self.returncode = returncode
        self.timed_out = timed_out
