"""
Common CLI utilities and decorators for consistent command behavior.
"""

import sys
import click
from functools import wraps
from typing import Any, Dict, Optional

from .config import load_config, configure_logging, get_log_path
from .domain.repository import SyncTarget
from .exit_codes import SUCCESS, INTERRUPTED, CommandError
from .infra.git_client import ProcessRunner
from .infra.github_client import RemoteInventory
from .infra.sinks import ConsoleSink, FileSink
from .services.sync_service import SyncEngine, SyncOptions


def standard_command(func):
    """
    Decorator that provides standard CLI behavior:
    - Loads configuration and applies logging settings
    - Translates CommandError into its exit code with a message on stderr
    - Exit 130 on Ctrl+C
    """
    @wraps(func)
    def wrapper(*args, **kwargs):
        config = load_config()
        configure_logging(config, verbose=kwargs.get('verbose', False))
        kwargs['config'] = config

        try:
            func(*args, **kwargs)
        except KeyboardInterrupt:
            click.echo("Interrupted by user", err=True)
            sys.exit(INTERRUPTED)
        except click.ClickException:
            raise
        except CommandError as e:
            click.echo(f"ERROR: {e}", err=True)
            sys.exit(e.exit_code)
        sys.exit(SUCCESS)

    return wrapper


# Standard options that the sync commands share
common_options = {
    'verbose': click.option('-v', '--verbose', is_flag=True,
                            help='Show debug logging'),
    'protocol': click.option('-p', '--protocol', default=None,
                             help='Transport protocol: ssh, https or svn (default from config)'),
    'parallel': click.option('-j', '--parallel', type=int, default=None,
                             help='Repositories processed concurrently (default from config)'),
    'quiet': click.option('-q', '--quiet', is_flag=True,
                          help='Only print the totals line'),
    'json': click.option('--json', 'output_json', is_flag=True,
                         help='Output as JSONL (one line per repository, then a summary line)'),
}


def add_common_options(*option_names):
    """
    Decorator to add common options to a command.

    Example:
        @add_common_options('verbose', 'protocol')
        def my_command(verbose, protocol):
            ...
    """
    def decorator(func):
        for name in reversed(option_names):
            if name in common_options:
                func = common_options[name](func)
        return func
    return decorator


def build_target(config: Dict[str, Any], user: str, target_dir: Optional[str],
                 protocol: Optional[str]) -> SyncTarget:
    """Resolve CLI arguments against config defaults and validate them."""
    general = config.get('general', {})
    return SyncTarget(
        user=user,
        target_dir=target_dir or general.get('target_directory') or '.',
        protocol=protocol or general.get('protocol') or 'ssh',
        host=general.get('host') or 'github.com',
    )


def build_engine(config: Dict[str, Any], target: SyncTarget,
                 parallel: Optional[int] = None,
                 options: Optional[SyncOptions] = None,
                 console_stream: Optional[str] = None) -> SyncEngine:
    """Wire an engine to the real inventory, runner and sinks.

    console_stream names the stream git status output goes to; with --json
    it is 'stderr' so stdout carries only JSON.
    """
    general = config.get('general', {})
    options = options or SyncOptions()
    options.parallel = max(1, parallel or general.get('parallel', 1))

    runner = ProcessRunner(
        timeout=general.get('process_timeout_seconds') or None,
        max_workers=options.parallel,
    )
    return SyncEngine(
        target,
        inventory=RemoteInventory.from_config(config),
        runner=runner,
        log_sink=FileSink(get_log_path(config)),
        console_sink=ConsoleSink(click.get_binary_stream(console_stream) if console_stream else None),
        options=options,
    )
