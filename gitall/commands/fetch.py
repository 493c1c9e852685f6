"""
Handles the 'fetch' command: `git fetch --all --prune` in every clone.

Updates remote-tracking branches without touching working trees, so it is
a safe way to see what update would bring in.
"""

import click

from ..cli_utils import standard_command, add_common_options, build_target, build_engine
from ..render import render_summary, render_summary_json


@click.command("fetch")
@click.argument("user")
@click.argument("target_dir", required=False)
@add_common_options('parallel', 'quiet', 'json', 'verbose')
@standard_command
def fetch_handler(user, target_dir, parallel, quiet, output_json, verbose, config):
    """
    Fetch all remotes of every git repository directly under TARGET_DIR.

    git output is appended to the log file.

    Examples:

    \b
        gitall fetch octocat ~/src/octocat
        gitall fetch myorg ~/work -j 8 --json
    """
    target = build_target(config, user, target_dir, None)
    engine = build_engine(config, target, parallel)
    try:
        summary = engine.fetch()
    finally:
        engine.runner.shutdown()
        engine.log_sink.close()

    if output_json:
        render_summary_json(summary)
    else:
        render_summary(summary, show_details=not quiet)
