"""
Handles the 'list' command: local inventory of the clones under a directory.
"""

import click

from ..cli_utils import standard_command, add_common_options, build_target, build_engine
from ..render import render_repo_list, render_repo_list_json


@click.command("list")
@click.argument("user")
@click.argument("target_dir", required=False)
@add_common_options('parallel', 'json', 'verbose')
@standard_command
def list_handler(user, target_dir, parallel, output_json, verbose, config):
    """
    List every git repository directly under TARGET_DIR.

    Shows the current branch, whether the working tree is clean or dirty
    and the origin URL. No network calls are made.
    """
    target = build_target(config, user, target_dir, None)
    engine = build_engine(config, target, parallel)
    try:
        repos = engine.list_local()
    finally:
        engine.runner.shutdown()

    if output_json:
        render_repo_list_json(repos)
    else:
        render_repo_list(repos)
