"""
Handles the 'update' command: git pull in every clone under a directory.
"""

import click

from ..cli_utils import standard_command, add_common_options, build_target, build_engine
from ..render import render_summary, render_summary_json


@click.command("update")
@click.argument("user")
@click.argument("target_dir", required=False)
@add_common_options('protocol', 'parallel', 'quiet', 'json', 'verbose')
@standard_command
def update_handler(user, target_dir, protocol, parallel, quiet, output_json, verbose, config):
    """
    Pull every git repository directly under TARGET_DIR.

    Remotes configured over either ssh or https are pulled through the
    selected protocol. git output is appended to the log file; a failing
    repository does not stop the others.
    """
    target = build_target(config, user, target_dir, protocol)
    engine = build_engine(config, target, parallel)
    try:
        summary = engine.update()
    finally:
        engine.runner.shutdown()
        engine.log_sink.close()

    if output_json:
        render_summary_json(summary)
    else:
        render_summary(summary, show_details=not quiet)
