import click

from ..cli_utils import standard_command, add_common_options, build_target, build_engine
from ..render import render_summary, render_summary_json


@click.command("status")
@click.argument("user")
@click.argument("target_dir", required=False)
@add_common_options('parallel', 'quiet', 'json', 'verbose')
@standard_command
def status_handler(user, target_dir, parallel, quiet, output_json, verbose, config):
    """
    Show git status for every repository directly under TARGET_DIR.

    Output goes to the terminal only; nothing is written to the log file.
    With --json the git output moves to stderr and stdout carries JSONL.
    """
    target = build_target(config, user, target_dir, None)
    engine = build_engine(config, target, parallel,
                          console_stream='stderr' if output_json else None)
    try:
        summary = engine.status()
    finally:
        engine.runner.shutdown()

    if output_json:
        render_summary_json(summary)
    else:
        render_summary(summary, show_details=False)
