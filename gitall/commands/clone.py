"""
Handles the 'clone' command: clone every repository of a GitHub account
that is not yet present in the target directory.
"""

import click

from ..cli_utils import standard_command, add_common_options, build_target, build_engine
from ..render import render_summary, render_summary_json
from ..services.sync_service import SyncOptions


@click.command("clone")
@click.argument("user")
@click.argument("target_dir", required=False)
@click.option("--dry-run", is_flag=True, help="Show what would be cloned without cloning")
@click.option("--no-forks", is_flag=True, help="Exclude forked repositories")
@click.option("--no-archived", is_flag=True, help="Exclude archived repositories")
@click.option("--filter", "name_pattern", default=None, help='Only repos whose name matches a glob (e.g. "prefix-*")')
@add_common_options('protocol', 'parallel', 'quiet', 'json', 'verbose')
@standard_command
def clone_handler(user, target_dir, dry_run, no_forks, no_archived, name_pattern,
                  protocol, parallel, quiet, output_json, verbose, config):
    """
    Clone all repositories of USER into TARGET_DIR.

    Repositories whose directory already exists are skipped, so clone is
    safe to re-run. git output is appended to the log file.

    Examples:

    \b
        gitall clone torvalds ~/src/torvalds
        gitall clone octocat --protocol https --no-forks
        gitall clone myorg ~/work -j 4 --filter "svc-*"
        gitall clone octocat --dry-run --json
    """
    filters = config.get('filters', {})
    options = SyncOptions(
        dry_run=dry_run,
        no_forks=no_forks or bool(filters.get("no_forks")),
        no_archived=no_archived or bool(filters.get("no_archived")),
        name_pattern=name_pattern or filters.get('name_pattern') or None,
    )

    target = build_target(config, user, target_dir, protocol)
    engine = build_engine(config, target, parallel, options)
    try:
        summary = engine.clone()
    finally:
        engine.runner.shutdown()
        engine.log_sink.close()

    if output_json:
        render_summary_json(summary)
    else:
        render_summary(summary, show_details=not quiet)
