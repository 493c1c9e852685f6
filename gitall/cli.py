#!/usr/bin/env python3

import click

from gitall import __version__
from gitall.commands.clone import clone_handler
from gitall.commands.update import update_handler
from gitall.commands.fetch import fetch_handler
from gitall.commands.status import status_handler
from gitall.commands.list import list_handler
from gitall.commands.config import config_cmd


@click.group()
@click.version_option(version=__version__)
def cli():
    """gitall - Keep a directory of git clones in step with a GitHub account.

    clone fetches the account's repository list and clones what is missing,
    update pulls every local clone, fetch refreshes their remote-tracking
    branches, status prints git status for each one and list shows their
    branch, state and remote.
    """
    pass


cli.add_command(clone_handler, name='clone')
cli.add_command(update_handler, name='update')
cli.add_command(fetch_handler, name='fetch')
cli.add_command(status_handler, name='status')
cli.add_command(list_handler, name='list')
cli.add_command(config_cmd)

# Alias
cli.add_command(update_handler, name='pull')


def main():
    cli()

if __name__ == "__main__":
    main()
