"""versionsync CLI"""

import click

from versionsync import __version__
from versionsync.cli.run import run, show
from versionsync.cli.utils.env import load_env_file

from .debug import add_debug_option


@click.group()
@click.version_option(__version__, prog_name="versionsync")
@click.pass_context
def cli(ctx):
    """
    Keep embedded build versions in sync and check them in.
    """
    ctx.ensure_object(dict)
    # before subcommands resolve their envvar defaults
    load_env_file()


cli.add_command(add_debug_option(run))
cli.add_command(add_debug_option(show))

add_debug_option(cli)

if __name__ == "__main__":
    cli(obj={})
