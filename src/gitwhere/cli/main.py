"""gitwhere CLI main entry point."""

import click

from gitwhere import __version__


@click.group()
@click.version_option(version=__version__, prog_name="gitwhere")
def cli() -> None:
    """gitwhere - find where a line of code lives now.

    Replays every commit since a date against a file and line number.
    """
    pass


# Import and register subcommands
from gitwhere.cli.locate import locate  # noqa: E402

cli.add_command(locate)
