"""Allow ``python -m gitwhere``."""

from gitwhere.cli.main import cli

if __name__ == "__main__":
    cli()
