"""Main entry point for ``python -m surfacebridge``."""

from surfacebridge.cli.main import cli

if __name__ == "__main__":
    cli()
