"""Run command: start the bridge."""

import asyncio
import logging
import sys
from pathlib import Path
from typing import Optional

import click

logger = logging.getLogger(__name__)


def echo_error(error: Exception, log_path: Optional[Path] = None) -> None:
    """Show an error without a traceback, with its recovery hint."""
    from surfacebridge.exceptions import format_error_for_display

    user_message, recovery_hint = format_error_for_display(error)

    click.echo("\n" + "=" * 70, err=True)
    click.echo(f"ERROR: {user_message}", err=True)
    click.echo("=" * 70, err=True)

    if recovery_hint:
        click.echo(f"\n{recovery_hint}", err=True)

    if log_path is not None:
        click.echo(f"\nFor details, check the log file: {log_path}", err=True)
        click.echo("For logging options, run: surfacebridge --help", err=True)


@click.command()
@click.option(
    '--config',
    '-c',
    'config_path',
    type=click.Path(path_type=Path, dir_okay=False),
    default=None,
    help='Config file (default: ~/.surfacebridge/config.json)'
)
@click.pass_context
def run(ctx, config_path: Optional[Path]):
    """
    Run the bridge with the configured devices.

    Triggers are logged until a controller client is attached. Stop with Ctrl+C.
    """
    # Lazy imports keep `--help` fast
    from surfacebridge.app import LoggingSink, run_app
    from surfacebridge.cli.main import setup_logging
    from surfacebridge.exceptions import ConfigurationError
    from surfacebridge.models import AppConfig

    opts = ctx.obj or {}
    log_path = setup_logging(
        opts.get("verbose", 0),
        opts.get("debug", False),
        opts.get("log_file"),
        opts.get("log_level", "INFO"),
    )

    logger.info("Starting SurfaceBridge")

    try:
        if config_path is not None:
            config_obj = AppConfig.load(config_path)
        else:
            config_obj = AppConfig.load_or_default()
    except (ConfigurationError, FileNotFoundError) as e:
        logger.error(f"Could not load configuration: {e}")
        echo_error(e, log_path)
        sys.exit(1)

    if not config_obj.devices:
        click.echo("No devices configured. Create one with: surfacebridge config init PATH", err=True)

    try:
        exit_code = asyncio.run(run_app(config_obj, sinks=[LoggingSink()]))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        click.echo("\nShutting down...", err=True)
        exit_code = 0

    if exit_code != 0:
        click.echo(f"SurfaceBridge failed to start. For details, check the log file: {log_path}", err=True)
    sys.exit(exit_code)
