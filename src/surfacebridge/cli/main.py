"""Main CLI entry point."""

import logging
import logging.handlers
from pathlib import Path
from typing import Optional

import click

from surfacebridge import __version__

from .commands import config, list_surfaces_command, render, run, schema

logger = logging.getLogger(__name__)

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def resolve_log_path(debug: bool, log_file: Optional[Path]) -> Path:
    """Where log records go for the given flags."""
    if log_file:
        return log_file
    if debug:
        return Path.cwd() / "surfacebridge-debug.log"
    return Path.home() / ".surfacebridge" / "logs" / "surfacebridge.log"


def setup_logging(verbose: int, debug: bool, log_file: Optional[Path], log_level: str) -> Path:
    """
    Configure logging for the application.

    Records go to a rotating file and, filtered by ``verbose``, to stderr.

    Args:
        verbose: Verbosity count for stderr (0 = WARNING, 1 = INFO, 2+ = DEBUG)
        debug: If True, log everything to ./surfacebridge-debug.log
        log_file: Custom log file path (optional)
        log_level: Log level for file logging (DEBUG/INFO/WARNING/ERROR)

    Returns:
        Path of the log file
    """
    if debug or verbose >= 2:
        console_level = logging.DEBUG
    elif verbose == 1:
        console_level = logging.INFO
    else:
        console_level = logging.WARNING

    file_level = logging.DEBUG if debug else getattr(logging, log_level.upper())

    log_path = resolve_log_path(debug, log_file)
    log_path.parent.mkdir(parents=True, exist_ok=True)

    formatter = logging.Formatter(LOG_FORMAT, datefmt='%Y-%m-%d %H:%M:%S')

    # Keeps last 5 files, max 10MB each
    file_handler = logging.handlers.RotatingFileHandler(
        log_path,
        maxBytes=10 * 1024 * 1024,
        backupCount=5
    )
    file_handler.setLevel(file_level)
    file_handler.setFormatter(formatter)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(console_level)
    console_handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(min(file_level, console_level))
    root_logger.addHandler(file_handler)
    root_logger.addHandler(console_handler)

    logger.info(f"Logging configured: level={logging.getLevelName(file_level)}, file={log_path}")
    return log_path


@click.group()
@click.version_option(version=__version__, prog_name="surfacebridge")
@click.option(
    '-v', '--verbose',
    count=True,
    help='Increase console verbosity (-v: INFO, -vv: DEBUG)'
)
@click.option(
    '--debug',
    is_flag=True,
    help='Enable debug mode (DEBUG level, logs to ./surfacebridge-debug.log)'
)
@click.option(
    '--log-file',
    type=click.Path(path_type=Path, dir_okay=False),
    default=None,
    help='Custom log file path'
)
@click.option(
    '--log-level',
    type=click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR'], case_sensitive=False),
    default='INFO',
    help='Log level for file logging (default: INFO)'
)
@click.pass_context
def cli(ctx, verbose: int, debug: bool, log_file: Optional[Path], log_level: str):
    """
    SurfaceBridge - control surfaces for automation controllers.

    Turns button presses, encoder turns and touches on control surfaces
    (USB or network) and HTTP requests into triggers, and renders feedback
    from the controller back onto the surface's keys and LCD.

    \b
    Examples:
      # Run with a config file
      surfacebridge run --config bridge.json

      # List connected USB surfaces
      surfacebridge list

      # Show the options accepted by a device type
      surfacebridge schema streamdeck-tcp

      # Preview how a feedback value renders
      surfacebridge render '{"type": "text", "text": "CAM 1"}' --out cam1.png

      # Enable debug logging
      surfacebridge --debug run --config bridge.json
    """
    ctx.ensure_object(dict)
    ctx.obj.update(verbose=verbose, debug=debug, log_file=log_file, log_level=log_level)


cli.add_command(run)
cli.add_command(list_surfaces_command)
cli.add_command(schema)
cli.add_command(render)
cli.add_command(config)

if __name__ == "__main__":
    cli()
