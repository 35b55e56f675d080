"""Config command group: validate, show and scaffold configuration files."""

import sys
from pathlib import Path

import click


@click.group()
def config():
    """Manage configuration files."""


@config.command()
@click.argument('path', type=click.Path(path_type=Path, dir_okay=False))
def validate(path: Path):
    """Check that PATH is a valid configuration file."""
    from surfacebridge.models import AppConfig
    from surfacebridge.utils import PydanticPersistence

    is_valid, error = PydanticPersistence.validate_json(path, AppConfig)
    if not is_valid:
        click.echo(f"Invalid configuration: {path}\n\n{error}", err=True)
        sys.exit(1)

    click.echo(f"Configuration OK: {path}")


@config.command()
@click.argument('path', type=click.Path(path_type=Path, dir_okay=False))
def show(path: Path):
    """Print the effective configuration in PATH, defaults included."""
    from surfacebridge.exceptions import ConfigurationError
    from surfacebridge.models import AppConfig

    from .run import echo_error

    try:
        config_obj = AppConfig.load(path)
    except (ConfigurationError, FileNotFoundError) as e:
        echo_error(e)
        sys.exit(1)

    click.echo(config_obj.model_dump_json(indent=2))


@config.command()
@click.argument('path', type=click.Path(path_type=Path, dir_okay=False))
@click.option('--force', is_flag=True, help='Overwrite an existing file')
def init(path: Path, force: bool):
    """Write an example configuration to PATH."""
    from surfacebridge.models import AppConfig, HttpOptions, StreamDeckOptions, StreamDeckTcpOptions

    if path.exists() and not force:
        click.echo(f"{path} already exists. Use --force to overwrite it.", err=True)
        sys.exit(1)

    example = AppConfig(
        devices={
            "desk": StreamDeckOptions(index=0),
            "remote": StreamDeckTcpOptions(address="192.168.1.50"),
            "webhooks": HttpOptions(port=8080),
        }
    )
    example.save(path)
    click.echo(f"Wrote example configuration to {path}")
