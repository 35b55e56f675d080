"""List command implementation."""

import sys

import click


@click.command(name="list")
def list_surfaces_command():
    """List connected USB control surfaces."""
    from surfacebridge.devices.streamdeck import list_surfaces
    from surfacebridge.exceptions import InitError

    from .run import echo_error

    try:
        surfaces = list_surfaces()
    except InitError as e:
        echo_error(e)
        sys.exit(1)

    if not surfaces:
        click.echo("No control surfaces found.")
        return

    click.echo("Connected control surfaces:\n")
    for surface in surfaces:
        click.echo(f"[{surface['index']}] {surface['type']}")
        click.echo(f"    Path: {surface['path']}")
        click.echo(f"    Serial: {surface['serial_number'] or 'unknown'}")
        click.echo(f"    Keys: {surface['keys']}")
        click.echo()
