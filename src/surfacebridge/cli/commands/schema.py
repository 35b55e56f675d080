"""Schema command: show the options a device type accepts."""

import json

import click


@click.command()
@click.argument('device_type')
def schema(device_type: str):
    """Print the JSON schema of DEVICE_TYPE's options (e.g. streamdeck, streamdeck-tcp, http)."""
    from surfacebridge.devices import available_types, get_options_manifest

    try:
        manifest = get_options_manifest(device_type)
    except KeyError:
        raise click.BadParameter(
            f"Unknown device type '{device_type}'. Choose from: {', '.join(available_types())}",
            param_hint="DEVICE_TYPE",
        ) from None

    click.echo(json.dumps(manifest, indent=2))
