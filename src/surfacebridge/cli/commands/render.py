"""Render command: preview a feedback value as a PNG."""

import sys
from pathlib import Path
from typing import Optional

import click


@click.command()
@click.argument('feedback')
@click.option('--width', '-w', type=click.IntRange(min=1), default=72, help='Control width in pixels (default: 72)')
@click.option('--height', '-h', type=click.IntRange(min=1), default=72, help='Control height in pixels (default: 72)')
@click.option('--pressed', is_flag=True, help='Render in the pressed state')
@click.option(
    '--presets',
    'presets_path',
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help='JSON file with a list of style presets'
)
@click.option(
    '--out',
    '-o',
    type=click.Path(dir_okay=False, path_type=Path),
    required=True,
    help='PNG file to write'
)
def render(
    feedback: str,
    width: int,
    height: int,
    pressed: bool,
    presets_path: Optional[Path],
    out: Path,
):
    """
    Render FEEDBACK (a JSON value, or @file.json) to a PNG.

    \b
    Example:
      surfacebridge render '{"type": "gauge", "value": 0.4, "label": "VOL"}' -o vol.png
    """
    from PIL import Image
    from pydantic import TypeAdapter, ValidationError

    from surfacebridge.exceptions import RenderError
    from surfacebridge.models import StylePreset, parse_feedback
    from surfacebridge.rendering import init_fonts, presets_by_id, resolve_style
    from surfacebridge.rendering import render as render_feedback

    from .run import echo_error

    raw = Path(feedback[1:]).read_text(encoding="utf-8") if feedback.startswith("@") else feedback

    try:
        value = parse_feedback(raw)
        presets = []
        if presets_path is not None:
            presets = TypeAdapter(list[StylePreset]).validate_json(presets_path.read_text(encoding="utf-8"))
    except ValidationError as e:
        click.echo(f"Invalid feedback or presets:\n{e}", err=True)
        sys.exit(1)

    init_fonts()
    try:
        buffer = render_feedback(resolve_style(value, presets_by_id(presets)), width, height, pressed)
    except RenderError as e:
        echo_error(e)
        sys.exit(1)

    Image.frombytes("RGBA", (width, height), buffer).save(out, format="PNG")
    click.echo(f"Wrote {width}x{height} render to {out}")
