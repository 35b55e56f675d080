"""Label fonts.

The bridge looks for Roboto Condensed next to the executable, in the
working directory and in the package assets. Without it, Pillow's
bundled default font is used at the requested size.
"""

import logging
import sys
from collections.abc import Iterable
from functools import lru_cache
from pathlib import Path
from typing import Optional

from PIL import ImageFont

logger = logging.getLogger(__name__)

REGULAR_FONT = "roboto-condensed-regular.ttf"
BOLD_FONT = "roboto-condensed-700.ttf"

_font_files: dict[bool, Path] = {}


def default_search_paths() -> list[Path]:
    return [
        Path(sys.executable).parent / "assets",
        Path.cwd() / "assets",
        Path.cwd(),
        Path(__file__).resolve().parent.parent / "assets",
    ]


def init_fonts(search_paths: Optional[Iterable[Path]] = None) -> list[Path]:
    """
    Locate the label fonts.

    Args:
        search_paths: Directories to search, first hit wins. Defaults to
            ``default_search_paths()``.

    Returns:
        Font files found
    """
    paths = list(search_paths) if search_paths is not None else default_search_paths()

    _font_files.clear()
    get_font.cache_clear()

    for bold, name in ((False, REGULAR_FONT), (True, BOLD_FONT)):
        for directory in paths:
            candidate = Path(directory) / name
            if candidate.is_file():
                _font_files[bold] = candidate
                break

    found = list(_font_files.values())
    if found:
        logger.info(f"Loaded {len(found)} font(s): {', '.join(str(p) for p in found)}")
    else:
        logger.warning("No label fonts found, using Pillow's default font")
    return found


@lru_cache(maxsize=128)
def get_font(size: int, bold: bool = False) -> ImageFont.FreeTypeFont | ImageFont.ImageFont:
    """Font at ``size`` pixels; bold falls back to regular, then to the default font."""
    path = _font_files.get(bold) or _font_files.get(False)
    if path is not None:
        try:
            return ImageFont.truetype(str(path), size)
        except OSError as e:
            logger.warning(f"Could not load font {path}: {e}")
    return ImageFont.load_default(size)
