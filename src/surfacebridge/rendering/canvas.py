"""Drawing surface with an affine transform.

Renderers draw in the control's logical coordinates (0..width, 0..height).
`Canvas` maps every drawing call through a translate+scale transform
before it reaches Pillow, which is how the pressed-state inset is applied
without any renderer knowing about it.
"""

from typing import Optional

from PIL import Image, ImageDraw, ImageOps

from .fonts import get_font

RGBA = tuple[int, int, int, int]

BLACK: RGBA = (0, 0, 0, 255)
MIN_FONT_SIZE = 6


class Canvas:
    """Pillow RGBA image plus a current transform."""

    def __init__(self, width: int, height: int, background: RGBA = BLACK):
        self.width = width
        self.height = height
        self.image = Image.new("RGBA", (width, height), background)
        self._draw = ImageDraw.Draw(self.image)
        self.offset_x = 0.0
        self.offset_y = 0.0
        self.zoom = 1.0

    # ================================================================
    # TRANSFORM
    # ================================================================

    def translate(self, dx: float, dy: float) -> None:
        """Move the origin, in current (already scaled) units."""
        self.offset_x += dx * self.zoom
        self.offset_y += dy * self.zoom

    def scale(self, factor: float) -> None:
        self.zoom *= factor

    @property
    def transform(self) -> tuple[float, float, float]:
        """Current (offset_x, offset_y, zoom)."""
        return (self.offset_x, self.offset_y, self.zoom)

    def map_point(self, x: float, y: float) -> tuple[float, float]:
        return (self.offset_x + x * self.zoom, self.offset_y + y * self.zoom)

    def map_box(self, x0: float, y0: float, x1: float, y1: float) -> tuple[float, float, float, float]:
        left, top = self.map_point(x0, y0)
        right, bottom = self.map_point(x1, y1)
        return (left, top, right, bottom)

    # ================================================================
    # DRAWING
    # ================================================================

    def fill_rect(self, box: tuple[float, float, float, float], color: RGBA) -> None:
        self._draw.rectangle(self.map_box(*box), fill=color)

    def outline_rect(self, box: tuple[float, float, float, float], color: RGBA, width: float = 1) -> None:
        self._draw.rectangle(
            self.map_box(*box), outline=color, width=max(1, round(width * self.zoom))
        )

    def ellipse(
        self,
        box: tuple[float, float, float, float],
        fill: Optional[RGBA] = None,
        outline: Optional[RGBA] = None,
        width: float = 1,
    ) -> None:
        self._draw.ellipse(
            self.map_box(*box),
            fill=fill,
            outline=outline,
            width=max(1, round(width * self.zoom)),
        )

    def text(
        self,
        x: float,
        y: float,
        text: str,
        size: float,
        color: RGBA,
        bold: bool = False,
        max_width: Optional[float] = None,
    ) -> None:
        """
        Draw ``text`` centered on (x, y).

        The font shrinks until the widest line fits ``max_width``.
        """
        if not text:
            return

        px_size = max(MIN_FONT_SIZE, round(size * self.zoom))
        limit = max_width * self.zoom if max_width is not None else None
        font = get_font(px_size, bold)
        while limit is not None and px_size > MIN_FONT_SIZE:
            left, _, right, _ = self._draw.multiline_textbbox((0, 0), text, font=font, align="center")
            if right - left <= limit:
                break
            px_size -= 1
            font = get_font(px_size, bold)

        self._draw.multiline_text(
            self.map_point(x, y), text, font=font, fill=color, anchor="mm", align="center"
        )

    def paste(self, source: Image.Image, box: tuple[float, float, float, float]) -> None:
        """Scale ``source`` to fit inside ``box`` (keeping aspect) and paste it centered."""
        left, top, right, bottom = (round(v) for v in self.map_box(*box))
        target_w, target_h = right - left, bottom - top
        if target_w <= 0 or target_h <= 0:
            return
        fitted = ImageOps.contain(source, (target_w, target_h))
        x = left + (target_w - fitted.width) // 2
        y = top + (target_h - fitted.height) // 2
        self.image.alpha_composite(fitted, (x, y))

    def to_bytes(self) -> bytes:
        """Raw RGBA, row-major."""
        return self.image.tobytes()
