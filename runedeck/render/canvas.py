"""Drawing helpers shared by the orb renderers.

All geometry is expressed for a square canvas (144 px by default, the Stream
Deck "@2x" key size) and scaled for other sizes.
"""

from __future__ import annotations

import functools
import logging

import numpy as np
from PIL import Image, ImageDraw, ImageFont

log = logging.getLogger(__name__)

DEFAULT_SIZE = 144

BLACK = (0, 0, 0)
WHITE = (255, 255, 255)

TEXT_POSITIONS: dict[str, tuple[int, int]] = {
    "top-left": (40, 40),
    "top": (72, 40),
    "top-right": (104, 40),
    "left": (40, 80),
    "middle": (72, 80),
    "right": (104, 80),
    "bottom-left": (40, 120),
    "bottom": (72, 120),
    "bottom-right": (104, 120),
}
DEFAULT_TEXT_POSITION = "middle"

# Darkening towards the rim, light source upper-left (focus at 30%/25%).
_ORB_FOCUS = (0.30, 0.25)
_ORB_STOPS = (0.0, 0.40, 0.70, 0.90, 1.0)
_ORB_OPACITY = (0.0, 0.30, 0.60, 0.85, 0.95)

_FONT_CANDIDATES = ("DejaVuSans-Bold.ttf", "arialbd.ttf", "Arial Bold.ttf", "Arial.ttf")


def clamp01(value: float) -> float:
    return max(0.0, min(1.0, float(value)))


def percent_color(pct: float) -> tuple[int, int, int]:
    """Red -> yellow -> green ramp used for coloured numbers."""
    p = clamp01(pct)
    if p > 0.5:
        t = (p - 0.5) / 0.5
        return round(255 * (1 - t)), 255, 0
    t = p / 0.5
    return 255, round(255 * t), 0


def hex_color(rgb: tuple[int, int, int]) -> str:
    return "#{:02X}{:02X}{:02X}".format(*rgb)


def parse_hex(color: str) -> tuple[int, int, int]:
    c = color.lstrip("#")
    return int(c[0:2], 16), int(c[2:4], 16), int(c[4:6], 16)


def fill_height(size: int, pct: float) -> int:
    """Height of a fill that grows from the bottom."""
    return round(size * clamp01(pct))


def mask_height(size: int, pct: float) -> int:
    """Height of the black mask hiding the empty part, measured from the top."""
    return round(size * (1 - clamp01(pct)))


def text_anchor(position: str | None, size: int = DEFAULT_SIZE) -> tuple[int, int]:
    x, y = TEXT_POSITIONS.get(position or "", TEXT_POSITIONS[DEFAULT_TEXT_POSITION])
    if size == DEFAULT_SIZE:
        return x, y
    scale = size / DEFAULT_SIZE
    return round(x * scale), round(y * scale)


def new_canvas(size: int = DEFAULT_SIZE) -> Image.Image:
    return Image.new("RGBA", (size, size), BLACK + (255,))


def composite(canvas: Image.Image, layer: Image.Image | None, xy: tuple[int, int] = (0, 0)) -> None:
    """Alpha-composite *layer* onto *canvas*; a missing layer is skipped."""
    if layer is None:
        return
    if layer.mode != "RGBA":
        layer = layer.convert("RGBA")
    canvas.alpha_composite(layer, xy)


def fill_bottom(
    canvas: Image.Image,
    height: int,
    colors: tuple[tuple[int, int, int], ...],
) -> None:
    """Fill *height* px from the bottom up; several colours split the width evenly."""
    size = canvas.height
    height = min(size, height)
    if height <= 0 or not colors:
        return
    draw = ImageDraw.Draw(canvas)
    width = canvas.width
    n = len(colors)
    for i, color in enumerate(colors):
        x0 = (width * i) // n
        x1 = (width * (i + 1)) // n
        draw.rectangle((x0, size - height, x1 - 1, size - 1), fill=color + (255,))


def mask_top(canvas: Image.Image, height: int) -> None:
    """Black out *height* px from the top (the empty part of the orb)."""
    height = min(canvas.height, height)
    if height > 0:
        ImageDraw.Draw(canvas).rectangle(
            (0, 0, canvas.width - 1, height - 1), fill=BLACK + (255,)
        )


@functools.lru_cache(maxsize=8)
def orb_gradient(size: int = DEFAULT_SIZE) -> Image.Image:
    """Radial darkening overlay giving the flat fill a spherical look.

    Black with alpha following the stop table, focal point upper-left,
    transparent outside the inscribed circle.
    """
    r = size / 2.0
    cx = cy = r
    fx, fy = _ORB_FOCUS[0] * size, _ORB_FOCUS[1] * size

    ys, xs = np.mgrid[0:size, 0:size].astype(np.float64) + 0.5
    dx = xs - fx
    dy = ys - fy
    ex, ey = fx - cx, fy - cy

    # Distance ratio along the ray focus -> pixel -> circle edge.
    a = dx * dx + dy * dy
    b = ex * dx + ey * dy
    c = ex * ex + ey * ey - r * r
    with np.errstate(divide="ignore", invalid="ignore"):
        s = (-b + np.sqrt(b * b - a * c)) / a
        t = np.where(a > 0, 1.0 / s, 0.0)
    t = np.clip(t, 0.0, 1.0)

    opacity = np.interp(t, _ORB_STOPS, _ORB_OPACITY)
    inside = (xs - cx) ** 2 + (ys - cy) ** 2 <= r * r
    alpha = np.where(inside, np.rint(opacity * 255), 0).astype(np.uint8)

    rgba = np.zeros((size, size, 4), dtype=np.uint8)
    rgba[..., 3] = alpha
    return Image.fromarray(rgba)


@functools.lru_cache(maxsize=8)
def label_font(px: int) -> ImageFont.FreeTypeFont | ImageFont.ImageFont:
    for name in _FONT_CANDIDATES:
        try:
            return ImageFont.truetype(name, px)
        except OSError:
            continue
    log.debug("canvas: no truetype font found, using Pillow default")
    return ImageFont.load_default(size=px)


def draw_label(
    canvas: Image.Image,
    text: str,
    position: str | None = DEFAULT_TEXT_POSITION,
    color: tuple[int, int, int] = WHITE,
) -> None:
    """Bold outlined number centred on one of the nine anchors."""
    size = canvas.height
    font = label_font(max(8, round(36 * size / DEFAULT_SIZE)))
    stroke = max(1, round(3 * size / DEFAULT_SIZE))
    cx, cy = text_anchor(position, size)

    draw = ImageDraw.Draw(canvas)
    left, top, right, bottom = draw.textbbox((0, 0), text, font=font, stroke_width=stroke)
    x = cx - (right - left) / 2 - left
    y = cy - (bottom - top) / 2 - top
    draw.text(
        (x, y),
        text,
        fill=color + (255,),
        font=font,
        stroke_width=stroke,
        stroke_fill=BLACK + (255,),
    )
