"""Tests for the shared drawing helpers."""

from __future__ import annotations

import pytest

from runedeck.render.canvas import (
    BLACK,
    draw_label,
    fill_bottom,
    fill_height,
    hex_color,
    mask_height,
    mask_top,
    new_canvas,
    orb_gradient,
    percent_color,
    text_anchor,
)


@pytest.mark.parametrize(
    "pct, expected",
    [
        (1.0, "#00FF00"),
        (0.5, "#FFFF00"),
        (0.0, "#FF0000"),
        (1.7, "#00FF00"),
        (-0.2, "#FF0000"),
        (0.75, "#80FF00"),
        (0.25, "#FF8000"),
    ],
)
def test_percent_color(pct: float, expected: str) -> None:
    assert hex_color(percent_color(pct)) == expected


def test_fill_and_mask_heights() -> None:
    assert fill_height(144, 0.5) == 72
    assert fill_height(144, 1.2) == 144
    assert fill_height(144, -1) == 0
    assert mask_height(144, 0.25) == 108
    assert mask_height(144, 1.0) == 0
    assert fill_height(144, 0.5) + mask_height(144, 0.5) == 144


def test_text_anchor_positions() -> None:
    assert text_anchor("middle") == (72, 80)
    assert text_anchor("bottom-right") == (104, 120)
    assert text_anchor("sideways") == (72, 80)
    assert text_anchor(None) == (72, 80)
    assert text_anchor("top-left", 72) == (20, 20)


def test_fill_bottom_single_colour() -> None:
    canvas = new_canvas()
    fill_bottom(canvas, 72, ((176, 9, 5),))
    assert canvas.getpixel((10, 143))[:3] == (176, 9, 5)
    assert canvas.getpixel((10, 72))[:3] == (176, 9, 5)
    assert canvas.getpixel((10, 71))[:3] == BLACK


def test_fill_bottom_splits_width() -> None:
    canvas = new_canvas()
    fill_bottom(canvas, 144, ((1, 2, 3), (4, 5, 6)))
    assert canvas.getpixel((0, 100))[:3] == (1, 2, 3)
    assert canvas.getpixel((71, 100))[:3] == (1, 2, 3)
    assert canvas.getpixel((72, 100))[:3] == (4, 5, 6)
    assert canvas.getpixel((143, 100))[:3] == (4, 5, 6)


def test_zero_fill_draws_nothing() -> None:
    canvas = new_canvas()
    fill_bottom(canvas, 0, ((255, 255, 255),))
    assert canvas.getpixel((72, 143))[:3] == BLACK


def test_mask_top() -> None:
    canvas = new_canvas()
    fill_bottom(canvas, 144, ((9, 9, 9),))
    mask_top(canvas, 36)
    assert canvas.getpixel((72, 35))[:3] == BLACK
    assert canvas.getpixel((72, 36))[:3] == (9, 9, 9)


def test_orb_gradient_shape() -> None:
    grad = orb_gradient(144)
    assert grad.size == (144, 144)
    assert grad.mode == "RGBA"
    # outside the circle
    assert grad.getpixel((0, 0))[3] == 0
    assert grad.getpixel((143, 143))[3] == 0
    # focus is the lightest point, the rim the darkest
    focus = grad.getpixel((43, 36))[3]
    rim = grad.getpixel((140, 72))[3]
    assert focus < 10
    assert rim > 200
    assert orb_gradient(144) is grad


def test_draw_label_marks_pixels_near_anchor() -> None:
    canvas = new_canvas()
    draw_label(canvas, "88", "middle", (255, 255, 255))
    box = canvas.crop((40, 50, 104, 110))
    colours = {px[:3] for px in box.getdata()}
    assert (255, 255, 255) in colours
    # far corner untouched
    assert canvas.getpixel((2, 2))[:3] == BLACK
