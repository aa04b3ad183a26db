from __future__ import annotations

import pytest

from checklist_filler.components import Rectangle, fit_within, rect_from_top_left


def test_rect_from_top_left_flips_y_axis():
    rect = rect_from_top_left((40, 100, 200, 128), page_height=841.89)
    assert rect.x == 40
    assert rect.width == 160
    assert rect.height == 28
    assert rect.y == pytest.approx(841.89 - 128)
    assert rect.top == pytest.approx(841.89 - 100)


def test_rectangle_is_immutable_and_inset_clamps():
    rect = Rectangle(10, 20, 6, 30)
    with pytest.raises(Exception):
        rect.x = 0  # type: ignore[misc]
    inner = rect.inset(4, 2)
    assert inner == Rectangle(14, 22, 0.0, 26)
    assert rect.right == 16


def test_fit_within_never_upscales_by_default():
    assert fit_within(100, 50, 400, 400) == (100, 50)
    assert fit_within(400, 200, 200, 200) == (200, 100)


def test_fit_within_upscale_and_degenerate():
    assert fit_within(100, 50, 400, 400, allow_upscale=True) == (400, 200)
    assert fit_within(0, 50, 100, 100) == (0.0, 0.0)
