"""
文件路径：checklist_filler/components/coords.py

说明：矩形与坐标换算。

- 对外统一使用 PDF 坐标系（左下角为原点，单位 pt）；
- PyMuPDF 的 Rect 以左上角为原点，读取控件位置时需做 Y 轴翻转。
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple


@dataclass(frozen=True)
class Rectangle:
    """不可变矩形（左下原点）。"""

    x: float
    y: float
    width: float
    height: float

    @property
    def top(self) -> float:
        return self.y + self.height

    @property
    def right(self) -> float:
        return self.x + self.width

    def inset(self, dx: float, dy: float) -> "Rectangle":
        """向内收缩；宽高不小于 0。"""
        return Rectangle(
            x=self.x + dx,
            y=self.y + dy,
            width=max(0.0, self.width - 2 * dx),
            height=max(0.0, self.height - 2 * dy),
        )


def rect_from_top_left(
    bbox: Tuple[float, float, float, float],
    page_height: float,
) -> Rectangle:
    """将 (x0, top, x1, bottom)（左上原点）转换为左下原点的 Rectangle。"""
    x0, top, x1, bottom = (float(v) for v in bbox)
    return Rectangle(x=x0, y=page_height - bottom, width=x1 - x0, height=bottom - top)


def fit_within(
    image_width: float,
    image_height: float,
    box_width: float,
    box_height: float,
    allow_upscale: bool = False,
) -> Tuple[float, float]:
    """按比例缩放图片尺寸以放入框内，返回 (宽, 高)。"""
    if image_width <= 0 or image_height <= 0:
        return 0.0, 0.0
    scale = min(box_width / image_width, box_height / image_height)
    if not allow_upscale:
        scale = min(scale, 1.0)
    return image_width * scale, image_height * scale


__all__ = ["Rectangle", "rect_from_top_left", "fit_within"]
