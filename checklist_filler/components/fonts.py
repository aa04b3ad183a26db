"""
文件路径：checklist_filler/components/fonts.py

说明：基于 ReportLab 字体度量（pdfmetrics.stringWidth）的宽度计算。
PyMuPDF 表单控件使用的 Helv 与 ReportLab 的 Helvetica 共享同一套 AFM 度量，
因此字段布局与汇总页绘制可共用同一个度量对象。
"""

from __future__ import annotations

import math

from reportlab.pdfbase import pdfmetrics

from ..variables import STYLE_FONT_NAME


class ReportLabGlyphMetrics:
    """指定字体的宽度度量，实例只读，可在多次装配间共享。"""

    def __init__(self, font_name: str = STYLE_FONT_NAME) -> None:
        # 提前触发字体查找，未注册的字体在此处报错而非在布局中途
        pdfmetrics.getFont(font_name)
        self.font_name = font_name

    def width(self, text: str, font_size: float) -> float:
        if not text:
            return 0.0
        value = float(pdfmetrics.stringWidth(text, self.font_name, float(font_size)))
        return value if math.isfinite(value) else 0.0

    def __repr__(self) -> str:
        return f"ReportLabGlyphMetrics({self.font_name!r})"


__all__ = ["ReportLabGlyphMetrics"]
