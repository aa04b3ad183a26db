"""
文件路径：checklist_filler/processors/engines/reportlab.py

说明：ReportLab 绘制画布（附录页、照片页、汇总页、页码图层）与 PyPDF2 合并。
"""

from __future__ import annotations

from dataclasses import dataclass, field
from io import BytesIO
from typing import Any, List, Optional, Sequence, Tuple

from PyPDF2 import PdfReader, PdfWriter
from reportlab.lib.utils import ImageReader
from reportlab.pdfgen import canvas

from ...components import GlyphMetrics, get_logger
from ...variables import (
    CONST_DEFAULT_PAGE_SIZE,
    ERR_PDF_MERGE_FAILED,
    STYLE_FONT_NAME,
    STYLE_FONT_NAME_BOLD,
    STYLE_FOOTER_COLOR,
    STYLE_PAGE_NUMBER_COLOR,
    STYLE_PAGE_NUMBER_FONT_SIZE,
    STYLE_PAGE_NUMBER_MARGIN,
    STYLE_TABLE_BORDER_WIDTH,
    STYLE_TEXT_COLOR,
)


logger = get_logger(__name__)

Color = Tuple[float, float, float]


class ReportLabSurface:
    """基于 reportlab.pdfgen.canvas 的绘制画布，逐页生成独立的 PDF 字节流。"""

    def __init__(
        self,
        page_size: Tuple[float, float] = CONST_DEFAULT_PAGE_SIZE,
        font_name: str = STYLE_FONT_NAME,
        bold_font_name: str = STYLE_FONT_NAME_BOLD,
    ) -> None:
        self._buffer = BytesIO()
        self._canvas = canvas.Canvas(self._buffer, pagesize=page_size)
        self.font_name = font_name
        self.bold_font_name = bold_font_name
        self.page_count = 0
        self.page_sizes: List[Tuple[float, float]] = []

    def new_page(self, size: Optional[Tuple[float, float]] = None) -> int:
        if self.page_count:
            self._canvas.showPage()
        use_size = size or (self.page_sizes[-1] if self.page_sizes else CONST_DEFAULT_PAGE_SIZE)
        self._canvas.setPageSize(use_size)
        self.page_sizes.append((float(use_size[0]), float(use_size[1])))
        self.page_count += 1
        return self.page_count - 1

    def draw_text(
        self,
        text: str,
        x: float,
        y: float,
        size: float,
        color: Color = STYLE_TEXT_COLOR,
        bold: bool = False,
    ) -> None:
        c = self._canvas
        c.setFillColorRGB(*color)
        c.setFont(self.bold_font_name if bold else self.font_name, size)
        c.drawString(x, y, text)

    def draw_rect(
        self,
        x: float,
        y: float,
        width: float,
        height: float,
        fill: Optional[Color] = None,
        stroke: Optional[Color] = None,
        line_width: float = STYLE_TABLE_BORDER_WIDTH,
    ) -> None:
        c = self._canvas
        if fill is not None:
            c.setFillColorRGB(*fill)
        if stroke is not None:
            c.setStrokeColorRGB(*stroke)
            c.setLineWidth(line_width)
        c.rect(x, y, width, height, stroke=1 if stroke is not None else 0, fill=1 if fill is not None else 0)

    def draw_line(self, x1: float, y1: float, x2: float, y2: float, thickness: float, color: Color) -> None:
        c = self._canvas
        c.setStrokeColorRGB(*color)
        c.setLineWidth(thickness)
        c.line(x1, y1, x2, y2)

    def draw_image(self, image: Any, x: float, y: float, width: float, height: float) -> None:
        self._canvas.drawImage(ImageReader(image), x, y, width=width, height=height, mask="auto")

    def finish(self) -> bytes:
        """结束绘制并返回 PDF 字节；没有任何页面时返回空字节。"""
        if not self.page_count:
            return b""
        self._canvas.showPage()
        self._canvas.save()
        return self._buffer.getvalue()


def build_page_number_layer(
    page_sizes: Sequence[Tuple[float, float]],
    metrics: GlyphMetrics,
    footer_text: Optional[str] = None,
) -> bytes:
    """生成与目标文档逐页对应的页码图层：右下角 `Page i of N`，末页左下角附页脚。"""
    surface = ReportLabSurface()
    total = len(page_sizes)
    size = STYLE_PAGE_NUMBER_FONT_SIZE
    margin = STYLE_PAGE_NUMBER_MARGIN
    for index, (width, height) in enumerate(page_sizes):
        surface.new_page((width, height))
        label = f"Page {index + 1} of {total}"
        surface.draw_text(label, width - margin - metrics.width(label, size), margin, size, STYLE_PAGE_NUMBER_COLOR)
        if footer_text and index == total - 1:
            surface.draw_text(footer_text, 36, 24, 10, STYLE_FOOTER_COLOR)
    return surface.finish()


@dataclass
class CompositionPlan:
    """页面组合计划：模板页 + 照片页 + 附录页 + 汇总续页。

    summary_target_index 指向被汇总首页覆盖的模板页；为 None 时汇总页全部追加在末尾。
    """

    template_pdf: bytes
    photo_pdf: bytes = b""
    overflow_pdf: bytes = b""
    summary_pdf: bytes = b""
    summary_target_index: Optional[int] = None
    page_sizes: List[Tuple[float, float]] = field(default_factory=list)


def _pages_of(data: bytes) -> list:
    return list(PdfReader(BytesIO(data)).pages) if data else []


def compose_document(plan: CompositionPlan, metrics: GlyphMetrics, footer_text: Optional[str] = None) -> bytes:
    """按固定顺序组合各部分并叠加页码图层，返回最终 PDF 字节。

    页码图层必须在 add_page 之前合并到源页面。
    """
    try:
        summary_pages = _pages_of(plan.summary_pdf)
        target = plan.summary_target_index

        pages = []
        for index, page in enumerate(_pages_of(plan.template_pdf)):
            if target is not None and index == target and summary_pages:
                page.merge_page(summary_pages[0])  # PyPDF2 3.x API
            pages.append(page)
        pages.extend(_pages_of(plan.photo_pdf))
        pages.extend(_pages_of(plan.overflow_pdf))
        pages.extend(summary_pages[1:] if target is not None else summary_pages)

        sizes = [(float(p.mediabox.width), float(p.mediabox.height)) for p in pages]
        plan.page_sizes = sizes
        numbers = _pages_of(build_page_number_layer(sizes, metrics, footer_text))

        writer = PdfWriter()
        for page, overlay in zip(pages, numbers):
            page.merge_page(overlay)
            writer.add_page(page)

        out = BytesIO()
        writer.write(out)
        return out.getvalue()
    except Exception as exc:  # noqa: BLE001
        raise RuntimeError(f"[{ERR_PDF_MERGE_FAILED}] PDF 合并失败: {exc}") from exc


__all__ = [
    "ReportLabSurface",
    "build_page_number_layer",
    "CompositionPlan",
    "compose_document",
]
