"""
文件路径：checklist_filler/processors/pagination.py

模块职责：
- 将汇总页的各区块（零件表、现场人员、检查表、签收信息、签名）按顺序绘制到
  任意多页上；纵向空间不足时开新页，并重绘页标题、区块标题（带 "(cont.)"）与表头。

说明：
- 绘制目标为“画布”对象（见 engines/reportlab.ReportLabSurface），只需提供
  new_page / draw_text / draw_rect / draw_line / draw_image 五个方法；
- 行高由每个单元格的 layout_multiline_text 结果取最大值，不设上限；
- 页码均为画布内的 0 基页序号，由装配器映射为最终文档页码。
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Protocol, Sequence, Tuple

from ..components import GlyphMetrics, Rectangle, fit_within, get_logger
from ..variables import (
    CONST_CONTINUATION_SUFFIX,
    CONST_SIGNATURE_BOXES,
    CONST_SIGNATURES_TITLE,
    CONST_SIGNOFF_DETAILS_TITLE,
    CONST_SUMMARY_TITLE,
    STYLE_CHECKBOX_SIZE,
    STYLE_CHECKMARK_THICKNESS,
    STYLE_COLUMN_GAP,
    STYLE_DETAIL_BOX_HEIGHT,
    STYLE_HEADING_COLOR,
    STYLE_MESSAGE_FONT_SIZE,
    STYLE_PAGE_TITLE_ADVANCE,
    STYLE_PAGE_TITLE_FONT_SIZE,
    STYLE_SECTION_TITLE_ADVANCE,
    STYLE_SECTION_TITLE_FONT_SIZE,
    STYLE_SIGNATURE_BOX_HEIGHT,
    STYLE_SUMMARY_LINE_FONT_SIZE,
    STYLE_SUMMARY_MARGIN,
    STYLE_TABLE_BORDER_COLOR,
    STYLE_TABLE_BORDER_WIDTH,
    STYLE_TABLE_CELL_PADDING_X,
    STYLE_TABLE_HEADER_FONT_SIZE,
    STYLE_TABLE_HEADER_MIN_FONT_SIZE,
    STYLE_TABLE_HEADER_TEXT_COLOR,
    STYLE_TEXT_COLOR,
    STYLE_WHITE,
)
from .layout import LayoutPolicy, MultilineLayout, WrappedLine, layout_multiline_text, layout_text_for_width
from .sections import TableSection


logger = get_logger(__name__)

Color = Tuple[float, float, float]

_HEADER_POLICY = LayoutPolicy(font_size=STYLE_TABLE_HEADER_FONT_SIZE, min_font_size=STYLE_TABLE_HEADER_MIN_FONT_SIZE)
_DETAIL_POLICY = LayoutPolicy(font_size=10.0, min_font_size=10.0)


class DrawingSurface(Protocol):
    def new_page(self, size: Tuple[float, float]) -> int: ...

    def draw_text(self, text: str, x: float, y: float, size: float, color: Color = ..., bold: bool = ...) -> None: ...

    def draw_rect(
        self,
        x: float,
        y: float,
        width: float,
        height: float,
        fill: Optional[Color] = ...,
        stroke: Optional[Color] = ...,
        line_width: float = ...,
    ) -> None: ...

    def draw_line(self, x1: float, y1: float, x2: float, y2: float, thickness: float, color: Color) -> None: ...

    def draw_image(self, image: Any, x: float, y: float, width: float, height: float) -> None: ...


@dataclass(frozen=True)
class PageCursor:
    """当前页序号与基线位置；换页时整体替换。"""

    page: int
    y: float

    def moved(self, dy: float) -> "PageCursor":
        return PageCursor(self.page, self.y - dy)


@dataclass
class SignatureImage:
    """待绘制的签名：字段名 + 已解码图片（Pillow Image）。"""

    acro_name: str
    image: Any


class PaginatedSectionRenderer:
    """汇总页分页绘制器。

    用法：
        renderer = PaginatedSectionRenderer(surface, metrics, (595.28, 841.89))
        renderer.start()
        for section in sections:
            renderer.render_table(section)
        renderer.render_signoff_details(engineer, customer)
        placements = renderer.render_signatures(images)
    """

    def __init__(
        self,
        surface: DrawingSurface,
        metrics: Optional[GlyphMetrics],
        page_size: Tuple[float, float],
        margin: float = STYLE_SUMMARY_MARGIN,
        title: str = CONST_SUMMARY_TITLE,
    ) -> None:
        self.surface = surface
        self.metrics = metrics
        self.page_size = (float(page_size[0]), float(page_size[1]))
        self.margin = margin
        self.title = title
        self.cursor: Optional[PageCursor] = None
        self.pages: List[int] = []
        self._active_title: Optional[str] = None
        self._active_table: Optional[TableSection] = None

    # -----------------------------
    # 页面与游标
    # -----------------------------
    @property
    def page_width(self) -> float:
        return self.page_size[0]

    @property
    def table_width(self) -> float:
        return self.page_width - self.margin * 2

    def start(self) -> None:
        self._open_page(self.title)

    def _open_page(self, heading: str) -> None:
        index = self.surface.new_page(self.page_size)
        self.pages.append(index)
        top = self.page_size[1] - self.margin
        self.surface.draw_text(heading, self.margin, top, STYLE_PAGE_TITLE_FONT_SIZE, STYLE_HEADING_COLOR)
        self.cursor = PageCursor(page=index, y=top - STYLE_PAGE_TITLE_ADVANCE)

    def _advance(self, dy: float) -> None:
        self.cursor = self.cursor.moved(dy)

    def ensure_space(self, required: float, heading: Optional[str] = None) -> bool:
        """剩余高度不足 required 时换页；返回是否发生换页。

        换页后依次重绘：页标题（默认 "<title> (cont.)"）、进行中区块的标题（带 "(cont.)"）
        以及进行中表格的表头。
        """
        if self.cursor is None:
            self.start()
        if self.cursor.y - required >= self.margin:
            return False
        self._open_page(heading or f"{self.title}{CONST_CONTINUATION_SUFFIX}")
        if self._active_title:
            self._draw_section_title(f"{self._active_title}{CONST_CONTINUATION_SUFFIX}")
        if self._active_table is not None:
            self._draw_table_header(self._active_table)
        return True

    def _draw_section_title(self, label: str) -> None:
        self.surface.draw_text(label, self.margin, self.cursor.y, STYLE_SECTION_TITLE_FONT_SIZE, STYLE_HEADING_COLOR)
        self._advance(STYLE_SECTION_TITLE_ADVANCE)

    def _begin_section(self, title: str, reserve: float) -> None:
        self._active_title = None
        self._active_table = None
        self.ensure_space(reserve)
        self._draw_section_title(title)
        self._active_title = title

    def _end_section(self) -> None:
        self._active_title = None
        self._active_table = None

    # -----------------------------
    # 表格
    # -----------------------------
    def _column_widths(self, section: TableSection) -> List[float]:
        return [self.table_width * column.ratio for column in section.columns]

    def _draw_table_header(self, section: TableSection) -> None:
        x = self.margin
        top = self.cursor.y
        height = section.header_height
        for column, width in zip(section.columns, self._column_widths(section)):
            self.surface.draw_rect(
                x, top - height, width, height,
                fill=section.header_fill, stroke=STYLE_TABLE_BORDER_COLOR, line_width=STYLE_TABLE_BORDER_WIDTH,
            )
            baseline = top - section.header_baseline_offset
            if section.wrap_header:
                label = layout_text_for_width(column.header, width - 8, _HEADER_POLICY, self.metrics)
                for line in label.lines:
                    self.surface.draw_text(line, x + 4, baseline, label.font_size, STYLE_TABLE_HEADER_TEXT_COLOR)
                    baseline -= label.line_height
            else:
                self.surface.draw_text(column.header, x + 4, baseline, STYLE_TABLE_HEADER_FONT_SIZE, STYLE_TABLE_HEADER_TEXT_COLOR)
            x += width
        self._advance(height)

    def measure_row(self, section: TableSection, row: Sequence[Any]) -> Tuple[float, List[Optional[MultilineLayout]]]:
        """计算一行的行高及各单元格布局（复选框列无布局）。"""
        layouts: List[Optional[MultilineLayout]] = []
        tallest = 0.0
        for column, width, value in zip(section.columns, self._column_widths(section), row):
            if column.kind == "checkbox":
                layouts.append(None)
                continue
            measured = layout_multiline_text(
                "" if value is None else str(value),
                max(4.0, width - STYLE_TABLE_CELL_PADDING_X * 2),
                column.policy,
                self.metrics,
            )
            layouts.append(measured)
            tallest = max(tallest, measured.total_height)
        height = max(section.base_row_height, float(math.ceil(tallest + section.row_padding)))
        return height, layouts

    def render_table(self, section: TableSection) -> int:
        """绘制一个表格区块，返回实际绘制的行数。"""
        if not section.rows:
            if section.empty_message:
                self._begin_section(section.title, 24.0)
                self.surface.draw_text(
                    section.empty_message, self.margin, self.cursor.y, STYLE_MESSAGE_FONT_SIZE, STYLE_TEXT_COLOR
                )
                self._advance(24.0)
            self._end_section()
            return 0

        self._begin_section(section.title, section.start_reserve())
        self._draw_table_header(section)
        self._active_table = section

        for row in section.rows:
            height, layouts = self.measure_row(section, row)
            if height > self._fresh_page_room(section):
                self.ensure_space(section.base_row_height + section.row_spacing)
                self._draw_split_row(section, row, layouts)
                continue
            self.ensure_space(height + section.row_spacing)
            self._draw_row(section, row, layouts, height)
            self._advance(height)

        self._end_section()
        self._advance(section.trailing_gap)
        if section.footer_lines:
            for line in section.footer_lines:
                self.ensure_space(16.0)
                self.surface.draw_text(line, self.margin, self.cursor.y, STYLE_SUMMARY_LINE_FONT_SIZE, STYLE_TEXT_COLOR)
                self._advance(16.0)
            self._advance(10.0)
        return len(section.rows)

    def _draw_row(
        self,
        section: TableSection,
        row: Sequence[Any],
        layouts: Sequence[Optional[MultilineLayout]],
        height: float,
    ) -> None:
        x = self.margin
        bottom = self.cursor.y - height
        for column, width, value, measured in zip(section.columns, self._column_widths(section), row, layouts):
            self.surface.draw_rect(
                x, bottom, width, height,
                fill=STYLE_WHITE, stroke=STYLE_TABLE_BORDER_COLOR, line_width=STYLE_TABLE_BORDER_WIDTH,
            )
            cell = Rectangle(x, bottom, width, height)
            if column.kind == "checkbox":
                if value is not None:
                    self._draw_checkbox(cell, bool(value))
            elif measured is not None:
                self._draw_text_block(cell, measured, column.align)
            x += width

    def _fresh_page_room(self, section: TableSection) -> float:
        """续页上重绘页标题、区块标题与表头后剩余的高度。"""
        return (
            self.page_size[1] - self.margin * 2
            - STYLE_PAGE_TITLE_ADVANCE - STYLE_SECTION_TITLE_ADVANCE - section.header_height
        )

    def _take_lines(self, entries: List[WrappedLine], budget: float) -> Tuple[List[WrappedLine], List[WrappedLine]]:
        used = 0.0
        count = 0
        for entry in entries:
            if used + entry.line_height > budget:
                break
            used += entry.line_height
            count += 1
        return entries[:count], entries[count:]

    def _draw_split_row(self, section: TableSection, row: Sequence[Any], layouts: Sequence[Optional[MultilineLayout]]) -> None:
        """绘制高于整页的行：逐页放入能容纳的行，其余部分在续页（重绘标题与表头后）继续。

        复选框只在第一段绘制；每页至少前进一行，保证终止。
        """
        remaining: List[Optional[List[WrappedLine]]] = [
            list(measured.entries) if measured is not None else None for measured in layouts
        ]
        values: List[Any] = list(row)
        while True:
            budget = self.cursor.y - self.margin - section.row_padding
            chunk: List[Optional[MultilineLayout]] = []
            rest: List[Optional[List[WrappedLine]]] = []
            for entries in remaining:
                if entries is None:
                    chunk.append(None)
                    rest.append(None)
                    continue
                taken, left = self._take_lines(entries, budget)
                chunk.append(MultilineLayout(entries=taken))
                rest.append(left)
            if not any(part is not None and part.entries for part in chunk):
                for index, entries in enumerate(remaining):
                    if entries:
                        chunk[index] = MultilineLayout(entries=entries[:1])
                        rest[index] = entries[1:]

            tallest = max((part.total_height for part in chunk if part is not None), default=0.0)
            height = max(section.base_row_height, float(math.ceil(tallest + section.row_padding)))
            self._draw_row(section, values, chunk, height)
            self._advance(height)

            remaining = rest
            if not any(entries for entries in remaining if entries is not None):
                return
            values = [None if column.kind == "checkbox" else value for column, value in zip(section.columns, values)]
            self.ensure_space(float("inf"))

    def _draw_text_block(
        self,
        rect: Rectangle,
        measured: MultilineLayout,
        align: str = "center",
        padding_x: float = STYLE_TABLE_CELL_PADDING_X,
    ) -> None:
        """在矩形内垂直居中绘制预先排好的行。"""
        entries = measured.entries
        if not any(entry.text for entry in entries):
            return
        top = rect.y + (rect.height + measured.total_height) / 2
        baseline = top - entries[0].font_size
        for entry in entries:
            if entry.text:
                line_width = self.metrics.width(entry.text, entry.font_size) if self.metrics else 0.0
                if align == "center":
                    x = rect.x + (rect.width - line_width) / 2
                elif align == "right":
                    x = rect.x + rect.width - padding_x - line_width
                else:
                    x = rect.x + padding_x
                self.surface.draw_text(entry.text, x, baseline, entry.font_size, STYLE_TEXT_COLOR)
            baseline -= entry.line_height

    def _draw_checkbox(self, cell: Rectangle, checked: bool) -> None:
        size = STYLE_CHECKBOX_SIZE
        bx = cell.x + (cell.width - size) / 2
        by = cell.y + (cell.height - size) / 2
        self.surface.draw_rect(bx, by, size, size, fill=None, stroke=STYLE_TABLE_BORDER_COLOR, line_width=STYLE_TABLE_BORDER_WIDTH)
        if checked:
            self.surface.draw_line(bx + 3, by + size / 2, bx + size / 2, by + 3, STYLE_CHECKMARK_THICKNESS, STYLE_TEXT_COLOR)
            self.surface.draw_line(bx + size / 2, by + 3, bx + size - 3, by + size - 3, STYLE_CHECKMARK_THICKNESS, STYLE_TEXT_COLOR)

    # -----------------------------
    # 签收信息与签名
    # -----------------------------
    def _half_width(self) -> float:
        return (self.page_width - self.margin * 2 - STYLE_COLUMN_GAP) / 2

    def render_signoff_details(
        self,
        engineer: Sequence[Tuple[str, str]],
        customer: Sequence[Tuple[str, str]],
    ) -> None:
        """新起一页绘制签收信息：左列工程师、右列客户，每项为 (标签, 值)。"""
        self._end_section()
        self._open_page(CONST_SIGNOFF_DETAILS_TITLE)
        box_height = STYLE_DETAIL_BOX_HEIGHT
        pitch = box_height + 16.0
        rows = max(len(engineer), len(customer))
        self._begin_section(CONST_SIGNOFF_DETAILS_TITLE, pitch * rows + 40.0)
        column_width = self._half_width()

        for index in range(rows):
            for column, items in enumerate((engineer, customer)):
                if index >= len(items):
                    continue
                label, value = items[index]
                rect = Rectangle(
                    x=self.margin + column * (column_width + STYLE_COLUMN_GAP),
                    y=self.cursor.y - 14.0 - box_height,
                    width=column_width,
                    height=box_height,
                )
                self.surface.draw_text(label, rect.x, rect.top + 6, 9.0, STYLE_HEADING_COLOR)
                self.surface.draw_rect(
                    rect.x, rect.y, rect.width, rect.height,
                    fill=STYLE_WHITE, stroke=STYLE_TABLE_BORDER_COLOR, line_width=STYLE_TABLE_BORDER_WIDTH,
                )
                measured = layout_multiline_text(value, max(4.0, rect.width - 12), _DETAIL_POLICY, self.metrics)
                self._draw_text_block(rect, measured, "center", padding_x=6.0)
            self._advance(pitch)
        self._end_section()
        self._advance(20.0)

    def render_signatures(self, images: Sequence[SignatureImage]) -> List[Dict[str, Any]]:
        """绘制签名框，图片等比缩放放入框内（不放大）；返回签名放置记录。"""
        height = STYLE_SIGNATURE_BOX_HEIGHT
        self._begin_section(CONST_SIGNATURES_TITLE, height + 60.0)
        self._advance(14.0)
        width = self._half_width()
        placements: List[Dict[str, Any]] = []

        for column, (label, acro_name) in enumerate(CONST_SIGNATURE_BOXES):
            box = Rectangle(
                x=self.margin + column * (width + STYLE_COLUMN_GAP),
                y=self.cursor.y - height,
                width=width,
                height=height,
            )
            self.surface.draw_text(label, box.x, box.top + 6, 10.0, STYLE_HEADING_COLOR)
            self.surface.draw_rect(box.x, box.y, box.width, box.height, fill=STYLE_WHITE, stroke=STYLE_TABLE_BORDER_COLOR, line_width=1.0)

            pattern = re.compile(re.escape(acro_name), re.IGNORECASE)
            entry = next((item for item in images if pattern.search(item.acro_name)), None)
            if entry is None:
                continue
            avail_w, avail_h = box.width - 12, box.height - 12
            img_w, img_h = entry.image.size
            draw_w, draw_h = fit_within(img_w, img_h, avail_w, avail_h)
            if draw_w <= 0 or draw_h <= 0:
                logger.warning("签名图片尺寸无效，已跳过：%s", entry.acro_name)
                continue
            x = box.x + 6 + (avail_w - draw_w) / 2
            y = box.y + 6 + (avail_h - draw_h) / 2
            self.surface.draw_image(entry.image, x, y, draw_w, draw_h)
            placements.append(
                {
                    "acroName": entry.acro_name,
                    "page": self.cursor.page,
                    "width": round(draw_w, 2),
                    "height": round(draw_h, 2),
                }
            )
        self._end_section()
        self._advance(height + 30.0)
        return placements


__all__ = [
    "DrawingSurface",
    "PageCursor",
    "SignatureImage",
    "PaginatedSectionRenderer",
]
