"""
文件路径：checklist_filler/processors/overflow.py

模块职责：
- 收集字段溢出文本（OverflowEntry），用单遍贪心的行预算装箱分配到附录页；
- 在附录页绘制固定标题、每条记录的标签行与按页宽换行的正文；
- 返回每条记录所在的页，写入审计记录。

装箱规则：
- 每页容量 = floor((页高 - 2 * 页边距) / (默认字号 * 行高倍数)) 行；
- 每条记录的成本 = 正文换行后的行数 + CONST_OVERFLOW_LINE_COST_PADDING（标签行与间距）；
- 加入后超出容量且当前页非空时另起一页；输入顺序保持不变。
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Tuple

from ..components import GlyphMetrics, get_logger
from ..variables import (
    CONST_CONTINUATION_SUFFIX,
    CONST_OVERFLOW_LINE_COST_PADDING,
    CONST_OVERFLOW_TITLE,
    CONST_PREVIEW_MAX_CHARS,
    STYLE_BODY_TEXT_COLOR,
    STYLE_FIELD_FONT_SIZE_DEFAULT,
    STYLE_FIELD_MIN_FONT_SIZE_DEFAULT,
    STYLE_LINE_HEIGHT_MULTIPLIER,
    STYLE_OVERFLOW_LABEL_FONT_SIZE,
    STYLE_OVERFLOW_MARGIN,
    STYLE_OVERFLOW_TITLE_FONT_SIZE,
    STYLE_TABLE_HEADER_TEXT_COLOR,
    STYLE_TEXT_COLOR,
)
from .layout import LayoutPolicy, layout_text_for_width
from .pagination import DrawingSurface, PageCursor


logger = get_logger(__name__)


@dataclass
class OverflowEntry:
    """字段溢出文本。"""

    acro_name: str
    request_name: str
    label: str
    text: str
    font_size: float = STYLE_FIELD_FONT_SIZE_DEFAULT

    def to_metadata(self) -> Dict[str, Any]:
        return {
            "acroName": self.acro_name,
            "requestName": self.request_name,
            "label": self.label,
            "textLength": len(self.text),
            "preview": self.text[:CONST_PREVIEW_MAX_CHARS],
        }


def page_line_capacity(
    page_height: float,
    margin: float = STYLE_OVERFLOW_MARGIN,
    font_size: float = STYLE_FIELD_FONT_SIZE_DEFAULT,
    multiplier: float = STYLE_LINE_HEIGHT_MULTIPLIER,
) -> int:
    return max(1, int(math.floor((page_height - margin * 2) / (font_size * multiplier))))


def entry_policy(entry: OverflowEntry) -> LayoutPolicy:
    """正文沿用字段最终字号；最小字号不高于该字号。"""
    size = entry.font_size or STYLE_FIELD_FONT_SIZE_DEFAULT
    return LayoutPolicy(font_size=size, min_font_size=min(size, STYLE_FIELD_MIN_FONT_SIZE_DEFAULT))


def entry_line_cost(entry: OverflowEntry, body_width: float, metrics: Optional[GlyphMetrics]) -> int:
    layout = layout_text_for_width(entry.text, body_width, entry_policy(entry), metrics)
    return layout.line_count + CONST_OVERFLOW_LINE_COST_PADDING


def plan_overflow_pages(
    entries: Sequence[OverflowEntry],
    capacity: int,
    costs: Sequence[int],
) -> List[List[int]]:
    """单遍贪心装箱：返回每页包含的记录下标列表。"""
    pages: List[List[int]] = []
    current: List[int] = []
    used = 0
    for index, cost in enumerate(costs[: len(entries)]):
        if current and used + cost > capacity:
            pages.append(current)
            current, used = [], 0
        current.append(index)
        used += cost
    if current:
        pages.append(current)
    return pages


def append_overflow_pages(
    surface: DrawingSurface,
    entries: Sequence[OverflowEntry],
    page_size: Tuple[float, float],
    metrics: Optional[GlyphMetrics],
    margin: float = STYLE_OVERFLOW_MARGIN,
) -> List[Dict[str, Any]]:
    """绘制附录页，返回每条记录的放置信息（page 为画布内 0 基页序号）。

    单条记录正文超过一页时，在下一页续写并使用 "Extended Text (cont.)" 标题。
    """
    if not entries:
        return []
    width, height = page_size
    body_width = width - margin * 2
    capacity = page_line_capacity(height, margin)
    costs = [entry_line_cost(entry, body_width, metrics) for entry in entries]
    plan = plan_overflow_pages(entries, capacity, costs)

    placements: List[Dict[str, Any]] = []

    def _open(title: str) -> PageCursor:
        page = surface.new_page((width, height))
        surface.draw_text(title, margin, height - margin, STYLE_OVERFLOW_TITLE_FONT_SIZE, STYLE_TABLE_HEADER_TEXT_COLOR)
        return PageCursor(page, height - margin - 24)

    for group in plan:
        cursor = _open(CONST_OVERFLOW_TITLE)
        for index in group:
            entry = entries[index]
            layout = layout_text_for_width(entry.text, body_width, entry_policy(entry), metrics)
            # 标签行至少与一行正文同页
            if cursor.y - 16 - layout.line_height < margin:
                cursor = _open(f"{CONST_OVERFLOW_TITLE}{CONST_CONTINUATION_SUFFIX}")
            surface.draw_text(f"{entry.label or entry.acro_name}:", margin, cursor.y, STYLE_OVERFLOW_LABEL_FONT_SIZE, STYLE_TEXT_COLOR)
            cursor = cursor.moved(16)
            first_page = cursor.page
            for line in layout.lines:
                if cursor.y < margin:
                    cursor = _open(f"{CONST_OVERFLOW_TITLE}{CONST_CONTINUATION_SUFFIX}")
                surface.draw_text(line, margin, cursor.y, layout.font_size, STYLE_BODY_TEXT_COLOR)
                cursor = cursor.moved(layout.line_height)
            cursor = cursor.moved(12)
            placements.append(
                {
                    "acroName": entry.acro_name,
                    "requestName": entry.request_name,
                    "page": first_page,
                }
            )
    logger.info("溢出文本 %s 条，附录页 %s 页", len(entries), len(plan))
    return placements


__all__ = [
    "OverflowEntry",
    "page_line_capacity",
    "entry_policy",
    "entry_line_cost",
    "plan_overflow_pages",
    "append_overflow_pages",
]
