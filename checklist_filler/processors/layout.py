"""
文件路径：checklist_filler/processors/layout.py

模块职责：
- 字段布局：在固定矩形内收缩字号排版，放不下的部分作为溢出文本返回；
- 单元格布局：只限宽度、高度随内容增长，收缩字号直到最宽行不超出列宽；
- 字段样式选择：按字段名依次匹配 CONST_TEXT_FIELD_STYLE_RULES，首个命中生效。

说明：
- 收缩为逐步递减（步长 CONST_SHRINK_STEP），不是二分；字号单调不增，结果可复现；
- 度量对象缺失或宽度非法时不换行，只按换行符拆分（宁可显示，也不拒绝提交）。
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field, replace
from typing import Dict, List, Optional, Pattern, Tuple

from ..components import (
    GlyphMetrics,
    Rectangle,
    strip_leading_empty_lines,
    strip_trailing_empty_lines,
    wrap_text_to_width,
)
from ..variables import (
    CONST_SHRINK_STEP,
    CONST_TEXT_FIELD_STYLE_RULES,
    CONST_WIDTH_FIT_TOLERANCE,
    STYLE_FIELD_FONT_SIZE_DEFAULT,
    STYLE_FIELD_INNER_PADDING,
    STYLE_FIELD_MIN_FONT_SIZE_DEFAULT,
    STYLE_LINE_HEIGHT_MULTIPLIER,
)


@dataclass(frozen=True)
class LayoutPolicy:
    """单个字段/单元格的排版策略。"""

    font_size: float = STYLE_FIELD_FONT_SIZE_DEFAULT
    min_font_size: float = STYLE_FIELD_MIN_FONT_SIZE_DEFAULT
    line_height_multiplier: float = STYLE_LINE_HEIGHT_MULTIPLIER
    multiline: bool = False

    def line_height(self, font_size: Optional[float] = None) -> float:
        size = self.font_size if font_size is None else font_size
        return size * (self.line_height_multiplier or STYLE_LINE_HEIGHT_MULTIPLIER)


DEFAULT_TEXT_FIELD_POLICY = LayoutPolicy()

_COMPILED_RULES: Tuple[Tuple[Pattern[str], Dict[str, object]], ...] = tuple(
    (re.compile(pattern), overrides) for pattern, overrides in CONST_TEXT_FIELD_STYLE_RULES
)


def resolve_text_field_style(name: Optional[str]) -> LayoutPolicy:
    """按字段名选择排版策略；未命中任何规则时返回默认单行策略。"""
    if not name:
        return DEFAULT_TEXT_FIELD_POLICY
    for pattern, overrides in _COMPILED_RULES:
        if pattern.search(name):
            return replace(DEFAULT_TEXT_FIELD_POLICY, **overrides)
    return DEFAULT_TEXT_FIELD_POLICY


# =============================
# 结果结构
# =============================
@dataclass
class WrappedLine:
    text: str
    font_size: float
    line_height: float


@dataclass
class FieldLayoutResult:
    """字段布局结果。

    不变量：displayed_line_count <= total_line_count；
    overflow_text 为空当且仅当所有行都已显示（空白行除外）。
    """

    fitted_text: str
    overflow_text: str
    total_line_count: int
    displayed_line_count: int
    applied_font_size: float
    line_height: float

    @property
    def has_overflow(self) -> bool:
        return bool(self.overflow_text.strip())


@dataclass
class CellLayout:
    """单元格布局结果（高度不设上限）。"""

    lines: List[str]
    font_size: float
    line_height: float
    fits: bool = True

    @property
    def line_count(self) -> int:
        return len(self.lines) or 1

    @property
    def height(self) -> float:
        return self.line_count * self.line_height


@dataclass
class MultilineLayout:
    """按段落分别做单元格布局后的整体结果；各段字号可能不同。"""

    entries: List[WrappedLine] = field(default_factory=list)

    @property
    def total_height(self) -> float:
        return sum(entry.line_height for entry in self.entries)


# =============================
# 字段布局（固定矩形）
# =============================
def _next_size(current: float, minimum: float) -> float:
    return max(minimum, current - CONST_SHRINK_STEP)


def _build_field_layout(
    text: str,
    metrics: Optional[GlyphMetrics],
    policy: LayoutPolicy,
    font_size: float,
    inner_width: float,
    inner_height: float,
) -> FieldLayoutResult:
    line_height = policy.line_height(font_size)
    lines = strip_trailing_empty_lines(wrap_text_to_width(text, metrics, font_size, inner_width))
    max_lines = max(1, int(inner_height // max(line_height, 1.0)))
    keep = 1 if not policy.multiline else max_lines

    shown = lines[:keep] if lines else [""]
    rest = strip_leading_empty_lines(lines[keep:])
    return FieldLayoutResult(
        fitted_text="\n".join(shown),
        overflow_text="\n".join(rest).strip(),
        total_line_count=max(len(lines), len(shown)),
        displayed_line_count=len(shown),
        applied_font_size=font_size,
        line_height=line_height,
    )


def layout_text_for_field(
    value: Optional[str],
    rect: Optional[Rectangle],
    policy: LayoutPolicy = DEFAULT_TEXT_FIELD_POLICY,
    metrics: Optional[GlyphMetrics] = None,
) -> FieldLayoutResult:
    """在字段矩形内排版文本，必要时逐步缩小字号。

    参数：
        value: 原始文本（允许包含换行）。
        rect: 字段矩形；四周各扣除 STYLE_FIELD_INNER_PADDING 作为可用区域。
        policy: 排版策略（字号、最小字号、行高倍数、是否多行）。
        metrics: 字体度量；缺失时按换行符拆分，不做收缩。

    返回：
        FieldLayoutResult；applied_font_size 介于 min_font_size 与 font_size 之间。

    示例：
        >>> layout_text_for_field("Cabinet B2 fan replaced ...", Rectangle(0, 0, 154, 28),
        ...                       LayoutPolicy(multiline=True, min_font_size=9), metrics)
        FieldLayoutResult(displayed_line_count=2, overflow_text="morning", ...)
    """
    text = "" if value is None else str(value).replace("\r\n", "\n")
    if metrics is None or rect is None:
        lines = text.split("\n") if text else [""]
        return FieldLayoutResult(
            fitted_text="\n".join(lines),
            overflow_text="",
            total_line_count=len(lines),
            displayed_line_count=len(lines),
            applied_font_size=policy.font_size,
            line_height=policy.line_height(),
        )

    inner_width = max(rect.width - STYLE_FIELD_INNER_PADDING * 2, 1.0)
    inner_height = max(rect.height - STYLE_FIELD_INNER_PADDING * 2, policy.font_size)

    size = policy.font_size
    result = _build_field_layout(text, metrics, policy, size, inner_width, inner_height)
    while result.has_overflow and size > policy.min_font_size:
        size = _next_size(size, policy.min_font_size)
        result = _build_field_layout(text, metrics, policy, size, inner_width, inner_height)
    return result


# =============================
# 单元格布局（限宽不限高）
# =============================
def _build_cell_layout(
    text: str,
    metrics: GlyphMetrics,
    font_size: float,
    max_width: float,
    multiplier: float,
) -> CellLayout:
    lines = wrap_text_to_width(text, metrics, font_size, max_width) or [""]
    widest = max((metrics.width(line, font_size) for line in lines), default=0.0)
    return CellLayout(
        lines=lines,
        font_size=font_size,
        line_height=font_size * multiplier,
        fits=widest <= max_width + CONST_WIDTH_FIT_TOLERANCE,
    )


def layout_text_for_width(
    value: Optional[str],
    max_width: Optional[float],
    policy: LayoutPolicy = DEFAULT_TEXT_FIELD_POLICY,
    metrics: Optional[GlyphMetrics] = None,
) -> CellLayout:
    """按列宽排版文本；最小字号下仍超宽的行原样保留，不截断任何字符。"""
    text = "" if value is None else str(value)
    multiplier = policy.line_height_multiplier or STYLE_LINE_HEIGHT_MULTIPLIER
    if metrics is None or max_width is None or not max_width > 0:
        lines = text.replace("\r\n", "\n").split("\n") if text else [""]
        return CellLayout(lines=lines, font_size=policy.font_size, line_height=policy.font_size * multiplier)

    size = policy.font_size
    layout = _build_cell_layout(text, metrics, size, max_width, multiplier)
    while not layout.fits and size > policy.min_font_size:
        size = _next_size(size, policy.min_font_size)
        layout = _build_cell_layout(text, metrics, size, max_width, multiplier)

    layout.lines = strip_trailing_empty_lines(layout.lines) or [""]
    return layout


def layout_multiline_text(
    value: Optional[str],
    max_width: float,
    policy: LayoutPolicy = DEFAULT_TEXT_FIELD_POLICY,
    metrics: Optional[GlyphMetrics] = None,
) -> MultilineLayout:
    """逐段调用 layout_text_for_width，保留空段落为空行；至少返回一行。"""
    content = "" if value is None else str(value)
    result = MultilineLayout()
    fallback_height = policy.line_height()
    for segment in content.split("\n"):
        cell = layout_text_for_width(segment, max_width, policy, metrics)
        if not cell.lines:
            result.entries.append(WrappedLine("", policy.font_size, fallback_height))
            continue
        result.entries.extend(WrappedLine(line, cell.font_size, cell.line_height) for line in cell.lines)
    if not result.entries:
        result.entries.append(WrappedLine("", policy.font_size, fallback_height))
    return result


__all__ = [
    "LayoutPolicy",
    "DEFAULT_TEXT_FIELD_POLICY",
    "resolve_text_field_style",
    "WrappedLine",
    "FieldLayoutResult",
    "CellLayout",
    "MultilineLayout",
    "layout_text_for_field",
    "layout_text_for_width",
    "layout_multiline_text",
]
