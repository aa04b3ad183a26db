"""
文件路径：checklist_filler/components/text.py

说明：按像素宽度换行、超长单词拆分与首尾空行裁剪，供字段与表格布局共用。

约定：
- 度量对象只需提供 `width(text, font_size) -> float`（见 components/fonts.py）；
- 度量不可用（None）或 max_width 非正/非有限时，退化为按换行符拆分，不做换行。
"""

from __future__ import annotations

import math
import re
from typing import List, Optional, Protocol, Sequence


class GlyphMetrics(Protocol):
    """字体度量能力：返回指定字号下文本的宽度（pt）。"""

    def width(self, text: str, font_size: float) -> float:  # pragma: no cover - 协议声明
        ...


_NEWLINE_RE = re.compile(r"\r?\n")


def _measurable(metrics: Optional[GlyphMetrics], max_width: Optional[float]) -> bool:
    if metrics is None or max_width is None:
        return False
    try:
        value = float(max_width)
    except (TypeError, ValueError):
        return False
    return math.isfinite(value) and value > 0


def split_long_word(
    word: str,
    metrics: Optional[GlyphMetrics],
    font_size: float,
    max_width: float,
) -> List[str]:
    """将单个超宽单词按字符切分为若干片段，每段尽可能填满 max_width。

    - 单个字符本身超宽时独占一段，保证每轮至少前进一个字符；
    - 无法度量时原样返回。
    """
    if not word:
        return [""]
    if not _measurable(metrics, max_width):
        return [word]
    if metrics.width(word, font_size) <= max_width:
        return [word]

    parts: List[str] = []
    current = ""
    for ch in word:
        candidate = current + ch
        if not current or metrics.width(candidate, font_size) <= max_width:
            current = candidate
        else:
            parts.append(current)
            current = ch
    if current:
        parts.append(current)
    return parts or [word]


def strip_trailing_empty_lines(lines: Sequence[str]) -> List[str]:
    """去掉末尾的空白行。"""
    result = list(lines)
    while result and not result[-1].strip():
        result.pop()
    return result


def strip_leading_empty_lines(lines: Sequence[str]) -> List[str]:
    """去掉开头的空白行（用于溢出续文的起始处）。"""
    index = 0
    while index < len(lines) and not lines[index].strip():
        index += 1
    return list(lines[index:])


def wrap_text_to_width(
    text: Optional[str],
    metrics: Optional[GlyphMetrics],
    font_size: float,
    max_width: Optional[float],
) -> List[str]:
    """按最大宽度贪心换行。

    规则：
    - 按换行符拆成段落，各段独立换行；纯空白段落保留为一个空行；
    - 单词以单个空格拼接，拼接后宽度超过 max_width 时另起一行；
    - 超宽单词先经 split_long_word 切分，片段之间不插入空格；
    - 末尾空行会被裁剪。

    返回：
        行列表；空文本返回 [""]。
    """
    safe_text = "" if text is None else str(text)
    if not safe_text:
        return [""]
    if not _measurable(metrics, max_width):
        return _NEWLINE_RE.split(safe_text)

    lines: List[str] = []
    for paragraph in safe_text.replace("\r\n", "\n").split("\n"):
        if not paragraph.strip():
            lines.append("")
            continue
        current = ""
        for word in paragraph.split():
            for index, segment in enumerate(split_long_word(word, metrics, font_size, max_width)):
                if not current:
                    current = segment
                    continue
                joiner = " " if index == 0 else ""
                candidate = f"{current}{joiner}{segment}"
                if metrics.width(candidate, font_size) <= max_width:
                    current = candidate
                else:
                    lines.append(current)
                    current = segment
        if current:
            lines.append(current)
    return strip_trailing_empty_lines(lines)


__all__ = [
    "GlyphMetrics",
    "split_long_word",
    "strip_trailing_empty_lines",
    "strip_leading_empty_lines",
    "wrap_text_to_width",
]
