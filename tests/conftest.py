from __future__ import annotations

"""
pytest 全局配置：将项目根目录加入 sys.path，确保 `from checklist_filler...` 可被导入；
并提供固定宽度度量与记录型画布两个测试替身。
"""

import sys
from pathlib import Path
from typing import Any, List, Optional, Tuple

import pytest

ROOT = Path(__file__).resolve().parents[1]
ROOT_STR = str(ROOT)
if ROOT_STR not in sys.path:
    sys.path.insert(0, ROOT_STR)


class FixedWidthMetrics:
    """每个字符宽度 = ratio * 字号，便于精确断言换行结果。"""

    def __init__(self, ratio: float = 0.5) -> None:
        self.ratio = ratio

    def width(self, text: str, font_size: float) -> float:
        return len(text) * font_size * self.ratio


class RecordingSurface:
    """记录所有绘制调用的画布，不生成 PDF。"""

    def __init__(self) -> None:
        self.calls: List[Tuple[Any, ...]] = []
        self.page_count = 0

    def new_page(self, size: Optional[Tuple[float, float]] = None) -> int:
        self.page_count += 1
        self.calls.append(("page", self.page_count - 1, size))
        return self.page_count - 1

    def draw_text(self, text, x, y, size, color=None, bold=False) -> None:
        self.calls.append(("text", self.page_count - 1, text, round(x, 3), round(y, 3), size))

    def draw_rect(self, x, y, width, height, fill=None, stroke=None, line_width=1.0) -> None:
        self.calls.append(("rect", self.page_count - 1, round(x, 3), round(y, 3), round(width, 3), round(height, 3)))

    def draw_line(self, x1, y1, x2, y2, thickness, color) -> None:
        self.calls.append(("line", self.page_count - 1))

    def draw_image(self, image, x, y, width, height) -> None:
        self.calls.append(("image", self.page_count - 1, round(width, 3), round(height, 3)))

    def texts(self, page: Optional[int] = None) -> List[str]:
        return [c[2] for c in self.calls if c[0] == "text" and (page is None or c[1] == page)]


@pytest.fixture
def fixed_metrics() -> FixedWidthMetrics:
    return FixedWidthMetrics()


@pytest.fixture
def helvetica():
    from checklist_filler.components import ReportLabGlyphMetrics

    return ReportLabGlyphMetrics("Helvetica")


@pytest.fixture
def recording_surface() -> RecordingSurface:
    return RecordingSurface()
