"""
文件路径：checklist_filler/processors/sections.py

说明：汇总页各表格区块的描述符与构建函数。

一个 TableSection 描述标题、列（表头、宽度比例、对齐、类型、排版策略）、
行数据以及各区块在间距上的差异；绘制统一由 pagination.PaginatedSectionRenderer 完成。
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, List, Mapping, Optional, Sequence, Tuple, Union

from ..data_handler import PartsRow, normalize_checkbox_value, text_value
from ..variables import (
    CONST_CHECKLIST_COLUMN_RATIOS,
    CONST_CHECKLIST_HEADERS,
    CONST_CHECKLIST_SECTIONS,
    CONST_EMPLOYEE_COLUMN_RATIOS,
    CONST_EMPLOYEE_HEADERS,
    CONST_EMPLOYEE_MAX_COUNT,
    CONST_EMPLOYEES_SECTION_TITLE,
    CONST_NO_EMPLOYEES_MESSAGE,
    CONST_NO_PARTS_MESSAGE,
    CONST_PARTS_COLUMN_RATIOS,
    CONST_PARTS_HEADERS,
    CONST_PARTS_SECTION_TITLE,
    CONST_SIGN_OFF_CHECKLIST_ROWS,
    CONST_SIGN_OFF_CHECKLIST_TITLE,
    STYLE_TABLE_HEADER_FILL,
    STYLE_TABLE_HEADER_FILL_LIGHT,
)
from .layout import DEFAULT_TEXT_FIELD_POLICY, LayoutPolicy
from .roster import EmployeeSummary


CellValue = Union[str, bool]

ACTION_POLICY = LayoutPolicy(font_size=10.0, min_font_size=9.0)


@dataclass(frozen=True)
class TableColumn:
    header: str
    ratio: float
    align: str = "center"
    kind: str = "text"  # text | checkbox
    policy: LayoutPolicy = DEFAULT_TEXT_FIELD_POLICY


@dataclass
class TableSection:
    """可跨页绘制的表格区块。

    属性：
        reserve_rows / reserve_extra: 区块开始前至少预留
            `header_height + base_row_height * min(行数, reserve_rows) + reserve_extra` 的空间。
        row_padding: 行高 = max(base_row_height, ceil(单元格文本高度 + row_padding))。
        row_spacing: 绘制一行前额外要求的剩余空间。
        footer_lines: 表格下方的汇总行（如人员总时长）。
    """

    title: str
    columns: Tuple[TableColumn, ...]
    rows: List[List[CellValue]] = field(default_factory=list)
    header_fill: Tuple[float, float, float] = STYLE_TABLE_HEADER_FILL
    wrap_header: bool = True
    header_baseline_offset: float = 6.0
    header_height: float = 18.0
    base_row_height: float = 22.0
    row_padding: float = 8.0
    row_spacing: float = 6.0
    reserve_rows: int = 1
    reserve_extra: float = 12.0
    trailing_gap: float = 24.0
    empty_message: Optional[str] = None
    footer_lines: List[str] = field(default_factory=list)

    def start_reserve(self) -> float:
        count = min(max(1, len(self.rows)), self.reserve_rows)
        return self.header_height + self.base_row_height * count + self.reserve_extra


def build_parts_section(rows: Sequence[PartsRow]) -> TableSection:
    """零件表：只保留至少有一个非空单元格的行。"""
    columns = tuple(TableColumn(h, r) for h, r in zip(CONST_PARTS_HEADERS, CONST_PARTS_COLUMN_RATIOS))
    used = [row.cells() for row in rows if row.has_data]
    return TableSection(
        title=CONST_PARTS_SECTION_TITLE,
        columns=columns,
        rows=used,
        reserve_rows=3,
        empty_message=CONST_NO_PARTS_MESSAGE,
    )


def build_employee_section(summary: EmployeeSummary) -> TableSection:
    columns = tuple(
        TableColumn(h, r) for h, r in zip(CONST_EMPLOYEE_HEADERS, CONST_EMPLOYEE_COLUMN_RATIOS)
    )
    rows: List[List[CellValue]] = []
    for position, entry in enumerate(summary.entries, start=1):
        brk = entry.break_requirement
        duration_cell = f"{entry.duration_label}\n{brk.label}" if brk.label else entry.duration_label
        rows.append(
            [
                str(position),
                entry.name or "--",
                entry.role or "--",
                entry.arrival_display or entry.arrival or "--",
                entry.departure_display or entry.departure or "--",
                duration_cell,
            ]
        )
    footer = [summary.total_line(), summary.breaks_line()] if rows else []
    return TableSection(
        title=CONST_EMPLOYEES_SECTION_TITLE,
        columns=columns,
        rows=rows,
        header_fill=STYLE_TABLE_HEADER_FILL_LIGHT,
        row_padding=12.0,
        row_spacing=8.0,
        reserve_rows=CONST_EMPLOYEE_MAX_COUNT,
        reserve_extra=24.0,
        trailing_gap=14.0,
        empty_message=CONST_NO_EMPLOYEES_MESSAGE,
        footer_lines=footer,
    )


def _checklist_columns() -> Tuple[TableColumn, ...]:
    action, complete, notes = zip(CONST_CHECKLIST_HEADERS, CONST_CHECKLIST_COLUMN_RATIOS)
    return (
        TableColumn(action[0], action[1], align="left", policy=ACTION_POLICY),
        TableColumn(complete[0], complete[1], kind="checkbox"),
        TableColumn(notes[0], notes[1], align="left"),
    )


def build_checklist_section(
    title: str,
    rows: Sequence[Tuple[str, str, str]],
    body: Mapping[str, Any],
) -> TableSection:
    """检查表区块：每行为 (动作说明, 复选框键, 备注键)。"""
    data: List[List[CellValue]] = [
        [action, normalize_checkbox_value(body.get(checkbox_key)), text_value(body, notes_key)]
        for action, checkbox_key, notes_key in rows
    ]
    return TableSection(
        title=title,
        columns=_checklist_columns(),
        rows=data,
        header_fill=STYLE_TABLE_HEADER_FILL_LIGHT,
        wrap_header=False,
        header_baseline_offset=8.0,
        base_row_height=24.0,
        row_spacing=8.0,
        trailing_gap=18.0,
    )


def build_summary_sections(
    parts_rows: Sequence[PartsRow],
    employees: EmployeeSummary,
    body: Mapping[str, Any],
) -> List[TableSection]:
    """固定顺序：零件表 → 现场人员 → 各检查表 → 签收检查表。"""
    sections = [build_parts_section(parts_rows), build_employee_section(employees)]
    sections.extend(build_checklist_section(title, rows, body) for title, rows in CONST_CHECKLIST_SECTIONS)
    sections.append(build_checklist_section(CONST_SIGN_OFF_CHECKLIST_TITLE, CONST_SIGN_OFF_CHECKLIST_ROWS, body))
    return sections


__all__ = [
    "CellValue",
    "ACTION_POLICY",
    "TableColumn",
    "TableSection",
    "build_parts_section",
    "build_employee_section",
    "build_checklist_section",
    "build_summary_sections",
]
