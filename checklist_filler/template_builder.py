"""
文件路径：checklist_filler/template_builder.py

模块职责：
- 使用 ReportLab AcroForm 生成三页的演示检查表模板（站点信息、检查表、零件表与签收区）；
- 返回字段目录（[{"name", "type", "label"}]），可直接写入 config/fields.json。

页面结构：
- 第 1 页：站点信息 + 服务类型下拉框 + LED 检查表；
- 第 2 页：控制设备与备件检查表 + 总备注（general_notes）；
- 第 3 页：零件表（15 行 × 5 列）+ 签收检查表 + 签收信息 + 签名框（装配时整页由汇总页替换）。
"""

from __future__ import annotations

from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple

from reportlab.lib.colors import Color
from reportlab.pdfgen import canvas

from .components import FileHandler, get_logger
from .variables import (
    CONST_CHECKLIST_COLUMN_RATIOS,
    CONST_CHECKLIST_HEADERS,
    CONST_CHECKLIST_SECTIONS,
    CONST_DEFAULT_PAGE_SIZE,
    CONST_PARTS_COLUMN_RATIOS,
    CONST_PARTS_FIELD_PREFIXES,
    CONST_PARTS_HEADERS,
    CONST_PARTS_ROW_COUNT,
    CONST_SIGN_OFF_CHECKLIST_ROWS,
    CONST_SIGN_OFF_CHECKLIST_TITLE,
    CONST_SIGNATURE_BOXES,
    CONST_SIGNOFF_CUSTOMER_DETAILS,
    CONST_SIGNOFF_ENGINEER_DETAILS,
    CONST_SITE_FIELDS,
    STYLE_FONT_NAME,
    STYLE_FONT_NAME_BOLD,
    STYLE_HEADING_COLOR,
    STYLE_TABLE_BORDER_COLOR,
    STYLE_TEXT_COLOR,
)


logger = get_logger(__name__)

VISIT_TYPE_OPTIONS: Tuple[str, ...] = ("Scheduled", "Reactive", "Installation")

_MARGIN = 40.0
_FIELD_BORDER = Color(*STYLE_TABLE_BORDER_COLOR)
_FIELD_FILL = Color(1, 1, 1)
_FIELD_TEXT = Color(*STYLE_TEXT_COLOR)


class _TemplateWriter:
    """在 ReportLab 画布上绘制静态文字并登记表单字段。"""

    def __init__(self, path: Path, page_size: Tuple[float, float]) -> None:
        self.canvas = canvas.Canvas(str(path), pagesize=page_size)
        self.width, self.height = page_size
        self.fields: List[Dict[str, str]] = []

    def heading(self, text: str, y: float, size: float = 13.0) -> None:
        c = self.canvas
        c.setFillColorRGB(*STYLE_HEADING_COLOR)
        c.setFont(STYLE_FONT_NAME_BOLD, size)
        c.drawString(_MARGIN, y, text)

    def label(self, text: str, x: float, y: float, size: float = 9.0) -> None:
        c = self.canvas
        c.setFillColorRGB(*STYLE_TEXT_COLOR)
        c.setFont(STYLE_FONT_NAME, size)
        c.drawString(x, y, text)

    def text_field(
        self,
        name: str,
        label: str,
        x: float,
        y: float,
        width: float,
        height: float,
        multiline: bool = False,
    ) -> None:
        self.canvas.acroForm.textfield(
            name=name,
            tooltip=label,
            x=x,
            y=y,
            width=width,
            height=height,
            fontName=STYLE_FONT_NAME,
            fontSize=10,
            borderWidth=0.6,
            borderColor=_FIELD_BORDER,
            fillColor=_FIELD_FILL,
            textColor=_FIELD_TEXT,
            forceBorder=True,
            fieldFlags="multiline" if multiline else "",
        )
        self.fields.append({"name": name, "type": "text", "label": label})

    def checkbox(self, name: str, label: str, x: float, y: float, size: float = 12.0) -> None:
        self.canvas.acroForm.checkbox(
            name=name,
            tooltip=label,
            x=x,
            y=y,
            size=size,
            buttonStyle="check",
            borderWidth=0.6,
            borderColor=_FIELD_BORDER,
            fillColor=_FIELD_FILL,
            textColor=_FIELD_TEXT,
            forceBorder=True,
        )
        self.fields.append({"name": name, "type": "checkbox", "label": label})

    def dropdown(self, name: str, label: str, options: Sequence[str], x: float, y: float, width: float, height: float) -> None:
        self.canvas.acroForm.choice(
            name=name,
            tooltip=label,
            value=options[0],
            options=list(options),
            x=x,
            y=y,
            width=width,
            height=height,
            fontName=STYLE_FONT_NAME,
            fontSize=10,
            borderWidth=0.6,
            borderColor=_FIELD_BORDER,
            fillColor=_FIELD_FILL,
            textColor=_FIELD_TEXT,
            forceBorder=True,
            fieldFlags="combo",
        )
        self.fields.append({"name": name, "type": "dropdown", "label": label})

    def checklist(self, title: str, rows: Sequence[Tuple[str, str, str]], top: float, row_height: float = 30.0) -> float:
        """绘制一个检查表（动作 / 完成 / 备注），返回表格下方的 y。"""
        self.heading(title, top, size=12.0)
        widths = [(self.width - _MARGIN * 2) * ratio for ratio in CONST_CHECKLIST_COLUMN_RATIOS]
        y = top - 18
        x = _MARGIN
        for header, width in zip(CONST_CHECKLIST_HEADERS, widths):
            self.label(header, x + 4, y, size=9.5)
            x += width
        y -= 6
        for number, (action, complete_key, notes_key) in enumerate(rows, start=1):
            y -= row_height
            self.canvas.setStrokeColorRGB(*STYLE_TABLE_BORDER_COLOR)
            self.canvas.rect(_MARGIN, y, sum(widths), row_height, stroke=1, fill=0)
            self.label(action[:70], _MARGIN + 4, y + row_height / 2 - 3, size=8.0)
            self.checkbox(complete_key, f"{title} {number}: complete", _MARGIN + widths[0] + widths[1] / 2 - 6, y + row_height / 2 - 6)
            self.text_field(
                notes_key, f"{title} {number}: notes",
                _MARGIN + widths[0] + widths[1] + 2, y + 2, widths[2] - 4, row_height - 4,
                multiline=True,
            )
        return y - 28

    def next_page(self) -> None:
        self.canvas.showPage()

    def save(self) -> None:
        self.canvas.showPage()
        self.canvas.save()


def _site_page(writer: _TemplateWriter) -> None:
    top = writer.height - 60
    writer.heading("Preventative Maintenance Checklist", top, size=17.0)
    writer.label("Complete every task and note follow-up actions. Return the checklist within 48 hours.", _MARGIN, top - 22)

    y = top - 60
    writer.heading("Site information", y, size=12.0)
    label_width = 170.0
    field_width = writer.width - _MARGIN * 2 - label_width
    for name, label in CONST_SITE_FIELDS:
        y -= 24
        writer.label(label, _MARGIN, y + 6)
        writer.text_field(name, label, _MARGIN + label_width, y, field_width, 18)
    y -= 24
    writer.label("Visit type", _MARGIN, y + 6)
    writer.dropdown("visit_type", "Visit type", VISIT_TYPE_OPTIONS, _MARGIN + label_width, y, 160, 18)

    title, rows = CONST_CHECKLIST_SECTIONS[0]
    writer.checklist(title, rows, y - 40)


def _checklist_page(writer: _TemplateWriter) -> None:
    y = writer.height - 80
    for title, rows in CONST_CHECKLIST_SECTIONS[1:]:
        y = writer.checklist(title, rows, y)
    writer.heading("General notes", y, size=12.0)
    writer.text_field(
        "general_notes", "General notes",
        _MARGIN, y - 128, writer.width - _MARGIN * 2, 120,
        multiline=True,
    )


def _parts_and_signoff_page(writer: _TemplateWriter) -> None:
    y = writer.height - 60
    writer.heading("Parts record", y, size=12.0)
    widths = [(writer.width - _MARGIN * 2) * ratio for ratio in CONST_PARTS_COLUMN_RATIOS]
    y -= 16
    x = _MARGIN
    for header, width in zip(CONST_PARTS_HEADERS, widths):
        writer.label(header[:28], x + 2, y, size=7.5)
        x += width
    y -= 4
    row_height = 18.0
    for number in range(1, CONST_PARTS_ROW_COUNT + 1):
        y -= row_height
        x = _MARGIN
        for prefix, width, header in zip(CONST_PARTS_FIELD_PREFIXES, widths, CONST_PARTS_HEADERS):
            writer.text_field(f"{prefix}{number}", f"{header} (row {number})", x + 1, y + 1, width - 2, row_height - 2)
            x += width

    y = writer.checklist(CONST_SIGN_OFF_CHECKLIST_TITLE, CONST_SIGN_OFF_CHECKLIST_ROWS, y - 30, row_height=26.0)

    column_width = (writer.width - _MARGIN * 2 - 24) / 2
    for column, details in enumerate((CONST_SIGNOFF_ENGINEER_DETAILS, CONST_SIGNOFF_CUSTOMER_DETAILS)):
        x = _MARGIN + column * (column_width + 24)
        row_y = y
        for label, key in details:
            writer.label(label, x, row_y)
            writer.text_field(key, label, x, row_y - 20, column_width, 16)
            row_y -= 32

    box_y = y - 32 * len(CONST_SIGNOFF_ENGINEER_DETAILS) - 70
    for column, (label, key) in enumerate(CONST_SIGNATURE_BOXES):
        x = _MARGIN + column * (column_width + 24)
        writer.label(label, x, box_y + 66)
        writer.text_field(key, label, x, box_y, column_width, 60)


def build_demo_template(path: Path, page_size: Optional[Tuple[float, float]] = None) -> List[Dict[str, str]]:
    """生成演示模板 PDF，返回字段目录（按页面顺序）。

    示例：
        >>> fields = build_demo_template(Path("config/template.pdf"))
        >>> fields[0]
        {'name': 'end_customer_name', 'type': 'text', 'label': 'End customer name'}
    """
    path = Path(path)
    FileHandler.ensure_parent_writable(path)
    writer = _TemplateWriter(path, page_size or CONST_DEFAULT_PAGE_SIZE)
    _site_page(writer)
    writer.next_page()
    _checklist_page(writer)
    writer.next_page()
    _parts_and_signoff_page(writer)
    writer.save()
    logger.info("演示模板已生成：%s（%s 个字段）", path, len(writer.fields))
    return writer.fields


__all__ = [
    "VISIT_TYPE_OPTIONS",
    "build_demo_template",
]
