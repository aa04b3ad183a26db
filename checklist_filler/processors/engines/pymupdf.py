"""
文件路径：checklist_filler/processors/engines/pymupdf.py

说明：PyMuPDF 表单路径：打开模板、按字段名访问控件、写入文本/复选框/下拉选项、
拍平表单（Document.bake）、清空签收页以及导出字段目录。

- WidgetFormField 将 PyMuPDF 控件包装为与库无关的字段能力
  （get_bounding_box / set_display_text / set_rendered_font_size），布局引擎只依赖这三个方法；
- 同名字段可能有多个控件（跨页重复），写入时全部更新。
"""

from __future__ import annotations

from pathlib import Path
from typing import Dict, Iterable, List, Tuple

import fitz  # PyMuPDF

from ...components import FileHandler, Rectangle, get_logger, rect_from_top_left
from ...variables import (
    ERR_FORM_NOT_FOUND,
    ERR_INVALID_PDF,
    STYLE_WHITE,
    STYLE_WIDGET_FONT_NAME,
)


logger = get_logger(__name__)

_TYPE_NAMES: Dict[int, str] = {
    fitz.PDF_WIDGET_TYPE_TEXT: "text",
    fitz.PDF_WIDGET_TYPE_CHECKBOX: "checkbox",
    fitz.PDF_WIDGET_TYPE_COMBOBOX: "dropdown",
    fitz.PDF_WIDGET_TYPE_LISTBOX: "option-list",
    fitz.PDF_WIDGET_TYPE_RADIOBUTTON: "radio-group",
    fitz.PDF_WIDGET_TYPE_SIGNATURE: "signature",
    fitz.PDF_WIDGET_TYPE_BUTTON: "button",
}


def widget_type_name(widget: "fitz.Widget") -> str:
    return _TYPE_NAMES.get(widget.field_type, (widget.field_type_string or "unknown").lower())


class WidgetFormField:
    """单个表单控件的字段能力包装。"""

    def __init__(self, widget: "fitz.Widget", page_index: int, page_height: float) -> None:
        self.widget = widget
        self.page_index = page_index
        self.page_height = page_height

    @property
    def name(self) -> str:
        return self.widget.field_name or ""

    @property
    def type_name(self) -> str:
        return widget_type_name(self.widget)

    def get_bounding_box(self) -> Rectangle:
        r = self.widget.rect
        return rect_from_top_left((r.x0, r.y0, r.x1, r.y1), self.page_height)

    def set_display_text(self, text: str) -> None:
        self.widget.field_value = text

    def set_rendered_font_size(self, size: float) -> None:
        self.widget.text_font = STYLE_WIDGET_FONT_NAME
        self.widget.text_fontsize = float(size)

    def set_multiline(self, enabled: bool) -> None:
        flags = self.widget.field_flags or 0
        if enabled:
            flags |= fitz.PDF_TX_FIELD_IS_MULTILINE
        else:
            flags &= ~fitz.PDF_TX_FIELD_IS_MULTILINE
        self.widget.field_flags = flags

    def commit(self) -> None:
        self.widget.update()


class TemplateForm:
    """一次装配使用的模板文档（PyMuPDF），持有页面引用以保证控件有效。"""

    def __init__(self, template_path: Path) -> None:
        FileHandler.validate_readable_file(template_path)
        try:
            self.doc = fitz.open(str(template_path))
        except (RuntimeError, ValueError) as exc:
            raise RuntimeError(f"[{ERR_INVALID_PDF}] 无法打开模板 PDF: {template_path}: {exc}") from exc
        if not self.doc.is_pdf:
            self.doc.close()
            raise RuntimeError(f"[{ERR_INVALID_PDF}] 模板不是 PDF 文件: {template_path}")
        if not self.doc.is_form_pdf:
            self.doc.close()
            raise RuntimeError(f"[{ERR_FORM_NOT_FOUND}] 模板 PDF 不包含 AcroForm: {template_path}")

        self.path = template_path
        self.pages = [self.doc[i] for i in range(self.doc.page_count)]
        self._fields: Dict[str, List[WidgetFormField]] = {}
        for index, page in enumerate(self.pages):
            for widget in page.widgets():
                wrapped = WidgetFormField(widget, index, float(page.rect.height))
                self._fields.setdefault(wrapped.name, []).append(wrapped)
        logger.info("模板已加载：%s（%s 页，%s 个字段）", template_path, len(self.pages), len(self._fields))

    # -----------------------------
    # 查询
    # -----------------------------
    @property
    def page_count(self) -> int:
        return self.doc.page_count

    def page_size(self, index: int = 0) -> Tuple[float, float]:
        rect = self.doc[index].rect
        return float(rect.width), float(rect.height)

    def field_names(self) -> List[str]:
        return list(self._fields.keys())

    def widgets(self, name: str) -> List[WidgetFormField]:
        found = self._fields.get(name)
        if not found:
            raise KeyError(f"模板中不存在字段: {name}")
        return found

    def primary(self, name: str) -> WidgetFormField:
        return self.widgets(name)[0]

    def _typed(self, name: str, expected: str) -> List[WidgetFormField]:
        items = self.widgets(name)
        actual = items[0].type_name
        if actual != expected:
            raise TypeError(f"字段 {name} 类型为 {actual}，期望 {expected}")
        return items

    # -----------------------------
    # 写入
    # -----------------------------
    def set_text(self, name: str, text: str, font_size: float, multiline: bool) -> None:
        for field in self._typed(name, "text"):
            field.set_multiline(multiline)
            field.set_rendered_font_size(font_size)
            field.set_display_text(text)
            field.commit()

    def clear_text(self, name: str) -> None:
        for field in self._typed(name, "text"):
            field.set_display_text("")
            field.commit()

    def set_checkbox(self, name: str, checked: bool) -> None:
        for field in self._typed(name, "checkbox"):
            field.widget.field_value = field.widget.on_state() if checked else "Off"
            field.commit()

    def select(self, name: str, values: Iterable[str]) -> None:
        """下拉框选择单个值；列表框可多选。"""
        chosen = [str(v) for v in values if str(v)]
        if not chosen:
            return
        items = self.widgets(name)
        kind = items[0].type_name
        if kind not in ("dropdown", "option-list"):
            raise TypeError(f"字段 {name} 类型为 {kind}，不支持选项写入")
        for field in items:
            field.widget.field_value = chosen[-1] if kind == "dropdown" or len(chosen) == 1 else chosen
            field.commit()

    # -----------------------------
    # 拍平与页面处理
    # -----------------------------
    def flatten(self) -> None:
        """将控件外观烘焙进页面内容并移除表单（需要 PyMuPDF >= 1.24.10）。"""
        self.doc.bake(annots=True, widgets=True)
        self._fields.clear()

    def clear_page(self, index: int) -> bool:
        """清空指定页：移除文字与图片后整页覆盖白底。页码越界返回 False。"""
        if index < 0 or index >= self.doc.page_count:
            return False
        page = self.doc[index]
        page.add_redact_annot(page.rect, fill=STYLE_WHITE)
        page.apply_redactions()
        page.draw_rect(page.rect, color=None, fill=STYLE_WHITE, overlay=True)
        return True

    def to_bytes(self) -> bytes:
        return self.doc.tobytes(garbage=3, deflate=True)

    def close(self) -> None:
        self.pages = []
        self._fields.clear()
        self.doc.close()

    def __enter__(self) -> "TemplateForm":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


def extract_form_fields(template_path: Path) -> List[Dict[str, str]]:
    """列出模板中的表单字段（按首次出现顺序去重）：[{"name", "type"}]。"""
    FileHandler.validate_readable_file(template_path)
    fields: List[Dict[str, str]] = []
    seen: set[str] = set()
    with fitz.open(str(template_path)) as doc:
        if not doc.is_form_pdf:
            raise RuntimeError(f"[{ERR_FORM_NOT_FOUND}] 模板 PDF 不包含 AcroForm: {template_path}")
        for page in doc:
            for widget in page.widgets():
                name = widget.field_name or ""
                if not name or name in seen:
                    continue
                seen.add(name)
                fields.append({"name": name, "type": widget_type_name(widget)})
    return fields


__all__ = [
    "widget_type_name",
    "WidgetFormField",
    "TemplateForm",
    "extract_form_fields",
]
