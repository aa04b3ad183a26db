"""
文件路径：checklist_filler/pdf_processor.py

模块职责：
- 单次提交的文档装配：按固定顺序填写模板表单、生成照片页、拍平、生成溢出附录页、
  重绘签收汇总页、组合页面并叠加页码与提交人页脚；
- 生成审计记录（metadata），并负责将 PDF 与同名 JSON 写入输出目录。

装配顺序（ChecklistAssembler.assemble）：
1. 解析请求体：零件行使用情况、现场人员汇总、脱敏请求体；
2. 逐字段填写（复选框 / 文本 / 下拉 / 列表），单个字段失败仅记录警告；
3. 照片逐张单独成页（Pillow 解码，横图使用横向页面）；
4. 拍平表单（PyMuPDF Document.bake）；
5. 溢出文本附录页；
6. 清空模板签收页（第 3 页），汇总页从该页开始绘制；
7. 组合：模板页 → 照片页 → 附录页 → 汇总续页；
8. 每页右下角 `Page i of N`，末页左下角 `Submitted by <name> at <ISO time>`；
9. 汇总审计记录。

组件调用说明：
- components：FileHandler / get_logger / retry_on_exception / ReportLabGlyphMetrics /
  decode_image_data_url / clean_for_filename
- processors：layout / roster / sections / pagination / overflow / engines
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence

from .components import (
    FileHandler,
    GlyphMetrics,
    ReportLabGlyphMetrics,
    clean_for_filename,
    decode_image_data_url,
    get_logger,
    retry_on_exception,
)
from .data_handler import (
    FieldDescriptor,
    build_field_descriptors,
    collect_parts_row_usage,
    dump_json,
    load_fields_config,
    load_mapping_overrides,
    normalize_checkbox_value,
    sanitize_request_body,
    text_value,
    to_single_value,
)
from .processors.engines.pymupdf import TemplateForm, extract_form_fields
from .processors.engines.raster import PhotoUpload, load_signature_image, render_photo_pages
from .processors.engines.reportlab import CompositionPlan, ReportLabSurface, compose_document
from .processors.layout import layout_text_for_field, resolve_text_field_style
from .processors.overflow import OverflowEntry, append_overflow_pages
from .processors.pagination import PaginatedSectionRenderer, SignatureImage
from .processors.roster import collect_employee_entries
from .processors.sections import build_summary_sections
from .variables import (
    PATH_DEFAULT_TEMPLATE_PDF,
    PATH_FIELDS_JSON,
    PATH_MAPPING_JSON,
    CONST_ENCODING,
    CONST_SIGN_OFF_REQUEST_FIELDS,
    CONST_SIGNOFF_CUSTOMER_DETAILS,
    CONST_SIGNOFF_ENGINEER_DETAILS,
    CONST_SIGNOFF_TEMPLATE_PAGE_INDEX,
    CONST_SUBMITTER_CANDIDATE_KEYS,
    CONST_SUBMITTER_FIELD_PATTERN,
    STYLE_FONT_NAME,
    ERR_FIELD_POPULATE_FAILED,
    ERR_PDF_WRITE_FAILED,
)


logger = get_logger(__name__)

_SIGNATURE_NAME_RE = re.compile(r"signature", re.IGNORECASE)
_SUBMITTER_NAME_RE = re.compile(CONST_SUBMITTER_FIELD_PATTERN, re.IGNORECASE)


def _iso_now() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def detect_submitter_name(descriptors: Sequence[FieldDescriptor], body: Mapping[str, Any]) -> str:
    """识别提交人：先找字段名含 submit/technician/engineer/inspector 的字段，再查固定候选键。"""
    for descriptor in descriptors:
        if _SUBMITTER_NAME_RE.search(descriptor.acro_name):
            value = to_single_value(body.get(descriptor.request_name))
            if value:
                return str(value)
    for key in CONST_SUBMITTER_CANDIDATE_KEYS:
        value = to_single_value(body.get(key))
        if value:
            return str(value)
    return "Unknown"


def load_field_descriptors(
    template_path: Optional[Path] = None,
    fields_path: Optional[Path] = None,
    mapping_path: Optional[Path] = None,
) -> List[FieldDescriptor]:
    """加载字段描述符；fields.json 不存在或为空时直接从模板提取字段。"""
    fields_path = fields_path or PATH_FIELDS_JSON
    fields: List[Mapping[str, Any]] = []
    if fields_path.exists():
        fields = load_fields_config(fields_path)["fields"]
    if not fields and template_path is not None:
        logger.info("字段目录为空，改为从模板提取字段：%s", template_path)
        fields = extract_form_fields(template_path)
    return build_field_descriptors(fields, load_mapping_overrides(mapping_path or PATH_MAPPING_JSON))


@dataclass
class AssemblyResult:
    """一次装配的结果：PDF 字节与审计记录。"""

    pdf_bytes: bytes
    metadata: Dict[str, Any] = field(default_factory=dict)
    overflow_entries: List[OverflowEntry] = field(default_factory=list)
    page_count: int = 0


@dataclass
class _FillOutcome:
    overflow: List[OverflowEntry] = field(default_factory=list)
    signatures: List[SignatureImage] = field(default_factory=list)


class ChecklistAssembler:
    """检查表装配器：模板 + 字段描述符 + 字体度量，对每次提交调用 assemble。

    用法：
        assembler = ChecklistAssembler(Path("config/template.pdf"))
        result = assembler.assemble(body, photos)
        pdf_path = assembler.save_outputs(result, body)
    """

    def __init__(
        self,
        template_path: Optional[Path] = None,
        descriptors: Optional[Sequence[FieldDescriptor]] = None,
        metrics: Optional[GlyphMetrics] = None,
        output_dir: Optional[Path] = None,
        prefix: Optional[str] = None,
    ) -> None:
        self.template_path = Path(template_path or PATH_DEFAULT_TEMPLATE_PDF)
        FileHandler.validate_readable_file(self.template_path)
        self.descriptors: List[FieldDescriptor] = (
            list(descriptors) if descriptors is not None else load_field_descriptors(self.template_path)
        )
        self.metrics: GlyphMetrics = metrics or ReportLabGlyphMetrics(STYLE_FONT_NAME)
        self.output_dir = output_dir
        self.prefix = prefix

    # -----------------------------
    # 字段填写
    # -----------------------------
    def _fill_text(self, form: TemplateForm, descriptor: FieldDescriptor, raw: Any, outcome: _FillOutcome) -> None:
        skip_original = descriptor.request_name in CONST_SIGN_OFF_REQUEST_FIELDS
        candidate = raw if isinstance(raw, str) else to_single_value(raw)
        if _SIGNATURE_NAME_RE.search(descriptor.acro_name) and isinstance(candidate, str) and candidate.startswith("data:image/"):
            decoded = decode_image_data_url(candidate)
            image = load_signature_image(decoded.data, descriptor.acro_name) if decoded else None
            if image is not None:
                outcome.signatures.append(SignatureImage(acro_name=descriptor.acro_name, image=image))
            else:
                logger.warning("签名数据无法解析，已跳过：%s", descriptor.acro_name)
            form.clear_text(descriptor.acro_name)
            return

        value = "" if to_single_value(raw) is None else str(to_single_value(raw)).replace("\r\n", "\n")
        policy = resolve_text_field_style(descriptor.acro_name)
        rect = form.primary(descriptor.acro_name).get_bounding_box()
        layout = layout_text_for_field(value, rect, policy, self.metrics)

        if skip_original:
            form.clear_text(descriptor.acro_name)
        else:
            multiline = policy.multiline or layout.displayed_line_count > 1 or "\n" in layout.fitted_text
            form.set_text(descriptor.acro_name, layout.fitted_text, layout.applied_font_size, multiline)

        if layout.has_overflow and layout.overflow_text.strip():
            outcome.overflow.append(
                OverflowEntry(
                    acro_name=descriptor.acro_name,
                    request_name=descriptor.request_name,
                    label=descriptor.label or descriptor.acro_name,
                    text=layout.overflow_text,
                    font_size=layout.applied_font_size,
                )
            )

    def _fill_fields(self, form: TemplateForm, body: Mapping[str, Any]) -> _FillOutcome:
        outcome = _FillOutcome()
        for descriptor in self.descriptors:
            raw = body.get(descriptor.request_name)
            try:
                if descriptor.type == "checkbox":
                    if descriptor.request_name in CONST_SIGN_OFF_REQUEST_FIELDS:
                        continue
                    form.set_checkbox(descriptor.acro_name, normalize_checkbox_value(raw))
                elif descriptor.type == "text":
                    self._fill_text(form, descriptor, raw, outcome)
                elif descriptor.type in ("dropdown", "option-list"):
                    values = raw if isinstance(raw, (list, tuple)) else [to_single_value(raw)]
                    if descriptor.type == "dropdown":
                        values = values[-1:]
                    form.select(descriptor.acro_name, [v for v in values if v is not None])
            except Exception as exc:  # noqa: BLE001
                logger.warning("[%s] 字段填写失败 %s：%s", ERR_FIELD_POPULATE_FAILED, descriptor.acro_name, exc)
        return outcome

    # -----------------------------
    # 装配
    # -----------------------------
    def assemble(
        self,
        body: Mapping[str, Any],
        photos: Sequence[PhotoUpload] = (),
        now: Optional[datetime] = None,
    ) -> AssemblyResult:
        """装配一次提交，返回 AssemblyResult（不写文件）。"""
        body = dict(body or {})
        parts_rows = collect_parts_row_usage(body)
        employees = collect_employee_entries(body, now=now)
        sanitized = sanitize_request_body(body)

        with TemplateForm(self.template_path) as form:
            outcome = self._fill_fields(form, body)
            template_pages = form.page_count
            base_size = form.page_size(0)

            photo_pdf, image_placements = render_photo_pages(photos, base_size)
            form.flatten()

            overflow_surface = ReportLabSurface(base_size)
            overflow_local = append_overflow_pages(overflow_surface, outcome.overflow, base_size, self.metrics)
            overflow_pdf = overflow_surface.finish()

            target: Optional[int] = None
            summary_size = base_size
            if form.clear_page(CONST_SIGNOFF_TEMPLATE_PAGE_INDEX):
                target = CONST_SIGNOFF_TEMPLATE_PAGE_INDEX
                summary_size = form.page_size(target)
            else:
                logger.warning("模板不足 %s 页，汇总页将追加到文档末尾", CONST_SIGNOFF_TEMPLATE_PAGE_INDEX + 1)
            template_pdf = form.to_bytes()

        summary_surface = ReportLabSurface(summary_size)
        renderer = PaginatedSectionRenderer(summary_surface, self.metrics, summary_size)
        renderer.start()
        for section in build_summary_sections(parts_rows, employees, sanitized):
            renderer.render_table(section)
        renderer.render_signoff_details(
            [(label, text_value(sanitized, key)) for label, key in CONST_SIGNOFF_ENGINEER_DETAILS],
            [(label, text_value(sanitized, key)) for label, key in CONST_SIGNOFF_CUSTOMER_DETAILS],
        )
        signature_local = renderer.render_signatures(outcome.signatures)
        summary_pdf = summary_surface.finish()

        photo_count = len(image_placements)
        overflow_count = overflow_surface.page_count
        before_summary = template_pages + photo_count + overflow_count

        def summary_page_number(local: int) -> int:
            if target is not None:
                return target + 1 if local == 0 else before_summary + local
            return before_summary + local + 1

        for placement in image_placements:
            placement["page"] = template_pages + placement["page"] + 1
        overflow_placements = [
            dict(item, page=template_pages + photo_count + item["page"] + 1) for item in overflow_local
        ]
        signature_placements = [dict(item, page=summary_page_number(item["page"])) for item in signature_local]

        submitted_at = _iso_now()
        footer = f"Submitted by {detect_submitter_name(self.descriptors, body)} at {submitted_at}"
        plan = CompositionPlan(
            template_pdf=template_pdf,
            photo_pdf=photo_pdf,
            overflow_pdf=overflow_pdf,
            summary_pdf=summary_pdf,
            summary_target_index=target,
        )
        pdf_bytes = compose_document(plan, self.metrics, footer)

        hidden = [row.number for row in parts_rows if not row.has_data]
        rendered = [row.number for row in parts_rows if row.has_data]
        metadata: Dict[str, Any] = {
            "templatePath": str(self.template_path),
            "createdAt": submitted_at,
            "filename": "",
            "requestBody": sanitized,
            "fieldsUsed": [descriptor.to_dict() for descriptor in self.descriptors],
            "files": [photo.describe() for photo in photos],
            "imagePlacements": image_placements,
            "signaturePlacements": signature_placements,
            "overflowText": [entry.to_metadata() for entry in outcome.overflow],
            "overflowPlacements": overflow_placements,
            "partsRowsUsed": rendered,
            "partsRowsHidden": hidden,
            "partsRowsRendered": rendered,
        }
        metadata.update(employees.to_metadata())

        logger.info(
            "装配完成：共 %s 页（模板 %s，照片 %s，附录 %s，汇总 %s），溢出字段 %s 个",
            len(plan.page_sizes), template_pages, photo_count, overflow_count,
            summary_surface.page_count, len(outcome.overflow),
        )
        return AssemblyResult(
            pdf_bytes=pdf_bytes,
            metadata=metadata,
            overflow_entries=outcome.overflow,
            page_count=len(plan.page_sizes),
        )

    # -----------------------------
    # 输出
    # -----------------------------
    def output_path_for(self, body: Mapping[str, Any], now: Optional[datetime] = None) -> Path:
        customer = clean_for_filename(text_value(body, "end_customer_name").strip())
        return FileHandler.submission_output_path(customer, output_dir=self.output_dir, prefix=self.prefix, now=now)

    def save_outputs(self, result: AssemblyResult, body: Mapping[str, Any], now: Optional[datetime] = None) -> Path:
        """写入 PDF 与同名审计 JSON，返回 PDF 路径。"""
        pdf_path = self.output_path_for(body, now=now)
        result.metadata["filename"] = pdf_path.name
        _write_outputs(pdf_path, result.pdf_bytes, dump_json(result.metadata))
        logger.info("已生成：%s", pdf_path)
        return pdf_path


@retry_on_exception(exceptions=(OSError,))
def _write_outputs(pdf_path: Path, pdf_bytes: bytes, metadata_json: str) -> None:
    FileHandler.ensure_parent_writable(pdf_path)
    try:
        pdf_path.write_bytes(pdf_bytes)
        FileHandler.sidecar_path(pdf_path).write_text(metadata_json, encoding=CONST_ENCODING)
    except OSError as exc:
        raise OSError(f"[{ERR_PDF_WRITE_FAILED}] 输出写入失败: {pdf_path}: {exc}") from exc


__all__ = [
    "AssemblyResult",
    "ChecklistAssembler",
    "detect_submitter_name",
    "load_field_descriptors",
]
