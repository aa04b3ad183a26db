"""
文件路径：main.py

命令行入口：
- 功能：读取提交数据（JSON 或 --kv），填写检查表模板，生成 PDF 与同名审计 JSON 到 output 目录。
- 依赖：`checklist_filler/pdf_processor.py`、`checklist_filler/data_handler.py`、
  `checklist_filler/template_builder.py`、`checklist_filler/components`、`checklist_filler/variables.py`。

快速使用示例：
    # 1) 生成演示模板（config/template.pdf）与字段目录（config/fields.json）
    python main.py --make-template

    # 2) 使用提交数据 JSON 填写（单条对象、数组或 {"records": [...]}）
    python main.py --data-json submission.json --photo photo_before=before.jpg --photo after.png

    # 3) 直接在命令行键入键值对（可多次传入 --kv）
    python main.py --kv "end_customer_name=ACME Arena" --kv "led_complete_1=on"

    # 4) 从已有模板导出字段目录
    python main.py --template my_template.pdf --extract-fields

运行说明：
- 替换模板：使用 --template 指定 AcroForm 模板路径；
- 字段目录：默认读取 config/fields.json，不存在时直接从模板提取；请求键可在 config/mapping.json 中覆盖；
- 照片：--photo 可写成 `字段名=路径`（photo_before / photo_after / photos）或仅路径（归入 photos）。
"""

from __future__ import annotations

import argparse
from pathlib import Path
from typing import Any, Dict, List, Optional

from checklist_filler.components import ErrorHandler, FileHandler, get_logger
from checklist_filler.data_handler import (
    dump_json,
    load_submissions_json,
    parse_key_values,
)
from checklist_filler.pdf_processor import ChecklistAssembler, load_field_descriptors
from checklist_filler.processors.engines.pymupdf import extract_form_fields
from checklist_filler.processors.engines.raster import PhotoUpload
from checklist_filler.template_builder import build_demo_template
from checklist_filler.variables import (
    PATH_DEFAULT_TEMPLATE_PDF,
    PATH_FIELDS_JSON,
    PATH_MAPPING_JSON,
    CONST_ENCODING,
    ERR_DATA_INVALID,
)


logger = get_logger(__name__)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="维护检查表 PDF 填写工具（表单填写 + 汇总分页 + 溢出附录）")
    parser.add_argument("--template", type=Path, default=PATH_DEFAULT_TEMPLATE_PDF, help="AcroForm 模板 PDF 路径")
    parser.add_argument("--data-json", dest="data_json", type=Path, default=None, help="提交数据 JSON：对象、数组或包含 records 数组的对象")
    parser.add_argument("--kv", action="append", default=None, help="直接在命令行提供字段值，如 --kv 'site_location=Hall 3'，可重复")
    parser.add_argument("--photo", action="append", default=None, help="照片文件：'字段名=路径' 或 '路径'，可重复")
    parser.add_argument("--fields", type=Path, default=PATH_FIELDS_JSON, help="字段目录 JSON（默认 config/fields.json）")
    parser.add_argument("--mapping", type=Path, default=PATH_MAPPING_JSON, help="请求键覆盖映射 JSON（默认 config/mapping.json）")
    parser.add_argument("--output-dir", dest="output_dir", type=Path, default=None, help="输出目录（默认 output/）")
    parser.add_argument("--prefix", type=str, default=None, help="输出文件名前缀（默认 filled）")
    parser.add_argument("--make-template", dest="make_template", action="store_true", help="生成演示模板与字段目录后退出")
    parser.add_argument("--extract-fields", dest="extract_fields", action="store_true", help="从模板导出字段目录到 --fields 指定的路径后退出")
    return parser.parse_args(argv)


def parse_photo_args(items: Optional[List[str]]) -> List[PhotoUpload]:
    """解析 --photo 参数；`字段名=路径` 形式指定来源字段，否则归入 photos。"""
    photos: List[PhotoUpload] = []
    for item in items or []:
        field_name, _, raw_path = item.partition("=") if "=" in item else ("photos", "", item)
        path = Path(raw_path)
        FileHandler.validate_readable_file(path)
        photos.append(PhotoUpload.from_path(path, field_name=field_name or "photos"))
    return photos


def build_records_from_args(args: argparse.Namespace) -> List[Dict[str, Any]]:
    records: List[Dict[str, Any]] = []
    if args.data_json:
        FileHandler.validate_readable_file(args.data_json)
        records = load_submissions_json(args.data_json)
    extra = parse_key_values(args.kv or [])
    if extra:
        if records:
            for record in records:
                record.update(extra)
        else:
            records = [dict(extra)]
    return records


def write_fields_catalog(fields: List[Dict[str, str]], target: Path, template: Path) -> None:
    FileHandler.ensure_parent_writable(target)
    target.write_text(dump_json({"templatePath": str(template), "fields": fields}), encoding=CONST_ENCODING)
    logger.info("字段目录已写入：%s（%s 个字段）", target, len(fields))


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    FileHandler.ensure_project_dirs()

    if args.make_template:
        fields = build_demo_template(args.template)
        write_fields_catalog(fields, args.fields, args.template)
        print(f"演示模板已生成：{args.template}")
        return 0

    if args.extract_fields:
        fields = extract_form_fields(args.template)
        write_fields_catalog(fields, args.fields, args.template)
        print(f"字段目录已导出：{args.fields}（{len(fields)} 个字段）")
        return 0

    records = build_records_from_args(args)
    if not records:
        raise SystemExit(ErrorHandler.format_error(ERR_DATA_INVALID, "未提供提交数据：请使用 --data-json 或 --kv"))

    descriptors = load_field_descriptors(args.template, args.fields, args.mapping)

    photos = parse_photo_args(args.photo)
    assembler = ChecklistAssembler(
        args.template,
        descriptors=descriptors,
        output_dir=args.output_dir,
        prefix=args.prefix,
    )

    outputs: List[Path] = []
    for index, record in enumerate(records, start=1):
        result = assembler.assemble(record, photos)
        pdf_path = assembler.save_outputs(result, record)
        outputs.append(pdf_path)
        if result.overflow_entries:
            print(f"记录 {index}: {len(result.overflow_entries)} 个字段文本溢出，已写入附录页")

    print("填写完成，共生成 {} 个文件：".format(len(outputs)))
    for path in outputs:
        print(f" - {path}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
