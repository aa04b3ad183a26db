"""
文件路径：checklist_filler/data_handler.py

模块职责：
- 加载表单字段目录（config/fields.json）与请求键覆盖映射（config/mapping.json），
  生成字段描述符（AcroForm 字段名 -> 请求键 + 类型 + 标签）；
- 读取提交数据（JSON，单条或批量），并提供取值/复选框归一化等基础清洗；
- 汇总零件表 15 行的使用情况，生成可写入审计记录的脱敏请求体。

说明：
- 仅依赖标准库、`components` 与 `variables.py`，不直接依赖 PDF 库。

变量引用说明（来自 variables.py）：
- PATH_FIELDS_JSON, PATH_MAPPING_JSON, CONST_ENCODING, CONST_CHECKBOX_TRUE_VALUES,
  CONST_PARTS_ROW_COUNT, CONST_PARTS_FIELD_PREFIXES, CONST_EMBEDDED_IMAGE_PLACEHOLDER,
  ERR_CONFIG_LOAD_FAILED, ERR_DATA_INVALID
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional

from .components import get_logger, json_loads_strip_bom
from .variables import (
    PATH_FIELDS_JSON,
    PATH_MAPPING_JSON,
    CONST_ENCODING,
    CONST_CHECKBOX_TRUE_VALUES,
    CONST_PARTS_ROW_COUNT,
    CONST_PARTS_FIELD_PREFIXES,
    CONST_EMBEDDED_IMAGE_PLACEHOLDER,
    ERR_CONFIG_LOAD_FAILED,
    ERR_DATA_INVALID,
)


logger = get_logger(__name__)

FIELD_TYPES = ("text", "checkbox", "dropdown", "option-list")


# =============================
# 取值与归一化
# =============================
def to_single_value(value: Any) -> Any:
    """重复提交的字段取最后一个值；空列表返回 None。"""
    if isinstance(value, (list, tuple)):
        return value[-1] if value else None
    return value


def normalize_checkbox_value(value: Any) -> bool:
    """复选框取值是否为真（true/1/on/yes/checked，不区分大小写）。"""
    single = to_single_value(value)
    if single is None:
        return False
    if isinstance(single, bool):
        return single
    return str(single).strip().lower() in CONST_CHECKBOX_TRUE_VALUES


def text_value(body: Mapping[str, Any], key: str) -> str:
    """取单值并转为字符串，缺失返回空串（换行统一为 \\n）。"""
    single = to_single_value(body.get(key)) if body else None
    if single is None:
        return ""
    return str(single).replace("\r\n", "\n")


# =============================
# 字段目录与映射
# =============================
@dataclass(frozen=True)
class FieldDescriptor:
    """一个 AcroForm 字段与请求键的对应关系。"""

    acro_name: str
    request_name: str
    type: str = "text"
    label: str = ""

    def to_dict(self) -> Dict[str, str]:
        return {"acroName": self.acro_name, "requestName": self.request_name, "type": self.type}


def _load_json_config(path: Path, fallback: Any) -> Any:
    if not path.exists():
        logger.warning("找不到配置文件，将使用默认值：%s", path)
        return fallback
    try:
        return json_loads_strip_bom(path.read_text(encoding=CONST_ENCODING))
    except (OSError, ValueError) as exc:
        raise RuntimeError(f"[{ERR_CONFIG_LOAD_FAILED}] 配置加载失败: {path}: {exc}") from exc


def load_fields_config(config_path: Optional[Path] = None) -> Dict[str, Any]:
    """加载字段目录：`{"templatePath": ..., "fields": [{"name", "type", "label"}]}`。"""
    data = _load_json_config(config_path or PATH_FIELDS_JSON, {"fields": []})
    if not isinstance(data, dict):
        raise RuntimeError(f"[{ERR_CONFIG_LOAD_FAILED}] fields.json 需为对象结构")
    if not isinstance(data.get("fields"), list):
        data["fields"] = []
    return data


def load_mapping_overrides(mapping_path: Optional[Path] = None) -> Dict[str, str]:
    """加载 AcroForm 字段名 -> 请求键 的覆盖映射，仅保留字符串键值。"""
    data = _load_json_config(mapping_path or PATH_MAPPING_JSON, {})
    if not isinstance(data, dict):
        raise RuntimeError(f"[{ERR_CONFIG_LOAD_FAILED}] mapping.json 需为对象结构")
    return {str(k): str(v) for k, v in data.items() if v}


def build_field_descriptors(
    fields: Iterable[Mapping[str, Any]],
    overrides: Optional[Mapping[str, str]] = None,
) -> List[FieldDescriptor]:
    """生成字段描述符。

    - 请求键默认与字段名相同，mapping 可覆盖；
    - 请求键冲突时依次追加 `_2`、`_3` …；
    - 类型统一小写，缺省为 text；标签缺省为字段名。
    """
    overrides = overrides or {}
    seen: set[str] = set()
    descriptors: List[FieldDescriptor] = []
    for item in fields:
        if not isinstance(item, Mapping) or not item.get("name"):
            continue
        acro_name = str(item["name"])
        base = str(overrides.get(acro_name) or acro_name)
        request_name = base
        suffix = 1
        while request_name in seen:
            suffix += 1
            request_name = f"{base}_{suffix}"
        seen.add(request_name)
        descriptors.append(
            FieldDescriptor(
                acro_name=acro_name,
                request_name=request_name,
                type=str(item.get("type") or "text").lower(),
                label=str(item.get("label") or acro_name),
            )
        )
    return descriptors


# =============================
# 提交数据
# =============================
def load_submissions_json(path: Path) -> List[Dict[str, Any]]:
    """从 JSON 文件加载提交数据。

    支持三种结构：
    - 对象：单条提交 {"end_customer_name": "...", ...}
    - 数组：[{...}, {...}]
    - 对象：{"records": [ ... ]}
    """
    try:
        data = json_loads_strip_bom(path.read_text(encoding=CONST_ENCODING))
    except (OSError, ValueError) as exc:
        raise RuntimeError(f"[{ERR_DATA_INVALID}] 提交数据读取失败: {path}: {exc}") from exc
    if isinstance(data, dict) and isinstance(data.get("records"), list):
        items = data["records"]
    elif isinstance(data, list):
        items = data
    elif isinstance(data, dict):
        items = [data]
    else:
        raise RuntimeError(f"[{ERR_DATA_INVALID}] 提交数据需为对象、数组或包含 records 数组的对象")
    return [dict(obj) for obj in items if isinstance(obj, dict)]


def parse_key_values(pairs: Iterable[str]) -> Dict[str, str]:
    """解析命令行 `key=value` 形式的字段值（值中可再含 "="）。"""
    result: Dict[str, str] = {}
    for raw in pairs:
        if "=" not in raw:
            raise RuntimeError(f"[{ERR_DATA_INVALID}] 键值对格式应为 key=value: {raw}")
        key, value = raw.split("=", 1)
        if key.strip():
            result[key.strip()] = value
    return result


def sanitize_request_body(body: Mapping[str, Any]) -> Dict[str, Any]:
    """以占位符替换内嵌图片（`data:image/...`），便于写入审计记录。"""

    def _clean(value: Any) -> Any:
        if isinstance(value, str) and value.startswith("data:image/"):
            return CONST_EMBEDDED_IMAGE_PLACEHOLDER
        return value

    cleaned: Dict[str, Any] = {}
    for key, value in (body or {}).items():
        if isinstance(value, list):
            cleaned[str(key)] = [_clean(item) for item in value]
        else:
            cleaned[str(key)] = _clean(value)
    return cleaned


# =============================
# 零件表
# =============================
@dataclass
class PartsRow:
    """零件表的一行（固定 5 个字段）。"""

    number: int
    fields: Dict[str, str] = field(default_factory=dict)

    @property
    def has_data(self) -> bool:
        return any(value.strip() for value in self.fields.values())

    def cells(self) -> List[str]:
        return [self.fields.get(f"{prefix}{self.number}", "") for prefix in CONST_PARTS_FIELD_PREFIXES]


def collect_parts_row_usage(body: Optional[Mapping[str, Any]]) -> List[PartsRow]:
    """读取 15 个零件行槽位，值去除首尾空白。"""
    rows: List[PartsRow] = []
    for number in range(1, CONST_PARTS_ROW_COUNT + 1):
        row = PartsRow(number=number)
        for prefix in CONST_PARTS_FIELD_PREFIXES:
            key = f"{prefix}{number}"
            value = to_single_value(body.get(key)) if body else None
            row.fields[key] = "" if value is None else str(value).strip()
        rows.append(row)
    return rows


def dump_json(data: Any) -> str:
    return json.dumps(data, ensure_ascii=False, indent=2)


__all__ = [
    "FIELD_TYPES",
    "to_single_value",
    "normalize_checkbox_value",
    "text_value",
    "FieldDescriptor",
    "load_fields_config",
    "load_mapping_overrides",
    "build_field_descriptors",
    "load_submissions_json",
    "parse_key_values",
    "sanitize_request_body",
    "PartsRow",
    "collect_parts_row_usage",
    "dump_json",
]
