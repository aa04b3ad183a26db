"""
文件路径：checklist_filler/components/io.py

说明：与输入/输出相关的小工具：data URL 解码、文件名清洗、去 BOM 的 JSON 解析。
"""

from __future__ import annotations

import base64
import binascii
import json
import re
from dataclasses import dataclass
from typing import Any, Optional

from ..variables import CONST_OUTPUT_CUSTOMER_MAX_LEN


_DATA_URL_RE = re.compile(r"^data:(image/(?:png|jpe?g));base64,(.+)$", re.IGNORECASE | re.DOTALL)
_UNSAFE_FILENAME_RE = re.compile(r"[^a-z0-9\-_.]+", re.IGNORECASE)


@dataclass(frozen=True)
class DecodedImage:
    mime_type: str
    data: bytes


def decode_image_data_url(value: Any) -> Optional[DecodedImage]:
    """解析 `data:image/png|jpeg;base64,...`，格式不符或解码失败返回 None。"""
    if not isinstance(value, str):
        return None
    match = _DATA_URL_RE.match(value.strip())
    if not match:
        return None
    mime = match.group(1).lower()
    if mime == "image/jpg":
        mime = "image/jpeg"
    try:
        payload = base64.b64decode(match.group(2), validate=False)
    except (binascii.Error, ValueError):
        return None
    if not payload:
        return None
    return DecodedImage(mime_type=mime, data=payload)


def sanitize_filename(name: Optional[str], max_len: int = 80) -> str:
    """将上传文件名清洗为安全字符集，空结果返回 "file"。"""
    cleaned = _UNSAFE_FILENAME_RE.sub("_", str(name or ""))
    cleaned = re.sub(r"_+", "_", cleaned)[:max_len]
    return cleaned or "file"


def clean_for_filename(value: Optional[str], max_len: int = CONST_OUTPUT_CUSTOMER_MAX_LEN) -> str:
    """输出文件名中的客户名片段：非法字符替换为 "_"，去掉首尾下划线并截断。"""
    cleaned = _UNSAFE_FILENAME_RE.sub("_", str(value or ""))
    cleaned = re.sub(r"_+", "_", cleaned).strip("_")
    return cleaned[:max_len]


def json_loads_strip_bom(content: str) -> Any:
    """解析 JSON 字符串，自动去除 UTF-8 BOM。"""
    if content.startswith("\ufeff"):
        content = content.lstrip("\ufeff")
    return json.loads(content)


__all__ = [
    "DecodedImage",
    "decode_image_data_url",
    "sanitize_filename",
    "clean_for_filename",
    "json_loads_strip_bom",
]
