"""
文件路径：checklist_filler/processors/engines/raster.py

说明：Pillow 解码照片与签名图片，并在 ReportLab 画布上逐张生成照片页。

- 横向图片（宽 >= 高）使用横向页面；
- 图片等比缩放填满可用区域，上方留出说明文字区域；
- 解码失败的图片记录警告后跳过，不中断装配。
"""

from __future__ import annotations

from dataclasses import dataclass
from io import BytesIO
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple

from PIL import Image, ImageOps, UnidentifiedImageError

from ...components import fit_within, get_logger, sanitize_filename
from ...variables import (
    CONST_PHOTO_FIELD_LABELS,
    ERR_IMAGE_DECODE_FAILED,
    STYLE_PHOTO_CAPTION_FONT_SIZE,
    STYLE_PHOTO_CAPTION_HEIGHT,
    STYLE_PHOTO_MARGIN,
    STYLE_TEXT_COLOR,
)
from .reportlab import ReportLabSurface


logger = get_logger(__name__)

_MIME_BY_FORMAT = {"PNG": "image/png", "JPEG": "image/jpeg", "MPO": "image/jpeg"}


@dataclass
class PhotoUpload:
    """一张上传照片：来源字段、原始文件名与图片字节。"""

    field_name: str
    filename: str
    data: bytes
    mime_type: str = ""

    @classmethod
    def from_path(cls, path: Path, field_name: str = "photos") -> "PhotoUpload":
        return cls(field_name=field_name, filename=path.name, data=Path(path).read_bytes())

    def describe(self) -> Dict[str, Any]:
        return {
            "originalname": sanitize_filename(self.filename),
            "mimetype": self.mime_type,
            "size": len(self.data),
            "fieldname": self.field_name,
        }


def decode_image(data: bytes) -> Image.Image:
    """解码图片字节为 RGB/RGBA 的 Pillow Image，按 EXIF 方向校正。

    异常：
        ValueError: 不是可识别的 PNG/JPEG 图片。
    """
    try:
        with Image.open(BytesIO(data)) as opened:
            image = ImageOps.exif_transpose(opened)
            image.load()
    except (UnidentifiedImageError, OSError) as exc:
        raise ValueError(f"[{ERR_IMAGE_DECODE_FAILED}] 图片解码失败: {exc}") from exc
    if image.mode not in ("RGB", "RGBA"):
        image = image.convert("RGBA" if "A" in image.getbands() else "RGB")
    return image


def sniff_mime_type(data: bytes) -> str:
    try:
        with Image.open(BytesIO(data)) as opened:
            return _MIME_BY_FORMAT.get(opened.format or "", "")
    except (UnidentifiedImageError, OSError):
        return ""


def _caption_for(field_name: str, counters: Dict[str, int]) -> Tuple[str, int]:
    labels = dict(CONST_PHOTO_FIELD_LABELS)
    base = labels.get(field_name, "Photo")
    counters[field_name] = counters.get(field_name, 0) + 1
    index = counters[field_name]
    return (f"{base} #{index}" if index > 1 else base), index


def render_photo_pages(
    photos: Sequence[PhotoUpload],
    base_size: Tuple[float, float],
) -> Tuple[bytes, List[Dict[str, Any]]]:
    """每张照片单独一页，返回 (PDF 字节, 放置记录)；放置记录中的 page 为 0 基页序号。"""
    surface = ReportLabSurface(base_size)
    placements: List[Dict[str, Any]] = []
    counters: Dict[str, int] = {}
    margin = STYLE_PHOTO_MARGIN
    caption_height = STYLE_PHOTO_CAPTION_HEIGHT

    for photo in photos:
        try:
            image = decode_image(photo.data)
        except ValueError as exc:
            logger.warning("照片已跳过（%s）：%s", photo.filename, exc)
            continue
        photo.mime_type = photo.mime_type or sniff_mime_type(photo.data)
        caption, index = _caption_for(photo.field_name or "photos", counters)

        width, height = image.size
        landscape = width >= height
        page_w, page_h = (base_size[1], base_size[0]) if landscape else base_size
        page_index = surface.new_page((page_w, page_h))

        avail_w = page_w - margin * 2
        avail_h = page_h - margin * 2 - caption_height
        draw_w, draw_h = fit_within(width, height, avail_w, avail_h, allow_upscale=True)
        x = (page_w - draw_w) / 2
        y = margin + (avail_h - draw_h) / 2
        surface.draw_image(image, x, y, draw_w, draw_h)
        surface.draw_text(
            caption, margin, page_h - margin - caption_height + 10,
            STYLE_PHOTO_CAPTION_FONT_SIZE, STYLE_TEXT_COLOR, bold=True,
        )
        placements.append(
            {
                "originalName": photo.filename,
                "fieldName": photo.field_name,
                "label": caption,
                "index": index,
                "page": page_index,
            }
        )
    return surface.finish(), placements


def load_signature_image(data: bytes, acro_name: str) -> Optional[Image.Image]:
    """解码签名图片；失败时记录警告并返回 None。"""
    try:
        return decode_image(data)
    except ValueError as exc:
        logger.warning("签名图片无法解码，已跳过 %s：%s", acro_name, exc)
        return None


__all__ = [
    "PhotoUpload",
    "decode_image",
    "sniff_mime_type",
    "render_photo_pages",
    "load_signature_image",
]
