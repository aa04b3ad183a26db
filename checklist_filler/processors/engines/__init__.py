"""
文件路径：checklist_filler/processors/engines/__init__.py

说明：三类 PDF 引擎：`pymupdf.py`（模板表单）、`reportlab.py`（绘制画布与合并）、`raster.py`（照片与签名图片）。
"""

from typing import List

__all__: List[str] = []
