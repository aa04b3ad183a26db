"""
文件路径：checklist_filler/processors/__init__.py

说明：
- 排版与分页处理包，按职责拆分：
  - layout.py（字段收缩排版 / 单元格换行排版 / 样式规则）
  - roster.py（现场人员时长与休息分档）
  - sections.py（汇总页区块描述符）
  - pagination.py（分页绘制与续页表头）
  - overflow.py（溢出文本附录页装箱）
  - engines/{pymupdf.py, reportlab.py, raster.py}（表单填写、绘制与合并、图片页）
"""

from typing import List

__all__: List[str] = []
