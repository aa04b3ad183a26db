"""
文件路径：checklist_filler/variables.py

模块职责：
- 统一管理全局跨模块变量，确保模块化、无冲突、可追溯，可复用。
- 变量命名规范：{分类前缀}_{描述性名称}（全大写+下划线）。
  - PATH_：路径相关
  - STYLE_：样式相关
  - CONST_：通用常量（含检查表分区、字段样式规则等业务表）
  - ERR_：错误码

使用说明：
- 业务模块严禁定义新的全局变量，必须从本模块导入所需常量。
- 目录路径均使用 pathlib.Path 对象表示，使用时如需字符串请显式 str() 转换。
- 坐标与尺寸单位均为 pt（1/72 英寸），页面坐标原点在左下角。
"""

from pathlib import Path
from typing import Dict, Tuple


# =============================
# 路径（PATH_）
# =============================
# 项目根目录：定位到当前文件（variables.py）的上两级目录
PATH_ROOT: Path = Path(__file__).resolve().parents[1]

# 各功能目录
PATH_CONFIG_DIR: Path = PATH_ROOT / "config"
PATH_TEMP_DIR: Path = PATH_ROOT / "temp"
PATH_OUTPUT_DIR: Path = PATH_ROOT / "output"
PATH_LOGS_DIR: Path = PATH_ROOT / "logs"

# 关键文件路径
PATH_FIELDS_JSON: Path = PATH_CONFIG_DIR / "fields.json"  # 表单字段目录（可由 --extract-fields 生成）
PATH_MAPPING_JSON: Path = PATH_CONFIG_DIR / "mapping.json"  # AcroForm 字段名 -> 请求键 的覆盖映射
PATH_DEFAULT_TEMPLATE_PDF: Path = PATH_CONFIG_DIR / "template.pdf"  # 默认检查表模板
PATH_LOG_FILE: Path = PATH_LOGS_DIR / "app.log"  # 应用运行日志


# =============================
# 样式（STYLE_）
# =============================
STYLE_FONT_NAME: str = "Helvetica"  # 标准 14 字体之一，度量与 PyMuPDF 的 Helv 一致
STYLE_FONT_NAME_BOLD: str = "Helvetica-Bold"
STYLE_WIDGET_FONT_NAME: str = "Helv"  # PyMuPDF 表单控件使用的字体简称

# 文本字段默认样式（未命中任何规则时使用）
STYLE_FIELD_FONT_SIZE_DEFAULT: float = 10.0
STYLE_FIELD_MIN_FONT_SIZE_DEFAULT: float = 7.0
STYLE_LINE_HEIGHT_MULTIPLIER: float = 1.2
STYLE_FIELD_INNER_PADDING: float = 2.0  # 表单字段内边距（四周各 2pt）

# 表格样式（RGB 0~1）
STYLE_TABLE_BORDER_COLOR: Tuple[float, float, float] = (0.1, 0.1, 0.4)
STYLE_TABLE_BORDER_WIDTH: float = 0.8
STYLE_TABLE_HEADER_FILL: Tuple[float, float, float] = (0.88, 0.92, 0.98)
STYLE_TABLE_HEADER_FILL_LIGHT: Tuple[float, float, float] = (0.92, 0.95, 0.99)
STYLE_TABLE_HEADER_TEXT_COLOR: Tuple[float, float, float] = (0.1, 0.1, 0.3)
STYLE_TABLE_CELL_PADDING_X: float = 4.0
STYLE_HEADING_COLOR: Tuple[float, float, float] = (0.08, 0.2, 0.4)
STYLE_TEXT_COLOR: Tuple[float, float, float] = (0.12, 0.12, 0.18)
STYLE_BODY_TEXT_COLOR: Tuple[float, float, float] = (0.15, 0.15, 0.2)
STYLE_PAGE_NUMBER_COLOR: Tuple[float, float, float] = (0.25, 0.25, 0.3)
STYLE_FOOTER_COLOR: Tuple[float, float, float] = (0.2, 0.2, 0.2)
STYLE_WHITE: Tuple[float, float, float] = (1.0, 1.0, 1.0)

# 汇总页排版
STYLE_SUMMARY_MARGIN: float = 56.0
STYLE_PAGE_TITLE_FONT_SIZE: float = 18.0
STYLE_PAGE_TITLE_ADVANCE: float = 26.0
STYLE_SECTION_TITLE_FONT_SIZE: float = 12.0
STYLE_SECTION_TITLE_ADVANCE: float = 18.0
STYLE_TABLE_HEADER_FONT_SIZE: float = 9.0
STYLE_TABLE_HEADER_MIN_FONT_SIZE: float = 8.0
STYLE_CHECKBOX_SIZE: float = 12.0
STYLE_CHECKMARK_THICKNESS: float = 1.2
STYLE_MESSAGE_FONT_SIZE: float = 11.0
STYLE_SUMMARY_LINE_FONT_SIZE: float = 10.0
STYLE_SIGNATURE_BOX_HEIGHT: float = 90.0
STYLE_DETAIL_BOX_HEIGHT: float = 28.0
STYLE_COLUMN_GAP: float = 16.0

# 附录页（超长文本）排版
STYLE_OVERFLOW_MARGIN: float = 56.0
STYLE_OVERFLOW_TITLE_FONT_SIZE: float = 14.0
STYLE_OVERFLOW_LABEL_FONT_SIZE: float = 11.0

# 照片页与页码
STYLE_PHOTO_MARGIN: float = 36.0
STYLE_PHOTO_CAPTION_HEIGHT: float = 28.0
STYLE_PHOTO_CAPTION_FONT_SIZE: float = 12.0
STYLE_PAGE_NUMBER_FONT_SIZE: float = 10.0
STYLE_PAGE_NUMBER_MARGIN: float = 36.0


# =============================
# 常量（CONST_）
# =============================
CONST_ENCODING: str = "utf-8"  # 文件读写默认编码
CONST_MAX_RETRY: int = 2  # 通用重试次数，用于 IO 等可重试操作
CONST_DEFAULT_PAGE_SIZE: Tuple[float, float] = (595.28, 841.89)  # A4

# 收缩适配：每次缩小的字号步长（pt）与列宽容差
CONST_SHRINK_STEP: float = 0.5
CONST_WIDTH_FIT_TOLERANCE: float = 0.1

# 附录页装箱：每条记录额外占用的行数（标签行 + 间距）
CONST_OVERFLOW_LINE_COST_PADDING: int = 2

# 模板中被汇总页替换的签收页（0 基）
CONST_SIGNOFF_TEMPLATE_PAGE_INDEX: int = 2

# 零件表：固定 15 行，每行 5 个字段（请求键 = 前缀 + 行号）
CONST_PARTS_ROW_COUNT: int = 15
CONST_PARTS_FIELD_PREFIXES: Tuple[str, ...] = (
    "parts_removed_desc_",
    "parts_removed_part_",
    "parts_removed_serial_",
    "parts_used_part_",
    "parts_used_serial_",
)
CONST_PARTS_HEADERS: Tuple[str, ...] = (
    "Part removed (description)",
    "Part number",
    "Serial number (removed)",
    "Part used in display",
    "Serial number (used)",
)

# 现场人员：最多 20 人
CONST_EMPLOYEE_MAX_COUNT: int = 20
CONST_EMPLOYEE_DEFAULT_STAY_MINUTES: int = 60  # 缺少离场时间时的默认停留
CONST_EMPLOYEE_MIN_STAY_MINUTES: int = 15  # 离场不晚于到场时的自动纠正
# 后续行在未手动编辑时沿用首行的到场/离场时间（策略开关）
CONST_EMPLOYEE_SYNC_PRIMARY_SCHEDULE: bool = False

# 休息时长分档（含上界，单位分钟）
CONST_BREAK_TIER_NONE_MAX_MINUTES: int = 6 * 60
CONST_BREAK_TIER_MIN30_MAX_MINUTES: int = 9 * 60

# 复选框真值
CONST_CHECKBOX_TRUE_VALUES: Tuple[str, ...] = ("true", "1", "on", "yes", "checked")

# 文本字段样式规则：(正则, 覆盖项)，自上而下匹配，首个命中生效
CONST_TEXT_FIELD_STYLE_RULES: Tuple[Tuple[str, Dict[str, object]], ...] = (
    (r"(?:^|_)notes(?:_|$)", {"multiline": True, "min_font_size": 6.0}),
    (r"general_notes", {"multiline": True, "min_font_size": 6.0}),
    (r"(?:^|_)desc(?:_|$)", {"multiline": True, "min_font_size": 6.0}),
)

# 这些字段在模板中不直接填写，由汇总页重新绘制
CONST_SIGN_OFF_REQUEST_FIELDS: Tuple[str, ...] = (
    "signoff_complete_1",
    "signoff_notes_1",
    "signoff_complete_2",
    "signoff_notes_2",
    "engineer_company",
    "engineer_datetime",
    "engineer_name",
    "customer_company",
    "customer_datetime",
    "customer_name",
    "engineer_signature",
    "customer_signature",
)

# 检查表分区：(标题, ((动作说明, 复选框键, 备注键), ...))
CONST_CHECKLIST_SECTIONS: Tuple[Tuple[str, Tuple[Tuple[str, str, str], ...]], ...] = (
    (
        "LED display checks",
        (
            ("Check for any visible issues. Resolve as necessary.", "led_complete_1", "led_notes_1"),
            ("Apply test pattern on full red, green, blue and white. Identify faults.", "led_complete_2", "led_notes_2"),
            ("Replace any pixel cards with dead or non-functioning pixels.", "led_complete_3", "led_notes_3"),
            ("Check power and data cables between cabinets for secure connections.", "led_complete_4", "led_notes_4"),
            ("Inspect for damage and replace any damaged or broken cables.", "led_complete_5", "led_notes_5"),
            ("Check monitoring feature for issues. Resolve as necessary.", "led_complete_6", "led_notes_6"),
            ("Check brightness levels in configurator and note levels down.", "led_complete_7", "led_notes_7"),
        ),
    ),
    (
        "Control equipment",
        (
            ("Check controllers are connected and cables seated correctly.", "control_complete_1", "control_notes_1"),
            ("Check controller redundancy; resolve issues where necessary.", "control_complete_2", "control_notes_2"),
            ("Check brightness levels on controllers and note levels.", "control_complete_3", "control_notes_3"),
            ("Check fans on controllers are working.", "control_complete_4", "control_notes_4"),
            ("Carefully wipe clean controllers.", "control_complete_5", "control_notes_5"),
        ),
    ),
    (
        "Spare parts",
        (
            ("Replace pixel cards in display with spare cards (ensure zero failures).", "spares_complete_1", "spares_notes_1"),
            ("Complete inventory log of spare parts.", "spares_complete_2", "spares_notes_2"),
        ),
    ),
)
CONST_SIGN_OFF_CHECKLIST_TITLE: str = "Sign-off checklist"
CONST_SIGN_OFF_CHECKLIST_ROWS: Tuple[Tuple[str, str, str], ...] = (
    ("LED equipment maintained and preventative work completed.", "signoff_complete_1", "signoff_notes_1"),
    ("Outstanding actions noted for customer follow-up.", "signoff_complete_2", "signoff_notes_2"),
)

# 签收信息：左右两列 (标签, 请求键)
CONST_SIGNOFF_ENGINEER_DETAILS: Tuple[Tuple[str, str], ...] = (
    ("On-site engineer company", "engineer_company"),
    ("Engineer date & time", "engineer_datetime"),
    ("Engineer name", "engineer_name"),
)
CONST_SIGNOFF_CUSTOMER_DETAILS: Tuple[Tuple[str, str], ...] = (
    ("Customer company", "customer_company"),
    ("Customer date & time", "customer_datetime"),
    ("Customer name", "customer_name"),
)
# 签名框：(标签, AcroForm 字段名)
CONST_SIGNATURE_BOXES: Tuple[Tuple[str, str], ...] = (
    ("Engineer signature", "engineer_signature"),
    ("Customer signature", "customer_signature"),
)

# 表格列宽比例
CONST_PARTS_COLUMN_RATIOS: Tuple[float, ...] = (0.32, 0.18, 0.18, 0.18, 0.14)
CONST_EMPLOYEE_COLUMN_RATIOS: Tuple[float, ...] = (0.05, 0.22, 0.17, 0.16, 0.16, 0.24)
CONST_EMPLOYEE_HEADERS: Tuple[str, ...] = ("#", "Employee", "Role", "Arrival", "Departure", "Duration / break")
CONST_CHECKLIST_COLUMN_RATIOS: Tuple[float, ...] = (0.55, 0.12, 0.33)
CONST_CHECKLIST_HEADERS: Tuple[str, ...] = ("Action", "Complete", "Notes")
CONST_NO_PARTS_MESSAGE: str = "No spare parts were recorded for this visit."
CONST_NO_EMPLOYEES_MESSAGE: str = "No employees were recorded for this visit."

# 站点信息字段（模板首页）
CONST_SITE_FIELDS: Tuple[Tuple[str, str], ...] = (
    ("end_customer_name", "End customer name"),
    ("site_location", "Site location"),
    ("led_display_model", "LED display model"),
    ("batch_number", "Batch number"),
    ("date_of_service", "Date of service"),
    ("service_company_name", "Service company name"),
)

# 汇总页标题与续页后缀
CONST_SUMMARY_TITLE: str = "Maintenance Summary"
CONST_SIGNOFF_DETAILS_TITLE: str = "Sign-off details"
CONST_SIGNATURES_TITLE: str = "Signatures"
CONST_PARTS_SECTION_TITLE: str = "Parts record"
CONST_EMPLOYEES_SECTION_TITLE: str = "On-site team"
CONST_OVERFLOW_TITLE: str = "Extended Text"
CONST_CONTINUATION_SUFFIX: str = " (cont.)"

# 照片上传字段与说明文字
CONST_PHOTO_FIELD_LABELS: Tuple[Tuple[str, str], ...] = (
    ("photo_before", "Before photo"),
    ("photo_after", "After photo"),
    ("photos", "Supporting photo"),
    ("photos[]", "Supporting photo"),
)

# 提交人识别：字段名模式与候选键
CONST_SUBMITTER_FIELD_PATTERN: str = r"submit|technician|engineer|inspector"
CONST_SUBMITTER_CANDIDATE_KEYS: Tuple[str, ...] = (
    "submitter_name",
    "Submitter name",
    "technician_name",
    "Technician name",
    "inspector_name",
    "Inspector name",
    "name",
)

# 输出命名
CONST_OUTPUT_PREFIX_DEFAULT: str = "filled"
CONST_OUTPUT_CUSTOMER_MAX_LEN: int = 40
CONST_PREVIEW_MAX_CHARS: int = 200
CONST_EMBEDDED_IMAGE_PLACEHOLDER: str = "[embedded-image]"

# 日志格式（供 logging.basicConfig 使用）
CONST_LOG_FORMAT: str = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
CONST_LOG_DATEFMT: str = "%Y-%m-%d %H:%M:%S"


# =============================
# 错误码（ERR_）
# =============================
# 1xxx：文件/路径相关
ERR_FILE_NOT_FOUND: int = 1001  # 输入文件不存在
ERR_INVALID_PDF: int = 1002  # 非法或损坏的 PDF 文件
ERR_PATH_NOT_WRITABLE: int = 1003  # 目标路径不可写

# 2xxx：表单/版面相关
ERR_FORM_NOT_FOUND: int = 2001  # 模板不含 AcroForm
ERR_FIELD_POPULATE_FAILED: int = 2002  # 单个字段填写失败（不中断）
ERR_IMAGE_DECODE_FAILED: int = 2003  # 图片解码失败（不中断）

# 3xxx：合并/写入相关
ERR_PDF_MERGE_FAILED: int = 3001  # PDF 合并失败
ERR_PDF_WRITE_FAILED: int = 3002  # PDF 写入失败

# 4xxx：配置/数据相关
ERR_CONFIG_LOAD_FAILED: int = 4001  # 配置加载失败
ERR_DATA_INVALID: int = 4002  # 输入数据非法


# =============================
# 导出声明
# =============================
__all__ = [
    "PATH_ROOT",
    "PATH_CONFIG_DIR",
    "PATH_TEMP_DIR",
    "PATH_OUTPUT_DIR",
    "PATH_LOGS_DIR",
    "PATH_FIELDS_JSON",
    "PATH_MAPPING_JSON",
    "PATH_DEFAULT_TEMPLATE_PDF",
    "PATH_LOG_FILE",
    "STYLE_FONT_NAME",
    "STYLE_FONT_NAME_BOLD",
    "STYLE_WIDGET_FONT_NAME",
    "STYLE_FIELD_FONT_SIZE_DEFAULT",
    "STYLE_FIELD_MIN_FONT_SIZE_DEFAULT",
    "STYLE_LINE_HEIGHT_MULTIPLIER",
    "STYLE_FIELD_INNER_PADDING",
    "STYLE_TABLE_BORDER_COLOR",
    "STYLE_TABLE_BORDER_WIDTH",
    "STYLE_TABLE_HEADER_FILL",
    "STYLE_TABLE_HEADER_FILL_LIGHT",
    "STYLE_TABLE_HEADER_TEXT_COLOR",
    "STYLE_TABLE_CELL_PADDING_X",
    "STYLE_HEADING_COLOR",
    "STYLE_TEXT_COLOR",
    "STYLE_BODY_TEXT_COLOR",
    "STYLE_PAGE_NUMBER_COLOR",
    "STYLE_FOOTER_COLOR",
    "STYLE_WHITE",
    "STYLE_SUMMARY_MARGIN",
    "STYLE_PAGE_TITLE_FONT_SIZE",
    "STYLE_PAGE_TITLE_ADVANCE",
    "STYLE_SECTION_TITLE_FONT_SIZE",
    "STYLE_SECTION_TITLE_ADVANCE",
    "STYLE_TABLE_HEADER_FONT_SIZE",
    "STYLE_TABLE_HEADER_MIN_FONT_SIZE",
    "STYLE_CHECKBOX_SIZE",
    "STYLE_CHECKMARK_THICKNESS",
    "STYLE_MESSAGE_FONT_SIZE",
    "STYLE_SUMMARY_LINE_FONT_SIZE",
    "STYLE_SIGNATURE_BOX_HEIGHT",
    "STYLE_DETAIL_BOX_HEIGHT",
    "STYLE_COLUMN_GAP",
    "STYLE_OVERFLOW_MARGIN",
    "STYLE_OVERFLOW_TITLE_FONT_SIZE",
    "STYLE_OVERFLOW_LABEL_FONT_SIZE",
    "STYLE_PHOTO_MARGIN",
    "STYLE_PHOTO_CAPTION_HEIGHT",
    "STYLE_PHOTO_CAPTION_FONT_SIZE",
    "STYLE_PAGE_NUMBER_FONT_SIZE",
    "STYLE_PAGE_NUMBER_MARGIN",
    "CONST_ENCODING",
    "CONST_MAX_RETRY",
    "CONST_DEFAULT_PAGE_SIZE",
    "CONST_SHRINK_STEP",
    "CONST_WIDTH_FIT_TOLERANCE",
    "CONST_OVERFLOW_LINE_COST_PADDING",
    "CONST_SIGNOFF_TEMPLATE_PAGE_INDEX",
    "CONST_PARTS_ROW_COUNT",
    "CONST_PARTS_FIELD_PREFIXES",
    "CONST_PARTS_HEADERS",
    "CONST_EMPLOYEE_MAX_COUNT",
    "CONST_EMPLOYEE_DEFAULT_STAY_MINUTES",
    "CONST_EMPLOYEE_MIN_STAY_MINUTES",
    "CONST_EMPLOYEE_SYNC_PRIMARY_SCHEDULE",
    "CONST_BREAK_TIER_NONE_MAX_MINUTES",
    "CONST_BREAK_TIER_MIN30_MAX_MINUTES",
    "CONST_CHECKBOX_TRUE_VALUES",
    "CONST_TEXT_FIELD_STYLE_RULES",
    "CONST_SIGN_OFF_REQUEST_FIELDS",
    "CONST_CHECKLIST_SECTIONS",
    "CONST_SIGN_OFF_CHECKLIST_TITLE",
    "CONST_SIGN_OFF_CHECKLIST_ROWS",
    "CONST_SIGNOFF_ENGINEER_DETAILS",
    "CONST_SIGNOFF_CUSTOMER_DETAILS",
    "CONST_SIGNATURE_BOXES",
    "CONST_PARTS_COLUMN_RATIOS",
    "CONST_EMPLOYEE_COLUMN_RATIOS",
    "CONST_EMPLOYEE_HEADERS",
    "CONST_CHECKLIST_COLUMN_RATIOS",
    "CONST_CHECKLIST_HEADERS",
    "CONST_NO_PARTS_MESSAGE",
    "CONST_NO_EMPLOYEES_MESSAGE",
    "CONST_SITE_FIELDS",
    "CONST_SUMMARY_TITLE",
    "CONST_SIGNOFF_DETAILS_TITLE",
    "CONST_SIGNATURES_TITLE",
    "CONST_PARTS_SECTION_TITLE",
    "CONST_EMPLOYEES_SECTION_TITLE",
    "CONST_OVERFLOW_TITLE",
    "CONST_CONTINUATION_SUFFIX",
    "CONST_PHOTO_FIELD_LABELS",
    "CONST_SUBMITTER_FIELD_PATTERN",
    "CONST_SUBMITTER_CANDIDATE_KEYS",
    "CONST_OUTPUT_PREFIX_DEFAULT",
    "CONST_OUTPUT_CUSTOMER_MAX_LEN",
    "CONST_PREVIEW_MAX_CHARS",
    "CONST_EMBEDDED_IMAGE_PLACEHOLDER",
    "CONST_LOG_FORMAT",
    "CONST_LOG_DATEFMT",
    "ERR_FILE_NOT_FOUND",
    "ERR_INVALID_PDF",
    "ERR_PATH_NOT_WRITABLE",
    "ERR_FORM_NOT_FOUND",
    "ERR_FIELD_POPULATE_FAILED",
    "ERR_IMAGE_DECODE_FAILED",
    "ERR_PDF_MERGE_FAILED",
    "ERR_PDF_WRITE_FAILED",
    "ERR_CONFIG_LOAD_FAILED",
    "ERR_DATA_INVALID",
]
