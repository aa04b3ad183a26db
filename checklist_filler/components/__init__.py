"""
文件路径：checklist_filler/components/__init__.py

说明：
- 通用组件包入口：日志、文件路径、重试与错误格式化；
- 文本换行、字体度量、坐标、IO 小工具分别位于 text.py / fonts.py / coords.py / io.py，
  此处聚合导出，业务模块统一 `from .components import ...`。
"""

from __future__ import annotations

import logging
import time
from datetime import datetime
from pathlib import Path
from typing import Callable, Iterable, Optional, Type

from ..variables import (
    PATH_LOGS_DIR,
    PATH_OUTPUT_DIR,
    PATH_TEMP_DIR,
    PATH_LOG_FILE,
    CONST_OUTPUT_PREFIX_DEFAULT,
    CONST_LOG_FORMAT,
    CONST_LOG_DATEFMT,
    CONST_MAX_RETRY,
    ERR_PATH_NOT_WRITABLE,
    ERR_FILE_NOT_FOUND,
)

# 聚合导出：拆分后的子模块
from .coords import Rectangle, fit_within, rect_from_top_left
from .fonts import ReportLabGlyphMetrics
from .io import (
    DecodedImage,
    clean_for_filename,
    decode_image_data_url,
    json_loads_strip_bom,
    sanitize_filename,
)
from .text import (
    GlyphMetrics,
    split_long_word,
    strip_leading_empty_lines,
    strip_trailing_empty_lines,
    wrap_text_to_width,
)


# =============================
# 日志工具
# =============================
_LOGGER_CONFIGURED: bool = False


def get_logger(name: str) -> logging.Logger:
    """获取 logger，首次调用时配置文件与控制台双输出。

    参数：
        name: 日志记录器名称（一般使用 __name__）。

    返回：
        logging.Logger 对象。
    """
    global _LOGGER_CONFIGURED
    if not _LOGGER_CONFIGURED:
        PATH_LOGS_DIR.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(PATH_LOG_FILE, encoding="utf-8")
        console_handler = logging.StreamHandler()
        logging.basicConfig(
            level=logging.INFO,
            format=CONST_LOG_FORMAT,
            datefmt=CONST_LOG_DATEFMT,
            handlers=[file_handler, console_handler],
        )
        _LOGGER_CONFIGURED = True
    return logging.getLogger(name)


# =============================
# 文件操作
# =============================
class FileHandler:
    """文件与路径相关的通用处理器。"""

    @staticmethod
    def ensure_project_dirs() -> None:
        """确保 logs/output/temp 目录存在。"""
        for d in (PATH_LOGS_DIR, PATH_OUTPUT_DIR, PATH_TEMP_DIR):
            d.mkdir(parents=True, exist_ok=True)

    @staticmethod
    def validate_readable_file(path: Path) -> None:
        """校验文件可读。

        异常：
            FileNotFoundError: 文件不存在或不是普通文件。
        """
        if not path.exists() or not path.is_file():
            raise FileNotFoundError(f"[{ERR_FILE_NOT_FOUND}] 文件不存在或不可读: {path}")

    @staticmethod
    def ensure_parent_writable(target: Path) -> None:
        """确保目标文件的父目录存在且可写。

        异常：
            PermissionError: 目录不可写。
        """
        parent = target.parent
        parent.mkdir(parents=True, exist_ok=True)
        probe = parent / f".__writable_probe_{int(time.time() * 1000)}"
        try:
            with open(probe, "w", encoding="utf-8") as f:
                f.write("probe")
        except OSError as exc:
            raise PermissionError(f"[{ERR_PATH_NOT_WRITABLE}] 目录不可写: {parent}") from exc
        probe.unlink(missing_ok=True)

    @staticmethod
    def submission_output_path(
        customer_part: str = "",
        output_dir: Optional[Path] = None,
        prefix: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> Path:
        """生成提交结果的输出路径：`{prefix}-{customer}-{timestamp}.pdf`。

        - timestamp 形如 2025-01-01T12-00-00（ISO 时间，冒号替换为 "-"）；
        - 同名文件已存在时追加 `-1`、`-2` …，直到不冲突；
        - 审计 JSON 与 PDF 共用同一 stem（见 `sidecar_path`）。

        示例：
            >>> FileHandler.submission_output_path("ACME")
            Path("output/filled-ACME-2025-01-01T12-00-00.pdf")
        """
        target_dir = output_dir if output_dir is not None else PATH_OUTPUT_DIR
        target_dir.mkdir(parents=True, exist_ok=True)

        moment = now or datetime.now()
        ts = moment.strftime("%Y-%m-%dT%H-%M-%S")
        use_prefix = (prefix if prefix is not None else CONST_OUTPUT_PREFIX_DEFAULT).strip() or "output"
        customer = f"{customer_part}-" if customer_part else ""
        base = f"{use_prefix}-{customer}{ts}"

        candidate = target_dir / f"{base}.pdf"
        counter = 1
        while candidate.exists():
            candidate = target_dir / f"{base}-{counter}.pdf"
            counter += 1
        return candidate

    @staticmethod
    def sidecar_path(pdf_path: Path) -> Path:
        """审计 JSON 路径（与 PDF 同名，扩展名 .json）。"""
        return pdf_path.with_suffix(".json")


# =============================
# 重试机制与错误处理
# =============================
def retry_on_exception(
    retries: int = CONST_MAX_RETRY,
    exceptions: Iterable[Type[BaseException]] = (Exception,),
    delay_s: float = 0.2,
    backoff: float = 2.0,
) -> Callable[[Callable[..., object]], Callable[..., object]]:
    """装饰器：异常自动重试，含指数退避。

    参数：
        retries: 重试次数（不含首次）。
        exceptions: 触发重试的异常类型集合。
        delay_s: 初始等待秒数。
        backoff: 每次重试的等待倍数。
    """
    exc_types = tuple(exceptions)

    def decorator(func: Callable[..., object]) -> Callable[..., object]:
        def wrapper(*args, **kwargs):
            wait = delay_s
            attempt = 0
            while True:
                try:
                    return func(*args, **kwargs)
                except exc_types as exc:
                    if attempt >= retries:
                        raise
                    logger = get_logger(func.__module__)
                    logger.warning("操作失败，准备重试（第 %s 次）：%s", attempt + 1, exc)
                    time.sleep(wait)
                    wait *= backoff
                    attempt += 1

        wrapper.__name__ = getattr(func, "__name__", "wrapper")
        wrapper.__doc__ = func.__doc__
        return wrapper

    return decorator


class ErrorHandler:
    """错误处理相关工具。"""

    @staticmethod
    def format_error(err_code: int, message: str) -> str:
        """生成统一错误信息字符串。"""
        return f"[{err_code}] {message}"


# =============================
# 导出声明
# =============================
__all__ = [
    # 日志工具
    "get_logger",
    # 文件操作
    "FileHandler",
    # 重试与错误处理
    "retry_on_exception",
    "ErrorHandler",
    # 坐标
    "Rectangle",
    "fit_within",
    "rect_from_top_left",
    # 字体度量
    "ReportLabGlyphMetrics",
    # IO
    "DecodedImage",
    "clean_for_filename",
    "decode_image_data_url",
    "json_loads_strip_bom",
    "sanitize_filename",
    # 文本换行
    "GlyphMetrics",
    "split_long_word",
    "strip_leading_empty_lines",
    "strip_trailing_empty_lines",
    "wrap_text_to_width",
]
