"""
文件路径：checklist_filler/processors/roster.py

模块职责：
- 从请求体收集现场人员（结构化 `employees` 或 `employee_<字段>_<n>` 平铺键）；
- 计算停留时长并按法定休息档位（<=6h / <=9h / >9h，含上界）给出休息要求；
- 汇总总时长、总休息分钟数与各档位人数。

说明：
- 时间解析失败不抛异常，对应条目标记为 pending（时长 0）；
- 离场早于或等于到场时自动纠正为到场 + CONST_EMPLOYEE_MIN_STAY_MINUTES。
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Any, Dict, List, Mapping, Optional, Tuple

from ..components import get_logger
from ..data_handler import to_single_value
from ..variables import (
    CONST_BREAK_TIER_MIN30_MAX_MINUTES,
    CONST_BREAK_TIER_NONE_MAX_MINUTES,
    CONST_EMPLOYEE_DEFAULT_STAY_MINUTES,
    CONST_EMPLOYEE_MAX_COUNT,
    CONST_EMPLOYEE_MIN_STAY_MINUTES,
    CONST_EMPLOYEE_SYNC_PRIMARY_SCHEDULE,
)


logger = get_logger(__name__)

BREAK_NONE = "NONE"
BREAK_MIN30 = "MIN30"
BREAK_MIN45 = "MIN45"
BREAK_UNKNOWN = "UNKNOWN"

_DATETIME_RE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})[T ](\d{2}):(\d{2})(?::(\d{2}))?$")
_TIME_RE = re.compile(r"^(\d{1,2}):(\d{2})(?::(\d{2}))?$")


@dataclass(frozen=True)
class BreakRequirement:
    code: str
    minutes: int
    label: str


def parse_local_datetime(value: Any, reference_day: Optional[date] = None) -> Optional[datetime]:
    """解析本地时间。

    支持 `YYYY-MM-DDTHH:MM[:SS]`（T 或空格分隔）；传入 reference_day 时也接受仅含时间的
    `HH:MM[:SS]`。格式不符或日期非法（如 2 月 30 日）返回 None。
    """
    if not isinstance(value, str):
        return None
    text = value.strip()
    if not text:
        return None
    match = _DATETIME_RE.match(text)
    try:
        if match:
            y, mo, d, h, mi, s = match.groups()
            return datetime(int(y), int(mo), int(d), int(h), int(mi), int(s or 0))
        match = _TIME_RE.match(text)
        if match and reference_day is not None:
            h, mi, s = match.groups()
            return datetime.combine(reference_day, datetime.min.time()).replace(
                hour=int(h), minute=int(mi), second=int(s or 0)
            )
    except ValueError:
        return None
    return None


def format_iso_minutes(moment: datetime) -> str:
    """`YYYY-MM-DDTHH:MM`。"""
    return moment.strftime("%Y-%m-%dT%H:%M")


def format_display(moment: Optional[datetime], raw: str = "") -> str:
    """`YYYY-MM-DD HH:MM`；无法解析时原样返回去空白的输入。"""
    if moment is None:
        return raw.strip()
    return moment.strftime("%Y-%m-%d %H:%M")


def format_employee_duration(minutes: Optional[float]) -> str:
    """格式化时长为 `Xh Ym`，为零的部分省略；非正数返回 `0m`。"""
    if minutes is None or minutes <= 0:
        return "0m"
    rounded = int(round(minutes))
    hours, mins = divmod(rounded, 60)
    parts = []
    if hours > 0:
        parts.append(f"{hours}h")
    if mins > 0:
        parts.append(f"{mins}m")
    return " ".join(parts) if parts else "0m"


def determine_break_requirement(minutes: Optional[float]) -> BreakRequirement:
    """按时长查表得出休息要求（上界包含在内）。"""
    if minutes is None or minutes <= 0:
        return BreakRequirement(BREAK_UNKNOWN, 0, "Pending (set arrival and departure)")
    if minutes <= CONST_BREAK_TIER_NONE_MAX_MINUTES:
        return BreakRequirement(BREAK_NONE, 0, "No mandatory break (<=6h)")
    if minutes <= CONST_BREAK_TIER_MIN30_MAX_MINUTES:
        return BreakRequirement(BREAK_MIN30, 30, ">=30m (6-9h, 2x15m allowed)")
    return BreakRequirement(BREAK_MIN45, 45, ">=45m (>9h)")


def format_break_stats_summary(stats: Mapping[str, int]) -> str:
    """各档位人数摘要，如 `1 x >=45m (>9h), 2 x no mandatory break (<=6h)`。

    pending 只在存在其他档位时附加在末尾。
    """
    if not stats:
        return ""
    descriptors = (
        (BREAK_MIN45, ">=45m (>9h)"),
        (BREAK_MIN30, ">=30m (6-9h, 2x15m)"),
        (BREAK_NONE, "no mandatory break (<=6h)"),
    )
    parts = [f"{int(stats.get(key, 0))} x {label}" for key, label in descriptors if int(stats.get(key, 0)) > 0]
    pending = int(stats.get(BREAK_UNKNOWN, 0))
    if pending > 0 and parts:
        parts.append(f"{pending} x pending")
    return ", ".join(parts)


@dataclass
class EmployeeEntry:
    index: int
    name: str
    role: str
    arrival: str
    departure: str
    arrival_display: str
    departure_display: str
    duration_minutes: int
    auto_corrected: bool = False

    @property
    def break_requirement(self) -> BreakRequirement:
        return determine_break_requirement(self.duration_minutes)

    @property
    def duration_label(self) -> str:
        return format_employee_duration(self.duration_minutes)

    def to_dict(self) -> Dict[str, Any]:
        brk = self.break_requirement
        return {
            "index": self.index,
            "name": self.name,
            "role": self.role,
            "arrival": self.arrival,
            "departure": self.departure,
            "durationMinutes": self.duration_minutes,
            "breakCode": brk.code,
            "breakRequiredMinutes": brk.minutes,
            "breakLabel": brk.label,
        }


@dataclass
class EmployeeSummary:
    entries: List[EmployeeEntry] = field(default_factory=list)

    @property
    def total_minutes(self) -> int:
        return sum(entry.duration_minutes for entry in self.entries)

    @property
    def total_break_minutes(self) -> int:
        return sum(entry.break_requirement.minutes for entry in self.entries)

    @property
    def break_stats(self) -> Dict[str, int]:
        stats = {BREAK_NONE: 0, BREAK_MIN30: 0, BREAK_MIN45: 0, BREAK_UNKNOWN: 0}
        for entry in self.entries:
            stats[entry.break_requirement.code] += 1
        return stats

    def total_line(self) -> str:
        count = len(self.entries)
        noun = "employee" if count == 1 else "employees"
        duration = format_employee_duration(self.total_minutes) if count else "0m"
        return f"Total recorded time: {duration} across {count} {noun}."

    def breaks_line(self) -> str:
        stats = self.break_stats
        known = stats[BREAK_MIN45] + stats[BREAK_MIN30] + stats[BREAK_NONE]
        if not self.entries:
            minutes_label = "pending"
        elif known > 0:
            minutes_label = format_employee_duration(self.total_break_minutes)
        elif stats[BREAK_UNKNOWN] > 0:
            minutes_label = "pending"
        else:
            minutes_label = "0m"

        if known > 0:
            details = format_break_stats_summary(stats)
        elif stats[BREAK_UNKNOWN] > 0:
            details = f"{stats[BREAK_UNKNOWN]} pending"
        else:
            details = ""
        suffix = f" ({details})" if details else ""
        return f"Mandated breaks: {minutes_label}{suffix}."

    def to_metadata(self) -> Dict[str, Any]:
        return {
            "employees": [entry.to_dict() for entry in self.entries],
            "employeesTotalMinutes": self.total_minutes,
            "employeesTotalHours": round(self.total_minutes / 60.0, 2),
            "employeesRequiredBreakMinutes": self.total_break_minutes,
            "employeesRequiredBreakDuration": format_employee_duration(self.total_break_minutes),
            "employeesBreakStats": self.break_stats,
            "employeesBreakSummary": format_break_stats_summary(self.break_stats),
        }


# =============================
# 收集
# =============================
def _text(value: Any) -> str:
    single = to_single_value(value)
    return "" if single is None else str(single).strip()


def _raw_sources(body: Mapping[str, Any]) -> List[Tuple[int, Any]]:
    raw = body.get("employees")
    sources: List[Tuple[int, Any]] = []
    if isinstance(raw, list):
        sources = [(i, item) for i, item in enumerate(raw[:CONST_EMPLOYEE_MAX_COUNT]) if item is not None]
    elif isinstance(raw, dict):
        def _order(key: str) -> float:
            try:
                return float(key)
            except (TypeError, ValueError):
                return float("inf")

        keys = sorted(raw.keys(), key=_order)[:CONST_EMPLOYEE_MAX_COUNT]
        for position, key in enumerate(keys):
            order = _order(key)
            index = int(order) if order != float("inf") else position
            if raw[key] is not None:
                sources.append((index, raw[key]))

    if sources:
        return sources

    for i in range(1, CONST_EMPLOYEE_MAX_COUNT + 1):
        record = {k: _text(body.get(f"employee_{k}_{i}")) for k in ("name", "role", "arrival", "departure")}
        if any(record.values()):
            sources.append((i - 1, record))
    return sources


def _resolve_schedule(
    arrival_raw: str,
    departure_raw: str,
    reference_day: date,
) -> Tuple[Optional[datetime], Optional[datetime], int, bool]:
    """返回 (到场, 离场, 分钟数, 是否纠正)；到场无法解析时分钟数为 0。"""
    arrival = parse_local_datetime(arrival_raw, reference_day)
    if arrival is None:
        return None, None, 0, False
    departure = parse_local_datetime(departure_raw, arrival.date())
    corrected = False
    if departure is None:
        departure = arrival + timedelta(minutes=CONST_EMPLOYEE_DEFAULT_STAY_MINUTES)
        corrected = True
    minutes = int(round((departure - arrival).total_seconds() / 60.0))
    if minutes <= 0:
        departure = arrival + timedelta(minutes=CONST_EMPLOYEE_MIN_STAY_MINUTES)
        minutes = CONST_EMPLOYEE_MIN_STAY_MINUTES
        corrected = True
    return arrival, departure, minutes, corrected


def collect_employee_entries(
    body: Optional[Mapping[str, Any]],
    now: Optional[datetime] = None,
    sync_primary_schedule: bool = CONST_EMPLOYEE_SYNC_PRIMARY_SCHEDULE,
) -> EmployeeSummary:
    """收集现场人员条目（最多 CONST_EMPLOYEE_MAX_COUNT 人）。

    规则：
    - 有姓名/角色/离场但缺少到场时间：到场记为 now；
    - 有到场但缺少离场时间：离场记为到场 + 60 分钟；
    - 离场不晚于到场：纠正为到场 + 15 分钟；
    - 到场无法解析：保留原文，时长 0，休息档位 pending；
    - sync_primary_schedule 为真时，后续行缺失的到场/离场沿用第一行。
    """
    summary = EmployeeSummary()
    if not isinstance(body, Mapping):
        return summary

    moment = now or datetime.now()
    primary: Optional[Tuple[str, str]] = None
    for index, value in sorted(_raw_sources(body), key=lambda item: item[0])[:CONST_EMPLOYEE_MAX_COUNT]:
        record = value if isinstance(value, Mapping) else {"name": value}
        name = _text(record.get("name"))
        role = _text(record.get("role"))
        arrival_raw = _text(record.get("arrival"))
        departure_raw = _text(record.get("departure"))

        if sync_primary_schedule and primary is not None:
            arrival_raw = arrival_raw or primary[0]
            departure_raw = departure_raw or primary[1]
        if not arrival_raw and (name or role or departure_raw):
            arrival_raw = format_iso_minutes(moment)
        if not (name or role or arrival_raw or departure_raw):
            continue

        arrival, departure, minutes, corrected = _resolve_schedule(arrival_raw, departure_raw, moment.date())
        if arrival is None:
            logger.warning("人员 #%s 到场时间无法解析，休息要求标记为 pending：%r", index + 1, arrival_raw)
        arrival_iso = format_iso_minutes(arrival) if arrival else arrival_raw
        departure_iso = format_iso_minutes(departure) if departure else departure_raw
        if primary is None:
            primary = (arrival_iso, departure_iso)

        summary.entries.append(
            EmployeeEntry(
                index=index + 1,
                name=name,
                role=role,
                arrival=arrival_iso,
                departure=departure_iso,
                arrival_display=format_display(arrival, arrival_raw),
                departure_display=format_display(departure, departure_raw),
                duration_minutes=minutes,
                auto_corrected=corrected,
            )
        )
    return summary


__all__ = [
    "BREAK_NONE",
    "BREAK_MIN30",
    "BREAK_MIN45",
    "BREAK_UNKNOWN",
    "BreakRequirement",
    "parse_local_datetime",
    "format_iso_minutes",
    "format_employee_duration",
    "determine_break_requirement",
    "format_break_stats_summary",
    "EmployeeEntry",
    "EmployeeSummary",
    "collect_employee_entries",
]
