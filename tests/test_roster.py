from __future__ import annotations

from datetime import date, datetime

import pytest

from checklist_filler.processors.roster import (
    BREAK_MIN30,
    BREAK_MIN45,
    BREAK_NONE,
    BREAK_UNKNOWN,
    collect_employee_entries,
    determine_break_requirement,
    format_break_stats_summary,
    format_employee_duration,
    parse_local_datetime,
)

NOW = datetime(2025, 3, 14, 8, 30)


@pytest.mark.parametrize(
    "minutes, code, required",
    [
        (360, BREAK_NONE, 0),
        (361, BREAK_MIN30, 30),
        (540, BREAK_MIN30, 30),
        (541, BREAK_MIN45, 45),
        (0, BREAK_UNKNOWN, 0),
        (None, BREAK_UNKNOWN, 0),
        (-5, BREAK_UNKNOWN, 0),
    ],
)
def test_break_tier_boundaries(minutes, code, required):
    requirement = determine_break_requirement(minutes)
    assert requirement.code == code
    assert requirement.minutes == required


@pytest.mark.parametrize(
    "minutes, label",
    [(0, "0m"), (None, "0m"), (45, "45m"), (60, "1h"), (135, "2h 15m"), (59.6, "1h")],
)
def test_format_employee_duration(minutes, label):
    assert format_employee_duration(minutes) == label


def test_parse_local_datetime_variants():
    assert parse_local_datetime("2025-03-14T09:05") == datetime(2025, 3, 14, 9, 5)
    assert parse_local_datetime("2025-03-14 09:05:30") == datetime(2025, 3, 14, 9, 5, 30)
    assert parse_local_datetime("09:05", date(2025, 3, 14)) == datetime(2025, 3, 14, 9, 5)
    assert parse_local_datetime("09:05") is None
    assert parse_local_datetime("2025-02-30T09:00") is None
    assert parse_local_datetime("soon") is None
    assert parse_local_datetime(None) is None


class TestCollectEmployees:
    def test_equal_times_corrected_to_fifteen_minutes(self):
        body = {"employees": [{"name": "Dana", "arrival": "2025-03-14T09:00", "departure": "2025-03-14T09:00"}]}
        summary = collect_employee_entries(body, now=NOW)
        entry = summary.entries[0]
        assert entry.departure == "2025-03-14T09:15"
        assert entry.duration_minutes == 15
        assert entry.break_requirement.code == BREAK_NONE
        assert entry.auto_corrected

    def test_missing_departure_defaults_to_one_hour(self):
        body = {"employee_name_1": "Lee", "employee_arrival_1": "2025-03-14T10:00"}
        entry = collect_employee_entries(body, now=NOW).entries[0]
        assert entry.departure == "2025-03-14T11:00"
        assert entry.duration_minutes == 60

    def test_missing_arrival_uses_now(self):
        body = {"employees": [{"name": "Sam", "departure": "2025-03-14T18:00"}]}
        entry = collect_employee_entries(body, now=NOW).entries[0]
        assert entry.arrival == "2025-03-14T08:30"
        assert entry.duration_minutes == 570
        assert entry.break_requirement.code == BREAK_MIN45

    def test_unparseable_arrival_is_pending(self):
        body = {"employees": [{"name": "Kim", "arrival": "tomorrow"}]}
        entry = collect_employee_entries(body, now=NOW).entries[0]
        assert entry.arrival == "tomorrow"
        assert entry.duration_minutes == 0
        assert entry.break_requirement.code == BREAK_UNKNOWN

    def test_blank_rows_are_skipped_and_order_kept(self):
        body = {
            "employees": {
                "2": {"name": "Second", "arrival": "2025-03-14T07:00", "departure": "2025-03-14T14:00"},
                "0": {"name": "First", "arrival": "2025-03-14T07:00", "departure": "2025-03-14T12:00"},
                "1": {"name": "", "role": "", "arrival": "", "departure": ""},
            }
        }
        summary = collect_employee_entries(body, now=NOW)
        assert [e.name for e in summary.entries] == ["First", "Second"]
        assert summary.total_minutes == 300 + 420
        assert summary.total_break_minutes == 30
        assert summary.break_stats[BREAK_NONE] == 1
        assert summary.break_stats[BREAK_MIN30] == 1

    def test_sync_primary_schedule_flag(self):
        body = {
            "employees": [
                {"name": "Lead", "arrival": "2025-03-14T08:00", "departure": "2025-03-14T16:00"},
                {"name": "Helper"},
            ]
        }
        synced = collect_employee_entries(body, now=NOW, sync_primary_schedule=True)
        assert synced.entries[1].arrival == "2025-03-14T08:00"
        assert synced.entries[1].departure == "2025-03-14T16:00"
        plain = collect_employee_entries(body, now=NOW)
        assert plain.entries[1].arrival == "2025-03-14T08:30"

    def test_summary_lines_and_metadata(self):
        body = {"employees": [{"name": "Dana", "arrival": "2025-03-14T08:00", "departure": "2025-03-14T18:00"}]}
        summary = collect_employee_entries(body, now=NOW)
        assert summary.total_line() == "Total recorded time: 10h across 1 employee."
        assert summary.breaks_line() == "Mandated breaks: 45m (1 x >=45m (>9h))."
        meta = summary.to_metadata()
        assert meta["employeesTotalHours"] == 10.0
        assert meta["employees"][0]["breakCode"] == BREAK_MIN45

    def test_empty_body(self):
        summary = collect_employee_entries({}, now=NOW)
        assert summary.entries == []
        assert summary.breaks_line() == "Mandated breaks: pending."


def test_break_stats_summary_appends_pending_only_with_known():
    assert format_break_stats_summary({BREAK_NONE: 2, BREAK_UNKNOWN: 1}) == (
        "2 x no mandatory break (<=6h), 1 x pending"
    )
    assert format_break_stats_summary({BREAK_UNKNOWN: 3}) == ""
