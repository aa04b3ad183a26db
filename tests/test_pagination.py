from __future__ import annotations

from datetime import datetime
from itertools import takewhile

from PIL import Image

from checklist_filler.data_handler import PartsRow, collect_parts_row_usage
from checklist_filler.processors.pagination import PageCursor, PaginatedSectionRenderer, SignatureImage
from checklist_filler.processors.roster import collect_employee_entries
from checklist_filler.processors.sections import (
    build_checklist_section,
    build_employee_section,
    build_parts_section,
    build_summary_sections,
)
from checklist_filler.variables import CONST_NO_PARTS_MESSAGE, CONST_PARTS_FIELD_PREFIXES

from conftest import RecordingSurface

A4 = (595.28, 841.89)
NOW = datetime(2025, 3, 14, 8, 30)


def _parts_rows(count: int):
    rows = []
    for number in range(1, count + 1):
        row = PartsRow(number=number)
        for prefix in CONST_PARTS_FIELD_PREFIXES:
            row.fields[f"{prefix}{number}"] = f"row{number}"
        rows.append(row)
    return rows


def _body():
    body = {
        "parts_removed_desc_1": "Pixel card",
        "parts_removed_part_1": "PC-100",
        "led_complete_1": "on",
        "led_notes_1": "Two cards replaced on the lower left cabinet.",
        "employees": [{"name": "Dana", "role": "Lead", "arrival": "2025-03-14T09:00", "departure": "2025-03-14T17:00"}],
    }
    return body


def _render_summary(surface, metrics):
    body = _body()
    renderer = PaginatedSectionRenderer(surface, metrics, A4)
    renderer.start()
    for section in build_summary_sections(collect_parts_row_usage(body), collect_employee_entries(body, now=NOW), body):
        renderer.render_table(section)
    return renderer


def test_rendering_is_deterministic(helvetica):
    first, second = RecordingSurface(), RecordingSurface()
    _render_summary(first, helvetica)
    _render_summary(second, helvetica)
    assert first.calls
    assert first.calls == second.calls
    texts = first.texts()
    assert texts[0] == "Maintenance Summary"
    assert "Parts record" in texts
    assert "Total recorded time: 8h across 1 employee." in texts


def test_long_table_repeats_titles_and_header(recording_surface, fixed_metrics):
    renderer = PaginatedSectionRenderer(recording_surface, fixed_metrics, (400, 400))
    renderer.start()
    drawn = renderer.render_table(build_parts_section(_parts_rows(15)))

    assert drawn == 15
    assert recording_surface.page_count >= 2
    first_page = recording_surface.texts(page=0)
    second_page = recording_surface.texts(page=1)
    assert first_page[:2] == ["Maintenance Summary", "Parts record"]
    assert second_page[:2] == ["Maintenance Summary (cont.)", "Parts record (cont.)"]

    def header(texts):
        return list(takewhile(lambda t: not t.startswith("row"), texts[2:]))

    assert header(first_page)
    assert header(second_page) == header(first_page)
    # 每行 5 个单元格，全部绘制且不重复
    assert recording_surface.texts().count("row15") == 5


def test_section_that_does_not_fit_starts_on_next_page(recording_surface, fixed_metrics):
    renderer = PaginatedSectionRenderer(recording_surface, fixed_metrics, A4)
    renderer.start()
    renderer.cursor = PageCursor(renderer.cursor.page, 60.0)
    renderer.render_table(build_parts_section(_parts_rows(1)))
    assert recording_surface.texts(page=1)[:2] == ["Maintenance Summary (cont.)", "Parts record"]


def test_empty_parts_table_prints_message(recording_surface, fixed_metrics):
    renderer = PaginatedSectionRenderer(recording_surface, fixed_metrics, A4)
    renderer.start()
    assert renderer.render_table(build_parts_section(collect_parts_row_usage({}))) == 0
    assert recording_surface.texts() == ["Maintenance Summary", "Parts record", CONST_NO_PARTS_MESSAGE]


def test_employee_section_footer_lines(recording_surface, fixed_metrics):
    renderer = PaginatedSectionRenderer(recording_surface, fixed_metrics, A4)
    renderer.start()
    section = build_employee_section(collect_employee_entries(_body(), now=NOW))
    renderer.render_table(section)
    texts = recording_surface.texts()
    assert "Dana" in texts
    assert "Total recorded time: 8h across 1 employee." in texts
    assert texts[-1].startswith("Mandated breaks: 30m")


def test_row_height_grows_with_notes(fixed_metrics):
    renderer = PaginatedSectionRenderer(RecordingSurface(), fixed_metrics, A4)
    short = build_checklist_section("Checks", (("Act", "c", "n"),), {"n": "ok"})
    tall = build_checklist_section("Checks", (("Act", "c", "n"),), {"n": "word " * 60})
    short_height, _ = renderer.measure_row(short, short.rows[0])
    tall_height, layouts = renderer.measure_row(tall, tall.rows[0])
    assert short_height == short.base_row_height
    assert tall_height > short_height
    assert layouts[1] is None


def test_checked_box_draws_mark(recording_surface, fixed_metrics):
    renderer = PaginatedSectionRenderer(recording_surface, fixed_metrics, A4)
    renderer.start()
    renderer.render_table(build_checklist_section("Checks", (("Act", "c", "n"),), {"c": "yes"}))
    assert sum(1 for call in recording_surface.calls if call[0] == "line") == 2


def test_signoff_details_start_new_page(recording_surface, fixed_metrics):
    renderer = PaginatedSectionRenderer(recording_surface, fixed_metrics, A4)
    renderer.start()
    renderer.render_signoff_details(
        [("Engineer name", "Sam Lee"), ("Engineer company", "Acme LED")],
        [("Customer name", "Jo Park")],
    )
    page = recording_surface.texts(page=1)
    assert page[:3] == ["Sign-off details", "Sign-off details", "Engineer name"]
    assert {"Sam Lee", "Acme LED", "Jo Park", "Customer name"} <= set(page)


def test_signature_scaled_into_box(recording_surface, fixed_metrics):
    renderer = PaginatedSectionRenderer(recording_surface, fixed_metrics, A4)
    renderer.start()
    image = Image.new("RGB", (200, 100), "white")
    placements = renderer.render_signatures([SignatureImage("engineer_signature", image)])
    assert placements == [{"acroName": "engineer_signature", "page": 0, "width": 156.0, "height": 78.0}]
    assert [call for call in recording_surface.calls if call[0] == "image"] == [("image", 0, 156.0, 78.0)]
    assert "Customer signature" in recording_surface.texts()


def test_row_taller_than_page_continues_on_next_pages(recording_surface, fixed_metrics):
    renderer = PaginatedSectionRenderer(recording_surface, fixed_metrics, A4)
    renderer.start()
    notes = " ".join(["word"] * 600)
    section = build_checklist_section("Checks", (("Act", "c", "n"), ("Next", "c2", "n2")), {"c": "yes", "n": notes, "n2": "fine"})
    assert renderer.render_table(section) == 2

    assert recording_surface.page_count == 2
    assert any(text.startswith("word") for text in recording_surface.texts(page=0))
    text_calls = [call for call in recording_surface.calls if call[0] == "text"]
    assert min(call[4] for call in text_calls) >= renderer.margin - 1
    drawn_words = " ".join(call[2] for call in text_calls if call[2].startswith("word")).split()
    assert len(drawn_words) == 600

    second_page = recording_surface.texts(page=1)
    assert second_page[:2] == ["Maintenance Summary (cont.)", "Checks (cont.)"]
    assert "Notes" in second_page
    assert "fine" in recording_surface.texts()
    # 复选框只在第一段绘制
    assert sum(1 for call in recording_surface.calls if call[0] == "line") == 2
