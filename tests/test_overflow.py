from __future__ import annotations

from checklist_filler.processors.overflow import (
    OverflowEntry,
    append_overflow_pages,
    entry_line_cost,
    page_line_capacity,
    plan_overflow_pages,
)


def _entry(name: str, text: str) -> OverflowEntry:
    return OverflowEntry(acro_name=name, request_name=name, label=name.title(), text=text)


def test_capacity_for_a4_page():
    assert page_line_capacity(841.89) == 60
    assert page_line_capacity(10) == 1


def test_greedy_packing_keeps_order():
    entries = [_entry(f"f{i}", "x") for i in range(5)]
    assert plan_overflow_pages(entries, 10, [4, 4, 4, 12, 1]) == [[0, 1], [2], [3], [4]]
    assert plan_overflow_pages([], 10, []) == []


def test_line_cost_counts_wrapped_lines_plus_padding(fixed_metrics):
    assert entry_line_cost(_entry("a", "one\ntwo\nthree"), 500, None) == 5
    # 每字符 5pt，宽 20pt 放 4 个字符："abcdefgh" -> 2 行
    assert entry_line_cost(_entry("b", "abcdefgh"), 20, fixed_metrics) == 4


def test_metadata_preview_is_truncated():
    entry = _entry("notes", "n" * 300)
    meta = entry.to_metadata()
    assert meta["textLength"] == 300
    assert len(meta["preview"]) == 200


def test_short_entries_share_one_page(recording_surface, fixed_metrics):
    entries = [_entry("led_notes_1", "Fan noisy"), _entry("general_notes", "Follow-up in May")]
    placements = append_overflow_pages(recording_surface, entries, (595.28, 841.89), fixed_metrics)
    assert recording_surface.page_count == 1
    assert [p["page"] for p in placements] == [0, 0]
    texts = recording_surface.texts()
    assert texts[0] == "Extended Text"
    assert "Led_Notes_1:" in texts
    assert "Follow-up in May" in texts


def test_label_moves_with_its_body(recording_surface, fixed_metrics):
    long_body = " ".join(["word"] * 20)
    entries = [_entry("a", "short"), _entry("b", long_body), _entry("c", "tail")]
    placements = append_overflow_pages(recording_surface, entries, (200, 300), fixed_metrics)
    assert [p["page"] for p in placements] == [0, 0, 1]
    assert recording_surface.texts(page=1)[:2] == ["Extended Text (cont.)", "C:"]


def test_long_entry_continues_without_losing_lines(recording_surface, fixed_metrics):
    text = "\n".join(["x"] * 40)
    placements = append_overflow_pages(recording_surface, [_entry("notes", text)], (200, 300), fixed_metrics)
    assert placements == [{"acroName": "notes", "requestName": "notes", "page": 0}]
    assert recording_surface.page_count >= 3
    assert "Extended Text (cont.)" in recording_surface.texts()
    assert recording_surface.texts().count("x") == 40


def test_no_entries_draws_nothing(recording_surface):
    assert append_overflow_pages(recording_surface, [], (200, 300), None) == []
    assert recording_surface.page_count == 0


def test_body_uses_entry_font_size(recording_surface, fixed_metrics):
    entry = OverflowEntry(acro_name="led_notes_2", request_name="led_notes_2", label="Notes", text="one two three", font_size=6.5)
    append_overflow_pages(recording_surface, [entry], (595.28, 841.89), fixed_metrics)
    body_sizes = {call[5] for call in recording_surface.calls if call[0] == "text" and call[2] == "one two three"}
    assert body_sizes == {6.5}


def test_smaller_font_wraps_into_fewer_lines(fixed_metrics):
    text = " ".join(["word"] * 30)
    large = OverflowEntry("a", "a", "A", text, font_size=10.0)
    small = OverflowEntry("a", "a", "A", text, font_size=6.0)
    assert entry_line_cost(small, 200, fixed_metrics) < entry_line_cost(large, 200, fixed_metrics)
