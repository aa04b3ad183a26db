from __future__ import annotations

from io import BytesIO

import pdfplumber

from checklist_filler.processors.engines.reportlab import CompositionPlan, ReportLabSurface, compose_document


def _pdf(*titles: str) -> bytes:
    surface = ReportLabSurface((300, 400))
    for title in titles:
        surface.new_page()
        surface.draw_text(title, 40, 360, 12)
    return surface.finish()


def test_composed_pages_are_readable_and_numbered(helvetica):
    plan = CompositionPlan(
        template_pdf=_pdf("Template A", "Template B", "Template C"),
        overflow_pdf=_pdf("Appendix"),
        summary_pdf=_pdf("Summary start", "Summary more"),
        summary_target_index=2,
    )
    data = compose_document(plan, helvetica, "Submitted by Ivan at 2025-01-01T12:00:00.000Z")

    with pdfplumber.open(BytesIO(data)) as pdf:
        texts = [page.extract_text() or "" for page in pdf.pages]

    assert len(texts) == 5
    assert plan.page_sizes == [(300.0, 400.0)] * 5
    assert "Summary start" in texts[2] and "Template C" in texts[2]
    assert "Appendix" in texts[3]
    assert "Summary more" in texts[4]
    for number, text in enumerate(texts, start=1):
        assert f"Page {number} of 5" in text
    assert "Submitted by Ivan" in texts[-1]
    assert "Submitted by" not in texts[0]


def test_summary_appended_when_template_is_short(helvetica):
    plan = CompositionPlan(template_pdf=_pdf("Only page"), summary_pdf=_pdf("Summary start"))
    data = compose_document(plan, helvetica)
    with pdfplumber.open(BytesIO(data)) as pdf:
        assert [("Only page" in (p.extract_text() or "")) for p in pdf.pages] == [True, False]
