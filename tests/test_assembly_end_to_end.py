from __future__ import annotations

import base64
import json
from datetime import datetime
from io import BytesIO

import pdfplumber
import pytest
from PIL import Image

from checklist_filler.data_handler import build_field_descriptors
from checklist_filler.pdf_processor import ChecklistAssembler, detect_submitter_name
from checklist_filler.processors.engines.pymupdf import extract_form_fields
from checklist_filler.processors.engines.raster import PhotoUpload
from checklist_filler.template_builder import build_demo_template
from main import main

FIXED_NOW = datetime(2025, 1, 1, 12, 0, 0)


def _png_bytes(size=(120, 80), color="navy") -> bytes:
    buffer = BytesIO()
    Image.new("RGB", size, color).save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.fixture(scope="module")
def template(tmp_path_factory):
    path = tmp_path_factory.mktemp("template") / "template.pdf"
    fields = build_demo_template(path)
    return path, fields


@pytest.fixture
def submission():
    signature = "data:image/png;base64," + base64.b64encode(_png_bytes((300, 100), "black")).decode("ascii")
    return {
        "end_customer_name": "ACME Arena",
        "site_location": "Hall 3",
        "visit_type": "Reactive",
        "led_complete_1": "on",
        "led_notes_1": " ".join(["Cabinet B2 fan replaced and checked again after power cycle."] * 12),
        "parts_removed_desc_1": "Pixel card",
        "parts_removed_part_1": "PC-100",
        "engineer_name": "Sam Lee",
        "customer_name": "Jo Park",
        "engineer_signature": signature,
        "employees": [
            {"name": "Sam Lee", "role": "Engineer", "arrival": "2025-01-01T08:00", "departure": "2025-01-01T15:30"},
        ],
    }


def _pdf_text(data: bytes):
    with pdfplumber.open(BytesIO(data)) as pdf:
        return [page.extract_text() or "" for page in pdf.pages]


def test_demo_template_fields_are_extractable(template):
    path, fields = template
    extracted = {item["name"]: item["type"] for item in extract_form_fields(path)}
    assert {f["name"] for f in fields} == set(extracted)
    assert extracted["visit_type"] == "dropdown"
    assert extracted["led_complete_1"] == "checkbox"
    assert extracted["parts_used_serial_15"] == "text"
    assert "engineer_signature" in extracted


def test_assemble_full_document(template, submission):
    path, fields = template
    assembler = ChecklistAssembler(path, descriptors=build_field_descriptors(fields))
    photos = [PhotoUpload(field_name="photo_before", filename="before.png", data=_png_bytes())]
    result = assembler.assemble(submission, photos, now=FIXED_NOW)

    pages = _pdf_text(result.pdf_bytes)
    assert len(pages) == result.page_count
    assert result.page_count >= 6

    meta = result.metadata
    assert meta["imagePlacements"][0]["page"] == 4
    assert [entry["acroName"] for entry in meta["overflowText"]] == ["led_notes_1"]
    assert meta["overflowPlacements"] == [{"acroName": "led_notes_1", "requestName": "led_notes_1", "page": 5}]
    assert meta["partsRowsUsed"] == [1]
    assert meta["partsRowsHidden"] == list(range(2, 16))
    assert meta["employeesTotalMinutes"] == 450
    assert len(meta["signaturePlacements"]) == 1
    assert meta["signaturePlacements"][0]["page"] > 5
    assert meta["requestBody"]["engineer_signature"] == "[embedded-image]"

    assert "Maintenance Summary" in pages[2]
    assert "Extended Text" in pages[4]
    assert "Page 1 of {}".format(result.page_count) in pages[0]
    assert "Submitted by Sam Lee at" in pages[-1]
    assert any("Sign-off details" in text for text in pages[5:])


def test_save_outputs_writes_pdf_and_sidecar(template, submission, tmp_path):
    path, fields = template
    assembler = ChecklistAssembler(path, descriptors=build_field_descriptors(fields), output_dir=tmp_path)
    result = assembler.assemble(submission, now=FIXED_NOW)
    pdf_path = assembler.save_outputs(result, submission, now=FIXED_NOW)

    assert pdf_path.name == "filled-ACME_Arena-2025-01-01T12-00-00.pdf"
    assert pdf_path.read_bytes().startswith(b"%PDF")
    sidecar = json.loads(pdf_path.with_suffix(".json").read_text(encoding="utf-8"))
    assert sidecar["filename"] == pdf_path.name
    assert sidecar["templatePath"] == str(path)


def test_submitter_falls_back_to_unknown(template):
    _, fields = template
    descriptors = build_field_descriptors(fields)
    assert detect_submitter_name(descriptors, {}) == "Unknown"
    assert detect_submitter_name(descriptors, {"submitter_name": "Ivan"}) == "Ivan"


def test_cli_make_template_then_fill(tmp_path):
    template_path = tmp_path / "template.pdf"
    fields_path = tmp_path / "fields.json"
    out_dir = tmp_path / "out"
    assert main(["--make-template", "--template", str(template_path), "--fields", str(fields_path)]) == 0
    assert template_path.exists()
    assert json.loads(fields_path.read_text(encoding="utf-8"))["fields"]

    code = main(
        [
            "--template", str(template_path),
            "--fields", str(fields_path),
            "--mapping", str(tmp_path / "missing-mapping.json"),
            "--kv", "end_customer_name=ACME Arena",
            "--kv", "led_complete_2=on",
            "--output-dir", str(out_dir),
        ]
    )
    assert code == 0
    assert len(list(out_dir.glob("*.pdf"))) == 1
    assert len(list(out_dir.glob("*.json"))) == 1


def test_cli_without_data_exits(tmp_path):
    with pytest.raises(SystemExit):
        main(["--template", str(tmp_path / "nope.pdf")])


def test_blank_first_line_is_not_shown_twice(template):
    path, fields = template
    assembler = ChecklistAssembler(path, descriptors=build_field_descriptors(fields))
    result = assembler.assemble({"end_customer_name": "ACME", "site_location": "\n\nHall 9 east"}, now=FIXED_NOW)

    overflow = {entry["acroName"]: entry for entry in result.metadata["overflowText"]}
    assert overflow["site_location"]["preview"] == "Hall 9 east"
    pages = _pdf_text(result.pdf_bytes)
    assert "Hall 9 east" not in pages[0]
    assert sum(text.count("Hall 9 east") for text in pages) == 1


def test_failing_field_does_not_abort_document(template, monkeypatch):
    path, fields = template

    class WidgetUpdateError(Exception):
        pass

    def _broken(self, name, checked):
        raise WidgetUpdateError(f"cannot update {name}")

    monkeypatch.setattr("checklist_filler.processors.engines.pymupdf.TemplateForm.set_checkbox", _broken)
    assembler = ChecklistAssembler(path, descriptors=build_field_descriptors(fields))
    result = assembler.assemble({"end_customer_name": "ACME", "led_complete_1": "on"}, now=FIXED_NOW)
    assert result.pdf_bytes.startswith(b"%PDF")
    assert "ACME" in _pdf_text(result.pdf_bytes)[0]
