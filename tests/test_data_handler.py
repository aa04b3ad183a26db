from __future__ import annotations

import json

import pytest

from checklist_filler.data_handler import (
    build_field_descriptors,
    collect_parts_row_usage,
    load_fields_config,
    load_mapping_overrides,
    load_submissions_json,
    normalize_checkbox_value,
    parse_key_values,
    sanitize_request_body,
    text_value,
    to_single_value,
)


class TestValues:
    @pytest.mark.parametrize("value", ["true", "1", "on", "YES", "checked", " On ", ["off", "on"], True])
    def test_checkbox_true(self, value):
        assert normalize_checkbox_value(value) is True

    @pytest.mark.parametrize("value", ["false", "0", "", None, [], "nope", False])
    def test_checkbox_false(self, value):
        assert normalize_checkbox_value(value) is False

    def test_repeated_values_take_last(self):
        assert to_single_value(["a", "b"]) == "b"
        assert to_single_value([]) is None
        assert text_value({"notes": "line1\r\nline2"}, "notes") == "line1\nline2"
        assert text_value({}, "missing") == ""


class TestDescriptors:
    def test_request_name_collisions_get_suffixes(self):
        fields = [
            {"name": "Customer.Name", "type": "Text"},
            {"name": "customer_name"},
            {"name": "Customer Name Copy", "type": "text", "label": "Copy"},
            {"type": "text"},
        ]
        overrides = {"Customer.Name": "customer_name", "Customer Name Copy": "customer_name"}
        descriptors = build_field_descriptors(fields, overrides)
        assert [d.request_name for d in descriptors] == ["customer_name", "customer_name_2", "customer_name_3"]
        assert descriptors[0].type == "text"
        assert descriptors[1].label == "customer_name"
        assert descriptors[2].label == "Copy"
        assert descriptors[0].to_dict() == {"acroName": "Customer.Name", "requestName": "customer_name", "type": "text"}

    def test_config_files_with_bom_and_missing(self, tmp_path):
        fields_path = tmp_path / "fields.json"
        fields_path.write_text("\ufeff" + json.dumps({"fields": [{"name": "a", "type": "checkbox"}]}), encoding="utf-8")
        assert load_fields_config(fields_path)["fields"] == [{"name": "a", "type": "checkbox"}]
        assert load_fields_config(tmp_path / "absent.json") == {"fields": []}
        mapping_path = tmp_path / "mapping.json"
        mapping_path.write_text(json.dumps({"A": "a", "B": ""}), encoding="utf-8")
        assert load_mapping_overrides(mapping_path) == {"A": "a"}

    def test_invalid_config_raises_with_code(self, tmp_path):
        bad = tmp_path / "fields.json"
        bad.write_text("[1, 2]", encoding="utf-8")
        with pytest.raises(RuntimeError, match=r"^\[4001\]"):
            load_fields_config(bad)


class TestSubmissions:
    @pytest.mark.parametrize(
        "payload, count",
        [
            ({"end_customer_name": "ACME"}, 1),
            ([{"a": "1"}, {"a": "2"}, "skip"], 2),
            ({"records": [{"a": "1"}]}, 1),
        ],
    )
    def test_supported_shapes(self, tmp_path, payload, count):
        path = tmp_path / "data.json"
        path.write_text("\ufeff" + json.dumps(payload), encoding="utf-8")
        assert len(load_submissions_json(path)) == count

    def test_invalid_submission_raises(self, tmp_path):
        path = tmp_path / "data.json"
        path.write_text("42", encoding="utf-8")
        with pytest.raises(RuntimeError, match=r"^\[4002\]"):
            load_submissions_json(path)

    def test_parse_key_values(self):
        assert parse_key_values(["a=1", "b=x=y", " c =3"]) == {"a": "1", "b": "x=y", "c": "3"}
        with pytest.raises(RuntimeError):
            parse_key_values(["novalue"])

    def test_sanitize_replaces_inline_images(self):
        body = {"sig": "data:image/png;base64,AAAA", "photos": ["data:image/jpeg;base64,BB", "x"], "n": 3}
        assert sanitize_request_body(body) == {
            "sig": "[embedded-image]",
            "photos": ["[embedded-image]", "x"],
            "n": 3,
        }


class TestPartsRows:
    def test_rows_with_any_value_are_used(self):
        body = {
            "parts_removed_desc_1": "Receiving card",
            "parts_used_serial_4": "SN-778",
            "parts_removed_part_2": "   ",
        }
        rows = collect_parts_row_usage(body)
        assert len(rows) == 15
        assert [row.number for row in rows if row.has_data] == [1, 4]
        assert rows[3].cells() == ["", "", "", "", "SN-778"]
        assert rows[1].fields["parts_removed_part_2"] == ""

    def test_empty_body_hides_every_row(self):
        assert not any(row.has_data for row in collect_parts_row_usage(None))
