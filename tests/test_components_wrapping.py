from __future__ import annotations

import pytest

from checklist_filler.components import (
    split_long_word,
    strip_leading_empty_lines,
    strip_trailing_empty_lines,
    wrap_text_to_width,
)


class TestWrapTextToWidth:
    def test_greedy_word_wrap(self, fixed_metrics):
        # 每字符 5pt，35pt 正好放下 7 个字符
        assert wrap_text_to_width("aaa bbb ccc", fixed_metrics, 10, 35) == ["aaa bbb", "ccc"]

    def test_long_word_split_without_spaces(self, fixed_metrics):
        lines = wrap_text_to_width("x abcdefghij", fixed_metrics, 10, 20)
        assert lines == ["x", "abcd", "efgh", "ij"]

    def test_blank_paragraphs_kept_trailing_removed(self, fixed_metrics):
        assert wrap_text_to_width("one\n\ntwo\n\n", fixed_metrics, 10, 100) == ["one", "", "two"]

    def test_empty_text_returns_single_empty_line(self, fixed_metrics):
        assert wrap_text_to_width("", fixed_metrics, 10, 100) == [""]
        assert wrap_text_to_width(None, fixed_metrics, 10, 100) == [""]

    @pytest.mark.parametrize("metrics_missing, width", [(True, 100), (False, 0), (False, float("inf"))])
    def test_unmeasurable_falls_back_to_newline_split(self, fixed_metrics, metrics_missing, width):
        metrics = None if metrics_missing else fixed_metrics
        assert wrap_text_to_width("first line\nsecond", metrics, 10, width) == ["first line", "second"]

    def test_every_line_fits_or_is_single_glyph(self, helvetica):
        text = (
            "Replaced receiving card in cabinet C4; supercalifragilisticexpialidocious "
            "controller firmware re-flashed and brightness restored to 4500 nits."
        )
        max_width = 60.0
        lines = wrap_text_to_width(text, helvetica, 10, max_width)
        assert len(lines) > 1
        for line in lines:
            assert helvetica.width(line, 10) <= max_width or len(line) == 1
        # 去掉空格后字符完整保留
        assert "".join(lines).replace(" ", "") == text.replace(" ", "")


class TestSplitLongWord:
    def test_word_that_fits_is_unchanged(self, fixed_metrics):
        assert split_long_word("abc", fixed_metrics, 10, 15) == ["abc"]

    def test_glyph_wider_than_line_stands_alone(self, fixed_metrics):
        assert split_long_word("ab", fixed_metrics, 10, 3) == ["a", "b"]

    def test_no_metrics_returns_word(self):
        assert split_long_word("abcdef", None, 10, 3) == ["abcdef"]


def test_strip_empty_lines_helpers():
    assert strip_trailing_empty_lines(["a", "", "  "]) == ["a"]
    assert strip_leading_empty_lines(["", " ", "b", ""]) == ["b", ""]
