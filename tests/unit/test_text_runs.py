"""Tests for text_runs.py: annotation resolution into styled runs."""

from __future__ import annotations

from hypothesis import given
from hypothesis import strategies as st

from notionrender.models import (
    PLAIN_STYLE,
    AnnotationRange,
    LineBreak,
    StyledRun,
    TextStyle,
)
from notionrender.text_runs import plain_text, resolve_runs, split_color, style_of

BOLD = TextStyle(bold=True)
ITALIC = TextStyle(italic=True)


class TestSplitColor:
    def test_foreground(self):
        assert split_color("blue") == ("blue", None)

    def test_background_suffix(self):
        assert split_color("yellow_background") == (None, "yellow")

    def test_default_is_no_color(self):
        assert split_color("default") == (None, None)
        assert split_color("default_background") == (None, None)

    def test_none(self):
        assert split_color(None) == (None, None)

    def test_explicit_background(self):
        assert split_color(None, "red") == (None, "red")
        assert split_color("blue", "red_background") == ("blue", "red")

    def test_suffix_wins_over_explicit_background(self):
        assert split_color("gray_background", "red") == (None, "gray")


class TestStyleOf:
    def test_all_flags(self):
        ann = AnnotationRange(
            start=0, end=1, bold=True, italic=True, underline=True,
            strikethrough=True, code=True, color="purple_background",
        )
        style = style_of(ann)
        assert style.bold and style.italic and style.underline
        assert style.strikethrough and style.code
        assert style.foreground_color is None
        assert style.background_color == "purple"

    def test_plain(self):
        assert style_of(AnnotationRange(start=0, end=1)).is_plain


class TestPositional:
    def test_no_annotations(self):
        assert resolve_runs("Hello") == [StyledRun("Hello")]

    def test_empty_text(self):
        assert resolve_runs("") == []
        assert resolve_runs(None) == []

    def test_prefix_annotation(self):
        runs = resolve_runs("Hello world", [{"start": 0, "end": 5, "bold": True}])
        assert runs == [StyledRun("Hello", BOLD), StyledRun(" world")]

    def test_gap_before_annotation(self):
        runs = resolve_runs("Hello world", [{"start": 6, "end": 11, "bold": True}])
        assert runs == [StyledRun("Hello "), StyledRun("world", BOLD)]

    def test_unsorted_input(self):
        runs = resolve_runs(
            "abcdef",
            [
                {"start": 4, "end": 6, "italic": True},
                {"start": 0, "end": 2, "bold": True},
            ],
        )
        assert runs == [
            StyledRun("ab", BOLD),
            StyledRun("cd"),
            StyledRun("ef", ITALIC),
        ]

    def test_overlap_is_clipped(self):
        runs = resolve_runs(
            "abcdefghij",
            [
                {"start": 0, "end": 5, "bold": True},
                {"start": 3, "end": 8, "italic": True},
            ],
        )
        assert runs == [
            StyledRun("abcde", BOLD),
            StyledRun("fgh", ITALIC),
            StyledRun("ij"),
        ]

    def test_fully_covered_annotation_is_dropped(self):
        runs = resolve_runs(
            "abcdefghij",
            [
                {"start": 0, "end": 8, "bold": True},
                {"start": 2, "end": 4, "italic": True},
            ],
        )
        assert runs == [StyledRun("abcdefgh", BOLD), StyledRun("ij")]

    def test_equal_starts_keep_input_order(self):
        runs = resolve_runs(
            "abcd",
            [
                {"start": 0, "end": 2, "italic": True},
                {"start": 0, "end": 4, "bold": True},
            ],
        )
        assert runs == [StyledRun("ab", ITALIC), StyledRun("cd", BOLD)]

    def test_end_past_text_is_clipped(self):
        runs = resolve_runs("abc", [{"start": 1, "end": 99, "bold": True}])
        assert runs == [StyledRun("a"), StyledRun("bc", BOLD)]

    def test_invalid_ranges_are_skipped(self):
        runs = resolve_runs(
            "abc",
            [
                {"start": -1, "end": 2, "bold": True},
                {"start": 2, "end": 2, "bold": True},
                {"start": 2, "end": 1, "bold": True},
                {"start": 5, "end": 9, "bold": True},
            ],
        )
        assert runs == [StyledRun("abc")]

    def test_bool_offsets_are_not_positions(self):
        runs = resolve_runs("abc", [{"start": True, "end": 2, "bold": True}])
        assert runs == [StyledRun("abc")]

    def test_non_mapping_annotations_ignored(self):
        assert resolve_runs("abc", [42, "bold", None]) == [StyledRun("abc")]

    def test_newline_splits_into_line_breaks(self):
        runs = resolve_runs("Hello\nworld", [{"start": 0, "end": 5, "bold": True}])
        assert runs == [StyledRun("Hello", BOLD), LineBreak(), StyledRun("world", BOLD)]

    def test_offsets_are_relative_to_each_line(self):
        runs = resolve_runs("ab\ncd", [{"start": 1, "end": 4, "italic": True}])
        assert runs == [
            StyledRun("a"),
            StyledRun("b", ITALIC),
            LineBreak(),
            StyledRun("c"),
            StyledRun("d", ITALIC),
        ]

    def test_range_past_short_line_is_skipped_there(self):
        runs = resolve_runs("abcd\nx", [{"start": 2, "end": 4, "bold": True}])
        assert runs == [StyledRun("ab"), StyledRun("cd", BOLD), LineBreak(), StyledRun("x")]

    def test_trailing_newline(self):
        assert resolve_runs("ab\n") == [StyledRun("ab"), LineBreak()]

    def test_color_and_link(self):
        runs = resolve_runs(
            "see docs",
            [{"start": 4, "end": 8, "color": "red_background", "href": "<https://x.io>"}],
        )
        assert runs[1] == StyledRun(
            "docs", TextStyle(background_color="red"), "https://x.io"
        )

    def test_camel_case_background(self):
        runs = resolve_runs("ab", [{"start": 0, "end": 2, "backgroundColor": "blue"}])
        assert runs == [StyledRun("ab", TextStyle(background_color="blue"))]

    def test_accepts_annotation_objects(self):
        runs = resolve_runs("ab", [AnnotationRange(start=0, end=1, bold=True)])
        assert runs == [StyledRun("a", BOLD), StyledRun("b")]

    def test_mixed_list_is_positional(self):
        runs = resolve_runs(
            "Hello",
            [{"text": "ignored", "italic": True}, {"start": 0, "end": 1, "bold": True}],
        )
        assert runs == [StyledRun("H", BOLD), StyledRun("ello")]


class TestLegacy:
    def test_segments_in_order(self):
        runs = resolve_runs(
            "Hello world",
            [{"text": "Hello ", "bold": True}, {"text": "world"}],
        )
        assert runs == [StyledRun("Hello ", BOLD), StyledRun("world", PLAIN_STYLE)]

    def test_newline_inside_segment(self):
        runs = resolve_runs("a\nb", [{"text": "a\nb", "italic": True}])
        assert runs == [StyledRun("a", ITALIC), LineBreak(), StyledRun("b", ITALIC)]

    def test_empty_segments_fall_back_to_text(self):
        runs = resolve_runs("plain", [{"text": "", "bold": True}])
        assert runs == [StyledRun("plain")]

    def test_legacy_without_block_text(self):
        assert resolve_runs(None, [{"text": "hi", "bold": True}]) == [StyledRun("hi", BOLD)]


class TestPlainText:
    def test_line_breaks(self):
        assert plain_text([StyledRun("a"), LineBreak(), StyledRun("b", BOLD)]) == "a\nb"

    def test_empty(self):
        assert plain_text([]) == ""


_range_st = st.fixed_dictionaries({
    "start": st.integers(min_value=-3, max_value=40),
    "end": st.integers(min_value=-3, max_value=40),
    "bold": st.booleans(),
    "italic": st.booleans(),
})


class TestProperties:
    @given(text=st.text(max_size=30), annotations=st.lists(_range_st, max_size=6))
    def test_positional_runs_cover_text_exactly(self, text, annotations):
        runs = resolve_runs(text, annotations)
        assert plain_text(runs) == text

    @given(text=st.text(max_size=30), annotations=st.lists(_range_st, max_size=6))
    def test_runs_are_never_empty(self, text, annotations):
        for run in resolve_runs(text, annotations):
            if isinstance(run, StyledRun):
                assert run.text
