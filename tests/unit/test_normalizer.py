"""Tests for normalizer.py: the fail-soft block repairs."""

from __future__ import annotations

from hypothesis import given, settings
from hypothesis import strategies as st

from notionrender import normalizer as normalizer_module
from notionrender.errors import ErrorCode
from notionrender.models import Block, Icon, ListType, MediaKind, NodeKind
from notionrender.normalizer import BlockNormalizer, is_heic_url, normalize_blocks
from notionrender.renderer import render_blocks
from notionrender.text_runs import plain_text


class _UnreadableIcon(dict):
    """A block dict whose icon field raises when read."""

    def get(self, key, default=None):
        if key == "icon":
            raise RuntimeError("icon unreadable")
        return super().get(key, default)


class TestIsHeicUrl:
    def test_extension(self):
        assert is_heic_url("https://cdn.example.com/photo.HEIC")

    def test_mime_marker(self):
        assert is_heic_url("https://cdn.example.com/file?type=image/heic")

    def test_path_marker(self):
        assert is_heic_url("https://cdn.example.com/heic/123")

    def test_not_heic(self):
        assert not is_heic_url("https://cdn.example.com/photo.jpg")

    def test_empty(self):
        assert not is_heic_url(None)
        assert not is_heic_url("")


class TestRepairs:
    def test_list_type_from_block_type(self):
        [block] = normalize_blocks([{"type": "numbered_list_item", "text": "one"}])
        assert block.list_type is ListType.NUMBERED
        assert block.is_list_item

    def test_explicit_list_type_kept(self):
        [block] = normalize_blocks([
            {"type": "bulleted_list_item", "is_list_item": True, "list_type": "numbered"}
        ])
        assert block.list_type is ListType.NUMBERED

    def test_legacy_list_flags(self):
        [block] = normalize_blocks([
            {"type": "paragraph", "isListItem": True, "listType": "bulleted", "text": "x"}
        ])
        assert block.effective_list_type is ListType.BULLETED

    def test_background_color_repaired(self):
        [block] = normalize_blocks([{
            "type": "paragraph",
            "text": "hello",
            "annotations": [{"start": 0, "end": 5, "color": "yellowbackground"}],
        }])
        assert block.annotations[0].color == "yellow_background"

    def test_well_formed_colors_untouched(self):
        [block] = normalize_blocks([{
            "type": "paragraph",
            "text": "hello",
            "annotations": [
                {"start": 0, "end": 2, "color": "blue"},
                {"start": 2, "end": 5, "color": "red_background"},
            ],
        }])
        assert [a.color for a in block.annotations] == ["blue", "red_background"]

    def test_heic_flag(self):
        [block] = normalize_blocks([
            {"type": "image", "media_url": "https://cdn.example.com/IMG_1.heic"}
        ])
        assert block.media.kind is MediaKind.IMAGE
        assert block.media.is_heic

    def test_container_children_default(self):
        blocks = normalize_blocks([
            {"type": "table"},
            {"type": "column_list"},
            {"type": "toggle", "text": "t"},
        ])
        assert all(b.children == () for b in blocks)

    def test_non_container_children_stay_none(self):
        [block] = normalize_blocks([{"type": "paragraph", "text": "x"}])
        assert block.children is None

    def test_icon_emoji_copied(self):
        [block] = normalize_blocks([
            {"type": "callout", "text": "tip", "icon": {"type": "emoji", "emoji": "💡"}}
        ])
        assert block.icon == Icon(emoji="💡")
        assert block.emoji == "💡"

    def test_table_row_cells_become_children(self):
        [table] = normalize_blocks([{
            "type": "table",
            "table_width": 2,
            "children": [
                {"type": "table_row", "cells": [{"text": "a"}, {"text": "b"}]},
            ],
        }])
        row = table.children[0]
        assert [c.type for c in row.children] == ["table_cell", "table_cell"]
        assert [c.text for c in row.children] == ["a", "b"]

    def test_equation_expression(self):
        [block] = normalize_blocks([{"type": "equation", "expression": "e=mc^2"}])
        assert block.text == "e=mc^2"


class TestFailSoft:
    def test_none_is_empty(self):
        assert normalize_blocks(None) == []

    def test_non_blocks_dropped_with_warning(self):
        normalizer = BlockNormalizer()
        blocks = normalizer.normalize([42, {"type": "paragraph", "text": "ok"}, "x"])
        assert [b.text for b in blocks] == ["ok"]
        assert [w.code for w in normalizer.warnings] == ["MALFORMED_BLOCK", "MALFORMED_BLOCK"]
        assert normalizer.warnings[0].context["path"] == "root/0"

    def test_failing_repair_is_isolated(self, monkeypatch):
        def explode(block):
            raise RuntimeError("boom")

        monkeypatch.setattr(
            normalizer_module,
            "_REPAIRS",
            (("explode", explode),) + normalizer_module._REPAIRS,
        )
        normalizer = BlockNormalizer()
        [block] = normalizer.normalize([{"type": "numbered_list_item", "text": "a"}])

        assert block.list_type is ListType.NUMBERED
        [warning] = normalizer.warnings
        assert warning.code == "NORMALIZE_FAILED"
        assert warning.context["step"] == "explode"
        assert warning.context["path"] == "root/0"

    def test_max_depth(self):
        normalizer = BlockNormalizer(max_depth=2)
        tree = [{
            "type": "toggle",
            "children": [{
                "type": "toggle",
                "children": [{"type": "paragraph", "text": "deep"}],
            }],
        }]
        [outer] = normalizer.normalize(tree)
        assert outer.children[0].children == ()
        assert [w.code for w in normalizer.warnings] == ["MAX_DEPTH"]

    def test_max_depth_code_is_an_error_code(self):
        normalizer = BlockNormalizer(max_depth=1)
        normalizer.normalize([{"type": "toggle", "children": [{"type": "paragraph"}]}])
        assert normalizer.warnings[0].code == ErrorCode.MAX_DEPTH.value

    def test_icon_with_non_object_payload_keeps_block(self):
        normalizer = BlockNormalizer()
        blocks = normalizer.normalize([
            {
                "type": "callout",
                "text": "keep me",
                "icon": {"type": "external", "external": "oops"},
                "children": [{"type": "paragraph", "text": "inside"}],
            },
            {"type": "paragraph", "text": "sibling"},
        ])
        assert [b.type for b in blocks] == ["callout", "paragraph"]
        assert blocks[0].text == "keep me"
        assert blocks[0].icon is None
        assert blocks[0].children[0].text == "inside"
        assert normalizer.warnings == []

    def test_ill_typed_media_fields_are_ignored(self):
        [image, video] = normalize_blocks([
            {"type": "image", "media": "oops", "media_url": "https://x.io/a.png"},
            {"type": "video", "media": {"kind": "video", "url": {"href": "x"}}},
        ])
        assert image.media.url == "https://x.io/a.png"
        assert video.media.kind is MediaKind.VIDEO
        assert video.media.url is None

    def test_unreadable_block_passes_through(self):
        normalizer = BlockNormalizer()
        raw = _UnreadableIcon({
            "type": "callout",
            "id": "c1",
            "text": "keep me",
            "icon": "💡",
            "children": [{"type": "numbered_list_item", "text": "child"}],
        })
        blocks = normalizer.normalize([raw, {"type": "paragraph", "text": "sibling"}])

        assert [b.type for b in blocks] == ["callout", "paragraph"]
        callout = blocks[0]
        assert (callout.id, callout.text, callout.icon) == ("c1", "keep me", None)
        [child] = callout.children
        assert child.list_type is ListType.NUMBERED
        [warning] = normalizer.warnings
        assert warning.code == ErrorCode.MALFORMED_BLOCK.value
        assert warning.context["block_type"] == "callout"
        assert warning.context["path"] == "root/0"

    def test_unreadable_block_still_renders(self):
        raw = _UnreadableIcon({"type": "callout", "text": "keep me", "icon": "💡"})
        [node] = render_blocks([raw])
        assert node.kind is NodeKind.CALLOUT
        assert plain_text(node.runs) == "keep me"

    def test_malformed_icon_callout_renders(self):
        [node] = render_blocks([
            {"type": "callout", "text": "keep me", "icon": {"type": "file", "file": 7}},
        ])
        assert node.kind is NodeKind.CALLOUT

    def test_warnings_reset_per_call(self):
        normalizer = BlockNormalizer()
        normalizer.normalize([1])
        normalizer.normalize([])
        assert normalizer.warnings == []

    def test_input_not_mutated(self):
        raw = {"type": "numbered_list_item", "text": "a"}
        normalize_blocks([raw])
        assert raw == {"type": "numbered_list_item", "text": "a"}


class TestBlockInput:
    def test_canonical_block_passes_through(self):
        block = Block(type="paragraph", text="x")
        assert normalize_blocks([block]) == [block]

    def test_mixed_input(self):
        blocks = normalize_blocks([Block(type="divider"), {"type": "divider"}])
        assert blocks[0] == blocks[1]


# ---------------------------------------------------------------------------
# Idempotence
# ---------------------------------------------------------------------------

_annotation_st = st.fixed_dictionaries(
    {"start": st.integers(0, 10), "end": st.integers(0, 10)},
    optional={
        "bold": st.booleans(),
        "color": st.sampled_from(
            ["yellowbackground", "blue", "red_background", "background", "default"]
        ),
    },
)

_leaf_st = st.fixed_dictionaries(
    {
        "type": st.sampled_from([
            "paragraph", "numbered_list_item", "bulleted_list_item", "toggle",
            "table", "column_list", "column", "image", "video", "callout", "mystery",
        ]),
    },
    optional={
        "text": st.text(max_size=10),
        "annotations": st.lists(_annotation_st, max_size=3),
        "media_url": st.sampled_from([
            "https://cdn.example.com/a.heic",
            "https://cdn.example.com/a.png",
            "https://youtu.be/abc",
        ]),
        "icon": st.sampled_from(["⭐", {"type": "emoji", "emoji": "💡"}]),
    },
)

_tree_st = st.recursive(
    _leaf_st,
    lambda children: st.builds(
        lambda block, kids: {**block, "children": kids},
        _leaf_st,
        st.lists(children, max_size=3),
    ),
    max_leaves=12,
)


class TestIdempotence:
    @settings(max_examples=75)
    @given(st.lists(_tree_st, max_size=5))
    def test_normalize_twice_equals_once(self, tree):
        once = normalize_blocks(tree)
        assert normalize_blocks(once) == once
