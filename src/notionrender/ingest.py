"""Notion API block objects to the simplified stored block shape.

The sync job stores page content in a flat, renderer-friendly shape
instead of raw API payloads::

    {"type": "paragraph", "text": "Hello world",
     "annotations": [{"start": 0, "end": 5, "bold": true, ...}]}

This module performs that conversion on payloads that are already in
memory.  Children must already be attached under ``children`` (either at
the top level or inside the type-specific object); nothing here talks to
the network or backs up images.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from notionrender.models import LIST_ITEM_TYPES
from notionrender.normalizer import is_heic_url

_BACKGROUND_SUFFIX = "_background"

_MEDIA_FILE_TYPES: frozenset[str] = frozenset({"image", "video"})


def extract_rich_text(rich_text: Any) -> str:
    """Concatenate the ``plain_text`` of every rich_text segment."""
    if not isinstance(rich_text, list):
        return ""
    return "".join(_segment_text(seg) for seg in rich_text)


def extract_annotations(rich_text: Any) -> list[dict]:
    """Build positional annotations for every styled or linked segment.

    Offsets are running character positions over the concatenated plain
    text.  A ``"<name>_background"`` color is stored as
    ``background_color: "<name>"``; any other non-default color as
    ``color``.
    """
    if not isinstance(rich_text, list):
        return []

    annotations: list[dict] = []
    position = 0
    for seg in rich_text:
        text = _segment_text(seg)
        length = len(text)
        seg_annotations = seg.get("annotations") if isinstance(seg, Mapping) else None
        href = seg.get("href") if isinstance(seg, Mapping) else None

        if isinstance(seg_annotations, Mapping):
            color = seg_annotations.get("color") or "default"
            flags = {
                key: bool(seg_annotations.get(key, False))
                for key in ("bold", "italic", "strikethrough", "underline", "code")
            }
            if any(flags.values()) or color != "default" or href:
                annotation: dict = {
                    "text": text,
                    "start": position,
                    "end": position + length,
                    **flags,
                }
                if color != "default":
                    if color.endswith(_BACKGROUND_SUFFIX):
                        base = color[: -len(_BACKGROUND_SUFFIX)]
                        if base and base != "default":
                            annotation["background_color"] = base
                    else:
                        annotation["color"] = color
                if href:
                    annotation["href"] = href
                annotations.append(annotation)

        position += length
    return annotations


def simplify_block(block: Mapping[str, Any]) -> dict:
    """Convert one Notion API block (and its attached children)."""
    block_type = block.get("type", "")
    data = block.get(block_type)
    if not isinstance(data, Mapping):
        data = {}

    result: dict = {"type": block_type}
    if block.get("id"):
        result["id"] = block["id"]

    rich_text = data.get("rich_text")
    if isinstance(rich_text, list):
        result["text"] = extract_rich_text(rich_text)
        result["annotations"] = extract_annotations(rich_text)

    if block_type in LIST_ITEM_TYPES:
        result["is_list_item"] = True
        result["list_type"] = LIST_ITEM_TYPES[block_type].value
    elif block_type == "to_do":
        result["checked"] = bool(data.get("checked", False))
    elif block_type == "code":
        result["language"] = data.get("language", "")
    elif block_type == "callout":
        if data.get("icon"):
            result["icon"] = data["icon"]
    elif block_type in _MEDIA_FILE_TYPES:
        _simplify_media(block_type, data, result)
    elif block_type == "embed":
        result["media_type"] = "embed"
        result["media_url"] = data.get("url") or None
        result["caption"] = extract_rich_text(data.get("caption")) or None
    elif block_type == "equation":
        result["text"] = data.get("expression", "")
    elif block_type == "table":
        result["table_width"] = data.get("table_width", 0)
        result["has_row_header"] = bool(data.get("has_row_header", False))
        result["has_column_header"] = bool(data.get("has_column_header", False))
    elif block_type == "table_row":
        result["cells"] = [
            {"text": extract_rich_text(cell), "annotations": extract_annotations(cell)}
            for cell in data.get("cells", [])
        ]

    children = block.get("children") or data.get("children")
    if isinstance(children, list):
        result["children"] = simplify_blocks(children)
    return result


def simplify_blocks(blocks: Iterable[Mapping[str, Any]]) -> list[dict]:
    """Convert a list of Notion API blocks, skipping non-object entries."""
    return [simplify_block(b) for b in blocks if isinstance(b, Mapping)]


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _segment_text(seg: Any) -> str:
    # API responses use "plain_text"; locally-built segments use "text.content".
    if not isinstance(seg, Mapping):
        return ""
    text = seg.get("plain_text")
    if isinstance(text, str):
        return text
    content = (seg.get("text") or {}).get("content", "")
    return content if isinstance(content, str) else ""


def _file_url(data: Mapping[str, Any]) -> str | None:
    """URL of an ``external`` or Notion-hosted ``file`` object."""
    file_type = data.get("type", "")
    if file_type in ("external", "file"):
        url = (data.get(file_type) or {}).get("url")
        return url or None
    return None


def _simplify_media(block_type: str, data: Mapping[str, Any], result: dict) -> None:
    url = _file_url(data)
    result["media_type"] = block_type
    result["media_url"] = url
    result["caption"] = extract_rich_text(data.get("caption")) or None

    if block_type == "image":
        if is_heic_url(url):
            result["is_heic"] = True
        width, height = data.get("width"), data.get("height")
        if width and height:
            result["width"] = width
            result["height"] = height
            result["aspect_ratio"] = width / height
