"""Boundary helpers between stored content items and the render pipeline.

Content reaches the renderer from two places: a direct fetch of a stored
item and a search result.  Both carry the same ``content`` field, which
may be a decoded list or a JSON string.  :func:`render_content` is the one
path both must take so that identical blocks always render identically.
"""

from __future__ import annotations

import json
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from notionrender.config import RendererConfig
from notionrender.errors import ContentParseError
from notionrender.media import detect_orientation
from notionrender.models import Block, MediaKind, Orientation, RenderResult, RenderWarning
from notionrender.normalizer import BlockNormalizer, is_heic_url, normalize_blocks
from notionrender.observability import NoopNotifier, get_logger
from notionrender.renderer import BlockTreeRenderer

log = get_logger("notionrender.content")


@dataclass
class ProcessedContent:
    """A content item prepared for display.

    Attributes
    ----------
    item:
        Shallow copy of the original item fields.
    blocks:
        The normalized block tree (empty when the content was unusable).
    orientation:
        Shape of the first image, used to lay out the page header.
    preview_image:
        URL of the first image in the content, if any.
    preview_is_heic:
        Whether :attr:`preview_image` is a HEIC resource.
    cover_image:
        The item's cover image, falling back to :attr:`preview_image`.
    is_heic_cover:
        Whether :attr:`cover_image` is a HEIC resource.
    warnings:
        Normalization warnings.
    """

    item: dict[str, Any]
    blocks: list[Block] = field(default_factory=list)
    orientation: Orientation = Orientation.LANDSCAPE
    preview_image: str | None = None
    preview_is_heic: bool = False
    cover_image: str | None = None
    is_heic_cover: bool = False
    warnings: list[RenderWarning] = field(default_factory=list)

    @property
    def id(self) -> str | None:
        value = self.item.get("id")
        return str(value) if value is not None else None


def parse_content(raw: Any) -> list:
    """Decode stored content into a raw block list.

    Accepts a list, a JSON string or bytes, or ``None``.  Anything that
    does not decode to a JSON array yields ``[]``; this function never
    raises.
    """
    if raw is None:
        return []
    if isinstance(raw, (list, tuple)):
        return list(raw)

    if isinstance(raw, (bytes, bytearray)):
        try:
            raw = bytes(raw).decode("utf-8")
        except UnicodeDecodeError as exc:
            _parse_failed("content is not valid UTF-8", "bytes", exc.start, exc)
            return []

    if not isinstance(raw, str):
        _parse_failed(
            f"unsupported content type {type(raw).__name__}",
            type(raw).__name__,
            None,
            None,
        )
        return []

    if not raw.strip():
        return []
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        _parse_failed("content is not valid JSON", "str", exc.pos, exc)
        return []

    if not isinstance(data, list):
        _parse_failed(
            f"content JSON is a {type(data).__name__}, not an array",
            "str",
            None,
            None,
        )
        return []
    return data


def render_content(raw: Any, config: RendererConfig | None = None) -> RenderResult:
    """Parse stored content and run it through the render pipeline."""
    return BlockTreeRenderer(config).render_result(parse_content(raw))


def extract_first_image(blocks: Iterable[Block | Mapping]) -> tuple[str | None, bool]:
    """Return ``(url, is_heic)`` of the first image, depth first."""
    block = _find_first_image(normalize_blocks(list(blocks)))
    if block is None:
        return None, False
    return block.media.url, block.media.is_heic


def process_content_item(
    item: Mapping[str, Any],
    config: RendererConfig | None = None,
) -> ProcessedContent:
    """Prepare a stored content item for display.

    Normalizes the item's blocks, picks the first image as preview (and as
    cover when the item has none), detects HEIC covers, and derives the
    page orientation from the first image's dimensions.

    Failures are logged and reported to the configured notifier; the
    returned object then carries the item unchanged and no blocks.
    """
    config = config or RendererConfig()
    processed = ProcessedContent(item=dict(item))

    try:
        normalizer = BlockNormalizer(max_depth=config.max_depth)
        processed.blocks = normalizer.normalize(parse_content(item.get("content")))
        processed.warnings = normalizer.warnings

        first = _find_first_image(processed.blocks)
        if first is not None:
            media = first.media
            processed.preview_image = media.url
            processed.preview_is_heic = media.is_heic
            processed.orientation = detect_orientation(
                media.width, media.height, media.aspect_ratio
            )

        cover = item.get("cover_image")
        if isinstance(cover, str) and cover:
            processed.cover_image = cover
            processed.is_heic_cover = bool(item.get("is_heic_cover")) or is_heic_url(cover)
        elif processed.preview_image:
            processed.cover_image = processed.preview_image
            processed.is_heic_cover = processed.preview_is_heic
    except Exception as exc:
        error = ContentParseError(
            "content item could not be processed",
            context={"item_id": item.get("id")},
            cause=exc,
        )
        log.error(error.message, exc_info=exc, extra={"extra_fields": error.context})
        notifier = config.notifier or NoopNotifier()
        try:
            notifier.notify("Error processing content", error)
        except Exception:
            log.exception("notifier raised while reporting a content failure")
        return ProcessedContent(item=dict(item))

    return processed


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _find_first_image(blocks: Iterable[Block]) -> Block | None:
    for block in blocks:
        media = block.media
        if media is not None and media.kind is MediaKind.IMAGE and media.url:
            return block
        if block.children:
            found = _find_first_image(block.children)
            if found is not None:
                return found
    return None


def _parse_failed(
    message: str,
    input_type: str,
    position: int | None,
    cause: Exception | None,
) -> None:
    error = ContentParseError(
        message,
        context={"input_type": input_type, "position": position},
        cause=cause,
    )
    log.warning(error.message, extra={"extra_fields": error.context})
