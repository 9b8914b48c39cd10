"""notionrender: normalize and render Notion-synced block trees.

Public re-exports
-----------------

* **Rendering:** :class:`BlockTreeRenderer`, :func:`render_blocks`
* **Normalization:** :class:`BlockNormalizer`, :func:`normalize_blocks`
* **Content boundary:** :func:`parse_content`, :func:`render_content`,
  :func:`process_content_item`, :func:`extract_first_image`
* **Configuration:** :class:`RendererConfig`
* **Errors:** Every :class:`NotionRenderError` subclass and :class:`ErrorCode`
* **Models:** Input blocks, render nodes and supporting types

Usage::

    from notionrender import RendererConfig, render_content
    from notionrender.adapters import to_html

    result = render_content(item["content"], RendererConfig())
    html = to_html(result.nodes)
"""

from __future__ import annotations

# ── Configuration ───────────────────────────────────────────────────────
from notionrender.config import DEFAULT_VIDEO_EMBED_BASE, RendererConfig

# ── Content boundary ────────────────────────────────────────────────────
from notionrender.content import (
    ProcessedContent,
    extract_first_image,
    parse_content,
    process_content_item,
    render_content,
)

# ── Errors ──────────────────────────────────────────────────────────────
from notionrender.errors import (
    AnnotationError,
    BlockNormalizationError,
    BlockRenderError,
    ContentParseError,
    ErrorCode,
    NotionRenderError,
    UnsupportedBlockError,
)

# ── Ingestion ───────────────────────────────────────────────────────────
from notionrender.ingest import simplify_block, simplify_blocks
from notionrender.list_counter import ListCounterTracker

# ── Pipeline stages ─────────────────────────────────────────────────────
from notionrender.media import MediaResolver, detect_orientation, youtube_embed_url

# ── Models ──────────────────────────────────────────────────────────────
from notionrender.models import (
    AnnotationRange,
    Block,
    Icon,
    LineBreak,
    ListType,
    MediaKind,
    MediaPayload,
    MediaState,
    MediaUnit,
    NodeKind,
    Orientation,
    RenderNode,
    RenderResult,
    RenderWarning,
    StyledRun,
    TextStyle,
)
from notionrender.normalizer import BlockNormalizer, is_heic_url, normalize_blocks
from notionrender.renderer import BlockTreeRenderer, render_blocks
from notionrender.text_runs import resolve_runs

# ── Public surface ──────────────────────────────────────────────────────

__all__ = [
    # Rendering
    "BlockTreeRenderer",
    "render_blocks",
    # Pipeline stages
    "BlockNormalizer",
    "normalize_blocks",
    "is_heic_url",
    "ListCounterTracker",
    "MediaResolver",
    "detect_orientation",
    "youtube_embed_url",
    "resolve_runs",
    # Content boundary
    "ProcessedContent",
    "parse_content",
    "render_content",
    "extract_first_image",
    "process_content_item",
    # Ingestion
    "simplify_block",
    "simplify_blocks",
    # Configuration
    "RendererConfig",
    "DEFAULT_VIDEO_EMBED_BASE",
    # Error base + code enum
    "NotionRenderError",
    "ErrorCode",
    "BlockNormalizationError",
    "AnnotationError",
    "BlockRenderError",
    "UnsupportedBlockError",
    "ContentParseError",
    # Models: input
    "Block",
    "AnnotationRange",
    "MediaPayload",
    "Icon",
    "ListType",
    "MediaKind",
    # Models: output
    "RenderNode",
    "RenderResult",
    "RenderWarning",
    "StyledRun",
    "LineBreak",
    "TextStyle",
    "MediaUnit",
    "MediaState",
    "NodeKind",
    "Orientation",
]
