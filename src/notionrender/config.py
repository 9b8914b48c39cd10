"""Renderer configuration for notionrender.

:class:`RendererConfig` is a dataclass that captures every tuneable knob
of the normalize -> render pipeline.  One instance is shared by the
:class:`~notionrender.renderer.BlockTreeRenderer`, the
:class:`~notionrender.media.MediaResolver` and the content helpers.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal

# ---------------------------------------------------------------------------
# Defaults
# ---------------------------------------------------------------------------

DEFAULT_VIDEO_EMBED_BASE = "https://www.youtube.com/embed/"
"""Prefix for rewritten video-sharing watch URLs."""

_BLOCK_ERROR_POLICIES = ("skip", "placeholder", "raise")
_UNSUPPORTED_POLICIES = ("text", "skip")


# ---------------------------------------------------------------------------
# Configuration dataclass
# ---------------------------------------------------------------------------

@dataclass
class RendererConfig:
    """Complete configuration for a render pass.

    Every parameter has a sensible default.

    Parameters
    ----------
    default_image_alt:
        Alt text for images that carry neither caption nor text.
    default_video_title:
        Accessible title for video frames without caption or text.
    default_embed_title:
        Accessible title for embed frames without caption or text.
    heic_message:
        Message shown in place of a HEIC image.
    media_failed_message:
        Message shown when a media unit fails to load at display time.
    error_message:
        Message of the single placeholder that replaces the output of a
        failed render pass, and of the notification sent with it.
    block_error_policy:
        What to do when one block fails to render.

        * ``"skip"`` -- log, record a warning, emit nothing for the block.
        * ``"placeholder"`` -- additionally emit an ``ERROR`` node.
        * ``"raise"`` -- let the failure reach the whole-tree guard.
    unsupported_block_policy:
        How to render block types with no layout rule.

        * ``"text"`` -- a generic text node when the block has text.
        * ``"skip"`` -- silently omit.
    video_embed_base:
        Prefix used when rewriting video-sharing watch URLs to their
        embeddable form.
    max_depth:
        Maximum nesting depth rendered.  Deeper children are dropped with
        a ``MAX_DEPTH`` warning.
    metrics:
        Optional :class:`~notionrender.observability.MetricsHook`.
    notifier:
        Optional :class:`~notionrender.observability.Notifier` that
        receives whole-tree render failures.
    """

    # ── Media ───────────────────────────────────────────────────────────
    default_image_alt: str = "Notion image"

    default_video_title: str = "Embedded video"

    default_embed_title: str = "Embedded content"

    heic_message: str = "HEIC format - not supported by most browsers"

    media_failed_message: str = "Failed to load media"

    video_embed_base: str = DEFAULT_VIDEO_EMBED_BASE

    # ── Error handling ──────────────────────────────────────────────────
    error_message: str = "Error rendering content"

    block_error_policy: Literal["skip", "placeholder", "raise"] = "skip"

    unsupported_block_policy: Literal["text", "skip"] = "text"

    max_depth: int = 64

    # ── Observability ───────────────────────────────────────────────────
    metrics: Any | None = None

    notifier: Any | None = None

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        if self.block_error_policy not in _BLOCK_ERROR_POLICIES:
            raise ValueError(
                f"block_error_policy must be one of {_BLOCK_ERROR_POLICIES}, "
                f"got {self.block_error_policy!r}"
            )
        if self.unsupported_block_policy not in _UNSUPPORTED_POLICIES:
            raise ValueError(
                f"unsupported_block_policy must be one of {_UNSUPPORTED_POLICIES}, "
                f"got {self.unsupported_block_policy!r}"
            )
        if self.max_depth < 1:
            raise ValueError(f"max_depth must be >= 1, got {self.max_depth}")
        if not self.video_embed_base.endswith("/"):
            raise ValueError(
                f"video_embed_base must end with '/', got {self.video_embed_base!r}"
            )
