"""Media display rules for image, video and embed blocks.

Each rule turns a block's unified :class:`~notionrender.models.MediaPayload`
into a :class:`~notionrender.models.MediaUnit`:

* image -- HEIC resources become an ``UNSUPPORTED`` placeholder linking to
  the original; anything else is a ``READY`` image.
* video -- video-sharing watch and short links are rewritten to the
  embeddable URL; other URLs are played directly.
* embed -- the URL is an opaque frame source.

A block without a URL produces no unit at all.  Load failures that happen
later, in the host, go through :meth:`MediaUnit.mark_failed`.
"""

from __future__ import annotations

import re
from urllib.parse import parse_qs, urlparse

from notionrender.config import DEFAULT_VIDEO_EMBED_BASE, RendererConfig
from notionrender.models import Block, MediaKind, MediaState, MediaUnit, Orientation
from notionrender.normalizer import is_heic_url

_WATCH_HOSTS: frozenset[str] = frozenset({
    "youtube.com",
    "www.youtube.com",
    "m.youtube.com",
    "music.youtube.com",
})

_SHORT_LINK_HOSTS: frozenset[str] = frozenset({
    "youtu.be",
    "www.youtu.be",
})

_VIDEO_ID_RE = re.compile(r"^[A-Za-z0-9_-]+$")


def youtube_embed_url(url: str, base: str = DEFAULT_VIDEO_EMBED_BASE) -> str:
    """Rewrite a watch-page or short-link URL to its embeddable form.

    ``https://www.youtube.com/watch?v=ID`` and ``https://youtu.be/ID`` both
    become ``<base>ID``.  Any other URL, including one that is already an
    embed URL, is returned unchanged.
    """
    try:
        parsed = urlparse(url)
    except ValueError:
        return url

    host = (parsed.hostname or "").lower()
    video_id = ""
    if host in _WATCH_HOSTS and parsed.path.rstrip("/") == "/watch":
        video_id = (parse_qs(parsed.query).get("v") or [""])[0]
    elif host in _SHORT_LINK_HOSTS:
        video_id = parsed.path.strip("/").split("/")[-1]

    if video_id and _VIDEO_ID_RE.match(video_id):
        return f"{base}{video_id}"
    return url


def detect_orientation(
    width: float | None = None,
    height: float | None = None,
    aspect_ratio: float | None = None,
) -> Orientation:
    """Classify an image by its dimensions, falling back to *aspect_ratio*.

    Unknown dimensions default to landscape.
    """
    if width and height:
        if width > height:
            return Orientation.LANDSCAPE
        if height > width:
            return Orientation.PORTRAIT
        return Orientation.SQUARE
    if aspect_ratio:
        return Orientation.PORTRAIT if aspect_ratio < 1 else Orientation.LANDSCAPE
    return Orientation.LANDSCAPE


class MediaResolver:
    """Build :class:`MediaUnit` objects from normalized media blocks."""

    def __init__(self, config: RendererConfig) -> None:
        self._config = config

    def resolve(self, block: Block) -> MediaUnit | None:
        """Return the display unit for *block*, or None when it has no URL."""
        media = block.media
        if media is None or not media.url:
            return None

        if media.kind is MediaKind.IMAGE:
            return self._image(block)
        if media.kind is MediaKind.VIDEO:
            return self._video(block)
        return self._embed(block)

    # ------------------------------------------------------------------
    # Per-kind rules
    # ------------------------------------------------------------------

    def _image(self, block: Block) -> MediaUnit:
        media = block.media
        url = media.url
        caption = media.caption or block.text or None
        title = caption or self._config.default_image_alt

        if media.is_heic or is_heic_url(url):
            return MediaUnit(
                kind=MediaKind.IMAGE,
                src=None,
                original_url=url,
                title=title,
                caption=caption,
                state=MediaState.UNSUPPORTED,
                message=self._config.heic_message,
                failed_message=self._config.media_failed_message,
            )
        return MediaUnit(
            kind=MediaKind.IMAGE,
            src=url,
            original_url=url,
            title=title,
            caption=caption,
            failed_message=self._config.media_failed_message,
        )

    def _video(self, block: Block) -> MediaUnit:
        media = block.media
        url = media.url
        caption = media.caption or block.text or None
        src = youtube_embed_url(url, self._config.video_embed_base)
        embedded = src != url or "/embed/" in url
        return MediaUnit(
            kind=MediaKind.VIDEO,
            src=src,
            original_url=url,
            title=caption or self._config.default_video_title,
            caption=caption,
            failed_message=self._config.media_failed_message,
            direct=not embedded,
        )

    def _embed(self, block: Block) -> MediaUnit:
        media = block.media
        caption = media.caption or block.text or None
        return MediaUnit(
            kind=MediaKind.EMBED,
            src=media.url,
            original_url=media.url,
            title=caption or self._config.default_embed_title,
            caption=caption,
            failed_message=self._config.media_failed_message,
        )
