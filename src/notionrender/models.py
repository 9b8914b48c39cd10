"""Data models for notionrender.

Input side
    :class:`Block`, :class:`AnnotationRange`, :class:`MediaPayload` and
    :class:`Icon` are frozen dataclasses.  ``from_dict`` constructors read
    both the current key spellings and the legacy ones found in older
    stored content, and never raise on a missing or ill-typed field.

Output side
    :class:`RenderNode` trees made of :class:`StyledRun` / :class:`LineBreak`
    runs, with :class:`MediaUnit` as the only mutable piece (its display
    state can change after rendering when the host reports a load failure).
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Union

if TYPE_CHECKING:
    from notionrender.errors import NotionRenderError


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class ListType(str, Enum):
    """List container flavour."""

    NUMBERED = "numbered_list"
    BULLETED = "bulleted_list"

    @classmethod
    def parse(cls, value: Any) -> ListType | None:
        """Map ``"numbered"``/``"numbered_list"`` style spellings to a member."""
        if isinstance(value, ListType):
            return value
        if not isinstance(value, str):
            return None
        key = value.strip().lower()
        if key in ("numbered", "numbered_list", "numbered_list_item"):
            return cls.NUMBERED
        if key in ("bulleted", "bulleted_list", "bulleted_list_item"):
            return cls.BULLETED
        return None


class MediaKind(str, Enum):
    """Kinds of media the pipeline can display."""

    IMAGE = "image"
    VIDEO = "video"
    EMBED = "embed"

    @classmethod
    def parse(cls, value: Any) -> MediaKind | None:
        if isinstance(value, MediaKind):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip().lower())
            except ValueError:
                return None
        return None


class Orientation(str, Enum):
    """Shape of an image, used to lay out cover and preview images."""

    PORTRAIT = "portrait"
    LANDSCAPE = "landscape"
    SQUARE = "square"


class NodeKind(str, Enum):
    """Discriminant of a :class:`RenderNode`."""

    HEADING = "heading"
    PARAGRAPH = "paragraph"
    QUOTE = "quote"
    TO_DO = "to_do"
    DIVIDER = "divider"
    CALLOUT = "callout"
    CODE = "code"
    TOGGLE = "toggle"
    TABLE = "table"
    TABLE_ROW = "table_row"
    TABLE_CELL = "table_cell"
    COLUMN_LIST = "column_list"
    COLUMN = "column"
    EQUATION = "equation"
    MEDIA = "media"
    LIST = "list"
    LIST_ITEM = "list_item"
    TEXT = "text"
    ERROR = "error"


class MediaState(str, Enum):
    """Display state of a :class:`MediaUnit`."""

    READY = "ready"
    """The media can be shown as-is."""

    UNSUPPORTED = "unsupported"
    """Known format the display cannot decode (HEIC); show a link instead."""

    FAILED = "failed"
    """The host reported a load or playback failure."""


LIST_ITEM_TYPES: dict[str, ListType] = {
    "bulleted_list_item": ListType.BULLETED,
    "numbered_list_item": ListType.NUMBERED,
}


# ---------------------------------------------------------------------------
# Field coercion helpers
# ---------------------------------------------------------------------------

def _first(raw: Mapping, *keys: str) -> Any:
    """Return the first non-None value among *keys*."""
    for key in keys:
        value = raw.get(key)
        if value is not None:
            return value
    return None


def _str_or_none(value: Any) -> str | None:
    return value if isinstance(value, str) else None


def _int_or_none(value: Any) -> int | None:
    # bool is an int subclass; a flag is never a position.
    if isinstance(value, bool) or not isinstance(value, int):
        return None
    return value


def _number_or_none(value: Any) -> float | None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return value


# ---------------------------------------------------------------------------
# Input model
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class AnnotationRange:
    """A formatting instruction over a span of a block's text.

    Positional annotations carry ``start``/``end`` offsets into the parent
    block's text.  Legacy annotations carry their own ``text`` and no
    offsets; they describe a whole segment on their own.
    """

    start: int | None = None
    end: int | None = None
    text: str | None = None
    bold: bool = False
    italic: bool = False
    underline: bool = False
    strikethrough: bool = False
    code: bool = False
    color: str | None = None
    background_color: str | None = None
    href: str | None = None

    @property
    def is_positional(self) -> bool:
        return self.start is not None or self.end is not None

    @classmethod
    def from_dict(cls, raw: Mapping) -> AnnotationRange:
        return cls(
            start=_int_or_none(raw.get("start")),
            end=_int_or_none(raw.get("end")),
            text=_str_or_none(raw.get("text")),
            bold=bool(raw.get("bold")),
            italic=bool(raw.get("italic")),
            underline=bool(raw.get("underline")),
            strikethrough=bool(raw.get("strikethrough")),
            code=bool(raw.get("code")),
            color=_str_or_none(raw.get("color")),
            background_color=_str_or_none(
                _first(raw, "background_color", "backgroundColor")
            ),
            href=_str_or_none(raw.get("href")),
        )


@dataclass(frozen=True)
class Icon:
    """Leading icon of a heading, callout or toggle."""

    emoji: str | None = None
    url: str | None = None

    @classmethod
    def from_raw(cls, raw: Any) -> Icon | None:
        """Build an icon from a bare emoji string or a Notion icon object."""
        if isinstance(raw, str):
            return cls(emoji=raw) if raw else None
        if not isinstance(raw, Mapping):
            return None
        emoji = _str_or_none(raw.get("emoji"))
        if emoji:
            return cls(emoji=emoji)
        icon_type = raw.get("type")
        if icon_type in ("external", "file"):
            nested = raw.get(icon_type)
            if isinstance(nested, Mapping):
                url = _str_or_none(nested.get("url"))
                if url:
                    return cls(url=url)
        url = _str_or_none(raw.get("url"))
        return cls(url=url) if url else None


@dataclass(frozen=True)
class MediaPayload:
    """Unified media payload of an image, video or embed block."""

    kind: MediaKind
    url: str | None = None
    caption: str | None = None
    is_heic: bool = False
    width: float | None = None
    height: float | None = None
    aspect_ratio: float | None = None

    @classmethod
    def from_block_dict(cls, raw: Mapping) -> MediaPayload | None:
        """Derive the payload from a block dict, if the block is media.

        Accepts the canonical nested ``media`` object as well as the flat
        ``media_url`` / ``url`` / ``media_type`` fields of stored content.
        """
        nested = raw.get("media")
        if isinstance(nested, Mapping):
            source: Mapping = nested
            kind = MediaKind.parse(_first(nested, "kind", "type"))
        else:
            source = raw
            kind = MediaKind.parse(_first(raw, "media_type", "mediaType"))
            if kind is None:
                kind = MediaKind.parse(raw.get("type"))
        if kind is None:
            return None

        url = _str_or_none(_first(source, "media_url", "mediaUrl", "url"))
        caption = _str_or_none(source.get("caption"))
        if caption is None and source is not raw:
            caption = _str_or_none(raw.get("caption"))
        return cls(
            kind=kind,
            url=url or None,
            caption=caption,
            is_heic=bool(_first(source, "is_heic", "isHeic")),
            width=_number_or_none(source.get("width")),
            height=_number_or_none(source.get("height")),
            aspect_ratio=_number_or_none(_first(source, "aspect_ratio", "aspectRatio")),
        )


def raw_children(raw: Mapping) -> list | None:
    """Return the raw child list of a block dict.

    A ``table_row`` stored in the ingestion shape carries ``cells`` (each
    ``{"text", "annotations"}``) instead of child blocks; those cells are
    returned as ``table_cell`` block dicts.
    """
    children = raw.get("children")
    if isinstance(children, (list, tuple)):
        return list(children)
    cells = raw.get("cells")
    if raw.get("type") == "table_row" and isinstance(cells, (list, tuple)):
        converted: list = []
        for cell in cells:
            if isinstance(cell, Mapping):
                converted.append({"type": "table_cell", **cell})
            elif isinstance(cell, str):
                converted.append({"type": "table_cell", "text": cell})
            else:
                converted.append({"type": "table_cell"})
        return converted
    return None


@dataclass(frozen=True)
class Block:
    """One node of the content tree, in canonical form."""

    type: str
    id: str | None = None
    text: str | None = None
    annotations: tuple[AnnotationRange, ...] = ()
    children: tuple[Block, ...] | None = None
    is_list_item: bool = False
    list_type: ListType | None = None
    checked: bool = False
    language: str | None = None
    icon: Icon | None = None
    emoji: str | None = None
    media: MediaPayload | None = None
    has_row_header: bool = False
    has_column_header: bool = False
    table_width: int | None = None

    @property
    def effective_list_type(self) -> ListType | None:
        """The list flavour of this block, or None if it is not a list item."""
        inferred = LIST_ITEM_TYPES.get(self.type)
        if self.is_list_item or inferred is not None:
            return self.list_type or inferred
        return None

    @classmethod
    def from_dict(cls, raw: Mapping, *, recursive: bool = True) -> Block:
        """Read a block dict in any of the stored shapes.

        With ``recursive=False`` the returned block has no children; the
        normalizer uses this to guard each child on its own.
        """
        block_type = _str_or_none(raw.get("type")) or ""
        text = _str_or_none(raw.get("text"))
        if text is None and block_type == "equation":
            text = _str_or_none(raw.get("expression"))

        annotations_raw = raw.get("annotations")
        annotations: tuple[AnnotationRange, ...] = ()
        if isinstance(annotations_raw, (list, tuple)):
            annotations = tuple(
                AnnotationRange.from_dict(a)
                for a in annotations_raw
                if isinstance(a, Mapping)
            )

        children: tuple[Block, ...] | None = None
        if recursive:
            child_dicts = raw_children(raw)
            if child_dicts is not None:
                children = tuple(
                    cls.from_dict(c) for c in child_dicts if isinstance(c, Mapping)
                )

        block_id = raw.get("id")
        return cls(
            type=block_type,
            id=str(block_id) if block_id is not None else None,
            text=text,
            annotations=annotations,
            children=children,
            is_list_item=bool(_first(raw, "is_list_item", "isListItem")),
            list_type=ListType.parse(_first(raw, "list_type", "listType")),
            checked=bool(raw.get("checked")),
            language=_str_or_none(raw.get("language")),
            icon=Icon.from_raw(raw.get("icon")),
            emoji=_str_or_none(raw.get("emoji")),
            media=MediaPayload.from_block_dict(raw),
            has_row_header=bool(_first(raw, "has_row_header", "hasRowHeader")),
            has_column_header=bool(_first(raw, "has_column_header", "hasColumnHeader")),
            table_width=_int_or_none(_first(raw, "table_width", "tableWidth")),
        )


# ---------------------------------------------------------------------------
# Output model
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class TextStyle:
    """Resolved style of a styled run."""

    bold: bool = False
    italic: bool = False
    underline: bool = False
    strikethrough: bool = False
    code: bool = False
    foreground_color: str | None = None
    background_color: str | None = None

    @property
    def is_plain(self) -> bool:
        return self == PLAIN_STYLE


PLAIN_STYLE = TextStyle()


@dataclass(frozen=True)
class StyledRun:
    """A contiguous segment of text with one resolved style."""

    text: str
    style: TextStyle = PLAIN_STYLE
    href: str | None = None


@dataclass(frozen=True)
class LineBreak:
    """Explicit line break between two resolved text segments."""


Run = Union[StyledRun, LineBreak]


@dataclass
class MediaUnit:
    """Display unit produced for an image, video or embed.

    The only mutable object in a render tree: :meth:`mark_failed` is the
    error-recovery hook a host calls when the browser (or any other
    consumer) fails to load the media.  It changes this unit only.
    """

    kind: MediaKind
    src: str | None
    original_url: str
    title: str
    caption: str | None = None
    state: MediaState = MediaState.READY
    message: str | None = None
    failed_message: str = "Failed to load media"
    direct: bool = False
    """True for a video URL played directly rather than in an embed frame."""

    @property
    def is_placeholder(self) -> bool:
        return self.state is not MediaState.READY

    def mark_failed(self, message: str | None = None) -> None:
        """Swap to the "failed to load" placeholder.  Idempotent."""
        if self.state is MediaState.FAILED:
            return
        self.state = MediaState.FAILED
        self.src = None
        self.message = message or self.failed_message


@dataclass(frozen=True)
class RenderNode:
    """Framework-agnostic output unit produced for one block."""

    kind: NodeKind
    runs: tuple[Run, ...] = ()
    children: tuple[RenderNode, ...] = ()
    props: dict[str, Any] = field(default_factory=dict)
    media: MediaUnit | None = None
    block_id: str | None = None


@dataclass
class RenderWarning:
    """A non-fatal issue encountered during normalization or rendering.

    Attributes
    ----------
    code:
        A machine-readable warning code (e.g. ``"BLOCK_RENDER_FAILED"``).
    message:
        A human-readable description of the issue.
    context:
        Arbitrary structured data for diagnostics.
    """

    code: str
    message: str
    context: dict = field(default_factory=dict)


@dataclass
class RenderResult:
    """Output of a full render pass.

    Attributes
    ----------
    nodes:
        Top-level render nodes in document order.
    warnings:
        Non-fatal issues collected by the normalizer and the renderer.
    failed:
        True when the whole pass failed and ``nodes`` holds only the error
        placeholder.
    error:
        The whole-tree failure, when ``failed`` is true.
    """

    nodes: list[RenderNode] = field(default_factory=list)
    warnings: list[RenderWarning] = field(default_factory=list)
    failed: bool = False
    error: NotionRenderError | None = None
