"""Repair stored block trees into one canonical :class:`Block` shape.

The normalizer walks the raw tree once and applies a fixed set of
independent repairs to every block:

* list-item types get their ``list_type`` and ``is_list_item`` flags;
* malformed ``"...background"`` annotation colors get the ``_background``
  suffix form;
* media pointing at a HEIC resource is flagged ``is_heic``;
* container types (table, table_row, column_list, column, toggle) always
  carry a child tuple;
* an icon's emoji is copied into ``emoji``.

Normalization is pure and idempotent: the output is a new tree of frozen
blocks and ``normalize(normalize(t)) == normalize(t)``.  A repair that
fails on one block is logged and recorded as a warning; the block passes
through with whatever other repairs succeeded.  A block whose fields
cannot be read keeps its type and text, and its children are still
normalized.

Usage::

    from notionrender.normalizer import BlockNormalizer

    normalizer = BlockNormalizer()
    blocks = normalizer.normalize(json.loads(stored_content))
    for warning in normalizer.warnings:
        ...
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from dataclasses import replace

from notionrender.errors import BlockNormalizationError, ErrorCode
from notionrender.models import (
    LIST_ITEM_TYPES,
    Block,
    RenderWarning,
    raw_children,
)
from notionrender.observability import get_logger

log = get_logger("notionrender.normalizer")

# Block types whose ``children`` must never be None after normalization.
_CONTAINER_TYPES: frozenset[str] = frozenset({
    "table",
    "table_row",
    "column_list",
    "column",
    "toggle",
})

_HEIC_MARKERS: tuple[str, ...] = ("/heic", "heic.", "image/heic")

DEFAULT_MAX_DEPTH = 64


def is_heic_url(url: str | None) -> bool:
    """Return True if *url* looks like a HEIC image (case-insensitive)."""
    if not url:
        return False
    lowered = url.lower()
    return lowered.endswith(".heic") or any(m in lowered for m in _HEIC_MARKERS)


# ---------------------------------------------------------------------------
# Repairs
# ---------------------------------------------------------------------------

def _repair_list_type(block: Block) -> Block:
    inferred = LIST_ITEM_TYPES.get(block.type)
    if inferred is None:
        return block
    if block.list_type is not None and block.is_list_item:
        return block
    return replace(block, list_type=block.list_type or inferred, is_list_item=True)


def _repair_background_colors(block: Block) -> Block:
    if not block.annotations:
        return block
    repaired = []
    changed = False
    for annotation in block.annotations:
        color = annotation.color
        if color and "background" in color and "_background" not in color:
            annotation = replace(
                annotation, color=color.replace("background", "_background", 1)
            )
            changed = True
        repaired.append(annotation)
    return replace(block, annotations=tuple(repaired)) if changed else block


def _repair_heic_flag(block: Block) -> Block:
    media = block.media
    if media is None or media.is_heic or not is_heic_url(media.url):
        return block
    log.info(
        "HEIC media detected",
        extra={"extra_fields": {"block_id": block.id, "url": media.url}},
    )
    return replace(block, media=replace(media, is_heic=True))


def _repair_container_children(block: Block) -> Block:
    if block.children is None and block.type in _CONTAINER_TYPES:
        return replace(block, children=())
    return block


def _repair_icon_emoji(block: Block) -> Block:
    if block.emoji is None and block.icon is not None and block.icon.emoji:
        return replace(block, emoji=block.icon.emoji)
    return block


_REPAIRS: tuple[tuple[str, Callable[[Block], Block]], ...] = (
    ("list_type", _repair_list_type),
    ("background_color", _repair_background_colors),
    ("heic", _repair_heic_flag),
    ("container_children", _repair_container_children),
    ("icon_emoji", _repair_icon_emoji),
)


def _salvage(raw: Mapping) -> Block:
    """Keep what can be read safely from a block ``Block.from_dict`` rejected."""
    fields = {}
    for key in ("type", "id", "text"):
        try:
            value = raw.get(key)
        except Exception:
            continue
        if isinstance(value, str):
            fields[key] = value
    return Block(
        type=fields.get("type", ""),
        id=fields.get("id"),
        text=fields.get("text"),
    )


# ---------------------------------------------------------------------------
# Normalizer
# ---------------------------------------------------------------------------

class BlockNormalizer:
    """Fail-soft, idempotent block tree normalizer.

    Parameters
    ----------
    max_depth:
        Children nested deeper than this are dropped with a ``MAX_DEPTH``
        warning instead of recursing further.
    """

    def __init__(self, max_depth: int = DEFAULT_MAX_DEPTH) -> None:
        self._max_depth = max_depth
        self.warnings: list[RenderWarning] = []

    def normalize(self, tree: Iterable[Block | Mapping] | None) -> list[Block]:
        """Normalize a block tree.

        Parameters
        ----------
        tree:
            Raw block dicts, already-normalized :class:`Block` objects, or
            a mix.  ``None`` is treated as an empty tree.

        Returns
        -------
        list[Block]
            The canonical tree.  Items that are not blocks at all are
            dropped with a ``MALFORMED_BLOCK`` warning.
        """
        self.warnings = []
        if tree is None:
            return []
        return self._normalize_list(tree, "root", 0)

    # ------------------------------------------------------------------
    # Internal: traversal
    # ------------------------------------------------------------------

    def _normalize_list(
        self, items: Iterable[Block | Mapping], path: str, depth: int
    ) -> list[Block]:
        result: list[Block] = []
        for index, item in enumerate(items):
            block = self._normalize_item(item, f"{path}/{index}", depth)
            if block is not None:
                result.append(block)
        return result

    def _normalize_item(
        self, item: Block | Mapping, path: str, depth: int
    ) -> Block | None:
        if isinstance(item, Block):
            block = item
            child_items: Iterable | None = item.children
        elif isinstance(item, Mapping):
            try:
                block = Block.from_dict(item, recursive=False)
            except Exception as exc:
                block = _salvage(item)
                self._record(
                    ErrorCode.MALFORMED_BLOCK,
                    "block could not be read; keeping type and text only",
                    {"path": path, "block_type": block.type, "error": repr(exc)},
                )
            try:
                child_items = raw_children(item)
            except Exception as exc:
                child_items = None
                self._record(
                    ErrorCode.MALFORMED_BLOCK,
                    "children could not be read",
                    {"path": path, "block_type": block.type, "error": repr(exc)},
                )
        else:
            self._record(
                ErrorCode.MALFORMED_BLOCK,
                f"expected a block object, got {type(item).__name__}",
                {"path": path},
            )
            return None

        children: tuple[Block, ...] | None = None
        if child_items is not None:
            if depth + 1 >= self._max_depth:
                self._record(
                    ErrorCode.MAX_DEPTH,
                    f"children deeper than {self._max_depth} levels dropped",
                    {"path": path, "block_type": block.type},
                )
                children = ()
            else:
                children = tuple(self._normalize_list(child_items, path, depth + 1))
        if children != block.children:
            block = replace(block, children=children)

        for step, repair in _REPAIRS:
            try:
                block = repair(block)
            except Exception as exc:
                error = BlockNormalizationError(
                    f"repair step {step!r} failed",
                    context={"block_type": block.type, "block_id": block.id, "step": step},
                    cause=exc,
                )
                self._record(error.code, error.message, {**error.context, "path": path})
        return block

    def _record(self, code: str, message: str, context: dict) -> None:
        code = getattr(code, "value", code)
        log.warning(message, extra={"extra_fields": {"code": code, **context}})
        self.warnings.append(RenderWarning(code=code, message=message, context=context))


def normalize_blocks(tree: Iterable[Block | Mapping] | None) -> list[Block]:
    """Normalize *tree* with a throwaway :class:`BlockNormalizer`."""
    return BlockNormalizer().normalize(tree)
