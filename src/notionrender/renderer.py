"""Block tree to :class:`RenderNode` tree renderer.

The renderer is the single entry point of the pipeline.  A render pass:

1. normalizes the input tree (:mod:`notionrender.normalizer`);
2. walks each sibling sequence left to right, grouping consecutive list
   items into ``LIST`` containers and numbering numbered lists through a
   per-pass :class:`~notionrender.list_counter.ListCounterTracker`;
3. dispatches every other block to its layout rule, recursing into
   children with the same grouping walk.

Failures are isolated per block (governed by
``config.block_error_policy``) and, as a last resort, for the whole pass:
the output then becomes a single ``ERROR`` node and the configured
notifier is told.

Usage::

    from notionrender.config import RendererConfig
    from notionrender.renderer import BlockTreeRenderer

    renderer = BlockTreeRenderer(RendererConfig())
    nodes = renderer.render(blocks)
"""

from __future__ import annotations

import time
from collections.abc import Callable, Iterable, Iterator, Mapping, Sequence

from notionrender.config import RendererConfig
from notionrender.errors import BlockRenderError, UnsupportedBlockError
from notionrender.list_counter import ListCounterTracker
from notionrender.media import MediaResolver
from notionrender.models import (
    Block,
    ListType,
    NodeKind,
    RenderNode,
    RenderResult,
    RenderWarning,
)
from notionrender.normalizer import BlockNormalizer
from notionrender.observability import NoopMetricsHook, NoopNotifier, get_logger
from notionrender.text_runs import resolve_runs

log = get_logger("notionrender.renderer")

# Block types with no visual representation.
_OMITTED_TYPES: frozenset[str] = frozenset({
    "div",
})

# Layout hint per column count; five or more columns share the grid hint.
_COLUMN_LAYOUTS: dict[int, str] = {
    1: "single",
    2: "halves",
    3: "thirds",
    4: "quarters",
}


class BlockTreeRenderer:
    """Render block trees into framework-agnostic :class:`RenderNode` trees.

    The renderer collects :class:`RenderWarning` instances in
    :attr:`warnings` during each pass.  A fresh list counter is created for
    every pass, so one renderer may be reused across requests.

    Parameters
    ----------
    config:
        Rendering configuration.  Defaults to :class:`RendererConfig()`.
    """

    def __init__(self, config: RendererConfig | None = None) -> None:
        self._config = config or RendererConfig()
        self._metrics = self._config.metrics or NoopMetricsHook()
        self._notifier = self._config.notifier or NoopNotifier()
        self._media = MediaResolver(self._config)
        self._counters = ListCounterTracker()
        self._rendered = 0
        self.warnings: list[RenderWarning] = []

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def render(self, tree: Iterable[Block | Mapping] | None) -> list[RenderNode]:
        """Render *tree* and return the top-level nodes in document order."""
        return self.render_result(tree).nodes

    def render_result(self, tree: Iterable[Block | Mapping] | None) -> RenderResult:
        """Render *tree* and return nodes, warnings and the failure state.

        Never raises: a failure that escapes every per-block guard is
        replaced by a single ``ERROR`` node and reported to the notifier.
        """
        self.warnings = []
        self._counters = ListCounterTracker()
        self._rendered = 0
        started = time.monotonic()

        try:
            if tree is None or not isinstance(tree, (list, tuple)):
                if tree is not None:
                    self._warn(
                        "NOT_A_BLOCK_LIST",
                        f"expected a list of blocks, got {type(tree).__name__}",
                        {},
                    )
                return RenderResult(warnings=list(self.warnings))

            normalizer = BlockNormalizer(max_depth=self._config.max_depth)
            blocks = normalizer.normalize(tree)
            self.warnings.extend(normalizer.warnings)
            nodes = list(self.iter_render(blocks, "root"))
        except Exception as exc:
            return self._fail(exc)
        finally:
            self._metrics.timing(
                "notionrender.render_duration_ms",
                (time.monotonic() - started) * 1000,
            )

        self._metrics.increment("notionrender.blocks_rendered_total", self._rendered)
        if self.warnings:
            self._metrics.increment(
                "notionrender.render_warnings_total", len(self.warnings)
            )
        return RenderResult(nodes=nodes, warnings=list(self.warnings))

    def iter_render(self, blocks: Sequence[Block], path: str) -> Iterator[RenderNode]:
        """Lazily render one sibling sequence of normalized blocks.

        Consecutive list items of the same flavour are grouped into one
        ``LIST`` node; a change of flavour or any non-list block closes the
        current group.  *path* identifies the sequence's tree position and
        scopes numbered-list counters.
        """
        list_type: ListType | None = None
        list_scope = ""
        items: list[RenderNode] = []

        for index, block in enumerate(blocks):
            block_path = f"{path}/{index}"
            item_type = block.effective_list_type

            if item_type is not None:
                if item_type is not list_type:
                    if items:
                        yield self._list_node(list_type, items, list_scope)
                    list_type = item_type
                    list_scope = f"{path}/list-{index}"
                    items = []
                    if item_type is ListType.NUMBERED:
                        self._counters.reset_scope(list_scope)
                node = self._guard(
                    self._render_list_item, block, block_path, item_type, list_scope
                )
                if node is not None:
                    items.append(node)
                continue

            if list_type is not None:
                if items:
                    yield self._list_node(list_type, items, list_scope)
                list_type = None
                items = []

            node = self._guard(self._dispatch, block, block_path)
            if node is not None:
                yield node

        if items:
            yield self._list_node(list_type, items, list_scope)

    # ------------------------------------------------------------------
    # Internal: isolation and dispatch
    # ------------------------------------------------------------------

    def _guard(
        self,
        rule: Callable[..., RenderNode | None],
        block: Block,
        path: str,
        *args: object,
    ) -> RenderNode | None:
        """Run one block's rule, applying the block error policy on failure."""
        policy = self._config.block_error_policy
        try:
            node = rule(block, path, *args)
        except BlockRenderError:
            # Only nested guards under the "raise" policy get here.
            raise
        except Exception as exc:
            error = BlockRenderError(
                f"failed to render {block.type!r} block",
                context={"block_type": block.type, "block_id": block.id, "path": path},
                cause=exc,
            )
            log.warning(
                error.message,
                exc_info=True,
                extra={"extra_fields": dict(error.context)},
            )
            self._warn(error.code.value, error.message, dict(error.context))
            if policy == "raise":
                raise error from exc
            if policy == "placeholder":
                return _error_node(self._config.error_message, block.id)
            return None

        if node is not None:
            self._rendered += 1
        return node

    def _dispatch(self, block: Block, path: str) -> RenderNode | None:
        """Route a block to its layout rule."""
        if block.type in _OMITTED_TYPES:
            return None

        rule = _BLOCK_RULES.get(block.type)
        if rule is not None:
            return rule(self, block, path)

        if block.media is not None:
            return self._render_media(block, path)

        return self._render_default(block, path)

    def _render_children(self, block: Block, path: str) -> tuple[RenderNode, ...]:
        if not block.children:
            return ()
        return tuple(self.iter_render(block.children, path))

    # ------------------------------------------------------------------
    # Lists
    # ------------------------------------------------------------------

    def _render_list_item(
        self, block: Block, path: str, list_type: ListType, scope: str
    ) -> RenderNode:
        props: dict = {"list_type": list_type.value}
        if list_type is ListType.NUMBERED:
            props["ordinal"] = self._counters.next_ordinal(scope)
        return RenderNode(
            kind=NodeKind.LIST_ITEM,
            runs=tuple(resolve_runs(block.text, block.annotations)),
            children=self._render_children(block, path),
            props=props,
            block_id=block.id,
        )

    @staticmethod
    def _list_node(
        list_type: ListType | None, items: list[RenderNode], scope: str
    ) -> RenderNode:
        return RenderNode(
            kind=NodeKind.LIST,
            children=tuple(items),
            props={"list_type": list_type.value if list_type else None, "scope": scope},
        )

    # ------------------------------------------------------------------
    # Text blocks
    # ------------------------------------------------------------------

    def _text_node(
        self, kind: NodeKind, block: Block, path: str, **props: object
    ) -> RenderNode:
        return RenderNode(
            kind=kind,
            runs=tuple(resolve_runs(block.text, block.annotations)),
            children=self._render_children(block, path),
            props=props,
            block_id=block.id,
        )

    def _render_heading(self, block: Block, path: str) -> RenderNode:
        level = int(block.type.rsplit("_", 1)[-1])
        return self._text_node(NodeKind.HEADING, block, path, level=level, **_icon_props(block))

    def _render_paragraph(self, block: Block, path: str) -> RenderNode:
        return self._text_node(NodeKind.PARAGRAPH, block, path)

    def _render_quote(self, block: Block, path: str) -> RenderNode:
        return self._text_node(NodeKind.QUOTE, block, path)

    def _render_to_do(self, block: Block, path: str) -> RenderNode:
        # The strike-through is a display hint; stored annotations are untouched.
        return self._text_node(
            NodeKind.TO_DO,
            block,
            path,
            checked=block.checked,
            strikethrough_hint=block.checked,
        )

    def _render_divider(self, block: Block, path: str) -> RenderNode:
        return RenderNode(kind=NodeKind.DIVIDER, block_id=block.id)

    def _render_callout(self, block: Block, path: str) -> RenderNode:
        # Children replace the callout's own text; never both.
        if block.children:
            return RenderNode(
                kind=NodeKind.CALLOUT,
                children=self._render_children(block, path),
                props=_icon_props(block),
                block_id=block.id,
            )
        return RenderNode(
            kind=NodeKind.CALLOUT,
            runs=tuple(resolve_runs(block.text, block.annotations)),
            props=_icon_props(block),
            block_id=block.id,
        )

    def _render_code(self, block: Block, path: str) -> RenderNode:
        return RenderNode(
            kind=NodeKind.CODE,
            props={"text": block.text or "", "language": block.language or ""},
            block_id=block.id,
        )

    def _render_equation(self, block: Block, path: str) -> RenderNode:
        return RenderNode(
            kind=NodeKind.EQUATION,
            props={"expression": block.text or ""},
            block_id=block.id,
        )

    def _render_toggle(self, block: Block, path: str) -> RenderNode:
        return self._text_node(NodeKind.TOGGLE, block, f"{path}/toggle", **_icon_props(block))

    # ------------------------------------------------------------------
    # Tables and columns
    # ------------------------------------------------------------------

    def _render_table(self, block: Block, path: str) -> RenderNode | None:
        """Lay out rows and cells, flagging header cells.

        Row 0 is a header row iff ``has_column_header``; column 0 of any
        row is a header cell iff ``has_row_header``.
        """
        if not block.children:
            return None

        rows: list[RenderNode] = []
        width = block.table_width or 0
        for row_index, row in enumerate(block.children):
            cells: list[RenderNode] = []
            for col_index, cell in enumerate(row.children or ()):
                header = (block.has_column_header and row_index == 0) or (
                    block.has_row_header and col_index == 0
                )
                cells.append(RenderNode(
                    kind=NodeKind.TABLE_CELL,
                    runs=tuple(resolve_runs(cell.text, cell.annotations)),
                    props={"header": header, "row": row_index, "column": col_index},
                    block_id=cell.id,
                ))
            width = max(width, len(cells))
            rows.append(RenderNode(
                kind=NodeKind.TABLE_ROW,
                children=tuple(cells),
                props={"index": row_index},
                block_id=row.id,
            ))

        return RenderNode(
            kind=NodeKind.TABLE,
            children=tuple(rows),
            props={
                "width": width,
                "has_column_header": block.has_column_header,
                "has_row_header": block.has_row_header,
            },
            block_id=block.id,
        )

    def _render_column_list(self, block: Block, path: str) -> RenderNode | None:
        if not block.children:
            return None
        count = len(block.children)
        columns = tuple(
            RenderNode(
                kind=NodeKind.COLUMN,
                children=self._render_children(column, f"{path}/col-{index}"),
                block_id=column.id,
            )
            for index, column in enumerate(block.children)
        )
        return RenderNode(
            kind=NodeKind.COLUMN_LIST,
            children=columns,
            props={"column_count": count, "layout": _COLUMN_LAYOUTS.get(count, "grid")},
            block_id=block.id,
        )

    def _render_column(self, block: Block, path: str) -> RenderNode | None:
        if not block.children:
            return None
        return RenderNode(
            kind=NodeKind.COLUMN,
            children=self._render_children(block, f"{path}/column"),
            block_id=block.id,
        )

    # ------------------------------------------------------------------
    # Media and fallback
    # ------------------------------------------------------------------

    def _render_media(self, block: Block, path: str) -> RenderNode | None:
        unit = self._media.resolve(block)
        if unit is None:
            return None
        return RenderNode(
            kind=NodeKind.MEDIA,
            props={"kind": unit.kind.value},
            media=unit,
            block_id=block.id,
        )

    def _render_default(self, block: Block, path: str) -> RenderNode | None:
        """Generic text node for types without a layout rule."""
        if self._config.unsupported_block_policy == "text" and (block.text or block.children):
            return self._text_node(NodeKind.TEXT, block, path, source_type=block.type)

        error = UnsupportedBlockError(
            f"Cannot render block type: {block.type or 'unknown'}",
            context={"block_type": block.type, "block_id": block.id},
        )
        log.debug(error.message, extra={"extra_fields": error.context})
        self._warn(error.code.value, error.message, dict(error.context, path=path))
        return None

    # ------------------------------------------------------------------
    # Internal: failure reporting
    # ------------------------------------------------------------------

    def _warn(self, code: str, message: str, context: dict) -> None:
        self.warnings.append(RenderWarning(code=code, message=message, context=context))

    def _fail(self, exc: Exception) -> RenderResult:
        """Replace the whole output with one error node and notify."""
        if isinstance(exc, BlockRenderError):
            context = dict(exc.context)
        else:
            context = {"error": repr(exc)}
        error = BlockRenderError(
            "render pass failed",
            context=context,
            cause=exc,
            whole_tree=True,
        )
        log.error(error.message, exc_info=exc, extra={"extra_fields": context})
        self._metrics.increment("notionrender.render_failures_total")
        try:
            self._notifier.notify(self._config.error_message, error)
        except Exception:
            log.exception("notifier raised while reporting a render failure")
        return RenderResult(
            nodes=[_error_node(self._config.error_message)],
            warnings=list(self.warnings),
            failed=True,
            error=error,
        )


# ------------------------------------------------------------------
# Block rule dispatch table
# ------------------------------------------------------------------

_BlockRule = Callable[["BlockTreeRenderer", Block, str], "RenderNode | None"]

_BLOCK_RULES: dict[str, _BlockRule] = {
    "heading_1": BlockTreeRenderer._render_heading,
    "heading_2": BlockTreeRenderer._render_heading,
    "heading_3": BlockTreeRenderer._render_heading,
    "paragraph": BlockTreeRenderer._render_paragraph,
    "quote": BlockTreeRenderer._render_quote,
    "to_do": BlockTreeRenderer._render_to_do,
    "divider": BlockTreeRenderer._render_divider,
    "callout": BlockTreeRenderer._render_callout,
    "code": BlockTreeRenderer._render_code,
    "equation": BlockTreeRenderer._render_equation,
    "toggle": BlockTreeRenderer._render_toggle,
    "table": BlockTreeRenderer._render_table,
    "column_list": BlockTreeRenderer._render_column_list,
    "column": BlockTreeRenderer._render_column,
    "image": BlockTreeRenderer._render_media,
    "video": BlockTreeRenderer._render_media,
    "embed": BlockTreeRenderer._render_media,
    "media": BlockTreeRenderer._render_media,
}


# ------------------------------------------------------------------
# Helpers
# ------------------------------------------------------------------

def _icon_props(block: Block) -> dict:
    """Icon props for headings, callouts and toggles."""
    props: dict = {}
    emoji = block.emoji or (block.icon.emoji if block.icon else None)
    if emoji:
        props["icon"] = emoji
    elif block.icon is not None and block.icon.url:
        props["icon_url"] = block.icon.url
    return props


def _error_node(message: str, block_id: str | None = None) -> RenderNode:
    return RenderNode(kind=NodeKind.ERROR, props={"message": message}, block_id=block_id)


def render_blocks(
    tree: Iterable[Block | Mapping] | None,
    config: RendererConfig | None = None,
) -> list[RenderNode]:
    """Render *tree* with a throwaway :class:`BlockTreeRenderer`."""
    return BlockTreeRenderer(config).render(tree)
