"""RenderNode tree to Markdown (GFM) and plain text.

Usage::

    from notionrender.adapters.markdown import to_markdown
    from notionrender.renderer import render_blocks

    md = to_markdown(render_blocks(blocks))

Media follows the unit's current display state: a ready image becomes
``![title](src)``, a ready video or embed becomes a link, and a
placeholder becomes a link to the original URL labelled with its message.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Iterable, Sequence

from notionrender.models import (
    LineBreak,
    ListType,
    MediaKind,
    MediaState,
    NodeKind,
    RenderNode,
    Run,
    StyledRun,
)
from notionrender.text_runs import plain_text

_ESCAPE_RE = re.compile(r'([\\`*_{}\[\]()#+\-.!|])')


def markdown_escape(text: str, context: str = "inline") -> str:
    """Escape special Markdown characters.

    ``context`` is ``"inline"`` (escape everything), ``"code"`` (no
    escaping) or ``"url"`` (percent-encode parentheses only).
    """
    if context == "code":
        return text
    if context == "url":
        return text.replace("(", "%28").replace(")", "%29")
    return _ESCAPE_RE.sub(r'\\\1', text)


def render_runs(runs: Iterable[Run], line_break: str = "  \n") -> str:
    """Render styled runs to inline Markdown.

    Wrapping order, innermost first: code, bold, italic, strikethrough,
    underline, link.  Colors have no Markdown form and are dropped.
    """
    parts: list[str] = []
    for run in runs:
        if isinstance(run, LineBreak):
            parts.append(line_break)
            continue
        parts.append(_render_run(run))
    return "".join(parts)


class MarkdownAdapter:
    """Stateless converter from render nodes to Markdown text."""

    def render(self, nodes: Sequence[RenderNode], depth: int = 0) -> str:
        return "".join(self._dispatch(node, depth) for node in nodes)

    def _dispatch(self, node: RenderNode, depth: int) -> str:
        handler = _NODE_RENDERERS.get(node.kind)
        if handler is None:
            return ""
        return handler(self, node, depth)

    # ------------------------------------------------------------------
    # Text blocks
    # ------------------------------------------------------------------

    def _render_heading(self, node: RenderNode, depth: int) -> str:
        level = min(max(int(node.props.get("level", 1)), 1), 6)
        text = render_runs(node.runs, line_break=" ")
        icon = node.props.get("icon")
        if icon:
            text = f"{icon} {text}"
        return f"{'#' * level} {text}\n\n" + self.render(node.children, depth)

    def _render_paragraph(self, node: RenderNode, depth: int) -> str:
        indent = "  " * depth
        result = f"{indent}{render_runs(node.runs)}\n\n" if node.runs else ""
        if node.children:
            result += self.render(node.children, depth + 1)
        return result

    def _render_quote(self, node: RenderNode, depth: int) -> str:
        body = render_runs(node.runs, line_break="\n")
        if node.children:
            body = (body + "\n\n" if body else "") + self.render(node.children, 0).rstrip("\n")
        return _blockquote(body)

    def _render_callout(self, node: RenderNode, depth: int) -> str:
        icon = node.props.get("icon")
        if node.children:
            body = self.render(node.children, 0).rstrip("\n")
        else:
            body = render_runs(node.runs, line_break="\n")
        if icon:
            body = f"{icon} {body}"
        return _blockquote(body)

    def _render_to_do(self, node: RenderNode, depth: int) -> str:
        indent = "  " * depth
        checkbox = "[x]" if node.props.get("checked") else "[ ]"
        text = render_runs(node.runs)
        result = f"{indent}- {checkbox} {text}\n"
        if node.children:
            result += self.render(node.children, depth + 1)
        return result if depth else result + "\n"

    def _render_toggle(self, node: RenderNode, depth: int) -> str:
        indent = "  " * depth
        result = f"{indent}- {render_runs(node.runs)}\n"
        if node.children:
            result += self.render(node.children, depth + 1)
        return result if depth else result + "\n"

    def _render_code(self, node: RenderNode, depth: int) -> str:
        language = node.props.get("language") or ""
        # Notion uses "plain text" for unspecified language
        if language == "plain text":
            language = ""
        return f"```{language}\n{node.props.get('text', '')}\n```\n\n"

    def _render_equation(self, node: RenderNode, depth: int) -> str:
        return f"$$\n{node.props.get('expression', '')}\n$$\n\n"

    def _render_divider(self, node: RenderNode, depth: int) -> str:
        return "---\n\n"

    def _render_error(self, node: RenderNode, depth: int) -> str:
        return f"> {markdown_escape(str(node.props.get('message', '')))}\n\n"

    # ------------------------------------------------------------------
    # Lists
    # ------------------------------------------------------------------

    def _render_list(self, node: RenderNode, depth: int) -> str:
        numbered = node.props.get("list_type") == ListType.NUMBERED.value
        indent = "  " * depth
        parts: list[str] = []
        for item in node.children:
            if item.kind is not NodeKind.LIST_ITEM:
                parts.append(self._dispatch(item, depth + 1))
                continue
            marker = f"{item.props.get('ordinal', 1)}." if numbered else "-"
            parts.append(f"{indent}{marker} {render_runs(item.runs)}\n")
            if item.children:
                parts.append(self.render(item.children, depth + 1))
        result = "".join(parts)
        # A top-level list needs a blank line before the next block.
        return result if depth else result + "\n"

    # ------------------------------------------------------------------
    # Tables and columns
    # ------------------------------------------------------------------

    def _render_table(self, node: RenderNode, depth: int) -> str:
        """Render a GFM table; the first row is always the header row."""
        rows = [row for row in node.children if row.kind is NodeKind.TABLE_ROW]
        if not rows:
            return ""
        width = max(
            int(node.props.get("width") or 0),
            max(len(row.children) for row in rows),
            1,
        )

        lines: list[str] = []
        for index, row in enumerate(rows):
            cells = [render_runs(cell.runs, line_break="<br>") for cell in row.children]
            cells.extend([""] * (width - len(cells)))
            lines.append("| " + " | ".join(cells) + " |")
            # GFM requires a separator row after the first row for table recognition.
            if index == 0:
                lines.append("|" + "|".join(["---"] * width) + "|")
        return "\n".join(lines) + "\n\n"

    def _render_passthrough(self, node: RenderNode, depth: int) -> str:
        return self.render(node.children, depth)

    # ------------------------------------------------------------------
    # Media
    # ------------------------------------------------------------------

    def _render_media(self, node: RenderNode, depth: int) -> str:
        unit = node.media
        if unit is None:
            return ""
        url = markdown_escape(unit.original_url, "url")

        if unit.state is not MediaState.READY:
            label = markdown_escape(unit.message or unit.title)
            return f"[{label}]({url})\n\n"

        src = markdown_escape(unit.src or unit.original_url, "url")
        title = markdown_escape(unit.caption or unit.title)
        if unit.kind is MediaKind.IMAGE:
            return f"![{title}]({src})\n\n"
        return f"[{title}]({src})\n\n"


# ------------------------------------------------------------------
# Node renderer dispatch table
# ------------------------------------------------------------------

_NodeRenderer = Callable[[MarkdownAdapter, RenderNode, int], str]

_NODE_RENDERERS: dict[NodeKind, _NodeRenderer] = {
    NodeKind.HEADING: MarkdownAdapter._render_heading,
    NodeKind.PARAGRAPH: MarkdownAdapter._render_paragraph,
    NodeKind.TEXT: MarkdownAdapter._render_paragraph,
    NodeKind.QUOTE: MarkdownAdapter._render_quote,
    NodeKind.CALLOUT: MarkdownAdapter._render_callout,
    NodeKind.TO_DO: MarkdownAdapter._render_to_do,
    NodeKind.TOGGLE: MarkdownAdapter._render_toggle,
    NodeKind.CODE: MarkdownAdapter._render_code,
    NodeKind.EQUATION: MarkdownAdapter._render_equation,
    NodeKind.DIVIDER: MarkdownAdapter._render_divider,
    NodeKind.ERROR: MarkdownAdapter._render_error,
    NodeKind.LIST: MarkdownAdapter._render_list,
    NodeKind.TABLE: MarkdownAdapter._render_table,
    NodeKind.COLUMN_LIST: MarkdownAdapter._render_passthrough,
    NodeKind.COLUMN: MarkdownAdapter._render_passthrough,
    NodeKind.MEDIA: MarkdownAdapter._render_media,
}


def to_markdown(nodes: Sequence[RenderNode]) -> str:
    """Render a node tree to Markdown, without trailing blank lines."""
    markdown = MarkdownAdapter().render(nodes).rstrip("\n")
    return markdown + "\n" if markdown else ""


def to_plain_text(nodes: Sequence[RenderNode]) -> str:
    """Text-only export: one line per block, table cells tab-separated."""
    lines: list[str] = []
    _collect_text(nodes, lines)
    return "\n".join(lines)


# ------------------------------------------------------------------
# Helpers
# ------------------------------------------------------------------

def _render_run(run: StyledRun) -> str:
    style = run.style
    if style.code:
        text = f"`{run.text}`"
    else:
        text = markdown_escape(run.text)
        if style.bold:
            text = f"**{text}**"
        if style.italic:
            text = f"_{text}_"
        if style.strikethrough:
            text = f"~~{text}~~"
        if style.underline:
            text = f"<u>{text}</u>"
    if run.href:
        text = f"[{text}]({markdown_escape(run.href, 'url')})"
    return text


def _blockquote(body: str) -> str:
    lines = body.split("\n")
    return "\n".join(f"> {line}" if line.strip() else ">" for line in lines) + "\n\n"


def _collect_text(nodes: Iterable[RenderNode], lines: list[str]) -> None:
    for node in nodes:
        if node.kind is NodeKind.TABLE:
            for row in node.children:
                lines.append("\t".join(plain_text(cell.runs) for cell in row.children))
            continue
        if node.kind is NodeKind.CODE:
            lines.append(str(node.props.get("text", "")))
        elif node.kind is NodeKind.EQUATION:
            lines.append(str(node.props.get("expression", "")))
        elif node.kind is NodeKind.ERROR:
            lines.append(str(node.props.get("message", "")))
        elif node.kind is NodeKind.MEDIA and node.media is not None:
            unit = node.media
            lines.append(unit.message if unit.is_placeholder and unit.message else unit.title)
        elif node.runs:
            lines.append(plain_text(node.runs))
        _collect_text(node.children, lines)
