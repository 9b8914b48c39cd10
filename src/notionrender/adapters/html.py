"""RenderNode tree to an HTML fragment.

Text and attribute values are escaped with mistune's helpers, and link
targets go through :func:`mistune.util.escape_url`.  Colors become
``notion-<color>`` / ``notion-<color>-bg`` classes so a host stylesheet
can theme them.

Media follows the unit's current display state:

* ready image: ``<figure><img ...></figure>``
* ready direct video: ``<figure><video controls ...></figure>``
* ready video embed or embed: ``<figure><iframe ...></figure>``
* placeholder (HEIC or failed): a ``notion-media-placeholder`` box with
  the message and a link to the original URL
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence

from mistune.util import escape, escape_url

from notionrender.models import (
    LineBreak,
    ListType,
    MediaKind,
    MediaUnit,
    NodeKind,
    RenderNode,
    Run,
    StyledRun,
)


def render_runs(runs: Iterable[Run]) -> str:
    """Render styled runs to inline HTML."""
    return "".join(
        "<br>" if isinstance(run, LineBreak) else _render_run(run) for run in runs
    )


class HtmlAdapter:
    """Stateless converter from render nodes to HTML."""

    def render(self, nodes: Sequence[RenderNode]) -> str:
        return "".join(self._dispatch(node) for node in nodes)

    def _dispatch(self, node: RenderNode) -> str:
        handler = _NODE_RENDERERS.get(node.kind)
        if handler is None:
            return ""
        return handler(self, node)

    # ------------------------------------------------------------------
    # Text blocks
    # ------------------------------------------------------------------

    def _render_heading(self, node: RenderNode) -> str:
        level = min(max(int(node.props.get("level", 1)), 1), 6)
        inner = _icon_html(node) + render_runs(node.runs)
        return f"<h{level}>{inner}</h{level}>" + self.render(node.children)

    def _render_paragraph(self, node: RenderNode) -> str:
        html = f"<p>{render_runs(node.runs)}</p>" if node.runs else ""
        if node.children:
            html += f'<div class="notion-indent">{self.render(node.children)}</div>'
        return html

    def _render_quote(self, node: RenderNode) -> str:
        inner = render_runs(node.runs)
        if node.children:
            inner += self.render(node.children)
        return f"<blockquote>{inner}</blockquote>"

    def _render_callout(self, node: RenderNode) -> str:
        body = self.render(node.children) if node.children else render_runs(node.runs)
        return (
            f'<div class="notion-callout">{_icon_html(node)}'
            f'<div class="notion-callout-body">{body}</div></div>'
        )

    def _render_to_do(self, node: RenderNode) -> str:
        checked = bool(node.props.get("checked"))
        text = render_runs(node.runs)
        if node.props.get("strikethrough_hint"):
            text = f"<s>{text}</s>"
        box = '<input type="checkbox" disabled checked>' if checked else (
            '<input type="checkbox" disabled>'
        )
        html = f'<div class="notion-to-do">{box} <span>{text}</span></div>'
        if node.children:
            html += f'<div class="notion-indent">{self.render(node.children)}</div>'
        return html

    def _render_toggle(self, node: RenderNode) -> str:
        summary = _icon_html(node) + render_runs(node.runs)
        return f"<details><summary>{summary}</summary>{self.render(node.children)}</details>"

    def _render_code(self, node: RenderNode) -> str:
        language = node.props.get("language") or ""
        code = escape(str(node.props.get("text", "")))
        if language and language != "plain text":
            return f'<pre><code class="language-{escape(language)}">{code}</code></pre>'
        return f"<pre><code>{code}</code></pre>"

    def _render_equation(self, node: RenderNode) -> str:
        expression = escape(str(node.props.get("expression", "")))
        return f'<div class="notion-equation">{expression}</div>'

    def _render_divider(self, node: RenderNode) -> str:
        return "<hr>"

    def _render_text(self, node: RenderNode) -> str:
        html = f"<div>{render_runs(node.runs)}</div>" if node.runs else ""
        return html + self.render(node.children)

    def _render_error(self, node: RenderNode) -> str:
        message = escape(str(node.props.get("message", "")))
        return f'<div class="notion-error" role="alert">{message}</div>'

    # ------------------------------------------------------------------
    # Lists
    # ------------------------------------------------------------------

    def _render_list(self, node: RenderNode) -> str:
        tag = "ol" if node.props.get("list_type") == ListType.NUMBERED.value else "ul"
        items: list[str] = []
        for item in node.children:
            inner = render_runs(item.runs) + self.render(item.children)
            ordinal = item.props.get("ordinal")
            if tag == "ol" and ordinal is not None:
                items.append(f'<li value="{int(ordinal)}">{inner}</li>')
            else:
                items.append(f"<li>{inner}</li>")
        return f"<{tag}>{''.join(items)}</{tag}>"

    # ------------------------------------------------------------------
    # Tables and columns
    # ------------------------------------------------------------------

    def _render_table(self, node: RenderNode) -> str:
        rows: list[str] = []
        for row in node.children:
            cells: list[str] = []
            for cell in row.children:
                tag = "th" if cell.props.get("header") else "td"
                cells.append(f"<{tag}>{render_runs(cell.runs)}</{tag}>")
            rows.append(f"<tr>{''.join(cells)}</tr>")
        return f"<table><tbody>{''.join(rows)}</tbody></table>"

    def _render_column_list(self, node: RenderNode) -> str:
        layout = escape(str(node.props.get("layout", "grid")))
        return (
            f'<div class="notion-columns notion-columns-{layout}">'
            f"{self.render(node.children)}</div>"
        )

    def _render_column(self, node: RenderNode) -> str:
        return f'<div class="notion-column">{self.render(node.children)}</div>'

    # ------------------------------------------------------------------
    # Media
    # ------------------------------------------------------------------

    def _render_media(self, node: RenderNode) -> str:
        unit = node.media
        if unit is None:
            return ""
        if unit.is_placeholder or not unit.src:
            return _placeholder_html(unit)

        src = escape_url(unit.src)
        title = escape(unit.title)
        if unit.kind is MediaKind.IMAGE:
            body = f'<img src="{src}" alt="{title}">'
        elif unit.kind is MediaKind.VIDEO and unit.direct:
            body = f'<video src="{src}" controls aria-label="{title}"></video>'
        else:
            body = f'<iframe src="{src}" title="{title}" allowfullscreen></iframe>'

        caption = f"<figcaption>{escape(unit.caption)}</figcaption>" if unit.caption else ""
        return f'<figure class="notion-{unit.kind.value}">{body}{caption}</figure>'


# ------------------------------------------------------------------
# Node renderer dispatch table
# ------------------------------------------------------------------

_NodeRenderer = Callable[[HtmlAdapter, RenderNode], str]

_NODE_RENDERERS: dict[NodeKind, _NodeRenderer] = {
    NodeKind.HEADING: HtmlAdapter._render_heading,
    NodeKind.PARAGRAPH: HtmlAdapter._render_paragraph,
    NodeKind.QUOTE: HtmlAdapter._render_quote,
    NodeKind.CALLOUT: HtmlAdapter._render_callout,
    NodeKind.TO_DO: HtmlAdapter._render_to_do,
    NodeKind.TOGGLE: HtmlAdapter._render_toggle,
    NodeKind.CODE: HtmlAdapter._render_code,
    NodeKind.EQUATION: HtmlAdapter._render_equation,
    NodeKind.DIVIDER: HtmlAdapter._render_divider,
    NodeKind.TEXT: HtmlAdapter._render_text,
    NodeKind.ERROR: HtmlAdapter._render_error,
    NodeKind.LIST: HtmlAdapter._render_list,
    NodeKind.TABLE: HtmlAdapter._render_table,
    NodeKind.COLUMN_LIST: HtmlAdapter._render_column_list,
    NodeKind.COLUMN: HtmlAdapter._render_column,
    NodeKind.MEDIA: HtmlAdapter._render_media,
}


def to_html(nodes: Sequence[RenderNode]) -> str:
    """Render a node tree to an HTML fragment."""
    return HtmlAdapter().render(nodes)


# ------------------------------------------------------------------
# Helpers
# ------------------------------------------------------------------

def _render_run(run: StyledRun) -> str:
    style = run.style
    html = escape(run.text)
    if style.code:
        html = f"<code>{html}</code>"
    if style.bold:
        html = f"<strong>{html}</strong>"
    if style.italic:
        html = f"<em>{html}</em>"
    if style.strikethrough:
        html = f"<s>{html}</s>"
    if style.underline:
        html = f"<u>{html}</u>"

    classes: list[str] = []
    if style.foreground_color:
        classes.append(f"notion-{style.foreground_color}")
    if style.background_color:
        classes.append(f"notion-{style.background_color}-bg")
    if classes:
        html = f'<span class="{escape(" ".join(classes))}">{html}</span>'

    if run.href:
        html = (
            f'<a href="{escape_url(run.href)}" target="_blank" '
            f'rel="noopener noreferrer">{html}</a>'
        )
    return html


def _icon_html(node: RenderNode) -> str:
    icon = node.props.get("icon")
    if icon:
        return f'<span class="notion-icon">{escape(str(icon))}</span> '
    icon_url = node.props.get("icon_url")
    if icon_url:
        return f'<img class="notion-icon" src="{escape_url(str(icon_url))}" alt=""> '
    return ""


def _placeholder_html(unit: MediaUnit) -> str:
    message = escape(unit.message or unit.failed_message)
    url = escape_url(unit.original_url)
    return (
        f'<div class="notion-media-placeholder notion-media-{unit.state.value}">'
        f"<p>{message}</p>"
        f'<a href="{url}" target="_blank" rel="noopener noreferrer">{escape(unit.title)}</a>'
        "</div>"
    )
