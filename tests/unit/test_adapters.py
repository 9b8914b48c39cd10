"""Tests for the HTML and Markdown adapters."""

from __future__ import annotations

import mistune

from notionrender.adapters import to_html, to_markdown, to_plain_text
from notionrender.adapters.markdown import markdown_escape
from notionrender.config import RendererConfig
from notionrender.renderer import render_blocks


def para(text, **extra):
    return {"type": "paragraph", "text": text, **extra}


TABLE = {
    "type": "table",
    "table_width": 2,
    "has_column_header": True,
    "children": [
        {"type": "table_row", "cells": [{"text": "h1"}, {"text": "h2"}]},
        {"type": "table_row", "cells": [{"text": "a"}, {"text": "b"}]},
    ],
}


class TestMarkdownEscape:
    def test_inline(self):
        assert markdown_escape("a*b_c") == "a\\*b\\_c"

    def test_code_untouched(self):
        assert markdown_escape("a*b", "code") == "a*b"

    def test_url_parentheses(self):
        assert markdown_escape("https://x.io/a_(b)", "url") == "https://x.io/a_%28b%29"


class TestToMarkdown:
    def test_heading_and_styled_paragraph(self):
        nodes = render_blocks([
            {"type": "heading_1", "text": "Title"},
            para("Hello world", annotations=[{"start": 0, "end": 5, "bold": True}]),
        ])
        assert to_markdown(nodes) == "# Title\n\n**Hello** world\n"

    def test_escaping(self):
        assert to_markdown(render_blocks([para("a*b")])) == "a\\*b\n"

    def test_inline_code_and_link(self):
        nodes = render_blocks([para("x*y docs", annotations=[
            {"start": 0, "end": 3, "code": True},
            {"start": 4, "end": 8, "href": "https://x.io"},
        ])])
        assert to_markdown(nodes) == "`x*y` [docs](https://x.io)\n"

    def test_numbered_list(self):
        nodes = render_blocks([
            {"type": "numbered_list_item", "text": "a"},
            {"type": "numbered_list_item", "text": "b"},
            para("x"),
        ])
        assert to_markdown(nodes) == "1. a\n2. b\n\nx\n"

    def test_nested_bullets(self):
        nodes = render_blocks([{
            "type": "bulleted_list_item",
            "text": "A",
            "children": [{"type": "bulleted_list_item", "text": "A1"}],
        }])
        assert to_markdown(nodes) == "- A\n  - A1\n"

    def test_table(self):
        assert to_markdown(render_blocks([TABLE])) == "| h1 | h2 |\n|---|---|\n| a | b |\n"

    def test_code_and_equation(self):
        nodes = render_blocks([
            {"type": "code", "text": "x = 1", "language": "python"},
            {"type": "equation", "expression": "a^2"},
        ])
        assert to_markdown(nodes) == "```python\nx = 1\n```\n\n$$\na^2\n$$\n"

    def test_callout_with_children(self):
        nodes = render_blocks([{
            "type": "callout",
            "text": "ignored",
            "icon": "💡",
            "children": [para("child")],
        }])
        assert to_markdown(nodes) == "> 💡 child\n"

    def test_to_do(self):
        nodes = render_blocks([{"type": "to_do", "text": "done", "checked": True}])
        assert to_markdown(nodes) == "- [x] done\n"

    def test_image(self):
        nodes = render_blocks([
            {"type": "image", "media_url": "https://x.io/a.png", "caption": "pic"},
        ])
        assert to_markdown(nodes) == "![pic](https://x.io/a.png)\n"

    def test_heic_links_to_original(self):
        md = to_markdown(render_blocks([{"type": "image", "media_url": "https://x.io/a.heic"}]))
        assert "(https://x.io/a.heic)" in md
        assert "not supported" in md
        assert not md.startswith("!")

    def test_empty(self):
        assert to_markdown([]) == ""

    def test_output_parses_as_expected_blocks(self):
        nodes = render_blocks([
            {"type": "heading_2", "text": "Section"},
            {"type": "bulleted_list_item", "text": "a"},
            {"type": "bulleted_list_item", "text": "b"},
            TABLE,
            {"type": "code", "text": "print(1)", "language": "python"},
            {"type": "divider"},
        ])
        parser = mistune.create_markdown(renderer="ast", plugins=["table", "strikethrough"])
        tokens = [t for t in parser(to_markdown(nodes)) if t["type"] != "blank_line"]
        assert [t["type"] for t in tokens] == [
            "heading", "list", "table", "block_code", "thematic_break",
        ]


class TestToPlainText:
    def test_blocks_one_per_line(self):
        nodes = render_blocks([
            {"type": "heading_1", "text": "Title"},
            {"type": "bulleted_list_item", "text": "A"},
            {"type": "bulleted_list_item", "text": "B"},
            TABLE,
            {"type": "code", "text": "x = 1"},
        ])
        assert to_plain_text(nodes) == "Title\nA\nB\nh1\th2\na\tb\nx = 1"

    def test_line_breaks_kept(self):
        assert to_plain_text(render_blocks([para("a\nb")])) == "a\nb"

    def test_media_title(self):
        nodes = render_blocks([{"type": "image", "media_url": "https://x.io/a.png"}])
        assert to_plain_text(nodes) == "Notion image"


class TestToHtml:
    def test_paragraph_styles(self):
        nodes = render_blocks([
            para("Hello world", annotations=[{"start": 0, "end": 5, "bold": True}]),
        ])
        assert to_html(nodes) == "<p><strong>Hello</strong> world</p>"

    def test_escaping(self):
        html = to_html(render_blocks([para("<script>alert(1)</script>")]))
        assert "<script>" not in html
        assert "&lt;script&gt;" in html

    def test_line_break(self):
        assert to_html(render_blocks([para("a\nb")])) == "<p>a<br>b</p>"

    def test_colors_and_links(self):
        nodes = render_blocks([para("Hello", annotations=[
            {"start": 0, "end": 5, "color": "yellow_background", "href": "https://x.io"},
        ])])
        assert to_html(nodes) == (
            '<p><a href="https://x.io" target="_blank" rel="noopener noreferrer">'
            '<span class="notion-yellow-bg">Hello</span></a></p>'
        )

    def test_numbered_list(self):
        nodes = render_blocks([
            {"type": "numbered_list_item", "text": "a"},
            {"type": "numbered_list_item", "text": "b"},
        ])
        assert to_html(nodes) == '<ol><li value="1">a</li><li value="2">b</li></ol>'

    def test_table_headers(self):
        assert to_html(render_blocks([TABLE])) == (
            "<table><tbody><tr><th>h1</th><th>h2</th></tr>"
            "<tr><td>a</td><td>b</td></tr></tbody></table>"
        )

    def test_code(self):
        nodes = render_blocks([{"type": "code", "text": "x < 1", "language": "python"}])
        assert to_html(nodes) == '<pre><code class="language-python">x &lt; 1</code></pre>'

    def test_to_do(self):
        html = to_html(render_blocks([{"type": "to_do", "text": "done", "checked": True}]))
        assert '<input type="checkbox" disabled checked>' in html
        assert "<s>done</s>" in html

    def test_image(self):
        nodes = render_blocks([
            {"type": "image", "media_url": "https://x.io/a.png", "caption": "pic"},
        ])
        assert to_html(nodes) == (
            '<figure class="notion-image"><img src="https://x.io/a.png" alt="pic">'
            "<figcaption>pic</figcaption></figure>"
        )

    def test_video_embed_and_direct(self):
        nodes = render_blocks([
            {"type": "video", "media_url": "https://youtu.be/abc"},
            {"type": "video", "media_url": "https://cdn.example.com/clip.mp4"},
        ])
        html = to_html(nodes)
        assert '<iframe src="https://www.youtube.com/embed/abc" title="Embedded video"' in html
        assert '<video src="https://cdn.example.com/clip.mp4" controls' in html

    def test_heic_placeholder(self):
        html = to_html(render_blocks([{"type": "image", "media_url": "https://x.io/a.heic"}]))
        assert "notion-media-unsupported" in html
        assert "HEIC format - not supported by most browsers" in html
        assert 'href="https://x.io/a.heic"' in html
        assert "<img" not in html

    def test_failed_media_follows_state(self):
        [node] = render_blocks([{"type": "image", "media_url": "https://x.io/a.png"}])
        node.media.mark_failed()
        html = to_html([node])
        assert "notion-media-failed" in html
        assert "Failed to load media" in html

    def test_error_node(self, monkeypatch):
        from notionrender import renderer as renderer_module

        def explode(self, block, path):
            raise ValueError("x")

        monkeypatch.setitem(renderer_module._BLOCK_RULES, "quote", explode)
        nodes = render_blocks([{"type": "quote"}], RendererConfig(block_error_policy="placeholder"))
        assert to_html(nodes) == (
            '<div class="notion-error" role="alert">Error rendering content</div>'
        )
