"""Consumers that turn :class:`~notionrender.models.RenderNode` trees into text."""

from .html import to_html
from .markdown import to_markdown, to_plain_text

__all__ = [
    "to_html",
    "to_markdown",
    "to_plain_text",
]
