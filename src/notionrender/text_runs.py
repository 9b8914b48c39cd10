"""Resolve block text plus annotations into non-overlapping styled runs.

Two annotation shapes exist in stored content:

Positional::

    {"start": 0, "end": 5, "bold": true, "color": "yellow_background"}

Legacy whole-segment::

    {"text": "Hello", "bold": true}

The choice is made once per annotation list: if any annotation carries a
position, the whole list is treated as positional.  Resolution never
raises; anything malformed degrades to plain text.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence

from notionrender.errors import AnnotationError
from notionrender.models import (
    PLAIN_STYLE,
    AnnotationRange,
    LineBreak,
    Run,
    StyledRun,
    TextStyle,
)
from notionrender.observability import get_logger

log = get_logger("notionrender.text_runs")

_BACKGROUND_SUFFIX = "_background"


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def split_color(
    color: str | None,
    background_color: str | None = None,
) -> tuple[str | None, str | None]:
    """Split an annotation color into ``(foreground, background)``.

    ``"yellow_background"`` yields ``(None, "yellow")``; ``"blue"`` yields
    ``("blue", None)``.  ``"default"`` means no color.  An explicit
    *background_color* is used only when *color* does not itself name a
    background.
    """
    foreground: str | None = None
    background: str | None = None

    if color and color != "default":
        if color.endswith(_BACKGROUND_SUFFIX):
            name = color[: -len(_BACKGROUND_SUFFIX)]
            background = name if name and name != "default" else None
        else:
            foreground = color

    if background is None and background_color and background_color != "default":
        if background_color.endswith(_BACKGROUND_SUFFIX):
            background_color = background_color[: -len(_BACKGROUND_SUFFIX)]
        background = background_color or None

    return foreground, background


def style_of(annotation: AnnotationRange) -> TextStyle:
    """Resolve the :class:`TextStyle` of one annotation."""
    foreground, background = split_color(annotation.color, annotation.background_color)
    return TextStyle(
        bold=annotation.bold,
        italic=annotation.italic,
        underline=annotation.underline,
        strikethrough=annotation.strikethrough,
        code=annotation.code,
        foreground_color=foreground,
        background_color=background,
    )


def resolve_runs(
    text: str | None,
    annotations: Iterable[AnnotationRange | Mapping] | None = None,
) -> list[Run]:
    """Resolve *text* and its *annotations* into an ordered run list.

    Parameters
    ----------
    text:
        The block's plain text.  ``"\\n"`` splits it into segments that are
        resolved independently against the same annotation list (offsets
        are relative to each segment) and joined with :class:`LineBreak`
        markers.
    annotations:
        :class:`AnnotationRange` objects or raw annotation dicts.  Items
        that are neither are ignored.

    Returns
    -------
    list[Run]
        Styled runs and line breaks in text order.  Empty when *text* is
        empty and there are no legacy annotations.
    """
    anns = _coerce(annotations)

    if anns and not any(a.is_positional for a in anns):
        runs = _resolve_legacy(anns)
        if runs:
            return runs
        anns = []

    if not text:
        return []

    runs: list[Run] = []
    for index, segment in enumerate(text.split("\n")):
        if index:
            runs.append(LineBreak())
        if segment:
            if anns:
                runs.extend(_resolve_positional(segment, anns))
            else:
                runs.append(StyledRun(segment))
    return runs


def plain_text(runs: Iterable[Run]) -> str:
    """Concatenate run text, turning line breaks back into ``"\\n"``."""
    return "".join(
        "\n" if isinstance(run, LineBreak) else run.text for run in runs
    )


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _coerce(
    annotations: Iterable[AnnotationRange | Mapping] | None,
) -> list[AnnotationRange]:
    if not annotations:
        return []
    result: list[AnnotationRange] = []
    for item in annotations:
        if isinstance(item, AnnotationRange):
            result.append(item)
        elif isinstance(item, Mapping):
            result.append(AnnotationRange.from_dict(item))
    return result


def _resolve_positional(
    text: str,
    annotations: Sequence[AnnotationRange],
) -> list[Run]:
    """Resolve one line of text; offsets are relative to the line."""
    length = len(text)
    spans: list[tuple[int, int, AnnotationRange]] = []

    for annotation in annotations:
        if annotation.start is None or annotation.end is None or annotation.start < 0:
            continue
        start = annotation.start
        end = min(annotation.end, length)
        if end <= start:
            continue
        spans.append((start, end, annotation))

    # sort() is stable: equal starts keep their input order.
    spans.sort(key=lambda span: span[0])

    runs: list[Run] = []
    cursor = 0
    for start, end, annotation in spans:
        if end <= cursor:
            continue
        start = max(start, cursor)
        if start > cursor:
            runs.append(StyledRun(text[cursor:start]))
        runs.append(_styled_run(text[start:end], annotation))
        cursor = end

    if cursor < length:
        runs.append(StyledRun(text[cursor:]))
    return runs


def _resolve_legacy(annotations: Sequence[AnnotationRange]) -> list[Run]:
    runs: list[Run] = []
    for annotation in annotations:
        if not annotation.text:
            continue
        for index, part in enumerate(annotation.text.split("\n")):
            if index:
                runs.append(LineBreak())
            if part:
                runs.append(_styled_run(part, annotation))
    return runs


def _styled_run(text: str, annotation: AnnotationRange) -> StyledRun:
    try:
        style = style_of(annotation)
        href = _clean_href(annotation.href)
    except Exception as exc:  # degrade this element only
        error = AnnotationError(
            "annotation degraded to plain text",
            context={"annotation": repr(annotation)},
            cause=exc,
        )
        log.debug(error.message, extra={"extra_fields": error.context})
        return StyledRun(text, PLAIN_STYLE)
    return StyledRun(text, style, href)


def _clean_href(href: str | None) -> str | None:
    if not href:
        return None
    cleaned = href.strip()
    if cleaned.startswith("<"):
        cleaned = cleaned[1:]
    if cleaned.endswith(">"):
        cleaned = cleaned[:-1]
    return cleaned or None
