"""Error hierarchy for notionrender.

Every error class inherits from :class:`NotionRenderError`.  Each carries a
machine-readable ``code`` (from :class:`ErrorCode`), a human-readable
``message``, an optional structured ``context`` dict, and an optional
``cause`` (chained exception).

Most of these errors never escape the pipeline: the normalizer and the
renderer catch them per block and turn them into warnings.  They surface
to callers through :class:`notionrender.models.RenderResult` and through
the notifier channel configured on :class:`notionrender.config.RendererConfig`.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

# ---------------------------------------------------------------------------
# Error code enum
# ---------------------------------------------------------------------------

class ErrorCode(str, Enum):
    """Machine-readable error codes for every error the package can raise."""

    NORMALIZE_FAILED = "NORMALIZE_FAILED"
    MALFORMED_BLOCK = "MALFORMED_BLOCK"
    MAX_DEPTH = "MAX_DEPTH"
    MALFORMED_ANNOTATION = "MALFORMED_ANNOTATION"
    BLOCK_RENDER_FAILED = "BLOCK_RENDER_FAILED"
    RENDER_FAILED = "RENDER_FAILED"
    CONTENT_PARSE_ERROR = "CONTENT_PARSE_ERROR"
    UNSUPPORTED_BLOCK = "UNSUPPORTED_BLOCK"


# ---------------------------------------------------------------------------
# Base error
# ---------------------------------------------------------------------------

class NotionRenderError(Exception):
    """Base exception for all notionrender errors.

    Parameters
    ----------
    code:
        A value from :class:`ErrorCode` (or any string) identifying the
        error category.
    message:
        A developer-friendly description of what went wrong.
    context:
        Arbitrary structured data providing extra diagnostic detail.
    cause:
        The underlying exception, if this error wraps another.
    """

    def __init__(
        self,
        code: str,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        self.code: str = code
        self.message: str = message
        self.context: dict[str, Any] = context or {}
        self.cause: Exception | None = cause
        super().__init__(message)
        if cause is not None:
            self.__cause__ = cause

    def __repr__(self) -> str:
        ctx = f", context={self.context!r}" if self.context else ""
        return f"{type(self).__name__}(code={self.code!r}, message={self.message!r}{ctx})"


# ---------------------------------------------------------------------------
# Normalization errors
# ---------------------------------------------------------------------------

class BlockNormalizationError(NotionRenderError):
    """A repair step failed on a single block.

    Context keys: ``block_type``, ``block_id``, ``step``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.NORMALIZE_FAILED,
            message=message,
            context=context,
            cause=cause,
        )


class AnnotationError(NotionRenderError):
    """An annotation could not be turned into a styled run.

    Context keys: ``index``, ``annotation``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.MALFORMED_ANNOTATION,
            message=message,
            context=context,
            cause=cause,
        )


# ---------------------------------------------------------------------------
# Rendering errors
# ---------------------------------------------------------------------------

class BlockRenderError(NotionRenderError):
    """Rendering failed, either for one block or for the whole tree.

    The whole-tree variant (``code == RENDER_FAILED``) is the error handed
    to the configured notifier.

    Context keys: ``block_type``, ``block_id``, ``path``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
        *,
        whole_tree: bool = False,
    ) -> None:
        super().__init__(
            code=ErrorCode.RENDER_FAILED if whole_tree else ErrorCode.BLOCK_RENDER_FAILED,
            message=message,
            context=context,
            cause=cause,
        )


class UnsupportedBlockError(NotionRenderError):
    """A block type has no layout rule and no text to fall back on.

    Context keys: ``block_type``, ``block_id``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.UNSUPPORTED_BLOCK,
            message=message,
            context=context,
            cause=cause,
        )


# ---------------------------------------------------------------------------
# Content boundary errors
# ---------------------------------------------------------------------------

class ContentParseError(NotionRenderError):
    """Stored content could not be decoded into a block list.

    Context keys: ``input_type``, ``position``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.CONTENT_PARSE_ERROR,
            message=message,
            context=context,
            cause=cause,
        )
