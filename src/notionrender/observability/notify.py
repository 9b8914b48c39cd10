"""User-facing failure notifications.

When a whole render pass fails, the renderer substitutes an error
placeholder and calls :meth:`Notifier.notify` once with the wrapped error.
A web host would show a toast here; a batch exporter might collect the
errors for a report.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from notionrender.errors import NotionRenderError


@runtime_checkable
class Notifier(Protocol):
    """Protocol for the error-signal channel."""

    def notify(self, message: str, error: NotionRenderError) -> None:
        """Surface *message* to the user; *error* carries the details."""
        ...


class NoopNotifier:
    """Default notifier that drops every notification."""

    __slots__ = ()

    def notify(self, message: str, error: NotionRenderError) -> None:
        pass


class CollectingNotifier:
    """Notifier that keeps every notification in :attr:`events`."""

    def __init__(self) -> None:
        self.events: list[tuple[str, NotionRenderError]] = []

    def notify(self, message: str, error: NotionRenderError) -> None:
        self.events.append((message, error))

    def __len__(self) -> int:
        return len(self.events)
