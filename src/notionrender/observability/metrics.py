"""Metrics hook protocol and no-op default implementation.

The renderer emits counters and timings for every render pass.  By default
a :class:`NoopMetricsHook` is used so there is zero overhead.  Callers can
supply any object satisfying :class:`MetricsHook` to route the data points
to StatsD, Prometheus, Datadog, etc.

Emitted metric names:

* ``notionrender.blocks_rendered_total``   -- counter
* ``notionrender.render_warnings_total``   -- counter
* ``notionrender.render_failures_total``   -- counter
* ``notionrender.render_duration_ms``      -- timing
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class MetricsHook(Protocol):
    """Protocol that any metrics backend must satisfy.

    All methods accept an optional *tags* dict of string keys and values.
    """

    def increment(
        self,
        name: str,
        value: int = 1,
        tags: dict[str, str] | None = None,
    ) -> None:
        """Increment a counter metric."""
        ...

    def timing(
        self,
        name: str,
        ms: float,
        tags: dict[str, str] | None = None,
    ) -> None:
        """Record a duration in milliseconds."""
        ...


class NoopMetricsHook:
    """Default metrics implementation that silently discards all data points."""

    __slots__ = ()

    def increment(
        self,
        name: str,
        value: int = 1,
        tags: dict[str, str] | None = None,
    ) -> None:
        pass

    def timing(
        self,
        name: str,
        ms: float,
        tags: dict[str, str] | None = None,
    ) -> None:
        pass
