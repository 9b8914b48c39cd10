"""Ordinal counters for numbered lists.

Scope keys are path strings built by the renderer from tree position
(``"root/list-0"``, ``"root/3/toggle/list-2"``), so two numbered lists at
different places in the tree never share a counter.  A tracker lives for
exactly one render pass.
"""

from __future__ import annotations


class ListCounterTracker:
    """Keyed counter store for numbered-list ordinals."""

    __slots__ = ("_counters",)

    def __init__(self) -> None:
        self._counters: dict[str, int] = {}

    def next_ordinal(self, scope: str) -> int:
        """Return the next ordinal for *scope*: 1 on first use, then +1."""
        value = self._counters.get(scope, 0) + 1
        self._counters[scope] = value
        return value

    def reset_scope(self, scope: str) -> None:
        """Restart *scope* so that the next ordinal is 1."""
        self._counters[scope] = 0

    def current(self, scope: str) -> int:
        """Last ordinal handed out for *scope* (0 if none)."""
        return self._counters.get(scope, 0)

    def __len__(self) -> int:
        return len(self._counters)
