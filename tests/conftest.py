"""Shared test fixtures for the notionrender test suite."""

from __future__ import annotations

from typing import Any

import pytest

from notionrender.config import RendererConfig
from notionrender.observability import CollectingNotifier
from notionrender.renderer import BlockTreeRenderer


class RecordingMetricsHook:
    """A metrics backend that records all calls for assertion."""

    def __init__(self) -> None:
        self.increments: list[dict[str, Any]] = []
        self.timings: list[dict[str, Any]] = []

    def increment(
        self,
        name: str,
        value: int = 1,
        tags: dict[str, str] | None = None,
    ) -> None:
        self.increments.append({"name": name, "value": value, "tags": tags})

    def timing(
        self,
        name: str,
        ms: float,
        tags: dict[str, str] | None = None,
    ) -> None:
        self.timings.append({"name": name, "ms": ms, "tags": tags})

    def names(self) -> list[str]:
        return [c["name"] for c in self.increments] + [t["name"] for t in self.timings]


@pytest.fixture
def config() -> RendererConfig:
    """Default renderer configuration."""
    return RendererConfig()


@pytest.fixture
def renderer(config: RendererConfig) -> BlockTreeRenderer:
    """Block tree renderer using the default config."""
    return BlockTreeRenderer(config)


@pytest.fixture
def notifier() -> CollectingNotifier:
    return CollectingNotifier()


@pytest.fixture
def metrics() -> RecordingMetricsHook:
    return RecordingMetricsHook()
