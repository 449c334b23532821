"""Simple in-memory renderer adapters for testing."""

from __future__ import annotations

from typing import Optional

import numpy as np

from ports.renderer_port import GraphRendererPort, RenderedGraph, RenderRequest


class RecordingRendererAdapter(GraphRendererPort):
    """Adapter that keeps every request and returns a blank image, useful for tests."""

    def __init__(self, width: int = 1, height: int = 1) -> None:
        self.requests: list[RenderRequest] = []
        self._shape = (height, width, 4)

    def render(self, request: RenderRequest) -> Optional[RenderedGraph]:
        self.requests.append(request)
        return RenderedGraph(
            image=np.ones(self._shape, dtype=np.float32),
            encoded=request.dot.encode("utf-8"),
            output_format=request.output_format,
        )


class FailingRendererAdapter(GraphRendererPort):
    """Adapter that never produces an image."""

    def __init__(self) -> None:
        self.calls = 0

    def render(self, request: RenderRequest) -> Optional[RenderedGraph]:
        self.calls += 1
        return None
