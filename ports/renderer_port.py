"""Graph renderer port definition."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Protocol, runtime_checkable

import numpy as np


@dataclass(frozen=True)
class RenderRequest:
    """Dot text to be rendered, plus the requested output format."""

    dot: str
    output_format: str = "png"

    def __post_init__(self) -> None:
        if not self.dot.strip():
            raise ValueError("Render request must carry graph text")


@dataclass(frozen=True)
class RenderedGraph:
    """Decoded raster image produced by a renderer."""

    image: np.ndarray
    encoded: bytes
    output_format: str

    @property
    def width(self) -> int:
        return int(self.image.shape[1])

    @property
    def height(self) -> int:
        return int(self.image.shape[0])


@runtime_checkable
class GraphRendererPort(Protocol):
    """Port for turning graph text into an image.

    Implementations return ``None`` instead of raising when rendering fails.
    """

    def render(self, request: RenderRequest) -> Optional[RenderedGraph]:
        ...
