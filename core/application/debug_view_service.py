"""Service that turns traced views into graph text and rendered images."""

from __future__ import annotations

import logging
from typing import Optional

import pandas as pd

from config.settings import RenderSettings
from core.application.graph_serializer import to_graphviz
from core.application.provenance_table import provenance_frame
from core.domain.traced import TracedView
from ports.renderer_port import GraphRendererPort, RenderedGraph, RenderRequest

logger = logging.getLogger(__name__)


class DebugViewService:
    """Entry point for inspecting traced pipelines."""

    def __init__(
        self,
        renderer: GraphRendererPort,
        settings: RenderSettings | None = None,
    ) -> None:
        self._renderer = renderer
        self.settings = settings or RenderSettings.from_env()

    @property
    def output_format(self) -> str:
        return self.settings.output_format

    def graph(self, view: TracedView) -> str:
        """Return the dot description of ``view``."""
        return to_graphviz(view)

    def table(self, view: TracedView) -> pd.DataFrame:
        """Return every recorded edge of ``view`` as a dataframe."""
        return provenance_frame(view)

    def render(self, view: TracedView) -> Optional[RenderedGraph]:
        """Render ``view``; ``None`` when the renderer could not produce an image."""
        dot = self.graph(view)
        logger.debug("Rendering trace with %d steps", len(view.history))
        rendered = self._renderer.render(RenderRequest(dot=dot, output_format=self.output_format))
        if rendered is None:
            logger.warning("Renderer produced no image for a trace of %d steps", len(view.history))
        return rendered
