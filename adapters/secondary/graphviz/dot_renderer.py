"""Renderer adapter that shells out to the Graphviz ``dot`` executable."""

from __future__ import annotations

import io
import logging
import shutil
import subprocess
import tempfile
from pathlib import Path
from typing import Optional

import matplotlib.image as mpimg
import numpy as np

from config.settings import RenderSettings
from ports.renderer_port import GraphRendererPort, RenderedGraph, RenderRequest

logger = logging.getLogger(__name__)


def decode_image(encoded: bytes, output_format: str) -> np.ndarray:
    """Decode rendered bytes into an ``(height, width, channels)`` array."""
    return np.asarray(mpimg.imread(io.BytesIO(encoded), format=output_format))


class DotRendererAdapter(GraphRendererPort):
    """Adapter writing the graph to a temp file and running ``dot -T<format>``."""

    def __init__(self, settings: RenderSettings | None = None) -> None:
        self.settings = settings or RenderSettings.from_env()

    def _command(self, source: Path, target: Path, output_format: str) -> list[str]:
        return [self.settings.dot_path, f"-T{output_format}", f"-o{target}", str(source)]

    def render(self, request: RenderRequest) -> Optional[RenderedGraph]:
        workdir = tempfile.mkdtemp(prefix="debugview-")
        source = Path(workdir) / "graph.dot"
        target = Path(workdir) / f"graph.{request.output_format}"
        try:
            source.write_text(request.dot, encoding="utf-8")
            completed = subprocess.run(
                self._command(source, target, request.output_format),
                capture_output=True,
                timeout=self.settings.timeout_seconds,
                check=False,
            )
            if completed.returncode != 0:
                logger.warning(
                    "dot exited with status %s: %s",
                    completed.returncode,
                    completed.stderr.decode("utf-8", errors="replace").strip(),
                )
                return None
            encoded = target.read_bytes()
            image = decode_image(encoded, request.output_format)
        except FileNotFoundError:
            logger.warning("Graphviz executable not found: %s", self.settings.dot_path)
            return None
        except subprocess.TimeoutExpired:
            logger.warning(
                "dot did not finish within %.1f seconds", self.settings.timeout_seconds
            )
            return None
        except (OSError, ValueError) as exc:
            logger.warning("Could not render graph: %s", exc)
            return None
        finally:
            if self.settings.keep_files:
                logger.info("Kept render files in %s", workdir)
            else:
                shutil.rmtree(workdir, ignore_errors=True)
        return RenderedGraph(image=image, encoded=encoded, output_format=request.output_format)
