"""Renderer settings loaded from environment variables."""

from __future__ import annotations

import os
import shutil
from dataclasses import dataclass


def _env(name: str, default: str | None = None) -> str | None:
    val = os.getenv(name)
    return val if val is not None else default


def _env_bool(name: str, default: bool = False) -> bool:
    v = os.getenv(name)
    if v is None:
        return default
    return v.strip().lower() in ("1", "true", "yes", "y", "on")


def _env_float(name: str, default: float) -> float:
    v = os.getenv(name)
    if v is None:
        return default
    try:
        return float(v)
    except ValueError:
        return default


@dataclass(frozen=True)
class RenderSettings:
    """How the Graphviz executable is invoked."""

    dot_path: str = "dot"
    output_format: str = "png"
    timeout_seconds: float = 30.0
    keep_files: bool = False

    def __post_init__(self) -> None:
        if not self.output_format:
            raise ValueError("Output format must be provided")
        if self.timeout_seconds <= 0:
            raise ValueError("Render timeout must be positive")

    @classmethod
    def from_env(cls) -> "RenderSettings":
        dot_path = _env("DEBUGVIEW_DOT_PATH") or shutil.which("dot") or "dot"
        timeout = _env_float("DEBUGVIEW_TIMEOUT_SECONDS", 30.0)
        return cls(
            dot_path=dot_path,
            output_format=_env("DEBUGVIEW_OUTPUT_FORMAT", "png") or "png",
            timeout_seconds=timeout if timeout > 0 else 30.0,
            keep_files=_env_bool("DEBUGVIEW_KEEP_FILES", False),
        )
