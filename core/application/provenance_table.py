"""Tabular export of every provenance edge recorded in a traced view."""

from __future__ import annotations

from typing import Dict, List

import pandas as pd

from core.domain.traced import TracedView

COLUMNS = (
    "step",
    "operation",
    "source_position",
    "target_position",
    "source_label",
    "target_label",
)


def provenance_frame(view: TracedView) -> pd.DataFrame:
    """Return one row per edge, in history order then edge order.

    ``source_position`` uses the nullable ``Int64`` dtype so synthetic edges
    show up as ``<NA>`` rather than turning the column into floats.
    """
    steps = list(view.history)
    stage_labels = [step.source_elements.labels() for step in steps]
    stage_labels.append(view.display_elements().labels())

    rows: Dict[str, List[object]] = {column: [] for column in COLUMNS}
    for k, step in enumerate(steps):
        sources, targets = stage_labels[k], stage_labels[k + 1]
        for edge in step.edges:
            rows["step"].append(k)
            rows["operation"].append(step.label)
            rows["source_position"].append(edge.source_position)
            rows["target_position"].append(edge.target_position)
            rows["source_label"].append(
                None if edge.source_position is None else sources[edge.source_position]
            )
            rows["target_label"].append(
                targets[edge.target_position] if edge.target_position < len(targets) else None
            )

    frame = pd.DataFrame(rows, columns=list(COLUMNS))
    return frame.astype(
        {
            "step": "int64",
            "operation": "object",
            "source_position": "Int64",
            "target_position": "int64",
        }
    )
