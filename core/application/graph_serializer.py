"""Serialize a traced view's history into a Graphviz ``dot`` description.

Layout of the generated graph, left to right:

* ``node<k>`` -- record node holding the elements before step ``k`` (the last
  one holds the final elements); each element is a field with port ``f<i>``.
* ``op<k>`` -- arrow-shaped node labelled with the operation of step ``k``.
* ``legend<k>`` -- plain label with the element type at stage ``k``, ranked
  together with ``node<k>`` and chained through the ``op`` nodes invisibly.

Provenance edges connect ``node<k>:f<source>`` to ``node<k+1>:f<target>``.
Synthetic edges (no source) are kept, drawn with zero width and no arrowhead,
so the layout stays aligned.
"""

from __future__ import annotations

import logging
from typing import Iterable, List

from core.domain.labels import escape_label
from core.domain.provenance import Edge, ElementSnapshot, History
from core.domain.traced import TracedView

logger = logging.getLogger(__name__)

INDENT = "    "
INVISIBLE_EDGE = "[penwidth=0.0,arrowhead=none]"


def _state_node(index: int, snapshot: ElementSnapshot) -> str:
    fields = "|".join(
        f"<f{offset}> {escape_label(label)}" for offset, label in enumerate(snapshot.labels())
    )
    return f'node{index}[label="{fields}"];'


def _edge_statement(step_index: int, edge: Edge) -> str:
    attributes = INVISIBLE_EDGE if edge.is_synthetic else ""
    source = edge.source_position if edge.source_position is not None else 0
    return (
        f'"node{step_index}":f{source} -> '
        f'"node{step_index + 1}":f{edge.target_position}{attributes};'
    )


def _legend_chain(step_count: int) -> List[str]:
    if step_count == 0:
        return []
    hops = [f"legend{k} -> op{k}" for k in range(step_count)]
    return [" -> ".join(hops) + f" -> legend{step_count};"]


def serialize_graph(
    history: History,
    final_elements: ElementSnapshot,
    final_type_name: str,
) -> str:
    """Return the dot text for ``history`` ending in ``final_elements``.

    The output is deterministic: every list is built in history order and edge
    order, never from hash iteration.
    """
    snapshots: List[ElementSnapshot] = [step.source_elements for step in history]
    snapshots.append(final_elements)
    type_names: List[str] = [step.source_type_name for step in history]
    type_names.append(final_type_name)

    nodes = [_state_node(k, snapshot) for k, snapshot in enumerate(snapshots)]
    links = [
        _edge_statement(k, edge) for k, step in enumerate(history) for edge in step.edges
    ]
    ranks = [f"{{ rank=same; node{k} legend{k} }}" for k in range(len(snapshots))]
    legends = [
        f'legend{k} [label="{escape_label(name)}"];' for k, name in enumerate(type_names)
    ]
    operations = [
        f'op{k} [label="{escape_label(step.label)}"];' for k, step in enumerate(history)
    ]

    body: List[str] = [
        "rankdir=LR;",
        "splines=false;",
        "node [shape=record,height=.1];",
        *nodes,
        *links,
        "node [shape=none]",
        f"edge {INVISIBLE_EDGE}",
        *ranks,
        *legends,
        "node [shape=rarrow]",
        *operations,
        *_legend_chain(len(history)),
    ]
    logger.debug(
        "Serialized %d states, %d operations and %d edges",
        len(nodes),
        len(operations),
        len(links),
    )
    return _render_block("digraph g", body)


def _render_block(header: str, lines: Iterable[str]) -> str:
    inner = "\n".join(f"{INDENT}{line}" for line in lines)
    return f"{header} {{\n{inner}\n}}\n"


def to_graphviz(view: TracedView) -> str:
    """Serialize any traced view (sequence or value)."""
    return serialize_graph(view.history, view.display_elements(), view.declared_type_name())
