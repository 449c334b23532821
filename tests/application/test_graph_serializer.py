import operator
import re

import pytest

from core.application.graph_serializer import serialize_graph, to_graphviz
from core.domain.labels import escape_label
from core.domain.provenance import ElementSnapshot, History
from core.domain.traced import trace

STATE_NODE = re.compile(r"^\s*node(\d+)\[label=", re.MULTILINE)
OPERATION_NODE = re.compile(r"^\s*op(\d+) \[label=", re.MULTILINE)
STEP_EDGE = re.compile(r'^\s*"node(\d+)":f(\d+) -> "node(\d+)":f(\d+)(.*);$', re.MULTILINE)


def _parse(text: str) -> int | None:
    return int(text) if text.isdigit() else None


class TestEmptyHistory:
    def test_single_state_node(self) -> None:
        dot = to_graphviz(trace([1, 2]))
        assert STATE_NODE.findall(dot) == ["0"]
        assert OPERATION_NODE.findall(dot) == []
        assert STEP_EDGE.findall(dot) == []
        assert "{ rank=same; node0 legend0 }" in dot
        assert "->" not in dot

    def test_state_node_fields(self) -> None:
        dot = to_graphviz(trace(["a", "b"]))
        assert 'node0[label="<f0> a|<f1> b"];' in dot

    def test_legend_shows_wrapped_type(self) -> None:
        dot = to_graphviz(trace([1, 2]))
        assert f'legend0 [label="{escape_label("list[int]")}"];' in dot


class TestLayout:
    def test_header_and_global_attributes(self) -> None:
        dot = to_graphviz(trace([1]).map(str))
        lines = [line.strip() for line in dot.strip().splitlines()]
        assert lines[0] == "digraph g {"
        assert lines[1:4] == [
            "rankdir=LR;",
            "splines=false;",
            "node [shape=record,height=.1];",
        ]
        assert lines[-1] == "}"
        assert "node [shape=none]" in lines
        assert "edge [penwidth=0.0,arrowhead=none]" in lines
        assert "node [shape=rarrow]" in lines

    def test_one_state_per_stage(self) -> None:
        view = trace([3, 1, 2]).sorted().map(lambda x: x * 2)
        dot = to_graphviz(view)
        assert STATE_NODE.findall(dot) == ["0", "1", "2"]
        assert OPERATION_NODE.findall(dot) == ["0", "1"]
        assert 'node0[label="<f0> &#x33;|<f1> &#x31;|<f2> &#x32;"];' in dot
        assert 'node2[label="<f0> &#x32;|<f1> &#x34;|<f2> &#x36;"];' in dot
        for k in range(3):
            assert f"{{ rank=same; node{k} legend{k} }}" in dot

    def test_legend_chain(self) -> None:
        dot = to_graphviz(trace([1]).map(str).filter(bool))
        assert "legend0 -> op0 -> legend1 -> op1 -> legend2;" in dot

    def test_legend_labels(self) -> None:
        dot = to_graphviz(trace([1]).map(str))
        assert f'legend0 [label="{escape_label("int -> str")}"];' in dot
        assert f'legend1 [label="{escape_label("list[str]")}"];' in dot

    def test_operation_label_includes_parameter(self) -> None:
        dot = to_graphviz(trace([1, 2, 3]).drop_first(2))
        assert f'op0 [label="{escape_label("drop_first(2)")}"];' in dot


class TestEdges:
    def test_real_edges(self) -> None:
        dot = to_graphviz(trace(["a", "b", "c"]).reversed())
        edges = STEP_EDGE.findall(dot)
        assert edges == [
            ("0", "2", "1", "0", ""),
            ("0", "1", "1", "1", ""),
            ("0", "0", "1", "2", ""),
        ]

    def test_converging_edges_for_duplicates(self) -> None:
        dot = to_graphviz(trace([1, 2, 1]).unique())
        assert dot.count('-> "node1":f0;') == 2

    def test_synthetic_edge_is_kept_invisible(self) -> None:
        dot = to_graphviz(trace([1, 2]).first_where(lambda x: x > 5))
        assert '"node0":f0 -> "node1":f0[penwidth=0.0,arrowhead=none];' in dot

    def test_edges_per_step(self) -> None:
        view = trace([1, 2, 3]).filter(lambda x: x != 2).reduce(0, operator.add)
        dot = to_graphviz(view)
        edges = STEP_EDGE.findall(dot)
        assert [edge[:4] for edge in edges] == [
            ("0", "0", "1", "0"),
            ("0", "2", "1", "1"),
            ("1", "0", "2", "0"),
            ("1", "1", "2", "0"),
        ]
        assert 'node2[label="<f0> &#x34;"];' in dot


class TestEscaping:
    def test_labels_escaped(self) -> None:
        dot = to_graphviz(trace(['a|b', '{"x"}']))
        assert "a&#x7C;b" in dot
        assert "&#x7B;&#x22;x&#x22;&#x7D;" in dot
        assert 'a|b' not in dot

    def test_operation_parameter_escaped(self) -> None:
        dot = to_graphviz(trace(["a"]).contains('"quoted"'))
        assert 'op0 [label="contains&#x28;&#x22;quoted&#x22;&#x29;"];' in dot


def test_serialize_graph_directly() -> None:
    dot = serialize_graph(History.empty(), ElementSnapshot.of([]), "list[Any]")
    assert 'node0[label=""];' in dot


def test_deterministic_output() -> None:
    def build() -> str:
        view = trace(["b", "a", "b", "c"]).unique().sorted().first()
        return to_graphviz(view)

    assert build() == build()


@pytest.mark.parametrize("with_reduce,states,operations", [(False, 4, 3), (True, 5, 4)])
def test_pipeline_graph_shape(with_reduce: bool, states: int, operations: int) -> None:
    view = (
        trace(["10", "87", "97", "43", "invalid", "121", "20"])
        .compact_map(_parse)
        .unique()
        .sorted()
    )
    assert len(view.history[0].edges) == 6
    if with_reduce:
        view = view.reduce(1, operator.mul)
    dot = to_graphviz(view)
    assert len(STATE_NODE.findall(dot)) == states == len(view.history) + 1
    assert len(OPERATION_NODE.findall(dot)) == operations
