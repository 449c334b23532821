import pytest

from core.domain.provenance import (
    Edge,
    ElementSnapshot,
    History,
    TraceError,
    TransformationStep,
    edges_from_sources,
)


def _step(name: str = "map", parameter: str | None = None) -> TransformationStep:
    return TransformationStep(
        name=name,
        source_type_name="int",
        source_elements=ElementSnapshot.of([1, 2]),
        edges=(Edge(0, 0), Edge(1, 1)),
        parameter=parameter,
    )


class TestEdge:
    def test_real_edge(self) -> None:
        edge = Edge(2, 0)
        assert not edge.is_synthetic

    def test_synthetic_edge(self) -> None:
        assert Edge(None, 0).is_synthetic

    @pytest.mark.parametrize("source,target", [(-1, 0), (0, -1)])
    def test_negative_positions(self, source: int, target: int) -> None:
        with pytest.raises(TraceError):
            Edge(source, target)


class TestElementSnapshot:
    def test_labels(self) -> None:
        snapshot = ElementSnapshot.of(["a", 1, None])
        assert snapshot.labels() == ("a", "1", "None")
        assert len(snapshot) == 3

    def test_snapshot_is_a_copy(self) -> None:
        source = [1, 2]
        snapshot = ElementSnapshot.of(source)
        source.append(3)
        assert list(snapshot) == [1, 2]

    def test_labels_captured_when_taken(self) -> None:
        row = [1]
        snapshot = ElementSnapshot.of([row])
        row.append(0)
        assert snapshot.labels() == ("[1]",)

    def test_direct_construction_fills_labels(self) -> None:
        assert ElementSnapshot((1, "a")).labels() == ("1", "a")


class TestTransformationStep:
    def test_label_without_parameter(self) -> None:
        assert _step().label == "map"

    def test_label_with_parameter(self) -> None:
        assert _step("drop_first", "2").label == "drop_first(2)"

    def test_requires_name(self) -> None:
        with pytest.raises(TraceError):
            _step(name="")

    def test_source_outside_snapshot(self) -> None:
        with pytest.raises(TraceError):
            TransformationStep(
                name="map",
                source_type_name="int",
                source_elements=ElementSnapshot.of([1]),
                edges=(Edge(3, 0),),
            )


class TestHistory:
    def test_append_returns_new_history(self) -> None:
        empty = History.empty()
        first = empty.append(_step())
        second = first.append(_step("filter"))
        assert len(empty) == 0
        assert len(first) == 1
        assert [step.name for step in second] == ["map", "filter"]
        assert second[0] is first[0]


def test_edges_from_sources() -> None:
    assert edges_from_sources([2, 0]) == (Edge(2, 0), Edge(0, 1))
