"""Domain value objects describing recorded transformation steps."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Iterator, Sequence, Tuple

from core.domain.labels import describe


class TraceError(ValueError):
    """Raised when a trace or one of its steps would be malformed."""


class UnhashableElementError(TypeError):
    """Raised when de-duplication is requested for elements without hashing support."""


@dataclass(frozen=True, slots=True)
class Edge:
    """Provenance link from an input position to an output position.

    ``source_position`` is ``None`` for a synthetic edge: the output element has no
    originating input element (e.g. ``first_where`` found nothing).
    """

    source_position: int | None
    target_position: int

    def __post_init__(self) -> None:
        if self.source_position is not None and self.source_position < 0:
            raise TraceError("Edge source position must be non-negative")
        if self.target_position < 0:
            raise TraceError("Edge target position must be non-negative")

    @property
    def is_synthetic(self) -> bool:
        return self.source_position is None


@dataclass(frozen=True, slots=True)
class ElementSnapshot:
    """Read-only, type-erased view of the elements that entered a step.

    Display strings are captured when the snapshot is taken, so mutating an
    element afterwards does not change how earlier states are shown.
    """

    elements: Tuple[object, ...]
    captured_labels: Tuple[str, ...] = field(default=(), repr=False, compare=False)

    def __post_init__(self) -> None:
        if len(self.captured_labels) != len(self.elements):
            object.__setattr__(
                self,
                "captured_labels",
                tuple(describe(element) for element in self.elements),
            )

    @classmethod
    def of(cls, elements: Iterable[object]) -> "ElementSnapshot":
        return cls(tuple(elements))

    def labels(self) -> Tuple[str, ...]:
        """Return the display string of every element, in order."""
        return self.captured_labels

    def __iter__(self) -> Iterator[object]:
        return iter(self.elements)

    def __len__(self) -> int:
        return len(self.elements)


@dataclass(frozen=True, slots=True)
class TransformationStep:
    """One recorded operation: what ran, what went in, and how outputs link to inputs."""

    name: str
    source_type_name: str
    source_elements: ElementSnapshot
    edges: Tuple[Edge, ...]
    parameter: str | None = None

    def __post_init__(self) -> None:
        if not self.name:
            raise TraceError("Transformation step name must be provided")
        for edge in self.edges:
            if edge.source_position is not None and edge.source_position >= len(
                self.source_elements
            ):
                raise TraceError(
                    f"Edge source {edge.source_position} is outside the "
                    f"{len(self.source_elements)} source elements of '{self.name}'"
                )

    @property
    def label(self) -> str:
        """Operation name plus ``(parameter)`` when one was recorded."""
        if self.parameter:
            return f"{self.name}({self.parameter})"
        return self.name


@dataclass(frozen=True, slots=True)
class History:
    """Append-only, immutable sequence of transformation steps."""

    steps: Tuple[TransformationStep, ...] = field(default_factory=tuple)

    @classmethod
    def empty(cls) -> "History":
        return cls(steps=tuple())

    def append(self, step: TransformationStep) -> "History":
        return History(self.steps + (step,))

    def __iter__(self) -> Iterator[TransformationStep]:
        return iter(self.steps)

    def __len__(self) -> int:
        return len(self.steps)

    def __getitem__(self, index: int) -> TransformationStep:
        return self.steps[index]


def edges_from_sources(sources: Sequence[int | None]) -> Tuple[Edge, ...]:
    """Build dense edges: output position ``j`` comes from ``sources[j]``."""
    return tuple(Edge(source, target) for target, source in enumerate(sources))
