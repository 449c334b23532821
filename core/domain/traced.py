"""Traced views: sequences and values that remember how they were produced."""

from __future__ import annotations

import functools
import itertools
from dataclasses import dataclass, field
from typing import (
    Any,
    Callable,
    Generic,
    Hashable,
    Iterable,
    Iterator,
    Optional,
    Protocol,
    Sequence,
    Tuple,
    TypeVar,
    runtime_checkable,
)

from core.domain.labels import (
    element_type_name,
    optional_type_name,
    transition_type_name,
    type_name,
)
from core.domain.provenance import (
    Edge,
    ElementSnapshot,
    History,
    TraceError,
    TransformationStep,
    UnhashableElementError,
    edges_from_sources,
)

T = TypeVar("T")
U = TypeVar("U")
R = TypeVar("R")


@runtime_checkable
class TracedView(Protocol):
    """What the graph serializer needs from any traced view."""

    history: History

    def display_elements(self) -> ElementSnapshot:
        ...

    def declared_type_name(self) -> str:
        ...


@dataclass(frozen=True)
class TracedValue(Generic[T]):
    """A single result together with the steps that produced it."""

    value: T
    type_name: str
    history: History = field(default_factory=History.empty)
    _snapshot: ElementSnapshot = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "_snapshot", ElementSnapshot.of((self.value,)))

    def display_elements(self) -> ElementSnapshot:
        return self._snapshot

    def declared_type_name(self) -> str:
        return self.type_name


@dataclass(frozen=True)
class TracedSequence(Generic[T]):
    """Immutable sequence whose operations record per-element provenance.

    Every operation fully materializes its result and returns a new view whose
    history is this view's history plus exactly one step. When a user callback
    raises, the exception propagates and nothing is recorded.
    """

    elements: Tuple[T, ...]
    history: History = field(default_factory=History.empty)
    element_type: str | None = None
    _snapshot: ElementSnapshot = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "elements", tuple(self.elements))
        object.__setattr__(self, "_snapshot", ElementSnapshot.of(self.elements))

    # ------------------------------------------------------------------
    # view protocol
    # ------------------------------------------------------------------
    @property
    def element_type_name(self) -> str:
        if self.element_type is not None:
            return self.element_type
        return element_type_name(self.elements)

    def display_elements(self) -> ElementSnapshot:
        return self._snapshot

    def declared_type_name(self) -> str:
        return f"list[{self.element_type_name}]"

    def to_list(self) -> list[T]:
        return list(self.elements)

    def __iter__(self) -> Iterator[T]:
        return iter(self.elements)

    def __len__(self) -> int:
        return len(self.elements)

    # ------------------------------------------------------------------
    # step bookkeeping
    # ------------------------------------------------------------------
    def _step(
        self,
        name: str,
        edges: Iterable[Edge],
        *,
        type_hint: str | None = None,
        parameter: str | None = None,
    ) -> TransformationStep:
        return TransformationStep(
            name=name,
            source_type_name=type_hint or self.element_type_name,
            source_elements=self.display_elements(),
            edges=tuple(edges),
            parameter=parameter,
        )

    def _derive(
        self,
        name: str,
        pairs: Sequence[Tuple[int, U]],
        *,
        parameter: str | None = None,
        keeps_type: bool = True,
    ) -> "TracedSequence[U]":
        """Build the next view from ``(source position, element)`` pairs in output order."""
        result = tuple(element for _, element in pairs)
        if keeps_type:
            out_type = self.element_type
            type_hint = self.element_type_name
        else:
            out_type = None
            type_hint = transition_type_name(
                self.element_type_name, element_type_name(result)
            )
        step = self._step(
            name,
            edges_from_sources([position for position, _ in pairs]),
            type_hint=type_hint,
            parameter=parameter,
        )
        return TracedSequence(result, self.history.append(step), out_type)

    def _value(
        self,
        name: str,
        value: R,
        value_type: str,
        edges: Iterable[Edge],
        *,
        parameter: str | None = None,
    ) -> TracedValue[R]:
        step = self._step(
            name,
            edges,
            type_hint=transition_type_name(self.element_type_name, value_type),
            parameter=parameter,
        )
        return TracedValue(value, value_type, self.history.append(step))

    def _found(
        self,
        name: str,
        pair: Optional[Tuple[int, T]],
        *,
        parameter: str | None = None,
    ) -> TracedValue[Optional[T]]:
        if pair is None:
            position, value = None, None
        else:
            position, value = pair
        return self._value(
            name,
            value,
            optional_type_name(self.element_type_name),
            [Edge(position, 0)],
            parameter=parameter,
        )

    # ------------------------------------------------------------------
    # element-wise operations
    # ------------------------------------------------------------------
    def map(self, transform: Callable[[T], U]) -> "TracedSequence[U]":
        pairs = [(i, transform(element)) for i, element in enumerate(self.elements)]
        return self._derive("map", pairs, keeps_type=False)

    def filter(self, is_included: Callable[[T], bool]) -> "TracedSequence[T]":
        pairs = [(i, element) for i, element in enumerate(self.elements) if is_included(element)]
        return self._derive("filter", pairs)

    def compact_map(self, transform: Callable[[T], Optional[U]]) -> "TracedSequence[U]":
        """Map and drop every element for which ``transform`` returns ``None``."""
        pairs = []
        for i, element in enumerate(self.elements):
            result = transform(element)
            if result is not None:
                pairs.append((i, result))
        return self._derive("compact_map", pairs, keeps_type=False)

    def flat_map(self, transform: Callable[[T], Iterable[U]]) -> "TracedSequence[U]":
        """Map every element to zero or more elements; all of them point back at it."""
        pairs = [
            (i, produced)
            for i, element in enumerate(self.elements)
            for produced in transform(element)
        ]
        return self._derive("flat_map", pairs, keeps_type=False)

    def joined(self, separator: str | None = None) -> Any:
        """Flatten nested iterables, or concatenate strings when ``separator`` is given."""
        if separator is None:
            pairs = [
                (i, produced) for i, element in enumerate(self.elements) for produced in element
            ]
            return self._derive("joined", pairs, keeps_type=False)
        text = separator.join(self.elements)
        edges = [Edge(i, 0) for i in range(len(self.elements))]
        return self._value("joined", text, "str", edges, parameter=repr(separator))

    # ------------------------------------------------------------------
    # reordering
    # ------------------------------------------------------------------
    def sorted(
        self,
        key: Callable[[T], Any] | None = None,
        *,
        reverse: bool = False,
    ) -> "TracedSequence[T]":
        """Stable sort; equal elements keep their relative order."""
        element_key = key or (lambda element: element)
        pairs = sorted(
            enumerate(self.elements),
            key=lambda pair: element_key(pair[1]),
            reverse=reverse,
        )
        return self._derive("sorted", pairs, parameter="reverse" if reverse else None)

    def sorted_by(self, is_ordered_before: Callable[[T, T], bool]) -> "TracedSequence[T]":
        """Sort with a strict "comes before" predicate instead of a key."""

        def compare(left: Tuple[int, T], right: Tuple[int, T]) -> int:
            if is_ordered_before(left[1], right[1]):
                return -1
            if is_ordered_before(right[1], left[1]):
                return 1
            return 0

        pairs = sorted(enumerate(self.elements), key=functools.cmp_to_key(compare))
        return self._derive("sorted_by", pairs)

    def reversed(self) -> "TracedSequence[T]":
        pairs = list(reversed(list(enumerate(self.elements))))
        return self._derive("reversed", pairs)

    # ------------------------------------------------------------------
    # slicing
    # ------------------------------------------------------------------
    @staticmethod
    def _count_parameter(name: str, n: int) -> str | None:
        if n < 0:
            raise TraceError(f"{name} requires a non-negative count, got {n}")
        return None if n == 1 else str(n)

    def drop_first(self, n: int = 1) -> "TracedSequence[T]":
        parameter = self._count_parameter("drop_first", n)
        pairs = list(enumerate(self.elements))[n:]
        return self._derive("drop_first", pairs, parameter=parameter)

    def drop_last(self, n: int = 1) -> "TracedSequence[T]":
        parameter = self._count_parameter("drop_last", n)
        pairs = list(enumerate(self.elements))[: max(len(self.elements) - n, 0)]
        return self._derive("drop_last", pairs, parameter=parameter)

    def prefix(self, max_length: int) -> "TracedSequence[T]":
        if max_length < 0:
            raise TraceError(f"prefix requires a non-negative length, got {max_length}")
        pairs = list(enumerate(self.elements))[:max_length]
        return self._derive("prefix", pairs, parameter=str(max_length))

    def suffix(self, max_length: int) -> "TracedSequence[T]":
        if max_length < 0:
            raise TraceError(f"suffix requires a non-negative length, got {max_length}")
        start = max(len(self.elements) - max_length, 0)
        pairs = list(enumerate(self.elements))[start:]
        return self._derive("suffix", pairs, parameter=str(max_length))

    def suffix_from(self, start: int) -> "TracedSequence[T]":
        if not 0 <= start <= len(self.elements):
            raise TraceError(
                f"suffix_from start {start} is outside 0...{len(self.elements)}"
            )
        pairs = list(enumerate(self.elements))[start:]
        return self._derive("suffix_from", pairs, parameter=str(start))

    def drop_while(self, predicate: Callable[[T], bool]) -> "TracedSequence[T]":
        pairs = list(itertools.dropwhile(lambda pair: predicate(pair[1]), enumerate(self.elements)))
        return self._derive("drop_while", pairs)

    def prefix_while(self, predicate: Callable[[T], bool]) -> "TracedSequence[T]":
        pairs = list(itertools.takewhile(lambda pair: predicate(pair[1]), enumerate(self.elements)))
        return self._derive("prefix_while", pairs)

    # ------------------------------------------------------------------
    # de-duplication
    # ------------------------------------------------------------------
    def unique(self) -> "TracedSequence[T]":
        """Keep first occurrences; later duplicates point at the kept element."""
        seen: dict[Hashable, int] = {}
        edges: list[Edge] = []
        result: list[T] = []
        for position, element in enumerate(self.elements):
            try:
                target = seen.get(element)  # type: ignore[call-overload]
            except TypeError as exc:
                raise UnhashableElementError(
                    f"unique() needs hashable elements, got {type_name(element)}"
                ) from exc
            if target is None:
                target = len(result)
                seen[element] = target  # type: ignore[index]
                result.append(element)
            edges.append(Edge(position, target))
        step = self._step("unique", edges)
        return TracedSequence(tuple(result), self.history.append(step), self.element_type)

    # ------------------------------------------------------------------
    # reductions to a single value
    # ------------------------------------------------------------------
    def first(self) -> TracedValue[Optional[T]]:
        pair = (0, self.elements[0]) if self.elements else None
        return self._found("first", pair)

    def first_where(self, predicate: Callable[[T], bool]) -> TracedValue[Optional[T]]:
        pair = next(
            ((i, element) for i, element in enumerate(self.elements) if predicate(element)),
            None,
        )
        return self._found("first_where", pair)

    def max(self, key: Callable[[T], Any] | None = None) -> TracedValue[Optional[T]]:
        return self._extreme("max", max, key)

    def min(self, key: Callable[[T], Any] | None = None) -> TracedValue[Optional[T]]:
        return self._extreme("min", min, key)

    def _extreme(
        self,
        name: str,
        pick: Callable[..., Tuple[int, T]],
        key: Callable[[T], Any] | None,
    ) -> TracedValue[Optional[T]]:
        element_key = key or (lambda element: element)
        pair = pick(
            enumerate(self.elements),
            key=lambda item: element_key(item[1]),
            default=None,
        )
        return self._found(name, pair)

    def contains_where(self, predicate: Callable[[T], bool]) -> TracedValue[bool]:
        position = next(
            (i for i, element in enumerate(self.elements) if predicate(element)), None
        )
        return self._value("contains_where", position is not None, "bool", [Edge(position, 0)])

    def contains(self, element: T) -> TracedValue[bool]:
        position = next(
            (i for i, candidate in enumerate(self.elements) if candidate == element), None
        )
        return self._value(
            "contains",
            position is not None,
            "bool",
            [Edge(position, 0)],
            parameter=str(element),
        )

    def reduce(self, initial: R, combine: Callable[[R, T], R]) -> TracedValue[R]:
        """Fold to a single value; every input element is recorded as contributing."""
        result = functools.reduce(combine, self.elements, initial)
        edges = [Edge(i, 0) for i in range(len(self.elements))]
        return self._value("reduce", result, type_name(result), edges)


def trace(elements: Iterable[T], *, element_type: str | None = None) -> TracedSequence[T]:
    """Lift a finite iterable into a traced sequence with an empty history."""
    return TracedSequence(tuple(elements), History.empty(), element_type)
