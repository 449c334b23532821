"""Display helpers shared by the domain and the graph serializer."""

from __future__ import annotations

from typing import Iterable

_LATIN_LETTERS = frozenset("ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz")

ANY_TYPE_NAME = "Any"


def escape_label(text: str) -> str:
    """Replace every character that is not a Latin letter with a numeric reference.

    ``"a,b"`` becomes ``"a&#x2C;b"``. Digits and whitespace are escaped too, so the
    result never contains characters with meaning in the dot language.
    """
    return "".join(ch if ch in _LATIN_LETTERS else f"&#x{ord(ch):X};" for ch in text)


def describe(element: object) -> str:
    """Human readable representation of a single element."""
    return str(element)


def type_name(value: object) -> str:
    if value is None:
        return "None"
    return type(value).__name__


def element_type_name(elements: Iterable[object]) -> str:
    """Infer a type name for a collection, e.g. ``"int"`` or ``"int | str"``."""
    names: list[str] = []
    for element in elements:
        name = type_name(element)
        if name not in names:
            names.append(name)
    if not names:
        return ANY_TYPE_NAME
    return " | ".join(names)


def optional_type_name(name: str) -> str:
    return f"Optional[{name}]"


def transition_type_name(source: str, target: str) -> str:
    """Type hint for a step: the element type, or ``"source -> target"`` when it changes."""
    if source == target:
        return source
    return f"{source} -> {target}"
