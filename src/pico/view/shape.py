"""Result shapes — classify pipeline output once, at the view boundary.

Renderers match on the shape instead of poking at types themselves::

    match classify(result):
        case Absent():
            ...
        case Record(fields):
            ...
        case Records(rows):
            ...
"""

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True, slots=True)
class Absent:
    """No result: ``None`` or an empty sequence."""


@dataclass(frozen=True, slots=True)
class Scalar:
    """A single string, number, or boolean."""

    value: str | int | float | bool


@dataclass(frozen=True, slots=True)
class Record:
    """A single name→value object."""

    fields: Mapping[str, Any]


@dataclass(frozen=True, slots=True)
class Records:
    """A sequence whose first element is an object.

    Later elements are usually objects too; ones that are not are kept
    as-is and rendered by position.
    """

    rows: tuple[Any, ...]


@dataclass(frozen=True, slots=True)
class Values:
    """A non-empty sequence of scalars (or nested sequences)."""

    items: tuple[Any, ...]


type Shape = Absent | Scalar | Record | Records | Values


def classify(result: Any) -> Shape:
    """Classify *result* into exactly one shape."""
    if result is None:
        return Absent()
    if isinstance(result, Mapping):
        return Record(result)
    if isinstance(result, (str, bytes)):
        text = result.decode("utf-8", "replace") if isinstance(result, bytes) else result
        return Scalar(text)
    if isinstance(result, Sequence):
        if not result:
            return Absent()
        items = tuple(result)
        if isinstance(items[0], Mapping):
            return Records(items)
        return Values(items)
    if isinstance(result, (bool, int, float)):
        return Scalar(result)
    return Scalar(str(result))
