"""
Paint expression models.

A fill color is either a plain color (``ScalarPaint``) or a first-match
list of predicate/color branches with a fallback (``ConditionalPaint``).
Both can be evaluated against a feature's properties and serialized to a
Mapbox/MapLibre ``case`` expression.
"""

import math
import operator
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple, Union

COMPARISON_OPERATORS: Dict[str, Callable[[float, float], bool]] = {
    "==": operator.eq,
    "!=": operator.ne,
    ">": operator.gt,
    ">=": operator.ge,
    "<": operator.lt,
    "<=": operator.le,
}


def to_number(value: Any) -> Optional[float]:
    """
    Coerce a property value to a float.

    Booleans count as 1/0 and numeric strings are parsed. Missing values,
    NaN and anything else return None.

    Args:
        value: Raw property value

    Returns:
        Float value, or None when the value is not numeric
    """
    if value is None:
        return None
    if isinstance(value, bool):
        return float(value)
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    return None if math.isnan(number) else number


def values_equal(left: Any, right: Any) -> bool:
    """Typed equality: ``true`` never equals ``1`` and ``"1"`` never equals ``1``."""
    if isinstance(left, bool) or isinstance(right, bool):
        return isinstance(left, bool) and isinstance(right, bool) and left == right
    return left == right


def numeric_guard(field: str) -> List[Any]:
    """
    Mapbox condition that holds when a property coerces like ``to_number``.

    Renderers turn null into 0 and fail on non-numeric strings, so
    comparisons are only evaluated behind this guard. A string converts
    when ``to-number`` gives the same result under two different fallbacks.
    """
    value = ["get", field]
    return [
        "match",
        ["typeof", value],
        "string",
        ["all", ["!=", value, ""], ["==", ["to-number", value, 0], ["to-number", value, 1]]],
        ["number", "boolean"],
        True,
        False,
    ]


class Predicate(ABC):
    """A condition evaluated against one feature's properties."""

    @abstractmethod
    def matches(self, properties: Mapping[str, Any]) -> bool:
        """Return True when the feature satisfies the condition."""

    @abstractmethod
    def to_mapbox(self) -> List[Any]:
        """Serialize as a Mapbox expression."""


@dataclass(frozen=True)
class FieldEquals(Predicate):
    """``field == value`` with typed equality."""

    field: str
    value: Any

    def matches(self, properties: Mapping[str, Any]) -> bool:
        if self.field not in properties:
            return False
        return values_equal(properties[self.field], self.value)

    def to_mapbox(self) -> List[Any]:
        return ["==", ["get", self.field], self.value]


@dataclass(frozen=True)
class NumericComparison(Predicate):
    """
    ``field_a <op> field_b`` with both operands coerced to numbers.

    An operand that cannot be coerced makes the predicate non-matching.
    """

    field_a: str
    operator: str
    field_b: str

    def __post_init__(self) -> None:
        if self.operator not in COMPARISON_OPERATORS:
            raise ValueError(f"Unsupported comparison operator: {self.operator!r}")

    def matches(self, properties: Mapping[str, Any]) -> bool:
        left = to_number(properties.get(self.field_a))
        right = to_number(properties.get(self.field_b))
        if left is None or right is None:
            return False
        return COMPARISON_OPERATORS[self.operator](left, right)

    def to_mapbox(self) -> List[Any]:
        return [
            "all",
            numeric_guard(self.field_a),
            numeric_guard(self.field_b),
            [
                self.operator,
                ["to-number", ["get", self.field_a]],
                ["to-number", ["get", self.field_b]],
            ],
        ]


@dataclass(frozen=True)
class ScalarPaint:
    """A single color applied to every feature."""

    color: str

    def evaluate(self, properties: Optional[Mapping[str, Any]] = None) -> str:
        return self.color

    def to_mapbox(self) -> str:
        return self.color


@dataclass(frozen=True)
class ConditionalPaint:
    """
    First-match conditional color.

    Attributes:
        branches: (predicate, color) pairs in precedence order
        fallback: Color for features no branch matches
    """

    branches: Tuple[Tuple[Predicate, str], ...]
    fallback: str

    def __post_init__(self) -> None:
        if not self.branches:
            raise ValueError("A conditional paint needs at least one branch; use ScalarPaint")

    def evaluate(self, properties: Optional[Mapping[str, Any]] = None) -> str:
        """
        Resolve the color for one feature.

        Args:
            properties: Feature properties (None is treated as empty)

        Returns:
            Color of the first matching branch, else the fallback
        """
        properties = properties or {}
        for predicate, color in self.branches:
            if predicate.matches(properties):
                return color
        return self.fallback

    def to_mapbox(self) -> List[Any]:
        expression: List[Any] = ["case"]
        for predicate, color in self.branches:
            expression.append(predicate.to_mapbox())
            expression.append(color)
        expression.append(self.fallback)
        return expression


PaintExpression = Union[ScalarPaint, ConditionalPaint]
