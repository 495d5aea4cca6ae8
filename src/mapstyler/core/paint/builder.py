"""
Paint expression builder.

Merges the three user-authored rule sets of a layer into one first-match
fill color expression. Precedence is fixed:

1. Enabled boolean rules, each emitting a true and a false branch
2. Categorical rule values, in mapping order
3. Numeric comparison rules, in declaration order

followed by the layer's base color as the fallback. Incomplete rules are
normal while a user is still editing and are skipped without error.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple, Union

from mapstyler.core.config import settings
from mapstyler.models.paint import (
    COMPARISON_OPERATORS,
    ConditionalPaint,
    FieldEquals,
    NumericComparison,
    PaintExpression,
    Predicate,
    ScalarPaint,
)
from mapstyler.models.rules import (
    BooleanRule,
    CategoricalRule,
    LayerStyle,
    NumericComparisonRule,
)

logger = logging.getLogger(__name__)

Branch = Tuple[Predicate, str]


def _safe_color(value: Any, fallback: str) -> str:
    """Use ``value`` when it is a non-blank string, else ``fallback``."""
    if isinstance(value, str) and value.strip():
        return value
    return fallback


def resolve_base_color(base_color: Any) -> str:
    """Layer base color, or the configured fallback when it is blank."""
    return _safe_color(base_color, settings.fallback_color)


def _boolean_branches(rules: Sequence[BooleanRule], base_color: str) -> List[Branch]:
    branches: List[Branch] = []
    for rule in rules:
        if not rule.enabled:
            continue
        if not rule.field:
            logger.debug("Skipping boolean rule without a field")
            continue
        branches.append((FieldEquals(rule.field, True), _safe_color(rule.true_color, base_color)))
        branches.append((FieldEquals(rule.field, False), _safe_color(rule.false_color, base_color)))
    return branches


def _categorical_branches(rule: Optional[CategoricalRule], base_color: str) -> List[Branch]:
    if rule is None:
        return []
    if not rule.field or not rule.value_to_color:
        logger.debug("Skipping categorical rule without a field or values")
        return []
    return [
        (FieldEquals(rule.field, value), _safe_color(color, base_color))
        for value, color in rule.value_to_color.items()
    ]


def _numeric_branches(rules: Sequence[NumericComparisonRule], base_color: str) -> List[Branch]:
    branches: List[Branch] = []
    for position, rule in enumerate(rules):
        if not rule.field_a or not rule.field_b or not rule.operator:
            logger.debug(f"Skipping incomplete numeric rule {position}")
            continue
        if rule.operator not in COMPARISON_OPERATORS:
            logger.debug(f"Skipping numeric rule {position} with operator {rule.operator!r}")
            continue
        predicate = NumericComparison(rule.field_a, rule.operator, rule.field_b)
        branches.append((predicate, _safe_color(rule.color, base_color)))
    return branches


def build_paint_expression(
    boolean_rules: Optional[Sequence[BooleanRule]] = None,
    categorical: Optional[CategoricalRule] = None,
    numeric_rules: Optional[Sequence[NumericComparisonRule]] = None,
    base_color: Optional[str] = None,
) -> PaintExpression:
    """
    Build the fill color expression for a layer.

    Args:
        boolean_rules: Boolean rules in precedence order
        categorical: Categorical rule, if any
        numeric_rules: Numeric comparison rules in precedence order
        base_color: Fallback color; blank values use the configured fallback

    Returns:
        ConditionalPaint when at least one rule is usable, otherwise
        ScalarPaint(base_color)
    """
    base = resolve_base_color(base_color)

    branches = (
        _boolean_branches(boolean_rules or [], base)
        + _categorical_branches(categorical, base)
        + _numeric_branches(numeric_rules or [], base)
    )

    if not branches:
        return ScalarPaint(base)

    logger.debug(f"Built conditional paint with {len(branches)} branch(es)")
    return ConditionalPaint(branches=tuple(branches), fallback=base)


@dataclass(frozen=True)
class LayerPaint:
    """
    Fill and border paint of a user layer.

    Attributes:
        fill_color: Fill color expression
        fill_opacity: Fill opacity
        line_color: Border color
        line_width: Border width in pixels
        line_opacity: Border opacity
    """

    fill_color: PaintExpression
    fill_opacity: float
    line_color: str
    line_width: float
    line_opacity: float

    @property
    def has_rules(self) -> bool:
        return isinstance(self.fill_color, ConditionalPaint)

    def fill_paint(self) -> Dict[str, Any]:
        """Paint properties of the fill layer."""
        return {"fill-color": self.fill_color.to_mapbox(), "fill-opacity": self.fill_opacity}

    def line_paint(self) -> Dict[str, Any]:
        """Paint properties of the border line layer."""
        return {
            "line-color": self.line_color,
            "line-width": self.line_width,
            "line-opacity": self.line_opacity,
        }


def build_layer_paint(layer: LayerStyle) -> LayerPaint:
    """
    Build fill and border paint for a user layer.

    Args:
        layer: Layer appearance and rule sets

    Returns:
        LayerPaint
    """
    return LayerPaint(
        fill_color=build_paint_expression(
            boolean_rules=layer.boolean_styles,
            categorical=layer.text_categories,
            numeric_rules=layer.rules,
            base_color=layer.color,
        ),
        fill_opacity=layer.fill_opacity,
        line_color=_safe_color(layer.stroke_color, "#000000"),
        line_width=layer.stroke_width,
        line_opacity=layer.stroke_opacity,
    )


def evaluate_feature(
    expression: PaintExpression,
    feature: Union[Mapping[str, Any], None],
) -> str:
    """
    Resolve the fill color of one GeoJSON feature.

    Args:
        expression: Paint expression
        feature: GeoJSON Feature, or a bare properties mapping

    Returns:
        Color string
    """
    if isinstance(feature, Mapping) and feature.get("type") == "Feature":
        properties = feature.get("properties") or {}
    else:
        properties = feature or {}
    return expression.evaluate(properties)
