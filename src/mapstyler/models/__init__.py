"""
Data models and schemas.
"""

from .crs import CRSDefinition, CRSIdentifier
from .errors import ErrorDetail, ErrorResponse
from .paint import ConditionalPaint, FieldEquals, NumericComparison, Predicate, ScalarPaint
from .rules import BooleanRule, CategoricalRule, LayerStyle, NumericComparisonRule
from .style import (
    SUPPORTED_SYMBOLIZERS,
    CategorizedRule,
    OutlineCorrection,
    QMLStyle,
    RendererType,
    StyleDocument,
    StyleRule,
    Symbolizer,
    SymbolizerKind,
)

__all__ = [
    # CRS
    "CRSDefinition",
    "CRSIdentifier",
    # Errors
    "ErrorDetail",
    "ErrorResponse",
    # Paint
    "ConditionalPaint",
    "FieldEquals",
    "NumericComparison",
    "Predicate",
    "ScalarPaint",
    # Rules
    "BooleanRule",
    "CategoricalRule",
    "LayerStyle",
    "NumericComparisonRule",
    # Styles
    "SUPPORTED_SYMBOLIZERS",
    "CategorizedRule",
    "OutlineCorrection",
    "QMLStyle",
    "RendererType",
    "StyleDocument",
    "StyleRule",
    "Symbolizer",
    "SymbolizerKind",
]
