"""
Paint expressions for user-styled GeoJSON layers.
"""

from mapstyler.core.paint.builder import (
    LayerPaint,
    build_layer_paint,
    build_paint_expression,
    evaluate_feature,
    resolve_base_color,
)

__all__ = [
    "LayerPaint",
    "build_layer_paint",
    "build_paint_expression",
    "evaluate_feature",
    "resolve_base_color",
]
