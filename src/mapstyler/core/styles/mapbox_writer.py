"""
Conversion of style rules into MapLibre/Mapbox layer fragments.

A fragment is ``{"type": ..., "paint": {...}, "layout": {...}}``; ids,
sources and filters are attached later when the style is applied to a
concrete data source.
"""

from typing import Any, Dict, List

from mapstyler.core.errors import StyleConversionError
from mapstyler.models.style import StyleRule, Symbolizer, SymbolizerKind

# QGIS Qt pen styles to renderer line caps/joins
CAP_STYLES = {"flat": "butt", "square": "square", "round": "round"}
JOIN_STYLES = {"bevel": "bevel", "miter": "miter", "mitre": "miter", "round": "round"}


def _fill_layers(rule: StyleRule, symbolizer: Symbolizer) -> List[Dict[str, Any]]:
    if not symbolizer.color and not symbolizer.outline_color:
        raise StyleConversionError(
            "Fill symbolizer has neither a fill nor an outline color",
            rule_index=rule.index,
        )

    layers: List[Dict[str, Any]] = []

    if symbolizer.color:
        paint: Dict[str, Any] = {
            "fill-color": symbolizer.color,
            "fill-opacity": symbolizer.opacity,
        }
        if symbolizer.outline_color:
            paint["fill-outline-color"] = symbolizer.outline_color
        layers.append({"type": "fill", "paint": paint, "layout": {}})

    if symbolizer.outline_color and symbolizer.outline_width:
        layout: Dict[str, Any] = {}
        if symbolizer.join:
            layout["line-join"] = JOIN_STYLES.get(symbolizer.join, "miter")
        layers.append(
            {
                "type": "line",
                "paint": {
                    "line-color": symbolizer.outline_color,
                    "line-width": symbolizer.outline_width,
                    "line-opacity": symbolizer.opacity,
                },
                "layout": layout,
            }
        )

    return layers


def _line_layer(rule: StyleRule, symbolizer: Symbolizer) -> Dict[str, Any]:
    if not symbolizer.color:
        raise StyleConversionError("Line symbolizer has no color", rule_index=rule.index)

    paint: Dict[str, Any] = {
        "line-color": symbolizer.color,
        "line-width": symbolizer.width if symbolizer.width is not None else 1,
        "line-opacity": symbolizer.opacity,
    }
    if symbolizer.dasharray:
        paint["line-dasharray"] = list(symbolizer.dasharray)

    layout: Dict[str, Any] = {}
    if symbolizer.cap:
        layout["line-cap"] = CAP_STYLES.get(symbolizer.cap, "butt")
    if symbolizer.join:
        layout["line-join"] = JOIN_STYLES.get(symbolizer.join, "miter")

    return {"type": "line", "paint": paint, "layout": layout}


def write_rule_layers(rule: StyleRule) -> List[Dict[str, Any]]:
    """
    Convert one style rule into layer fragments.

    FILL symbolizers produce a fill layer plus a line layer for the outline;
    LINE symbolizers produce a line layer.

    Args:
        rule: Rule whose symbolizers are all renderable

    Returns:
        Layer fragments in symbolizer order

    Raises:
        StyleConversionError: If the filter is not a translated filter list
            or a symbolizer cannot be expressed
    """
    if rule.filter is not None and not isinstance(rule.filter, list):
        raise StyleConversionError(
            f"Filter {rule.filter!r} cannot be expressed as a layer filter",
            rule_index=rule.index,
        )

    layers: List[Dict[str, Any]] = []
    for symbolizer in rule.symbolizers:
        if symbolizer.kind == SymbolizerKind.FILL:
            layers.extend(_fill_layers(rule, symbolizer))
        elif symbolizer.kind == SymbolizerKind.LINE:
            layers.append(_line_layer(rule, symbolizer))
        else:
            raise StyleConversionError(
                f"Unsupported symbolizer kind {symbolizer.kind.value}",
                rule_index=rule.index,
            )

    return layers
