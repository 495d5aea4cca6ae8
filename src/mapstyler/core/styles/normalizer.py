"""
Color and opacity normalization for converted paint properties.

QGIS writes colors as ``r,g,b,a`` component lists with alpha in 0-255.
Renderers expect a color literal and a separate opacity, so the alpha is
split off into the matching ``*-opacity`` property.
"""

import logging
from typing import Any, Dict, List, MutableMapping, Optional

logger = logging.getLogger(__name__)

# Paint keys normalized per layer type: (color key, opacity key)
TRANSPARENCY_KEYS = {
    "fill": ("fill-color", "fill-opacity"),
    "line": ("line-color", "line-opacity"),
}


def split_components(raw: Any) -> Optional[List[float]]:
    """
    Split an ``r,g,b[,a]`` string into numbers.

    Returns:
        [r, g, b, a] with a defaulting to 255, or None when ``raw`` is not a
        comma-separated list of three or four numbers
    """
    if not isinstance(raw, str) or "," not in raw:
        return None

    parts = [part.strip() for part in raw.split(",")]
    # QGIS 3.28+ appends a float spec such as 'rgb:0.1,0.2,0.3,1'
    for position, part in enumerate(parts):
        if ":" in part:
            parts = parts[:position]
            break
    if len(parts) not in (3, 4):
        return None

    try:
        components = [float(part) for part in parts]
    except ValueError:
        return None

    if len(components) == 3:
        components.append(255.0)
    return components


def _format(value: float) -> str:
    return str(int(value)) if value.is_integer() else str(value)


def normalize_color(
    paint: MutableMapping[str, Any],
    color_key: str,
    opacity_key: str,
) -> MutableMapping[str, Any]:
    """
    Move the alpha component of a component-list color into its opacity key.

    ``"120,80,40,128"`` becomes ``"rgb(120,80,40)"`` with opacity ``0.502``.
    Values that are not comma separated are left untouched.

    Args:
        paint: Paint properties, modified in place
        color_key: Key holding the color
        opacity_key: Key receiving the opacity

    Returns:
        The same paint mapping
    """
    components = split_components(paint.get(color_key))
    if components is None:
        if isinstance(paint.get(color_key), str) and "," in paint[color_key]:
            logger.debug(f"Leaving unparseable color {paint[color_key]!r} in {color_key}")
        return paint

    r, g, b, a = components
    paint[color_key] = f"rgb({_format(r)},{_format(g)},{_format(b)})"
    paint[opacity_key] = round(a / 255, 3)
    return paint


def css_color(raw: Any) -> Any:
    """Render a component-list color as ``rgba(...)``, keeping other values."""
    components = split_components(raw)
    if components is None:
        return raw
    r, g, b, a = components
    return f"rgba({_format(r)},{_format(g)},{_format(b)},{round(a / 255, 3)})"


def fix_transparency(layer_type: str, paint: Dict[str, Any]) -> Dict[str, Any]:
    """
    Normalize the color/opacity pair of a fill or line paint.

    Other component-list colors in the paint (e.g. ``fill-outline-color``)
    have no opacity key of their own and become ``rgba(...)`` literals.

    Args:
        layer_type: Renderer layer type
        paint: Paint properties, modified in place

    Returns:
        The same paint dictionary
    """
    keys = TRANSPARENCY_KEYS.get(layer_type)
    if keys is not None:
        normalize_color(paint, *keys)

    for key, value in paint.items():
        if key.endswith("-color"):
            paint[key] = css_color(value)

    return paint
