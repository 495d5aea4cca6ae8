"""
Renderer-ready layers for a parsed QML style.

Materializes a ``QMLStyle`` against a concrete data source: every converted
layer fragment gets an id, source, filter, normalized paint and visible
layout, with outline widths recovered from the raw document applied to
line layers. Also holds the single process-wide active style.
"""

import copy
import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from mapstyler.core.styles.normalizer import fix_transparency
from mapstyler.core.styles.outlines import extract_outlines, outline_for
from mapstyler.models.style import OutlineCorrection, QMLStyle

logger = logging.getLogger(__name__)

# Used for rules that carry no filter of their own
DEFAULT_FILTER = ["==", "$type", "Polygon"]


def build_render_layers(
    style: QMLStyle,
    source_id: str,
    raw_qml: Optional[str] = None,
    corrections: Optional[Sequence[Optional[OutlineCorrection]]] = None,
) -> List[Dict[str, Any]]:
    """
    Build the layers a renderer adds for a style.

    Layer ids are ``<source>-<rule index>-<n>-<type>`` where ``n`` is the
    fragment position within the rule.

    Args:
        style: Parsed style
        source_id: Id of the data source the layers draw
        raw_qml: Document text the style was parsed from, for outline
            recovery
        corrections: Pre-extracted outline corrections; extracted from
            ``raw_qml`` when omitted

    Returns:
        Layer definitions in rule order; empty for an empty style
    """
    if style.is_empty:
        return []

    if corrections is None:
        corrections = extract_outlines(raw_qml)

    layers: List[Dict[str, Any]] = []

    for category in style.categorized:
        outline = outline_for(corrections, category.index, category.symbol)

        for position, fragment in enumerate(category.layers):
            layer_type = fragment["type"]
            paint = fix_transparency(layer_type, copy.deepcopy(fragment.get("paint") or {}))

            if layer_type == "line" and outline is not None:
                paint["line-width"] = outline.width

            layer_filter = category.filter if category.filter is not None else DEFAULT_FILTER

            layers.append(
                {
                    "id": f"{source_id}-{category.index}-{position}-{layer_type}",
                    "type": layer_type,
                    "source": source_id,
                    "filter": copy.deepcopy(layer_filter),
                    "paint": paint,
                    "layout": {**(fragment.get("layout") or {}), "visibility": "visible"},
                }
            )

    logger.debug(f"Built {len(layers)} render layer(s) for source '{source_id}'")
    return layers


@dataclass
class ActiveStyle:
    """
    The style currently applied to the map.

    Attributes:
        source_id: Data source the style is applied to
        style: Parsed style
        layers: Render layers built for the source
        corrections: Outline corrections recovered from the document
    """

    source_id: str
    style: QMLStyle
    layers: List[Dict[str, Any]] = field(default_factory=list)
    corrections: List[Optional[OutlineCorrection]] = field(default_factory=list)


class ActiveStyleRegistry:
    """
    Holds exactly one active style, replaceable as a whole.

    Thread-safe; readers always see either the previous or the new style,
    never a partially built one.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._active: Optional[ActiveStyle] = None

    def set_active(
        self,
        source_id: str,
        style: QMLStyle,
        raw_qml: Optional[str] = None,
    ) -> ActiveStyle:
        """
        Build layers for a style and make it the active one.

        Args:
            source_id: Data source the style applies to
            style: Parsed style
            raw_qml: Document text, for outline recovery

        Returns:
            The new active style
        """
        corrections = extract_outlines(raw_qml)
        active = ActiveStyle(
            source_id=source_id,
            style=style,
            layers=build_render_layers(style, source_id, corrections=corrections),
            corrections=corrections,
        )

        with self._lock:
            previous = self._active
            self._active = active

        if previous is not None:
            logger.info(
                f"Replaced active style for '{previous.source_id}' "
                f"({len(previous.layers)} layers) with '{source_id}' ({len(active.layers)} layers)"
            )
        else:
            logger.info(f"Activated style for '{source_id}' with {len(active.layers)} layers")

        return active

    def clear(self) -> None:
        """Remove the active style."""
        with self._lock:
            self._active = None
        logger.info("Cleared active style")

    @property
    def active(self) -> Optional[ActiveStyle]:
        """The active style, or None."""
        with self._lock:
            return self._active


# Global active style, owned by the HTTP layer
active_style = ActiveStyleRegistry()
