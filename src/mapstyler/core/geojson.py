"""
GeoJSON document helpers.

Loading and inspection of uploaded GeoJSON: decoding, structural checks,
map bounds and the property fields the layer editor offers for rules.
"""

import json
import logging
from typing import Any, Dict, Iterator, List, Optional, Tuple, Union

from shapely.errors import GEOSException
from shapely.geometry import shape

from mapstyler.core.config import settings
from mapstyler.core.errors import ValidationError
from mapstyler.models.rules import BooleanRule

logger = logging.getLogger(__name__)

GEOMETRY_TYPES = frozenset(
    {
        "Point",
        "LineString",
        "Polygon",
        "MultiPoint",
        "MultiLineString",
        "MultiPolygon",
        "GeometryCollection",
    }
)
DOCUMENT_TYPES = GEOMETRY_TYPES | {"Feature", "FeatureCollection"}

Bounds = Tuple[float, float, float, float]


def load_geojson(content: Union[str, bytes]) -> Dict[str, Any]:
    """
    Decode and check a GeoJSON document.

    Args:
        content: Raw document bytes or text

    Returns:
        Parsed document

    Raises:
        ValidationError: If the content is empty, too large, not JSON, or
            not a GeoJSON object
    """
    if isinstance(content, bytes):
        if len(content) > settings.max_geojson_size_bytes:
            raise ValidationError(
                f"File size ({len(content)} bytes) exceeds maximum allowed size "
                f"of {settings.max_geojson_size_mb}MB",
                field="file",
            )
        try:
            content = content.decode("utf-8-sig")
        except UnicodeDecodeError as e:
            raise ValidationError(f"GeoJSON is not UTF-8 text: {e}", field="file")

    if not content or not content.strip():
        raise ValidationError("GeoJSON content is empty", field="file")

    try:
        document = json.loads(content)
    except json.JSONDecodeError as e:
        raise ValidationError(
            f"Invalid JSON: {e.msg} (line {e.lineno}, column {e.colno})",
            field="file",
        )

    return check_geojson(document)


def check_geojson(document: Any) -> Dict[str, Any]:
    """
    Check that a parsed value is a GeoJSON object of a known type.

    Raises:
        ValidationError: If it is not
    """
    if not isinstance(document, dict):
        raise ValidationError("GeoJSON must be a JSON object", field="file")

    document_type = document.get("type")
    if document_type is None:
        raise ValidationError("GeoJSON object has no 'type' member", field="type")
    if document_type not in DOCUMENT_TYPES:
        raise ValidationError(
            f"Unknown GeoJSON type '{document_type}'",
            field="type",
            suggestions=[f"Use one of: {', '.join(sorted(DOCUMENT_TYPES))}"],
        )

    return document


def iter_features(document: Any) -> Iterator[Dict[str, Any]]:
    """Yield the features of a FeatureCollection or Feature."""
    if not isinstance(document, dict):
        return
    if document.get("type") == "FeatureCollection":
        for feature in document.get("features") or []:
            if isinstance(feature, dict):
                yield feature
    elif document.get("type") == "Feature":
        yield document


def _iter_geometries(document: Any) -> Iterator[Dict[str, Any]]:
    if isinstance(document, dict) and document.get("type") in GEOMETRY_TYPES:
        yield document
        return
    for feature in iter_features(document):
        geometry = feature.get("geometry")
        if isinstance(geometry, dict):
            yield geometry


def compute_bounds(document: Any) -> Optional[Bounds]:
    """
    Bounding box of every geometry in a document.

    Geometries shapely cannot build are skipped.

    Args:
        document: GeoJSON document

    Returns:
        (minx, miny, maxx, maxy), or None when there is no usable geometry
    """
    minx = miny = float("inf")
    maxx = maxy = float("-inf")
    skipped = 0

    for geometry in _iter_geometries(document):
        try:
            geom = shape(geometry)
        except (GEOSException, ValueError, TypeError, KeyError, IndexError, AttributeError) as e:
            skipped += 1
            logger.debug(f"Skipping geometry for bounds: {e}")
            continue
        if geom.is_empty:
            continue
        gx0, gy0, gx1, gy1 = geom.bounds
        minx, miny = min(minx, gx0), min(miny, gy0)
        maxx, maxy = max(maxx, gx1), max(maxy, gy1)

    if skipped:
        logger.warning(f"Skipped {skipped} malformed geometr{'y' if skipped == 1 else 'ies'} for bounds")

    if minx == float("inf"):
        return None
    return (minx, miny, maxx, maxy)


def _first_properties(document: Any) -> Dict[str, Any]:
    for feature in iter_features(document):
        properties = feature.get("properties")
        return properties if isinstance(properties, dict) else {}
    return {}


def property_fields(document: Any) -> List[str]:
    """Property names of the first feature, in document order."""
    return list(_first_properties(document).keys())


def discover_boolean_fields(document: Any) -> List[BooleanRule]:
    """
    Default boolean rules for the boolean properties of the first feature.

    Rules start disabled with green for true and red for false.

    Args:
        document: GeoJSON document

    Returns:
        One BooleanRule per boolean property
    """
    return [
        BooleanRule(field=name, enabled=False)
        for name, value in _first_properties(document).items()
        if isinstance(value, bool)
    ]
