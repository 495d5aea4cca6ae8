"""
GeoJSON reprojection service.

Reprojection is fail-open at every level: an unsupported CRS returns the
document untouched, a coordinate PROJ cannot transform stays as uploaded,
and any unexpected error returns the original document. A rendering path
must never lose data because of a bad projection.
"""

import copy
import logging
import math
from numbers import Real
from typing import Any, Dict, Optional, Tuple, Union

from pyproj.exceptions import ProjError

from mapstyler.core.crs.detector import detect_crs, parse_crs_string
from mapstyler.core.crs.registry import get_transformer, is_supported
from mapstyler.models.crs import WGS84, CRSIdentifier
from mapstyler.utils.logging import PerformanceTimer

logger = logging.getLogger(__name__)

# Nesting depth of the coordinate tree for each geometry type
GEOMETRY_DEPTHS: Dict[str, int] = {
    "Point": 0,
    "LineString": 1,
    "MultiPoint": 1,
    "Polygon": 2,
    "MultiLineString": 2,
    "MultiPolygon": 3,
}

CRSLike = Union[CRSIdentifier, str]


def is_position(value: Any) -> bool:
    """Check for a leaf coordinate: at least two finite numbers."""
    if not isinstance(value, (list, tuple)) or len(value) < 2:
        return False
    for ordinate in value[:2]:
        if isinstance(ordinate, bool) or not isinstance(ordinate, Real):
            return False
        if not math.isfinite(ordinate):
            return False
    return True


class CoordinateTransformer:
    """
    Walks GeoJSON coordinate trees and transforms every position.

    Counts the positions it had to leave untouched so callers can report
    a single warning per document instead of one per point.
    """

    def __init__(self, source_crs: CRSIdentifier, target_crs: CRSIdentifier):
        """
        Initialize transformer.

        Args:
            source_crs: Registered source CRS
            target_crs: Registered target CRS

        Raises:
            CRSError: If either CRS is not registered
        """
        self.source_crs = source_crs
        self.target_crs = target_crs
        self._transformer = get_transformer(source_crs, target_crs)
        self.failed_positions = 0
        self.malformed_branches = 0

    def transform(self, x: float, y: float) -> Tuple[float, float]:
        """
        Transform a single x/y pair.

        Raises:
            ProjError: If PROJ cannot transform the pair
            ValueError: If the result is not finite
        """
        xx, yy = self._transformer.transform(x, y, errcheck=True)
        if not (math.isfinite(xx) and math.isfinite(yy)):
            raise ValueError(f"Non-finite result for ({x}, {y})")
        return xx, yy

    def transform_position(self, position: Any) -> Any:
        """
        Transform one leaf coordinate, keeping any extra ordinates.

        A position that is malformed or fails to transform is returned
        unchanged.
        """
        if not is_position(position):
            self.malformed_branches += 1
            return position

        try:
            xx, yy = self.transform(position[0], position[1])
        except (ProjError, ValueError) as e:
            self.failed_positions += 1
            logger.debug(f"Leaving position {position} unmodified: {e}")
            return position

        return [xx, yy, *position[2:]]

    def transform_tree(self, coordinates: Any, depth: int) -> Any:
        """
        Transform a coordinate tree of known nesting depth.

        Args:
            coordinates: Coordinate tree
            depth: Expected nesting depth (0 for a single position)

        Returns:
            New tree of the same shape
        """
        if depth == 0:
            return self.transform_position(coordinates)

        if not isinstance(coordinates, (list, tuple)):
            self.malformed_branches += 1
            return coordinates

        return [self.transform_tree(child, depth - 1) for child in coordinates]

    def transform_geometry(self, geometry: Dict[str, Any]) -> None:
        """
        Transform a geometry object in place.

        Args:
            geometry: GeoJSON geometry (already a private copy)
        """
        geometry_type = geometry.get("type")

        if geometry_type == "GeometryCollection":
            for member in geometry.get("geometries") or []:
                if isinstance(member, dict):
                    self.transform_geometry(member)
            return

        depth = GEOMETRY_DEPTHS.get(geometry_type)
        if depth is None:
            logger.warning(f"Skipping geometry of unknown type '{geometry_type}'")
            return

        if "coordinates" in geometry:
            geometry["coordinates"] = self.transform_tree(geometry["coordinates"], depth)


def _resolve(crs: Optional[CRSLike]) -> Optional[CRSIdentifier]:
    if crs is None or isinstance(crs, CRSIdentifier):
        return crs
    return parse_crs_string(crs)


def _rewrite_crs_member(document: Dict[str, Any], target: CRSIdentifier) -> None:
    if target == WGS84:
        document.pop("crs", None)
    else:
        document["crs"] = {"type": "name", "properties": {"name": target.to_urn()}}


def reproject_geojson(
    document: Any,
    source_crs: Optional[CRSLike] = None,
    target_crs: CRSLike = WGS84,
) -> Any:
    """
    Reproject every coordinate of a GeoJSON document.

    The input is never mutated. FeatureCollections walk each feature's
    geometry, Features walk their geometry, bare geometries are walked
    directly.

    Args:
        document: FeatureCollection, Feature or Geometry
        source_crs: CRS of the document; detected from its ``crs`` member
            when None
        target_crs: CRS to reproject to (default WGS 84)

    Returns:
        A reprojected copy, or the original document when source and target
        match, the CRS is not supported, or reprojection fails outright
    """
    try:
        source = _resolve(source_crs) or detect_crs(document)
        target = _resolve(target_crs)

        if source == target:
            return document

        if not is_supported(source):
            logger.warning(
                f"CRS {source} not supported, leaving coordinates as uploaded",
                extra={"source_crs": str(source), "target_crs": str(target)},
            )
            return document

        if not is_supported(target):
            logger.warning(
                f"Target CRS {target} not supported, leaving coordinates as uploaded",
                extra={"source_crs": str(source), "target_crs": str(target)},
            )
            return document

        logger.info(f"Reprojecting {source} -> {target}")

        with PerformanceTimer(f"reproject {source} -> {target}"):
            transformer = CoordinateTransformer(source, target)
            clone = copy.deepcopy(document)
            document_type = clone.get("type")

            if document_type == "FeatureCollection":
                for feature in clone.get("features") or []:
                    geometry = feature.get("geometry") if isinstance(feature, dict) else None
                    if isinstance(geometry, dict):
                        transformer.transform_geometry(geometry)
            elif document_type == "Feature":
                geometry = clone.get("geometry")
                if isinstance(geometry, dict):
                    transformer.transform_geometry(geometry)
            else:
                transformer.transform_geometry(clone)

            _rewrite_crs_member(clone, target)

        if transformer.failed_positions or transformer.malformed_branches:
            logger.warning(
                f"Reprojection {source} -> {target} left "
                f"{transformer.failed_positions} position(s) untransformed and "
                f"{transformer.malformed_branches} malformed branch(es) unmodified",
                extra={
                    "failed_positions": transformer.failed_positions,
                    "malformed_branches": transformer.malformed_branches,
                },
            )

        return clone

    except Exception as e:
        logger.error(f"Reprojection failed, returning original document: {e}", exc_info=True)
        return document


def normalize_to_wgs84(document: Any) -> Any:
    """
    Reproject an uploaded document from its declared CRS to WGS 84.

    Args:
        document: Parsed GeoJSON document

    Returns:
        Document in WGS 84 (or the original, see ``reproject_geojson``)
    """
    return reproject_geojson(document, source_crs=None, target_crs=WGS84)
