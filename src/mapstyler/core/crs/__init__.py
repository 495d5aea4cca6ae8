"""
Coordinate Reference System (CRS) handling.

This module provides:
- CRS detection from GeoJSON ``crs`` members
- A fixed registry of supported projections
- Fail-open reprojection of GeoJSON documents
"""

from mapstyler.core.crs.detector import detect_crs, parse_crs_string
from mapstyler.core.crs.registry import (
    REGISTRY,
    get_definition,
    get_transformer,
    is_supported,
    list_definitions,
)
from mapstyler.core.crs.transformer import (
    CoordinateTransformer,
    normalize_to_wgs84,
    reproject_geojson,
)

__all__ = [
    # Detector
    "detect_crs",
    "parse_crs_string",
    # Registry
    "REGISTRY",
    "get_definition",
    "get_transformer",
    "is_supported",
    "list_definitions",
    # Transformer
    "CoordinateTransformer",
    "normalize_to_wgs84",
    "reproject_geojson",
]
