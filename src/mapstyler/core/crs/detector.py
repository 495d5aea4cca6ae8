"""
CRS detection for GeoJSON documents.

RFC 7946 GeoJSON is always WGS 84, but files exported from desktop GIS
tools often still carry the legacy ``crs`` member naming a projected
system. Detection never fails: anything unrecognized maps to WGS 84.
"""

import logging
import re
from typing import Any, Mapping, Optional

from mapstyler.core.errors import CRSError
from mapstyler.models.crs import WGS84, CRSIdentifier

logger = logging.getLogger(__name__)

# Matches 'EPSG:3857', 'EPSG::3857', 'urn:ogc:def:crs:EPSG::3857', 'epsg 3857'
EPSG_PATTERN = re.compile(r"EPSG[:\s]*(\d+)", re.IGNORECASE)
URL_PATTERN = re.compile(r"/crs/EPSG/\d+/(\d+)", re.IGNORECASE)


def _crs_name(document: Any) -> Optional[str]:
    if not isinstance(document, Mapping):
        return None

    crs = document.get("crs")
    if not isinstance(crs, Mapping):
        return None

    properties = crs.get("properties")
    if isinstance(properties, Mapping):
        name = properties.get("name") or properties.get("href")
        if isinstance(name, str) and name.strip():
            return name

    name = crs.get("name")
    if isinstance(name, str) and name.strip():
        return name

    return None


def detect_crs(document: Any) -> CRSIdentifier:
    """
    Detect the CRS a GeoJSON document declares.

    Reads ``crs.properties.name`` (or ``crs.name``) and extracts the EPSG
    code from it. The result is not checked against the registry; an
    unsupported identifier is caught later by the reprojector.

    Args:
        document: Parsed GeoJSON document

    Returns:
        Declared CRS, or WGS 84 when none is declared or it is unreadable
    """
    name = _crs_name(document)
    if not name:
        return WGS84

    match = EPSG_PATTERN.search(name) or URL_PATTERN.search(name)
    if not match:
        logger.debug(f"Unrecognized CRS name '{name}', assuming {WGS84}")
        return WGS84

    return CRSIdentifier.from_epsg(int(match.group(1)))


def parse_crs_string(crs_string: str) -> CRSIdentifier:
    """
    Parse an explicitly supplied CRS string.

    Supports:
    - EPSG codes: "EPSG:4326", "epsg:4326", "4326"
    - URN format: "urn:ogc:def:crs:EPSG::4326"
    - URL format: "http://www.opengis.net/def/crs/EPSG/0/4326"
    - Other authorities: "ESRI:102100"

    Args:
        crs_string: String representation of the CRS

    Returns:
        CRSIdentifier

    Raises:
        CRSError: If the string names no CRS
    """
    text = (crs_string or "").strip()

    if text.isdigit():
        return CRSIdentifier.from_epsg(int(text))

    match = EPSG_PATTERN.search(text) or URL_PATTERN.search(text)
    if match:
        return CRSIdentifier.from_epsg(int(match.group(1)))

    try:
        return CRSIdentifier.parse(text)
    except ValueError as e:
        raise CRSError(f"Failed to parse CRS string '{crs_string}': {e}")
