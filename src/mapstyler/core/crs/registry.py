"""
Registry of supported coordinate reference systems.

The registry is a fixed, read-only table built at import time. Supporting
another CRS means adding a row to ``_DEFINITIONS``; the reprojection code
does not change.
"""

import logging
from functools import lru_cache
from types import MappingProxyType
from typing import List, Mapping, Optional, Union

from pyproj import CRS, Transformer

from mapstyler.core.errors import CRSError
from mapstyler.models.crs import CRSDefinition, CRSIdentifier

logger = logging.getLogger(__name__)

# (EPSG code, title, PROJ string, geographic)
_DEFINITIONS = (
    (4326, "WGS 84", "+proj=longlat +datum=WGS84 +no_defs", True),
    (
        3857,
        "WGS 84 / Pseudo-Mercator",
        "+proj=merc +a=6378137 +b=6378137 +lat_ts=0 +lon_0=0 +x_0=0 +y_0=0 "
        "+k=1 +units=m +nadgrids=@null +wktext +no_defs",
        False,
    ),
    (4269, "NAD83", "+proj=longlat +datum=NAD83 +no_defs", True),
    (4258, "ETRS89", "+proj=longlat +ellps=GRS80 +no_defs", True),
    (32630, "WGS 84 / UTM zone 30N", "+proj=utm +zone=30 +datum=WGS84 +units=m +no_defs", False),
    (32631, "WGS 84 / UTM zone 31N", "+proj=utm +zone=31 +datum=WGS84 +units=m +no_defs", False),
    (32632, "WGS 84 / UTM zone 32N", "+proj=utm +zone=32 +datum=WGS84 +units=m +no_defs", False),
    (32633, "WGS 84 / UTM zone 33N", "+proj=utm +zone=33 +datum=WGS84 +units=m +no_defs", False),
    (
        25829,
        "ETRS89 / UTM zone 29N",
        "+proj=utm +zone=29 +ellps=GRS80 +towgs84=0,0,0,0,0,0,0 +units=m +no_defs",
        False,
    ),
    (
        25830,
        "ETRS89 / UTM zone 30N",
        "+proj=utm +zone=30 +ellps=GRS80 +towgs84=0,0,0,0,0,0,0 +units=m +no_defs",
        False,
    ),
    (
        25831,
        "ETRS89 / UTM zone 31N",
        "+proj=utm +zone=31 +ellps=GRS80 +towgs84=0,0,0,0,0,0,0 +units=m +no_defs",
        False,
    ),
)

REGISTRY: Mapping[CRSIdentifier, CRSDefinition] = MappingProxyType(
    {
        CRSIdentifier.from_epsg(code): CRSDefinition(
            identifier=CRSIdentifier.from_epsg(code),
            title=title,
            proj4=proj4,
            is_geographic=geographic,
        )
        for code, title, proj4, geographic in _DEFINITIONS
    }
)


def _as_identifier(crs: Union[CRSIdentifier, str]) -> CRSIdentifier:
    if isinstance(crs, CRSIdentifier):
        return crs
    return CRSIdentifier.parse(crs)


def get_definition(crs: Union[CRSIdentifier, str]) -> Optional[CRSDefinition]:
    """
    Look up the projection parameters for a CRS.

    Args:
        crs: Identifier or 'AUTHORITY:CODE' string

    Returns:
        The registered definition, or None for unregistered identifiers
    """
    try:
        identifier = _as_identifier(crs)
    except ValueError:
        return None
    return REGISTRY.get(identifier)


def is_supported(crs: Union[CRSIdentifier, str]) -> bool:
    """Check whether a CRS has a registered definition."""
    return get_definition(crs) is not None


def list_definitions() -> List[CRSDefinition]:
    """All registered definitions in registration order."""
    return list(REGISTRY.values())


@lru_cache(maxsize=64)
def get_transformer(source: CRSIdentifier, target: CRSIdentifier) -> Transformer:
    """
    Build a pyproj transformer between two registered CRSs.

    Axis order is always x/y (longitude, latitude). Transformers are cached
    per identifier pair.

    Args:
        source: Source CRS identifier
        target: Target CRS identifier

    Returns:
        pyproj Transformer

    Raises:
        CRSError: If either identifier is not registered or PROJ rejects
            the definition
    """
    source_def = REGISTRY.get(source)
    target_def = REGISTRY.get(target)

    if source_def is None:
        raise CRSError(f"CRS {source} is not supported", source_crs=str(source))
    if target_def is None:
        raise CRSError(f"CRS {target} is not supported", target_crs=str(target))

    try:
        transformer = Transformer.from_crs(
            CRS.from_proj4(source_def.proj4),
            CRS.from_proj4(target_def.proj4),
            always_xy=True,
        )
    except Exception as e:
        raise CRSError(
            f"Failed to create transformer: {e}",
            source_crs=str(source),
            target_crs=str(target),
        )

    logger.debug(f"Created transformer {source} -> {target}")
    return transformer
