"""
GeoJSON API endpoints.
"""

import logging
from typing import Annotated, Any, Dict, List, Optional

from fastapi import APIRouter, File, UploadFile

from mapstyler.core.crs import (
    detect_crs,
    is_supported,
    normalize_to_wgs84,
    parse_crs_string,
    reproject_geojson,
)
from mapstyler.core.geojson import (
    check_geojson,
    compute_bounds,
    discover_boolean_fields,
    iter_features,
    load_geojson,
    property_fields,
)
from mapstyler.models.api import (
    GeoJSONUploadResponse,
    InspectRequest,
    InspectResponse,
    ReprojectRequest,
    ReprojectResponse,
)
from mapstyler.models.errors import ErrorResponse
from mapstyler.models.rules import LayerStyle

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/geojson", tags=["geojson"])


def _bounds_list(document: Dict[str, Any]) -> Optional[List[float]]:
    bounds = compute_bounds(document)
    return list(bounds) if bounds is not None else None


@router.post(
    "/upload",
    response_model=GeoJSONUploadResponse,
    responses={400: {"model": ErrorResponse, "description": "Not a GeoJSON document"}},
    summary="Load a GeoJSON layer",
)
async def upload_geojson(
    file: Annotated[UploadFile, File(description="GeoJSON document")],
) -> GeoJSONUploadResponse:
    """
    Load a GeoJSON file as a new map layer.

    The document is reprojected from its declared CRS to WGS 84. An
    unsupported CRS leaves the coordinates as uploaded.
    """
    document = load_geojson(await file.read())
    source = detect_crs(document)
    normalized = normalize_to_wgs84(document)
    layer = LayerStyle(boolean_styles=discover_boolean_fields(normalized))

    logger.info(f"Loaded GeoJSON {file.filename} declared as {source}")

    return GeoJSONUploadResponse(
        filename=file.filename,
        source_crs=str(source),
        reprojected=normalized is not document,
        feature_count=sum(1 for _ in iter_features(normalized)),
        bounds=_bounds_list(normalized),
        fields=property_fields(normalized),
        layer=layer,
        document=normalized,
    )


@router.post(
    "/reproject",
    response_model=ReprojectResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Not a GeoJSON document"},
        422: {"model": ErrorResponse, "description": "Unreadable CRS identifier"},
    },
    summary="Reproject a GeoJSON document",
)
async def reproject(request: ReprojectRequest) -> ReprojectResponse:
    """
    Reproject a document between two registered CRSs.

    Unsupported CRSs and coordinates that fail to transform are left as
    they are; ``reprojected`` reports whether a new document was produced.
    """
    document = check_geojson(request.document)
    source = parse_crs_string(request.source_crs) if request.source_crs else detect_crs(document)
    target = parse_crs_string(request.target_crs)

    result = reproject_geojson(document, source_crs=source, target_crs=target)

    return ReprojectResponse(
        document=result,
        source_crs=str(source),
        target_crs=str(target),
        reprojected=result is not document,
    )


@router.post(
    "/inspect",
    response_model=InspectResponse,
    responses={400: {"model": ErrorResponse, "description": "Not a GeoJSON document"}},
    summary="Inspect a GeoJSON document",
)
async def inspect(request: InspectRequest) -> InspectResponse:
    """Report CRS, bounds and property fields of a document."""
    document = check_geojson(request.document)
    crs = detect_crs(document)

    return InspectResponse(
        crs=str(crs),
        crs_supported=is_supported(crs),
        feature_count=sum(1 for _ in iter_features(document)),
        bounds=_bounds_list(document),
        fields=property_fields(document),
        boolean_styles=discover_boolean_fields(document),
    )
