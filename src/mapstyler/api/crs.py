"""
CRS registry API endpoint.
"""

from fastapi import APIRouter

from mapstyler.core.config import settings
from mapstyler.core.crs import list_definitions
from mapstyler.models.api import CRSInfo, CRSListResponse

router = APIRouter(prefix="/crs", tags=["crs"])


@router.get("", response_model=CRSListResponse, summary="List supported CRSs")
async def list_crs() -> CRSListResponse:
    """List the coordinate reference systems documents can be reprojected between."""
    return CRSListResponse(
        default=settings.default_target_crs,
        items=[CRSInfo(**definition.to_dict()) for definition in list_definitions()],
    )
