"""
QML style API endpoints.
"""

import logging
import re
from typing import Annotated, Optional

from fastapi import APIRouter, File, Form, HTTPException, UploadFile, status

from mapstyler.core.config import settings
from mapstyler.core.errors import ValidationError
from mapstyler.core.logging_config import add_log_context
from mapstyler.core.styles import active_style, parse_qml, validate_style_upload
from mapstyler.core.styles.render import ActiveStyle
from mapstyler.models.api import StyleResponse
from mapstyler.models.errors import ErrorResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/styles", tags=["styles"])

SOURCE_ID_PATTERN = re.compile(r"^[A-Za-z0-9_.-]{1,128}$")


def _style_response(active: ActiveStyle, filename: Optional[str] = None) -> StyleResponse:
    return StyleResponse(
        source_id=active.source_id,
        filename=filename,
        mode=active.style.mode,
        renderer_type=active.style.renderer_type.value if active.style.renderer_type else None,
        style=active.style.to_dict(),
        layers=active.layers,
        outlines=[c.to_dict() if c is not None else None for c in active.corrections],
        diagnostics=active.style.diagnostics,
    )


@router.post(
    "/qml",
    response_model=StyleResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Not a usable QML document"},
        422: {"model": ErrorResponse, "description": "QML document could not be converted"},
    },
    summary="Apply a QML style",
    description=(
        "Upload a QGIS .qml style document and apply it to a data source. "
        f"Maximum file size: {settings.max_style_size_mb}MB."
    ),
)
async def upload_qml_style(
    file: Annotated[UploadFile, File(description="QGIS layer style (.qml)")],
    source_id: Annotated[str, Form(description="Data source the style is applied to")] = "qml-source",
) -> StyleResponse:
    """
    Parse a QML style and make it the active style.

    Rules that cannot be converted are skipped and listed in
    ``diagnostics``. A document without any convertible rule yields mode
    ``empty`` and no layers, so the map keeps its default symbology.

    Raises:
        ValidationError: 400 for wrong extension, oversized or malformed files
        StyleParseError: 422 when the document has no readable renderer
    """
    logger.info(f"Received style upload {file.filename} for source '{source_id}'")

    if not SOURCE_ID_PATTERN.match(source_id):
        raise ValidationError(
            f"Invalid source id '{source_id}'",
            field="source_id",
            suggestions=["Use letters, digits, '.', '_' or '-'"],
        )

    content = await file.read()
    raw_qml = validate_style_upload(file.filename, content)

    with add_log_context(source_id=source_id):
        style = parse_qml(raw_qml)
        active = active_style.set_active(source_id, style, raw_qml=raw_qml)

    return _style_response(active, file.filename)


@router.get(
    "/active",
    response_model=StyleResponse,
    responses={404: {"model": ErrorResponse, "description": "No active style"}},
    summary="Get the active style",
)
async def get_active_style() -> StyleResponse:
    """Return the style currently applied to the map."""
    active = active_style.active
    if active is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=ErrorResponse(
                error_code="NO_ACTIVE_STYLE",
                message="No style is currently active",
            ).model_dump(mode="json"),
        )
    return _style_response(active)


@router.delete(
    "/active",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Clear the active style",
)
async def clear_active_style() -> None:
    """Remove the active style; the map falls back to default symbology."""
    active_style.clear()
