"""
Pydantic request/response models for the HTTP API.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from mapstyler.core.config import settings
from mapstyler.models.rules import BooleanRule, LayerStyle


class OutlineInfo(BaseModel):
    """Outline stroke recovered for one symbol."""

    index: int
    symbol: Optional[str] = None
    color: str
    width: float


class StyleResponse(BaseModel):
    """
    A parsed QML style applied to a data source.

    Attributes:
        source_id: Data source the style is applied to
        filename: Uploaded filename
        mode: 'empty', 'single' or 'categorized'
        renderer_type: Renderer the document declared
        style: Converted rules (``{}`` when nothing could be converted)
        layers: Render layers for the source
        outlines: Outline corrections by symbol position (null = none)
        diagnostics: Rules skipped during conversion
    """

    source_id: str
    filename: Optional[str] = None
    mode: str
    renderer_type: Optional[str] = None
    style: Dict[str, Any] = Field(default_factory=dict)
    layers: List[Dict[str, Any]] = Field(default_factory=list)
    outlines: List[Optional[OutlineInfo]] = Field(default_factory=list)
    diagnostics: List[str] = Field(default_factory=list)


class ReprojectRequest(BaseModel):
    """
    Reproject a GeoJSON document.

    ``source_crs`` is detected from the document when omitted.
    """

    document: Dict[str, Any] = Field(..., description="FeatureCollection, Feature or Geometry")
    source_crs: Optional[str] = Field(None, description="CRS of the document, e.g. EPSG:3857")
    target_crs: str = Field(
        default_factory=lambda: settings.default_target_crs,
        description="CRS to reproject to",
    )

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "document": {
                    "type": "Feature",
                    "crs": {"type": "name", "properties": {"name": "EPSG:3857"}},
                    "geometry": {"type": "Point", "coordinates": [-8575605.0, 4707174.0]},
                    "properties": {},
                },
                "target_crs": "EPSG:4326",
            }
        }
    )


class ReprojectResponse(BaseModel):
    """Result of a reprojection; ``reprojected`` is False when the input came back as-is."""

    document: Dict[str, Any]
    source_crs: str
    target_crs: str
    reprojected: bool


class InspectRequest(BaseModel):
    """Inspect a GeoJSON document."""

    document: Dict[str, Any]


class InspectResponse(BaseModel):
    """
    What the layer editor needs to know about a document.

    Attributes:
        crs: Declared CRS
        crs_supported: Whether the declared CRS can be reprojected
        feature_count: Number of features
        bounds: [minx, miny, maxx, maxy] in the document's CRS
        fields: Property names of the first feature
        boolean_styles: Default boolean rules for boolean properties
    """

    crs: str
    crs_supported: bool
    feature_count: int
    bounds: Optional[List[float]] = None
    fields: List[str] = Field(default_factory=list)
    boolean_styles: List[BooleanRule] = Field(default_factory=list)


class CRSInfo(BaseModel):
    """A registered coordinate reference system."""

    identifier: str
    title: str
    proj4: str
    is_geographic: bool


class CRSListResponse(BaseModel):
    """Registry contents."""

    default: str
    items: List[CRSInfo]


class LayerPaintResponse(BaseModel):
    """
    Paint for a user layer.

    Attributes:
        has_rules: Whether the fill color is conditional
        fill: Fill layer paint properties
        line: Border line layer paint properties
    """

    has_rules: bool
    fill: Dict[str, Any]
    line: Dict[str, Any]


class EvaluateRequest(BaseModel):
    """Resolve fill colors for features under a layer style."""

    layer: LayerStyle
    features: List[Dict[str, Any]] = Field(
        default_factory=list,
        description="GeoJSON Features or bare property objects",
    )


class EvaluateResponse(BaseModel):
    """One color per requested feature, in request order."""

    colors: List[str]


class GeoJSONUploadResponse(BaseModel):
    """
    An uploaded GeoJSON layer, normalized to WGS 84.

    Attributes:
        filename: Uploaded filename
        source_crs: CRS the document declared
        reprojected: Whether coordinates were transformed
        feature_count: Number of features
        bounds: [minx, miny, maxx, maxy] to fit the map view
        fields: Property names of the first feature
        layer: Default layer style with discovered boolean rules
        document: The normalized document
    """

    filename: Optional[str] = None
    source_crs: str
    reprojected: bool
    feature_count: int
    bounds: Optional[List[float]] = None
    fields: List[str] = Field(default_factory=list)
    layer: LayerStyle
    document: Dict[str, Any]
