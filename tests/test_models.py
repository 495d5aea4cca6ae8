"""
Tests for data models.
"""

import pytest

from mapstyler.models.api import ReprojectRequest, StyleResponse
from mapstyler.models.crs import WGS84, CRSDefinition, CRSIdentifier
from mapstyler.models.errors import ErrorResponse
from mapstyler.models.style import (
    CategorizedRule,
    OutlineCorrection,
    QMLStyle,
    RendererType,
    StyleRule,
    Symbolizer,
    SymbolizerKind,
)


class TestCRSIdentifier:
    """Tests for CRSIdentifier."""

    def test_from_epsg(self) -> None:
        """Test creating an EPSG identifier."""
        identifier = CRSIdentifier.from_epsg(3857)

        assert str(identifier) == "EPSG:3857"
        assert identifier.epsg == 3857
        assert identifier.to_urn() == "urn:ogc:def:crs:EPSG::3857"

    @pytest.mark.parametrize("text", ["EPSG:4326", "epsg:4326", "EPSG::4326", " EPSG : 4326 "])
    def test_parse(self, text: str) -> None:
        """Test parsing identifier strings."""
        assert CRSIdentifier.parse(text) == WGS84

    @pytest.mark.parametrize("text", ["", "4326", "EPSG", "EPSG:", "urn:ogc:def:crs:EPSG::4326"])
    def test_parse_invalid(self, text: str) -> None:
        """Test rejecting strings that are not authority:code pairs."""
        with pytest.raises(ValueError):
            CRSIdentifier.parse(text)

    def test_hashable(self) -> None:
        """Identifiers can be used as dictionary keys."""
        assert {CRSIdentifier("epsg", "4326"): 1}[WGS84] == 1

    def test_non_epsg(self) -> None:
        """Other authorities have no EPSG code."""
        assert CRSIdentifier("ESRI", "102100").epsg is None

    def test_definition_to_dict(self) -> None:
        """Definitions serialize their identifier as a string."""
        definition = CRSDefinition(WGS84, "WGS 84", "+proj=longlat", True)
        assert definition.to_dict()["identifier"] == "EPSG:4326"


class TestStyleModels:
    """Tests for style dataclasses."""

    def test_supported_symbolizers(self) -> None:
        """Only fills and lines are renderable."""
        rule = StyleRule(
            index=0,
            symbolizers=[
                Symbolizer(kind=SymbolizerKind.MARK),
                Symbolizer(kind=SymbolizerKind.LINE, color="1,2,3,255"),
            ],
        )
        assert [s.kind for s in rule.supported_symbolizers] == [SymbolizerKind.LINE]

    def test_symbolizer_to_dict(self) -> None:
        """Unset values are omitted."""
        symbolizer = Symbolizer(kind=SymbolizerKind.FILL, color="1,2,3,255")
        assert symbolizer.to_dict() == {"kind": "Fill", "opacity": 1.0, "color": "1,2,3,255"}

    def test_style_modes(self) -> None:
        """Mode reflects the renderer and converted rules."""
        rule = CategorizedRule(id="category-0", index=0)

        assert QMLStyle().mode == "empty"
        assert QMLStyle(categorized=[], renderer_type=RendererType.SINGLE).mode == "empty"
        assert QMLStyle(categorized=[rule], renderer_type=RendererType.SINGLE).mode == "single"
        assert QMLStyle(categorized=[rule], renderer_type=RendererType.RULE_BASED).mode == "categorized"

    def test_outline_correction_to_dict(self) -> None:
        """Corrections serialize all fields."""
        correction = OutlineCorrection(index=2, color="rgba(0,0,0,1.0)", width=0.26, symbol="2")
        assert correction.to_dict() == {
            "index": 2,
            "symbol": "2",
            "color": "rgba(0,0,0,1.0)",
            "width": 0.26,
        }


class TestAPIModels:
    """Tests for request/response models."""

    def test_reproject_request_default_target(self) -> None:
        """The target CRS defaults to WGS 84."""
        request = ReprojectRequest(document={"type": "Point", "coordinates": [0, 0]})

        assert request.target_crs == "EPSG:4326"
        assert request.source_crs is None

    def test_style_response_outline_slots(self) -> None:
        """Outline slots may be empty."""
        response = StyleResponse(
            source_id="s",
            mode="categorized",
            outlines=[None, {"index": 1, "color": "rgba(0,0,0,1.0)", "width": 1.0}],
        )
        assert response.outlines[0] is None
        assert response.outlines[1].width == 1.0

    def test_error_response_timestamp(self) -> None:
        """Timestamps serialize to ISO format."""
        data = ErrorResponse(error_code="X", message="y").model_dump()
        assert "T" in data["timestamp"]
