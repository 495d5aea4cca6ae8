"""
Tests for GeoJSON loading and inspection.
"""

import json
import logging

import pytest

from mapstyler.core.config import settings
from mapstyler.core.errors import ValidationError
from mapstyler.core.geojson import (
    check_geojson,
    compute_bounds,
    discover_boolean_fields,
    iter_features,
    load_geojson,
    property_fields,
)


@pytest.fixture
def collection():
    """Small FeatureCollection with mixed property types."""
    return {
        "type": "FeatureCollection",
        "features": [
            {
                "type": "Feature",
                "properties": {"name": "a", "active": True, "pop": 10, "flag": False},
                "geometry": {
                    "type": "Polygon",
                    "coordinates": [[[0.0, 0.0], [4.0, 0.0], [4.0, 3.0], [0.0, 0.0]]],
                },
            },
            {
                "type": "Feature",
                "properties": {"name": "b"},
                "geometry": {"type": "Point", "coordinates": [-2.0, 5.0]},
            },
        ],
    }


class TestLoadGeoJSON:
    """Tests for load_geojson."""

    def test_load_bytes(self, collection) -> None:
        """Bytes are decoded and parsed."""
        assert load_geojson(json.dumps(collection).encode("utf-8")) == collection

    def test_load_with_bom(self, collection) -> None:
        """A UTF-8 byte order mark is accepted."""
        content = b"\xef\xbb\xbf" + json.dumps(collection).encode("utf-8")
        assert load_geojson(content)["type"] == "FeatureCollection"

    def test_load_text(self) -> None:
        """Text is parsed directly."""
        assert load_geojson('{"type": "Point", "coordinates": [1, 2]}')["type"] == "Point"

    @pytest.mark.parametrize("content", [b"", "   ", b"\xff\xfe"])
    def test_empty_or_binary(self, content) -> None:
        """Empty and non-UTF-8 content is rejected."""
        with pytest.raises(ValidationError):
            load_geojson(content)

    def test_invalid_json(self) -> None:
        """JSON errors report their position."""
        with pytest.raises(ValidationError) as exc_info:
            load_geojson('{"type": ')
        assert "line 1" in exc_info.value.message

    def test_too_large(self, monkeypatch) -> None:
        """Documents above the size limit are rejected."""
        monkeypatch.setattr(settings, "max_geojson_size_mb", 0)
        with pytest.raises(ValidationError):
            load_geojson(b'{"type": "Point", "coordinates": [1, 2]}')


class TestCheckGeoJSON:
    """Tests for check_geojson."""

    @pytest.mark.parametrize("document", [[], "Feature", {"features": []}, {"type": "Topology"}])
    def test_rejected(self, document) -> None:
        """Only GeoJSON objects of a known type pass."""
        with pytest.raises(ValidationError):
            check_geojson(document)

    def test_accepted(self, collection) -> None:
        """Known types are returned as they are."""
        assert check_geojson(collection) is collection


class TestInspection:
    """Tests for bounds and field discovery."""

    def test_iter_features(self, collection) -> None:
        """Features of collections and single features are yielded."""
        assert len(list(iter_features(collection))) == 2
        assert list(iter_features(collection["features"][0])) == [collection["features"][0]]
        assert list(iter_features({"type": "Point", "coordinates": [0, 0]})) == []

    def test_bounds(self, collection) -> None:
        """Bounds cover every geometry."""
        assert compute_bounds(collection) == (-2.0, 0.0, 4.0, 5.0)

    def test_bounds_bare_geometry(self) -> None:
        """Bare geometries have bounds too."""
        assert compute_bounds({"type": "LineString", "coordinates": [[1, 1], [3, -1]]}) == (1.0, -1.0, 3.0, 1.0)

    def test_bounds_skip_malformed(self, collection, caplog) -> None:
        """Malformed geometries are skipped with a warning."""
        collection["features"].append(
            {"type": "Feature", "properties": {}, "geometry": {"type": "Polygon", "coordinates": [[[0, 0], [1, 1]]]}}
        )
        with caplog.at_level(logging.WARNING):
            assert compute_bounds(collection) == (-2.0, 0.0, 4.0, 5.0)
        assert "Skipped 1 malformed geometry" in caplog.text

    def test_bounds_none(self) -> None:
        """Documents without geometry have no bounds."""
        assert compute_bounds({"type": "FeatureCollection", "features": []}) is None
        assert compute_bounds({"type": "Feature", "properties": {}, "geometry": None}) is None

    def test_property_fields(self, collection) -> None:
        """Fields come from the first feature in order."""
        assert property_fields(collection) == ["name", "active", "pop", "flag"]
        assert property_fields({"type": "FeatureCollection", "features": []}) == []

    def test_discover_boolean_fields(self, collection) -> None:
        """Boolean properties get disabled default rules."""
        rules = discover_boolean_fields(collection)

        assert [rule.field for rule in rules] == ["active", "flag"]
        assert all(rule.enabled is False for rule in rules)
        assert rules[0].true_color == "#00ff00"
        assert rules[0].false_color == "#ff0000"
