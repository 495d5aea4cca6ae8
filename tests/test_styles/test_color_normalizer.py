"""
Tests for color and opacity normalization.
"""

import pytest

from mapstyler.core.styles.normalizer import (
    css_color,
    fix_transparency,
    normalize_color,
    split_components,
)


class TestSplitComponents:
    """Tests for split_components."""

    def test_rgba(self) -> None:
        """Four components are returned as floats."""
        assert split_components("120, 80, 40, 128") == [120.0, 80.0, 40.0, 128.0]

    def test_rgb_defaults_alpha(self) -> None:
        """Missing alpha is opaque."""
        assert split_components("1,2,3") == [1.0, 2.0, 3.0, 255.0]

    def test_float_spec_ignored(self) -> None:
        """The QGIS 3.28 float spec suffix is dropped."""
        assert split_components("200,200,200,255,rgb:0.78,0.78,0.78,1") == [200.0, 200.0, 200.0, 255.0]

    @pytest.mark.parametrize("raw", ["#ff0000", "red", "1,2", "1,2,3,4,5", "a,b,c", None, 5])
    def test_not_a_component_list(self, raw) -> None:
        """Anything else is not split."""
        assert split_components(raw) is None


class TestNormalizeColor:
    """Tests for normalize_color."""

    def test_alpha_moves_to_opacity(self) -> None:
        """Alpha 128 becomes opacity 0.502."""
        paint = {"fill-color": "120,80,40,128", "fill-opacity": 1.0}
        result = normalize_color(paint, "fill-color", "fill-opacity")

        assert result is paint
        assert paint == {"fill-color": "rgb(120,80,40)", "fill-opacity": 0.502}

    def test_opaque(self) -> None:
        """Alpha 255 becomes opacity 1."""
        paint = {"line-color": "0,0,0,255"}
        normalize_color(paint, "line-color", "line-opacity")
        assert paint == {"line-color": "rgb(0,0,0)", "line-opacity": 1.0}

    def test_transparent(self) -> None:
        """Alpha 0 becomes opacity 0."""
        paint = {"fill-color": "10,10,10,0"}
        normalize_color(paint, "fill-color", "fill-opacity")
        assert paint["fill-opacity"] == 0.0

    @pytest.mark.parametrize("color", ["#336699", "rgb(1,2,3)"])
    def test_other_values_untouched(self, color) -> None:
        """Values that are already color literals are left alone."""
        paint = {"fill-color": color, "fill-opacity": 0.3}
        normalize_color(paint, "fill-color", "fill-opacity")
        assert paint == {"fill-color": color, "fill-opacity": 0.3}

    def test_missing_key(self) -> None:
        """Missing color keys are a no-op."""
        paint = {"fill-opacity": 0.3}
        normalize_color(paint, "fill-color", "fill-opacity")
        assert paint == {"fill-opacity": 0.3}


class TestFixTransparency:
    """Tests for fix_transparency."""

    def test_fill(self) -> None:
        """Fill colors are split and outline colors become rgba."""
        paint = fix_transparency(
            "fill",
            {"fill-color": "34,139,34,128", "fill-opacity": 1.0, "fill-outline-color": "0,100,0,255"},
        )
        assert paint == {
            "fill-color": "rgb(34,139,34)",
            "fill-opacity": 0.502,
            "fill-outline-color": "rgba(0,100,0,1.0)",
        }

    def test_line(self) -> None:
        """Line colors are split into color and opacity."""
        paint = fix_transparency("line", {"line-color": "90,90,90,51", "line-width": 2})
        assert paint == {"line-color": "rgb(90,90,90)", "line-opacity": 0.2, "line-width": 2}

    def test_other_layer_type(self) -> None:
        """Layer types without an opacity pair only get rgba colors."""
        paint = fix_transparency("circle", {"circle-color": "255,0,0,128"})
        assert paint == {"circle-color": "rgba(255,0,0,0.502)"}


def test_css_color() -> None:
    """Component lists become rgba, other values pass through."""
    assert css_color("35,35,35,255") == "rgba(35,35,35,1.0)"
    assert css_color("#fff") == "#fff"
    assert css_color(None) is None
