"""
Tests for configuration module.
"""

from mapstyler.core.config import Settings


class TestSettings:
    """Tests for Settings class."""

    def test_default_values(self) -> None:
        """Test that default values are set correctly."""
        settings = Settings()
        assert settings.max_style_size_mb == 5
        assert settings.max_geojson_size_mb == 50
        assert settings.default_target_crs == "EPSG:4326"
        assert settings.fallback_color == "#cccccc"
        assert settings.api_v1_prefix == "/api/v1"
        assert settings.environment == "development"
        assert settings.log_dir is None

    def test_size_limits_in_bytes(self) -> None:
        """Test the byte size properties."""
        settings = Settings(max_style_size_mb=2, max_geojson_size_mb=10)
        assert settings.max_style_size_bytes == 2 * 1024 * 1024
        assert settings.max_geojson_size_bytes == 10 * 1024 * 1024

    def test_style_extensions(self) -> None:
        """Only QML documents are accepted as styles."""
        assert Settings().style_extensions == (".qml",)

    def test_cors_origins_list(self) -> None:
        """Test that CORS origins are split and trimmed."""
        settings = Settings(cors_origins="http://a.test, http://b.test")
        assert settings.cors_origins_list == ["http://a.test", "http://b.test"]

    def test_environment_variables(self, monkeypatch) -> None:
        """Settings are read from MAPSTYLER_ prefixed variables."""
        monkeypatch.setenv("MAPSTYLER_FALLBACK_COLOR", "#101010")
        monkeypatch.setenv("MAPSTYLER_ENVIRONMENT", "production")

        settings = Settings()
        assert settings.fallback_color == "#101010"
        assert settings.environment == "production"
