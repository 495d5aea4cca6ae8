"""
Configuration settings for the mapstyler application.
"""

from typing import Literal, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings with environment variable support.

    Attributes:
        max_style_size_mb: Maximum QML style document size in megabytes
        max_geojson_size_mb: Maximum GeoJSON document size in megabytes
        style_extensions: Accepted style document extensions
        default_target_crs: CRS uploaded documents are normalized to
        default_layer_color: Base fill color for newly loaded layers
        fallback_color: Color used when a layer has no usable base color
        log_dir: Directory for the rotating log file (no file logging when unset)
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        env_prefix="MAPSTYLER_",
    )

    # Upload limits
    max_style_size_mb: int = 5
    max_geojson_size_mb: int = 50
    style_extensions: tuple[str, ...] = (".qml",)

    # Styling defaults
    default_target_crs: str = "EPSG:4326"
    default_layer_color: str = "#00bcd4"
    fallback_color: str = "#cccccc"

    # API settings
    api_v1_prefix: str = "/api/v1"
    port: int = 8000

    # CORS settings
    cors_origins: str = "http://localhost:5173,http://localhost:3000"

    # Environment
    environment: Literal["development", "staging", "production"] = "development"
    log_level: Optional[str] = None
    log_dir: Optional[str] = None

    @property
    def cors_origins_list(self) -> list[str]:
        """Get CORS origins as a list."""
        return [origin.strip() for origin in self.cors_origins.split(",")]

    @property
    def max_style_size_bytes(self) -> int:
        """Get max style document size in bytes."""
        return self.max_style_size_mb * 1024 * 1024

    @property
    def max_geojson_size_bytes(self) -> int:
        """Get max GeoJSON document size in bytes."""
        return self.max_geojson_size_mb * 1024 * 1024


# Global settings instance
settings = Settings()
