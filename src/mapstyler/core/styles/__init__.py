"""
QML style handling.

This module provides:
- Validation of uploaded QML documents
- Parsing of QGIS renderers into renderer layer fragments
- Color/opacity normalization and outline recovery
- Materialization of render layers and the active style
"""

from mapstyler.core.styles.normalizer import fix_transparency, normalize_color
from mapstyler.core.styles.outlines import extract_outlines, outline_for
from mapstyler.core.styles.qml_parser import QMLReader, load_qml_style, parse_qml, read_qml
from mapstyler.core.styles.qml_validator import (
    QMLValidationResult,
    QMLValidator,
    validate_qml_content,
    validate_style_upload,
)
from mapstyler.core.styles.render import (
    ActiveStyle,
    ActiveStyleRegistry,
    active_style,
    build_render_layers,
)

__all__ = [
    # Validation
    "QMLValidationResult",
    "QMLValidator",
    "validate_qml_content",
    "validate_style_upload",
    # Parsing
    "QMLReader",
    "load_qml_style",
    "parse_qml",
    "read_qml",
    # Post-processing
    "extract_outlines",
    "fix_transparency",
    "normalize_color",
    "outline_for",
    # Rendering
    "ActiveStyle",
    "ActiveStyleRegistry",
    "active_style",
    "build_render_layers",
]
