"""
QML style document validation.

Validation is deliberately permissive: a document only has to be
well-formed XML to be handed to the parser. Structural problems (no
renderer, no symbols) are reported as warnings; the parser decides
whether they are fatal.
"""

import logging
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Union

from mapstyler.core.config import settings
from mapstyler.core.errors import ValidationError

logger = logging.getLogger(__name__)


@dataclass
class QMLValidationResult:
    """
    Result of QML validation.

    Attributes:
        is_valid: Whether the document is well-formed XML
        errors: List of validation errors
        warnings: List of validation warnings
        root_tag: Tag of the document element
        renderer_type: Declared renderer type, if a renderer-v2 element exists
        symbol_count: Number of <symbol> elements
    """

    is_valid: bool = False
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    root_tag: Optional[str] = None
    renderer_type: Optional[str] = None
    symbol_count: int = 0

    def add_error(self, error: str) -> None:
        """Add validation error."""
        self.errors.append(error)
        self.is_valid = False

    def add_warning(self, warning: str) -> None:
        """Add validation warning."""
        self.warnings.append(warning)


class QMLValidator:
    """
    Validates QML style documents before parsing.

    Checks:
    - Content is not empty
    - Valid XML structure (fatal)
    - Root element is 'qgis' (warning)
    - A renderer-v2 element with symbols is present (warning)
    """

    REQUIRED_ROOT = "qgis"

    def __init__(self) -> None:
        self.result: Optional[QMLValidationResult] = None

    def validate(self, qml_content: Union[str, bytes, Path]) -> QMLValidationResult:
        """
        Validate QML content.

        Args:
            qml_content: QML content as string, bytes, or file path

        Returns:
            QMLValidationResult with validation status and details
        """
        self.result = QMLValidationResult()

        if isinstance(qml_content, Path):
            if not qml_content.exists():
                self.result.add_error(f"File not found: {qml_content}")
                return self.result
            qml_bytes = qml_content.read_bytes()
        elif isinstance(qml_content, str):
            qml_bytes = qml_content.encode("utf-8")
        else:
            qml_bytes = qml_content

        if not qml_bytes or not qml_bytes.strip():
            self.result.add_error("QML content is empty")
            return self.result

        try:
            root = ET.fromstring(qml_bytes)
        except ET.ParseError as e:
            self.result.add_error(f"Invalid XML structure: {e}")
            return self.result

        self.result.is_valid = True
        self.result.root_tag = root.tag

        if root.tag != self.REQUIRED_ROOT:
            self.result.add_warning(
                f"Unexpected root element: expected '{self.REQUIRED_ROOT}', got '{root.tag}'"
            )

        renderer = root.find(".//renderer-v2")
        if renderer is None:
            self.result.add_warning("No renderer-v2 element found")
        else:
            self.result.renderer_type = renderer.get("type")

        self.result.symbol_count = len(root.findall(".//symbol"))
        if self.result.symbol_count == 0:
            self.result.add_warning("No symbol elements found")

        return self.result


def validate_qml_content(content: Union[str, bytes]) -> bool:
    """
    Check whether content is well-formed XML.

    Args:
        content: QML document text

    Returns:
        True if the content parses as XML
    """
    return QMLValidator().validate(content).is_valid


def validate_style_upload(filename: Optional[str], content: bytes) -> str:
    """
    Validate an uploaded style document and decode it.

    Args:
        filename: Original filename
        content: Raw file bytes

    Returns:
        Decoded document text

    Raises:
        ValidationError: If the file is not a usable QML document
    """
    if filename is not None:
        extension = Path(filename).suffix.lower()
        if extension not in settings.style_extensions:
            raise ValidationError(
                f"File type '{extension or '(none)'}' not allowed. "
                f"Allowed types: {', '.join(settings.style_extensions)}",
                field="file",
                suggestions=["Export the layer style from QGIS as a .qml file"],
            )

    if len(content) > settings.max_style_size_bytes:
        raise ValidationError(
            f"File size ({len(content)} bytes) exceeds maximum allowed size "
            f"of {settings.max_style_size_mb}MB",
            field="file",
        )

    try:
        text = content.decode("utf-8-sig")
    except UnicodeDecodeError as e:
        raise ValidationError(f"Style document is not UTF-8 text: {e}", field="file")

    result = QMLValidator().validate(text)
    if not result.is_valid:
        logger.warning(f"Rejected style document {filename}: {'; '.join(result.errors)}")
        raise ValidationError(
            "The file does not contain valid XML",
            field="file",
            details={"errors": result.errors},
        )

    for warning in result.warnings:
        logger.debug(f"QML validation warning for {filename}: {warning}")

    return text
