"""
Custom exception hierarchy for the mapstyler application.

Only a total failure to read a style document is escalated to callers.
Rule conversion problems, unsupported CRSs and incomplete user rules are
recovered inside the pipeline and surface as log records instead.
"""

from typing import Any, Dict, List, Optional


class MapStylerException(Exception):
    """
    Base exception for all mapstyler-specific errors.

    Attributes:
        error_code: String identifier for the error type
        message: User-friendly error message
        details: Technical details for logging/debugging
        status_code: HTTP status code for API responses
        suggestions: Optional list of resolution suggestions
    """

    def __init__(
        self,
        message: str,
        error_code: str,
        status_code: int = 500,
        details: Optional[Dict[str, Any]] = None,
        suggestions: Optional[List[str]] = None,
    ):
        """
        Initialize MapStylerException.

        Args:
            message: User-friendly error message
            error_code: String identifier for the error type
            status_code: HTTP status code (default: 500)
            details: Technical details for logging
            suggestions: List of suggestions for resolution
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.details = details or {}
        self.suggestions = suggestions or []

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert exception to dictionary for API responses.

        Returns:
            Dictionary representation of the error
        """
        return {
            "error_code": self.error_code,
            "message": self.message,
            "details": self.details,
            "suggestions": self.suggestions,
        }

    def __str__(self) -> str:
        """String representation of the exception."""
        return f"{self.error_code}: {self.message}"

    def __repr__(self) -> str:
        """Detailed string representation for debugging."""
        return (
            f"{self.__class__.__name__}("
            f"error_code='{self.error_code}', "
            f"message='{self.message}', "
            f"status_code={self.status_code})"
        )


class ValidationError(MapStylerException):
    """
    Raised when an uploaded document fails validation.

    Covers wrong extensions, oversized files, empty content, XML that is
    not well-formed and JSON that is not GeoJSON. Maps to HTTP 400.
    """

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        suggestions: Optional[List[str]] = None,
    ):
        """
        Initialize ValidationError.

        Args:
            message: User-friendly error message
            field: Name of the field that failed validation
            details: Technical details about the validation failure
            suggestions: List of suggestions for fixing the validation error
        """
        error_details = details or {}
        if field:
            error_details["field"] = field

        super().__init__(
            message=message,
            error_code="VALIDATION_ERROR",
            status_code=400,
            details=error_details,
            suggestions=suggestions or ["Check the input format and try again"],
        )


class ParseError(MapStylerException):
    """
    Raised when a document is well-formed but cannot be interpreted.

    Maps to HTTP 422 Unprocessable Entity.
    """

    def __init__(
        self,
        message: str,
        file_type: Optional[str] = None,
        error_code: str = "PARSE_ERROR",
        details: Optional[Dict[str, Any]] = None,
        suggestions: Optional[List[str]] = None,
    ):
        """
        Initialize ParseError.

        Args:
            message: User-friendly error message
            file_type: Type of file being parsed (e.g., 'QML', 'GeoJSON')
            error_code: Specific parse error code
            details: Technical details about the parsing failure
            suggestions: List of suggestions for fixing the file
        """
        error_details = details or {}
        if file_type:
            error_details["file_type"] = file_type

        super().__init__(
            message=message,
            error_code=error_code,
            status_code=422,
            details=error_details,
            suggestions=suggestions or ["Verify the file was exported correctly"],
        )


class StyleParseError(ParseError):
    """
    Raised when a QML style document yields no usable style description.

    Callers are expected to fall back to default symbology.
    """

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        suggestions: Optional[List[str]] = None,
    ):
        default_suggestions = [
            "Export the layer style from QGIS as a .qml file",
            "Check that the document contains a renderer-v2 element",
        ]

        super().__init__(
            message=message,
            file_type="QML",
            error_code="INVALID_STYLE_DOCUMENT",
            details=details,
            suggestions=suggestions or default_suggestions,
        )


class StyleConversionError(MapStylerException):
    """
    Raised when a single style rule cannot be converted to renderer layers.

    The style parser catches it per rule; it never reaches API callers.
    """

    def __init__(
        self,
        message: str,
        rule_index: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        error_details = details or {}
        if rule_index is not None:
            error_details["rule_index"] = rule_index

        super().__init__(
            message=message,
            error_code="RULE_CONVERSION_ERROR",
            status_code=422,
            details=error_details,
        )


class CRSError(MapStylerException):
    """
    Raised when a coordinate reference system cannot be resolved.

    Reprojection itself never raises this; it is used for explicit CRS
    arguments and registry lookups. Maps to HTTP 422.
    """

    def __init__(
        self,
        message: str,
        source_crs: Optional[str] = None,
        target_crs: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        suggestions: Optional[List[str]] = None,
    ):
        """
        Initialize CRSError.

        Args:
            message: User-friendly error message
            source_crs: Source coordinate reference system
            target_crs: Target coordinate reference system
            details: Technical details about the CRS error
            suggestions: List of suggestions for fixing the CRS issue
        """
        error_details = details or {}
        if source_crs:
            error_details["source_crs"] = source_crs
        if target_crs:
            error_details["target_crs"] = target_crs

        default_suggestions = [
            "Use an EPSG identifier such as EPSG:3857",
            "Check GET /api/v1/crs for the supported reference systems",
        ]

        super().__init__(
            message=message,
            error_code="CRS_ERROR",
            status_code=422,
            details=error_details,
            suggestions=suggestions or default_suggestions,
        )
