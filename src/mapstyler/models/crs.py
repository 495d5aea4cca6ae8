"""
Data models for coordinate reference system identifiers.

An identifier is an authority:code pair. Any pair is a valid value; only
the ones present in the CRS registry can be transformed.
"""

import re
from dataclasses import dataclass
from typing import Any, Dict, Optional

_IDENTIFIER_PATTERN = re.compile(r"^\s*([A-Za-z]+)\s*:+\s*(\w+)\s*$")


@dataclass(frozen=True)
class CRSIdentifier:
    """
    Authority-qualified CRS identifier, e.g. ``EPSG:3857``.

    Attributes:
        authority: Naming authority, upper-cased (e.g., 'EPSG')
        code: Authority-specific code
    """

    authority: str
    code: str

    def __post_init__(self) -> None:
        object.__setattr__(self, "authority", self.authority.upper())
        object.__setattr__(self, "code", str(self.code))

    @classmethod
    def from_epsg(cls, epsg: int) -> "CRSIdentifier":
        """
        Create an identifier from an EPSG code.

        Args:
            epsg: EPSG code

        Returns:
            CRSIdentifier instance
        """
        return cls(authority="EPSG", code=str(epsg))

    @classmethod
    def parse(cls, text: str) -> "CRSIdentifier":
        """
        Parse an ``AUTHORITY:CODE`` string.

        Args:
            text: Identifier text, e.g. 'EPSG:4326' or 'epsg::4326'

        Returns:
            CRSIdentifier instance

        Raises:
            ValueError: If the text is not an authority:code pair
        """
        match = _IDENTIFIER_PATTERN.match(text or "")
        if not match:
            raise ValueError(f"Not an AUTHORITY:CODE identifier: {text!r}")
        return cls(authority=match.group(1), code=match.group(2))

    @property
    def epsg(self) -> Optional[int]:
        """EPSG code as an integer, when this is a numeric EPSG identifier."""
        if self.authority == "EPSG" and self.code.isdigit():
            return int(self.code)
        return None

    def to_urn(self) -> str:
        """OGC URN form used in legacy GeoJSON ``crs`` members."""
        return f"urn:ogc:def:crs:{self.authority}::{self.code}"

    def __str__(self) -> str:
        return f"{self.authority}:{self.code}"


@dataclass(frozen=True)
class CRSDefinition:
    """
    Projection parameters for a registered CRS.

    Attributes:
        identifier: Registered identifier
        title: Human-readable name
        proj4: PROJ string handed to pyproj
        is_geographic: True for longitude/latitude systems
    """

    identifier: CRSIdentifier
    title: str
    proj4: str
    is_geographic: bool = False

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "identifier": str(self.identifier),
            "title": self.title,
            "proj4": self.proj4,
            "is_geographic": self.is_geographic,
        }


# GeoJSON default (RFC 7946)
WGS84 = CRSIdentifier.from_epsg(4326)
