"""
Data models for the QML styling pipeline.

A QML document is first read into a ``StyleDocument`` (renderer type plus
one ``StyleRule`` per class, each carrying vendor-neutral symbolizers).
Supported rules are then converted into MapLibre/Mapbox layer fragments
and collected into a ``QMLStyle``.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class RendererType(str, Enum):
    """QGIS feature renderer types understood by the reader."""

    SINGLE = "singleSymbol"
    CATEGORIZED = "categorizedSymbol"
    GRADUATED = "graduatedSymbol"
    RULE_BASED = "RuleRenderer"


class SymbolizerKind(str, Enum):
    """Symbolizer kinds; only FILL and LINE are rendered."""

    FILL = "Fill"
    LINE = "Line"
    MARK = "Mark"


SUPPORTED_SYMBOLIZERS = frozenset({SymbolizerKind.FILL, SymbolizerKind.LINE})


@dataclass
class Symbolizer:
    """
    One paint instruction of a style rule.

    Colors are kept exactly as QGIS wrote them, usually ``r,g,b,a``.

    Attributes:
        kind: Symbolizer kind
        color: Fill color (FILL), stroke color (LINE) or marker color (MARK)
        opacity: Symbol-level opacity in [0, 1]
        width: Stroke width in pixels (LINE)
        outline_color: Polygon outline color (FILL)
        outline_width: Polygon outline width in pixels (FILL)
        dasharray: Dash pattern in pixels (LINE)
        cap: Line cap style
        join: Line join style
    """

    kind: SymbolizerKind
    color: Optional[str] = None
    opacity: float = 1.0
    width: Optional[float] = None
    outline_color: Optional[str] = None
    outline_width: Optional[float] = None
    dasharray: Optional[List[float]] = None
    cap: Optional[str] = None
    join: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation, omitting unset values."""
        data: Dict[str, Any] = {"kind": self.kind.value, "opacity": self.opacity}
        for name in ("color", "width", "outline_color", "outline_width", "dasharray", "cap", "join"):
            value = getattr(self, name)
            if value is not None:
                data[name] = value
        return data


@dataclass
class StyleRule:
    """
    One renderer class read from the QML document.

    Attributes:
        index: Position of the class in document order
        name: Class label
        filter: Legacy Mapbox filter, None for "everything", or the raw QGIS
            expression string when it could not be translated
        symbolizers: Symbolizers in symbol-layer order
        symbol: Name of the <symbol> the class draws with
    """

    index: int
    name: Optional[str] = None
    filter: Any = None
    symbolizers: List[Symbolizer] = field(default_factory=list)
    symbol: Optional[str] = None

    @property
    def supported_symbolizers(self) -> List[Symbolizer]:
        """Symbolizers the renderer can draw."""
        return [s for s in self.symbolizers if s.kind in SUPPORTED_SYMBOLIZERS]


@dataclass
class StyleDocument:
    """
    Vendor-neutral reading of a QML document.

    Attributes:
        renderer_type: QGIS renderer type
        rules: Rules in document order
        class_attribute: Field the renderer classifies on, if any
    """

    renderer_type: RendererType
    rules: List[StyleRule] = field(default_factory=list)
    class_attribute: Optional[str] = None


@dataclass
class CategorizedRule:
    """
    A rule converted to renderer layer fragments.

    Attributes:
        id: Stable identifier ``category-<index>``
        index: Position of the source rule in document order
        filter: Filter the layers are drawn with
        layers: Layer fragments with ``type``, ``paint`` and ``layout``
        symbol: Name of the source <symbol>, used to find its outline
    """

    id: str
    index: int
    filter: Any = None
    layers: List[Dict[str, Any]] = field(default_factory=list)
    symbol: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "id": self.id,
            "index": self.index,
            "filter": self.filter,
            "layers": self.layers,
        }


@dataclass
class QMLStyle:
    """
    Renderer-ready style parsed from a QML document.

    ``categorized`` is None when no rule survived conversion; callers then
    fall back to default symbology.

    Attributes:
        categorized: Converted rules in document order
        renderer_type: Renderer the document declared
        diagnostics: Warnings recorded for skipped rules
    """

    categorized: Optional[List[CategorizedRule]] = None
    renderer_type: Optional[RendererType] = None
    diagnostics: List[str] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.categorized

    @property
    def mode(self) -> str:
        """'empty', 'single' (one uniform appearance) or 'categorized'."""
        if self.is_empty:
            return "empty"
        if self.renderer_type == RendererType.SINGLE:
            return "single"
        return "categorized"

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        if self.is_empty:
            return {}
        return {"categorized": [rule.to_dict() for rule in self.categorized]}


@dataclass(frozen=True)
class OutlineCorrection:
    """
    Outline stroke recovered from the raw QML text for one symbol.

    Attributes:
        index: Position of the <symbol> block in the document
        color: ``rgba(...)`` color
        width: Outline width as written in the document
        symbol: ``name`` of the <symbol> block, matched against ``StyleRule.symbol``
    """

    index: int
    color: str
    width: float
    symbol: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "index": self.index,
            "symbol": self.symbol,
            "color": self.color,
            "width": self.width,
        }
