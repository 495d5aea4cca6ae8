"""
QML style parsing.

Parsing runs in three phases:

1. ``read_qml`` reads the QGIS renderer into a vendor-neutral
   ``StyleDocument`` (one ``StyleRule`` per class).
2. Each rule keeps only the symbolizers the renderer can draw (Fill, Line);
   rules left with none are dropped.
3. Each remaining rule is converted to layer fragments independently. A rule
   that fails to convert is skipped with a warning; it never aborts the
   document.
"""

import logging
import re
import xml.etree.ElementTree as ET
from dataclasses import replace
from typing import Any, Dict, List, Optional, Union

from mapstyler.core.errors import StyleParseError, ValidationError
from mapstyler.core.styles.expressions import translate_qgis_filter
from mapstyler.core.styles.mapbox_writer import write_rule_layers
from mapstyler.core.styles.qml_validator import validate_qml_content, validate_style_upload
from mapstyler.models.style import (
    CategorizedRule,
    QMLStyle,
    RendererType,
    StyleDocument,
    StyleRule,
    Symbolizer,
    SymbolizerKind,
)
from mapstyler.utils.logging import log_performance

logger = logging.getLogger(__name__)

# Render-unit conversion to pixels at 96 dpi
UNIT_TO_PIXELS = {
    "MM": 96 / 25.4,
    "Pixel": 1.0,
    "Point": 96 / 72,
    "Inch": 96.0,
}

# QGIS default stroke width (0.26 mm)
DEFAULT_STROKE_MM = 0.26

FILL_CLASSES = {"SimpleFill"}
LINE_CLASSES = {"SimpleLine"}
MARKER_CLASSES = {
    "SimpleMarker",
    "SvgMarker",
    "FontMarker",
    "FilledMarker",
    "RasterMarker",
    "EllipseMarker",
}

NUMERIC_TYPES = {"integer", "int", "long", "qlonglong", "double", "real"}

_NUMBER_PATTERN = re.compile(r"^-?\d+(\.\d+)?$")
# Untyped values with leading zeros ("01234") are codes, not numbers
_UNTYPED_NUMBER_PATTERN = re.compile(r"^-?(0|[1-9]\d*)(\.\d+)?$")


def _typed_value(value: str, declared_type: Optional[str] = None) -> Union[str, int, float]:
    """Convert a category value to a number when it is numeric."""
    if declared_type == "string":
        return value
    if declared_type and declared_type not in NUMERIC_TYPES:
        return value
    pattern = _NUMBER_PATTERN if declared_type else _UNTYPED_NUMBER_PATTERN
    if not pattern.match(value.strip()):
        return value
    number = float(value)
    return int(number) if "." not in value else number


def _qgis_color(value: Optional[str]) -> Optional[str]:
    """Strip the float color spec QGIS 3.28+ appends after r,g,b,a."""
    if not value:
        return None
    parts = [part.strip() for part in value.split(",")]
    return ",".join(parts[:4])


def _to_float(value: Optional[str], default: Optional[float] = None) -> Optional[float]:
    if value is None or value == "":
        return default
    try:
        return float(value)
    except ValueError:
        return default


class QMLReader:
    """
    Read the renderer of a QML document into a ``StyleDocument``.

    Handles:
    - singleSymbol, categorizedSymbol, graduatedSymbol and RuleRenderer
    - Symbol layer properties in both <prop k v> and <Option name value> form
    - Disabled symbol layers and classes with render="false"
    """

    def __init__(self) -> None:
        self.symbols: Dict[str, ET.Element] = {}
        self.document: Optional[StyleDocument] = None

    def read(self, raw_qml: str) -> StyleDocument:
        """
        Read a QML document.

        Args:
            raw_qml: QML document text

        Returns:
            StyleDocument with rules in document order

        Raises:
            StyleParseError: If the document has no readable renderer
        """
        try:
            root = ET.fromstring(raw_qml.encode("utf-8"))
        except ET.ParseError as e:
            raise StyleParseError(f"Style document is not valid XML: {e}")

        renderer = root if root.tag == "renderer-v2" else root.find(".//renderer-v2")
        if renderer is None:
            raise StyleParseError("Style document has no renderer-v2 element")

        renderer_name = renderer.get("type")
        try:
            renderer_type = RendererType(renderer_name)
        except ValueError:
            raise StyleParseError(
                f"Unsupported renderer type '{renderer_name}'",
                details={"renderer_type": renderer_name},
                suggestions=[
                    "Use a single symbol, categorized, graduated or rule-based renderer"
                ],
            )

        symbols_el = renderer.find("symbols")
        self.symbols = {}
        if symbols_el is not None:
            for symbol in symbols_el.findall("symbol"):
                self.symbols[symbol.get("name", "")] = symbol

        self.document = StyleDocument(
            renderer_type=renderer_type,
            class_attribute=renderer.get("attr"),
        )

        if renderer_type == RendererType.SINGLE:
            self._read_single(renderer)
        elif renderer_type == RendererType.CATEGORIZED:
            self._read_categories(renderer)
        elif renderer_type == RendererType.GRADUATED:
            self._read_ranges(renderer)
        else:
            self._read_rules(renderer)

        logger.debug(
            f"Read {renderer_type.value} renderer with {len(self.document.rules)} rule(s)"
        )
        return self.document

    def _read_single(self, renderer: ET.Element) -> None:
        symbol = self.symbols.get("0")
        if symbol is None and self.symbols:
            symbol = next(iter(self.symbols.values()))
        if symbol is None:
            symbol = renderer.find(".//symbol")
        if symbol is None:
            return
        self.document.rules.append(
            StyleRule(index=0, symbolizers=self._read_symbol(symbol), symbol=symbol.get("name"))
        )

    def _read_categories(self, renderer: ET.Element) -> None:
        attribute = renderer.get("attr")
        categories = renderer.findall("categories/category")
        values = [
            _typed_value(c.get("value", ""), c.get("type"))
            for c in categories
            if c.get("value", "") != ""
        ]

        for index, category in enumerate(categories):
            if category.get("render", "true") == "false":
                continue

            raw_value = category.get("value", "")
            if raw_value == "":
                rule_filter: Any = ["!in", attribute, *values]
            else:
                rule_filter = ["==", attribute, _typed_value(raw_value, category.get("type"))]

            self._append_rule(index, category.get("label"), rule_filter, category.get("symbol"))

    def _read_ranges(self, renderer: ET.Element) -> None:
        attribute = renderer.get("attr")

        for index, range_el in enumerate(renderer.findall("ranges/range")):
            if range_el.get("render", "true") == "false":
                continue

            lower = _to_float(range_el.get("lower"))
            upper = _to_float(range_el.get("upper"))
            if lower is None or upper is None:
                rule_filter: Any = f"{range_el.get('lower')} - {range_el.get('upper')}"
            else:
                rule_filter = ["all", [">=", attribute, lower], ["<=", attribute, upper]]

            self._append_rule(index, range_el.get("label"), rule_filter, range_el.get("symbol"))

    def _read_rules(self, renderer: ET.Element) -> None:
        rules_el = renderer.find("rules")
        if rules_el is None:
            return
        counter = [0]
        self._walk_rules(rules_el.findall("rule"), None, counter)

    def _walk_rules(self, rules: List[ET.Element], parent: Any, counter: List[int]) -> None:
        translated: List[Any] = []
        entries = []

        for rule in rules:
            expression = rule.get("filter")
            if expression and expression.strip().upper() == "ELSE":
                entries.append((rule, None, True))
                continue
            if expression:
                try:
                    rule_filter: Any = translate_qgis_filter(expression)
                    translated.append(rule_filter)
                except ValueError as e:
                    logger.debug(f"Keeping untranslatable filter {expression!r}: {e}")
                    rule_filter = expression
            else:
                rule_filter = None
            entries.append((rule, rule_filter, False))

        for rule, rule_filter, is_else in entries:
            if is_else:
                rule_filter = ["none", *translated] if translated else None
            combined = self._combine(parent, rule_filter)

            if rule.get("symbol") is not None:
                index = counter[0]
                counter[0] += 1
                if rule.get("checkstate", "1") != "0":
                    self._append_rule(index, rule.get("label"), combined, rule.get("symbol"))

            children = rule.findall("rule")
            if children and rule.get("checkstate", "1") != "0":
                self._walk_rules(children, combined, counter)

    @staticmethod
    def _combine(parent: Any, child: Any) -> Any:
        if parent is None:
            return child
        if child is None:
            return parent
        if isinstance(parent, str) or isinstance(child, str):
            return f"({parent}) AND ({child})"
        return ["all", parent, child]

    def _append_rule(
        self,
        index: int,
        label: Optional[str],
        rule_filter: Any,
        symbol_name: Optional[str],
    ) -> None:
        symbol = self.symbols.get(symbol_name or "")
        symbolizers = self._read_symbol(symbol) if symbol is not None else []
        if symbol is None:
            logger.debug(f"Rule {index} references missing symbol '{symbol_name}'")
        self.document.rules.append(
            StyleRule(
                index=index,
                name=label,
                filter=rule_filter,
                symbolizers=symbolizers,
                symbol=symbol_name,
            )
        )

    @staticmethod
    def _layer_properties(layer: ET.Element) -> Dict[str, str]:
        properties: Dict[str, str] = {}
        for prop in layer.findall("prop"):
            if prop.get("k") is not None:
                properties[prop.get("k")] = prop.get("v", "")
        option_map = layer.find("Option")
        if option_map is not None:
            for option in option_map.findall("Option"):
                name = option.get("name")
                if name and option.get("value") is not None:
                    properties[name] = option.get("value")
        return properties

    @staticmethod
    def _width(properties: Dict[str, str], key: str) -> float:
        width = _to_float(properties.get(key), DEFAULT_STROKE_MM)
        factor = UNIT_TO_PIXELS.get(properties.get(f"{key}_unit", "MM"), 1.0)
        return round(width * factor, 3)

    def _read_symbol(self, symbol: ET.Element) -> List[Symbolizer]:
        opacity = _to_float(symbol.get("alpha"), 1.0)
        symbolizers: List[Symbolizer] = []

        for layer in symbol.findall("layer"):
            if layer.get("enabled", "1") == "0":
                continue

            layer_class = layer.get("class", "")
            properties = self._layer_properties(layer)

            if layer_class in FILL_CLASSES:
                symbolizers.append(self._fill_symbolizer(properties, opacity))
            elif layer_class in LINE_CLASSES:
                line = self._line_symbolizer(properties, opacity)
                if line is not None:
                    symbolizers.append(line)
            elif layer_class in MARKER_CLASSES:
                symbolizers.append(
                    Symbolizer(
                        kind=SymbolizerKind.MARK,
                        color=_qgis_color(properties.get("color")),
                        opacity=opacity,
                    )
                )
            else:
                logger.debug(f"Ignoring symbol layer class '{layer_class}'")

        return symbolizers

    def _fill_symbolizer(self, properties: Dict[str, str], opacity: float) -> Symbolizer:
        color = _qgis_color(properties.get("color"))
        if properties.get("style") == "no":
            color = None

        outline_color = _qgis_color(properties.get("outline_color"))
        outline_width: Optional[float] = self._width(properties, "outline_width")
        if properties.get("outline_style") == "no":
            outline_color, outline_width = None, None

        return Symbolizer(
            kind=SymbolizerKind.FILL,
            color=color,
            opacity=opacity,
            outline_color=outline_color,
            outline_width=outline_width,
            join=properties.get("joinstyle"),
        )

    def _line_symbolizer(self, properties: Dict[str, str], opacity: float) -> Optional[Symbolizer]:
        if properties.get("line_style") == "no":
            return None

        dasharray = None
        if properties.get("use_custom_dash") == "1" and properties.get("customdash"):
            factor = UNIT_TO_PIXELS.get(properties.get("customdash_unit", "MM"), 1.0)
            try:
                dasharray = [
                    round(float(part) * factor, 3)
                    for part in properties["customdash"].split(";")
                    if part.strip()
                ]
            except ValueError:
                logger.debug(f"Ignoring malformed dash pattern {properties['customdash']!r}")

        return Symbolizer(
            kind=SymbolizerKind.LINE,
            color=_qgis_color(properties.get("line_color") or properties.get("color")),
            opacity=opacity,
            width=self._width(properties, "line_width"),
            dasharray=dasharray,
            cap=properties.get("capstyle"),
            join=properties.get("joinstyle"),
        )


def read_qml(raw_qml: str) -> StyleDocument:
    """
    Read a QML document into a vendor-neutral style description.

    Args:
        raw_qml: QML document text

    Returns:
        StyleDocument

    Raises:
        StyleParseError: If the document has no readable renderer
    """
    return QMLReader().read(raw_qml)


@log_performance(threshold_ms=250)
def parse_qml(raw_qml: str) -> QMLStyle:
    """
    Parse a QML document into a renderer-ready style.

    Rules are identified as ``category-<index>`` by their position in the
    document, so ids stay stable even when earlier rules are skipped.

    Args:
        raw_qml: Well-formed QML document text

    Returns:
        QMLStyle; ``categorized`` is None when no rule could be converted

    Raises:
        StyleParseError: If the document cannot be read at all
    """
    document = read_qml(raw_qml)
    style = QMLStyle(renderer_type=document.renderer_type)
    converted: List[CategorizedRule] = []

    for rule in document.rules:
        supported = rule.supported_symbolizers
        if not supported:
            logger.debug(f"Rule {rule.index} has no fill or line symbolizers, dropping it")
            continue

        try:
            layers = write_rule_layers(replace(rule, symbolizers=supported))
        except Exception as e:
            message = f"Rule {rule.index} ({rule.name or 'unnamed'}) skipped: {e}"
            logger.warning(message, extra={"rule_index": rule.index})
            style.diagnostics.append(message)
            continue

        if not layers:
            continue

        converted.append(
            CategorizedRule(
                id=f"category-{rule.index}",
                index=rule.index,
                filter=rule.filter,
                layers=layers,
                symbol=rule.symbol,
            )
        )

    style.categorized = converted or None
    logger.info(
        f"Parsed {document.renderer_type.value} style: "
        f"{len(converted)} of {len(document.rules)} rule(s) converted"
    )
    return style


def load_qml_style(content: Union[str, bytes], filename: Optional[str] = None) -> QMLStyle:
    """
    Validate and parse a style document.

    Bytes are treated as an upload and checked for extension, size and
    encoding; text only has to be well-formed XML. Invalid documents never
    reach the parser.

    Args:
        content: Uploaded bytes or document text
        filename: Original filename, if known

    Returns:
        QMLStyle

    Raises:
        ValidationError: If the document is rejected before parsing
        StyleParseError: If the document cannot be read
    """
    if isinstance(content, bytes):
        text = validate_style_upload(filename, content)
    else:
        if not validate_qml_content(content):
            raise ValidationError("The style document is not valid XML", field="file")
        text = content

    return parse_qml(text)
