"""
Outline recovery from raw QML text.

Structured conversion loses or miscomputes polygon outline strokes, so the
outline color and width are read straight from each top-level ``<symbol>``
block of the document text. One slot is kept per block, None when that
symbol has no complete outline. Each correction carries the block's
``name`` so rules find their own symbol even though QGIS writes symbols
sorted by name as text (``0, 1, 10, 2, ...``).
"""

import logging
import re
from typing import Iterator, List, Optional, Sequence, Tuple

from mapstyler.core.styles.normalizer import css_color
from mapstyler.models.style import OutlineCorrection

logger = logging.getLogger(__name__)

# Opening or closing <symbol> tag, not <symbols>
SYMBOL_TAG_PATTERN = re.compile(r"<symbol(?=[\s>/])[^>]*>|</symbol\s*>")
SYMBOL_NAME_PATTERN = re.compile(r'\bname="([^"]*)"')


def _attribute_pattern(name: str) -> "re.Pattern[str]":
    # <Option name="x" value="..."/>, <prop k="x" v="..."/> or x="..."
    return re.compile(
        rf'(?:name="{name}"[^>]*?\bvalue="([^"]*)"'
        rf'|k="{name}"[^>]*?\bv="([^"]*)"'
        rf'|\b{name}="([^"]*)")'
    )


OUTLINE_COLOR_PATTERN = _attribute_pattern("outline_color")
OUTLINE_WIDTH_PATTERN = _attribute_pattern("outline_width")


def iter_symbol_blocks(raw_qml: str) -> Iterator[Tuple[str, str]]:
    """
    Yield ``(opening tag, own text)`` for every top-level ``<symbol>`` block.

    Sub-symbols nested inside a block (the marker of a MarkerLine layer, for
    instance) are cut out of the block's own text. Unclosed trailing blocks
    are ignored.
    """
    depth = 0
    cursor = 0
    opening = ""
    own: List[str] = []

    for match in SYMBOL_TAG_PATTERN.finditer(raw_qml):
        tag = match.group(0)

        if tag.startswith("</"):
            if depth == 0:
                continue
            if depth == 1:
                own.append(raw_qml[cursor:match.start()])
                yield opening, "".join(own)
            depth -= 1
            cursor = match.end()
            continue

        self_closing = tag.endswith("/>")
        if depth == 0:
            if self_closing:
                yield tag, tag
                continue
            opening, own = tag, [tag]
            depth = 1
        else:
            if depth == 1:
                own.append(raw_qml[cursor:match.start()])
            if not self_closing:
                depth += 1
        cursor = match.end()


def _find_attribute(pattern: "re.Pattern[str]", block: str) -> Optional[str]:
    match = pattern.search(block)
    if not match:
        return None
    value = next((group for group in match.groups() if group is not None), None)
    return value if value else None


def _parse_width(raw: Optional[str]) -> Optional[float]:
    if raw is None:
        return None
    try:
        return float(raw)
    except ValueError:
        return None


def extract_outlines(raw_qml: Optional[str]) -> List[Optional[OutlineCorrection]]:
    """
    Recover per-symbol outline corrections from the document text.

    Args:
        raw_qml: QML document text

    Returns:
        One entry per top-level ``<symbol>`` block in document order; None
        where the block lacks an outline color or a numeric outline width
    """
    if not raw_qml:
        return []

    corrections: List[Optional[OutlineCorrection]] = []

    for index, (opening, block) in enumerate(iter_symbol_blocks(raw_qml)):
        color = _find_attribute(OUTLINE_COLOR_PATTERN, block)
        width = _parse_width(_find_attribute(OUTLINE_WIDTH_PATTERN, block))

        if color is None or width is None:
            corrections.append(None)
            continue

        name = SYMBOL_NAME_PATTERN.search(opening)
        corrections.append(
            OutlineCorrection(
                index=index,
                color=css_color(color),
                width=width,
                symbol=name.group(1) if name else None,
            )
        )

    found = sum(1 for c in corrections if c is not None)
    logger.debug(f"Recovered {found} outline(s) from {len(corrections)} symbol block(s)")
    return corrections


def outline_for(
    corrections: Sequence[Optional[OutlineCorrection]],
    index: int,
    symbol: Optional[str] = None,
) -> Optional[OutlineCorrection]:
    """
    Correction for a rule, or None when there is none.

    Rules that name their symbol are matched on that name, first match in
    document order. Otherwise the rule position is used.
    """
    if symbol is not None:
        return next((c for c in corrections if c is not None and c.symbol == symbol), None)
    if 0 <= index < len(corrections):
        return corrections[index]
    return None
