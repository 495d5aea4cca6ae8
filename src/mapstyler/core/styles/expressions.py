"""
Translation of QGIS rule filters into legacy Mapbox filters.

Rule-based QGIS renderers store each rule's filter as a QGIS expression.
Only the subset that maps directly onto filter syntax is translated:
comparisons between a field and a literal, IN lists, IS [NOT] NULL,
AND/OR/NOT and parentheses. Anything else raises ``ValueError`` and the
caller keeps the expression verbatim.
"""

import re
from typing import Any, List, Optional, Tuple

_TOKEN_PATTERN = re.compile(
    r"""\s*(?:
        (?P<field>"(?:[^"]|"")*")
      | (?P<string>'(?:[^']|'')*')
      | (?P<number>-?\d+(?:\.\d+)?(?:[eE][-+]?\d+)?)
      | (?P<op><>|!=|>=|<=|=|>|<)
      | (?P<lparen>\()
      | (?P<rparen>\))
      | (?P<comma>,)
      | (?P<word>[A-Za-z_]\w*)
    )""",
    re.VERBOSE,
)

_KEYWORDS = {"AND", "OR", "NOT", "IS", "NULL", "IN", "TRUE", "FALSE"}

_OPERATORS = {"=": "==", "<>": "!=", "!=": "!=", ">": ">", ">=": ">=", "<": "<", "<=": "<="}

# Operator to use when the literal is on the left-hand side
_MIRRORED = {"==": "==", "!=": "!=", ">": "<", ">=": "<=", "<": ">", "<=": ">="}

Token = Tuple[str, str]


def tokenize(expression: str) -> List[Token]:
    """
    Split a QGIS expression into (kind, text) tokens.

    Raises:
        ValueError: On characters outside the supported subset
    """
    tokens: List[Token] = []
    position = 0
    expression = expression.rstrip()

    while position < len(expression):
        match = _TOKEN_PATTERN.match(expression, position)
        if not match or match.end() == position:
            raise ValueError(f"Unsupported syntax at offset {position}: {expression[position:]!r}")
        kind = match.lastgroup
        text = match.group(kind)
        if kind == "word" and text.upper() in _KEYWORDS:
            kind, text = "keyword", text.upper()
        tokens.append((kind, text))
        position = match.end()

    return tokens


class _ExpressionParser:
    """Recursive-descent parser over the token list."""

    def __init__(self, tokens: List[Token]):
        self.tokens = tokens
        self.position = 0

    def peek(self) -> Optional[Token]:
        return self.tokens[self.position] if self.position < len(self.tokens) else None

    def take(self, kind: Optional[str] = None, text: Optional[str] = None) -> Token:
        token = self.peek()
        if token is None:
            raise ValueError("Unexpected end of expression")
        if (kind and token[0] != kind) or (text and token[1] != text):
            raise ValueError(f"Unexpected token {token[1]!r}")
        self.position += 1
        return token

    def accept(self, kind: str, text: Optional[str] = None) -> bool:
        token = self.peek()
        if token is not None and token[0] == kind and (text is None or token[1] == text):
            self.position += 1
            return True
        return False

    def parse(self) -> List[Any]:
        result = self.parse_or()
        if self.peek() is not None:
            raise ValueError(f"Unexpected token {self.peek()[1]!r}")
        return result

    def parse_or(self) -> List[Any]:
        operands = [self.parse_and()]
        while self.accept("keyword", "OR"):
            operands.append(self.parse_and())
        return operands[0] if len(operands) == 1 else ["any", *operands]

    def parse_and(self) -> List[Any]:
        operands = [self.parse_not()]
        while self.accept("keyword", "AND"):
            operands.append(self.parse_not())
        return operands[0] if len(operands) == 1 else ["all", *operands]

    def parse_not(self) -> List[Any]:
        if self.accept("keyword", "NOT"):
            return ["none", self.parse_not()]
        if self.accept("lparen"):
            inner = self.parse_or()
            self.take("rparen")
            return inner
        return self.parse_comparison()

    def parse_operand(self) -> Tuple[str, Any]:
        kind, text = self.take()
        if kind == "field":
            return "field", text[1:-1].replace('""', '"')
        if kind == "word":
            return "field", text
        if kind == "string":
            return "literal", text[1:-1].replace("''", "'")
        if kind == "number":
            number = float(text)
            return "literal", int(number) if number.is_integer() and "." not in text else number
        if kind == "keyword" and text in ("TRUE", "FALSE"):
            return "literal", text == "TRUE"
        raise ValueError(f"Unexpected token {text!r}")

    def parse_comparison(self) -> List[Any]:
        left_kind, left = self.parse_operand()

        if self.accept("keyword", "IS"):
            negated = self.accept("keyword", "NOT")
            self.take("keyword", "NULL")
            if left_kind != "field":
                raise ValueError("IS NULL needs a field")
            return ["has", left] if negated else ["!has", left]

        negated_in = False
        if self.peek() == ("keyword", "NOT"):
            self.take()
            negated_in = True
        if self.accept("keyword", "IN"):
            if left_kind != "field":
                raise ValueError("IN needs a field")
            self.take("lparen")
            values = [self.parse_literal()]
            while self.accept("comma"):
                values.append(self.parse_literal())
            self.take("rparen")
            return ["!in" if negated_in else "in", left, *values]
        if negated_in:
            raise ValueError("NOT must be followed by IN")

        _, op_text = self.take("op")
        operator = _OPERATORS[op_text]
        right_kind, right = self.parse_operand()

        if left_kind == "field" and right_kind == "literal":
            return [operator, left, right]
        if left_kind == "literal" and right_kind == "field":
            return [_MIRRORED[operator], right, left]
        raise ValueError("Comparisons must be between a field and a literal")

    def parse_literal(self) -> Any:
        kind, value = self.parse_operand()
        if kind != "literal":
            raise ValueError("IN lists may only contain literals")
        return value


def translate_qgis_filter(expression: str) -> List[Any]:
    """
    Translate a QGIS filter expression into a legacy Mapbox filter.

    Args:
        expression: QGIS expression, e.g. ``"type" = 'forest' AND "area" > 10``

    Returns:
        Filter list, e.g. ``["all", ["==", "type", "forest"], [">", "area", 10]]``

    Raises:
        ValueError: If the expression uses unsupported syntax
    """
    tokens = tokenize(expression)
    if not tokens:
        raise ValueError("Empty expression")
    return _ExpressionParser(tokens).parse()
