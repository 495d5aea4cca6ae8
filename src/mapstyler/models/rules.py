"""
Pydantic models for user-authored coloring rules.

Rules arrive from the layer editor while the user is still filling them
in, so every field is optional here. Incomplete rules are accepted and
silently left out when the paint expression is built.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from mapstyler.core.config import settings


class BooleanRule(BaseModel):
    """
    Color features by a boolean property.

    Attributes:
        field: Property name
        true_color: Color when the property is true
        false_color: Color when the property is false
        enabled: Whether the rule takes part in the expression
    """

    field: Optional[str] = Field(None, description="Boolean property name")
    true_color: Optional[str] = Field("#00ff00", alias="trueColor")
    false_color: Optional[str] = Field("#ff0000", alias="falseColor")
    enabled: bool = Field(False, description="Whether the rule is applied")

    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "field": "active",
                "trueColor": "#0f0",
                "falseColor": "#f00",
                "enabled": True,
            }
        },
    )


class CategoricalRule(BaseModel):
    """
    Color features by exact match of a text property.

    Attributes:
        field: Property name
        value_to_color: Ordered mapping of property value to color
    """

    field: Optional[str] = Field(None, description="Text property name")
    value_to_color: Dict[str, Optional[str]] = Field(
        default_factory=dict,
        alias="values",
        description="Property value to color, evaluated in insertion order",
    )

    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "example": {"field": "landuse", "values": {"forest": "#228b22", "water": "#1e90ff"}}
        },
    )


class NumericComparisonRule(BaseModel):
    """
    Color features where one numeric property compares against another.

    The operator is not validated here; unsupported operators are dropped
    when the expression is built.

    Attributes:
        field_a: Left-hand property name
        operator: One of ==, !=, >, >=, <, <=
        field_b: Right-hand property name
        color: Color applied when the comparison holds
    """

    field_a: Optional[str] = Field(None, alias="fieldA")
    operator: Optional[str] = Field(None, alias="op")
    field_b: Optional[str] = Field(None, alias="fieldB")
    color: Optional[str] = None

    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "example": {"fieldA": "pop", "op": ">", "fieldB": "threshold", "color": "#abc"}
        },
    )


class LayerStyle(BaseModel):
    """
    Appearance of one uploaded GeoJSON layer.

    Attributes:
        color: Base fill color, used as the expression fallback
        fill_opacity: Fill opacity
        stroke_color: Border color
        stroke_width: Border width in pixels
        stroke_opacity: Border opacity
        boolean_styles: Boolean rules, in precedence order
        text_categories: Categorical rule, if any
        rules: Numeric comparison rules, in precedence order
    """

    color: Optional[str] = Field(default_factory=lambda: settings.default_layer_color)
    fill_opacity: float = Field(0.45, alias="fillOpacity", ge=0, le=1)
    stroke_color: Optional[str] = Field("#000000", alias="strokeColor")
    stroke_width: float = Field(1, alias="strokeWidth", ge=0)
    stroke_opacity: float = Field(1, alias="strokeOpacity", ge=0, le=1)
    boolean_styles: List[BooleanRule] = Field(default_factory=list, alias="booleanStyles")
    text_categories: Optional[CategoricalRule] = Field(None, alias="textCategories")
    rules: List[NumericComparisonRule] = Field(default_factory=list)

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("boolean_styles", mode="before")
    @classmethod
    def expand_keyed_boolean_styles(cls, v: Any) -> Any:
        """Accept the editor's ``{field: {enabled, trueColor, falseColor}}`` form."""
        if isinstance(v, dict):
            expanded = []
            for field_name, config in v.items():
                config = dict(config or {})
                config.setdefault("field", field_name)
                expanded.append(config)
            return expanded
        return v

    @field_validator("rules", mode="before")
    @classmethod
    def drop_null_rules(cls, v: Any) -> Any:
        """Blank rule rows are sent as null."""
        if isinstance(v, list):
            return [rule for rule in v if rule is not None]
        return v
