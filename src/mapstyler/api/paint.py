"""
Paint expression API endpoints.
"""

import logging

from fastapi import APIRouter

from mapstyler.core.paint import build_layer_paint, evaluate_feature
from mapstyler.models.api import EvaluateRequest, EvaluateResponse, LayerPaintResponse
from mapstyler.models.rules import LayerStyle

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/paint", tags=["paint"])


@router.post("/expression", response_model=LayerPaintResponse, summary="Build layer paint")
async def build_expression(layer: LayerStyle) -> LayerPaintResponse:
    """
    Build the fill and border paint for a layer.

    Incomplete rules are left out; a layer without usable rules gets a
    plain fill color.
    """
    paint = build_layer_paint(layer)
    return LayerPaintResponse(
        has_rules=paint.has_rules,
        fill=paint.fill_paint(),
        line=paint.line_paint(),
    )


@router.post("/evaluate", response_model=EvaluateResponse, summary="Evaluate fill colors")
async def evaluate(request: EvaluateRequest) -> EvaluateResponse:
    """Resolve the fill color each feature would be drawn with."""
    expression = build_layer_paint(request.layer).fill_color
    colors = [evaluate_feature(expression, feature) for feature in request.features]
    logger.debug(f"Evaluated {len(colors)} feature(s)")
    return EvaluateResponse(colors=colors)
