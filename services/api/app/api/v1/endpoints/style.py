from __future__ import annotations

import logging

from fastapi import APIRouter, Depends

from app.api.deps import get_assembler
from app.schemas.style import AnalyzeStyleRequest, ErrorResponse, RecommendationResponse
from app.services.image_payload import decode_image_payload
from app.services.recommendation_assembler import RecommendationAssembler, to_response

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "/analyze-style",
    response_model=RecommendationResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def analyze_style(
    body: AnalyzeStyleRequest,
    assembler: RecommendationAssembler = Depends(get_assembler),
) -> RecommendationResponse:
    """
    Analyze one outfit photo and return shoppable pieces plus styling tips.

    `budget` is passed through as given; values other than budget/medium/luxury
    price like "medium". Items whose pricing or link building failed come back
    as `null`.
    """
    image_bytes = decode_image_payload(body.image)
    logger.info("analyze_style_start budget=%s size=%d bytes", body.budget, len(image_bytes))
    result = await assembler.assemble(image_bytes, body.budget)
    return to_response(result)
