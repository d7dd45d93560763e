from __future__ import annotations

from fastapi import Depends, Request

from app.core.config import settings
from app.services.oracle import OpenAIOracle, ReasoningOracle
from app.services.recommendation_assembler import RecommendationAssembler, build_recommendation_assembler


def get_oracle(request: Request) -> ReasoningOracle:
    oracle = getattr(request.app.state, "oracle", None)
    if oracle is None:
        oracle = OpenAIOracle.from_settings(settings)
        request.app.state.oracle = oracle
    return oracle


def get_assembler(oracle: ReasoningOracle = Depends(get_oracle)) -> RecommendationAssembler:
    return build_recommendation_assembler(oracle, settings)
