from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field


class AnalyzeStyleRequest(BaseModel):
    image: str | None = None
    budget: str = "medium"


class ProductRecommendationOut(BaseModel):
    name: str
    price: float
    description: str
    style_match: str
    shop_links: dict[str, str]


class StyleTipOut(BaseModel):
    name: str = "Style Tip"
    description: str
    style_match: str = "Based on your Instagram inspiration"


class CoreStyleSection(BaseModel):
    type: Literal["Core Style Elements"] = "Core Style Elements"
    items: list[ProductRecommendationOut | None]
    aesthetic: str
    color_palette: list[str]
    stores: list[str]


class StylingTipsSection(BaseModel):
    type: Literal["Styling Tips"] = "Styling Tips"
    items: list[StyleTipOut]
    color_palette: list[str]
    aesthetic: str = "How to style your pieces"


class RecommendationResponse(BaseModel):
    recommendations: tuple[CoreStyleSection, StylingTipsSection] = Field(
        description="Core Style Elements first, Styling Tips second."
    )


class ErrorResponse(BaseModel):
    error: str
