from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(slots=True)
class KeyPiece:
    item: str = ""
    description: str = ""
    style_elements: str = ""
    quality_assessment: str = ""


@dataclass(slots=True)
class ColorPalette:
    primary: list[str] = field(default_factory=list)
    accent: list[str] = field(default_factory=list)

    @property
    def combined(self) -> list[str]:
        return [*self.primary, *self.accent]


@dataclass(slots=True)
class StyleAnalysis:
    overall_aesthetic: str
    key_pieces: list[KeyPiece]
    color_palette: ColorPalette
    styling_patterns: list[str] = field(default_factory=list)
    recommended_searches: list[str] = field(default_factory=list)


@dataclass(slots=True)
class PriceRange:
    min: float
    max: float


@dataclass(slots=True)
class PriceEstimate:
    estimated_price: float
    price_range: PriceRange
    reasoning: str
    source: str = "oracle"


@dataclass(slots=True)
class ProductRecommendation:
    name: str
    price: float
    description: str
    style_match: str
    shop_links: dict[str, str]
    price_range: PriceRange | None = None


@dataclass(slots=True)
class StyleTip:
    description: str
    name: str = "Style Tip"
    style_match: str = "Based on your Instagram inspiration"


@dataclass(slots=True)
class RecommendationResult:
    analysis: StyleAnalysis
    items: list[ProductRecommendation | None]
    tips: list[StyleTip]
    stores: list[str]
