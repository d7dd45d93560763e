from __future__ import annotations

import logging

from app.core.errors import AggregationError
from app.services.price_estimator import PriceEstimator
from app.services.store_links import StoreLinkBuilder
from app.services.style_models import ProductRecommendation

logger = logging.getLogger(__name__)


class ProductAggregator:
    def __init__(self, estimator: PriceEstimator, link_builder: StoreLinkBuilder) -> None:
        self.estimator = estimator
        self.link_builder = link_builder

    async def aggregate(self, item: str, style: str, budget: str) -> ProductRecommendation | None:
        """Price one key piece and attach shop links; returns None instead of raising."""
        try:
            if not isinstance(item, str) or not item.strip():
                raise AggregationError("Key piece has no item name")
            estimate = await self.estimator.estimate(item, style, budget)
            return ProductRecommendation(
                name=item,
                price=estimate.estimated_price,
                description=f"Perfect match for your style. {estimate.reasoning}".strip(),
                style_match=style,
                shop_links=self.link_builder.build_links(item, estimate.price_range),
                price_range=estimate.price_range,
            )
        except Exception:
            logger.exception("product_aggregation_failed item=%r", item)
            return None
