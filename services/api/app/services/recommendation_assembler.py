from __future__ import annotations

import asyncio
import logging

from app.core.config import Settings, settings as default_settings
from app.core.context import piece_ctx
from app.core.errors import AnalysisError, InputError, OracleError, SchemaError
from app.schemas.style import (
    CoreStyleSection,
    ProductRecommendationOut,
    RecommendationResponse,
    StyleTipOut,
    StylingTipsSection,
)
from app.services.oracle import ReasoningOracle
from app.services.price_estimator import PriceEstimator
from app.services.product_aggregator import ProductAggregator
from app.services.store_links import StoreLinkBuilder, build_store_link_builder
from app.services.style_analysis import StyleAnalyzer
from app.services.style_models import (
    KeyPiece,
    ProductRecommendation,
    RecommendationResult,
    StyleAnalysis,
    StyleTip,
)

logger = logging.getLogger(__name__)


class RecommendationAssembler:
    """Runs one request: analyze the image, price every key piece concurrently, build both sections.

    Only the analysis step can fail the request. Each key piece is an
    independent branch whose failure or timeout leaves `None` in its slot.
    """

    def __init__(
        self,
        analyzer: StyleAnalyzer,
        aggregator: ProductAggregator,
        stores: list[str],
        cfg: Settings | None = None,
    ) -> None:
        self.analyzer = analyzer
        self.aggregator = aggregator
        self.stores = list(stores)
        self.cfg = cfg or default_settings

    async def assemble(self, image_bytes: bytes, budget: str) -> RecommendationResult:
        try:
            analysis = await self.analyzer.analyze(image_bytes, budget)
        except SchemaError as exc:
            raise AnalysisError("schema", str(exc)) from exc
        except OracleError as exc:
            logger.warning("style_analysis_oracle_failed: %s", exc)
            raise AnalysisError("oracle", str(exc)) from exc
        except InputError as exc:
            raise AnalysisError("input", exc.message) from exc

        items = await self._aggregate_all(analysis.key_pieces, budget)
        missing = sum(1 for r in items if r is None)
        logger.info("recommendations_assembled items=%d missing=%d budget=%s", len(items), missing, budget)

        return RecommendationResult(
            analysis=analysis,
            items=items,
            tips=build_style_tips(analysis),
            stores=self.stores,
        )

    async def _aggregate_all(self, pieces: list[KeyPiece], budget: str) -> list[ProductRecommendation | None]:
        # gather keeps input order, so result[i] belongs to pieces[i].
        return list(await asyncio.gather(*(self._branch(idx, p, budget) for idx, p in enumerate(pieces))))

    async def _branch(self, idx: int, piece: KeyPiece, budget: str) -> ProductRecommendation | None:
        piece_ctx.set(piece.item or f"#{idx}")
        try:
            return await asyncio.wait_for(
                self.aggregator.aggregate(piece.item, piece.style_elements, budget),
                timeout=self.cfg.branch_timeout_sec,
            )
        except asyncio.TimeoutError:
            logger.warning("product_branch_timeout index=%d timeout=%.1fs", idx, self.cfg.branch_timeout_sec)
            return None
        except Exception:
            logger.exception("product_branch_failed index=%d", idx)
            return None


def build_style_tips(analysis: StyleAnalysis) -> list[StyleTip]:
    return [StyleTip(description=tip) for tip in analysis.styling_patterns]


def build_recommendation_assembler(
    oracle: ReasoningOracle,
    cfg: Settings | None = None,
    link_builder: StoreLinkBuilder | None = None,
) -> RecommendationAssembler:
    cfg = cfg or default_settings
    links = link_builder or build_store_link_builder(cfg)
    aggregator = ProductAggregator(PriceEstimator(oracle, cfg), links)
    return RecommendationAssembler(
        analyzer=StyleAnalyzer(oracle, cfg),
        aggregator=aggregator,
        stores=links.store_names,
        cfg=cfg,
    )


def to_response(result: RecommendationResult) -> RecommendationResponse:
    analysis = result.analysis
    core = CoreStyleSection(
        items=[
            ProductRecommendationOut(
                name=r.name,
                price=r.price,
                description=r.description,
                style_match=r.style_match,
                shop_links=r.shop_links,
            )
            if r is not None
            else None
            for r in result.items
        ],
        aesthetic=analysis.overall_aesthetic,
        color_palette=analysis.color_palette.combined,
        stores=result.stores,
    )
    tips = StylingTipsSection(
        items=[StyleTipOut(name=t.name, description=t.description, style_match=t.style_match) for t in result.tips],
        color_palette=list(analysis.color_palette.primary),
    )
    return RecommendationResponse(recommendations=(core, tips))
