from __future__ import annotations

import asyncio
import json
import logging
import math
from typing import Any

from app.core.config import Settings, settings as default_settings
from app.core.errors import OracleError, SchemaError
from app.services.oracle import ReasoningOracle, strip_code_fence
from app.services.style_models import PriceEstimate, PriceRange

logger = logging.getLogger(__name__)

BUDGET_BASE_PRICES = {
    "budget": 50,
    "medium": 150,
    "luxury": 300,
}
DEFAULT_TIER = "medium"
FALLBACK_REASONING = "Estimated based on budget level"

_PRICE_PROMPT_TEMPLATE = """As a fashion expert, estimate a realistic price range for:
Item: {item}
Style: {style}
Budget Level: {budget} (budget=affordable, medium=moderate, luxury=high-end)

Consider:
- Current market prices
- Quality level expected
- Brand tier for this style
- Seasonal factors

Respond with JSON only:
{{
  "estimated_price": number (realistic average price),
  "price_range": {{"min": number, "max": number}},
  "reasoning": "Brief note about quality/value"
}}"""


def build_price_prompt(item: str, style: str, budget: str) -> str:
    return _PRICE_PROMPT_TEMPLATE.format(item=item, style=style, budget=budget)


def fallback_estimate(budget: str) -> PriceEstimate:
    base = BUDGET_BASE_PRICES.get(budget, BUDGET_BASE_PRICES[DEFAULT_TIER])
    return PriceEstimate(
        estimated_price=base,
        price_range=PriceRange(min=math.floor(base * 0.8), max=math.ceil(base * 1.2)),
        reasoning=FALLBACK_REASONING,
        source="fallback",
    )


class PriceEstimator:
    """Advisory price lookup. `estimate` always returns; oracle trouble means the tier table."""

    def __init__(self, oracle: ReasoningOracle, cfg: Settings | None = None) -> None:
        self.oracle = oracle
        self.cfg = cfg or default_settings

    async def estimate(self, item: str, style: str, budget: str) -> PriceEstimate:
        try:
            text = await asyncio.wait_for(
                self.oracle.complete_text(
                    build_price_prompt(item, style, budget),
                    temperature=self.cfg.price_temperature,
                ),
                timeout=self.cfg.price_timeout_sec,
            )
            return parse_price_estimate(text)
        except asyncio.TimeoutError:
            logger.warning("price_estimate_fallback item=%s reason=timeout", item)
        except (OracleError, SchemaError) as exc:
            logger.warning("price_estimate_fallback item=%s reason=%s", item, exc)
        except Exception:
            logger.exception("price_estimate_fallback item=%s reason=unexpected", item)
        return fallback_estimate(budget)


def parse_price_estimate(text: str) -> PriceEstimate:
    cleaned = strip_code_fence(text)
    try:
        parsed = json.loads(cleaned)
    except json.JSONDecodeError as exc:
        raise SchemaError(f"Price reply is not valid JSON: {exc.msg}") from exc
    if not isinstance(parsed, dict):
        raise SchemaError("Price reply is not a JSON object")

    price_range = parsed.get("price_range")
    if not isinstance(price_range, dict):
        raise SchemaError("Price reply missing price_range")

    estimated = _number(parsed.get("estimated_price"), "estimated_price")
    low = _number(price_range.get("min"), "price_range.min")
    high = _number(price_range.get("max"), "price_range.max")

    if low > high:
        logger.info("price_range_swapped min=%s max=%s", low, high)
        low, high = high, low
    if not low <= estimated <= high:
        clamped = min(max(estimated, low), high)
        logger.info("price_estimate_clamped value=%s range=%s-%s -> %s", estimated, low, high, clamped)
        estimated = clamped

    reasoning = parsed.get("reasoning")
    return PriceEstimate(
        estimated_price=estimated,
        price_range=PriceRange(min=low, max=high),
        reasoning=str(reasoning).strip() if reasoning is not None else "",
        source="oracle",
    )


def _number(value: Any, field: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise SchemaError(f"Price reply field {field} is not a number")
    if not math.isfinite(value):
        raise SchemaError(f"Price reply field {field} is not finite")
    return value
