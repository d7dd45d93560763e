from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass
from typing import Any

from app.core.config import Settings, settings as default_settings
from app.core.errors import InputError, OracleError, SchemaError
from app.services.image_payload import to_jpeg_data_url
from app.services.oracle import ReasoningOracle, strip_code_fence
from app.services.style_models import ColorPalette, KeyPiece, StyleAnalysis

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are a fashion analysis assistant. You MUST ONLY respond with a valid JSON object "
    "following the exact schema provided. Never include any text outside the JSON structure. "
    "Never use markdown code blocks or formatting."
)

_STYLE_PROMPT_TEMPLATE = """You MUST respond with ONLY a valid JSON object, no additional text or markdown formatting.
The response MUST follow this EXACT structure:
{{
  "overall_aesthetic": "Brief description of the overall style aesthetic",
  "key_pieces": [
    {{
      "item": "Specific item name (e.g., 'Black Leather Jacket', 'White Cotton T-shirt')",
      "description": "Detailed description including cut, material, fit",
      "style_elements": "Key style elements that make it stand out",
      "quality_assessment": "Assessment of apparent quality, materials, and craftsmanship"
    }}
  ],
  "color_palette": {{
    "primary": ["color1", "color2"],
    "accent": ["color3", "color4"]
  }},
  "styling_patterns": [
    "Pattern 1: e.g., layering technique",
    "Pattern 2: e.g., color combination principle"
  ],
  "recommended_searches": [
    "Specific search term for similar items"
  ]
}}

Analyze this Instagram fashion image and provide the analysis following the EXACT format above.
Important:
1. DO NOT include any explanatory text outside the JSON
2. DO NOT use markdown code blocks
3. Ensure all JSON keys match exactly
4. The response must be a single valid JSON object
5. Consider the budget level: {budget}"""


def build_style_prompt(budget: str) -> str:
    return _STYLE_PROMPT_TEMPLATE.format(budget=budget)


@dataclass(slots=True)
class AnalysisOutcome:
    """Result of one analysis attempt; exactly one of `analysis`/`error` is set."""

    status: str
    analysis: StyleAnalysis | None = None
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.status == "ok"


class StyleAnalyzer:
    def __init__(self, oracle: ReasoningOracle, cfg: Settings | None = None) -> None:
        self.oracle = oracle
        self.cfg = cfg or default_settings

    async def analyze(self, image_bytes: bytes, budget: str) -> StyleAnalysis:
        # Pillow decode and re-encode run in the default executor.
        loop = asyncio.get_running_loop()
        image_url = await loop.run_in_executor(None, to_jpeg_data_url, image_bytes)
        text = await self.oracle.complete_vision(
            SYSTEM_PROMPT,
            build_style_prompt(budget),
            image_url,
            temperature=self.cfg.vision_temperature,
            max_tokens=self.cfg.vision_max_tokens,
            json_mode=True,
        )
        try:
            analysis = parse_style_analysis(text)
        except SchemaError as exc:
            logger.warning("style_analysis_rejected: %s | raw=%s", exc, (text or "")[:200])
            raise
        logger.info(
            "style_analysis_ok aesthetic=%s pieces=%d patterns=%d",
            analysis.overall_aesthetic[:80],
            len(analysis.key_pieces),
            len(analysis.styling_patterns),
        )
        return analysis

    async def analyze_outcome(self, image_bytes: bytes, budget: str) -> AnalysisOutcome:
        try:
            return AnalysisOutcome(status="ok", analysis=await self.analyze(image_bytes, budget))
        except SchemaError as exc:
            return AnalysisOutcome(status="schema_error", error=exc)
        except InputError as exc:
            return AnalysisOutcome(status="input_error", error=exc)
        except OracleError as exc:
            return AnalysisOutcome(status="oracle_error", error=exc)


def parse_style_analysis(text: str) -> StyleAnalysis:
    """Validate oracle output and build a `StyleAnalysis`, or raise `SchemaError`.

    The whole document is rejected on the first violated rule. Fields outside
    the required shape are normalised rather than validated.
    """
    cleaned = strip_code_fence(text)
    if not cleaned.startswith("{") or not cleaned.endswith("}"):
        raise SchemaError("Invalid JSON format in response")

    try:
        parsed = json.loads(cleaned)
    except json.JSONDecodeError as exc:
        raise SchemaError(f"Response is not valid JSON: {exc.msg}") from exc
    if not isinstance(parsed, dict):
        raise SchemaError("Response is not a JSON object")

    aesthetic = parsed.get("overall_aesthetic")
    if not isinstance(aesthetic, str) or not aesthetic.strip():
        raise SchemaError("Missing or invalid overall_aesthetic field")

    pieces = parsed.get("key_pieces")
    if not isinstance(pieces, list) or not pieces:
        raise SchemaError("Missing or invalid key_pieces array")

    palette = parsed.get("color_palette")
    if not isinstance(palette, dict) or not isinstance(palette.get("primary"), list):
        raise SchemaError("Missing or invalid color_palette structure")

    return StyleAnalysis(
        overall_aesthetic=aesthetic.strip(),
        key_pieces=[_key_piece(p) for p in pieces],
        color_palette=ColorPalette(
            primary=_str_list(palette.get("primary")),
            accent=_str_list(palette.get("accent")),
        ),
        styling_patterns=_str_list(parsed.get("styling_patterns")),
        recommended_searches=_str_list(parsed.get("recommended_searches")),
    )


def _key_piece(raw: Any) -> KeyPiece:
    if not isinstance(raw, dict):
        return KeyPiece()
    return KeyPiece(
        item=_clean(raw.get("item")),
        description=_clean(raw.get("description")),
        style_elements=_clean(raw.get("style_elements")),
        quality_assessment=_clean(raw.get("quality_assessment")),
    )


def _str_list(values: Any) -> list[str]:
    if not isinstance(values, list):
        return []
    return [str(x).strip() for x in values if x is not None and str(x).strip()]


def _clean(v: Any) -> str:
    if v is None:
        return ""
    return str(v).strip()
