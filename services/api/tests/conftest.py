from __future__ import annotations

import asyncio
import base64
import json
from io import BytesIO
from typing import Any, Callable

import pytest
from PIL import Image

from app.core.config import Settings
from app.core.errors import OracleError


class FakeOracle:
    """Stands in for OpenAIOracle; replies are strings or exceptions to raise."""

    def __init__(
        self,
        vision_reply: str | Exception = "{}",
        text_reply: str | Exception | Callable[[str], str] = "{}",
        text_delay_sec: float = 0.0,
    ) -> None:
        self.vision_reply = vision_reply
        self.text_reply = text_reply
        self.text_delay_sec = text_delay_sec
        self.vision_calls: list[dict[str, Any]] = []
        self.text_calls: list[str] = []

    async def complete_vision(
        self,
        system_prompt: str,
        user_prompt: str,
        image_data_url: str,
        *,
        temperature: float = 0.3,
        max_tokens: int | None = None,
        json_mode: bool = True,
    ) -> str:
        self.vision_calls.append(
            {
                "system": system_prompt,
                "user": user_prompt,
                "image": image_data_url,
                "temperature": temperature,
                "max_tokens": max_tokens,
                "json_mode": json_mode,
            }
        )
        if isinstance(self.vision_reply, Exception):
            raise self.vision_reply
        return self.vision_reply

    async def complete_text(self, prompt: str, *, temperature: float = 0.7) -> str:
        self.text_calls.append(prompt)
        if self.text_delay_sec:
            await asyncio.sleep(self.text_delay_sec)
        reply = self.text_reply
        if callable(reply):
            reply = reply(prompt)
        if isinstance(reply, Exception):
            raise reply
        return reply


def price_reply(estimated: float, low: float, high: float, reasoning: str = "Mid-tier cotton basics") -> str:
    return json.dumps(
        {"estimated_price": estimated, "price_range": {"min": low, "max": high}, "reasoning": reasoning}
    )


def analysis_reply(**overrides: Any) -> str:
    doc: dict[str, Any] = {
        "overall_aesthetic": "minimalist",
        "key_pieces": [
            {
                "item": "White Tee",
                "description": "Boxy cotton crew neck",
                "style_elements": "clean lines",
                "quality_assessment": "heavyweight jersey",
            }
        ],
        "color_palette": {"primary": ["white"], "accent": ["black"]},
        "styling_patterns": ["layer with a blazer"],
        "recommended_searches": ["white tee"],
    }
    doc.update(overrides)
    return json.dumps(doc)


@pytest.fixture()
def test_settings() -> Settings:
    return Settings(
        openai_api_key="sk-test",
        price_timeout_sec=1.0,
        branch_timeout_sec=2.0,
        enabled_retailers="amazon,nordstrom,asos",
    )


@pytest.fixture()
def sample_image_bytes() -> bytes:
    buf = BytesIO()
    Image.new("RGB", (320, 400), color=(170, 160, 150)).save(buf, "JPEG")
    return buf.getvalue()


@pytest.fixture()
def sample_data_uri(sample_image_bytes: bytes) -> str:
    return "data:image/jpeg;base64," + base64.b64encode(sample_image_bytes).decode("ascii")


@pytest.fixture()
def unreachable() -> OracleError:
    return OracleError("OpenAI request failed: ConnectError: connection refused")
