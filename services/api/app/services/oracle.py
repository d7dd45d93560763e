from __future__ import annotations

import logging
import re
from typing import Any, Protocol

import httpx

from app.core.config import Settings
from app.core.errors import OracleError, OracleQuotaExceededError

logger = logging.getLogger(__name__)

_FENCE_RE = re.compile(r"```(?:json)?\n?")


class ReasoningOracle(Protocol):
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
        ...

    async def complete_text(self, prompt: str, *, temperature: float = 0.7) -> str:
        ...


class OpenAIOracle:
    """Chat Completions client shared by every request.

    Holds no per-request state, so one instance is built at startup and handed
    to the pipeline. Each call is a single attempt; failures surface as
    `OracleError` and the caller decides whether they are fatal.
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://api.openai.com/v1",
        vision_model: str = "gpt-4o",
        text_model: str = "gpt-4o",
        timeout_sec: float = 45.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.vision_model = vision_model
        self.text_model = text_model
        self.timeout_sec = timeout_sec
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout_sec)

    @classmethod
    def from_settings(cls, cfg: Settings) -> "OpenAIOracle":
        return cls(
            api_key=cfg.openai_api_key,
            base_url=cfg.openai_base_url,
            vision_model=cfg.openai_vision_model,
            text_model=cfg.openai_text_model,
            timeout_sec=cfg.openai_timeout_sec,
        )

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

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
        body: dict[str, Any] = {
            "model": self.vision_model,
            "messages": [
                {"role": "system", "content": system_prompt},
                {
                    "role": "user",
                    "content": [
                        {"type": "text", "text": user_prompt},
                        {"type": "image_url", "image_url": {"url": image_data_url}},
                    ],
                },
            ],
            "temperature": temperature,
        }
        if max_tokens is not None:
            body["max_tokens"] = max_tokens
        if json_mode:
            body["response_format"] = {"type": "json_object"}
        return await self._chat(body)

    async def complete_text(self, prompt: str, *, temperature: float = 0.7) -> str:
        body = {
            "model": self.text_model,
            "messages": [{"role": "user", "content": prompt}],
            "temperature": temperature,
        }
        return await self._chat(body)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def _chat(self, body: dict[str, Any]) -> str:
        if not self.api_key:
            raise OracleError("OPENAI_API_KEY is required")

        headers = {"Authorization": f"Bearer {self.api_key}", "Content-Type": "application/json"}
        try:
            resp = await self._client.post(
                f"{self.base_url}/chat/completions",
                headers=headers,
                json=body,
                timeout=self.timeout_sec,
            )
        except httpx.HTTPError as exc:
            raise OracleError(f"OpenAI request failed: {type(exc).__name__}: {exc}") from exc

        if resp.status_code == 429:
            text = (resp.text or "").lower()
            if "insufficient_quota" in text or ("quota" in text and "exceeded" in text):
                raise OracleQuotaExceededError("OpenAI quota exhausted")
            raise OracleQuotaExceededError("OpenAI rate limit reached")
        if resp.status_code >= 400:
            raise OracleError(f"OpenAI returned HTTP {resp.status_code}")

        try:
            content = resp.json()["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError) as exc:
            raise OracleError("OpenAI response missing message content") from exc
        logger.debug("oracle_reply model=%s chars=%d", body.get("model"), len(content or ""))
        return content or "{}"


def strip_code_fence(text: str) -> str:
    """Remove markdown code fences the model adds despite being told not to."""
    return _FENCE_RE.sub("", text or "").strip()
