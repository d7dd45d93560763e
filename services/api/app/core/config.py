from __future__ import annotations

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_env: str = "development"
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    log_level: str = "INFO"

    base_dashboard_url: str = "http://localhost:3000"
    cors_extra_origins: str = ""

    openai_api_key: str = ""
    openai_base_url: str = "https://api.openai.com/v1"
    openai_vision_model: str = "gpt-4o"
    openai_text_model: str = "gpt-4o"
    openai_timeout_sec: float = 45.0

    vision_temperature: float = 0.3
    vision_max_tokens: int = 700
    price_temperature: float = 0.7
    price_timeout_sec: float = 20.0
    branch_timeout_sec: float = Field(default=30.0, gt=0)

    enabled_retailers: str = "amazon,nordstrom,asos"

    @field_validator("openai_base_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")

    @property
    def retailer_ids(self) -> list[str]:
        return [r.strip().lower() for r in self.enabled_retailers.split(",") if r.strip()]


settings = Settings()
