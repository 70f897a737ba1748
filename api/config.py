from functools import lru_cache

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from torque.core.messages import Tier

load_dotenv()


class Settings(BaseSettings):
    """
    Process-wide configuration, read from the environment (and .env) once at startup.
    Field names map to upper-case env vars, e.g. TOKEN_CEILING_FREE.
    """

    model_config = SettingsConfigDict(env_file=".env", extra="ignore", protected_namespaces=())

    openai_api_key: str = ""
    openai_base_url: str = "https://api.openai.com/v1"
    model_chat: str = "gpt-4o"
    model_vin_text: str = "gpt-4o"

    token_ceiling_free: int = Field(default=1500, ge=0)
    token_ceiling_pro: int = Field(default=6000, ge=0)
    history_max_turns: int = Field(default=6, ge=0)
    temperature_free: float = 0.5
    temperature_pro: float = 0.3
    max_reply_tokens: int = 400
    upstream_timeout_seconds: float = 30.0

    # USD per 1M tokens for the configured chat models.
    price_gpt4o_in_per_1m: float = 2.5
    price_gpt4o_cached_in_per_1m: float = 1.25
    price_gpt4o_out_per_1m: float = 10.0
    price_gpt4omini_in_per_1m: float = 0.15
    price_gpt4omini_cached_in_per_1m: float = 0.075
    price_gpt4omini_out_per_1m: float = 0.6
    openai_free_mode: bool = False

    log_level: str = "INFO"
    log_dir: str = "logs"
    log_to_console: bool = True

    def ceilings(self) -> dict[Tier, int]:
        return {Tier.FREE: self.token_ceiling_free, Tier.PRO: self.token_ceiling_pro}

    def temperatures(self) -> dict[Tier, float]:
        return {Tier.FREE: self.temperature_free, Tier.PRO: self.temperature_pro}

    def model_pricing(self) -> dict[str, dict[str, float]]:
        return {
            "gpt-4o": {
                "in": self.price_gpt4o_in_per_1m,
                "cached_in": self.price_gpt4o_cached_in_per_1m,
                "out": self.price_gpt4o_out_per_1m,
            },
            "gpt-4o-mini": {
                "in": self.price_gpt4omini_in_per_1m,
                "cached_in": self.price_gpt4omini_cached_in_per_1m,
                "out": self.price_gpt4omini_out_per_1m,
            },
        }


@lru_cache
def get_settings() -> Settings:
    return Settings()
