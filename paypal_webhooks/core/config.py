from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings

PAYPAL_API_BASE = {
    "sandbox": "https://api.sandbox.paypal.com/v1",
    "production": "https://api.paypal.com/v1",
}


class Settings(BaseSettings):
    paypal_client_id: str | None = None
    paypal_client_secret: str | None = None
    paypal_webhook_id: str | None = None
    paypal_env: Literal["sandbox", "production"] = "sandbox"
    # when set, a missing webhook id is a fatal misconfiguration
    production_mode: bool = False
    paypal_timeout_seconds: float = 10.0
    database_url: str = "sqlite:///./paypal_webhooks.db"
    dedup_ttl_seconds: int = 3 * 24 * 60 * 60
    log_level: str = "INFO"

    model_config = {"env_file": ".env", "extra": "ignore"}

    @property
    def paypal_base_url(self) -> str:
        return PAYPAL_API_BASE[self.paypal_env]

    @property
    def has_credentials(self) -> bool:
        return bool(self.paypal_client_id and self.paypal_client_secret)


@lru_cache
def get_settings() -> Settings:
    return Settings()
