# nextup/config.py
from typing import Literal, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    database_url: str
    env: Literal["dev", "stage", "prod"]
    debug: bool = False
    log_level: str = "INFO"
    access_log: bool = True
    sql_echo: bool = False
    auto_init_db: bool = True

    # Token signing
    jwt_secret: str
    refresh_token_secret: str
    access_token_ttl_minutes: int = 60
    refresh_token_ttl_days: int = 7
    password_hash_iterations: int = 210_000

    # Stripe checkout
    stripe_secret_key: str
    stripe_webhook_secret: str
    stripe_price_id: Optional[str] = None

    # Rate limiting (per client address, in-process memory)
    rate_limit_enabled: bool = True
    rate_limit_default: str = "100/15minutes"
    login_failure_limit: str = "5/15minutes"

    # Deployed frontend, used for CORS and checkout redirect URLs
    frontend_url: str = "http://localhost:5173"

    @property
    def is_dev(self) -> bool:
        return self.env == "dev" or self.debug is True

    @property
    def is_prod(self) -> bool:
        return self.env == "prod"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="",
        case_sensitive=False,
        extra="ignore",
    )


settings = Settings()  # type: ignore[call-arg]
