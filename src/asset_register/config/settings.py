from functools import lru_cache

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    database_url: str = "sqlite:///./data/asset_register.db"
    app_name: str = "asset-register"
    debug: bool = False
    log_level: str = "INFO"
    fiscal_year_end_month: int = 6  # June
    fiscal_year_end_day: int = 30
    tax_year_method: str = "fiscal_year"
    accounts_payable_code: str = "2000/001"
    default_user: str = "system"

    model_config = {"env_prefix": "ASSETREG_", "env_file": ".env"}


@lru_cache
def get_settings() -> Settings:
    return Settings()
