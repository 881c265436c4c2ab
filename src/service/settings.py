from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ServiceSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # External report store (edge function returning {"html", "yearMakeModel"})
    report_store_url: str = Field(default="", alias="REPORT_STORE_URL")
    report_store_anon_key: str = Field(default="", alias="REPORT_STORE_ANON_KEY")
    report_store_timeout_seconds: float = Field(default=10.0, alias="REPORT_STORE_TIMEOUT_SECONDS")

    redis_url: str = Field(default="redis://localhost:6379/0", alias="REDIS_URL")
    report_cache_ttl_seconds: int = Field(default=3_600, alias="REPORT_CACHE_TTL_SECONDS")

    # Report rendering
    brand_name: str = Field(default="MintCheck", alias="BRAND_NAME")
    enable_fallback_parser: bool = Field(default=False, alias="ENABLE_FALLBACK_PARSER")

    # Logging
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    log_format: str = Field(default="json", alias="LOG_FORMAT")
