"""
Application Configuration - Pydantic Settings for type-safe config.

NO DICTIONARIES - All configuration is strongly typed.
FAIL FAST - The transactions endpoint is validated at startup.
"""

import sys

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ConfigurationError(Exception):
    """Raised when critical configuration is missing or invalid."""

    pass


class Settings(BaseSettings):
    """Application settings loaded from IAP_* environment variables."""

    # Remote endpoint serving the transaction list
    transactions_url: str = "https://www.mehealthapp.cn/api/getAllTransactions"

    # Service identity (attached to every log entry)
    service_name: str = "iap-transactions"
    service_version: str = "0.1.0"

    # Logging
    log_level: str = "INFO"
    log_format: str = "json"  # json or console

    # Observability - Metrics
    metrics_enabled: bool = True

    # Decoding
    dedupe_fallback_ids: bool = False  # Make substituted ids unique per response

    # Summary - share of list price kept after the store commission
    proceeds_rate: float = 0.85

    model_config = SettingsConfigDict(
        env_prefix="IAP_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @model_validator(mode="after")
    def validate_critical_config(self) -> "Settings":
        """
        FAIL FAST: Validate critical configuration at startup.

        A client pointed at a non-HTTP endpoint would only fail on the first
        fetch, with an unhelpful message.
        """
        errors: list[str] = []

        if not self.transactions_url:
            errors.append("IAP_TRANSACTIONS_URL is required but empty")
        elif not self.transactions_url.startswith(("http://", "https://")):
            errors.append(
                f"IAP_TRANSACTIONS_URL must be an http(s) URL, got: {self.transactions_url[:40]}"
            )

        if not 0 < self.proceeds_rate <= 1:
            errors.append(f"IAP_PROCEEDS_RATE must be in (0, 1], got: {self.proceeds_rate}")

        if self.log_format not in ("json", "console"):
            errors.append(f"IAP_LOG_FORMAT must be 'json' or 'console', got: {self.log_format}")

        if errors:
            error_msg = "\n".join(
                [
                    "",
                    "=" * 60,
                    "CRITICAL CONFIGURATION ERROR",
                    "=" * 60,
                    *[f"  ✗ {e}" for e in errors],
                    "=" * 60,
                    "",
                ]
            )
            print(error_msg, file=sys.stderr)
            raise ConfigurationError(error_msg)

        return self


# Global settings instance - validates at import time
settings = Settings()


def get_settings() -> Settings:
    """Get application settings instance."""
    return settings
