"""
Configuration Management for PennyPincher

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
This makes it easy to see what external dependencies exist and
ensures all required configuration is validated at startup.
"""

from decimal import Decimal
from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class GeminiSettings(BaseSettings):
    """Gemini LLM configuration."""

    model_config = SettingsConfigDict(
        env_prefix="GEMINI_",
        extra="ignore"
    )

    api_key: str = Field(
        ...,
        description="Gemini API key"
    )
    model_name: str = Field(
        default="gemini-1.5-flash",
        description="Gemini model to use"
    )
    max_tokens: int = Field(
        default=2048,
        ge=100,
        le=8192,
        description="Maximum tokens in response"
    )
    temperature: float = Field(
        default=0.1,
        ge=0.0,
        le=1.0,
        description="Model temperature (lower = more deterministic)"
    )


class StorageSettings(BaseSettings):
    """
    Key-value blob storage configuration.

    Each collection is stored under its own key (namespace).
    """

    model_config = SettingsConfigDict(
        env_prefix="STORAGE_",
        extra="ignore"
    )

    data_dir: Path = Field(
        default=Path.home() / ".pennypincher",
        description="Directory holding one JSON file per storage key"
    )

    # Keys within the store
    transactions_key: str = Field(
        default="expenses",
        description="Key for the transaction ledger"
    )
    categories_key: str = Field(
        default="categories",
        description="Key for the category list"
    )
    people_key: str = Field(
        default="people",
        description="Key for the people list"
    )
    goals_key: str = Field(
        default="savings-goals",
        description="Key for the savings goals"
    )
    vault_key: str = Field(
        default="vault-notes",
        description="Key for the encrypted vault notes"
    )


class LedgerSettings(BaseSettings):
    """Thresholds and reserved identifiers used by the ledger logic."""

    model_config = SettingsConfigDict(
        env_prefix="LEDGER_",
        extra="ignore"
    )

    settlement_tolerance: Decimal = Field(
        default=Decimal("0.01"),
        ge=0,
        description="Max difference between a split share and a settled amount"
    )
    min_outstanding_balance: Decimal = Field(
        default=Decimal("0.009"),
        ge=0,
        description="Balances at or below this are treated as rounding noise"
    )
    settlement_category_id: str = Field(
        default="cat-12",
        description="Category used for payment requests and full settlements"
    )
    max_note_length: int = Field(
        default=100,
        ge=1,
        description="Maximum length of a transaction note entered by hand"
    )


class Settings(BaseSettings):
    """
    Root settings container.

    Aggregates all sub-settings for easy access.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Note: These are loaded lazily to allow partial configuration

    @property
    def gemini(self) -> GeminiSettings:
        return GeminiSettings()

    @property
    def storage(self) -> StorageSettings:
        return StorageSettings()

    @property
    def ledger(self) -> LedgerSettings:
        return LedgerSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict[str, bool]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid}, plus
    {setting_name}_error entries for the ones that failed.
    Useful for startup checks.
    """
    results = {}
    settings = get_settings()

    for name in ("gemini", "storage", "ledger"):
        try:
            getattr(settings, name)
            results[name] = True
        except Exception as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
