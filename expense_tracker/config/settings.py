"""
Configuration Management for the Expense Tracker engine

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All tunable limits live here.
Validation bounds, page sizes and report sizes are read from one place
so the engine, the validator and the tests agree on them.
"""

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class LedgerSettings(BaseSettings):
    """
    Ledger engine settings.

    Loads configuration from LEDGER_* environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_prefix="LEDGER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Pagination
    page_size: int = Field(
        default=10,
        ge=1,
        le=100,
        description="Transactions shown per page"
    )

    # Validation thresholds
    max_amount: float = Field(
        default=1_000_000.0,
        gt=0,
        description="Largest amount a single transaction may carry"
    )
    min_description_length: int = Field(
        default=3,
        ge=1,
        description="Minimum description length after trimming"
    )
    max_description_length: int = Field(
        default=100,
        ge=1,
        description="Maximum description length after trimming"
    )
    future_date_limit_years: int = Field(
        default=1,
        ge=0,
        description="How many years ahead a transaction date can be"
    )
    strict_categories: bool = Field(
        default=True,
        description="Reject categories outside the set for the transaction type"
    )

    # Analytics sizes
    top_categories_limit: int = Field(
        default=5,
        ge=1,
        description="Categories shown in the dashboard breakdown"
    )
    report_top_categories_limit: int = Field(
        default=10,
        ge=1,
        description="Categories listed in the text report"
    )
    trend_months: int = Field(
        default=12,
        ge=1,
        le=120,
        description="Monthly buckets in the trend series"
    )

    # Import / export
    export_version: str = Field(
        default="1.0",
        description="Version written into export documents"
    )
    validate_imports: bool = Field(
        default=False,
        description="Run the validator over every imported record"
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Standard logging level name"
    )
    audit_history_limit: int = Field(
        default=10_000,
        ge=1,
        description="Audit events kept by the in-memory audit trail"
    )

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Only accept standard logging level names."""
        allowed = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in allowed:
            raise ValueError(f"Unsupported log level: {v}. Allowed: {allowed}")
        return v.upper()

    @field_validator('max_description_length')
    @classmethod
    def validate_description_bounds(cls, v: int, info) -> int:
        minimum = info.data.get("min_description_length")
        if minimum is not None and v < minimum:
            raise ValueError("max_description_length cannot be below min_description_length")
        return v


@lru_cache()
def get_settings() -> LedgerSettings:
    """
    Get ledger settings (cached).

    Uses LRU cache to ensure settings are only loaded once.
    Call get_settings.cache_clear() to reload if needed.
    """
    return LedgerSettings()


def validate_all_settings() -> dict[str, bool]:
    """
    Validate settings are properly configured.

    Returns a dict of {setting_name: is_valid}.
    Useful for startup checks.
    """
    results = {}

    try:
        _ = get_settings()
        results["ledger"] = True
    except Exception as e:
        results["ledger"] = False
        results["ledger_error"] = str(e)

    return results
