"""Environment-driven settings for building a :class:`ForexConfig`."""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from oer_forex.config import (
    DEFAULT_EOD_CACHE_SIZE,
    DEFAULT_NOWISH_CACHE_SIZE,
    DEFAULT_NOWISH_SECS,
    AccountLevel,
    ForexConfig,
)
from oer_forex.currency import CurrencyCode


class OerSettings(BaseSettings):
    """Settings read from ``OER_APP_ID``, ``OER_BASE_CURRENCY`` and friends."""

    app_id: str = Field(..., description="Open Exchange Rates application id")
    base_currency: str = Field("USD", description="Currency every returned rate is quoted from")
    account_level: str = Field("developer", description="developer|enterprise|unlimited")
    nowish_cache_size: int = Field(DEFAULT_NOWISH_CACHE_SIZE, ge=0, description="0 disables the live cache")
    nowish_secs: int = Field(DEFAULT_NOWISH_SECS, ge=0, description="Freshness window for cached live rates")
    eod_cache_size: int = Field(DEFAULT_EOD_CACHE_SIZE, ge=0, description="0 disables the end-of-day cache")

    model_config = SettingsConfigDict(env_prefix="OER_", case_sensitive=False, env_ignore_empty=True)

    def to_config(self) -> ForexConfig:
        return ForexConfig(
            app_id=self.app_id,
            base_currency=CurrencyCode.of(self.base_currency),
            account_level=AccountLevel.parse(self.account_level),
            nowish_cache_size=self.nowish_cache_size,
            nowish_secs=self.nowish_secs,
            eod_cache_size=self.eod_cache_size,
        )


def get_settings() -> OerSettings:
    """Read the current environment; not cached so tests can patch variables."""

    return OerSettings()


__all__ = ["OerSettings", "get_settings"]
