"""Configuration objects consumed by the OER client."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from oer_forex.currency import CurrencyCode

DEFAULT_NOWISH_CACHE_SIZE = 13530
DEFAULT_NOWISH_SECS = 300
DEFAULT_EOD_CACHE_SIZE = 60830


class AccountLevel(str, Enum):
    """Open Exchange Rates account tiers."""

    DEVELOPER = "developer"
    ENTERPRISE = "enterprise"
    UNLIMITED = "unlimited"

    @classmethod
    def parse(cls, value: "str | AccountLevel") -> "AccountLevel":
        """Normalise ``developer``, ``DeveloperAccount`` etc. into an AccountLevel."""

        if isinstance(value, AccountLevel):
            return value
        cleaned = value.strip().lower()
        if cleaned.endswith("account"):
            cleaned = cleaned[: -len("account")]
        try:
            return cls(cleaned)
        except ValueError:
            raise ValueError(
                "Unsupported account level. Supported values are Developer, "
                "Enterprise, and Unlimited."
            ) from None

    @property
    def can_set_base(self) -> bool:
        """Return True when OER accepts a ``base`` parameter for this tier."""

        return self is not AccountLevel.DEVELOPER


@dataclass(frozen=True, slots=True)
class ForexConfig:
    """Immutable settings shared by the gateway, normalizer and client.

    ``nowish_cache_size``/``eod_cache_size`` bound the two LRU caches; a size
    of zero disables that cache. ``nowish_secs`` is how long a cached live
    rate is considered fresh by :meth:`OerClient.lookup_live_rate`.
    """

    app_id: str
    base_currency: CurrencyCode = CurrencyCode.USD
    account_level: AccountLevel = AccountLevel.DEVELOPER
    nowish_cache_size: int = DEFAULT_NOWISH_CACHE_SIZE
    nowish_secs: int = DEFAULT_NOWISH_SECS
    eod_cache_size: int = DEFAULT_EOD_CACHE_SIZE

    def __post_init__(self) -> None:
        if not self.app_id or not self.app_id.strip():
            raise ValueError("app_id must not be empty")
        # Accept plain strings for convenience while keeping the dataclass frozen.
        object.__setattr__(self, "base_currency", CurrencyCode.of(self.base_currency))
        object.__setattr__(self, "account_level", AccountLevel.parse(self.account_level))
        for field_name in ("nowish_cache_size", "nowish_secs", "eod_cache_size"):
            if getattr(self, field_name) < 0:
                raise ValueError(f"{field_name} must not be negative")

    @classmethod
    def from_env(cls) -> "ForexConfig":
        """Build a config from ``OER_*`` environment variables.

        Raises ``ValueError`` (pydantic's ``ValidationError``) when ``OER_APP_ID``
        is missing or a value cannot be parsed.
        """

        from oer_forex.settings import get_settings

        return get_settings().to_config()


__all__ = ["AccountLevel", "ForexConfig"]
