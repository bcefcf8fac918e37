"""Public interface for the oer_forex package."""

from __future__ import annotations

from importlib import metadata as importlib_metadata

from oer_forex.cache import (
    EodCache,
    EodCacheKey,
    EodCacheValue,
    InMemoryLruMap,
    LruMap,
    NowishCache,
    NowishCacheKey,
    NowishCacheValue,
    build_caches,
)
from oer_forex.client import OerClient
from oer_forex.config import AccountLevel, ForexConfig
from oer_forex.currency import CurrencyCode
from oer_forex.errors import ApiRequestResult, ErrorKind, OerResponseError, unwrap
from oer_forex.gateway import OER_API_URL, OerGateway
from oer_forex.normalizer import RATE_CONTEXT, normalize
from oer_forex.settings import OerSettings
from oer_forex.utils.dates import OER_MIN_AVAILABLE_DATE

__all__ = [
    "__version__",
    "AccountLevel",
    "ApiRequestResult",
    "CurrencyCode",
    "EodCache",
    "EodCacheKey",
    "EodCacheValue",
    "ErrorKind",
    "ForexConfig",
    "InMemoryLruMap",
    "LruMap",
    "NowishCache",
    "NowishCacheKey",
    "NowishCacheValue",
    "OER_API_URL",
    "OER_MIN_AVAILABLE_DATE",
    "OerClient",
    "OerGateway",
    "OerResponseError",
    "OerSettings",
    "RATE_CONTEXT",
    "build_caches",
    "normalize",
    "unwrap",
]

try:
    __version__ = importlib_metadata.version("oer-forex")
except importlib_metadata.PackageNotFoundError:  # pragma: no cover - fallback for local runs
    __version__ = "0.1.0"
