"""Bounded LRU caches for live ("nowish") and end-of-day rates."""

from __future__ import annotations

import asyncio
from collections import OrderedDict
from datetime import date, datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Generic, Hashable, Protocol, Tuple, TypeVar

from oer_forex.currency import CurrencyCode

if TYPE_CHECKING:  # pragma: no cover - imported only for type checking
    from oer_forex.config import ForexConfig

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")

# (source currency, target currency) -> (observed at, rate)
NowishCacheKey = Tuple[CurrencyCode, CurrencyCode]
NowishCacheValue = Tuple[datetime, Decimal]

# (source currency, target currency, calendar date) -> rate
EodCacheKey = Tuple[CurrencyCode, CurrencyCode, date]
EodCacheValue = Decimal


class LruMap(Protocol[K, V]):
    """Contract for the cache capability used by :class:`OerClient`.

    Implementations may suspend on their store but must not fail under normal
    operation, and are expected to bound their size themselves.
    """

    async def get(self, key: K) -> V | None:
        ...  # pragma: no cover - protocol definition

    async def put(self, key: K, value: V) -> None:
        ...  # pragma: no cover - protocol definition


class InMemoryLruMap(Generic[K, V]):
    """Process-local LRU map safe to share between coroutines."""

    def __init__(self, max_size: int) -> None:
        if max_size <= 0:
            raise ValueError("max_size must be positive")
        self.max_size = max_size
        self._entries: OrderedDict[K, V] = OrderedDict()
        self._lock = asyncio.Lock()

    async def get(self, key: K) -> V | None:
        async with self._lock:
            if key not in self._entries:
                return None
            self._entries.move_to_end(key)
            return self._entries[key]

    async def put(self, key: K, value: V) -> None:
        async with self._lock:
            self._entries[key] = value
            self._entries.move_to_end(key)
            while len(self._entries) > self.max_size:
                self._entries.popitem(last=False)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries


NowishCache = LruMap[NowishCacheKey, NowishCacheValue]
EodCache = LruMap[EodCacheKey, EodCacheValue]


def build_caches(
    config: "ForexConfig",
) -> tuple[InMemoryLruMap[NowishCacheKey, NowishCacheValue] | None, InMemoryLruMap[EodCacheKey, EodCacheValue] | None]:
    """Create the nowish/eod caches sized from ``config``; size 0 disables one."""

    nowish = InMemoryLruMap(config.nowish_cache_size) if config.nowish_cache_size > 0 else None
    eod = InMemoryLruMap(config.eod_cache_size) if config.eod_cache_size > 0 else None
    return nowish, eod


__all__ = [
    "EodCache",
    "EodCacheKey",
    "EodCacheValue",
    "InMemoryLruMap",
    "LruMap",
    "NowishCache",
    "NowishCacheKey",
    "NowishCacheValue",
    "build_caches",
]
