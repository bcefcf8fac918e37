"""Live and end-of-day rate resolution backed by OER and two LRU caches."""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from typing import Callable, Mapping

from oer_forex.cache import EodCache, NowishCache, build_caches
from oer_forex.config import ForexConfig
from oer_forex.currency import CurrencyCode
from oer_forex.errors import ApiRequestResult, OerResponseError
from oer_forex.gateway import OerGateway, historical_path, latest_path
from oer_forex.normalizer import normalize
from oer_forex.utils.dates import is_available, parse_date, unavailable_message
from oer_forex.utils.logger import get_logger

LOGGER = get_logger(__name__)

Clock = Callable[[], datetime]


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class OerClient:
    """Resolve ``base_currency -> currency`` rates from Open Exchange Rates.

    Every successful API call writes all of the returned pairs into the
    matching cache, so one request serves later lookups for any currency in
    the response. ``get_*`` methods always hit the API; ``lookup_*`` methods
    consult the caches first.
    """

    def __init__(
        self,
        config: ForexConfig,
        nowish_cache: NowishCache | None = None,
        eod_cache: EodCache | None = None,
        *,
        gateway: OerGateway | None = None,
        clock: Clock | None = None,
    ) -> None:
        self.config = config
        self.nowish_cache = nowish_cache
        self.eod_cache = eod_cache
        self.gateway = gateway or OerGateway()
        self._clock = clock or _utc_now

    def __enter__(self) -> "OerClient":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def close(self) -> None:
        """Release the gateway's HTTP sessions."""

        self.gateway.close()

    @classmethod
    def with_default_caches(
        cls,
        config: ForexConfig,
        *,
        gateway: OerGateway | None = None,
        clock: Clock | None = None,
    ) -> "OerClient":
        """Create a client whose caches are sized from ``config``."""

        nowish_cache, eod_cache = build_caches(config)
        return cls(config, nowish_cache, eod_cache, gateway=gateway, clock=clock)

    @property
    def base_currency(self) -> CurrencyCode:
        return self.config.base_currency

    async def get_live_rate(self, currency: str | CurrencyCode) -> ApiRequestResult:
        """Return the current ``base -> currency`` rate."""

        target = _parse_target(currency)
        if isinstance(target, OerResponseError):
            return target

        rates = await self._fetch_normalized(latest_path(self.config))
        if isinstance(rates, OerResponseError):
            return rates

        if self.nowish_cache is not None:
            observed_at = self._clock()
            for current, rate in rates.items():
                await self.nowish_cache.put((self.base_currency, current), (observed_at, rate))
            LOGGER.debug("Cached %d live rates for base %s", len(rates), self.base_currency)

        return _pick(rates, target)

    async def get_historical_rate(
        self, currency: str | CurrencyCode, day: str | date | datetime
    ) -> ApiRequestResult:
        """Return the end-of-day ``base -> currency`` rate for ``day``.

        Dates before 1999-01-01 or after today are rejected without a request.
        """

        target = _parse_target(currency)
        if isinstance(target, OerResponseError):
            return target
        day = self._calendar_day(day)
        if not is_available(day, self._clock().date()):
            return OerResponseError.resources_not_available(unavailable_message(day))

        rates = await self._fetch_normalized(historical_path(self.config, day))
        if isinstance(rates, OerResponseError):
            return rates

        if self.eod_cache is not None:
            for current, rate in rates.items():
                await self.eod_cache.put((self.base_currency, current, day), rate)
            LOGGER.debug("Cached %d end-of-day rates for %s on %s", len(rates), self.base_currency, day)

        return _pick(rates, target)

    async def lookup_live_rate(self, currency: str | CurrencyCode) -> ApiRequestResult:
        """Like :meth:`get_live_rate` but served from the nowish cache while fresh."""

        target = _parse_target(currency)
        if isinstance(target, OerResponseError):
            return target
        if target == self.base_currency:
            return Decimal(1)
        if self.nowish_cache is not None:
            cached = await self.nowish_cache.get((self.base_currency, target))
            if cached is not None:
                observed_at, rate = cached
                if self._clock() - observed_at <= timedelta(seconds=self.config.nowish_secs):
                    return rate
        return await self.get_live_rate(target)

    async def lookup_historical_rate(
        self, currency: str | CurrencyCode, day: str | date | datetime
    ) -> ApiRequestResult:
        """Like :meth:`get_historical_rate` but served from the eod cache when present."""

        target = _parse_target(currency)
        if isinstance(target, OerResponseError):
            return target
        day = self._calendar_day(day)
        if not is_available(day, self._clock().date()):
            return OerResponseError.resources_not_available(unavailable_message(day))
        if target == self.base_currency:
            return Decimal(1)
        if self.eod_cache is not None:
            cached = await self.eod_cache.get((self.base_currency, target, day))
            if cached is not None:
                return cached
        return await self.get_historical_rate(target, day)

    def _calendar_day(self, day: str | date | datetime) -> date:
        return parse_date(day, self._clock().tzinfo)

    async def _fetch_normalized(self, resource_path: str) -> dict[CurrencyCode, Decimal] | OerResponseError:
        table = await self.gateway.fetch(resource_path)
        if isinstance(table, OerResponseError):
            return table
        return normalize(table, self.config.account_level, self.base_currency)


def _parse_target(currency: str | CurrencyCode) -> CurrencyCode | OerResponseError:
    target = CurrencyCode.try_parse(currency)
    if target is None:
        return OerResponseError.illegal_currency(f"Currency not found in the API, invalid currency {currency}")
    return target


def _pick(rates: Mapping[CurrencyCode, Decimal], currency: CurrencyCode) -> ApiRequestResult:
    rate = rates.get(currency)
    if rate is None:
        return OerResponseError.illegal_currency(f"Currency not found in the API, invalid currency {currency}")
    return rate


__all__ = ["Clock", "OerClient"]
