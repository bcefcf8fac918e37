from __future__ import annotations

import json
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

import pytest
import requests

from oer_forex.cache import InMemoryLruMap
from oer_forex.client import OerClient
from oer_forex.config import AccountLevel, ForexConfig
from oer_forex.currency import CurrencyCode
from oer_forex.errors import ErrorKind, OerResponseError
from oer_forex.gateway import OER_API_URL, OerGateway
from oer_forex.normalizer import RATE_CONTEXT

USD = CurrencyCode.USD
EUR = CurrencyCode("EUR")
GBP = CurrencyCode("GBP")
NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


def _response(status_code: int, payload: object) -> requests.Response:
    response = requests.Response()
    response.status_code = status_code
    response._content = json.dumps(payload).encode("utf-8")
    response.encoding = "utf-8"
    return response


class _FakeSession:
    def __init__(self, *responses: requests.Response) -> None:
        self.responses = list(responses)
        self.urls: list[str] = []

    def get(self, url: str, timeout: float) -> requests.Response:
        self.urls.append(url)
        return self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]


class _Clock:
    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now


def _client(
    session: _FakeSession,
    *,
    base: CurrencyCode = EUR,
    level: AccountLevel = AccountLevel.DEVELOPER,
    clock: _Clock | None = None,
    with_caches: bool = True,
) -> OerClient:
    config = ForexConfig(app_id="abc", base_currency=base, account_level=level, nowish_secs=300)
    nowish = InMemoryLruMap(100) if with_caches else None
    eod = InMemoryLruMap(100) if with_caches else None
    return OerClient(
        config,
        nowish,
        eod,
        gateway=OerGateway(session=session),  # type: ignore[arg-type]
        clock=clock or _Clock(NOW),
    )


DEVELOPER_RATES = {"rates": {"USD": 1.0, "EUR": 0.9, "GBP": 0.8, "XYZ": 4.2}}


@pytest.mark.asyncio
async def test_developer_live_rate_is_cross_rate() -> None:
    session = _FakeSession(_response(200, DEVELOPER_RATES))
    client = _client(session)

    rate = await client.get_live_rate("GBP")

    assert rate == RATE_CONTEXT.divide(Decimal("0.8"), Decimal("0.9"))
    assert abs(rate - Decimal("0.8889")) < Decimal("0.0001")
    assert session.urls == [OER_API_URL + "latest.json?app_id=abc"]


@pytest.mark.asyncio
async def test_live_rate_populates_nowish_cache_for_every_currency() -> None:
    session = _FakeSession(_response(200, DEVELOPER_RATES))
    client = _client(session)

    await client.get_live_rate(GBP)

    cache = client.nowish_cache
    assert isinstance(cache, InMemoryLruMap)
    assert len(cache) == 3
    assert await cache.get((EUR, EUR)) == (NOW, Decimal(1))
    assert await cache.get((EUR, USD)) == (NOW, RATE_CONTEXT.divide(Decimal("1.0"), Decimal("0.9")))
    assert client.eod_cache is not None and len(client.eod_cache) == 0  # type: ignore[arg-type]


@pytest.mark.asyncio
async def test_enterprise_live_rate_is_passed_through() -> None:
    session = _FakeSession(_response(200, {"rates": {"GBP": 0.889}}))
    client = _client(session, level=AccountLevel.ENTERPRISE)

    rate = await client.get_live_rate("GBP")

    assert rate == Decimal("0.889")
    assert session.urls == [OER_API_URL + "latest.json?app_id=abc&base=EUR"]
    assert await client.nowish_cache.get((EUR, GBP)) == (NOW, Decimal("0.889"))  # type: ignore[union-attr]


@pytest.mark.asyncio
async def test_usd_base_returns_raw_rate() -> None:
    session = _FakeSession(_response(200, DEVELOPER_RATES))
    client = _client(session, base=USD)

    assert await client.get_live_rate("EUR") == Decimal("0.9")


@pytest.mark.asyncio
async def test_invalid_currency_is_illegal_without_request() -> None:
    session = _FakeSession(_response(200, DEVELOPER_RATES))
    client = _client(session)

    result = await client.get_live_rate("XYZ")

    assert isinstance(result, OerResponseError)
    assert result.kind is ErrorKind.ILLEGAL_CURRENCY
    assert session.urls == []


@pytest.mark.asyncio
async def test_currency_missing_from_response_is_illegal() -> None:
    session = _FakeSession(_response(200, DEVELOPER_RATES))
    client = _client(session)

    result = await client.get_live_rate("CHF")

    assert isinstance(result, OerResponseError)
    assert result.kind is ErrorKind.ILLEGAL_CURRENCY
    # The fetched pairs are still cached for later lookups.
    assert len(client.nowish_cache) == 3  # type: ignore[arg-type]


@pytest.mark.asyncio
async def test_provider_error_does_not_touch_cache() -> None:
    session = _FakeSession(_response(401, {"message": "invalid_app_id"}))
    client = _client(session)

    result = await client.get_live_rate("GBP")

    assert result == OerResponseError.other("invalid_app_id")
    assert len(client.nowish_cache) == 0  # type: ignore[arg-type]


@pytest.mark.asyncio
async def test_missing_base_in_developer_response_is_classified() -> None:
    session = _FakeSession(_response(200, {"rates": {"USD": 1.0, "GBP": 0.8}}))
    client = _client(session)

    result = await client.get_historical_rate("GBP", date(2020, 1, 1))

    assert isinstance(result, OerResponseError)
    assert result.kind is ErrorKind.ILLEGAL_CURRENCY
    assert len(client.eod_cache) == 0  # type: ignore[arg-type]


@pytest.mark.asyncio
async def test_historical_rate_populates_eod_cache() -> None:
    session = _FakeSession(_response(200, DEVELOPER_RATES))
    client = _client(session)
    day = date(2011, 3, 5)

    rate = await client.get_historical_rate("GBP", day)

    assert rate == RATE_CONTEXT.divide(Decimal("0.8"), Decimal("0.9"))
    assert session.urls == [OER_API_URL + "historical/2011-03-05.json?app_id=abc"]
    assert await client.eod_cache.get((EUR, GBP, day)) == rate  # type: ignore[union-attr]
    assert await client.eod_cache.get((EUR, EUR, day)) == Decimal(1)  # type: ignore[union-attr]
    assert len(client.nowish_cache) == 0  # type: ignore[arg-type]


@pytest.mark.asyncio
async def test_historical_rate_accepts_datetimes_and_strings() -> None:
    session = _FakeSession(_response(200, DEVELOPER_RATES))
    client = _client(session, level=AccountLevel.UNLIMITED)

    await client.get_historical_rate("GBP", datetime(2011, 3, 5, 18, 30))
    await client.get_historical_rate("GBP", "2011-03-06")

    assert session.urls == [
        OER_API_URL + "historical/2011-03-05.json?app_id=abc&base=EUR",
        OER_API_URL + "historical/2011-03-06.json?app_id=abc&base=EUR",
    ]


@pytest.mark.asyncio
async def test_historical_date_boundaries() -> None:
    session = _FakeSession(_response(200, DEVELOPER_RATES))
    client = _client(session)

    earliest = await client.get_historical_rate("GBP", date(1999, 1, 1))
    too_early = await client.get_historical_rate("GBP", date(1998, 12, 31))
    today = await client.get_historical_rate("GBP", NOW.date())
    future = await client.get_historical_rate("GBP", NOW.date() + timedelta(days=1))

    assert isinstance(earliest, Decimal)
    assert isinstance(today, Decimal)
    assert isinstance(too_early, OerResponseError)
    assert too_early.kind is ErrorKind.RESOURCES_NOT_AVAILABLE
    assert isinstance(future, OerResponseError)
    assert future.kind is ErrorKind.RESOURCES_NOT_AVAILABLE
    assert len(session.urls) == 2


@pytest.mark.asyncio
async def test_out_of_range_date_makes_no_request() -> None:
    session = _FakeSession(_response(200, DEVELOPER_RATES))
    client = _client(session)

    result = await client.get_historical_rate("GBP", date(1998, 12, 31))

    assert result == OerResponseError.resources_not_available(
        "Exchange rate unavailable on the date [1998-12-31]"
    )
    assert session.urls == []


@pytest.mark.asyncio
async def test_repeated_requests_store_equal_values() -> None:
    session = _FakeSession(_response(200, DEVELOPER_RATES))
    client = _client(session)
    day = date(2020, 2, 2)

    first = await client.get_historical_rate("GBP", day)
    cached_first = await client.eod_cache.get((EUR, GBP, day))  # type: ignore[union-attr]
    second = await client.get_historical_rate("GBP", day)
    cached_second = await client.eod_cache.get((EUR, GBP, day))  # type: ignore[union-attr]

    assert first == second == cached_first == cached_second
    assert len(session.urls) == 2


@pytest.mark.asyncio
async def test_cacheless_client_still_resolves() -> None:
    session = _FakeSession(_response(200, DEVELOPER_RATES))
    client = _client(session, with_caches=False)

    assert await client.get_live_rate("GBP") == RATE_CONTEXT.divide(Decimal("0.8"), Decimal("0.9"))
    assert await client.lookup_live_rate("GBP") == RATE_CONTEXT.divide(Decimal("0.8"), Decimal("0.9"))
    assert len(session.urls) == 2


@pytest.mark.asyncio
async def test_lookup_live_rate_uses_fresh_cache_entries() -> None:
    session = _FakeSession(_response(200, DEVELOPER_RATES))
    clock = _Clock(NOW)
    client = _client(session, clock=clock)

    first = await client.lookup_live_rate("GBP")
    clock.now = NOW + timedelta(seconds=300)
    second = await client.lookup_live_rate("USD")

    assert first == RATE_CONTEXT.divide(Decimal("0.8"), Decimal("0.9"))
    assert second == RATE_CONTEXT.divide(Decimal("1.0"), Decimal("0.9"))
    assert len(session.urls) == 1


@pytest.mark.asyncio
async def test_lookup_live_rate_refreshes_stale_entries() -> None:
    session = _FakeSession(_response(200, DEVELOPER_RATES))
    clock = _Clock(NOW)
    client = _client(session, clock=clock)

    await client.lookup_live_rate("GBP")
    clock.now = NOW + timedelta(seconds=301)
    await client.lookup_live_rate("GBP")

    assert len(session.urls) == 2
    observed_at, _ = await client.nowish_cache.get((EUR, GBP))  # type: ignore[misc,union-attr]
    assert observed_at == clock.now


@pytest.mark.asyncio
async def test_lookup_same_currency_is_one() -> None:
    session = _FakeSession(_response(200, DEVELOPER_RATES))
    client = _client(session)

    assert await client.lookup_live_rate("EUR") == Decimal(1)
    assert await client.lookup_historical_rate("EUR", date(2020, 1, 1)) == Decimal(1)
    assert session.urls == []


@pytest.mark.asyncio
async def test_lookup_historical_rate_uses_eod_cache() -> None:
    session = _FakeSession(_response(200, DEVELOPER_RATES))
    client = _client(session)
    day = date(2015, 7, 1)

    first = await client.lookup_historical_rate("GBP", day)
    second = await client.lookup_historical_rate("USD", day)
    other_day = await client.lookup_historical_rate("GBP", date(2015, 7, 2))
    rejected = await client.lookup_historical_rate("GBP", date(1990, 1, 1))

    assert first == other_day
    assert second == RATE_CONTEXT.divide(Decimal("1.0"), Decimal("0.9"))
    assert isinstance(rejected, OerResponseError)
    assert rejected.kind is ErrorKind.RESOURCES_NOT_AVAILABLE
    assert len(session.urls) == 2


def test_with_default_caches_respects_config() -> None:
    config = ForexConfig(app_id="abc", nowish_cache_size=5, eod_cache_size=0)

    client = OerClient.with_default_caches(config, gateway=OerGateway(session=_FakeSession()))  # type: ignore[arg-type]

    assert isinstance(client.nowish_cache, InMemoryLruMap)
    assert client.nowish_cache.max_size == 5
    assert client.eod_cache is None
    assert client.base_currency == CurrencyCode.USD


@pytest.mark.asyncio
async def test_aware_datetime_is_dated_in_the_clock_zone() -> None:
    session = _FakeSession(_response(200, DEVELOPER_RATES))
    clock = _Clock(datetime(2024, 6, 1, 18, 0, tzinfo=timezone.utc))
    client = _client(session, clock=clock)
    # 2024-06-02 01:00 at UTC+9 is 2024-06-01 16:00 UTC, two hours in the past.
    moment = datetime(2024, 6, 2, 1, 0, tzinfo=timezone(timedelta(hours=9)))

    rate = await client.get_historical_rate("GBP", moment)
    cached = await client.lookup_historical_rate("GBP", moment)

    assert isinstance(rate, Decimal)
    assert cached == rate
    assert session.urls == [OER_API_URL + "historical/2024-06-01.json?app_id=abc"]


@pytest.mark.asyncio
async def test_aware_future_moment_is_rejected() -> None:
    session = _FakeSession(_response(200, DEVELOPER_RATES))
    clock = _Clock(datetime(2024, 6, 1, 18, 0, tzinfo=timezone.utc))
    client = _client(session, clock=clock)
    moment = datetime(2024, 6, 1, 20, 0, tzinfo=timezone(timedelta(hours=-5)))

    result = await client.get_historical_rate("GBP", moment)

    assert isinstance(result, OerResponseError)
    assert result.kind is ErrorKind.RESOURCES_NOT_AVAILABLE
    assert session.urls == []


def test_client_closes_its_gateway(monkeypatch: pytest.MonkeyPatch) -> None:
    closed: list[bool] = []
    gateway = OerGateway(session=_FakeSession())  # type: ignore[arg-type]
    monkeypatch.setattr(gateway, "close", lambda: closed.append(True))

    with OerClient(ForexConfig(app_id="abc"), gateway=gateway) as client:
        assert client.gateway is gateway

    assert closed == [True]
