"""HTTP access to the Open Exchange Rates API."""

from __future__ import annotations

import asyncio
import json
import threading
from datetime import date
from decimal import Decimal
from typing import Dict

import requests

from oer_forex.config import AccountLevel, ForexConfig
from oer_forex.currency import CurrencyCode
from oer_forex.errors import OerResponseError
from oer_forex.utils.logger import get_logger, redact_query

LOGGER = get_logger(__name__)
OER_API_URL = "https://openexchangerates.org/api/"

RateTable = Dict[CurrencyCode, Decimal]


def build_base_parameter(account_level: AccountLevel, base_currency: CurrencyCode) -> str:
    """Return the ``&base=`` suffix OER accepts for ``account_level``.

    Only Enterprise and Unlimited accounts may choose the anchor currency;
    Developer requests omit the parameter and OER answers in USD.
    """

    if account_level.can_set_base:
        return f"&base={base_currency}"
    return ""


def latest_path(config: ForexConfig) -> str:
    return f"latest.json?app_id={config.app_id}" + build_base_parameter(
        config.account_level, config.base_currency
    )


def historical_path(config: ForexConfig, day: date) -> str:
    return f"historical/{day.isoformat()}.json?app_id={config.app_id}" + build_base_parameter(
        config.account_level, config.base_currency
    )


def decode_rates(body: str) -> RateTable | OerResponseError:
    """Decode a successful OER payload into a rate table.

    Currency codes that fail validation are dropped rather than failing the
    whole payload; structural problems are reported as ``OTHER_ERRORS``.
    """

    try:
        payload = json.loads(body, parse_float=Decimal, parse_int=Decimal)
    except ValueError as exc:
        return OerResponseError.other(f"Invalid JSON in API response: {exc}")

    rates = payload.get("rates") if isinstance(payload, dict) else None
    if not isinstance(rates, dict):
        return OerResponseError.other("API response does not contain a 'rates' object")

    table: RateTable = {}
    dropped: list[str] = []
    for key, value in rates.items():
        if not isinstance(value, Decimal):
            return OerResponseError.other(f"Rate for {key!r} is not a number: {value!r}")
        currency = CurrencyCode.try_exact(key)
        if currency is None:
            dropped.append(key)
            continue
        table[currency] = value
    if dropped:
        LOGGER.debug("Dropped unsupported currencies from API response: %s", ", ".join(dropped))
    return table


def decode_error(status_code: int, body: str) -> OerResponseError:
    """Turn an OER error payload into an ``OTHER_ERRORS`` failure."""

    try:
        payload = json.loads(body)
    except ValueError as exc:
        return OerResponseError.other(f"HTTP {status_code}: unreadable error body ({exc})")
    message = payload.get("message") if isinstance(payload, dict) else None
    if not isinstance(message, str):
        return OerResponseError.other(f"HTTP {status_code}: error body has no 'message' field")
    return OerResponseError.other(message)


class OerGateway:
    """Issues one GET per resource path and classifies the outcome.

    ``fetch`` runs requests on worker threads. Without an explicit ``session``
    each worker thread gets its own ``requests.Session``; a session passed in
    is shared by all of them and must be safe for that.
    """

    def __init__(
        self,
        *,
        session: requests.Session | None = None,
        base_url: str = OER_API_URL,
        timeout: float = 30.0,
    ) -> None:
        self._shared_session = session
        self._local = threading.local()
        self._owned_sessions: list[requests.Session] = []
        self._sessions_lock = threading.Lock()
        self.base_url = base_url
        self.timeout = timeout

    def __enter__(self) -> "OerGateway":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def close(self) -> None:
        """Close the sessions this gateway created; caller-owned ones are left open."""

        with self._sessions_lock:
            sessions, self._owned_sessions = self._owned_sessions, []
            self._local = threading.local()
        for session in sessions:
            session.close()

    @property
    def session(self) -> requests.Session:
        """The session used by the calling thread."""

        if self._shared_session is not None:
            return self._shared_session
        session = getattr(self._local, "session", None)
        if session is None:
            session = requests.Session()
            self._local.session = session
            with self._sessions_lock:
                self._owned_sessions.append(session)
        return session

    async def fetch(self, resource_path: str) -> RateTable | OerResponseError:
        """Fetch ``resource_path`` without blocking the running event loop."""

        return await asyncio.to_thread(self._fetch_sync, self.base_url + resource_path)

    def _fetch_sync(self, url: str) -> RateTable | OerResponseError:
        LOGGER.info("Requesting OER rates from %s", redact_query(url))
        try:
            response = self.session.get(url, timeout=self.timeout)
        except requests.RequestException as exc:
            LOGGER.warning("OER request to %s failed: %s", redact_query(url), exc)
            return OerResponseError.other(str(exc))

        if not isinstance(response, requests.Response):
            raise TypeError(f"Expected an HTTP response, got {type(response).__name__}")

        if response.status_code >= 400:
            error = decode_error(response.status_code, response.text)
            LOGGER.warning(
                "OER returned HTTP %s for %s: %s",
                response.status_code,
                redact_query(url),
                error.message,
            )
            return error

        result = decode_rates(response.text)
        if isinstance(result, OerResponseError):
            LOGGER.warning("Could not decode OER response: %s", result.message)
        return result


__all__ = [
    "OER_API_URL",
    "OerGateway",
    "RateTable",
    "build_base_parameter",
    "decode_error",
    "decode_rates",
    "historical_path",
    "latest_path",
]
