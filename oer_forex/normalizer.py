"""Convert OER rate tables into rates quoted against the configured base."""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Context, Decimal, DecimalException
from typing import Mapping

from oer_forex.config import AccountLevel
from oer_forex.currency import CurrencyCode
from oer_forex.errors import OerResponseError

# Cross rates are computed to 18 significant digits, rounding half up.
RATE_CONTEXT = Context(prec=18, rounding=ROUND_HALF_UP)


def cross_rate(base_is_usd: bool, usd_over_base: Decimal, usd_over_target: Decimal) -> Decimal:
    """Return base->target given both legs quoted against USD."""

    if base_is_usd:
        return usd_over_target
    return RATE_CONTEXT.divide(usd_over_target, usd_over_base)


def normalize(
    table: Mapping[CurrencyCode, Decimal],
    account_level: AccountLevel,
    base_currency: CurrencyCode,
) -> dict[CurrencyCode, Decimal] | OerResponseError:
    """Re-anchor ``table`` so every rate reads as ``base_currency -> currency``.

    Enterprise and Unlimited accounts ask OER for base-anchored tables, so the
    table is returned as is. Developer accounts always receive USD-anchored
    tables which are converted through the USD leg; the configured base must
    then be present in the table with a positive rate.
    """

    if account_level.can_set_base:
        return dict(table)

    usd_over_base = table.get(base_currency)
    if usd_over_base is None:
        return OerResponseError.illegal_currency(
            f"Base currency {base_currency} not found in the API response"
        )
    if usd_over_base <= 0:
        return OerResponseError.illegal_currency(
            f"Base currency {base_currency} has a non-positive rate {usd_over_base} in the API response"
        )

    base_is_usd = base_currency == CurrencyCode.USD
    try:
        return {
            currency: cross_rate(base_is_usd, usd_over_base, usd_over_currency)
            for currency, usd_over_currency in table.items()
        }
    except DecimalException as exc:
        return OerResponseError.other(
            f"Cannot convert rates to base currency {base_currency}: {exc!r}"
        )


__all__ = ["RATE_CONTEXT", "cross_rate", "normalize"]
