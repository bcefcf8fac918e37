"""Currency code value type used as the key of every rate table and cache."""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar

# ISO-4217 alphabetic codes, plus the legacy codes OER still reports.
ISO_4217_CODES: frozenset[str] = frozenset(
    """
    AED AFN ALL AMD ANG AOA ARS AUD AWG AZN BAM BBD BDT BGN BHD BIF BMD BND
    BOB BRL BSD BTN BWP BYN BZD CAD CDF CHF CLF CLP CNY COP CRC CUP CVE CZK
    DJF DKK DOP DZD EGP ERN ETB EUR FJD FKP GBP GEL GHS GIP GMD GNF GTQ GYD
    HKD HNL HTG HUF IDR ILS INR IQD IRR ISK JMD JOD JPY KES KGS KHR KMF KPW
    KRW KWD KYD KZT LAK LBP LKR LRD LSL LYD MAD MDL MGA MKD MMK MNT MOP MRU
    MUR MVR MWK MXN MYR MZN NAD NGN NIO NOK NPR NZD OMR PAB PEN PGK PHP PKR
    PLN PYG QAR RON RSD RUB RWF SAR SBD SCR SDG SEK SGD SHP SLE SOS SRD SSP
    STN SVC SYP SZL THB TJS TMT TND TOP TRY TTD TWD TZS UAH UGX USD UYU UZS
    VES VND VUV WST XAF XAG XAU XCD XDR XOF XPD XPF XPT YER ZAR ZMW ZWL
    BYR CUC EEK HRK LTL LVL MRO SLL STD VEF ZMK
    """.split()
)


@dataclass(frozen=True, slots=True)
class CurrencyCode:
    """A validated three-letter currency code."""

    code: str

    USD: ClassVar["CurrencyCode"]

    def __post_init__(self) -> None:
        if self.code not in ISO_4217_CODES:
            raise ValueError(f"Unknown currency code: {self.code!r}")

    @classmethod
    def of(cls, value: "str | CurrencyCode") -> "CurrencyCode":
        """Return a :class:`CurrencyCode` for ``value``.

        Strings are trimmed and upper-cased before validation; a ``ValueError``
        is raised for anything outside :data:`ISO_4217_CODES`.
        """

        if isinstance(value, CurrencyCode):
            return value
        if not isinstance(value, str):
            raise ValueError(f"Currency code must be a string, got {type(value).__name__}")
        return cls(value.strip().upper())

    @classmethod
    def try_parse(cls, value: object) -> "CurrencyCode | None":
        try:
            return cls.of(value)  # type: ignore[arg-type]
        except ValueError:
            return None

    @classmethod
    def try_exact(cls, value: object) -> "CurrencyCode | None":
        """Like :meth:`try_parse` but without trimming or case folding."""

        if isinstance(value, str) and value in ISO_4217_CODES:
            return cls(value)
        return None

    def __str__(self) -> str:
        return self.code


CurrencyCode.USD = CurrencyCode("USD")

__all__ = ["CurrencyCode", "ISO_4217_CODES"]
