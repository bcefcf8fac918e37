"""Classified failures returned by rate lookups."""

from __future__ import annotations

from decimal import Decimal
from enum import Enum
from typing import Union


class ErrorKind(str, Enum):
    """Categories of failure a rate lookup can end in."""

    ILLEGAL_CURRENCY = "illegal_currency"
    RESOURCES_NOT_AVAILABLE = "resources_not_available"
    OTHER_ERRORS = "other_errors"


class OerResponseError(Exception):
    """A terminal lookup failure: a human readable message plus its kind.

    Lookups return instances of this class instead of raising them so that
    callers can branch on ``isinstance``; :func:`unwrap` raises it on demand.
    """

    def __init__(self, message: str, kind: ErrorKind) -> None:
        super().__init__(message)
        self.message = message
        self.kind = kind

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, OerResponseError):
            return NotImplemented
        return (self.message, self.kind) == (other.message, other.kind)

    def __hash__(self) -> int:
        return hash((self.message, self.kind))

    def __repr__(self) -> str:
        return f"OerResponseError(message={self.message!r}, kind={self.kind.name})"

    @classmethod
    def illegal_currency(cls, message: str) -> "OerResponseError":
        return cls(message, ErrorKind.ILLEGAL_CURRENCY)

    @classmethod
    def resources_not_available(cls, message: str) -> "OerResponseError":
        return cls(message, ErrorKind.RESOURCES_NOT_AVAILABLE)

    @classmethod
    def other(cls, message: str) -> "OerResponseError":
        return cls(message, ErrorKind.OTHER_ERRORS)


ApiRequestResult = Union[Decimal, OerResponseError]


def unwrap(result: ApiRequestResult) -> Decimal:
    """Return the rate held by ``result`` or raise the error it carries."""

    if isinstance(result, OerResponseError):
        raise result
    return result


__all__ = ["ApiRequestResult", "ErrorKind", "OerResponseError", "unwrap"]
