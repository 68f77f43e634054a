"""Typed failures raised by the search layer.

Callers only ever see a stable message per operation and error kind. The
underlying exception is kept on ``cause`` so it can be logged server side.
"""
from __future__ import annotations

import asyncio
from enum import Enum

from elasticsearch import BadRequestError, ConnectionTimeout
from pydantic import ValidationError


class ErrorKind(str, Enum):
    STORE_UNAVAILABLE = "STORE_UNAVAILABLE"
    MALFORMED_QUERY = "MALFORMED_QUERY"
    TIMEOUT = "TIMEOUT"
    INVALID_DOCUMENT = "INVALID_DOCUMENT"


_REASONS = {
    ErrorKind.STORE_UNAVAILABLE: "product store unavailable",
    ErrorKind.MALFORMED_QUERY: "malformed query",
    ErrorKind.TIMEOUT: "request timed out",
    ErrorKind.INVALID_DOCUMENT: "stored product data is invalid",
}


class SearchError(Exception):
    """Failure of a store-backed operation such as ``search`` or ``fetch``."""

    def __init__(self, operation: str, kind: ErrorKind, cause: BaseException | None = None) -> None:
        self.operation = operation
        self.kind = kind
        self.cause = cause
        super().__init__(f"Unable to {operation} products: {_REASONS[kind]}")

    @property
    def message(self) -> str:
        return str(self)


def classify(exc: BaseException) -> ErrorKind:
    """Map a raw exception from the store or the request boundary onto a kind.

    Request validation happens before the store is touched and raises its own
    ``MALFORMED_QUERY`` error, so a ``ValidationError`` seen here comes from a
    stored document that does not fit the ``Product`` model. Transport errors, a
    missing index and any other store failure count as the store being
    unavailable.
    """

    if isinstance(exc, (asyncio.TimeoutError, TimeoutError, ConnectionTimeout)):
        return ErrorKind.TIMEOUT
    if isinstance(exc, BadRequestError):
        return ErrorKind.MALFORMED_QUERY
    if isinstance(exc, ValidationError):
        return ErrorKind.INVALID_DOCUMENT
    return ErrorKind.STORE_UNAVAILABLE


def wrap(operation: str, exc: BaseException) -> SearchError:
    if isinstance(exc, SearchError):
        return exc
    return SearchError(operation, classify(exc), exc)
