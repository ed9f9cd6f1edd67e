"""
Exception hierarchy shared by the HTTP clients and the secret loader.
"""

from __future__ import annotations

from typing import Optional


class HeartlandHooksError(Exception):
    """Base class for errors raised by this package."""


class SecretError(HeartlandHooksError):
    """The operational secret is missing, unreadable or lacks a required field."""


class TransportError(HeartlandHooksError):
    """An outbound HTTP call failed (network error, bad status or bad body)."""

    def __init__(self, message: str, *, service: str, url: Optional[str] = None) -> None:
        super().__init__(message)
        self.service = service
        self.url = url


class HttpStatusError(TransportError):
    """Non-2xx response."""

    def __init__(self, *, service: str, status_code: int, body: str, url: Optional[str] = None) -> None:
        super().__init__(f"HTTP {status_code} from {service}: {body}", service=service, url=url)
        self.status_code = status_code
        self.body = body


class MalformedResponseError(TransportError):
    """2xx response whose body is not the JSON shape we expect."""


class CatalogReferenceError(TransportError):
    """BrickLink answered 2xx but its envelope reported a failure code."""

    def __init__(self, *, code: object, url: Optional[str] = None) -> None:
        super().__init__(f"BrickLink API error: meta.code={code}", service="BrickLink API", url=url)
        self.code = code


__all__ = [
    "HeartlandHooksError",
    "SecretError",
    "TransportError",
    "HttpStatusError",
    "MalformedResponseError",
    "CatalogReferenceError",
]
