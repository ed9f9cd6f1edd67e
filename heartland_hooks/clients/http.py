"""
Shared async JSON-over-HTTPS plumbing for the external service clients.

Every client funnels its calls through `JsonApiClient._send`, which applies
the per-request timeout, retries transient network failures on idempotent
requests (tenacity), and converts httpx failures into the package's
`TransportError` hierarchy so callers only ever handle one family of errors.
"""

from __future__ import annotations

import json
from types import TracebackType
from typing import Any, Mapping, Optional, Sequence, Tuple, Type, Union

import httpx
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from heartland_hooks.clients.errors import HttpStatusError, MalformedResponseError, TransportError
from heartland_hooks.utils.logging import get_logger

log = get_logger(__name__)

QueryParams = Sequence[Tuple[str, Union[str, int, float, bool]]]

_IDEMPOTENT_METHODS = frozenset({"GET", "HEAD", "PUT", "DELETE"})


def build_url(base_url: str, path: str) -> str:
    """Join a base URL and a path, tolerating stray slashes on either side."""
    trimmed_base = base_url.rstrip("/")
    trimmed_path = path if path.startswith("/") else f"/{path}"
    return f"{trimmed_base}{trimmed_path}"


class JsonApiClient:
    """
    Base class owning an `httpx.AsyncClient`.

    Pass `http_client` to share a client (or inject an `httpx.MockTransport`
    in tests); otherwise one is created and closed by `aclose()`.
    """

    service_name: str = "HTTP API"

    def __init__(
        self,
        *,
        timeout: float = 10.0,
        http_client: Optional[httpx.AsyncClient] = None,
        retries: int = 3,
        backoff_seconds: float = 0.5,
    ) -> None:
        self._client = http_client or httpx.AsyncClient(timeout=timeout)
        self._owns_client = http_client is None
        self._timeout = timeout
        self._retries = max(1, retries)
        self._backoff_seconds = backoff_seconds

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "JsonApiClient":
        return self

    async def __aexit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc: Optional[BaseException],
        tb: Optional[TracebackType],
    ) -> None:
        await self.aclose()

    async def _send(
        self,
        method: str,
        url: str,
        *,
        headers: Optional[Mapping[str, str]] = None,
        params: Optional[QueryParams] = None,
        payload: Any = None,
    ) -> httpx.Response:
        """
        Perform one request and return the 2xx response.

        Raises
        ------
        TransportError
            Network failure or timeout, after retries for idempotent methods.
        HttpStatusError
            Any non-2xx status. Never retried.
        """
        attempts = self._retries if method.upper() in _IDEMPOTENT_METHODS else 1
        request_kwargs: dict[str, Any] = {
            "headers": headers,
            "params": params,
            "timeout": self._timeout,
        }
        if payload is not None:
            request_kwargs["json"] = payload

        try:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(attempts),
                wait=wait_exponential(multiplier=self._backoff_seconds, max=10),
                retry=retry_if_exception_type(httpx.TransportError),
                reraise=True,
            ):
                with attempt:
                    response = await self._client.request(method, url, **request_kwargs)
        except httpx.HTTPError as exc:
            log.warning(
                f"{self.service_name} request failed",
                extra={"service": self.service_name, "method": method, "url": url, "error": str(exc)},
            )
            raise TransportError(
                f"{self.service_name} request failed: {exc}", service=self.service_name, url=url
            ) from exc

        if not response.is_success:
            raise HttpStatusError(
                service=self.service_name,
                status_code=response.status_code,
                body=response.text,
                url=url,
            )
        return response

    def _parse_json(self, response: httpx.Response) -> Any:
        """Decode a response body; an empty body decodes to an empty dict."""
        if not response.content:
            return {}
        try:
            return response.json()
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise MalformedResponseError(
                f"{self.service_name} returned invalid JSON: {exc}",
                service=self.service_name,
                url=str(response.request.url),
            ) from exc


__all__ = ["JsonApiClient", "QueryParams", "build_url"]
