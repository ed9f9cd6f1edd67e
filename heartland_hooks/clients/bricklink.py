"""
BrickLink catalog client.

BrickLink's store API authenticates every request with an OAuth 1.0a
HMAC-SHA1 signature over the method, normalized URL and oauth parameters,
with a fresh nonce and timestamp per request. Responses are wrapped in a
``{"meta": {"code": ...}, "data": ...}`` envelope.
"""

from __future__ import annotations

import base64
import hashlib
import hmac
import secrets
import time
from typing import Any, Dict, Mapping, Optional
from urllib.parse import quote, urlsplit

import httpx

from heartland_hooks.clients.errors import CatalogReferenceError, MalformedResponseError
from heartland_hooks.clients.http import JsonApiClient
from heartland_hooks.domain.models import CatalogReferenceItem

BRICKLINK_BASE_URL = "https://api.bricklink.com/api/store/v1"
_DEFAULT_PORTS = {"http": 80, "https": 443}


def encode_rfc3986(value: str) -> str:
    """Percent-encode everything except RFC 3986 unreserved characters."""
    return quote(value, safe="~")


def normalize_url(url: str) -> str:
    """Scheme, host, non-default port and path; no query or fragment."""
    parts = urlsplit(url)
    scheme = parts.scheme.lower()
    host = (parts.hostname or "").lower()
    port = f":{parts.port}" if parts.port and parts.port != _DEFAULT_PORTS.get(scheme) else ""
    return f"{scheme}://{host}{port}{parts.path}"


def oauth_signature(
    method: str,
    url: str,
    params: Mapping[str, str],
    consumer_secret: str,
    token_secret: str,
) -> str:
    param_string = "&".join(
        f"{encode_rfc3986(key)}={encode_rfc3986(params[key])}" for key in sorted(params)
    )
    base_string = "&".join(
        [method.upper(), encode_rfc3986(normalize_url(url)), encode_rfc3986(param_string)]
    )
    signing_key = f"{encode_rfc3986(consumer_secret)}&{encode_rfc3986(token_secret)}"
    digest = hmac.new(signing_key.encode(), base_string.encode(), hashlib.sha1).digest()
    return base64.b64encode(digest).decode()


class BrickLinkClient(JsonApiClient):
    service_name = "BrickLink API"

    def __init__(
        self,
        consumer_key: str,
        consumer_secret: str,
        token_value: str,
        token_secret: str,
        *,
        base_url: str = BRICKLINK_BASE_URL,
        timeout: float = 10.0,
        http_client: Optional[httpx.AsyncClient] = None,
        retries: int = 3,
        backoff_seconds: float = 0.5,
    ) -> None:
        super().__init__(
            timeout=timeout,
            http_client=http_client,
            retries=retries,
            backoff_seconds=backoff_seconds,
        )
        self.base_url = base_url.rstrip("/")
        self._consumer_key = consumer_key
        self._consumer_secret = consumer_secret
        self._token_value = token_value
        self._token_secret = token_secret

    def authorization_header(
        self,
        method: str,
        url: str,
        *,
        nonce: Optional[str] = None,
        timestamp: Optional[int] = None,
    ) -> str:
        oauth_params: Dict[str, str] = {
            "oauth_consumer_key": self._consumer_key,
            "oauth_nonce": nonce or secrets.token_hex(16),
            "oauth_signature_method": "HMAC-SHA1",
            "oauth_timestamp": str(timestamp if timestamp is not None else int(time.time())),
            "oauth_token": self._token_value,
            "oauth_version": "1.0",
        }
        oauth_params["oauth_signature"] = oauth_signature(
            method, url, oauth_params, self._consumer_secret, self._token_secret
        )
        header = ", ".join(
            f'{encode_rfc3986(key)}="{encode_rfc3986(oauth_params[key])}"'
            for key in sorted(oauth_params)
        )
        return f"OAuth {header}"

    async def get_item(self, item_type: str, item_no: str) -> CatalogReferenceItem:
        """
        Look up a catalog item, e.g. ``get_item("SET", "31119-1")``.

        Raises
        ------
        CatalogReferenceError
            The envelope's ``meta.code`` is not 200.
        """
        url = f"{self.base_url}/items/{quote(item_type, safe='')}/{quote(item_no, safe='')}"
        headers = {
            "Authorization": self.authorization_header("GET", url),
            "Accept": "application/json",
        }
        response = await self._send("GET", url, headers=headers)
        envelope = self._parse_json(response)
        if not isinstance(envelope, dict):
            raise MalformedResponseError(
                "BrickLink API returned a non-object body", service=self.service_name, url=url
            )

        meta = envelope.get("meta") if isinstance(envelope.get("meta"), dict) else {}
        code = meta.get("code")
        if code != 200:
            raise CatalogReferenceError(code=code, url=url)

        data = envelope.get("data")
        return _to_catalog_item(data if isinstance(data, dict) else {})


def _to_catalog_item(data: Dict[str, Any]) -> CatalogReferenceItem:
    """
    Pick the image from ``data.image_url`` or, failing that, ``data.item.image_url``.

    The catalog item arrives either directly as ``data`` or nested under
    ``data.item``; both shapes are accepted.
    """
    item = data["item"] if isinstance(data.get("item"), dict) else data
    image_url = data.get("image_url") or item.get("image_url")
    if not isinstance(image_url, str) or not image_url:
        image_url = None
    return CatalogReferenceItem(item=item, image_url=image_url)


__all__ = ["BrickLinkClient", "BRICKLINK_BASE_URL", "encode_rfc3986", "normalize_url", "oauth_signature"]
