"""
formengine HTTP Collaborators

httpx-backed implementations of the options provider and remote
validator. Both are failure-absorbing: transport and decoding errors are
logged and turned into an empty option list / a failed verdict.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Mapping, Optional
from urllib.parse import quote
import logging
import re
import time

import httpx

from formengine.core.enums import HttpMethod
from formengine.core.models import FieldOption, normalize_options

logger = logging.getLogger("remote.http")

DEFAULT_CACHE_TTL_SECONDS = 300.0
DEFAULT_TIMEOUT_SECONDS = 10.0
REQUEST_FAILED_MESSAGE = "Validation request failed"

_PLACEHOLDER_RE = re.compile(r"\{\{\s*([A-Za-z0-9_$.-]+)\s*\}\}")


def resolve_endpoint(endpoint: str, params: Mapping[str, Any]) -> str:
    """
    Replace ``{{name}}`` placeholders with URL-encoded parameter values.

    Placeholders without a matching parameter are left as they are.
    """
    def substitute(match: "re.Match[str]") -> str:
        key = match.group(1)
        if key not in params:
            return match.group(0)
        value = params[key]
        text = "" if value is None else str(value)
        return quote(text, safe="-_.!~*'()")

    return _PLACEHOLDER_RE.sub(substitute, endpoint)


def request_failed(message: str = REQUEST_FAILED_MESSAGE) -> Dict[str, Any]:
    """Payload standing in for a remote check that could not be made."""
    return {"valid": False, "message": message, "requestFailed": True}


@dataclass
class _CacheEntry:
    options: List[FieldOption]
    stored_at: float


class _ClientOwner:
    """Shared lazy AsyncClient handling."""

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        base_url: str = "",
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout_seconds = timeout_seconds
        self._client = client
        self._owns_client = client is None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout_seconds,
            )
        return self._client

    async def aclose(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
        self._client = None

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()


class HttpOptionsProvider(_ClientOwner):
    """
    Fetches ``[{value, label}]`` lists with a per-endpoint TTL cache.

    The cache is keyed by the resolved endpoint, so a cache hit and a fresh
    fetch are indistinguishable to callers.
    """

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        base_url: str = "",
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        cache_ttl_seconds: float = DEFAULT_CACHE_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        super().__init__(client, base_url, timeout_seconds)
        self.cache_ttl_seconds = cache_ttl_seconds
        self._clock = clock
        self._cache: Dict[str, _CacheEntry] = {}

    async def fetch_options(
        self,
        endpoint: str,
        params: Mapping[str, Any],
    ) -> List[FieldOption]:
        resolved = resolve_endpoint(endpoint, params)

        cached = self.get_cached(resolved)
        if cached is not None:
            logger.debug(f"Options cache hit: {resolved}")
            return cached

        logger.debug(f"Options cache miss, fetching: {resolved}")
        try:
            response = await self._get_client().get(resolved)
            response.raise_for_status()
            options = self._parse(response.json())
        except (httpx.HTTPError, ValueError, TypeError) as e:
            logger.warning(f"Options fetch failed for {resolved}: {e}")
            return []

        self._cache[resolved] = _CacheEntry(options=options, stored_at=self._clock())
        return list(options)

    def get_cached(self, resolved_endpoint: str) -> Optional[List[FieldOption]]:
        """Cached options, dropping the entry once it is older than the TTL."""
        entry = self._cache.get(resolved_endpoint)
        if entry is None:
            return None
        if self._clock() - entry.stored_at > self.cache_ttl_seconds:
            del self._cache[resolved_endpoint]
            return None
        return list(entry.options)

    def clear_cache(self) -> None:
        self._cache.clear()
        logger.info("Options cache cleared")

    def clear_cache_for(self, resolved_endpoint: str) -> None:
        self._cache.pop(resolved_endpoint, None)
        logger.info(f"Options cache cleared for: {resolved_endpoint}")

    @property
    def cache_size(self) -> int:
        return len(self._cache)

    @staticmethod
    def _parse(data: Any) -> List[FieldOption]:
        if isinstance(data, Mapping):
            data = data.get("options", [])
        if not isinstance(data, list):
            raise TypeError(f"Expected an option list, got {type(data).__name__}")
        return normalize_options(data)


class HttpRemoteValidator(_ClientOwner):
    """
    Sends one value to a validation endpoint.

    GET passes ``value`` as a query parameter; POST sends
    ``{"value": ..., "fieldName": ...}`` as JSON.
    """

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        base_url: str = "",
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        failure_message: str = REQUEST_FAILED_MESSAGE,
    ):
        super().__init__(client, base_url, timeout_seconds)
        self.failure_message = failure_message

    async def validate(
        self,
        endpoint: str,
        payload: Mapping[str, Any],
        method: str = HttpMethod.POST.value,
    ) -> Any:
        client = self._get_client()
        value = payload.get("value")
        logger.debug(f"Remote validation {method} {endpoint}")

        try:
            if str(method).upper() == HttpMethod.GET.value:
                text = "" if value is None else str(value)
                response = await client.get(endpoint, params={"value": text})
            else:
                response = await client.post(
                    endpoint,
                    json={"value": value, "fieldName": payload.get("fieldName")},
                )
            response.raise_for_status()
            if not response.content:
                return None
            return response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning(f"Remote validation failed for {endpoint}: {e}")
            return request_failed(self.failure_message)
