"""
HTTP client for the Brazilian Federal Senate open data API.

This module provides:
- Mapping of HTTP failures onto the exception hierarchy (what is retried
  and what is not is decided by the exception type)
- Retried requests through a RateLimitedFetcher
- Paced requests for per-item loops
"""

from typing import Any, Dict, Optional
import logging

import httpx

from core.config import settings
from core.exceptions import (
    ApiError,
    BadRequestError,
    DataFormatError,
    NotFoundError,
    RateLimitError,
    TransientRemoteError,
)
from ingestion.extractors.fetcher import RateLimitedFetcher

logger = logging.getLogger(__name__)


class SenadoAPIClient:
    """
    Client for the Senate open data API (https://legis.senado.leg.br/dadosabertos).

    Error mapping:
    - 404 -> NotFoundError (not retried)
    - 400 -> BadRequestError (not retried)
    - 429 -> RateLimitError (retried)
    - 5xx, timeouts, connection errors -> TransientRemoteError (retried)
    - other 4xx -> ApiError (retried)
    - body that is not JSON -> DataFormatError (not retried)

    The underlying httpx client is created lazily unless one is passed in;
    use ``async with`` or ``aclose()`` to release it.
    """

    def __init__(
        self,
        fetcher: RateLimitedFetcher,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        http_client: Optional[httpx.AsyncClient] = None
    ):
        self.fetcher = fetcher
        self.base_url = (base_url or settings.SENADO_API_BASE_URL).rstrip("/")
        self.timeout = timeout or settings.SENADO_TIMEOUT
        self._client = http_client
        self._owns_client = http_client is None

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                headers={"Accept": "application/json"},
            )
        return self._client

    async def aclose(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "SenadoAPIClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    def _url(self, path: str) -> str:
        return f"{self.base_url}/{path.lstrip('/')}"

    async def _request(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """Single GET attempt with status mapping"""
        url = self._url(path)

        try:
            response = await self.client.get(
                url,
                params=params,
                headers={"Accept": "application/json"},
            )
        except httpx.TimeoutException as e:
            raise TransientRemoteError(
                f"Request timeout for {path}",
                endpoint=path,
                context={"timeout": self.timeout},
                original_exception=e
            )
        except httpx.TransportError as e:
            raise TransientRemoteError(
                f"Network error for {path}",
                endpoint=path,
                original_exception=e
            )

        status = response.status_code

        if status == 404:
            raise NotFoundError(path, f"Resource not found: {path}")

        if status == 400:
            raise BadRequestError(path, f"Bad request: {path}")

        if status == 429:
            retry_after = response.headers.get("Retry-After")
            raise RateLimitError(
                f"Rate limit exceeded for {path}",
                endpoint=path,
                retry_after=float(retry_after) if retry_after and retry_after.isdigit() else None
            )

        if status >= 500:
            raise TransientRemoteError(
                f"Server error {status} for {path}",
                status_code=status,
                endpoint=path,
                context={"response_body": response.text[:500]}
            )

        if status >= 400:
            raise ApiError(
                f"HTTP {status} for {path}",
                status_code=status,
                endpoint=path,
                context={"response_body": response.text[:500]}
            )

        try:
            return response.json()
        except ValueError as e:
            raise DataFormatError(
                "Failed to parse JSON response",
                context={
                    "endpoint": path,
                    "response_body": response.text[:500]
                },
                original_exception=e
            )

    async def get(self, path: str, params: Optional[Dict[str, Any]] = None, label: Optional[str] = None) -> Any:
        """GET ``path`` with bounded fixed-delay retry"""
        logger.debug(f"GET {path} {params or ''}")
        return await self.fetcher.with_retry(
            lambda: self._request(path, params),
            label=label or f"GET {path}",
        )

    # ------------------------------------------------------------------
    # Endpoints
    # ------------------------------------------------------------------

    async def list_current_senators(self) -> Any:
        return await self.get("/senador/lista/atual", label="current senators list")

    async def get_senator(self, code: str) -> Any:
        return await self.get(f"/senador/{code}", label=f"senator {code} details")
