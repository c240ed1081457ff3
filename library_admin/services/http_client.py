import logging
from typing import Optional

import httpx

from config import settings

logger = logging.getLogger(__name__)


class CatalogHTTPClient:
    """Pooled async HTTP client bound to the catalog service base URL.

    Requests are never retried; a failed call is reported to the caller as is.
    """

    def __init__(self, base_url: Optional[str] = None,
                 transport: Optional[httpx.AsyncBaseTransport] = None,
                 timeout: Optional[float] = None):
        self.base_url = (base_url or settings.catalog_base_url).rstrip("/")

        limits = httpx.Limits(
            max_keepalive_connections=settings.catalog_max_connections,
            max_connections=settings.catalog_max_connections,
            keepalive_expiry=30.0
        )

        # Timeout configuration
        total = timeout if timeout is not None else settings.catalog_timeout
        client_timeout = httpx.Timeout(
            timeout=total,
            connect=min(settings.catalog_connect_timeout, total),
        )

        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            limits=limits,
            timeout=client_timeout,
            transport=transport,
            follow_redirects=True,
            headers={"Accept": "application/json"},
        )

    async def get(self, path: str, **kwargs) -> httpx.Response:
        logger.debug(f"GET {self.base_url}{path} {kwargs.get('params') or ''}")
        return await self._client.get(path, **kwargs)

    async def post(self, path: str, **kwargs) -> httpx.Response:
        logger.debug(f"POST {self.base_url}{path}")
        return await self._client.post(path, **kwargs)

    async def delete(self, path: str, **kwargs) -> httpx.Response:
        logger.debug(f"DELETE {self.base_url}{path}")
        return await self._client.delete(path, **kwargs)

    async def close(self):
        """Close the underlying connection pool"""
        await self._client.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
