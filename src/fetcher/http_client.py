"""Shared HTTP client for the product store adapters."""

from typing import Any, Dict, Optional

import httpx

from src.models.config import StorefrontConfig


USER_AGENT = "storefront-listing/1.0.0"


class AsyncHTTPClient:
    """
    One httpx.AsyncClient shared by the primary and fallback adapters.

    Both stores are reached under the same timeout budget, so a TIMEOUT
    failure means the same thing whichever store produced it. The client is
    opened and closed with ``async with``; calling ``get`` outside that
    block is a programming error.
    """

    def __init__(
        self,
        connect_timeout: float = 3.0,
        read_timeout: float = 8.0,
        write_timeout: float = 5.0,
        pool_timeout: float = 5.0,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        """
        Args:
            connect_timeout: Seconds allowed to reach a store
            read_timeout: Seconds allowed for a store to answer
            write_timeout: Seconds allowed to send the request
            pool_timeout: Seconds to wait for a free pooled connection
            transport: Replaces the network transport (mock or ASGI stores)
        """
        self.connect_timeout = connect_timeout
        self.read_timeout = read_timeout
        self.write_timeout = write_timeout
        self.pool_timeout = pool_timeout
        self.transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    @classmethod
    def from_config(
        cls,
        config: StorefrontConfig,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ) -> "AsyncHTTPClient":
        return cls(
            connect_timeout=config.connect_timeout,
            read_timeout=config.read_timeout,
            transport=transport
        )

    @property
    def timeout(self) -> httpx.Timeout:
        return httpx.Timeout(
            connect=self.connect_timeout,
            read=self.read_timeout,
            write=self.write_timeout,
            pool=self.pool_timeout
        )

    async def __aenter__(self):
        self._client = httpx.AsyncClient(
            timeout=self.timeout,
            transport=self.transport,
            headers={"Accept": "application/json", "User-Agent": USER_AGENT}
        )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        if self._client:
            await self._client.aclose()
            self._client = None

    async def get(
        self,
        url: str,
        params: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
        **kwargs
    ) -> httpx.Response:
        """
        Issue one GET against a store.

        Transport failures and timeouts propagate as httpx exceptions; the
        adapters classify them. Non-2xx responses are returned, not raised.
        """
        if not self._client:
            raise RuntimeError("HTTP client is closed; open it with 'async with' first.")

        return await self._client.get(url, params=params, headers=headers, **kwargs)
