"""Listing session wiring configuration, stores and the acquisition controller."""

from typing import Optional

import httpx

from src.acquisition.auth import AuthProvider, StaticAuthProvider
from src.acquisition.controller import AcquisitionController
from src.fetcher.adapters import FallbackStoreAdapter, PrimaryStoreAdapter
from src.fetcher.http_client import AsyncHTTPClient
from src.models.config import StorefrontConfig
from src.models.data_models import DetailsResult, FetchRequest, ListingSnapshot
from src.monitoring.logger import StructuredLogger


class ListingSession:
    """
    Owns one HTTP client and one controller for the lifetime of a listing view.

    Non-interactive callers (the CLI, scripts) use browse(), which plays the
    presentation layer's part: after a fetch that switched stores it issues
    the follow-up fetch against the fallback store itself.
    """

    def __init__(
        self,
        config: StorefrontConfig,
        auth_provider: Optional[AuthProvider] = None,
        logger: Optional[StructuredLogger] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        """
        Initialize session.

        Args:
            config: Storefront configuration
            auth_provider: Signed-in user source; built from config when omitted
            logger: Structured logger; built from config when omitted
            transport: Optional httpx transport override
        """
        self.config = config
        self.auth_provider = auth_provider or StaticAuthProvider.from_credentials(
            config.user_id, config.user_email
        )
        self.logger = logger or StructuredLogger(level=config.log_level)
        self.http_client = AsyncHTTPClient.from_config(config, transport=transport)
        self.controller = AcquisitionController(
            primary=PrimaryStoreAdapter(
                self.http_client,
                config.primary.url,
                auth_provider=self.auth_provider,
                max_filter_values=config.max_filter_values,
                name=config.primary.name,
                logger=self.logger
            ),
            fallback=FallbackStoreAdapter(
                self.http_client,
                config.fallback.url,
                name=config.fallback.name,
                logger=self.logger
            ),
            auth_provider=self.auth_provider,
            skip_primary_when_anonymous=config.skip_primary_when_anonymous,
            logger=self.logger
        )

    async def __aenter__(self):
        await self.http_client.__aenter__()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.http_client.__aexit__(exc_type, exc_val, exc_tb)

    async def browse(self, request: FetchRequest, refetch_on_switch: bool = True) -> ListingSnapshot:
        """
        Fetch a listing page, following a store switch with one more fetch.

        Args:
            request: Filters, sort and page to fetch
            refetch_on_switch: Re-issue the request after a switch to the fallback store

        Returns:
            Controller snapshot after the last fetch
        """
        mode_before = self.controller.mode
        await self.controller.fetch(request)

        if refetch_on_switch and self.controller.mode is not mode_before:
            self.logger.log("refetch_after_switch", mode=self.controller.mode.value)
            await self.controller.fetch(request)

        return self.controller.snapshot()

    async def details(self, product_id: str) -> DetailsResult:
        return await self.controller.fetch_details(product_id)
