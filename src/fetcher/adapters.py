"""Data source adapters for the two backing product stores.

Each adapter turns a FetchRequest into its own store's query form, performs
exactly one HTTP call and returns an AcquisitionResult. Adapters never
retry and never raise for transport or HTTP failures; failures come back as
AcquisitionFailure values labelled by the error classifier.
"""

import asyncio
import logging
import math
from typing import Any, Dict, List, Optional, Protocol
from urllib.parse import quote

import httpx

from src.acquisition.auth import AnonymousAuthProvider, AuthProvider
from src.fetcher.error_classifier import classify_exception, classify_failure, classify_response
from src.fetcher.http_client import AsyncHTTPClient
from src.fetcher.normalizer import normalize_batch, normalize_product
from src.models.data_models import (
    FACETS,
    AcquisitionFailure,
    AcquisitionResult,
    AcquisitionSuccess,
    DetailsResult,
    DetailsSuccess,
    FetchRequest,
    PageInfo,
    SourceMode,
)
from src.monitoring.logger import StructuredLogger


class DataSourceAdapter(Protocol):
    """Interface shared by the primary and fallback adapters."""

    source: SourceMode

    async def get(self, request: FetchRequest) -> AcquisitionResult:
        """Fetch one listing page."""
        ...

    async def get_details(self, product_id: str) -> DetailsResult:
        """Fetch one product by id."""
        ...


class _HTTPStoreAdapter:
    """Shared request/response handling for HTTP-backed stores."""

    source: SourceMode
    listing_path: str

    def __init__(
        self,
        http_client: AsyncHTTPClient,
        base_url: str,
        name: Optional[str] = None,
        logger: Optional[StructuredLogger] = None
    ):
        self.http_client = http_client
        self.base_url = base_url.rstrip("/")
        self.name = name or self.source.value
        self.logger = logger

    def build_params(self, request: FetchRequest) -> Dict[str, Any]:
        raise NotImplementedError

    def build_headers(self) -> Dict[str, str]:
        return {"Content-Type": "application/json"}

    def to_success(self, payload: Dict, request: FetchRequest) -> AcquisitionSuccess:
        raise NotImplementedError

    async def _call(self, url: str, params: Optional[Dict[str, Any]] = None):
        """
        Perform the single network call.

        Returns:
            (decoded JSON body, status code, None) on a 2xx response with a JSON body
            (None, status code or None, ClassifiedError) on any failure
        """
        try:
            response = await self.http_client.get(url, params=params, headers=self.build_headers())
        except httpx.HTTPError as e:
            return None, None, classify_exception(e)

        if not response.is_success:
            return None, response.status_code, classify_response(response)

        try:
            payload = response.json()
        except ValueError:
            return None, response.status_code, classify_failure(status_code=response.status_code)

        if not isinstance(payload, dict):
            return None, response.status_code, classify_failure(status_code=response.status_code)

        return payload, response.status_code, None

    async def get(self, request: FetchRequest) -> AcquisitionResult:
        """
        Fetch one listing page.

        Args:
            request: Filters, sort and page to fetch

        Returns:
            AcquisitionSuccess with normalized records, or AcquisitionFailure
        """
        loop = asyncio.get_running_loop()
        start = loop.time()

        payload, status_code, error = await self._call(
            f"{self.base_url}{self.listing_path}",
            params=self.build_params(request)
        )
        if error is not None:
            return AcquisitionFailure(error=error, source=self.source)

        try:
            result = self.to_success(payload, request)
        except (TypeError, ValueError, OverflowError):
            # 2xx with counts or records that do not coerce
            return AcquisitionFailure(
                error=classify_failure(status_code=status_code),
                source=self.source
            )

        if self.logger:
            self.logger.log(
                "store_call",
                level=logging.DEBUG,
                source=self.name,
                records=len(result.records),
                elapsed_ms=round((loop.time() - start) * 1000, 2)
            )
        return result

    async def get_details(self, product_id: str) -> DetailsResult:
        """Fetch a single product by id."""
        payload, _, error = await self._call(
            f"{self.base_url}{self.listing_path}/{quote(product_id, safe='')}"
        )
        if error is not None:
            return AcquisitionFailure(error=error, source=self.source)

        data = payload.get("data")
        if not isinstance(data, dict):
            return AcquisitionFailure(
                error=classify_failure(status_code=404, body=payload),
                source=self.source
            )
        return DetailsSuccess(product=normalize_product(data), source=self.source)


class PrimaryStoreAdapter(_HTTPStoreAdapter):
    """
    Adapter for the authenticated primary store.

    Query form: comma-joined facet values, ``sortBy``, ``page`` and ``limit``.
    The signed-in user's identity travels in ``X-User-ID``/``X-User-Email``.
    The store paginates server-side and reports total and totalPages.
    """

    source = SourceMode.PRIMARY
    listing_path = "/firebase/get"

    def __init__(
        self,
        http_client: AsyncHTTPClient,
        base_url: str,
        auth_provider: Optional[AuthProvider] = None,
        max_filter_values: int = 10,
        name: Optional[str] = None,
        logger: Optional[StructuredLogger] = None
    ):
        super().__init__(http_client, base_url, name=name, logger=logger)
        self.auth_provider = auth_provider or AnonymousAuthProvider()
        self.max_filter_values = max_filter_values

    def build_params(self, request: FetchRequest) -> Dict[str, Any]:
        params: Dict[str, Any] = {}
        for facet in FACETS:
            values = request.selected(facet)[:self.max_filter_values]
            if values:
                params[facet] = ",".join(values)
        params["sortBy"] = request.sort_key.value
        params["page"] = request.page
        params["limit"] = request.page_size
        return params

    def build_headers(self) -> Dict[str, str]:
        headers = super().build_headers()
        identity = self.auth_provider.current_user()
        headers["X-User-ID"] = identity.user_id if identity else ""
        headers["X-User-Email"] = identity.email if identity else ""
        return headers

    def to_success(self, payload: Dict, request: FetchRequest) -> AcquisitionSuccess:
        records = normalize_batch(payload.get("data") or [])
        total = int(payload.get("total", len(records)))
        if "totalPages" in payload:
            total_pages = int(payload["totalPages"])
        else:
            total_pages = math.ceil(total / request.page_size)
        return AcquisitionSuccess(
            records=records,
            total_count=total,
            page_info=PageInfo(
                page=int(payload.get("page", request.page)),
                page_size=request.page_size,
                total_pages=total_pages
            ),
            source=self.source
        )


class FallbackStoreAdapter(_HTTPStoreAdapter):
    """
    Adapter for the unauthenticated fallback store.

    Query form: comma-joined facet values and ``sortBy`` only. The store
    returns every matching record, so the requested page is sliced locally.
    """

    source = SourceMode.FALLBACK
    listing_path = "/get"

    def build_params(self, request: FetchRequest) -> Dict[str, Any]:
        params: Dict[str, Any] = {}
        for facet in FACETS:
            values = request.selected(facet)
            if values:
                params[facet] = ",".join(values)
        params["sortBy"] = request.sort_key.value
        return params

    def to_success(self, payload: Dict, request: FetchRequest) -> AcquisitionSuccess:
        all_records: List = normalize_batch(payload.get("data") or [])
        start = (request.page - 1) * request.page_size
        return AcquisitionSuccess(
            records=all_records[start:start + request.page_size],
            total_count=len(all_records),
            page_info=PageInfo(
                page=request.page,
                page_size=request.page_size,
                total_pages=math.ceil(len(all_records) / request.page_size)
            ),
            source=self.source
        )
