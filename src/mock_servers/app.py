"""FastAPI stand-ins for the primary and fallback product stores."""

import asyncio
import math
import os
import random
from typing import Dict, List, Optional

from fastapi import FastAPI, Header, Query
from fastapi.responses import JSONResponse

from src.mock_servers.catalog import seed_catalog


API_PREFIX = "/api/shop/products"

_SORT_FIELDS = {
    "price-lowtohigh": ("price", False),
    "price-hightolow": ("price", True),
    "title-atoz": ("title", False),
    "title-ztoa": ("title", True),
}


def _split(value: Optional[str]) -> List[str]:
    if not value:
        return []
    return [part for part in value.split(",") if part]


def filter_and_sort(
    products: List[Dict],
    categories: List[str],
    brands: List[str],
    sort_by: str
) -> List[Dict]:
    """Apply facet filters and sort order the way both stores do."""
    matched = [
        product for product in products
        if (not categories or product.get("category") in categories)
        and (not brands or product.get("brand") in brands)
    ]
    # Unknown sort values fall back to price ascending
    field, reverse = _SORT_FIELDS.get(sort_by, _SORT_FIELDS["price-lowtohigh"])
    return sorted(matched, key=lambda p: p.get(field), reverse=reverse)


class _Faults:
    """Injected misbehaviour shared by a store's routes."""

    def __init__(self, error_rate: float, extra_latency_ms: int, random_seed: Optional[int]):
        self.error_rate = error_rate
        self.extra_latency_ms = extra_latency_ms
        self.rng = random.Random(random_seed)

    async def apply(self) -> Optional[JSONResponse]:
        if self.extra_latency_ms > 0:
            await asyncio.sleep(self.extra_latency_ms / 1000.0)

        if self.rng.random() < self.error_rate:
            return JSONResponse(
                status_code=500,
                content={"success": False, "message": "Failed to fetch products", "error": "Simulated error"}
            )
        return None


def add_primary_routes(
    app: FastAPI,
    products: List[Dict],
    prefix: str = API_PREFIX,
    available: bool = True,
    max_filter_values: int = 10,
    error_rate: float = 0.0,
    extra_latency_ms: int = 0,
    random_seed: Optional[int] = None
) -> None:
    """
    Register the authenticated, server-paginated primary store routes.

    Args:
        app: Application to register on
        products: Documents served by this store
        prefix: Route prefix
        available: When False the listing answers 404 as if the collection were missing
        max_filter_values: Values per facet honoured by the store
        error_rate: Probability of a simulated 500 (0.0-1.0)
        extra_latency_ms: Additional latency in milliseconds
        random_seed: Seed for deterministic fault injection
    """
    faults = _Faults(error_rate, extra_latency_ms, random_seed)
    documents = [{**product, "id": product["_id"]} for product in products]

    def unauthorized(message: str) -> JSONResponse:
        return JSONResponse(
            status_code=401,
            content={"success": False, "message": message, "error": "User not authenticated"}
        )

    @app.get(f"{prefix}/firebase/get")
    async def get_filtered_products(
        category: Optional[str] = None,
        brand: Optional[str] = None,
        sortBy: str = "price-lowtohigh",
        page: int = Query(default=1, ge=1),
        limit: int = Query(default=20, ge=1),
        x_user_id: Optional[str] = Header(default=None)
    ):
        """Get a filtered, sorted page of products."""
        if not x_user_id:
            return unauthorized("Authentication required to access products")

        fault = await faults.apply()
        if fault is not None:
            return fault

        if not available:
            return JSONResponse(status_code=404, content={"success": False, "message": "Products not found"})

        matched = filter_and_sort(
            documents,
            _split(category)[:max_filter_values],
            _split(brand)[:max_filter_values],
            sortBy
        )
        start = (page - 1) * limit
        return {
            "success": True,
            "data": matched[start:start + limit],
            "total": len(matched),
            "page": page,
            "totalPages": math.ceil(len(matched) / limit),
        }

    @app.get(f"{prefix}/firebase/get/{{product_id}}")
    async def get_product_details(product_id: str, x_user_id: Optional[str] = Header(default=None)):
        """Get one product."""
        if not x_user_id:
            return unauthorized("Authentication required to access product details")

        fault = await faults.apply()
        if fault is not None:
            return fault

        for document in documents:
            if document["id"] == product_id:
                return {"success": True, "data": document}
        return JSONResponse(status_code=404, content={"success": False, "message": "Product not found"})


def add_fallback_routes(
    app: FastAPI,
    products: List[Dict],
    prefix: str = API_PREFIX,
    error_rate: float = 0.0,
    extra_latency_ms: int = 0,
    random_seed: Optional[int] = None
) -> None:
    """Register the open, unpaginated fallback store routes."""
    faults = _Faults(error_rate, extra_latency_ms, random_seed)

    @app.get(f"{prefix}/get")
    async def get_filtered_products(
        category: Optional[str] = None,
        brand: Optional[str] = None,
        sortBy: str = "price-lowtohigh"
    ):
        """Get every product matching the filters."""
        fault = await faults.apply()
        if fault is not None:
            return fault

        return {
            "success": True,
            "data": filter_and_sort(products, _split(category), _split(brand), sortBy),
        }

    @app.get(f"{prefix}/get/{{product_id}}")
    async def get_product_details(product_id: str):
        """Get one product."""
        fault = await faults.apply()
        if fault is not None:
            return fault

        for product in products:
            if product["_id"] == product_id:
                return {"success": True, "data": product}
        return JSONResponse(status_code=404, content={"success": False, "message": "Product not found!"})


def _with_health(app: FastAPI, name: str) -> FastAPI:
    @app.get("/health")
    async def health():
        """Health check endpoint."""
        return {"status": "healthy", "server": name}

    return app


def create_primary_store(
    products: Optional[List[Dict]] = None,
    available: bool = True,
    error_rate: float = 0.0,
    extra_latency_ms: int = 0,
    random_seed: Optional[int] = None
) -> FastAPI:
    """Primary store alone."""
    app = FastAPI(title="Mock Store - primary")
    add_primary_routes(
        app,
        products if products is not None else seed_catalog("pf"),
        available=available,
        error_rate=error_rate,
        extra_latency_ms=extra_latency_ms,
        random_seed=random_seed
    )
    return _with_health(app, "primary")


def create_fallback_store(
    products: Optional[List[Dict]] = None,
    error_rate: float = 0.0,
    extra_latency_ms: int = 0,
    random_seed: Optional[int] = None
) -> FastAPI:
    """Fallback store alone."""
    app = FastAPI(title="Mock Store - fallback")
    add_fallback_routes(
        app,
        products if products is not None else seed_catalog("fb"),
        error_rate=error_rate,
        extra_latency_ms=extra_latency_ms,
        random_seed=random_seed
    )
    return _with_health(app, "fallback")


def create_storefront_app(
    primary_products: Optional[List[Dict]] = None,
    fallback_products: Optional[List[Dict]] = None,
    primary_available: bool = True,
    error_rate: float = 0.0,
    random_seed: Optional[int] = None
) -> FastAPI:
    """
    Both stores behind one API prefix, as the storefront server exposes them.

    The two catalogs are seeded independently and are not kept in sync.
    """
    app = FastAPI(title="Mock Storefront")
    add_primary_routes(
        app,
        primary_products if primary_products is not None else seed_catalog("pf"),
        available=primary_available,
        error_rate=error_rate,
        random_seed=random_seed
    )
    add_fallback_routes(
        app,
        fallback_products if fallback_products is not None else seed_catalog("fb"),
        error_rate=error_rate,
        random_seed=None if random_seed is None else random_seed + 1
    )
    return _with_health(app, "storefront")


def create_app() -> FastAPI:
    """
    Factory function for uvicorn --factory.

    Reads STORE_NAME from environment to determine which store to create.
    Defaults to the combined storefront if not specified.
    """
    store_name = os.getenv("STORE_NAME", "storefront")
    error_rate = float(os.getenv("ERROR_RATE", 0.0))
    random_seed = int(os.getenv("RANDOM_SEED", 42))
    primary_available = os.getenv("PRIMARY_AVAILABLE", "true").lower() != "false"

    if store_name == "primary":
        return create_primary_store(
            available=primary_available, error_rate=error_rate, random_seed=random_seed
        )
    if store_name == "fallback":
        return create_fallback_store(error_rate=error_rate, random_seed=random_seed)
    return create_storefront_app(
        primary_available=primary_available, error_rate=error_rate, random_seed=random_seed
    )
