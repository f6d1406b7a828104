"""Mock product stores for local runs and tests."""

from .app import create_app, create_fallback_store, create_primary_store, create_storefront_app

__all__ = ["create_app", "create_fallback_store", "create_primary_store", "create_storefront_app"]
