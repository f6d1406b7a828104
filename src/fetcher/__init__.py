"""Store access: HTTP client, error classification and record normalization."""

from .error_classifier import classify_exception, classify_failure, classify_response
from .http_client import AsyncHTTPClient

__all__ = ["AsyncHTTPClient", "classify_exception", "classify_failure", "classify_response"]
