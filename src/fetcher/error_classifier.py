"""Classification of store call failures into semantic error categories.

Rules are evaluated in order and the first match wins:

1. Transport-level abort or timeout -> TIMEOUT
2. HTTP 401 -> UNAUTHORIZED
3. HTTP 404 -> NOT_FOUND
4. HTTP 500 -> SERVER_FAULT
5. Any other HTTP response -> GENERIC_API_FAULT
6. No HTTP response at all (DNS, refused connection) -> NETWORK_FAULT

The classifier never raises. Messages come from the response body when it
carries one, otherwise from a fixed default per category.
"""

from typing import Any, Dict, Optional

import httpx

from src.models.data_models import ClassifiedError, ErrorCategory


DEFAULT_MESSAGES: Dict[ErrorCategory, str] = {
    ErrorCategory.UNAUTHORIZED: "Authentication required. Please log in.",
    ErrorCategory.NOT_FOUND: "Products not found",
    ErrorCategory.SERVER_FAULT: "Server error while fetching products",
    ErrorCategory.TIMEOUT: "Request timeout. Please check your connection.",
    ErrorCategory.NETWORK_FAULT: "Network error occurred",
    ErrorCategory.GENERIC_API_FAULT: "Failed to fetch products",
}

ERROR_CODES: Dict[ErrorCategory, str] = {
    ErrorCategory.UNAUTHORIZED: "UNAUTHORIZED",
    ErrorCategory.NOT_FOUND: "PRODUCTS_NOT_FOUND",
    ErrorCategory.SERVER_FAULT: "SERVER_ERROR",
    ErrorCategory.TIMEOUT: "TIMEOUT",
    ErrorCategory.NETWORK_FAULT: "NETWORK_ERROR",
    ErrorCategory.GENERIC_API_FAULT: "API_ERROR",
}

# Body field holding the human-readable message, per category
_MESSAGE_FIELDS = {
    ErrorCategory.SERVER_FAULT: ("error", "message"),
}


def _category_for_status(status_code: int) -> ErrorCategory:
    if status_code == 401:
        return ErrorCategory.UNAUTHORIZED
    if status_code == 404:
        return ErrorCategory.NOT_FOUND
    if status_code == 500:
        return ErrorCategory.SERVER_FAULT
    return ErrorCategory.GENERIC_API_FAULT


def _body_message(body: Any, category: ErrorCategory) -> Optional[str]:
    """Pull a usable message out of a decoded error body."""
    if not isinstance(body, dict):
        return None

    for field_name in _MESSAGE_FIELDS.get(category, ("message", "error")):
        value = body.get(field_name)
        if isinstance(value, str) and value.strip():
            return value.strip()

    return None


def classify_failure(
    status_code: Optional[int] = None,
    body: Any = None,
    timed_out: bool = False,
    detail: Optional[str] = None
) -> ClassifiedError:
    """
    Classify a raw failure.

    Args:
        status_code: HTTP status when a response was received
        body: Decoded response body, if any
        timed_out: Whether the call was aborted by a timeout
        detail: Transport error text, used for network faults

    Returns:
        The ClassifiedError for this failure
    """
    if timed_out:
        category = ErrorCategory.TIMEOUT
        message = DEFAULT_MESSAGES[category]
    elif status_code is not None:
        category = _category_for_status(status_code)
        message = _body_message(body, category) or DEFAULT_MESSAGES[category]
    else:
        category = ErrorCategory.NETWORK_FAULT
        message = detail or DEFAULT_MESSAGES[category]

    return ClassifiedError(
        category=category,
        message=message,
        code=ERROR_CODES[category],
        status_code=status_code
    )


def _decode_body(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return None


def classify_response(response: httpx.Response) -> ClassifiedError:
    """Classify a non-success HTTP response."""
    return classify_failure(
        status_code=response.status_code,
        body=_decode_body(response)
    )


def classify_exception(exc: BaseException) -> ClassifiedError:
    """
    Classify an exception raised while calling a store.

    httpx timeouts subclass TransportError, so they are checked first.
    Errors that carry a response are classified by that response; anything
    else never reached the server and counts as a network fault.
    """
    if isinstance(exc, httpx.TimeoutException):
        return classify_failure(timed_out=True)

    if isinstance(exc, httpx.HTTPStatusError):
        return classify_response(exc.response)

    return classify_failure(detail=str(exc) or type(exc).__name__)
