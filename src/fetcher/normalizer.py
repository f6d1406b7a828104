"""Record normalizer for product documents from either backing store.

The primary store returns documents with both ``id`` and ``_id``; the
fallback store returns ``_id`` only. Numeric fields may arrive as numbers,
numeric strings or be missing entirely.
"""

import math
from typing import Any, Dict, List, Optional

from src.models.data_models import Product


def _extract_id(raw_product: Dict) -> str:
    """
    Extract product ID.

    Tries id, _id, product_id. Handles both string and numeric IDs and the
    ``{"$oid": ...}`` form some document stores serialize ObjectIds as.
    """
    for field in ("id", "_id", "product_id"):
        value = raw_product.get(field)
        if value is None:
            continue
        if isinstance(value, dict) and "$oid" in value:
            return str(value["$oid"])
        if str(value).strip():
            return str(value).strip()

    return "unknown"


def _extract_text(raw_product: Dict, field: str, default: str = "") -> str:
    value = raw_product.get(field)
    if isinstance(value, str) and value.strip():
        return value.strip()
    return default


def _to_number(value: Any) -> Optional[float]:
    """
    Coerce a number-like value.

    Handles numeric types and strings such as "$10.99" or "10,99".
    Returns None for missing, negative, non-finite or unparseable values.
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, (int, float)):
        try:
            number = float(value)
        except OverflowError:
            return None
    elif isinstance(value, str):
        try:
            cleaned = value.strip().replace("$", "").replace("€", "").replace("£", "")
            # Comma as decimal separator
            if "," in cleaned and "." not in cleaned:
                cleaned = cleaned.replace(",", ".")
            cleaned = cleaned.replace(",", "")
            number = float(cleaned)
        except ValueError:
            return None
    else:
        return None

    if not math.isfinite(number) or number < 0:
        return None
    return number


def normalize_product(raw_product: Dict) -> Product:
    """
    Normalize a single store document into a Product.

    Missing prices become 0, a missing or zero sale price means the product
    is not on sale, and stock is clamped to a non-negative integer.

    Examples:
        >>> normalize_product({"_id": "a1", "title": "Tee", "price": 29.99, "salePrice": 19.99})
        Product(id='a1', title='Tee', price=29.99, sale_price=19.99, ...)
    """
    price = _to_number(raw_product.get("price")) or 0.0
    sale_price = _to_number(raw_product.get("salePrice")) or 0.0
    stock = _to_number(raw_product.get("totalStock")) or 0.0
    review = _to_number(raw_product.get("averageReview")) or 0.0

    return Product(
        id=_extract_id(raw_product),
        title=_extract_text(raw_product, "title", "Unknown Product"),
        price=round(price, 2),
        sale_price=round(sale_price, 2),
        category=_extract_text(raw_product, "category").lower(),
        brand=_extract_text(raw_product, "brand"),
        total_stock=int(stock),
        image=_extract_text(raw_product, "image") or None,
        description=_extract_text(raw_product, "description"),
        average_review=review
    )


def normalize_batch(raw_products: List[Dict]) -> List[Product]:
    """Normalize a list of documents, skipping entries that are not objects."""
    return [normalize_product(raw) for raw in raw_products if isinstance(raw, dict)]
