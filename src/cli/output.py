"""JSON output formatter for listing snapshots.

Example output structure:
{
    "mode": "fallback",
    "state": "fallback_ok",
    "switched": true,
    "error": null,
    "total_count": 10,
    "page": {"page": 1, "page_size": 20, "total_pages": 1},
    "products": [...]
}
"""

import json
from pathlib import Path
from typing import Any, Dict, Optional

from src.models.data_models import ClassifiedError, ListingSnapshot, Product


class JSONOutputFormatter:
    """Formats controller snapshots as JSON documents."""

    def format(self, snapshot: ListingSnapshot) -> Dict[str, Any]:
        """
        Format a snapshot as a JSON-serializable dictionary.

        Args:
            snapshot: Controller snapshot to export

        Returns:
            Dictionary with mode, state, error, paging and products
        """
        page_info = snapshot.page_info
        return {
            "mode": snapshot.mode.value,
            "state": snapshot.state.value,
            "switched": snapshot.switched,
            "error": self._format_error(snapshot.current_error),
            "total_count": snapshot.total_count,
            "page": {
                "page": page_info.page,
                "page_size": page_info.page_size,
                "total_pages": page_info.total_pages,
            } if page_info else None,
            "products": [self._format_product(p) for p in snapshot.products],
            "product_details": (
                self._format_product(snapshot.product_details)
                if snapshot.product_details else None
            ),
        }

    def _format_error(self, error: Optional[ClassifiedError]) -> Optional[Dict[str, Any]]:
        if error is None:
            return None
        return {
            "category": error.category.value,
            "code": error.code,
            "message": error.message,
            "status": error.status_code,
        }

    def _format_product(self, product: Product) -> Dict[str, Any]:
        return {
            "id": product.id,
            "title": product.title,
            "price": product.price,
            "sale_price": product.sale_price,
            "category": product.category,
            "brand": product.brand,
            "total_stock": product.total_stock,
            "image": product.image,
        }

    def save(self, snapshot: ListingSnapshot, path: str = "out/listing.json") -> None:
        """
        Save formatted snapshot to a JSON file.

        Creates parent directories if they don't exist.
        """
        output_path = Path(path)
        output_path.parent.mkdir(parents=True, exist_ok=True)

        with open(output_path, 'w', encoding='utf-8') as f:
            json.dump(self.format(snapshot), f, indent=2, ensure_ascii=False)
