"""Seed catalog shared by the mock product stores."""

import copy
from typing import Dict, List


SEED_PRODUCTS: List[Dict] = [
    {"title": "Men's Classic T-Shirt", "price": 29.99, "salePrice": 19.99,
     "category": "men", "brand": "Urban Essentials", "totalStock": 100},
    {"title": "Men's Slim Fit Jeans", "price": 59.99, "salePrice": 49.99,
     "category": "men", "brand": "Denim Co.", "totalStock": 50},
    {"title": "Women's Summer Floral Dress", "price": 45.0, "salePrice": 35.0,
     "category": "women", "brand": "Chic Boutique", "totalStock": 75},
    {"title": "Elegant Leather Handbag", "price": 89.99, "salePrice": 79.99,
     "category": "women", "brand": "Luxe Bags", "totalStock": 30},
    {"title": "Kids' Puffer Jacket", "price": 39.99, "salePrice": 29.99,
     "category": "kids", "brand": "Kiddo Wear", "totalStock": 60},
    {"title": "Kids' Sport Sneakers", "price": 34.99, "salePrice": 24.99,
     "category": "kids", "brand": "Active Kids", "totalStock": 80},
    {"title": "Pro Running Shoes", "price": 79.99, "salePrice": 69.99,
     "category": "footwear", "brand": "SportX", "totalStock": 40},
    {"title": "Classic Leather Watch", "price": 120.0, "salePrice": 99.99,
     "category": "accessories", "brand": "Timeless", "totalStock": 25},
    {"title": "Cotton Baseball Cap", "price": 19.99, "salePrice": 14.99,
     "category": "accessories", "brand": "Headwear Co.", "totalStock": 100},
    {"title": "Running Sport Shoes", "price": 65.0, "salePrice": 55.0,
     "category": "footwear", "brand": "RunFast", "totalStock": 45},
]


def seed_catalog(prefix: str) -> List[Dict]:
    """
    Build a fresh copy of the seed catalog with store-specific ids.

    Args:
        prefix: Id prefix, so the two stores never share document ids

    Returns:
        List of product documents
    """
    documents = []
    for index, product in enumerate(SEED_PRODUCTS, start=1):
        document = copy.deepcopy(product)
        document["_id"] = f"{prefix}{index:04d}"
        document.setdefault("description", "")
        document.setdefault("averageReview", 0)
        document.setdefault("image", f"https://images.example.com/{prefix}{index:04d}.jpg")
        documents.append(document)
    return documents
