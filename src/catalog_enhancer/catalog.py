"""Flatten a catalog-version document into product records.

A catalog holds a tree of categories; each category carries products and
optional subcategories. Every product is stamped with the name of the
category it was found in, the parent category name and a few legacy aliases
so downstream field rules can address it uniformly.
"""

import json
import logging
from pathlib import Path
from typing import Any, Iterator, Mapping, Optional

from catalog_enhancer.models import Product

logger = logging.getLogger(__name__)


def _walk(categories: list[Mapping[str, Any]], parent: Optional[str] = None) -> Iterator[tuple[Mapping[str, Any], Optional[str]]]:
    for category in categories or []:
        yield category, parent
        yield from _walk(category.get("subcategories") or [], category.get("name"))


def extract_products_from_catalog(catalog: Mapping[str, Any]) -> list[Product]:
    """Return every product in the catalog tree, depth-first in document order."""
    products: list[Product] = []
    for category, parent in _walk(catalog.get("categories") or []):
        for raw in category.get("products") or []:
            data = dict(raw)
            data["id"] = raw.get("code")
            data["categoryName"] = category.get("name")
            data["subCategory"] = parent or ""
            data["B2C-description-long"] = raw.get("description") or ""
            data["B2C-description-short"] = raw.get("assortmentProductDescription") or ""
            products.append(Product(data))
    logger.debug("Extracted %d products from catalog", len(products))
    return products


def extract_category_names(catalog: Mapping[str, Any]) -> list[str]:
    """Unique category names (all depths), in first-seen order."""
    names: dict[str, None] = {}
    for category, _ in _walk(catalog.get("categories") or []):
        name = category.get("name")
        if name:
            names.setdefault(name, None)
    return list(names)


def load_products(path: str | Path) -> list[Product]:
    """Load products from a JSON file.

    Accepts a catalog document (with ``categories``), a list of product
    records, or a single product record.
    """
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    if isinstance(data, list):
        return [Product(item) for item in data]
    if "categories" in data:
        return extract_products_from_catalog(data)
    return [Product(data)]
