# Enhancement audit ledger and the store of confirmed product snapshots

import logging
from typing import Any, Optional

from catalog_enhancer.models import Actor, HistoryEntry, Product, utc_now_iso
from catalog_enhancer.storage import ENHANCED_PRODUCTS, ENHANCEMENT_HISTORY, BlobStore

logger = logging.getLogger(__name__)


class HistoryLedger:
    """Append-only log of before/after values for every generated enhancement."""

    def __init__(self, store: BlobStore) -> None:
        self._store = store

    def append(
        self,
        user: Actor,
        product: Product,
        field: str,
        before: str,
        after: str,
        language: Optional[str] = None,
    ) -> HistoryEntry:
        entry = HistoryEntry(
            user=user,
            product_id=product.id,
            product_code=product.code,
            field=field,
            before=before,
            after=after,
            language=language,
        )
        raw = self._store.load(ENHANCEMENT_HISTORY, [])
        raw.append(entry.to_dict())
        self._store.save(ENHANCEMENT_HISTORY, raw)
        logger.info(
            "Recorded enhancement",
            extra={"product_code": product.code, "field_name": field, "user_id": user.id},
        )
        return entry

    def entries(self) -> list[HistoryEntry]:
        return [HistoryEntry.model_validate(item) for item in self._store.load(ENHANCEMENT_HISTORY, [])]

    def for_product_field(self, product_id: str, field: str) -> list[HistoryEntry]:
        return [e for e in self.entries() if e.product_id == str(product_id) and e.field == field]

    def clear(self) -> None:
        self._store.save(ENHANCEMENT_HISTORY, [])

    def export(self) -> dict[str, Any]:
        """Full dump for audit download."""
        entries = self.entries()
        return {
            "exportDate": utc_now_iso(),
            "totalEntries": len(entries),
            "enhancementHistory": [e.to_dict() for e in entries],
        }


class EnhancedProductStore:
    """Confirmed product snapshots keyed by product code."""

    def __init__(self, store: BlobStore) -> None:
        self._store = store

    def _all(self) -> dict[str, Any]:
        return self._store.load(ENHANCED_PRODUCTS, {})

    def save(self, product: Product) -> None:
        data = self._all()
        data[product.code] = product.to_dict()
        self._store.save(ENHANCED_PRODUCTS, data)

    def get(self, product_code: str) -> Optional[Product]:
        raw = self._all().get(product_code)
        return Product(raw) if raw is not None else None

    def resolve(self, product: Product) -> Product:
        """Enhanced snapshot if one was confirmed, else the catalog original."""
        return self.get(product.code) or product

    def stats(self, total_products: int) -> dict[str, Any]:
        enhanced = len(self._all())
        percentage = round(enhanced / total_products * 100) if total_products > 0 else 0
        return {
            "totalProducts": total_products,
            "enhancedProducts": enhanced,
            "enhancementPercentage": percentage,
        }

    def reset(self) -> None:
        self._store.save(ENHANCED_PRODUCTS, {})
