# Goldstandard examples and product claims
# Read ports consulted by validation and enhancement, plus the admin writes

from __future__ import annotations

import logging
import uuid
from typing import Optional

from catalog_enhancer.models import Claim, GoldstandardExample
from catalog_enhancer.storage import GOLDSTANDARD_EXAMPLES, PRODUCT_CLAIMS, BlobStore

logger = logging.getLogger(__name__)

SOURCE_MANUAL = "manual"
SOURCE_AUTO_ENHANCEMENT = "auto_enhancement"


class GoldstandardRepository:
    """Exemplar content per field and language, newest first."""

    def __init__(self, store: BlobStore) -> None:
        self._store = store

    def list(self) -> list[GoldstandardExample]:
        raw = self._store.load(GOLDSTANDARD_EXAMPLES, [])
        return [GoldstandardExample.model_validate(item) for item in raw]

    def find_by_field_and_language(self, field_name: str, language: str) -> list[GoldstandardExample]:
        """Exact, case-sensitive match on both field name and language."""
        return [
            ex for ex in self.list()
            if ex.field_name == field_name and ex.language == language
        ]

    def add(
        self,
        field_name: str,
        content: str,
        language: str,
        categories: Optional[list[str]] = None,
        products: Optional[list[str]] = None,
        source: str = SOURCE_MANUAL,
    ) -> Optional[GoldstandardExample]:
        """Prepend a new example.

        Returns None (and writes nothing) when an example with the same
        field name, content and language already exists.
        """
        examples = self.list()
        for ex in examples:
            if ex.field_name == field_name and ex.content == content and ex.language == language:
                logger.debug("Goldstandard example for %s/%s already exists", field_name, language)
                return None

        prefix = "auto" if source == SOURCE_AUTO_ENHANCEMENT else "gs"
        example = GoldstandardExample(
            id=f"{prefix}_{uuid.uuid4().hex[:12]}",
            content=content,
            field_name=field_name,
            language=language,
            categories=list(categories or []),
            products=list(products or []),
            source=source,
        )
        self._save([example] + examples)
        logger.info(
            "Added goldstandard example",
            extra={"field_name": field_name, "language": language, "source": source},
        )
        return example

    def delete(self, example_id: str) -> bool:
        examples = self.list()
        kept = [ex for ex in examples if ex.id != example_id]
        if len(kept) == len(examples):
            return False
        self._save(kept)
        return True

    def _save(self, examples: list[GoldstandardExample]) -> None:
        self._store.save(GOLDSTANDARD_EXAMPLES, [ex.to_dict() for ex in examples])


class ClaimsRepository:
    """Verbatim claim sentences tied to product codes."""

    def __init__(self, store: BlobStore) -> None:
        self._store = store

    def list(self) -> list[Claim]:
        raw = self._store.load(PRODUCT_CLAIMS, [])
        return [Claim.model_validate(item) for item in raw]

    def find_by_product_and_language(self, product_code: str, language: str) -> list[Claim]:
        return [
            c for c in self.list()
            if product_code in c.product_ids and c.language == language
        ]

    def add(
        self,
        claim: str,
        claim_type: str,
        product_ids: list[str],
        language: str = "EN",
    ) -> Claim:
        """Append a claim. Raises pydantic.ValidationError on empty text, type or products."""
        new_claim = Claim(
            id=f"claim_{uuid.uuid4().hex[:12]}",
            claim=claim,
            claim_type=claim_type,
            product_ids=product_ids,
            language=language or "EN",
        )
        claims = self.list()
        claims.append(new_claim)
        self._save(claims)
        return new_claim

    def delete(self, claim_id: str) -> bool:
        claims = self.list()
        kept = [c for c in claims if c.id != claim_id]
        if len(kept) == len(claims):
            return False
        self._save(kept)
        return True

    def _save(self, claims: list[Claim]) -> None:
        self._store.save(PRODUCT_CLAIMS, [c.to_dict() for c in claims])
