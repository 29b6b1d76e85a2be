"""FastAPI dependency functions shared across routers.

Every router resolves its collaborators through these functions, so tests
swap the database-backed store or the content model via
``app.dependency_overrides`` without touching the routers.

    get_store          SqlBlobStore over the service database
    get_model          LLMCapability bounded by ``settings.llm_timeout_seconds``
    get_registry       FieldRegistry (seeds the default fields on first use)
    get_goldstandard   GoldstandardRepository
    get_claims         ClaimsRepository
    get_ledger         HistoryLedger
    get_validator      ValidationEngine wired to the model and goldstandard
"""

import logging

from fastapi import Depends

from catalog_enhancer.client import ContentModel, LLMCapability
from catalog_enhancer.corpus import ClaimsRepository, GoldstandardRepository
from catalog_enhancer.field_registry import FieldRegistry
from catalog_enhancer.history import EnhancedProductStore, HistoryLedger
from catalog_enhancer.storage import BlobStore
from catalog_enhancer.validation import ValidationEngine

from app.config import settings
from app.database import get_db
from app.services.blob_store import SqlBlobStore
from app.services.session_store import SessionStore, get_session_store

logger = logging.getLogger(__name__)

_store: SqlBlobStore | None = None


def get_store() -> BlobStore:
    """Return the module-level SqlBlobStore singleton."""
    global _store
    if _store is None:
        _store = SqlBlobStore(get_db)
    return _store


def get_model() -> ContentModel:
    return LLMCapability(timeout=settings.llm_timeout_seconds)


def get_registry(store: BlobStore = Depends(get_store)) -> FieldRegistry:
    return FieldRegistry(store)


def get_goldstandard(store: BlobStore = Depends(get_store)) -> GoldstandardRepository:
    return GoldstandardRepository(store)


def get_claims(store: BlobStore = Depends(get_store)) -> ClaimsRepository:
    return ClaimsRepository(store)


def get_ledger(store: BlobStore = Depends(get_store)) -> HistoryLedger:
    return HistoryLedger(store)


def get_enhanced_products(store: BlobStore = Depends(get_store)) -> EnhancedProductStore:
    return EnhancedProductStore(store)


def get_validator(
    model: ContentModel = Depends(get_model),
    goldstandard: GoldstandardRepository = Depends(get_goldstandard),
) -> ValidationEngine:
    return ValidationEngine(model, goldstandard)


def get_sessions() -> SessionStore:
    return get_session_store()
