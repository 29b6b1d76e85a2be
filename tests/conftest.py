# Shared fakes and fixtures for engine tests

import pytest

from catalog_enhancer.corpus import ClaimsRepository, GoldstandardRepository
from catalog_enhancer.field_registry import FieldRegistry
from catalog_enhancer.history import EnhancedProductStore, HistoryLedger
from catalog_enhancer.models import Actor, FieldConfig
from catalog_enhancer.storage import MemoryStore


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def registry(store):
    return FieldRegistry(store)


@pytest.fixture
def fields(registry) -> list[FieldConfig]:
    return registry.list()


@pytest.fixture
def goldstandard(store):
    return GoldstandardRepository(store)


@pytest.fixture
def claims(store):
    return ClaimsRepository(store)


@pytest.fixture
def ledger(store):
    return HistoryLedger(store)


@pytest.fixture
def enhanced_products(store):
    return EnhancedProductStore(store)


@pytest.fixture
def editor():
    return Actor(id="u1", name="Erin Editor", email="erin@example.com", role="editor")
