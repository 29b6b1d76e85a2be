"""Tests for the SQLAlchemy blob store."""

from sqlalchemy import select

from catalog_enhancer.field_registry import FieldRegistry
from catalog_enhancer.storage import FIELDS

from app.models.blob import Blob
from app.services.blob_store import SqlBlobStore


def test_missing_blob_returns_default(blob_store):
    assert blob_store.load("goldstandardExamples", []) == []
    assert blob_store.load("goldstandardExamples") is None


def test_save_inserts_then_updates_one_row(session_factory):
    store = SqlBlobStore(session_factory)

    store.save(FIELDS, [{"name": "a"}])
    store.save(FIELDS, [{"name": "a"}, {"name": "b"}])

    with session_factory() as db:
        rows = db.execute(select(Blob)).scalars().all()
    assert len(rows) == 1
    assert rows[0].name == FIELDS
    assert store.load(FIELDS) == [{"name": "a"}, {"name": "b"}]


def test_loaded_value_is_a_copy(blob_store):
    blob_store.save("enhancedProducts", {"P1": {"code": "P1"}})
    loaded = blob_store.load("enhancedProducts")
    loaded["P2"] = {}
    assert list(blob_store.load("enhancedProducts")) == ["P1"]


def test_registry_runs_on_sql_store(blob_store):
    registry = FieldRegistry(blob_store)
    field = registry.add({"name": "claimText"})
    assert FieldRegistry(blob_store).get(field.id).name == "claimText"
