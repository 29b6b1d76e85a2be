# Test wiring: in-memory SQLite blob store, stub content model, fresh sessions

import json
from typing import Any, Optional

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from catalog_enhancer.config_loader import (
    CONTENT_OPTIMIZER_SYSTEM_PROMPT,
    QUALITY_SYSTEM_PROMPT,
    VALIDATOR_SYSTEM_PROMPT,
)

from app.deps import get_model, get_sessions, get_store
from app.main import app
from app.models import Base
from app.services.blob_store import SqlBlobStore
from app.services.session_store import SessionStore


class StubModel:
    """Content model answering each system prompt with a canned response."""

    def __init__(self) -> None:
        self.responses: dict[str, Any] = {
            QUALITY_SYSTEM_PROMPT: {"rating": 40, "remarks": "too short"},
            CONTENT_OPTIMIZER_SYSTEM_PROMPT: "Zetuvit Plus Superabsorbent Dressing",
            VALIDATOR_SYSTEM_PROMPT: {
                "passed": True,
                "issues": [],
                "quality": {"rating": 92, "remarks": "meets requirements"},
            },
        }
        self.calls: list[str] = []

    async def complete(self, system_prompt: str, user_message: str, temperature: Optional[float] = None) -> str:
        self.calls.append(system_prompt)
        response = self.responses[system_prompt]
        if isinstance(response, BaseException):
            raise response
        return response if isinstance(response, str) else json.dumps(response)


def make_session_factory():
    """Shared in-memory DB (StaticPool keeps one connection alive)."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine)


@pytest.fixture
def session_factory():
    return make_session_factory()


@pytest.fixture
def blob_store(session_factory):
    return SqlBlobStore(session_factory)


@pytest.fixture
def model():
    return StubModel()


@pytest.fixture
def sessions():
    return SessionStore(ttl_seconds=3600)


@pytest.fixture
def client(blob_store, model, sessions):
    app.dependency_overrides[get_store] = lambda: blob_store
    app.dependency_overrides[get_model] = lambda: model
    app.dependency_overrides[get_sessions] = lambda: sessions
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def user():
    return {"id": "u1", "name": "Erin Editor", "email": "erin@example.com", "role": "editor"}


@pytest.fixture
def product():
    return {
        "code": "P1",
        "categoryName": "Wound Care",
        "assortmentProductName": "Zetuvit",
        "assortmentProductDescription": "Absorbent dressing",
    }
