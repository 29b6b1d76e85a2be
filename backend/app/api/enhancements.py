"""Enhancement sessions API: the per-field review wizard over HTTP.

Implements:
  POST /api/enhancements                               start a session
  GET  /api/enhancements/{sid}                         current state
  POST /api/enhancements/{sid}/fields/{name}/enhance   (re)run a field, ``force`` overrides a skip
  POST /api/enhancements/{sid}/fields/{name}/accept
  POST /api/enhancements/{sid}/fields/{name}/decline
  POST /api/enhancements/{sid}/back
  POST /api/enhancements/{sid}/language                restart in another language
  GET  /api/enhancements/{sid}/summary
  POST /api/enhancements/{sid}/confirm                 persist the working snapshot

Sessions are held in process memory (see ``app.services.session_store``).
"""

import logging
from typing import Annotated, Any, Optional

from fastapi import APIRouter, Depends, HTTPException

from catalog_enhancer.client import ContentModel
from catalog_enhancer.config_loader import SUPPORTED_LANGUAGES
from catalog_enhancer.corpus import ClaimsRepository, GoldstandardRepository
from catalog_enhancer.field_registry import FieldRegistry
from catalog_enhancer.field_rules import fields_for_product
from catalog_enhancer.history import EnhancedProductStore, HistoryLedger
from catalog_enhancer.models import Actor, CamelModel, Product
from catalog_enhancer.validation import ValidationEngine
from catalog_enhancer.workflow import EnhancementWorkflow, WorkflowError

from app.deps import (
    get_claims,
    get_enhanced_products,
    get_goldstandard,
    get_ledger,
    get_model,
    get_registry,
    get_sessions,
    get_validator,
)
from app.logging_config import bind_session_id
from app.services.session_store import SessionStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/enhancements", tags=["enhancements"])

Sessions = Annotated[SessionStore, Depends(get_sessions)]


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------


class StartRequest(CamelModel):
    product: dict[str, Any]
    user: Actor
    # Defaults to every field that applies to the product
    field_names: Optional[list[str]] = None
    language: str = "EN"


class EnhanceRequest(CamelModel):
    force: bool = False


class LanguageRequest(CamelModel):
    language: str


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _session(sessions: SessionStore, session_id: str) -> EnhancementWorkflow:
    workflow = sessions.get(session_id)
    if workflow is None:
        raise HTTPException(status_code=404, detail="Enhancement session not found")
    bind_session_id(session_id)
    return workflow


def _state(session_id: str, workflow: EnhancementWorkflow) -> dict:
    return {"sessionId": session_id, **workflow.to_dict()}


def _check_language(language: str) -> None:
    if language not in SUPPORTED_LANGUAGES:
        raise HTTPException(
            status_code=422,
            detail=f"Unsupported language {language!r}, expected one of {SUPPORTED_LANGUAGES}",
        )


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------


@router.post("", status_code=201)
async def start_session(
    body: StartRequest,
    sessions: Sessions,
    registry: Annotated[FieldRegistry, Depends(get_registry)],
    model: Annotated[ContentModel, Depends(get_model)],
    validator: Annotated[ValidationEngine, Depends(get_validator)],
    goldstandard: Annotated[GoldstandardRepository, Depends(get_goldstandard)],
    claims: Annotated[ClaimsRepository, Depends(get_claims)],
    ledger: Annotated[HistoryLedger, Depends(get_ledger)],
    enhanced_products: Annotated[EnhancedProductStore, Depends(get_enhanced_products)],
) -> dict:
    _check_language(body.language)
    fields = registry.list()
    product = enhanced_products.resolve(Product(body.product))
    field_names = body.field_names
    if field_names is None:
        field_names = [f.name for f in fields_for_product(product, fields)]
    if not field_names:
        raise HTTPException(status_code=422, detail="No fields selected for enhancement")

    workflow = EnhancementWorkflow(
        product=product,
        field_names=field_names,
        fields=fields,
        model=model,
        validator=validator,
        goldstandard=goldstandard,
        claims=claims,
        ledger=ledger,
        user=body.user,
        language=body.language,
        enhanced_products=enhanced_products,
    )
    session_id = sessions.create(workflow)
    bind_session_id(session_id)
    logger.info(
        "Enhancement session started",
        extra={"session_id": session_id, "product_code": product.code, "fields": field_names},
    )
    await workflow.start()
    return _state(session_id, workflow)


@router.get("/{session_id}")
def get_session(session_id: str, sessions: Sessions) -> dict:
    return _state(session_id, _session(sessions, session_id))


@router.post("/{session_id}/fields/{field_name}/enhance")
async def enhance(
    session_id: str,
    field_name: str,
    sessions: Sessions,
    body: Optional[EnhanceRequest] = None,
) -> dict:
    workflow = _session(sessions, session_id)
    if field_name not in workflow.field_names:
        raise HTTPException(status_code=404, detail=f'"{field_name}" is not part of this session')
    await workflow.enhance(field_name, force=body.force if body else False)
    return _state(session_id, workflow)


@router.post("/{session_id}/fields/{field_name}/accept")
async def accept(session_id: str, field_name: str, sessions: Sessions) -> dict:
    workflow = _session(sessions, session_id)
    try:
        await workflow.accept(field_name)
    except WorkflowError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return _state(session_id, workflow)


@router.post("/{session_id}/fields/{field_name}/decline")
async def decline(session_id: str, field_name: str, sessions: Sessions) -> dict:
    workflow = _session(sessions, session_id)
    try:
        await workflow.decline(field_name)
    except WorkflowError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return _state(session_id, workflow)


@router.post("/{session_id}/back")
async def back(session_id: str, sessions: Sessions) -> dict:
    workflow = _session(sessions, session_id)
    await workflow.back()
    return _state(session_id, workflow)


@router.post("/{session_id}/language")
async def change_language(session_id: str, body: LanguageRequest, sessions: Sessions) -> dict:
    workflow = _session(sessions, session_id)
    _check_language(body.language)
    await workflow.change_language(body.language)
    return _state(session_id, workflow)


@router.get("/{session_id}/summary")
def summary(session_id: str, sessions: Sessions) -> dict:
    workflow = _session(sessions, session_id)
    return {"sessionId": session_id, "rows": [row.to_dict() for row in workflow.summary()]}


@router.post("/{session_id}/confirm")
def confirm(session_id: str, sessions: Sessions) -> dict:
    workflow = _session(sessions, session_id)
    try:
        product = workflow.confirm()
    except WorkflowError as e:
        raise HTTPException(status_code=409, detail=str(e))
    sessions.remove(session_id)
    return {"sessionId": session_id, "product": product.to_dict()}
