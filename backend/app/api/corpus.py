"""Goldstandard examples and product claims API."""

import logging
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, HTTPException, Response
from pydantic import ValidationError

from catalog_enhancer.corpus import SOURCE_MANUAL, ClaimsRepository, GoldstandardRepository
from catalog_enhancer.models import CamelModel

from app.deps import get_claims, get_goldstandard

logger = logging.getLogger(__name__)

router = APIRouter(tags=["corpus"])

Goldstandard = Annotated[GoldstandardRepository, Depends(get_goldstandard)]
Claims = Annotated[ClaimsRepository, Depends(get_claims)]


class GoldstandardRequest(CamelModel):
    field_name: str
    content: str
    language: str = "EN"
    categories: list[str] = []
    products: list[str] = []


class ClaimRequest(CamelModel):
    claim: str = ""
    claim_type: str = ""
    product_ids: list[str] = []
    language: str = "EN"


# ---------------------------------------------------------------------------
# Goldstandard
# ---------------------------------------------------------------------------


@router.get("/api/goldstandard")
def list_goldstandard(
    repo: Goldstandard,
    field_name: Optional[str] = None,
    language: Optional[str] = None,
) -> dict:
    if field_name is not None and language is not None:
        examples = repo.find_by_field_and_language(field_name, language)
    else:
        examples = [
            ex for ex in repo.list()
            if (field_name is None or ex.field_name == field_name)
            and (language is None or ex.language == language)
        ]
    return {"examples": [ex.to_dict() for ex in examples], "total": len(examples)}


@router.post("/api/goldstandard", status_code=201)
def add_goldstandard(body: GoldstandardRequest, repo: Goldstandard) -> dict:
    if not body.field_name.strip() or not body.content.strip():
        raise HTTPException(status_code=422, detail="fieldName and content are required")
    example = repo.add(
        field_name=body.field_name,
        content=body.content,
        language=body.language,
        categories=body.categories,
        products=body.products,
        source=SOURCE_MANUAL,
    )
    if example is None:
        raise HTTPException(status_code=409, detail="An identical example already exists")
    return example.to_dict()


@router.delete("/api/goldstandard/{example_id}", status_code=204)
def delete_goldstandard(example_id: str, repo: Goldstandard) -> Response:
    if not repo.delete(example_id):
        raise HTTPException(status_code=404, detail="Example not found")
    return Response(status_code=204)


# ---------------------------------------------------------------------------
# Claims
# ---------------------------------------------------------------------------


@router.get("/api/claims")
def list_claims(
    repo: Claims,
    product_code: Optional[str] = None,
    language: Optional[str] = None,
) -> dict:
    if product_code is not None:
        claims = repo.find_by_product_and_language(product_code, language or "EN")
    else:
        claims = [c for c in repo.list() if language is None or c.language == language]
    return {"claims": [c.to_dict() for c in claims], "total": len(claims)}


@router.post("/api/claims", status_code=201)
def add_claim(body: ClaimRequest, repo: Claims) -> dict:
    try:
        claim = repo.add(
            claim=body.claim.strip(),
            claim_type=body.claim_type.strip(),
            product_ids=[p.strip() for p in body.product_ids if p.strip()],
            language=body.language,
        )
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=e.errors(include_url=False))
    return claim.to_dict()


@router.delete("/api/claims/{claim_id}", status_code=204)
def delete_claim(claim_id: str, repo: Claims) -> Response:
    if not repo.delete(claim_id):
        raise HTTPException(status_code=404, detail="Claim not found")
    return Response(status_code=204)
