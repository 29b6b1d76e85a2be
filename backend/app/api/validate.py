"""Validation API: run one validation branch for one product field."""

import logging
from typing import Annotated, Any

from fastapi import APIRouter, Depends

from catalog_enhancer.field_registry import FieldRegistry
from catalog_enhancer.models import CamelModel, Product
from catalog_enhancer.validation import ValidationEngine

from app.deps import get_registry, get_validator

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/validate", tags=["validate"])


class ValidateRequest(CamelModel):
    """``fieldName`` may be a field, "main > sub", "media-count" or "media-<assetId>"."""

    product: dict[str, Any]
    field_name: str
    language: str = "EN"


@router.post("")
async def validate(
    body: ValidateRequest,
    registry: Annotated[FieldRegistry, Depends(get_registry)],
    engine: Annotated[ValidationEngine, Depends(get_validator)],
) -> dict:
    product = Product(body.product)
    result = await engine.validate_content(product, body.field_name, registry.list(), body.language)
    logger.info(
        "Validated %s", body.field_name,
        extra={"product_code": product.code, "field_name": body.field_name, "passed": result.passed},
    )
    return result.to_dict()
