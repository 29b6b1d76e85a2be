"""Field configuration API.

Implements:
  GET    /api/fields             list every field configuration
  POST   /api/fields             create a field
  PUT    /api/fields             replace the whole collection (import)
  GET    /api/fields/{id}        fetch one field
  PATCH  /api/fields/{id}        partial update
  DELETE /api/fields/{id}        delete
  POST   /api/fields/{id}/copy   duplicate as an inactive "<name> (Copy)"

Duplicate name/category overlaps are rejected with 409, unknown ids with 404.
"""

import logging
from typing import Annotated, Any

from fastapi import APIRouter, Body, Depends, HTTPException, Response
from pydantic import ValidationError

from catalog_enhancer.errors import FieldConfigError
from catalog_enhancer.field_registry import FieldRegistry

from app.deps import get_registry

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/fields", tags=["fields"])

Registry = Annotated[FieldRegistry, Depends(get_registry)]


def _raise_for(e: FieldConfigError) -> None:
    raise HTTPException(status_code=404 if e.not_found else 409, detail=str(e))


def _raise_invalid(e: ValidationError) -> None:
    raise HTTPException(status_code=422, detail=e.errors(include_url=False))


@router.get("")
def list_fields(registry: Registry) -> dict:
    fields = registry.list()
    return {"fields": [f.to_dict() for f in fields], "total": len(fields)}


@router.post("", status_code=201)
def create_field(registry: Registry, body: Annotated[dict[str, Any], Body()]) -> dict:
    try:
        return registry.add(body).to_dict()
    except ValidationError as e:
        _raise_invalid(e)
    except FieldConfigError as e:
        _raise_for(e)


@router.put("")
def import_fields(registry: Registry, body: Annotated[list[dict[str, Any]], Body()]) -> dict:
    try:
        fields = registry.import_fields(body)
    except ValidationError as e:
        _raise_invalid(e)
    return {"fields": [f.to_dict() for f in fields], "total": len(fields)}


@router.get("/{field_id}")
def get_field(field_id: str, registry: Registry) -> dict:
    try:
        return registry.get(field_id).to_dict()
    except FieldConfigError as e:
        _raise_for(e)


@router.patch("/{field_id}")
def update_field(field_id: str, registry: Registry, body: Annotated[dict[str, Any], Body()]) -> dict:
    try:
        return registry.update(field_id, body).to_dict()
    except ValidationError as e:
        _raise_invalid(e)
    except FieldConfigError as e:
        _raise_for(e)


@router.delete("/{field_id}", status_code=204)
def delete_field(field_id: str, registry: Registry) -> Response:
    try:
        registry.delete(field_id)
    except FieldConfigError as e:
        _raise_for(e)
    return Response(status_code=204)


@router.post("/{field_id}/copy", status_code=201)
def copy_field(field_id: str, registry: Registry) -> dict:
    try:
        return registry.copy(field_id).to_dict()
    except FieldConfigError as e:
        _raise_for(e)
