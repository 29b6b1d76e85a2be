"""Field configuration registry.

Owns the ``fields`` blob: the single source of truth for every validation and
enhancement decision. Writes are checked before anything is persisted; a
rejected write leaves the stored collection untouched.

Uniqueness rule: two fields may share a name (case-insensitive) only when
their category sets do not overlap. A field with an empty (universal)
category set coexists with any other field of the same name.
"""

from __future__ import annotations

import logging
import uuid
from typing import Any, Iterable, Optional

from catalog_enhancer.config_loader import DEFAULT_FIELDS
from catalog_enhancer.errors import FieldConfigError
from catalog_enhancer.models import FieldConfig
from catalog_enhancer.storage import FIELDS, BlobStore

logger = logging.getLogger(__name__)

DUPLICATE_MESSAGE = (
    "A field with this name already exists for one or more of the selected product categories"
)


def _new_id() -> str:
    return str(uuid.uuid4())


def is_duplicate(candidate: FieldConfig, existing: Iterable[FieldConfig]) -> bool:
    """True when ``candidate`` collides with any field in ``existing`` other than itself."""
    for field in existing:
        if candidate.id and field.id == candidate.id:
            continue
        if field.name.lower() != candidate.name.lower():
            continue
        if not field.product_categories or not candidate.product_categories:
            continue
        if set(field.product_categories) & set(candidate.product_categories):
            return True
    return False


class FieldRegistry:
    """CRUD over field configurations, seeded with DEFAULT_FIELDS when empty."""

    def __init__(self, store: BlobStore, seed: bool = True) -> None:
        self._store = store
        if seed and not self._store.load(FIELDS, []):
            seeded = [FieldConfig.model_validate({**f, "id": _new_id()}) for f in DEFAULT_FIELDS]
            self._save(seeded)
            logger.info("Seeded %d default fields", len(seeded))

    def list(self) -> list[FieldConfig]:
        return [FieldConfig.model_validate(f) for f in self._store.load(FIELDS, [])]

    def get(self, field_id: str) -> FieldConfig:
        for field in self.list():
            if field.id == field_id:
                return field
        raise FieldConfigError(f"Field {field_id} not found", not_found=True)

    def add(self, data: dict[str, Any] | FieldConfig) -> FieldConfig:
        payload = data.model_dump() if isinstance(data, FieldConfig) else dict(data)
        payload["id"] = _new_id()
        field = FieldConfig.model_validate(payload)

        fields = self.list()
        if is_duplicate(field, fields):
            raise FieldConfigError(DUPLICATE_MESSAGE)

        fields.append(field)
        self._save(fields)
        logger.info("Added field", extra={"field_id": field.id, "field_name": field.name})
        return field

    def update(self, field_id: str, changes: dict[str, Any]) -> FieldConfig:
        """Apply a partial update. ``changes`` may use camelCase or snake_case keys."""
        fields = self.list()
        index = self._index_of(fields, field_id)

        merged = fields[index].to_dict()
        merged.update(FieldConfig.model_validate({"name": "_", **changes}).model_dump(
            by_alias=True, include=self._changed_keys(changes)
        ))
        merged["id"] = field_id
        updated = FieldConfig.model_validate(merged)

        if is_duplicate(updated, fields):
            raise FieldConfigError(DUPLICATE_MESSAGE)

        fields[index] = updated
        self._save(fields)
        logger.info("Updated field", extra={"field_id": field_id, "field_name": updated.name})
        return updated

    def delete(self, field_id: str) -> None:
        fields = self.list()
        index = self._index_of(fields, field_id)
        removed = fields.pop(index)
        self._save(fields)
        logger.info("Deleted field", extra={"field_id": field_id, "field_name": removed.name})

    def copy(self, field_id: str) -> FieldConfig:
        """Duplicate a field as an inactive "<name> (Copy)" / "(Copy N)"."""
        fields = self.list()
        source = fields[self._index_of(fields, field_id)]

        names = {f.name for f in fields}
        copy_name = f"{source.name} (Copy)"
        number = 1
        while copy_name in names:
            number += 1
            copy_name = f"{source.name} (Copy {number})"

        clone = source.model_copy(
            update={"id": _new_id(), "name": copy_name, "is_active": False}, deep=True
        )
        fields.append(clone)
        self._save(fields)
        return clone

    def import_fields(self, items: list[dict[str, Any]]) -> list[FieldConfig]:
        """Replace the whole collection. Every imported field gets a fresh id."""
        fields = [FieldConfig.model_validate({**item, "id": _new_id()}) for item in items]
        self._save(fields)
        logger.info("Imported %d fields", len(fields))
        return fields

    def find(self, name: str) -> Optional[FieldConfig]:
        """First field with this exact name, active or not."""
        for field in self.list():
            if field.name == name:
                return field
        return None

    # ------------------------------------------------------------------

    @staticmethod
    def _changed_keys(changes: dict[str, Any]) -> set[str]:
        keys = set()
        for key in changes:
            for name, info in FieldConfig.model_fields.items():
                if key in (name, info.alias):
                    keys.add(name)
        return keys

    @staticmethod
    def _index_of(fields: list[FieldConfig], field_id: str) -> int:
        for i, field in enumerate(fields):
            if field.id == field_id:
                return i
        raise FieldConfigError(f"Field {field_id} not found", not_found=True)

    def _save(self, fields: list[FieldConfig]) -> None:
        self._store.save(FIELDS, [f.to_dict() for f in fields])
