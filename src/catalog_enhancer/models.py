# Persisted records: field configurations, media assets, products, corpora
# Field names are camelCase on the wire (the stored blobs) and snake_case in Python

import copy
from datetime import datetime, timezone
from typing import Any, Literal, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

FieldType = Literal["text", "html", "media"]
ApplicableTo = Literal["base", "variant", "both"]
FilterOperator = Literal["equals", "contains", "startsWith", "endsWith", "notEquals"]
UserRole = Literal["admin", "manager", "editor"]


def utc_now_iso() -> str:
    """ISO-8601 UTC timestamp with millisecond precision and a Z suffix."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class CamelModel(BaseModel):
    """Base for every stored record: accepts camelCase or snake_case input."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


# ===== Field configuration =====


class GeneralSettings(CamelModel):
    """Fallback requirements/format used when a language entry leaves them blank."""

    requirements: str = ""
    format: str = ""
    skip_language_detection: bool = False


class LanguageSettings(CamelModel):
    requirements: str = ""
    format: str = ""
    whitelist: str = ""
    blacklist: str = ""
    positive_examples: str = ""
    negative_examples: str = ""


class MediaValidation(CamelModel):
    """Structural constraints for media assets. Sizes in KB, dimensions in px."""

    allowed_file_types: list[str] = Field(default_factory=list)
    require_https: bool = False
    aspect_ratio: Optional[str] = None
    allowed_aspect_ratios: list[str] = Field(default_factory=list)
    min_width: Optional[int] = None
    max_width: Optional[int] = None
    min_height: Optional[int] = None
    max_height: Optional[int] = None
    min_file_size: Optional[int] = None
    max_file_size: Optional[int] = None
    media_count_min: Optional[int] = None
    media_count_max: Optional[int] = None
    media_count_optimal: Optional[int] = None

    @property
    def constrains_dimensions(self) -> bool:
        return bool(
            self.min_width or self.max_width or self.min_height or self.max_height
            or self.aspect_ratio or self.allowed_aspect_ratios
        )

    @property
    def constrains_file_size(self) -> bool:
        return bool(self.min_file_size or self.max_file_size)


class SubFieldFilter(CamelModel):
    operator: FilterOperator
    value: str


class FieldConfig(CamelModel):
    """A named content rule for one product attribute."""

    id: str = ""
    name: str
    display_name: Optional[str] = None
    sub_field: Optional[str] = None
    field_type: FieldType = "text"
    applicable_to: ApplicableTo = "base"
    is_active: bool = True
    is_mandatory: bool = False
    quality_threshold: Optional[int] = Field(default=None, ge=0, le=100)
    general: Optional[GeneralSettings] = None
    languages: dict[str, LanguageSettings] = Field(default_factory=dict)
    product_categories: list[str] = Field(default_factory=list)
    context_fields: list[str] = Field(default_factory=list)
    use_claim_list: bool = False
    media_validation: Optional[MediaValidation] = None
    sub_field_filter: Optional[SubFieldFilter] = None

    @property
    def is_universal(self) -> bool:
        return not self.product_categories


# ===== Catalog data =====


class MediaAsset(CamelModel):
    """One media entry of a product. Unknown attributes are kept for subfield filters."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    asset_id: str | int = ""
    code: str = ""
    media_url: str = Field(default="", alias="mediaURL")
    mime: str = ""
    product_content_type: Optional[str] = None
    css_image_section: Optional[str] = None
    name: Optional[str] = None

    @field_validator("asset_id", "code", "media_url", "mime", mode="before")
    @classmethod
    def _null_to_empty(cls, value: Any) -> Any:
        # Catalog exports write null for missing values
        return "" if value is None else value

    def attribute(self, name: str) -> Any:
        """Look up an attribute by its stored (camelCase) or Python name."""
        data = self.model_dump(by_alias=True)
        if name in data:
            return data[name]
        if name in type(self).model_fields:
            return getattr(self, name)
        return None

    @property
    def file_extension(self) -> str:
        if not self.media_url or "." not in self.media_url:
            return ""
        return self.media_url.rsplit(".", 1)[-1].lower()


class _Absent:
    """Sentinel for a product attribute that is not present at all."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "ABSENT"


ABSENT = _Absent()


class Product:
    """Read-only view over a catalog product record (a field-name → value mapping)."""

    def __init__(self, data: Mapping[str, Any]):
        self._data = copy.deepcopy(dict(data))
        self._media: list[MediaAsset] | None = None

    @property
    def code(self) -> str:
        return str(self._data.get("code") or self._data.get("id") or "")

    @property
    def id(self) -> str:
        return str(self._data.get("id") or self.code)

    @property
    def category_name(self) -> str:
        return str(self._data.get("categoryName") or "")

    @property
    def display_name(self) -> str:
        return str(self._data.get("assortmentProductName") or self._data.get("name") or self.code)

    @property
    def media(self) -> list[MediaAsset]:
        if self._media is None:
            self._media = [MediaAsset.model_validate(m) for m in self._data.get("media") or []]
        return self._media

    def get(self, name: str) -> Any:
        """Return the raw attribute value, or ABSENT when missing or null."""
        value = self._data.get(name)
        return ABSENT if value is None else value

    def text(self, name: str) -> str:
        """Return the attribute as text; empty string when absent or not scalar."""
        value = self.get(name)
        if value is ABSENT:
            return ""
        if isinstance(value, str):
            return value
        if isinstance(value, (int, float, bool)):
            return str(value)
        return ""

    def with_value(self, name: str, value: Any) -> "Product":
        data = copy.deepcopy(self._data)
        data[name] = value
        return Product(data)

    def to_dict(self) -> dict[str, Any]:
        return copy.deepcopy(self._data)

    def __contains__(self, name: str) -> bool:
        return self.get(name) is not ABSENT

    def __eq__(self, other: object) -> bool:
        return isinstance(other, Product) and self._data == other._data

    def __repr__(self) -> str:
        return f"Product(code={self.code!r}, category={self.category_name!r})"


# ===== Corpora and ledger =====


class GoldstandardExample(CamelModel):
    id: str = ""
    content: str
    field_name: str
    language: str = "EN"
    categories: list[str] = Field(default_factory=list)
    products: list[str] = Field(default_factory=list)
    created_at: str = Field(default_factory=utc_now_iso)
    source: str = "manual"


class Claim(CamelModel):
    id: str = ""
    claim: str = Field(min_length=1)
    claim_type: str = Field(min_length=1)
    language: str = "EN"
    product_ids: list[str] = Field(min_length=1)
    created_at: str = Field(default_factory=utc_now_iso)


class Actor(CamelModel):
    """Identity recorded in the ledger for every enhancement."""

    id: str
    name: str
    email: str = ""
    role: UserRole = "editor"


class HistoryEntry(CamelModel):
    timestamp: str = Field(default_factory=utc_now_iso)
    user: Actor
    product_id: str
    product_code: str
    field: str
    before: str = ""
    after: str = ""
    language: Optional[str] = None
