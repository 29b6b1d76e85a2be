# Field rule resolution
# Layers language settings over general defaults, matches subfield filters,
# selects the configuration that governs a field for a given product category,
# and restates active constraints as human-readable criteria.

from dataclasses import dataclass
from typing import Any, Optional

from catalog_enhancer.config_loader import FALLBACK_LANGUAGE
from catalog_enhancer.models import (
    ABSENT,
    FieldConfig,
    LanguageSettings,
    MediaAsset,
    Product,
    SubFieldFilter,
)


@dataclass
class EffectiveRule:
    requirements: str = ""
    format: str = ""
    whitelist: str = ""
    blacklist: str = ""
    positive_examples: str = ""
    negative_examples: str = ""
    skip_language_detection: bool = False


def language_settings(
    field: FieldConfig,
    language: str,
    fallback_to_default_language: bool = False,
) -> LanguageSettings:
    """Return the language entry for ``language``.

    With ``fallback_to_default_language`` a missing entry falls back to the
    EN entry. Always returns a settings object, empty when nothing matches.
    """
    settings = field.languages.get(language)
    if settings is None and fallback_to_default_language:
        settings = field.languages.get(FALLBACK_LANGUAGE)
    return settings or LanguageSettings()


def resolve_rule(
    field: FieldConfig,
    language: str,
    fallback_to_default_language: bool = False,
) -> EffectiveRule:
    """Resolve the effective rule of ``field`` for ``language``.

    Requirements and format take the language value when non-empty, then the
    general value, then "". Whitelist, blacklist and examples are per-language
    only. skipLanguageDetection is general-only.
    """
    lang = language_settings(field, language, fallback_to_default_language)
    general = field.general
    return EffectiveRule(
        requirements=lang.requirements or (general.requirements if general else "") or "",
        format=lang.format or (general.format if general else "") or "",
        whitelist=lang.whitelist or "",
        blacklist=lang.blacklist or "",
        positive_examples=lang.positive_examples or "",
        negative_examples=lang.negative_examples or "",
        skip_language_detection=bool(general and general.skip_language_detection),
    )


def matches_subfield_filter(asset: MediaAsset, sub_field: str, subfield_filter: SubFieldFilter) -> bool:
    """Case-sensitive string predicate over one asset attribute.

    A missing or empty attribute never matches, not even for notEquals.
    """
    raw = asset.attribute(sub_field)
    if raw is None or raw is ABSENT:
        return False
    value = _as_string(raw)
    if not value:
        return False

    target = subfield_filter.value
    op = subfield_filter.operator
    if op == "equals":
        return value == target
    if op == "contains":
        return target in value
    if op == "startsWith":
        return value.startswith(target)
    if op == "endsWith":
        return value.endswith(target)
    if op == "notEquals":
        return value != target
    return False


def _as_string(value: Any) -> str:
    # Mirror how the catalog renders scalar values (true/false, no trailing .0)
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def field_applies_to_category(field: FieldConfig, category_name: str) -> bool:
    return field.is_universal or category_name in field.product_categories


def select_field_config(
    fields: list[FieldConfig],
    name: str,
    category_name: str,
    sub_field: Optional[str] = None,
    ignore_case: bool = False,
) -> Optional[FieldConfig]:
    """Pick the active configuration governing ``name`` for a category.

    Configurations that list the category outrank universal ones; within each
    group the first in list order wins. When ``sub_field`` is None only
    configurations without a subfield are considered.
    """
    candidates = [
        f for f in matching_configs(fields, name, sub_field, ignore_case)
        if field_applies_to_category(f, category_name)
    ]
    specific = [f for f in candidates if not f.is_universal]
    if specific:
        return specific[0]
    return candidates[0] if candidates else None


def matching_configs(
    fields: list[FieldConfig],
    name: str,
    sub_field: Optional[str] = None,
    ignore_case: bool = False,
) -> list[FieldConfig]:
    """Active configurations with this name and subfield, in list order."""

    def same(a: str, b: str) -> bool:
        return a.lower() == b.lower() if ignore_case else a == b

    return [
        f for f in fields
        if f.is_active
        and same(f.name, name)
        and (f.sub_field or None) == (sub_field or None)
    ]


def first_media_config(fields: list[FieldConfig], category_name: str) -> Optional[FieldConfig]:
    """First active media configuration applicable to the category, in list order."""
    for f in fields:
        if f.field_type == "media" and f.is_active and field_applies_to_category(f, category_name):
            return f
    return None


def fields_for_product(product: Product, fields: list[FieldConfig]) -> list[FieldConfig]:
    """Active, subfield-free text/HTML configurations that apply to the product.

    Mandatory fields are included even when the product lacks a value; other
    fields are included only when the product carries the attribute.
    """
    result: list[FieldConfig] = []
    seen: set[str] = set()
    for f in fields:
        if not f.is_active or f.sub_field or f.field_type == "media":
            continue
        if not field_applies_to_category(f, product.category_name):
            continue
        if f.name in seen:
            continue
        if f.is_mandatory or product.get(f.name) is not ABSENT:
            result.append(f)
            seen.add(f.name)
    return result


# ===== Criteria =====


def build_validation_criteria(field: FieldConfig, language: str) -> list[str]:
    rule = resolve_rule(field, language, fallback_to_default_language=True)
    criteria: list[str] = []
    if rule.requirements:
        criteria.append(f"Requirements: {rule.requirements}")
    if rule.format:
        criteria.append(f"Format: {rule.format}")
    if rule.whitelist:
        criteria.append(f"Must include terms: {rule.whitelist}")
    if rule.blacklist:
        criteria.append(f"Must not include terms: {rule.blacklist}")
    criteria.append(f"Language: {language}")
    return criteria


def _range(low: Optional[int], high: Optional[int], unit: str = "") -> str:
    parts = []
    if low:
        parts.append(f"min: {low}{unit}")
    if high:
        parts.append(f"max: {high}{unit}")
    return ", ".join(parts)


def build_media_validation_criteria(field: FieldConfig) -> list[str]:
    mv = field.media_validation
    if mv is None:
        return ["No specific media validation rules defined"]

    criteria: list[str] = []
    if mv.require_https:
        criteria.append("HTTPS URLs required")
    if mv.allowed_file_types:
        criteria.append(f"Allowed file types: {', '.join(mv.allowed_file_types)}")
    if mv.aspect_ratio:
        criteria.append(f"Required aspect ratio: {mv.aspect_ratio}")
    if mv.allowed_aspect_ratios:
        criteria.append(f"Allowed aspect ratios: {', '.join(mv.allowed_aspect_ratios)}")
    if mv.min_width or mv.max_width:
        criteria.append(f"Width constraints: {_range(mv.min_width, mv.max_width, 'px')}")
    if mv.min_height or mv.max_height:
        criteria.append(f"Height constraints: {_range(mv.min_height, mv.max_height, 'px')}")
    if mv.min_file_size or mv.max_file_size:
        criteria.append(f"File size constraints: {_range(mv.min_file_size, mv.max_file_size, 'KB')}")
    if mv.media_count_min or mv.media_count_max or mv.media_count_optimal:
        count = _range(mv.media_count_min, mv.media_count_max)
        if mv.media_count_optimal:
            count = ", ".join(p for p in (count, f"optimal: {mv.media_count_optimal}") if p)
        criteria.append(f"Asset count requirements: {count}")
    return criteria
