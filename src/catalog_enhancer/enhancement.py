# Quality evaluation and content generation for a single field
# Prompt assembly: base template + effective rule + goldstandard examples
# + sibling-field context + verbatim product claims

import logging
from typing import Optional

from catalog_enhancer.client import ContentModel
from catalog_enhancer.config_loader import (
    CLAIMS_BLOCK,
    CONTENT_OPTIMIZER_SYSTEM_PROMPT,
    CONTEXT_BLOCK,
    ENHANCE_PROMPT,
    GENERATE_PROMPT,
    NO_EXAMPLES_PLACEHOLDER,
    QUALITY_EXAMPLES_BLOCK,
    QUALITY_PROMPT,
    QUALITY_SYSTEM_PROMPT,
)
from catalog_enhancer.corpus import ClaimsRepository, GoldstandardRepository
from catalog_enhancer.errors import EnhancementError
from catalog_enhancer.field_rules import resolve_rule
from catalog_enhancer.models import Claim, FieldConfig, GoldstandardExample, Product
from catalog_enhancer.state import EnhancementResult, QualityRating
from catalog_enhancer.validation import QualityPayload, parse_model_json

logger = logging.getLogger(__name__)

MISSING_REMARKS = "missing"
QUALITY_ERROR_REMARKS = "Error evaluating content quality"
GENERATION_TEMPERATURE = 0.7


# ===== Quality evaluation =====


def build_quality_prompt(
    field: FieldConfig,
    content: str,
    language: str,
    examples: list[GoldstandardExample],
) -> str:
    rule = resolve_rule(field, language)
    examples_block = ""
    if examples:
        examples_block = QUALITY_EXAMPLES_BLOCK.format(
            examples="\n\n".join(ex.content for ex in examples)
        )
    return QUALITY_PROMPT.format(
        field_name=field.name,
        requirements=rule.requirements,
        format=rule.format,
        whitelist=rule.whitelist,
        blacklist=rule.blacklist,
        language=language,
        examples_block=examples_block,
        content=content,
    )


async def evaluate_content_quality(
    model: ContentModel,
    goldstandard: GoldstandardRepository,
    field: FieldConfig,
    content: str,
    language: str,
) -> QualityRating:
    """Rate existing content 0-100.

    Empty content is rated 0 ("missing") without calling the model. Any model
    or parsing failure yields a 0 rating instead of raising.
    """
    if not content or not content.strip():
        return QualityRating(0, MISSING_REMARKS)

    examples = goldstandard.find_by_field_and_language(field.name, language)
    prompt = build_quality_prompt(field, content, language, examples)
    try:
        text = await model.complete(QUALITY_SYSTEM_PROMPT, prompt)
        rating = parse_model_json(text, QualityPayload).to_rating()
    except Exception as e:
        logger.warning(
            "Quality evaluation of %s failed: %s", field.name, e,
            extra={"field_name": field.name, "language": language},
        )
        return QualityRating(0, QUALITY_ERROR_REMARKS)

    logger.info(
        "Quality of %s rated %d", field.name, rating.rating,
        extra={"field_name": field.name, "language": language},
    )
    return rating


# ===== Enhancement =====


def format_bullets(items: list[str]) -> str:
    cleaned = [item.strip() for item in items if item and item.strip()]
    if not cleaned:
        return NO_EXAMPLES_PLACEHOLDER
    return "\n".join(f"• {item}" for item in cleaned)


def build_context_block(field: FieldConfig, product: Optional[Product]) -> str:
    """Sibling field values from the working snapshot; empty values are left out."""
    if product is None or not field.context_fields:
        return ""
    parts = []
    for name in field.context_fields:
        value = product.text(name)
        if value.strip():
            parts.append(f"{name}: {value}")
    if not parts:
        return ""
    return CONTEXT_BLOCK.format(context_parts="\n\n".join(parts))


def build_claims_block(claims: list[Claim]) -> str:
    if not claims:
        return ""
    return CLAIMS_BLOCK.format(claim_texts="\n".join(f"• {c.claim}" for c in claims))


def build_enhancement_prompt(
    field: FieldConfig,
    current_value: str,
    language: str,
    examples: list[GoldstandardExample],
    product: Optional[Product] = None,
    claims: Optional[list[Claim]] = None,
) -> str:
    """Compose the generation prompt.

    Uses the "generate" template when ``current_value`` is blank and the
    "enhance" template otherwise.
    """
    rule = resolve_rule(field, language)
    values = {
        "field_name": field.name,
        "requirements": rule.requirements,
        "format": rule.format,
        "whitelist": rule.whitelist,
        "blacklist": rule.blacklist,
        "positive_examples": format_bullets([ex.content for ex in examples]),
        "negative_examples": format_bullets(rule.negative_examples.split(",")),
        "language": language,
    }
    if current_value and current_value.strip():
        base = ENHANCE_PROMPT.format(current_value=current_value, **values)
    else:
        base = GENERATE_PROMPT.format(**values)

    claims_block = build_claims_block(claims or []) if field.use_claim_list else ""
    return base + build_context_block(field, product) + claims_block


async def enhance_field(
    model: ContentModel,
    goldstandard: GoldstandardRepository,
    claims: ClaimsRepository,
    field: FieldConfig,
    current_value: str,
    language: str,
    product: Optional[Product] = None,
) -> EnhancementResult:
    """Generate a new value for ``field``.

    Raises:
        EnhancementError: the model failed or returned nothing
    """
    examples = goldstandard.find_by_field_and_language(field.name, language)
    product_claims: list[Claim] = []
    if field.use_claim_list and product is not None:
        product_claims = claims.find_by_product_and_language(product.code, language)

    prompt = build_enhancement_prompt(field, current_value, language, examples, product, product_claims)
    try:
        text = await model.complete(CONTENT_OPTIMIZER_SYSTEM_PROMPT, prompt, temperature=GENERATION_TEMPERATURE)
    except Exception as e:
        logger.error(
            "Enhancement of %s failed: %s", field.name, e,
            extra={"field_name": field.name, "language": language},
        )
        raise EnhancementError(str(e)) from e

    value = (text or "").strip()
    if not value:
        raise EnhancementError(f"Empty content generated for {field.name}")

    logger.info(
        "Generated %s content for %s",
        "new" if not (current_value or "").strip() else "enhanced",
        field.name,
        extra={"field_name": field.name, "language": language, "content_length": len(value)},
    )
    return EnhancementResult(value=value, prompt=prompt)
