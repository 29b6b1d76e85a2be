"""Validation engine: one verdict for one field of one product.

Dispatch order for ``validate_content``:

1. ``media-count``       asset count against min/max/optimal
2. ``media-<assetId>``   one asset, URL/HTTPS/file type only
3. subfield media rule   structural checks on the assets matching a filter
4. whole media field     structural checks on every asset
5. text / html           judgment requested from the content model

Branches 3 and 4 probe every asset concurrently; one asset's probe failing
never affects another's. Branch 5 never raises for model problems: any
failure becomes a deterministic failed verdict.
"""

import asyncio
import json
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional

from pydantic import BaseModel, Field, ValidationError

from catalog_enhancer.client import ContentModel, extract_json_from_response
from catalog_enhancer.config_loader import (
    DEFAULT_MEDIA_COUNT_MAX,
    DEFAULT_MEDIA_COUNT_MIN,
    DEFAULT_MEDIA_COUNT_OPTIMAL,
    LANGUAGE_CHECK_BLOCK,
    LANGUAGE_CHECK_DISABLED_BLOCK,
    LANGUAGE_CRITERION,
    LANGUAGE_NAMES,
    MEDIA_ASSET_FIELD_PREFIX,
    MEDIA_COUNT_FIELD,
    SUBFIELD_SEPARATOR,
    VALIDATION_EXAMPLES_BLOCK,
    VALIDATION_PROMPT,
    VALIDATOR_SYSTEM_PROMPT,
)
from catalog_enhancer.corpus import GoldstandardRepository
from catalog_enhancer.field_rules import (
    build_media_validation_criteria,
    build_validation_criteria,
    first_media_config,
    matches_subfield_filter,
    matching_configs,
    resolve_rule,
    select_field_config,
)
from catalog_enhancer.media_analysis import (
    MediaAnalysis,
    analyze_media_asset,
    to_kb,
    validate_aspect_ratio,
    validate_dimensions,
    validate_file_size,
)
from catalog_enhancer.models import FieldConfig, MediaAsset, MediaValidation, Product
from catalog_enhancer.state import QualityRating, ValidationResult

logger = logging.getLogger(__name__)

VALIDATION_ERROR_ISSUE = "An error occurred during validation. Please try again."

Analyzer = Callable[[str], Awaitable[MediaAnalysis]]


# ===== Model response payloads =====


class QualityPayload(BaseModel):
    rating: float = Field(allow_inf_nan=False)
    remarks: str = ""

    def to_rating(self) -> QualityRating:
        return QualityRating(rating=max(0, min(100, int(round(self.rating)))), remarks=self.remarks)


class ValidationPayload(BaseModel):
    passed: bool
    issues: list[str] = []
    quality: Optional[QualityPayload] = None


def parse_model_json(text: str, payload: type[BaseModel]) -> BaseModel:
    """Strip fences/prose and validate. Raises ValueError on anything malformed."""
    try:
        return payload.model_validate(json.loads(extract_json_from_response(text)))
    except (json.JSONDecodeError, ValidationError) as e:
        raise ValueError(f"Malformed model response: {e}") from e


# ===== Per-asset structural checks =====


@dataclass
class AssetCheck:
    issues: list[str]
    quality: int  # weighted score, floored at 0

    @property
    def passed(self) -> bool:
        return not self.issues


def _file_type_issue(asset: MediaAsset, mv: MediaValidation) -> Optional[str]:
    if not mv.allowed_file_types:
        return None
    ext = asset.file_extension
    if ext and ext in mv.allowed_file_types:
        return None
    return f"File type '{ext or 'unknown'}' not allowed. Accepted types: {', '.join(mv.allowed_file_types)}"


def check_asset(asset: MediaAsset, analysis: MediaAnalysis, mv: Optional[MediaValidation]) -> AssetCheck:
    """Run every structural check on one asset and score it.

    Deductions: missing URL 50, HTTPS 25, file type 20, each dimension
    violation 15, each aspect-ratio violation 20, each file-size violation
    15, unanalysable dimensions or size when constrained 10, probe error 5.
    """
    prefix = f"Asset {asset.asset_id}: "
    issues: list[str] = []
    quality = 100

    if not asset.media_url:
        return AssetCheck(issues=[f"{prefix}Missing URL"], quality=50)

    if mv is not None:
        if mv.require_https and not asset.media_url.startswith("https://"):
            issues.append(f"{prefix}URL must use HTTPS protocol")
            quality -= 25

        type_issue = _file_type_issue(asset, mv)
        if type_issue:
            issues.append(prefix + type_issue)
            quality -= 20

        if analysis.dimensions is not None:
            for issue in validate_dimensions(
                analysis.dimensions, mv.min_width, mv.max_width, mv.min_height, mv.max_height
            ):
                issues.append(prefix + issue)
                quality -= 15
            for issue in validate_aspect_ratio(
                analysis.dimensions, mv.aspect_ratio, mv.allowed_aspect_ratios
            ):
                issues.append(prefix + issue)
                quality -= 20
        elif mv.constrains_dimensions:
            issues.append(f"{prefix}Could not analyze dimensions for validation")
            quality -= 10

        if analysis.file_size:
            for issue in validate_file_size(analysis.file_size, mv.min_file_size, mv.max_file_size):
                issues.append(prefix + issue)
                quality -= 15
        elif mv.constrains_file_size:
            issues.append(f"{prefix}Could not analyze file size for validation")
            quality -= 10

    if analysis.error:
        issues.append(f"{prefix}Analysis error - {analysis.error}")
        quality -= 5

    return AssetCheck(issues=issues, quality=max(0, quality))


def media_count_quality(count: int, minimum: int, maximum: int, optimal: int) -> int:
    if count < minimum:
        return max(0, 50 - (minimum - count) * 25)
    if count > maximum:
        return max(0, 70 - (count - maximum) * 5)
    if count != optimal:
        return max(70, 100 - abs(count - optimal) * 10)
    return 100


def _language_rules() -> str:
    return "\n".join(
        f"- {code}: Content should be primarily in {name}" for code, name in LANGUAGE_NAMES.items()
    )


class ValidationEngine:
    """Produces ValidationResult verdicts.

    Args:
        model: content model used for text/HTML judgments
        goldstandard: exemplar corpus injected into judgment prompts
        analyzer: async media probe, ``analyze_media_asset`` by default
    """

    def __init__(
        self,
        model: ContentModel,
        goldstandard: GoldstandardRepository,
        analyzer: Analyzer = analyze_media_asset,
    ) -> None:
        self.model = model
        self.goldstandard = goldstandard
        self.analyzer = analyzer

    async def validate_content(
        self,
        product: Product,
        field_name: str,
        fields: list[FieldConfig],
        language: str = "EN",
    ) -> ValidationResult:
        if field_name == MEDIA_COUNT_FIELD:
            result = self.validate_media_count(product, fields)
        elif field_name.startswith(MEDIA_ASSET_FIELD_PREFIX):
            asset_id = field_name[len(MEDIA_ASSET_FIELD_PREFIX):]
            result = self.validate_media_asset(product, asset_id, fields)
        else:
            result = await self._validate_configured(product, field_name, fields, language)

        logger.info(
            "Validated %s: %s",
            field_name,
            "passed" if result.passed else f"failed with {len(result.issues)} issues",
            extra={
                "product_code": product.code,
                "field_name": field_name,
                "language": language,
                "quality": result.quality.rating if result.quality else None,
            },
        )
        return result

    async def _validate_configured(
        self,
        product: Product,
        field_name: str,
        fields: list[FieldConfig],
        language: str,
    ) -> ValidationResult:
        sub_field = None
        name = field_name
        if SUBFIELD_SEPARATOR in field_name:
            name, sub_field = field_name.split(SUBFIELD_SEPARATOR, 1)

        if not matching_configs(fields, name, sub_field):
            return ValidationResult(
                passed=False,
                issues=["Field configuration not found"],
                validation_criteria=["No active field configuration found"],
            )

        field = select_field_config(fields, name, product.category_name, sub_field)
        if field is None:
            return ValidationResult(
                passed=False,
                issues=["No field configuration applies to this product category"],
                validation_criteria=["No field configuration applies to this product category"],
            )

        if field.sub_field:
            return await self.validate_subfield(product, field)
        if field.field_type == "media":
            return await self.validate_media_field(product, field)

        content = product.text(field.name)
        return await self.validate_text(field, content, language)

    # ----- 1. media count -----

    def validate_media_count(self, product: Product, fields: list[FieldConfig]) -> ValidationResult:
        media_field = first_media_config(fields, product.category_name)
        if media_field is None:
            return ValidationResult(
                passed=True,
                quality=QualityRating(50, "No media requirements defined for this product category"),
                validation_criteria=["No media field configuration found for this product category"],
            )

        mv = media_field.media_validation or MediaValidation()
        minimum = mv.media_count_min or DEFAULT_MEDIA_COUNT_MIN
        maximum = mv.media_count_max or DEFAULT_MEDIA_COUNT_MAX
        optimal = mv.media_count_optimal or DEFAULT_MEDIA_COUNT_OPTIMAL
        count = len(product.media)

        issues = []
        if count < minimum:
            issues.append(f"Insufficient media assets. Minimum required: {minimum}, found: {count}")
        if count > maximum:
            issues.append(f"Too many media assets. Maximum allowed: {maximum}, found: {count}")

        if issues:
            remarks = f"Media count issues: {', '.join(issues)}"
        elif count == optimal:
            remarks = f"Optimal number of media assets ({count})"
        else:
            remarks = f"Acceptable number of media assets ({count})"

        return ValidationResult(
            passed=not issues,
            issues=issues,
            quality=QualityRating(media_count_quality(count, minimum, maximum, optimal), remarks),
            validation_criteria=[
                f"Minimum assets required: {minimum}",
                f"Maximum assets allowed: {maximum}",
                f"Optimal asset count: {optimal}",
                f"Current asset count: {count}",
            ],
        )

    # ----- 2. single asset -----

    def validate_media_asset(
        self, product: Product, asset_id: str, fields: list[FieldConfig]
    ) -> ValidationResult:
        """URL, HTTPS and file type of one asset. No network probing here."""
        media_field = first_media_config(fields, product.category_name)
        if media_field is None:
            return ValidationResult(
                passed=False,
                issues=["No media field configuration found for this product category"],
                quality=QualityRating(0, "Cannot validate without field configuration"),
                validation_criteria=["No active media field configuration found for this product category"],
            )

        asset = next((a for a in product.media if str(a.asset_id) == asset_id), None)
        if asset is None:
            return ValidationResult(
                passed=False,
                issues=[f'Asset "{asset_id}" not found'],
                quality=QualityRating(0, "Asset does not exist"),
                validation_criteria=build_media_validation_criteria(media_field),
            )

        mv = media_field.media_validation
        if mv is None:
            return ValidationResult(
                passed=True,
                quality=QualityRating(100, "No validation rules defined for media assets"),
                validation_criteria=["No specific media validation rules defined"],
            )

        issues = []
        if not asset.media_url:
            issues.append("Missing URL")
        else:
            if mv.require_https and not asset.media_url.startswith("https://"):
                issues.append("URL must use HTTPS protocol")
            type_issue = _file_type_issue(asset, mv)
            if type_issue:
                issues.append(type_issue)

        return ValidationResult(
            passed=not issues,
            issues=issues,
            quality=QualityRating(
                max(0, 100 - 25 * len(issues)),
                "Asset meets all required specifications" if not issues
                else f"Asset has {len(issues)} validation issues",
            ),
            validation_criteria=build_media_validation_criteria(media_field),
        )

    # ----- 3. subfield-filtered media -----

    async def validate_subfield(self, product: Product, field: FieldConfig) -> ValidationResult:
        if not field.sub_field or field.sub_field_filter is None:
            return ValidationResult(
                passed=False,
                issues=["Subfield configuration incomplete"],
                validation_criteria=["Subfield configuration is incomplete"],
            )
        if field.field_type != "media":
            return ValidationResult(
                passed=False,
                issues=["Subfield validation only supported for media fields"],
                validation_criteria=["Subfield validation only supported for media fields"],
            )

        sub, flt = field.sub_field, field.sub_field_filter
        filter_text = f'{sub} {flt.operator} "{flt.value}"'
        assets = product.media
        flags = [matches_subfield_filter(a, sub, flt) for a in assets]
        matching = [a for a, ok in zip(assets, flags) if ok]

        criteria = [
            f"Subfield filter: {filter_text}",
            f"Total assets in product: {len(assets)}",
            f"Assets matching filter: {len(matching)}",
            *build_media_validation_criteria(field),
        ]

        analyses = await self._analyze_all(assets)
        report = self._subfield_report(product, field, filter_text, assets, flags, analyses, criteria)

        if not matching:
            return ValidationResult(
                passed=False,
                issues=[
                    f"No media assets found where {filter_text}. Found {len(assets)} total assets, "
                    "but none match the filter criteria."
                ],
                quality=QualityRating(
                    0, f"No assets match the required {sub} criteria. Expected: {filter_text}"
                ),
                validation_criteria=criteria,
                validation_prompt=report,
            )

        checks = [
            check_asset(asset, analysis, field.media_validation)
            for asset, analysis, ok in zip(assets, analyses, flags)
            if ok
        ]
        issues = [issue for c in checks for issue in c.issues]
        valid = sum(1 for c in checks if c.passed)
        quality = round(sum(c.quality for c in checks) / len(checks))

        if issues:
            remarks = (
                f"{valid} of {len(checks)} matching assets pass validation. "
                f"Issues found in {len(checks) - valid} assets."
            )
        else:
            remarks = f"All {len(checks)} matching {sub} assets meet requirements"

        return ValidationResult(
            passed=not issues,
            issues=issues,
            quality=QualityRating(quality, remarks),
            validation_criteria=criteria,
            validation_prompt=report,
        )

    @staticmethod
    def _subfield_report(
        product: Product,
        field: FieldConfig,
        filter_text: str,
        assets: list[MediaAsset],
        flags: list[bool],
        analyses: list[MediaAnalysis],
        criteria: list[str],
    ) -> str:
        lines = [
            "Media Subfield Validation Analysis",
            "",
            f"Field: {field.name}{SUBFIELD_SEPARATOR}{field.sub_field}",
            f"Filter: {filter_text}",
            f"Product Category: {product.category_name}",
            "",
            "Asset Analysis:",
        ]
        for asset, ok, analysis in zip(assets, flags, analyses):
            url = asset.media_url
            dims = analysis.dimensions
            lines += [
                f"- Asset ID: {asset.asset_id}",
                f"  URL: {url}",
                f'  {field.sub_field}: "{asset.attribute(field.sub_field) or "undefined"}"',
                f"  Matches Filter: {'YES' if ok else 'NO'}",
                f"  File Type: {asset.file_extension or 'unknown'}",
                f"  HTTPS: {'YES' if url.startswith('https://') else 'NO'}",
                f"  Dimensions: {f'{dims.width}×{dims.height}px' if dims else 'Unknown'}",
                f"  Aspect Ratio: {analysis.aspect_ratio or 'Unknown'}",
                f"  File Size: {f'{to_kb(analysis.file_size)}KB' if analysis.file_size else 'Unknown'}",
            ]
            if analysis.error:
                lines.append(f"  Analysis Error: {analysis.error}")
        lines += [
            "",
            "Summary:",
            f"- Total assets: {len(assets)}",
            f"- Matching assets: {sum(flags)}",
            f"- Filter criteria: {filter_text}",
            "",
            "Validation Rules Applied:",
            *criteria,
        ]
        return "\n".join(lines)

    # ----- 4. whole media field -----

    async def validate_media_field(self, product: Product, field: FieldConfig) -> ValidationResult:
        assets = product.media
        if not assets:
            return ValidationResult(
                passed=False,
                issues=["No media assets found"],
                quality=QualityRating(0, "No media assets available to validate"),
                validation_criteria=build_media_validation_criteria(field),
            )

        mv = field.media_validation
        if mv is None:
            return ValidationResult(
                passed=True,
                quality=QualityRating(100, "No validation rules defined for media assets"),
                validation_criteria=["No specific media validation rules defined"],
            )

        analyses = await self._analyze_all(assets)
        checks = [check_asset(a, an, mv) for a, an in zip(assets, analyses)]
        issues = [issue for c in checks for issue in c.issues]
        total = sum(100 if c.passed else max(0, 100 - 15 * len(c.issues)) for c in checks)
        valid = sum(1 for c in checks if c.passed)

        return ValidationResult(
            passed=not issues,
            issues=issues,
            quality=QualityRating(
                round(total / len(checks)),
                "All media assets meet the required specifications" if not issues
                else f"{valid} of {len(checks)} assets pass validation",
            ),
            validation_criteria=build_media_validation_criteria(field),
        )

    async def _analyze_all(self, assets: list[MediaAsset]) -> list[MediaAnalysis]:
        return list(await asyncio.gather(*(self._analyze(a.media_url) for a in assets)))

    async def _analyze(self, url: str) -> MediaAnalysis:
        try:
            return await self.analyzer(url)
        except Exception as e:
            logger.warning("Media analysis failed for %s: %s", url, e)
            return MediaAnalysis(error=str(e) or "Analysis failed")

    # ----- 5. text / html -----

    def build_validation_prompt(self, field: FieldConfig, content: str, language: str) -> str:
        rule = resolve_rule(field, language, fallback_to_default_language=True)
        examples = self.goldstandard.find_by_field_and_language(field.name, language)
        examples_block = ""
        if examples:
            examples_block = VALIDATION_EXAMPLES_BLOCK.format(
                examples="\n\n".join(ex.content for ex in examples)
            )

        if rule.skip_language_detection:
            language_block = LANGUAGE_CHECK_DISABLED_BLOCK
            language_criterion = ""
        else:
            language_block = LANGUAGE_CHECK_BLOCK.format(
                language=language, language_rules=_language_rules()
            )
            language_criterion = LANGUAGE_CRITERION.format(language=language)

        return VALIDATION_PROMPT.format(
            field_name=field.name,
            requirements=rule.requirements or "None",
            format=rule.format or "None",
            whitelist=rule.whitelist or "None",
            blacklist=rule.blacklist or "None",
            language=language,
            examples_block=examples_block,
            content=content,
            language_block=language_block,
            language_criterion=language_criterion,
        )

    async def validate_text(self, field: FieldConfig, content: str, language: str = "EN") -> ValidationResult:
        """Ask the model to judge ``content`` against the field's effective rule."""
        criteria = build_validation_criteria(field, language)
        if not content:
            return ValidationResult(
                passed=False,
                issues=[f'Field "{field.name}" not found in product data'],
                validation_criteria=criteria,
            )

        prompt = self.build_validation_prompt(field, content, language)
        try:
            text = await self.model.complete(VALIDATOR_SYSTEM_PROMPT, prompt)
            payload = parse_model_json(text, ValidationPayload)
        except Exception as e:
            logger.warning(
                "Validation of %s failed: %s", field.name, e,
                extra={"field_name": field.name, "language": language},
            )
            return ValidationResult(
                passed=False,
                issues=[VALIDATION_ERROR_ISSUE],
                validation_criteria=criteria,
            )

        return ValidationResult(
            passed=payload.passed,
            issues=list(payload.issues),
            quality=payload.quality.to_rating() if payload.quality else None,
            validation_criteria=criteria,
        )

