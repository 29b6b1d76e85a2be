"""Enhancement workflow: a sequential, per-field review wizard.

One field is active at a time. Entering a field rates its current content;
content at or above the field's quality threshold is kept (``skipped``),
everything else is sent for generation and waits for an accept/decline
decision. Deciding the last field moves to the summary; confirming the
summary commits the working snapshot.

Lifecycle per field::

    idle -> evaluating_quality -> skipped ------------------> accepted | declined
                               -> enhancing -> awaiting_decision -> accepted | declined

Model failures never abort the wizard. They land in the field's ``error``
and leave it in ``enhancing`` so the caller can retry with ``enhance``.
"""

import json
import logging
from typing import Any, Optional

from catalog_enhancer.client import ContentModel
from catalog_enhancer.config_loader import DEFAULT_QUALITY_THRESHOLD
from catalog_enhancer.corpus import SOURCE_AUTO_ENHANCEMENT, ClaimsRepository, GoldstandardRepository
from catalog_enhancer.enhancement import enhance_field, evaluate_content_quality
from catalog_enhancer.field_rules import select_field_config
from catalog_enhancer.history import EnhancedProductStore, HistoryLedger
from catalog_enhancer.models import ABSENT, Actor, FieldConfig, Product
from catalog_enhancer.state import FieldEnhancementState, SummaryRow, WorkflowStage
from catalog_enhancer.validation import ValidationEngine

logger = logging.getLogger(__name__)

ENHANCEMENT_FAILED_MESSAGE = "Failed to enhance product content. Please try again."


class WorkflowError(ValueError):
    """An action that is not allowed in the workflow's current state."""


def _display_value(value: Any) -> str:
    if value is ABSENT:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    return json.dumps(value, indent=2, ensure_ascii=False)


class EnhancementWorkflow:
    """Wizard over ``field_names`` for one product.

    Args:
        product: catalog record; never mutated, edits go to ``working``
        field_names: ordered fields to review
        fields: current field configurations
        model: content model for rating and generation
        validator: engine used to validate retained and generated content
        goldstandard: read for examples, appended on accepted changes
        claims: claim corpus for fields with ``useClaimList``
        ledger: receives one entry per successful generation
        user: actor recorded in the ledger
        language: working language
        enhanced_products: optional store the confirmed snapshot is saved to
    """

    def __init__(
        self,
        product: Product,
        field_names: list[str],
        fields: list[FieldConfig],
        model: ContentModel,
        validator: ValidationEngine,
        goldstandard: GoldstandardRepository,
        claims: ClaimsRepository,
        ledger: HistoryLedger,
        user: Actor,
        language: str = "EN",
        enhanced_products: Optional[EnhancedProductStore] = None,
    ) -> None:
        self.product = product
        self.field_names = list(field_names)
        self.fields = fields
        self.model = model
        self.validator = validator
        self.goldstandard = goldstandard
        self.claims = claims
        self.ledger = ledger
        self.user = user
        self.language = language
        self.enhanced_products = enhanced_products

        self.working = product
        self.states: dict[str, FieldEnhancementState] = {}
        self.current_index = 0
        self.stage: WorkflowStage = "fields"
        # field name -> token of the run allowed to publish results
        self._in_flight: dict[str, object] = {}

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------

    @property
    def current_field(self) -> Optional[str]:
        if self.stage != "fields" or not self.field_names:
            return None
        return self.field_names[self.current_index]

    async def start(self) -> None:
        """Enter the first field."""
        await self._enter_current()

    async def _enter_current(self) -> None:
        name = self.current_field
        if name is not None and name not in self.states:
            await self.enhance(name)

    async def _advance(self) -> None:
        if self.current_index < len(self.field_names) - 1:
            self.current_index += 1
            await self._enter_current()
        else:
            self.stage = "summary"

    async def back(self) -> None:
        """Step to the previous field, or from the summary to the last field."""
        if self.stage == "summary":
            self.stage = "fields"
            self.current_index = len(self.field_names) - 1
        elif self.stage == "fields" and self.current_index > 0:
            self.current_index -= 1
        else:
            return
        await self._enter_current()

    async def change_language(self, language: str) -> None:
        """Full restart in ``language``: all field states and edits are dropped."""
        logger.info(
            "Restarting workflow in %s", language,
            extra={"product_code": self.product.code, "language": language},
        )
        self.language = language
        self.states = {}
        self._in_flight = {}
        self.current_index = 0
        self.working = self.product
        self.stage = "fields"
        await self._enter_current()

    # ------------------------------------------------------------------
    # Enhancement
    # ------------------------------------------------------------------

    def _config_for(self, field_name: str) -> Optional[FieldConfig]:
        return select_field_config(
            self.fields, field_name, self.product.category_name, ignore_case=True
        )

    async def enhance(self, field_name: str, force: bool = False) -> FieldEnhancementState:
        """Rate and, if needed, regenerate ``field_name``.

        A second call while the field is in flight is a no-op unless
        ``force`` is set; the forced run then supersedes the earlier one.
        """
        if field_name in self._in_flight and not force:
            logger.debug("Enhancement of %s already in flight", field_name)
            return self.states[field_name]

        token = object()
        self._in_flight[field_name] = token
        current_value = self.working.text(field_name)
        state = FieldEnhancementState(
            field_name=field_name, status="evaluating_quality", original=current_value
        )
        self.states[field_name] = state
        try:
            await self._run(state, field_name, current_value, force, token)
        except Exception:
            logger.exception(
                "Enhancement of %s failed", field_name,
                extra={"product_code": self.product.code, "field_name": field_name},
            )
            if self._in_flight.get(field_name) is token:
                state.status = "enhancing"
                state.error = ENHANCEMENT_FAILED_MESSAGE
        finally:
            if self._in_flight.get(field_name) is token:
                del self._in_flight[field_name]
        return self.states.get(field_name, state)

    async def enhance_anyway(self, field_name: str) -> FieldEnhancementState:
        """Override a skip and generate new content regardless of rating."""
        return await self.enhance(field_name, force=True)

    async def _run(
        self,
        state: FieldEnhancementState,
        field_name: str,
        current_value: str,
        force: bool,
        token: object,
    ) -> None:
        def superseded() -> bool:
            return self._in_flight.get(field_name) is not token

        field = self._config_for(field_name)
        if field is None:
            state.status = "enhancing"
            state.error = (
                f'No field configuration found for "{field_name}" '
                f'in the "{self.product.category_name}" category'
            )
            return

        quality = await evaluate_content_quality(
            self.model, self.goldstandard, field, current_value, self.language
        )
        if superseded():
            return
        state.quality = quality

        threshold = field.quality_threshold if field.quality_threshold is not None else DEFAULT_QUALITY_THRESHOLD
        if not force and current_value.strip() and quality.rating >= threshold:
            state.validation = await self.validator.validate_text(field, current_value, self.language)
            if superseded():
                return
            state.status = "skipped"
            state.skipped = True
            logger.info(
                "Kept %s (rating %d >= %d)", field_name, quality.rating, threshold,
                extra={"product_code": self.product.code, "field_name": field_name},
            )
            return

        state.status = "enhancing"
        result = await enhance_field(
            self.model, self.goldstandard, self.claims,
            field, current_value, self.language, self.working,
        )
        if superseded():
            return
        validation = await self.validator.validate_text(field, result.value, self.language)
        if superseded():
            return

        self.ledger.append(
            user=self.user,
            product=self.working,
            field=field_name,
            before=current_value,
            after=result.value,
            language=self.language,
        )
        state.enhanced = result.value
        state.prompt = result.prompt
        state.validation = validation
        state.status = "awaiting_decision"

    # ------------------------------------------------------------------
    # Decisions
    # ------------------------------------------------------------------

    def _require_decidable(self, field_name: str) -> FieldEnhancementState:
        if self.stage != "fields" or field_name != self.current_field:
            raise WorkflowError(f'"{field_name}" is not the active field')
        state = self.states.get(field_name)
        if state is None or state.is_loading:
            raise WorkflowError(f'"{field_name}" is still being processed')
        return state

    async def accept(self, field_name: str) -> None:
        """Take the enhanced value (or keep the retained one) and move on.

        A genuinely new value is also added to the goldstandard corpus.
        """
        state = self._require_decidable(field_name)
        enhanced = state.enhanced
        if enhanced is not None:
            self.working = self.working.with_value(field_name, enhanced)
            if enhanced.strip() and enhanced != state.original:
                config = self._config_for(field_name)
                self.goldstandard.add(
                    field_name=config.name if config is not None else field_name,
                    content=enhanced,
                    language=self.language,
                    categories=[self.product.category_name or "Unknown"],
                    products=[self.product.code],
                    source=SOURCE_AUTO_ENHANCEMENT,
                )
        state.status = "accepted"
        await self._advance()

    async def decline(self, field_name: str) -> None:
        """Leave the working value untouched and move on."""
        state = self._require_decidable(field_name)
        state.status = "declined"
        await self._advance()

    # ------------------------------------------------------------------
    # Summary
    # ------------------------------------------------------------------

    def summary(self) -> list[SummaryRow]:
        rows = []
        for name in self.field_names:
            state = self.states.get(name)
            if state is not None and state.status == "accepted":
                unchanged = state.skipped or state.enhanced is None or state.enhanced == state.original
                status = "Not Changed" if unchanged else "Accepted"
            elif state is not None and state.status == "declined":
                status = "Declined"
            else:
                status = "Skipped"
            rows.append(SummaryRow(name, status, _display_value(self.working.get(name))))
        return rows

    def confirm(self) -> Product:
        """Commit the working snapshot."""
        if self.stage != "summary":
            raise WorkflowError("Workflow can only be confirmed from the summary")
        self.stage = "confirmed"
        if self.enhanced_products is not None:
            self.enhanced_products.save(self.working)
        logger.info(
            "Confirmed enhancements",
            extra={
                "product_code": self.product.code,
                "accepted": [r.field_name for r in self.summary() if r.status == "Accepted"],
            },
        )
        return self.working

    def to_dict(self) -> dict[str, Any]:
        return {
            "productCode": self.product.code,
            "language": self.language,
            "stage": self.stage,
            "currentField": self.current_field,
            "currentIndex": self.current_index,
            "fieldNames": list(self.field_names),
            "fields": [self.states[n].to_dict() for n in self.field_names if n in self.states],
            "product": self.working.to_dict(),
        }
