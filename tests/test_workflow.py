# Tests for the per-field enhancement wizard

import asyncio

import pytest

from catalog_enhancer.config_loader import (
    CONTENT_OPTIMIZER_SYSTEM_PROMPT,
    QUALITY_SYSTEM_PROMPT,
    VALIDATOR_SYSTEM_PROMPT,
)
from catalog_enhancer.corpus import SOURCE_AUTO_ENHANCEMENT
from catalog_enhancer.models import Product
from catalog_enhancer.validation import ValidationEngine
from catalog_enhancer.workflow import ENHANCEMENT_FAILED_MESSAGE, EnhancementWorkflow, WorkflowError
from fakes import FakeModel

FIELD_NAMES = ["assortmentProductName", "description"]


@pytest.fixture
def product() -> Product:
    return Product({
        "code": "P1",
        "id": "P1",
        "categoryName": "Wound Care",
        "assortmentProductName": "Old name",
        "description": "Old description",
    })


@pytest.fixture
def make_workflow(product, fields, goldstandard, claims, ledger, enhanced_products, editor):
    def factory(model: FakeModel, field_names=None, target: Product = None, language: str = "EN"):
        return EnhancementWorkflow(
            product=target or product,
            field_names=field_names or FIELD_NAMES,
            fields=fields,
            model=model,
            validator=ValidationEngine(model, goldstandard),
            goldstandard=goldstandard,
            claims=claims,
            ledger=ledger,
            user=editor,
            language=language,
            enhanced_products=enhanced_products,
        )

    return factory


# ===== Skip vs enhance =====


class TestEnterField:
    @pytest.mark.asyncio
    async def test_rating_at_threshold_is_skipped(self, make_workflow, ledger):
        """Rating 90 with the default threshold 90 keeps the content."""
        model = FakeModel(quality={"rating": 90, "remarks": "great"})
        workflow = make_workflow(model)

        await workflow.start()

        state = workflow.states["assortmentProductName"]
        assert state.status == "skipped"
        assert state.skipped
        assert state.enhanced is None
        assert state.validation.passed
        assert model.prompts_for(CONTENT_OPTIMIZER_SYSTEM_PROMPT) == []
        assert len(model.prompts_for(VALIDATOR_SYSTEM_PROMPT)) == 1
        assert ledger.entries() == []

    @pytest.mark.asyncio
    async def test_rating_below_threshold_is_enhanced(self, make_workflow, ledger, editor):
        model = FakeModel(quality={"rating": 89, "remarks": "weak"}, enhanced="New name")
        workflow = make_workflow(model)

        await workflow.start()

        state = workflow.states["assortmentProductName"]
        assert state.status == "awaiting_decision"
        assert state.original == "Old name"
        assert state.enhanced == "New name"
        assert state.quality.rating == 89
        assert state.validation.passed
        assert "Please enhance" in state.prompt

        entries = ledger.entries()
        assert len(entries) == 1
        assert entries[0].before == "Old name"
        assert entries[0].after == "New name"
        assert entries[0].field == "assortmentProductName"
        assert entries[0].user == editor
        assert entries[0].language == "EN"

    @pytest.mark.asyncio
    async def test_empty_field_is_generated_without_rating_call(self, make_workflow, product):
        model = FakeModel(enhanced="Generated name")
        workflow = make_workflow(model, target=product.with_value("assortmentProductName", ""))

        await workflow.start()

        state = workflow.states["assortmentProductName"]
        assert state.quality.rating == 0
        assert state.quality.remarks == "missing"
        assert model.prompts_for(QUALITY_SYSTEM_PROMPT) == []
        assert "Please generate content" in state.prompt
        assert state.enhanced == "Generated name"

    @pytest.mark.asyncio
    async def test_field_threshold_overrides_default(self, registry, product, goldstandard, claims, ledger, editor):
        field = registry.find("assortmentProductName")
        registry.update(field.id, {"qualityThreshold": 50})
        model = FakeModel(quality={"rating": 60, "remarks": "fine"})
        workflow = EnhancementWorkflow(
            product=product, field_names=FIELD_NAMES, fields=registry.list(), model=model,
            validator=ValidationEngine(model, goldstandard), goldstandard=goldstandard,
            claims=claims, ledger=ledger, user=editor,
        )

        await workflow.start()

        assert workflow.states["assortmentProductName"].status == "skipped"

    @pytest.mark.asyncio
    async def test_enhance_anyway_overrides_skip(self, make_workflow):
        model = FakeModel(quality={"rating": 95, "remarks": "great"}, enhanced="Forced name")
        workflow = make_workflow(model)
        await workflow.start()

        state = await workflow.enhance_anyway("assortmentProductName")

        assert state.status == "awaiting_decision"
        assert state.enhanced == "Forced name"
        assert not state.skipped

    @pytest.mark.asyncio
    async def test_generation_failure_is_field_scoped_and_retryable(self, make_workflow):
        model = FakeModel(enhanced=RuntimeError("provider down"))
        workflow = make_workflow(model)

        await workflow.start()

        state = workflow.states["assortmentProductName"]
        assert state.status == "enhancing"
        assert state.error == ENHANCEMENT_FAILED_MESSAGE
        assert not state.is_loading
        assert workflow.working.text("assortmentProductName") == "Old name"

        model.enhanced = "Recovered name"
        state = await workflow.enhance("assortmentProductName")
        assert state.status == "awaiting_decision"
        assert state.error is None

    @pytest.mark.asyncio
    async def test_no_configuration_for_category(self, make_workflow):
        model = FakeModel()
        workflow = make_workflow(model, field_names=["unknownField"])

        await workflow.start()

        state = workflow.states["unknownField"]
        assert state.error == 'No field configuration found for "unknownField" in the "Wound Care" category'
        assert model.calls == []

    @pytest.mark.asyncio
    async def test_field_name_matching_ignores_case(self, make_workflow):
        model = FakeModel(enhanced="New")
        workflow = make_workflow(model, field_names=["DESCRIPTION"])

        await workflow.start()

        assert workflow.states["DESCRIPTION"].status == "awaiting_decision"


# ===== In-flight guard =====


class TestInFlight:
    @pytest.mark.asyncio
    async def test_duplicate_request_is_suppressed(self, make_workflow):
        model = FakeModel()
        model.gate = asyncio.Event()
        workflow = make_workflow(model)

        task = asyncio.create_task(workflow.enhance("assortmentProductName"))
        await asyncio.sleep(0)

        second = await workflow.enhance("assortmentProductName")
        assert second.status == "evaluating_quality"
        assert second.is_loading

        model.gate.set()
        await task

        assert len(model.prompts_for(QUALITY_SYSTEM_PROMPT)) == 1
        assert workflow.states["assortmentProductName"].status == "awaiting_decision"

    @pytest.mark.asyncio
    async def test_forced_run_supersedes_stale_one(self, make_workflow, ledger):
        model = FakeModel()
        model.gate = asyncio.Event()
        workflow = make_workflow(model)

        stale = asyncio.create_task(workflow.enhance("assortmentProductName"))
        await asyncio.sleep(0)
        fresh = asyncio.create_task(workflow.enhance("assortmentProductName", force=True))
        await asyncio.sleep(0)

        model.gate.set()
        await asyncio.gather(stale, fresh)

        assert workflow.states["assortmentProductName"].status == "awaiting_decision"
        assert len(ledger.entries()) == 1

    @pytest.mark.asyncio
    async def test_cannot_decide_while_loading(self, make_workflow):
        model = FakeModel()
        model.gate = asyncio.Event()
        workflow = make_workflow(model)

        task = asyncio.create_task(workflow.start())
        await asyncio.sleep(0)

        with pytest.raises(WorkflowError):
            await workflow.accept("assortmentProductName")

        model.gate.set()
        await task


# ===== Decisions =====


class TestDecisions:
    @pytest.mark.asyncio
    async def test_accept_applies_value_and_feeds_goldstandard(self, make_workflow, goldstandard):
        model = FakeModel(enhanced="New name")
        workflow = make_workflow(model)
        await workflow.start()

        await workflow.accept("assortmentProductName")

        assert workflow.working.text("assortmentProductName") == "New name"
        assert workflow.product.text("assortmentProductName") == "Old name"
        assert workflow.current_field == "description"

        examples = goldstandard.find_by_field_and_language("assortmentProductName", "EN")
        assert len(examples) == 1
        assert examples[0].content == "New name"
        assert examples[0].source == SOURCE_AUTO_ENHANCEMENT
        assert examples[0].categories == ["Wound Care"]
        assert examples[0].products == ["P1"]

    @pytest.mark.asyncio
    async def test_goldstandard_uses_configured_field_name(self, make_workflow, goldstandard):
        workflow = make_workflow(FakeModel(enhanced="New description"), field_names=["Description"])
        await workflow.start()

        await workflow.accept("Description")

        examples = goldstandard.find_by_field_and_language("description", "EN")
        assert [ex.content for ex in examples] == ["New description"]
        assert goldstandard.find_by_field_and_language("Description", "EN") == []

    @pytest.mark.asyncio
    async def test_identical_accepts_do_not_duplicate_goldstandard(self, make_workflow, goldstandard):
        for _ in range(2):
            workflow = make_workflow(FakeModel(enhanced="Same name"))
            await workflow.start()
            await workflow.accept("assortmentProductName")

        assert len(goldstandard.find_by_field_and_language("assortmentProductName", "EN")) == 1

    @pytest.mark.asyncio
    async def test_accepting_skipped_field_adds_nothing(self, make_workflow, goldstandard):
        workflow = make_workflow(FakeModel(quality={"rating": 99, "remarks": "perfect"}))
        await workflow.start()

        await workflow.accept("assortmentProductName")

        assert workflow.working.text("assortmentProductName") == "Old name"
        assert goldstandard.list() == []

    @pytest.mark.asyncio
    async def test_decline_leaves_working_unchanged(self, make_workflow, goldstandard):
        workflow = make_workflow(FakeModel(enhanced="New name"))
        await workflow.start()

        await workflow.decline("assortmentProductName")

        assert workflow.working.text("assortmentProductName") == "Old name"
        assert workflow.states["assortmentProductName"].status == "declined"
        assert goldstandard.list() == []

    @pytest.mark.asyncio
    async def test_only_active_field_can_be_decided(self, make_workflow):
        workflow = make_workflow(FakeModel())
        await workflow.start()

        with pytest.raises(WorkflowError):
            await workflow.accept("description")

    @pytest.mark.asyncio
    async def test_context_uses_accepted_values(self, make_workflow):
        model = FakeModel(enhanced="Accepted name")
        workflow = make_workflow(model)
        await workflow.start()

        await workflow.accept("assortmentProductName")

        prompt = model.prompts_for(CONTENT_OPTIMIZER_SYSTEM_PROMPT)[-1]
        assert "assortmentProductName: Accepted name" in prompt


# ===== Navigation =====


class TestNavigation:
    @pytest.mark.asyncio
    async def test_back_keeps_earlier_state(self, make_workflow):
        model = FakeModel(enhanced="New")
        workflow = make_workflow(model)
        await workflow.start()
        await workflow.accept("assortmentProductName")
        calls = len(model.calls)

        await workflow.back()

        assert workflow.current_field == "assortmentProductName"
        assert workflow.states["assortmentProductName"].status == "accepted"
        assert len(model.calls) == calls

    @pytest.mark.asyncio
    async def test_back_from_summary(self, make_workflow):
        workflow = make_workflow(FakeModel())
        await workflow.start()
        await workflow.decline("assortmentProductName")
        await workflow.decline("description")
        assert workflow.stage == "summary"

        await workflow.back()

        assert workflow.stage == "fields"
        assert workflow.current_field == "description"

    @pytest.mark.asyncio
    async def test_back_on_first_field_is_noop(self, make_workflow):
        workflow = make_workflow(FakeModel())
        await workflow.start()

        await workflow.back()

        assert workflow.current_index == 0

    @pytest.mark.asyncio
    async def test_language_change_restarts(self, make_workflow):
        model = FakeModel(enhanced="New")
        workflow = make_workflow(model)
        await workflow.start()
        await workflow.accept("assortmentProductName")

        await workflow.change_language("DE")

        assert workflow.language == "DE"
        assert workflow.current_index == 0
        assert list(workflow.states) == ["assortmentProductName"]
        assert workflow.states["assortmentProductName"].status == "awaiting_decision"
        assert workflow.working.text("assortmentProductName") == "Old name"
        assert "Target Language: DE" in model.prompts_for(CONTENT_OPTIMIZER_SYSTEM_PROMPT)[-1]


# ===== Summary and confirm =====


class TestSummary:
    @pytest.mark.asyncio
    async def test_summary_statuses(self, make_workflow, product):
        model = FakeModel(quality={"rating": 95, "remarks": "great"})
        workflow = make_workflow(
            model,
            field_names=["assortmentProductName", "description", "assortmentProductDescription"],
            target=product.with_value("description", ""),
        )
        await workflow.start()

        await workflow.accept("assortmentProductName")   # skipped, kept
        await workflow.accept("description")             # empty, generated
        rows = {row.field_name: row for row in workflow.summary()}

        assert rows["assortmentProductName"].status == "Not Changed"
        assert rows["description"].status == "Accepted"
        assert rows["description"].value == "Enhanced text"
        assert rows["assortmentProductDescription"].status == "Skipped"

    @pytest.mark.asyncio
    async def test_declined_in_summary(self, make_workflow):
        workflow = make_workflow(FakeModel())
        await workflow.start()
        await workflow.decline("assortmentProductName")
        await workflow.decline("description")

        assert [row.status for row in workflow.summary()] == ["Declined", "Declined"]

    @pytest.mark.asyncio
    async def test_confirm_persists_working_snapshot(self, make_workflow, enhanced_products):
        workflow = make_workflow(FakeModel(enhanced="New"))
        await workflow.start()
        await workflow.accept("assortmentProductName")
        await workflow.decline("description")

        confirmed = workflow.confirm()

        assert workflow.stage == "confirmed"
        assert confirmed.text("assortmentProductName") == "New"
        saved = enhanced_products.get("P1")
        assert saved.text("assortmentProductName") == "New"
        assert saved.text("description") == "Old description"

    @pytest.mark.asyncio
    async def test_confirm_requires_summary(self, make_workflow):
        workflow = make_workflow(FakeModel())
        await workflow.start()

        with pytest.raises(WorkflowError):
            workflow.confirm()

    @pytest.mark.asyncio
    async def test_to_dict(self, make_workflow):
        workflow = make_workflow(FakeModel())
        await workflow.start()

        data = workflow.to_dict()

        assert data["productCode"] == "P1"
        assert data["stage"] == "fields"
        assert data["currentField"] == "assortmentProductName"
        assert data["fields"][0]["status"] == "awaiting_decision"
        assert data["fields"][0]["isLoading"] is False
