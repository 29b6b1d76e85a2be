# Tests for the goldstandard and claims repositories

import typing

import pytest
from pydantic import ValidationError

from catalog_enhancer.corpus import SOURCE_AUTO_ENHANCEMENT, ClaimsRepository, GoldstandardRepository
from catalog_enhancer.models import Claim, GoldstandardExample


class TestGoldstandard:
    def test_add_prepends_newest(self, goldstandard):
        goldstandard.add("description", "First", "EN")
        goldstandard.add("description", "Second", "EN")
        assert [ex.content for ex in goldstandard.list()] == ["Second", "First"]

    def test_duplicate_tuple_is_not_added(self, goldstandard):
        assert goldstandard.add("description", "Same", "EN") is not None
        assert goldstandard.add("description", "Same", "EN") is None
        assert goldstandard.add("description", "Same", "DE") is not None
        assert len(goldstandard.list()) == 2

    def test_id_prefix_follows_source(self, goldstandard):
        manual = goldstandard.add("description", "Manual", "EN")
        auto = goldstandard.add("description", "Auto", "EN", source=SOURCE_AUTO_ENHANCEMENT)
        assert manual.id.startswith("gs_")
        assert auto.id.startswith("auto_")

    def test_find_is_exact(self, goldstandard):
        goldstandard.add("description", "EN text", "EN")
        goldstandard.add("Description", "Other field", "EN")
        found = goldstandard.find_by_field_and_language("description", "EN")
        assert [ex.content for ex in found] == ["EN text"]
        assert goldstandard.find_by_field_and_language("description", "en") == []

    def test_delete(self, goldstandard):
        example = goldstandard.add("description", "Text", "EN")
        assert goldstandard.delete(example.id)
        assert not goldstandard.delete(example.id)
        assert goldstandard.list() == []


class TestClaims:
    def test_find_by_product_and_language(self, claims):
        claims.add("Claim A", "efficacy", ["P1", "P2"])
        claims.add("Claim B", "safety", ["P2"])
        claims.add("Anspruch A", "efficacy", ["P1"], language="DE")

        assert [c.claim for c in claims.find_by_product_and_language("P1", "EN")] == ["Claim A"]
        assert [c.claim for c in claims.find_by_product_and_language("P2", "EN")] == ["Claim A", "Claim B"]
        assert [c.claim for c in claims.find_by_product_and_language("P1", "DE")] == ["Anspruch A"]

    def test_language_defaults_to_english(self, claims):
        assert claims.add("Claim", "efficacy", ["P1"], language="").language == "EN"

    @pytest.mark.parametrize(
        "claim,claim_type,product_ids",
        [("", "efficacy", ["P1"]), ("Claim", "", ["P1"]), ("Claim", "efficacy", [])],
    )
    def test_required_fields(self, claims, claim, claim_type, product_ids):
        with pytest.raises(ValidationError):
            claims.add(claim, claim_type, product_ids)
        assert claims.list() == []

    def test_delete(self, claims):
        claim = claims.add("Claim", "efficacy", ["P1"])
        assert claims.delete(claim.id)
        assert not claims.delete("claim_missing")


def test_annotations_resolve_to_builtin_list():
    hints = typing.get_type_hints(GoldstandardRepository.find_by_field_and_language)
    assert hints["return"] == list[GoldstandardExample]
    assert typing.get_type_hints(ClaimsRepository.add)["product_ids"] == list[str]
    assert typing.get_type_hints(ClaimsRepository.list)["return"] == list[Claim]
