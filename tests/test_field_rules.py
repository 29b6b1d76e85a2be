# Tests for field rule resolution, subfield filters and config selection

from catalog_enhancer.field_rules import (
    build_media_validation_criteria,
    build_validation_criteria,
    fields_for_product,
    first_media_config,
    matches_subfield_filter,
    resolve_rule,
    select_field_config,
)
from catalog_enhancer.models import FieldConfig, MediaAsset, Product, SubFieldFilter


def _field(**kwargs) -> FieldConfig:
    return FieldConfig.model_validate({"name": "description", **kwargs})


# ===== resolve_rule =====


class TestResolveRule:
    def test_language_value_wins_over_general(self):
        field = _field(
            general={"requirements": "General req", "format": "General fmt"},
            languages={"DE": {"requirements": "DE req", "format": ""}},
        )
        rule = resolve_rule(field, "DE")
        assert rule.requirements == "DE req"
        assert rule.format == "General fmt"

    def test_empty_language_requirements_fall_back_to_general(self):
        """DE requirements "" with general "X" resolves to "X"."""
        field = _field(
            general={"requirements": "X"},
            languages={"DE": {"requirements": ""}},
        )
        assert resolve_rule(field, "DE").requirements == "X"

    def test_nothing_configured_resolves_to_empty_strings(self):
        rule = resolve_rule(_field(), "FR")
        assert rule.requirements == ""
        assert rule.format == ""
        assert rule.whitelist == ""
        assert rule.skip_language_detection is False

    def test_whitelist_and_examples_are_language_only(self):
        field = _field(
            general={"requirements": "X"},
            languages={"EN": {"whitelist": "sterile", "negativeExamples": "cheap, bad"}},
        )
        assert resolve_rule(field, "EN").whitelist == "sterile"
        assert resolve_rule(field, "DE").whitelist == ""
        assert resolve_rule(field, "EN").negative_examples == "cheap, bad"

    def test_fallback_to_default_language(self):
        field = _field(languages={"EN": {"requirements": "EN req"}})
        assert resolve_rule(field, "FR").requirements == ""
        assert resolve_rule(field, "FR", fallback_to_default_language=True).requirements == "EN req"

    def test_skip_language_detection_comes_from_general(self):
        field = _field(general={"skipLanguageDetection": True})
        assert resolve_rule(field, "EN").skip_language_detection is True


# ===== matches_subfield_filter =====


class TestSubfieldFilter:
    def _asset(self, **attrs) -> MediaAsset:
        return MediaAsset.model_validate({"assetId": "1", "mediaURL": "https://x/a.jpg", **attrs})

    def test_equals_is_case_sensitive(self):
        flt = SubFieldFilter(operator="equals", value="Packshot")
        assert matches_subfield_filter(self._asset(productContentType="Packshot"), "productContentType", flt)
        assert not matches_subfield_filter(self._asset(productContentType="packshot"), "productContentType", flt)

    def test_contains_starts_ends(self):
        asset = self._asset(cssImageSection="hero-banner-top")
        assert matches_subfield_filter(asset, "cssImageSection", SubFieldFilter(operator="contains", value="banner"))
        assert matches_subfield_filter(asset, "cssImageSection", SubFieldFilter(operator="startsWith", value="hero"))
        assert matches_subfield_filter(asset, "cssImageSection", SubFieldFilter(operator="endsWith", value="top"))
        assert not matches_subfield_filter(asset, "cssImageSection", SubFieldFilter(operator="startsWith", value="top"))

    def test_not_equals_with_absent_attribute_is_false(self):
        flt = SubFieldFilter(operator="notEquals", value="X")
        assert not matches_subfield_filter(self._asset(), "productContentType", flt)
        assert not matches_subfield_filter(self._asset(), "doesNotExist", flt)

    def test_not_equals_with_empty_value_is_false(self):
        flt = SubFieldFilter(operator="notEquals", value="X")
        assert not matches_subfield_filter(self._asset(productContentType=""), "productContentType", flt)

    def test_not_equals_with_other_value(self):
        flt = SubFieldFilter(operator="notEquals", value="X")
        assert matches_subfield_filter(self._asset(productContentType="Y"), "productContentType", flt)

    def test_unknown_attribute_kept_and_rendered_as_string(self):
        asset = self._asset(isPrimary=True, position=2.0)
        assert matches_subfield_filter(asset, "isPrimary", SubFieldFilter(operator="equals", value="true"))
        assert matches_subfield_filter(asset, "position", SubFieldFilter(operator="equals", value="2"))


# ===== select_field_config =====


class TestSelectFieldConfig:
    def test_category_specific_outranks_universal(self):
        fields = [
            _field(id="universal"),
            _field(id="specific", productCategories=["Wound Care"]),
        ]
        assert select_field_config(fields, "description", "Wound Care").id == "specific"
        assert select_field_config(fields, "description", "Other").id == "universal"

    def test_first_in_list_order_wins_within_group(self):
        fields = [
            _field(id="a", productCategories=["Wound Care"]),
            _field(id="b", productCategories=["Wound Care", "Incontinence"]),
        ]
        assert select_field_config(fields, "description", "Wound Care").id == "a"

    def test_inactive_and_other_category_ignored(self):
        fields = [
            _field(id="inactive", isActive=False),
            _field(id="other", productCategories=["Incontinence"]),
        ]
        assert select_field_config(fields, "description", "Wound Care") is None

    def test_subfield_configs_only_match_with_subfield(self):
        fields = [_field(id="sub", subField="productContentType")]
        assert select_field_config(fields, "description", "") is None
        assert select_field_config(fields, "description", "", "productContentType").id == "sub"

    def test_ignore_case(self):
        fields = [_field(id="a")]
        assert select_field_config(fields, "DESCRIPTION", "") is None
        assert select_field_config(fields, "DESCRIPTION", "", ignore_case=True).id == "a"


class TestFieldsForProduct:
    def test_mandatory_included_optional_only_when_present(self, fields):
        product = Product({"code": "P1", "assortmentProductName": "Name"})
        names = [f.name for f in fields_for_product(product, fields)]
        assert names == ["assortmentProductName", "assortmentProductDescription"]

        product = product.with_value("description", "Long text")
        names = [f.name for f in fields_for_product(product, fields)]
        assert "description" in names
        assert "media" not in names

    def test_names_deduplicated(self):
        fields = [_field(id="a", isMandatory=True), _field(id="b", isMandatory=True)]
        assert [f.id for f in fields_for_product(Product({"code": "P1"}), fields)] == ["a"]

    def test_first_media_config(self, fields):
        assert first_media_config(fields, "Anything").name == "media"
        assert first_media_config([_field()], "Anything") is None


# ===== Criteria =====


class TestCriteria:
    def test_validation_criteria(self):
        field = _field(languages={"EN": {"requirements": "R", "format": "F", "blacklist": "cheap"}})
        assert build_validation_criteria(field, "EN") == [
            "Requirements: R",
            "Format: F",
            "Must not include terms: cheap",
            "Language: EN",
        ]

    def test_validation_criteria_fall_back_to_english(self):
        field = _field(languages={"EN": {"requirements": "R"}})
        assert build_validation_criteria(field, "DE") == ["Requirements: R", "Language: DE"]

    def test_media_criteria(self):
        field = _field(
            fieldType="media",
            mediaValidation={
                "requireHttps": True,
                "allowedFileTypes": ["jpg", "png"],
                "minWidth": 800,
                "maxFileSize": 500,
                "mediaCountMin": 1,
                "mediaCountOptimal": 3,
            },
        )
        assert build_media_validation_criteria(field) == [
            "HTTPS URLs required",
            "Allowed file types: jpg, png",
            "Width constraints: min: 800px",
            "File size constraints: max: 500KB",
            "Asset count requirements: min: 1, optimal: 3",
        ]

    def test_media_criteria_without_rules(self):
        assert build_media_validation_criteria(_field(fieldType="media")) == [
            "No specific media validation rules defined"
        ]
