# Tests for catalog flattening and product loading

import json

from catalog_enhancer.catalog import extract_category_names, extract_products_from_catalog, load_products

CATALOG = {
    "catalogVersion": "Online",
    "categories": [
        {
            "name": "Wound Care",
            "products": [
                {"code": "P1", "assortmentProductName": "Zetuvit", "description": "Long text"},
            ],
            "subcategories": [
                {
                    "name": "Dressings",
                    "products": [
                        {"code": "P2", "assortmentProductDescription": "Short text"},
                    ],
                    "subcategories": [{"name": "Wound Care", "products": []}],
                },
            ],
        },
        {"name": "Incontinence", "products": [{"code": "P3"}]},
    ],
}


class TestExtractProducts:
    def test_depth_first_order_and_stamps(self):
        products = extract_products_from_catalog(CATALOG)

        assert [p.code for p in products] == ["P1", "P2", "P3"]
        first, second, third = (p.to_dict() for p in products)

        assert first["id"] == "P1"
        assert first["categoryName"] == "Wound Care"
        assert first["subCategory"] == ""
        assert first["B2C-description-long"] == "Long text"
        assert first["B2C-description-short"] == ""

        assert second["categoryName"] == "Dressings"
        assert second["subCategory"] == "Wound Care"
        assert second["B2C-description-short"] == "Short text"

        assert third["categoryName"] == "Incontinence"

    def test_empty_catalog(self):
        assert extract_products_from_catalog({}) == []

    def test_category_names_unique_in_first_seen_order(self):
        assert extract_category_names(CATALOG) == ["Wound Care", "Dressings", "Incontinence"]


class TestLoadProducts:
    def test_catalog_file(self, tmp_path):
        path = tmp_path / "catalog.json"
        path.write_text(json.dumps(CATALOG), encoding="utf-8")
        assert [p.code for p in load_products(path)] == ["P1", "P2", "P3"]

    def test_product_list(self, tmp_path):
        path = tmp_path / "products.json"
        path.write_text(json.dumps([{"code": "A"}, {"code": "B"}]), encoding="utf-8")
        assert [p.code for p in load_products(path)] == ["A", "B"]

    def test_single_product(self, tmp_path):
        path = tmp_path / "product.json"
        path.write_text(json.dumps({"code": "A", "categoryName": "Wound Care"}), encoding="utf-8")
        products = load_products(path)
        assert len(products) == 1
        assert products[0].category_name == "Wound Care"
