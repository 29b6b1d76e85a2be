#!/usr/bin/env python3
# CLI entry point for Catalog Enhancer
# Validate or enhance a single product, manage field configurations

import argparse
import asyncio
import json
import logging
import os
import sys
from pathlib import Path

from catalog_enhancer.catalog import load_products
from catalog_enhancer.client import LLMCapability
from catalog_enhancer.config_loader import SUPPORTED_LANGUAGES
from catalog_enhancer.corpus import ClaimsRepository, GoldstandardRepository
from catalog_enhancer.errors import FieldConfigError
from catalog_enhancer.field_registry import FieldRegistry
from catalog_enhancer.field_rules import fields_for_product
from catalog_enhancer.history import EnhancedProductStore, HistoryLedger
from catalog_enhancer.models import Actor, Product
from catalog_enhancer.storage import JsonFileStore
from catalog_enhancer.validation import ValidationEngine
from catalog_enhancer.workflow import EnhancementWorkflow

DEFAULT_DATA_DIR = os.environ.get("CATALOG_DATA_DIR", "./data")


def _pick_product(path: str, code: str | None) -> Product:
    products = load_products(path)
    if not products:
        raise ValueError(f"No products found in {path}")
    if code is None:
        return products[0]
    for product in products:
        if product.code == code:
            return product
    raise ValueError(f"Product {code} not found in {path}")


async def run_validate(args, store: JsonFileStore) -> int:
    product = _pick_product(args.product, args.code)
    fields = FieldRegistry(store).list()
    engine = ValidationEngine(LLMCapability(), GoldstandardRepository(store))

    result = await engine.validate_content(product, args.field, fields, args.language)

    print(f"Product: {product.code} ({product.category_name or 'no category'})")
    print(f"Field:   {args.field} [{args.language}]")
    print(f"Result:  {'✓ passed' if result.passed else '✗ failed'}")
    if result.quality:
        print(f"Quality: {result.quality.rating}/100 - {result.quality.remarks}")
    for issue in result.issues:
        print(f"  - {issue}")
    if args.verbose:
        print("\nCriteria:")
        for line in result.validation_criteria:
            print(f"  {line}")
        if result.validation_prompt:
            print("\n" + result.validation_prompt)
    return 0 if result.passed else 1


def _ask(prompt: str) -> str:
    try:
        return input(prompt).strip().lower()
    except EOFError:
        return "d"


async def run_enhance(args, store: JsonFileStore) -> int:
    product = _pick_product(args.product, args.code)
    fields = FieldRegistry(store).list()
    if args.fields:
        field_names = [n.strip() for n in args.fields.split(",") if n.strip()]
    else:
        field_names = [f.name for f in fields_for_product(product, fields)]
    if not field_names:
        print("Nothing to enhance: no applicable fields")
        return 1

    model = LLMCapability()
    goldstandard = GoldstandardRepository(store)
    workflow = EnhancementWorkflow(
        product=product,
        field_names=field_names,
        fields=fields,
        model=model,
        validator=ValidationEngine(model, goldstandard),
        goldstandard=goldstandard,
        claims=ClaimsRepository(store),
        ledger=HistoryLedger(store),
        user=Actor(id=args.user_id, name=args.user_name, role="editor"),
        language=args.language,
        enhanced_products=EnhancedProductStore(store),
    )

    print(f"Enhancing {product.code}: {', '.join(field_names)} [{args.language}]")
    await workflow.start()

    while workflow.stage == "fields":
        name = workflow.current_field
        state = workflow.states[name]
        print(f"\n[Field: {name}]")
        if state.quality:
            print(f"  Quality: {state.quality.rating}/100 - {state.quality.remarks}")
        if state.error:
            print(f"  ✗ {state.error}")
        elif state.status == "skipped":
            print("  Kept original (above quality threshold)")
        else:
            print(f"  Before: {state.original or '[missing]'}")
            print(f"  After:  {state.enhanced}")
            if state.validation and state.validation.issues:
                for issue in state.validation.issues[:3]:  # Only show the first 3 issues
                    print(f"    - {issue}")

        if args.auto_accept:
            choice = "d" if state.error else "a"
        else:
            choice = _ask("  [a]ccept / [d]ecline / [r]etry / [b]ack > ")

        if choice.startswith("r"):
            await workflow.enhance(name, force=True)
        elif choice.startswith("b"):
            await workflow.back()
        elif choice.startswith("a"):
            await workflow.accept(name)
        else:
            await workflow.decline(name)

    print("\n" + "=" * 50)
    print("Summary:")
    for row in workflow.summary():
        print(f"  {row.field_name:<32} {row.status}")

    workflow.confirm()
    print("\n✅ Saved enhanced product")
    return 0


def run_fields(args, store: JsonFileStore) -> int:
    registry = FieldRegistry(store)
    if args.fields_command == "list":
        for field in registry.list():
            status = "active" if field.is_active else "inactive"
            categories = ", ".join(field.product_categories) or "all categories"
            name = field.name + (f" > {field.sub_field}" if field.sub_field else "")
            print(f"{field.id}  {name:<40} {field.field_type:<6} {status:<8} {categories}")
        return 0
    try:
        if args.fields_command == "copy":
            clone = registry.copy(args.field_id)
            print(f"Created {clone.name} ({clone.id}), inactive")
        elif args.fields_command == "delete":
            registry.delete(args.field_id)
            print(f"Deleted {args.field_id}")
    except FieldConfigError as e:
        print(f"Error: {e}")
        return 1
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Catalog Enhancer - validate and enhance product content"
    )
    parser.add_argument(
        "--data-dir",
        default=DEFAULT_DATA_DIR,
        help="Directory holding fields/goldstandard/claims/history JSON (default: ./data)",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose output")
    sub = parser.add_subparsers(dest="command", required=True)

    def add_product_args(p: argparse.ArgumentParser) -> None:
        p.add_argument("--product", required=True, help="Product JSON, product list or catalog file")
        p.add_argument("--code", help="Product code to pick from a catalog (default: first)")
        p.add_argument("--language", default="EN", choices=SUPPORTED_LANGUAGES, help="Content language (default: EN)")

    p_validate = sub.add_parser("validate", help="Validate one field of a product")
    add_product_args(p_validate)
    p_validate.add_argument(
        "--field",
        required=True,
        help='Field name, "main > sub", "media-count" or "media-<assetId>"',
    )

    p_enhance = sub.add_parser("enhance", help="Run the enhancement wizard for a product")
    add_product_args(p_enhance)
    p_enhance.add_argument("--fields", help="Comma-separated field names (default: all applicable)")
    p_enhance.add_argument("--auto-accept", action="store_true", help="Accept every result without prompting")
    p_enhance.add_argument("--user-id", default=os.environ.get("USER", "cli"), help="Actor id for the history ledger")
    p_enhance.add_argument("--user-name", default=os.environ.get("USER", "cli"), help="Actor name for the history ledger")

    p_fields = sub.add_parser("fields", help="Manage field configurations")
    fields_sub = p_fields.add_subparsers(dest="fields_command", required=True)
    fields_sub.add_parser("list", help="List field configurations")
    p_copy = fields_sub.add_parser("copy", help="Copy a field (the copy starts inactive)")
    p_copy.add_argument("field_id")
    p_delete = fields_sub.add_parser("delete", help="Delete a field")
    p_delete.add_argument("field_id")

    return parser


def main(argv: list[str] | None = None) -> int:
    """CLI entry point."""
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    store = JsonFileStore(Path(args.data_dir))

    try:
        if args.command == "validate":
            return asyncio.run(run_validate(args, store))
        if args.command == "enhance":
            return asyncio.run(run_enhance(args, store))
        return run_fields(args, store)
    except (FileNotFoundError, ValueError, json.JSONDecodeError) as e:
        print(f"Error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
