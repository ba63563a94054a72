#!/usr/bin/env python3
"""
Seed products from a JSON file (a list of products, or an object with an
"items" list). Entries whose name already exists in the catalog are skipped,
so the script can be re-run safely.

Usage:
    python scripts/seed_products.py --file products.json
    python scripts/seed_products.py            # seeds a small demo set
"""
import json
import argparse
import sys
import os

# allow running from repo/scripts
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from stockroom.db import Store
from stockroom.schemas.product_schema import ProductCreate
from stockroom.services.catalog_service import CatalogService
from stockroom.services.errors import InvalidInput

DEMO_PRODUCTS = [
    {"name": "Hex bolt M8x40", "unit": "pc", "quantity": 250, "min_stock": 100, "category": "fasteners", "location": "A1"},
    {"name": "Wood screw 4x30", "unit": "box", "quantity": 12, "min_stock": 5, "category": "fasteners", "location": "A2"},
    {"name": "Wall paint white", "unit": "l", "quantity": 40, "min_stock": 20, "category": "paint", "supplier": "ColorWorks"},
    {"name": "Copper cable 2.5mm", "unit": "m", "quantity": 0, "min_stock": 50, "category": "electrical"},
]

def _normalize_entry(entry):
    """Map a few common key spellings onto ProductCreate fields."""
    def _int(value):
        if value in (None, ""):
            return None
        try:
            return int(value)
        except (TypeError, ValueError):
            return None

    return ProductCreate(
        name=entry.get("name") or entry.get("title"),
        unit=entry.get("unit") or entry.get("uom") or "pc",
        description=entry.get("description"),
        category=entry.get("category"),
        quantity=_int(entry.get("quantity", entry.get("stock"))),
        min_stock=_int(entry.get("min_stock", entry.get("minimum"))),
        location=entry.get("location"),
        supplier=entry.get("supplier"),
    )

def _load(path: str):
    with open(path, "r", encoding="utf-8") as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as e:
            raise RuntimeError(f"Failed to parse JSON from {path}: {e}")
    if isinstance(data, dict):
        return data.get("items") if isinstance(data.get("items"), list) else list(data.values())
    if isinstance(data, list):
        return data
    return []

def seed(entries):
    store = Store.from_settings().open()
    store.init_schema()
    created = skipped = 0
    try:
        with store.session() as db:
            svc = CatalogService(db)
            existing = {p.name for p in svc.list_products()}
            for entry in entries:
                data = _normalize_entry(entry)
                if data.name in existing:
                    skipped += 1
                    continue
                try:
                    svc.create_product(data)
                except InvalidInput as e:
                    print(f"Skipping {entry!r}: {e}")
                    skipped += 1
                    continue
                existing.add(data.name)
                created += 1
        print(f"Seeded products: {created} (skipped {skipped})")
    finally:
        store.close()

if __name__ == "__main__":
    parser = argparse.ArgumentParser()
    parser.add_argument("--file", "-f", default=None, help="Path to a JSON list of product entries")
    args = parser.parse_args()
    if args.file and not os.path.exists(args.file):
        print("File not found:", args.file)
        sys.exit(1)
    seed(_load(args.file) if args.file else DEMO_PRODUCTS)
