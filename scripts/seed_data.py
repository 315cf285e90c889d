"""Seed data for asset-register.

Loads the default categories and head office locations, then replaces the
register with a reproducible set of sample assets spread over five fiscal
years, including a few disposals, revaluations and impairments.
"""

import random
import sys
from datetime import date, timedelta
from decimal import Decimal
from pathlib import Path

# Ensure src is importable when running as a script
sys.path.insert(0, str(Path(__file__).resolve().parent.parent / "src"))

from asset_register.ingestion.repository import AssetRepository
from asset_register.models.commands import (
    add_revaluation,
    dispose_component,
    new_component_from_category,
    record_impairment,
    scrap_component,
)
from asset_register.models.database import get_engine, get_session_factory, init_db
from asset_register.models.schemas import (
    Asset,
    AssetCategory,
    AssetLocation,
    LocationType,
    TaxStrategy,
)

SEED = 42
random.seed(SEED)

CATEGORIES = [
    AssetCategory(
        id="cat-gen-001",
        name="General Equipment",
        default_useful_life=Decimal("5"),
        default_tax_rate=Decimal("20"),
        residual_percentage=Decimal("0"),
        tax_strategy=TaxStrategy.STANDARD_FLAT,
        gl_code_cost="1000/001",
        gl_code_accum_depr="1000/002",
        gl_code_depr_expense="5000/001",
    ),
    AssetCategory(
        id="cat-bak-001",
        name="Bakery Machinery (12C)",
        default_useful_life=Decimal("10"),
        default_tax_rate=Decimal("20"),
        residual_percentage=Decimal("5"),
        tax_strategy=TaxStrategy.SCHEDULE_40_20_20_20,
        gl_code_cost="1000/100",
        gl_code_accum_depr="1000/110",
        gl_code_depr_expense="5000/100",
    ),
    AssetCategory(
        id="cat-it-001",
        name="Computer Equipment",
        default_useful_life=Decimal("3"),
        default_tax_rate=Decimal("33.33"),
        residual_percentage=Decimal("0"),
        tax_strategy=TaxStrategy.SCHEDULE_50_30_20,
        gl_code_cost="1000/200",
        gl_code_accum_depr="1000/210",
        gl_code_depr_expense="5000/200",
    ),
    AssetCategory(
        id="cat-sw-001",
        name="Small Tools",
        default_useful_life=Decimal("1"),
        default_tax_rate=Decimal("100"),
        residual_percentage=Decimal("0"),
        tax_strategy=TaxStrategy.FULL_WRITEOFF_100,
        gl_code_cost="1000/300",
        gl_code_accum_depr="1000/310",
        gl_code_depr_expense="5000/300",
    ),
    AssetCategory(
        id="cat-bld-001",
        name="Buildings",
        default_useful_life=Decimal("40"),
        default_tax_rate=Decimal("5"),
        residual_percentage=Decimal("10"),
        tax_strategy=TaxStrategy.SCHEDULE_5PCT_OVER_20_YEARS,
        gl_code_cost="1000/400",
        gl_code_accum_depr="1000/410",
        gl_code_depr_expense="5000/400",
        gl_code_revaluation_surplus="3000/400",
    ),
]

LOCATIONS = [
    AssetLocation(
        id="br-hq", name="Head Office", code="HQ-01", type=LocationType.BRANCH
    ),
    AssetLocation(
        id="br-ct", name="Cape Town Bakery", code="CT-01", type=LocationType.BRANCH
    ),
    AssetLocation(
        id="loc-hq-kit",
        name="Kitchen A",
        code="HQ-KIT",
        type=LocationType.LOCATION,
        parent_id="br-hq",
    ),
    AssetLocation(
        id="loc-hq-off",
        name="Admin Office",
        code="HQ-OFF",
        type=LocationType.LOCATION,
        parent_id="br-hq",
    ),
    AssetLocation(
        id="loc-ct-prod",
        name="Production Floor",
        code="CT-PRD",
        type=LocationType.LOCATION,
        parent_id="br-ct",
    ),
    AssetLocation(
        id="sub-hq-kit-1",
        name="Bay 1",
        code="HQ-KIT-B1",
        type=LocationType.SUBLOCATION,
        parent_id="loc-hq-kit",
    ),
]

# (category_id, count, cost_min, cost_max, names)
ASSET_SPECS = [
    ("cat-gen-001", 12, 2_000, 60_000, ["Dough Mixer", "Delivery Trolley", "Chiller"]),
    ("cat-bak-001", 10, 40_000, 450_000, ["Deck Oven", "Proofer", "Bread Slicer"]),
    ("cat-it-001", 15, 800, 25_000, ["Laptop", "POS Terminal", "Server"]),
    ("cat-sw-001", 8, 150, 4_000, ["Hand Tools Kit", "Scale", "Thermometer Set"]),
    ("cat-bld-001", 2, 1_500_000, 4_000_000, ["Warehouse", "Retail Premises"]),
]

REGISTER_START = date(2020, 7, 1)
REGISTER_END = date(2025, 6, 30)

SUPPLIERS = ["Bakery Pro Ltd", "Office Hub", "BuildCo"]

FUNCTIONAL_LOCATIONS = {"br-hq": "loc-hq-kit", "br-ct": "loc-ct-prod"}


def _random_date(start: date, end: date) -> date:
    return start + timedelta(days=random.randint(0, (end - start).days))


def _money(low: int, high: int) -> Decimal:
    return Decimal(str(round(random.uniform(low, high), 2)))


def generate_assets() -> list[Asset]:
    """Build the sample register."""
    categories = {c.id: c for c in CATEGORIES}
    assets = []
    seq = 0
    for category_id, count, cost_min, cost_max, names in ASSET_SPECS:
        category = categories[category_id]
        for i in range(count):
            seq += 1
            acquired = _random_date(REGISTER_START, REGISTER_END)
            component = new_component_from_category(
                category,
                acquired,
                _money(cost_min, cost_max),
                component_id="primary",
                supplier_name=random.choice(SUPPLIERS),
                invoice_number=f"INV-{seq:05d}",
            )

            roll = random.random()
            if roll < 0.10 and acquired < REGISTER_END - timedelta(days=200):
                disposal = _random_date(acquired + timedelta(days=90), REGISTER_END)
                ratio = Decimal(str(round(random.uniform(0.2, 0.8), 4)))
                proceeds = (component.cost * ratio).quantize(Decimal("0.01"))
                component = dispose_component(component, disposal, proceeds)
            elif roll < 0.14 and acquired < REGISTER_END - timedelta(days=200):
                scrapped = _random_date(acquired + timedelta(days=90), REGISTER_END)
                component = scrap_component(component, scrapped)
            elif roll < 0.18:
                loss = (component.cost * Decimal("0.1")).quantize(Decimal("0.01"))
                component = record_impairment(component, loss)

            if category_id == "cat-bld-001":
                component = add_revaluation(
                    component,
                    acquired + timedelta(days=730),
                    (component.cost * Decimal("1.15")).quantize(Decimal("0.01")),
                    "Independent valuation",
                )

            branch_id = random.choice(list(FUNCTIONAL_LOCATIONS))
            prefix = category.name.split()[0][:3].upper()
            name = names[i % len(names)]
            assets.append(
                Asset(
                    id=f"ast-{seq:05d}",
                    asset_number=f"{prefix}-{seq:04d}",
                    tag_id=f"RFID-{random.randint(1000, 9999)}-{seq:04d}",
                    name=name,
                    description=f"{name} ({category.name})",
                    category_id=category_id,
                    branch_id=branch_id,
                    location_id=FUNCTIONAL_LOCATIONS[branch_id],
                    status=component.status,
                    components=(component,),
                )
            )
    return assets


def main() -> None:
    """Seed the register."""
    print("Initializing database...")
    engine = get_engine()
    init_db(engine)

    SessionLocal = get_session_factory(engine)
    session = SessionLocal()

    try:
        repo = AssetRepository(session, user_id="seed")
        print("Loading categories and locations...")
        for category in CATEGORIES:
            repo.save_category(category)
        for location in LOCATIONS:
            repo.save_location(location)

        removed = repo.purge_assets()
        if removed:
            print(f"  Removed {removed} existing assets")

        print("Generating sample assets...")
        count = repo.save_assets(generate_assets())
        print(f"  Created {count} assets")

        session.commit()
        print("\nSeeding complete!")
        print(f"  Categories: {len(repo.list_categories())}")
        print(f"  Locations:  {len(repo.list_locations())}")
        print(f"  Assets:     {repo.count_assets()}")
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


if __name__ == "__main__":
    main()
