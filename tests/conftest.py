from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session

from asset_register.ingestion.repository import AssetRepository
from asset_register.models.orm import Base
from asset_register.models.schemas import (
    Asset,
    AssetCategory,
    AssetComponent,
    AssetLocation,
    LocationType,
    TaxStrategy,
)


@pytest.fixture(scope="session")
def engine():
    eng = create_engine("sqlite:///:memory:", echo=False)
    Base.metadata.create_all(eng)
    return eng


@pytest.fixture
def session(engine):
    connection = engine.connect()
    transaction = connection.begin()
    sess = Session(bind=connection)
    yield sess
    sess.close()
    transaction.rollback()
    connection.close()


@pytest.fixture
def general_category():
    """StandardFlat 20%, five-year life, no residual."""
    return AssetCategory(
        id="cat-gen-001",
        name="General Equipment",
        default_useful_life=Decimal("5"),
        default_tax_rate=Decimal("20"),
        residual_percentage=Decimal("0"),
        tax_strategy=TaxStrategy.STANDARD_FLAT,
        gl_code_cost="1000/001",
        gl_code_accum_depr="1000/002",
        gl_code_depr_expense="5000/001",
    )


@pytest.fixture
def bakery_category():
    """Section 12C machinery on the 40/20/20/20 schedule."""
    return AssetCategory(
        id="cat-bak-001",
        name="Bakery Machinery (12C)",
        default_useful_life=Decimal("10"),
        default_tax_rate=Decimal("20"),
        residual_percentage=Decimal("5"),
        tax_strategy=TaxStrategy.SCHEDULE_40_20_20_20,
        gl_code_cost="1000/100",
        gl_code_accum_depr="1000/110",
        gl_code_depr_expense="5000/100",
    )


@pytest.fixture
def writeoff_category():
    return AssetCategory(
        id="cat-sw-001",
        name="Small Tools",
        default_useful_life=Decimal("1"),
        default_tax_rate=Decimal("100"),
        tax_strategy=TaxStrategy.FULL_WRITEOFF_100,
        gl_code_cost="1000/300",
        gl_code_accum_depr="1000/310",
        gl_code_depr_expense="5000/300",
    )


@pytest.fixture
def categories(general_category, bakery_category, writeoff_category):
    return [general_category, bakery_category, writeoff_category]


@pytest.fixture
def locations():
    return [
        AssetLocation(
            id="br-hq", name="Head Office", code="HQ-01", type=LocationType.BRANCH
        ),
        AssetLocation(
            id="br-ct", name="Cape Town", code="CT-01", type=LocationType.BRANCH
        ),
        AssetLocation(
            id="loc-hq-kit",
            name="Kitchen A",
            code="HQ-KIT",
            type=LocationType.LOCATION,
            parent_id="br-hq",
        ),
        AssetLocation(
            id="sub-hq-kit-1",
            name="Bay 1",
            code="HQ-KIT-B1",
            type=LocationType.SUBLOCATION,
            parent_id="loc-hq-kit",
        ),
    ]


@pytest.fixture
def mixer_component():
    """55 000 dough mixer, ten-year life, bought mid-January 2023."""
    return AssetComponent(
        id="primary",
        name="Primary Unit",
        acquisition_date=date(2023, 1, 15),
        cost=Decimal("55000"),
        residual_value=Decimal("0"),
        useful_life_years=Decimal("10"),
        tax_rate=Decimal("20"),
    )


@pytest.fixture
def oven_component():
    """100 000 deck oven bought on the first day of FY2023."""
    return AssetComponent(
        id="primary",
        acquisition_date=date(2022, 7, 1),
        cost=Decimal("100000"),
        residual_value=Decimal("5000"),
        useful_life_years=Decimal("10"),
        tax_rate=Decimal("20"),
    )


@pytest.fixture
def mixer_asset(mixer_component):
    return Asset(
        id="ast-00001",
        asset_number="GEN-0001",
        tag_id="RFID-8832-XJ",
        name="Industrial Dough Mixer",
        category_id="cat-gen-001",
        branch_id="br-hq",
        location_id="loc-hq-kit",
        components=(mixer_component,),
    )


@pytest.fixture
def oven_asset(oven_component):
    return Asset(
        id="ast-00002",
        asset_number="BAK-0002",
        name="Deck Oven",
        category_id="cat-bak-001",
        branch_id="br-ct",
        components=(oven_component,),
    )


@pytest.fixture
def repository(session, categories, locations):
    """Repository over the transactional session, with categories and locations."""
    repo = AssetRepository(session, user_id="tester")
    for category in categories:
        repo.save_category(category)
    for location in locations:
        repo.save_location(location)
    return repo
