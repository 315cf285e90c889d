"""Bulk asset import from CSV or Excel spreadsheets.

Each row becomes an asset with a single primary component. Category, branch
and location names are matched case-insensitively against the configured
register; unmatched categories and branches fall back to the first one.
"""

import logging
import numbers
import uuid
from collections.abc import Callable
from datetime import date, datetime, timedelta
from decimal import Decimal, InvalidOperation
from pathlib import Path

import pandas as pd
from pydantic import ValidationError

from asset_register.exceptions import ImportFileError
from asset_register.ingestion.repository import AssetRepository
from asset_register.models.schemas import (
    Asset,
    AssetCategory,
    AssetComponent,
    AssetLocation,
    AssetStatus,
    LocationType,
)

logger = logging.getLogger(__name__)

TEMPLATE_COLUMNS = [
    "AssetNumber",
    "Name",
    "TagId",
    "Category",
    "Branch",
    "Location",
    "SubLocation",
    "Cost",
    "AcquisitionDate",
    "UsefulLife",
    "TaxRate",
    "SupplierName",
    "InvoiceNumber",
]

EXCEL_EPOCH = date(1899, 12, 30)


def template_frame() -> pd.DataFrame:
    """Import template with a single example row."""
    example = {
        "AssetNumber": "LUP-MAC-001",
        "Name": "Industrial Dough Mixer",
        "TagId": "RFID-8832-XJ",
        "Category": "General Equipment",
        "Branch": "Head Office",
        "Location": "Kitchen A",
        "SubLocation": "Bay 1",
        "Cost": 55000,
        "AcquisitionDate": "2023-01-15",
        "UsefulLife": 10,
        "TaxRate": 20,
        "SupplierName": "Bakery Pro Ltd",
        "InvoiceNumber": "INV-9988",
    }
    return pd.DataFrame([example], columns=TEMPLATE_COLUMNS)


def _blank(value) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


def _first(row: dict, *keys: str, default=None):
    for key in keys:
        value = row.get(key)
        if not _blank(value):
            return value
    return default


def _text(value) -> str:
    return "" if _blank(value) else str(value).strip()


def _decimal(value, default: Decimal = Decimal("0")) -> Decimal:
    if _blank(value):
        return default
    try:
        return Decimal(str(value).replace(",", "").strip())
    except InvalidOperation:
        return default


def parse_import_date(value, today: date | None = None) -> date:
    """Interpret ISO strings, Excel serial numbers and parseable dates.

    Missing or unparseable values fall back to ``today``.
    """
    fallback = today or date.today()
    if _blank(value):
        return fallback
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, numbers.Real) and not isinstance(value, bool):
        return EXCEL_EPOCH + timedelta(days=int(value))
    parsed = pd.to_datetime(str(value).strip(), errors="coerce")
    if pd.isna(parsed):
        return fallback
    return parsed.date()


def load_spreadsheet(path: str | Path) -> pd.DataFrame:
    """Read the first sheet of an import file."""
    path = Path(path)
    try:
        if path.suffix.lower() in (".xlsx", ".xls"):
            return pd.read_excel(path, sheet_name=0)
        return pd.read_csv(path)
    except (OSError, ValueError, ImportError) as e:
        raise ImportFileError(f"Could not parse {path.name}: {e}") from e


def _match(name: str, candidates: list) -> object | None:
    key = name.strip().lower()
    if not key:
        return None
    for candidate in candidates:
        if candidate.name.strip().lower() == key:
            return candidate
    return None


def rows_to_assets(
    df: pd.DataFrame,
    categories: list[AssetCategory],
    locations: list[AssetLocation],
    today: date | None = None,
    id_factory: Callable[[], str] | None = None,
) -> list[Asset]:
    """Map spreadsheet rows onto assets with one primary component each."""
    if not categories:
        raise ImportFileError("No asset categories configured; cannot map rows")
    id_factory = id_factory or (lambda: uuid.uuid4().hex[:12])

    branches = [loc for loc in locations if loc.type == LocationType.BRANCH]
    assets = []
    for n, row in enumerate(df.to_dict(orient="records"), start=1):
        category = _match(_text(row.get("Category")), categories) or categories[0]
        branch = _match(_text(row.get("Branch")), branches) or (
            branches[0] if branches else (locations[0] if locations else None)
        )
        branch_id = branch.id if branch else ""

        functional = _match(
            _text(row.get("Location")),
            [
                loc
                for loc in locations
                if loc.type == LocationType.LOCATION and loc.parent_id == branch_id
            ],
        )
        sub_location = None
        if functional is not None:
            sub_location = _match(
                _text(row.get("SubLocation")),
                [
                    loc
                    for loc in locations
                    if loc.type == LocationType.SUBLOCATION
                    and loc.parent_id == functional.id
                ],
            )

        cost = _decimal(row.get("Cost"))
        residual = _decimal(
            row.get("ResidualValue"), cost * category.residual_percentage / 100
        )
        useful_life = _decimal(row.get("UsefulLife"))
        tax_rate = _decimal(row.get("TaxRate"))

        try:
            component = AssetComponent(
                id="primary",
                name="Primary Unit",
                acquisition_date=parse_import_date(row.get("AcquisitionDate"), today),
                cost=cost,
                residual_value=residual,
                useful_life_years=useful_life or category.default_useful_life,
                tax_rate=tax_rate or category.default_tax_rate,
                status=AssetStatus.ACTIVE,
                supplier_name=_text(_first(row, "SupplierName", "Supplier")),
                supplier_contact=_text(row.get("SupplierContact")),
                invoice_number=_text(_first(row, "InvoiceNumber", "Invoice")),
            )
            asset = Asset(
                id=id_factory(),
                asset_number=_text(_first(row, "AssetNumber", "Asset No")).upper(),
                tag_id=_text(
                    _first(row, "TagId", "Tag ID", "Electronic Tag", "RFID")
                ),
                name=_text(row.get("Name")) or "Imported Asset",
                description=_text(row.get("Description")),
                category_id=category.id,
                branch_id=branch_id,
                location_id=functional.id if functional else "",
                sub_location_id=sub_location.id if sub_location else "",
                status=AssetStatus.ACTIVE,
                components=(component,),
            )
        except ValidationError as e:
            raise ImportFileError(f"Row {n}: {e}") from e
        assets.append(asset)
    return assets


def import_assets(
    path: str | Path, repository: AssetRepository, today: date | None = None
) -> list[Asset]:
    """Load a spreadsheet and store every row in the register."""
    df = load_spreadsheet(path)
    assets = rows_to_assets(
        df, repository.list_categories(), repository.list_locations(), today
    )
    repository.save_assets(assets)
    logger.info("Imported %d assets from %s", len(assets), Path(path).name)
    return assets
