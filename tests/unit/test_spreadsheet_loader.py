import itertools
from datetime import date, datetime
from decimal import Decimal

import pandas as pd
import pytest

from asset_register.exceptions import ImportFileError
from asset_register.ingestion.spreadsheet_loader import (
    TEMPLATE_COLUMNS,
    import_assets,
    load_spreadsheet,
    parse_import_date,
    rows_to_assets,
    template_frame,
)

TODAY = date(2024, 3, 1)


def _ids():
    counter = itertools.count(1)
    return lambda: f"imp-{next(counter):03d}"


class TestParseImportDate:
    def test_iso_string(self):
        assert parse_import_date("2023-01-15", TODAY) == date(2023, 1, 15)

    def test_excel_serial(self):
        assert parse_import_date(44941, TODAY) == date(2023, 1, 15)
        assert parse_import_date(44941.0, TODAY) == date(2023, 1, 15)

    def test_datetime(self):
        assert parse_import_date(datetime(2023, 1, 15, 9, 30), TODAY) == date(
            2023, 1, 15
        )

    @pytest.mark.parametrize("value", [None, "", "not a date", float("nan")])
    def test_fallback_to_today(self, value):
        assert parse_import_date(value, TODAY) == TODAY


class TestTemplate:
    def test_columns(self):
        df = template_frame()
        assert list(df.columns) == TEMPLATE_COLUMNS
        assert len(df) == 1


class TestRowsToAssets:
    def test_smart_matching(self, categories, locations):
        df = pd.DataFrame(
            [
                {
                    "AssetNumber": "bak-001",
                    "Name": "Deck Oven",
                    "Category": "  bakery machinery (12c) ",
                    "Branch": "head office",
                    "Location": "KITCHEN A",
                    "SubLocation": "bay 1",
                    "Cost": "100,000",
                    "AcquisitionDate": "2022-07-01",
                }
            ]
        )
        asset = rows_to_assets(df, categories, locations, TODAY, _ids())[0]
        assert asset.id == "imp-001"
        assert asset.asset_number == "BAK-001"
        assert asset.category_id == "cat-bak-001"
        assert asset.branch_id == "br-hq"
        assert asset.location_id == "loc-hq-kit"
        assert asset.sub_location_id == "sub-hq-kit-1"

        component = asset.components[0]
        assert component.id == "primary"
        assert component.cost == Decimal("100000")
        assert component.residual_value == Decimal("5000")
        assert component.useful_life_years == Decimal("10")
        assert component.tax_rate == Decimal("20")
        assert component.acquisition_date == date(2022, 7, 1)

    def test_fallbacks(self, categories, locations):
        df = pd.DataFrame(
            [
                {
                    "AssetNumber": "x-1",
                    "Category": "Unknown",
                    "Branch": "Nowhere",
                    "Location": "Kitchen A",
                    "Cost": 500,
                }
            ]
        )
        asset = rows_to_assets(df, categories, locations, TODAY, _ids())[0]
        assert asset.category_id == categories[0].id
        assert asset.branch_id == "br-hq"
        assert asset.name == "Imported Asset"
        assert asset.components[0].acquisition_date == TODAY

    def test_location_must_belong_to_branch(self, categories, locations):
        df = pd.DataFrame(
            [{"AssetNumber": "x-2", "Branch": "Cape Town", "Location": "Kitchen A"}]
        )
        asset = rows_to_assets(df, categories, locations, TODAY, _ids())[0]
        assert asset.branch_id == "br-ct"
        assert asset.location_id == ""

    def test_explicit_values_win(self, categories, locations):
        df = pd.DataFrame(
            [
                {
                    "AssetNumber": "x-3",
                    "Category": "General Equipment",
                    "Cost": 1000,
                    "UsefulLife": 3,
                    "TaxRate": 50,
                    "ResidualValue": 100,
                    "Supplier": "Acme",
                    "RFID": "TAG-1",
                }
            ]
        )
        asset = rows_to_assets(df, categories, locations, TODAY, _ids())[0]
        component = asset.components[0]
        assert component.useful_life_years == Decimal("3")
        assert component.tax_rate == Decimal("50")
        assert component.residual_value == Decimal("100")
        assert component.supplier_name == "Acme"
        assert asset.tag_id == "TAG-1"

    def test_requires_categories(self, locations):
        with pytest.raises(ImportFileError):
            rows_to_assets(pd.DataFrame([{"Name": "x"}]), [], locations, TODAY)

    def test_invalid_row_reports_row_number(self, categories, locations):
        df = pd.DataFrame(
            [
                {"AssetNumber": "ok-1", "Cost": 500},
                {"AssetNumber": "bad-2", "Cost": -500},
            ]
        )
        with pytest.raises(ImportFileError, match="Row 2"):
            rows_to_assets(df, categories, locations, TODAY, _ids())


class TestLoadAndImport:
    def test_missing_file(self, tmp_path):
        with pytest.raises(ImportFileError):
            load_spreadsheet(tmp_path / "missing.csv")

    def test_import_csv(self, tmp_path, repository):
        path = tmp_path / "assets.csv"
        template_frame().to_csv(path, index=False)

        assets = import_assets(path, repository, TODAY)
        assert len(assets) == 1
        stored = repository.get_asset_by_number("LUP-MAC-001")
        assert stored.components[0].cost == Decimal("55000")
        assert stored.components[0].acquisition_date == date(2023, 1, 15)
        assert repository.audit_entries(stored.id)[0].action == "CREATE"
