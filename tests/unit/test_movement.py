import logging
from datetime import date
from decimal import Decimal

import pytest

from asset_register.financial.movement import (
    ADDITIVE_FIELDS,
    calculate_component_movement,
    calculate_depreciation,
    calculate_register,
    consolidate,
)
from asset_register.financial.valuation import DAYS_PER_YEAR
from asset_register.models.commands import (
    add_component,
    add_revaluation,
    dispose_component,
    new_component_from_category,
    record_impairment,
    replace_component,
    scrap_component,
)

CY2023 = (date(2023, 1, 1), date(2023, 12, 31))
FY2023 = (date(2022, 7, 1), date(2023, 6, 30))
FY2024 = (date(2023, 7, 1), date(2024, 6, 30))

TOLERANCE = Decimal("0.000001")


def assert_rolls_forward(calc):
    """Cost and accumulated-depreciation roll-forwards close."""
    assert calc.closing_cost == (
        calc.opening_cost
        + calc.additions
        + calc.revaluations
        - calc.impairments
        - calc.disposals
    )
    depr = (
        calc.opening_accumulated_depr
        + calc.periodic_depr
        - calc.accumulated_depr_on_disposals
    )
    assert abs(calc.closing_accumulated_depr - depr) < TOLERANCE
    tax = (
        calc.opening_accumulated_tax_depr
        + calc.tax_deduction_for_period
        - calc.tax_depr_on_disposals
    )
    assert abs(calc.closing_accumulated_tax_depr - tax) < TOLERANCE


class TestMidPeriodAcquisition:
    def test_additions_and_charge(self, mixer_asset, categories):
        calc = calculate_depreciation(mixer_asset, *CY2023, categories)
        assert calc.opening_cost == 0
        assert calc.additions == Decimal("55000")
        assert calc.closing_cost == Decimal("55000")
        expected = Decimal("55000") / 10 / DAYS_PER_YEAR * 351
        assert abs(calc.periodic_depr - expected) < TOLERANCE
        assert calc.nbv == calc.closing_cost - calc.closing_accumulated_depr
        assert calc.profit_on_disposal is None
        assert calc.recoupment is None
        assert_rolls_forward(calc)

    def test_tax_year_of_asset(self, mixer_asset, categories):
        calc = calculate_depreciation(mixer_asset, *CY2023, categories)
        # Acquired in FY2023, window ends in FY2024.
        assert calc.tax_year_of_asset == 2

    def test_following_period_opens_where_previous_closed(
        self, mixer_asset, categories
    ):
        first = calculate_depreciation(mixer_asset, *CY2023, categories)
        second = calculate_depreciation(
            mixer_asset, date(2024, 1, 1), date(2024, 12, 31), categories
        )
        assert second.opening_cost == first.closing_cost
        assert abs(second.opening_accumulated_depr - first.closing_accumulated_depr) < (
            TOLERANCE
        )
        assert second.additions == 0
        assert_rolls_forward(second)


class TestDisposal:
    def test_disposal_mid_period(self, mixer_asset, mixer_component, categories):
        disposed = dispose_component(mixer_component, date(2023, 7, 1), 40000)
        asset = replace_component(mixer_asset, disposed)

        calc = calculate_depreciation(asset, *CY2023, categories)
        charge = Decimal("55000") / 10 / DAYS_PER_YEAR * 167

        assert calc.additions == Decimal("55000")
        assert calc.disposals == Decimal("55000")
        assert calc.closing_cost == 0
        assert calc.closing_accumulated_depr == 0
        assert abs(calc.periodic_depr - charge) < TOLERANCE
        assert abs(calc.accumulated_depr_on_disposals - charge) < TOLERANCE
        expected_profit = Decimal("40000") - (Decimal("55000") - charge)
        assert abs(calc.profit_on_disposal - expected_profit) < TOLERANCE
        assert_rolls_forward(calc)

    def test_no_recoupment_below_tax_value(
        self, mixer_asset, mixer_component, categories
    ):
        disposed = dispose_component(mixer_component, date(2023, 7, 1), 40000)
        calc = calculate_depreciation(
            replace_component(mixer_asset, disposed), *CY2023, categories
        )
        assert calc.recoupment == 0

    @pytest.mark.parametrize(
        ("proceeds", "expected"),
        [(Decimal("6000"), Decimal("6000")), (Decimal("15000"), Decimal("10000"))],
    )
    def test_recoupment_capped_at_allowances(
        self, oven_asset, writeoff_category, proceeds, expected
    ):
        tools = new_component_from_category(
            writeoff_category, date(2022, 7, 1), Decimal("10000"), component_id="t"
        )
        tools = dispose_component(tools, date(2023, 1, 1), proceeds)
        asset = oven_asset.model_copy(
            update={"category_id": writeoff_category.id, "components": (tools,)}
        )
        calc = calculate_depreciation(asset, *FY2023, [writeoff_category])
        assert calc.recoupment == expected
        assert calc.tax_depr_on_disposals == Decimal("10000")

    def test_disposed_before_period_is_empty(
        self, mixer_asset, mixer_component, categories
    ):
        disposed = dispose_component(mixer_component, date(2023, 7, 1), 40000)
        calc = calculate_depreciation(
            replace_component(mixer_asset, disposed),
            date(2024, 1, 1),
            date(2024, 12, 31),
            categories,
        )
        for name in ADDITIVE_FIELDS:
            assert getattr(calc, name) == 0
        assert calc.profit_on_disposal is None

    def test_opening_balance_disposed_in_period(
        self, mixer_asset, mixer_component, categories
    ):
        scrapped = scrap_component(mixer_component, date(2024, 3, 1))
        calc = calculate_depreciation(
            replace_component(mixer_asset, scrapped),
            date(2024, 1, 1),
            date(2024, 12, 31),
            categories,
        )
        assert calc.opening_cost == Decimal("55000")
        assert calc.additions == 0
        assert calc.disposals == Decimal("55000")
        assert calc.profit_on_disposal < 0
        assert_rolls_forward(calc)

    def test_disposed_on_acquisition_day(
        self, mixer_asset, mixer_component, categories
    ):
        disposed = dispose_component(mixer_component, date(2023, 1, 15), 55000)
        calc = calculate_depreciation(
            replace_component(mixer_asset, disposed), *CY2023, categories
        )
        assert calc.additions == Decimal("55000")
        assert calc.disposals == Decimal("55000")
        assert calc.periodic_depr == 0
        assert calc.profit_on_disposal == 0
        assert_rolls_forward(calc)

    def test_revalued_component_disposed(self, oven_asset, oven_component, categories):
        component = add_revaluation(oven_component, date(2022, 10, 1), 130000)
        component = dispose_component(component, date(2023, 2, 1), 125000)
        calc = calculate_depreciation(
            replace_component(oven_asset, component), *FY2023, categories
        )
        assert calc.revaluations == Decimal("30000")
        assert calc.disposals == Decimal("130000")
        assert calc.closing_cost == 0
        assert_rolls_forward(calc)


class TestStatutorySchedule:
    def test_year_by_year(self, oven_asset, categories):
        deductions = []
        for year in range(2023, 2028):
            start = date(year - 1, 7, 1)
            end = date(year, 6, 30)
            calc = calculate_depreciation(oven_asset, start, end, categories)
            deductions.append(calc.tax_deduction_for_period)
            assert calc.closing_accumulated_tax_depr <= Decimal("100000")
            assert_rolls_forward(calc)
        assert deductions == [
            Decimal("40000"),
            Decimal("20000"),
            Decimal("20000"),
            Decimal("20000"),
            Decimal("0"),
        ]

    def test_tax_value_at_year_end(self, oven_asset, categories):
        calc = calculate_depreciation(oven_asset, *FY2024, categories)
        assert calc.opening_accumulated_tax_depr == Decimal("40000")
        assert calc.tax_value == Decimal("40000")
        assert calc.tax_year_of_asset == 2


class TestRevaluationsAndImpairments:
    def test_revaluation_in_period(self, oven_asset, oven_component, categories):
        component = add_revaluation(oven_component, date(2023, 1, 1), 120000)
        calc = calculate_depreciation(
            replace_component(oven_asset, component), *FY2023, categories
        )
        assert calc.revaluations == Decimal("20000")
        assert calc.closing_cost == Decimal("120000")
        assert_rolls_forward(calc)

    def test_revaluation_before_period_is_in_opening(
        self, oven_asset, oven_component, categories
    ):
        component = add_revaluation(oven_component, date(2023, 1, 1), 120000)
        calc = calculate_depreciation(
            replace_component(oven_asset, component), *FY2024, categories
        )
        assert calc.revaluations == 0
        assert calc.opening_cost == Decimal("120000")

    def test_downward_revaluation_floors_charge_at_zero(
        self, oven_asset, oven_component, categories
    ):
        component = add_revaluation(oven_component, date(2024, 1, 1), 50000)
        calc = calculate_depreciation(
            replace_component(oven_asset, component), *FY2024, categories
        )
        daily = Decimal("95000") / 10 / DAYS_PER_YEAR
        opening = daily * 365
        # Lower base applied across all 731 days held.
        closing = Decimal("45000") / 10 / DAYS_PER_YEAR * 731
        assert abs(calc.opening_accumulated_depr - opening) < TOLERANCE
        assert abs(calc.closing_accumulated_depr - closing) < TOLERANCE
        assert calc.periodic_depr == 0
        assert calc.closing_accumulated_depr < calc.opening_accumulated_depr
        assert calc.revaluations == Decimal("-50000")
        assert calc.closing_cost == calc.opening_cost + calc.revaluations

    def test_impairment_on_acquired_component(
        self, oven_asset, oven_component, categories
    ):
        component = record_impairment(oven_component, Decimal("10000"))
        calc = calculate_depreciation(
            replace_component(oven_asset, component), *FY2023, categories
        )
        assert calc.impairments == Decimal("10000")
        assert calc.closing_cost == Decimal("90000")
        assert_rolls_forward(calc)


class TestCategoryResolution:
    def test_category_not_found(self, mixer_asset, caplog):
        orphan = mixer_asset.model_copy(update={"category_id": "cat-missing"})
        with caplog.at_level(logging.WARNING):
            calc = calculate_depreciation(orphan, *CY2023, [])
        assert calc.asset_id == mixer_asset.id
        for name in ADDITIVE_FIELDS:
            assert getattr(calc, name) == 0
        assert calc.tax_year_of_asset == 0
        assert calc.profit_on_disposal is None
        assert "cat-missing" in caplog.text

    def test_accepts_mapping(self, mixer_asset, general_category):
        by_id = {general_category.id: general_category}
        calc = calculate_depreciation(mixer_asset, *CY2023, by_id)
        assert calc.additions == Decimal("55000")

    def test_asset_without_components(self, mixer_asset, categories):
        empty = mixer_asset.model_copy(update={"components": ()})
        calc = calculate_depreciation(empty, *CY2023, categories)
        assert calc.closing_cost == 0
        assert calc.tax_year_of_asset == 0


class TestMultipleComponents:
    def test_components_are_summed(self, mixer_asset, general_category, categories):
        motor = new_component_from_category(
            general_category,
            date(2023, 3, 1),
            Decimal("5000"),
            component_id="motor",
            name="Replacement Motor",
        )
        asset = add_component(mixer_asset, motor)
        calc = calculate_depreciation(asset, *CY2023, categories)
        assert calc.additions == Decimal("60000")
        assert calc.closing_cost == Decimal("60000")

        parts = [
            calculate_component_movement(c, general_category, *CY2023)
            for c in asset.components
        ]
        assert calc.periodic_depr == sum(p.periodic_depr for p in parts)


class TestConsolidate:
    def test_sums_fields(self, mixer_asset, oven_asset, categories):
        results = calculate_register([mixer_asset, oven_asset], *FY2023, categories)
        total = consolidate(results)
        assert total.asset_id == "CONSOLIDATED"
        assert total.additions == Decimal("155000")
        assert total.closing_cost == sum(r.closing_cost for r in results)
        assert total.tax_year_of_asset == max(r.tax_year_of_asset for r in results)
        assert total.profit_on_disposal is None

    def test_disposal_results_carry_through(
        self, mixer_asset, mixer_component, oven_asset, categories
    ):
        disposed = replace_component(
            mixer_asset, dispose_component(mixer_component, date(2023, 7, 1), 40000)
        )
        results = calculate_register([disposed, oven_asset], *CY2023, categories)
        total = consolidate(results, "GROUP")
        assert total.asset_id == "GROUP"
        assert total.profit_on_disposal == results[0].profit_on_disposal
        assert total.recoupment == 0

    def test_empty(self):
        total = consolidate([])
        assert total.closing_cost == 0
        assert total.tax_year_of_asset == 0
