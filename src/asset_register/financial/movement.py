"""Period movement schedule: opening, movements and closing per asset.

Figures are derived by differencing component valuations at the period
boundaries (the day before ``report_start`` and ``report_end``), plus the day
before disposal for components that leave the register in the period.
"""

import logging
from collections.abc import Iterable, Mapping
from datetime import date, datetime
from decimal import Decimal

from asset_register.financial.valuation import (
    DEFAULT_TAX_YEAR_POLICY,
    ONE_DAY,
    TaxYearPolicy,
    evaluate_ifrs,
    evaluate_tax,
    normalize_date,
)
from asset_register.models.schemas import (
    Asset,
    AssetCategory,
    AssetComponent,
    ComponentMovement,
    DepreciationCalculation,
    MovementFigures,
)

logger = logging.getLogger(__name__)

ZERO = Decimal("0")

# Summed field-by-field when aggregating; tax_year_of_asset takes the max.
ADDITIVE_FIELDS = tuple(
    name for name in MovementFigures.model_fields if name != "tax_year_of_asset"
)


def calculate_component_movement(
    component: AssetComponent,
    category: AssetCategory,
    report_start: date | datetime,
    report_end: date | datetime,
    policy: TaxYearPolicy = DEFAULT_TAX_YEAR_POLICY,
) -> ComponentMovement:
    """Movement figures of one component over ``[report_start, report_end]``."""
    start = normalize_date(report_start)
    end = normalize_date(report_end)
    opening_date = start - ONE_DAY

    ifrs_op = evaluate_ifrs(component, opening_date)
    ifrs_cl = evaluate_ifrs(component, end)
    tax_op = evaluate_tax(component, category, opening_date, policy)
    tax_cl = evaluate_tax(component, category, end, policy)

    acquired_in_period = start <= component.acquisition_date <= end
    additions = component.cost if acquired_in_period else ZERO

    revaluations = ifrs_cl.revaluation_impact - ifrs_op.revaluation_impact
    impairments = ifrs_cl.impairments - ifrs_op.impairments

    disposals = ZERO
    accum_depr_on_disposal = ZERO
    tax_depr_on_disposal = ZERO
    profit = ZERO
    recoupment = ZERO
    has_disposal = component.is_retired and start <= component.disposal_date <= end

    if has_disposal:
        last_day = component.disposal_date - ONE_DAY
        ifrs_disp = evaluate_ifrs(component, last_day)
        tax_disp = evaluate_tax(component, category, last_day, policy)

        if component.disposal_date <= component.acquisition_date:
            # Never on the register for a full day: removed at what was added.
            disposals = additions
        else:
            disposals = ifrs_disp.carrying_cost
        # The component's revaluation and impairment movement ends when it
        # leaves the register, so the cost roll-forward closes to zero.
        revaluations = ifrs_disp.revaluation_impact - ifrs_op.revaluation_impact
        impairments = ifrs_disp.impairments - ifrs_op.impairments

        accum_depr_on_disposal = ifrs_disp.accumulated_depreciation
        tax_depr_on_disposal = tax_disp.accumulated_tax_depreciation

        proceeds = component.disposal_proceeds or ZERO
        nbv_at_disposal = disposals - accum_depr_on_disposal
        profit = proceeds - nbv_at_disposal

        if proceeds > tax_disp.tax_value:
            recoupment = min(
                proceeds - tax_disp.tax_value,
                tax_disp.accumulated_tax_depreciation,
            )

    periodic_depr = max(
        ZERO,
        ifrs_cl.accumulated_depreciation
        - ifrs_op.accumulated_depreciation
        + accum_depr_on_disposal,
    )
    tax_deduction = max(
        ZERO,
        tax_cl.accumulated_tax_depreciation
        - tax_op.accumulated_tax_depreciation
        + tax_depr_on_disposal,
    )

    return ComponentMovement(
        component_id=component.id,
        opening_cost=ifrs_op.carrying_cost,
        additions=additions,
        disposals=disposals,
        revaluations=revaluations,
        impairments=impairments,
        closing_cost=ifrs_cl.carrying_cost,
        opening_accumulated_depr=ifrs_op.accumulated_depreciation,
        periodic_depr=periodic_depr,
        accumulated_depr_on_disposals=accum_depr_on_disposal,
        closing_accumulated_depr=ifrs_cl.accumulated_depreciation,
        nbv=ifrs_cl.net_book_value,
        tax_value=tax_cl.tax_value,
        tax_deduction_for_period=tax_deduction,
        opening_accumulated_tax_depr=tax_op.accumulated_tax_depreciation,
        tax_depr_on_disposals=tax_depr_on_disposal,
        closing_accumulated_tax_depr=tax_cl.accumulated_tax_depreciation,
        tax_year_of_asset=tax_cl.current_tax_year,
        profit_on_disposal=profit if has_disposal else ZERO,
        recoupment=recoupment if has_disposal else ZERO,
        has_disposal=has_disposal,
    )


def _sum_figures(items: list[MovementFigures]) -> dict:
    totals = {
        name: sum((getattr(i, name) for i in items), ZERO) for name in ADDITIVE_FIELDS
    }
    totals["tax_year_of_asset"] = max((i.tax_year_of_asset for i in items), default=0)
    return totals


def calculate_for_category(
    asset: Asset,
    category: AssetCategory,
    report_start: date | datetime,
    report_end: date | datetime,
    policy: TaxYearPolicy = DEFAULT_TAX_YEAR_POLICY,
) -> DepreciationCalculation:
    """Aggregate the movement of every component of ``asset``."""
    movements = [
        calculate_component_movement(c, category, report_start, report_end, policy)
        for c in asset.components
    ]
    disposed = [m for m in movements if m.has_disposal]

    return DepreciationCalculation(
        asset_id=asset.id,
        **_sum_figures(movements),
        profit_on_disposal=(
            sum((m.profit_on_disposal for m in disposed), ZERO) if disposed else None
        ),
        recoupment=sum((m.recoupment for m in disposed), ZERO) if disposed else None,
    )


def _category_lookup(
    categories: Mapping[str, AssetCategory] | Iterable[AssetCategory],
) -> Mapping[str, AssetCategory]:
    if isinstance(categories, Mapping):
        return categories
    return {c.id: c for c in categories}


def calculate_depreciation(
    asset: Asset,
    report_start: date | datetime,
    report_end: date | datetime,
    categories: Mapping[str, AssetCategory] | Iterable[AssetCategory],
    policy: TaxYearPolicy = DEFAULT_TAX_YEAR_POLICY,
) -> DepreciationCalculation:
    """Movement of one asset, resolving its category by id.

    An asset whose category cannot be resolved yields an all-zero result
    tagged with its id so a report can still render it.
    """
    category = _category_lookup(categories).get(asset.category_id)
    if category is None:
        logger.warning(
            "Category %s not found for asset %s; reporting zero movement",
            asset.category_id,
            asset.asset_number,
        )
        return DepreciationCalculation.zero(asset.id)
    return calculate_for_category(asset, category, report_start, report_end, policy)


def calculate_register(
    assets: Iterable[Asset],
    report_start: date | datetime,
    report_end: date | datetime,
    categories: Mapping[str, AssetCategory] | Iterable[AssetCategory],
    policy: TaxYearPolicy = DEFAULT_TAX_YEAR_POLICY,
) -> list[DepreciationCalculation]:
    """One result per asset, in input order."""
    lookup = _category_lookup(categories)
    return [
        calculate_depreciation(a, report_start, report_end, lookup, policy)
        for a in assets
    ]


def consolidate(
    calculations: Iterable[DepreciationCalculation],
    asset_id: str = "CONSOLIDATED",
) -> DepreciationCalculation:
    """Sum results across assets; the tax year is the oldest asset's."""
    items = list(calculations)
    profits = [c.profit_on_disposal for c in items if c.profit_on_disposal is not None]
    recoupments = [c.recoupment for c in items if c.recoupment is not None]
    return DepreciationCalculation(
        asset_id=asset_id,
        **_sum_figures(items),
        profit_on_disposal=sum(profits, ZERO) if profits else None,
        recoupment=sum(recoupments, ZERO) if recoupments else None,
    )
