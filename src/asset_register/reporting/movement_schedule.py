"""Asset movement schedule (IAS 16 note / tax wear-and-tear schedule)."""

from collections.abc import Iterable
from datetime import date, datetime
from enum import Enum
from pathlib import Path

import pandas as pd

from asset_register.financial.movement import calculate_register, consolidate
from asset_register.financial.valuation import (
    DEFAULT_TAX_YEAR_POLICY,
    TaxYearPolicy,
    normalize_date,
)
from asset_register.models.schemas import (
    Asset,
    AssetCategory,
    DepreciationCalculation,
    MovementSchedule,
    ScheduleGroup,
    ScheduleRow,
)

UNRESOLVED_CATEGORY = "Unresolved category"
TEXT_COLUMNS = (
    "Asset Number",
    "Asset Name",
    "Tag",
    "Acq Date",
    "Category",
    "Tax Year",
)


class ScheduleView(str, Enum):
    IFRS = "ifrs"
    TAX = "tax"


def _is_empty(calc: DepreciationCalculation) -> bool:
    return calc.opening_cost == 0 and calc.additions == 0 and calc.closing_cost == 0


def build_schedule(
    assets: Iterable[Asset],
    categories: Iterable[AssetCategory],
    start: date | datetime,
    end: date | datetime,
    view: ScheduleView | str = ScheduleView.IFRS,
    branch_id: str | None = None,
    policy: TaxYearPolicy = DEFAULT_TAX_YEAR_POLICY,
) -> MovementSchedule:
    """Group period movements by category for presentation.

    Assets with nothing on the register across the period are left out,
    except those whose category cannot be resolved, which are listed under
    their own heading so they stay visible.
    """
    view = ScheduleView(view)
    lookup = {c.id: c for c in categories}
    selected = [a for a in assets if branch_id is None or a.branch_id == branch_id]
    calculations = calculate_register(selected, start, end, lookup, policy)

    grouped: dict[str, list[ScheduleRow]] = {}
    for asset, calc in zip(selected, calculations):
        category = lookup.get(asset.category_id)
        if category is not None and _is_empty(calc):
            continue
        grouped.setdefault(asset.category_id, []).append(
            ScheduleRow(
                asset_id=asset.id,
                asset_number=asset.asset_number,
                asset_name=asset.name,
                tag_id=asset.tag_id,
                acquisition_date=asset.acquisition_date,
                category_id=asset.category_id,
                category_name=category.name if category else UNRESOLVED_CATEGORY,
                calculation=calc,
            )
        )

    groups = []
    for category_id, rows in grouped.items():
        rows.sort(key=lambda r: (r.acquisition_date or date.max, r.asset_number))
        groups.append(
            ScheduleGroup(
                category_id=category_id,
                category_name=rows[0].category_name,
                rows=rows,
                subtotal=consolidate([r.calculation for r in rows], category_id),
            )
        )
    groups.sort(
        key=lambda g: (g.category_name == UNRESOLVED_CATEGORY, g.category_name)
    )

    all_rows = [r.calculation for g in groups for r in g.rows]
    return MovementSchedule(
        view=view.value,
        start=normalize_date(start),
        end=normalize_date(end),
        branch_id=branch_id,
        groups=groups,
        total=consolidate(all_rows),
        has_revaluations=any(
            c.revaluations != 0 or c.impairments != 0 for c in all_rows
        ),
    )


def schedule_frame(schedule: MovementSchedule) -> pd.DataFrame:
    """Flatten a schedule into one row per asset, rounded to cents."""
    records = []
    for group in schedule.groups:
        for row in group.rows:
            calc = row.calculation
            record = {
                "Asset Number": row.asset_number,
                "Asset Name": row.asset_name,
                "Tag": row.tag_id or "N/A",
                "Acq Date": row.acquisition_date.isoformat()
                if row.acquisition_date
                else "N/A",
                "Category": row.category_name,
                "Opening Cost": calc.opening_cost,
                "Additions": calc.additions,
            }
            if schedule.has_revaluations:
                record["Revaluations/Impairments"] = (
                    calc.revaluations - calc.impairments
                )
            record["Disposals"] = calc.disposals
            record["Closing Cost"] = calc.closing_cost
            if schedule.view == ScheduleView.IFRS.value:
                record["Accum Depr Opening"] = calc.opening_accumulated_depr
                record["Depr Charge"] = calc.periodic_depr
                record["Accum Depr Closing"] = calc.closing_accumulated_depr
                record["Net Book Value"] = calc.nbv
            else:
                record["Accum Tax Depr Opening"] = calc.opening_accumulated_tax_depr
                record["Tax Deduction"] = calc.tax_deduction_for_period
                record["Accum Tax Depr Closing"] = calc.closing_accumulated_tax_depr
                record["Tax Value"] = calc.tax_value
                record["Tax Year"] = calc.tax_year_of_asset
            records.append(record)

    df = pd.DataFrame(records)
    if df.empty:
        return df
    money = [c for c in df.columns if c not in TEXT_COLUMNS]
    df[money] = df[money].astype(float).round(2)
    return df


def export_schedule(schedule: MovementSchedule, path: str | Path) -> Path:
    """Write the schedule as CSV, or Excel when the path ends in .xlsx."""
    path = Path(path)
    df = schedule_frame(schedule)
    if path.suffix.lower() == ".xlsx":
        df.to_excel(path, index=False, sheet_name=f"{schedule.view.upper()} Schedule")
    else:
        df.to_csv(path, index=False)
    return path
