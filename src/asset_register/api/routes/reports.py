from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query

from asset_register.api.dependencies import get_repository, get_tax_year_policy
from asset_register.config.settings import get_settings
from asset_register.exceptions import AssetNotFoundError
from asset_register.financial.movement import calculate_depreciation
from asset_register.financial.valuation import TaxYearPolicy
from asset_register.ingestion.repository import AssetRepository
from asset_register.reporting.journals import (
    ENTRY_TYPES,
    build_journals,
    parse_month,
    trial_balance,
)
from asset_register.reporting.movement_schedule import ScheduleView, build_schedule

router = APIRouter(tags=["reports"])


def _check_window(start: date, end: date) -> None:
    if end < start:
        raise HTTPException(400, "Report end date precedes start date")


@router.get("/assets/{asset_number}/depreciation")
def get_depreciation(
    asset_number: str,
    start: date = Query(..., description="First day of the reporting period"),
    end: date = Query(..., description="Last day of the reporting period"),
    repo: AssetRepository = Depends(get_repository),
    policy: TaxYearPolicy = Depends(get_tax_year_policy),
):
    """Period movement of a single asset under both bases."""
    _check_window(start, end)
    try:
        asset = repo.get_asset_by_number(asset_number)
    except AssetNotFoundError as e:
        raise HTTPException(404, str(e))
    calc = calculate_depreciation(
        asset, start, end, repo.categories_by_id(), policy
    )
    return calc.model_dump()


@router.get("/reports/movement")
def movement_report(
    start: date,
    end: date,
    view: ScheduleView = ScheduleView.IFRS,
    branch_id: str | None = None,
    repo: AssetRepository = Depends(get_repository),
    policy: TaxYearPolicy = Depends(get_tax_year_policy),
):
    """Asset movement schedule grouped by category."""
    _check_window(start, end)
    schedule = build_schedule(
        repo.list_assets(branch_id=branch_id),
        repo.list_categories(),
        start,
        end,
        view,
        branch_id,
        policy,
    )
    return schedule.model_dump()


@router.get("/reports/journals")
def journals_report(
    month: str = Query(..., description="YYYY-MM"),
    branch_id: str | None = None,
    entry_type: str | None = None,
    repo: AssetRepository = Depends(get_repository),
    policy: TaxYearPolicy = Depends(get_tax_year_policy),
):
    """Consolidated GL journals for one month."""
    try:
        year, month_num = parse_month(month)
    except ValueError as e:
        raise HTTPException(400, str(e))
    if entry_type is not None and entry_type not in ENTRY_TYPES:
        raise HTTPException(400, f"entry_type must be one of {', '.join(ENTRY_TYPES)}")

    entries = build_journals(
        repo.list_assets(branch_id=branch_id),
        repo.list_categories(),
        year,
        month_num,
        branch_id=branch_id,
        entry_type=entry_type,
        accounts_payable_code=get_settings().accounts_payable_code,
        policy=policy,
    )
    debit, credit = trial_balance(entries)
    return {
        "month": month,
        "entries": [e.model_dump() for e in entries],
        "total_debit": debit,
        "total_credit": credit,
    }
