"""Point-in-time valuation of a single asset component.

Both evaluators are pure: they answer "what does this component look like on
``target_date``" under the financial-reporting basis (straight-line IFRS with
revaluations and impairments) and the tax basis (capital allowances). All
comparisons are whole-day.
"""

from datetime import date, datetime, timedelta
from decimal import Decimal

from pydantic import BaseModel

from asset_register.financial.tax_schedules import accumulated_deduction
from asset_register.models.schemas import (
    AssetCategory,
    AssetComponent,
    IFRSSnapshot,
    TaxSnapshot,
    TaxStrategy,
    TaxYearMethod,
)

DAYS_PER_YEAR = Decimal("365.25")
ONE_DAY = timedelta(days=1)
ZERO = Decimal("0")


class TaxYearPolicy(BaseModel):
    """How tax years are counted from the acquisition date."""

    method: TaxYearMethod = TaxYearMethod.FISCAL_YEAR
    year_end_month: int = 6
    year_end_day: int = 30

    model_config = {"frozen": True}

    @classmethod
    def from_settings(cls, settings) -> "TaxYearPolicy":
        return cls(
            method=TaxYearMethod(settings.tax_year_method),
            year_end_month=settings.fiscal_year_end_month,
            year_end_day=settings.fiscal_year_end_day,
        )


DEFAULT_TAX_YEAR_POLICY = TaxYearPolicy()


def normalize_date(value: date | datetime) -> date:
    """Drop any time-of-day component."""
    if isinstance(value, datetime):
        return value.date()
    return value


def fiscal_year(d: date, year_end_month: int = 6, year_end_day: int = 30) -> int:
    """Fiscal year label of ``d``: the calendar year its fiscal year ends in."""
    if (d.month, d.day) <= (year_end_month, year_end_day):
        return d.year
    return d.year + 1


def tax_year_index(
    acquisition_date: date,
    target_date: date,
    policy: TaxYearPolicy = DEFAULT_TAX_YEAR_POLICY,
) -> int:
    """1-indexed tax year of an asset on ``target_date``.

    The fiscal-year method counts year-end crossings, so an asset bought a
    week before year end is in tax year 2 a week later. The elapsed-years
    method counts whole 365.25-day years since acquisition.
    """
    if policy.method == TaxYearMethod.ELAPSED_YEARS:
        days = max(0, (target_date - acquisition_date).days)
        return int(Decimal(days) / DAYS_PER_YEAR) + 1
    fy_target = fiscal_year(target_date, policy.year_end_month, policy.year_end_day)
    fy_acquired = fiscal_year(
        acquisition_date, policy.year_end_month, policy.year_end_day
    )
    return max(1, fy_target - fy_acquired + 1)


def revaluation_impact(component: AssetComponent, target_date: date) -> Decimal:
    """Net revaluation adjustment effective on ``target_date``.

    Every event on or before the target contributes ``new_fair_value - cost``.
    Events are measured against original cost, not against the previous
    fair value.
    """
    return sum(
        (
            event.new_fair_value - component.cost
            for event in component.revaluations
            if event.effective_date <= target_date
        ),
        ZERO,
    )


def _off_register(component: AssetComponent, target: date) -> bool:
    if target < component.acquisition_date:
        return True
    return component.is_retired and target >= component.disposal_date


def evaluate_ifrs(
    component: AssetComponent, target_date: date | datetime
) -> IFRSSnapshot:
    """Cost, depreciation, impairment and revaluation position on ``target_date``."""
    target = normalize_date(target_date)
    if _off_register(component, target):
        return IFRSSnapshot()

    cutoff = target
    if component.is_retired:
        cutoff = min(target, component.disposal_date - ONE_DAY)
    days_held = max(0, (cutoff - component.acquisition_date).days + 1)

    reval = revaluation_impact(component, target)
    impairment = component.impairment_loss or ZERO
    residual = component.residual_value or ZERO

    gross_carrying = component.cost + reval - impairment
    depreciable = max(ZERO, gross_carrying - residual)

    if component.useful_life_years > 0:
        daily_rate = depreciable / component.useful_life_years / DAYS_PER_YEAR
    else:
        daily_rate = ZERO
    accumulated = min(depreciable, daily_rate * days_held)

    return IFRSSnapshot(
        cost=component.cost,
        accumulated_depreciation=accumulated,
        impairments=impairment,
        revaluation_impact=reval,
        residual=residual,
    )


def evaluate_tax(
    component: AssetComponent,
    category: AssetCategory,
    target_date: date | datetime,
    policy: TaxYearPolicy = DEFAULT_TAX_YEAR_POLICY,
) -> TaxSnapshot:
    """Tax value and accumulated allowances on ``target_date``."""
    target = normalize_date(target_date)
    if _off_register(component, target):
        return TaxSnapshot()

    cost = component.cost
    days_held = max(0, (target - component.acquisition_date).days + 1)
    current_tax_year = tax_year_index(component.acquisition_date, target, policy)

    if category.tax_strategy == TaxStrategy.STANDARD_FLAT:
        annual = cost * category.default_tax_rate / 100
        accumulated = min(cost, annual / DAYS_PER_YEAR * days_held)
    else:
        accumulated = accumulated_deduction(
            cost, category.tax_strategy, current_tax_year
        )

    return TaxSnapshot(
        cost=cost,
        tax_value=max(ZERO, cost - accumulated),
        accumulated_tax_depreciation=accumulated,
        current_tax_year=current_tax_year,
    )
