"""Statutory capital-allowance schedules.

Each schedule is a tuple of yearly percentages of cost, indexed from tax
year 1. Years past the end of a schedule earn no allowance. StandardFlat is
not tabulated: it is pro-rated daily at the category tax rate.
"""

from decimal import Decimal

from asset_register.models.schemas import TaxStrategy

ZERO = Decimal("0")

TAX_SCHEDULES: dict[TaxStrategy, tuple[Decimal, ...]] = {
    TaxStrategy.SCHEDULE_40_20_20_20: (
        Decimal("0.40"),
        Decimal("0.20"),
        Decimal("0.20"),
        Decimal("0.20"),
    ),
    TaxStrategy.SCHEDULE_50_30_20: (
        Decimal("0.50"),
        Decimal("0.30"),
        Decimal("0.20"),
    ),
    TaxStrategy.FULL_WRITEOFF_100: (Decimal("1.00"),),
    TaxStrategy.SCHEDULE_5PCT_OVER_20_YEARS: (Decimal("0.05"),) * 20,
}


def year_deduction(cost: Decimal, strategy: TaxStrategy, tax_year: int) -> Decimal:
    """Allowance earned in a single tax year (1-indexed)."""
    percentages = TAX_SCHEDULES.get(strategy, ())
    if tax_year < 1 or tax_year > len(percentages):
        return ZERO
    return cost * percentages[tax_year - 1]


def accumulated_deduction(
    cost: Decimal, strategy: TaxStrategy, through_year: int
) -> Decimal:
    """Sum of allowances for tax years 1..through_year, capped at cost."""
    total = ZERO
    for year in range(1, through_year + 1):
        total += year_deduction(cost, strategy, year)
    return min(cost, total)
