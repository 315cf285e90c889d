import calendar
from collections.abc import Iterable
from datetime import date
from decimal import Decimal

from asset_register.financial.movement import calculate_depreciation
from asset_register.financial.valuation import DEFAULT_TAX_YEAR_POLICY, TaxYearPolicy
from asset_register.models.schemas import Asset, AssetCategory, JournalEntry

DEPRECIATION = "Depreciation"
ADDITION = "Addition"
ENTRY_TYPES = (DEPRECIATION, ADDITION)


def month_bounds(year: int, month: int) -> tuple[date, date]:
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last_day)


def parse_month(value: str) -> tuple[int, int]:
    """Parse ``YYYY-MM``."""
    try:
        year_str, month_str = value.split("-")
        year, month = int(year_str), int(month_str)
    except ValueError as e:
        raise ValueError(f"Expected YYYY-MM, got '{value}'") from e
    if not 1 <= month <= 12:
        raise ValueError(f"Month out of range in '{value}'")
    return year, month


def build_journals(
    assets: Iterable[Asset],
    categories: Iterable[AssetCategory],
    year: int,
    month: int,
    branch_id: str | None = None,
    entry_type: str | None = None,
    accounts_payable_code: str = "2000/001",
    policy: TaxYearPolicy = DEFAULT_TAX_YEAR_POLICY,
) -> list[JournalEntry]:
    """Consolidated monthly GL journals per category and branch.

    Depreciation posts Dr expense / Cr accumulated depreciation; additions
    post Dr asset cost / Cr accounts payable. Zero movements and assets in
    unknown categories produce no entries.
    """
    if entry_type is not None and entry_type not in ENTRY_TYPES:
        raise ValueError(f"Unknown journal type: {entry_type}")

    start, end = month_bounds(year, month)
    lookup = {c.id: c for c in categories}

    movements: dict[tuple[str, str], dict[str, Decimal]] = {}
    for asset in assets:
        if branch_id is not None and asset.branch_id != branch_id:
            continue
        calc = calculate_depreciation(asset, start, end, lookup, policy)
        key = (asset.category_id, asset.branch_id)
        totals = movements.setdefault(
            key, {"depreciation": Decimal("0"), "additions": Decimal("0")}
        )
        totals["depreciation"] += calc.periodic_depr
        totals["additions"] += calc.additions

    entries: list[JournalEntry] = []
    for (category_id, branch), totals in movements.items():
        category = lookup.get(category_id)
        if category is None:
            continue

        depreciation = totals["depreciation"]
        if depreciation > 0:
            description = f"Consolidated Monthly Depr - {category.name}"
            entries.append(
                JournalEntry(
                    id=f"depr-{category_id}-{branch}",
                    entry_date=end,
                    entry_type=DEPRECIATION,
                    account_code=category.gl_code_depr_expense,
                    account_name=f"Depr Expense: {category.name}",
                    description=description,
                    debit=depreciation,
                    credit=Decimal("0"),
                    branch_id=branch,
                )
            )
            entries.append(
                JournalEntry(
                    id=f"accum-{category_id}-{branch}",
                    entry_date=end,
                    entry_type=DEPRECIATION,
                    account_code=category.gl_code_accum_depr,
                    account_name=f"Accum Depr: {category.name}",
                    description=description,
                    debit=Decimal("0"),
                    credit=depreciation,
                    branch_id=branch,
                )
            )

        additions = totals["additions"]
        if additions > 0:
            description = f"Consolidated Monthly Additions - {category.name}"
            entries.append(
                JournalEntry(
                    id=f"add-{category_id}-{branch}",
                    entry_date=end,
                    entry_type=ADDITION,
                    account_code=category.gl_code_cost,
                    account_name=f"Asset Cost: {category.name}",
                    description=description,
                    debit=additions,
                    credit=Decimal("0"),
                    branch_id=branch,
                )
            )
            entries.append(
                JournalEntry(
                    id=f"pay-{category_id}-{branch}",
                    entry_date=end,
                    entry_type=ADDITION,
                    account_code=accounts_payable_code,
                    account_name="Accounts Payable / Bank",
                    description=description,
                    debit=Decimal("0"),
                    credit=additions,
                    branch_id=branch,
                )
            )

    if entry_type is None:
        return entries
    return [e for e in entries if e.entry_type == entry_type]


def trial_balance(entries: Iterable[JournalEntry]) -> tuple[Decimal, Decimal]:
    """Total debits and credits."""
    debit = Decimal("0")
    credit = Decimal("0")
    for entry in entries:
        debit += entry.debit
        credit += entry.credit
    return debit, credit
