from datetime import date, datetime
from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, Field, field_validator

ZERO = Decimal("0")


class AssetStatus(str, Enum):
    ACTIVE = "active"
    DISPOSED = "disposed"
    SCRAPPED = "scrapped"
    IMPAIRED = "impaired"


class DepreciationMethod(str, Enum):
    STRAIGHT_LINE = "straight_line"
    REDUCING_BALANCE = "reducing_balance"


class TaxStrategy(str, Enum):
    STANDARD_FLAT = "standard_flat"
    SCHEDULE_40_20_20_20 = "schedule_40_20_20_20"
    SCHEDULE_50_30_20 = "schedule_50_30_20"
    FULL_WRITEOFF_100 = "full_writeoff_100"
    SCHEDULE_5PCT_OVER_20_YEARS = "schedule_5pct_over_20_years"


class TaxYearMethod(str, Enum):
    FISCAL_YEAR = "fiscal_year"
    ELAPSED_YEARS = "elapsed_years"


class LocationType(str, Enum):
    BRANCH = "branch"
    LOCATION = "location"
    SUBLOCATION = "sublocation"


def _to_date(value):
    if isinstance(value, datetime):
        return value.date()
    return value


# --- Register schemas ---


class RevaluationEvent(BaseModel):
    """Point-in-time fair-value override of a component."""

    id: str
    effective_date: date
    new_fair_value: Decimal
    reason: str = ""

    model_config = {"frozen": True}

    @field_validator("effective_date", mode="before")
    @classmethod
    def normalize_date(cls, value):
        return _to_date(value)


class AssetComponent(BaseModel):
    """A separately depreciable part of an asset."""

    id: str
    name: str = "Primary Unit"
    acquisition_date: date
    cost: Decimal = Field(ge=0)
    residual_value: Decimal = ZERO
    useful_life_years: Decimal = ZERO
    tax_rate: Decimal = ZERO
    # Reducing balance is recorded but valued straight line.
    depreciation_method: DepreciationMethod = DepreciationMethod.STRAIGHT_LINE
    status: AssetStatus = AssetStatus.ACTIVE
    disposal_date: date | None = None
    disposal_proceeds: Decimal | None = None
    supplier_name: str | None = None
    supplier_contact: str | None = None
    invoice_number: str | None = None
    revaluations: tuple[RevaluationEvent, ...] = ()
    impairment_loss: Decimal = Field(default=ZERO, ge=0)

    model_config = {"frozen": True}

    @field_validator("acquisition_date", "disposal_date", mode="before")
    @classmethod
    def normalize_dates(cls, value):
        return _to_date(value)

    @field_validator(
        "residual_value", "useful_life_years", "impairment_loss", mode="before"
    )
    @classmethod
    def none_as_zero(cls, value):
        return ZERO if value is None else value

    @property
    def is_retired(self) -> bool:
        """True when the component has left the register on a known date."""
        return (
            self.status in (AssetStatus.DISPOSED, AssetStatus.SCRAPPED)
            and self.disposal_date is not None
        )


class AssetCategory(BaseModel):
    id: str
    name: str
    default_useful_life: Decimal
    default_tax_rate: Decimal
    residual_percentage: Decimal = ZERO
    tax_strategy: TaxStrategy = TaxStrategy.STANDARD_FLAT
    gl_code_cost: str = ""
    gl_code_accum_depr: str = ""
    gl_code_depr_expense: str = ""
    gl_code_revaluation_surplus: str | None = None

    model_config = {"frozen": True}


class AssetLocation(BaseModel):
    id: str
    name: str
    code: str
    type: LocationType
    parent_id: str | None = None

    model_config = {"frozen": True}


class Asset(BaseModel):
    id: str
    asset_number: str
    tag_id: str = ""
    name: str
    description: str = ""
    category_id: str
    branch_id: str = ""
    location_id: str = ""
    sub_location_id: str = ""
    status: AssetStatus = AssetStatus.ACTIVE
    components: tuple[AssetComponent, ...] = ()

    model_config = {"frozen": True}

    @property
    def acquisition_date(self) -> date | None:
        """Earliest component acquisition date."""
        if not self.components:
            return None
        return min(c.acquisition_date for c in self.components)


# --- Valuation schemas ---


class IFRSSnapshot(BaseModel):
    cost: Decimal = ZERO
    accumulated_depreciation: Decimal = ZERO
    impairments: Decimal = ZERO
    revaluation_impact: Decimal = ZERO
    residual: Decimal = ZERO

    model_config = {"frozen": True}

    @property
    def carrying_cost(self) -> Decimal:
        return self.cost + self.revaluation_impact - self.impairments

    @property
    def net_book_value(self) -> Decimal:
        return self.carrying_cost - self.accumulated_depreciation


class TaxSnapshot(BaseModel):
    cost: Decimal = ZERO
    tax_value: Decimal = ZERO
    accumulated_tax_depreciation: Decimal = ZERO
    current_tax_year: int = 0

    model_config = {"frozen": True}


class MovementFigures(BaseModel):
    """Opening / movement / closing figures under both bases."""

    opening_cost: Decimal = ZERO
    additions: Decimal = ZERO
    disposals: Decimal = ZERO
    revaluations: Decimal = ZERO
    impairments: Decimal = ZERO
    closing_cost: Decimal = ZERO
    opening_accumulated_depr: Decimal = ZERO
    periodic_depr: Decimal = ZERO
    accumulated_depr_on_disposals: Decimal = ZERO
    closing_accumulated_depr: Decimal = ZERO
    nbv: Decimal = ZERO
    tax_value: Decimal = ZERO
    tax_deduction_for_period: Decimal = ZERO
    opening_accumulated_tax_depr: Decimal = ZERO
    tax_depr_on_disposals: Decimal = ZERO
    closing_accumulated_tax_depr: Decimal = ZERO
    tax_year_of_asset: int = 0

    model_config = {"frozen": True}


class ComponentMovement(MovementFigures):
    component_id: str
    profit_on_disposal: Decimal = ZERO
    recoupment: Decimal = ZERO
    has_disposal: bool = False


class DepreciationCalculation(MovementFigures):
    """Period movement of one asset (or a consolidation of several)."""

    asset_id: str
    profit_on_disposal: Decimal | None = None
    recoupment: Decimal | None = None

    @classmethod
    def zero(cls, asset_id: str) -> "DepreciationCalculation":
        return cls(asset_id=asset_id)


# --- Reporting schemas ---


class ScheduleRow(BaseModel):
    asset_id: str
    asset_number: str
    asset_name: str
    tag_id: str
    acquisition_date: date | None
    category_id: str
    category_name: str
    calculation: DepreciationCalculation


class ScheduleGroup(BaseModel):
    category_id: str
    category_name: str
    rows: list[ScheduleRow]
    subtotal: DepreciationCalculation


class MovementSchedule(BaseModel):
    view: str
    start: date
    end: date
    branch_id: str | None
    groups: list[ScheduleGroup]
    total: DepreciationCalculation
    has_revaluations: bool


class JournalEntry(BaseModel):
    id: str
    entry_date: date
    entry_type: str
    account_code: str
    account_name: str
    description: str
    debit: Decimal
    credit: Decimal
    branch_id: str


class FieldChange(BaseModel):
    field: str
    old_value: str | None
    new_value: str | None


class AuditEntry(BaseModel):
    id: int
    timestamp: datetime
    user_id: str
    asset_id: str
    action: str
    changes: list[FieldChange]
