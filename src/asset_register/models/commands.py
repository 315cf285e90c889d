"""Update commands for register values.

Components and assets are immutable; each command validates the change and
returns a new value, leaving the original untouched.
"""

import uuid
from datetime import date
from decimal import Decimal
from enum import Enum

from asset_register.exceptions import (
    ComponentAlreadyDisposedError,
    ComponentNotFoundError,
)
from asset_register.models.schemas import (
    Asset,
    AssetCategory,
    AssetComponent,
    AssetStatus,
    FieldChange,
    RevaluationEvent,
)

_RETIRED = (AssetStatus.DISPOSED, AssetStatus.SCRAPPED)


def _new_id() -> str:
    return uuid.uuid4().hex[:12]


def update_component(component: AssetComponent, **changes) -> AssetComponent:
    """Return a copy of ``component`` with ``changes`` applied and re-validated."""
    return AssetComponent.model_validate(component.model_dump() | changes)


def update_asset(asset: Asset, **changes) -> Asset:
    return Asset.model_validate(asset.model_dump() | changes)


def new_component_from_category(
    category: AssetCategory,
    acquisition_date: date,
    cost: Decimal,
    component_id: str | None = None,
    name: str = "Primary Unit",
    **overrides,
) -> AssetComponent:
    """Create a component seeded with the category's defaults."""
    cost = Decimal(str(cost))
    fields = {
        "id": component_id or _new_id(),
        "name": name,
        "acquisition_date": acquisition_date,
        "cost": cost,
        "residual_value": cost * category.residual_percentage / 100,
        "useful_life_years": category.default_useful_life,
        "tax_rate": category.default_tax_rate,
    }
    fields.update(overrides)
    return AssetComponent.model_validate(fields)


def add_revaluation(
    component: AssetComponent,
    effective_date: date,
    new_fair_value: Decimal,
    reason: str = "",
) -> AssetComponent:
    event = RevaluationEvent(
        id=_new_id(),
        effective_date=effective_date,
        new_fair_value=new_fair_value,
        reason=reason,
    )
    events = sorted(
        (*component.revaluations, event), key=lambda e: e.effective_date
    )
    return component.model_copy(update={"revaluations": tuple(events)})


def record_impairment(component: AssetComponent, loss: Decimal) -> AssetComponent:
    """Add ``loss`` to the component's cumulative impairment."""
    loss = Decimal(str(loss))
    if loss < 0:
        raise ValueError("Impairment loss cannot be negative")
    status = component.status
    if status == AssetStatus.ACTIVE:
        status = AssetStatus.IMPAIRED
    return component.model_copy(
        update={"impairment_loss": component.impairment_loss + loss, "status": status}
    )


def dispose_component(
    component: AssetComponent,
    disposal_date: date,
    proceeds: Decimal = Decimal("0"),
    status: AssetStatus = AssetStatus.DISPOSED,
) -> AssetComponent:
    """Take a component off the register. Disposal is terminal."""
    if component.status in _RETIRED:
        raise ComponentAlreadyDisposedError(component.id)
    if status not in _RETIRED:
        raise ValueError(f"Invalid disposal status: {status.value}")
    return update_component(
        component,
        status=status,
        disposal_date=disposal_date,
        disposal_proceeds=Decimal(str(proceeds)),
    )


def scrap_component(component: AssetComponent, disposal_date: date) -> AssetComponent:
    return dispose_component(
        component, disposal_date, Decimal("0"), status=AssetStatus.SCRAPPED
    )


def add_component(asset: Asset, component: AssetComponent) -> Asset:
    return asset.model_copy(update={"components": (*asset.components, component)})


def replace_component(asset: Asset, component: AssetComponent) -> Asset:
    """Swap in ``component`` for the existing component with the same id."""
    if not any(c.id == component.id for c in asset.components):
        raise ComponentNotFoundError(asset.id, component.id)
    components = tuple(
        component if c.id == component.id else c for c in asset.components
    )
    return asset.model_copy(update={"components": components})


def _flatten(prefix: str, value, out: dict) -> None:
    if isinstance(value, dict):
        for key, inner in value.items():
            _flatten(f"{prefix}.{key}" if prefix else key, inner, out)
    elif isinstance(value, (list, tuple)):
        for i, inner in enumerate(value):
            _flatten(f"{prefix}[{i}]", inner, out)
    else:
        out[prefix] = value


def _as_text(value) -> str | None:
    if value is None:
        return None
    if isinstance(value, Enum):
        return str(value.value)
    if isinstance(value, date):
        return value.isoformat()
    return str(value)


def diff_fields(old: Asset | None, new: Asset | None) -> list[FieldChange]:
    """Field-level changes between two versions of an asset."""
    before: dict = {}
    after: dict = {}
    if old is not None:
        _flatten("", old.model_dump(), before)
    if new is not None:
        _flatten("", new.model_dump(), after)

    changes = []
    for key in sorted(before.keys() | after.keys()):
        old_value = before.get(key)
        new_value = after.get(key)
        if old_value != new_value:
            changes.append(
                FieldChange(
                    field=key,
                    old_value=_as_text(old_value),
                    new_value=_as_text(new_value),
                )
            )
    return changes
