import logging

from sqlalchemy import delete, func, select
from sqlalchemy.orm import Session

from asset_register.audit.trail import AuditTrail
from asset_register.exceptions import (
    AssetNotFoundError,
    CategoryNotFoundError,
    DuplicateAssetNumberError,
)
from asset_register.models.commands import diff_fields
from asset_register.models.orm import (
    AssetRecord,
    Category,
    ComponentRecord,
    Location,
    RevaluationRecord,
)
from asset_register.models.schemas import (
    Asset,
    AssetCategory,
    AssetComponent,
    AssetLocation,
    FieldChange,
    RevaluationEvent,
)

logger = logging.getLogger(__name__)


def category_to_domain(row: Category) -> AssetCategory:
    return AssetCategory(
        id=row.id,
        name=row.name,
        default_useful_life=row.default_useful_life,
        default_tax_rate=row.default_tax_rate,
        residual_percentage=row.residual_percentage,
        tax_strategy=row.tax_strategy,
        gl_code_cost=row.gl_code_cost or "",
        gl_code_accum_depr=row.gl_code_accum_depr or "",
        gl_code_depr_expense=row.gl_code_depr_expense or "",
        gl_code_revaluation_surplus=row.gl_code_revaluation_surplus,
    )


def location_to_domain(row: Location) -> AssetLocation:
    return AssetLocation(
        id=row.id, name=row.name, code=row.code, type=row.type, parent_id=row.parent_id
    )


def component_to_domain(row: ComponentRecord) -> AssetComponent:
    return AssetComponent(
        id=row.id,
        name=row.name,
        acquisition_date=row.acquisition_date,
        cost=row.cost,
        residual_value=row.residual_value,
        useful_life_years=row.useful_life_years,
        tax_rate=row.tax_rate or 0,
        depreciation_method=row.depreciation_method or "straight_line",
        status=row.status,
        disposal_date=row.disposal_date,
        disposal_proceeds=row.disposal_proceeds,
        supplier_name=row.supplier_name,
        supplier_contact=row.supplier_contact,
        invoice_number=row.invoice_number,
        revaluations=tuple(
            RevaluationEvent(
                id=r.id,
                effective_date=r.effective_date,
                new_fair_value=r.new_fair_value,
                reason=r.reason or "",
            )
            for r in row.revaluations
        ),
        impairment_loss=row.impairment_loss,
    )


def asset_to_domain(row: AssetRecord) -> Asset:
    return Asset(
        id=row.id,
        asset_number=row.asset_number,
        tag_id=row.tag_id or "",
        name=row.name,
        description=row.description or "",
        category_id=row.category_id,
        branch_id=row.branch_id or "",
        location_id=row.location_id or "",
        sub_location_id=row.sub_location_id or "",
        status=row.status,
        components=tuple(component_to_domain(c) for c in row.components),
    )


def asset_to_record(asset: Asset) -> AssetRecord:
    record = AssetRecord(
        id=asset.id,
        asset_number=asset.asset_number,
        tag_id=asset.tag_id,
        name=asset.name,
        description=asset.description,
        category_id=asset.category_id,
        branch_id=asset.branch_id,
        location_id=asset.location_id,
        sub_location_id=asset.sub_location_id,
        status=asset.status.value,
    )
    for position, comp in enumerate(asset.components):
        record.components.append(
            ComponentRecord(
                id=comp.id,
                position=position,
                name=comp.name,
                acquisition_date=comp.acquisition_date,
                cost=comp.cost,
                residual_value=comp.residual_value,
                useful_life_years=comp.useful_life_years,
                tax_rate=comp.tax_rate,
                depreciation_method=comp.depreciation_method.value,
                status=comp.status.value,
                disposal_date=comp.disposal_date,
                disposal_proceeds=comp.disposal_proceeds,
                supplier_name=comp.supplier_name,
                supplier_contact=comp.supplier_contact,
                invoice_number=comp.invoice_number,
                impairment_loss=comp.impairment_loss,
                revaluations=[
                    RevaluationRecord(
                        id=r.id,
                        effective_date=r.effective_date,
                        new_fair_value=r.new_fair_value,
                        reason=r.reason,
                    )
                    for r in comp.revaluations
                ],
            )
        )
    return record


class AssetRepository:
    """Loads and stores register values; writes are audited."""

    def __init__(self, session: Session, user_id: str = "system"):
        self.session = session
        self.audit = AuditTrail(session, user_id)

    # --- Categories ---

    def list_categories(self) -> list[AssetCategory]:
        stmt = select(Category).order_by(Category.name)
        return [category_to_domain(r) for r in self.session.scalars(stmt).all()]

    def categories_by_id(self) -> dict[str, AssetCategory]:
        return {c.id: c for c in self.list_categories()}

    def get_category(self, category_id: str) -> AssetCategory:
        row = self.session.get(Category, category_id)
        if row is None:
            raise CategoryNotFoundError(category_id)
        return category_to_domain(row)

    def save_category(self, category: AssetCategory) -> AssetCategory:
        self.session.merge(
            Category(
                id=category.id,
                name=category.name,
                default_useful_life=category.default_useful_life,
                default_tax_rate=category.default_tax_rate,
                residual_percentage=category.residual_percentage,
                tax_strategy=category.tax_strategy.value,
                gl_code_cost=category.gl_code_cost,
                gl_code_accum_depr=category.gl_code_accum_depr,
                gl_code_depr_expense=category.gl_code_depr_expense,
                gl_code_revaluation_surplus=category.gl_code_revaluation_surplus,
            )
        )
        self.session.flush()
        return category

    # --- Locations ---

    def list_locations(self, location_type: str | None = None) -> list[AssetLocation]:
        stmt = select(Location).order_by(Location.name)
        if location_type is not None:
            stmt = stmt.where(Location.type == location_type)
        return [location_to_domain(r) for r in self.session.scalars(stmt).all()]

    def save_location(self, location: AssetLocation) -> AssetLocation:
        self.session.merge(
            Location(
                id=location.id,
                name=location.name,
                code=location.code,
                type=location.type.value,
                parent_id=location.parent_id,
            )
        )
        self.session.flush()
        return location

    # --- Assets ---

    def list_assets(
        self,
        branch_id: str | None = None,
        category_id: str | None = None,
        status: str | None = None,
    ) -> list[Asset]:
        stmt = select(AssetRecord).order_by(AssetRecord.asset_number)
        if branch_id:
            stmt = stmt.where(AssetRecord.branch_id == branch_id)
        if category_id:
            stmt = stmt.where(AssetRecord.category_id == category_id)
        if status:
            stmt = stmt.where(AssetRecord.status == status)
        return [asset_to_domain(r) for r in self.session.scalars(stmt).all()]

    def count_assets(self) -> int:
        return self.session.execute(select(func.count(AssetRecord.id))).scalar() or 0

    def get_asset(self, asset_id: str) -> Asset:
        row = self.session.get(AssetRecord, asset_id)
        if row is None:
            raise AssetNotFoundError(asset_id)
        return asset_to_domain(row)

    def get_asset_by_number(self, asset_number: str) -> Asset:
        row = self.session.execute(
            select(AssetRecord).where(AssetRecord.asset_number == asset_number)
        ).scalar_one_or_none()
        if row is None:
            raise AssetNotFoundError(asset_number)
        return asset_to_domain(row)

    def save_asset(self, asset: Asset) -> Asset:
        """Insert or replace an asset and record the field-level changes."""
        clash = self.session.execute(
            select(AssetRecord.id).where(
                AssetRecord.asset_number == asset.asset_number,
                AssetRecord.id != asset.id,
            )
        ).scalar_one_or_none()
        if clash is not None:
            raise DuplicateAssetNumberError(asset.asset_number)

        existing = self.session.get(AssetRecord, asset.id)
        if existing is None:
            self.session.add(asset_to_record(asset))
            self.session.flush()
            self.audit.record(
                asset.id,
                "CREATE",
                [FieldChange(field="asset", old_value=None, new_value=asset.name)],
            )
            logger.info("Registered asset %s", asset.asset_number)
            return asset

        previous = asset_to_domain(existing)
        changes = diff_fields(previous, asset)
        if not changes:
            return asset
        self.session.delete(existing)
        self.session.flush()
        self.session.add(asset_to_record(asset))
        self.session.flush()
        self.audit.record(asset.id, "UPDATE", changes)
        logger.info("Updated asset %s (%d fields)", asset.asset_number, len(changes))
        return asset

    def save_assets(self, assets: list[Asset]) -> int:
        for asset in assets:
            self.save_asset(asset)
        return len(assets)

    def delete_asset(self, asset_id: str) -> None:
        row = self.session.get(AssetRecord, asset_id)
        if row is None:
            raise AssetNotFoundError(asset_id)
        name, number = row.name, row.asset_number
        self.session.delete(row)
        self.session.flush()
        self.audit.record(
            asset_id,
            "DELETE",
            [FieldChange(field="record", old_value=name, new_value="REMOVED")],
        )
        logger.info("Deleted asset %s", number)

    def purge_assets(self) -> int:
        """Remove every asset from the register."""
        count = self.count_assets()
        self.session.execute(delete(RevaluationRecord))
        self.session.execute(delete(ComponentRecord))
        self.session.execute(delete(AssetRecord))
        self.session.flush()
        self.audit.record(
            "SYSTEM",
            "PURGE_ALL",
            [
                FieldChange(
                    field="registry", old_value=f"{count} records", new_value="Empty"
                )
            ],
        )
        logger.warning("Purged %d assets from the register", count)
        return count

    def audit_entries(self, asset_id: str | None = None, limit: int = 100):
        return self.audit.list_entries(asset_id, limit)

