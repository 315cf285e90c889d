from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import (
    Date,
    DateTime,
    ForeignKey,
    ForeignKeyConstraint,
    Integer,
    Numeric,
    String,
    Text,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    pass


class Category(Base):
    __tablename__ = "categories"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    name: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    default_useful_life: Mapped[Decimal] = mapped_column(Numeric(6, 2), nullable=False)
    default_tax_rate: Mapped[Decimal] = mapped_column(Numeric(6, 2), nullable=False)
    residual_percentage: Mapped[Decimal] = mapped_column(
        Numeric(5, 2), nullable=False, default=Decimal("0")
    )
    tax_strategy: Mapped[str] = mapped_column(String(40), nullable=False)
    gl_code_cost: Mapped[str | None] = mapped_column(String(20))
    gl_code_accum_depr: Mapped[str | None] = mapped_column(String(20))
    gl_code_depr_expense: Mapped[str | None] = mapped_column(String(20))
    gl_code_revaluation_surplus: Mapped[str | None] = mapped_column(String(20))


class Location(Base):
    __tablename__ = "locations"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    code: Mapped[str] = mapped_column(String(20), nullable=False)
    type: Mapped[str] = mapped_column(String(20), nullable=False)
    parent_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("locations.id")
    )


class AssetRecord(Base):
    __tablename__ = "assets"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    asset_number: Mapped[str] = mapped_column(String(30), unique=True, nullable=False)
    tag_id: Mapped[str | None] = mapped_column(String(50))
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    # Not a foreign key: an unresolved category is a reportable state.
    category_id: Mapped[str] = mapped_column(String(36), nullable=False)
    branch_id: Mapped[str | None] = mapped_column(String(36))
    location_id: Mapped[str | None] = mapped_column(String(36))
    sub_location_id: Mapped[str | None] = mapped_column(String(36))
    status: Mapped[str] = mapped_column(String(20), nullable=False)

    components: Mapped[list["ComponentRecord"]] = relationship(
        back_populates="asset",
        cascade="all, delete-orphan",
        order_by="ComponentRecord.position",
    )


class ComponentRecord(Base):
    __tablename__ = "asset_components"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    asset_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("assets.id"), primary_key=True
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    acquisition_date: Mapped[date] = mapped_column(Date, nullable=False)
    cost: Mapped[Decimal] = mapped_column(Numeric(16, 2), nullable=False)
    residual_value: Mapped[Decimal | None] = mapped_column(Numeric(16, 2))
    useful_life_years: Mapped[Decimal | None] = mapped_column(Numeric(6, 2))
    tax_rate: Mapped[Decimal | None] = mapped_column(Numeric(6, 2))
    depreciation_method: Mapped[str] = mapped_column(
        String(20), nullable=False, default="straight_line"
    )
    status: Mapped[str] = mapped_column(String(20), nullable=False)
    disposal_date: Mapped[date | None] = mapped_column(Date)
    disposal_proceeds: Mapped[Decimal | None] = mapped_column(Numeric(16, 2))
    supplier_name: Mapped[str | None] = mapped_column(String(200))
    supplier_contact: Mapped[str | None] = mapped_column(String(200))
    invoice_number: Mapped[str | None] = mapped_column(String(50))
    impairment_loss: Mapped[Decimal | None] = mapped_column(Numeric(16, 2))

    asset: Mapped["AssetRecord"] = relationship(back_populates="components")
    revaluations: Mapped[list["RevaluationRecord"]] = relationship(
        back_populates="component",
        cascade="all, delete-orphan",
        order_by="RevaluationRecord.effective_date",
    )


class RevaluationRecord(Base):
    __tablename__ = "revaluation_events"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    component_id: Mapped[str] = mapped_column(String(36), primary_key=True)
    asset_id: Mapped[str] = mapped_column(String(36), primary_key=True)
    effective_date: Mapped[date] = mapped_column(Date, nullable=False)
    new_fair_value: Mapped[Decimal] = mapped_column(Numeric(16, 2), nullable=False)
    reason: Mapped[str | None] = mapped_column(String(500))

    component: Mapped["ComponentRecord"] = relationship(back_populates="revaluations")

    __table_args__ = (
        ForeignKeyConstraint(
            ["component_id", "asset_id"],
            ["asset_components.id", "asset_components.asset_id"],
        ),
    )


class AuditLog(Base):
    __tablename__ = "audit_logs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    timestamp: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    user_id: Mapped[str] = mapped_column(String(100), nullable=False)
    asset_id: Mapped[str] = mapped_column(String(36), nullable=False)
    action: Mapped[str] = mapped_column(String(20), nullable=False)
    changes: Mapped[str | None] = mapped_column(Text)
