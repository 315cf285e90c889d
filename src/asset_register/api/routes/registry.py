from datetime import date
from decimal import Decimal

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field

from asset_register.api.dependencies import get_repository
from asset_register.exceptions import (
    AssetNotFoundError,
    ComponentAlreadyDisposedError,
    ComponentNotFoundError,
    DuplicateAssetNumberError,
)
from asset_register.ingestion.repository import AssetRepository
from asset_register.models.commands import (
    add_revaluation,
    dispose_component,
    record_impairment,
    replace_component,
    scrap_component,
)
from asset_register.models.schemas import (
    Asset,
    AssetCategory,
    AssetComponent,
    AssetLocation,
)

router = APIRouter(tags=["registry"])


def _resolve_asset(asset_number: str, repo: AssetRepository) -> Asset:
    try:
        return repo.get_asset_by_number(asset_number)
    except AssetNotFoundError as e:
        raise HTTPException(404, str(e))


def _resolve_component(asset: Asset, component_id: str) -> AssetComponent:
    for component in asset.components:
        if component.id == component_id:
            return component
    raise HTTPException(
        404, str(ComponentNotFoundError(asset.asset_number, component_id))
    )


# --- Categories and locations ---


@router.get("/categories")
def list_categories(repo: AssetRepository = Depends(get_repository)):
    return [c.model_dump() for c in repo.list_categories()]


@router.post("/categories", status_code=201)
def create_category(
    category: AssetCategory, repo: AssetRepository = Depends(get_repository)
):
    return repo.save_category(category).model_dump()


@router.get("/locations")
def list_locations(
    location_type: str | None = Query(None, alias="type"),
    repo: AssetRepository = Depends(get_repository),
):
    return [loc.model_dump() for loc in repo.list_locations(location_type)]


@router.post("/locations", status_code=201)
def create_location(
    location: AssetLocation, repo: AssetRepository = Depends(get_repository)
):
    return repo.save_location(location).model_dump()


# --- Assets ---


@router.get("/assets")
def list_assets(
    branch_id: str | None = None,
    category_id: str | None = None,
    status: str | None = None,
    page: int = Query(1, ge=1),
    page_size: int = Query(50, ge=1, le=200),
    repo: AssetRepository = Depends(get_repository),
):
    """List assets with pagination and filters."""
    assets = repo.list_assets(branch_id, category_id, status)
    total = len(assets)
    offset = (page - 1) * page_size
    return {
        "items": [a.model_dump() for a in assets[offset : offset + page_size]],
        "total": total,
        "page": page,
        "page_size": page_size,
        "pages": (total + page_size - 1) // page_size,
    }


@router.get("/assets/{asset_number}")
def get_asset(asset_number: str, repo: AssetRepository = Depends(get_repository)):
    return _resolve_asset(asset_number, repo).model_dump()


@router.post("/assets", status_code=201)
def create_asset(asset: Asset, repo: AssetRepository = Depends(get_repository)):
    """Register a new asset; updates go through the component commands."""
    try:
        repo.get_asset(asset.id)
    except AssetNotFoundError:
        pass
    else:
        raise HTTPException(409, f"Asset id '{asset.id}' is already registered")
    try:
        return repo.save_asset(asset).model_dump()
    except DuplicateAssetNumberError as e:
        raise HTTPException(409, str(e))


@router.delete("/assets/{asset_number}", status_code=204)
def delete_asset(asset_number: str, repo: AssetRepository = Depends(get_repository)):
    asset = _resolve_asset(asset_number, repo)
    repo.delete_asset(asset.id)


# --- Component commands ---


class DisposalRequest(BaseModel):
    disposal_date: date
    proceeds: Decimal = Field(default=Decimal("0"), ge=0)
    scrap: bool = False


class RevaluationRequest(BaseModel):
    effective_date: date
    new_fair_value: Decimal
    reason: str = ""


class ImpairmentRequest(BaseModel):
    loss: Decimal = Field(ge=0)


def _apply(repo: AssetRepository, asset: Asset, component: AssetComponent) -> dict:
    updated = replace_component(asset, component)
    return repo.save_asset(updated).model_dump()


@router.post("/assets/{asset_number}/components/{component_id}/dispose")
def dispose(
    asset_number: str,
    component_id: str,
    body: DisposalRequest,
    repo: AssetRepository = Depends(get_repository),
):
    """Dispose of (or scrap) a component."""
    asset = _resolve_asset(asset_number, repo)
    component = _resolve_component(asset, component_id)
    try:
        if body.scrap:
            component = scrap_component(component, body.disposal_date)
        else:
            component = dispose_component(component, body.disposal_date, body.proceeds)
    except ComponentAlreadyDisposedError as e:
        raise HTTPException(409, str(e))
    return _apply(repo, asset, component)


@router.post("/assets/{asset_number}/components/{component_id}/revaluations")
def revalue(
    asset_number: str,
    component_id: str,
    body: RevaluationRequest,
    repo: AssetRepository = Depends(get_repository),
):
    asset = _resolve_asset(asset_number, repo)
    component = _resolve_component(asset, component_id)
    component = add_revaluation(
        component, body.effective_date, body.new_fair_value, body.reason
    )
    return _apply(repo, asset, component)


@router.post("/assets/{asset_number}/components/{component_id}/impairment")
def impair(
    asset_number: str,
    component_id: str,
    body: ImpairmentRequest,
    repo: AssetRepository = Depends(get_repository),
):
    asset = _resolve_asset(asset_number, repo)
    component = _resolve_component(asset, component_id)
    return _apply(repo, asset, record_impairment(component, body.loss))


@router.get("/audit")
def audit_trail(
    asset_number: str | None = None,
    limit: int = Query(100, ge=1, le=1000),
    repo: AssetRepository = Depends(get_repository),
):
    """Audit entries, newest first."""
    asset_id = None
    if asset_number is not None:
        asset_id = _resolve_asset(asset_number, repo).id
    return [e.model_dump() for e in repo.audit_entries(asset_id, limit)]
