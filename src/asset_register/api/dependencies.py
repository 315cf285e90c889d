from collections.abc import Generator

from fastapi import Depends
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session

from asset_register.config.settings import get_settings
from asset_register.financial.valuation import TaxYearPolicy
from asset_register.ingestion.repository import AssetRepository
from asset_register.models.database import get_engine, get_session_factory

_engine: Engine | None = None
_session_factory = None


def _get_factory():
    global _engine, _session_factory
    if _session_factory is None:
        _engine = get_engine()
        _session_factory = get_session_factory(_engine)
    return _session_factory


def get_db() -> Generator[Session, None, None]:
    """FastAPI dependency that yields a database session."""
    factory = _get_factory()
    session = factory()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def get_repository(session: Session = Depends(get_db)) -> AssetRepository:
    return AssetRepository(session, user_id=get_settings().default_user)


def get_tax_year_policy() -> TaxYearPolicy:
    return TaxYearPolicy.from_settings(get_settings())
