import json
import logging
from datetime import UTC, datetime

from sqlalchemy import select
from sqlalchemy.orm import Session

from asset_register.models.orm import AuditLog
from asset_register.models.schemas import AuditEntry, FieldChange

logger = logging.getLogger(__name__)

ACTIONS = ("CREATE", "UPDATE", "DELETE", "PURGE_ALL")


class AuditTrail:
    """Append-only log of who changed which asset field and when."""

    def __init__(self, session: Session, user_id: str = "system"):
        self.session = session
        self.user_id = user_id

    def record(
        self, asset_id: str, action: str, changes: list[FieldChange]
    ) -> AuditLog:
        if action not in ACTIONS:
            raise ValueError(f"Unknown audit action: {action}")
        entry = AuditLog(
            timestamp=datetime.now(UTC).replace(tzinfo=None),
            user_id=self.user_id,
            asset_id=asset_id,
            action=action,
            changes=json.dumps([c.model_dump() for c in changes]),
        )
        self.session.add(entry)
        self.session.flush()
        logger.debug(
            "Audit %s on %s by %s (%d fields)",
            action,
            asset_id,
            self.user_id,
            len(changes),
        )
        return entry

    def list_entries(
        self, asset_id: str | None = None, limit: int = 100
    ) -> list[AuditEntry]:
        """Most recent entries first."""
        stmt = select(AuditLog).order_by(AuditLog.timestamp.desc(), AuditLog.id.desc())
        if asset_id is not None:
            stmt = stmt.where(AuditLog.asset_id == asset_id)
        rows = self.session.scalars(stmt.limit(limit)).all()
        return [
            AuditEntry(
                id=row.id,
                timestamp=row.timestamp,
                user_id=row.user_id,
                asset_id=row.asset_id,
                action=row.action,
                changes=[FieldChange(**c) for c in json.loads(row.changes or "[]")],
            )
            for row in rows
        ]
