"""
Outbox ORM model for confirmation events.

One row per confirmed upload.  The UNIQUE constraint on
``statement_upload_id`` makes the idempotency key a database guarantee:
a second insert for the same upload fails instead of queueing a duplicate.
A relay outside this package reads undelivered rows and stamps
``delivered_at``.
"""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import JSON, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from finance_statements.db.base import Base, UUIDString
from finance_statements.domain.types import StatementImportConfirmedEvent


class StatementImportOutboxModel(Base):
    """Pending or delivered confirmation event."""

    __tablename__ = "statement_import_outbox"

    __table_args__ = (
        UniqueConstraint("statement_upload_id", name="uq_outbox_statement_upload"),
        Index("ix_outbox_undelivered", "delivered_at"),
    )

    statement_upload_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)
    user_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)
    event_type: Mapped[str] = mapped_column(String(100), nullable=False)
    payload: Mapped[dict] = mapped_column(JSON, nullable=False)
    recorded_at: Mapped[datetime] = mapped_column(nullable=False)
    delivered_at: Mapped[datetime | None] = mapped_column(nullable=True)

    @classmethod
    def from_event(
        cls, event: StatementImportConfirmedEvent, recorded_at: datetime,
    ) -> StatementImportOutboxModel:
        return cls(
            statement_upload_id=event.statement_upload_id,
            user_id=event.user_id,
            event_type=event.EVENT_TYPE,
            payload=event.to_payload(),
            recorded_at=recorded_at,
        )
