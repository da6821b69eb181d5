"""
EventPublisher implementations.

InMemoryEventPublisher:
    Records published events in order.  Dedups on the idempotency key the
    way a downstream consumer must, and exposes ``fail_next`` so tests can
    simulate a broker outage.

SqlOutboxPublisher:
    Writes each event to ``statement_import_outbox`` in its own
    transaction.  The UNIQUE constraint on ``statement_upload_id`` turns a
    redelivery into an IntegrityError, which is logged as an idempotent hit
    and not raised.  A separate relay forwards undelivered rows.
"""

from __future__ import annotations

import threading
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, sessionmaker

from finance_statements.db.engine import get_session_factory
from finance_statements.domain.clock import Clock, SystemClock
from finance_statements.domain.types import StatementImportConfirmedEvent
from finance_statements.logging_config import get_logger
from finance_statements.models.outbox import StatementImportOutboxModel

logger = get_logger("services.publishers")


class InMemoryEventPublisher:
    """EventPublisher that keeps events in a list."""

    def __init__(self) -> None:
        self.events: list[StatementImportConfirmedEvent] = []
        self.duplicates: int = 0
        self._seen: set[str] = set()
        self._fail_next: Exception | None = None
        self._lock = threading.Lock()

    def fail_next(self, error: Exception) -> None:
        """Raise ``error`` from the next publish call."""
        self._fail_next = error

    def publish(self, event: StatementImportConfirmedEvent) -> None:
        with self._lock:
            if self._fail_next is not None:
                error, self._fail_next = self._fail_next, None
                raise error
            if event.idempotency_key in self._seen:
                self.duplicates += 1
                return
            self._seen.add(event.idempotency_key)
            self.events.append(event)

    def events_for(self, upload_id: UUID) -> list[StatementImportConfirmedEvent]:
        return [e for e in self.events if e.statement_upload_id == upload_id]


class SqlOutboxPublisher:
    """EventPublisher that appends to the statement_import_outbox table."""

    def __init__(
        self,
        session_factory: sessionmaker[Session] | None = None,
        clock: Clock | None = None,
    ):
        self._session_factory = session_factory or get_session_factory()
        self._clock = clock or SystemClock()

    def publish(self, event: StatementImportConfirmedEvent) -> None:
        session = self._session_factory()
        try:
            session.add(StatementImportOutboxModel.from_event(event, self._clock.now()))
            session.commit()
        except IntegrityError:
            session.rollback()
            logger.info(
                "outbox_idempotent_hit",
                extra={"statement_upload_id": event.idempotency_key},
            )
            return
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

        logger.info(
            "outbox_event_recorded",
            extra={
                "statement_upload_id": event.idempotency_key,
                "event_type": event.EVENT_TYPE,
                "transaction_count": event.transaction_count,
            },
        )

    def pending(self) -> list[StatementImportOutboxModel]:
        """Rows not yet marked delivered, oldest first."""
        with self._session_factory() as session:
            stmt = (
                select(StatementImportOutboxModel)
                .where(StatementImportOutboxModel.delivered_at.is_(None))
                .order_by(StatementImportOutboxModel.recorded_at)
            )
            rows = list(session.scalars(stmt))
            session.expunge_all()
            return rows

    def mark_delivered(self, statement_upload_id: UUID) -> bool:
        """Stamp ``delivered_at``. Returns False if there is no such row."""
        with self._session_factory() as session:
            row = session.scalars(
                select(StatementImportOutboxModel).where(
                    StatementImportOutboxModel.statement_upload_id == statement_upload_id,
                )
            ).one_or_none()
            if row is None:
                return False
            row.delivered_at = self._clock.now()
            session.commit()
            return True
