"""
ImportCoordinator -- request-level orchestration of the statement import.

Responsibility:
    Each operation is one load -> domain call -> save cycle against the
    UploadStore.  The aggregate decides whether the call is legal; the
    coordinator only sequences persistence and, for ``confirm``, the
    outbound event.

Architecture position:
    Services.  Depends on domain/, the ports in services/ports.py and the
    settings.  Never imports SQLAlchemy.

Confirm ordering:
    1. ``upload.confirm()`` validates and builds the event (no I/O).
    2. ``store.save()`` commits CONFIRMED.  A version conflict here raises
       ConcurrentModificationError and nothing is published.
    3. ``publisher.publish()``.  A failure here raises
       EventDeliveryFailedError; the upload stays CONFIRMED and redelivery
       is keyed by ``statement_upload_id``.

Concurrency:
    ConcurrentModificationError is logged and propagated.  Operations are
    not retried here; callers that want reload-and-retry wrap the call in
    ``retry_on_conflict`` (or ``ImportCoordinator.retrying``).
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence
from typing import TypeVar
from uuid import UUID

from finance_statements.domain.categories import CategoryInfo
from finance_statements.domain.clock import Clock, SystemClock
from finance_statements.domain.types import (
    CategoryUpdate,
    ParseFailure,
    ParserOutcome,
    StatementImportConfirmedEvent,
)
from finance_statements.domain.upload import StatementUpload
from finance_statements.exceptions import ConcurrentModificationError, EventDeliveryFailedError
from finance_statements.logging_config import LogContext, get_logger
from finance_statements.services.parsing import RawParsedLine, build_parser_result
from finance_statements.services.ports import EventPublisher, UploadStore
from finance_statements.settings import ImportSettings

logger = get_logger("services.import_coordinator")

T = TypeVar("T")


def retry_on_conflict(operation: Callable[[], T], attempts: int = 3) -> T:
    """
    Run ``operation``, re-running it after a ConcurrentModificationError.

    ``operation`` must reload the upload itself (every coordinator method
    does).  The last conflict is re-raised once ``attempts`` is used up.
    """
    if attempts < 1:
        raise ValueError("attempts must be at least 1")
    for attempt in range(1, attempts + 1):
        try:
            return operation()
        except ConcurrentModificationError as exc:
            if attempt == attempts:
                raise
            logger.info(
                "conflict_retry",
                extra={"upload_id": exc.upload_id, "attempt": attempt, "attempts": attempts},
            )
    raise AssertionError("unreachable")


class ImportCoordinator:
    """Drives StatementUpload through its lifecycle on behalf of a user."""

    def __init__(
        self,
        store: UploadStore,
        publisher: EventPublisher,
        clock: Clock | None = None,
        settings: ImportSettings | None = None,
    ):
        self._store = store
        self._publisher = publisher
        self._clock = clock or SystemClock()
        self._settings = settings or ImportSettings()

    def retrying(self, operation: Callable[..., T], *args, **kwargs) -> T:
        """Call a coordinator method under ``retry_on_conflict`` with the configured limit."""
        return retry_on_conflict(
            lambda: operation(*args, **kwargs),
            self._settings.conflict_retry_limit,
        )

    def _save(self, upload: StatementUpload) -> None:
        try:
            self._store.save(upload)
        except ConcurrentModificationError as exc:
            logger.warning(
                "concurrent_modification_detected",
                extra={
                    "error_code": exc.code,
                    "expected_version": exc.expected_version,
                    "status": upload.status.value,
                },
            )
            raise

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def start_upload(self, user_id: UUID, file_name: str) -> StatementUpload:
        upload = StatementUpload.create(
            user_id,
            file_name,
            uploaded_at=self._clock.now(),
            accepted_extensions=self._settings.accepted_file_extensions,
        )
        with LogContext.bind(upload_id=upload.upload_id, user_id=user_id):
            self._save(upload)
            logger.info("upload_started", extra={"file_name": file_name})
        return upload

    def begin_parsing(self, upload_id: UUID, user_id: UUID) -> StatementUpload:
        with LogContext.bind(upload_id=upload_id, user_id=user_id):
            upload = self._store.get_by_id(upload_id, user_id)
            upload.begin_parsing()
            self._save(upload)
            logger.info("parsing_started")
            return upload

    def attach_parsed_transactions(
        self,
        upload_id: UUID,
        user_id: UUID,
        outcome: ParserOutcome,
    ) -> StatementUpload:
        """Apply a parser outcome to an upload in PARSING."""
        with LogContext.bind(upload_id=upload_id, user_id=user_id):
            upload = self._store.get_by_id(upload_id, user_id)
            if isinstance(outcome, ParseFailure):
                reason = outcome.reason
                if not reason or not reason.strip():
                    reason = self._settings.parse_failed_message
                upload.fail(reason)
                self._save(upload)
                logger.info("parse_failed", extra={"reason": reason})
                return upload

            upload.complete_parsing(
                outcome.transactions,
                no_transactions_message=self._settings.no_transactions_message,
            )
            self._save(upload)
            if upload.error_message is not None:
                logger.info("parse_failed", extra={"reason": upload.error_message})
            else:
                logger.info(
                    "transactions_attached",
                    extra={
                        "transaction_count": upload.transaction_count,
                        "total_amount": upload.total_amount,
                    },
                )
            return upload

    def attach_raw_transactions(
        self,
        upload_id: UUID,
        user_id: UUID,
        raw_lines: Iterable[RawParsedLine],
        categories: Sequence[CategoryInfo],
    ) -> StatementUpload:
        """Normalize raw parser rows, then attach them."""
        result = build_parser_result(
            raw_lines,
            categories,
            filter_summary_rows=self._settings.filter_summary_rows,
        )
        return self.attach_parsed_transactions(upload_id, user_id, result)

    def fail(self, upload_id: UUID, user_id: UUID, reason: str) -> StatementUpload:
        with LogContext.bind(upload_id=upload_id, user_id=user_id):
            upload = self._store.get_by_id(upload_id, user_id)
            upload.fail(reason)
            self._save(upload)
            logger.info("parse_failed", extra={"reason": reason})
            return upload

    def cancel(self, upload_id: UUID, user_id: UUID) -> StatementUpload:
        with LogContext.bind(upload_id=upload_id, user_id=user_id):
            upload = self._store.get_by_id(upload_id, user_id)
            previous = upload.status
            upload.cancel()
            self._save(upload)
            logger.info("import_cancelled", extra={"from_status": previous.value})
            return upload

    # -------------------------------------------------------------------------
    # Review
    # -------------------------------------------------------------------------

    def set_confirmed_category(
        self,
        upload_id: UUID,
        user_id: UUID,
        transaction_id: UUID,
        category_id: UUID,
    ) -> StatementUpload:
        return self.set_confirmed_categories(
            upload_id, user_id, [CategoryUpdate(transaction_id, category_id)],
        )

    def set_confirmed_categories(
        self,
        upload_id: UUID,
        user_id: UUID,
        updates: Iterable[CategoryUpdate],
    ) -> StatementUpload:
        updates = tuple(updates)
        with LogContext.bind(upload_id=upload_id, user_id=user_id):
            upload = self._store.get_by_id(upload_id, user_id)
            upload.set_confirmed_categories(updates)
            self._save(upload)
            for update in updates:
                logger.info(
                    "category_confirmed",
                    extra={
                        "transaction_id": str(update.transaction_id),
                        "category_id": str(update.category_id),
                    },
                )
            return upload

    # -------------------------------------------------------------------------
    # Confirm
    # -------------------------------------------------------------------------

    def confirm(self, upload_id: UUID, user_id: UUID) -> StatementImportConfirmedEvent:
        with LogContext.bind(upload_id=upload_id, user_id=user_id):
            upload = self._store.get_by_id(upload_id, user_id)
            event = upload.confirm(self._clock.now())
            self._save(upload)
            logger.info(
                "import_confirmed",
                extra={
                    "transaction_count": event.transaction_count,
                    "total_amount": event.total_amount,
                },
            )

            try:
                self._publisher.publish(event)
            except Exception as exc:
                logger.warning(
                    "event_delivery_failed",
                    extra={
                        "statement_upload_id": event.idempotency_key,
                        "reason": str(exc),
                    },
                    exc_info=True,
                )
                raise EventDeliveryFailedError(event.idempotency_key, str(exc)) from exc

            logger.info(
                "event_published",
                extra={
                    "event_type": event.EVENT_TYPE,
                    "statement_upload_id": event.idempotency_key,
                },
            )
            return event
