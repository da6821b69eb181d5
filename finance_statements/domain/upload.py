"""
StatementUpload -- aggregate root of the statement import lifecycle.

Responsibility:
    Owns one uploaded statement and its parsed transactions, and is the only
    place the lifecycle rules live.  Every mutating method validates against
    ``IMPORT_TRANSITIONS`` (or ``EDITABLE_IMPORT_STATUSES``) before touching
    any field, so a rejected call leaves the aggregate exactly as it was.

Architecture position:
    Domain -- pure, ZERO I/O.  Holds no reference to its storage; the
    ``version`` stamp is read and advanced by the UploadStore.

Invariants enforced:
    - Transactions are empty while UPLOADING or PARSING and non-empty once
      PENDING_REVIEW is reached.
    - ``error_message`` is set if and only if status is FAILED.
    - Terminal statuses (CONFIRMED, FAILED, CANCELLED) accept no trigger.
    - Parser facts on a transaction are never mutated; only
      ``confirmed_category_id`` changes, and only during PENDING_REVIEW.

Failure modes:
    - InvalidTransitionError for any (status, trigger) pair absent from
      the transition table.
    - InvalidTransactionStateError for category edits outside review.
    - TransactionNotFoundError for an unknown transaction id.
    - UploadValidationError subclasses from ``create``.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass, replace
from datetime import datetime
from decimal import Decimal
from uuid import UUID, uuid4

from finance_statements.domain.types import (
    EDITABLE_IMPORT_STATUSES,
    IMPORT_TRANSITIONS,
    TERMINAL_IMPORT_STATUSES,
    CategoryUpdate,
    ConfirmedTransactionData,
    ImportStatus,
    ImportTrigger,
    ParsedLine,
    ParsedTransaction,
    StatementImportConfirmedEvent,
)
from finance_statements.exceptions import (
    InvalidFileNameError,
    InvalidTransactionStateError,
    InvalidTransitionError,
    InvalidUserError,
    TransactionNotFoundError,
    UnsupportedFileFormatError,
)

NO_TRANSACTIONS_MESSAGE = "no transactions found"
DEFAULT_ACCEPTED_EXTENSIONS: tuple[str, ...] = (".pdf",)


@dataclass
class StatementUpload:
    """One statement upload and its parsed transactions."""

    upload_id: UUID
    user_id: UUID
    original_file_name: str
    uploaded_at: datetime
    status: ImportStatus = ImportStatus.UPLOADING
    error_message: str | None = None
    transactions: tuple[ParsedTransaction, ...] = ()
    version: int = 0  # 0 = never persisted

    @classmethod
    def create(
        cls,
        user_id: UUID | None,
        original_file_name: str | None,
        uploaded_at: datetime,
        accepted_extensions: Sequence[str] = DEFAULT_ACCEPTED_EXTENSIONS,
        upload_id: UUID | None = None,
    ) -> StatementUpload:
        """Validate upload input and return a new upload in UPLOADING."""
        if user_id is None or user_id.int == 0:
            raise InvalidUserError()
        if original_file_name is None or not original_file_name.strip():
            raise InvalidFileNameError(original_file_name)
        accepted = tuple(ext.lower() for ext in accepted_extensions)
        if accepted and not original_file_name.lower().endswith(accepted):
            raise UnsupportedFileFormatError(original_file_name, accepted)

        return cls(
            upload_id=upload_id or uuid4(),
            user_id=user_id,
            original_file_name=original_file_name,
            uploaded_at=uploaded_at,
        )

    # -------------------------------------------------------------------------
    # Read side
    # -------------------------------------------------------------------------

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_IMPORT_STATUSES

    @property
    def allowed_triggers(self) -> frozenset[ImportTrigger]:
        return frozenset(IMPORT_TRANSITIONS.get(self.status, {}))

    @property
    def transaction_count(self) -> int:
        return len(self.transactions)

    @property
    def total_amount(self) -> Decimal:
        return sum((t.amount for t in self.transactions), Decimal("0"))

    def get_transaction(self, transaction_id: UUID) -> ParsedTransaction:
        for txn in self.transactions:
            if txn.transaction_id == transaction_id:
                return txn
        raise TransactionNotFoundError(str(self.upload_id), str(transaction_id))

    # -------------------------------------------------------------------------
    # Transitions
    # -------------------------------------------------------------------------

    def validate_transition(self, trigger: ImportTrigger, target: ImportStatus) -> None:
        """Raise InvalidTransitionError unless ``trigger`` may move us to ``target``."""
        allowed = IMPORT_TRANSITIONS.get(self.status, {}).get(trigger, frozenset())
        if target not in allowed:
            raise InvalidTransitionError(
                str(self.upload_id), self.status.value, trigger.value,
            )

    def begin_parsing(self) -> None:
        self.validate_transition(ImportTrigger.BEGIN_PARSING, ImportStatus.PARSING)
        self.status = ImportStatus.PARSING

    def complete_parsing(
        self,
        lines: Iterable[ParsedLine],
        no_transactions_message: str = NO_TRANSACTIONS_MESSAGE,
        id_factory: Callable[[], UUID] = uuid4,
    ) -> None:
        """Attach parser output.

        A successful parse with zero lines is a failed import, not an error.
        """
        lines = tuple(lines)
        if not lines:
            self.validate_transition(ImportTrigger.COMPLETE_PARSING, ImportStatus.FAILED)
            self.status = ImportStatus.FAILED
            self.error_message = no_transactions_message
            return

        self.validate_transition(ImportTrigger.COMPLETE_PARSING, ImportStatus.PENDING_REVIEW)
        self.transactions = tuple(
            ParsedTransaction.from_line(id_factory(), line) for line in lines
        )
        self.status = ImportStatus.PENDING_REVIEW

    def fail(self, reason: str) -> None:
        if not reason or not reason.strip():
            raise ValueError("A failure reason is required")
        self.validate_transition(ImportTrigger.FAIL, ImportStatus.FAILED)
        self.status = ImportStatus.FAILED
        self.error_message = reason

    def cancel(self) -> None:
        self.validate_transition(ImportTrigger.CANCEL, ImportStatus.CANCELLED)
        self.status = ImportStatus.CANCELLED

    def confirm(self, occurred_at: datetime | None = None) -> StatementImportConfirmedEvent:
        """Move to CONFIRMED and build the event describing what was approved.

        The event is returned, not dispatched; publishing it is the
        coordinator's job once the new status is committed.
        """
        self.validate_transition(ImportTrigger.CONFIRM, ImportStatus.CONFIRMED)
        confirmed = tuple(
            ConfirmedTransactionData(
                date=t.date,
                description=t.description,
                amount=t.amount,
                currency=t.currency,
                category_id=t.effective_category_id,
            )
            for t in self.transactions
        )
        self.status = ImportStatus.CONFIRMED
        return StatementImportConfirmedEvent(
            statement_upload_id=self.upload_id,
            user_id=self.user_id,
            transactions=confirmed,
            occurred_at=occurred_at,
        )

    # -------------------------------------------------------------------------
    # Review edits
    # -------------------------------------------------------------------------

    def set_confirmed_category(self, transaction_id: UUID, category_id: UUID) -> None:
        self.set_confirmed_categories((CategoryUpdate(transaction_id, category_id),))

    def set_confirmed_categories(self, updates: Iterable[CategoryUpdate]) -> None:
        """Apply several category corrections all-or-nothing."""
        if self.status not in EDITABLE_IMPORT_STATUSES:
            raise InvalidTransactionStateError(str(self.upload_id), self.status.value)

        by_id = {t.transaction_id: t for t in self.transactions}
        updates = tuple(updates)
        for update in updates:
            if update.transaction_id not in by_id:
                raise TransactionNotFoundError(
                    str(self.upload_id), str(update.transaction_id),
                )

        for update in updates:
            by_id[update.transaction_id] = replace(
                by_id[update.transaction_id], confirmed_category_id=update.category_id,
            )
        self.transactions = tuple(by_id[t.transaction_id] for t in self.transactions)
