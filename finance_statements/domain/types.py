"""
finance_statements.domain.types -- Pure types for the statement import lifecycle.

ZERO I/O. Statuses, triggers, the transition table, parser input shapes,
the parsed transaction entity and the outbound confirmation event.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any
from uuid import UUID

from finance_statements.domain.resolver import resolve_category


# =============================================================================
# Lifecycle
# =============================================================================


class ImportStatus(str, Enum):
    """Statement upload lifecycle status."""

    UPLOADING = "uploading"  # Created, file not yet handed to the parser
    PARSING = "parsing"  # Parser running; no transactions attached
    PENDING_REVIEW = "pending_review"  # Transactions attached, user reviewing
    CONFIRMED = "confirmed"  # User approved; event emitted
    FAILED = "failed"  # Parser failed or found nothing
    CANCELLED = "cancelled"  # User abandoned the import


class ImportTrigger(str, Enum):
    """Actions that move an upload between statuses."""

    BEGIN_PARSING = "begin_parsing"
    COMPLETE_PARSING = "complete_parsing"
    FAIL = "fail"
    CANCEL = "cancel"
    CONFIRM = "confirm"


# Allowed (status, trigger) -> target statuses. Anything absent is illegal.
IMPORT_TRANSITIONS: dict[ImportStatus, dict[ImportTrigger, frozenset[ImportStatus]]] = {
    ImportStatus.UPLOADING: {
        ImportTrigger.BEGIN_PARSING: frozenset({ImportStatus.PARSING}),
        ImportTrigger.CANCEL: frozenset({ImportStatus.CANCELLED}),
    },
    ImportStatus.PARSING: {
        ImportTrigger.COMPLETE_PARSING: frozenset({
            ImportStatus.PENDING_REVIEW, ImportStatus.FAILED,
        }),
        ImportTrigger.FAIL: frozenset({ImportStatus.FAILED}),
        ImportTrigger.CANCEL: frozenset({ImportStatus.CANCELLED}),
    },
    ImportStatus.PENDING_REVIEW: {
        ImportTrigger.CONFIRM: frozenset({ImportStatus.CONFIRMED}),
        ImportTrigger.CANCEL: frozenset({ImportStatus.CANCELLED}),
    },
    # Terminal states -- no transitions allowed
    ImportStatus.CONFIRMED: {},
    ImportStatus.FAILED: {},
    ImportStatus.CANCELLED: {},
}

TERMINAL_IMPORT_STATUSES: frozenset[ImportStatus] = frozenset({
    ImportStatus.CONFIRMED,
    ImportStatus.FAILED,
    ImportStatus.CANCELLED,
})

# Category edits are not transitions; they are only legal while reviewing.
EDITABLE_IMPORT_STATUSES: frozenset[ImportStatus] = frozenset({
    ImportStatus.PENDING_REVIEW,
})


# =============================================================================
# Parser boundary
# =============================================================================


@dataclass(frozen=True)
class ParsedLine:
    """One transaction line as reported by the parser, before attachment."""

    date: date
    description: str
    amount: Decimal
    currency: str
    suggested_category_id: UUID
    original_text: str | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.amount, Decimal):
            raise ValueError(
                f"amount must be Decimal, got {type(self.amount).__name__}"
            )
        if self.suggested_category_id is None:
            raise ValueError("suggested_category_id is required")


@dataclass(frozen=True)
class ParserResult:
    """Successful parser run. May legitimately contain zero lines."""

    transactions: tuple[ParsedLine, ...] = ()


@dataclass(frozen=True)
class ParseFailure:
    """Parser could not read the statement. A business outcome, not an exception."""

    reason: str


ParserOutcome = ParserResult | ParseFailure


# =============================================================================
# Parsed transaction (leaf entity of the upload aggregate)
# =============================================================================


@dataclass(frozen=True)
class ParsedTransaction:
    """Immutable snapshot of one parsed line owned by an upload.

    Parser facts never change; a category edit produces a new snapshot
    with ``confirmed_category_id`` replaced.
    """

    transaction_id: UUID
    date: date
    description: str
    amount: Decimal
    currency: str
    suggested_category_id: UUID
    confirmed_category_id: UUID | None = None
    original_text: str | None = None

    @property
    def effective_category_id(self) -> UUID:
        return resolve_category(self.suggested_category_id, self.confirmed_category_id)

    @classmethod
    def from_line(cls, transaction_id: UUID, line: ParsedLine) -> ParsedTransaction:
        return cls(
            transaction_id=transaction_id,
            date=line.date,
            description=line.description,
            amount=line.amount,
            currency=line.currency,
            suggested_category_id=line.suggested_category_id,
            original_text=line.original_text,
        )


@dataclass(frozen=True)
class CategoryUpdate:
    """User correction for one transaction."""

    transaction_id: UUID
    category_id: UUID


# =============================================================================
# Outbound confirmation event
# =============================================================================


@dataclass(frozen=True)
class ConfirmedTransactionData:
    """Finalized transaction as seen by downstream consumers."""

    date: date
    description: str
    amount: Decimal
    currency: str
    category_id: UUID  # Effective category only


@dataclass(frozen=True)
class StatementImportConfirmedEvent:
    """
    Emitted exactly once per successful confirm.

    Consumers (ledger posting, budgets, analytics) must treat
    ``statement_upload_id`` as the idempotency key.
    """

    EVENT_TYPE = "statement_import.confirmed"

    statement_upload_id: UUID
    user_id: UUID
    transactions: tuple[ConfirmedTransactionData, ...]
    occurred_at: datetime | None = None
    schema_version: int = field(default=1)

    @property
    def idempotency_key(self) -> str:
        return str(self.statement_upload_id)

    @property
    def transaction_count(self) -> int:
        return len(self.transactions)

    @property
    def total_amount(self) -> Decimal:
        return sum((t.amount for t in self.transactions), Decimal("0"))

    def to_payload(self) -> dict[str, Any]:
        """JSON-safe payload (Decimal and dates as strings)."""
        return {
            "event_type": self.EVENT_TYPE,
            "schema_version": self.schema_version,
            "statement_upload_id": str(self.statement_upload_id),
            "user_id": str(self.user_id),
            "occurred_at": self.occurred_at.isoformat() if self.occurred_at else None,
            "transactions": [
                {
                    "date": t.date.isoformat(),
                    "description": t.description,
                    "amount": format(t.amount, "f"),
                    "currency": t.currency,
                    "category_id": str(t.category_id),
                }
                for t in self.transactions
            ],
        }
