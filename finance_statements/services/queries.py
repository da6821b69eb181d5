"""
Read-side DTOs and queries for statement uploads.

Read models are frozen dataclasses built from a loaded aggregate; they
carry ids as UUIDs and money as Decimal, and expose the effective category
alongside the parser suggestion and the user's override.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from finance_statements.domain.types import ImportStatus, ParsedTransaction
from finance_statements.domain.upload import StatementUpload
from finance_statements.services.ports import UploadStore


@dataclass(frozen=True)
class ParsedTransactionView:
    transaction_id: UUID
    date: date
    description: str
    amount: Decimal
    currency: str
    suggested_category_id: UUID
    confirmed_category_id: UUID | None
    effective_category_id: UUID
    original_text: str | None = None

    @classmethod
    def from_transaction(cls, txn: ParsedTransaction) -> ParsedTransactionView:
        return cls(
            transaction_id=txn.transaction_id,
            date=txn.date,
            description=txn.description,
            amount=txn.amount,
            currency=txn.currency,
            suggested_category_id=txn.suggested_category_id,
            confirmed_category_id=txn.confirmed_category_id,
            effective_category_id=txn.effective_category_id,
            original_text=txn.original_text,
        )


@dataclass(frozen=True)
class StatementUploadSummary:
    """List-row view of an upload."""

    upload_id: UUID
    file_name: str
    uploaded_at: datetime
    status: ImportStatus
    transaction_count: int
    error_message: str | None = None


@dataclass(frozen=True)
class StatementUploadDetail:
    """Review-screen view of an upload and its transactions."""

    upload_id: UUID
    file_name: str
    uploaded_at: datetime
    status: ImportStatus
    error_message: str | None
    transactions: tuple[ParsedTransactionView, ...]
    total_amount: Decimal

    @property
    def transaction_count(self) -> int:
        return len(self.transactions)


def to_summary(upload: StatementUpload) -> StatementUploadSummary:
    return StatementUploadSummary(
        upload_id=upload.upload_id,
        file_name=upload.original_file_name,
        uploaded_at=upload.uploaded_at,
        status=upload.status,
        transaction_count=upload.transaction_count,
        error_message=upload.error_message,
    )


def to_detail(upload: StatementUpload) -> StatementUploadDetail:
    return StatementUploadDetail(
        upload_id=upload.upload_id,
        file_name=upload.original_file_name,
        uploaded_at=upload.uploaded_at,
        status=upload.status,
        error_message=upload.error_message,
        transactions=tuple(
            ParsedTransactionView.from_transaction(t) for t in upload.transactions
        ),
        total_amount=upload.total_amount,
    )


def get_upload_detail(
    store: UploadStore, upload_id: UUID, user_id: UUID,
) -> StatementUploadDetail:
    """
    Detail view of one upload.

    Raises:
        UploadNotFoundError: Missing, or owned by another user.
    """
    return to_detail(store.get_by_id(upload_id, user_id))


def list_user_uploads(store: UploadStore, user_id: UUID) -> list[StatementUploadSummary]:
    """Summaries of every upload owned by ``user_id``, newest first."""
    return [to_summary(u) for u in store.get_by_user_id(user_id)]
