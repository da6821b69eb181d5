"""
ORM models for statement uploads and their parsed transactions.

Contract:
    StatementUploadModel persists the aggregate root, including the
    optimistic-concurrency ``version`` stamp.  ParsedTransactionModel rows are
    owned by exactly one upload (CASCADE delete) and keep their parser order
    in ``position``.  Conversion to and from the domain aggregate lives here;
    nothing outside models/ and services/upload_store.py sees these classes.
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import Date, ForeignKey, Index, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from finance_statements.db.base import Base, TimestampedBase, UUIDString
from finance_statements.domain.types import ImportStatus, ParsedTransaction
from finance_statements.domain.upload import StatementUpload


class StatementUploadModel(TimestampedBase):
    """One uploaded statement (aggregate root row)."""

    __tablename__ = "statement_uploads"

    __table_args__ = (
        Index("ix_statement_uploads_user_uploaded", "user_id", "uploaded_at"),
        Index("ix_statement_uploads_status", "status"),
    )

    user_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)
    original_file_name: Mapped[str] = mapped_column(String(500), nullable=False)
    uploaded_at: Mapped[datetime] = mapped_column(nullable=False)
    status: Mapped[str] = mapped_column(String(30), nullable=False)
    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)
    version: Mapped[int] = mapped_column(nullable=False, default=1)

    transactions: Mapped[list["ParsedTransactionModel"]] = relationship(
        "ParsedTransactionModel",
        back_populates="upload",
        order_by="ParsedTransactionModel.position",
        cascade="all, delete-orphan",
    )

    def to_domain(self) -> StatementUpload:
        return StatementUpload(
            upload_id=self.id,
            user_id=self.user_id,
            original_file_name=self.original_file_name,
            uploaded_at=self.uploaded_at,
            status=ImportStatus(self.status),
            error_message=self.error_message,
            transactions=tuple(t.to_domain() for t in self.transactions),
            version=self.version,
        )

    @classmethod
    def from_domain(cls, upload: StatementUpload, version: int) -> StatementUploadModel:
        return cls(
            id=upload.upload_id,
            user_id=upload.user_id,
            original_file_name=upload.original_file_name,
            uploaded_at=upload.uploaded_at,
            status=upload.status.value,
            error_message=upload.error_message,
            version=version,
            transactions=[
                ParsedTransactionModel.from_domain(txn, position)
                for position, txn in enumerate(upload.transactions)
            ],
        )


class ParsedTransactionModel(Base):
    """One parsed statement line owned by an upload."""

    __tablename__ = "statement_parsed_transactions"

    __table_args__ = (
        UniqueConstraint("upload_id", "position", name="uq_parsed_txn_upload_position"),
    )

    upload_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("statement_uploads.id", ondelete="CASCADE"),
        nullable=False,
    )
    position: Mapped[int] = mapped_column(nullable=False)
    transaction_date: Mapped[date] = mapped_column(Date, nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    amount: Mapped[Decimal] = mapped_column(nullable=False)
    currency: Mapped[str] = mapped_column(String(10), nullable=False)
    suggested_category_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)
    confirmed_category_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)
    original_text: Mapped[str | None] = mapped_column(Text, nullable=True)

    upload: Mapped["StatementUploadModel"] = relationship(
        "StatementUploadModel",
        back_populates="transactions",
    )

    def to_domain(self) -> ParsedTransaction:
        return ParsedTransaction(
            transaction_id=self.id,
            date=self.transaction_date,
            description=self.description,
            amount=self.amount,
            currency=self.currency,
            suggested_category_id=self.suggested_category_id,
            confirmed_category_id=self.confirmed_category_id,
            original_text=self.original_text,
        )

    @classmethod
    def from_domain(cls, txn: ParsedTransaction, position: int) -> ParsedTransactionModel:
        return cls(
            id=txn.transaction_id,
            position=position,
            transaction_date=txn.date,
            description=txn.description,
            amount=txn.amount,
            currency=txn.currency,
            suggested_category_id=txn.suggested_category_id,
            confirmed_category_id=txn.confirmed_category_id,
            original_text=txn.original_text,
        )
