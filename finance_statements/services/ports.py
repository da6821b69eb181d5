"""
Ports the import coordinator depends on.

The coordinator never touches SQLAlchemy or a message bus directly; it
talks to these two protocols.  Implementations live in upload_store.py
and publishers.py.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable
from uuid import UUID

from finance_statements.domain.types import StatementImportConfirmedEvent
from finance_statements.domain.upload import StatementUpload


@runtime_checkable
class UploadStore(Protocol):
    """
    Persistence port for the StatementUpload aggregate.

    Every load returns a detached aggregate carrying the persisted
    ``version``.  ``save`` is the only write and enforces the version check.
    """

    def get_by_id(self, upload_id: UUID, user_id: UUID) -> StatementUpload:
        """
        Load an upload owned by ``user_id``.

        Raises:
            UploadNotFoundError: Missing, or owned by another user.
        """
        ...

    def get_by_id_with_transactions(self, upload_id: UUID) -> StatementUpload:
        """Load an upload with its transactions, without an ownership check."""
        ...

    def get_by_user_id(self, user_id: UUID) -> list[StatementUpload]:
        """All uploads for a user, newest first."""
        ...

    def save(self, upload: StatementUpload) -> None:
        """
        Persist the aggregate and advance ``upload.version``.

        Raises:
            ConcurrentModificationError: The stored version moved on since
                ``upload`` was loaded.
        """
        ...


@runtime_checkable
class EventPublisher(Protocol):
    """Outbound port for confirmation events."""

    def publish(self, event: StatementImportConfirmedEvent) -> None:
        """
        Hand the event to downstream consumers.

        Any exception is treated by the coordinator as a delivery failure.
        """
        ...
