"""
UploadStore implementations.

SqlUploadStore:
    SQLAlchemy-backed.  Each call opens its own session from the injected
    session factory and commits before returning, so request handlers on
    different threads never share a session.  The optimistic version check
    is a single conditional UPDATE::

        UPDATE statement_uploads
           SET ..., version = :expected + 1
         WHERE id = :id AND version = :expected

    Zero affected rows means another writer got there first.  The check and
    the bump are one statement, so they are atomic on PostgreSQL and SQLite
    alike.

InMemoryUploadStore:
    Same contract over a dict guarded by a lock.  Stores and returns copies,
    so a caller mutating a loaded aggregate never changes what is stored
    until it calls ``save``.
"""

from __future__ import annotations

import threading
from contextlib import contextmanager
from dataclasses import replace
from typing import Generator
from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload, sessionmaker

from finance_statements.db.engine import get_session_factory
from finance_statements.domain.upload import StatementUpload
from finance_statements.exceptions import ConcurrentModificationError, UploadNotFoundError
from finance_statements.logging_config import get_logger
from finance_statements.models.uploads import ParsedTransactionModel, StatementUploadModel

logger = get_logger("services.upload_store")


class SqlUploadStore:
    """UploadStore backed by the statement_uploads tables."""

    def __init__(self, session_factory: sessionmaker[Session] | None = None):
        self._session_factory = session_factory or get_session_factory()

    @contextmanager
    def _session(self) -> Generator[Session, None, None]:
        session = self._session_factory()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    @staticmethod
    def _load(session: Session, upload_id: UUID) -> StatementUploadModel | None:
        stmt = (
            select(StatementUploadModel)
            .options(selectinload(StatementUploadModel.transactions))
            .where(StatementUploadModel.id == upload_id)
        )
        return session.scalars(stmt).one_or_none()

    def get_by_id(self, upload_id: UUID, user_id: UUID) -> StatementUpload:
        with self._session() as session:
            row = self._load(session, upload_id)
            if row is None or row.user_id != user_id:
                raise UploadNotFoundError(str(upload_id))
            return row.to_domain()

    def get_by_id_with_transactions(self, upload_id: UUID) -> StatementUpload:
        with self._session() as session:
            row = self._load(session, upload_id)
            if row is None:
                raise UploadNotFoundError(str(upload_id))
            return row.to_domain()

    def get_by_user_id(self, user_id: UUID) -> list[StatementUpload]:
        with self._session() as session:
            stmt = (
                select(StatementUploadModel)
                .options(selectinload(StatementUploadModel.transactions))
                .where(StatementUploadModel.user_id == user_id)
                .order_by(StatementUploadModel.uploaded_at.desc())
            )
            return [row.to_domain() for row in session.scalars(stmt)]

    def save(self, upload: StatementUpload) -> None:
        with self._session() as session:
            if upload.version == 0:
                session.add(StatementUploadModel.from_domain(upload, version=1))
                try:
                    session.flush()
                except IntegrityError:
                    raise ConcurrentModificationError(str(upload.upload_id), 0) from None
                new_version = 1
            else:
                new_version = self._update(session, upload)

        logger.debug(
            "upload_saved",
            extra={
                "upload_id": str(upload.upload_id),
                "status": upload.status.value,
                "version": new_version,
            },
        )
        upload.version = new_version

    def _update(self, session: Session, upload: StatementUpload) -> int:
        expected = upload.version
        result = session.execute(
            update(StatementUploadModel)
            .where(
                StatementUploadModel.id == upload.upload_id,
                StatementUploadModel.version == expected,
            )
            .values(
                status=upload.status.value,
                error_message=upload.error_message,
                version=expected + 1,
                updated_at=func.now(),
            )
        )
        if result.rowcount != 1:
            raise ConcurrentModificationError(str(upload.upload_id), expected)

        # Parser facts are write-once; only new rows and category edits remain.
        existing = {
            row.id: row
            for row in session.scalars(
                select(ParsedTransactionModel).where(
                    ParsedTransactionModel.upload_id == upload.upload_id,
                )
            )
        }
        for position, txn in enumerate(upload.transactions):
            row = existing.get(txn.transaction_id)
            if row is None:
                row = ParsedTransactionModel.from_domain(txn, position)
                row.upload_id = upload.upload_id
                session.add(row)
            elif row.confirmed_category_id != txn.confirmed_category_id:
                row.confirmed_category_id = txn.confirmed_category_id

        return expected + 1


class InMemoryUploadStore:
    """UploadStore over a process-local dict."""

    def __init__(self) -> None:
        self._uploads: dict[UUID, StatementUpload] = {}
        self._lock = threading.Lock()

    def get_by_id(self, upload_id: UUID, user_id: UUID) -> StatementUpload:
        upload = self.get_by_id_with_transactions(upload_id)
        if upload.user_id != user_id:
            raise UploadNotFoundError(str(upload_id))
        return upload

    def get_by_id_with_transactions(self, upload_id: UUID) -> StatementUpload:
        with self._lock:
            stored = self._uploads.get(upload_id)
            if stored is None:
                raise UploadNotFoundError(str(upload_id))
            return replace(stored)

    def get_by_user_id(self, user_id: UUID) -> list[StatementUpload]:
        with self._lock:
            owned = [replace(u) for u in self._uploads.values() if u.user_id == user_id]
        return sorted(owned, key=lambda u: u.uploaded_at, reverse=True)

    def save(self, upload: StatementUpload) -> None:
        with self._lock:
            stored = self._uploads.get(upload.upload_id)
            current = stored.version if stored is not None else 0
            if current != upload.version:
                raise ConcurrentModificationError(str(upload.upload_id), upload.version)
            new_version = current + 1
            self._uploads[upload.upload_id] = replace(upload, version=new_version)
        upload.version = new_version

    def __len__(self) -> int:
        return len(self._uploads)
