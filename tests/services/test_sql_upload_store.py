"""
SqlUploadStore tests on SQLite.

Round-trip of the aggregate, ownership checks, ordering and the optimistic
version check.
"""

from datetime import datetime, timedelta, timezone
from decimal import Decimal
from uuid import uuid4

import pytest
from sqlalchemy import select

from finance_statements.domain.types import ImportStatus
from finance_statements.domain.upload import StatementUpload
from finance_statements.exceptions import ConcurrentModificationError, UploadNotFoundError
from finance_statements.models.uploads import ParsedTransactionModel, StatementUploadModel
from finance_statements.services.upload_store import InMemoryUploadStore

T0 = datetime(2026, 1, 10, 8, 0, tzinfo=timezone.utc)


def _reviewed_upload(user_id, lines) -> StatementUpload:
    upload = StatementUpload.create(user_id, "s.pdf", T0)
    upload.begin_parsing()
    upload.complete_parsing(lines)
    return upload


class TestRoundTrip:

    def test_new_upload_gets_version_one(self, sql_store, user_id):
        upload = StatementUpload.create(user_id, "s.pdf", T0)
        sql_store.save(upload)

        assert upload.version == 1
        loaded = sql_store.get_by_id(upload.upload_id, user_id)
        assert loaded == upload

    def test_transactions_round_trip_in_order(self, sql_store, user_id, three_lines):
        upload = _reviewed_upload(user_id, three_lines)
        sql_store.save(upload)

        loaded = sql_store.get_by_id_with_transactions(upload.upload_id)
        assert loaded.status == ImportStatus.PENDING_REVIEW
        assert [t.transaction_id for t in loaded.transactions] == [
            t.transaction_id for t in upload.transactions
        ]
        assert [t.amount for t in loaded.transactions] == [
            Decimal("42.10"), Decimal("18.75"), Decimal("2.75"),
        ]
        assert loaded.transactions[0].original_text == three_lines[0].original_text
        assert loaded.uploaded_at == T0

    def test_amounts_read_back_exactly(self, sql_store, user_id, make_line):
        lines = (
            make_line("WIRE TRANSFER", "12345678901.23"),
            make_line("FX ROUNDING", "0.1234567891"),
            make_line("REFUND", "-0.10"),
        )
        upload = _reviewed_upload(user_id, lines)
        sql_store.save(upload)

        loaded = sql_store.get_by_id(upload.upload_id, user_id)
        assert [str(t.amount) for t in loaded.transactions] == [
            "12345678901.23", "0.1234567891", "-0.10",
        ]
        assert loaded.total_amount == Decimal("12345678901.2534567891")

    def test_update_adds_rows_and_category_edits(self, sql_store, sqlite_session_factory,
                                                 user_id, three_lines):
        upload = StatementUpload.create(user_id, "s.pdf", T0)
        sql_store.save(upload)
        upload.begin_parsing()
        sql_store.save(upload)
        upload.complete_parsing(three_lines)
        sql_store.save(upload)

        override = uuid4()
        upload.set_confirmed_category(upload.transactions[1].transaction_id, override)
        sql_store.save(upload)

        assert upload.version == 4
        with sqlite_session_factory() as session:
            rows = session.scalars(
                select(ParsedTransactionModel)
                .where(ParsedTransactionModel.upload_id == upload.upload_id)
                .order_by(ParsedTransactionModel.position)
            ).all()
            assert [r.position for r in rows] == [0, 1, 2]
            assert [r.confirmed_category_id for r in rows] == [None, override, None]

            header = session.get(StatementUploadModel, upload.upload_id)
            assert header.version == 4
            assert header.status == "pending_review"

    def test_failed_upload_keeps_error(self, sql_store, user_id):
        upload = StatementUpload.create(user_id, "s.pdf", T0)
        upload.begin_parsing()
        upload.complete_parsing(())
        sql_store.save(upload)

        loaded = sql_store.get_by_id(upload.upload_id, user_id)
        assert loaded.status == ImportStatus.FAILED
        assert loaded.error_message == "no transactions found"


class TestLookups:

    def test_missing(self, sql_store, user_id):
        with pytest.raises(UploadNotFoundError):
            sql_store.get_by_id(uuid4(), user_id)
        with pytest.raises(UploadNotFoundError):
            sql_store.get_by_id_with_transactions(uuid4())

    def test_wrong_owner(self, sql_store, user_id, other_user_id):
        upload = StatementUpload.create(user_id, "s.pdf", T0)
        sql_store.save(upload)
        with pytest.raises(UploadNotFoundError):
            sql_store.get_by_id(upload.upload_id, other_user_id)
        assert sql_store.get_by_id_with_transactions(upload.upload_id).user_id == user_id

    @pytest.mark.parametrize("store_kind", ["memory", "sql"])
    def test_by_user_newest_first(self, store_kind, sql_store, user_id, other_user_id):
        store = sql_store if store_kind == "sql" else InMemoryUploadStore()
        older = StatementUpload.create(user_id, "old.pdf", T0)
        newer = StatementUpload.create(user_id, "new.pdf", T0 + timedelta(days=30))
        foreign = StatementUpload.create(other_user_id, "x.pdf", T0)
        for upload in (older, newer, foreign):
            store.save(upload)

        names = [u.original_file_name for u in store.get_by_user_id(user_id)]
        assert names == ["new.pdf", "old.pdf"]
        assert store.get_by_user_id(uuid4()) == []


class TestVersionCheck:

    @pytest.mark.parametrize("store_kind", ["memory", "sql"])
    def test_stale_save_rejected(self, store_kind, sql_store, user_id, three_lines):
        store = sql_store if store_kind == "sql" else InMemoryUploadStore()
        upload = _reviewed_upload(user_id, three_lines)
        store.save(upload)

        first = store.get_by_id(upload.upload_id, user_id)
        second = store.get_by_id(upload.upload_id, user_id)
        first.set_confirmed_category(first.transactions[0].transaction_id, uuid4())
        store.save(first)

        second.set_confirmed_category(second.transactions[0].transaction_id, uuid4())
        with pytest.raises(ConcurrentModificationError) as exc_info:
            store.save(second)

        assert exc_info.value.expected_version == 1
        reloaded = store.get_by_id(upload.upload_id, user_id)
        assert reloaded.version == 2
        assert reloaded.transactions[0].confirmed_category_id == (
            first.transactions[0].confirmed_category_id
        )

    @pytest.mark.parametrize("store_kind", ["memory", "sql"])
    def test_duplicate_create_rejected(self, store_kind, sql_store, user_id):
        store = sql_store if store_kind == "sql" else InMemoryUploadStore()
        upload = StatementUpload.create(user_id, "s.pdf", T0)
        store.save(upload)

        clone = StatementUpload.create(user_id, "s.pdf", T0, upload_id=upload.upload_id)
        with pytest.raises(ConcurrentModificationError):
            store.save(clone)

    def test_in_memory_returns_copies(self, user_id):
        store = InMemoryUploadStore()
        upload = StatementUpload.create(user_id, "s.pdf", T0)
        store.save(upload)

        loaded = store.get_by_id(upload.upload_id, user_id)
        loaded.begin_parsing()

        assert store.get_by_id(upload.upload_id, user_id).status == ImportStatus.UPLOADING
