"""Tests for StatementImportConfirmedEvent and its count/total invariant."""

from datetime import date, datetime, timezone
from decimal import Decimal
from uuid import uuid4

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from finance_statements.domain.types import (
    ConfirmedTransactionData,
    ParsedLine,
    StatementImportConfirmedEvent,
)
from finance_statements.domain.upload import StatementUpload

amounts = st.decimals(
    min_value=Decimal("-99999.99"),
    max_value=Decimal("99999.99"),
    places=2,
    allow_nan=False,
    allow_infinity=False,
)


def _line(amount: Decimal) -> ParsedLine:
    return ParsedLine(
        date=date(2026, 3, 1),
        description="PURCHASE",
        amount=amount,
        currency="USD",
        suggested_category_id=uuid4(),
    )


class TestPayload:

    def test_payload_is_json_safe(self):
        upload_id, user_id, category_id = uuid4(), uuid4(), uuid4()
        event = StatementImportConfirmedEvent(
            statement_upload_id=upload_id,
            user_id=user_id,
            transactions=(
                ConfirmedTransactionData(
                    date(2026, 3, 4), "BAKERY", Decimal("7.25"), "EUR", category_id,
                ),
            ),
            occurred_at=datetime(2026, 3, 5, 8, 0, tzinfo=timezone.utc),
        )

        payload = event.to_payload()

        assert payload == {
            "event_type": "statement_import.confirmed",
            "schema_version": 1,
            "statement_upload_id": str(upload_id),
            "user_id": str(user_id),
            "occurred_at": "2026-03-05T08:00:00+00:00",
            "transactions": [
                {
                    "date": "2026-03-04",
                    "description": "BAKERY",
                    "amount": "7.25",
                    "currency": "EUR",
                    "category_id": str(category_id),
                },
            ],
        }

    def test_idempotency_key_is_upload_id(self):
        upload_id = uuid4()
        event = StatementImportConfirmedEvent(upload_id, uuid4(), ())
        assert event.idempotency_key == str(upload_id)
        assert event.total_amount == Decimal("0")


class TestEventMatchesConfirmedUpload:

    @settings(max_examples=50)
    @given(values=st.lists(amounts, min_size=1, max_size=25))
    def test_count_and_sum_match(self, values):
        upload = StatementUpload.create(uuid4(), "s.pdf", datetime.now(timezone.utc))
        upload.begin_parsing()
        upload.complete_parsing([_line(v) for v in values])

        event = upload.confirm()

        assert event.transaction_count == len(values)
        assert event.total_amount == sum(values, Decimal("0"))
        assert event.total_amount == upload.total_amount


class TestParsedLine:

    def test_float_amount_rejected(self):
        with pytest.raises(ValueError):
            ParsedLine(date(2026, 1, 1), "X", 1.5, "USD", uuid4())

    def test_missing_suggestion_rejected(self):
        with pytest.raises(ValueError):
            ParsedLine(date(2026, 1, 1), "X", Decimal("1.50"), "USD", None)
