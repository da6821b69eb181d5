"""Tests for build_parser_result."""

from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest

from finance_statements.domain.categories import CategoryInfo
from finance_statements.domain.types import ParserResult
from finance_statements.services.parsing import RawParsedLine, build_parser_result


@pytest.fixture
def categories():
    return [
        CategoryInfo(uuid4(), "Miscellaneous"),
        CategoryInfo(uuid4(), "Groceries"),
        CategoryInfo(uuid4(), "Coffee/Tea"),
    ]


def _raw(description, amount="10.00", category=None, original_text=None) -> RawParsedLine:
    return RawParsedLine(
        date=date(2026, 1, 4),
        description=description,
        amount=Decimal(amount),
        currency="USD",
        suggested_category_name=category,
        original_text=original_text,
    )


def test_resolves_names(categories):
    result = build_parser_result(
        [_raw("FRESH MARKET", category="Grocery"), _raw("BLUE BOTTLE", category="coffee")],
        categories,
    )

    assert isinstance(result, ParserResult)
    assert [line.suggested_category_id for line in result.transactions] == [
        categories[1].category_id, categories[2].category_id,
    ]


def test_unmatched_falls_back_to_first_category(categories):
    result = build_parser_result(
        [_raw("MYSTERY", category="Spaceflight"), _raw("ANOTHER", category=None)],
        categories,
    )
    assert {line.suggested_category_id for line in result.transactions} == {
        categories[0].category_id,
    }


def test_summary_rows_dropped(categories):
    result = build_parser_result(
        [
            _raw("FRESH MARKET", category="Groceries"),
            _raw("Previous Balance", "1200.00"),
            _raw("Adjustment", "5.00", original_text="MINIMUM PAYMENT DUE 35.00"),
        ],
        categories,
    )
    assert [line.description for line in result.transactions] == ["FRESH MARKET"]


def test_summary_filter_can_be_disabled(categories):
    result = build_parser_result(
        [_raw("Previous Balance", "1200.00")], categories, filter_summary_rows=False,
    )
    assert len(result.transactions) == 1


def test_only_summary_rows_yields_empty_result(categories):
    result = build_parser_result([_raw("Total"), _raw("New Balance")], categories)
    assert result.transactions == ()


def test_parser_facts_carried(categories):
    raw = _raw("FRESH MARKET", "42.10", "Groceries", original_text="01/04 FRESH MARKET 42.10")
    line = build_parser_result([raw], categories).transactions[0]
    assert line.date == raw.date
    assert line.amount == Decimal("42.10")
    assert line.currency == "USD"
    assert line.original_text == raw.original_text


def test_categories_required():
    with pytest.raises(ValueError):
        build_parser_result([_raw("X")], [])
