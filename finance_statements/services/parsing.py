"""
Parser output normalization.

PDF parsers report each line with a suggested category *name* and tend to
pick up statement summary rows (totals, balances, fees) as if they were
spending.  ``build_parser_result`` turns that raw output into the
``ParserResult`` the upload aggregate accepts: summary rows dropped,
category names resolved to ids.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from finance_statements.domain.categories import CategoryInfo, match_category_id
from finance_statements.domain.summary_rows import is_summary_row
from finance_statements.domain.types import ParsedLine, ParserResult
from finance_statements.logging_config import get_logger

logger = get_logger("services.parsing")


@dataclass(frozen=True)
class RawParsedLine:
    """One line as emitted by a statement parser."""

    date: date
    description: str
    amount: Decimal
    currency: str
    suggested_category_name: str | None = None
    original_text: str | None = None


def build_parser_result(
    raw_lines: Iterable[RawParsedLine],
    categories: Sequence[CategoryInfo],
    filter_summary_rows: bool = True,
) -> ParserResult:
    """
    Normalize raw parser output.

    Unmatched category names fall back to the first category in
    ``categories``, so every line leaves here with a suggestion.

    Raises:
        ValueError: ``categories`` is empty.
    """
    if not categories:
        raise ValueError("At least one category is required to resolve suggestions")
    fallback = categories[0].category_id

    lines: list[ParsedLine] = []
    skipped = 0
    unmatched = 0
    for raw in raw_lines:
        if filter_summary_rows and is_summary_row(raw.description, raw.original_text):
            skipped += 1
            continue
        category_id = match_category_id(raw.suggested_category_name, categories)
        if category_id is None:
            unmatched += 1
            category_id = fallback
        lines.append(
            ParsedLine(
                date=raw.date,
                description=raw.description,
                amount=raw.amount,
                currency=raw.currency,
                suggested_category_id=category_id,
                original_text=raw.original_text,
            )
        )

    logger.debug(
        "parser_output_normalized",
        extra={
            "kept": len(lines),
            "summary_rows_skipped": skipped,
            "categories_defaulted": unmatched,
        },
    )
    return ParserResult(transactions=tuple(lines))
