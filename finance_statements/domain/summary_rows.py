"""
Statement summary-row detection.

Parsers working from statement text regularly report balance, total and
fee-summary lines as if they were purchases.  ``is_summary_row`` flags them
so they never reach review.  Matches on the description and, when present,
on the raw source text.
"""

from __future__ import annotations

import re

_SUMMARY_PATTERNS: tuple[re.Pattern[str], ...] = tuple(
    re.compile(p, re.IGNORECASE)
    for p in (
        r"^\s*(sub)?total\b",
        r"\b(previous|new|closing|opening|beginning|ending|statement)\s+balance\b",
        r"\bminimum\s+(payment|amount)\s+due\b",
        r"\bpayment\s+due\b",
        r"\bfinance\s+charges?\b",
        r"\binterest\s+charged?\b",
        r"\blate\s+fee\b",
        r"\bannual\s+fee\b",
        r"\bcredit\s+limit\b",
        r"\bavailable\s+credit\b",
        r"\byear[-\s]to[-\s]date\b",
        r"\bytd\b",
        r"\bpayment\s+received\b",
        r"\bautopay\b",
    )
)


def _matches(text: str | None) -> bool:
    if not text:
        return False
    return any(p.search(text) for p in _SUMMARY_PATTERNS)


def is_summary_row(description: str, original_text: str | None = None) -> bool:
    """True if the line is a statement total/balance/fee summary, not a purchase."""
    return _matches(description) or _matches(original_text)
