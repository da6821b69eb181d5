"""
finance_statements.domain -- Pure types, the upload aggregate and matching rules.

ZERO I/O.
"""

from finance_statements.domain.categories import CategoryInfo, match_category_id
from finance_statements.domain.resolver import resolve_category
from finance_statements.domain.summary_rows import is_summary_row
from finance_statements.domain.types import (
    EDITABLE_IMPORT_STATUSES,
    IMPORT_TRANSITIONS,
    TERMINAL_IMPORT_STATUSES,
    CategoryUpdate,
    ConfirmedTransactionData,
    ImportStatus,
    ImportTrigger,
    ParsedLine,
    ParsedTransaction,
    ParseFailure,
    ParserOutcome,
    ParserResult,
    StatementImportConfirmedEvent,
)
from finance_statements.domain.upload import NO_TRANSACTIONS_MESSAGE, StatementUpload

__all__ = [
    "EDITABLE_IMPORT_STATUSES",
    "IMPORT_TRANSITIONS",
    "NO_TRANSACTIONS_MESSAGE",
    "TERMINAL_IMPORT_STATUSES",
    "CategoryInfo",
    "CategoryUpdate",
    "ConfirmedTransactionData",
    "ImportStatus",
    "ImportTrigger",
    "ParsedLine",
    "ParsedTransaction",
    "ParseFailure",
    "ParserOutcome",
    "ParserResult",
    "StatementImportConfirmedEvent",
    "StatementUpload",
    "is_summary_row",
    "match_category_id",
    "resolve_category",
]
