"""
finance_statements.services -- Orchestration, persistence adapters and queries.
"""

from finance_statements.services.import_coordinator import ImportCoordinator, retry_on_conflict
from finance_statements.services.parsing import RawParsedLine, build_parser_result
from finance_statements.services.ports import EventPublisher, UploadStore
from finance_statements.services.publishers import InMemoryEventPublisher, SqlOutboxPublisher
from finance_statements.services.queries import (
    ParsedTransactionView,
    StatementUploadDetail,
    StatementUploadSummary,
    get_upload_detail,
    list_user_uploads,
    to_detail,
    to_summary,
)
from finance_statements.services.upload_store import InMemoryUploadStore, SqlUploadStore

__all__ = [
    "EventPublisher",
    "ImportCoordinator",
    "InMemoryEventPublisher",
    "InMemoryUploadStore",
    "ParsedTransactionView",
    "RawParsedLine",
    "SqlOutboxPublisher",
    "SqlUploadStore",
    "StatementUploadDetail",
    "StatementUploadSummary",
    "UploadStore",
    "build_parser_result",
    "get_upload_detail",
    "list_user_uploads",
    "retry_on_conflict",
    "to_detail",
    "to_summary",
]
