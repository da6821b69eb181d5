"""Statement import ORM models."""

from finance_statements.models.outbox import StatementImportOutboxModel
from finance_statements.models.uploads import ParsedTransactionModel, StatementUploadModel

__all__ = ["ParsedTransactionModel", "StatementImportOutboxModel", "StatementUploadModel"]
