"""
finance_statements -- Statement import reconciliation.

Tracks an uploaded bank/card statement from upload through parsing and
user review to confirmation, and emits exactly one confirmation event per
approved import for ledger posting, budgets and analytics.

Architecture:
    domain/    pure types and the StatementUpload aggregate (ZERO I/O)
    db/        SQLAlchemy base and engine
    models/    ORM models
    services/  persistence port, publishers, ImportCoordinator, queries
"""

__version__ = "0.1.0"
