"""Database base classes and engine management."""

from finance_statements.db.base import (
    Base,
    ExactDecimal,
    TimestampedBase,
    UTCDateTime,
    UUIDString,
)
from finance_statements.db.engine import (
    create_tables,
    drop_tables,
    get_engine,
    get_session_factory,
    init_engine_from_url,
    reset_engine,
)

__all__ = [
    "Base",
    "ExactDecimal",
    "TimestampedBase",
    "UTCDateTime",
    "UUIDString",
    "create_tables",
    "drop_tables",
    "get_engine",
    "get_session_factory",
    "init_engine_from_url",
    "reset_engine",
]
