"""
Statement import settings (``finance_statements.settings``).

Responsibility
--------------
Loads ``ImportSettings`` from YAML.  ``get_settings()`` is the single
runtime entry point; services receive the resulting frozen dataclass by
constructor injection and never read files or the environment themselves.

Resolution order
----------------
1. Packaged ``defaults.yaml``.
2. The YAML file named by ``FINANCE_STATEMENTS_CONFIG`` (overrides keys).
3. ``FINANCE_STATEMENTS_DATABASE_URL`` (overrides ``database_url``).

Failure modes
-------------
* Missing override file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Unknown keys or wrongly typed values  -> ``ValueError``.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any

import yaml

from finance_statements.logging_config import get_logger

logger = get_logger("settings")

CONFIG_ENV_VAR = "FINANCE_STATEMENTS_CONFIG"
DATABASE_URL_ENV_VAR = "FINANCE_STATEMENTS_DATABASE_URL"

_DEFAULTS_PATH = Path(__file__).parent / "defaults.yaml"


@dataclass(frozen=True)
class ImportSettings:
    """Runtime configuration for statement import."""

    database_url: str = "sqlite:///statement_import.db"
    echo_sql: bool = False
    log_level: str = "INFO"
    accepted_file_extensions: tuple[str, ...] = (".pdf",)
    no_transactions_message: str = "no transactions found"
    parse_failed_message: str = "parser failed"
    filter_summary_rows: bool = True
    conflict_retry_limit: int = 3

    def __post_init__(self) -> None:
        if not self.accepted_file_extensions:
            raise ValueError("accepted_file_extensions must not be empty")
        for ext in self.accepted_file_extensions:
            if not ext.startswith("."):
                raise ValueError(f"File extension must start with '.': {ext!r}")
        if self.conflict_retry_limit < 1:
            raise ValueError("conflict_retry_limit must be at least 1")
        if not self.no_transactions_message.strip():
            raise ValueError("no_transactions_message must not be blank")
        if not self.parse_failed_message.strip():
            raise ValueError("parse_failed_message must not be blank")


def load_yaml_file(path: Path) -> dict[str, Any]:
    """Load a YAML mapping; an empty file yields an empty dict."""
    with open(path) as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"{path}: expected a mapping at the top level")
    return data


def parse_settings(data: dict[str, Any], base: ImportSettings | None = None) -> ImportSettings:
    """Overlay ``data`` onto ``base`` (or the dataclass defaults)."""
    known = {f.name for f in fields(ImportSettings)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ValueError(f"Unknown statement import settings: {', '.join(unknown)}")

    values: dict[str, Any] = {}
    if base is not None:
        values = {name: getattr(base, name) for name in known}
    for key, raw in data.items():
        if key == "accepted_file_extensions":
            if isinstance(raw, str) or not isinstance(raw, (list, tuple)):
                raise ValueError("accepted_file_extensions must be a list")
            values[key] = tuple(str(ext).lower() for ext in raw)
        elif key in ("echo_sql", "filter_summary_rows"):
            if not isinstance(raw, bool):
                raise ValueError(f"{key} must be a boolean")
            values[key] = raw
        elif key == "conflict_retry_limit":
            if isinstance(raw, bool) or not isinstance(raw, int):
                raise ValueError("conflict_retry_limit must be an integer")
            values[key] = raw
        else:
            values[key] = str(raw)
    return ImportSettings(**values)


def load_settings(path: Path | None = None) -> ImportSettings:
    """Packaged defaults, optionally overlaid with the YAML file at ``path``."""
    settings = parse_settings(load_yaml_file(_DEFAULTS_PATH))
    if path is not None:
        settings = parse_settings(load_yaml_file(path), base=settings)
    return settings


def get_settings() -> ImportSettings:
    """Resolve settings from defaults, the config file env var and the DB URL env var."""
    override = os.environ.get(CONFIG_ENV_VAR)
    settings = load_settings(Path(override) if override else None)

    database_url = os.environ.get(DATABASE_URL_ENV_VAR)
    if database_url:
        settings = parse_settings({"database_url": database_url}, base=settings)

    logger.info(
        "settings_loaded",
        extra={
            "config_file": override,
            "accepted_file_extensions": list(settings.accepted_file_extensions),
            "filter_summary_rows": settings.filter_summary_rows,
        },
    )
    return settings
