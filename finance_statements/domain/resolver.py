"""Effective-category resolution for parsed transactions."""

from __future__ import annotations

from uuid import UUID


def resolve_category(suggested: UUID, confirmed: UUID | None) -> UUID:
    """Return the user's confirmed category if set, else the parser's suggestion.

    Total over its inputs: a suggestion is mandatory on every attached
    transaction, so there is no failure mode.
    """
    if confirmed is not None:
        return confirmed
    return suggested
