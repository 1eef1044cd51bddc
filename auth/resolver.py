"""
auth/resolver.py -- Map partial login credentials to at most one active account.

Strategies, tried in order:
  1. identifier -- exact id match.
  2. name pair  -- given + family name, trimmed and case-insensitive.

Strategy 1 owns the request whenever an identifier is supplied: if the id
matches nothing, the result is None even when the names would have matched.
Only a request without an identifier reaches strategy 2.

Callers validate that at least one strategy's inputs are present; the
resolver itself just returns None when neither is.
"""

from __future__ import annotations

from auth.models import Account
from auth.store import AccountStore


def _present(value: str | None) -> bool:
    return value is not None and value.strip() != ""


def has_identity(identifier: str | None, given_name: str | None, family_name: str | None) -> bool:
    """Return True if the inputs are enough for at least one strategy."""
    return _present(identifier) or (_present(given_name) and _present(family_name))


def resolve_account(
    store: AccountStore,
    identifier: str | None = None,
    given_name: str | None = None,
    family_name: str | None = None,
) -> Account | None:
    """Return the active account these credentials name, or None. Read-only."""
    if _present(identifier):
        return store.find_account_by_id(identifier.strip())
    if _present(given_name) and _present(family_name):
        return store.find_account_by_name(given_name, family_name)
    return None
