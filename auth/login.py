"""
auth/login.py -- Login orchestration: validate, resolve, verify, issue.

Single pass, no retries:

  validate request -> resolve identity -> verify password -> issue token

"No such account" and "wrong password" both raise the same
AuthenticationError, and both pay for a bcrypt comparison: an unknown
identity is checked against a dummy hash so response time does not reveal
whether the account exists.

Layer rule: no imports from api/ or apiary/.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from functools import lru_cache

from auth.models import Account
from auth.passwords import hash_password, verify_password
from auth.resolver import has_identity, resolve_account
from auth.store import AccountStore
from auth.tokens import issue_session_token
from core.errors import AuthenticationError, ValidationError

logger = logging.getLogger("smartbee.auth")


@dataclass
class LoginResult:
    token: str
    account: Account


@lru_cache(maxsize=1)
def _dummy_hash() -> str:
    # Computed on first use rather than at import; bcrypt at cost 12 is slow.
    return hash_password("smartbee_timing_dummy")


def authenticate(
    store: AccountStore,
    secret: str | None,
    identifier: str | None = None,
    given_name: str | None = None,
    family_name: str | None = None,
) -> LoginResult:
    """Log an account in and return its session token and password-free view.

    Raises:
        ValidationError:     secret missing, or neither an identifier nor a
                             full name pair supplied.
        AuthenticationError: no active account matched, or the secret is wrong.
    """
    if secret is None or secret == "":
        raise ValidationError("Password is required.", fields=["secret"])
    if not has_identity(identifier, given_name, family_name):
        raise ValidationError(
            "Provide an identifier, or both given_name and family_name.",
            fields=["identifier", "given_name", "family_name"],
        )

    account = resolve_account(store, identifier, given_name, family_name)
    if account is None:
        verify_password(secret, _dummy_hash())
        logger.warning("Login failed: no active account for the supplied identity")
        raise AuthenticationError()

    if not verify_password(secret, account.password_material):
        logger.warning("Login failed: bad password for account %s", account.id)
        raise AuthenticationError()

    token = issue_session_token(account.id)
    logger.info("Login succeeded for account %s", account.id)
    return LoginResult(token=token, account=replace(account, password_material=""))
