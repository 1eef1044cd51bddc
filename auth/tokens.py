"""
auth/tokens.py -- Session token issuer.

Format: "{prefix}_{account_id}_{issued_at_ms}", e.g.
"smartbee_USR_1718000000000_a1b2c3_1718000123456".

The token is an opaque handle kept for compatibility with existing clients.
It is NOT signed, carries no expiry and is not persisted, so nothing can
revoke it. Two tokens for the same account issued within the same
millisecond are identical.

Layer rule: no imports from api/ or apiary/. Import from core/ is allowed.
"""

from __future__ import annotations

import re
import time
from collections.abc import Callable

from core.config import get_settings

TOKEN_PATTERN = re.compile(r"^(?P<prefix>[^_]+)_(?P<account_id>.+)_(?P<issued_at>\d+)$")


def issue_session_token(
    account_id: str,
    prefix: str | None = None,
    clock: Callable[[], float] = time.time,
) -> str:
    """Build a session token for account_id.

    Args:
        account_id: Resolved account id. Embedded verbatim.
        prefix:     Token namespace. Defaults to Settings.token_prefix.
        clock:      Wall-clock source in seconds; tests pass a fixed one.
    """
    namespace = prefix or get_settings().token_prefix
    issued_at = int(clock() * 1000)
    return f"{namespace}_{account_id}_{issued_at}"


def parse_session_token(token: str) -> tuple[str, str, int] | None:
    """Split a token into (prefix, account_id, issued_at_ms), or None if malformed.

    account_id may itself contain underscores; the prefix never does and the
    timestamp is always the last segment, so both ends anchor the split.
    """
    match = TOKEN_PATTERN.match(token)
    if match is None:
        return None
    return match["prefix"], match["account_id"], int(match["issued_at"])
