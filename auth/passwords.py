"""
auth/passwords.py -- Password hashing and mixed-format verification.

Stored password material comes in two formats:

  BCRYPT     "$2a$", "$2b$" or "$2y$" prefix, followed by the cost and the
             salt+digest. Every password written by this service.
  PLAINTEXT  anything else. Rows created before hashing was introduced.

verify_password() detects the format from the prefix and dispatches to the
matching comparison. Plaintext is accepted at verification time only; nothing
in this service ever writes it.

Fallback policy: if the bcrypt comparison itself fails (malformed hash,
unsupported salt), the failure is logged and the material is compared as
plaintext instead. A corrupt hash therefore rejects the login rather than
turning it into a 500.

bcrypt only reads the first 72 bytes of a secret. Secrets are never truncated
here: hash_password() refuses longer ones (AccountManager reports that as a
validation error) and verify_password() rejects them against a bcrypt hash,
so "secret" and "secret + suffix" can never share a hash.
"""

from __future__ import annotations

import hmac
import logging
from enum import Enum

import bcrypt

logger = logging.getLogger("smartbee.auth")

BCRYPT_ROUNDS = 12
MAX_SECRET_BYTES = 72
_BCRYPT_PREFIXES = ("$2a$", "$2b$", "$2y$")


class PasswordFormat(str, Enum):
    BCRYPT = "bcrypt"
    PLAINTEXT = "plaintext"


def detect_format(stored: str) -> PasswordFormat:
    """Classify stored password material by its prefix."""
    if stored.startswith(_BCRYPT_PREFIXES):
        return PasswordFormat.BCRYPT
    return PasswordFormat.PLAINTEXT


def secret_too_long(secret: str) -> bool:
    """True if bcrypt would ignore part of secret."""
    return len(secret.encode("utf-8")) > MAX_SECRET_BYTES


def hash_password(plain: str) -> str:
    """Return a bcrypt hash of plain with the fixed work factor.

    Raises ValueError if plain is longer than MAX_SECRET_BYTES in UTF-8.
    """
    if secret_too_long(plain):
        raise ValueError(f"secret exceeds {MAX_SECRET_BYTES} bytes")
    return bcrypt.hashpw(plain.encode("utf-8"), bcrypt.gensalt(rounds=BCRYPT_ROUNDS)).decode("utf-8")


def _verify_bcrypt(supplied: str, stored: str) -> bool:
    if secret_too_long(supplied):
        return False
    return bcrypt.checkpw(supplied.encode("utf-8"), stored.encode("utf-8"))


def _verify_plaintext(supplied: str, stored: str) -> bool:
    return hmac.compare_digest(supplied.encode("utf-8"), stored.encode("utf-8"))


def verify_password(supplied: str, stored: str) -> bool:
    """Return True if supplied matches the stored material, in either format.

    Pure: no I/O besides a warning log line when the bcrypt path fails.
    """
    if detect_format(stored) is PasswordFormat.BCRYPT:
        try:
            return _verify_bcrypt(supplied, stored)
        except (ValueError, TypeError) as exc:
            logger.warning("bcrypt comparison failed (%s); falling back to plaintext comparison", exc)
    return _verify_plaintext(supplied, stored)
