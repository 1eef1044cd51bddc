"""
auth/models.py -- Domain dataclasses for accounts and roles.

Pattern: Data class (pure data container, zero logic). Stores map rows into
these; the lifecycle manager and routes do the work.

Layer rule: no imports from api/ or apiary/.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class Role:
    """A role code (primary key) and its human-readable description."""

    code: str
    description: str


@dataclass
class Account:
    """A login-capable identity.

    id doubles as the login identifier and is immutable once written.

    password_material is either a bcrypt hash ("$2b$12$...") or, on rows that
    predate hashing, the plaintext password. New writes are always hashed.
    It must never leave the service -- API models do not carry it.

    active=False means soft-deleted: excluded from reads and from login.
    role_name is the joined role description, filled in by the store on reads.
    """

    id: str
    given_name: str
    family_name: str
    locality: str
    role: str
    password_material: str = ""
    active: bool = True
    role_name: str | None = None

    @property
    def display_name(self) -> str:
        return f"{self.given_name} {self.family_name}"


@dataclass
class AccountInput:
    """Caller-supplied fields for create and update.

    Every field is optional here; which ones are required depends on the
    operation and is checked by auth.accounts.AccountManager, so a missing
    field becomes a ValidationError naming it rather than a type error.
    """

    id: str | None = None
    given_name: str | None = None
    family_name: str | None = None
    locality: str | None = None
    secret: str | None = None
    role: str | None = None
    active: bool | None = None
