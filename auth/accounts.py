"""
auth/accounts.py -- Account lifecycle: create, update, soft-delete.

AccountManager validates every mutation before it reaches the store:

  create       required fields, id generation, id uniqueness (soft-deleted
               ids included), role existence, then hash + insert.
  update       active account must exist, required fields, role existence,
               optional password rotation.
  soft_delete  active account must exist and own no hives; sets activo=0.

Races: each of these is check-then-act. The two that matter are closed at
the store boundary rather than with locks:
  - duplicate id: usuario.id is the primary key, so the losing insert raises
    IntegrityError and is reported as ConflictError like the pre-check would.
  - hive created mid-delete: set_account_inactive(), and update_account()
    when it deactivates, repeat the ownership check inside their UPDATE, so
    the write is refused and the hives re-counted.

Secrets are hashed exactly as supplied (no trimming) so login, which
verifies the raw secret, always matches. Secrets over 72 bytes are rejected.

Soft-delete is terminal; there is no reactivation path.

Layer rule: no imports from api/ or apiary/.
"""

from __future__ import annotations

import logging
import secrets
import time
from dataclasses import replace

from sqlalchemy.exc import IntegrityError

from auth.models import Account, AccountInput
from auth.passwords import MAX_SECRET_BYTES, hash_password, secret_too_long
from auth.store import AccountStore
from core.config import get_settings
from core.errors import ConflictError, NotFoundError, ValidationError

logger = logging.getLogger("smartbee.auth")

_CREATE_REQUIRED = ("given_name", "family_name", "locality", "secret", "role")
_UPDATE_REQUIRED = ("given_name", "family_name", "locality", "role")


def _blank(value: str | None) -> bool:
    return value is None or value.strip() == ""


def _require(payload: AccountInput, fields: tuple[str, ...]) -> None:
    """Raise one ValidationError listing every missing or blank field."""
    missing = [name for name in fields if _blank(getattr(payload, name))]
    if missing:
        raise ValidationError(f"Required field(s) missing or blank: {', '.join(missing)}.", fields=missing)


def _check_secret(secret: str | None) -> None:
    if secret is not None and secret_too_long(secret):
        raise ValidationError(
            f"Password must be at most {MAX_SECRET_BYTES} bytes.", fields=["secret"], code="secret_too_long"
        )


def generate_account_id(prefix: str | None = None) -> str:
    """Return "{prefix}_{epoch_ms}_{6 hex chars}".

    Practically unique (millisecond clock plus 24 random bits), not a secret.
    """
    namespace = prefix or get_settings().account_id_prefix
    return f"{namespace}_{int(time.time() * 1000)}_{secrets.token_hex(3)}"


class AccountManager:
    """Validating front door for every account mutation."""

    def __init__(self, store: AccountStore) -> None:
        self.store = store

    def _check_role(self, role: str) -> None:
        if not self.store.role_exists(role):
            raise ValidationError(f"Role '{role}' does not exist.", fields=["role"], code="unknown_role")

    def _get_active(self, account_id: str) -> Account:
        account = self.store.find_account_by_id(account_id)
        if account is None:
            raise NotFoundError(f"Account '{account_id}' not found.")
        return account

    def _dependency_conflict(self, account_id: str, count: int) -> ConflictError:
        logger.warning("Refusing to deactivate account %s: owns %d hive(s)", account_id, count)
        return ConflictError(
            f"Account '{account_id}' owns {count} hive(s). Transfer or delete them first.",
            count=count,
            code="has_dependents",
        )

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    def create(self, payload: AccountInput) -> Account:
        """Validate, hash and insert a new account. Returns it without password material."""
        _require(payload, _CREATE_REQUIRED)
        _check_secret(payload.secret)

        account_id = payload.id.strip() if not _blank(payload.id) else generate_account_id()
        if self.store.account_id_exists(account_id):
            raise ConflictError(f"An account with id '{account_id}' already exists.", code="duplicate_id")

        role = payload.role.strip()
        self._check_role(role)

        account = Account(
            id=account_id,
            given_name=payload.given_name.strip(),
            family_name=payload.family_name.strip(),
            locality=payload.locality.strip(),
            role=role,
            password_material=hash_password(payload.secret),
            active=True if payload.active is None else bool(payload.active),
        )
        try:
            self.store.insert_account(account)
        except IntegrityError as exc:
            # Lost the race against a concurrent create with the same id.
            raise ConflictError(f"An account with id '{account_id}' already exists.", code="duplicate_id") from exc

        logger.info("Account created: %s (role=%s)", account_id, role)
        # Re-read for the joined role description; inactive accounts are not readable.
        created = self.store.find_account_by_id(account_id) if account.active else None
        return self._view(created or account)

    # ------------------------------------------------------------------
    # Update
    # ------------------------------------------------------------------

    def update(self, account_id: str, payload: AccountInput) -> Account:
        """Overwrite the mutable fields of an active account.

        A non-blank secret is re-hashed and replaces the stored material;
        otherwise the material is left byte-for-byte as it was. Passing
        active=False deactivates the account and is subject to the same
        hive-ownership guard as soft_delete().
        """
        current = self._get_active(account_id)
        _require(payload, _UPDATE_REQUIRED)
        _check_secret(payload.secret)

        role = payload.role.strip()
        self._check_role(role)

        active = True if payload.active is None else bool(payload.active)
        if not active:
            count = self.store.count_owned_resources_for(account_id)
            if count > 0:
                raise self._dependency_conflict(account_id, count)

        material = None if _blank(payload.secret) else hash_password(payload.secret)
        updated = self.store.update_account(
            account_id,
            given_name=payload.given_name.strip(),
            family_name=payload.family_name.strip(),
            locality=payload.locality.strip(),
            role=role,
            active=active,
            password_material=material,
        )
        if not updated:
            if not active:
                count = self.store.count_owned_resources_for(account_id)
                if count > 0:
                    raise self._dependency_conflict(account_id, count)
            raise NotFoundError(f"Account '{account_id}' not found.")

        logger.info("Account updated: %s (password_rotated=%s, active=%s)", account_id, material is not None, active)
        if not active:
            return replace(
                self._view(current),
                given_name=payload.given_name.strip(),
                family_name=payload.family_name.strip(),
                locality=payload.locality.strip(),
                role=role,
                role_name=current.role_name if role == current.role else None,
                active=False,
            )
        return self._view(self._get_active(account_id))

    # ------------------------------------------------------------------
    # Soft-delete
    # ------------------------------------------------------------------

    def soft_delete(self, account_id: str) -> Account:
        """Deactivate an account that owns no hives. Returns the account as it was."""
        account = self._get_active(account_id)

        count = self.store.count_owned_resources_for(account_id)
        if count > 0:
            raise self._dependency_conflict(account_id, count)

        if not self.store.set_account_inactive(account_id):
            count = self.store.count_owned_resources_for(account_id)
            if count > 0:
                raise self._dependency_conflict(account_id, count)
            raise NotFoundError(f"Account '{account_id}' not found.")

        logger.info("Account deactivated: %s", account_id)
        return self._view(account)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _view(account: Account) -> Account:
        """Copy of account with password material stripped."""
        return replace(account, password_material="")
