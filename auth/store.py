"""
auth/store.py -- SQLAlchemy Core persistence layer for accounts and roles.

Pattern: Repository + Data Mapper. AccountStore is the repository;
_row_to_account / _row_to_role are the mappers. The lifecycle manager,
resolver and routes never touch SQL directly.

Contract: every method is a single round trip on a scoped connection from
the shared engine. Not-found is an empty result (None / False / 0), never an
exception. Database failures surface as core.errors.StorageError, except
IntegrityError on insert, which callers translate into a conflict.

Read methods only see active accounts unless their name says otherwise
(account_id_exists covers soft-deleted rows too, because ids are never reused).

Security: all queries use bound parameters. No f-strings in SQL.

Layer rule: no imports from api/ or apiary/.
"""

from __future__ import annotations

from sqlalchemy import and_, func, literal_column, select
from sqlalchemy.engine import Engine

from auth.models import Account, Role
from core.database import accounts, hives, roles, scoped_connection

# Columns for every account read: the row plus the joined role description.
_ACCOUNT_COLUMNS = (
    accounts.c.id,
    accounts.c.clave,
    accounts.c.nombre,
    accounts.c.apellido,
    accounts.c.comuna,
    accounts.c.rol,
    accounts.c.activo,
    roles.c.descripcion.label("rol_nombre"),
)


def _account_select():
    return select(*_ACCOUNT_COLUMNS).select_from(accounts.outerjoin(roles, accounts.c.rol == roles.c.rol))


def _owns_hive(account_id: str):
    return select(hives.c.id).where(hives.c.dueno == account_id).exists()


class AccountStore:
    """Repository for Account and Role records.

    Usage:
        engine = create_db_engine(settings.database_url)
        store = AccountStore(engine)
        store.insert_account(Account(id="USR_1", ..., password_material=hash_password("s3cret")))
        account = store.find_account_by_id("USR_1")

    The engine is owned by the caller (the API lifespan or the CLI); the
    store never disposes it.
    """

    def __init__(self, engine: Engine) -> None:
        self.engine = engine
        # casefold() is registered on SQLite connections by create_db_engine();
        # other backends have a Unicode-aware lower().
        self._sqlite = engine.dialect.name == "sqlite"

    def _fold(self, column):
        fold = func.casefold if self._sqlite else func.lower
        return fold(func.trim(column))

    # ------------------------------------------------------------------
    # Account queries
    # ------------------------------------------------------------------

    def find_account_by_id(self, account_id: str) -> Account | None:
        """Return the active account with this exact id, or None."""
        with scoped_connection(self.engine, "accounts.find_by_id") as conn:
            row = conn.execute(
                _account_select().where((accounts.c.id == account_id) & (accounts.c.activo == 1))
            ).fetchone()
        return _row_to_account(row) if row is not None else None

    def find_account_by_name(self, given_name: str, family_name: str) -> Account | None:
        """Return the first active account whose names match, ignoring case and outer whitespace.

        Names are not unique. On SQLite the first match is the earliest
        inserted row (rowid order).
        """
        given = given_name.strip().casefold()
        family = family_name.strip().casefold()
        stmt = _account_select().where(
            (self._fold(accounts.c.nombre) == given)
            & (self._fold(accounts.c.apellido) == family)
            & (accounts.c.activo == 1)
        )
        if self._sqlite:
            stmt = stmt.order_by(literal_column("usuario.rowid"))
        with scoped_connection(self.engine, "accounts.find_by_name") as conn:
            row = conn.execute(stmt.limit(1)).fetchone()
        return _row_to_account(row) if row is not None else None

    def account_id_exists(self, account_id: str) -> bool:
        """Return True if any account, active or soft-deleted, uses this id."""
        with scoped_connection(self.engine, "accounts.id_exists") as conn:
            row = conn.execute(select(accounts.c.id).where(accounts.c.id == account_id)).fetchone()
        return row is not None

    def list_accounts(self) -> list[Account]:
        """Return all active accounts ordered by id."""
        with scoped_connection(self.engine, "accounts.list") as conn:
            rows = conn.execute(_account_select().where(accounts.c.activo == 1).order_by(accounts.c.id)).fetchall()
        return [_row_to_account(r) for r in rows]

    # ------------------------------------------------------------------
    # Account writes
    # ------------------------------------------------------------------

    def insert_account(self, account: Account) -> None:
        """Insert a new account row.

        Raises sqlalchemy.exc.IntegrityError if the id is already taken. That
        is how a concurrent create with the same id loses the race.
        """
        with scoped_connection(self.engine, "accounts.insert") as conn:
            conn.execute(
                accounts.insert().values(
                    id=account.id,
                    clave=account.password_material,
                    nombre=account.given_name,
                    apellido=account.family_name,
                    comuna=account.locality,
                    rol=account.role,
                    activo=1 if account.active else 0,
                )
            )
            conn.commit()

    def update_account(
        self,
        account_id: str,
        *,
        given_name: str,
        family_name: str,
        locality: str,
        role: str,
        active: bool,
        password_material: str | None = None,
    ) -> bool:
        """Overwrite the mutable fields of an active account.

        password_material=None leaves the stored material untouched. With
        active=False the update also requires that the account owns no hive,
        checked in the same statement as in set_account_inactive().
        Returns True if a row was updated, False if no active account matched
        or the hive check refused the deactivation.
        """
        values = {
            "nombre": given_name,
            "apellido": family_name,
            "comuna": locality,
            "rol": role,
            "activo": 1 if active else 0,
        }
        if password_material is not None:
            values["clave"] = password_material
        condition = and_(accounts.c.id == account_id, accounts.c.activo == 1)
        if not active:
            condition = and_(condition, ~_owns_hive(account_id))
        with scoped_connection(self.engine, "accounts.update") as conn:
            result = conn.execute(accounts.update().where(condition).values(**values))
            conn.commit()
        return result.rowcount > 0

    def set_account_inactive(self, account_id: str) -> bool:
        """Soft-delete an active account that owns no hives.

        The ownership check is part of the UPDATE's WHERE clause, so a hive
        created between the caller's count and this call still blocks the
        delete. Returns False if the account is gone, already inactive, or
        now owns a hive; callers re-count to tell these apart.
        """
        with scoped_connection(self.engine, "accounts.set_inactive") as conn:
            result = conn.execute(
                accounts.update()
                .where(and_(accounts.c.id == account_id, accounts.c.activo == 1, ~_owns_hive(account_id)))
                .values(activo=0)
            )
            conn.commit()
        return result.rowcount > 0

    def count_owned_resources_for(self, owner_id: str) -> int:
        """Return how many hives list owner_id as their owner."""
        with scoped_connection(self.engine, "accounts.count_owned") as conn:
            count = conn.execute(select(func.count()).select_from(hives).where(hives.c.dueno == owner_id)).scalar()
        return count or 0

    # ------------------------------------------------------------------
    # Roles
    # ------------------------------------------------------------------

    def role_exists(self, code: str) -> bool:
        with scoped_connection(self.engine, "roles.exists") as conn:
            row = conn.execute(select(roles.c.rol).where(roles.c.rol == code)).fetchone()
        return row is not None

    def list_roles(self) -> list[Role]:
        """Return all roles ordered by code."""
        with scoped_connection(self.engine, "roles.list") as conn:
            rows = conn.execute(select(roles).order_by(roles.c.rol)).fetchall()
        return [_row_to_role(r) for r in rows]

    def create_role(self, role: Role) -> None:
        """Insert a role. Raises IntegrityError if the code exists."""
        with scoped_connection(self.engine, "roles.insert") as conn:
            conn.execute(roles.insert().values(rol=role.code, descripcion=role.description))
            conn.commit()


# ---------------------------------------------------------------------------
# Row mappers (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_account(row) -> Account:
    return Account(
        id=row.id,
        given_name=row.nombre,
        family_name=row.apellido,
        locality=row.comuna,
        role=row.rol,
        password_material=row.clave,
        active=bool(row.activo),
        role_name=row.rol_nombre,
    )


def _row_to_role(row) -> Role:
    return Role(code=row.rol, description=row.descripcion)
