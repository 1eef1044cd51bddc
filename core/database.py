"""
core/database.py -- Schema, engine factory and scoped connections for SmartBee.

Uses SQLAlchemy Core (not ORM) so the domain dataclasses in auth/models.py and
apiary/models.py remain the authoritative domain representation. Swapping
SQLite for MySQL or PostgreSQL is a connection string change, not a rewrite.

One Engine per process. It owns the connection pool: created in the API
lifespan (or by the CLI), injected into every store, disposed at shutdown.
Stores never create engines of their own.

Table and column names keep the legacy schema (usuario, rol, colmena) so the
service can run against the existing production database unchanged.

Security: all queries use bound parameters. No f-strings in SQL.

Layer rule: core/ is the kernel. No imports from api/, auth/ or apiary/.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy import (
    Column,
    Float,
    ForeignKey,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    create_engine,
    event,
    select,
    text,
)
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from core.errors import StorageError

logger = logging.getLogger("smartbee.store")

# Seeded on every schema init; existing rows are left alone.
DEFAULT_ROLES: dict[str, str] = {
    "ADM": "Administrador",
    "API": "Apicultor",
}

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

metadata = MetaData()

roles = Table(
    "rol",
    metadata,
    Column("rol", String(10), primary_key=True),
    Column("descripcion", String(100), nullable=False),
)

accounts = Table(
    "usuario",
    metadata,
    # Primary key doubles as the login identifier; never reused, even after soft-delete.
    Column("id", String(64), primary_key=True),
    Column("clave", Text, nullable=False),  # bcrypt hash, or legacy plaintext on old rows
    Column("nombre", String(100), nullable=False),
    Column("apellido", String(100), nullable=False),
    Column("comuna", String(100), nullable=False),
    # Role existence is checked in code first so the error can name the bad code.
    Column("rol", String(10), ForeignKey("rol.rol"), nullable=False),
    Column("activo", Integer, nullable=False, server_default="1"),
)

hives = Table(
    "colmena",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("descripcion", String(255), nullable=False, server_default=""),
    Column("latitud", Float),
    Column("longitud", Float),
    Column("dueno", String(64), ForeignKey("usuario.id"), nullable=False, index=True),
)


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode for concurrent read safety.

    Set per-connection because SQLite PRAGMAs are not inherited by new
    connections from the pool.
    """
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


def _casefold(value):
    return value.casefold() if isinstance(value, str) else value


def _register_casefold(dbapi_conn, connection_record) -> None:
    """Expose str.casefold() as SQL casefold(). SQLite's own lower() only folds ASCII."""
    dbapi_conn.create_function("casefold", 1, _casefold, deterministic=True)


def create_db_engine(db_url: str, pool_size: int = 10, pool_timeout: int = 30) -> Engine:
    """Build the process-wide Engine (and its connection pool) for db_url.

    SQLite gets check_same_thread=False because sync route handlers run on a
    thread pool and share pooled connections. Other backends get an explicit
    bounded pool; pool_timeout is the only wait limit any store operation has.
    """
    if db_url.startswith("sqlite"):
        engine = create_engine(db_url, connect_args={"check_same_thread": False})
        event.listen(engine, "connect", _set_wal_mode)
        event.listen(engine, "connect", _register_casefold)
        return engine
    return create_engine(db_url, pool_size=pool_size, pool_timeout=pool_timeout, pool_pre_ping=True)


def init_schema(engine: Engine) -> None:
    """Create missing tables and seed the default roles. Idempotent."""
    metadata.create_all(engine)
    with engine.begin() as conn:
        existing = set(conn.execute(select(roles.c.rol)).scalars())
        missing = [{"rol": code, "descripcion": desc} for code, desc in DEFAULT_ROLES.items() if code not in existing]
        if missing:
            conn.execute(roles.insert(), missing)
            logger.info("Seeded roles: %s", ", ".join(r["rol"] for r in missing))


# ---------------------------------------------------------------------------
# Scoped connections
# ---------------------------------------------------------------------------


@contextmanager
def scoped_connection(engine: Engine, origin: str) -> Iterator[Connection]:
    """Check out a pooled connection for one store operation.

    The connection is returned to the pool on every exit path. Driver and
    SQLAlchemy failures are logged with their origin and re-raised as
    StorageError. IntegrityError passes through untouched: it is the signal
    the lifecycle manager turns into a ConflictError.
    """
    try:
        with engine.connect() as conn:
            yield conn
    except IntegrityError:
        raise
    except SQLAlchemyError as exc:
        detail = str(getattr(exc, "orig", None) or exc)
        logger.error("Database error: message=%r code=%s origin=%s", detail, exc.code, origin)
        raise StorageError(detail, origin=origin, db_code=exc.code) from exc


def check_connection(engine: Engine) -> dict[str, str]:
    """Run a trivial query and return its result. Raises StorageError on failure."""
    with scoped_connection(engine, "database.check_connection") as conn:
        row = conn.execute(text("SELECT 1 AS test, CURRENT_TIMESTAMP AS time")).fetchone()
    return {"test": str(row.test), "time": str(row.time)}
