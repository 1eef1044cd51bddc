"""
apiary/store.py -- SQLAlchemy-backed persistence for hives.

Pattern: Repository + Data Mapper, same as auth/store.py. HiveStore shares
the process-wide engine; it never creates or disposes one.

Usage:
    store = HiveStore(engine)
    hive_id = store.create_hive(Hive(owner="USR_1", description="Apiario norte"))
    hives = store.list_hives(owner="USR_1")
"""

from typing import Optional

from sqlalchemy import select
from sqlalchemy.engine import Engine

from apiary.models import Hive
from core.database import hives, scoped_connection


class HiveStore:
    """Repository for Hive records."""

    def __init__(self, engine: Engine) -> None:
        self.engine = engine

    def create_hive(self, hive: Hive) -> int:
        """Insert a hive and return its assigned id."""
        with scoped_connection(self.engine, "hives.insert") as conn:
            result = conn.execute(
                hives.insert().values(
                    descripcion=hive.description,
                    latitud=hive.latitude,
                    longitud=hive.longitude,
                    dueno=hive.owner,
                )
            )
            conn.commit()
            return result.inserted_primary_key[0]

    def get_hive(self, hive_id: int) -> Optional[Hive]:
        with scoped_connection(self.engine, "hives.get") as conn:
            row = conn.execute(select(hives).where(hives.c.id == hive_id)).fetchone()
        return _row_to_hive(row) if row is not None else None

    def list_hives(self, owner: Optional[str] = None) -> list[Hive]:
        """Return hives ordered by id, optionally only those owned by owner."""
        stmt = select(hives).order_by(hives.c.id)
        if owner is not None:
            stmt = stmt.where(hives.c.dueno == owner)
        with scoped_connection(self.engine, "hives.list") as conn:
            rows = conn.execute(stmt).fetchall()
        return [_row_to_hive(r) for r in rows]


def _row_to_hive(row) -> Hive:
    return Hive(
        id=row.id,
        owner=row.dueno,
        description=row.descripcion,
        latitude=row.latitud,
        longitude=row.longitud,
    )
