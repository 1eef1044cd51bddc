"""
apiary/models.py -- Domain dataclasses for the apiary.

Pure data containers with zero logic, like auth/models.py.
"""

from dataclasses import dataclass
from typing import Optional


@dataclass
class Hive:
    """A beehive owned by one account.

    owner is the owning account's id. While any hive references an account,
    that account cannot be soft-deleted.

    id is None before the record is written to the database.
    """

    owner: str
    description: str = ""
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    id: Optional[int] = None
