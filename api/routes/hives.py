"""
api/routes/hives.py -- Hive records.

Routes:
  GET  /api/colmenas         -- list hives; ?dueno=<account id> filters by owner
  POST /api/colmenas         -- create hive (201); owner must be an active account

Hives are what keep an account from being soft-deleted, so the owner check
here is the other half of AccountManager.soft_delete()'s dependency guard.
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Request

from api.models import HiveCreate, HiveResponse
from apiary.models import Hive
from apiary.store import HiveStore
from auth.store import AccountStore
from core.errors import ValidationError

router = APIRouter()


@router.get("/colmenas", response_model=list[HiveResponse])
def list_hives(request: Request, dueno: Optional[str] = None) -> list[HiveResponse]:
    hive_store: HiveStore = request.app.state.hive_store
    return [HiveResponse.from_hive(h) for h in hive_store.list_hives(owner=dueno)]


@router.post("/colmenas", response_model=HiveResponse, status_code=201)
def create_hive(request: Request, body: HiveCreate) -> HiveResponse:
    account_store: AccountStore = request.app.state.account_store
    hive_store: HiveStore = request.app.state.hive_store

    if not body.owner:
        raise ValidationError("Required field(s) missing or blank: owner.", fields=["owner"])
    if account_store.find_account_by_id(body.owner) is None:
        raise ValidationError(f"Owner '{body.owner}' is not an active account.", fields=["owner"], code="unknown_owner")

    hive = Hive(
        owner=body.owner,
        description=body.description,
        latitude=body.latitude,
        longitude=body.longitude,
    )
    hive.id = hive_store.create_hive(hive)
    return HiveResponse.from_hive(hive)
