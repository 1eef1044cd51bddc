"""
api/routes/roles.py -- Read-only role listing.

Routes:
  GET /api/roles  -- all roles, ordered by code
"""

from __future__ import annotations

from fastapi import APIRouter, Request

from api.models import RoleResponse
from auth.store import AccountStore

router = APIRouter()


@router.get("/roles", response_model=list[RoleResponse])
def list_roles(request: Request) -> list[RoleResponse]:
    account_store: AccountStore = request.app.state.account_store
    return [RoleResponse.from_role(r) for r in account_store.list_roles()]
