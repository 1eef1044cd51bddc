"""
api/routes/accounts.py -- Account management REST endpoints.

Routes:
  GET    /api/usuarios             -- list active accounts
  POST   /api/usuarios             -- create account (201)
  PUT    /api/usuarios/{id}        -- update account; secret optional
  DELETE /api/usuarios/{id}        -- soft-delete; refused while the account owns hives
  GET    /api/select/usuarios      -- {id, nombre, apellido} list for pickers

All validation lives in auth.accounts.AccountManager. Its errors propagate
to the ServiceError handler in api/main.py, which owns the status mapping:
ValidationError/ConflictError -> 400, NotFoundError -> 404, StorageError -> 500.

Handlers are sync: every one of them blocks on the store (and bcrypt on writes).
"""

from __future__ import annotations

from fastapi import APIRouter, Request

from api.models import AccountCreate, AccountOption, AccountSummary, AccountUpdate, DeleteResponse
from auth.accounts import AccountManager
from auth.store import AccountStore

router = APIRouter()


@router.get("/usuarios", response_model=list[AccountSummary])
def list_accounts(request: Request) -> list[AccountSummary]:
    account_store: AccountStore = request.app.state.account_store
    return [AccountSummary.from_account(a) for a in account_store.list_accounts()]


@router.post("/usuarios", response_model=AccountSummary, status_code=201)
def create_account(request: Request, body: AccountCreate) -> AccountSummary:
    """Create an account. The id is generated when not supplied."""
    manager: AccountManager = request.app.state.account_manager
    account = manager.create(body.to_input())
    return AccountSummary.from_account(account)


@router.put("/usuarios/{account_id}", response_model=AccountSummary)
def update_account(request: Request, account_id: str, body: AccountUpdate) -> AccountSummary:
    """Replace names, locality, role and active flag; rotate the password only if secret is given."""
    manager: AccountManager = request.app.state.account_manager
    account = manager.update(account_id, body.to_input())
    return AccountSummary.from_account(account)


@router.delete("/usuarios/{account_id}", response_model=DeleteResponse)
def delete_account(request: Request, account_id: str) -> DeleteResponse:
    manager: AccountManager = request.app.state.account_manager
    account = manager.soft_delete(account_id)
    return DeleteResponse(message=f'Account "{account.display_name}" deleted.', id=account.id)


@router.get("/select/usuarios", response_model=list[AccountOption])
def account_options(request: Request) -> list[AccountOption]:
    """Active accounts sorted by given name, for owner pickers in the UI."""
    account_store: AccountStore = request.app.state.account_store
    accounts = sorted(account_store.list_accounts(), key=lambda a: (a.given_name.lower(), a.family_name.lower()))
    return [AccountOption(id=a.id, nombre=a.given_name, apellido=a.family_name) for a in accounts]
