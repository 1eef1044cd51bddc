"""
api/routes/auth.py -- Login endpoint.

Routes:
  POST /api/auth/login  -- identifier or name-pair + secret; returns a session token

Security:
  Rate-limited per client IP (Settings.login_rate_limit, default 10/minute).
  auth.login.authenticate() gives the same 401 for unknown identity and wrong
  password, with equal bcrypt cost on both paths -- use it, never inline
  resolve + verify here.
  Cache-Control: no-store on every login response, success or failure.
"""

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from api.errors import render_service_error
from api.limiter import limiter
from api.models import AccountSummary, LoginRequest, LoginResponse
from auth.login import authenticate
from auth.store import AccountStore
from core.config import get_settings
from core.errors import ServiceError

router = APIRouter()


@router.post("/auth/login", response_model=LoginResponse)
@limiter.limit(get_settings().login_rate_limit)
def login(request: Request, body: LoginRequest) -> JSONResponse:
    """Authenticate and return {token, usuario}.

    Sync handler: bcrypt and the store calls block, so FastAPI runs this on
    its thread pool instead of the event loop.
    """
    account_store: AccountStore = request.app.state.account_store
    try:
        result = authenticate(
            account_store,
            body.secret,
            identifier=body.identifier,
            given_name=body.given_name,
            family_name=body.family_name,
        )
    except ServiceError as exc:
        resp = render_service_error(exc)
        resp.headers["Cache-Control"] = "no-store"
        return resp

    resp = JSONResponse(
        status_code=200,
        content=LoginResponse(
            token=result.token,
            usuario=AccountSummary.from_account(result.account),
        ).model_dump(),
    )
    resp.headers["Cache-Control"] = "no-store"
    return resp
