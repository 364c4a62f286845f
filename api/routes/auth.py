"""
api/routes/auth.py -- Directory login endpoint.

Routes:
  POST /login/  -- form fields zid, password; returns {"token": ...}

Security:
  POST /login/ is rate-limited per client IP (LOGIN_RATE_LIMIT, default
  10/minute) because every attempt costs a directory bind.
  Cache-Control: no-store on the token response.
  The password is never logged; only a prefix of the subject hash is.
"""

from __future__ import annotations

from fastapi import APIRouter, Form, Request
from fastapi.responses import JSONResponse

from api.limiter import limiter
from api.models import LoginResponse
from auth.login import LoginService
from core.config import get_settings

router = APIRouter()


def _login_rate_limit() -> str:
    return get_settings().login_rate_limit


@router.post("/login/", response_model=LoginResponse)
@limiter.limit(_login_rate_limit)
def login(
    request: Request,
    zid: str = Form(default=""),
    password: str = Form(default=""),
) -> JSONResponse:
    """Authenticate against the directory and return a fresh session token.

    A wrong zID and a wrong password produce the same 401 so the response does
    not reveal which accounts exist. An unreachable directory is also a 401,
    with code "directory_unavailable".
    """
    service: LoginService = request.app.state.login_service
    result = service.login(zid, password)
    resp = JSONResponse(status_code=200, content=LoginResponse(token=result.token).model_dump())
    resp.headers["Cache-Control"] = "no-store"
    return resp
