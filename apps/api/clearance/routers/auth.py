from __future__ import annotations

from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession

from clearance.config import settings
from clearance.deps import client_ip, get_current_user, get_db, require_cookie_session
from clearance.errors import InvalidCredentials
from clearance.models import User
from clearance.schemas import ApiTokenCreateIn, ApiTokenCreateOut, ApiTokenOut, LoginIn, UserOut
from clearance.security import verify_password
from clearance.serializers import api_token_out, user_out
from clearance.services import accounts

router = APIRouter(prefix="/auth", tags=["auth"])


def _set_session_cookie(response: Response, session_id: str) -> None:
  response.set_cookie(
    key=settings.session_cookie_name,
    value=session_id,
    httponly=True,
    secure=settings.cookie_secure,
    samesite="lax",
    domain=settings.cookie_domain or None,
    max_age=settings.session_ttl_days * 86400,
    path="/",
  )


@router.post("/login", response_model=UserOut)
async def login(payload: LoginIn, request: Request, response: Response, db: AsyncSession = Depends(get_db)) -> UserOut:
  ip = client_ip(request)
  u = await accounts.authenticate(db, email=payload.email, password=payload.password, ip=ip or "unknown")
  s = await accounts.open_session(db, u, ip=ip, user_agent=request.headers.get("user-agent"))
  await db.commit()
  _set_session_cookie(response, s.id)
  return user_out(u)


@router.post("/logout")
async def logout(response: Response, user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)) -> dict:
  closed = await accounts.close_sessions(db, user)
  await db.commit()
  response.delete_cookie(key=settings.session_cookie_name, path="/")
  return {"ok": True, "sessionsClosed": closed}


@router.get("/me", response_model=UserOut)
async def me(user: User = Depends(get_current_user)) -> UserOut:
  return user_out(user)


@router.get("/tokens", response_model=list[ApiTokenOut], dependencies=[Depends(require_cookie_session)])
async def list_tokens(user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)) -> list[ApiTokenOut]:
  return [api_token_out(t) for t in await accounts.list_api_tokens(db, user)]


@router.post("/tokens", response_model=ApiTokenCreateOut, dependencies=[Depends(require_cookie_session)])
async def create_token(payload: ApiTokenCreateIn, user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)) -> ApiTokenCreateOut:
  # Minting a token re-checks the password.
  if not verify_password(payload.password, user.password_hash):
    raise InvalidCredentials()
  t, raw = await accounts.create_api_token(db, user, name=payload.name)
  await db.commit()
  return ApiTokenCreateOut(token=raw, tokenHint=t.token_hint, apiToken=api_token_out(t))


@router.post("/tokens/{token_id}/revoke", response_model=ApiTokenOut, dependencies=[Depends(require_cookie_session)])
async def revoke_token(token_id: str, user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)) -> ApiTokenOut:
  t = await accounts.revoke_api_token(db, user, token_id)
  await db.commit()
  return api_token_out(t)
