from __future__ import annotations

from fastapi import Cookie, Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from clearance.config import settings
from clearance.db import SessionLocal
from clearance.errors import UserDisabled
from clearance.models import User
from clearance.security import bearer_token
from clearance.services.accounts import user_for_api_token, user_for_session


def _unauthorized() -> HTTPException:
  return HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")


async def get_db() -> AsyncSession:
  async with SessionLocal() as session:
    yield session


async def get_current_user(
  request: Request,
  db: AsyncSession = Depends(get_db),
  session_id: str | None = Cookie(default=None, alias=settings.session_cookie_name),
) -> User:
  """Resolve the caller from the session cookie, else from a bearer API token."""
  if session_id:
    u = await user_for_session(db, session_id)
  else:
    raw = bearer_token(request.headers.get("authorization"))
    u = await user_for_api_token(db, raw) if raw else None
  if not u:
    raise _unauthorized()
  if not u.active:
    raise UserDisabled()
  return u


def require_cookie_session(session_id: str | None = Cookie(default=None, alias=settings.session_cookie_name)) -> str:
  # API tokens cannot mint or list other tokens.
  if not session_id:
    raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Session required")
  return session_id


def require_role(user: User, *roles: str) -> None:
  if user.role not in roles:
    raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Insufficient role")


def client_ip(request: Request) -> str | None:
  return request.client.host if request.client else None
