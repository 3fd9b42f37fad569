from __future__ import annotations

import logging
from datetime import datetime, timezone

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from clearance.audit import write_audit
from clearance.errors import ApiTokenNotFound, InvalidCredentials, UserDisabled
from clearance.login_throttle import login_throttle
from clearance.models import ApiToken, Session as DbSession, User
from clearance.security import issue_api_token, session_expiry, token_digest, verify_password

logger = logging.getLogger(__name__)


def normalize_email(email: str | None) -> str:
  return (email or "").strip().lower()


def _as_utc(dt: datetime) -> datetime:
  # SQLite hands back naive datetimes.
  return dt if dt.tzinfo else dt.replace(tzinfo=timezone.utc)


async def authenticate(db: AsyncSession, *, email: str, password: str, ip: str) -> User:
  """
  Check a login attempt against the stored bcrypt hash.

  Failed attempts are audited and committed immediately, then counted by the
  login throttle. A disabled user with the right password gets UserDisabled.
  """
  email = normalize_email(email)
  login_throttle.check(ip=ip, email=email)

  res = await db.execute(select(User).where(User.email == email))
  u = res.scalar_one_or_none()
  if not u or not verify_password(password, u.password_hash):
    login_throttle.record_failure(ip=ip, email=email)
    await write_audit(db, event_type="auth.login.failed", entity_type="Auth", entity_id=None, payload={"email": email, "ip": ip})
    await db.commit()
    logger.info("failed login for %s from %s", email, ip)
    raise InvalidCredentials()
  if not u.active:
    raise UserDisabled()

  login_throttle.clear(email)
  return u


async def open_session(db: AsyncSession, user: User, *, ip: str | None, user_agent: str | None) -> DbSession:
  s = DbSession(user_id=user.id, expires_at=session_expiry(), created_ip=ip, user_agent=user_agent)
  db.add(s)
  await db.flush()
  await write_audit(db, event_type="auth.login.success", entity_type="User", entity_id=user.id, actor_id=user.id, payload={"ip": ip})
  return s


async def close_sessions(db: AsyncSession, user: User) -> int:
  res = await db.execute(delete(DbSession).where(DbSession.user_id == user.id))
  return int(res.rowcount or 0)


async def user_for_session(db: AsyncSession, session_id: str) -> User | None:
  s = await db.get(DbSession, session_id)
  if not s or _as_utc(s.expires_at) <= datetime.now(timezone.utc):
    return None
  return await db.get(User, s.user_id)


async def user_for_api_token(db: AsyncSession, raw: str) -> User | None:
  res = await db.execute(select(ApiToken.user_id).where(ApiToken.token_hash == token_digest(raw), ApiToken.revoked_at.is_(None)))
  user_id = res.scalar_one_or_none()
  return await db.get(User, user_id) if user_id else None


async def list_api_tokens(db: AsyncSession, user: User) -> list[ApiToken]:
  res = await db.execute(select(ApiToken).where(ApiToken.user_id == user.id).order_by(ApiToken.created_at.desc()))
  return list(res.scalars().all())


async def create_api_token(db: AsyncSession, user: User, *, name: str) -> tuple[ApiToken, str]:
  """Returns the stored token and the raw value, which is never persisted."""
  issued = issue_api_token()
  t = ApiToken(user_id=user.id, name=name.strip(), token_hash=issued.digest, token_hint=issued.hint)
  db.add(t)
  await db.flush()
  await write_audit(db, event_type="auth.api_token.created", entity_type="ApiToken", entity_id=t.id, actor_id=user.id, payload={"name": t.name})
  return t, issued.raw


async def revoke_api_token(db: AsyncSession, user: User, token_id: str) -> ApiToken:
  res = await db.execute(select(ApiToken).where(ApiToken.id == token_id, ApiToken.user_id == user.id))
  t = res.scalar_one_or_none()
  if not t:
    raise ApiTokenNotFound(token_id)
  if t.revoked_at is None:
    t.revoked_at = datetime.now(timezone.utc)
    await write_audit(db, event_type="auth.api_token.revoked", entity_type="ApiToken", entity_id=t.id, actor_id=user.id, payload={})
  return t
