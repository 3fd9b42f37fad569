from __future__ import annotations

import hashlib
import hmac
import secrets
from datetime import datetime, timedelta, timezone
from typing import NamedTuple

from passlib.context import CryptContext

from clearance.config import settings

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

API_TOKEN_PREFIX = "cdt_"


class IssuedToken(NamedTuple):
  raw: str
  digest: str
  hint: str


def hash_password(password: str) -> str:
  return pwd_context.hash(password)


def verify_password(password: str, password_hash: str | None) -> bool:
  if not password or not password_hash:
    return False
  try:
    return pwd_context.verify(password, password_hash)
  except ValueError:
    # Unrecognised hash formats never verify.
    return False


def session_expiry(now: datetime | None = None) -> datetime:
  return (now or datetime.now(timezone.utc)) + timedelta(days=settings.session_ttl_days)


def token_digest(raw: str) -> str:
  """HMAC-SHA256 of an API token keyed on app_secret; only digests are stored."""
  return hmac.new(settings.app_secret.encode("utf-8"), raw.strip().encode("utf-8"), hashlib.sha256).hexdigest()


def issue_api_token() -> IssuedToken:
  raw = f"{API_TOKEN_PREFIX}{secrets.token_urlsafe(32)}"
  return IssuedToken(raw=raw, digest=token_digest(raw), hint=raw[-4:])


def bearer_token(authorization: str | None) -> str | None:
  """The API token from an ``Authorization: Bearer cdt_...`` header, if any."""
  scheme, _, value = (authorization or "").partition(" ")
  value = value.strip()
  if scheme.lower() != "bearer" or not value.startswith(API_TOKEN_PREFIX):
    return None
  return value
