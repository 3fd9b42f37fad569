from __future__ import annotations

import secrets

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from clearance.audit import write_audit
from clearance.deps import get_current_user, get_db, require_role
from clearance.models import User
from clearance.schemas import UserCreateIn, UserCreateOut, UserOut, UserUpdateIn
from clearance.security import hash_password
from clearance.serializers import user_out
from clearance.services.accounts import normalize_email

router = APIRouter(prefix="/users", tags=["users"])


@router.get("", response_model=list[UserOut])
async def list_users(
  role: str | None = None,
  user: User = Depends(get_current_user),
  db: AsyncSession = Depends(get_db),
) -> list[UserOut]:
  q = select(User).order_by(User.created_at.asc(), User.id.asc())
  if role:
    q = q.where(User.role == role.strip().upper())
  res = await db.execute(q)
  return [user_out(u) for u in res.scalars().all()]


@router.post("", response_model=UserCreateOut)
async def create_user(
  payload: UserCreateIn,
  actor: User = Depends(get_current_user),
  db: AsyncSession = Depends(get_db),
) -> UserCreateOut:
  require_role(actor, "ADMIN")

  email = normalize_email(payload.email)
  if "@" not in email or email.startswith("@") or email.endswith("@"):
    raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid email")
  name = payload.name.strip()
  if not name:
    raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="name is required")

  res = await db.execute(select(User).where(User.email == email))
  existing = res.scalar_one_or_none()
  if existing:
    return UserCreateOut(user=user_out(existing), tempPassword=None)

  temp_password: str | None = None
  password = payload.password
  if not password:
    temp_password = secrets.token_urlsafe(12)
    password = temp_password

  u = User(email=email, name=name, role=payload.role, password_hash=hash_password(password), active=True)
  db.add(u)
  await db.flush()
  await write_audit(db, event_type="user.created", entity_type="User", entity_id=u.id, actor_id=actor.id, payload={"email": email, "role": u.role})
  await db.commit()
  return UserCreateOut(user=user_out(u), tempPassword=temp_password)


@router.patch("/{user_id}", response_model=UserOut)
async def update_user(
  user_id: str,
  payload: UserUpdateIn,
  actor: User = Depends(get_current_user),
  db: AsyncSession = Depends(get_db),
) -> UserOut:
  require_role(actor, "ADMIN")
  u = await db.get(User, user_id)
  if not u:
    raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")

  changed: dict = {}
  if payload.name is not None:
    u.name = payload.name.strip()
    changed["name"] = u.name
  if payload.role is not None and payload.role != u.role:
    u.role = payload.role
    changed["role"] = u.role
  if payload.active is not None:
    if u.id == actor.id and not payload.active:
      raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Cannot disable yourself")
    u.active = payload.active
    changed["active"] = u.active
  if payload.password:
    u.password_hash = hash_password(payload.password)
    changed["password"] = True

  if changed:
    await write_audit(db, event_type="user.updated", entity_type="User", entity_id=u.id, actor_id=actor.id, payload=changed)
    await db.commit()
  return user_out(u)
