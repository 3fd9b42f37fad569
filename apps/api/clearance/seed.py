from __future__ import annotations

import asyncio
import logging
import os
import secrets
from datetime import datetime, timezone
from pathlib import Path

from sqlalchemy import func, select

from clearance.catalog import activities_for
from clearance.db import SessionLocal
from clearance.models import Project, TaskAssignmentRule, User
from clearance.schemas import ActivityIn, ProjectCreateIn
from clearance.security import hash_password
from clearance.services.assignment import DEFAULT_CATEGORY_ROLES
from clearance.services.cascade import create_project_with_cascade

logger = logging.getLogger(__name__)

SEED_USERS = (
  ("admin@clearance.local", "Admin", "ADMIN", "SEED_ADMIN_PASSWORD"),
  ("manager@clearance.local", "Manager", "MANAGER", "SEED_MANAGER_PASSWORD"),
  ("clerk@clearance.local", "Clerk", "CLERK", "SEED_CLERK_PASSWORD"),
)


def _bootstrap_password(env_key: str) -> tuple[str, bool]:
  configured = (os.getenv(env_key) or "").strip()
  if configured:
    return configured, False
  return secrets.token_urlsafe(14), True


async def seed() -> None:
  async with SessionLocal() as db:
    boot_lines: list[str] = []
    users: dict[str, User] = {}
    for email, name, role, env_key in SEED_USERS:
      res = await db.execute(select(User).where(User.email == email))
      u = res.scalar_one_or_none()
      if not u:
        password, generated = _bootstrap_password(env_key)
        u = User(email=email, name=name, role=role, password_hash=hash_password(password))
        db.add(u)
        boot_lines.append(f"{email}={password} (generated={str(generated).lower()})")
      users[role] = u
    await db.flush()

    rule_count = (await db.execute(select(func.count(TaskAssignmentRule.id)))).scalar_one()
    if not rule_count:
      for category, roles in DEFAULT_CATEGORY_ROLES.items():
        db.add(
          TaskAssignmentRule(
            category=category,
            role_target=roles[0],
            priority=100,
            description=f"Default {category.lower().replace('_', ' ')} routing",
            is_active=True,
          )
        )
    await db.commit()

    if os.getenv("SEED_DEMO_PROJECT", "").strip().lower() in ("1", "true", "yes", "y"):
      res = await db.execute(select(Project.id).limit(1))
      if res.scalar_one_or_none() is None:
        payload = ProjectCreateIn(
          customer="Demo Trading Co.",
          blAwbNumber="MSCU1234567",
          systems=["IMPORT_SEA_FCL"],
          activities=[ActivityIn(**a.to_dict()) for a in activities_for("IMPORT_SEA_FCL", "Documentation")],
          portOfOrigin="Jebel Ali",
          portOfDestination="Port Sudan",
          team=[users["CLERK"].id],
          startDate=datetime.now(timezone.utc),
        )
        r = await create_project_with_cascade(db, payload, users["ADMIN"].id)
        if not r.success:
          raise RuntimeError(f"demo project failed: {r.error}")

  if boot_lines:
    out_dir = Path(os.getenv("BOOTSTRAP_CREDENTIALS_DIR", "data"))
    out_dir.mkdir(parents=True, exist_ok=True)
    out_file = out_dir / "bootstrap_credentials.txt"
    stamp = datetime.now(timezone.utc).isoformat()
    out_file.write_text(f"[{stamp}]\n" + "\n".join(boot_lines) + "\n", encoding="utf-8")
    print("Clearance seed credentials created:")
    for ln in boot_lines:
      print(f"  {ln}")
    print(f"Saved to {out_file}")


def main() -> None:
  logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(name)s] %(levelname)s %(message)s")
  asyncio.run(seed())


if __name__ == "__main__":
  main()
