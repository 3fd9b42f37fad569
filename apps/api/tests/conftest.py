from __future__ import annotations

import os
import sys
from pathlib import Path

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import select

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
  sys.path.insert(0, str(ROOT))

# Must be set before clearance.config is imported.
os.environ["DATABASE_URL"] = os.getenv("TEST_DATABASE_URL") or f"sqlite+aiosqlite:///{ROOT / 'clearance_test.db'}"
os.environ.setdefault("ASSIGNMENT_LOAD_STRATEGY", "live")

from clearance.config import settings
from clearance.db import SessionLocal, drop_models, engine, init_models
from clearance.main import app
from clearance.models import Project, User
from clearance.login_throttle import login_throttle
from clearance.schemas import ProjectCreateIn
from clearance.security import hash_password

PASSWORD = "clearance1234"


@pytest.fixture(scope="session")
def anyio_backend() -> str:
  return "asyncio"


async def _reset_db() -> None:
  login_throttle.clear()
  await drop_models()
  await init_models()
  await engine.dispose()


@pytest.fixture
async def clean_db() -> None:
  db_name = settings.database_url.rsplit("/", 1)[-1]
  if "test" not in db_name:
    raise RuntimeError(
      "Refusing to run destructive tests against non-test DB. "
      "Set TEST_DATABASE_URL to a *_test database (e.g. clearance_test)."
    )
  await _reset_db()
  yield
  await engine.dispose()


@pytest.fixture
async def db(clean_db):
  async with SessionLocal() as s:
    yield s


@pytest.fixture
async def client(clean_db) -> AsyncClient:
  transport = ASGITransport(app=app)
  async with AsyncClient(transport=transport, base_url="http://localhost") as c:
    yield c


async def create_user(email: str, role: str = "CLERK", *, name: str | None = None, active: bool = True) -> str:
  async with SessionLocal() as s:
    u = User(
      email=email,
      name=name or email.split("@", 1)[0].title(),
      role=role,
      password_hash=hash_password(PASSWORD),
      active=active,
    )
    s.add(u)
    await s.commit()
    return u.id


async def login(client: AsyncClient, email: str, password: str = PASSWORD) -> dict[str, str]:
  res = await client.post("/auth/login", json={"email": email, "password": password})
  assert res.status_code == 200, res.text
  cookie = res.headers.get("set-cookie")
  assert cookie and "cd_session=" in cookie
  return {"ok": "true"}


def project_payload(**overrides) -> ProjectCreateIn:
  data: dict = {
    "customer": "Nile Traders",
    "systems": ["IMPORT_SEA_FCL"],
    "activities": [],
    "team": [],
    "portOfOrigin": "Jebel Ali",
    "startDate": "2026-03-01T08:00:00Z",
  }
  data.update(overrides)
  return ProjectCreateIn(**data)


async def load_project(project_id: str) -> Project | None:
  async with SessionLocal() as s:
    res = await s.execute(select(Project).where(Project.id == project_id))
    return res.scalar_one_or_none()
