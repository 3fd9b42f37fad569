from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.trustedhost import TrustedHostMiddleware
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from clearance.config import settings
from clearance.db import SessionLocal
from clearance.errors import ClearanceError
from clearance.routers.assignment_rules import router as assignment_router
from clearance.routers.audit import router as audit_router
from clearance.routers.auth import router as auth_router
from clearance.routers.catalog import router as catalog_router
from clearance.routers.projects import router as projects_router
from clearance.routers.shipments import router as shipments_router
from clearance.routers.tasks import router as tasks_router
from clearance.routers.users import router as users_router
from clearance.schemas import HealthOut

logging.basicConfig(
  level=getattr(logging, settings.log_level.upper(), logging.INFO),
  format="%(asctime)s [%(name)s] %(levelname)s %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(
  title="Clearance API",
  version=settings.app_version,
  docs_url="/docs" if settings.api_docs_enabled else None,
  redoc_url="/redoc" if settings.api_docs_enabled else None,
  openapi_url="/openapi.json" if settings.api_docs_enabled else None,
)


@app.exception_handler(ClearanceError)
async def _clearance_error_handler(_: Request, exc: ClearanceError) -> JSONResponse:
  return JSONResponse(status_code=exc.status_code, content={"detail": exc.message}, headers=exc.headers)


app.add_middleware(
  CORSMiddleware,
  allow_origins=settings.cors_origin_list(),
  allow_origin_regex=settings.cors_origin_regex,
  allow_credentials=True,
  allow_methods=["*"],
  allow_headers=["*"],
)
app.add_middleware(TrustedHostMiddleware, allowed_hosts=settings.trusted_host_list())

app.include_router(auth_router)
app.include_router(users_router)
app.include_router(projects_router)
app.include_router(tasks_router)
app.include_router(shipments_router)
app.include_router(assignment_router)
app.include_router(catalog_router)
app.include_router(audit_router)


@app.middleware("http")
async def _security_headers_middleware(request, call_next):
  response = await call_next(request)
  response.headers.setdefault("X-Content-Type-Options", "nosniff")
  response.headers.setdefault("X-Frame-Options", "DENY")
  response.headers.setdefault("Referrer-Policy", "strict-origin-when-cross-origin")
  return response


@app.get("/health", response_model=HealthOut)
async def health() -> HealthOut:
  async with SessionLocal() as db:
    try:
      await db.execute(text("SELECT 1"))
    except SQLAlchemyError:
      logger.exception("health check: database unreachable")
      return HealthOut(ok=False, db="error")
  return HealthOut()


@app.get("/version")
async def version() -> dict:
  return {"version": settings.app_version, "buildSha": settings.build_sha}


def _is_test_db() -> bool:
  db_name = settings.database_url.rsplit("/", 1)[-1]
  return "test" in db_name


@app.on_event("startup")
async def _startup() -> None:
  if _is_test_db():
    return
  if not settings.app_secret or settings.app_secret.strip().lower() in {"dev-secret-change-me", "replace_with_strong_random_secret"}:
    raise RuntimeError("APP_SECRET is required and must not be a placeholder")
  logger.info("clearance api %s (%s) starting; load strategy=%s", settings.app_version, settings.build_sha, settings.assignment_load_strategy)


def serve() -> None:
  import uvicorn

  uvicorn.run("clearance.main:app", host=settings.api_host, port=settings.api_port, log_level=settings.log_level.lower())


if __name__ == "__main__":
  serve()
