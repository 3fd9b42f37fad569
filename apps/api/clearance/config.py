from __future__ import annotations

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
  model_config = SettingsConfigDict(env_file=".env", extra="ignore")

  database_url: str = "postgresql+asyncpg://clearance:clearance@db:5432/clearance"
  app_secret: str = "dev-secret-change-me"
  app_version: str = "v2026-10-18+cascade"
  build_sha: str = "dev"
  api_docs_enabled: bool = True
  log_level: str = "INFO"
  api_host: str = "0.0.0.0"
  api_port: int = 8000

  session_cookie_name: str = "cd_session"
  session_ttl_days: int = 14
  cookie_secure: bool = False
  cookie_domain: str | None = None

  # Failed logins tolerated per window before further attempts get 429.
  login_failure_window_seconds: int = 300
  login_max_failures_per_ip: int = 30
  login_max_failures_per_email: int = 5

  cors_origins: str = "http://localhost:3000,http://127.0.0.1:3000"
  cors_origin_regex: str = r"^http://(localhost|127\.0\.0\.1):3000$"
  trusted_hosts: str = "localhost,127.0.0.1,0.0.0.0,api,web,test"

  tracking_number_prefix: str = "TRK"
  shipment_number_prefix: str = "SHP"

  # live: re-query user load per task | cached: seed counts once per batch
  assignment_load_strategy: str = "live"

  def cors_origin_list(self) -> list[str]:
    return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

  def trusted_host_list(self) -> list[str]:
    return [h.strip() for h in self.trusted_hosts.split(",") if h.strip()]


settings = Settings()
