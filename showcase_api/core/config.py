from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict

from showcase_api.core.auth import parse_admin_emails

DatabaseBackend = Literal["postgres", "memory"]


class Settings(BaseSettings):
    app_name: str = "student-portfolio-showcase-api"
    environment: str = "dev"
    log_level: str = "INFO"
    database_backend: DatabaseBackend = "postgres"
    database_url: str | None = None
    database_pool_min_size: int = 1
    database_pool_max_size: int = 10
    database_command_timeout_seconds: float = 15.0
    supabase_url: str | None = None
    supabase_anon_key: str | None = None
    admin_emails: str = ""
    auth_timeout_seconds: float = 5.0
    github_token: str | None = None
    github_repo_owner: str = "diabeatz96"
    github_repo_name: str = "student-showcase"
    github_api_url: str = "https://api.github.com"
    github_dispatch_event_type: str = "create-student-pr"
    dispatch_timeout_seconds: float = 10.0
    otel_enabled: bool = True
    otel_service_name: str = "student-portfolio-showcase-api"
    otel_exporter_otlp_endpoint: str | None = None
    otel_exporter_otlp_headers: str | None = None
    otel_trace_sample_ratio: float = 1.0
    otel_log_correlation: bool = True

    model_config = SettingsConfigDict(env_prefix="SPS_", extra="ignore")

    @property
    def admin_email_set(self) -> set[str]:
        return parse_admin_emails(self.admin_emails)


@lru_cache
def get_settings() -> Settings:
    return Settings()
