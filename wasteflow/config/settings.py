from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_env: str = "dev"
    log_level: str = "INFO"

    db_host: str = "host.docker.internal"
    db_port: int = 5432
    db_database: str = "wasteflow"
    db_username: str = "wasteflow"
    db_password: str = "secret"
    db_pool_max_size: int = 10

    max_job_attempts: int = 3
    job_poll_interval_seconds: int = 5
    worker_concurrency: int = 3

    lease_timeout_seconds: int = 300
    lease_heartbeat_seconds: int = 30
    lease_reap_interval_seconds: int = 60

    persist_chunk_size: int = 500
    ingest_scope: str = "default"

    storage_backend: str = "local"
    storage_bucket: str = "raw"
    files_root: Path = Path("/app/files")
    supabase_url: str = ""
    supabase_service_role_key: str = ""

    correspondence_table_path: Path | None = None
