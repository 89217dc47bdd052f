from __future__ import annotations

import os
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

PROJECT_ROOT = Path(__file__).resolve().parents[1]


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Settings:
    """Runtime configuration read from environment variables (.env supported)."""

    database_url: str = f"sqlite:///{PROJECT_ROOT / 'healthcare.sqlite'}"
    sql_echo: bool = False

    # In production: set it through the environment
    jwt_secret: str = "CHANGE_ME_DEV_SECRET"
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = 24 * 60

    upload_dir: Path = PROJECT_ROOT / "uploads" / "documents"
    max_upload_bytes: int = 10 * 1024 * 1024
    allowed_extensions: tuple[str, ...] = (".jpg", ".jpeg", ".png", ".pdf", ".doc", ".docx")

    client_url: str = "http://localhost:8501"
    environment: str = "development"
    log_level: str = "INFO"
    log_file: str | None = None

    admin_email: str = "admin@healthcare.local"
    admin_password: str = "admin123"
    seed_admin: bool = True

    api_base: str = "http://127.0.0.1:8000"
    cors_origins: tuple[str, ...] = field(default=())


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    client_url = os.getenv("HEALTHCARE_CLIENT_URL", "http://localhost:8501")
    return Settings(
        database_url=os.getenv("HEALTHCARE_DATABASE_URL", Settings.database_url),
        sql_echo=_env_bool("HEALTHCARE_SQL_ECHO", False),
        jwt_secret=os.getenv("HEALTHCARE_JWT_SECRET", Settings.jwt_secret),
        access_token_expire_minutes=int(os.getenv("HEALTHCARE_JWT_EXPIRE_MINUTES", str(24 * 60))),
        upload_dir=Path(os.getenv("HEALTHCARE_UPLOAD_DIR", str(Settings.upload_dir))),
        max_upload_bytes=int(os.getenv("HEALTHCARE_MAX_UPLOAD_MB", "10")) * 1024 * 1024,
        client_url=client_url,
        environment=os.getenv("HEALTHCARE_ENV", "development"),
        log_level=os.getenv("HEALTHCARE_LOG_LEVEL", "INFO"),
        log_file=os.getenv("HEALTHCARE_LOG_FILE") or None,
        admin_email=os.getenv("HEALTHCARE_ADMIN_EMAIL", Settings.admin_email),
        admin_password=os.getenv("HEALTHCARE_ADMIN_PASSWORD", Settings.admin_password),
        seed_admin=_env_bool("HEALTHCARE_SEED_ADMIN", True),
        api_base=os.getenv("API_BASE", Settings.api_base),
        cors_origins=(client_url, "http://localhost:3000"),
    )
