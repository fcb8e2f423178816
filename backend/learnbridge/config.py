"""
Application configuration from environment variables.
Loads .env from the backend directory so settings are found regardless of cwd.
SECRET_KEY has no default: Settings() fails at import time when it is missing.
"""
from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# .env next to backend/ (parent of learnbridge/)
_BACKEND_DIR = Path(__file__).resolve().parent.parent
_ENV_FILE = _BACKEND_DIR / ".env"

if _ENV_FILE.exists():
    from dotenv import load_dotenv
    load_dotenv(_ENV_FILE, override=False)


class Settings(BaseSettings):
    """Load and validate config from env."""

    model_config = SettingsConfigDict(
        env_file=_ENV_FILE if _ENV_FILE.exists() else None,
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Database: sqlite for local runs and tests, postgresql for production
    database_url: str = "sqlite:///./learnbridge_dev.db"

    env: str = ""

    # JWT signing secret. Required; never defaulted.
    secret_key: str
    jwt_algorithm: str = "HS256"
    jwt_expire_hours: int = 720

    # File uploads: one file per request, 10 MiB max
    upload_dir: Path = Path("./uploads")
    max_upload_bytes: int = 10 * 1024 * 1024

    # CORS: comma-separated origins
    cors_origins: str = "http://localhost:3000"
    port: int = 5000

    # Seeded admin account. Both email and password must be set for seeding to run.
    admin_email: str = ""
    admin_password: str = ""
    admin_username: str = "admin"

    # Reject requires non-empty review notes
    require_rejection_notes: bool = True

    default_page_size: int = 10
    max_page_size: int = 100

    debug: bool = False

    @field_validator("secret_key")
    @classmethod
    def _secret_key_not_blank(cls, v: str) -> str:
        if not (v or "").strip():
            raise ValueError("SECRET_KEY must be set to a non-empty value")
        return v

    @property
    def resolved_upload_dir(self) -> Path:
        """Upload dir as an absolute path; relative values are anchored at the backend directory."""
        d = self.upload_dir
        return (d if d.is_absolute() else _BACKEND_DIR / d).resolve()


settings = Settings()
