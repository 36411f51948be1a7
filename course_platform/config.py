import os
from dataclasses import dataclass

from dotenv import load_dotenv

# Load a local .env file if present (missing file is not an error).
load_dotenv()

_TRUTHY = {"1", "true", "yes", "y", "on"}
_FALSY = {"0", "false", "no", "n", "off"}


def _env_bool(name: str, default: bool) -> bool:
    """Read a yes/no environment flag; unset or unrecognized values give `default`."""
    raw = (os.environ.get(name) or "").strip().lower()
    if raw in _TRUTHY:
        return True
    if raw in _FALSY:
        return False
    return default


@dataclass(frozen=True)
class Config:
    """Runtime configuration.

    Loaded once at process start and stored on `app.state.cfg`. Business logic
    never reads the environment directly; it receives values from here.
    """

    # -----------------
    # Core
    # -----------------
    # Preferred: set COURSE_DATABASE_URL (or DATABASE_URL) to use Postgres.
    # Fallback: COURSE_DB_PATH for SQLite.
    DB_DSN: str = (
        os.environ.get("COURSE_DATABASE_URL")
        or os.environ.get("DATABASE_URL")
        or os.environ.get("COURSE_DB_PATH", "./course_platform.sqlite")
    )

    # -----------------
    # Auth (JWT)
    # -----------------
    # NOTE: In dev, this defaults to a fixed string so you can get started.
    # In production, you MUST set AUTH_JWT_SECRET to a strong random value.
    AUTH_JWT_SECRET: str = os.environ.get("AUTH_JWT_SECRET", "dev_change_me")
    AUTH_TOKEN_EXPIRE_DAYS: int = int(os.environ.get("AUTH_TOKEN_EXPIRE_DAYS", "30"))

    # Bootstrap first admin user if users table is empty
    AUTH_BOOTSTRAP_ADMIN_EMAIL: str = os.environ.get("AUTH_BOOTSTRAP_ADMIN_EMAIL", "admin@example.com")
    AUTH_BOOTSTRAP_ADMIN_USERNAME: str = os.environ.get("AUTH_BOOTSTRAP_ADMIN_USERNAME", "admin")
    AUTH_BOOTSTRAP_ADMIN_PASSWORD: str = os.environ.get("AUTH_BOOTSTRAP_ADMIN_PASSWORD", "admin123")
    ENABLE_ADMIN_BOOTSTRAP: bool = _env_bool("ENABLE_ADMIN_BOOTSTRAP", True)

    # -----------------
    # Site settings (seed values for the single settings row)
    # -----------------
    SITE_NAME: str = os.environ.get("SITE_NAME", "Course Platform")
    SITE_COPYRIGHT: str = os.environ.get("SITE_COPYRIGHT", "(c) Course Platform. All Rights Reserved.")

    # -----------------
    # Listing
    # -----------------
    DEFAULT_PAGE_SIZE: int = int(os.environ.get("DEFAULT_PAGE_SIZE", "10"))
    HOMEPAGE_SECTION_SIZE: int = int(os.environ.get("HOMEPAGE_SECTION_SIZE", "10"))

    # -----------------
    # CORS (development)
    # -----------------
    # If you develop a frontend on another port, allow that origin here.
    # In production (same origin behind a reverse proxy) CORS is not required.
    CORS_ALLOW_ORIGINS: str = os.environ.get(
        "CORS_ALLOW_ORIGINS",
        "http://localhost:5173,http://127.0.0.1:5173,http://localhost:3000",
    )


def load_config() -> Config:
    return Config()
