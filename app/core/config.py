import os
from pathlib import Path

from dotenv import load_dotenv


# Load backend/.env when present. Variables already exported in the process
# environment win, so tests and containers can override the file.
env_path = Path(__file__).resolve().parents[2] / ".env"
if env_path.exists():
    load_dotenv(env_path, override=False)


def _as_bool(value, default: str = "0") -> bool:
    return str(value if value is not None else default).strip().lower() in {"1", "true", "yes", "on"}


class Settings:
    """Lightweight settings loader using environment variables."""

    APP_NAME: str = os.getenv("APP_NAME", "Cantina API")
    APP_VERSION: str = os.getenv("APP_VERSION", "1.0.0")

    SECRET_KEY: str = os.getenv("SECRET_KEY", "change-me-to-a-secure-random-string")
    ALGORITHM: str = os.getenv("ALGORITHM", "HS256")
    ACCESS_TOKEN_EXPIRE_MINUTES: int = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", str(60 * 24 * 7)))
    # password reset links are short lived
    RESET_TOKEN_EXPIRE_MINUTES: int = int(os.getenv("RESET_TOKEN_EXPIRE_MINUTES", "60"))

    # Be resilient to an accidental repeated prefix like
    # "DATABASE_URL=DATABASE_URL=..." in a malformed .env file.
    raw_db = os.getenv("DATABASE_URL", "sqlite:///./cantina.db")
    if isinstance(raw_db, str) and raw_db.startswith("DATABASE_URL="):
        raw_db = raw_db.split("=", 1)[1]
    DATABASE_URL: str = raw_db

    APP_ENV: str = os.getenv("APP_ENV", os.getenv("ENV", "development")).lower()
    # Environment-aware pool defaults (can be overridden via env)
    _default_pool_size = 5 if APP_ENV == "development" else 10
    _default_max_overflow = 2 if APP_ENV == "development" else 20
    _default_pool_recycle = 900 if APP_ENV == "development" else 1800

    DB_POOL_SIZE: int = int(os.getenv("DB_POOL_SIZE", str(_default_pool_size)))
    DB_MAX_OVERFLOW: int = int(os.getenv("DB_MAX_OVERFLOW", str(_default_max_overflow)))
    DB_POOL_RECYCLE: int = int(os.getenv("DB_POOL_RECYCLE", str(_default_pool_recycle)))  # seconds

    # Logging and monitoring controls
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()
    # Log request counters every N hits per route
    REQUEST_LOG_EVERY_N: int = int(os.getenv("REQUEST_LOG_EVERY_N", "100"))
    # Log pool events every N occurrences
    DB_LOG_EVERY_N: int = int(os.getenv("DB_LOG_EVERY_N", "50"))
    # Verbose per-request logging (development aid)
    REQUEST_LOG_VERBOSE: bool = _as_bool(os.getenv("REQUEST_LOG_VERBOSE"))
    # Comma-separated route prefixes to include for verbose logging
    REQUEST_LOG_INCLUDE_PREFIXES: str = os.getenv(
        "REQUEST_LOG_INCLUDE_PREFIXES",
        "/api/orders,/api/cart,/api/products,/api/categories,/api/dashboard"
    )

    # Frontend origin: used for CORS and for links sent by e-mail
    FRONTEND_URL: str = os.getenv("FRONTEND_URL", "http://localhost:3001")

    # Product images
    UPLOAD_DIR: str = os.getenv("UPLOAD_DIR", "uploads")
    MAX_UPLOAD_SIZE_MB: int = int(os.getenv("MAX_UPLOAD_SIZE_MB", "5"))

    # Order policy: may an admin cancel an order that is already EM_PREPARO?
    ALLOW_ADMIN_CANCEL_IN_PREPARATION: bool = _as_bool(os.getenv("ALLOW_ADMIN_CANCEL_IN_PREPARATION"), "1")

    # Timezone used for day boundaries and hour-of-day grouping
    LOCAL_TIMEZONE: str = os.getenv("LOCAL_TIMEZONE", "America/Sao_Paulo")

    # Optional bootstrap admin created on startup
    ADMIN_EMAIL: str = os.getenv("ADMIN_EMAIL", "")
    ADMIN_PASSWORD: str = os.getenv("ADMIN_PASSWORD", "")
    ADMIN_NAME: str = os.getenv("ADMIN_NAME", "Administrador")


settings = Settings()
