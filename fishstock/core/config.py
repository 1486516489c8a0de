# fishstock/core/config.py

import os
from decimal import Decimal
from dotenv import load_dotenv
from fishstock.utils.logger import get_logger

logger = get_logger(__name__)

load_dotenv()


def _env_bool(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in {"1", "true", "yes"}


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}")


# =====================================================
# APPLICATION
# =====================================================
APP_ENV = os.getenv("APP_ENV")
if APP_ENV not in {"development", "staging", "production", "test"}:
    raise ValueError("APP_ENV must be development | staging | production | test")

IS_PRODUCTION = APP_ENV == "production"

APP_VERSION = os.getenv("APP_VERSION", "1.0.0")
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "").split(",") if o.strip()]

# =====================================================
# DATABASE
# =====================================================
DB_TYPE = os.getenv("DB_TYPE")
if DB_TYPE not in {"postgres", "sqlite"}:
    raise ValueError("DB_TYPE must be postgres | sqlite")

DATABASE_URL = os.getenv("DATABASE_URL")

if DB_TYPE == "postgres" and not DATABASE_URL:
    raise ValueError("DATABASE_URL is required for Postgres")

if DB_TYPE == "sqlite":
    if IS_PRODUCTION:
        raise ValueError("SQLite is NOT allowed in production")
    DATABASE_URL = DATABASE_URL or "sqlite+aiosqlite:///./fishstock.db"

# pool settings only apply to postgres
DB_POOL_SIZE = _env_int("DB_POOL_SIZE", 10)
DB_MAX_OVERFLOW = _env_int("DB_MAX_OVERFLOW", 20)
DB_POOL_TIMEOUT = _env_int("DB_POOL_TIMEOUT", 30)
DB_ECHO_POOL = _env_bool("DB_ECHO_POOL")

DB_SSL_VERIFY = _env_bool("DB_SSL_VERIFY", "true")
if IS_PRODUCTION and not DB_SSL_VERIFY:
    logger.warning("DB_SSL_VERIFY is off in production; ledger traffic is not certificate-checked")

# =====================================================
# JWT (tokens are minted by the auth service)
# =====================================================
JWT_ACCESS_SECRET_KEY = os.getenv("JWT_ACCESS_SECRET_KEY")
if not JWT_ACCESS_SECRET_KEY:
    raise ValueError("JWT_ACCESS_SECRET_KEY must be set")

JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
ACCESS_TOKEN_EXPIRE_MINUTES = _env_int("ACCESS_TOKEN_EXPIRE_MINUTES", 15)

# =====================================================
# SCHEDULER
# =====================================================
ENABLE_SCHEDULER = _env_bool("ENABLE_SCHEDULER")

INVARIANT_AUDIT_HOUR = _env_int("INVARIANT_AUDIT_HOUR", 2)
if not 0 <= INVARIANT_AUDIT_HOUR <= 23:
    raise ValueError("INVARIANT_AUDIT_HOUR must be between 0 and 23")

# =====================================================
# INVENTORY
# =====================================================
OLDEST_BATCHES_DEFAULT_LIMIT = _env_int("OLDEST_BATCHES_DEFAULT_LIMIT", 10)
if OLDEST_BATCHES_DEFAULT_LIMIT < 1:
    raise ValueError("OLDEST_BATCHES_DEFAULT_LIMIT must be at least 1")

# audit tolerance for float noise on backends without a native numeric type
LEDGER_AUDIT_TOLERANCE_KG = Decimal(os.getenv("LEDGER_AUDIT_TOLERANCE_KG", "0.05"))
