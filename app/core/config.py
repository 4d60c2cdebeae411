"""Application configuration and settings."""
import os
from dotenv import load_dotenv

# Load environment variables from .env (if present)
load_dotenv()


def _int_setting(name: str, default: int) -> int:
    """Reads an integer setting, failing loudly on garbage."""
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}")


def _float_setting(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}")


# Database configuration (decision log)
SQLALCHEMY_DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./remote_authorization.db")

# Remote authority. Validated when the authorization service is initialized,
# so a missing URL only breaks the component that needs it.
REMOTE_AUTHORIZATION_URL_KEY = "REMOTE_AUTHORIZATION_URL"
REMOTE_AUTHORIZATION_URL = os.getenv(REMOTE_AUTHORIZATION_URL_KEY)
REMOTE_AUTHORIZATION_TIMEOUT = _float_setting("REMOTE_AUTHORIZATION_TIMEOUT", 10.0)

# Decision cache. "lru" is the only backend that can be configured
CACHE_BACKEND = os.getenv("CACHE_BACKEND", "lru")
CACHE_MAX_SIZE = _int_setting("CACHE_MAX_SIZE", 1000)
CACHE_DEFAULT_TTL = _int_setting("CACHE_DEFAULT_TTL", 60)

# Security configuration - REQUIRED, no default for security
ADMIN_API_KEY = os.environ.get("ADMIN_API_KEY")
if not ADMIN_API_KEY:
    raise ValueError(
        "ADMIN_API_KEY environment variable is required. "
        "Please set it in your .env file or environment variables."
    )
