import os
from pathlib import Path

from dotenv import load_dotenv

DEFAULT_CONCURRENCY_LIMIT = 5


def load_env() -> None:
    """Load .env from the working directory if present."""
    env_path = Path.cwd() / ".env"
    if env_path.exists():
        load_dotenv(dotenv_path=env_path)


def _flag(name: str) -> bool:
    return os.getenv(name, "").strip().lower() == "true"


def concurrency_limit() -> int:
    """CONCURRENCY_LIMIT override, falling back to the default on junk values."""
    raw = os.getenv("CONCURRENCY_LIMIT")
    if not raw:
        return DEFAULT_CONCURRENCY_LIMIT
    try:
        value = int(raw)
    except ValueError:
        return DEFAULT_CONCURRENCY_LIMIT
    return value if value > 0 else DEFAULT_CONCURRENCY_LIMIT


def quick_mode_enabled() -> bool:
    return _flag("QUICK_MODE")


def verify_tls() -> bool:
    # Only an explicit "false" relaxes certificate checks.
    return os.getenv("APIPARITY_VERIFY_TLS", "").strip().lower() != "false"
