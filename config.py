import os
from typing import Optional
from dotenv import load_dotenv

load_dotenv()


def _get_int(name: str, default: int) -> int:
    raw = os.getenv(name, str(default))
    try:
        return int(raw)
    except ValueError:
        return default


def _get_bool(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


# Prefix for the short URLs shown to users. Not validated.
BASE_URL = os.getenv("BASE_URL", "http://localhost:8000")

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite+aiosqlite:///./urls.db")
SQL_ECHO = _get_bool("SQL_ECHO")

# "sql" or "memory"
STORE_BACKEND = os.getenv("STORE_BACKEND", "sql").strip().lower()

# "content": same URL always gets the same code (de-duplicated).
# "timestamp": every submission gets a fresh code.
CODE_POLICY = os.getenv("CODE_POLICY", "content").strip().lower()

# A base64 encoded SHA-256 digest has 43 significant characters.
CODE_LENGTH = max(4, min(43, _get_int("CODE_LENGTH", 8)))
MAX_CODE_ATTEMPTS = max(1, _get_int("MAX_CODE_ATTEMPTS", 5))


def short_url(code: str, base_url: Optional[str] = None) -> str:
    base = BASE_URL if base_url is None else base_url
    return f"{base.rstrip('/')}/{code}"
