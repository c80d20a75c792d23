import base64
import hashlib
from datetime import datetime
from typing import Iterator

SHORT_CODE_LENGTH = 8


def generate_short_code(url: str, salt: str = "", length: int = SHORT_CODE_LENGTH) -> str:
    """Hash ``url + salt`` with SHA-256 and keep the first ``length`` URL-safe base64 characters."""
    digest = hashlib.sha256((url + salt).encode("utf-8")).digest()
    return base64.urlsafe_b64encode(digest).decode("ascii")[:length]


def timestamp_salt() -> str:
    return datetime.utcnow().isoformat()


def candidate_codes(url: str, attempts: int, fresh: bool = False,
                    length: int = SHORT_CODE_LENGTH) -> Iterator[str]:
    """Yield up to ``attempts`` distinct candidate codes for ``url``.

    The first candidate for a given URL is stable unless ``fresh`` is set, in
    which case the current time is mixed into every candidate. Later candidates
    append the attempt number to the salt.
    """
    base = timestamp_salt() if fresh else ""
    for attempt in range(attempts):
        salt = base if attempt == 0 else f"{base}#{attempt}"
        yield generate_short_code(url, salt, length)
