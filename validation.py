from urllib.parse import urlsplit

from pydantic import HttpUrl, TypeAdapter, ValidationError

from errors import InvalidURLError

ALLOWED_SCHEMES = ("http", "https")

_http_url = TypeAdapter(HttpUrl)


def validate_url(raw: str) -> str:
    """Check ``raw`` is an absolute http(s) URL and return its canonical form.

    The host must contain a dot and no whitespace. The returned string is
    pydantic's serialization of the URL, so the host is lower-cased and a bare
    host gains a trailing slash.
    """
    if not raw:
        raise InvalidURLError("URL is empty")
    # urlsplit strips tabs and newlines, so they are checked on the raw input.
    if any(ord(ch) < 0x20 or ord(ch) == 0x7f for ch in raw):
        raise InvalidURLError("invalid control character in URL")

    try:
        parts = urlsplit(raw)
    except ValueError as exc:
        raise InvalidURLError(f"invalid URL format: {exc}") from exc

    if not parts.scheme or not parts.netloc:
        raise InvalidURLError("URL missing scheme or host")
    if parts.scheme not in ALLOWED_SCHEMES:
        raise InvalidURLError("URL scheme must be http or https")

    host = parts.hostname or ""
    if "." not in host or any(ch.isspace() for ch in parts.netloc):
        raise InvalidURLError("invalid host in URL")

    try:
        url = _http_url.validate_python(raw)
    except ValidationError as exc:
        message = exc.errors()[0]["msg"] if exc.errors() else str(exc)
        raise InvalidURLError(f"invalid URL format: {message}") from exc

    return str(url)
