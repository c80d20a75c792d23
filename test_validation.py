from urllib.parse import urlsplit

import pytest

from errors import InvalidURLError
from validation import validate_url


@pytest.mark.parametrize("url", [
    "http://example.com/page",
    "https://example.com/a/b?q=1",
    "https://sub.example.org:8443/path#frag",
    "http://127.0.0.1/x",
])
def test_valid_urls_keep_scheme_host_and_path(url):
    result = validate_url(url)
    original, parsed = urlsplit(url), urlsplit(result)
    assert parsed.scheme == original.scheme
    assert parsed.hostname == original.hostname
    assert parsed.path == original.path


def test_page_url_round_trips_unchanged():
    assert validate_url("http://example.com/page") == "http://example.com/page"


def test_canonical_form_lowercases_host_and_adds_root_path():
    assert validate_url("https://Example.COM") == "https://example.com/"


@pytest.mark.parametrize("url", [
    "",
    "ftp://x.com",
    "http://nodothost",
    "http:// space.com",
    "example.com/page",
    "mailto:someone@example.com",
    "https://",
    "http://exa\tmple.com/",
    "http://exa\nmple.com/",
    "http://example\r.com/",
    "http://example.com/pa\x00th",
    "http://exa\u00a0mple.com/",
])
def test_invalid_urls_are_rejected(url):
    with pytest.raises(InvalidURLError):
        validate_url(url)


def test_invalid_url_error_is_value_error():
    with pytest.raises(ValueError, match="scheme must be http or https"):
        validate_url("ftp://x.com")
