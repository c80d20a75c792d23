import re

from codegen import SHORT_CODE_LENGTH, candidate_codes, generate_short_code

URL_SAFE = re.compile(r"^[A-Za-z0-9_-]+$")


def test_code_is_eight_url_safe_characters():
    code = generate_short_code("http://example.com/page")
    assert len(code) == SHORT_CODE_LENGTH == 8
    assert URL_SAFE.match(code)


def test_code_is_deterministic_without_salt():
    assert generate_short_code("http://example.com/page") == generate_short_code("http://example.com/page")
    assert generate_short_code("http://example.com/page") != generate_short_code("http://example.com/other")


def test_salt_changes_code():
    assert generate_short_code("http://example.com", salt="2024") != generate_short_code("http://example.com")


def test_custom_length():
    assert len(generate_short_code("http://example.com", length=12)) == 12


def test_candidates_start_with_plain_hash_and_are_distinct():
    codes = list(candidate_codes("http://example.com", attempts=4))
    assert len(codes) == 4
    assert codes[0] == generate_short_code("http://example.com")
    assert len(set(codes)) == 4


def test_fresh_candidates_differ_from_plain_hash():
    codes = list(candidate_codes("http://example.com", attempts=1, fresh=True))
    assert codes[0] != generate_short_code("http://example.com")
