"""Tests for shared channel cleanup: E.164 phone numbers and @handles."""

from factswap.infrastructure.phone import clean_handle, clean_phone, normalize_phone


def test_normalize_with_country_code_returns_e164():
    assert normalize_phone("+39 312 345 6789", default_region=None) == "+393123456789"
    assert normalize_phone("+1 202 555 1234", default_region=None) == "+12025551234"


def test_normalize_without_country_code_uses_default_region():
    assert normalize_phone("202 555 1234", default_region="US") == "+12025551234"


def test_normalize_invalid_returns_none():
    assert normalize_phone("", default_region=None) is None
    assert normalize_phone("abc", default_region=None) is None
    assert normalize_phone("123", default_region="US") is None  # too short


def test_clean_phone_keeps_unparseable_input_as_typed():
    assert clean_phone(" (202) 555-1234 ", "US") == "+12025551234"
    assert clean_phone("ext. 42") == "ext. 42"
    assert clean_phone("   ") is None
    assert clean_phone(None) is None


def test_clean_handle_single_at_prefix():
    assert clean_handle("dana") == "@dana"
    assert clean_handle("@dana") == "@dana"
    assert clean_handle(" @@dana ") == "@dana"
    assert clean_handle("@") is None
    assert clean_handle("") is None
    assert clean_handle(None) is None
