"""Phone number normalization to E.164 and handle cleanup for shared contact channels."""

import phonenumbers


def normalize_phone(raw: str, default_region: str | None = None) -> str | None:
    """Parse and return E.164 form of the number, or None if invalid.

    Use default_region when the input has no leading + (e.g. "123 456 7890"
    with default_region "IT" for Italy). If the number already includes a
    country code, default_region is ignored.
    """
    if not raw or not str(raw).strip():
        return None
    raw = str(raw).strip()
    try:
        parsed = phonenumbers.parse(raw, default_region)
    except phonenumbers.NumberParseException:
        return None
    if not phonenumbers.is_valid_number(parsed):
        return None
    return phonenumbers.format_number(parsed, phonenumbers.PhoneNumberFormat.E164)


def clean_phone(raw: str | None, default_region: str | None = None) -> str | None:
    """E.164 when the number parses, otherwise the trimmed input as the user typed it."""
    if not raw or not str(raw).strip():
        return None
    return normalize_phone(raw, default_region) or str(raw).strip()


def clean_handle(raw: str | None) -> str | None:
    """Return a social handle with exactly one leading @, or None when blank."""
    if not raw:
        return None
    handle = str(raw).strip().lstrip("@").strip()
    return f"@{handle}" if handle else None
