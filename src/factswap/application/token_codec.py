"""Share token codec: SharePayload <-> compact URL-safe token, link building and QR capacity checks.

Token format: SHARE_PREFIX + base64url(utf-8 compact JSON), no padding.
Encoding is deterministic, so unchanged content always renders the same token.
"""

import base64
import binascii
import json
import re
from urllib.parse import parse_qs, unquote, urlsplit

from factswap.application.dto import CapacityReport
from factswap.application.errors import InvalidShareToken
from factswap.application.wire import payload_from_wire, payload_to_wire
from factswap.domain import SharePayload

SHARE_PREFIX = "factswap-v1:"
_MARKER_FAMILY = "factswap-v"

# Byte capacity of a version 40 QR symbol at error-correction level L.
QR_SAFE_LENGTH = 2953

_BODY_RE = re.compile(r"^[A-Za-z0-9_-]+$")
_TOKEN_RE = re.compile(re.escape(SHARE_PREFIX) + r"[A-Za-z0-9_-]+")
_SLUG_RE = re.compile(r"^[A-Za-z0-9]{4,64}$")
_SHARE_PATH = "/share/"


def encode(payload: SharePayload) -> str:
    raw = json.dumps(
        payload_to_wire(payload), ensure_ascii=False, separators=(",", ":")
    ).encode("utf-8")
    body = base64.urlsafe_b64encode(raw).decode("ascii").rstrip("=")
    return SHARE_PREFIX + body


def decode(token: str) -> SharePayload:
    """Parse and validate a token. Raises InvalidShareToken on any structural or version failure."""
    if not isinstance(token, str):
        raise InvalidShareToken("token is not a string")
    token = token.strip()
    if not token.startswith(SHARE_PREFIX):
        if token.startswith(_MARKER_FAMILY):
            raise InvalidShareToken("unsupported token version")
        raise InvalidShareToken("share marker missing")
    body = token[len(SHARE_PREFIX) :]
    if not _BODY_RE.match(body):
        raise InvalidShareToken("token body is not base64url")
    try:
        raw = base64.urlsafe_b64decode(body + "=" * (-len(body) % 4))
        data = json.loads(raw.decode("utf-8"))
    except (binascii.Error, UnicodeDecodeError, ValueError, RecursionError) as e:
        raise InvalidShareToken("token body cannot be decoded") from e
    return payload_from_wire(data)


def build_share_url(token: str, origin: str) -> str:
    """Full share link: <origin>/share?token=<token>. Returns the bare token when origin is empty."""
    if not token:
        return ""
    origin = (origin or "").strip().rstrip("/")
    if not origin:
        return token
    return f"{origin}/share?token={token}"


def build_alias_url(slug: str, origin: str) -> str:
    origin = (origin or "").strip().rstrip("/")
    return f"{origin}{_SHARE_PATH}{slug}"


def extract_share_token(value: str | None) -> str | None:
    """Find a share token in a bare token, a link, or any pasted text (percent-encoding tolerated)."""
    if not value:
        return None
    candidate = value.strip()
    for _ in range(3):
        match = _TOKEN_RE.search(candidate)
        if match:
            return match.group(0)
        decoded = unquote(candidate)
        if decoded == candidate:
            break
        candidate = decoded
    return None


def extract_alias_slug(value: str | None) -> str | None:
    """Return the alias slug from /share/<slug>, ?slug=<slug>, or a bare slug; None if value holds a token."""
    if not value:
        return None
    text = value.strip()
    if not text or extract_share_token(text):
        return None
    slug = text
    if "://" in text or text.startswith("/"):
        parts = urlsplit(text)
        from_query = parse_qs(parts.query).get("slug")
        if from_query:
            slug = from_query[0]
        elif parts.path.startswith(_SHARE_PATH):
            slug = unquote(parts.path[len(_SHARE_PATH) :]).strip("/")
        else:
            return None
    slug = slug.strip()
    return slug if _SLUG_RE.match(slug) else None


def check_capacity(link: str, limit: int = QR_SAFE_LENGTH) -> CapacityReport:
    """Measure the final shareable string. A length equal to the limit still fits."""
    return CapacityReport(length=len(link.encode("utf-8")), limit=limit)


def measure_share_link(
    payload: SharePayload, origin: str, limit: int = QR_SAFE_LENGTH
) -> CapacityReport:
    return check_capacity(build_share_url(encode(payload), origin), limit)
