"""Local share profile: the owner's name, channels and fact groups as stored on this device."""

import json
from dataclasses import dataclass
from pathlib import Path

from factswap.domain import Fact, Owner, PrivacyLevel, ShareGroup, parse_privacy_level
from factswap.domain.entities import DEFAULT_GROUP_COLOR
from factswap.infrastructure.phone import clean_handle, clean_phone

FALLBACK_NAME = "Me"


@dataclass(frozen=True)
class ShareProfile:
    owner: Owner
    groups: tuple[ShareGroup, ...]
    privacy: PrivacyLevel | None = None


def _clean(value) -> str | None:
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def load_share_profile(
    path: Path, profile_id: str, *, default_region: str | None = None
) -> ShareProfile:
    """Read profile.json.

    Expected keys: name, surname, phone, telegram, instagram, avatar, privacy,
    groups [{id, name, color, facts: [{id, text}]}]. Missing file -> empty profile.
    """
    path = Path(path)
    data = json.loads(path.read_text(encoding="utf-8")) if path.exists() else {}
    if not isinstance(data, dict):
        raise ValueError(f"Profile file {path} must hold an object")

    full_name = " ".join(
        part for part in (_clean(data.get("name")), _clean(data.get("surname"))) if part
    )
    owner = Owner(
        id=profile_id,
        name=full_name or FALLBACK_NAME,
        avatar=_clean(data.get("avatar")),
        phone=clean_phone(data.get("phone"), default_region),
        telegram=clean_handle(data.get("telegram")),
        instagram=clean_handle(data.get("instagram")),
    )
    groups = tuple(
        ShareGroup(
            id=str(g["id"]),
            name=str(g.get("name") or ""),
            color=str(g.get("color") or DEFAULT_GROUP_COLOR),
            facts=tuple(
                Fact(id=str(f["id"]), text=str(f.get("text") or ""))
                for f in g.get("facts") or []
            ),
        )
        for g in data.get("groups") or []
    )
    return ShareProfile(owner=owner, groups=groups, privacy=parse_privacy_level(data.get("privacy")))
