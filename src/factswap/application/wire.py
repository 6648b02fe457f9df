"""SharePayload wire schema (v=1) and conversion to and from domain types.

Wire shape:
    {v: 1, owner: {id, name, avatar?, phone?, telegram?, instagram?},
     groups: [{id, name, color, facts: [{id, text}]}],
     generatedAt: epoch-ms int, privacy?: "public" | "second-degree" | "direct-only"}
"""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from factswap.application.errors import InvalidShareToken
from factswap.domain import (
    SHARE_VERSION,
    Fact,
    Owner,
    PrivacyLevel,
    ShareGroup,
    SharePayload,
)

SUPPORTED_VERSIONS = frozenset({SHARE_VERSION})


def _non_blank(value: str) -> str:
    if not value.strip():
        raise ValueError("must be non-empty")
    return value


class WireFact(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str = Field(strict=True)
    text: str = Field(strict=True)

    @field_validator("id")
    @classmethod
    def check_id(cls, value: str) -> str:
        return _non_blank(value)


class WireGroup(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str = Field(strict=True)
    name: str = Field(strict=True)
    color: str = Field(strict=True)
    facts: list[WireFact]

    @field_validator("id")
    @classmethod
    def check_id(cls, value: str) -> str:
        return _non_blank(value)


class WireOwner(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str = Field(strict=True)
    name: str = Field(strict=True)
    avatar: str | None = Field(default=None, strict=True)
    phone: str | None = Field(default=None, strict=True)
    telegram: str | None = Field(default=None, strict=True)
    instagram: str | None = Field(default=None, strict=True)

    @field_validator("id", "name")
    @classmethod
    def check_required(cls, value: str) -> str:
        return _non_blank(value)


class WirePayload(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    v: int = Field(strict=True)
    owner: WireOwner
    groups: list[WireGroup]
    generated_at: int = Field(alias="generatedAt", strict=True)
    privacy: Literal["public", "second-degree", "direct-only"] | None = None


def payload_to_wire(payload: SharePayload) -> dict[str, Any]:
    """Dict form with a fixed key order; absent optional fields are omitted."""
    owner = payload.owner
    owner_dict: dict[str, Any] = {"id": owner.id, "name": owner.name}
    for key in ("avatar", "phone", "telegram", "instagram"):
        value = getattr(owner, key)
        if value is not None:
            owner_dict[key] = value
    wire: dict[str, Any] = {
        "v": payload.v,
        "owner": owner_dict,
        "groups": [
            {
                "id": group.id,
                "name": group.name,
                "color": group.color,
                "facts": [{"id": fact.id, "text": fact.text} for fact in group.facts],
            }
            for group in payload.groups
        ],
        "generatedAt": payload.generated_at,
    }
    if payload.privacy is not None:
        wire["privacy"] = payload.privacy.value
    return wire


def payload_from_wire(data: Any) -> SharePayload:
    """Validate a decoded wire dict and build the domain payload. Raises InvalidShareToken."""
    if not isinstance(data, dict):
        raise InvalidShareToken("payload is not an object")
    version = data.get("v")
    if type(version) is not int or version not in SUPPORTED_VERSIONS:
        raise InvalidShareToken(f"unsupported version: {version!r}")
    try:
        wire = WirePayload.model_validate(data)
    except ValidationError as e:
        raise InvalidShareToken(f"malformed payload: {e.error_count()} error(s)") from e
    return SharePayload(
        v=wire.v,
        owner=Owner(
            id=wire.owner.id,
            name=wire.owner.name,
            avatar=wire.owner.avatar,
            phone=wire.owner.phone,
            telegram=wire.owner.telegram,
            instagram=wire.owner.instagram,
        ),
        groups=tuple(
            ShareGroup(
                id=group.id,
                name=group.name,
                color=group.color,
                facts=tuple(Fact(id=fact.id, text=fact.text) for fact in group.facts),
            )
            for group in wire.groups
        ),
        generated_at=wire.generated_at,
        privacy=PrivacyLevel(wire.privacy) if wire.privacy is not None else None,
    )
