"""Domain entities: share snapshot (Owner, ShareGroup, SharePayload), local Contact, server records."""

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum

SHARE_VERSION = 1

# Bounds applied when a payload is sanitized for sharing.
FACT_TEXT_LIMIT = 4000
NAME_MAX_LENGTH = 64
CHANNEL_MAX_LENGTH = 64
AVATAR_MAX_LENGTH = 256
DEFAULT_GROUP_COLOR = "#475569"
DEFAULT_CONTACT_NAME = "New contact"
DEFAULT_GROUP_NAME = "Facts"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class PrivacyLevel(str, Enum):
    PUBLIC = "public"
    SECOND_DEGREE = "second-degree"
    DIRECT_ONLY = "direct-only"


class ExchangeStatus(str, Enum):
    PENDING = "pending"
    DELIVERED = "delivered"


@dataclass(frozen=True)
class Owner:
    """
    Identity and contact-channel snapshot of the person presenting a share.
    id is generated once per device/profile and is the merge key on the receiving side.
    """

    id: str
    name: str
    avatar: str | None = None
    phone: str | None = None
    telegram: str | None = None
    instagram: str | None = None


@dataclass(frozen=True)
class Fact:
    id: str
    text: str


@dataclass(frozen=True)
class ShareGroup:
    """A named, coloured group of facts. id is stable across renames and recolours."""

    id: str
    name: str
    color: str = DEFAULT_GROUP_COLOR
    facts: tuple[Fact, ...] = ()


@dataclass(frozen=True)
class SharePayload:
    """
    Versioned snapshot of an owner and a selection of fact groups.
    Built fresh on every render of a share surface; never stored as its own entity.
    """

    owner: Owner
    groups: tuple[ShareGroup, ...] = ()
    generated_at: int = 0
    privacy: PrivacyLevel | None = None
    v: int = SHARE_VERSION


@dataclass(frozen=True)
class ContactNote:
    """User-authored annotation on a contact. Never touched by a merge."""

    text: str
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    created_at: datetime = field(default_factory=_utcnow)

    def __post_init__(self):
        if not self.text or not self.text.strip():
            raise ValueError("ContactNote text must be non-empty.")


@dataclass(frozen=True)
class ContactGroup:
    id: str
    name: str
    color: str = DEFAULT_GROUP_COLOR
    facts: tuple[Fact, ...] = ()

    def fact_ids(self) -> set[str]:
        return {fact.id for fact in self.facts}


@dataclass(frozen=True)
class Contact:
    """
    A person in the local contact store.
    Contacts created from a share carry the sender's Owner.id as remote_id;
    manually-created contacts have none.
    """

    name: str
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    remote_id: str | None = None
    avatar: str | None = None
    phone: str | None = None
    telegram: str | None = None
    instagram: str | None = None
    groups: tuple[ContactGroup, ...] = ()
    notes: tuple[ContactNote, ...] = ()
    connected_at: datetime = field(default_factory=_utcnow)
    last_updated: datetime = field(default_factory=_utcnow)

    def __post_init__(self):
        if not self.name or not self.name.strip():
            raise ValueError("Contact name must be non-empty.")

    def fact_count(self) -> int:
        return sum(len(group.facts) for group in self.groups)


@dataclass(frozen=True)
class ExchangeRecord:
    """
    Server-side reciprocal payload waiting for its target profile.
    Once consumed_at is set the record is never returned by a poll again.
    """

    initiator_profile_id: str
    target_profile_id: str
    payload: SharePayload
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    status: ExchangeStatus = ExchangeStatus.PENDING
    created_at: datetime = field(default_factory=_utcnow)
    consumed_at: datetime | None = None


@dataclass(frozen=True)
class AliasRecord:
    """Short slug standing in for a full share token until expires_at."""

    slug: str
    token: str
    expires_at: datetime
    created_at: datetime = field(default_factory=_utcnow)

    def is_expired(self, now: datetime | None = None) -> bool:
        return self.expires_at <= (now or _utcnow())
