"""Domain layer: entities, value objects and the privacy filter. No dependencies on outer layers."""

from factswap.domain.entities import (
    SHARE_VERSION,
    AliasRecord,
    Contact,
    ContactGroup,
    ContactNote,
    ExchangeRecord,
    ExchangeStatus,
    Fact,
    Owner,
    PrivacyLevel,
    ShareGroup,
    SharePayload,
)
from factswap.domain.privacy import (
    allowed_privacy_levels,
    coerce_privacy_level,
    filter_owner,
    parse_privacy_level,
    requires_privacy_notice,
)

__all__ = [
    "SHARE_VERSION",
    "AliasRecord",
    "Contact",
    "ContactGroup",
    "ContactNote",
    "ExchangeRecord",
    "ExchangeStatus",
    "Fact",
    "Owner",
    "PrivacyLevel",
    "ShareGroup",
    "SharePayload",
    "allowed_privacy_levels",
    "coerce_privacy_level",
    "filter_owner",
    "parse_privacy_level",
    "requires_privacy_notice",
]
