"""Privacy filtering of an Owner's contact channels before anything is serialized."""

from dataclasses import replace

from factswap.domain.entities import Owner, PrivacyLevel

_CHANNEL_PASSING_LEVELS = frozenset({PrivacyLevel.PUBLIC, PrivacyLevel.SECOND_DEGREE})


def parse_privacy_level(value: str | PrivacyLevel | None) -> PrivacyLevel | None:
    """Return the PrivacyLevel for value, or None when it is missing or unrecognized."""
    if value is None:
        return None
    if isinstance(value, PrivacyLevel):
        return value
    try:
        return PrivacyLevel(str(value).strip().lower())
    except ValueError:
        return None


def filter_owner(owner: Owner, level: str | PrivacyLevel | None) -> Owner:
    """Reduce owner's channels for the given level.

    public and second-degree pass channels through; the receiving side shows a
    notice for second-degree. direct-only, and any level that does not parse,
    strips phone, telegram and instagram.
    """
    parsed = parse_privacy_level(level)
    if parsed in _CHANNEL_PASSING_LEVELS:
        return owner
    return replace(owner, phone=None, telegram=None, instagram=None)


def requires_privacy_notice(level: str | PrivacyLevel | None) -> bool:
    """True when a receiving surface must warn that the share is restricted."""
    parsed = parse_privacy_level(level)
    if level is None:
        return False
    return parsed is not PrivacyLevel.PUBLIC


def allowed_privacy_levels(allow_full_privacy: bool) -> list[PrivacyLevel]:
    levels = [PrivacyLevel.PUBLIC, PrivacyLevel.SECOND_DEGREE]
    if allow_full_privacy:
        levels.append(PrivacyLevel.DIRECT_ONLY)
    return levels


def coerce_privacy_level(
    level: str | PrivacyLevel | None, *, allow_full_privacy: bool
) -> PrivacyLevel:
    """Return level if the plan allows it, else public.

    An unparseable level is treated as direct-only first, so it only downgrades
    to public when the plan does not allow direct-only at all.
    """
    parsed = parse_privacy_level(level)
    if level is not None and parsed is None:
        parsed = PrivacyLevel.DIRECT_ONLY
    if parsed in allowed_privacy_levels(allow_full_privacy):
        return parsed
    return PrivacyLevel.PUBLIC
