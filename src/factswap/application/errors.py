"""Typed failures of the share flow. Each degrades one share or merge attempt, never the session."""


class ShareError(Exception):
    """Base exception for share, alias and exchange failures."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class InvalidShareToken(ShareError):
    """Token is corrupt, truncated, or of an unsupported version. Shown as "link is invalid"."""

    def __init__(self, reason: str) -> None:
        super().__init__("The share link is invalid.")
        self.reason = reason


class StaleAliasError(ShareError):
    """A short link could not be expanded. Shown as "link has expired"."""

    def __init__(self, slug: str, message: str = "The share link has expired. Ask for a new QR code.") -> None:
        super().__init__(message)
        self.slug = slug


class UnknownAlias(StaleAliasError):
    pass


class ExpiredAlias(StaleAliasError):
    pass


class MissingIdentityError(ShareError):
    """Payload has no owner id, so there is nothing to merge it into."""

    def __init__(self) -> None:
        super().__init__("The shared profile has no identity and cannot be saved.")


class RemoteServiceError(ShareError):
    """Server or network failure. Recoverable; local and queue state are untouched."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
