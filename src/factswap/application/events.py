"""Typed publish/subscribe channels for contact-store refresh notifications."""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Generic, TypeVar

from factswap.application.dto import MergeResult

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class ContactMerged:
    """Published after a merge changed the contact store."""

    result: MergeResult


@dataclass(frozen=True)
class ExchangesApplied:
    """Published after a drained batch of exchanges has been merged."""

    contact_ids: tuple[str, ...]
    added_facts: int


class Subscription:
    def __init__(self, unsubscribe: Callable[[], None]) -> None:
        self._unsubscribe = unsubscribe
        self.active = True

    def unsubscribe(self) -> None:
        if self.active:
            self._unsubscribe()
            self.active = False


class Channel(Generic[T]):
    """Synchronous channel for one event type. A failing handler does not stop the others."""

    def __init__(self, name: str) -> None:
        self.name = name
        self._handlers: list[Callable[[T], None]] = []

    def subscribe(self, handler: Callable[[T], None]) -> Subscription:
        if handler not in self._handlers:
            self._handlers.append(handler)
        return Subscription(lambda: self._remove(handler))

    def _remove(self, handler: Callable[[T], None]) -> None:
        if handler in self._handlers:
            self._handlers.remove(handler)

    def publish(self, event: T) -> None:
        for handler in list(self._handlers):
            try:
                handler(event)
            except Exception:
                logger.exception(
                    "Handler %s failed on channel '%s'",
                    getattr(handler, "__name__", repr(handler)),
                    self.name,
                )

    def __len__(self) -> int:
        return len(self._handlers)


@dataclass
class MergeEvents:
    contact_merged: Channel[ContactMerged] = field(
        default_factory=lambda: Channel("contact_merged")
    )
    exchanges_applied: Channel[ExchangesApplied] = field(
        default_factory=lambda: Channel("exchanges_applied")
    )
