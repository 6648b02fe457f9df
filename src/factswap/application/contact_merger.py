"""Merge an incoming share into the local contact store. Idempotent per (remote_id, group id, fact id)."""

import logging
from collections.abc import Iterable
from dataclasses import replace
from datetime import datetime, timezone

from factswap.application.dto import MergeResult
from factswap.application.errors import MissingIdentityError
from factswap.application.events import ContactMerged, MergeEvents
from factswap.application.ports import ContactStore
from factswap.domain import Contact, ContactGroup, Fact, ShareGroup, SharePayload
from factswap.domain.entities import (
    DEFAULT_CONTACT_NAME,
    DEFAULT_GROUP_COLOR,
    DEFAULT_GROUP_NAME,
    FACT_TEXT_LIMIT,
)

logger = logging.getLogger(__name__)


class ContactMerger:
    """Find-or-create the contact for payload.owner.id and add the facts it does not have yet.

    The store is read and written as a whole collection; callers must not run
    two merges against the same store concurrently.
    """

    def __init__(self, store: ContactStore, *, events: MergeEvents | None = None) -> None:
        self._store = store
        self.events = events or MergeEvents()

    def merge(self, payload: SharePayload) -> MergeResult:
        remote_id = (payload.owner.id or "").strip()
        if not remote_id:
            raise MissingIdentityError()

        contacts = self._store.load()
        index = next(
            (i for i, contact in enumerate(contacts) if contact.remote_id == remote_id),
            None,
        )

        if index is None:
            groups, added = _merge_groups((), payload.groups)
            owner = payload.owner
            contact = Contact(
                remote_id=remote_id,
                name=(owner.name or "").strip() or DEFAULT_CONTACT_NAME,
                avatar=owner.avatar,
                phone=owner.phone,
                telegram=owner.telegram,
                instagram=owner.instagram,
                groups=groups,
            )
            self._store.save([contact, *contacts])
            result = MergeResult(contact=contact, was_created=True, added_facts=added)
            logger.info("Created contact %s from share of %s (%d facts)", contact.id, remote_id, added)
            self.events.contact_merged.publish(ContactMerged(result))
            return result

        existing = contacts[index]
        updated, added = _merge_existing(existing, payload)
        if updated == existing:
            return MergeResult(contact=existing, was_created=False, added_facts=0)

        updated = replace(updated, last_updated=datetime.now(timezone.utc))
        contacts[index] = updated
        self._store.save(contacts)
        result = MergeResult(contact=updated, was_created=False, added_facts=added)
        logger.info("Merged share of %s into contact %s (+%d facts)", remote_id, updated.id, added)
        self.events.contact_merged.publish(ContactMerged(result))
        return result


def _merge_existing(contact: Contact, payload: SharePayload) -> tuple[Contact, int]:
    """Latest-wins refresh of owner fields; a channel absent from the payload keeps the stored value."""
    owner = payload.owner
    groups, added = _merge_groups(contact.groups, payload.groups)
    updated = replace(
        contact,
        name=(owner.name or "").strip() or contact.name,
        avatar=owner.avatar if owner.avatar is not None else contact.avatar,
        phone=owner.phone if owner.phone is not None else contact.phone,
        telegram=owner.telegram if owner.telegram is not None else contact.telegram,
        instagram=owner.instagram if owner.instagram is not None else contact.instagram,
        groups=groups,
    )
    return updated, added


def _merge_groups(
    local: Iterable[ContactGroup], incoming: Iterable[ShareGroup]
) -> tuple[tuple[ContactGroup, ...], int]:
    groups: dict[str, ContactGroup] = {group.id: group for group in local}
    added = 0
    for share_group in incoming:
        current = groups.get(share_group.id)
        facts = list(current.facts) if current else []
        known = {fact.id for fact in facts}
        for fact in share_group.facts:
            if not fact.id or fact.id in known or not (fact.text or "").strip():
                continue
            facts.append(Fact(id=fact.id, text=fact.text[:FACT_TEXT_LIMIT]))
            known.add(fact.id)
            added += 1
        groups[share_group.id] = ContactGroup(
            id=share_group.id,
            name=share_group.name or (current.name if current else DEFAULT_GROUP_NAME),
            color=share_group.color or (current.color if current else DEFAULT_GROUP_COLOR),
            facts=tuple(facts),
        )
    return tuple(groups.values()), added
