"""File-backed ContactStore: the whole collection as one JSON document."""

import json
import logging
import os
from datetime import datetime
from pathlib import Path
from typing import Any

from factswap.domain import Contact, ContactGroup, ContactNote, Fact

logger = logging.getLogger(__name__)


def _datetime_to_iso(dt: datetime) -> str:
    return dt.isoformat()


def _iso_to_datetime(s: str) -> datetime:
    return datetime.fromisoformat(s.replace("Z", "+00:00"))


def contact_to_dict(contact: Contact) -> dict[str, Any]:
    return {
        "id": contact.id,
        "remoteId": contact.remote_id,
        "name": contact.name,
        "avatar": contact.avatar,
        "phone": contact.phone,
        "telegram": contact.telegram,
        "instagram": contact.instagram,
        "groups": [
            {
                "id": g.id,
                "name": g.name,
                "color": g.color,
                "facts": [{"id": f.id, "text": f.text} for f in g.facts],
            }
            for g in contact.groups
        ],
        "notes": [
            {"id": n.id, "text": n.text, "createdAt": _datetime_to_iso(n.created_at)}
            for n in contact.notes
        ],
        "connectedAt": _datetime_to_iso(contact.connected_at),
        "lastUpdated": _datetime_to_iso(contact.last_updated),
    }


def contact_from_dict(data: dict[str, Any]) -> Contact:
    return Contact(
        id=data["id"],
        remote_id=data.get("remoteId") or None,
        name=data["name"],
        avatar=data.get("avatar"),
        phone=data.get("phone"),
        telegram=data.get("telegram"),
        instagram=data.get("instagram"),
        groups=tuple(
            ContactGroup(
                id=g["id"],
                name=g["name"],
                color=g["color"],
                facts=tuple(Fact(id=f["id"], text=f["text"]) for f in g.get("facts") or []),
            )
            for g in data.get("groups") or []
        ),
        notes=tuple(
            ContactNote(id=n["id"], text=n["text"], created_at=_iso_to_datetime(n["createdAt"]))
            for n in data.get("notes") or []
        ),
        connected_at=_iso_to_datetime(data["connectedAt"]),
        last_updated=_iso_to_datetime(data["lastUpdated"]),
    )


class JsonContactStore:
    """Reads and writes the entire contact collection. Writes go through a temp file and os.replace."""

    def __init__(self, path: Path) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> list[Contact]:
        if not self._path.exists():
            return []
        try:
            raw = json.loads(self._path.read_text(encoding="utf-8"))
            if not isinstance(raw, list):
                raise ValueError("contact file must hold a list")
            return [contact_from_dict(item) for item in raw]
        except (ValueError, KeyError, TypeError) as e:
            backup = self._path.with_suffix(self._path.suffix + ".corrupt")
            logger.error("Unreadable contact file %s (%s); moved to %s", self._path, e, backup)
            os.replace(self._path, backup)
            return []

    def save(self, contacts: list[Contact]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self._path.with_suffix(self._path.suffix + ".tmp")
        tmp.write_text(
            json.dumps([contact_to_dict(c) for c in contacts], ensure_ascii=False, indent=2),
            encoding="utf-8",
        )
        os.replace(tmp, self._path)
