"""Device identity: a stable profile id generated once and persisted in a local state file.

The profile id is what other devices store as remote_id, so it must never
change for the lifetime of the profile.
"""

import json
import logging
import os
import uuid
from pathlib import Path

logger = logging.getLogger(__name__)

PROFILE_ID_KEY = "profile_uid"
LEGACY_PROFILE_ID_KEY = "profile_id"


def _read_state(state_file: Path) -> dict:
    if not state_file.exists():
        return {}
    try:
        state = json.loads(state_file.read_text(encoding="utf-8"))
    except ValueError as e:
        raise RuntimeError(f"State file {state_file} is not valid JSON") from e
    if not isinstance(state, dict):
        raise RuntimeError(f"State file {state_file} must hold an object")
    return state


def _write_state(state_file: Path, state: dict) -> None:
    state_file.parent.mkdir(parents=True, exist_ok=True)
    tmp = state_file.with_suffix(state_file.suffix + ".tmp")
    tmp.write_text(json.dumps(state, indent=2), encoding="utf-8")
    os.replace(tmp, state_file)


def get_or_create_profile_id(state_file: Path) -> tuple[str, bool]:
    """Return (profile_id, is_new).

    An id stored under the legacy key is migrated to PROFILE_ID_KEY and kept.
    A corrupt state file raises instead of minting a new identity.
    """
    state_file = Path(state_file)
    state = _read_state(state_file)

    existing = (state.get(PROFILE_ID_KEY) or state.get(LEGACY_PROFILE_ID_KEY) or "").strip()
    if existing:
        if state.get(PROFILE_ID_KEY) != existing:
            state[PROFILE_ID_KEY] = existing
            _write_state(state_file, state)
            logger.info("Migrated legacy profile id in %s", state_file)
        return existing, False

    profile_id = str(uuid.uuid4())
    state[PROFILE_ID_KEY] = profile_id
    _write_state(state_file, state)
    logger.info("Generated profile id %s", profile_id)
    return profile_id, True
