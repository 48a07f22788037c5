"""
local snapshot storage and import/export

the snapshot is one JSON document with the full MissionState shape
(camelCase keys). the same format is used for:
- the local file we rewrite after every change
- the backup file coordinators download
- the file they upload to restore a backup

roles and shifts in a snapshot are ignored on the way in. the built-in
catalog always wins, so an old backup cannot bring back stale roles.
"""

from __future__ import annotations

import json
from datetime import date
from pathlib import Path
from typing import Optional, Union

from pydantic import ValidationError

from clinicshift.core.errors import SnapshotFormatError
from clinicshift.core.logging import get_logger
from clinicshift.data.catalog import ROLES, SHIFTS, initial_state
from clinicshift.schemas.mission import MissionState

logger = get_logger(__name__)


BACKUP_PREFIX = "clinicshift-backup"


def export_snapshot(state: MissionState) -> str:
    return state.model_dump_json(by_alias=True, indent=2)


def snapshot_filename(on: Optional[date] = None) -> str:
    return f"{BACKUP_PREFIX}-{(on or date.today()).isoformat()}.json"


def parse_snapshot(raw: Union[str, bytes]) -> MissionState:
    """
    Parses an uploaded backup.

    Missing collections come back empty. Catalogs are re-pinned.
    Raises SnapshotFormatError for anything that is not a valid snapshot.
    """
    try:
        data = json.loads(raw)
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise SnapshotFormatError("not JSON", {"error": str(exc)}) from exc

    if not isinstance(data, dict):
        raise SnapshotFormatError("top level must be an object")

    try:
        state = MissionState.model_validate(data)
    except ValidationError as exc:
        raise SnapshotFormatError("schema mismatch", {"errors": exc.errors()}) from exc

    return state.model_copy(update={"roles": list(ROLES), "shifts": list(SHIFTS)})


class LocalSnapshotStorage:
    """The on-device copy of the state. Reads and writes never raise."""

    def __init__(self, path: Union[str, Path]) -> None:
        self.path = Path(path)

    def load(self) -> MissionState:
        """
        Stored snapshot merged over the defaults, or just the defaults.

        Merging means a snapshot written before a collection existed
        still picks up that collection's default.
        """
        if not self.path.exists():
            return initial_state()

        try:
            stored = json.loads(self.path.read_text(encoding="utf-8"))
            merged = initial_state().model_dump(mode="json", by_alias=True)
            merged.update(stored)
            state = MissionState.model_validate(merged)
        except (OSError, ValueError, TypeError):
            logger.exception("Error loading snapshot from %s, using defaults", self.path)
            return initial_state()

        return state.model_copy(update={"roles": list(ROLES), "shifts": list(SHIFTS)})

    def save(self, state: MissionState) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(export_snapshot(state), encoding="utf-8")
        except OSError:
            logger.exception("Error saving snapshot to %s", self.path)

    def clear(self) -> None:
        self.path.unlink(missing_ok=True)
