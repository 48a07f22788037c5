"""
state routes

these endpoints deal with the state as a whole:
- look at everything (our debug dashboard)
- reset to the built-in defaults
- download a backup, or restore one
"""

from __future__ import annotations

from datetime import date
from typing import Callable

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status

from clinicshift.api.deps import get_committer, store_dep
from clinicshift.core.errors import SnapshotFormatError
from clinicshift.core.logging import get_logger
from clinicshift.core.state import MissionStore, reset_store
from clinicshift.schemas.mission import MissionState
from clinicshift.services.persistence import export_snapshot, parse_snapshot, snapshot_filename

logger = get_logger(__name__)

router = APIRouter(prefix="/state")


@router.get("", response_model=MissionState)
def get_state(store: MissionStore = Depends(store_dep)) -> MissionState:
    """
    Returns the current in-memory state.

    If something looks wrong, check /state first.
    """
    return store.state


@router.post("/reset", status_code=status.HTTP_204_NO_CONTENT)
def reset_state(commit: Callable[[], None] = Depends(get_committer)) -> None:
    reset_store()
    commit()


@router.get("/export")
def export_state(store: MissionStore = Depends(store_dep)) -> Response:
    """Backup file, named after today's date."""
    return Response(
        content=export_snapshot(store.state),
        media_type="application/json",
        headers={"Content-Disposition": f'attachment; filename="{snapshot_filename(date.today())}"'},
    )


@router.post("/import", response_model=MissionState)
async def import_state(
    request: Request,
    store: MissionStore = Depends(store_dep),
    commit: Callable[[], None] = Depends(get_committer),
) -> MissionState:
    """
    Replaces everything with the uploaded snapshot (raw JSON body).

    Roles and shifts always come from the built-in catalog.
    """
    raw = await request.body()
    try:
        snapshot = parse_snapshot(raw)
    except SnapshotFormatError as exc:
        logger.info("Rejected import: %s", exc.reason)
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="Invalid format",
        ) from exc

    store.replace_state(snapshot)
    commit()
    return store.state
