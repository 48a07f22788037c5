"""
assignment routes

signing up and dropping out. the acting participant comes from the
X-Participant-Email header, never from the body, so nobody can sign
somebody else up through here.
"""

from __future__ import annotations

from typing import Callable

from fastapi import APIRouter, Depends, HTTPException, Query, status

from clinicshift.api.deps import get_committer, get_session, require_session, store_dep
from clinicshift.core.state import MissionStore, Session
from clinicshift.schemas.mission import Assignment, AssignmentRequest

router = APIRouter(prefix="/assignments")


@router.get("", response_model=list[Assignment])
def list_assignments(store: MissionStore = Depends(store_dep)) -> list[Assignment]:
    return store.state.assignments


@router.get("/mine", response_model=list[Assignment])
def my_assignments(
    clinic_day_id: str = Query(...),
    session: Session = Depends(get_session),
    store: MissionStore = Depends(store_dep),
) -> list[Assignment]:
    return store.get_my_assignments(session, clinic_day_id)


@router.post("", response_model=Assignment, status_code=status.HTTP_201_CREATED)
def add_assignment(
    body: AssignmentRequest,
    session: Session = Depends(require_session),
    store: MissionStore = Depends(store_dep),
    commit: Callable[[], None] = Depends(get_committer),
) -> Assignment:
    assignment = store.create_assignment(session, body.clinic_day_id, body.shift_id, body.role_id)
    if assignment is None:
        if store.is_role_full(body.clinic_day_id, body.shift_id, body.role_id):
            detail = f"Role '{body.role_id}' is full for this shift."
        else:
            detail = "You already have a role in this shift."
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=detail)

    commit()
    return assignment


@router.delete("/{assignment_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_assignment(
    assignment_id: str,
    store: MissionStore = Depends(store_dep),
    commit: Callable[[], None] = Depends(get_committer),
) -> None:
    """Unconditional. Deleting an unknown id is a no-op, not a 404."""
    store.remove_assignment(assignment_id)
    commit()
