"""
participant routes (admin screens)

participants are never deleted. admins add people ahead of time or fix
names / roles, everyone else gets created on first login.
"""

from __future__ import annotations

from typing import Callable

from fastapi import APIRouter, Depends, HTTPException, status

from clinicshift.api.deps import get_committer, store_dep
from clinicshift.core.state import MissionStore
from clinicshift.schemas.mission import Participant

router = APIRouter(prefix="/participants")


@router.get("", response_model=list[Participant])
def list_participants(store: MissionStore = Depends(store_dep)) -> list[Participant]:
    return store.state.participants


@router.post("", response_model=Participant, status_code=status.HTTP_201_CREATED)
def add_participant(
    participant: Participant,
    store: MissionStore = Depends(store_dep),
    commit: Callable[[], None] = Depends(get_committer),
) -> Participant:
    if store.find_participant_by_email(participant.email) is not None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Participant with email '{participant.email}' already exists.",
        )

    created = store.add_participant(
        name=participant.name,
        email=participant.email,
        primary_role=participant.primary_role,
        is_admin=participant.is_admin,
    )
    commit()
    return created


@router.put("/{participant_id}", response_model=Participant)
def update_participant(
    participant_id: str,
    participant: Participant,
    store: MissionStore = Depends(store_dep),
    commit: Callable[[], None] = Depends(get_committer),
) -> Participant:
    if not any(p.id == participant_id for p in store.state.participants):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Participant '{participant_id}' not found.",
        )

    updated = participant.model_copy(update={"id": participant_id})
    if not store.update_participant(updated):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Participant with email '{participant.email}' already exists.",
        )
    commit()
    return updated.model_copy(update={"email": updated.email.strip().lower()})
