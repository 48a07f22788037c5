from __future__ import annotations

from typing import Callable, Optional

from fastapi import APIRouter, Depends, status

from clinicshift.api.deps import get_committer, get_session, store_dep
from clinicshift.core.state import MissionStore, Session
from clinicshift.schemas.mission import LoginRequest, Participant

router = APIRouter(prefix="/session")


@router.post("/login", response_model=Participant)
def login(
    body: LoginRequest,
    store: MissionStore = Depends(store_dep),
    commit: Callable[[], None] = Depends(get_committer),
) -> Participant:
    """
    Finds the participant by email (any casing) or creates one.

    Send the returned email as X-Participant-Email on later requests.
    """
    session = store.login(body.email, body.name)
    commit()
    return session.participant


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
def logout(
    session: Session = Depends(get_session),
    store: MissionStore = Depends(store_dep),
    commit: Callable[[], None] = Depends(get_committer),
) -> None:
    store.logout(session)
    commit()


@router.get("/me", response_model=Optional[Participant])
def me(session: Session = Depends(get_session)) -> Optional[Participant]:
    return session.participant
