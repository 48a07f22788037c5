"""
shared route dependencies

- the acting session comes from the X-Participant-Email header
- commit() schedules the boundary writes (local snapshot + remote outbox)
  as background tasks, so responses never wait on storage
"""

from __future__ import annotations

from typing import Callable, Optional

from fastapi import BackgroundTasks, Depends, Header, HTTPException, Request, status

from clinicshift.core.state import MissionStore, Session, get_store


def store_dep() -> MissionStore:
    return get_store()


def get_session(
    x_participant_email: Optional[str] = Header(default=None),
    store: MissionStore = Depends(store_dep),
) -> Session:
    return store.session_for(x_participant_email)


def require_session(session: Session = Depends(get_session)) -> Session:
    if not session.is_authenticated:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Log in first via POST /session/login and send X-Participant-Email.",
        )
    return session


def get_committer(
    request: Request,
    background_tasks: BackgroundTasks,
) -> Callable[[], None]:
    def commit() -> None:
        store = get_store()
        storage = getattr(request.app.state, "storage", None)
        if storage is not None:
            background_tasks.add_task(storage.save, store.state.model_copy(deep=True))
        if store.outbox is not None:
            background_tasks.add_task(store.outbox.flush)

    return commit
