"""
clinic day routes

two halves:
- admin CRUD for the clinic days themselves
- read-only coordinator views for one day (staffing grid, help needed,
  who still has free shifts, projected patients, tickets)

the views never 404 on unknown ids. an unknown day just has no
assignments, so everything comes back empty or zero.
"""

from __future__ import annotations

from typing import Callable

from fastapi import APIRouter, Depends, HTTPException, status

from clinicshift.api.deps import get_committer, store_dep
from clinicshift.core.state import MissionStore
from clinicshift.schemas.mission import (
    ClinicDay,
    DayCapacity,
    ParticipantLoad,
    RoleShiftStatus,
    RoleShiftStatusResponse,
    ShiftId,
    TicketUtilization,
)
from clinicshift.services.calculations import (
    compute_all_statuses,
    compute_day_capacity,
    compute_recommended_tickets,
    compute_role_shift_status,
    compute_staffing_color,
    compute_ticket_utilization,
    compute_understaffed_roles,
    compute_unassigned_participants,
)

router = APIRouter(prefix="/clinic-days")


def _not_found(clinic_day_id: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail=f"Clinic day '{clinic_day_id}' not found.",
    )


# -------------------------
# Admin CRUD
# -------------------------


@router.get("", response_model=list[ClinicDay])
def list_clinic_days(store: MissionStore = Depends(store_dep)) -> list[ClinicDay]:
    return store.state.clinic_days


@router.get("/next", response_model=ClinicDay)
def next_clinic_day(store: MissionStore = Depends(store_dep)) -> ClinicDay:
    """Today's clinic day, or the next one coming up."""
    day = store.get_next_clinic_day()
    if day is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="No upcoming clinic days.",
        )
    return day


@router.post("", response_model=ClinicDay, status_code=status.HTTP_201_CREATED)
def add_clinic_day(
    clinic_day: ClinicDay,
    store: MissionStore = Depends(store_dep),
    commit: Callable[[], None] = Depends(get_committer),
) -> ClinicDay:
    if store.get_clinic_day(clinic_day.id) is not None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Clinic day with id '{clinic_day.id}' already exists.",
        )
    store.add_clinic_day(clinic_day)
    commit()
    return clinic_day


@router.put("/{clinic_day_id}", response_model=ClinicDay)
def update_clinic_day(
    clinic_day_id: str,
    clinic_day: ClinicDay,
    store: MissionStore = Depends(store_dep),
    commit: Callable[[], None] = Depends(get_committer),
) -> ClinicDay:
    updated = clinic_day.model_copy(update={"id": clinic_day_id})
    if not store.update_clinic_day(updated):
        raise _not_found(clinic_day_id)
    commit()
    return updated


@router.delete("/{clinic_day_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_clinic_day(
    clinic_day_id: str,
    store: MissionStore = Depends(store_dep),
    commit: Callable[[], None] = Depends(get_committer),
) -> None:
    if not store.remove_clinic_day(clinic_day_id):
        raise _not_found(clinic_day_id)
    commit()


# -------------------------
# Coordinator views
# -------------------------


@router.get("/{clinic_day_id}/statuses", response_model=list[RoleShiftStatus])
def day_statuses(
    clinic_day_id: str, store: MissionStore = Depends(store_dep)
) -> list[RoleShiftStatus]:
    return compute_all_statuses(store.state, clinic_day_id)


@router.get(
    "/{clinic_day_id}/shifts/{shift_id}/roles/{role_id}/status",
    response_model=RoleShiftStatusResponse,
)
def role_shift_status(
    clinic_day_id: str,
    shift_id: ShiftId,
    role_id: str,
    store: MissionStore = Depends(store_dep),
) -> RoleShiftStatusResponse:
    """
    One staffing grid cell plus its color.

    is_full uses the catalog capacity, is_role_full also looks at
    per-day capacity overrides, so the two can disagree.
    """
    grid = compute_role_shift_status(store.state, clinic_day_id, shift_id, role_id)
    return RoleShiftStatusResponse(
        **grid.model_dump(),
        color=compute_staffing_color(grid.current_count, grid.capacity),
        is_role_full=store.is_role_full(clinic_day_id, shift_id, role_id),
    )


@router.get(
    "/{clinic_day_id}/shifts/{shift_id}/understaffed",
    response_model=list[RoleShiftStatus],
)
def understaffed_roles(
    clinic_day_id: str,
    shift_id: ShiftId,
    store: MissionStore = Depends(store_dep),
) -> list[RoleShiftStatus]:
    return compute_understaffed_roles(store.state, clinic_day_id, shift_id)


@router.get("/{clinic_day_id}/unassigned", response_model=list[ParticipantLoad])
def unassigned_participants(
    clinic_day_id: str, store: MissionStore = Depends(store_dep)
) -> list[ParticipantLoad]:
    return compute_unassigned_participants(store.state, clinic_day_id)


@router.get("/{clinic_day_id}/capacity", response_model=DayCapacity)
def day_capacity(clinic_day_id: str, store: MissionStore = Depends(store_dep)) -> DayCapacity:
    return compute_day_capacity(store.state, clinic_day_id)


@router.get("/{clinic_day_id}/recommended-tickets")
def recommended_tickets(
    clinic_day_id: str, store: MissionStore = Depends(store_dep)
) -> dict[str, int]:
    return {"recommendedTickets": compute_recommended_tickets(store.state, clinic_day_id)}


@router.get("/{clinic_day_id}/tickets", response_model=TicketUtilization)
def ticket_utilization(
    clinic_day_id: str, store: MissionStore = Depends(store_dep)
) -> TicketUtilization:
    day = store.get_clinic_day(clinic_day_id)
    if day is None:
        raise _not_found(clinic_day_id)
    return compute_ticket_utilization(day)
