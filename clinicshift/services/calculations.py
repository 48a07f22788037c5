"""
capacity and staffing calculations

Everything in here is a pure function of the current MissionState:
- how many people are signed up for a role in a shift, and is it full
- which roles need help, which participants still have free shifts
- how many patients we can expect to see, and how many tickets to hand out

Nothing here mutates state and nothing is cached. The data is tiny
(tens to low hundreds of records) so every call just scans the lists.

Unknown ids never raise. A missing role or shift simply contributes
zero capacity / zero hours.
"""

from __future__ import annotations

import math
from typing import Optional

from clinicshift.data.catalog import get_clinical_roles, get_role_by_id, get_shift_by_id
from clinicshift.schemas.mission import (
    Assignment,
    ClinicDay,
    DayCapacity,
    MissionState,
    ParticipantLoad,
    PatientCapacity,
    Role,
    RoleShiftStatus,
    Shift,
    ShiftId,
    StaffingColor,
    TicketUtilization,
)


# -------------------------
# Constants
# -------------------------

# Extra tickets on top of projected capacity to absorb no-shows.
NO_SHOW_BUFFER = 0.05

# Below this fill ratio a role shows up in the "help needed" list.
UNDERSTAFFED_RATIO = 0.5

# Staffing grid color thresholds (fill ratio).
GREEN_RATIO = 0.75
YELLOW_RATIO = 0.25


# -------------------------
# Lookups
# -------------------------


def _find_role(state: MissionState, role_id: str) -> Optional[Role]:
    return get_role_by_id(role_id, state.roles)


def _find_shift(state: MissionState, shift_id: ShiftId) -> Optional[Shift]:
    return get_shift_by_id(shift_id, state.shifts)


def _matching_assignments(
    state: MissionState,
    clinic_day_id: str,
    shift_id: ShiftId,
    role_id: str,
) -> list[Assignment]:
    return [
        a
        for a in state.assignments
        if a.clinic_day_id == clinic_day_id
        and a.shift_id == shift_id
        and a.role_id == role_id
    ]


def live_flow_rate(state: MissionState, role_id: str) -> Optional[float]:
    """Current flow rate for a role, or None if we have never had one."""
    rate = next((f for f in state.flow_rates if f.role_id == role_id), None)
    return rate.patients_per_hour_per_staff if rate else None


# -------------------------
# Staffing status
# -------------------------


def compute_role_shift_status(
    state: MissionState,
    clinic_day_id: str,
    shift_id: ShiftId,
    role_id: str,
) -> RoleShiftStatus:
    """
    Staffing grid cell for one role in one shift on one day.

    Capacity here is the role's catalog default. Per day RoleCapacity
    overrides are NOT applied (only is_role_full on the store uses them).
    """
    role = _find_role(state, role_id)
    assignments = _matching_assignments(state, clinic_day_id, shift_id, role_id)

    participants_by_id = {p.id: p for p in state.participants}
    participants = [
        participants_by_id[a.participant_id]
        for a in assignments
        if a.participant_id in participants_by_id
    ]

    capacity = role.capacity_per_shift if role else 0
    current_count = len(assignments)

    return RoleShiftStatus(
        role_id=role_id,
        shift_id=shift_id,
        clinic_day_id=clinic_day_id,
        current_count=current_count,
        capacity=capacity,
        is_full=current_count >= capacity,
        participants=participants,
    )


def compute_all_statuses(state: MissionState, clinic_day_id: str) -> list[RoleShiftStatus]:
    """Every role x every shift for one day, role-major order."""
    return [
        compute_role_shift_status(state, clinic_day_id, shift.id, role.id)
        for role in state.roles
        for shift in state.shifts
    ]


def _fill_ratio(current_count: int, capacity: int) -> float:
    # a role with no seats can never be understaffed
    if capacity <= 0:
        return 1.0
    return current_count / capacity


def compute_understaffed_roles(
    state: MissionState,
    clinic_day_id: str,
    shift_id: ShiftId,
) -> list[RoleShiftStatus]:
    statuses = [
        compute_role_shift_status(state, clinic_day_id, shift_id, role.id)
        for role in state.roles
    ]
    return [
        s for s in statuses if _fill_ratio(s.current_count, s.capacity) < UNDERSTAFFED_RATIO
    ]


def compute_unassigned_participants(
    state: MissionState,
    clinic_day_id: str,
) -> list[ParticipantLoad]:
    """
    Participants who still have at least one open shift on this day.

    "Unassigned" is a bit of a misnomer: somebody with two of three shifts
    booked still shows up here, with shifts_assigned=2.
    """
    total_shifts = len(state.shifts)
    loads: list[ParticipantLoad] = []

    for participant in state.participants:
        count = sum(
            1
            for a in state.assignments
            if a.clinic_day_id == clinic_day_id and a.participant_id == participant.id
        )
        if count < total_shifts:
            loads.append(ParticipantLoad(participant=participant, shifts_assigned=count))

    return loads


def compute_staffing_color(current_count: int, capacity: int) -> StaffingColor:
    if capacity == 0:
        return StaffingColor.green

    ratio = current_count / capacity
    if ratio >= GREEN_RATIO:
        return StaffingColor.green
    if ratio >= YELLOW_RATIO:
        return StaffingColor.yellow
    return StaffingColor.red


# -------------------------
# Patient capacity
# -------------------------


def compute_patient_capacity(
    state: MissionState,
    clinic_day_id: str,
    shift_id: ShiftId,
    role_id: str,
) -> PatientCapacity:
    """
    Projected patients for one role in one shift.

    rate falls back: live flow rate -> role baseline -> 0
    projected = floor(staff * rate * shift hours)
    """
    shift = _find_shift(state, shift_id)
    role = _find_role(state, role_id)

    staff_count = len(_matching_assignments(state, clinic_day_id, shift_id, role_id))

    rate = live_flow_rate(state, role_id)
    if rate is None:
        rate = role.patients_per_hour_per_staff if role and role.patients_per_hour_per_staff is not None else 0.0
    hours = shift.duration_hours if shift else 0.0

    return PatientCapacity(
        clinic_day_id=clinic_day_id,
        shift_id=shift_id,
        role_id=role_id,
        staff_count=staff_count,
        flow_rate=rate,
        projected_patients=math.floor(staff_count * rate * hours),
    )


def compute_day_capacity(state: MissionState, clinic_day_id: str) -> DayCapacity:
    """Sums projected patients over clinical roles x shifts."""
    clinical_roles = get_clinical_roles(state.roles)

    by_role: dict[str, int] = {}
    by_shift: dict[str, int] = {shift.id.value: 0 for shift in state.shifts}
    total = 0

    for role in clinical_roles:
        by_role[role.id] = 0
        for shift in state.shifts:
            projected = compute_patient_capacity(
                state, clinic_day_id, shift.id, role.id
            ).projected_patients
            by_role[role.id] += projected
            by_shift[shift.id.value] += projected
            total += projected

    return DayCapacity(by_role=by_role, by_shift=by_shift, total=total)


def compute_recommended_tickets(state: MissionState, clinic_day_id: str) -> int:
    total = compute_day_capacity(state, clinic_day_id).total
    return math.floor(total * (1 + NO_SHOW_BUFFER))


def compute_ticket_utilization(clinic_day: ClinicDay) -> TicketUtilization:
    """Tickets handed out vs patients actually seen, once the day is over."""
    served = clinic_day.actual_patients_served
    issued = clinic_day.patient_tickets_issued
    unused = None
    percent = None
    if served is not None:
        unused = max(0, issued - served)
        if issued > 0:
            percent = math.floor(served / issued * 100 + 0.5)

    return TicketUtilization(
        clinic_day_id=clinic_day.id,
        tickets_issued=issued,
        patients_served=served,
        unused_tickets=unused,
        utilization_percent=percent,
    )
