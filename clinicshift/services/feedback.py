"""
flow rate feedback loop

After a shift, the operations team records how many patients each clinical
role actually saw and how many staff were on. That gives us an observed
patients/hour/staff number which we blend into the live estimate.

The blend is plain exponential smoothing: new data gets BLEND_WEIGHT of the
say, the existing estimate keeps the rest. The loop only ever writes
source="actual"; a rate goes back to "historical" through a manual edit.

compute_flow_rate_analysis is the read side: projected vs served per
clinical role, so operations can see how far off the estimate was.
"""

from __future__ import annotations

import math
from datetime import datetime
from typing import Iterable, Optional

from clinicshift.data.catalog import get_clinical_roles, get_shift_by_id
from clinicshift.schemas.mission import (
    FlowRate,
    FlowRateAnalysis,
    FlowRateSource,
    MissionState,
    RoleActualsEntry,
    ShiftActuals,
    ShiftId,
    utcnow,
)
from clinicshift.services.calculations import compute_patient_capacity, live_flow_rate


BLEND_WEIGHT = 0.3


def compute_actual_flow_rate(
    patients_served: float,
    staff_count: float,
    shift_hours: float,
) -> float:
    if staff_count == 0 or shift_hours == 0:
        return 0.0
    return patients_served / (staff_count * shift_hours)


def blend_flow_rates(historical: float, actual: float, weight: float = BLEND_WEIGHT) -> float:
    return historical * (1 - weight) + actual * weight


def _round_one_decimal(value: float) -> float:
    # half-up, so 4.45 -> 4.5 rather than banker's rounding
    return math.floor(value * 10 + 0.5) / 10


def compute_flow_rate_updates(
    state: MissionState,
    clinic_day_id: str,
    shift_id: ShiftId,
    entries: Iterable[RoleActualsEntry],
    now: Optional[datetime] = None,
) -> list[FlowRate]:
    """
    Works out the new live FlowRate for every role that has usable actuals.

    Entries with zero patients or zero staff are skipped. A role with no
    live rate yet starts from its own observed rate, so its first update
    is just the observed value.

    Returns the new FlowRate objects; applying them is the caller's job.
    """
    shift = get_shift_by_id(shift_id, state.shifts)
    if shift is None:
        return []

    now = now or utcnow()
    updates: list[FlowRate] = []

    for entry in entries:
        if entry.patients_served <= 0 or entry.staff_count <= 0:
            continue

        actual = compute_actual_flow_rate(
            entry.patients_served, entry.staff_count, shift.duration_hours
        )
        current = live_flow_rate(state, entry.role_id)
        if current is None:
            current = actual

        updates.append(
            FlowRate(
                role_id=entry.role_id,
                patients_per_hour_per_staff=_round_one_decimal(blend_flow_rates(current, actual)),
                source=FlowRateSource.actual,
                clinic_day_id=clinic_day_id,
                updated_at=now,
            )
        )

    return updates


def _latest_actuals(
    state: MissionState,
    clinic_day_id: str,
    shift_id: ShiftId,
    role_id: str,
) -> Optional[ShiftActuals]:
    matching = [
        a
        for a in state.shift_actuals
        if a.clinic_day_id == clinic_day_id and a.shift_id == shift_id and a.role_id == role_id
    ]
    return matching[-1] if matching else None


def compute_flow_rate_analysis(
    state: MissionState,
    clinic_day_id: str,
    shift_id: ShiftId,
) -> list[FlowRateAnalysis]:
    """
    One row per clinical role: projected patients, what was actually served,
    the variance in percent and the observed flow rate.

    Roles without recorded actuals only carry the projection. When a shift
    was recorded more than once, the latest record wins.
    """
    shift = get_shift_by_id(shift_id, state.shifts)
    rows: list[FlowRateAnalysis] = []

    for role in get_clinical_roles(state.roles):
        projected = compute_patient_capacity(state, clinic_day_id, shift_id, role.id).projected_patients
        actual = _latest_actuals(state, clinic_day_id, shift_id, role.id)

        row = FlowRateAnalysis(
            role_id=role.id,
            projected_patients=projected,
            baseline_flow_rate=live_flow_rate(state, role.id),
        )
        if actual is not None:
            variance = (actual.patients_served - projected) / max(projected, 1) * 100
            row.patients_served = actual.patients_served
            row.staff_count = actual.staff_count
            row.variance_percent = math.floor(variance + 0.5)
            if actual.staff_count > 0 and shift is not None and shift.duration_hours > 0:
                row.actual_flow_rate = _round_one_decimal(
                    compute_actual_flow_rate(
                        actual.patients_served, actual.staff_count, shift.duration_hours
                    )
                )
        rows.append(row)

    return rows
