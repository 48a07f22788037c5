"""
operations routes

what the operations team touches during and after a clinic day:
- shift actuals (patients served, staff count, attendance), which drive
  the flow rate feedback loop, and the projected vs actual analysis
- manual flow rate edits
- per-day capacity overrides for a role
"""

from __future__ import annotations

from typing import Callable

from fastapi import APIRouter, Depends

from clinicshift.api.deps import get_committer, store_dep
from clinicshift.core.state import MissionStore
from clinicshift.schemas.mission import (
    FlowRate,
    FlowRateAnalysis,
    FlowRateUpdate,
    RoleCapacity,
    ShiftActuals,
    ShiftActualsRequest,
    ShiftId,
)
from clinicshift.services.feedback import compute_flow_rate_analysis

router = APIRouter()


@router.post(
    "/clinic-days/{clinic_day_id}/shifts/{shift_id}/actuals",
    response_model=list[FlowRate],
)
def record_actuals(
    clinic_day_id: str,
    shift_id: ShiftId,
    body: ShiftActualsRequest,
    store: MissionStore = Depends(store_dep),
    commit: Callable[[], None] = Depends(get_committer),
) -> list[FlowRate]:
    """Returns the flow rates that were blended with this shift's numbers."""
    updates = store.record_shift_actuals(clinic_day_id, shift_id, body)
    commit()
    return updates


@router.get(
    "/clinic-days/{clinic_day_id}/shifts/{shift_id}/analysis",
    response_model=list[FlowRateAnalysis],
)
def flow_rate_analysis(
    clinic_day_id: str,
    shift_id: ShiftId,
    store: MissionStore = Depends(store_dep),
) -> list[FlowRateAnalysis]:
    """Projected vs actual patients per clinical role for one shift."""
    return compute_flow_rate_analysis(store.state, clinic_day_id, shift_id)


@router.get("/shift-actuals", response_model=list[ShiftActuals])
def list_actuals(store: MissionStore = Depends(store_dep)) -> list[ShiftActuals]:
    return store.state.shift_actuals


@router.get("/flow-rates", response_model=list[FlowRate])
def list_flow_rates(store: MissionStore = Depends(store_dep)) -> list[FlowRate]:
    return store.state.flow_rates


@router.put("/flow-rates/{role_id}", response_model=FlowRate)
def update_flow_rate(
    role_id: str,
    body: FlowRateUpdate,
    store: MissionStore = Depends(store_dep),
    commit: Callable[[], None] = Depends(get_committer),
) -> FlowRate:
    flow_rate = store.update_flow_rate(
        role_id, body.patients_per_hour_per_staff, body.clinic_day_id
    )
    commit()
    return flow_rate


@router.get("/role-capacities", response_model=list[RoleCapacity])
def list_role_capacities(store: MissionStore = Depends(store_dep)) -> list[RoleCapacity]:
    return store.state.role_capacities


@router.put("/role-capacities", response_model=RoleCapacity)
def set_role_capacity(
    body: RoleCapacity,
    store: MissionStore = Depends(store_dep),
    commit: Callable[[], None] = Depends(get_committer),
) -> RoleCapacity:
    store.set_role_capacity(body)
    commit()
    return body
