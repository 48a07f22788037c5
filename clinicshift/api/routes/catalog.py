from fastapi import APIRouter, Depends

from clinicshift.api.deps import store_dep
from clinicshift.core.state import MissionStore
from clinicshift.schemas.mission import Role, Shift

router = APIRouter(prefix="/catalog")


@router.get("/roles", response_model=list[Role])
def list_roles(store: MissionStore = Depends(store_dep)) -> list[Role]:
    return store.state.roles


@router.get("/shifts", response_model=list[Shift])
def list_shifts(store: MissionStore = Depends(store_dep)) -> list[Shift]:
    return store.state.shifts
