"""
clinical team routes

patient visit records and the pharmacy stocktake. creating a record with a
medication linked to an inventory item takes one unit off that item.
"""

from __future__ import annotations

from typing import Callable, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from clinicshift.api.deps import get_committer, get_session, store_dep
from clinicshift.core.state import MissionStore, Session
from clinicshift.schemas.mission import (
    PatientRecord,
    PatientRecordRequest,
    PharmacyItem,
    StockLevel,
)
from clinicshift.services.pharmacy import compute_stock_level, search_pharmacy_items

router = APIRouter()


@router.get("/patient-records", response_model=list[PatientRecord])
def list_patient_records(
    clinic_day_id: Optional[str] = Query(default=None),
    store: MissionStore = Depends(store_dep),
) -> list[PatientRecord]:
    records = store.state.patient_records
    if clinic_day_id is not None:
        records = [r for r in records if r.clinic_day_id == clinic_day_id]
    return records


@router.post(
    "/patient-records",
    response_model=PatientRecord,
    status_code=status.HTTP_201_CREATED,
)
def add_patient_record(
    body: PatientRecordRequest,
    session: Session = Depends(get_session),
    store: MissionStore = Depends(store_dep),
    commit: Callable[[], None] = Depends(get_committer),
) -> PatientRecord:
    record = store.add_patient_record(session, body)
    commit()
    return record


@router.get("/pharmacy/items", response_model=list[PharmacyItem])
def list_pharmacy_items(store: MissionStore = Depends(store_dep)) -> list[PharmacyItem]:
    return store.state.pharmacy_items


@router.post(
    "/pharmacy/items",
    response_model=PharmacyItem,
    status_code=status.HTTP_201_CREATED,
)
def add_pharmacy_item(
    item: PharmacyItem,
    store: MissionStore = Depends(store_dep),
    commit: Callable[[], None] = Depends(get_committer),
) -> PharmacyItem:
    created = store.add_pharmacy_item(item)
    commit()
    return created


@router.put("/pharmacy/items", response_model=list[PharmacyItem])
def replace_pharmacy_items(
    items: list[PharmacyItem],
    store: MissionStore = Depends(store_dep),
    commit: Callable[[], None] = Depends(get_committer),
) -> list[PharmacyItem]:
    store.update_pharmacy_items(items)
    commit()
    return store.state.pharmacy_items


@router.get("/pharmacy/search", response_model=list[PharmacyItem])
def search_items(
    q: str = Query(default=""),
    store: MissionStore = Depends(store_dep),
) -> list[PharmacyItem]:
    return search_pharmacy_items(store.state.pharmacy_items, q)


@router.get("/pharmacy/items/{item_id}/stock-level", response_model=StockLevel)
def stock_level(item_id: str, store: MissionStore = Depends(store_dep)) -> StockLevel:
    item = next((i for i in store.state.pharmacy_items if i.id == item_id), None)
    if item is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Pharmacy item '{item_id}' not found.",
        )
    return compute_stock_level(item)
