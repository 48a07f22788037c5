from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Optional
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_id() -> str:
    return uuid4().hex


class MissionModel(BaseModel):
    """
    Base for everything that ends up in a snapshot.

    Python code uses snake_case, the JSON on disk and over HTTP uses camelCase
    (clinicDayId, capacityPerShift, ...). Either spelling is accepted on input.
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ShiftId(str, Enum):
    morning1 = "morning1"
    morning2 = "morning2"
    afternoon = "afternoon"


class RoleCategory(str, Enum):
    clinical = "clinical"
    support = "support"


class FlowRateSource(str, Enum):
    historical = "historical"
    actual = "actual"


class StaffingColor(str, Enum):
    green = "green"
    yellow = "yellow"
    red = "red"


# -------------------------
# Entities
# -------------------------


class Role(MissionModel):
    id: str
    name: str
    category: RoleCategory
    capacity_per_shift: int = Field(ge=0)
    # only clinical roles that see patients carry a baseline
    patients_per_hour_per_staff: Optional[float] = None
    icon: str = ""


class Shift(MissionModel):
    id: ShiftId
    name: str
    start_time: str
    end_time: str
    duration_hours: float = Field(ge=0)


class ClinicDay(MissionModel):
    id: str = Field(default_factory=new_id)
    date: str
    name: str
    is_active: bool = False
    patient_tickets_issued: int = Field(default=0, ge=0)
    actual_patients_served: Optional[int] = None


class Participant(MissionModel):
    id: str = Field(default_factory=new_id)
    name: str
    email: str
    primary_role: Optional[str] = None
    is_admin: bool = False


class Assignment(MissionModel):
    id: str = Field(default_factory=new_id)
    participant_id: str
    clinic_day_id: str
    shift_id: ShiftId
    role_id: str
    created_at: datetime = Field(default_factory=utcnow)
    attended: Optional[bool] = None


class FlowRate(MissionModel):
    role_id: str
    patients_per_hour_per_staff: float
    source: FlowRateSource = FlowRateSource.historical
    clinic_day_id: Optional[str] = None
    updated_at: datetime = Field(default_factory=utcnow)


class ShiftActuals(MissionModel):
    id: str = Field(default_factory=new_id)
    clinic_day_id: str
    shift_id: ShiftId
    role_id: str
    patients_served: int = Field(ge=0)
    staff_count: int = Field(ge=0)
    notes: str = ""
    recorded_at: datetime = Field(default_factory=utcnow)


class RoleCapacity(MissionModel):
    """Per clinic day / shift override of a role's default capacity."""
    clinic_day_id: str
    shift_id: ShiftId
    role_id: str
    capacity: int = Field(ge=0)

    @property
    def key(self) -> str:
        return f"{self.clinic_day_id}_{self.shift_id.value}_{self.role_id}"


class MedicationEntry(MissionModel):
    name: str
    dose: str = ""
    frequency: str = ""
    pharmacy_item_id: Optional[str] = None
    deducted: bool = False


class RecordAuthor(MissionModel):
    name: str
    email: str


class PatientRecord(MissionModel):
    id: str = Field(default_factory=new_id)
    patient_name: str
    medications: list[MedicationEntry] = Field(default_factory=list)
    follow_ups: str = ""
    comments: str = ""
    created_by: RecordAuthor
    created_at: datetime = Field(default_factory=utcnow)
    clinic_day_id: str


class PharmacyItem(MissionModel):
    id: str = Field(default_factory=new_id)
    name: str
    category: str
    form: str
    dosage: str = ""
    stock_count: int = Field(default=0, ge=0)
    # reference point for the stock level bar, defaults to the first count
    initial_stock: int = Field(default=0, ge=0)
    updated_at: datetime = Field(default_factory=utcnow)


class MissionState(MissionModel):
    """
    Every entity the app knows about, in one object.

    Relationships are by id only. Nothing here owns anything else.
    This is also the exact shape of an exported snapshot.
    """
    current_user: Optional[Participant] = None
    participants: list[Participant] = Field(default_factory=list)
    clinic_days: list[ClinicDay] = Field(default_factory=list)
    assignments: list[Assignment] = Field(default_factory=list)
    roles: list[Role] = Field(default_factory=list)
    shifts: list[Shift] = Field(default_factory=list)
    flow_rates: list[FlowRate] = Field(default_factory=list)
    shift_actuals: list[ShiftActuals] = Field(default_factory=list)
    patient_records: list[PatientRecord] = Field(default_factory=list)
    pharmacy_items: list[PharmacyItem] = Field(default_factory=list)
    role_capacities: list[RoleCapacity] = Field(default_factory=list)


# -------------------------
# Computed views
# -------------------------


class RoleShiftStatus(MissionModel):
    role_id: str
    shift_id: ShiftId
    clinic_day_id: str
    current_count: int
    capacity: int
    is_full: bool
    participants: list[Participant]


class ParticipantLoad(MissionModel):
    participant: Participant
    shifts_assigned: int


class PatientCapacity(MissionModel):
    clinic_day_id: str
    shift_id: ShiftId
    role_id: str
    staff_count: int
    flow_rate: float
    projected_patients: int


class DayCapacity(MissionModel):
    by_role: dict[str, int]
    by_shift: dict[str, int]
    total: int


class TicketUtilization(MissionModel):
    clinic_day_id: str
    tickets_issued: int
    patients_served: Optional[int]
    unused_tickets: Optional[int]
    utilization_percent: Optional[int] = None


class FlowRateAnalysis(MissionModel):
    """Projected vs actual patients for one clinical role in one shift."""

    role_id: str
    projected_patients: int
    patients_served: Optional[int] = None
    staff_count: Optional[int] = None
    variance_percent: Optional[int] = None
    actual_flow_rate: Optional[float] = None
    baseline_flow_rate: Optional[float] = None


class StockLevel(MissionModel):
    percentage: int
    color: StaffingColor


# -------------------------
# Request bodies
# -------------------------


class LoginRequest(MissionModel):
    email: str
    name: str = ""


class AssignmentRequest(MissionModel):
    clinic_day_id: str
    shift_id: ShiftId
    role_id: str


class RoleActualsEntry(MissionModel):
    role_id: str
    patients_served: int = Field(default=0, ge=0)
    staff_count: int = Field(default=0, ge=0)
    notes: str = ""


class ShiftActualsRequest(MissionModel):
    """
    What the operations screen sends after a shift:
    per role counts plus attendance per assignment id.
    """
    roles: list[RoleActualsEntry] = Field(default_factory=list)
    attendance: dict[str, bool] = Field(default_factory=dict)


class FlowRateUpdate(MissionModel):
    patients_per_hour_per_staff: float = Field(ge=0)
    clinic_day_id: Optional[str] = None


class PatientRecordRequest(MissionModel):
    patient_name: str
    medications: list[MedicationEntry] = Field(default_factory=list)
    follow_ups: str = ""
    comments: str = ""
    clinic_day_id: str


class RoleShiftStatusResponse(RoleShiftStatus):
    color: StaffingColor
    is_role_full: bool
