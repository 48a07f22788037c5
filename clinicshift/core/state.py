"""
in-memory state store

holds every entity in one MissionState and offers the small, closed set
of operations the app is allowed to perform on it.

a few rules that hold everywhere in here:
- mutations replace or append whole entities, never patch single fields
  (callers build the next value and hand it over)
- validation failures come back as False, not as exceptions
- the logged-in participant lives in a Session object that callers pass
  in explicitly, so several simulated users can share one store

if an outbox is attached, every mutation also queues the matching remote
write. the local change is applied first and never waits on the remote side.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from typing import Any, Iterable, Optional

from pydantic import TypeAdapter

from clinicshift.core.logging import get_logger
from clinicshift.data.catalog import ROLES, SHIFTS, initial_state
from clinicshift.schemas.mission import (
    Assignment,
    ClinicDay,
    FlowRate,
    FlowRateSource,
    MissionState,
    Participant,
    PatientRecord,
    PatientRecordRequest,
    PharmacyItem,
    RecordAuthor,
    RoleCapacity,
    ShiftActuals,
    ShiftActualsRequest,
    ShiftId,
)
from clinicshift.services.feedback import compute_flow_rate_updates
from clinicshift.services.pharmacy import deduct_medication_stock
from clinicshift.services.sync import COLLECTIONS, SyncOutbox

logger = get_logger(__name__)


ANONYMOUS_AUTHOR = RecordAuthor(name="Unknown", email="")


@dataclass
class Session:
    """Who is acting. participant=None means nobody is logged in."""
    participant: Optional[Participant] = None

    @property
    def is_authenticated(self) -> bool:
        return self.participant is not None


class MissionStore:
    def __init__(
        self,
        state: Optional[MissionState] = None,
        outbox: Optional[SyncOutbox] = None,
    ) -> None:
        self.state = state if state is not None else initial_state()
        self.outbox = outbox

    # -------------------------
    # Remote echo
    # -------------------------

    def _push(self, collection: str, entity: Any) -> None:
        if self.outbox is not None:
            self.outbox.enqueue_upsert(collection, entity)

    def _push_delete(self, collection: str, doc_id: str) -> None:
        if self.outbox is not None:
            self.outbox.enqueue_delete(collection, doc_id)

    # -------------------------
    # Session
    # -------------------------

    def find_participant_by_email(self, email: str) -> Optional[Participant]:
        needle = email.strip().lower()
        return next(
            (p for p in self.state.participants if p.email.lower() == needle), None
        )

    def session_for(self, email: Optional[str]) -> Session:
        """Session for an existing participant, without creating anyone."""
        if not email:
            return Session()
        return Session(participant=self.find_participant_by_email(email))

    def login(self, email: str, name: str = "") -> Session:
        """
        Logs a participant in by email, creating them on first login.

        Never fails. The store also remembers this participant as
        state.current_user so it ends up in exported snapshots.
        """
        participant = self.find_participant_by_email(email)
        if participant is None:
            participant = self.add_participant(name=name, email=email)
            logger.info("Created participant %s on first login", participant.email)

        self.state.current_user = participant
        return Session(participant=participant)

    def logout(self, session: Session) -> None:
        if (
            self.state.current_user is not None
            and session.participant is not None
            and self.state.current_user.id == session.participant.id
        ):
            self.state.current_user = None
        session.participant = None

    # -------------------------
    # Participants
    # -------------------------

    def add_participant(
        self,
        name: str,
        email: str,
        primary_role: Optional[str] = None,
        is_admin: bool = False,
    ) -> Participant:
        participant = Participant(
            name=name,
            email=email.strip().lower(),
            primary_role=primary_role,
            is_admin=is_admin,
        )
        self.state.participants = [*self.state.participants, participant]
        self._push("participants", participant)
        return participant

    def update_participant(self, participant: Participant) -> bool:
        """
        Admin edit. False when the id is unknown or the new email already
        belongs to somebody else, since email is the login key.
        """
        if not any(p.id == participant.id for p in self.state.participants):
            return False

        participant = participant.model_copy(update={"email": participant.email.strip().lower()})
        holder = self.find_participant_by_email(participant.email)
        if holder is not None and holder.id != participant.id:
            logger.info("Rejected participant edit: %s is already taken", participant.email)
            return False

        self.state.participants = [
            participant if p.id == participant.id else p for p in self.state.participants
        ]
        if self.state.current_user is not None and self.state.current_user.id == participant.id:
            self.state.current_user = participant
        self._push("participants", participant)
        return True

    # -------------------------
    # Assignments
    # -------------------------

    def _assignment_count(self, clinic_day_id: str, shift_id: ShiftId, role_id: str) -> int:
        return sum(
            1
            for a in self.state.assignments
            if a.clinic_day_id == clinic_day_id and a.shift_id == shift_id and a.role_id == role_id
        )

    def effective_capacity(
        self, clinic_day_id: str, shift_id: ShiftId, role_id: str
    ) -> Optional[int]:
        """RoleCapacity override if there is one, else the role default, else None."""
        override = next(
            (
                c
                for c in self.state.role_capacities
                if c.clinic_day_id == clinic_day_id and c.shift_id == shift_id and c.role_id == role_id
            ),
            None,
        )
        if override is not None:
            return override.capacity

        role = next((r for r in self.state.roles if r.id == role_id), None)
        return role.capacity_per_shift if role else None

    def is_role_full(self, clinic_day_id: str, shift_id: ShiftId, role_id: str) -> bool:
        """
        Gate for new sign-ups. Unknown roles count as full.

        Unlike the staffing grid status, this honours RoleCapacity overrides.
        """
        capacity = self.effective_capacity(clinic_day_id, shift_id, role_id)
        if capacity is None:
            return True
        return self._assignment_count(clinic_day_id, shift_id, role_id) >= capacity

    def add_assignment(
        self,
        session: Session,
        clinic_day_id: str,
        shift_id: ShiftId,
        role_id: str,
    ) -> bool:
        """
        Signs the session's participant up for a role.

        Rejected (False, nothing changes) when nobody is logged in, the role
        is full, or the participant already has any role in that shift.
        """
        return self.create_assignment(session, clinic_day_id, shift_id, role_id) is not None

    def create_assignment(
        self,
        session: Session,
        clinic_day_id: str,
        shift_id: ShiftId,
        role_id: str,
    ) -> Optional[Assignment]:
        """Same rules as add_assignment, but hands back the new Assignment (or None)."""
        participant = session.participant
        if participant is None:
            logger.info("Rejected assignment: no participant in session")
            return None

        if self.is_role_full(clinic_day_id, shift_id, role_id):
            logger.info("Rejected assignment: %s/%s/%s is full", clinic_day_id, shift_id.value, role_id)
            return None

        already = any(
            a.clinic_day_id == clinic_day_id
            and a.shift_id == shift_id
            and a.participant_id == participant.id
            for a in self.state.assignments
        )
        if already:
            logger.info(
                "Rejected assignment: %s already booked for %s/%s",
                participant.email, clinic_day_id, shift_id.value,
            )
            return None

        assignment = Assignment(
            participant_id=participant.id,
            clinic_day_id=clinic_day_id,
            shift_id=shift_id,
            role_id=role_id,
        )
        self.state.assignments = [*self.state.assignments, assignment]
        self._push("assignments", assignment)
        return assignment

    def remove_assignment(self, assignment_id: str) -> None:
        before = len(self.state.assignments)
        self.state.assignments = [a for a in self.state.assignments if a.id != assignment_id]
        if len(self.state.assignments) != before:
            self._push_delete("assignments", assignment_id)

    def update_assignment(self, assignment: Assignment) -> bool:
        if not any(a.id == assignment.id for a in self.state.assignments):
            return False
        self.state.assignments = [
            assignment if a.id == assignment.id else a for a in self.state.assignments
        ]
        self._push("assignments", assignment)
        return True

    def get_my_assignments(self, session: Session, clinic_day_id: str) -> list[Assignment]:
        if session.participant is None:
            return []
        return [
            a
            for a in self.state.assignments
            if a.clinic_day_id == clinic_day_id and a.participant_id == session.participant.id
        ]

    def get_participants_for_shift(
        self, clinic_day_id: str, shift_id: ShiftId, role_id: str
    ) -> list[Participant]:
        by_id = {p.id: p for p in self.state.participants}
        return [
            by_id[a.participant_id]
            for a in self.state.assignments
            if a.clinic_day_id == clinic_day_id
            and a.shift_id == shift_id
            and a.role_id == role_id
            and a.participant_id in by_id
        ]

    # -------------------------
    # Clinic days
    # -------------------------

    def add_clinic_day(self, clinic_day: ClinicDay) -> ClinicDay:
        self.state.clinic_days = sorted(
            [*self.state.clinic_days, clinic_day], key=lambda d: d.date
        )
        self._push("clinicDays", clinic_day)
        return clinic_day

    def update_clinic_day(self, clinic_day: ClinicDay) -> bool:
        if not any(d.id == clinic_day.id for d in self.state.clinic_days):
            return False
        self.state.clinic_days = [
            clinic_day if d.id == clinic_day.id else d for d in self.state.clinic_days
        ]
        self._push("clinicDays", clinic_day)
        return True

    def remove_clinic_day(self, clinic_day_id: str) -> bool:
        before = len(self.state.clinic_days)
        self.state.clinic_days = [d for d in self.state.clinic_days if d.id != clinic_day_id]
        if len(self.state.clinic_days) == before:
            return False
        self._push_delete("clinicDays", clinic_day_id)
        return True

    def get_clinic_day(self, clinic_day_id: str) -> Optional[ClinicDay]:
        return next((d for d in self.state.clinic_days if d.id == clinic_day_id), None)

    def get_today_clinic_day(self, today: Optional[date] = None) -> Optional[ClinicDay]:
        iso = (today or date.today()).isoformat()
        return next((d for d in self.state.clinic_days if d.date == iso), None)

    def get_tomorrow_clinic_day(self, today: Optional[date] = None) -> Optional[ClinicDay]:
        return self.get_today_clinic_day((today or date.today()) + timedelta(days=1))

    def get_next_clinic_day(self, today: Optional[date] = None) -> Optional[ClinicDay]:
        """Today's clinic day if there is one, else the earliest upcoming one."""
        iso = (today or date.today()).isoformat()
        upcoming = sorted(
            (d for d in self.state.clinic_days if d.date >= iso), key=lambda d: d.date
        )
        return upcoming[0] if upcoming else None

    # -------------------------
    # Flow rates and actuals
    # -------------------------

    def _upsert_flow_rate(self, flow_rate: FlowRate) -> None:
        # one live rate per role, replaced in place so ordering is stable
        if any(f.role_id == flow_rate.role_id for f in self.state.flow_rates):
            self.state.flow_rates = [
                flow_rate if f.role_id == flow_rate.role_id else f for f in self.state.flow_rates
            ]
        else:
            self.state.flow_rates = [*self.state.flow_rates, flow_rate]
        self._push("flowRates", flow_rate)

    def update_flow_rate(
        self, role_id: str, rate: float, clinic_day_id: Optional[str] = None
    ) -> FlowRate:
        """Manual override. Tagged "actual" only when tied to a clinic day."""
        flow_rate = FlowRate(
            role_id=role_id,
            patients_per_hour_per_staff=rate,
            source=FlowRateSource.actual if clinic_day_id else FlowRateSource.historical,
            clinic_day_id=clinic_day_id,
        )
        self._upsert_flow_rate(flow_rate)
        return flow_rate

    def record_shift_actuals(
        self,
        clinic_day_id: str,
        shift_id: ShiftId,
        request: ShiftActualsRequest,
    ) -> list[FlowRate]:
        """
        Saves what happened in a shift.

        1) attendance flags on the shift's assignments
        2) one ShiftActuals record per submitted role
        3) blended flow rate for every role with patients and staff
        Returns the flow rates that changed.
        """
        for assignment_id, attended in request.attendance.items():
            current = next((a for a in self.state.assignments if a.id == assignment_id), None)
            if current is None:
                continue
            self.update_assignment(current.model_copy(update={"attended": attended}))

        for entry in request.roles:
            actuals = ShiftActuals(
                clinic_day_id=clinic_day_id,
                shift_id=shift_id,
                role_id=entry.role_id,
                patients_served=entry.patients_served,
                staff_count=entry.staff_count,
                notes=entry.notes,
            )
            self.state.shift_actuals = [*self.state.shift_actuals, actuals]
            self._push("shiftActuals", actuals)

        updates = compute_flow_rate_updates(self.state, clinic_day_id, shift_id, request.roles)
        for flow_rate in updates:
            self._upsert_flow_rate(flow_rate)

        logger.info(
            "Recorded actuals for %s/%s: %d roles, %d flow rates updated",
            clinic_day_id, shift_id.value, len(request.roles), len(updates),
        )
        return updates

    # -------------------------
    # Capacity overrides
    # -------------------------

    def set_role_capacity(self, role_capacity: RoleCapacity) -> RoleCapacity:
        others = [c for c in self.state.role_capacities if c.key != role_capacity.key]
        self.state.role_capacities = [*others, role_capacity]
        self._push("roleCapacities", role_capacity)
        return role_capacity

    # -------------------------
    # Pharmacy and patient records
    # -------------------------

    def update_pharmacy_items(self, items: list[PharmacyItem]) -> None:
        """Replaces the whole inventory list. Dropped items are deleted remotely too."""
        kept_ids = {item.id for item in items}
        dropped = [i.id for i in self.state.pharmacy_items if i.id not in kept_ids]

        self.state.pharmacy_items = list(items)
        for item_id in dropped:
            self._push_delete("pharmacyItems", item_id)
        for item in items:
            self._push("pharmacyItems", item)

    def add_pharmacy_item(self, item: PharmacyItem) -> PharmacyItem:
        if item.initial_stock <= 0:
            item = item.model_copy(update={"initial_stock": item.stock_count})
        self.state.pharmacy_items = [*self.state.pharmacy_items, item]
        self._push("pharmacyItems", item)
        return item

    def add_patient_record(
        self, session: Session, request: PatientRecordRequest
    ) -> PatientRecord:
        """
        Stores a patient visit.

        Medications linked to an inventory item take one unit off that
        item's stock and come back marked deducted.
        """
        author = ANONYMOUS_AUTHOR
        if session.participant is not None:
            author = RecordAuthor(name=session.participant.name, email=session.participant.email)

        items, medications = deduct_medication_stock(
            self.state.pharmacy_items, request.medications
        )
        changed = [
            new for old, new in zip(self.state.pharmacy_items, items) if new is not old
        ]
        self.state.pharmacy_items = items
        for item in changed:
            self._push("pharmacyItems", item)

        record = PatientRecord(
            patient_name=request.patient_name,
            medications=medications,
            follow_ups=request.follow_ups,
            comments=request.comments,
            created_by=author,
            clinic_day_id=request.clinic_day_id,
        )
        self.state.patient_records = [*self.state.patient_records, record]
        self._push("patientRecords", record)
        return record

    # -------------------------
    # Bulk replacement
    # -------------------------

    def replace_state(self, snapshot: MissionState) -> None:
        """
        Wholesale import. Roles and shifts are always re-pinned to the
        built-in catalog, whatever the snapshot says.
        """
        self.state = snapshot.model_copy(update={"roles": list(ROLES), "shifts": list(SHIFTS)})

    def replace_collection(self, collection: str, docs: Iterable[Any]) -> None:
        """
        Swaps one collection wholesale, e.g. from a remote push update.

        Last write wins: whatever was there locally is gone.
        """
        attr = COLLECTIONS[collection]
        adapter = TypeAdapter(MissionState.model_fields[attr].annotation)
        setattr(self.state, attr, adapter.validate_python(list(docs)))


_STORE = MissionStore()


def get_store() -> MissionStore:
    """
    Returns the process-wide store.

    Behind a function so routers do not care where state comes from.
    """
    return _STORE


def set_store(store: MissionStore) -> None:
    global _STORE
    _STORE = store


def reset_store() -> None:
    """
    Back to the built-in defaults. Useful for demos and tests.

    Resets in place so anything holding the store (remote sync, outbox)
    keeps pointing at the live one.
    """
    _STORE.state = initial_state()
