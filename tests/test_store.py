"""
Unit tests for MissionStore: sessions, sign-ups and the other state transitions.
"""

from datetime import date

from clinicshift.core.state import MissionStore, Session
from clinicshift.data.catalog import ROLES, SHIFTS
from clinicshift.schemas.mission import (
    ClinicDay,
    FlowRateSource,
    MedicationEntry,
    MissionState,
    PatientRecordRequest,
    PharmacyItem,
    RoleActualsEntry,
    RoleCapacity,
    ShiftActualsRequest,
    ShiftId,
)
from clinicshift.services.calculations import compute_role_shift_status
from clinicshift.services.sync import InMemoryDocumentStore, SyncOutbox
from tests.helpers import make_participant


# ── Tests: login / logout ────────────────────────────────────────────

def test_login_is_case_insensitive(store):
    before = len(store.state.participants)
    session = store.login("ADMIN@PMMT.org", "whoever")

    assert session.participant.id == "admin-1"
    assert len(store.state.participants) == before
    assert store.state.current_user.id == "admin-1"


def test_login_creates_missing_participant(store):
    session = store.login("New.Person@Example.org", "New Person")

    assert session.is_authenticated
    assert session.participant.email == "new.person@example.org"
    assert session.participant.name == "New Person"
    assert store.find_participant_by_email("new.person@example.org") == session.participant


def test_logout_only_clears_pointer(store):
    session = store.login("person1@example.org")
    participants = list(store.state.participants)

    store.logout(session)

    assert session.participant is None
    assert store.state.current_user is None
    assert store.state.participants == participants


def test_sessions_are_independent(store):
    alice = store.login("person1@example.org")
    bob = store.login("person2@example.org")

    assert store.add_assignment(alice, "day-1", ShiftId.morning1, "medical")
    assert store.add_assignment(bob, "day-1", ShiftId.morning1, "medical")
    assert len(store.get_my_assignments(alice, "day-1")) == 1
    assert len(store.get_my_assignments(bob, "day-1")) == 1


# ── Tests: participants ──────────────────────────────────────────────

def test_update_participant_rejects_taken_email(store):
    one = store.login("one@example.org").participant
    two = store.login("two@example.org").participant

    assert store.update_participant(two.model_copy(update={"email": "ONE@example.org"})) is False

    holders = [p.id for p in store.state.participants if p.email.lower() == "one@example.org"]
    assert holders == [one.id]
    assert store.find_participant_by_email("two@example.org") == two


def test_update_participant_lowercases_email(store):
    two = store.login("two@example.org").participant

    assert store.update_participant(two.model_copy(update={"email": "Two.New@Example.org", "name": "Two"}))
    assert store.update_participant(two.model_copy(update={"email": "two.new@example.org"}))

    stored = store.find_participant_by_email("two.new@example.org")
    assert stored.id == two.id
    assert stored.email == "two.new@example.org"


def test_update_unknown_participant(store):
    assert store.update_participant(make_participant(99)) is False


# ── Tests: add_assignment ────────────────────────────────────────────

def test_add_assignment_requires_session(store):
    assert store.add_assignment(Session(), "day-1", ShiftId.morning1, "medical") is False
    assert store.state.assignments == []


def test_add_assignment_one_role_per_shift(store):
    session = store.login("person1@example.org")

    assert store.add_assignment(session, "day-1", ShiftId.morning1, "medical") is True
    assert store.add_assignment(session, "day-1", ShiftId.morning1, "nursing") is False
    assert len(store.state.assignments) == 1

    # other shift, other day are fine
    assert store.add_assignment(session, "day-1", ShiftId.afternoon, "nursing") is True
    assert store.add_assignment(session, "day-2", ShiftId.morning1, "nursing") is True


def test_create_assignment_returns_the_new_record(store):
    session = store.login("person1@example.org")

    created = store.create_assignment(session, "day-1", ShiftId.morning1, "medical")

    assert created.participant_id == "p1"
    assert created.role_id == "medical"
    assert store.state.assignments == [created]
    assert store.create_assignment(session, "day-1", ShiftId.morning1, "nursing") is None


def test_add_assignment_rejected_when_full(store):
    # finance holds 2 per shift
    for n in (1, 2):
        assert store.add_assignment(store.login(f"person{n}@example.org"), "day-1", ShiftId.morning1, "finance")

    third = store.login("person3@example.org")
    before = list(store.state.assignments)

    assert store.is_role_full("day-1", ShiftId.morning1, "finance") is True
    assert store.add_assignment(third, "day-1", ShiftId.morning1, "finance") is False
    assert store.state.assignments == before


def test_is_role_full_honours_override_but_grid_does_not(store):
    store.set_role_capacity(
        RoleCapacity(clinic_day_id="day-1", shift_id=ShiftId.morning1, role_id="finance", capacity=1)
    )
    assert store.add_assignment(store.login("person1@example.org"), "day-1", ShiftId.morning1, "finance")

    assert store.is_role_full("day-1", ShiftId.morning1, "finance") is True
    assert store.add_assignment(store.login("person2@example.org"), "day-1", ShiftId.morning1, "finance") is False

    grid = compute_role_shift_status(store.state, "day-1", ShiftId.morning1, "finance")
    assert grid.capacity == 2
    assert grid.is_full is False


def test_override_can_raise_capacity(store):
    store.set_role_capacity(
        RoleCapacity(clinic_day_id="day-1", shift_id=ShiftId.morning1, role_id="finance", capacity=3)
    )
    for n in (1, 2, 3):
        assert store.add_assignment(store.login(f"person{n}@example.org"), "day-1", ShiftId.morning1, "finance")
    assert store.is_role_full("day-1", ShiftId.morning1, "finance") is True


def test_set_role_capacity_replaces_same_triple(store):
    rc = RoleCapacity(clinic_day_id="day-1", shift_id=ShiftId.morning1, role_id="finance", capacity=1)
    store.set_role_capacity(rc)
    store.set_role_capacity(rc.model_copy(update={"capacity": 5}))
    assert [c.capacity for c in store.state.role_capacities] == [5]


def test_unknown_role_is_always_full(store):
    session = store.login("person1@example.org")
    assert store.is_role_full("day-1", ShiftId.morning1, "juggling") is True
    assert store.add_assignment(session, "day-1", ShiftId.morning1, "juggling") is False


# ── Tests: remove / queries ──────────────────────────────────────────

def test_remove_assignment(store):
    session = store.login("person1@example.org")
    store.add_assignment(session, "day-1", ShiftId.morning1, "medical")
    assignment_id = store.state.assignments[0].id

    store.remove_assignment("does-not-exist")
    assert len(store.state.assignments) == 1

    store.remove_assignment(assignment_id)
    assert store.state.assignments == []


def test_participants_for_shift(store):
    store.add_assignment(store.login("person1@example.org"), "day-1", ShiftId.morning1, "medical")
    store.add_assignment(store.login("person2@example.org"), "day-1", ShiftId.morning1, "medical")
    store.add_assignment(store.login("person3@example.org"), "day-1", ShiftId.morning1, "nursing")

    people = store.get_participants_for_shift("day-1", ShiftId.morning1, "medical")
    assert [p.id for p in people] == ["p1", "p2"]


def test_my_assignments_without_login_is_empty(store):
    store.add_assignment(store.login("person1@example.org"), "day-1", ShiftId.morning1, "medical")
    assert store.get_my_assignments(Session(), "day-1") == []


# ── Tests: clinic days ───────────────────────────────────────────────

def test_clinic_days_kept_sorted_and_editable(store):
    store.add_clinic_day(ClinicDay(id="day-0", date="2026-03-14", name="Setup Day"))
    assert store.state.clinic_days[0].id == "day-0"

    renamed = store.get_clinic_day("day-0").model_copy(update={"name": "Prep Day"})
    assert store.update_clinic_day(renamed) is True
    assert store.get_clinic_day("day-0").name == "Prep Day"

    assert store.remove_clinic_day("day-0") is True
    assert store.remove_clinic_day("day-0") is False
    assert store.update_clinic_day(renamed) is False


def test_today_and_next_clinic_day(store):
    assert store.get_today_clinic_day(date(2026, 3, 16)).id == "day-2"
    assert store.get_tomorrow_clinic_day(date(2026, 3, 16)).id == "day-3"
    assert store.get_next_clinic_day(date(2026, 3, 1)).id == "day-1"
    assert store.get_next_clinic_day(date(2026, 3, 17)).id == "day-3"
    assert store.get_next_clinic_day(date(2027, 1, 1)) is None


# ── Tests: flow rates and actuals ────────────────────────────────────

def test_update_flow_rate_source(store):
    manual = store.update_flow_rate("medical", 5)
    assert manual.source == FlowRateSource.historical

    observed = store.update_flow_rate("medical", 5.5, clinic_day_id="day-1")
    assert observed.source == FlowRateSource.actual

    medical = [f for f in store.state.flow_rates if f.role_id == "medical"]
    assert len(medical) == 1
    assert medical[0].patients_per_hour_per_staff == 5.5


def test_record_shift_actuals(store):
    session = store.login("person1@example.org")
    store.add_assignment(session, "day-1", ShiftId.morning1, "medical")
    assignment_id = store.state.assignments[0].id

    updates = store.record_shift_actuals(
        "day-1",
        ShiftId.morning1,
        ShiftActualsRequest(
            roles=[
                RoleActualsEntry(role_id="medical", patients_served=30, staff_count=2, notes="busy"),
                RoleActualsEntry(role_id="nursing", patients_served=0, staff_count=0),
            ],
            attendance={assignment_id: False, "unknown": True},
        ),
    )

    assert [u.role_id for u in updates] == ["medical"]
    assert store.state.assignments[0].attended is False
    assert len(store.state.shift_actuals) == 2
    assert store.state.shift_actuals[0].notes == "busy"

    medical = next(f for f in store.state.flow_rates if f.role_id == "medical")
    assert medical.patients_per_hour_per_staff == 4.6
    assert medical.source == FlowRateSource.actual
    nursing = next(f for f in store.state.flow_rates if f.role_id == "nursing")
    assert nursing.source == FlowRateSource.historical


def test_repeated_actuals_keep_blending(store):
    request = ShiftActualsRequest(
        roles=[RoleActualsEntry(role_id="medical", patients_served=30, staff_count=2)]
    )
    store.record_shift_actuals("day-1", ShiftId.morning1, request)
    store.record_shift_actuals("day-2", ShiftId.morning1, request)

    # 4.6 * 0.7 + 6 * 0.3 = 5.02 -> 5.0
    medical = next(f for f in store.state.flow_rates if f.role_id == "medical")
    assert medical.patients_per_hour_per_staff == 5.0
    assert medical.clinic_day_id == "day-2"


# ── Tests: pharmacy and patient records ─────────────────────────────

def test_add_pharmacy_item_defaults_initial_stock(store):
    created = store.add_pharmacy_item(
        PharmacyItem(name="Paracetamol", category="Analgesics", form="Tablets", stock_count=40)
    )
    assert created.initial_stock == 40


def test_patient_record_deducts_stock(store):
    store.update_pharmacy_items([
        PharmacyItem(id="para", name="Paracetamol", category="Analgesics", form="Tablets",
                     stock_count=10, initial_stock=10),
    ])
    session = store.login("person1@example.org")

    record = store.add_patient_record(
        session,
        PatientRecordRequest(
            patient_name="Jane",
            clinic_day_id="day-1",
            medications=[
                MedicationEntry(name="Paracetamol", dose="500mg", frequency="TDS", pharmacy_item_id="para"),
                MedicationEntry(name="Rest"),
            ],
        ),
    )

    assert record.created_by.email == "person1@example.org"
    assert [m.deducted for m in record.medications] == [True, False]
    assert store.state.pharmacy_items[0].stock_count == 9
    assert store.state.patient_records == [record]


def test_patient_record_without_session_is_anonymous(store):
    record = store.add_patient_record(
        Session(), PatientRecordRequest(patient_name="Jane", clinic_day_id="day-1")
    )
    assert record.created_by.name == "Unknown"


# ── Tests: replace_state / replace_collection ───────────────────────

def test_replace_state_repins_catalogs(store):
    snapshot = MissionState(
        participants=store.state.participants[:1],
        roles=ROLES[:1],
        shifts=[],
    )
    store.replace_state(snapshot)

    assert store.state.roles == ROLES
    assert store.state.shifts == SHIFTS
    assert [p.id for p in store.state.participants] == ["admin-1"]
    assert store.state.clinic_days == []


def test_replace_collection_accepts_documents(store):
    store.replace_collection(
        "clinicDays",
        [{"id": "x", "date": "2026-04-01", "name": "Extra", "patientTicketsIssued": 40}],
    )
    assert [d.id for d in store.state.clinic_days] == ["x"]
    assert store.state.clinic_days[0].patient_tickets_issued == 40


# ── Tests: outbox ────────────────────────────────────────────────────

def test_mutations_queue_remote_writes(state):
    outbox = SyncOutbox(InMemoryDocumentStore())
    store = MissionStore(state=state, outbox=outbox)

    session = store.login("someone.new@example.org", "Someone")
    store.add_assignment(session, "day-1", ShiftId.morning1, "medical")
    store.remove_assignment(store.state.assignments[0].id)

    kinds = [(w.collection, w.doc is None) for w in outbox.pending]
    assert kinds == [("participants", False), ("assignments", False), ("assignments", True)]


def test_rejected_assignment_queues_nothing(state):
    outbox = SyncOutbox(InMemoryDocumentStore())
    store = MissionStore(state=state, outbox=outbox)
    store.add_assignment(Session(), "day-1", ShiftId.morning1, "medical")
    assert outbox.pending == []
