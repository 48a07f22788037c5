from clinicshift.schemas.mission import Assignment, MissionState, Participant, ShiftId


def make_participant(n: int) -> Participant:
    return Participant(id=f"p{n}", name=f"Person {n}", email=f"person{n}@example.org")


def assign(state: MissionState, participant_id: str, day: str, shift: ShiftId, role: str) -> Assignment:
    """Appends an assignment directly, bypassing the store's checks."""
    a = Assignment(participant_id=participant_id, clinic_day_id=day, shift_id=shift, role_id=role)
    state.assignments = [*state.assignments, a]
    return a
