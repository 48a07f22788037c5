"""
static catalogs and seed data

roles and shifts are fixed for the whole event and never change at runtime.
the clinic days, flow rates and sample admin below are only starting points:
coordinators edit them once the app is running.

the historical flow rates come from previous missions.
"""

from __future__ import annotations

from typing import Iterable, Optional

from clinicshift.schemas.mission import (
    ClinicDay,
    FlowRate,
    FlowRateSource,
    MissionState,
    Participant,
    Role,
    RoleCategory,
    Shift,
    ShiftId,
)


SHIFTS: list[Shift] = [
    Shift(
        id=ShiftId.morning1,
        name="Morning Shift 1",
        start_time="08:00",
        end_time="10:30",
        duration_hours=2.5,
    ),
    Shift(
        id=ShiftId.morning2,
        name="Morning Shift 2",
        start_time="11:00",
        end_time="12:30",
        duration_hours=1.5,
    ),
    Shift(
        id=ShiftId.afternoon,
        name="Afternoon Shift",
        start_time="14:00",
        end_time="17:00",
        duration_hours=3,
    ),
]


ROLES: list[Role] = [
    # clinical (patient facing)
    Role(id="medical", name="Medical", category=RoleCategory.clinical,
         capacity_per_shift=8, patients_per_hour_per_staff=4, icon="🩺"),
    Role(id="nursing", name="Nursing", category=RoleCategory.clinical,
         capacity_per_shift=10, patients_per_hour_per_staff=6, icon="💉"),
    Role(id="optometry", name="Optometry", category=RoleCategory.clinical,
         capacity_per_shift=4, patients_per_hour_per_staff=3, icon="👁️"),
    Role(id="dentistry", name="Dentistry", category=RoleCategory.clinical,
         capacity_per_shift=4, patients_per_hour_per_staff=2, icon="🦷"),
    # support
    Role(id="prayer", name="Prayer", category=RoleCategory.support,
         capacity_per_shift=6, icon="🙏"),
    Role(id="kids", name="Kids Ministry", category=RoleCategory.support,
         capacity_per_shift=8, icon="👶"),
    Role(id="sterilisation", name="Sterilisation", category=RoleCategory.support,
         capacity_per_shift=4, icon="🧼"),
    Role(id="logistics", name="Logistics", category=RoleCategory.support,
         capacity_per_shift=6, icon="📦"),
    Role(id="social-media", name="Social Media", category=RoleCategory.support,
         capacity_per_shift=3, icon="📱"),
    Role(id="finance", name="Finance", category=RoleCategory.support,
         capacity_per_shift=2, icon="💰"),
    Role(id="registration", name="Registration", category=RoleCategory.support,
         capacity_per_shift=4, icon="📋"),
    Role(id="pharmacy", name="Pharmacy", category=RoleCategory.support,
         capacity_per_shift=4, icon="💊"),
]


def default_clinic_days() -> list[ClinicDay]:
    return [
        ClinicDay(id=f"day-{n}", date=f"2026-03-{14 + n}", name=f"Clinic Day {n}")
        for n in range(1, 6)
    ]


def default_flow_rates() -> list[FlowRate]:
    return [
        FlowRate(
            role_id=role.id,
            patients_per_hour_per_staff=role.patients_per_hour_per_staff,
            source=FlowRateSource.historical,
        )
        for role in ROLES
        if role.patients_per_hour_per_staff is not None
    ]


def sample_participants() -> list[Participant]:
    return [
        Participant(
            id="admin-1",
            name="Admin User",
            email="admin@pmmt.org",
            primary_role="logistics",
            is_admin=True,
        ),
    ]


def initial_state() -> MissionState:
    """
    The state a brand new install starts from.

    Also the fallback whenever a stored snapshot cannot be read.
    """
    return MissionState(
        participants=sample_participants(),
        clinic_days=default_clinic_days(),
        roles=list(ROLES),
        shifts=list(SHIFTS),
        flow_rates=default_flow_rates(),
    )


def get_clinical_roles(roles: Optional[Iterable[Role]] = None) -> list[Role]:
    """Clinical roles from `roles`, or from the built-in catalog."""
    return [r for r in (ROLES if roles is None else roles) if r.category == RoleCategory.clinical]


def get_role_by_id(role_id: str, roles: Optional[Iterable[Role]] = None) -> Optional[Role]:
    return next((r for r in (ROLES if roles is None else roles) if r.id == role_id), None)


def get_shift_by_id(shift_id: str, shifts: Optional[Iterable[Shift]] = None) -> Optional[Shift]:
    # ShiftId is a str enum, so both "morning1" and ShiftId.morning1 match
    return next((s for s in (SHIFTS if shifts is None else shifts) if s.id == shift_id), None)
