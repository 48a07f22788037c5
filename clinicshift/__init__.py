"""ClinicShift: shift sign-ups, staffing coverage and patient capacity for mission clinics."""

__version__ = "0.1.0"
