from typing import Optional


class ClinicShiftError(Exception):
    """Base for errors the core raises on purpose."""


class SnapshotFormatError(ClinicShiftError):
    """An imported or stored snapshot could not be parsed."""

    def __init__(self, reason: str = "", details: Optional[dict] = None):
        self.reason = reason
        self.details = details or {}
        super().__init__("Invalid format")
