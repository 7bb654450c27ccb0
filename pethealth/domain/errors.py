"""
Error taxonomy for the scheduling engine.

Only PetSourceUnavailableError is allowed to escape a scheduler run; every
other failure is scoped to one pet or one occurrence and is counted instead.
"""

from datetime import date


class PetHealthError(Exception):
    """Base class for engine errors."""


class BirthDateInFutureError(PetHealthError, ValueError):
    """Raised when a profile's birth date lies after the evaluation date."""

    def __init__(self, birth_date: date, today: date) -> None:
        super().__init__(f"birth date {birth_date.isoformat()} is after {today.isoformat()}")
        self.birth_date = birth_date
        self.today = today


class CatalogError(PetHealthError):
    """A catalog file or entry is malformed."""


class NotificationSendError(PetHealthError):
    """The downstream channel rejected or failed a notification."""


class PetSourceUnavailableError(PetHealthError):
    """The pet source could not be read; the whole run is aborted."""
