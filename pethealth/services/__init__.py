"""
Core services for the pet health engine.

This package contains the lifecycle calculator, the catalog matcher, the
vaccine schedule generator and the notification scheduler batch job.
"""

from .catalog import Catalog, default_catalog, get_catalog, load_catalog
from .event_matcher import ONE_OFF_GRACE_MONTHS, generate_applicable_events
from .lifecycle_calculator import calculate_age, calculate_lifecycle_stage, format_age
from .notification_scheduler import (
    NotificationScheduler,
    NotificationSender,
    PetSource,
    RecordStore,
    compute_event_target_date,
    roll_forward,
)
from .vaccine_scheduler import calculate_vaccine_priority, generate_vaccine_schedules

__all__ = [
    "Catalog",
    "NotificationScheduler",
    "NotificationSender",
    "ONE_OFF_GRACE_MONTHS",
    "PetSource",
    "RecordStore",
    "calculate_age",
    "calculate_lifecycle_stage",
    "calculate_vaccine_priority",
    "compute_event_target_date",
    "default_catalog",
    "format_age",
    "generate_applicable_events",
    "generate_vaccine_schedules",
    "get_catalog",
    "load_catalog",
    "roll_forward",
]
