"""
Matches the health event catalog against a pet's species and age.

Recurring events (dental checks, blood panels, senior visits) stay applicable
forever once their trigger age is reached; rolling their due date forward is
the notification scheduler's job. One-off events (neutering) drop out once
the recommended window has closed.
"""

from datetime import date, timedelta

import structlog

from pethealth.domain.models import Age, HealthEventDefinition, PetProfile
from pethealth.services.catalog import Catalog
from pethealth.services.lifecycle_calculator import calculate_age

logger = structlog.get_logger(__name__)

DEFAULT_EVENT_LEAD_DAYS = 14

# Months after the trigger age during which a one-off event is still suggested.
# Not configurable per event; pending product confirmation.
ONE_OFF_GRACE_MONTHS = 3


def event_lead_days(event: HealthEventDefinition, default: int = DEFAULT_EVENT_LEAD_DAYS) -> int:
    if event.notification_lead_days is None:
        return default
    return event.notification_lead_days


def trigger_reached(event: HealthEventDefinition, age: Age) -> bool:
    """True once age meets the month or year trigger. Entries without a trigger never match."""
    if event.trigger_age_months is not None and age.total_months >= event.trigger_age_months:
        return True
    if event.trigger_age_years is not None and age.years >= event.trigger_age_years:
        return True
    return False


def one_off_window_closed(event: HealthEventDefinition, age: Age) -> bool:
    offset = event.trigger_offset_months
    if event.is_recurring or offset is None:
        return False
    return age.total_months > offset + ONE_OFF_GRACE_MONTHS


def generate_applicable_events(
    pet: PetProfile,
    catalog: Catalog,
    today: date,
    lookahead_days: int = 0,
) -> list[HealthEventDefinition]:
    """
    Health events that currently apply to pet.

    An event applies once the pet's age at today reaches its trigger. A
    positive lookahead_days checks the trigger that many days ahead instead,
    which lets a caller see events whose reminder opens before the trigger
    age. Pets without species or birth date, or born after today, get an
    empty list.
    """
    if pet.species is None or pet.birth_date is None:
        return []
    if pet.birth_date > today:
        logger.warning("pet_birth_date_in_future", pet_id=pet.id, birth_date=str(pet.birth_date))
        return []
    if lookahead_days < 0:
        raise ValueError("lookahead_days must not be negative")

    age_today = calculate_age(pet.birth_date, today)
    age_at_horizon = calculate_age(pet.birth_date, today + timedelta(days=lookahead_days))
    applicable: list[HealthEventDefinition] = []

    for event in catalog.health_events:
        if not event.species.matches(pet.species):
            continue
        if not trigger_reached(event, age_at_horizon):
            continue
        if one_off_window_closed(event, age_today):
            continue

        applicable.append(event)

    logger.debug(
        "applicable_events_matched",
        pet_id=pet.id,
        species=pet.species.value,
        total_months=age_today.total_months,
        codes=[e.code for e in applicable],
    )
    return applicable
