"""
Vaccine schedule generation from the vaccine catalog and a pet's dose history.

Rules per applicable vaccine:

- never given: dose 1 at birth + trigger offset (weeks win over months), even if overdue
- given, with booster interval: next booster at last completed dose + interval,
  listed only while that date is today or later
- given, no booster: finished, not listed
"""

from collections import defaultdict
from collections.abc import Iterable
from datetime import date, timedelta

import structlog

from pethealth.domain.models import (
    LifecycleStage,
    Priority,
    Species,
    VaccinationRecord,
    VaccineDefinition,
    VaccineSchedule,
    VaccineScheduleResult,
)
from pethealth.services.calendar_math import add_months, add_weeks, days_between
from pethealth.services.catalog import Catalog
from pethealth.services.lifecycle_calculator import calculate_lifecycle_stage

logger = structlog.get_logger(__name__)

HIGH_PRIORITY_WITHIN_DAYS = 7
MEDIUM_PRIORITY_WITHIN_DAYS = 14


def calculate_vaccine_priority(days_until: int | None) -> Priority:
    """Bucket the days remaining until a dose. Overdue doses are high priority."""
    if days_until is None:
        return Priority.LOW
    if days_until <= HIGH_PRIORITY_WITHIN_DAYS:
        return Priority.HIGH
    if days_until <= MEDIUM_PRIORITY_WITHIN_DAYS:
        return Priority.MEDIUM
    return Priority.LOW


def vaccine_trigger_date(vaccine: VaccineDefinition, birth_date: date) -> date:
    if vaccine.trigger_age_weeks is not None:
        return add_weeks(birth_date, vaccine.trigger_age_weeks)
    # validated on the model: one of the two triggers is always set
    return add_months(birth_date, vaccine.trigger_age_months or 0)


def vaccine_applies(
    vaccine: VaccineDefinition,
    species: Species,
    stage: LifecycleStage,
    birth_date: date,
    today: date,
    lookahead_days: int = 0,
) -> bool:
    """Species and stage match, and the trigger age is reached within lookahead_days of today."""
    if not vaccine.species.matches(species):
        return False
    if vaccine.stages is not None and stage not in vaccine.stages:
        return False
    return vaccine_trigger_date(vaccine, birth_date) <= today + timedelta(days=lookahead_days)


def _completed_by_code(
    records: Iterable[VaccinationRecord],
) -> dict[str, list[VaccinationRecord]]:
    completed: dict[str, list[VaccinationRecord]] = defaultdict(list)
    for record in records:
        if record.is_completed:
            completed[record.vaccine_code].append(record)
    return completed


def _schedule_entry(
    vaccine: VaccineDefinition,
    recommended_date: date,
    dose_number: int,
    total_doses: int | None,
    today: date,
) -> VaccineSchedule:
    return VaccineSchedule(
        vaccine_code=vaccine.code,
        vaccine_name=vaccine.name,
        recommended_date=recommended_date,
        dose_number=dose_number,
        total_doses=total_doses,
        priority=calculate_vaccine_priority(days_between(today, recommended_date)),
        required=vaccine.required,
        is_booster=total_doses is None,
    )


def generate_vaccine_schedules(
    species: Species,
    birth_date: date,
    existing_records: Iterable[VaccinationRecord],
    catalog: Catalog,
    today: date,
    lookahead_days: int = 0,
) -> VaccineScheduleResult:
    """
    Ordered list of due and upcoming vaccine doses for one pet.

    A vaccine is considered once the pet has reached its trigger age, or will
    within lookahead_days.

    Raises:
        BirthDateInFutureError: birth_date is after today.
    """
    stage = calculate_lifecycle_stage(species, birth_date, today).stage
    completed = _completed_by_code(existing_records)
    schedules: list[VaccineSchedule] = []

    for vaccine in catalog.vaccines:
        if not vaccine_applies(vaccine, species, stage, birth_date, today, lookahead_days):
            continue

        doses = completed.get(vaccine.code)
        if doses:
            if vaccine.booster_interval_months is None:
                continue
            last_completed = max(d.completed_date for d in doses if d.completed_date)
            booster_date = add_months(last_completed, vaccine.booster_interval_months)
            if booster_date < today:
                continue
            next_dose = max(d.dose_number for d in doses) + 1
            schedules.append(_schedule_entry(vaccine, booster_date, next_dose, None, today))
        else:
            first_date = vaccine_trigger_date(vaccine, birth_date)
            schedules.append(_schedule_entry(vaccine, first_date, 1, 1, today))

    schedules.sort(key=lambda s: (s.recommended_date, not s.required, s.vaccine_code))

    next_due = next((s.recommended_date for s in schedules if s.recommended_date >= today), None)
    days_until_next = days_between(today, next_due) if next_due is not None else None

    catalog_codes = {v.code for v in catalog.vaccines}
    completed_count = sum(len(doses) for code, doses in completed.items() if code in catalog_codes)

    logger.debug(
        "vaccine_schedules_generated",
        species=species.value,
        stage=stage.value,
        schedules=len(schedules),
        next_due_date=str(next_due) if next_due else None,
    )

    return VaccineScheduleResult(
        schedules=schedules,
        next_due_date=next_due,
        days_until_next=days_until_next,
        completed_count=completed_count,
        pending_count=len(schedules),
    )
