"""
Age and lifecycle stage calculation (AVMA/AAHA age bands).

Stage boundaries, in months of calendar age:

- dog:   puppy <6, junior <12, adult <84, mature_adult <120, senior <144, geriatric after
- cat:   kitten <6, junior <12, adult <84, mature_adult <120, senior <180, geriatric after
- other: puppy <6, junior <12, adult <84, senior after

Stages only move forward with time and the last one is absorbing.
"""

from datetime import date

from pethealth.domain.errors import BirthDateInFutureError
from pethealth.domain.models import Age, LifecycleInfo, LifecycleStage, Species, StageTransition
from pethealth.services.calendar_math import add_months, days_between, days_in_previous_month

# (upper bound in months exclusive, stage); the final entry has no upper bound
StageTable = tuple[tuple[int | None, LifecycleStage], ...]

STAGE_TABLES: dict[Species, StageTable] = {
    Species.DOG: (
        (6, LifecycleStage.PUPPY),
        (12, LifecycleStage.JUNIOR),
        (84, LifecycleStage.ADULT),
        (120, LifecycleStage.MATURE_ADULT),
        (144, LifecycleStage.SENIOR),
        (None, LifecycleStage.GERIATRIC),
    ),
    Species.CAT: (
        (6, LifecycleStage.KITTEN),
        (12, LifecycleStage.JUNIOR),
        (84, LifecycleStage.ADULT),
        (120, LifecycleStage.MATURE_ADULT),
        (180, LifecycleStage.SENIOR),
        (None, LifecycleStage.GERIATRIC),
    ),
    Species.OTHER: (
        (6, LifecycleStage.PUPPY),
        (12, LifecycleStage.JUNIOR),
        (84, LifecycleStage.ADULT),
        (None, LifecycleStage.SENIOR),
    ),
}

STAGE_LABELS: dict[Species, dict[LifecycleStage, str]] = {
    Species.DOG: {
        LifecycleStage.PUPPY: "Puppy",
        LifecycleStage.JUNIOR: "Junior dog",
        LifecycleStage.ADULT: "Adult dog",
        LifecycleStage.MATURE_ADULT: "Mature adult dog",
        LifecycleStage.SENIOR: "Senior dog",
        LifecycleStage.GERIATRIC: "Geriatric dog",
    },
    Species.CAT: {
        LifecycleStage.KITTEN: "Kitten",
        LifecycleStage.JUNIOR: "Junior cat",
        LifecycleStage.ADULT: "Adult cat",
        LifecycleStage.MATURE_ADULT: "Mature adult cat",
        LifecycleStage.SENIOR: "Senior cat",
        LifecycleStage.GERIATRIC: "Geriatric cat",
    },
    Species.OTHER: {
        LifecycleStage.PUPPY: "Juvenile",
        LifecycleStage.JUNIOR: "Adolescent",
        LifecycleStage.ADULT: "Adult",
        LifecycleStage.SENIOR: "Senior",
    },
}


def calculate_age(birth_date: date, today: date) -> Age:
    """
    Calendar age of a pet born on birth_date, as of today.

    Subtracts the calendar fields and borrows when a remainder is negative:
    a short day count borrows a month worth the length of the month before
    today's, a short month count borrows a year. A future birth date gives
    negative totals; callers are expected to reject it.
    """
    years = today.year - birth_date.year
    months = today.month - birth_date.month
    days = today.day - birth_date.day

    if days < 0:
        months -= 1
        days += days_in_previous_month(today)
    if months < 0:
        years -= 1
        months += 12

    return Age(
        years=years,
        months=months,
        days=days,
        total_days=days_between(birth_date, today),
        total_months=years * 12 + months,
    )


def stage_order(species: Species) -> tuple[LifecycleStage, ...]:
    """Stages of a species from youngest to oldest."""
    return tuple(stage for _, stage in STAGE_TABLES[species])


def stage_label(stage: LifecycleStage, species: Species) -> str:
    return STAGE_LABELS[species].get(stage, stage.value)


def calculate_lifecycle_stage(species: Species, birth_date: date, today: date) -> LifecycleInfo:
    """
    Classify a pet into its species' lifecycle stage.

    Raises:
        BirthDateInFutureError: birth_date is after today.
    """
    if birth_date > today:
        raise BirthDateInFutureError(birth_date, today)

    age = calculate_age(birth_date, today)
    table = STAGE_TABLES[species]

    for index, (upper_months, stage) in enumerate(table):
        if upper_months is None or age.total_months < upper_months:
            break

    next_stage = None
    if upper_months is not None:
        following = table[index + 1][1]
        next_stage = StageTransition(
            stage=following,
            stage_label=stage_label(following, species),
            estimated_date=add_months(birth_date, upper_months),
        )

    return LifecycleInfo(
        stage=stage,
        stage_label=stage_label(stage, species),
        age=age,
        next_stage=next_stage,
    )


def format_age(age: Age) -> str:
    """Human readable age, e.g. '2 years 3 months', '5 months' or '12 days'."""

    def _plural(count: int, unit: str) -> str:
        return f"{count} {unit}" if count == 1 else f"{count} {unit}s"

    if age.years > 0:
        if age.months > 0:
            return f"{_plural(age.years, 'year')} {_plural(age.months, 'month')}"
        return _plural(age.years, "year")
    if age.months > 0:
        return _plural(age.months, "month")
    return _plural(age.total_days, "day")
