"""
Domain models for pet lifecycle and health scheduling.

These models represent the core business concepts and are framework-agnostic.
Reference data (catalog entries) and derived values are frozen; only the
run summary is assembled incrementally.
"""

from datetime import UTC, date, datetime, timedelta
from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, computed_field, model_validator


class Species(str, Enum):
    """Species the engine knows how to classify."""

    DOG = "dog"
    CAT = "cat"
    OTHER = "other"


class SpeciesFilter(str, Enum):
    """Which species a catalog entry applies to. BOTH covers dogs and cats only."""

    DOG = "dog"
    CAT = "cat"
    BOTH = "both"

    def matches(self, species: Species) -> bool:
        if self is SpeciesFilter.BOTH:
            return species in (Species.DOG, Species.CAT)
        return self.value == species.value


class LifecycleStage(str, Enum):
    """Coarse age bands. Dogs start as puppies, cats as kittens."""

    PUPPY = "puppy"
    KITTEN = "kitten"
    JUNIOR = "junior"
    ADULT = "adult"
    MATURE_ADULT = "mature_adult"
    SENIOR = "senior"
    GERIATRIC = "geriatric"


class HealthEventType(str, Enum):
    NEUTERING = "neutering"
    DENTAL = "dental"
    BLOOD_TEST = "blood_test"
    SENIOR_CARE = "senior_care"
    OTHER = "other"


class Priority(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


OccurrenceKind = Literal["health_event", "vaccine"]


class PetProfile(BaseModel):
    """Pet as supplied by profile management. Read-only to this engine."""

    model_config = ConfigDict(frozen=True)

    id: str
    user_id: str
    name: str
    species: Species | None = None
    birth_date: date | None = None

    @property
    def is_schedulable(self) -> bool:
        return self.species is not None and self.birth_date is not None


class Age(BaseModel):
    """Calendar age. Always recomputed; never persisted."""

    model_config = ConfigDict(frozen=True)

    years: int
    months: int
    days: int
    total_days: int
    total_months: int


class StageTransition(BaseModel):
    model_config = ConfigDict(frozen=True)

    stage: LifecycleStage
    stage_label: str
    estimated_date: date


class LifecycleInfo(BaseModel):
    """Current stage of a pet plus the estimated date it moves on."""

    model_config = ConfigDict(frozen=True)

    stage: LifecycleStage
    stage_label: str
    age: Age
    next_stage: StageTransition | None = None


class HealthEventDefinition(BaseModel):
    """Static catalog entry for a non-vaccine health event."""

    model_config = ConfigDict(frozen=True)

    code: str = Field(min_length=1)
    name: str = Field(min_length=1)
    event_type: HealthEventType
    species: SpeciesFilter
    trigger_age_months: int | None = Field(default=None, ge=0)
    trigger_age_years: int | None = Field(default=None, ge=0)
    recurrence_interval_months: int | None = Field(
        default=None, gt=0, description="Months between occurrences; None for one-off events"
    )
    priority: Priority = Priority.MEDIUM
    notification_lead_days: int | None = Field(
        default=None, ge=0, description="Days before the due date to notify; None uses the default"
    )
    description: str = ""
    recommended_action: str = ""

    @property
    def is_recurring(self) -> bool:
        return self.recurrence_interval_months is not None

    @property
    def trigger_offset_months(self) -> int | None:
        """Trigger age as months from birth. Months take priority over years."""
        if self.trigger_age_months is not None:
            return self.trigger_age_months
        if self.trigger_age_years is not None:
            return self.trigger_age_years * 12
        return None


class VaccineDefinition(BaseModel):
    """Static catalog entry for a vaccine and its booster cadence."""

    model_config = ConfigDict(frozen=True)

    code: str = Field(min_length=1)
    name: str = Field(min_length=1)
    species: SpeciesFilter
    stages: frozenset[LifecycleStage] | None = Field(
        default=None, description="Restrict to these lifecycle stages; None means any stage"
    )
    trigger_age_weeks: int | None = Field(default=None, ge=0)
    trigger_age_months: int | None = Field(default=None, ge=0)
    required: bool = False
    booster_interval_months: int | None = Field(default=None, gt=0)
    notification_lead_days: int = Field(default=7, ge=0)
    description: str = ""

    @model_validator(mode="after")
    def trigger_is_set(self) -> "VaccineDefinition":
        if self.trigger_age_weeks is None and self.trigger_age_months is None:
            raise ValueError(f"vaccine {self.code} needs trigger_age_weeks or trigger_age_months")
        return self


class VaccinationRecord(BaseModel):
    """Dose logged by the owner, either completed or merely scheduled."""

    model_config = ConfigDict(frozen=True)

    vaccine_code: str
    dose_number: int = Field(default=1, ge=1)
    completed_date: date | None = None
    scheduled_date: date | None = None

    @property
    def is_completed(self) -> bool:
        return self.completed_date is not None


class VaccineSchedule(BaseModel):
    """One computed dose. Exists only for the duration of a scheduling pass."""

    model_config = ConfigDict(frozen=True)

    vaccine_code: str
    vaccine_name: str
    recommended_date: date
    dose_number: int
    total_doses: int | None = Field(description="None when boosters repeat indefinitely")
    priority: Priority
    required: bool
    is_booster: bool = False


class VaccineScheduleResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    schedules: list[VaccineSchedule]
    next_due_date: date | None = None
    days_until_next: int | None = None
    completed_count: int = 0
    pending_count: int = 0


class DedupRecord(BaseModel):
    """Audit entry written when a notification for (pet, code) is fired."""

    model_config = ConfigDict(frozen=True)

    pet_id: str
    code: str
    fired_at: datetime = Field(default_factory=lambda: datetime.now(UTC))


class Occurrence(BaseModel):
    """A concrete due instance of a health event or vaccine dose."""

    model_config = ConfigDict(frozen=True)

    code: str
    name: str
    kind: OccurrenceKind
    target_date: date
    lead_days: int = Field(ge=0)
    priority: Priority
    event_type: HealthEventType | None = None
    dose_number: int | None = None
    description: str = ""
    recommended_action: str = ""

    @computed_field  # type: ignore[prop-decorator]
    @property
    def fire_date(self) -> date:
        return self.target_date - timedelta(days=self.lead_days)


class Notification(BaseModel):
    """Payload handed to the notification sender."""

    model_config = ConfigDict(frozen=True)

    pet_id: str
    user_id: str
    code: str
    title: str
    message: str
    priority: Literal["high", "normal", "low"]
    channel: Literal["push", "sms", "email", "in_app"] = "in_app"
    category: str
    due_date: date
    context: dict[str, Any] = Field(default_factory=dict)


class RunSummary(BaseModel):
    """Counters reported by one scheduler run."""

    processed: int = 0
    notifications_sent: int = 0
    duplicates_suppressed: int = 0
    skipped: int = 0
    errors: int = 0
    started_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    duration_seconds: float = Field(default=0.0, ge=0.0)
