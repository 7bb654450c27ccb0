"""Title, message and category composition for pet health reminders."""

from pethealth.domain.models import HealthEventType, Occurrence, PetProfile

CATEGORY_BY_EVENT_TYPE: dict[HealthEventType, str] = {
    HealthEventType.NEUTERING: "pet_healthcare",
    HealthEventType.DENTAL: "pet_dental",
    HealthEventType.BLOOD_TEST: "pet_checkup",
    HealthEventType.SENIOR_CARE: "pet_healthcare",
    HealthEventType.OTHER: "pet_healthcare",
}
VACCINE_CATEGORY = "pet_vaccination"


def days_until_text(days_until: int) -> str:
    if days_until <= 0:
        return "today"
    if days_until == 1:
        return "tomorrow"
    return f"in {days_until} days"


def category_for(occurrence: Occurrence) -> str:
    if occurrence.kind == "vaccine" or occurrence.event_type is None:
        return VACCINE_CATEGORY
    return CATEGORY_BY_EVENT_TYPE[occurrence.event_type]


def build_title(pet: PetProfile, occurrence: Occurrence) -> str:
    return f"{pet.name}: {occurrence.name}"


def build_message(pet: PetProfile, occurrence: Occurrence, days_until: int) -> str:
    when = days_until_text(days_until)
    if occurrence.kind == "vaccine":
        dose = f" (dose {occurrence.dose_number})" if occurrence.dose_number else ""
        message = f"{pet.name}'s {occurrence.name}{dose} is due {when}."
    elif occurrence.event_type is HealthEventType.NEUTERING:
        message = f"The recommended window for {pet.name}'s {occurrence.name.lower()} opens {when}."
    else:
        message = f"{pet.name}'s {occurrence.name.lower()} is due {when}."

    if occurrence.description:
        message = f"{message} {occurrence.description}"
    return message
