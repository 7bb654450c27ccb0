"""
End-to-end demo of the pet health scheduling pipeline.

This script shows:
1. Configuration loading and validation
2. Lifecycle classification for a small household of pets
3. Vaccine schedules built from logged doses
4. Two scheduler runs back to back (the second sends nothing)

Run with: uv run python demo_scheduler.py
"""

import asyncio
from datetime import UTC, date, datetime, timedelta

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from adapters.memory import InMemoryNotificationSender, InMemoryPetSource, InMemoryRecordStore
from pethealth.config import get_config, print_config_summary, validate_config
from pethealth.domain.models import PetProfile, RunSummary, Species, VaccinationRecord
from pethealth.logging_config import configure_logging
from pethealth.services.calendar_math import add_months
from pethealth.services.catalog import get_catalog
from pethealth.services.event_matcher import generate_applicable_events
from pethealth.services.lifecycle_calculator import calculate_lifecycle_stage, format_age
from pethealth.services.notification_scheduler import NotificationScheduler
from pethealth.services.vaccine_scheduler import generate_vaccine_schedules

console = Console()


def build_household(today: date) -> tuple[InMemoryPetSource, InMemoryRecordStore]:
    """A puppy, an adult cat due for dental care and a senior dog."""
    pets = [
        PetProfile(
            id="pet-1",
            user_id="user-1",
            name="Biscuit",
            species=Species.DOG,
            birth_date=add_months(today, -5) - timedelta(days=1),
        ),
        PetProfile(
            id="pet-2",
            user_id="user-1",
            name="Miso",
            species=Species.CAT,
            birth_date=add_months(today, -48) + timedelta(days=14),
        ),
        PetProfile(
            id="pet-3",
            user_id="user-2",
            name="Rex",
            species=Species.DOG,
            birth_date=add_months(today, -131) + timedelta(days=14),
        ),
        PetProfile(id="pet-4", user_id="user-2", name="Pebble", species=Species.OTHER),
    ]

    store = InMemoryRecordStore()
    store.add_vaccination_record(
        "pet-2",
        VaccinationRecord(
            vaccine_code="cat_fvrcp",
            dose_number=3,
            completed_date=add_months(today, -12) + timedelta(days=5),
        ),
    )
    store.add_vaccination_record(
        "pet-3",
        VaccinationRecord(
            vaccine_code="dog_rabies", dose_number=9, completed_date=add_months(today, -2)
        ),
    )
    return InMemoryPetSource(pets), store


def show_lifecycle_table(source: InMemoryPetSource, today: date) -> None:
    catalog = get_catalog(get_config().catalog.path)
    table = Table(title="Lifecycle overview")
    table.add_column("Pet")
    table.add_column("Age")
    table.add_column("Stage")
    table.add_column("Next stage")
    table.add_column("Applicable events")

    for pet in source.pets:
        if pet.species is None or pet.birth_date is None:
            table.add_row(pet.name, "-", "-", "-", "no birth date")
            continue
        info = calculate_lifecycle_stage(pet.species, pet.birth_date, today)
        next_stage = (
            f"{info.next_stage.stage_label} on {info.next_stage.estimated_date}"
            if info.next_stage
            else "-"
        )
        events = generate_applicable_events(pet, catalog, today)
        table.add_row(
            pet.name,
            format_age(info.age),
            info.stage_label,
            next_stage,
            ", ".join(e.code for e in events) or "-",
        )

    console.print(table)


async def show_vaccine_table(
    source: InMemoryPetSource, store: InMemoryRecordStore, today: date
) -> None:
    catalog = get_catalog(get_config().catalog.path)
    table = Table(title="Vaccine schedules")
    table.add_column("Pet")
    table.add_column("Vaccine")
    table.add_column("Dose")
    table.add_column("Date")
    table.add_column("Priority")

    for pet in await source.list_pets_with_birth_date_and_species():
        assert pet.species is not None and pet.birth_date is not None
        records = await store.get_vaccination_records(pet.id)
        result = generate_vaccine_schedules(pet.species, pet.birth_date, records, catalog, today)
        for entry in result.schedules:
            dose = f"{entry.dose_number}/{entry.total_doses or '∞'}"
            table.add_row(
                pet.name,
                entry.vaccine_name,
                dose,
                entry.recommended_date.isoformat(),
                entry.priority.value,
            )

    console.print(table)


def show_summary(label: str, summary: RunSummary) -> None:
    console.print(
        Panel(
            f"Processed: {summary.processed}\n"
            f"Sent: {summary.notifications_sent}\n"
            f"Duplicates suppressed: {summary.duplicates_suppressed}\n"
            f"Skipped: {summary.skipped}\n"
            f"Errors: {summary.errors}\n"
            f"Duration: {summary.duration_seconds:.3f}s",
            title=label,
        )
    )


async def main() -> None:
    config = get_config()
    configure_logging(config.logging)
    validate_config()
    print_config_summary()

    now = datetime.now(UTC)
    today = now.date()
    source, store = build_household(today)
    sender = InMemoryNotificationSender()
    scheduler = NotificationScheduler(
        source, store, sender, get_catalog(config.catalog.path), config.scheduler
    )

    show_lifecycle_table(source, today)
    await show_vaccine_table(source, store, today)

    show_summary("First run", await scheduler.run(today=today, now=now))
    for notification in sender.sent:
        console.print(
            f"[bold]{notification.title}[/bold] ({notification.priority}): {notification.message}"
        )

    show_summary("Second run", await scheduler.run(today=today, now=now + timedelta(minutes=5)))


if __name__ == "__main__":
    asyncio.run(main())
