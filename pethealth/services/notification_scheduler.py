"""
Notification scheduler batch job for pet health reminders.

Key patterns:
- Protocol-based collaborators (pet source, record store, notification sender)
- Structured concurrency with asyncio.TaskGroup, bounded by a semaphore
- Every collaborator call guarded by a timeout; retries happen on the next run
- Isolated failures: one pet or occurrence failing never aborts the batch
- Idempotence through an atomic dedup reservation per (pet, code)
"""

import asyncio
import time
from dataclasses import dataclass
from datetime import UTC, date, datetime, timedelta
from typing import Any, Protocol

import structlog

from pethealth.config import SchedulerConfig
from pethealth.domain.errors import CatalogError, NotificationSendError, PetSourceUnavailableError
from pethealth.domain.models import (
    DedupRecord,
    HealthEventDefinition,
    Notification,
    Occurrence,
    PetProfile,
    Priority,
    RunSummary,
    Species,
    VaccinationRecord,
    VaccineScheduleResult,
)
from pethealth.domain.result import Result
from pethealth.services.calendar_math import add_months, days_between, whole_months_between
from pethealth.services.catalog import Catalog
from pethealth.services.event_matcher import event_lead_days, generate_applicable_events
from pethealth.services.notification_messages import build_message, build_title, category_for
from pethealth.services.vaccine_scheduler import generate_vaccine_schedules

logger = structlog.get_logger(__name__)

SENDER_PRIORITY: dict[Priority, str] = {
    Priority.HIGH: "high",
    Priority.MEDIUM: "normal",
    Priority.LOW: "low",
}


class PetSource(Protocol):
    """Supplies every pet eligible for scheduling."""

    async def list_pets_with_birth_date_and_species(self) -> list[PetProfile]: ...


class RecordStore(Protocol):
    """
    Vaccination history and the notification dedup log.

    write_dedup_record must be an atomic conditional insert: it returns False
    without writing when a record for the same (pet, code) was fired at or
    after since.
    """

    async def get_vaccination_records(self, pet_id: str) -> list[VaccinationRecord]: ...

    async def get_recent_dedup_record(self, pet_id: str, code: str, since: datetime) -> bool: ...

    async def write_dedup_record(self, record: DedupRecord, since: datetime) -> bool: ...

    async def delete_dedup_record(self, record: DedupRecord) -> None: ...


class NotificationSender(Protocol):
    """Delivers a notification; returns the notification id or the failure."""

    async def send(self, notification: Notification) -> Result[str, Exception]: ...


def roll_forward(start: date, interval_months: int, today: date) -> date:
    """
    First occurrence of a recurring date strictly after today.

    Occurrences are computed from start (start + n * interval) so month-end
    clamping does not drift across cycles.
    """
    if interval_months <= 0:
        raise ValueError("interval_months must be positive")
    if start > today:
        return start

    cycles = max(whole_months_between(start, today) // interval_months, 0)
    target = add_months(start, cycles * interval_months)
    while target <= today:
        cycles += 1
        target = add_months(start, cycles * interval_months)
    return target


def compute_event_target_date(event: HealthEventDefinition, birth_date: date, today: date) -> date:
    """
    Due date of the next occurrence of a health event.

    One-off events are due at birth + trigger age. Recurring events start
    there and are rolled forward past today.

    Raises:
        CatalogError: the event has no trigger age.
    """
    offset = event.trigger_offset_months
    if offset is None:
        raise CatalogError(f"health event {event.code} has no trigger age")

    target = add_months(birth_date, offset)
    if event.recurrence_interval_months is not None and target <= today:
        target = roll_forward(target, event.recurrence_interval_months, today)
    return target


def is_within_fire_window(fire_date: date, today: date, tolerance_days: int = 1) -> bool:
    """True when today falls in [fire_date, fire_date + tolerance_days]."""
    return 0 <= days_between(fire_date, today) <= tolerance_days


def dedup_cutoff(
    today: date, now: datetime, window_hours: int = 24, tolerance_days: int = 1
) -> datetime:
    """
    Earliest fired_at that still counts as a duplicate for a run on today.

    Anchored at the start of today rather than at now, so a job that runs at
    the same hour on consecutive days still sees yesterday's send while the
    reminder sits inside its fire window.
    """
    day_start = datetime.combine(today, datetime.min.time(), tzinfo=now.tzinfo)
    lookback = max(timedelta(hours=window_hours), timedelta(days=tolerance_days))
    return day_start - lookback


def to_sender_priority(priority: Priority) -> str:
    return SENDER_PRIORITY[priority]


@dataclass
class PetOutcome:
    """Counters for a single pet. Each pet task owns its own instance."""

    notifications_sent: int = 0
    duplicates_suppressed: int = 0
    errors: int = 0
    skipped: bool = False


class NotificationScheduler:
    """
    Decides, for every pet, which health reminders fire today and sends them once.

    Safe to run any number of times per day: the dedup log suppresses repeats
    within the configured window, and a reservation is released again when
    delivery fails so the next run can retry.
    """

    def __init__(
        self,
        pet_source: PetSource,
        record_store: RecordStore,
        sender: NotificationSender,
        catalog: Catalog,
        config: SchedulerConfig | None = None,
    ) -> None:
        self.pet_source = pet_source
        self.record_store = record_store
        self.sender = sender
        self.catalog = catalog
        self.config = config or SchedulerConfig()
        self.logger = logger.bind(component="notification_scheduler", catalog=catalog.version)

    async def _call(self, awaitable: Any) -> Any:
        return await asyncio.wait_for(awaitable, timeout=self.config.io_timeout_seconds)

    async def run(self, today: date | None = None, now: datetime | None = None) -> RunSummary:
        """
        Process every pet once.

        Raises:
            PetSourceUnavailableError: the pet list could not be loaded.
        """
        now = now or datetime.now(UTC)
        today = today or now.date()
        start_time = time.perf_counter()
        self.logger.info("scheduler_run_started", today=today.isoformat())

        try:
            pets = await self._call(self.pet_source.list_pets_with_birth_date_and_species())
        except Exception as e:
            self.logger.exception("pet_source_unavailable", error=str(e))
            raise PetSourceUnavailableError(f"Could not load pets: {e}") from e

        semaphore = asyncio.Semaphore(self.config.max_concurrent_pets)

        async def _bounded(pet: PetProfile) -> PetOutcome:
            async with semaphore:
                return await self.process_pet(pet, today, now)

        async with asyncio.TaskGroup() as task_group:
            tasks = [task_group.create_task(_bounded(pet), name=f"pet:{pet.id}") for pet in pets]

        outcomes = [task.result() for task in tasks]
        summary = RunSummary(
            processed=len(outcomes),
            notifications_sent=sum(o.notifications_sent for o in outcomes),
            duplicates_suppressed=sum(o.duplicates_suppressed for o in outcomes),
            skipped=sum(1 for o in outcomes if o.skipped),
            errors=sum(o.errors for o in outcomes),
            started_at=now,
            duration_seconds=round(time.perf_counter() - start_time, 3),
        )

        self.logger.info(
            "scheduler_run_completed",
            processed=summary.processed,
            notifications_sent=summary.notifications_sent,
            duplicates_suppressed=summary.duplicates_suppressed,
            skipped=summary.skipped,
            errors=summary.errors,
            duration_seconds=summary.duration_seconds,
        )
        return summary

    async def process_pet(self, pet: PetProfile, today: date, now: datetime) -> PetOutcome:
        """Evaluate and notify for one pet. Never raises except on cancellation."""
        outcome = PetOutcome()
        log = self.logger.bind(pet_id=pet.id)

        if pet.species is None or pet.birth_date is None:
            outcome.skipped = True
            log.info("pet_skipped", reason="missing_species_or_birth_date")
            return outcome
        if pet.birth_date > today:
            outcome.skipped = True
            log.warning("pet_skipped", reason="birth_date_in_future")
            return outcome

        try:
            occurrences = await self.collect_occurrences(
                pet, pet.species, pet.birth_date, today, outcome
            )
            for occurrence in occurrences:
                await self._process_occurrence(pet, occurrence, today, now, outcome)
        except Exception as e:
            outcome.errors += 1
            log.exception("pet_processing_failed", error=str(e))

        return outcome

    def _event_lookahead_days(self) -> int:
        default = self.config.default_event_lead_days
        return max((event_lead_days(e, default) for e in self.catalog.health_events), default=0)

    def _vaccine_lookahead_days(self) -> int:
        return max((v.notification_lead_days for v in self.catalog.vaccines), default=0)

    async def collect_occurrences(
        self,
        pet: PetProfile,
        species: Species,
        birth_date: date,
        today: date,
        outcome: PetOutcome,
    ) -> list[Occurrence]:
        """
        Health event and vaccine occurrences for a pet, with their target dates.

        Matching looks ahead by the longest lead time in the catalog so a
        reminder can fire before its trigger age; the fire window then keeps
        only the occurrences due today.
        """
        log = self.logger.bind(pet_id=pet.id)
        occurrences: list[Occurrence] = []

        events = generate_applicable_events(
            pet, self.catalog, today, lookahead_days=self._event_lookahead_days()
        )
        for event in events:
            try:
                occurrences.append(
                    Occurrence(
                        code=event.code,
                        name=event.name,
                        kind="health_event",
                        target_date=compute_event_target_date(event, birth_date, today),
                        lead_days=event_lead_days(event, self.config.default_event_lead_days),
                        priority=event.priority,
                        event_type=event.event_type,
                        description=event.description,
                        recommended_action=event.recommended_action,
                    )
                )
            except Exception as e:
                outcome.errors += 1
                log.exception("event_occurrence_failed", code=event.code, error=str(e))

        try:
            records: list[VaccinationRecord] = await self._call(
                self.record_store.get_vaccination_records(pet.id)
            )
        except Exception as e:
            outcome.errors += 1
            log.warning("vaccination_records_unavailable", error=str(e))
            return occurrences

        schedule: VaccineScheduleResult = generate_vaccine_schedules(
            species,
            birth_date,
            records,
            self.catalog,
            today,
            lookahead_days=self._vaccine_lookahead_days(),
        )
        for entry in schedule.schedules:
            vaccine = self.catalog.vaccine(entry.vaccine_code)
            if vaccine is None:
                continue
            occurrences.append(
                Occurrence(
                    code=entry.vaccine_code,
                    name=entry.vaccine_name,
                    kind="vaccine",
                    target_date=entry.recommended_date,
                    lead_days=vaccine.notification_lead_days,
                    priority=entry.priority,
                    dose_number=entry.dose_number,
                    description=vaccine.description,
                )
            )

        log.debug("occurrences_collected", count=len(occurrences))
        return occurrences

    def build_notification(
        self, pet: PetProfile, occurrence: Occurrence, today: date
    ) -> Notification:
        days_until = days_between(today, occurrence.target_date)
        return Notification(
            pet_id=pet.id,
            user_id=pet.user_id,
            code=occurrence.code,
            title=build_title(pet, occurrence),
            message=build_message(pet, occurrence, days_until),
            priority=to_sender_priority(occurrence.priority),  # type: ignore[arg-type]
            channel=self.config.default_channel,
            category=category_for(occurrence),
            due_date=occurrence.target_date,
            context={
                "kind": occurrence.kind,
                "event_type": occurrence.event_type.value if occurrence.event_type else None,
                "dose_number": occurrence.dose_number,
                "days_before": occurrence.lead_days,
                "days_until_event": days_until,
                "recommended_action": occurrence.recommended_action,
                "catalog_version": self.catalog.version,
            },
        )

    async def _process_occurrence(
        self,
        pet: PetProfile,
        occurrence: Occurrence,
        today: date,
        now: datetime,
        outcome: PetOutcome,
    ) -> None:
        log = self.logger.bind(pet_id=pet.id, code=occurrence.code)

        if not is_within_fire_window(occurrence.fire_date, today, self.config.fire_tolerance_days):
            log.debug(
                "notification_not_due",
                fire_date=occurrence.fire_date.isoformat(),
                days_until_fire=days_between(today, occurrence.fire_date),
            )
            return

        since = dedup_cutoff(
            today, now, self.config.dedup_window_hours, self.config.fire_tolerance_days
        )
        try:
            already_sent = await self._call(
                self.record_store.get_recent_dedup_record(pet.id, occurrence.code, since)
            )
            if already_sent:
                outcome.duplicates_suppressed += 1
                log.info("duplicate_notification_suppressed")
                return

            reservation = DedupRecord(pet_id=pet.id, code=occurrence.code, fired_at=now)
            if not await self._call(self.record_store.write_dedup_record(reservation, since)):
                outcome.duplicates_suppressed += 1
                log.info("duplicate_notification_suppressed", reason="reservation_taken")
                return

            notification = self.build_notification(pet, occurrence, today)
            result = await self._send(notification)
            if result.is_err():
                outcome.errors += 1
                log.error("notification_send_failed", error=str(result.unwrap_err()))
                await self._release(reservation)
                return

            outcome.notifications_sent += 1
            log.info(
                "notification_sent",
                notification_id=result.unwrap(),
                target_date=occurrence.target_date.isoformat(),
                priority=notification.priority,
                category=notification.category,
            )
        except Exception as e:
            outcome.errors += 1
            log.exception("occurrence_processing_failed", error=str(e))

    async def _send(self, notification: Notification) -> Result[str, Exception]:
        try:
            result: Result[str, Exception] = await self._call(self.sender.send(notification))
        except Exception as e:
            return Result.err(NotificationSendError(f"{type(e).__name__}: {e}"))
        return result

    async def _release(self, reservation: DedupRecord) -> None:
        try:
            await self._call(self.record_store.delete_dedup_record(reservation))
        except Exception as e:
            self.logger.warning(
                "dedup_release_failed",
                pet_id=reservation.pet_id,
                code=reservation.code,
                error=str(e),
            )
