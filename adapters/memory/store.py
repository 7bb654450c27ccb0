"""
In-memory collaborators for the notification scheduler.

These implement the PetSource, RecordStore and NotificationSender protocols
without any persistence. In production they would be backed by the profile
service, a database table with a conditional insert on (pet_id, code, fired_at >= cutoff) and
a push/SMS/email gateway.
"""

import asyncio
import uuid
from collections import defaultdict
from datetime import datetime

import structlog

from pethealth.domain.errors import NotificationSendError
from pethealth.domain.models import DedupRecord, Notification, PetProfile, VaccinationRecord
from pethealth.domain.result import Result

logger = structlog.get_logger(__name__)


class InMemoryPetSource:
    """Pet profiles held in a list."""

    def __init__(self, pets: list[PetProfile] | None = None) -> None:
        self.pets: list[PetProfile] = list(pets or [])

    def add_pet(self, pet: PetProfile) -> None:
        self.pets.append(pet)

    async def list_pets_with_birth_date_and_species(self) -> list[PetProfile]:
        return [pet for pet in self.pets if pet.is_schedulable]


class InMemoryRecordStore:
    """
    Vaccination records and an append-only dedup log.

    The dedup reservation is check-then-insert under an asyncio.Lock, which
    makes it atomic for every coroutine sharing this store.
    """

    def __init__(self) -> None:
        self._vaccinations: dict[str, list[VaccinationRecord]] = defaultdict(list)
        self._dedup_log: list[DedupRecord] = []
        self._lock = asyncio.Lock()
        self.logger = logger.bind(component="in_memory_record_store")

    @property
    def dedup_log(self) -> list[DedupRecord]:
        return list(self._dedup_log)

    def add_vaccination_record(self, pet_id: str, record: VaccinationRecord) -> None:
        self._vaccinations[pet_id].append(record)

    async def get_vaccination_records(self, pet_id: str) -> list[VaccinationRecord]:
        return list(self._vaccinations.get(pet_id, []))

    def _has_since(self, pet_id: str, code: str, since: datetime) -> bool:
        return any(
            r.pet_id == pet_id and r.code == code and r.fired_at >= since for r in self._dedup_log
        )

    async def get_recent_dedup_record(self, pet_id: str, code: str, since: datetime) -> bool:
        return self._has_since(pet_id, code, since)

    async def write_dedup_record(self, record: DedupRecord, since: datetime) -> bool:
        async with self._lock:
            if self._has_since(record.pet_id, record.code, since):
                return False
            self._dedup_log.append(record)
        self.logger.debug("dedup_record_written", pet_id=record.pet_id, code=record.code)
        return True

    async def delete_dedup_record(self, record: DedupRecord) -> None:
        async with self._lock:
            self._dedup_log = [r for r in self._dedup_log if r != record]


class InMemoryNotificationSender:
    """Collects sent notifications; can be told to fail for given codes."""

    def __init__(self, failing_codes: set[str] | None = None) -> None:
        self.sent: list[Notification] = []
        self.failing_codes: set[str] = set(failing_codes or ())
        self.logger = logger.bind(component="in_memory_sender")

    async def send(self, notification: Notification) -> Result[str, Exception]:
        if notification.code in self.failing_codes:
            error = NotificationSendError(f"channel rejected {notification.code}")
            self.logger.warning("notification_rejected", code=notification.code)
            return Result.err(error)

        notification_id = str(uuid.uuid4())
        self.sent.append(notification)
        self.logger.info(
            "notification_delivered",
            notification_id=notification_id,
            pet_id=notification.pet_id,
            code=notification.code,
            channel=notification.channel,
        )
        return Result.ok(notification_id)
