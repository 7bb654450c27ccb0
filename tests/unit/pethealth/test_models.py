"""
Tests for domain models, the Result type, reminder wording and the
in-memory record store.
"""

from datetime import UTC, date, datetime, timedelta

import pytest
from hypothesis import given
from hypothesis import strategies as st

from adapters.memory import InMemoryNotificationSender, InMemoryRecordStore
from pethealth.domain.errors import BirthDateInFutureError, NotificationSendError
from pethealth.domain.models import (
    DedupRecord,
    HealthEventType,
    Notification,
    Occurrence,
    PetProfile,
    Priority,
    Species,
    SpeciesFilter,
)
from pethealth.domain.result import Result
from pethealth.services.notification_messages import (
    build_message,
    category_for,
    days_until_text,
)

NOW = datetime(2026, 10, 18, 9, 0, tzinfo=UTC)
PET = PetProfile(id="pet-1", user_id="user-1", name="Miso", species=Species.CAT)


def occurrence(**overrides) -> Occurrence:  # type: ignore[no-untyped-def]
    fields = {
        "code": "cat_dental_annual",
        "name": "Annual dental check",
        "kind": "health_event",
        "target_date": date(2026, 11, 1),
        "lead_days": 14,
        "priority": Priority.MEDIUM,
        "event_type": HealthEventType.DENTAL,
    }
    fields.update(overrides)
    return Occurrence(**fields)


class TestResult:
    """Test the Result type for explicit error handling."""

    def test_result_ok_creates_successful_result(self) -> None:
        result: Result[str, Exception] = Result.ok("notification-1")
        assert result.is_ok()
        assert not result.is_err()
        assert result.unwrap() == "notification-1"

    def test_result_error_creates_failed_result(self) -> None:
        error = NotificationSendError("rejected")
        result: Result[str, NotificationSendError] = Result.err(error)
        assert not result.is_ok()
        assert result.is_err()
        assert result.unwrap_err() is error

    def test_unwrap_raises_on_error_result(self) -> None:
        result: Result[str, ValueError] = Result.err(ValueError("test error"))

        with pytest.raises(ValueError, match="test error"):
            result.unwrap()

    def test_unwrap_err_on_ok_raises(self) -> None:
        with pytest.raises(ValueError, match="Ok value"):
            Result.ok("x").unwrap_err()


class TestDomainModels:
    def test_profile_is_immutable(self) -> None:
        with pytest.raises(ValueError, match="frozen"):
            PET.name = "Other"  # type: ignore[misc]

    def test_profile_schedulable_needs_species_and_birth_date(self) -> None:
        assert not PET.is_schedulable
        assert PET.model_copy(update={"birth_date": date(2022, 1, 1)}).is_schedulable

    def test_both_filter_excludes_other_species(self) -> None:
        assert SpeciesFilter.BOTH.matches(Species.DOG)
        assert SpeciesFilter.BOTH.matches(Species.CAT)
        assert not SpeciesFilter.BOTH.matches(Species.OTHER)
        assert not SpeciesFilter.DOG.matches(Species.CAT)

    @given(lead_days=st.integers(min_value=0, max_value=365))
    def test_fire_date_is_target_minus_lead(self, lead_days: int) -> None:
        occ = occurrence(lead_days=lead_days)

        assert occ.fire_date == occ.target_date - timedelta(days=lead_days)

    def test_negative_lead_days_rejected(self) -> None:
        with pytest.raises(ValueError):
            occurrence(lead_days=-1)

    def test_birth_date_error_is_a_value_error(self) -> None:
        error = BirthDateInFutureError(date(2027, 1, 1), date(2026, 10, 18))

        assert isinstance(error, ValueError)
        assert "2027-01-01" in str(error)


class TestNotificationMessages:
    @pytest.mark.parametrize(
        "days,expected", [(-2, "today"), (0, "today"), (1, "tomorrow"), (9, "in 9 days")]
    )
    def test_days_until_text(self, days: int, expected: str) -> None:
        assert days_until_text(days) == expected

    def test_categories(self) -> None:
        assert category_for(occurrence()) == "pet_dental"
        assert category_for(occurrence(event_type=HealthEventType.BLOOD_TEST)) == "pet_checkup"
        assert category_for(occurrence(event_type=HealthEventType.NEUTERING)) == "pet_healthcare"
        assert category_for(occurrence(kind="vaccine", event_type=None)) == "pet_vaccination"

    def test_event_message_includes_description(self) -> None:
        occ = occurrence(description="Yearly checks catch problems early.")

        assert build_message(PET, occ, 14) == (
            "Miso's annual dental check is due in 14 days. Yearly checks catch problems early."
        )

    def test_neutering_message_mentions_window(self) -> None:
        occ = occurrence(name="Neutering", event_type=HealthEventType.NEUTERING)

        expected = "The recommended window for Miso's neutering opens today."
        assert build_message(PET, occ, 0) == expected

    def test_vaccine_message_mentions_dose(self) -> None:
        occ = occurrence(name="Rabies", kind="vaccine", event_type=None, dose_number=3)

        assert build_message(PET, occ, 1) == "Miso's Rabies (dose 3) is due tomorrow."


class TestInMemoryRecordStore:
    @pytest.mark.asyncio
    async def test_reservation_is_exclusive_since_cutoff(self) -> None:
        store = InMemoryRecordStore()
        since = NOW - timedelta(hours=33)
        record = DedupRecord(pet_id="pet-1", code="cat_rabies", fired_at=NOW)
        later = DedupRecord(pet_id="pet-1", code="cat_rabies", fired_at=NOW + timedelta(hours=23))

        assert await store.write_dedup_record(record, since) is True
        assert await store.write_dedup_record(later, since) is False
        assert await store.get_recent_dedup_record("pet-1", "cat_rabies", since)

    @pytest.mark.asyncio
    async def test_cutoff_is_inclusive_and_keyed_by_pet_and_code(self) -> None:
        store = InMemoryRecordStore()
        await store.write_dedup_record(DedupRecord(pet_id="pet-1", code="c", fired_at=NOW), NOW)

        assert await store.get_recent_dedup_record("pet-1", "c", NOW)
        assert not await store.get_recent_dedup_record("pet-1", "c", NOW + timedelta(seconds=1))
        assert not await store.get_recent_dedup_record("pet-2", "c", NOW)
        assert not await store.get_recent_dedup_record("pet-1", "other", NOW)

    @pytest.mark.asyncio
    async def test_delete_releases_reservation(self) -> None:
        store = InMemoryRecordStore()
        record = DedupRecord(pet_id="pet-1", code="c", fired_at=NOW)
        await store.write_dedup_record(record, NOW)

        await store.delete_dedup_record(record)

        assert store.dedup_log == []
        assert await store.write_dedup_record(record, NOW) is True

    @pytest.mark.asyncio
    async def test_sender_rejects_configured_codes(self) -> None:
        sender = InMemoryNotificationSender(failing_codes={"bad"})
        notification = Notification(
            pet_id="pet-1",
            user_id="user-1",
            code="bad",
            title="t",
            message="m",
            priority="low",
            category="pet_healthcare",
            due_date=date(2026, 11, 1),
        )

        result = await sender.send(notification)

        assert result.is_err()
        assert isinstance(result.unwrap_err(), NotificationSendError)
        assert sender.sent == []
