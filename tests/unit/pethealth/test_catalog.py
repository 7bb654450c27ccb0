"""Tests for catalog validation and loading."""

import json
from collections.abc import Iterator
from pathlib import Path

import pytest
from pydantic import ValidationError

from pethealth.domain.errors import CatalogError
from pethealth.domain.models import HealthEventDefinition, HealthEventType, SpeciesFilter
from pethealth.services.catalog import (
    DEFAULT_CATALOG_VERSION,
    Catalog,
    default_catalog,
    get_catalog,
    load_catalog,
)


@pytest.fixture(autouse=True)
def clear_catalog_cache() -> Iterator[None]:
    get_catalog.cache_clear()
    yield
    get_catalog.cache_clear()


def _catalog_payload() -> dict:
    return {
        "version": "2026.2",
        "health_events": [
            {
                "code": "dog_dental_annual",
                "name": "Annual dental check",
                "event_type": "dental",
                "species": "dog",
                "trigger_age_years": 3,
                "recurrence_interval_months": 12,
            }
        ],
        "vaccines": [
            {
                "code": "cat_felv",
                "name": "FeLV",
                "species": "cat",
                "stages": ["kitten", "junior"],
                "trigger_age_weeks": 8,
            }
        ],
    }


class TestDefaultCatalog:
    def test_codes_are_unique(self) -> None:
        catalog = default_catalog()
        event_codes = [e.code for e in catalog.health_events]
        vaccine_codes = [v.code for v in catalog.vaccines]

        assert len(event_codes) == len(set(event_codes))
        assert len(vaccine_codes) == len(set(vaccine_codes))

    def test_version_is_set(self) -> None:
        assert default_catalog().version == DEFAULT_CATALOG_VERSION

    def test_every_entry_has_a_trigger(self) -> None:
        catalog = default_catalog()

        assert all(e.trigger_offset_months is not None for e in catalog.health_events)

    def test_vaccine_lookup(self) -> None:
        catalog = default_catalog()

        rabies = catalog.vaccine("dog_rabies")
        assert rabies is not None
        assert rabies.booster_interval_months == 12
        assert catalog.vaccine("unknown") is None


class TestCatalogValidation:
    def test_duplicate_codes_are_rejected(self) -> None:
        event = HealthEventDefinition(
            code="dup",
            name="Dup",
            event_type=HealthEventType.OTHER,
            species=SpeciesFilter.DOG,
            trigger_age_months=1,
        )

        with pytest.raises(ValidationError, match="duplicate health event codes: dup"):
            Catalog(version="x", health_events=(event, event))

    def test_catalog_is_immutable(self) -> None:
        catalog = default_catalog()

        with pytest.raises(ValidationError, match="frozen"):
            catalog.version = "other"  # type: ignore[misc]


class TestLoadCatalog:
    def test_load_from_json_file(self, tmp_path: Path) -> None:
        path = tmp_path / "catalog.json"
        path.write_text(json.dumps(_catalog_payload()), encoding="utf-8")

        catalog = load_catalog(path)

        assert catalog.version == "2026.2"
        assert catalog.health_events[0].trigger_offset_months == 36
        felv = catalog.vaccine("cat_felv")
        assert felv is not None
        assert felv.stages is not None and len(felv.stages) == 2

    def test_missing_file_raises_catalog_error(self, tmp_path: Path) -> None:
        with pytest.raises(CatalogError):
            load_catalog(tmp_path / "missing.json")

    def test_invalid_json_raises_catalog_error(self, tmp_path: Path) -> None:
        path = tmp_path / "catalog.json"
        path.write_text("{not json", encoding="utf-8")

        with pytest.raises(CatalogError):
            load_catalog(path)

    def test_invalid_entry_raises_catalog_error(self, tmp_path: Path) -> None:
        payload = _catalog_payload()
        del payload["vaccines"][0]["trigger_age_weeks"]
        path = tmp_path / "catalog.json"
        path.write_text(json.dumps(payload), encoding="utf-8")

        with pytest.raises(CatalogError, match="trigger_age_weeks or trigger_age_months"):
            load_catalog(path)

    def test_get_catalog_caches_by_path(self, tmp_path: Path) -> None:
        path = tmp_path / "catalog.json"
        path.write_text(json.dumps(_catalog_payload()), encoding="utf-8")

        assert get_catalog(str(path)) is get_catalog(str(path))
        assert get_catalog().version == DEFAULT_CATALOG_VERSION
