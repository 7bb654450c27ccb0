"""
Versioned reference catalogs for health events and vaccines.

The catalog is immutable configuration: it is loaded once at process start
and passed explicitly to the matcher, the vaccine scheduler and the
notification scheduler. Nothing looks it up through module globals.
"""

from functools import lru_cache
from pathlib import Path

import structlog
from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from pethealth.domain.errors import CatalogError
from pethealth.domain.models import (
    HealthEventDefinition,
    HealthEventType,
    LifecycleStage,
    Priority,
    SpeciesFilter,
    VaccineDefinition,
)

logger = structlog.get_logger(__name__)

DEFAULT_CATALOG_VERSION = "2025.1"


class Catalog(BaseModel):
    """A versioned bundle of health event and vaccine definitions."""

    model_config = ConfigDict(frozen=True)

    version: str = Field(min_length=1)
    health_events: tuple[HealthEventDefinition, ...] = ()
    vaccines: tuple[VaccineDefinition, ...] = ()

    @model_validator(mode="after")
    def codes_are_unique(self) -> "Catalog":
        for label, codes in (
            ("health event", [e.code for e in self.health_events]),
            ("vaccine", [v.code for v in self.vaccines]),
        ):
            duplicates = sorted({c for c in codes if codes.count(c) > 1})
            if duplicates:
                raise ValueError(f"duplicate {label} codes: {', '.join(duplicates)}")
        return self

    def vaccine(self, code: str) -> VaccineDefinition | None:
        return next((v for v in self.vaccines if v.code == code), None)


def default_catalog() -> Catalog:
    """Built-in catalog following common AVMA/AAHA preventive care guidance."""
    puppy_stages = frozenset({LifecycleStage.PUPPY, LifecycleStage.JUNIOR})
    kitten_stages = frozenset({LifecycleStage.KITTEN, LifecycleStage.JUNIOR})

    health_events = (
        HealthEventDefinition(
            code="dog_neutering",
            name="Neutering",
            event_type=HealthEventType.NEUTERING,
            species=SpeciesFilter.DOG,
            trigger_age_months=6,
            priority=Priority.HIGH,
            notification_lead_days=30,
            description="Neutering is usually recommended around six months of age.",
            recommended_action="Book a pre-surgery consultation with your vet.",
        ),
        HealthEventDefinition(
            code="cat_neutering",
            name="Neutering",
            event_type=HealthEventType.NEUTERING,
            species=SpeciesFilter.CAT,
            trigger_age_months=5,
            priority=Priority.HIGH,
            notification_lead_days=30,
            description="Cats are usually neutered between five and six months of age.",
            recommended_action="Book a pre-surgery consultation with your vet.",
        ),
        HealthEventDefinition(
            code="dog_dental_annual",
            name="Annual dental check",
            event_type=HealthEventType.DENTAL,
            species=SpeciesFilter.DOG,
            trigger_age_years=3,
            recurrence_interval_months=12,
            priority=Priority.MEDIUM,
            notification_lead_days=14,
            description="Most dogs show signs of periodontal disease by age three.",
            recommended_action="Schedule a dental examination and cleaning.",
        ),
        HealthEventDefinition(
            code="cat_dental_annual",
            name="Annual dental check",
            event_type=HealthEventType.DENTAL,
            species=SpeciesFilter.CAT,
            trigger_age_years=3,
            recurrence_interval_months=12,
            priority=Priority.MEDIUM,
            notification_lead_days=14,
            description="Yearly dental checks catch resorptive lesions early.",
            recommended_action="Schedule a dental examination and cleaning.",
        ),
        HealthEventDefinition(
            code="dog_blood_test_annual",
            name="Annual blood panel",
            event_type=HealthEventType.BLOOD_TEST,
            species=SpeciesFilter.DOG,
            trigger_age_years=7,
            recurrence_interval_months=12,
            priority=Priority.MEDIUM,
            notification_lead_days=14,
            description="Yearly bloodwork establishes a baseline for mature dogs.",
            recommended_action="Ask your vet for a complete blood count and chemistry panel.",
        ),
        HealthEventDefinition(
            code="cat_blood_test_annual",
            name="Annual blood panel",
            event_type=HealthEventType.BLOOD_TEST,
            species=SpeciesFilter.CAT,
            trigger_age_years=7,
            recurrence_interval_months=12,
            priority=Priority.MEDIUM,
            notification_lead_days=14,
            description="Yearly bloodwork screens for kidney and thyroid disease.",
            recommended_action="Ask your vet for a blood panel including T4.",
        ),
        HealthEventDefinition(
            code="dog_senior_checkup",
            name="Senior wellness check",
            event_type=HealthEventType.SENIOR_CARE,
            species=SpeciesFilter.DOG,
            trigger_age_years=10,
            recurrence_interval_months=6,
            priority=Priority.HIGH,
            notification_lead_days=14,
            description="Senior dogs benefit from an examination every six months.",
            recommended_action="Book a senior wellness visit with bloodwork and urinalysis.",
        ),
        HealthEventDefinition(
            code="cat_senior_checkup",
            name="Senior wellness check",
            event_type=HealthEventType.SENIOR_CARE,
            species=SpeciesFilter.CAT,
            trigger_age_years=10,
            recurrence_interval_months=6,
            priority=Priority.HIGH,
            notification_lead_days=14,
            description="Senior cats benefit from an examination every six months.",
            recommended_action="Book a senior wellness visit with blood pressure check.",
        ),
    )

    vaccines = (
        VaccineDefinition(
            code="dog_dhpp",
            name="DHPP (distemper, hepatitis, parvovirus, parainfluenza)",
            species=SpeciesFilter.DOG,
            trigger_age_weeks=8,
            required=True,
            booster_interval_months=12,
            description="Core vaccine for all dogs.",
        ),
        VaccineDefinition(
            code="dog_rabies",
            name="Rabies",
            species=SpeciesFilter.DOG,
            trigger_age_months=3,
            required=True,
            booster_interval_months=12,
            description="Core vaccine, legally required in many regions.",
        ),
        VaccineDefinition(
            code="dog_bordetella",
            name="Bordetella (kennel cough)",
            species=SpeciesFilter.DOG,
            trigger_age_weeks=8,
            required=False,
            booster_interval_months=12,
            description="Recommended for dogs that board or attend daycare.",
        ),
        VaccineDefinition(
            code="dog_leptospirosis",
            name="Leptospirosis",
            species=SpeciesFilter.DOG,
            trigger_age_weeks=12,
            required=False,
            booster_interval_months=12,
        ),
        VaccineDefinition(
            code="dog_parvo_final_puppy",
            name="Final puppy parvovirus dose",
            species=SpeciesFilter.DOG,
            stages=puppy_stages,
            trigger_age_weeks=16,
            required=True,
            description="Last dose of the puppy series, given at about 16 weeks.",
        ),
        VaccineDefinition(
            code="cat_fvrcp",
            name="FVRCP (rhinotracheitis, calicivirus, panleukopenia)",
            species=SpeciesFilter.CAT,
            trigger_age_weeks=8,
            required=True,
            booster_interval_months=12,
            description="Core vaccine for all cats.",
        ),
        VaccineDefinition(
            code="cat_rabies",
            name="Rabies",
            species=SpeciesFilter.CAT,
            trigger_age_months=3,
            required=True,
            booster_interval_months=12,
        ),
        VaccineDefinition(
            code="cat_felv",
            name="Feline leukemia (FeLV)",
            species=SpeciesFilter.CAT,
            stages=kitten_stages,
            trigger_age_weeks=8,
            required=False,
            description="Recommended for all kittens regardless of lifestyle.",
        ),
    )

    return Catalog(
        version=DEFAULT_CATALOG_VERSION,
        health_events=health_events,
        vaccines=vaccines,
    )


def load_catalog(path: str | Path) -> Catalog:
    """
    Load and validate a catalog from a JSON file.

    Raises:
        CatalogError: the file is missing, not JSON, or fails validation.
    """
    catalog_path = Path(path)
    try:
        catalog = Catalog.model_validate_json(catalog_path.read_text(encoding="utf-8"))
    except (OSError, ValidationError) as e:
        logger.error("catalog_load_failed", path=str(catalog_path), error=str(e))
        raise CatalogError(f"Invalid catalog at {catalog_path}: {e}") from e

    logger.info(
        "catalog_loaded",
        path=str(catalog_path),
        version=catalog.version,
        health_events=len(catalog.health_events),
        vaccines=len(catalog.vaccines),
    )
    return catalog


@lru_cache
def get_catalog(path: str | None = None) -> Catalog:
    """Catalog for this process: the file at path if given, else the built-in one."""
    if path:
        return load_catalog(path)
    return default_catalog()
