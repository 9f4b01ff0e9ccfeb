"""Shared fixtures: an in-memory repository seeded with patients, and caller identities."""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime

import pytest

from adapters.memory import InMemoryCareRepository
from vitalcare.config import AppConfig
from vitalcare.domain.models import CareCategory, Patient, Role, User, VitalSignMeasurement
from vitalcare.services.measurements import MeasurementService
from vitalcare.services.notifications import NotificationComposer, NotificationService
from vitalcare.services.reports import ReportAggregator, ReportComposer


@pytest.fixture
def config() -> AppConfig:
    """Default configuration, independent of the process environment."""
    return AppConfig()


@pytest.fixture
def repository() -> InMemoryCareRepository:
    return InMemoryCareRepository()


@pytest.fixture
def patient(repository: InMemoryCareRepository) -> Patient:
    return repository.add_patient(
        Patient(
            id="patient-1",
            name="Maria Silva",
            age=78,
            phone="+55 11 99999-0000",
            care_category=CareCategory.HOME,
        )
    )


@pytest.fixture
def composer(config: AppConfig) -> NotificationComposer:
    return NotificationComposer(config)


@pytest.fixture
def measurement_service(
    repository: InMemoryCareRepository, composer: NotificationComposer, config: AppConfig
) -> MeasurementService:
    return MeasurementService(repository, composer=composer, config=config)


@pytest.fixture
def notification_service(
    repository: InMemoryCareRepository, composer: NotificationComposer
) -> NotificationService:
    return NotificationService(repository, composer)


@pytest.fixture
def aggregator(repository: InMemoryCareRepository, config: AppConfig) -> ReportAggregator:
    return ReportAggregator(repository, config)


@pytest.fixture
def report_composer(repository: InMemoryCareRepository, config: AppConfig) -> ReportComposer:
    return ReportComposer(repository, config=config)


@pytest.fixture
def admin() -> User:
    return User(id="admin-1", name="Admin", role=Role.ADMIN)


@pytest.fixture
def nurse() -> User:
    return User(id="nurse-1", name="Ana", role=Role.NURSE)


@pytest.fixture
def manager() -> User:
    return User(id="manager-1", name="Carla", role=Role.MANAGER)


@pytest.fixture
def caregiver() -> User:
    return User(id="caregiver-1", name="Bruno", role=Role.CAREGIVER)


@pytest.fixture
def record_measurement(
    repository: InMemoryCareRepository,
) -> Callable[..., VitalSignMeasurement]:
    """Store a measurement directly, bypassing submission validation."""

    def _record(patient_id: str, timestamp: datetime, **fields: object) -> VitalSignMeasurement:
        measurement = VitalSignMeasurement(patient_id=patient_id, timestamp=timestamp, **fields)
        measurement_id = repository.insert_measurement(measurement)
        return repository.measurements[measurement_id]

    return _record
