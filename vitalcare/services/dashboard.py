"""Headline counts for the care dashboard."""

from collections import Counter
from datetime import date, datetime, timedelta

import structlog
from pydantic import BaseModel, ConfigDict, Field

from vitalcare.config import AppConfig, get_config
from vitalcare.domain.models import CareCategory
from vitalcare.services.classifier import has_deviation
from vitalcare.services.repository import CareRepository

logger = structlog.get_logger(__name__)

TREND_DAYS = 7


class DailyCount(BaseModel):
    model_config = ConfigDict(frozen=True)

    day: date
    count: int = Field(ge=0)


class DashboardSummary(BaseModel):
    model_config = ConfigDict(frozen=True)

    total_patients: int
    patients_by_category: dict[CareCategory, int]
    measurements_today: int
    appointments_today: int
    active_alerts: int = Field(description="Stored measurements with an out-of-range reading")
    measurements_per_day: list[DailyCount] = Field(description="Oldest day first")


class DashboardService:
    def __init__(self, repository: CareRepository, config: AppConfig | None = None) -> None:
        self.repository = repository
        self.config = config or get_config()
        self.logger = logger.bind(component="dashboard")

    def summarize(self, today: date | None = None) -> DashboardSummary:
        """Counts as of `today` (defaults to the current day in the reporting timezone)."""
        tz = self.config.reporting.tzinfo
        today = today or datetime.now(tz).date()

        patients = self.repository.list_patients()
        measurements = [m for p in patients for m in self.repository.fetch_measurements(p.id)]

        categories = Counter(p.care_category for p in patients)
        per_day = Counter(m.timestamp.astimezone(tz).date() for m in measurements)
        trend = [
            DailyCount(day=day, count=per_day.get(day, 0))
            for day in (today - timedelta(days=offset) for offset in range(TREND_DAYS - 1, -1, -1))
        ]

        summary = DashboardSummary(
            total_patients=len(patients),
            patients_by_category={c: categories.get(c, 0) for c in CareCategory},
            measurements_today=per_day.get(today, 0),
            appointments_today=len(self.repository.list_appointments_on(today)),
            active_alerts=sum(1 for m in measurements if has_deviation(m)),
            measurements_per_day=trend,
        )
        self.logger.info(
            "dashboard_summarized",
            total_patients=summary.total_patients,
            active_alerts=summary.active_alerts,
        )
        return summary
