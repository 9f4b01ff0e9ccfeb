"""
Core services for the engine.

This package contains the evaluation, alerting and reporting services. Each
service is stateless and receives its persistence capability explicitly.
"""

from .classifier import classify, has_deviation
from .dashboard import DashboardService, DashboardSummary
from .dispatcher import NotificationDispatcher
from .measurements import MeasurementService, SubmissionOutcome
from .notifications import NotificationComposer, NotificationService, is_visible_to
from .reports import ReportAggregator, ReportComposer
from .repository import CareRepository, DeliveryChannel
from .result import Result

__all__ = [
    "CareRepository",
    "DashboardService",
    "DashboardSummary",
    "DeliveryChannel",
    "MeasurementService",
    "NotificationComposer",
    "NotificationDispatcher",
    "NotificationService",
    "ReportAggregator",
    "ReportComposer",
    "Result",
    "SubmissionOutcome",
    "classify",
    "has_deviation",
    "is_visible_to",
]
