from .adapter import PersistenceAdapter, week_start
from .models import AnalyticsDelta, ConsultationCreate, ConsultationRecord, WeeklyAnalytics
from .repositories import (
    AnalyticsRepository,
    ConsultationRepository,
    InMemoryAnalyticsRepository,
    InMemoryConsultationRepository,
)
from .rest import RestConsultationRepository

__all__ = [
    "PersistenceAdapter",
    "week_start",
    "AnalyticsDelta",
    "ConsultationCreate",
    "ConsultationRecord",
    "WeeklyAnalytics",
    "AnalyticsRepository",
    "ConsultationRepository",
    "InMemoryAnalyticsRepository",
    "InMemoryConsultationRepository",
    "RestConsultationRepository",
]
