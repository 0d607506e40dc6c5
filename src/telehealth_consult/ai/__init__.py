from .base import InsightService, ReportService, TimeBox
from .gemini import GeminiInsightService, GeminiReportService
from .http_client import HttpInsightService
from .insights import InsightGenerator, RollingContext, extract_symptoms
from .models import (
    ContextRange,
    Insight,
    InsightAnalysis,
    InsightKind,
    InsightRequest,
    Priority,
    ReportDraft,
    ReportRequest,
)

__all__ = [
    "InsightService",
    "ReportService",
    "TimeBox",
    "GeminiInsightService",
    "GeminiReportService",
    "HttpInsightService",
    "InsightGenerator",
    "RollingContext",
    "extract_symptoms",
    "ContextRange",
    "Insight",
    "InsightAnalysis",
    "InsightKind",
    "InsightRequest",
    "Priority",
    "ReportDraft",
    "ReportRequest",
]
