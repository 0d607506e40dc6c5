from .models import ConsultationReport
from .synthesizer import ReportSynthesizer, format_duration

__all__ = ["ConsultationReport", "ReportSynthesizer", "format_duration"]
