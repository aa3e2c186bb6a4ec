"""
Services Module
Business logic layer for the MedCare application
"""

from services.schedule_service import ScheduledObligation, expand, expand_range
from services.intake_ledger import IntakeLedger
from services.status_resolver import ResolvedObligation, resolve, resolve_day, resolve_range, can_modify
from services.adherence_service import GroupBy, AdherenceStats, AdherenceReport, aggregate, adherence_rate
from services.tracker_service import TrackerService, TrackerSnapshot, tracker_service
from services.report_service import ReportService, ExportFormat, report_service


__all__ = [
    # Schedule expansion
    "ScheduledObligation",
    "expand",
    "expand_range",
    # Intake ledger
    "IntakeLedger",
    # Status resolution
    "ResolvedObligation",
    "resolve",
    "resolve_day",
    "resolve_range",
    "can_modify",
    # Adherence aggregation
    "GroupBy",
    "AdherenceStats",
    "AdherenceReport",
    "aggregate",
    "adherence_rate",
    # Service classes
    "TrackerService",
    "TrackerSnapshot",
    "ReportService",
    "ExportFormat",
    # Singleton instances
    "tracker_service",
    "report_service",
]
