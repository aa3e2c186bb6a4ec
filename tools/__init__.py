"""
Tools Package
Persistence and notification tools for MedCare
"""

from .document_store import (
    DocumentStore,
    SQLAlchemyDocumentStore,
    InMemoryDocumentStore
)

from .notification_service import (
    NotificationKind,
    NotificationEvent,
    NotificationSink,
    LoggingNotificationSink,
    EmailJSNotificationSink,
    NOTIFICATION_TEMPLATES,
    build_reminder,
    build_caregiver_alert,
    build_caregiver_update,
    get_notification_sink
)


__all__ = [
    # Document Store
    "DocumentStore",
    "SQLAlchemyDocumentStore",
    "InMemoryDocumentStore",

    # Notification Service
    "NotificationKind",
    "NotificationEvent",
    "NotificationSink",
    "LoggingNotificationSink",
    "EmailJSNotificationSink",
    "NOTIFICATION_TEMPLATES",
    "build_reminder",
    "build_caregiver_alert",
    "build_caregiver_update",
    "get_notification_sink"
]
