"""
Test Tools Package
Tests for the tools module (document store, notification service)
"""

__all__ = [
    "test_document_store",
    "test_notification_service",
]
