"""
Error types for MedCare

ValidationError    - malformed input, rejected before it reaches the data model
NotFoundError      - operation references a medicine or intake that does not exist
PersistenceError   - document store unreachable; in-memory state is kept
NotificationError  - delivery failure, always non-fatal for the reminder loop
"""

from typing import List, Optional


class MedCareError(Exception):
    """Base class for all MedCare errors"""


class ValidationError(MedCareError, ValueError):
    """Input failed validation and was not applied"""

    def __init__(self, message: str, errors: Optional[List[str]] = None):
        super().__init__(message)
        self.errors = errors or [message]


class NotFoundError(MedCareError, LookupError):
    """Referenced entity does not exist"""

    def __init__(self, entity: str, entity_id: str):
        super().__init__(f"{entity} {entity_id} not found")
        self.entity = entity
        self.entity_id = entity_id


class PersistenceError(MedCareError):
    """Document store operation failed"""


class NotificationError(MedCareError):
    """Notification could not be delivered"""
