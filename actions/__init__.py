"""
Actions Module
Background engines that act on tracker state
"""

from .reminder_engine import (
    SlotState,
    EscalationCheck,
    ReminderScheduler
)


__all__ = [
    # Reminder Engine
    "SlotState",
    "EscalationCheck",
    "ReminderScheduler"
]
