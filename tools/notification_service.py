"""
Notification Service Tool
Builds reminder / caregiver-alert events and delivers them through a sink
"""

import logging
from typing import Dict, Optional, Any
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum

import httpx

from config import settings
from exceptions import NotificationError
from models import Medicine, Profile


logger = logging.getLogger(__name__)


class NotificationKind(str, Enum):
    """Kinds of events the tracker emits"""
    REMINDER = "reminder"
    CAREGIVER_ALERT = "caregiver-alert"


@dataclass
class NotificationEvent:
    """An ephemeral notification handed to the sink"""
    kind: NotificationKind
    title: str
    body: str
    medicine_id: Optional[str] = None
    medicine_name: Optional[str] = None
    slot_date: Optional[date] = None
    time: Optional[str] = None
    recipient: Optional[str] = None
    payload: Dict[str, Any] = field(default_factory=dict)
    created_at: datetime = field(default_factory=datetime.now)

    @property
    def tag(self) -> str:
        """Stable tag for the slot this event refers to"""
        return f"medicine-{self.medicine_id}-{self.time}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind.value,
            "title": self.title,
            "body": self.body,
            "medicine_id": self.medicine_id,
            "medicine_name": self.medicine_name,
            "date": self.slot_date.isoformat() if self.slot_date else None,
            "time": self.time,
            "recipient": self.recipient,
            "payload": self.payload,
            "created_at": self.created_at.isoformat(),
        }


NOTIFICATION_TEMPLATES: Dict[str, Dict[str, str]] = {
    "reminder": {
        "title": "Medicine Reminder",
        "body": "⏰ Time to take {medicine_name} - {dosage}\n{instructions}",
    },
    "caregiver_alert": {
        "title": "Caregiver Alert",
        "body": "{patient_name} may have missed {medicine_name} scheduled for {time}",
    },
    "caregiver_update": {
        "title": "Caregiver Update",
        "body": "Medicine routine update for {patient_name}. Health condition: {health_condition}. "
                "Doctor: {doctor_name} ({doctor_phone}). Emergency contact: {emergency_contact}",
    },
}


def _render(template_key: str, **kwargs) -> tuple:
    template = NOTIFICATION_TEMPLATES[template_key]
    return template["title"].format(**kwargs), template["body"].format(**kwargs)


def build_reminder(medicine: Medicine, on_date: date, time: str) -> NotificationEvent:
    """Reminder for a dose that is due now"""
    instructions = medicine.instructions or "Take as prescribed"
    title, body = _render(
        "reminder",
        medicine_name=medicine.name,
        dosage=medicine.dosage,
        instructions=instructions,
    )
    return NotificationEvent(
        kind=NotificationKind.REMINDER,
        title=title,
        body=body,
        medicine_id=medicine.id,
        medicine_name=medicine.name,
        slot_date=on_date,
        time=time,
        payload={
            "medicine_name": medicine.name,
            "dosage": medicine.dosage,
            "instructions": instructions,
        },
    )


def build_caregiver_alert(
    medicine: Medicine,
    profile: Profile,
    on_date: date,
    time: str
) -> NotificationEvent:
    """Alert to the caregiver that a reminded dose is still unrecorded"""
    title, body = _render(
        "caregiver_alert",
        patient_name=profile.name or "The patient",
        medicine_name=medicine.name,
        time=time,
    )
    return NotificationEvent(
        kind=NotificationKind.CAREGIVER_ALERT,
        title=title,
        body=body,
        medicine_id=medicine.id,
        medicine_name=medicine.name,
        slot_date=on_date,
        time=time,
        recipient=profile.caregiver_email,
        payload={
            "patient_name": profile.name,
            "medicine_name": medicine.name,
            "time": time,
        },
    )


def build_caregiver_update(profile: Profile) -> NotificationEvent:
    """Manually triggered caregiver message carrying the profile contacts"""
    payload = {
        "to_email": profile.caregiver_email,
        "user_name": profile.name,
        "health_condition": profile.health_condition,
        "doctor_name": profile.doctor_name,
        "doctor_phone": profile.doctor_phone,
        "emergency_contact": profile.emergency_contact,
    }
    title, body = _render(
        "caregiver_update",
        patient_name=profile.name or "the patient",
        health_condition=profile.health_condition or "n/a",
        doctor_name=profile.doctor_name or "n/a",
        doctor_phone=profile.doctor_phone or "n/a",
        emergency_contact=profile.emergency_contact or "n/a",
    )
    return NotificationEvent(
        kind=NotificationKind.CAREGIVER_ALERT,
        title=title,
        body=body,
        recipient=profile.caregiver_email,
        payload=payload,
    )


class NotificationSink:
    """
    Outbound delivery contract.

    send() returns True on success and False on a handled failure; it may
    also raise. Callers treat both failure forms the same way.
    """

    async def send(self, event: NotificationEvent) -> bool:
        raise NotImplementedError

    async def aclose(self) -> None:
        return None


class LoggingNotificationSink(NotificationSink):
    """Simulated delivery: writes the event to the application log"""

    async def send(self, event: NotificationEvent) -> bool:
        if event.recipient:
            logger.info(f"[EMAIL] To {event.recipient}: {event.title} - {event.body}")
        else:
            logger.info(f"[PUSH] {event.title} ({event.tag}): {event.body}")
        return True


class EmailJSNotificationSink(LoggingNotificationSink):
    """
    Sends addressed events through the EmailJS REST API.

    Events without a recipient (patient reminders) fall back to log delivery.
    """

    def __init__(
        self,
        service_id: str,
        template_id: str,
        public_key: str,
        api_url: str = settings.EMAILJS_API_URL,
        timeout: float = settings.NOTIFICATION_TIMEOUT_SECONDS,
        client: Optional[httpx.AsyncClient] = None
    ):
        self.service_id = service_id
        self.template_id = template_id
        self.public_key = public_key
        self.api_url = api_url
        self._client = client or httpx.AsyncClient(timeout=timeout)

    async def send(self, event: NotificationEvent) -> bool:
        if not event.recipient:
            return await super().send(event)

        template_params = {
            "to_email": event.recipient,
            "title": event.title,
            "message": event.body,
            **{k: v for k, v in event.payload.items() if v is not None},
        }
        try:
            response = await self._client.post(
                self.api_url,
                json={
                    "service_id": self.service_id,
                    "template_id": self.template_id,
                    "user_id": self.public_key,
                    "template_params": template_params,
                },
            )
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise NotificationError(f"EmailJS delivery to {event.recipient} failed: {e}") from e

        logger.info(f"[EMAILJS] Sent '{event.title}' to {event.recipient}")
        return True

    async def aclose(self) -> None:
        await self._client.aclose()


def get_notification_sink() -> NotificationSink:
    """Build the sink selected by NOTIFICATION_BACKEND"""
    if settings.NOTIFICATION_BACKEND == "emailjs":
        if settings.EMAILJS_SERVICE_ID and settings.EMAILJS_TEMPLATE_ID and settings.EMAILJS_PUBLIC_KEY:
            return EmailJSNotificationSink(
                service_id=settings.EMAILJS_SERVICE_ID,
                template_id=settings.EMAILJS_TEMPLATE_ID,
                public_key=settings.EMAILJS_PUBLIC_KEY,
            )
        logger.warning("EmailJS backend selected but not configured, falling back to log delivery")
    return LoggingNotificationSink()
