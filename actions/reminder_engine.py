"""
Reminder Engine
Per-minute dose reminders with delayed caregiver escalation
"""

import asyncio
import heapq
import itertools
import logging
from typing import Callable, Dict, List, Optional, Set, Tuple
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from enum import Enum

from config import settings
from exceptions import NotificationError, ValidationError
from models import AdherenceStatus
from services.schedule_service import expand
from services.status_resolver import clock_time
from services.tracker_service import TrackerService
from tools.notification_service import (
    NotificationEvent,
    NotificationSink,
    build_caregiver_alert,
    build_caregiver_update,
    build_reminder,
)


logger = logging.getLogger(__name__)

SlotKey = Tuple[str, date, str]


class SlotState(str, Enum):
    """Lifecycle of one (medicine, date, time) slot"""
    UNARMED = "unarmed"
    REMINDED = "reminded"
    RESOLVED = "resolved"
    ESCALATED = "escalated"


@dataclass(order=True)
class EscalationCheck:
    """Heap entry: re-check a reminded slot at fire_at"""
    fire_at: datetime
    seq: int
    slot: SlotKey = field(compare=False)
    cancelled: bool = field(default=False, compare=False)


class ReminderScheduler:
    """
    Emits a reminder when a dose slot comes due and, if the slot is still
    unrecorded after the escalation delay, a caregiver alert.

    Each slot fires at most once per day. Escalation checks sit in a min-heap
    so they fire on time regardless of the tick cadence. The scheduler only
    ever reads tracker snapshots; delivery failures are logged and dropped.

    Sends run as their own tasks so a slow sink never holds up a tick, and
    the run loop ticks every minute it passed over while lagging.
    """

    def __init__(
        self,
        tracker: TrackerService,
        sink: NotificationSink,
        clock: Optional[Callable[[], datetime]] = None,
        tick_seconds: Optional[int] = None,
        escalation_delay: Optional[timedelta] = None,
        enabled: Optional[bool] = None
    ):
        self.tracker = tracker
        self.sink = sink
        self._clock = clock or tracker.clock
        self.tick_interval = timedelta(seconds=tick_seconds or settings.REMINDER_TICK_SECONDS)
        self.escalation_delay = escalation_delay or timedelta(minutes=settings.ESCALATION_DELAY_MINUTES)
        self.enabled = settings.REMINDERS_ENABLED if enabled is None else enabled

        self._states: Dict[SlotKey, SlotState] = {}
        self._escalations: List[EscalationCheck] = []
        self._seq = itertools.count()
        self._current_day: Optional[date] = None
        self._task: Optional[asyncio.Task] = None
        self._stop_event: Optional[asyncio.Event] = None
        self._deliveries: Set[asyncio.Task] = set()
        self._last_tick: Optional[datetime] = None
        self._next_tick: Optional[datetime] = None

    # ==================== STATE ====================

    def state_of(self, medicine_id: str, on_date: date, time: str) -> SlotState:
        return self._states.get((medicine_id, on_date, time), SlotState.UNARMED)

    @property
    def pending_escalations(self) -> int:
        return sum(1 for check in self._escalations if not check.cancelled)

    @property
    def next_escalation_at(self) -> Optional[datetime]:
        while self._escalations and self._escalations[0].cancelled:
            heapq.heappop(self._escalations)
        return self._escalations[0].fire_at if self._escalations else None

    @property
    def deliveries_in_flight(self) -> int:
        return len(self._deliveries)

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def _rollover(self, today: date) -> None:
        """Forget finished slots of earlier days"""
        if self._current_day == today:
            return
        stale = [
            key for key, state in self._states.items()
            if key[1] < today and state != SlotState.REMINDED
        ]
        for key in stale:
            del self._states[key]
        if self._current_day is not None:
            logger.info(f"Reminder day rollover to {today}, pruned {len(stale)} slots")
        self._current_day = today

    # ==================== DELIVERY ====================

    async def _deliver(self, event: NotificationEvent) -> bool:
        """Send through the sink; failures are logged, never raised"""
        try:
            delivered = await self.sink.send(event)
        except Exception as e:
            logger.error(f"Delivery of {event.kind.value} for {event.tag} failed: {e}")
            return False

        if not delivered:
            logger.warning(f"Sink rejected {event.kind.value} for {event.tag}")
            return False
        return True

    def _dispatch(self, event: NotificationEvent) -> asyncio.Task:
        """Hand the event to the sink in a background task"""
        task = asyncio.create_task(self._deliver(event))
        self._deliveries.add(task)
        task.add_done_callback(self._delivery_done)
        return task

    def _delivery_done(self, task: asyncio.Task) -> None:
        self._deliveries.discard(task)
        if task.cancelled():
            logger.warning("Notification delivery cancelled")
        elif task.exception() is not None:
            logger.error(f"Notification delivery task failed: {task.exception()}")

    async def drain(self) -> None:
        """Wait until every in-flight delivery has finished"""
        while self._deliveries:
            await asyncio.gather(*list(self._deliveries), return_exceptions=True)

    # ==================== TICK ====================

    async def tick(self, now: Optional[datetime] = None) -> List[NotificationEvent]:
        """
        Fire reminders for every slot of today scheduled at the current minute.

        Returns:
            Reminder events handed to the sink; delivery continues in the
            background (see drain())
        """
        now = now or self._clock()
        today, current = now.date(), clock_time(now)
        self._rollover(today)

        snapshot = self.tracker.snapshot()
        fired = []
        for obligation in expand(snapshot.medicines, today):
            if obligation.time != current:
                continue
            key = obligation.slot_key
            if key in self._states:
                continue
            intake = snapshot.find_intake(*key)
            if intake is not None and intake.status == AdherenceStatus.TAKEN:
                continue

            # armed before delivery so a failed send is not retried next tick
            self._states[key] = SlotState.REMINDED
            heapq.heappush(
                self._escalations,
                EscalationCheck(fire_at=now + self.escalation_delay, seq=next(self._seq), slot=key)
            )

            event = build_reminder(obligation.medicine, today, obligation.time)
            logger.info(f"Reminder due: {obligation.medicine.name} at {obligation.time}")
            self._dispatch(event)
            fired.append(event)

        return fired

    # ==================== ESCALATION ====================

    async def _escalate(self, key: SlotKey) -> Optional[NotificationEvent]:
        if self._states.get(key) != SlotState.REMINDED:
            return None

        snapshot = self.tracker.snapshot()
        medicine = snapshot.find_medicine(key[0])
        alert = None

        if medicine is None:
            logger.info(f"Medicine {key[0]} was deleted, dropping escalation for {key[2]}")
            self._states[key] = SlotState.RESOLVED
        elif snapshot.find_intake(*key) is not None:
            self._states[key] = SlotState.RESOLVED
        elif snapshot.profile.has_caregiver:
            self._states[key] = SlotState.ESCALATED
            alert = build_caregiver_alert(medicine, snapshot.profile, key[1], key[2])
            logger.warning(f"{medicine.name} at {key[2]} still unrecorded, alerting caregiver")
            self._dispatch(alert)
        else:
            self._states[key] = SlotState.RESOLVED

        if self._current_day is not None and key[1] < self._current_day:
            self._states.pop(key, None)
        return alert

    async def process_escalations(self, now: Optional[datetime] = None) -> List[NotificationEvent]:
        """Run every escalation check due at or before now"""
        now = now or self._clock()
        alerts = []
        while self._escalations and self._escalations[0].fire_at <= now:
            check = heapq.heappop(self._escalations)
            if check.cancelled:
                continue
            alert = await self._escalate(check.slot)
            if alert is not None:
                alerts.append(alert)
        return alerts

    async def advance(self, now: datetime) -> List[NotificationEvent]:
        """Move a simulated clock to now: due escalations first, then the tick"""
        events = await self.process_escalations(now)
        events.extend(await self.tick(now))
        return events

    def cancel_for_medicine(self, medicine_id: str) -> int:
        """Drop pending escalation checks of a deleted medicine"""
        cancelled = 0
        for check in self._escalations:
            if check.slot[0] == medicine_id and not check.cancelled:
                check.cancelled = True
                self._states[check.slot] = SlotState.RESOLVED
                cancelled += 1
        if cancelled:
            logger.info(f"Cancelled {cancelled} escalation checks for medicine {medicine_id}")
        return cancelled

    # ==================== MANUAL ACTIONS ====================

    async def notify_caregiver(self) -> NotificationEvent:
        """Send the caregiver an on-demand update with the profile contacts"""
        profile = self.tracker.get_profile()
        if not profile.has_caregiver:
            raise ValidationError("No caregiver email set in the profile")

        event = build_caregiver_update(profile)
        try:
            delivered = await self.sink.send(event)
        except NotificationError:
            raise
        except Exception as e:
            raise NotificationError(f"Caregiver notification failed: {e}") from e
        if not delivered:
            raise NotificationError("Caregiver notification was rejected by the sink")

        logger.info(f"Caregiver update sent to {profile.caregiver_email}")
        return event

    # ==================== LOOP ====================

    def _next_tick_after(self, now: datetime) -> datetime:
        # ticks land on minute boundaries so no HH:MM is skipped
        return now.replace(second=0, microsecond=0) + self.tick_interval

    def _due_ticks(self, now: datetime) -> List[datetime]:
        """Tick instants owed at now, starting with any boundary passed over since the last tick"""
        if self._last_tick is None:
            return [now]
        due = []
        moment = self._next_tick_after(self._last_tick)
        current = now.replace(second=0, microsecond=0)
        while moment < current:
            due.append(moment)
            moment += self.tick_interval
        due.append(now)
        return due

    async def step(self, now: Optional[datetime] = None) -> datetime:
        """
        One pass of the run loop: tick every due boundary, then run due
        escalations.

        Returns:
            When the loop should wake next
        """
        now = now or self._clock()
        if self._next_tick is None or now >= self._next_tick:
            due = self._due_ticks(now)
            if len(due) > 1:
                logger.warning(f"Reminder loop fell behind, catching up {len(due) - 1} ticks")
            for moment in due:
                await self.tick(moment)
            self._last_tick = now
            self._next_tick = self._next_tick_after(now)

        await self.process_escalations(now)

        wake_at = self._next_tick
        next_escalation = self.next_escalation_at
        if next_escalation is not None and next_escalation < wake_at:
            wake_at = next_escalation
        return wake_at

    async def run(self) -> None:
        """Tick and escalate until stop() is called"""
        stop_event = self._stop_event or asyncio.Event()
        self._stop_event = stop_event
        self._last_tick = None
        self._next_tick = None

        while not stop_event.is_set():
            try:
                wake_at = await self.step()
            except Exception:
                logger.exception("Reminder loop iteration failed")
                now = self._clock()
                self._last_tick = now
                self._next_tick = wake_at = self._next_tick_after(now)

            delay = max((wake_at - self._clock()).total_seconds(), 0.0)
            try:
                await asyncio.wait_for(stop_event.wait(), timeout=delay)
            except asyncio.TimeoutError:
                pass

    def start(self) -> bool:
        """Start the background loop; returns False when reminders are disabled"""
        if not self.enabled:
            logger.info("Reminders disabled, scheduler not started")
            return False
        if self.running:
            return True
        self._stop_event = asyncio.Event()
        self._task = asyncio.create_task(self.run())
        logger.info(
            f"Reminder scheduler started (tick {self.tick_interval.total_seconds():.0f}s, "
            f"escalation after {self.escalation_delay})"
        )
        return True

    async def stop(self) -> None:
        """Stop the loop and wait for deliveries already handed to the sink"""
        if self._task is not None:
            if self._stop_event is not None:
                self._stop_event.set()
            await self._task
            self._task = None
            logger.info("Reminder scheduler stopped")
        await self.drain()
