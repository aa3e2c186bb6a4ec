"""
Status Resolver
Classifies scheduled obligations as taken, skipped, missed or pending
"""

from dataclasses import dataclass
from datetime import date, datetime
from typing import Callable, List, Optional, Sequence

from models import AdherenceStatus, Intake, Medicine
from services.schedule_service import ScheduledObligation, expand, expand_range


IntakeLookup = Callable[[str, date, str], Optional[Intake]]


@dataclass(frozen=True)
class ResolvedObligation:
    """An obligation with its resolved status and matching intake"""
    obligation: ScheduledObligation
    status: AdherenceStatus
    intake: Optional[Intake] = None

    @property
    def medicine(self) -> Medicine:
        return self.obligation.medicine

    @property
    def date(self) -> date:
        return self.obligation.date

    @property
    def time(self) -> str:
        return self.obligation.time


def resolve(
    obligation: ScheduledObligation,
    intake: Optional[Intake],
    reference_date: date,
    reference_time: str
) -> AdherenceStatus:
    """
    Status of one obligation as seen at (reference_date, reference_time).

    A stored intake always wins. Without one, a slot later today or on a
    future day is pending; a slot at or before the reference time today, or
    on any past day, is missed.
    """
    if intake is not None:
        return intake.status

    if obligation.date == reference_date:
        if obligation.time > reference_time:
            return AdherenceStatus.PENDING
        return AdherenceStatus.MISSED

    if obligation.date < reference_date:
        return AdherenceStatus.MISSED

    return AdherenceStatus.PENDING


def clock_time(moment: datetime) -> str:
    """HH:MM of a wall-clock instant"""
    return moment.strftime("%H:%M")


def resolve_all(
    obligations: Sequence[ScheduledObligation],
    lookup: IntakeLookup,
    now: datetime
) -> List[ResolvedObligation]:
    """Resolve a batch of obligations against an intake lookup"""
    today, current_time = now.date(), clock_time(now)
    resolved = []
    for obligation in obligations:
        intake = lookup(obligation.medicine_id, obligation.date, obligation.time)
        resolved.append(ResolvedObligation(
            obligation=obligation,
            status=resolve(obligation, intake, today, current_time),
            intake=intake,
        ))
    return resolved


def resolve_day(
    medicines: Sequence[Medicine],
    lookup: IntakeLookup,
    on_date: date,
    now: datetime
) -> List[ResolvedObligation]:
    return resolve_all(expand(medicines, on_date), lookup, now)


def resolve_range(
    medicines: Sequence[Medicine],
    lookup: IntakeLookup,
    start: date,
    end: date,
    now: datetime
) -> List[ResolvedObligation]:
    return resolve_all(expand_range(medicines, start, end), lookup, now)


def can_modify(item: ResolvedObligation, today: date) -> bool:
    """
    Whether the patient may still record taken/skipped for the slot.

    Taken is final. Recorded skipped/missed and pending slots stay editable;
    an unrecorded miss is editable only for today or later.
    """
    if item.status == AdherenceStatus.TAKEN:
        return False
    if item.intake is not None or item.status == AdherenceStatus.PENDING:
        return True
    return item.date >= today
