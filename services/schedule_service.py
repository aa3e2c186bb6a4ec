"""
Schedule Service
Expands medicine definitions into the dose obligations of a calendar date
"""

from dataclasses import dataclass
from datetime import date, timedelta
from typing import Iterable, Iterator, List, Sequence

from models import Medicine


@dataclass(frozen=True)
class ScheduledObligation:
    """One dose the patient is expected to take: (medicine, date, time)"""
    medicine: Medicine
    date: date
    time: str

    @property
    def medicine_id(self) -> str:
        return self.medicine.id

    @property
    def slot_key(self) -> tuple:
        return (self.medicine.id, self.date, self.time)


def expand(medicines: Sequence[Medicine], on_date: date) -> List[ScheduledObligation]:
    """
    Build the dose obligations for a single date.

    A medicine contributes one obligation per scheduled time when on_date is
    inside its start/end window. The result is ordered by HH:MM; obligations
    sharing a time keep the order of `medicines`.
    """
    obligations = []
    for medicine in medicines:
        if not medicine.is_active_on(on_date):
            continue
        for slot in medicine.times:
            slot = slot.strip()
            if not slot:
                continue
            obligations.append(ScheduledObligation(medicine=medicine, date=on_date, time=slot))

    # sorted() is stable, ties keep medicine order
    return sorted(obligations, key=lambda o: o.time)


def dates_between(start: date, end: date) -> Iterator[date]:
    """Inclusive day-by-day range; empty when end is before start"""
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)


def expand_range(
    medicines: Sequence[Medicine],
    start: date,
    end: date
) -> List[ScheduledObligation]:
    """Obligations for every date in [start, end], grouped by date ascending"""
    obligations: List[ScheduledObligation] = []
    for day in dates_between(start, end):
        obligations.extend(expand(medicines, day))
    return obligations


def medicines_on(medicines: Iterable[Medicine], on_date: date) -> List[Medicine]:
    """Medicines whose validity window covers on_date"""
    return [m for m in medicines if m.is_active_on(on_date)]
