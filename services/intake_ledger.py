"""
Intake Ledger
Upsert-only log of recorded dose statuses, one row per (medicine, date, time)
"""

import logging
from datetime import date, datetime
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from exceptions import ValidationError
from models import AdherenceStatus, Intake, RECORDABLE_STATUSES, normalize_time


logger = logging.getLogger(__name__)

SlotKey = Tuple[str, date, str]


class IntakeLedger:
    """
    In-memory intake log keyed by slot.

    The ledger keeps only the latest status of each slot; `timestamp` is the
    instant of the most recent write, whether it created or updated the row.
    Missed statuses are never written here implicitly.
    """

    def __init__(self, clock: Callable[[], datetime] = datetime.now):
        self._clock = clock
        self._rows: Dict[SlotKey, Intake] = {}

    def __len__(self) -> int:
        return len(self._rows)

    def __contains__(self, key: SlotKey) -> bool:
        return key in self._rows

    def find(self, medicine_id: str, on_date: date, time: str) -> Optional[Intake]:
        """Intake recorded for the slot, if any"""
        return self._rows.get((medicine_id, on_date, normalize_time(time)))

    def upsert(
        self,
        medicine_id: str,
        on_date: date,
        time: str,
        status: AdherenceStatus
    ) -> Intake:
        """Create the slot's intake or overwrite its status and timestamp"""
        status = AdherenceStatus(status)
        if status not in RECORDABLE_STATUSES:
            raise ValidationError(f"Status '{status.value}' cannot be recorded")

        key = (medicine_id, on_date, normalize_time(time))
        now = self._clock()
        existing = self._rows.get(key)

        if existing is not None:
            intake = Intake.model_validate({**existing.model_dump(), "status": status, "timestamp": now})
            logger.info(f"Updated intake {intake.id} for {key[0]} {key[1]} {key[2]}: {intake.status.value}")
        else:
            intake = Intake(
                medicine_id=medicine_id,
                date=on_date,
                time=key[2],
                status=status,
                timestamp=now
            )
            logger.info(f"Recorded intake {intake.id} for {key[0]} {key[1]} {key[2]}: {intake.status.value}")

        self._rows[key] = intake
        return intake

    def remove_all_for(self, medicine_id: str) -> List[Intake]:
        """Drop every intake of a medicine; returns the removed rows"""
        removed = [row for key, row in self._rows.items() if key[0] == medicine_id]
        for row in removed:
            del self._rows[row.slot_key]
        if removed:
            logger.info(f"Removed {len(removed)} intakes for medicine {medicine_id}")
        return removed

    def list_since(self, since: date) -> List[Intake]:
        """Intakes dated on or after `since`, in recording order"""
        return [row for row in self._rows.values() if row.date >= since]

    def all(self) -> List[Intake]:
        return list(self._rows.values())

    def load(self, intakes: Iterable[Intake]) -> None:
        """Replace the contents; on duplicate slots the latest timestamp wins"""
        self._rows.clear()
        for intake in intakes:
            current = self._rows.get(intake.slot_key)
            if current is not None and current.timestamp > intake.timestamp:
                logger.warning(f"Dropping stale duplicate intake {intake.id} for {intake.slot_key}")
                continue
            if current is not None:
                logger.warning(f"Dropping stale duplicate intake {current.id} for {intake.slot_key}")
            self._rows[intake.slot_key] = intake
