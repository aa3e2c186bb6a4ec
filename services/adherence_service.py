"""
Adherence Service
Aggregates resolved dose statuses into adherence statistics
"""

import logging
from collections import OrderedDict
from dataclasses import dataclass, field, asdict
from datetime import date, timedelta
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Tuple

from config import tracker_config
from exceptions import ValidationError
from models import AdherenceStatus
from services.status_resolver import ResolvedObligation


logger = logging.getLogger(__name__)


class GroupBy(str, Enum):
    """Breakdown requested from aggregate()"""
    NONE = "none"
    DAY = "day"
    MEDICINE = "medicine"


def adherence_rate(taken: int, total: int) -> int:
    """
    Whole-number percentage of taken doses, rounded half up.

    Integer arithmetic keeps .5 cases exact: 2/3 -> 67, 1/3 -> 33, 1/8 -> 13.
    """
    if total <= 0:
        return 0
    return (taken * 200 + total) // (total * 2)


def adherence_level(rate: int) -> str:
    """Label used for colour-coding: good, fair or poor"""
    if rate >= tracker_config.ADHERENCE_GOOD_THRESHOLD:
        return "good"
    if rate >= tracker_config.ADHERENCE_FAIR_THRESHOLD:
        return "fair"
    return "poor"


@dataclass
class AdherenceStats:
    total: int = 0
    taken_count: int = 0
    skipped_count: int = 0
    missed_count: int = 0
    pending_count: int = 0
    adherence_rate: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class DailyAdherence:
    date: date
    taken: int
    total: int
    adherence_rate: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "date": self.date.isoformat(),
            "taken": self.taken,
            "total": self.total,
            "adherence_rate": self.adherence_rate,
        }


@dataclass
class MedicineAdherence:
    medicine_id: str
    name: str
    taken: int
    total: int
    adherence_rate: int

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class AdherenceReport:
    """Overall stats plus the breakdown asked for"""
    overall: AdherenceStats
    daily: List[DailyAdherence] = field(default_factory=list)
    by_medicine: List[MedicineAdherence] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "overall": self.overall.to_dict(),
            "daily": [d.to_dict() for d in self.daily],
            "by_medicine": [m.to_dict() for m in self.by_medicine],
        }


def overall_stats(resolved: Sequence[ResolvedObligation]) -> AdherenceStats:
    stats = AdherenceStats(total=len(resolved))
    for item in resolved:
        if item.status == AdherenceStatus.TAKEN:
            stats.taken_count += 1
        elif item.status == AdherenceStatus.SKIPPED:
            stats.skipped_count += 1
        elif item.status == AdherenceStatus.MISSED:
            stats.missed_count += 1
        else:
            stats.pending_count += 1
    stats.adherence_rate = adherence_rate(stats.taken_count, stats.total)
    return stats


def daily_breakdown(resolved: Sequence[ResolvedObligation]) -> List[DailyAdherence]:
    counts: Dict[date, List[int]] = {}
    for item in resolved:
        day = counts.setdefault(item.date, [0, 0])
        day[1] += 1
        if item.status == AdherenceStatus.TAKEN:
            day[0] += 1

    return [
        DailyAdherence(date=day, taken=taken, total=total, adherence_rate=adherence_rate(taken, total))
        for day, (taken, total) in sorted(counts.items())
    ]


def medicine_breakdown(resolved: Sequence[ResolvedObligation]) -> List[MedicineAdherence]:
    counts: "OrderedDict[str, List[Any]]" = OrderedDict()
    for item in resolved:
        entry = counts.setdefault(item.medicine.id, [item.medicine.name, 0, 0])
        entry[2] += 1
        if item.status == AdherenceStatus.TAKEN:
            entry[1] += 1

    return [
        MedicineAdherence(
            medicine_id=medicine_id,
            name=name,
            taken=taken,
            total=total,
            adherence_rate=adherence_rate(taken, total)
        )
        for medicine_id, (name, taken, total) in counts.items()
    ]


def aggregate(
    resolved: Sequence[ResolvedObligation],
    group_by: GroupBy = GroupBy.NONE
) -> AdherenceReport:
    """
    Adherence statistics over an already filtered list of resolved obligations.

    Args:
        resolved: Obligations with their resolved status
        group_by: none, day or medicine

    Returns:
        AdherenceReport with overall stats and the requested breakdown
    """
    group_by = GroupBy(group_by)
    report = AdherenceReport(overall=overall_stats(resolved))
    if group_by == GroupBy.DAY:
        report.daily = daily_breakdown(resolved)
    elif group_by == GroupBy.MEDICINE:
        report.by_medicine = medicine_breakdown(resolved)

    logger.debug(
        f"Aggregated {report.overall.total} obligations ({group_by.value}): "
        f"{report.overall.adherence_rate}%"
    )
    return report


def period_range(period: str, today: date) -> Tuple[date, date]:
    """Inclusive (start, end) for a named history period ending today"""
    days = tracker_config.REPORT_PERIODS.get(period)
    if days is None:
        raise ValidationError(
            f"Unknown period '{period}', expected one of {sorted(tracker_config.REPORT_PERIODS)}"
        )
    return today - timedelta(days=days), today


def filter_resolved(
    resolved: Sequence[ResolvedObligation],
    start: Optional[date] = None,
    end: Optional[date] = None,
    medicine_id: Optional[str] = None
) -> List[ResolvedObligation]:
    """Date-range and medicine filter applied before aggregate()"""
    return [
        item for item in resolved
        if (start is None or item.date >= start)
        and (end is None or item.date <= end)
        and (medicine_id is None or item.medicine.id == medicine_id)
    ]
