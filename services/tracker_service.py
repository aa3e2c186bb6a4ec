"""
Tracker Service
Single-writer owner of medicines, intakes and the patient profile
"""

import asyncio
import logging
from collections import OrderedDict
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Any, Callable, Dict, List, Optional, Tuple, Type

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from config import settings, tracker_config, CollectionNames
from exceptions import NotFoundError, PersistenceError, ValidationError
from models import AdherenceStatus, Intake, Medicine, Profile, RECORDABLE_STATUSES, normalize_time
from services.adherence_service import (
    GroupBy, aggregate, adherence_level, adherence_rate, filter_resolved, period_range
)
from services.intake_ledger import IntakeLedger
from services.schedule_service import medicines_on
from services.status_resolver import ResolvedObligation, can_modify, clock_time, resolve_day, resolve_range
from tools.document_store import DocumentStore, SQLAlchemyDocumentStore


logger = logging.getLogger(__name__)


def _validated(model: Type[BaseModel], data: Dict[str, Any], entity: str):
    """Build a domain record, turning pydantic errors into ValidationError"""
    try:
        return model.model_validate(data)
    except PydanticValidationError as e:
        errors = [
            f"{'.'.join(str(part) for part in err['loc']) or entity}: {err['msg']}"
            for err in e.errors()
        ]
        raise ValidationError(f"Invalid {entity}", errors=errors) from e


@dataclass(frozen=True)
class TrackerSnapshot:
    """Immutable view of the tracker state at one instant"""
    medicines: Tuple[Medicine, ...]
    intakes: Tuple[Intake, ...]
    profile: Profile
    _intake_index: Dict[tuple, Intake] = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        object.__setattr__(self, "_intake_index", {i.slot_key: i for i in self.intakes})

    def find_medicine(self, medicine_id: str) -> Optional[Medicine]:
        for medicine in self.medicines:
            if medicine.id == medicine_id:
                return medicine
        return None

    def find_intake(self, medicine_id: str, on_date: date, time: str) -> Optional[Intake]:
        return self._intake_index.get((medicine_id, on_date, time))


class TrackerService:
    """
    Owns all mutable tracker state behind one asyncio.Lock.

    Mutations are applied in memory first and then written to the document
    store outside the lock. A failed write raises PersistenceError; the
    in-memory change is kept and the next successful write of the same
    record brings the store back in line.
    """

    def __init__(
        self,
        store: Optional[DocumentStore] = None,
        clock: Callable[[], datetime] = datetime.now,
        ledger: Optional[IntakeLedger] = None
    ):
        self._store = store or SQLAlchemyDocumentStore()
        self._clock = clock
        self._ledger = ledger or IntakeLedger(clock=clock)
        self._medicines: "OrderedDict[str, Medicine]" = OrderedDict()
        self._profile = Profile()
        self._lock = asyncio.Lock()

    @property
    def clock(self) -> Callable[[], datetime]:
        return self._clock

    # ==================== PERSISTENCE ====================

    async def _persist(self, operation: Callable, collection: str, document_id: str, *args) -> None:
        try:
            await asyncio.to_thread(operation, collection, document_id, *args)
        except PersistenceError:
            raise
        except Exception as e:
            logger.error(f"Store write {collection}/{document_id} failed: {e}")
            raise PersistenceError(f"Could not sync {collection}/{document_id}") from e

    async def _load_collection(self, collection: str) -> List[Dict[str, Any]]:
        try:
            return await asyncio.to_thread(self._store.list_all, collection)
        except PersistenceError:
            raise
        except Exception as e:
            logger.error(f"Store read of '{collection}' failed: {e}")
            raise PersistenceError(f"Could not load '{collection}'") from e

    @staticmethod
    def _record(model: BaseModel, exclude: Optional[set] = None) -> Dict[str, Any]:
        return model.model_dump(mode="json", exclude=exclude)

    async def hydrate(self) -> None:
        """Replace in-memory state with the contents of the document store"""
        medicine_records = await self._load_collection(CollectionNames.MEDICINES)
        intake_records = await self._load_collection(CollectionNames.INTAKES)
        profile_records = await self._load_collection(CollectionNames.PROFILES)

        medicines: "OrderedDict[str, Medicine]" = OrderedDict()
        for record in medicine_records:
            try:
                medicine = Medicine.model_validate(record)
            except PydanticValidationError as e:
                logger.warning(f"Skipping invalid medicine record {record.get('id')}: {e.error_count()} errors")
                continue
            medicines[medicine.id] = medicine

        intakes = []
        for record in intake_records:
            try:
                intakes.append(Intake.model_validate(record))
            except PydanticValidationError as e:
                logger.warning(f"Skipping invalid intake record {record.get('id')}: {e.error_count()} errors")

        profile = Profile()
        for record in profile_records:
            if record.get("id") != settings.PROFILE_DOCUMENT_ID:
                continue
            try:
                profile = Profile.model_validate({k: v for k, v in record.items() if k != "id"})
            except PydanticValidationError as e:
                logger.warning(f"Skipping invalid profile record: {e.error_count()} errors")

        async with self._lock:
            self._medicines = medicines
            self._ledger.load(intakes)
            self._profile = profile

        logger.info(f"Hydrated tracker: {len(medicines)} medicines, {len(self._ledger)} intakes")

    # ==================== MEDICINES ====================

    async def add_medicine(self, data: Dict[str, Any]) -> Medicine:
        """Validate and store a new medicine; the id is always assigned here"""
        medicine = _validated(Medicine, {k: v for k, v in data.items() if k != "id"}, "medicine")

        async with self._lock:
            self._medicines[medicine.id] = medicine

        logger.info(f"Added medicine {medicine.id} ({medicine.name}) at {', '.join(medicine.times)}")
        await self._persist(self._store.put, CollectionNames.MEDICINES, medicine.id,
                            self._record(medicine, exclude={"id"}))
        return medicine

    async def update_medicine(self, medicine_id: str, updates: Dict[str, Any]) -> Medicine:
        """Merge partial updates into a medicine and re-validate the result"""
        async with self._lock:
            current = self._medicines.get(medicine_id)
            if current is None:
                raise NotFoundError("Medicine", medicine_id)

            merged = current.model_dump()
            merged.update({k: v for k, v in updates.items() if k != "id"})
            medicine = _validated(Medicine, merged, "medicine")
            self._medicines[medicine_id] = medicine

        logger.info(f"Updated medicine {medicine_id}")
        await self._persist(self._store.put, CollectionNames.MEDICINES, medicine.id,
                            self._record(medicine, exclude={"id"}))
        return medicine

    async def delete_medicine(self, medicine_id: str) -> List[Intake]:
        """Remove a medicine and every intake recorded for it"""
        async with self._lock:
            if self._medicines.pop(medicine_id, None) is None:
                raise NotFoundError("Medicine", medicine_id)
            removed = self._ledger.remove_all_for(medicine_id)

        logger.info(f"Deleted medicine {medicine_id} and {len(removed)} intakes")
        await self._persist(self._store.delete, CollectionNames.MEDICINES, medicine_id)
        for intake in removed:
            await self._persist(self._store.delete, CollectionNames.INTAKES, intake.id)
        return removed

    def get_medicine(self, medicine_id: str) -> Medicine:
        medicine = self._medicines.get(medicine_id)
        if medicine is None:
            raise NotFoundError("Medicine", medicine_id)
        return medicine

    def list_medicines(self) -> List[Medicine]:
        return list(self._medicines.values())

    # ==================== INTAKES ====================

    async def update_intake_status(
        self,
        medicine_id: str,
        on_date: date,
        time: str,
        status: AdherenceStatus
    ) -> Intake:
        """
        Record taken / skipped / missed for one scheduled slot.

        Args:
            medicine_id: Medicine the dose belongs to
            on_date: Calendar date of the slot
            time: HH:MM, must be one of the medicine's scheduled times
            status: Status to store

        Returns:
            The created or updated Intake
        """
        try:
            status = AdherenceStatus(status)
            slot = normalize_time(time)
        except ValueError as e:
            raise ValidationError(str(e)) from e
        if status not in RECORDABLE_STATUSES:
            raise ValidationError(f"Status '{status.value}' cannot be recorded")

        async with self._lock:
            medicine = self._medicines.get(medicine_id)
            if medicine is None:
                raise NotFoundError("Medicine", medicine_id)
            if slot not in medicine.times:
                raise ValidationError(f"{slot} is not a scheduled time of {medicine.name}")
            intake = self._ledger.upsert(medicine_id, on_date, slot, status)

        await self._persist(self._store.put, CollectionNames.INTAKES, intake.id,
                            self._record(intake, exclude={"id"}))
        return intake

    def find_intake(self, medicine_id: str, on_date: date, time: str) -> Optional[Intake]:
        return self._ledger.find(medicine_id, on_date, time)

    def list_intakes(self, since: Optional[date] = None) -> List[Intake]:
        if since is None:
            return self._ledger.all()
        return self._ledger.list_since(since)

    # ==================== PROFILE ====================

    def get_profile(self) -> Profile:
        return self._profile

    async def set_profile(self, profile: Any) -> Profile:
        """Replace the profile wholesale"""
        if not isinstance(profile, Profile):
            profile = _validated(Profile, dict(profile), "profile")

        async with self._lock:
            self._profile = profile

        logger.info("Profile updated")
        await self._persist(self._store.put, CollectionNames.PROFILES, settings.PROFILE_DOCUMENT_ID,
                            self._record(profile))
        return profile

    # ==================== READ MODELS ====================

    def snapshot(self) -> TrackerSnapshot:
        return TrackerSnapshot(
            medicines=tuple(self._medicines.values()),
            intakes=tuple(self._ledger.all()),
            profile=self._profile,
        )

    def _resolve_day(self, snapshot: TrackerSnapshot, on_date: date, now: datetime) -> List[ResolvedObligation]:
        return resolve_day(snapshot.medicines, snapshot.find_intake, on_date, now)

    @staticmethod
    def schedule_entry(item: ResolvedObligation, today: date) -> Dict[str, Any]:
        medicine = item.medicine
        return {
            "medicine_id": medicine.id,
            "medicine_name": medicine.name,
            "dosage": medicine.dosage,
            "instructions": medicine.instructions,
            "date": item.date,
            "time": item.time,
            "status": item.status,
            "intake_id": item.intake.id if item.intake else None,
            "can_modify": can_modify(item, today),
        }

    def daily_schedule(self, on_date: Optional[date] = None, now: Optional[datetime] = None) -> List[Dict[str, Any]]:
        """Resolved obligations of one date, ordered by time"""
        now = now or self._clock()
        on_date = on_date or now.date()
        resolved = self._resolve_day(self.snapshot(), on_date, now)
        return [self.schedule_entry(item, now.date()) for item in resolved]

    def dashboard(self, now: Optional[datetime] = None) -> Dict[str, Any]:
        """Today's counts, the next upcoming doses and today's misses"""
        now = now or self._clock()
        today, current_time = now.date(), clock_time(now)
        snapshot = self.snapshot()
        resolved = self._resolve_day(snapshot, today, now)
        stats = aggregate(resolved).overall

        upcoming = [
            item for item in resolved
            if item.status == AdherenceStatus.PENDING and item.time > current_time
        ][:tracker_config.UPCOMING_LIMIT]
        missed = [item for item in resolved if item.status == AdherenceStatus.MISSED]

        return {
            "date": today,
            "active_medicines": len(medicines_on(snapshot.medicines, today)),
            "stats": stats.to_dict(),
            "level": adherence_level(stats.adherence_rate),
            "upcoming": [self.schedule_entry(item, today) for item in upcoming],
            "missed_today": [self.schedule_entry(item, today) for item in missed],
        }

    def adherence_report(
        self,
        period: Optional[str] = None,
        start: Optional[date] = None,
        end: Optional[date] = None,
        medicine_id: Optional[str] = None,
        group_by: GroupBy = GroupBy.DAY,
        now: Optional[datetime] = None
    ) -> Dict[str, Any]:
        """
        Adherence statistics over a named period or an explicit date range.

        An explicit start/end takes precedence over `period`; a missing end
        defaults to today and a missing start to the default period.
        """
        now = now or self._clock()
        today = now.date()

        if start is None and end is None:
            period = period or tracker_config.DEFAULT_REPORT_PERIOD
            start, end = period_range(period, today)
        else:
            end = end or today
            start = start or period_range(tracker_config.DEFAULT_REPORT_PERIOD, end)[0]
            period = "custom"
        if start > end:
            raise ValidationError(f"start {start} is after end {end}")

        snapshot = self.snapshot()
        if medicine_id is not None and snapshot.find_medicine(medicine_id) is None:
            raise NotFoundError("Medicine", medicine_id)

        resolved = resolve_range(snapshot.medicines, snapshot.find_intake, start, end, now)
        report = aggregate(filter_resolved(resolved, medicine_id=medicine_id), group_by)

        return {
            "period": period,
            "start": start,
            "end": end,
            "medicine_id": medicine_id,
            "level": adherence_level(report.overall.adherence_rate),
            **report.to_dict(),
        }

    def caregiver_status(self, now: Optional[datetime] = None) -> Dict[str, Any]:
        """
        What the caregiver view shows: today's misses and the weekly rate.

        The weekly rate counts recorded intakes only, so unrecorded past
        slots do not pull it down.
        """
        now = now or self._clock()
        today = now.date()
        snapshot = self.snapshot()

        missed = [
            item for item in self._resolve_day(snapshot, today, now)
            if item.status == AdherenceStatus.MISSED
        ]
        since = today - timedelta(days=tracker_config.CAREGIVER_WINDOW_DAYS)
        recent = [i for i in snapshot.intakes if i.date >= since]
        taken = sum(1 for i in recent if i.status == AdherenceStatus.TAKEN)
        weekly_rate = adherence_rate(taken, len(recent))

        return {
            "caregiver_email": snapshot.profile.caregiver_email,
            "patient_name": snapshot.profile.name,
            "alerts_active": snapshot.profile.has_caregiver and settings.REMINDERS_ENABLED,
            "missed_today": [self.schedule_entry(item, today) for item in missed],
            "weekly_adherence": weekly_rate,
            "weekly_level": adherence_level(weekly_rate),
            "weekly_records": len(recent),
        }


tracker_service = TrackerService()
