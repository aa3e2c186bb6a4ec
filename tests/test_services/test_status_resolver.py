"""
Tests for Status Resolver
Classification of obligations into taken / skipped / missed / pending
"""

import pytest
from datetime import date, datetime, timedelta

from models import AdherenceStatus
from services.schedule_service import ScheduledObligation
from services.status_resolver import (
    ResolvedObligation,
    can_modify,
    resolve,
    resolve_day,
    resolve_range,
)


DAY = date(2024, 3, 15)


@pytest.fixture
def obligation(medicine_factory):
    return ScheduledObligation(medicine=medicine_factory(), date=DAY, time="08:00")


class TestResolve:
    """Tests for the resolution rules"""

    @pytest.mark.unit
    @pytest.mark.parametrize("status", [
        AdherenceStatus.TAKEN, AdherenceStatus.SKIPPED, AdherenceStatus.MISSED
    ])
    def test_stored_intake_wins(self, obligation, intake_factory, status):
        """Even a future slot reports the stored status"""
        intake = intake_factory(obligation.medicine, DAY, "08:00", status)
        assert resolve(obligation, intake, DAY - timedelta(days=1), "00:00") == status
        assert resolve(obligation, intake, DAY, "07:00") == status

    @pytest.mark.unit
    def test_later_today_is_pending(self, obligation):
        assert resolve(obligation, None, DAY, "07:59") == AdherenceStatus.PENDING

    @pytest.mark.unit
    def test_at_reference_time_is_missed(self, obligation):
        """A slot at exactly the current minute already counts as missed"""
        assert resolve(obligation, None, DAY, "08:00") == AdherenceStatus.MISSED

    @pytest.mark.unit
    def test_earlier_today_is_missed(self, obligation):
        assert resolve(obligation, None, DAY, "12:00") == AdherenceStatus.MISSED

    @pytest.mark.unit
    def test_past_day_is_missed(self, obligation):
        assert resolve(obligation, None, DAY + timedelta(days=1), "00:00") == AdherenceStatus.MISSED

    @pytest.mark.unit
    def test_future_day_is_pending(self, obligation):
        assert resolve(obligation, None, DAY - timedelta(days=1), "23:59") == AdherenceStatus.PENDING


class TestResolveDay:
    """Tests for resolving a whole day against an intake lookup"""

    @pytest.mark.unit
    def test_mixed_day(self, medicine_factory, intake_factory):
        """08:00 taken, 14:00 unrecorded and past, 20:00 still ahead"""
        medicine = medicine_factory(times=["08:00", "14:00", "20:00"])
        intakes = {
            (medicine.id, DAY, "08:00"): intake_factory(medicine, DAY, "08:00", AdherenceStatus.TAKEN),
        }

        resolved = resolve_day(
            [medicine],
            lambda mid, d, t: intakes.get((mid, d, t)),
            DAY,
            datetime(2024, 3, 15, 15, 0)
        )

        assert [(r.time, r.status) for r in resolved] == [
            ("08:00", AdherenceStatus.TAKEN),
            ("14:00", AdherenceStatus.MISSED),
            ("20:00", AdherenceStatus.PENDING),
        ]
        assert resolved[0].intake is not None
        assert resolved[1].intake is None

    @pytest.mark.unit
    def test_resolve_range(self, medicine_factory):
        medicine = medicine_factory(times=["08:00"])
        resolved = resolve_range(
            [medicine],
            lambda *key: None,
            DAY - timedelta(days=1),
            DAY + timedelta(days=1),
            datetime(2024, 3, 15, 9, 0)
        )
        assert [r.status for r in resolved] == [
            AdherenceStatus.MISSED, AdherenceStatus.MISSED, AdherenceStatus.PENDING
        ]


class TestCanModify:
    """Tests for the edit policy"""

    def _resolved(self, medicine, on_date, status, intake=None):
        return ResolvedObligation(
            obligation=ScheduledObligation(medicine=medicine, date=on_date, time="08:00"),
            status=status,
            intake=intake
        )

    @pytest.mark.unit
    def test_taken_is_final(self, medicine_factory, intake_factory):
        medicine = medicine_factory()
        intake = intake_factory(medicine, DAY, "08:00", AdherenceStatus.TAKEN)
        assert not can_modify(self._resolved(medicine, DAY, AdherenceStatus.TAKEN, intake), DAY)

    @pytest.mark.unit
    def test_pending_and_recorded_skip_are_editable(self, medicine_factory, intake_factory):
        medicine = medicine_factory()
        skipped = intake_factory(medicine, DAY - timedelta(days=3), "08:00", AdherenceStatus.SKIPPED)

        assert can_modify(self._resolved(medicine, DAY, AdherenceStatus.PENDING), DAY)
        assert can_modify(
            self._resolved(medicine, DAY - timedelta(days=3), AdherenceStatus.SKIPPED, skipped), DAY
        )

    @pytest.mark.unit
    def test_unrecorded_miss_editable_only_today(self, medicine_factory):
        medicine = medicine_factory()
        assert can_modify(self._resolved(medicine, DAY, AdherenceStatus.MISSED), DAY)
        assert not can_modify(
            self._resolved(medicine, DAY - timedelta(days=1), AdherenceStatus.MISSED), DAY
        )
