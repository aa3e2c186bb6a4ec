"""
Tests for Schedule Service
Expansion of medicine definitions into daily dose obligations
"""

import pytest
from datetime import date, timedelta

from services.schedule_service import dates_between, expand, expand_range, medicines_on


DAY = date(2024, 3, 15)


class TestExpand:
    """Tests for single-day expansion"""

    @pytest.mark.unit
    def test_orders_by_time_across_medicines(self, medicine_factory):
        """Obligations come back sorted by HH:MM regardless of medicine order"""
        a = medicine_factory(name="A", times=["20:00", "08:00"], start_date=DAY)
        b = medicine_factory(name="B", times=["12:00"], start_date=DAY)

        obligations = expand([a, b], DAY)

        assert [(o.medicine.name, o.time) for o in obligations] == [
            ("A", "08:00"), ("B", "12:00"), ("A", "20:00")
        ]
        assert all(o.date == DAY for o in obligations)

    @pytest.mark.unit
    def test_ties_keep_medicine_order(self, medicine_factory):
        first = medicine_factory(name="First", times=["09:00"], start_date=DAY)
        second = medicine_factory(name="Second", times=["09:00"], start_date=DAY)

        assert [o.medicine.name for o in expand([first, second], DAY)] == ["First", "Second"]
        assert [o.medicine.name for o in expand([second, first], DAY)] == ["Second", "First"]

    @pytest.mark.unit
    def test_respects_start_and_end_dates(self, medicine_factory):
        """A medicine contributes only inside its inclusive validity window"""
        medicine = medicine_factory(start_date=DAY, end_date=DAY + timedelta(days=2))

        assert expand([medicine], DAY - timedelta(days=1)) == []
        assert len(expand([medicine], DAY)) == 1
        assert len(expand([medicine], DAY + timedelta(days=2))) == 1
        assert expand([medicine], DAY + timedelta(days=3)) == []

    @pytest.mark.unit
    def test_open_ended_medicine_continues(self, medicine_factory):
        medicine = medicine_factory(start_date=DAY, end_date=None)
        assert len(expand([medicine], DAY + timedelta(days=365))) == 1

    @pytest.mark.unit
    def test_blank_times_are_dropped(self, medicine_factory):
        medicine = medicine_factory(times=["08:00", "  ", "", "8:30"], start_date=DAY)
        assert [o.time for o in expand([medicine], DAY)] == ["08:00", "08:30"]

    @pytest.mark.unit
    def test_no_medicines(self):
        assert expand([], DAY) == []

    @pytest.mark.unit
    def test_slot_key(self, medicine_factory):
        medicine = medicine_factory(start_date=DAY)
        obligation = expand([medicine], DAY)[0]
        assert obligation.slot_key == (medicine.id, DAY, "08:00")
        assert obligation.medicine_id == medicine.id


class TestRanges:
    """Tests for multi-day helpers"""

    @pytest.mark.unit
    def test_dates_between_is_inclusive(self):
        days = list(dates_between(DAY, DAY + timedelta(days=2)))
        assert days == [DAY, DAY + timedelta(days=1), DAY + timedelta(days=2)]

    @pytest.mark.unit
    def test_dates_between_empty_when_reversed(self):
        assert list(dates_between(DAY, DAY - timedelta(days=1))) == []

    @pytest.mark.unit
    def test_expand_range_groups_by_date(self, medicine_factory):
        medicine = medicine_factory(times=["08:00", "20:00"], start_date=DAY)

        obligations = expand_range([medicine], DAY - timedelta(days=1), DAY + timedelta(days=1))

        assert [(o.date, o.time) for o in obligations] == [
            (DAY, "08:00"),
            (DAY, "20:00"),
            (DAY + timedelta(days=1), "08:00"),
            (DAY + timedelta(days=1), "20:00"),
        ]

    @pytest.mark.unit
    def test_medicines_on(self, medicine_factory):
        active = medicine_factory(name="Active", start_date=DAY)
        future = medicine_factory(name="Future", start_date=DAY + timedelta(days=1))

        assert medicines_on([active, future], DAY) == [active]
