"""
Integration tests for the availability store (the shared read path).
"""

from datetime import date, timedelta

import pytest
from sqlalchemy.exc import OperationalError

from models import BlockedDate
from services.availability_store import AvailabilityLoadError, AvailabilityStore

MONDAY = date(2030, 3, 4)


class TestAvailabilityStore:

    def test_weekly_rules_and_overrides(self, db_session, staff_user, weekly_rule, open_day):
        weekly_rule(staff_user.id, 0, "09:00", "10:00")
        open_day(staff_user.id, MONDAY + timedelta(days=7), times=["16:00"])

        store = AvailabilityStore(db_session, staff_user.id).refresh(MONDAY, MONDAY + timedelta(days=7))

        assert store.day_view(MONDAY).bookable_times == ["09:00", "09:15", "09:30", "09:45"]
        # The saved day replaces the weekly schedule for that date
        assert store.day_view(MONDAY + timedelta(days=7)).bookable_times == ["16:00"]
        assert store.day_view(MONDAY + timedelta(days=1)).open_count == 0

    def test_reservations_and_cancellations(
        self, db_session, staff_user, patient, open_day, make_appointment
    ):
        open_day(staff_user.id, MONDAY, times=["09:00", "09:15"])
        make_appointment(staff_user.id, patient.id, MONDAY, "09:00")
        make_appointment(staff_user.id, patient.id, MONDAY, "09:15", status="cancelled")

        store = AvailabilityStore(db_session, staff_user.id).refresh(MONDAY, MONDAY)
        view = store.day_view(MONDAY)

        assert view.slot("09:00").is_reserved
        assert not view.slot("09:15").is_reserved
        assert store.is_bookable(MONDAY, "09:15")
        assert not store.is_bookable(MONDAY, "09:00")

    def test_blocked_date(self, db_session, staff_user, open_day):
        open_day(staff_user.id, MONDAY)
        db_session.add(BlockedDate(owner_id=staff_user.id, blocked_date=MONDAY, activity="Formation"))
        db_session.commit()

        store = AvailabilityStore(db_session, staff_user.id).refresh(MONDAY, MONDAY)
        view = store.day_view(MONDAY)

        assert view.is_blocked
        assert view.blocked_reason == "Formation"
        assert view.open_count == 0
        assert store.is_blocked(MONDAY)
        assert not store.is_bookable(MONDAY, "09:00")

    def test_draft_of_blocked_date_keeps_underlying_pattern(self, db_session, staff_user, open_day):
        open_day(staff_user.id, MONDAY, times=["10:00"])
        db_session.add(BlockedDate(owner_id=staff_user.id, blocked_date=MONDAY, activity="Congé"))
        db_session.commit()

        draft = AvailabilityStore(db_session, staff_user.id).draft(MONDAY, MONDAY)

        assert draft.pattern(MONDAY)["10:00"] is True

    def test_outside_window_is_closed(self, db_session, staff_user, open_day):
        open_day(staff_user.id, MONDAY)
        store = AvailabilityStore(db_session, staff_user.id).refresh(MONDAY + timedelta(days=1), MONDAY + timedelta(days=2))

        assert store.day_view(MONDAY).open_count == 0
        assert not store.is_bookable(MONDAY, "09:00")

    def test_unknown_time_is_not_bookable(self, db_session, staff_user, open_day):
        open_day(staff_user.id, MONDAY)
        store = AvailabilityStore(db_session, staff_user.id).refresh(MONDAY, MONDAY)
        assert not store.is_bookable(MONDAY, "08:00")
        assert not store.is_bookable(MONDAY, "garbage")
        assert store.is_bookable(MONDAY, "9:00")

    def test_refresh_same_window_uses_snapshot(self, db_session, staff_user, open_day):
        store = AvailabilityStore(db_session, staff_user.id).refresh(MONDAY, MONDAY)
        open_day(staff_user.id, MONDAY)

        assert store.refresh(MONDAY, MONDAY).day_view(MONDAY).open_count == 0
        store.invalidate()
        assert store.refresh(MONDAY, MONDAY).day_view(MONDAY).open_count == 33

    def test_reversed_window(self, db_session, staff_user):
        with pytest.raises(ValueError):
            AvailabilityStore(db_session, staff_user.id).refresh(MONDAY, MONDAY - timedelta(days=1))

    def test_load_failure(self, db_session, staff_user, open_day, monkeypatch):
        open_day(staff_user.id, MONDAY)
        store = AvailabilityStore(db_session, staff_user.id)

        def failing_query(*args, **kwargs):
            raise OperationalError("SELECT", {}, Exception("database unavailable"))

        monkeypatch.setattr(db_session, "query", failing_query)

        with pytest.raises(AvailabilityLoadError) as exc_info:
            store.refresh(MONDAY, MONDAY)

        assert exc_info.value.owner_id == staff_user.id
        assert store.window is None
        # Nothing is reported open after a failed load
        assert not store.is_bookable(MONDAY, "09:00")
