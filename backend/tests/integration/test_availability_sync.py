"""
Integration tests for saving availability drafts.

Covers chunked upserts, idempotence, partial failures and retry convergence.
"""

from datetime import date, time

import pytest
from fastapi import HTTPException
from sqlalchemy.exc import OperationalError

from models import SpecificDateAvailability
from services.availability_store import AvailabilityStore
from services.availability_sync_service import AvailabilitySyncService, PartialWriteError
from shared_types.availability import AvailabilityDraft
from utils.slot_catalog import catalog_times

DAY_ONE = date(2030, 3, 4)
DAY_TWO = date(2030, 3, 5)
MORNING = {t: t < "12:00" for t in catalog_times()}
AFTERNOON = {t: t >= "14:00" for t in catalog_times()}


def two_day_draft() -> AvailabilityDraft:
    return AvailabilityDraft(days={DAY_ONE: dict(MORNING), DAY_TWO: dict(AFTERNOON)})


def stored_rows(db_session, owner_id):
    return db_session.query(SpecificDateAvailability).filter(
        SpecificDateAvailability.owner_id == owner_id
    ).order_by(
        SpecificDateAvailability.specific_date, SpecificDateAvailability.start_time
    ).all()


def stored_pattern(db_session, owner_id, day):
    store = AvailabilityStore(db_session, owner_id).refresh(day, day)
    return store.day_view(day).pattern()


class TestSaveDraft:

    def test_one_row_per_catalog_slot(self, db_session, staff_user):
        result = AvailabilitySyncService.save_draft(db_session, staff_user.id, two_day_draft())

        rows = stored_rows(db_session, staff_user.id)
        assert len(rows) == 2 * len(catalog_times())
        assert result.rows_written == len(rows)
        assert result.dates == [DAY_ONE, DAY_TWO]
        assert all(row.start_time == row.end_time for row in rows)
        assert stored_pattern(db_session, staff_user.id, DAY_ONE) == MORNING
        assert stored_pattern(db_session, staff_user.id, DAY_TWO) == AFTERNOON

    def test_missing_slots_are_saved_closed(self, db_session, staff_user):
        draft = AvailabilityDraft(days={DAY_ONE: {"09:00": True}})
        AvailabilitySyncService.save_draft(db_session, staff_user.id, draft)

        pattern = stored_pattern(db_session, staff_user.id, DAY_ONE)
        assert pattern["09:00"] is True
        assert sum(pattern.values()) == 1
        assert len(stored_rows(db_session, staff_user.id)) == len(catalog_times())

    def test_saving_twice_is_idempotent(self, db_session, staff_user):
        AvailabilitySyncService.save_draft(db_session, staff_user.id, two_day_draft())
        first = [(r.id, r.specific_date, r.start_time, r.is_available)
                 for r in stored_rows(db_session, staff_user.id)]

        AvailabilitySyncService.save_draft(db_session, staff_user.id, two_day_draft())
        db_session.expire_all()
        second = [(r.id, r.specific_date, r.start_time, r.is_available)
                  for r in stored_rows(db_session, staff_user.id)]

        assert first == second

    def test_resave_flips_values_in_place(self, db_session, staff_user):
        AvailabilitySyncService.save_draft(db_session, staff_user.id, two_day_draft())
        flipped = AvailabilityDraft(days={DAY_ONE: dict(AFTERNOON)})
        AvailabilitySyncService.save_draft(db_session, staff_user.id, flipped)

        db_session.expire_all()
        assert stored_pattern(db_session, staff_user.id, DAY_ONE) == AFTERNOON
        assert stored_pattern(db_session, staff_user.id, DAY_TWO) == AFTERNOON
        assert len(stored_rows(db_session, staff_user.id)) == 2 * len(catalog_times())

    def test_chunking(self, db_session, staff_user):
        result = AvailabilitySyncService.save_draft(
            db_session, staff_user.id, two_day_draft(), chunk_size=10
        )
        assert result.chunk_count == 7  # 66 rows
        assert len(stored_rows(db_session, staff_user.id)) == 66

    def test_owners_are_isolated(self, db_session, staff_user, admin_user):
        AvailabilitySyncService.save_draft(db_session, staff_user.id, two_day_draft())
        assert stored_rows(db_session, admin_user.id) == []
        assert sum(stored_pattern(db_session, admin_user.id, DAY_ONE).values()) == 0

    def test_stale_rows_removed(self, db_session, staff_user):
        db_session.add_all([
            SpecificDateAvailability(  # interval row
                owner_id=staff_user.id, specific_date=DAY_ONE,
                start_time=time(9, 0), end_time=time(12, 0), is_available=True,
            ),
            SpecificDateAvailability(  # off-catalog time
                owner_id=staff_user.id, specific_date=DAY_ONE,
                start_time=time(8, 0), end_time=time(8, 0), is_available=True,
            ),
            SpecificDateAvailability(  # other date, kept
                owner_id=staff_user.id, specific_date=date(2030, 3, 6),
                start_time=time(9, 0), end_time=time(12, 0), is_available=True,
            ),
        ])
        db_session.commit()

        draft = AvailabilityDraft(days={DAY_ONE: {t: False for t in catalog_times()}})
        result = AvailabilitySyncService.save_draft(db_session, staff_user.id, draft)

        assert result.stale_rows_removed == 2
        assert sum(stored_pattern(db_session, staff_user.id, DAY_ONE).values()) == 0
        assert len(stored_rows(db_session, staff_user.id)) == len(catalog_times()) + 1

    def test_owner_required(self, db_session):
        with pytest.raises(HTTPException) as exc_info:
            AvailabilitySyncService.save_draft(db_session, None, two_day_draft())
        assert exc_info.value.status_code == 401

    def test_non_catalog_time_rejected_before_writing(self, db_session, staff_user):
        draft = AvailabilityDraft(days={DAY_ONE: {"09:00": True, "18:00": True}})
        with pytest.raises(ValueError):
            AvailabilitySyncService.save_draft(db_session, staff_user.id, draft)
        assert stored_rows(db_session, staff_user.id) == []


class TestPartialFailure:

    @pytest.fixture
    def fail_on_chunk(self, monkeypatch):
        """Make the nth chunk write (0-based) fail once."""
        original = AvailabilitySyncService._write_chunk

        def _install(failing_index):
            calls = {"count": 0}

            def flaky_write(db, owner_id, rows):
                index = calls["count"]
                calls["count"] += 1
                if index == failing_index:
                    raise OperationalError("INSERT", {}, Exception("connection lost"))
                return original(db, owner_id, rows)

            monkeypatch.setattr(AvailabilitySyncService, "_write_chunk", flaky_write)

        return _install

    def test_reports_committed_and_failed_dates(self, db_session, staff_user, fail_on_chunk):
        fail_on_chunk(1)
        chunk = len(catalog_times())  # one day per chunk

        with pytest.raises(PartialWriteError) as exc_info:
            AvailabilitySyncService.save_draft(
                db_session, staff_user.id, two_day_draft(), chunk_size=chunk
            )

        error = exc_info.value
        assert error.chunk_index == 1
        assert error.committed_dates == [DAY_ONE]
        assert error.failed_dates == [DAY_TWO]
        assert stored_pattern(db_session, staff_user.id, DAY_ONE) == MORNING
        assert sum(stored_pattern(db_session, staff_user.id, DAY_TWO).values()) == 0

    def test_half_written_date_is_reported_failed(self, db_session, staff_user, fail_on_chunk):
        fail_on_chunk(1)

        with pytest.raises(PartialWriteError) as exc_info:
            AvailabilitySyncService.save_draft(
                db_session, staff_user.id, two_day_draft(), chunk_size=20
            )

        assert exc_info.value.committed_dates == []
        assert exc_info.value.failed_dates == [DAY_ONE, DAY_TWO]

    def test_retry_converges(self, db_session, staff_user, fail_on_chunk):
        fail_on_chunk(2)
        with pytest.raises(PartialWriteError):
            AvailabilitySyncService.save_draft(
                db_session, staff_user.id, two_day_draft(), chunk_size=20
            )

        AvailabilitySyncService.save_draft(db_session, staff_user.id, two_day_draft(), chunk_size=20)

        db_session.expire_all()
        assert stored_pattern(db_session, staff_user.id, DAY_ONE) == MORNING
        assert stored_pattern(db_session, staff_user.id, DAY_TWO) == AFTERNOON
        assert len(stored_rows(db_session, staff_user.id)) == 66
