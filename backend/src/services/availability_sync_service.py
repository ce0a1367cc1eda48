"""
Availability sync service: persists an edited draft as date override rows.

Each saved day becomes one row per catalog slot with an explicit open/closed
value. Rows are written in chunks; each chunk is an atomic upsert keyed on
(owner_id, specific_date, start_time, end_time) and committed on its own, so
there is never a window where a date has been deleted but not yet rewritten.
Running the same save twice leaves the table unchanged.
"""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, time
from typing import Any, Dict, List, Optional, Sequence, Tuple

from fastapi import HTTPException, status
from sqlalchemy import delete, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from core.config import AVAILABILITY_SYNC_CHUNK_SIZE
from models import SpecificDateAvailability
from shared_types.availability import AvailabilityDraft
from utils.datetime_utils import local_now
from utils.slot_catalog import catalog_time_objects, catalog_times, normalize_time

logger = logging.getLogger(__name__)

_CONFLICT_COLUMNS = ["owner_id", "specific_date", "start_time", "end_time"]


class PartialWriteError(Exception):
    """
    Raised when a save fails after some chunks were already committed.

    Attributes:
        chunk_index: Zero-based index of the chunk that failed
        committed_dates: Dates whose rows were all committed before the failure
        failed_dates: Dates left partially written or not written at all
    """

    def __init__(
        self,
        chunk_index: int,
        committed_dates: List[date],
        failed_dates: List[date],
        reason: str,
    ):
        self.chunk_index = chunk_index
        self.committed_dates = committed_dates
        self.failed_dates = failed_dates
        self.reason = reason
        super().__init__(
            f"Availability save failed at chunk {chunk_index}: {reason}. "
            f"{len(failed_dates)} date(s) need to be saved again."
        )


@dataclass
class SyncResult:
    """Outcome of a successful save."""
    rows_written: int
    chunk_count: int
    dates: List[date] = field(default_factory=list)
    stale_rows_removed: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "rows_written": self.rows_written,
            "chunk_count": self.chunk_count,
            "dates": [d.isoformat() for d in self.dates],
            "stale_rows_removed": self.stale_rows_removed,
        }


SlotRow = Tuple[date, time, bool]


class AvailabilitySyncService:
    """Service for writing availability drafts to the database."""

    @staticmethod
    def flatten_draft(draft: AvailabilityDraft) -> List[SlotRow]:
        """
        Turn a draft into one (date, slot, is_open) row per catalog slot.

        Slots missing from a day's pattern are saved closed. Rows are unique
        per (date, slot) and ordered by date then slot.

        Raises:
            ValueError: If a pattern contains a time that is not a catalog slot
        """
        catalog = catalog_times()
        catalog_objects = dict(zip(catalog, catalog_time_objects()))
        rows: Dict[Tuple[date, str], bool] = {}
        for day in draft.dates():
            normalized: Dict[str, bool] = {}
            for time_str, is_open in draft.pattern(day).items():
                slot = normalize_time(time_str)
                if slot not in catalog_objects:
                    raise ValueError(f"{time_str} is not a bookable slot time")
                normalized[slot] = bool(is_open)
            for slot in catalog:
                rows[(day, slot)] = normalized.get(slot, False)

        return [
            (day, catalog_objects[slot], is_open)
            for (day, slot), is_open in sorted(rows.items())
        ]

    @staticmethod
    def _insert_statement(db: Session):
        dialect = db.get_bind().dialect.name
        if dialect == "postgresql":
            from sqlalchemy.dialects.postgresql import insert
        elif dialect == "sqlite":
            from sqlalchemy.dialects.sqlite import insert
        else:
            raise RuntimeError(f"Availability upsert is not supported on {dialect}")
        return insert(SpecificDateAvailability)

    @staticmethod
    def _write_chunk(db: Session, owner_id: int, rows: Sequence[SlotRow]) -> None:
        """Upsert one chunk of rows and commit it."""
        now = local_now()
        values = [
            {
                "owner_id": owner_id,
                "specific_date": day,
                "start_time": slot,
                "end_time": slot,
                "is_available": is_open,
                "created_at": now,
                "updated_at": now,
            }
            for day, slot, is_open in rows
        ]
        stmt = AvailabilitySyncService._insert_statement(db).values(values)
        stmt = stmt.on_conflict_do_update(
            index_elements=_CONFLICT_COLUMNS,
            set_={
                "is_available": stmt.excluded.is_available,
                "updated_at": stmt.excluded.updated_at,
            },
        )
        db.execute(stmt)
        db.commit()

    @staticmethod
    def _remove_stale_rows(db: Session, owner_id: int, dates: List[date]) -> int:
        """
        Delete override rows of the saved dates that are not per-slot rows.

        That covers rows at times outside the catalog and interval rows
        (start_time != end_time), either of which would otherwise keep
        overriding the freshly saved slots.
        """
        if not dates:
            return 0
        result = db.execute(
            delete(SpecificDateAvailability).where(
                SpecificDateAvailability.owner_id == owner_id,
                SpecificDateAvailability.specific_date.in_(dates),
                or_(
                    SpecificDateAvailability.start_time.not_in(list(catalog_time_objects())),
                    SpecificDateAvailability.start_time != SpecificDateAvailability.end_time,
                ),
            )
        )
        db.commit()
        return result.rowcount or 0

    @staticmethod
    def save_draft(
        db: Session,
        owner_id: Optional[int],
        draft: AvailabilityDraft,
        chunk_size: int = AVAILABILITY_SYNC_CHUNK_SIZE,
    ) -> SyncResult:
        """
        Persist every day of a draft.

        Args:
            db: Database session
            owner_id: Staff user owning the availability
            draft: Days to save; days absent from the draft are not touched
            chunk_size: Rows per upsert statement

        Returns:
            SyncResult describing what was written

        Raises:
            HTTPException: 401 if no owner is given
            ValueError: If the draft contains non-catalog times or chunk_size < 1
            PartialWriteError: If a chunk fails; earlier chunks stay committed
        """
        if owner_id is None:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Authentication required to save availability"
            )
        if chunk_size < 1:
            raise ValueError("Chunk size must be at least 1")

        rows = AvailabilitySyncService.flatten_draft(draft)
        dates = draft.dates()
        chunks = [rows[i:i + chunk_size] for i in range(0, len(rows), chunk_size)]

        for index, chunk in enumerate(chunks):
            try:
                AvailabilitySyncService._write_chunk(db, owner_id, chunk)
            except SQLAlchemyError as e:
                db.rollback()
                written = {row[0] for c in chunks[:index] for row in c}
                pending = {row[0] for c in chunks[index:] for row in c}
                committed_dates = sorted(written - pending)
                failed_dates = sorted(pending)
                logger.warning(
                    f"Availability save for owner {owner_id} failed at chunk {index + 1}/{len(chunks)}; "
                    f"{len(committed_dates)} date(s) committed, {len(failed_dates)} date(s) pending: {e}"
                )
                raise PartialWriteError(index, committed_dates, failed_dates, str(e)) from e

        stale_removed = AvailabilitySyncService._remove_stale_rows(db, owner_id, dates)

        logger.info(
            f"Saved availability for owner {owner_id}: {len(rows)} slot(s) over "
            f"{len(dates)} date(s) in {len(chunks)} chunk(s)"
        )
        return SyncResult(
            rows_written=len(rows),
            chunk_count=len(chunks),
            dates=dates,
            stale_rows_removed=stale_removed,
        )

    @staticmethod
    def parse_draft_payload(days: Dict[date, Dict[str, bool]]) -> AvailabilityDraft:
        """
        Build a draft from request data.

        Raises:
            ValueError: If a time cannot be parsed
        """
        draft = AvailabilityDraft()
        for day, pattern in days.items():
            draft.set_pattern(day, {normalize_time(t): bool(v) for t, v in pattern.items()})
        return draft
