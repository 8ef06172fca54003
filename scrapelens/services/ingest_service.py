"""Fetch -> normalize -> merge-on-conflict upsert of scraped items."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from scrapelens.core.errors import StorageError
from scrapelens.core.logging import get_logger
from scrapelens.ingestion.base import BaseSource
from scrapelens.ingestion.normalizer import normalize_items
from scrapelens.models.record import INGEST_COLUMNS, Record
from scrapelens.schemas.records import RecordDraft
from scrapelens.services.run_tracker import RunTracker

log = get_logger("ingest_service")

NO_CONTENT_NOTE = "no non-empty content found"
SAMPLE_KEYS_LIMIT = 50

_INSERTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


@dataclass
class IngestResult:
    inserted_count: int
    fetched_count: int
    normalized_count: int
    note: Optional[str] = None
    sample_keys: Optional[List[str]] = None
    sample_item: Optional[Dict[str, Any]] = None


class IngestService:
    """Pulls one batch from a source and upserts it into ``records``.

    Re-ingesting an item with a known ``external_item_id`` overwrites its
    source/url/content/created_at and leaves the analysis columns alone, so
    the call is safe to repeat.
    """

    def __init__(self, db: Session, source: BaseSource, default_limit: int = 100):
        self.db = db
        self.source = source
        self.default_limit = default_limit

    async def ingest(self, limit: Optional[int] = None) -> IngestResult:
        limit = limit or self.default_limit
        tracker = RunTracker(self.db, "ingest")
        tracker.start()

        try:
            items = await self.source.fetch(limit)
            drafts = normalize_items(items, now=datetime.now(timezone.utc))
            log.info(f"Ingest from {self.source.name}: fetched={len(items)} normalized={len(drafts)}")

            if not drafts:
                sample = items[0] if items else {}
                tracker.succeed(0, meta={"fetched": len(items), "note": NO_CONTENT_NOTE})
                return IngestResult(
                    inserted_count=0,
                    fetched_count=len(items),
                    normalized_count=0,
                    note=NO_CONTENT_NOTE,
                    sample_keys=list(sample.keys())[:SAMPLE_KEYS_LIMIT],
                    sample_item=sample,
                )

            inserted = self._upsert(drafts)
            tracker.succeed(inserted, meta={"fetched": len(items), "normalized": len(drafts)})
            log.info(f"Ingest finished | upserted={inserted}")
            return IngestResult(
                inserted_count=inserted,
                fetched_count=len(items),
                normalized_count=len(drafts),
            )
        except Exception as exc:  # noqa: BLE001 - recorded on the run, then re-raised
            tracker.fail(str(exc))
            log.error(f"Ingest failed: {exc}")
            raise

    # -------------------------------------------------------------------------
    # Upsert
    # -------------------------------------------------------------------------
    @staticmethod
    def _dedupe(drafts: List[RecordDraft]) -> List[Dict[str, Any]]:
        """One row per external id (last wins); keyless rows pass through."""
        rows: Dict[Any, Dict[str, Any]] = {}
        for index, draft in enumerate(drafts):
            row = draft.model_dump()
            key = row["external_item_id"]
            rows[key if key is not None else ("keyless", index)] = row
        return list(rows.values())

    def _insert_for_dialect(self):
        dialect = self.db.get_bind().dialect.name
        try:
            return _INSERTS[dialect]
        except KeyError:
            raise StorageError(f"Upsert not supported on {dialect}") from None

    def _upsert(self, drafts: List[RecordDraft]) -> int:
        rows = self._dedupe(drafts)
        if len(rows) != len(drafts):
            log.debug(f"Deduplicated drafts by external id (input={len(drafts)} output={len(rows)})")

        insert = self._insert_for_dialect()
        stmt = insert(Record).values(rows)
        stmt = stmt.on_conflict_do_update(
            index_elements=[Record.external_item_id],
            set_={column: stmt.excluded[column] for column in INGEST_COLUMNS},
        ).returning(Record.id)

        try:
            upserted = self.db.execute(stmt).scalars().all()
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise StorageError(f"Upsert into records failed: {exc}") from exc
        return len(upserted)
