"""Ingest service tests"""

import pytest
from sqlalchemy import func, select, text

from conftest import StaticSource
from scrapelens.core.errors import ProviderError, StorageError
from scrapelens.ingestion.base import BaseSource
from scrapelens.models.record import Record
from scrapelens.schemas.records import AnalysisResult
from scrapelens.services.analysis_service import AnalysisService
from scrapelens.services.ingest_service import NO_CONTENT_NOTE, IngestService
from scrapelens.services.stats_service import StatsService


class FailingSource(BaseSource):
    name = "failing"

    async def fetch(self, limit):
        raise ProviderError("Apify error 500: upstream down", status=500)


def _count(db) -> int:
    return db.execute(select(func.count()).select_from(Record)).scalar_one()


class TestIngestService:
    """Test fetch -> normalize -> upsert"""

    @pytest.mark.asyncio
    async def test_ingest_inserts_normalized_rows(self, db):
        source = StaticSource([
            {"id": "a1", "title": "First", "url": "https://one.test/1"},
            {"id": "a2", "title": "Second"},
            {"image": "https://cdn.test/x.png"},
        ])
        result = await IngestService(db, source, default_limit=50).ingest()

        assert result.fetched_count == 3
        assert result.normalized_count == 2
        assert result.inserted_count == 2
        assert result.note is None
        assert source.calls == [50]
        assert _count(db) == 2

    @pytest.mark.asyncio
    async def test_reingest_is_idempotent_and_keeps_analysis(self, db):
        items = [{"id": "a1", "title": "Original title"}]
        await IngestService(db, StaticSource(items)).ingest()

        row_id = db.execute(select(Record.id)).scalar_one()
        AnalysisService(db, analyzer=None).save_analysis(
            row_id,
            AnalysisResult(summary="s", keywords=["a", "b", "c"], sentiment="neutral", sentiment_score=0.0),
        )

        await IngestService(db, StaticSource([{"id": "a1", "title": "Edited title"}])).ingest()
        db.expire_all()

        record = db.execute(select(Record)).scalar_one()
        assert _count(db) == 1
        assert record.id == row_id
        assert record.content == "Edited title"
        assert record.summary == "s"
        assert record.sentiment == "neutral"
        assert record.analyzed_at is not None

    @pytest.mark.asyncio
    async def test_duplicate_ids_in_one_batch_keep_last(self, db):
        source = StaticSource([{"id": "dup", "title": "old"}, {"id": "dup", "title": "new"}])
        result = await IngestService(db, source).ingest()

        assert result.inserted_count == 1
        assert db.execute(select(Record.content)).scalar_one() == "new"

    @pytest.mark.asyncio
    async def test_items_without_id_are_always_inserted(self, db):
        source = StaticSource([{"title": "no key"}])
        await IngestService(db, source).ingest()
        await IngestService(db, source).ingest()
        assert _count(db) == 2

    @pytest.mark.asyncio
    async def test_no_content_returns_diagnostic(self, db):
        source = StaticSource([{"image": "https://cdn.test/x.png", "views": 10}])
        result = await IngestService(db, source).ingest()

        assert result.inserted_count == 0
        assert result.fetched_count == 1
        assert result.note == NO_CONTENT_NOTE
        assert result.sample_keys == ["image", "views"]
        assert result.sample_item == {"image": "https://cdn.test/x.png", "views": 10}
        assert _count(db) == 0

    @pytest.mark.asyncio
    async def test_source_failure_is_raised_and_recorded(self, db):
        with pytest.raises(ProviderError):
            await IngestService(db, FailingSource()).ingest()

        run = StatsService(db).get_latest_run("ingest")
        assert run.status == "failure"
        assert "upstream down" in run.error_message
        assert run.ended_at is not None

    @pytest.mark.asyncio
    async def test_successful_run_is_recorded(self, db):
        await IngestService(db, StaticSource([{"id": 1, "title": "x"}])).ingest()

        run = StatsService(db).get_latest_run("ingest")
        assert run.status == "success"
        assert run.records_processed == 1
        assert run.meta == {"fetched": 1, "normalized": 1}

    @pytest.mark.asyncio
    async def test_upsert_failure_raises_storage_error(self, db):
        db.execute(text("DROP TABLE records"))
        db.commit()

        with pytest.raises(StorageError, match="Upsert into records failed"):
            await IngestService(db, StaticSource([{"id": "a1", "title": "x"}])).ingest()

        run = StatsService(db).get_latest_run("ingest")
        assert run.status == "failure"
        assert "Upsert into records failed" in run.error_message
