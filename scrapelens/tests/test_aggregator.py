"""Dashboard aggregation tests"""

from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

import pytest

from scrapelens.dashboard.aggregator import (
    aggregate,
    classify_status,
    confidence_from_score,
    filter_by_sentiment,
    sort_records,
    to_display_record,
)
from scrapelens.schemas.records import DisplayRecord

BASE = datetime(2025, 3, 1, tzinfo=timezone.utc)


def make(id, days=0, score=None, sentiment=None, analyzed=False, rating=None) -> DisplayRecord:
    return DisplayRecord(
        id=str(id),
        source="test",
        content=f"record {id}",
        created_at=BASE + timedelta(days=days),
        sentiment=sentiment,
        sentiment_score=score,
        analyzed_at=BASE + timedelta(days=days, hours=1) if analyzed else None,
        confidence=confidence_from_score(score),
        user_rating=rating,
    )


class TestConfidence:
    """Test score -> confidence mapping"""

    @pytest.mark.parametrize("score,expected", [(-1.0, 0.0), (0.0, 0.5), (1.0, 1.0), (0.5, 0.75), (None, 0.5)])
    def test_mapping(self, score, expected):
        assert confidence_from_score(score) == expected

    def test_out_of_range_is_clamped(self):
        assert confidence_from_score(3.0) == 1.0
        assert confidence_from_score(-2.0) == 0.0


class TestFilterAndSort:
    """Test record filtering and ordering"""

    def test_filter_by_sentiment(self):
        records = [make(1, sentiment="positive"), make(2), make(3, sentiment="negative")]
        assert [r.id for r in filter_by_sentiment(records, "positive")] == ["1"]
        assert len(filter_by_sentiment(records, "all")) == 3
        assert filter_by_sentiment(records, "neutral") == []

    def test_sort_by_date_newest_first(self):
        records = [make(1, days=0), make(2, days=2), make(3, days=1)]
        assert [r.id for r in sort_records(records, "date")] == ["2", "3", "1"]

    def test_confidence_ties_broken_by_date(self):
        records = [make(1, days=0, score=0.5), make(2, days=3, score=0.5), make(3, days=1, score=0.9)]
        assert [r.id for r in sort_records(records, "confidence")] == ["3", "2", "1"]

    def test_rating_sort_is_stable(self):
        records = [make(1), make(2, rating=4), make(3), make(4, rating=4)]
        assert [r.id for r in sort_records(records, "rating")] == ["2", "4", "1", "3"]


class TestAggregate:
    """Test the health snapshot"""

    def test_empty_is_no_data(self):
        snapshot = aggregate([])
        assert snapshot.status == "no data"
        assert snapshot.total_records == 0
        assert snapshot.avg_confidence == 0.0
        assert snapshot.last_created_at is None

    def test_all_analyzed_and_confident_is_healthy(self):
        records = [make(1, score=0.9, sentiment="positive", analyzed=True),
                   make(2, days=1, score=0.8, sentiment="positive", analyzed=True)]
        snapshot = aggregate(records)
        assert snapshot.status == "healthy"
        assert snapshot.analyzed_records == 2
        assert snapshot.sentiment_breakdown.positive == 2
        assert snapshot.last_created_at == BASE + timedelta(days=1)
        assert snapshot.last_analyzed_at == BASE + timedelta(days=1, hours=1)

    def test_pending_record_degrades(self):
        records = [make(1, score=1.0, sentiment="positive", analyzed=True), make(2)]
        snapshot = aggregate(records)
        assert snapshot.status == "degraded"
        assert snapshot.avg_confidence == 0.75
        assert snapshot.sentiment_breakdown.model_dump() == {"positive": 1, "neutral": 0, "negative": 0}

    def test_threshold_is_exclusive(self):
        assert classify_status(2, 2, 0.85) == "degraded"
        assert classify_status(2, 2, 0.86) == "healthy"

    def test_average_rating_ignores_unrated(self):
        records = [make(1, rating=4), make(2, rating=2), make(3)]
        assert aggregate(records).avg_user_rating == 3.0


class TestDisplayRecord:
    """Test building display records from stored rows"""

    def test_row_to_display_record(self):
        row = SimpleNamespace(
            id=12,
            source="wire",
            url=None,
            content="text",
            created_at=datetime(2025, 3, 1, 9, 0),
            summary=None,
            keywords=None,
            sentiment=None,
            sentiment_score=None,
            analyzed_at=None,
        )
        record = to_display_record(row, user_rating=4.5)

        assert record.id == "12"
        assert record.created_at == datetime(2025, 3, 1, 9, 0, tzinfo=timezone.utc)
        assert record.keywords == []
        assert record.confidence == 0.5
        assert record.user_rating == 4.5
        assert record.is_analyzed is False
