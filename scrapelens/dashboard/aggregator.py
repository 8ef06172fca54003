"""Read-only derivations over display records: confidence, filter/sort, health."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Iterable, List, Literal, Optional, Sequence

from scrapelens.schemas.records import DisplayRecord, HealthSnapshot, SentimentBreakdown

SortBy = Literal["date", "rating", "confidence"]
SentimentFilter = Literal["all", "positive", "neutral", "negative"]

DEFAULT_CONFIDENCE = 0.5
HEALTHY_CONFIDENCE = 0.85

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def confidence_from_score(score: Optional[float]) -> float:
    """Map a signed sentiment score in [-1, 1] onto [0, 1]."""
    if score is None:
        return DEFAULT_CONFIDENCE
    return max(0.0, min(1.0, (score + 1) / 2))


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def to_display_record(row: Any, user_rating: Optional[float] = None) -> DisplayRecord:
    """Build a display record from a row with the projected record columns."""
    return DisplayRecord(
        id=str(row.id),
        source=row.source,
        url=row.url,
        content=row.content,
        created_at=_as_utc(row.created_at),
        summary=row.summary,
        keywords=list(row.keywords or []),
        sentiment=row.sentiment,
        sentiment_score=row.sentiment_score,
        analyzed_at=_as_utc(row.analyzed_at),
        confidence=confidence_from_score(row.sentiment_score),
        user_rating=user_rating,
    )


def filter_by_sentiment(records: Iterable[DisplayRecord], sentiment: SentimentFilter = "all") -> List[DisplayRecord]:
    if sentiment == "all":
        return list(records)
    return [r for r in records if r.sentiment == sentiment]


def sort_records(records: Iterable[DisplayRecord], by: SortBy = "date") -> List[DisplayRecord]:
    """Sort newest/highest first. Python's sort is stable, equal keys keep input order."""
    if by == "rating":
        return sorted(records, key=lambda r: r.user_rating or 0, reverse=True)
    if by == "confidence":
        # Ties broken by newest created_at
        return sorted(records, key=lambda r: (r.confidence, _as_utc(r.created_at) or _EPOCH), reverse=True)
    return sorted(records, key=lambda r: _as_utc(r.created_at) or _EPOCH, reverse=True)


def _mean(values: Sequence[float]) -> float:
    return sum(values) / len(values) if values else 0.0


def _latest(values: Iterable[Optional[datetime]]) -> Optional[datetime]:
    present = [_as_utc(v) for v in values if v is not None]
    return max(present) if present else None


def classify_status(total: int, analyzed: int, avg_confidence: float) -> str:
    if total == 0:
        return "no data"
    if analyzed == total and avg_confidence > HEALTHY_CONFIDENCE:
        return "healthy"
    return "degraded"


def aggregate(records: Sequence[DisplayRecord]) -> HealthSnapshot:
    """Fleet statistics, recomputed from scratch on every call."""
    total = len(records)
    analyzed = sum(1 for r in records if r.is_analyzed)
    avg_confidence = _mean([r.confidence for r in records])

    breakdown = SentimentBreakdown(
        positive=sum(1 for r in records if r.sentiment == "positive"),
        neutral=sum(1 for r in records if r.sentiment == "neutral"),
        negative=sum(1 for r in records if r.sentiment == "negative"),
    )

    ratings = [r.user_rating for r in records if r.user_rating]

    return HealthSnapshot(
        total_records=total,
        analyzed_records=analyzed,
        avg_confidence=avg_confidence,
        sentiment_breakdown=breakdown,
        avg_user_rating=_mean(ratings),
        last_created_at=_latest(r.created_at for r in records),
        last_analyzed_at=_latest(r.analyzed_at for r in records),
        status=classify_status(total, analyzed, avg_confidence),
    )
