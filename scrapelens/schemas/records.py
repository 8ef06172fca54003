"""Record shapes that flow between pipeline stages."""

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

Sentiment = Literal["positive", "neutral", "negative"]

MAX_CONTENT_CHARS = 20_000
MAX_ANALYSIS_CHARS = 4_000


class RecordDraft(BaseModel):
    """Canonical record produced by the normalizer, ready for upsert."""

    external_item_id: Optional[str] = None
    source: str = "unknown"
    url: Optional[str] = None
    content: str = Field(min_length=1, max_length=MAX_CONTENT_CHARS)
    created_at: datetime

    @field_validator("url")
    @classmethod
    def _url_has_scheme(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and not value.startswith("http"):
            raise ValueError("url must start with an http(s) scheme")
        return value


class AnalysisResult(BaseModel):
    """Strict shape the analyzer must return."""

    model_config = ConfigDict(strict=True)

    summary: str
    keywords: list[str] = Field(min_length=3, max_length=8)
    sentiment: Sentiment
    sentiment_score: float = Field(ge=-1.0, le=1.0)


class PendingRecord(BaseModel):
    id: int
    content: str


class DisplayRecord(BaseModel):
    """Record as the dashboard shows it, with derived confidence."""

    id: str
    source: str
    url: Optional[str] = None
    content: str
    created_at: datetime
    summary: Optional[str] = None
    keywords: list[str] = Field(default_factory=list)
    sentiment: Optional[Sentiment] = None
    sentiment_score: Optional[float] = None
    analyzed_at: Optional[datetime] = None
    confidence: float = 0.5
    user_rating: Optional[float] = Field(default=None, ge=1, le=5)

    @property
    def is_analyzed(self) -> bool:
        return self.analyzed_at is not None


class SentimentBreakdown(BaseModel):
    positive: int = 0
    neutral: int = 0
    negative: int = 0


class HealthSnapshot(BaseModel):
    total_records: int
    analyzed_records: int
    avg_confidence: float
    sentiment_breakdown: SentimentBreakdown
    avg_user_rating: float
    last_created_at: Optional[datetime] = None
    last_analyzed_at: Optional[datetime] = None
    status: Literal["no data", "healthy", "degraded"]
