"""Shared fixtures: in-memory database, settings and fake upstreams."""

import json
import os
from typing import Any, Callable, Dict, List

import httpx
import pytest

# scrapelens.main builds its app from the environment on import
for _name, _value in {
    "DATABASE_URL": "sqlite://",
    "APIFY_TOKEN": "apify-test-token",
    "APIFY_DATASET_ID": "dataset123",
    "OPENAI_API_KEY": "sk-test",
}.items():
    os.environ.setdefault(_name, _value)

from scrapelens.core.config import Settings, load_settings
from scrapelens.core.db import SessionLocal, dispose_db, init_db
from scrapelens.ingestion.base import BaseSource
from scrapelens.models import Base


class StaticSource(BaseSource):
    """Source returning a fixed list of raw items."""

    name = "static"

    def __init__(self, items: List[Dict[str, Any]]):
        self.items = items
        self.calls: List[int] = []

    async def fetch(self, limit: int) -> List[Dict[str, Any]]:
        self.calls.append(limit)
        return list(self.items[:limit])


class RecordingSleep:
    """Stand-in for asyncio.sleep that only records the requested delays."""

    def __init__(self):
        self.delays: List[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


def completion(payload: Any, status_code: int = 200) -> httpx.Response:
    """Chat-completion response whose message content is ``payload`` as JSON."""
    return httpx.Response(
        status_code,
        json={"choices": [{"message": {"role": "assistant", "content": json.dumps(payload)}}]},
    )


def mock_transport(handler: Callable[[httpx.Request], httpx.Response]) -> httpx.MockTransport:
    return httpx.MockTransport(handler)


GOOD_ANALYSIS = {
    "summary": "Markets rallied on strong earnings.",
    "keywords": ["markets", "earnings", "rally"],
    "sentiment": "positive",
    "sentiment_score": 0.8,
}


@pytest.fixture
def settings() -> Settings:
    return load_settings(
        _env_file=None,
        DATABASE_URL="sqlite://",
        APIFY_TOKEN="apify-test-token",
        APIFY_DATASET_ID="dataset123",
        OPENAI_API_KEY="sk-test",
        OPENAI_BASE_URL="https://llm.test/v1",
        AI_MODEL="test-model",
        ANALYSIS_PACING_MS=0,
        RETRY_BASE_DELAY_MS=0,
        RETRY_JITTER_MS=0,
    )


@pytest.fixture
def db():
    """Session on a fresh in-memory SQLite database."""
    engine = init_db("sqlite://")
    Base.metadata.create_all(engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        dispose_db()


@pytest.fixture
def sleep() -> RecordingSleep:
    return RecordingSleep()
