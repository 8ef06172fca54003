"""Sentiment/summary analyzer over an OpenAI-compatible chat-completion API."""

from __future__ import annotations

import json
from typing import Any, Dict, Optional

import httpx
from pydantic import ValidationError

from scrapelens.core.errors import ProviderError, QuotaError, ShapeError
from scrapelens.core.logging import get_logger
from scrapelens.schemas.records import AnalysisResult

log = get_logger("analysis.analyzer")

SYSTEM_PROMPT = (
    "You are a data analyst. Return STRICT JSON with keys:"
    " summary (string, <= 120 words),"
    " keywords (array of 3-8 concise keywords),"
    ' sentiment (one of "positive","neutral","negative"),'
    " sentiment_score (float between -1 and 1)."
)

QUOTA_MARKER = "insufficient_quota"


class ChatCompletionAnalyzer:
    """Calls ``{base_url}/chat/completions`` and validates the JSON answer.

    The base URL can point at OpenAI or any compatible provider (OpenRouter
    reads the ``HTTP-Referer`` and ``X-Title`` headers, OpenAI ignores them).
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://api.openai.com/v1",
        model: str = "gpt-4o-mini",
        app_url: str = "",
        app_title: str = "",
        timeout: float = 60.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.model = model
        self.app_url = app_url
        self.app_title = app_title
        self.timeout = timeout
        self.transport = transport

    @property
    def endpoint(self) -> str:
        return f"{self.base_url}/chat/completions"

    def _headers(self) -> Dict[str, str]:
        return {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self.api_key}",
            "HTTP-Referer": self.app_url,
            "X-Title": self.app_title,
        }

    async def _post(self, payload: Dict[str, Any]) -> httpx.Response:
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                return await client.post(self.endpoint, headers=self._headers(), json=payload)
        except httpx.HTTPError as exc:
            raise ProviderError(f"Analyzer request failed: {exc}") from exc

    async def analyze(self, text: str) -> AnalysisResult:
        payload = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": f"Analyze the following text:\n\n{text}"},
            ],
            "temperature": 0.2,
            "response_format": {"type": "json_object"},
        }
        resp = await self._post(payload)

        if resp.is_error:
            body = resp.text
            if QUOTA_MARKER in body:
                raise QuotaError(f"Analyzer {resp.status_code}: {body}", resp.status_code, body)
            raise ProviderError(f"Analyzer {resp.status_code}: {body}", resp.status_code, body)

        return self.parse_completion(resp)

    @staticmethod
    def parse_completion(resp: httpx.Response) -> AnalysisResult:
        try:
            content = resp.json()["choices"][0]["message"]["content"] or "{}"
        except (ValueError, KeyError, IndexError, TypeError) as exc:
            raise ShapeError(f"Analyzer returned no completion content: {resp.text[:600]}") from exc

        try:
            return AnalysisResult.model_validate(json.loads(content))
        except (TypeError, ValueError, ValidationError) as exc:
            # json.JSONDecodeError is a ValueError
            raise ShapeError(f"Analyzer returned unexpected shape: {str(content)[:600]}") from exc

    async def self_test(self) -> Dict[str, Any]:
        """Ping the configured provider/model and report the raw outcome."""
        payload = {
            "model": self.model,
            "messages": [{"role": "user", "content": "ping"}],
            "temperature": 0,
            "response_format": {"type": "json_object"},
        }
        resp = await self._post(payload)
        log.info(f"Analyzer self-test against {self.base_url} returned {resp.status_code}")
        return {
            "ok": resp.is_success,
            "status": resp.status_code,
            "body": resp.text[:600],
            "provider": self.base_url,
            "model": self.model,
        }


def analyzer_from_settings(settings, transport: Optional[httpx.AsyncBaseTransport] = None) -> ChatCompletionAnalyzer:
    return ChatCompletionAnalyzer(
        api_key=settings.OPENAI_API_KEY,
        base_url=settings.OPENAI_BASE_URL,
        model=settings.AI_MODEL,
        app_url=settings.APP_URL,
        app_title=settings.APP_TITLE,
        transport=transport,
    )
