"""Upstream client tests: dataset source and analyzer"""

import json

import httpx
import pytest

from conftest import GOOD_ANALYSIS, completion, mock_transport
from scrapelens.analysis.analyzer import ChatCompletionAnalyzer, analyzer_from_settings
from scrapelens.core.errors import ProviderError, QuotaError, ShapeError
from scrapelens.ingestion.apify_source import ApifyDatasetSource


class TestApifySource:
    """Test the Apify dataset client"""

    @pytest.mark.asyncio
    async def test_fetch_sends_token_and_limit(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = request.url
            return httpx.Response(200, json=[{"title": "a"}, "junk", {"title": "b"}])

        source = ApifyDatasetSource("tok", "ds1", base_url="https://apify.test/v2", transport=mock_transport(handler))
        items = await source.fetch(5)

        assert items == [{"title": "a"}, {"title": "b"}]
        assert seen["url"].path == "/v2/datasets/ds1/items"
        assert seen["url"].params["token"] == "tok"
        assert seen["url"].params["clean"] == "true"
        assert seen["url"].params["limit"] == "5"

    @pytest.mark.asyncio
    async def test_error_status_raises_provider_error(self):
        source = ApifyDatasetSource(
            "tok", "ds1", transport=mock_transport(lambda r: httpx.Response(401, text="bad token"))
        )
        with pytest.raises(ProviderError) as exc:
            await source.fetch(10)
        assert exc.value.status == 401
        assert "Apify error 401" in str(exc.value)

    @pytest.mark.asyncio
    async def test_non_list_payload_raises(self):
        source = ApifyDatasetSource(
            "tok", "ds1", transport=mock_transport(lambda r: httpx.Response(200, json={"items": []}))
        )
        with pytest.raises(ProviderError):
            await source.fetch(10)


class TestAnalyzer:
    """Test the chat-completion analyzer"""

    @pytest.mark.asyncio
    async def test_analyze_returns_validated_result(self, settings):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["auth"] = request.headers["authorization"]
            seen["body"] = json.loads(request.content)
            return completion(GOOD_ANALYSIS)

        analyzer = analyzer_from_settings(settings, transport=mock_transport(handler))
        result = await analyzer.analyze("Stocks up")

        assert result.sentiment == "positive"
        assert result.keywords == ["markets", "earnings", "rally"]
        assert seen["url"] == "https://llm.test/v1/chat/completions"
        assert seen["auth"] == "Bearer sk-test"
        assert seen["body"]["model"] == "test-model"
        assert seen["body"]["temperature"] == 0.2
        assert seen["body"]["response_format"] == {"type": "json_object"}
        assert seen["body"]["messages"][1]["content"].endswith("Stocks up")

    @pytest.mark.asyncio
    async def test_quota_body_raises_quota_error(self):
        def handler(request):
            return httpx.Response(429, json={"error": {"code": "insufficient_quota"}})

        analyzer = ChatCompletionAnalyzer("k", transport=mock_transport(handler))
        with pytest.raises(QuotaError):
            await analyzer.analyze("text")

    @pytest.mark.asyncio
    async def test_server_error_raises_provider_error_with_status(self):
        analyzer = ChatCompletionAnalyzer("k", transport=mock_transport(lambda r: httpx.Response(503, text="down")))
        with pytest.raises(ProviderError) as exc:
            await analyzer.analyze("text")
        assert not isinstance(exc.value, QuotaError)
        assert exc.value.status == 503

    @pytest.mark.asyncio
    async def test_missing_keywords_is_shape_error(self):
        payload = {k: v for k, v in GOOD_ANALYSIS.items() if k != "keywords"}
        analyzer = ChatCompletionAnalyzer("k", transport=mock_transport(lambda r: completion(payload)))
        with pytest.raises(ShapeError):
            await analyzer.analyze("text")

    @pytest.mark.asyncio
    async def test_out_of_range_score_is_shape_error(self):
        payload = dict(GOOD_ANALYSIS, sentiment_score=1.5)
        analyzer = ChatCompletionAnalyzer("k", transport=mock_transport(lambda r: completion(payload)))
        with pytest.raises(ShapeError):
            await analyzer.analyze("text")

    @pytest.mark.asyncio
    async def test_non_json_content_is_shape_error(self):
        def handler(request):
            return httpx.Response(200, json={"choices": [{"message": {"content": "not json"}}]})

        analyzer = ChatCompletionAnalyzer("k", transport=mock_transport(handler))
        with pytest.raises(ShapeError):
            await analyzer.analyze("text")

    @pytest.mark.asyncio
    async def test_self_test_reports_raw_outcome(self):
        analyzer = ChatCompletionAnalyzer(
            "k", base_url="https://llm.test/v1", model="m1",
            transport=mock_transport(lambda r: httpx.Response(401, text="unauthorized")),
        )
        result = await analyzer.self_test()
        assert result == {
            "ok": False,
            "status": 401,
            "body": "unauthorized",
            "provider": "https://llm.test/v1",
            "model": "m1",
        }
