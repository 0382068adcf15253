"""Tests for the provider fallback chain in SEOGenerator."""
from dataclasses import replace

import requests

from relay.llm.article import fallback_article
from relay.llm.seo import Failure, SEOGenerator, Success, first_success
from relay.utils.exceptions import LLMResponseError
from tests.conftest import CRIME_NEWS, FakeProvider, bengali_candidate


def _same_as_fallback(article, raw_text):
    expected = fallback_article(raw_text)
    return replace(article, slug=expected.slug) == expected


class TestFirstSuccess:

    def test_stops_at_first_success(self):
        calls = []

        def attempt(result):
            def _run():
                calls.append(result)
                return result
            return _run

        winner = Success(fallback_article("ক"), "b")
        outcome = first_success([attempt(Failure("a", "down")), attempt(winner), attempt(Failure("c", "x"))])

        assert outcome is winner
        assert [getattr(c, "provider") for c in calls] == ["a", "b"]

    def test_all_failures(self):
        assert first_success([lambda: Failure("a", "x"), lambda: Failure("b", "y")]) is None

    def test_empty(self):
        assert first_success([]) is None


class TestSEOGenerator:

    def test_first_provider_wins_and_second_not_called(self):
        a = FakeProvider("gemini", bengali_candidate())
        b = FakeProvider("openrouter", bengali_candidate(title="অন্য শিরোনাম"))

        article = SEOGenerator([a, b]).generate(CRIME_NEWS)

        assert article.title == "চুরির মামলায় একজন গ্রেপ্তার"
        assert article.source == "gemini"
        assert a.calls == [CRIME_NEWS]
        assert b.calls == []

    def test_falls_through_to_second_provider_on_error(self):
        a = FakeProvider("gemini", error=requests.ConnectionError("unreachable"))
        b = FakeProvider("openrouter", bengali_candidate(title="অন্য শিরোনাম"))

        article = SEOGenerator([a, b]).generate(CRIME_NEWS)

        assert article.title == "অন্য শিরোনাম"
        assert article.source == "openrouter"
        assert b.calls == [CRIME_NEWS]

    def test_parse_error_falls_through(self):
        a = FakeProvider("gemini", error=LLMResponseError("JSON 解析失败"))
        b = FakeProvider("openrouter", bengali_candidate())

        assert SEOGenerator([a, b]).generate(CRIME_NEWS).source == "openrouter"

    def test_english_output_rejected(self):
        a = FakeProvider("gemini", bengali_candidate(content="The police arrested a man."))
        b = FakeProvider("openrouter", bengali_candidate())

        assert SEOGenerator([a, b]).generate(CRIME_NEWS).source == "openrouter"

    def test_english_output_accepted_without_language_check(self):
        a = FakeProvider("gemini", bengali_candidate(content="The police arrested a man."))

        article = SEOGenerator([a], language_check=False).generate(CRIME_NEWS)

        assert article.content == "The police arrested a man."

    def test_unavailable_provider_is_skipped(self):
        a = FakeProvider("gemini", bengali_candidate(), available=False)
        b = FakeProvider("openrouter", bengali_candidate())

        article = SEOGenerator([a, b]).generate(CRIME_NEWS)

        assert a.calls == []
        assert article.source == "openrouter"

    def test_all_providers_fail_returns_fallback(self):
        providers = [
            FakeProvider("gemini", error=requests.Timeout("slow")),
            FakeProvider("openrouter", None),
        ]

        article = SEOGenerator(providers).generate(CRIME_NEWS)

        assert article.source == "fallback"
        assert _same_as_fallback(article, CRIME_NEWS)

    def test_invalid_candidates_return_fallback(self):
        providers = [
            FakeProvider("gemini", {"title": "শিরোনাম"}),
            FakeProvider("openrouter", {}),
        ]

        article = SEOGenerator(providers).generate(CRIME_NEWS)

        assert _same_as_fallback(article, CRIME_NEWS)

    def test_unexpected_exception_is_contained(self):
        a = FakeProvider("gemini", error=KeyError("candidates"))

        article = SEOGenerator([a]).generate("")

        assert _same_as_fallback(article, "")

    def test_no_providers(self):
        assert SEOGenerator([]).generate(CRIME_NEWS).source == "fallback"

    def test_attempt_reports_failure_reason(self):
        result = SEOGenerator([]).attempt(FakeProvider("gemini", {"content": "শুধু লেখা"}), CRIME_NEWS)

        assert isinstance(result, Failure)
        assert result.provider == "gemini"
        assert "title" in result.reason


class TestGeminiKeyNotLeaked:
    """Gemini failures must not carry the API key into reasons or logs."""

    KEY = "SECRET-KEY-123"

    def _attempt(self, monkeypatch, send):
        from relay.llm.gemini import GeminiClient
        from relay.llm.providers import GeminiProvider

        monkeypatch.setattr("requests.adapters.HTTPAdapter.send", send)
        provider = GeminiProvider(
            GeminiClient(api_key=self.KEY, base_url="http://127.0.0.1:9/v1beta"),
            max_attempts=1,
            retry_delay=0,
        )
        return SEOGenerator([provider]).attempt(provider, CRIME_NEWS)

    def test_client_error(self, monkeypatch):
        sent = []

        def send(adapter, request, **kwargs):
            sent.append(request)
            resp = requests.Response()
            resp.status_code = 400
            resp.reason = "Bad Request"
            resp.url = request.url
            resp.request = request
            resp._content = b'{"error": {"message": "API key not valid"}}'
            return resp

        result = self._attempt(monkeypatch, send)

        assert isinstance(result, Failure)
        assert "400" in result.reason
        assert self.KEY not in result.reason
        assert self.KEY not in sent[0].url
        assert sent[0].headers["x-goog-api-key"] == self.KEY

    def test_connection_error(self, monkeypatch):
        def send(adapter, request, **kwargs):
            raise requests.ConnectionError(f"Max retries exceeded with url: {request.url}", request=request)

        result = self._attempt(monkeypatch, send)

        assert isinstance(result, Failure)
        assert "ConnectionError" in result.reason
        assert self.KEY not in result.reason
