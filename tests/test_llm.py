"""Tests for the JSON extractor, the HTTP LLM clients and the provider adapters."""
import json
from unittest.mock import MagicMock

import pytest
import requests

from relay.llm.client import LLMClient, extract_json_block
from relay.llm.gemini import GeminiClient
from relay.llm.providers import GeminiProvider, OpenRouterProvider, build_prompt, build_providers
from relay.utils.exceptions import LLMResponseError
from tests.conftest import bengali_candidate


def _response(status: int = 200, body=None) -> MagicMock:
    resp = MagicMock()
    resp.status_code = status
    resp.json.return_value = body if body is not None else {}
    resp.text = json.dumps(body or {})
    if status >= 400:
        resp.raise_for_status.side_effect = requests.HTTPError(f"{status} error")
    return resp


class TestExtractJsonBlock:

    def test_plain_object(self):
        assert extract_json_block('{"title": "শিরোনাম"}') == {"title": "শিরোনাম"}

    def test_object_inside_prose_and_fence(self):
        text = 'এই নিন:\n```json\n{"title": "ক", "meta_keywords": ["খ"]}\n```\nধন্যবাদ'

        assert extract_json_block(text) == {"title": "ক", "meta_keywords": ["খ"]}

    def test_nested_object_is_kept_whole(self):
        text = 'result {"a": {"b": 1}} end'

        assert extract_json_block(text) == {"a": {"b": 1}}

    @pytest.mark.parametrize("text", ["", "no json here", "} backwards {", '{"title": "ক",}', "{broken"])
    def test_parse_error(self, text):
        with pytest.raises(LLMResponseError):
            extract_json_block(text)

    def test_greedy_span_over_two_objects_fails(self):
        with pytest.raises(LLMResponseError):
            extract_json_block('{"a": 1} and {"b": 2}')


class TestBuildPrompt:

    def test_embeds_raw_text_verbatim(self):
        raw = "খবর {with braces} এবং \"quotes\""
        prompt = build_prompt(raw)

        assert prompt.rstrip().endswith(raw)
        assert '"meta_keywords": []' in prompt
        assert "১০০% বাংলায়" in prompt


class TestLLMClient:

    def _client(self, *responses, max_retries: int = 1) -> LLMClient:
        client = LLMClient(api_key="k", max_retries=max_retries)
        client._session = MagicMock()
        client._session.post.side_effect = list(responses)
        return client

    def test_returns_first_choice(self):
        client = self._client(_response(200, {"choices": [{"message": {"content": "উত্তর"}}]}))

        assert client.chat("প্রম্পট", max_tokens=900) == "উত্তর"
        payload = client._session.post.call_args.kwargs["json"]
        assert payload["messages"] == [{"role": "user", "content": "প্রম্পট"}]
        assert payload["max_tokens"] == 900

    def test_no_choices_returns_none(self):
        client = self._client(_response(200, {"choices": []}))

        assert client.chat("প্রম্পট") is None

    def test_client_error_not_retried(self):
        client = self._client(_response(401, {"error": "bad key"}))

        assert client.chat("প্রম্পট") is None
        assert client._session.post.call_count == 1

    def test_server_error_retried(self, monkeypatch):
        monkeypatch.setattr("relay.llm.client.time.sleep", lambda _: None)
        client = self._client(
            _response(502, {"error": "upstream"}),
            _response(200, {"choices": [{"message": {"content": "উত্তর"}}]}),
        )

        assert client.chat("প্রম্পট") == "উত্তর"
        assert client._session.post.call_count == 2

    def test_rate_limit_retried(self, monkeypatch):
        monkeypatch.setattr("relay.llm.client.time.sleep", lambda _: None)
        client = self._client(
            _response(429, {"error": "rate limited"}),
            _response(200, {"choices": [{"message": {"content": "উত্তর"}}]}),
        )

        assert client.chat("প্রম্পট") == "উত্তর"
        assert client._session.post.call_count == 2

    def test_timeout_exhausts_retries(self, monkeypatch):
        monkeypatch.setattr("relay.llm.client.time.sleep", lambda _: None)
        client = self._client(requests.exceptions.ReadTimeout(), requests.exceptions.ReadTimeout())

        assert client.chat("প্রম্পট") is None
        assert client._session.post.call_count == 2

    def test_available_requires_key(self):
        assert not LLMClient(api_key="  ").available


class TestGeminiClient:

    def _client(self, resp) -> GeminiClient:
        client = GeminiClient(api_key="g-key")
        client._session = MagicMock()
        client._session.post.return_value = resp
        return client

    def test_generate_reads_first_candidate(self):
        client = self._client(_response(200, {
            "candidates": [{"content": {"parts": [{"text": '{"title": '}, {"text": '"ক"}'}]}}],
        }))

        assert client.generate("প্রম্পট", temperature=0.2, max_tokens=900) == '{"title": "ক"}'
        call = client._session.post.call_args
        assert "params" not in call.kwargs
        assert call.kwargs["json"]["generationConfig"] == {"temperature": 0.2, "maxOutputTokens": 900}
        assert call.args[0].endswith("/models/gemini-1.5-flash:generateContent")

    def test_no_candidates(self):
        client = self._client(_response(200, {"promptFeedback": {"blockReason": "SAFETY"}}))

        assert client.generate("প্রম্পট") is None

    def test_http_error_raises(self):
        client = self._client(_response(429, {"error": "quota"}))

        with pytest.raises(requests.HTTPError):
            client.generate("প্রম্পট")


    def test_key_sent_as_header(self):
        client = GeminiClient(api_key=" g-key ")

        assert client._session.headers["x-goog-api-key"] == "g-key"


class TestGeminiProvider:

    def test_returns_parsed_candidate(self):
        client = MagicMock(spec=GeminiClient)
        client.generate.return_value = "```json\n" + json.dumps(bengali_candidate(), ensure_ascii=False) + "\n```"
        provider = GeminiProvider(client, retry_delay=0)

        assert provider.rewrite("খবর") == bengali_candidate()
        assert client.generate.call_count == 1

    def test_retries_parse_error_then_succeeds(self):
        client = MagicMock(spec=GeminiClient)
        client.generate.side_effect = ["not json", '{"title": "ক", "content": "খ"}']
        provider = GeminiProvider(client, max_attempts=2, retry_delay=0)

        assert provider.rewrite("খবর") == {"title": "ক", "content": "খ"}
        assert client.generate.call_count == 2

    def test_gives_up_after_max_attempts(self):
        client = MagicMock(spec=GeminiClient)
        client.generate.side_effect = requests.ConnectionError("down")
        provider = GeminiProvider(client, max_attempts=2, retry_delay=0)

        with pytest.raises(requests.ConnectionError):
            provider.rewrite("খবর")
        assert client.generate.call_count == 2

    def test_no_candidates_is_absent(self):
        client = MagicMock(spec=GeminiClient)
        client.generate.return_value = None

        assert GeminiProvider(client, retry_delay=0).rewrite("খবর") is None


class TestOpenRouterProvider:

    def test_returns_parsed_candidate(self):
        client = MagicMock(spec=LLMClient)
        client.chat.return_value = 'Sure! {"title": "ক", "content": "খ"}'
        provider = OpenRouterProvider(client, temperature=0.2, max_tokens=900)

        assert provider.rewrite("খবর") == {"title": "ক", "content": "খ"}
        assert client.chat.call_args.kwargs == {"temperature": 0.2, "max_tokens": 900}

    def test_no_choices_is_absent(self):
        client = MagicMock(spec=LLMClient)
        client.chat.return_value = None

        assert OpenRouterProvider(client).rewrite("খবর") is None


def test_build_providers_follows_configured_order(settings):
    from dataclasses import replace

    providers = build_providers(replace(settings, rewrite_providers=("openrouter", "gemini")))

    assert [p.name for p in providers] == ["openrouter", "gemini"]
    assert providers[0].client._session.headers["X-Title"] == "Telegram News Bot"
    assert providers[0].client._session.headers["HTTP-Referer"] == "https://news.example.com"
