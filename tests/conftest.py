"""Shared fixtures for the news relay tests."""
from typing import Any, Dict, List, Optional
from unittest.mock import MagicMock

import pytest

from relay.config import Settings
from relay.llm.providers import RewriteProvider
from relay.llm.seo import SEOGenerator
from relay.wp.category import CategoryResolver
from relay.wp.client import WordPressClient
from relay.wp.dedup import DuplicateGuard
from relay.wp.publisher import PostPublisher
from webhook.pipeline import NewsRelay

CRIME_NEWS = "পুলিশ আজ একটি চুরি মামলায় একজনকে গ্রেপ্তার করেছে।"


class FakeProvider(RewriteProvider):
    """Provider double: returns a canned candidate or raises a canned error."""

    def __init__(self, name: str, candidate: Optional[Dict[str, Any]] = None,
                 error: Optional[Exception] = None, available: bool = True):
        self.name = name
        self.candidate = candidate
        self.error = error
        self._available = available
        self.calls: List[str] = []

    @property
    def available(self) -> bool:
        return self._available

    def rewrite(self, raw_text: str) -> Optional[Dict[str, Any]]:
        self.calls.append(raw_text)
        if self.error is not None:
            raise self.error
        return self.candidate


def bengali_candidate(**overrides) -> Dict[str, Any]:
    candidate = {
        "title": "চুরির মামলায় একজন গ্রেপ্তার",
        "content": "পুলিশ আজ একটি চুরির মামলায় অভিযুক্ত একজনকে গ্রেপ্তার করেছে। বিস্তারিত তদন্ত চলছে।",
        "meta_title": "চুরির মামলায় একজন গ্রেপ্তার",
        "meta_description": "পুলিশ একটি চুরির মামলায় একজনকে গ্রেপ্তার করেছে।",
        "meta_keywords": ["পুলিশ", "চুরি", "গ্রেপ্তার", "মামলা", "অপরাধ"],
        "slug": "theft-case-arrest",
        "excerpt": "চুরির মামলায় একজন গ্রেপ্তার।",
    }
    candidate.update(overrides)
    return candidate


@pytest.fixture
def settings() -> Settings:
    return Settings(
        telegram_bot_token="123:abc",
        telegram_api_base="https://api.telegram.org",
        allowed_chat_id="-1001",
        trusted_user_ids=("42",),
        webhook_secret="",
        webhook_path="/api/telegram",
        gemini_api_key="g-key",
        gemini_model="gemini-1.5-flash",
        gemini_base_url="https://generativelanguage.googleapis.com/v1beta",
        gemini_max_attempts=2,
        openrouter_api_key="or-key",
        openrouter_model="openai/gpt-4o-mini",
        openrouter_base_url="https://openrouter.ai/api/v1",
        openrouter_max_retries=1,
        openrouter_app_title="Telegram News Bot",
        rewrite_providers=("gemini", "openrouter"),
        llm_temperature=0.2,
        llm_max_tokens=900,
        llm_timeout=25,
        language_check=True,
        wp_base="https://news.example.com",
        wp_user="editor",
        wp_app_password="app-pass",
        default_category_id=1,
        category_slugs=(),
        duplicate_policy="search",
        seo_plugin="rank_math",
        request_timeout=10,
        host="127.0.0.1",
        port=8000,
    )


@pytest.fixture
def wp() -> MagicMock:
    client = MagicMock(spec=WordPressClient)
    client.find_term_id.return_value = 7
    client.search_posts.return_value = []
    client.create_post.return_value = {"id": 99, "link": "https://news.example.com/?p=99", "status": "draft"}
    return client


@pytest.fixture
def make_relay(wp):
    def _make(providers=(), policy: str = "search", trusted=("42",)) -> NewsRelay:
        return NewsRelay(
            seo=SEOGenerator(list(providers)),
            resolver=CategoryResolver(wp, default_id=1),
            guard=DuplicateGuard(wp, policy=policy),
            publisher=PostPublisher(wp),
            trusted_ids=trusted,
        )
    return _make
