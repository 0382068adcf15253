"""
SEO 文章生成编排
—— 按优先级串行尝试各服务商，第一个通过校验的结果胜出，全部失败走规则兜底
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Callable, Iterable, List, Optional, Sequence, Union

from relay.llm.article import ArticleRecord, fallback_article, validate_candidate
from relay.llm.providers import RewriteProvider
from relay.utils.logger import get_logger

logger = get_logger("seo-gen")


@dataclass(frozen=True)
class Success:
    article: ArticleRecord
    provider: str


@dataclass(frozen=True)
class Failure:
    provider: str
    reason: str


RewriteResult = Union[Success, Failure]


def first_success(attempts: Iterable[Callable[[], RewriteResult]]) -> Optional[Success]:
    """从左到右惰性执行，返回第一个 Success；后面的尝试不会被调用"""
    for attempt in attempts:
        result = attempt()
        if isinstance(result, Success):
            return result
        logger.warning("改写失败 [%s]: %s", result.provider, result.reason)
    return None


class SEOGenerator:
    """
    SEO 改写编排器
    - generate(): 永不抛异常，永远返回完整 ArticleRecord
    """

    def __init__(self, providers: Sequence[RewriteProvider], language_check: bool = True) -> None:
        self.providers: List[RewriteProvider] = list(providers)
        self.language_check = language_check

    def close(self) -> None:
        for provider in self.providers:
            provider.close()

    def attempt(self, provider: RewriteProvider, raw_text: str) -> RewriteResult:
        """调用单个服务商并校验，把所有异常折叠为 Failure"""
        if not provider.available:
            return Failure(provider.name, "未配置 API Key")

        t0 = time.monotonic()
        try:
            candidate = provider.rewrite(raw_text)
        except Exception as exc:
            return Failure(provider.name, f"{type(exc).__name__}: {exc}")

        reason = validate_candidate(candidate, language_check=self.language_check)
        if reason:
            return Failure(provider.name, reason)

        article = ArticleRecord.from_candidate(candidate, source=provider.name)
        logger.info("改写成功 [%s]（%.1fs）", provider.name, time.monotonic() - t0)
        return Success(article, provider.name)

    def generate(self, raw_text: str) -> ArticleRecord:
        outcome = first_success(
            (lambda p=p: self.attempt(p, raw_text)) for p in self.providers
        )
        if outcome is not None:
            return outcome.article

        logger.warning("全部服务商不可用，使用规则兜底生成")
        return fallback_article(raw_text)
