"""
新闻转发流水线
—— 串联 relay 模块完成：SEO 改写 -> 分类 -> 查重 -> 发布
"""

from __future__ import annotations

import time
from typing import Any, Dict, Iterable

from relay.config import Settings
from relay.llm.providers import build_providers
from relay.llm.seo import SEOGenerator
from relay.utils.logger import get_logger
from relay.wp.category import CategoryResolver, classify
from relay.wp.client import WordPressClient
from relay.wp.dedup import DuplicateGuard
from relay.wp.publisher import PostPublisher, PublishOutcome, Visibility, build_post_payload

logger = get_logger("relay-pipeline")


class NewsRelay:
    """单条新闻从原文到 WordPress 文章的完整流程"""

    def __init__(
        self,
        seo: SEOGenerator,
        resolver: CategoryResolver,
        guard: DuplicateGuard,
        publisher: PostPublisher,
        trusted_ids: Iterable[str] = (),
    ) -> None:
        self.seo = seo
        self.resolver = resolver
        self.guard = guard
        self.publisher = publisher
        self.trusted_ids = frozenset(str(i) for i in trusted_ids)

    @classmethod
    def from_settings(cls, settings: Settings) -> "NewsRelay":
        wp = WordPressClient(
            wp_base=settings.wp_base,
            wp_user=settings.wp_user,
            wp_app_password=settings.wp_app_password,
            timeout=settings.request_timeout,
        )
        return cls(
            seo=SEOGenerator(build_providers(settings), language_check=settings.language_check),
            resolver=CategoryResolver(
                wp,
                default_id=settings.default_category_id,
                slug_map=settings.category_slug_map,
            ),
            guard=DuplicateGuard(wp, policy=settings.duplicate_policy),
            publisher=PostPublisher(wp, seo_plugin=settings.seo_plugin),
            trusted_ids=settings.trusted_user_ids,
        )

    def __enter__(self) -> "NewsRelay":
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()

    def close(self) -> None:
        self.seo.close()
        self.publisher.wp.close()

    def visibility_for(self, sender_id: str) -> Visibility:
        if sender_id and sender_id in self.trusted_ids:
            return Visibility.PUBLISHED
        return Visibility.DRAFT

    # ── 主流程 ──

    def process(self, raw_text: str, sender_id: str = "") -> PublishOutcome:
        # ── Step 1: SEO 改写 ──
        t_start = time.monotonic()
        logger.info("Step 1/4  SEO 改写...")
        article = self.seo.generate(raw_text)
        logger.info("  改写完成（%.1fs, 来源: %s）标题: %s", time.monotonic() - t_start, article.source, article.title)

        # ── Step 2: 分类 ──
        logger.info("Step 2/4  分类...")
        label = classify(f"{article.title} {article.content}")
        category = self.resolver.resolve(label)
        logger.info("  分类: %s (id=%d)", category.label, category.term_id)

        visibility = self.visibility_for(sender_id)

        # ── Step 3: 查重 ──
        logger.info("Step 3/4  查重...")
        if self.guard.is_duplicate(article.title):
            logger.info("  重复文章，跳过发布")
            return PublishOutcome(
                state="skipped",
                visibility=visibility,
                title=article.title,
                category=category.label,
                source=article.source,
            )

        # ── Step 4: 发布 ──
        logger.info("Step 4/4  发布到 WordPress（%s）...", visibility.value)
        return self.publisher.publish(article, category, visibility)

    def preview(self, raw_text: str, sender_id: str = "") -> Dict[str, Any]:
        """只做改写和分类，返回将要提交的请求体（不查重、不发布）"""
        article = self.seo.generate(raw_text)
        category = self.resolver.resolve(classify(f"{article.title} {article.content}"))
        return build_post_payload(
            article,
            category.term_id,
            self.visibility_for(sender_id),
            self.publisher.seo_plugin,
        )
