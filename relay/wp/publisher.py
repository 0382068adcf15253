"""
发布网关 —— ArticleRecord + 分类 + 可见性 → WordPress 创建文章
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

from relay.llm.article import ArticleRecord
from relay.utils.logger import get_logger
from relay.wp.category import CategoryDecision
from relay.wp.client import WordPressClient

logger = get_logger("publisher")


class Visibility(str, Enum):
    DRAFT = "draft"
    PUBLISHED = "publish"


# SEO 插件的 meta 字段名：(标题, 描述, 关键词)
SEO_META_KEYS = {
    "rank_math": ("rank_math_title", "rank_math_description", "rank_math_focus_keyword"),
    "yoast": ("_yoast_wpseo_title", "_yoast_wpseo_metadesc", "_yoast_wpseo_focuskw"),
}


@dataclass(frozen=True)
class PublishOutcome:
    state: str                 # created | skipped
    visibility: Visibility
    title: str
    category: str = ""
    post_id: Optional[int] = None
    link: str = ""
    source: str = ""

    @property
    def created(self) -> bool:
        return self.state == "created"

    @property
    def skipped(self) -> bool:
        return self.state == "skipped"


def build_post_payload(
    article: ArticleRecord,
    category_id: int,
    visibility: Visibility,
    seo_plugin: str = "rank_math",
) -> Dict[str, Any]:
    """构建 /wp/v2/posts 请求体"""
    title_key, desc_key, keyword_key = SEO_META_KEYS[seo_plugin]
    return {
        "title": article.title,
        "content": article.content,
        "slug": article.slug,
        "excerpt": article.excerpt,
        "status": visibility.value,
        "categories": [category_id],
        "meta": {
            title_key: article.meta_title,
            desc_key: article.meta_description,
            keyword_key: ", ".join(article.meta_keywords),
        },
    }


class PostPublisher:
    """单次写入，失败直接抛出，不重试"""

    def __init__(self, wp: WordPressClient, seo_plugin: str = "rank_math") -> None:
        if seo_plugin not in SEO_META_KEYS:
            raise ValueError(f"未知 SEO 插件: {seo_plugin}")
        self.wp = wp
        self.seo_plugin = seo_plugin

    def publish(
        self,
        article: ArticleRecord,
        category: CategoryDecision,
        visibility: Visibility = Visibility.DRAFT,
    ) -> PublishOutcome:
        payload = build_post_payload(article, category.term_id, visibility, self.seo_plugin)
        post = self.wp.create_post(payload)
        logger.info(
            "文章创建成功 id=%s status=%s link=%s",
            post.get("id"), post.get("status", visibility.value), post.get("link"),
        )
        return PublishOutcome(
            state="created",
            visibility=visibility,
            title=article.title,
            category=category.label,
            post_id=post.get("id"),
            link=post.get("link", ""),
            source=article.source,
        )
