"""
发布前查重 —— 按标题搜索站内已有文章
"""

from __future__ import annotations

from relay.utils.helpers import normalize_title
from relay.utils.logger import get_logger
from relay.wp.client import WordPressClient

logger = get_logger("dedup")

POLICIES = ("search", "normalized", "off")


class DuplicateGuard:
    """
    查重策略：
    - search: 标题搜索有任何结果即视为重复
    - normalized: 只有归一化后标题完全相同才算重复
    - off: 不查重
    """

    def __init__(self, wp: WordPressClient, policy: str = "search") -> None:
        if policy not in POLICIES:
            raise ValueError(f"未知查重策略: {policy}")
        self.wp = wp
        self.policy = policy

    def is_duplicate(self, title: str) -> bool:
        if self.policy == "off" or not title.strip():
            return False

        posts = self.wp.search_posts(title)
        if self.policy == "search":
            hit = posts[0] if posts else None
        else:
            wanted = normalize_title(title)
            hit = next((p for p in posts if normalize_title(p.title) == wanted), None)

        if hit is not None:
            logger.info("发现重复文章 id=%s title=%s", hit.id, hit.title)
            return True
        return False
