"""
新闻分类
—— classify(): 关键词子串匹配，按声明顺序取第一个命中（纯函数）
—— CategoryResolver: 把分类名解析为 WordPress 分类 ID
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping, Optional, Sequence, Tuple

from relay.utils.helpers import any_in
from relay.utils.logger import get_logger
from relay.wp.client import WordPressClient

logger = get_logger("category")

# 顺序即优先级：同时命中多个分类时取靠前的
CATEGORY_RULES: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ("রাজনীতি", ("বিএনপি", "আওয়ামী", "নির্বাচন", "মন্ত্রী", "সংসদ", "রাজনীতি")),
    ("অপরাধ", ("খুন", "মামলা", "গ্রেপ্তার", "পুলিশ", "র‍্যাব")),
    ("খেলা", ("খেলা", "ম্যাচ", "ক্রিকেট", "ফুটবল")),
    ("চাকরি", ("নিয়োগ", "চাকরি", "পরীক্ষা")),
    ("বিনোদন", ("চলচ্চিত্র", "নাটক", "অভিনেতা", "গান")),
    ("বাণিজ্য", ("বাজার", "দাম", "ব্যবসা", "অর্থনীতি")),
    ("জীবনযাপন", ("স্বাস্থ্য", "শিক্ষা", "জীবনযাপন")),
    ("বিশ্ব", ("আন্তর্জাতিক", "বিদেশ", "বিশ্ব")),
    ("মতামত", ("মতামত", "বিশ্লেষণ")),
)

DEFAULT_CATEGORY = "বাংলাদেশ"


def classify(
    text: str,
    rules: Sequence[Tuple[str, Sequence[str]]] = CATEGORY_RULES,
    default: str = DEFAULT_CATEGORY,
) -> str:
    for label, keywords in rules:
        if any_in(text or "", keywords):
            return label
    return default


@dataclass(frozen=True)
class CategoryDecision:
    label: str
    term_id: int


class CategoryResolver:
    """分类名 → WordPress 分类 ID；查不到时使用默认 ID"""

    def __init__(
        self,
        wp: WordPressClient,
        default_id: int = 1,
        slug_map: Optional[Mapping[str, str]] = None,
    ) -> None:
        self.wp = wp
        self.default_id = default_id
        self.slug_map = dict(slug_map or {})

    def resolve(self, label: str) -> CategoryDecision:
        slug = self.slug_map.get(label, "")
        if slug:
            term_id = self.wp.find_term_id("categories", slug=slug)
        else:
            term_id = self.wp.find_term_id("categories", search=label)
        if term_id is None:
            logger.info("分类「%s」在站点中不存在，使用默认分类 %d", label, self.default_id)
            term_id = self.default_id
        return CategoryDecision(label=label, term_id=int(term_id))
