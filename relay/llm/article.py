"""
SEO 文章数据模型
—— ArticleRecord / 候选结果校验与归一 / 规则兜底生成
"""

from __future__ import annotations

import threading
import time
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, Optional, Sequence, Tuple

from relay.utils.helpers import (
    is_latin_only,
    is_valid_slug,
    merge_unique,
    normalize_whitespace,
    slugify,
    truncate,
)

# ══════════════════════════════════════════════════════════════
#  常量
# ══════════════════════════════════════════════════════════════

META_TITLE_LIMIT = 60
META_DESCRIPTION_LIMIT = 160
EXCERPT_LIMIT = 120

SENTENCE_END = "।"
DEFAULT_TITLE = "আজকের সংবাদ"
DISCLAIMER = "উল্লেখ্য, সংশ্লিষ্ট ঘটনাটি স্থানীয়ভাবে আলোচনার সৃষ্টি করেছে।"
DEFAULT_KEYWORDS: Tuple[str, ...] = (
    "বাংলাদেশ",
    "আজকের খবর",
    "সর্বশেষ সংবাদ",
    "স্থানীয় সংবাদ",
)
SLUG_PREFIX = "news-"

REQUIRED_FIELDS = ("title", "content")


@dataclass(frozen=True)
class ArticleRecord:
    """改写完成、可直接发布的文章"""

    title: str
    content: str
    meta_title: str
    meta_description: str
    meta_keywords: Tuple[str, ...]
    slug: str
    excerpt: str
    source: str = field(default="fallback", compare=False)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["meta_keywords"] = list(self.meta_keywords)
        return data

    @classmethod
    def from_candidate(cls, candidate: Dict[str, Any], source: str) -> "ArticleRecord":
        """
        把服务商返回的 JSON 归一为 ArticleRecord。
        调用前需先通过 validate_candidate；缺失的可选字段用正文推导补齐。
        """
        title = normalize_whitespace(_as_text(candidate.get("title")))
        content = _as_text(candidate.get("content")).strip()
        flat = normalize_whitespace(content)

        meta_title = normalize_whitespace(_as_text(candidate.get("meta_title"))) or title
        meta_description = normalize_whitespace(_as_text(candidate.get("meta_description"))) or flat
        excerpt = normalize_whitespace(_as_text(candidate.get("excerpt"))) or flat

        keywords = _as_keywords(candidate.get("meta_keywords"))
        slug = slugify(_as_text(candidate.get("slug")))

        return cls(
            title=title,
            content=content,
            meta_title=truncate(meta_title, META_TITLE_LIMIT),
            meta_description=truncate(meta_description, META_DESCRIPTION_LIMIT),
            meta_keywords=keywords or DEFAULT_KEYWORDS,
            slug=slug if is_valid_slug(slug) else make_slug(),
            excerpt=truncate(excerpt, EXCERPT_LIMIT),
            source=source,
        )


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float)):
        return str(value)
    return ""


def _as_keywords(value: Any) -> Tuple[str, ...]:
    if isinstance(value, str):
        items: Sequence[Any] = value.replace("，", ",").split(",")
    elif isinstance(value, (list, tuple)):
        items = value
    else:
        return ()
    return tuple(merge_unique([_as_text(v) for v in items]))


# ══════════════════════════════════════════════════════════════
#  候选校验
# ══════════════════════════════════════════════════════════════

def validate_candidate(candidate: Any, language_check: bool = True) -> Optional[str]:
    """
    校验服务商候选结果，通过返回 None，否则返回失败原因。

    - 必须是非空 dict
    - title / content 必须是非空字符串
    - language_check 开启时，title 和 content 去掉数字/标点/空白后不能全是 ASCII
    """
    if not isinstance(candidate, dict) or not candidate:
        return "没有返回 JSON 对象"
    for key in REQUIRED_FIELDS:
        value = candidate.get(key)
        if not isinstance(value, str) or not value.strip():
            return f"缺少字段 {key}"
    if language_check:
        for key in REQUIRED_FIELDS:
            if is_latin_only(candidate[key]):
                return f"{key} 不是孟加拉语"
    return None


# ══════════════════════════════════════════════════════════════
#  兜底生成
# ══════════════════════════════════════════════════════════════

_slug_lock = threading.Lock()
_last_stamp = 0


def make_slug(now: Optional[float] = None) -> str:
    """`news-<毫秒时间戳>`，同一进程内单调递增保证不重复"""
    global _last_stamp
    stamp = int((time.time() if now is None else now) * 1000)
    with _slug_lock:
        if stamp <= _last_stamp:
            stamp = _last_stamp + 1
        _last_stamp = stamp
    return f"{SLUG_PREFIX}{stamp}"


def fallback_article(raw_text: str) -> ArticleRecord:
    """规则兜底：纯函数式变换，任何输入（含空串）都返回完整 ArticleRecord"""
    clean = normalize_whitespace(raw_text if isinstance(raw_text, str) else "")
    first = clean.split(SENTENCE_END, 1)[0].strip()
    title = first or DEFAULT_TITLE
    body = clean or title

    return ArticleRecord(
        title=title,
        content=f"{body}\n\n{DISCLAIMER}",
        meta_title=truncate(title, META_TITLE_LIMIT),
        meta_description=truncate(body, META_DESCRIPTION_LIMIT),
        meta_keywords=DEFAULT_KEYWORDS,
        slug=make_slug(),
        excerpt=truncate(body, EXCERPT_LIMIT),
        source="fallback",
    )
