"""
通用工具函数 —— 空白归一 / 截断 / slug / 列表处理
"""

from __future__ import annotations

import re
import string
import unicodedata
from typing import Iterable, List, Sequence

_ASCII_PUNCT = re.escape(string.punctuation)
_SLUG_RE = re.compile(r"^[a-z0-9]+(-[a-z0-9]+)*$")


def normalize_whitespace(text: str) -> str:
    """把连续空白（含换行）压成单个空格"""
    return re.sub(r"\s+", " ", text or "").strip()


def truncate(text: str, limit: int) -> str:
    """按字符数截断（不追加省略号）"""
    return (text or "")[:limit]


def slugify(text: str) -> str:
    """转为纯英文短横线 slug；无法转换时返回空串"""
    normalized = (text or "").strip().lower()
    normalized = re.sub(r"[^a-z0-9]+", "-", normalized)
    normalized = re.sub(r"-{2,}", "-", normalized).strip("-")
    return normalized[:90].strip("-")


def is_valid_slug(value: str) -> bool:
    return bool(value) and bool(_SLUG_RE.match(value))


def split_csv(value: str) -> List[str]:
    """按中英文逗号分割字符串"""
    if not value:
        return []
    parts = re.split(r"[,，]", value)
    return [p.strip() for p in parts if p.strip()]


def merge_unique(items: Sequence[str]) -> List[str]:
    """去重合并字符串列表，保持顺序"""
    result: List[str] = []
    for item in items:
        value = (item or "").strip()
        if not value:
            continue
        if value not in result:
            result.append(value)
    return result


def strip_symbols(text: str) -> str:
    """去掉数字、空白与标点（Unicode P* 类，含孟加拉语 ।）"""
    return "".join(
        ch for ch in (text or "")
        if not (ch.isspace() or ch.isdigit() or unicodedata.category(ch).startswith("P"))
    )


def is_latin_only(text: str) -> bool:
    """去掉数字/标点/空白后，剩余字符是否全部为 ASCII"""
    return all(ord(ch) < 128 for ch in strip_symbols(text))


def normalize_title(text: str) -> str:
    """标题查重用的归一化：小写 + 去标点 + 空白归一"""
    lowered = (text or "").casefold()
    lowered = re.sub(r"[" + _ASCII_PUNCT + r"।‘’“”]", " ", lowered)
    return normalize_whitespace(lowered)


def any_in(text: str, words: Iterable[str]) -> bool:
    """任一关键词是 text 的字面子串（区分大小写）"""
    return any(word and word in text for word in words)
