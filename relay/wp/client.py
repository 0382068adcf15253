"""
WordPress REST API 客户端
—— 分类查询 / 标题搜索 / 创建文章
—— Session 复用 + Basic 鉴权 + 结构化日志 + 上下文管理器
"""

from __future__ import annotations

import html as html_lib
import re
import time
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

import requests
from requests.auth import HTTPBasicAuth

from relay.utils.exceptions import WordPressError, WPAuthError, WPNotFoundError
from relay.utils.logger import get_logger

logger = get_logger("wordpress")

_USER_AGENT = "NewsRelay/1.0 (Telegram to WordPress)"


# ────────── 数据模型 ──────────

@dataclass
class WPPost:
    """WordPress 文章简化模型"""
    id: int
    title: str
    slug: str
    link: str
    status: str


# ────────── 工具函数 ──────────

def _strip_html(raw_html: str) -> str:
    """去除 HTML 标签 & 解码 HTML 实体，保留纯文本"""
    text = re.sub(r"<[^>]+>", "", raw_html or "")
    text = html_lib.unescape(text)
    return re.sub(r"\s+", " ", text).strip()


# ────────── API 客户端 ──────────

class WordPressClient:
    """封装 WordPress REST API 的调用"""

    def __init__(
        self,
        wp_base: str,
        wp_user: str = "",
        wp_app_password: str = "",
        timeout: int = 10,
    ) -> None:
        self.wp_base = wp_base.rstrip("/")
        self.wp_api = f"{self.wp_base}/wp-json/wp/v2"
        self.timeout = timeout

        self.session = requests.Session()
        self.session.headers.update({
            "User-Agent": _USER_AGENT,
            "Accept": "application/json",
        })
        if wp_user and wp_app_password:
            self.session.auth = HTTPBasicAuth(wp_user, wp_app_password)

    # ── 上下文管理器 ──

    def __enter__(self) -> "WordPressClient":
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()

    def close(self) -> None:
        """关闭 HTTP 连接池"""
        self.session.close()

    # ── 内部请求（带重试） ──

    def _request_json(
        self,
        method: str,
        url: str,
        *,
        expected_status: Tuple[int, ...],
        max_retries: int = 2,
        **kwargs,
    ) -> Any:
        last_error = ""
        backoff = 1.0
        for attempt in range(1, max_retries + 1):
            try:
                resp = self.session.request(method=method, url=url, timeout=self.timeout, **kwargs)
                if resp.status_code in expected_status:
                    return resp.json() if resp.text.strip() else {}
                last_error = f"status={resp.status_code}, body={resp.text[:200]}"
                if resp.status_code in (401, 403):
                    raise WPAuthError(f"WordPress 鉴权失败: {method.upper()} {url}", detail=last_error)
                if resp.status_code == 404:
                    raise WPNotFoundError(f"WordPress 资源不存在: {method.upper()} {url}", detail=last_error)
                # 4xx 客户端错误不重试
                if 400 <= resp.status_code < 500:
                    break
            except requests.exceptions.ConnectionError as exc:
                last_error = f"ConnectionError: {exc}"
            except requests.exceptions.Timeout as exc:
                last_error = f"Timeout: {exc}"
            except ValueError as exc:
                last_error = f"响应不是合法 JSON: {exc}"

            if attempt < max_retries:
                logger.warning(
                    "请求重试 %s %s，第 %d/%d 次失败（%.1fs 后重试）：%s",
                    method.upper(), url, attempt, max_retries, backoff, last_error,
                )
                time.sleep(backoff)
                backoff = min(backoff * 2, 8)

        raise WordPressError(f"请求失败: {method.upper()} {url} => {last_error}", detail=last_error)

    # ── 分类 ──

    def find_term_id(self, endpoint: str, search: str = "", slug: str = "") -> Optional[int]:
        """按 slug 或搜索词查询分类/标签，返回第一个匹配的 ID；无结果返回 None"""
        params: Dict[str, Any] = {"per_page": 1, "_fields": "id,name,slug"}
        if slug:
            params["slug"] = slug
        else:
            params["search"] = search

        items = self._request_json(
            "get",
            f"{self.wp_api}/{endpoint}",
            params=params,
            expected_status=(200,),
        )
        if isinstance(items, list) and items:
            return items[0].get("id")
        return None

    # ── 标题搜索 ──

    def search_posts(self, title: str, status: str = "any", per_page: int = 5) -> List[WPPost]:
        """按标题搜索已有文章（包含草稿）"""
        items = self._request_json(
            "get",
            f"{self.wp_api}/posts",
            params={
                "search": title,
                "search_columns": "post_title",
                "status": status,
                "per_page": per_page,
                "_fields": "id,slug,link,title,status",
            },
            expected_status=(200,),
        )
        if not isinstance(items, list):
            return []
        return [self._parse_post(item) for item in items if isinstance(item, dict)]

    # ── 创建文章 ──

    def create_post(self, payload: Dict) -> Dict:
        """创建 WordPress 文章（单次请求，不重试）"""
        return self._request_json(
            "post",
            f"{self.wp_api}/posts",
            json=payload,
            expected_status=(200, 201),
            max_retries=1,
        )

    # ── 解析响应 ──

    @staticmethod
    def _parse_post(data: dict) -> WPPost:
        """将 WP JSON 响应转为 WPPost 数据模型"""
        title = data.get("title", "")
        if isinstance(title, dict):
            title = title.get("rendered", "")
        return WPPost(
            id=data.get("id", 0),
            title=_strip_html(title),
            slug=data.get("slug", ""),
            link=data.get("link", ""),
            status=data.get("status", ""),
        )
