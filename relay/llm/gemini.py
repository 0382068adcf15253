"""
Google Gemini generateContent 客户端
—— API Key 走 x-goog-api-key 请求头，单次调用不重试（重试由调用方决定）
"""

from __future__ import annotations

import time
from typing import Any, Dict, Optional

import requests

from relay.utils.logger import get_logger

logger = get_logger("gemini")


class GeminiClient:
    """Gemini REST 客户端"""

    def __init__(
        self,
        api_key: str,
        model: str = "gemini-1.5-flash",
        base_url: str = "https://generativelanguage.googleapis.com/v1beta",
        timeout: int = 25,
    ) -> None:
        self.api_key = api_key.strip()
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._session = requests.Session()
        # 密钥只走请求头，URL 中不得出现
        self._session.headers.update({
            "Content-Type": "application/json",
            "x-goog-api-key": self.api_key,
        })

    @property
    def available(self) -> bool:
        return bool(self.api_key)

    @property
    def endpoint(self) -> str:
        return f"{self.base_url}/models/{self.model}:generateContent"

    def close(self) -> None:
        self._session.close()

    def __enter__(self) -> "GeminiClient":
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()

    def generate(self, prompt: str, temperature: float = 0.2, max_tokens: int = 900) -> Optional[str]:
        """
        调用 generateContent，返回第一个候选的文本。
        没有候选时返回 None；网络错误和非 2xx 抛出 requests 异常。
        """
        payload: Dict[str, Any] = {
            "contents": [{"parts": [{"text": prompt}]}],
            "generationConfig": {"temperature": temperature, "maxOutputTokens": max_tokens},
        }
        t0 = time.monotonic()
        resp = self._session.post(
            self.endpoint,
            json=payload,
            timeout=(5, self.timeout),
        )
        resp.raise_for_status()
        data = resp.json()

        candidates = data.get("candidates") or []
        if not candidates:
            logger.warning("Gemini 没有返回候选: %s", str(data.get("promptFeedback", ""))[:200])
            return None
        parts = (candidates[0].get("content") or {}).get("parts") or []
        text = "".join(p.get("text", "") for p in parts if isinstance(p, dict))
        logger.info("Gemini 调用成功（%s，耗时 %.1fs）", self.model, time.monotonic() - t0)
        return text or None
