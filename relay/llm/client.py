"""
OpenAI 兼容聊天补全客户端（OpenRouter 等）
—— Session 复用 + JSON 提取 + 自动重试
"""

from __future__ import annotations

import json
import time
from typing import Any, Dict, Optional

import requests

from relay.utils.exceptions import LLMResponseError
from relay.utils.logger import get_logger

logger = get_logger("llm-client")


class LLMClient:
    """OpenAI 兼容的聊天补全客户端"""

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://openrouter.ai/api/v1",
        model: str = "openai/gpt-4o-mini",
        timeout: int = 25,
        max_retries: int = 1,
        extra_headers: Optional[Dict[str, str]] = None,
    ) -> None:
        self.api_key = api_key.strip()
        self.base_url = base_url.rstrip("/")
        self.model = model
        self.timeout = timeout
        self.max_retries = max(0, max_retries)
        self._session = requests.Session()
        if self.api_key:
            self._session.headers.update({
                "Authorization": f"Bearer {self.api_key}",
                "Content-Type": "application/json",
            })
        if extra_headers:
            self._session.headers.update({k: v for k, v in extra_headers.items() if v})

    @property
    def available(self) -> bool:
        return bool(self.api_key)

    def close(self) -> None:
        """释放 HTTP 连接池"""
        self._session.close()

    def __enter__(self) -> "LLMClient":
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()

    # ── 核心调用 ──

    def chat(
        self,
        user_prompt: str,
        system_prompt: str = "",
        temperature: float = 0.2,
        max_tokens: Optional[int] = None,
    ) -> Optional[str]:
        """
        调用聊天补全 API，返回 assistant 回复的文本。
        没有 choices 或失败时返回 None（已自动重试）。
        """
        messages = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": user_prompt})

        payload: Dict[str, Any] = {
            "model": self.model,
            "messages": messages,
            "temperature": temperature,
        }
        if max_tokens:
            payload["max_tokens"] = max_tokens

        api_url = f"{self.base_url}/chat/completions"
        # 连接超时 5s，读取超时 = 配置的 LLM 超时
        api_timeout = (5, self.timeout)

        last_error = ""
        backoff = 1.0
        for attempt in range(1, self.max_retries + 2):
            t0 = time.monotonic()
            try:
                resp = self._session.post(api_url, json=payload, timeout=api_timeout)
                elapsed = time.monotonic() - t0
                if resp.status_code == 200:
                    data = resp.json()
                    choices = data.get("choices") or []
                    if not choices:
                        logger.warning("LLM 响应没有 choices: %s", str(data)[:200])
                        return None
                    content = (choices[0].get("message") or {}).get("content") or ""
                    if content:
                        logger.info("LLM 调用成功（%s，耗时 %.1fs）", self.model, elapsed)
                        return content
                    last_error = "响应内容为空"
                elif 400 <= resp.status_code < 500 and resp.status_code != 429:
                    logger.error("LLM 客户端错误 status=%d body=%s", resp.status_code, resp.text[:200])
                    return None  # 客户端错误不重试
                else:
                    last_error = f"status={resp.status_code}, body={resp.text[:200]}"
            except requests.exceptions.ConnectTimeout:
                last_error = f"连接超时 ({api_timeout[0]}s)"
            except requests.exceptions.ReadTimeout:
                elapsed = time.monotonic() - t0
                last_error = f"读取超时（已等待 {elapsed:.0f}s，上限 {api_timeout[1]}s）"
            except requests.exceptions.ConnectionError as exc:
                last_error = f"连接异常: {exc}"
            except ValueError as exc:
                last_error = f"响应不是合法 JSON: {exc}"

            if attempt <= self.max_retries:
                logger.warning(
                    "LLM 第 %d/%d 次失败（%.1fs 后重试）：%s",
                    attempt, self.max_retries + 1, backoff, last_error,
                )
                time.sleep(backoff)
                backoff = min(backoff * 2, 8)

        logger.error("LLM 调用失败，已达最大重试次数: %s", last_error)
        return None


# ── JSON 提取工具函数 ──

def extract_json_block(text: str) -> Dict[str, Any]:
    """
    从 LLM 输出中提取 JSON 对象（兼容 markdown 代码块、前后多余文字等）。

    取第一个 `{` 到最后一个 `}` 之间的内容整体解析，不做修补。
    找不到或解析失败时抛出 LLMResponseError。
    """
    if not text:
        raise LLMResponseError("LLM 输出为空")

    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end == -1 or end < start:
        raise LLMResponseError("LLM 输出中没有 JSON 对象", detail=text[:200])

    candidate = text[start : end + 1]
    try:
        parsed = json.loads(candidate)
    except json.JSONDecodeError as exc:
        raise LLMResponseError(f"JSON 解析失败: {exc}", detail=candidate[:200]) from exc
    if not isinstance(parsed, dict):
        raise LLMResponseError("JSON 顶层不是对象", detail=candidate[:200])
    return parsed
