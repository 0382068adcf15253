"""
改写服务商适配器
—— 统一提示词 + Gemini / OpenRouter 两个实现
—— 每个适配器只负责「发请求 → 提取 JSON」，不做业务校验
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

import requests

from relay.config import Settings
from relay.llm.client import LLMClient, extract_json_block
from relay.llm.gemini import GeminiClient
from relay.utils.exceptions import LLMResponseError
from relay.utils.logger import get_logger
from relay.utils.retry import is_client_error, retry

logger = get_logger("rewrite-provider")

ProviderCandidate = Dict[str, Any]

# ── 提示词 ──

_PROMPT_TEMPLATE = """
তুমি একজন অভিজ্ঞ **বাংলা** নিউজ এডিটর।

⚠️ বাধ্যতামূলক নির্দেশনা:
- আউটপুট ১০০% বাংলায় হবে
- কোনো ইংরেজি শব্দ ব্যবহার করা যাবে না
- নিউজ স্টাইল হবে নিরপেক্ষ ও পেশাদার

কাঁচা নিউজটি নতুনভাবে রিরাইট করো:
- লেখা বড় করো
- ভাষা উন্নত করো
- plagiarism-safe
- তথ্য পরিবর্তন করা যাবে না

শুধু নিচের JSON দেবে:

{{
 "title": "",
 "content": "",
 "meta_title": "",
 "meta_description": "",
 "meta_keywords": [],
 "slug": "",
 "excerpt": ""
}}

নিউজ:
{news}
"""


def build_prompt(raw_text: str) -> str:
    """把原始新闻原样嵌入固定的改写指令"""
    return _PROMPT_TEMPLATE.format(news=raw_text)


# ══════════════════════════════════════════════════════════════
#  适配器基类
# ══════════════════════════════════════════════════════════════

class RewriteProvider(ABC):
    """改写服务商：rewrite() 返回候选 dict，没有结果时返回 None"""

    name: str = ""

    @property
    @abstractmethod
    def available(self) -> bool:
        """是否已配置（API Key 非空）"""

    @abstractmethod
    def rewrite(self, raw_text: str) -> Optional[ProviderCandidate]:
        """发送改写请求。网络错误抛 requests 异常，JSON 无法解析抛 LLMResponseError"""

    def close(self) -> None:
        pass


class GeminiProvider(RewriteProvider):
    """Google Gemini：失败时串行重试，最多 max_attempts 次"""

    name = "gemini"

    def __init__(
        self,
        client: GeminiClient,
        temperature: float = 0.2,
        max_tokens: int = 900,
        max_attempts: int = 2,
        retry_delay: float = 1.0,
    ) -> None:
        self.client = client
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.max_attempts = max(1, max_attempts)
        self.retry_delay = retry_delay

    @property
    def available(self) -> bool:
        return self.client.available

    def rewrite(self, raw_text: str) -> Optional[ProviderCandidate]:
        attempt = retry(
            max_retries=self.max_attempts - 1,
            delay=self.retry_delay,
            exceptions=(requests.RequestException, LLMResponseError),
            giveup=is_client_error,
        )(self._rewrite_once)
        return attempt(raw_text)

    def _rewrite_once(self, raw_text: str) -> Optional[ProviderCandidate]:
        text = self.client.generate(
            build_prompt(raw_text),
            temperature=self.temperature,
            max_tokens=self.max_tokens,
        )
        if text is None:
            return None
        return extract_json_block(text)

    def close(self) -> None:
        self.client.close()


class OpenRouterProvider(RewriteProvider):
    """OpenRouter（OpenAI 兼容）：重试由 LLMClient 内部处理"""

    name = "openrouter"

    def __init__(self, client: LLMClient, temperature: float = 0.2, max_tokens: int = 900) -> None:
        self.client = client
        self.temperature = temperature
        self.max_tokens = max_tokens

    @property
    def available(self) -> bool:
        return self.client.available

    def rewrite(self, raw_text: str) -> Optional[ProviderCandidate]:
        text = self.client.chat(
            build_prompt(raw_text),
            temperature=self.temperature,
            max_tokens=self.max_tokens,
        )
        if text is None:
            return None
        return extract_json_block(text)

    def close(self) -> None:
        self.client.close()


# ══════════════════════════════════════════════════════════════
#  工厂函数
# ══════════════════════════════════════════════════════════════

def build_providers(settings: Settings) -> List[RewriteProvider]:
    """按 REWRITE_PROVIDERS 的顺序创建适配器"""
    providers: List[RewriteProvider] = []
    for name in settings.rewrite_providers:
        if name == "gemini":
            providers.append(GeminiProvider(
                GeminiClient(
                    api_key=settings.gemini_api_key,
                    model=settings.gemini_model,
                    base_url=settings.gemini_base_url,
                    timeout=settings.llm_timeout,
                ),
                temperature=settings.llm_temperature,
                max_tokens=settings.llm_max_tokens,
                max_attempts=settings.gemini_max_attempts,
            ))
        elif name == "openrouter":
            providers.append(OpenRouterProvider(
                LLMClient(
                    api_key=settings.openrouter_api_key,
                    base_url=settings.openrouter_base_url,
                    model=settings.openrouter_model,
                    timeout=settings.llm_timeout,
                    max_retries=settings.openrouter_max_retries,
                    extra_headers={
                        "HTTP-Referer": settings.wp_base,
                        "X-Title": settings.openrouter_app_title,
                    },
                ),
                temperature=settings.llm_temperature,
                max_tokens=settings.llm_max_tokens,
            ))
        else:
            logger.warning("未知改写服务商，已忽略: %s", name)
    return providers
