"""
统一配置加载器 —— 从 .env 读取配置，支持环境变量覆盖
加载优先级：系统环境变量 > 项目根目录 .env > 代码默认值
进程启动时构建一次 Settings，显式传入各组件，业务代码不直接读环境变量
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Tuple

from dotenv import load_dotenv

from relay.utils.helpers import split_csv

_PROJECT_ROOT = Path(__file__).resolve().parent.parent
load_dotenv(_PROJECT_ROOT / ".env")

_KNOWN_PROVIDERS = ("gemini", "openrouter")
_DUPLICATE_POLICIES = ("search", "normalized", "off")
_SEO_PLUGINS = ("rank_math", "yoast")


def _get_env(key: str, default: str = "") -> str:
    """安全读取环境变量，去除首尾空白"""
    return os.getenv(key, default).strip()


def _get_bool(key: str, default: str) -> bool:
    return _get_env(key, default).lower() in ("1", "true", "yes", "on")


def _get_int(key: str, default: int) -> int:
    return int(_get_env(key, str(default)) or default)


def _get_float(key: str, default: float) -> float:
    return float(_get_env(key, str(default)) or default)


def parse_mapping(value: str) -> Dict[str, str]:
    """解析 `label=slug,label2=slug2` 形式的映射"""
    mapping: Dict[str, str] = {}
    for item in split_csv(value):
        if "=" not in item:
            continue
        key, _, val = item.partition("=")
        if key.strip() and val.strip():
            mapping[key.strip()] = val.strip()
    return mapping


@dataclass(frozen=True)
class Settings:
    """全局统一配置（不可变）"""

    # Telegram
    telegram_bot_token: str
    telegram_api_base: str
    allowed_chat_id: str
    trusted_user_ids: Tuple[str, ...]
    webhook_secret: str
    webhook_path: str

    # Gemini
    gemini_api_key: str
    gemini_model: str
    gemini_base_url: str
    gemini_max_attempts: int

    # OpenRouter
    openrouter_api_key: str
    openrouter_model: str
    openrouter_base_url: str
    openrouter_max_retries: int
    openrouter_app_title: str

    # 改写
    rewrite_providers: Tuple[str, ...]
    llm_temperature: float
    llm_max_tokens: int
    llm_timeout: int
    language_check: bool

    # WordPress
    wp_base: str
    wp_user: str
    wp_app_password: str
    default_category_id: int
    category_slugs: Tuple[Tuple[str, str], ...]
    duplicate_policy: str
    seo_plugin: str

    # 服务
    request_timeout: int
    host: str
    port: int

    def validate(self, require_telegram: bool = True, require_wp: bool = True) -> List[str]:
        """校验必要配置，返回错误信息列表（空列表表示全部通过）"""
        errors = []
        if require_telegram:
            if not self.telegram_bot_token:
                errors.append("TELEGRAM_BOT_TOKEN 未配置")
            if not self.allowed_chat_id:
                errors.append("ALLOWED_CHAT_ID 未配置")
        if require_wp:
            if not self.wp_base:
                errors.append("WP_BASE 未配置")
            if not self.wp_user:
                errors.append("WP_USER 未配置")
            if not self.wp_app_password:
                errors.append("WP_APP_PASSWORD 未配置")
        for name in self.rewrite_providers:
            if name not in _KNOWN_PROVIDERS:
                errors.append(f"REWRITE_PROVIDERS 含未知服务商: {name}")
        if self.duplicate_policy not in _DUPLICATE_POLICIES:
            errors.append(f"DUPLICATE_POLICY 不合法: {self.duplicate_policy}")
        if self.seo_plugin not in _SEO_PLUGINS:
            errors.append(f"SEO_PLUGIN 不合法: {self.seo_plugin}")
        return errors

    def check_or_exit(self, **kwargs) -> None:
        """校验配置，失败则抛出 ConfigError"""
        from relay.utils.exceptions import ConfigError

        errors = self.validate(**kwargs)
        if errors:
            msg = "配置检查未通过:\n" + "\n".join(f"  - {e}" for e in errors)
            raise ConfigError(msg)

    @property
    def category_slug_map(self) -> Dict[str, str]:
        return dict(self.category_slugs)


def get_settings() -> Settings:
    """读取配置，环境变量优先。"""
    return Settings(
        # Telegram
        telegram_bot_token=_get_env("TELEGRAM_BOT_TOKEN"),
        telegram_api_base=_get_env("TELEGRAM_API_BASE", "https://api.telegram.org").rstrip("/"),
        allowed_chat_id=_get_env("ALLOWED_CHAT_ID"),
        trusted_user_ids=tuple(split_csv(_get_env("TRUSTED_USER_IDS"))),
        webhook_secret=_get_env("TELEGRAM_WEBHOOK_SECRET"),
        webhook_path="/" + _get_env("WEBHOOK_PATH", "/api/telegram").strip("/"),
        # Gemini
        gemini_api_key=_get_env("GEMINI_API_KEY"),
        gemini_model=_get_env("GEMINI_MODEL", "gemini-1.5-flash"),
        gemini_base_url=_get_env(
            "GEMINI_BASE_URL", "https://generativelanguage.googleapis.com/v1beta"
        ).rstrip("/"),
        gemini_max_attempts=max(1, _get_int("GEMINI_MAX_ATTEMPTS", 2)),
        # OpenRouter
        openrouter_api_key=_get_env("OPENROUTER_API_KEY"),
        openrouter_model=_get_env("OPENROUTER_MODEL", "openai/gpt-4o-mini"),
        openrouter_base_url=_get_env("OPENROUTER_BASE_URL", "https://openrouter.ai/api/v1").rstrip("/"),
        openrouter_max_retries=max(0, _get_int("OPENROUTER_MAX_RETRIES", 1)),
        openrouter_app_title=_get_env("OPENROUTER_APP_TITLE", "Telegram News Bot"),
        # 改写
        rewrite_providers=tuple(p.lower() for p in split_csv(_get_env("REWRITE_PROVIDERS", "gemini,openrouter"))),
        llm_temperature=_get_float("LLM_TEMPERATURE", 0.2),
        llm_max_tokens=_get_int("LLM_MAX_TOKENS", 900),
        llm_timeout=_get_int("LLM_TIMEOUT", 25),
        language_check=_get_bool("LANGUAGE_CHECK", "true"),
        # WordPress
        wp_base=_get_env("WP_BASE").rstrip("/"),
        wp_user=_get_env("WP_USER"),
        wp_app_password=_get_env("WP_APP_PASSWORD"),
        default_category_id=_get_int("DEFAULT_CATEGORY_ID", 1),
        category_slugs=tuple(parse_mapping(_get_env("CATEGORY_SLUGS")).items()),
        duplicate_policy=_get_env("DUPLICATE_POLICY", "search").lower(),
        seo_plugin=_get_env("SEO_PLUGIN", "rank_math").lower(),
        # 服务
        request_timeout=_get_int("REQUEST_TIMEOUT", 10),
        host=_get_env("HOST", "0.0.0.0"),
        port=_get_int("PORT", 8000),
    )
