"""
统一异常体系 —— WordPress / 内容生成 / Telegram / 配置
"""


class AppBaseError(Exception):
    """项目根异常"""

    def __init__(self, message: str = "", detail: str = ""):
        self.detail = detail
        super().__init__(message)


# ── WordPress 相关 ──

class WordPressError(AppBaseError):
    """WordPress API 调用异常"""


class WPAuthError(WordPressError):
    """WordPress 鉴权失败"""


class WPNotFoundError(WordPressError):
    """WordPress 资源不存在"""


# ── 内容生成 ──

class ContentGenError(AppBaseError):
    """内容生成异常"""


class LLMResponseError(ContentGenError):
    """LLM 返回了无法解析的内容"""


# ── Telegram ──

class TelegramError(AppBaseError):
    """Telegram Bot API 调用异常"""


# ── 配置 ──

class ConfigError(AppBaseError):
    """配置缺失或不合法"""
