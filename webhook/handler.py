"""
Webhook 请求处理
—— 访问控制 -> 取文本 -> 流水线 -> 回执（每个被处理的请求恰好一条回执）
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from relay.telegram.client import TelegramClient
from relay.telegram.update import parse_update
from relay.utils.logger import get_logger
from relay.wp.publisher import Visibility
from webhook.pipeline import NewsRelay

logger = get_logger("webhook")

# ── 回执文案 ──

MSG_MISSING_TEXT = "❌ নিউজ লেখা পাঠান"
MSG_DRAFTED = "✅ নিউজ সফলভাবে WordPress-এ Draft হয়েছে"
MSG_PUBLISHED = "✅ নিউজ সফলভাবে WordPress-এ প্রকাশিত হয়েছে"
MSG_DUPLICATE = "⚠️ একই শিরোনামের নিউজ আগে থেকেই আছে, পোস্ট করা হয়নি"
MSG_ERROR = "❌ ERROR: {error}"


class HandleResult(str, Enum):
    IGNORED = "ignored"
    REJECTED = "rejected"
    DRAFTED = "drafted"
    PUBLISHED = "published"
    SKIPPED = "skipped"
    FAILED = "failed"


class WebhookHandler:
    """把一次 Telegram 推送转换为一次发布尝试"""

    def __init__(self, relay: NewsRelay, telegram: TelegramClient, allowed_chat_id: str) -> None:
        self.relay = relay
        self.telegram = telegram
        self.allowed_chat_id = str(allowed_chat_id).strip()

    def close(self) -> None:
        self.relay.close()
        self.telegram.close()

    def handle(self, payload: Any) -> HandleResult:
        message = parse_update(payload)
        if message is None:
            return HandleResult.IGNORED

        if not self.allowed_chat_id or message.chat_id != self.allowed_chat_id:
            logger.debug("忽略未授权的 chat_id=%s", message.chat_id)
            return HandleResult.IGNORED

        if not message.text.strip():
            self.telegram.send_message(message.chat_id, MSG_MISSING_TEXT)
            return HandleResult.REJECTED

        logger.info(
            "收到新闻 chat_id=%s from=%s(%s) 长度=%d",
            message.chat_id, message.sender_name, message.sender_id, len(message.text),
        )
        try:
            outcome = self.relay.process(message.text, sender_id=message.sender_id)
        except Exception as exc:
            logger.exception("处理失败: %s", exc)
            self.telegram.send_message(message.chat_id, MSG_ERROR.format(error=exc))
            return HandleResult.FAILED

        if outcome.skipped:
            self.telegram.send_message(message.chat_id, MSG_DUPLICATE)
            return HandleResult.SKIPPED
        if outcome.visibility is Visibility.PUBLISHED:
            self.telegram.send_message(message.chat_id, MSG_PUBLISHED)
            return HandleResult.PUBLISHED
        self.telegram.send_message(message.chat_id, MSG_DRAFTED)
        return HandleResult.DRAFTED
