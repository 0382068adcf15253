"""
Telegram Bot API 客户端 —— sendMessage / setWebhook
"""

from __future__ import annotations

from typing import Any, Dict, Union

import requests

from relay.utils.exceptions import TelegramError
from relay.utils.logger import get_logger

logger = get_logger("telegram")


class TelegramClient:
    """最小化的 Bot API 封装"""

    def __init__(self, token: str, api_base: str = "https://api.telegram.org", timeout: int = 10) -> None:
        self.token = token.strip()
        self.api = f"{api_base.rstrip('/')}/bot{self.token}"
        self.timeout = timeout
        self.session = requests.Session()

    def __enter__(self) -> "TelegramClient":
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()

    def close(self) -> None:
        self.session.close()

    def _call(self, method: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        try:
            resp = self.session.post(f"{self.api}/{method}", json=payload, timeout=self.timeout)
            data = resp.json()
        except (requests.RequestException, ValueError) as exc:
            raise TelegramError(f"Telegram {method} 调用失败: {exc}") from exc
        if not data.get("ok"):
            raise TelegramError(
                f"Telegram {method} 返回错误: {data.get('description', resp.status_code)}",
                detail=str(data)[:200],
            )
        return data

    def send_message(self, chat_id: Union[int, str], text: str) -> bool:
        """发送纯文本消息。失败只记日志不抛出（回执是尽力而为的）"""
        try:
            self._call("sendMessage", {"chat_id": chat_id, "text": text})
            return True
        except TelegramError as exc:
            logger.warning("回执发送失败 chat_id=%s: %s", chat_id, exc)
            return False

    def set_webhook(self, url: str, secret_token: str = "") -> Dict[str, Any]:
        """注册 webhook 地址，只接收 message / channel_post"""
        payload: Dict[str, Any] = {
            "url": url,
            "allowed_updates": ["message", "channel_post"],
        }
        if secret_token:
            payload["secret_token"] = secret_token
        data = self._call("setWebhook", payload)
        logger.info("Webhook 已注册: %s", url)
        return data
