"""
Telegram Update 解析 —— 只取 chat / 文本 / 发送者
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class InboundMessage:
    chat_id: str
    text: str
    sender_id: str = ""
    sender_name: str = ""
    message_id: Optional[int] = None


def parse_update(payload: Any) -> Optional[InboundMessage]:
    """解析 webhook 推送；没有 message/channel_post 或缺 chat.id 时返回 None"""
    if not isinstance(payload, dict):
        return None
    message = payload.get("message") or payload.get("channel_post")
    if not isinstance(message, dict):
        return None

    chat = message.get("chat") or {}
    chat_id = chat.get("id") if isinstance(chat, dict) else None
    if chat_id is None:
        return None

    text = message.get("text") or message.get("caption") or ""
    sender: Dict[str, Any] = message.get("from") or {}
    name = " ".join(
        part for part in (sender.get("first_name"), sender.get("last_name")) if part
    )
    return InboundMessage(
        chat_id=str(chat_id),
        text=text if isinstance(text, str) else "",
        sender_id=str(sender["id"]) if sender.get("id") is not None else "",
        sender_name=name,
        message_id=message.get("message_id"),
    )
