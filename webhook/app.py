"""
FastAPI 应用 —— Telegram webhook 入口 + 健康检查
无论内部结果如何，webhook 永远返回 200，避免 Telegram 重复投递
"""

from __future__ import annotations

from typing import Optional

from fastapi import FastAPI, Request
from starlette.concurrency import run_in_threadpool

from relay.config import Settings, get_settings
from relay.telegram.client import TelegramClient
from relay.utils.logger import get_logger
from webhook.handler import WebhookHandler
from webhook.pipeline import NewsRelay

logger = get_logger("webhook-app")

SECRET_HEADER = "X-Telegram-Bot-Api-Secret-Token"


def build_handler(settings: Settings) -> WebhookHandler:
    return WebhookHandler(
        relay=NewsRelay.from_settings(settings),
        telegram=TelegramClient(
            token=settings.telegram_bot_token,
            api_base=settings.telegram_api_base,
            timeout=settings.request_timeout,
        ),
        allowed_chat_id=settings.allowed_chat_id,
    )


def create_app(settings: Optional[Settings] = None, handler: Optional[WebhookHandler] = None) -> FastAPI:
    settings = settings or get_settings()
    handler = handler or build_handler(settings)

    app = FastAPI(
        title="News Relay",
        description="Telegram news → SEO rewrite → WordPress",
        version="1.0.0",
    )
    app.state.settings = settings
    app.state.handler = handler

    @app.on_event("shutdown")
    def _shutdown() -> None:
        handler.close()

    @app.get("/healthz")
    def healthz():
        return {"ok": True, "service": "news-relay"}

    @app.post(settings.webhook_path)
    async def telegram_webhook(request: Request):
        if settings.webhook_secret and request.headers.get(SECRET_HEADER) != settings.webhook_secret:
            logger.warning("secret token 不匹配，忽略请求")
            return {"ok": True}

        try:
            payload = await request.json()
        except ValueError:
            logger.warning("请求体不是合法 JSON，忽略")
            return {"ok": True}

        try:
            result = await run_in_threadpool(handler.handle, payload)
            logger.debug("webhook 处理结果: %s", result.value)
        except Exception as exc:
            logger.exception("webhook 处理异常: %s", exc)
        return {"ok": True}

    return app
