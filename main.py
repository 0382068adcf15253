#!/usr/bin/env python3
"""
Telegram 新闻 → WordPress 自动发布 —— 统一 CLI 入口

用法:
    python main.py serve                               # 启动 webhook 服务
    python main.py serve --port 8080
    python main.py rewrite --text "..."                # 只做 SEO 改写，输出 JSON
    python main.py rewrite --file news.txt
    python main.py classify --text "..."               # 只做分类
    python main.py publish --file news.txt             # 完整流程（不经过 Telegram）
    python main.py publish --file news.txt --dry-run   # 只输出将要提交的请求体
    python main.py set-webhook --url https://example.com/api/telegram
    python main.py check                               # 检查配置
"""

from __future__ import annotations

import argparse
import json
import sys
import time
from pathlib import Path

from relay.config import get_settings
from relay.llm.providers import build_providers
from relay.llm.seo import SEOGenerator
from relay.telegram.client import TelegramClient
from relay.utils.exceptions import AppBaseError, ConfigError
from relay.utils.logger import attach_uvicorn, get_logger
from relay.wp.category import classify
from webhook.pipeline import NewsRelay

logger = get_logger("main")


def _read_text(args) -> str:
    if getattr(args, "file", ""):
        return Path(args.file).read_text(encoding="utf-8")
    return args.text or ""


def _print_json(data) -> None:
    print(json.dumps(data, ensure_ascii=False, indent=2))


# ══════════════════════════════════════════════════════════════
#  子命令
# ══════════════════════════════════════════════════════════════

def cmd_serve(args):
    """启动 webhook 服务"""
    import uvicorn

    from webhook.app import create_app

    settings = get_settings()
    settings.check_or_exit()
    attach_uvicorn()
    app = create_app(settings)
    logger.info("webhook 服务启动 %s:%d%s", args.host, args.port, settings.webhook_path)
    uvicorn.run(app, host=args.host, port=args.port)


def cmd_rewrite(args):
    """只做 SEO 改写"""
    settings = get_settings()
    t_start = time.monotonic()
    seo = SEOGenerator(build_providers(settings), language_check=settings.language_check)
    try:
        article = seo.generate(_read_text(args))
    finally:
        seo.close()
    logger.info("改写完成（%.1fs，来源: %s）", time.monotonic() - t_start, article.source)
    _print_json(article.to_dict())


def cmd_classify(args):
    """只做分类"""
    print(classify(_read_text(args)))


def cmd_publish(args):
    """完整流程：改写 -> 分类 -> 查重 -> 发布"""
    settings = get_settings()
    settings.check_or_exit(require_telegram=False)
    text = _read_text(args)
    if not text.strip():
        raise ConfigError("新闻内容为空：请提供 --text 或 --file")

    with NewsRelay.from_settings(settings) as relay:
        if args.dry_run:
            _print_json(relay.preview(text, sender_id=args.sender))
            return
        outcome = relay.process(text, sender_id=args.sender)

    sep = "=" * 60
    lines = [f"\n{sep}", "  WordPress 发布结果", sep]
    lines.append(f"  状态:       {outcome.state}")
    lines.append(f"  可见性:     {outcome.visibility.value}")
    lines.append(f"  标题:       {outcome.title}")
    lines.append(f"  分类:       {outcome.category}")
    lines.append(f"  文章ID:     {outcome.post_id or '-'}")
    lines.append(f"  文章链接:   {outcome.link or '-'}")
    lines.append(f"  内容来源:   {outcome.source}")
    lines.append(sep)
    logger.info("\n".join(lines))


def cmd_set_webhook(args):
    """向 Telegram 注册 webhook"""
    settings = get_settings()
    if not settings.telegram_bot_token:
        raise ConfigError("TELEGRAM_BOT_TOKEN 未配置")
    with TelegramClient(settings.telegram_bot_token, settings.telegram_api_base, settings.request_timeout) as tg:
        _print_json(tg.set_webhook(args.url, secret_token=settings.webhook_secret))


def cmd_check(args):
    """检查配置"""
    settings = get_settings()
    settings.check_or_exit()
    available = [p.name for p in build_providers(settings) if p.available]
    logger.info("配置检查通过，可用改写服务商: %s", ", ".join(available) or "无（将使用规则兜底）")


# ══════════════════════════════════════════════════════════════
#  参数解析
# ══════════════════════════════════════════════════════════════

def _add_text_source(parser: argparse.ArgumentParser) -> None:
    group = parser.add_mutually_exclusive_group(required=True)
    group.add_argument("--text", default="", help="新闻原文")
    group.add_argument("--file", default="", help="新闻原文文件（UTF-8）")


def build_parser() -> argparse.ArgumentParser:
    settings = get_settings()
    parser = argparse.ArgumentParser(
        description="Telegram 新闻 → SEO 改写 → WordPress 发布",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    subparsers = parser.add_subparsers(dest="command", help="可用命令")

    p_serve = subparsers.add_parser("serve", help="启动 webhook 服务")
    p_serve.add_argument("--host", default=settings.host)
    p_serve.add_argument("--port", type=int, default=settings.port)
    p_serve.set_defaults(func=cmd_serve)

    p_rewrite = subparsers.add_parser("rewrite", help="只做 SEO 改写并输出 JSON")
    _add_text_source(p_rewrite)
    p_rewrite.set_defaults(func=cmd_rewrite)

    p_classify = subparsers.add_parser("classify", help="输出新闻分类")
    _add_text_source(p_classify)
    p_classify.set_defaults(func=cmd_classify)

    p_publish = subparsers.add_parser("publish", help="完整流程发布到 WordPress")
    _add_text_source(p_publish)
    p_publish.add_argument("--sender", default="", help="提交者 ID（在 TRUSTED_USER_IDS 中则直接发布）")
    p_publish.add_argument("--dry-run", action="store_true", help="只输出请求体，不查重不发布")
    p_publish.set_defaults(func=cmd_publish)

    p_hook = subparsers.add_parser("set-webhook", help="注册 Telegram webhook")
    p_hook.add_argument("--url", required=True, help="公网可访问的 webhook 地址")
    p_hook.set_defaults(func=cmd_set_webhook)

    p_check = subparsers.add_parser("check", help="检查配置")
    p_check.set_defaults(func=cmd_check)

    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        sys.exit(1)

    args.func(args)


def run(argv=None):
    """命令行入口：统一处理异常并给出退出码"""
    try:
        main(argv)
    except ConfigError as e:
        print(f"\n  配置错误: {e}", file=sys.stderr)
        print("请检查 .env 文件", file=sys.stderr)
        sys.exit(1)
    except AppBaseError as e:
        logger.error("运行错误: %s", e, exc_info=True)
        print(f"\n  错误: {e}", file=sys.stderr)
        sys.exit(1)
    except KeyboardInterrupt:
        print("\n\n已中断。")
        sys.exit(130)
    except Exception as e:
        logger.error("未预期错误: %s", e, exc_info=True)
        print(f"\n  未预期错误: {e}", file=sys.stderr)
        print("详情请查看 logs/run.log", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    run()
