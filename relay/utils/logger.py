"""
统一日志工具 —— 彩色控制台 + 文件轮转双输出
所有模块的 logger 都挂在 `news_relay` 根 logger 之下，处理器只安装一次；
uvicorn 的访问日志也接到同一个文件里。

环境变量:
    LOG_DIR    日志目录（默认项目根目录 logs/）
    LOG_LEVEL  控制台级别（默认 INFO，文件始终记录 DEBUG）
"""

import copy
import logging
import os
import sys
import threading
from logging.handlers import RotatingFileHandler
from pathlib import Path

ROOT_LOGGER = "news_relay"
LOG_FILE = "run.log"

_FORMAT = "[%(asctime)s] %(levelname)s %(name)s - %(message)s"
_DATEFMT = "%Y-%m-%d %H:%M:%S"

_COLORS = {
    "DEBUG":    "\033[36m",
    "INFO":     "\033[32m",
    "WARNING":  "\033[33m",
    "ERROR":    "\033[31m",
    "CRITICAL": "\033[1;31m",
}
_RESET = "\033[0m"

_setup_lock = threading.Lock()
_configured = False


class ColorFormatter(logging.Formatter):
    """终端彩色日志（只改副本，文件里不会出现转义码）"""

    def __init__(self, fmt: str, datefmt: str, use_color: bool = True) -> None:
        super().__init__(fmt, datefmt=datefmt)
        self.use_color = use_color

    def format(self, record: logging.LogRecord) -> str:
        if not self.use_color:
            return super().format(record)
        record = copy.copy(record)
        color = _COLORS.get(record.levelname, "")
        record.levelname = f"{color}{record.levelname:<7}{_RESET}"
        return super().format(record)


def log_dir() -> Path:
    configured = os.getenv("LOG_DIR", "").strip()
    if configured:
        return Path(configured)
    return Path(__file__).resolve().parent.parent.parent / "logs"


def setup_logging(level: str = "") -> logging.Logger:
    """在根 logger 上安装控制台和文件处理器，重复调用无副作用"""
    global _configured
    root = logging.getLogger(ROOT_LOGGER)
    with _setup_lock:
        if _configured:
            return root

        root.setLevel(logging.DEBUG)
        root.propagate = False

        console_level = (level or os.getenv("LOG_LEVEL", "INFO")).strip().upper()
        sh = logging.StreamHandler(sys.stdout)
        sh.setLevel(getattr(logging, console_level, logging.INFO))
        sh.setFormatter(ColorFormatter(_FORMAT, _DATEFMT, use_color=sys.stdout.isatty()))
        root.addHandler(sh)

        # 单文件 5MB，保留 3 份
        directory = log_dir()
        directory.mkdir(parents=True, exist_ok=True)
        fh = RotatingFileHandler(
            directory / LOG_FILE,
            maxBytes=5 * 1024 * 1024,
            backupCount=3,
            encoding="utf-8",
        )
        fh.setLevel(logging.DEBUG)
        fh.setFormatter(logging.Formatter(_FORMAT, datefmt=_DATEFMT))
        root.addHandler(fh)

        _configured = True
    return root


def attach_uvicorn() -> None:
    """把 uvicorn 的日志也写进轮转文件"""
    root = setup_logging()
    file_handlers = [h for h in root.handlers if isinstance(h, RotatingFileHandler)]
    for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        target = logging.getLogger(name)
        for handler in file_handlers:
            if handler not in target.handlers:
                target.addHandler(handler)


def get_logger(name: str = "") -> logging.Logger:
    """获取 `news_relay.<name>` 子 logger"""
    setup_logging()
    if not name:
        return logging.getLogger(ROOT_LOGGER)
    return logging.getLogger(f"{ROOT_LOGGER}.{name}")
