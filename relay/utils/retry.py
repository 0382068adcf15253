"""
通用重试装饰器 —— 指数退避 + 异常过滤 + 放弃条件
"""

import functools
import time
from typing import Callable, Optional, Tuple, Type

import requests

from relay.utils.logger import get_logger

logger = get_logger("retry")


def is_client_error(exc: BaseException) -> bool:
    """HTTP 4xx（429 除外）重试也不会成功"""
    if not isinstance(exc, requests.HTTPError) or exc.response is None:
        return False
    status = exc.response.status_code
    return 400 <= status < 500 and status != 429


def retry(
    max_retries: int = 3,
    delay: float = 1.0,
    backoff: float = 2.0,
    max_delay: float = 30.0,
    exceptions: Tuple[Type[BaseException], ...] = (Exception,),
    giveup: Optional[Callable[[BaseException], bool]] = None,
):
    """
    串行重试装饰器

    Args:
        max_retries: 最大重试次数（不含首次），0 表示只调用一次
        delay: 首次重试前的等待秒数
        backoff: 退避倍数
        max_delay: 单次等待上限
        exceptions: 触发重试的异常类型
        giveup: 返回 True 时立即抛出，不再重试
    """
    def decorator(func):
        label = getattr(func, "__qualname__", getattr(func, "__name__", "call"))

        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            wait = delay
            attempt = 0
            while True:
                attempt += 1
                try:
                    return func(*args, **kwargs)
                except exceptions as e:
                    if giveup is not None and giveup(e):
                        logger.error("[%s] 不可重试的错误: %s", label, e)
                        raise
                    if attempt > max_retries:
                        logger.error("[%s] 共 %d 次调用均失败: %s", label, attempt, e)
                        raise
                    logger.warning("[%s] 第 %d 次调用失败，%.1fs 后重试: %s", label, attempt, wait, e)
                    if wait > 0:
                        time.sleep(wait)
                    wait = min(wait * backoff, max_delay)
        return wrapper
    return decorator
