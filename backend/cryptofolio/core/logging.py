import logging
from typing import List

from cryptofolio.core.config import settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# 第三方库只保留警告以上
NOISY_LOGGERS = ("sqlalchemy.engine", "httpx", "httpcore")


def setup_logging() -> None:
    """控制台输出，LOG_FILE 非空时同时写文件"""
    handlers: List[logging.Handler] = [logging.StreamHandler()]
    if settings.LOG_FILE:
        handlers.append(logging.FileHandler(settings.LOG_FILE))

    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
        format=LOG_FORMAT,
        handlers=handlers,
    )
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
