import logging
import os
import sys
from typing import Optional

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
DEFAULT_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
# 事件流（variant_sync.events）单独控制，排查时可以只打开它
EVENT_LEVEL = os.getenv("EVENT_LOG_LEVEL", DEFAULT_LEVEL).upper()

# 第三方库的 INFO 太吵（每个 HTTP 连接一行）
NOISY_LOGGERS = ("urllib3", "kombu", "amqp")


def configure_logging(level: Optional[str] = None) -> logging.Logger:
    """
    root logger 没有 handler 时补一个 stdout handler（celery / 脚本），
    uvicorn 下已经有 handler，只调整级别。
    """
    resolved_level = (level or DEFAULT_LEVEL).upper()
    root_logger = logging.getLogger()

    if not root_logger.handlers:
        logging.basicConfig(
            level=resolved_level,
            format=LOG_FORMAT,
            handlers=[logging.StreamHandler(sys.stdout)],
        )
    else:
        root_logger.setLevel(resolved_level)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    logging.getLogger("variant_sync.events").setLevel(EVENT_LEVEL)

    logging.captureWarnings(True)
    return logging.getLogger("variant_sync")
