"""structlog ベースのクライアントロガー"""

from __future__ import annotations

import logging
import sys

import structlog

from .config import LogSection

LOGGER_NAME = "k1s0_upload_client"


def _processors(format: str) -> list[structlog.types.Processor]:
    shared: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
    ]
    if format == "json":
        return [*shared, structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    return [*shared, structlog.dev.ConsoleRenderer()]


def configure_logging(log: LogSection) -> None:
    """LogSection に従って stdlib logging と structlog を設定する。

    k1s0_upload_client 配下のモジュールロガー（logging.getLogger(__name__)）
    にもレベルが適用される。
    """
    level = getattr(logging, log.level.upper(), logging.INFO)
    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level)
    logging.getLogger(LOGGER_NAME).setLevel(level)
    structlog.configure(
        processors=_processors(log.format),
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(log: LogSection, **context: str) -> structlog.stdlib.BoundLogger:
    """クライアント用ロガーを返す。log.configure が真なら先に設定を適用する。

    Args:
        log: ログ設定
        context: 全ログ行に付与するキー

    Returns:
        context をバインド済みの structlog.stdlib.BoundLogger
    """
    if log.configure:
        configure_logging(log)
    logger: structlog.stdlib.BoundLogger = structlog.stdlib.get_logger(LOGGER_NAME)
    return logger.bind(**context)
