"""structlog 配置模块

dev 模式：ConsoleRenderer 彩色输出（CLI 默认）
json 模式：每行一条 JSON，便于嵌入宿主应用的日志管道
"""

import logging
import os

import structlog

# 每个请求都会打 INFO 日志的第三方 logger
_NOISY_LOGGERS = ("httpx", "httpcore")


def setup_logging(log_format: str | None = None, log_level: str | None = None) -> None:
    """初始化 structlog，并把标准库 logging 接到同一个渲染器上

    Args:
        log_format: "json" 或 "dev"，None 时读取 LAWDESK_LOG_FORMAT（默认 dev）
        log_level: 日志级别名，None 时读取 LAWDESK_LOG_LEVEL（默认 INFO）；
            无法识别的级别按 INFO 处理
    """
    log_format = (log_format or os.environ.get("LAWDESK_LOG_FORMAT", "dev")).lower()
    level_name = (log_level or os.environ.get("LAWDESK_LOG_LEVEL", "INFO")).upper()
    level = getattr(logging, level_name, None)
    if not isinstance(level, int):
        level = logging.INFO

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if log_format == "json":
        renderer_chain: list[structlog.types.Processor] = [
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(ensure_ascii=False),
        ]
    else:
        renderer_chain = [
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            structlog.dev.ConsoleRenderer(),
        ]

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler()
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processors=renderer_chain,
            foreign_pre_chain=shared_processors,
        )
    )

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(level)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))
