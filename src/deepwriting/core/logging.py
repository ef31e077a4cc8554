"""
日志配置
"""
import logging
import sys

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s:%(funcName)s:%(lineno)d | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# 上游请求和 SQL 日志太吵，只保留警告
QUIET_LOGGERS = ("httpx", "httpcore", "openai", "urllib3", "sqlalchemy.engine")

_HANDLER_NAME = "deepwriting-console"


def setup_logging(log_level: str = "INFO") -> None:
    """
    配置根日志记录器

    控制台输出，格式: 时间 | 级别 | 模块:函数:行号 | 消息
    重复调用（例如 uvicorn reload、测试中多次导入 main）只会保留一个控制台处理器。
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))

    if any(h.get_name() == _HANDLER_NAME for h in root_logger.handlers):
        return

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.set_name(_HANDLER_NAME)
    console_handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT))
    root_logger.addHandler(console_handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """按模块名获取日志记录器: logger = get_logger(__name__)"""
    return logging.getLogger(name)
