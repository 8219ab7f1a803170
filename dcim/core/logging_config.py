"""
日志配置模块 - 支持Logstash集成

- 控制台：便于开发调试的文本格式
- JSON文件：业务日志（按天滚动），字段与Logstash管道一致
- 文本文件：便于人工查看
- Logstash：ENABLE_LOGSTASH=true 时启用

每条日志附带当前请求的 requestId，同一次扫码连接中的校验、绑定、端口变更日志可以据此串联
"""

import logging
import sys
from contextvars import ContextVar
from datetime import datetime, timezone
from logging.handlers import TimedRotatingFileHandler

from pythonjsonlogger import jsonlogger

from dcim.core.config import settings

LOG_LEVEL = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)
LOG_DIR = settings.LOG_DIR
LOG_DIR.mkdir(parents=True, exist_ok=True)

# 由 LoggingMiddleware 在每个请求开始时设置，脚本/后台调用为 "-"
request_id_var: ContextVar[str] = ContextVar("request_id", default="-")

# 业务日志字段及其缺省值
BUSINESS_FIELDS = {
    "operationObject": "",
    "operationType": "",
    "operator": "system",
    "result": "success",
    "remark": "",
}


class RequestContextFilter(logging.Filter):
    """把当前请求ID写入日志记录"""

    def filter(self, record: logging.LogRecord) -> bool:
        if not getattr(record, "requestId", None):
            record.requestId = request_id_var.get()
        return True


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """业务JSON日志格式化器"""

    def add_fields(self, log_record, record, message_dict):
        super().add_fields(log_record, record, message_dict)

        log_record["logType"] = "business"
        log_record["businessType"] = "dcim"
        log_record["source"] = "dcim-shortid"
        log_record["environment"] = settings.ENVIRONMENT
        log_record["level"] = record.levelname
        log_record["logger"] = record.name
        log_record["requestId"] = getattr(record, "requestId", request_id_var.get())

        if not log_record.get("operationTime"):
            log_record["operationTime"] = (
                datetime.fromtimestamp(record.created, tz=timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%fZ")
            )

        for key, default in BUSINESS_FIELDS.items():
            if key not in log_record:
                log_record[key] = message_dict.get(key, default)

        # HTTP访问日志的附加字段不进入业务日志
        for key in ("client_ip", "query", "taskName"):
            log_record.pop(key, None)


def _file_handler(filename: str, formatter: logging.Formatter) -> logging.Handler:
    handler = TimedRotatingFileHandler(
        LOG_DIR / filename,
        when="midnight",
        backupCount=settings.LOG_BACKUP_DAYS,
        encoding="utf-8",
    )
    handler.setLevel(LOG_LEVEL)
    handler.setFormatter(formatter)
    return handler


def setup_logging():
    """设置日志配置（重复调用会替换已有处理器）"""

    logger = logging.getLogger()
    logger.setLevel(LOG_LEVEL)

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    context_filter = RequestContextFilter()

    # 1. 控制台处理器
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(LOG_LEVEL)
    console_handler.setFormatter(logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - [%(requestId)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    ))

    # 2. JSON文件处理器（结构化业务日志）
    json_handler = _file_handler("dcim.json.log", CustomJsonFormatter("%(message)s"))

    # 3. 普通文件处理器
    text_handler = _file_handler("dcim.log", logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - [%(requestId)s] [%(filename)s:%(lineno)d] - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    ))

    for handler in (console_handler, json_handler, text_handler):
        handler.addFilter(context_filter)
        logger.addHandler(handler)

    # 4. Logstash处理器（如果启用）
    if settings.ENABLE_LOGSTASH:
        try:
            import logstash
            logstash_handler = logstash.TCPLogstashHandler(
                host=settings.LOGSTASH_HOST,
                port=settings.LOGSTASH_PORT,
                version=1
            )
            logstash_handler.setLevel(LOG_LEVEL)
            logstash_handler.addFilter(context_filter)
            logger.addHandler(logstash_handler)
            logger.info(f"Logstash handler enabled: {settings.LOGSTASH_HOST}:{settings.LOGSTASH_PORT}")
        except ImportError:
            logger.warning("python-logstash not installed, Logstash handler disabled")
        except Exception as e:
            logger.error(f"Failed to setup Logstash handler: {e}")

    # 第三方库日志级别
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(
        logging.INFO if settings.DATABASE_ECHO else logging.WARNING
    )

    return logger


def get_logger(name: str = None):
    """获取日志记录器"""
    return logging.getLogger(name or __name__)
