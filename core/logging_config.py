"""
Structlog 日志配置模块

支付流程的日志以事件名记录（如 paypal_order_created），上下文字段通过
contextvars 绑定，凭证与渠道原始报文不进入日志。
"""
import logging
import json
import structlog
from structlog.processors import TimeStamper, add_log_level, JSONRenderer
from structlog.dev import ConsoleRenderer
from structlog.contextvars import bound_contextvars, merge_contextvars
from structlog.stdlib import ProcessorFormatter
from typing import Any, ContextManager, List

from core.config import settings


# 凭证类字段永远不进入日志
SENSITIVE_KEYS = {"authorization", "access_token", "client_secret", "password"}
# 渠道原始报文只保留在异常对象上
DROPPED_KEYS = {"response_body", "psp_error_message"}
REDACTED = "***"


def _redact(value: Any) -> Any:
    if isinstance(value, dict):
        return {
            k: REDACTED if str(k).lower() in SENSITIVE_KEYS else _redact(v)
            for k, v in value.items()
            if str(k).lower() not in DROPPED_KEYS
        }
    return value


def redact_sensitive(logger: Any, method_name: str, event_dict: dict) -> dict:
    """把敏感字段替换为掩码，并丢弃渠道原始报文（含嵌套 dict）。"""
    for key in list(event_dict.keys()):
        lowered = key.lower()
        if lowered in DROPPED_KEYS:
            del event_dict[key]
        elif lowered in SENSITIVE_KEYS:
            event_dict[key] = REDACTED
        else:
            event_dict[key] = _redact(event_dict[key])
    return event_dict


def payment_log_context(payment_id: str, **values: Any) -> ContextManager:
    """在一次支付流程内为所有日志绑定 payment_id 等字段。"""
    return bound_contextvars(payment_id=payment_id, **values)


def get_renderer() -> Any:
    """根据环境选择渲染器 (Console in DEBUG, JSON otherwise).
    注意：structlog 会向 serializer 传入 default/sort_keys 等参数，需要适配。
    """
    if settings.DEBUG:
        return ConsoleRenderer(colors=True)

    def _dumps(obj, default=None, **kwargs):
        return json.dumps(obj, ensure_ascii=False, default=default, **kwargs)
    return JSONRenderer(serializer=_dumps)


def configure_logging() -> None:
    """配置 structlog 并桥接标准库 logging 到同一处理链。"""
    timestamper = TimeStamper(fmt="iso")

    # 预处理链（同时用于 stdlib ProcessorFormatter 和 structlog.configure）
    shared_pre_chain: List[Any] = [
        merge_contextvars,
        add_log_level,
        timestamper,
        redact_sensitive,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    structlog.configure(
        processors=[
            *shared_pre_chain,
            ProcessorFormatter.wrap_for_formatter,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    renderer = get_renderer()
    formatter = ProcessorFormatter(
        foreign_pre_chain=shared_pre_chain,
        processors=[
            ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )

    handler = logging.StreamHandler()
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(logging.DEBUG if settings.DEBUG else logging.INFO)

    # httpx 在 INFO 级别会输出每个请求行，包含完整URL
    logging.getLogger("httpx").setLevel(logging.WARNING)


def get_logger(name: str = __name__) -> structlog.stdlib.BoundLogger:
    """获取 structlog logger 实例。"""
    return structlog.get_logger(name)


# 初始化配置
configure_logging()
