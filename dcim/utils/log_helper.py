"""
日志记录工具函数
提供统一的业务日志记录接口
"""

from typing import Optional, Union

from dcim.core.logging_config import get_logger
from dcim.constants.operation_types import OperationResult

logger = get_logger(__name__)


def log_operation(
    operation_type: str,
    operation_object: Union[str, int],
    operator: Optional[str] = None,
    result: str = OperationResult.SUCCESS,
    message: Optional[str] = None,
    remark: Optional[str] = None,
):
    """
    记录业务操作日志

    Args:
        operation_type: 操作类型（使用 OperationType 常量）
        operation_object: 操作对象（shortID、打印任务ID、线缆ID等）
        operator: 操作人
        result: 操作结果（success/failed）
        message: 日志消息（可选）
        remark: 备注（可选）

    Example:
        from dcim.constants.operation_types import OperationType

        log_operation(OperationType.SHORT_ID_BIND, 12, "admin")
    """
    log_message = message or f"{operation_type} {result}"

    log_func = logger.info if result == OperationResult.SUCCESS else logger.error

    log_func(log_message, extra={
        "operationObject": str(operation_object),
        "operationType": operation_type,
        "operator": operator or "system",
        "result": result,
        "remark": remark or "",
    })


def log_audit_warning(operation_type: str, operation_object: Union[str, int], message: str, remark: Optional[str] = None):
    """记录需要人工关注的审计告警（如隐式创建shortID）"""
    logger.warning(message, extra={
        "operationObject": str(operation_object),
        "operationType": operation_type,
        "operator": "system",
        "result": OperationResult.SUCCESS,
        "remark": remark or "",
    })
