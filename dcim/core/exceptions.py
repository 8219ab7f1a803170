"""
ShortID 池与线缆连接的业务异常

服务层只抛出这些类型化异常，由路由层统一转换为HTTP状态码和提示信息
"""

from typing import Any, Dict, Optional


class ShortIdPoolError(Exception):
    """业务异常基类"""

    error_type = "ERROR"

    def __init__(self, message: str, **details: Any):
        super().__init__(message)
        self.message = message
        self.details: Dict[str, Any] = {k: v for k, v in details.items() if v is not None}

    def to_dict(self) -> Dict[str, Any]:
        return {
            "errorType": self.error_type,
            "message": self.message,
            "details": self.details or None,
        }


class NotFoundError(ShortIdPoolError):
    """shortID、打印任务、端口等资源不存在"""

    error_type = "NOT_FOUND"


class ConflictError(ShortIdPoolError):
    """shortID已绑定到其他实体，或重复创建"""

    error_type = "CONFLICT"


class ShortIdEntityMismatchError(ConflictError):
    """shortID绑定的实体类型与期望不符（例如在线缆端扫描了房间ID）"""

    error_type = "ENTITY_TYPE_MISMATCH"

    def __init__(self, short_id: int, expected: str, actual: Optional[str]):
        super().__init__(
            f"shortID {short_id} is bound to {actual}, expected {expected}",
            shortId=short_id,
            expectedEntityType=expected,
            actualEntityType=actual,
        )


class InvalidStateError(ShortIdPoolError):
    """当前状态不允许该操作（如报废已绑定的ID、重复完成打印任务）"""

    error_type = "INVALID_STATE"


class PortUnavailableError(InvalidStateError):
    """端口不是可用状态"""

    error_type = "PORT_UNAVAILABLE"

    def __init__(self, port_id: str, status: Optional[str]):
        super().__init__(
            f"port {port_id} is {status}, expected AVAILABLE",
            portId=port_id,
            status=status,
        )


class InvalidArgumentError(ShortIdPoolError):
    """参数错误（数量越界、扫描内容格式错误等）"""

    error_type = "INVALID_ARGUMENT"


class ShortIdFormatError(InvalidArgumentError):
    """扫描内容无法解析为shortID"""

    error_type = "INVALID_FORMAT"

    def __init__(self, raw: Any):
        super().__init__(f"invalid shortID format: {raw!r}", raw=str(raw))


class PartialFailureForbiddenError(ShortIdPoolError):
    """多记录操作无法完整执行，已整体回滚"""

    error_type = "PARTIAL_FAILURE_FORBIDDEN"
