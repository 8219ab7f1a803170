"""
业务操作类型常量定义
用于日志记录的标准化操作类型
"""


class OperationType:
    """操作类型常量"""

    # shortID池
    SHORT_ID_GENERATE = "short_id.generate"
    SHORT_ID_BIND = "short_id.bind"
    SHORT_ID_BIND_OR_CREATE = "short_id.bind_or_create"
    SHORT_ID_CANCEL = "short_id.cancel"
    SHORT_ID_RETIRE = "short_id.retire"
    SHORT_ID_RECONCILE = "short_id.reconcile"

    # 打印任务
    PRINT_TASK_CREATE = "print_task.create"
    PRINT_TASK_START = "print_task.start"
    PRINT_TASK_COMPLETE = "print_task.complete"
    PRINT_TASK_FAIL = "print_task.fail"
    PRINT_TASK_EXPORT = "print_task.export"

    # 线缆连接
    CABLE_CREATE = "cable.create"
    CABLE_CONNECT_SINGLE = "cable.connect_single"
    CABLE_DISCONNECT = "cable.disconnect"
    CABLE_DELETE = "cable.delete"

    # 位置实体
    LOCATION_CREATE = "location.create"
    LOCATION_DELETE = "location.delete"
    PORT_STATUS_UPDATE = "port.status_update"


class OperationResult:
    """操作结果常量"""
    SUCCESS = "success"
    FAILED = "failed"
