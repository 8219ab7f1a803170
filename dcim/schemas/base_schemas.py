"""
通用 Pydantic Schemas
接口字段统一使用驼峰命名（shortId、entityType 等），内部仍使用下划线字段名
"""

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel


# =====================================================
# 基础Schema类
# =====================================================

class BaseSchema(BaseModel):
    """基础Schema类"""
    class Config:
        from_attributes = True
        use_enum_values = True
        alias_generator = to_camel
        populate_by_name = True


# =====================================================
# 通用响应
# =====================================================

class ResponseCode:
    """标准响应状态码"""
    SUCCESS = 0                    # 成功
    PARAM_ERROR = 1001            # 参数错误
    NOT_FOUND = 1002              # 资源不存在
    ALREADY_EXISTS = 1003         # 资源已存在（绑定冲突）
    INVALID_STATE = 1005          # 当前状态不允许该操作
    BAD_REQUEST = 4000            # 请求格式错误
    INTERNAL_ERROR = 5000         # 内部错误
    DATABASE_ERROR = 5001         # 数据库错误


class ActionResponse(BaseSchema):
    """操作类接口响应：{success, message}"""
    success: bool = Field(True, description="是否成功")
    message: str = Field("success", description="响应消息")
