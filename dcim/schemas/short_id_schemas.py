"""
ShortID 池 Schemas
"""

from datetime import datetime
from typing import Any, Dict, List, Optional, Union

from pydantic import Field

from dcim.models.short_id_models import PrintTaskStatusEnum, ShortIdStatusEnum
from dcim.schemas.base_schemas import ActionResponse, BaseSchema

ShortIdValue = Union[int, str]


# =====================================================
# 请求
# =====================================================

class GenerateRequest(BaseSchema):
    count: int = Field(..., description="生成数量")
    batch_no: Optional[str] = Field(None, max_length=200, description="批次号，默认 batch_YYYY-MM-DD")


class PrintTaskCreateRequest(BaseSchema):
    name: str = Field(..., min_length=1, max_length=200, description="任务名称")
    count: int = Field(..., description="打印数量")
    created_by: Optional[str] = Field(None, max_length=100, description="创建人")
    notes: Optional[str] = Field(None, description="备注")


class PrintTaskCompleteRequest(BaseSchema):
    file_path: Optional[str] = Field(None, max_length=500, description="打印文件路径")


class PrintTaskFailRequest(BaseSchema):
    reason: Optional[str] = Field(None, description="失败原因")


class PrintTaskListRequest(BaseSchema):
    page: int = Field(1, ge=1, description="页码")
    page_size: int = Field(20, ge=1, description="每页数量")
    status: Optional[PrintTaskStatusEnum] = Field(None, description="任务状态")


class CheckRequest(BaseSchema):
    short_id: ShortIdValue = Field(..., description="shortID（数字或 E-00001）")


class BindRequest(BaseSchema):
    short_id: ShortIdValue = Field(..., description="shortID")
    entity_type: str = Field(..., description="实体类型")
    entity_id: str = Field(..., min_length=1, max_length=64, description="实体ID")


class CancelRequest(BaseSchema):
    short_id: ShortIdValue = Field(..., description="shortID")
    reason: Optional[str] = Field(None, description="报废原因")


class RecordsRequest(BaseSchema):
    page: int = Field(1, ge=1, description="页码")
    page_size: int = Field(50, ge=1, description="每页数量")
    entity_type: Optional[str] = Field(None, description="实体类型")
    status: Optional[ShortIdStatusEnum] = Field(None, description="状态")
    batch_no: Optional[str] = Field(None, description="批次号")
    search: Optional[str] = Field(None, description="按shortID或实体ID搜索")


# =====================================================
# 响应
# =====================================================

class PrintTaskResponse(BaseSchema):
    id: int
    name: str
    entity_type: Optional[str] = None
    count: int
    status: PrintTaskStatusEnum
    created_by: Optional[str] = None
    notes: Optional[str] = None
    file_path: Optional[str] = None
    created_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    short_id_count: Optional[int] = None


class ShortIdRecordResponse(BaseSchema):
    id: int
    short_id: int
    display_id: Optional[str] = None
    entity_type: Optional[str] = None
    entity_id: Optional[str] = None
    status: ShortIdStatusEnum
    batch_no: Optional[str] = None
    print_task_id: Optional[int] = None
    print_task_name: Optional[str] = None
    bound_at: Optional[datetime] = None
    printed_at: Optional[datetime] = None
    notes: Optional[str] = None
    created_at: Optional[datetime] = None


class GenerateResponse(ActionResponse):
    short_ids: List[int] = Field(default_factory=list)


class PrintTaskCreateResponse(ActionResponse):
    print_task: PrintTaskResponse
    short_ids: List[int] = Field(default_factory=list)


class PrintTaskActionResponse(ActionResponse):
    task: PrintTaskResponse


class PrintTaskListResponse(BaseSchema):
    tasks: List[PrintTaskResponse]
    total: int
    page: int
    page_size: int
    total_pages: int


class CheckResponse(BaseSchema):
    exists: bool
    used_by: Optional[str] = None
    entity_type: Optional[str] = None
    details: Optional[Dict[str, Any]] = None


class StatsResponse(BaseSchema):
    total: int
    generated: int
    printed: int
    bound: int
    cancelled: int
    by_type: Optional[Dict[str, int]] = None


class RecordsResponse(BaseSchema):
    records: List[ShortIdRecordResponse]
    total: int
    page: int
    page_size: int
    total_pages: int
