"""
ShortID 池 API 路由
发号、打印任务、占用检查、绑定/报废、统计与记录查询

业务异常（ShortIdPoolError）由 main.py 中的全局异常处理器统一转换为HTTP状态码
"""

import io
from datetime import datetime
from typing import Optional
from urllib.parse import quote

from fastapi import APIRouter, Depends, Query
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session

from dcim.db.session import get_db
from dcim.models.short_id_models import PrintTask, ShortIdPool
from dcim.schemas.base_schemas import ActionResponse
from dcim.schemas.short_id_schemas import (
    BindRequest,
    CancelRequest,
    CheckRequest,
    CheckResponse,
    GenerateRequest,
    GenerateResponse,
    PrintTaskActionResponse,
    PrintTaskCompleteRequest,
    PrintTaskCreateRequest,
    PrintTaskCreateResponse,
    PrintTaskFailRequest,
    PrintTaskListRequest,
    PrintTaskListResponse,
    PrintTaskResponse,
    RecordsRequest,
    RecordsResponse,
    ShortIdRecordResponse,
    StatsResponse,
)
from dcim.services.print_task_service import PrintTaskService
from dcim.services.short_id_pool_service import ShortIdPoolService
from dcim.utils.short_id_formatter import format_short_id

router = APIRouter()

CSV_MEDIA_TYPE = "text/csv; charset=utf-8"
XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


def _task_response(task: PrintTask, short_id_count: Optional[int] = None) -> PrintTaskResponse:
    response = PrintTaskResponse.model_validate(task)
    if short_id_count is not None:
        response.short_id_count = short_id_count
    return response


def _record_response(record: ShortIdPool) -> ShortIdRecordResponse:
    response = ShortIdRecordResponse.model_validate(record)
    response.display_id = format_short_id(record.short_id)
    response.print_task_name = record.print_task.name if record.print_task else None
    return response


# =====================================================
# 发号
# =====================================================

@router.post("/generate", response_model=GenerateResponse, summary="生成shortID")
def generate_short_ids(request: GenerateRequest, db: Session = Depends(get_db)):
    """批量生成新的shortID（状态 GENERATED），数值严格递增且永不复用"""
    values = ShortIdPoolService(db).generate_short_ids(request.count, batch_no=request.batch_no)
    return GenerateResponse(message=f"generated {len(values)} shortIDs", short_ids=values)


# =====================================================
# 打印任务
# =====================================================

@router.post("/print-task/create", response_model=PrintTaskCreateResponse, summary="创建打印任务")
def create_print_task(request: PrintTaskCreateRequest, db: Session = Depends(get_db)):
    """创建打印任务并分配shortID（状态 PRINTED），任务与shortID同时创建或同时失败"""
    task, values = PrintTaskService(db).create(
        request.name,
        request.count,
        created_by=request.created_by,
        notes=request.notes,
    )
    return PrintTaskCreateResponse(
        message=f"print task created with {len(values)} shortIDs",
        print_task=_task_response(task, len(values)),
        short_ids=values,
    )


@router.get("/print-task/{task_id}/export", summary="导出打印任务标签文件")
def export_print_task(
    task_id: int,
    format: str = Query("csv", pattern="^(csv|xlsx)$", description="导出格式：csv / xlsx"),
    db: Session = Depends(get_db),
):
    service = PrintTaskService(db)
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    if format == "xlsx":
        content = service.export_excel(task_id)
        filename = f"print_task_{task_id}_{timestamp}.xlsx"
        media_type = XLSX_MEDIA_TYPE
    else:
        content = service.export_csv(task_id)
        filename = f"print_task_{task_id}_{timestamp}.csv"
        media_type = CSV_MEDIA_TYPE

    return StreamingResponse(
        io.BytesIO(content),
        media_type=media_type,
        headers={"Content-Disposition": f"attachment; filename*=UTF-8''{quote(filename)}"},
    )


@router.post("/print-task/{task_id}/start", response_model=PrintTaskActionResponse, summary="开始打印")
def start_print_task(task_id: int, db: Session = Depends(get_db)):
    task = PrintTaskService(db).start(task_id)
    return PrintTaskActionResponse(message="print task started", task=_task_response(task))


@router.post("/print-task/{task_id}/complete", response_model=PrintTaskActionResponse, summary="完成打印任务")
def complete_print_task(
    task_id: int,
    request: Optional[PrintTaskCompleteRequest] = None,
    db: Session = Depends(get_db),
):
    file_path = request.file_path if request else None
    task = PrintTaskService(db).complete(task_id, file_path=file_path)
    return PrintTaskActionResponse(message="print task completed", task=_task_response(task))


@router.post("/print-task/{task_id}/fail", response_model=PrintTaskActionResponse, summary="标记打印失败")
def fail_print_task(
    task_id: int,
    request: Optional[PrintTaskFailRequest] = None,
    db: Session = Depends(get_db),
):
    reason = request.reason if request else None
    task = PrintTaskService(db).fail(task_id, reason=reason)
    return PrintTaskActionResponse(message="print task failed", task=_task_response(task))


@router.post("/print-tasks", response_model=PrintTaskListResponse, summary="打印任务列表")
def list_print_tasks(request: PrintTaskListRequest, db: Session = Depends(get_db)):
    rows, total = PrintTaskService(db).list_tasks(
        page=request.page,
        page_size=request.page_size,
        status=request.status,
    )
    return PrintTaskListResponse(
        tasks=[_task_response(task, count) for task, count in rows],
        total=total,
        page=request.page,
        page_size=request.page_size,
        total_pages=ShortIdPoolService.total_pages(total, request.page_size),
    )


# =====================================================
# 检查 / 绑定 / 报废
# =====================================================

@router.post("/check", response_model=CheckResponse, summary="检查shortID是否被占用")
def check_short_id(request: CheckRequest, db: Session = Depends(get_db)):
    result = ShortIdPoolService(db).check_short_id_exists(request.short_id)
    return CheckResponse(
        exists=result.exists,
        used_by=result.used_by.value if result.used_by else None,
        entity_type=result.entity_type,
        details=result.details,
    )


@router.post("/bind", response_model=ActionResponse, summary="绑定shortID到实体")
def bind_short_id(request: BindRequest, db: Session = Depends(get_db)):
    ShortIdPoolService(db).bind_short_id(request.short_id, request.entity_type, request.entity_id)
    return ActionResponse(message="bound")


@router.post("/cancel", response_model=ActionResponse, summary="报废shortID")
def cancel_short_id(request: CancelRequest, db: Session = Depends(get_db)):
    ShortIdPoolService(db).cancel_short_id(request.short_id, reason=request.reason)
    return ActionResponse(message="cancelled")


# =====================================================
# 统计 / 记录
# =====================================================

@router.get("/stats", response_model=StatsResponse, summary="shortID池统计")
def get_stats(
    entity_type: Optional[str] = Query(None, alias="entityType", description="实体类型"),
    db: Session = Depends(get_db),
):
    return StatsResponse(**ShortIdPoolService(db).get_pool_stats(entity_type))


@router.post("/records", response_model=RecordsResponse, summary="shortID池记录分页查询")
def get_records(request: RecordsRequest, db: Session = Depends(get_db)):
    records, total = ShortIdPoolService(db).get_pool_records(
        page=request.page,
        page_size=request.page_size,
        entity_type=request.entity_type,
        status=request.status,
        batch_no=request.batch_no,
        search=request.search,
    )
    return RecordsResponse(
        records=[_record_response(record) for record in records],
        total=total,
        page=request.page,
        page_size=request.page_size,
        total_pages=ShortIdPoolService.total_pages(total, request.page_size),
    )
