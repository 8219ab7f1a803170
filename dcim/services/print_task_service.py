"""
打印任务服务
在shortID池的打印任务操作之上提供标签文件导出（CSV / Excel）
"""

import io
from typing import List, Optional, Tuple

import pandas as pd
from sqlalchemy.orm import Session

from dcim.constants.operation_types import OperationType
from dcim.core.exceptions import NotFoundError
from dcim.core.logging_config import get_logger
from dcim.models.short_id_models import PrintTask, PrintTaskStatusEnum
from dcim.services.short_id_pool_service import ShortIdPoolService
from dcim.utils.log_helper import log_operation
from dcim.utils.short_id_formatter import batch_format

logger = get_logger(__name__)

# 前四列沿用标签打印机模板的字段顺序
EXPORT_COLUMNS = ["shortId", "entityType", "taskName", "createdAt", "numericId"]
EXCEL_SHEET_NAME = "标签数据"


class PrintTaskService:
    """打印任务服务"""

    def __init__(self, db: Session):
        self.db = db
        self.pool = ShortIdPoolService(db)

    def create(
        self,
        name: str,
        count: int,
        created_by: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> Tuple[PrintTask, List[int]]:
        return self.pool.create_print_task(name, count, created_by=created_by, notes=notes)

    def start(self, task_id: int) -> PrintTask:
        return self.pool.start_print_task(task_id)

    def complete(self, task_id: int, file_path: Optional[str] = None) -> PrintTask:
        return self.pool.complete_print_task(task_id, file_path=file_path)

    def fail(self, task_id: int, reason: Optional[str] = None) -> PrintTask:
        return self.pool.fail_print_task(task_id, reason=reason)

    def list_tasks(self, page: int = 1, page_size: int = 20, status: Optional[PrintTaskStatusEnum] = None):
        return self.pool.get_print_tasks(page=page, page_size=page_size, status=status)

    # =====================================================
    # 导出
    # =====================================================

    def _build_dataframe(self, task_id: int) -> Tuple[PrintTask, pd.DataFrame]:
        task, values = self.pool.get_print_task_short_ids(task_id)
        if not values:
            raise NotFoundError(f"print task {task_id} has no shortIDs", taskId=task_id)

        df = pd.DataFrame(
            {
                "shortId": batch_format(values),
                "entityType": task.entity_type,
                "taskName": task.name,
                "createdAt": task.created_at.strftime("%Y-%m-%d %H:%M:%S") if task.created_at else "",
                "numericId": values,
            },
            columns=EXPORT_COLUMNS,
        )
        return task, df

    def export_csv(self, task_id: int) -> bytes:
        """
        导出打印任务的标签CSV

        每行一个shortID，按数值升序；带BOM便于表格软件识别UTF-8
        """
        task, df = self._build_dataframe(task_id)
        content = df.to_csv(index=False, lineterminator="\n").encode("utf-8-sig")
        log_operation(OperationType.PRINT_TASK_EXPORT, task.id, message=f"导出打印任务CSV: {len(df)} 行")
        return content

    def export_excel(self, task_id: int) -> bytes:
        """导出打印任务的标签Excel"""
        task, df = self._build_dataframe(task_id)

        output = io.BytesIO()
        with pd.ExcelWriter(output, engine="openpyxl") as writer:
            df.to_excel(writer, sheet_name=EXCEL_SHEET_NAME, index=False)

            worksheet = writer.sheets[EXCEL_SHEET_NAME]
            for column in worksheet.columns:
                max_length = max(len(str(cell.value)) for cell in column if cell.value is not None)
                worksheet.column_dimensions[column[0].column_letter].width = min(max_length + 2, 50)

        output.seek(0)
        log_operation(OperationType.PRINT_TASK_EXPORT, task.id, message=f"导出打印任务Excel: {len(df)} 行")
        return output.read()
