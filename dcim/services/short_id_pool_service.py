"""
ShortID 池业务逻辑服务
负责shortID的发号、打印任务、绑定、报废与统计

shortID在所有实体类型间全局唯一，发号通过 short_id_sequence 单行计数器在事务内原子递增，
绑定/报废使用带状态条件的 UPDATE（compare-and-swap），并发时失败方得到 Conflict/InvalidState
"""

import enum
import math
from dataclasses import dataclass
from datetime import datetime, date
from typing import Any, Callable, Dict, List, Optional, Tuple, TypeVar, Union

from sqlalchemy import func, or_, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from dcim.constants.operation_types import OperationType
from dcim.core.config import settings
from dcim.core.exceptions import (
    ConflictError,
    InvalidArgumentError,
    InvalidStateError,
    NotFoundError,
    PartialFailureForbiddenError,
    ShortIdFormatError,
)
from dcim.core.logging_config import get_logger
from dcim.db.session import transaction
from dcim.models.cable_models import CableEndpoint
from dcim.models.location_models import Cabinet, DataCenter, Device, Panel, Port, Room
from dcim.models.short_id_models import (
    ASSIGNABLE_STATUSES,
    MIXED_ENTITY_TYPE,
    SEQUENCE_ROW_ID,
    EntityTypeEnum,
    GlobalShortIdAllocation,
    PrintTask,
    PrintTaskStatusEnum,
    ShortIdPool,
    ShortIdSequence,
    ShortIdStatusEnum,
)
from dcim.utils.log_helper import log_audit_warning, log_operation
from dcim.utils.short_id_formatter import ShortIdInput, parse_short_id

logger = get_logger(__name__)

T = TypeVar("T")

# 统计中未绑定实体类型的记录归入该分组
UNASSIGNED_TYPE = "UNASSIGNED"

# 带 short_id 冗余字段的位置实体
LOCATION_MODELS = {
    EntityTypeEnum.DATA_CENTER: DataCenter,
    EntityTypeEnum.ROOM: Room,
    EntityTypeEnum.CABINET: Cabinet,
    EntityTypeEnum.DEVICE: Device,
    EntityTypeEnum.PANEL: Panel,
    EntityTypeEnum.PORT: Port,
}


class ShortIdUsage(str, enum.Enum):
    """shortID占用方：ENTITY=已绑定到实体，POOL=仅在池中预留（含已报废）"""
    ENTITY = "entity"
    POOL = "pool"


@dataclass
class ShortIdCheckResult:
    exists: bool
    used_by: Optional[ShortIdUsage] = None
    entity_type: Optional[str] = None
    details: Optional[Dict[str, Any]] = None


def normalize_entity_type(value: Union[EntityTypeEnum, str, None]) -> EntityTypeEnum:
    """将请求中的实体类型转换为枚举，不区分大小写"""
    if isinstance(value, EntityTypeEnum):
        return value
    if not value or not isinstance(value, str):
        raise InvalidArgumentError("entityType is required", entityType=value)
    try:
        return EntityTypeEnum(value.strip().upper())
    except ValueError:
        raise InvalidArgumentError(f"unsupported entityType: {value}", entityType=value)


def default_batch_no() -> str:
    return f"batch_{date.today().isoformat()}"


def record_details(record: ShortIdPool) -> Dict[str, Any]:
    """池记录的详情（用于check接口的details字段）"""
    return {
        "id": record.id,
        "status": record.status.value if record.status else None,
        "entityType": record.entity_type,
        "entityId": record.entity_id,
        "batchNo": record.batch_no,
        "printTaskId": record.print_task_id,
        "notes": record.notes,
    }


class ShortIdPoolService:
    """shortID池服务"""

    def __init__(self, db: Session):
        self.db = db

    # =====================================================
    # 发号序列
    # =====================================================

    def _current_max_short_id(self) -> int:
        """池、旧版分配表及所有实体上出现过的最大shortID"""
        columns = [ShortIdPool.short_id, GlobalShortIdAllocation.short_id, CableEndpoint.short_id]
        columns.extend(model.short_id for model in LOCATION_MODELS.values())
        return max(self.db.query(func.max(column)).scalar() or 0 for column in columns)

    def ensure_sequence(self) -> None:
        exists = self.db.query(ShortIdSequence.id).filter(ShortIdSequence.id == SEQUENCE_ROW_ID).first()
        if exists:
            return
        current = self._current_max_short_id()
        self.db.add(ShortIdSequence(id=SEQUENCE_ROW_ID, current_value=current))
        self.db.flush()
        logger.info(f"shortID序列初始化: current_value={current}")

    def _allocate_range(self, count: int) -> List[int]:
        """在当前事务内原子地预留 count 个连续的新shortID"""
        self.ensure_sequence()
        self.db.execute(
            update(ShortIdSequence)
            .where(ShortIdSequence.id == SEQUENCE_ROW_ID)
            .values(current_value=ShortIdSequence.current_value + count)
            .execution_options(synchronize_session=False)
        )
        end = self.db.query(ShortIdSequence.current_value).filter(ShortIdSequence.id == SEQUENCE_ROW_ID).scalar()
        return list(range(end - count + 1, end + 1))

    def advance_sequence(self, value: int) -> None:
        """显式写入的shortID（bind-or-create、迁移）需要把序列推进到该值之后"""
        self.ensure_sequence()
        self.db.execute(
            update(ShortIdSequence)
            .where(ShortIdSequence.id == SEQUENCE_ROW_ID, ShortIdSequence.current_value < value)
            .values(current_value=value)
            .execution_options(synchronize_session=False)
        )

    def _run_allocation(self, work: Callable[[], T], commit: bool) -> T:
        """
        执行发号事务

        并发初始化序列或与存量数据撞号时会触发唯一约束冲突，整体回滚后重试；
        commit=False 时由调用方负责事务，冲突直接向上抛出
        """
        if not commit:
            return work()

        retries = settings.SHORT_ID_ALLOCATE_RETRIES
        last_error: Optional[IntegrityError] = None
        for attempt in range(1, retries + 1):
            try:
                result = work()
                self.db.commit()
                return result
            except IntegrityError as e:
                self.db.rollback()
                last_error = e
                logger.warning(f"shortID发号冲突，重试 {attempt}/{retries}: {e.orig}")
            except Exception:
                self.db.rollback()
                raise
        raise PartialFailureForbiddenError(
            "shortID allocation could not complete, all changes rolled back",
            attempts=retries,
        ) from last_error

    @staticmethod
    def _validate_count(count: int) -> None:
        if isinstance(count, bool) or not isinstance(count, int) or count <= 0:
            raise InvalidArgumentError("count must be a positive integer", count=count)
        if count > settings.SHORT_ID_MAX_GENERATE:
            raise InvalidArgumentError(
                f"count must not exceed {settings.SHORT_ID_MAX_GENERATE}",
                count=count,
                maxCount=settings.SHORT_ID_MAX_GENERATE,
            )

    # =====================================================
    # 发号与打印任务
    # =====================================================

    def generate_short_ids(
        self,
        count: int,
        batch_no: Optional[str] = None,
        commit: bool = True,
    ) -> List[int]:
        """
        生成 count 个新shortID（状态 GENERATED）

        返回的值严格大于历史上发出过的任何shortID，已报废的值永不复用
        """
        self._validate_count(count)
        batch_no = batch_no or default_batch_no()

        def work() -> List[int]:
            values = self._allocate_range(count)
            self.db.add_all([
                ShortIdPool(short_id=value, status=ShortIdStatusEnum.GENERATED, batch_no=batch_no)
                for value in values
            ])
            self.db.flush()
            return values

        values = self._run_allocation(work, commit)
        log_operation(
            OperationType.SHORT_ID_GENERATE,
            batch_no,
            message=f"生成shortID {len(values)} 个: {values[0]}-{values[-1]}",
        )
        return values

    def create_print_task(
        self,
        name: str,
        count: int,
        created_by: Optional[str] = None,
        notes: Optional[str] = None,
        commit: bool = True,
    ) -> Tuple[PrintTask, List[int]]:
        """创建打印任务：任务与其全部shortID（状态 PRINTED）在同一事务中创建"""
        if not name or not name.strip():
            raise InvalidArgumentError("print task name is required")
        self._validate_count(count)
        name = name.strip()

        def work() -> Tuple[PrintTask, List[int]]:
            task = PrintTask(
                name=name,
                entity_type=MIXED_ENTITY_TYPE,
                count=count,
                status=PrintTaskStatusEnum.PENDING,
                created_by=created_by,
                notes=notes,
            )
            self.db.add(task)
            self.db.flush()

            values = self._allocate_range(count)
            printed_at = datetime.now()
            self.db.add_all([
                ShortIdPool(
                    short_id=value,
                    status=ShortIdStatusEnum.PRINTED,
                    batch_no=name,
                    print_task_id=task.id,
                    printed_at=printed_at,
                )
                for value in values
            ])
            self.db.flush()
            return task, values

        task, values = self._run_allocation(work, commit)
        log_operation(
            OperationType.PRINT_TASK_CREATE,
            task.id,
            operator=created_by,
            message=f"创建打印任务 {name}: {values[0]}-{values[-1]}",
        )
        return task, values

    def get_print_task(self, task_id: int, for_update: bool = False) -> PrintTask:
        query = self.db.query(PrintTask).filter(PrintTask.id == task_id)
        if for_update:
            query = query.populate_existing().with_for_update()
        task = query.first()
        if not task:
            raise NotFoundError(f"print task {task_id} not found", taskId=task_id)
        return task

    def get_print_task_short_ids(self, task_id: int) -> Tuple[PrintTask, List[int]]:
        """获取打印任务及其shortID（升序）"""
        task = self.get_print_task(task_id)
        values = [
            row[0] for row in self.db.query(ShortIdPool.short_id)
            .filter(ShortIdPool.print_task_id == task_id)
            .order_by(ShortIdPool.short_id.asc())
            .all()
        ]
        return task, values

    def _transition_print_task(
        self,
        task_id: int,
        allowed: Tuple[PrintTaskStatusEnum, ...],
        target: PrintTaskStatusEnum,
        commit: bool,
        operation_type: str,
        **changes: Any,
    ) -> PrintTask:
        with transaction(self.db, commit):
            task = self.get_print_task(task_id, for_update=True)
            if task.status not in allowed:
                raise InvalidStateError(
                    f"print task {task_id} is {task.status.value}, cannot change to {target.value}",
                    taskId=task_id,
                    status=task.status.value,
                )
            task.status = target
            for key, value in changes.items():
                if value is not None:
                    setattr(task, key, value)
            self.db.flush()

        log_operation(operation_type, task_id, message=f"打印任务 {task_id} -> {target.value}")
        return task

    def start_print_task(self, task_id: int, commit: bool = True) -> PrintTask:
        """开始打印：PENDING -> PRINTING"""
        return self._transition_print_task(
            task_id,
            (PrintTaskStatusEnum.PENDING,),
            PrintTaskStatusEnum.PRINTING,
            commit,
            OperationType.PRINT_TASK_START,
        )

    def complete_print_task(self, task_id: int, file_path: Optional[str] = None, commit: bool = True) -> PrintTask:
        """完成打印任务（只标记任务本身，不改变shortID状态）"""
        return self._transition_print_task(
            task_id,
            (PrintTaskStatusEnum.PENDING, PrintTaskStatusEnum.PRINTING),
            PrintTaskStatusEnum.COMPLETED,
            commit,
            OperationType.PRINT_TASK_COMPLETE,
            completed_at=datetime.now(),
            file_path=file_path,
        )

    def fail_print_task(self, task_id: int, reason: Optional[str] = None, commit: bool = True) -> PrintTask:
        """打印失败：PENDING/PRINTING -> FAILED，已打印的shortID保持PRINTED，可单独报废"""
        return self._transition_print_task(
            task_id,
            (PrintTaskStatusEnum.PENDING, PrintTaskStatusEnum.PRINTING),
            PrintTaskStatusEnum.FAILED,
            commit,
            OperationType.PRINT_TASK_FAIL,
            notes=reason,
        )

    def get_print_tasks(
        self,
        page: int = 1,
        page_size: int = 20,
        status: Optional[PrintTaskStatusEnum] = None,
    ) -> Tuple[List[Tuple[PrintTask, int]], int]:
        """分页获取打印任务及每个任务的shortID数量"""
        self._validate_page(page, page_size)
        total_query = self.db.query(func.count(PrintTask.id))
        query = (
            self.db.query(PrintTask, func.count(ShortIdPool.id))
            .outerjoin(ShortIdPool, ShortIdPool.print_task_id == PrintTask.id)
        )
        if status:
            total_query = total_query.filter(PrintTask.status == status)
            query = query.filter(PrintTask.status == status)
        total = total_query.scalar() or 0

        rows = (
            query.group_by(PrintTask.id)
            .order_by(PrintTask.created_at.desc(), PrintTask.id.desc())
            .offset((page - 1) * page_size)
            .limit(page_size)
            .all()
        )
        return [(task, id_count) for task, id_count in rows], total

    # =====================================================
    # 查询
    # =====================================================

    def _get_record(self, value: int, for_update: bool = False) -> Optional[ShortIdPool]:
        query = self.db.query(ShortIdPool).filter(ShortIdPool.short_id == value).populate_existing()
        if for_update:
            query = query.with_for_update()
        return query.first()

    def check_short_id_exists(self, raw: ShortIdInput) -> ShortIdCheckResult:
        """
        检查shortID是否已被占用

        池中 BOUND 的记录以及旧数据里直接写在实体上的shortID视为被实体占用（ENTITY），
        GENERATED/PRINTED/CANCELLED 视为池中预留（POOL）
        """
        value = parse_short_id(raw)

        record = self._get_record(value)
        if record:
            used_by = ShortIdUsage.ENTITY if record.status == ShortIdStatusEnum.BOUND else ShortIdUsage.POOL
            return ShortIdCheckResult(
                exists=True,
                used_by=used_by,
                entity_type=record.entity_type,
                details=record_details(record),
            )

        for entity_type, model in LOCATION_MODELS.items():
            entity = self.db.query(model).filter(model.short_id == value).first()
            if entity:
                return ShortIdCheckResult(
                    exists=True,
                    used_by=ShortIdUsage.ENTITY,
                    entity_type=entity_type.value,
                    details={"entityId": entity.id, "name": getattr(entity, "name", None) or getattr(entity, "number", None)},
                )

        endpoint = self.db.query(CableEndpoint).filter(CableEndpoint.short_id == value).first()
        if endpoint:
            return ShortIdCheckResult(
                exists=True,
                used_by=ShortIdUsage.ENTITY,
                entity_type=EntityTypeEnum.CABLE.value,
                details={"entityId": endpoint.id, "cableId": endpoint.cable_id, "endType": endpoint.end_type},
            )

        return ShortIdCheckResult(exists=False)

    def find_record(self, raw: ShortIdInput) -> Optional[ShortIdPool]:
        return self._get_record(parse_short_id(raw))

    def get_record(self, raw: ShortIdInput) -> ShortIdPool:
        value = parse_short_id(raw)
        record = self._get_record(value)
        if not record:
            raise NotFoundError(f"shortID {value} not found", shortId=value)
        return record

    # =====================================================
    # 绑定 / 报废
    # =====================================================

    def _raise_for_bound_record(self, record: ShortIdPool, entity_type: EntityTypeEnum, entity_id: str) -> None:
        """条件UPDATE未命中时，根据记录的当前状态给出确定的结果（同一实体重复绑定视为成功）"""
        if record.status == ShortIdStatusEnum.CANCELLED:
            raise InvalidStateError(
                f"shortID {record.short_id} is cancelled",
                shortId=record.short_id,
                status=record.status.value,
            )
        if record.status == ShortIdStatusEnum.BOUND:
            if record.entity_type == entity_type.value and record.entity_id == entity_id:
                return
            raise ConflictError(
                f"shortID {record.short_id} is already bound to {record.entity_type} {record.entity_id}",
                shortId=record.short_id,
                entityType=record.entity_type,
                entityId=record.entity_id,
            )
        # 仍是可绑定状态说明并发事务刚刚改写过该行
        raise ConflictError(
            f"shortID {record.short_id} was modified concurrently",
            shortId=record.short_id,
            status=record.status.value,
        )

    def bind_short_id(
        self,
        raw: ShortIdInput,
        entity_type: Union[EntityTypeEnum, str],
        entity_id: str,
        commit: bool = True,
        operator: Optional[str] = None,
    ) -> ShortIdPool:
        """
        绑定shortID到实体：GENERATED/PRINTED -> BOUND

        Raises:
            NotFoundError: shortID从未生成
            ConflictError: 已绑定到其他实体
            InvalidStateError: 已报废
        """
        value = parse_short_id(raw)
        entity_type = normalize_entity_type(entity_type)
        if not entity_id:
            raise InvalidArgumentError("entityId is required", shortId=value)
        entity_id = str(entity_id)

        with transaction(self.db, commit):
            updated = (
                self.db.query(ShortIdPool)
                .filter(ShortIdPool.short_id == value, ShortIdPool.status.in_(ASSIGNABLE_STATUSES))
                .update(
                    {
                        ShortIdPool.status: ShortIdStatusEnum.BOUND,
                        ShortIdPool.entity_type: entity_type.value,
                        ShortIdPool.entity_id: entity_id,
                        ShortIdPool.bound_at: datetime.now(),
                    },
                    synchronize_session="fetch",
                )
            )
            record = self._get_record(value, for_update=not updated)
            if not record:
                raise NotFoundError(f"shortID {value} not found", shortId=value)
            if not updated:
                self._raise_for_bound_record(record, entity_type, entity_id)

        if updated:
            log_operation(
                OperationType.SHORT_ID_BIND,
                value,
                operator=operator,
                message=f"shortID {value} 绑定到 {entity_type.value} {entity_id}",
            )
        return record

    def bind_or_create_short_id(
        self,
        raw: ShortIdInput,
        entity_type: Union[EntityTypeEnum, str],
        entity_id: str,
        commit: bool = True,
        operator: Optional[str] = None,
    ) -> Tuple[ShortIdPool, bool]:
        """
        绑定shortID，若从未生成则直接以 BOUND 状态创建

        用于兼容现场扫描未登记标签的场景，每次隐式创建都会记录审计告警。
        返回 (记录, 是否新创建)
        """
        value = parse_short_id(raw)
        entity_type = normalize_entity_type(entity_type)
        if not entity_id:
            raise InvalidArgumentError("entityId is required", shortId=value)
        entity_id = str(entity_id)

        if self._get_record(value) is not None:
            return self.bind_short_id(value, entity_type, entity_id, commit=commit, operator=operator), False

        with transaction(self.db, commit):
            self.advance_sequence(value)
            record = ShortIdPool(
                short_id=value,
                status=ShortIdStatusEnum.BOUND,
                entity_type=entity_type.value,
                entity_id=entity_id,
                bound_at=datetime.now(),
                notes="created by bind_or_create",
            )
            self.db.add(record)
            try:
                self.db.flush()
            except IntegrityError as e:
                raise ConflictError(f"shortID {value} was created concurrently", shortId=value) from e

        log_audit_warning(
            OperationType.SHORT_ID_BIND_OR_CREATE,
            value,
            f"shortID {value} 未经发号直接绑定到 {entity_type.value} {entity_id}",
            remark=operator,
        )
        return record, True

    def cancel_short_id(
        self,
        raw: ShortIdInput,
        reason: Optional[str] = None,
        commit: bool = True,
        operator: Optional[str] = None,
    ) -> ShortIdPool:
        """
        报废shortID：GENERATED/PRINTED -> CANCELLED

        已绑定的shortID只能通过删除其所属实体释放，不能直接报废
        """
        value = parse_short_id(raw)

        with transaction(self.db, commit):
            updated = (
                self.db.query(ShortIdPool)
                .filter(ShortIdPool.short_id == value, ShortIdPool.status.in_(ASSIGNABLE_STATUSES))
                .update(
                    {ShortIdPool.status: ShortIdStatusEnum.CANCELLED, ShortIdPool.notes: reason},
                    synchronize_session="fetch",
                )
            )
            record = self._get_record(value, for_update=not updated)
            if not record:
                raise NotFoundError(f"shortID {value} not found", shortId=value)
            if not updated:
                raise InvalidStateError(
                    f"shortID {value} is {record.status.value}, only GENERATED or PRINTED can be cancelled",
                    shortId=value,
                    status=record.status.value,
                )

        log_operation(OperationType.SHORT_ID_CANCEL, value, operator=operator, remark=reason)
        return record

    def retire_short_id(
        self,
        raw: ShortIdInput,
        entity_id: str,
        reason: Optional[str] = None,
        commit: bool = True,
    ) -> ShortIdPool:
        """实体删除时报废其绑定的shortID：BOUND -> CANCELLED，并清除实体引用"""
        value = parse_short_id(raw)
        entity_id = str(entity_id)

        with transaction(self.db, commit):
            updated = (
                self.db.query(ShortIdPool)
                .filter(
                    ShortIdPool.short_id == value,
                    ShortIdPool.status == ShortIdStatusEnum.BOUND,
                    ShortIdPool.entity_id == entity_id,
                )
                .update(
                    {
                        ShortIdPool.status: ShortIdStatusEnum.CANCELLED,
                        ShortIdPool.entity_id: None,
                        ShortIdPool.notes: reason,
                    },
                    synchronize_session="fetch",
                )
            )
            record = self._get_record(value, for_update=not updated)
            if not record:
                raise NotFoundError(f"shortID {value} not found", shortId=value)
            if not updated:
                if record.status == ShortIdStatusEnum.BOUND:
                    raise ConflictError(
                        f"shortID {value} is bound to {record.entity_type} {record.entity_id}",
                        shortId=value,
                        entityId=record.entity_id,
                    )
                raise InvalidStateError(
                    f"shortID {value} is {record.status.value}, not bound",
                    shortId=value,
                    status=record.status.value,
                )

        log_operation(OperationType.SHORT_ID_RETIRE, value, remark=reason)
        return record

    # =====================================================
    # 统计与列表
    # =====================================================

    def get_pool_stats(self, entity_type: Optional[Union[EntityTypeEnum, str]] = None) -> Dict[str, Any]:
        """shortID池统计，未指定实体类型时附带按类型分组的数量"""
        query = self.db.query(ShortIdPool.status, func.count(ShortIdPool.id))
        if entity_type:
            query = query.filter(ShortIdPool.entity_type == normalize_entity_type(entity_type).value)
        counts = {status: count for status, count in query.group_by(ShortIdPool.status).all()}

        stats: Dict[str, Any] = {
            "total": sum(counts.values()),
            "generated": counts.get(ShortIdStatusEnum.GENERATED, 0),
            "printed": counts.get(ShortIdStatusEnum.PRINTED, 0),
            "bound": counts.get(ShortIdStatusEnum.BOUND, 0),
            "cancelled": counts.get(ShortIdStatusEnum.CANCELLED, 0),
            "by_type": None,
        }
        if not entity_type:
            rows = (
                self.db.query(ShortIdPool.entity_type, func.count(ShortIdPool.id))
                .group_by(ShortIdPool.entity_type)
                .all()
            )
            by_type: Dict[str, int] = {}
            for type_name, count in rows:
                key = type_name or UNASSIGNED_TYPE
                by_type[key] = by_type.get(key, 0) + count
            stats["by_type"] = by_type
        return stats

    @staticmethod
    def _validate_page(page: int, page_size: int) -> None:
        if page < 1:
            raise InvalidArgumentError("page must be >= 1", page=page)
        if page_size < 1 or page_size > settings.RECORDS_MAX_PAGE_SIZE:
            raise InvalidArgumentError(
                f"pageSize must be between 1 and {settings.RECORDS_MAX_PAGE_SIZE}",
                pageSize=page_size,
            )

    def get_pool_records(
        self,
        page: int = 1,
        page_size: int = 50,
        entity_type: Optional[Union[EntityTypeEnum, str]] = None,
        status: Optional[ShortIdStatusEnum] = None,
        batch_no: Optional[str] = None,
        search: Optional[str] = None,
    ) -> Tuple[List[ShortIdPool], int]:
        """分页查询池记录，search 匹配shortID（数字或显示格式）或实体ID"""
        self._validate_page(page, page_size)

        query = self.db.query(ShortIdPool)
        if entity_type:
            query = query.filter(ShortIdPool.entity_type == normalize_entity_type(entity_type).value)
        if status:
            query = query.filter(ShortIdPool.status == status)
        if batch_no:
            query = query.filter(ShortIdPool.batch_no == batch_no)
        if search and search.strip():
            search = search.strip()
            conditions = [ShortIdPool.entity_id.contains(search, autoescape=True)]
            try:
                conditions.append(ShortIdPool.short_id == parse_short_id(search))
            except ShortIdFormatError:
                pass
            query = query.filter(or_(*conditions))

        total = query.count()
        records = (
            query.options(joinedload(ShortIdPool.print_task))
            .order_by(ShortIdPool.short_id.desc())
            .offset((page - 1) * page_size)
            .limit(page_size)
            .all()
        )
        return records, total

    @staticmethod
    def total_pages(total: int, page_size: int) -> int:
        return math.ceil(total / page_size) if page_size else 0
