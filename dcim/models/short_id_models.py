"""
ShortID 池模型
包含：全局shortID池、发号序列、打印任务、旧版全局分配表（仅用于迁移）
"""

from sqlalchemy import (
    Column, Integer, String, Text, TIMESTAMP, Enum, ForeignKey, Index, func
)
from sqlalchemy.orm import relationship
from dcim.db.session import Base
import enum

# =====================================================
# 枚举定义
# =====================================================

class EntityTypeEnum(str, enum.Enum):
    """shortID可绑定的实体类型（全局唯一，不按类型分段）"""
    DATA_CENTER = "DATA_CENTER"
    ROOM = "ROOM"
    CABINET = "CABINET"
    DEVICE = "DEVICE"
    PANEL = "PANEL"
    PORT = "PORT"
    CABLE = "CABLE"


class ShortIdStatusEnum(str, enum.Enum):
    """shortID生命周期状态"""
    GENERATED = "GENERATED"
    PRINTED = "PRINTED"
    BOUND = "BOUND"
    CANCELLED = "CANCELLED"


# 可以绑定或报废的状态
ASSIGNABLE_STATUSES = (ShortIdStatusEnum.GENERATED, ShortIdStatusEnum.PRINTED)


class PrintTaskStatusEnum(str, enum.Enum):
    """打印任务状态"""
    PENDING = "PENDING"
    PRINTING = "PRINTING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


# 统一池中的打印任务不区分实体类型
MIXED_ENTITY_TYPE = "MIXED"

# 固定的发号序列行
SEQUENCE_ROW_ID = 1


# =====================================================
# 发号序列
# =====================================================

class ShortIdSequence(Base):
    """发号序列表（单行，记录历史上发出过的最大shortID）"""
    __tablename__ = "short_id_sequence"

    id = Column(Integer, primary_key=True, autoincrement=False)
    current_value = Column(Integer, nullable=False, default=0, comment="已发出的最大shortID")
    updated_at = Column(TIMESTAMP, server_default=func.now(), onupdate=func.now())


# =====================================================
# 打印任务
# =====================================================

class PrintTask(Base):
    """标签打印任务表"""
    __tablename__ = "print_tasks"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(200), nullable=False, comment="任务名称")
    entity_type = Column(String(32), default=MIXED_ENTITY_TYPE, comment="实体类型范围（统一池为MIXED）")
    count = Column(Integer, nullable=False, comment="打印数量")
    status = Column(Enum(PrintTaskStatusEnum), default=PrintTaskStatusEnum.PENDING, nullable=False, comment="任务状态")
    created_by = Column(String(100), comment="创建人")
    notes = Column(Text, comment="备注")
    file_path = Column(String(500), comment="打印文件路径")
    created_at = Column(TIMESTAMP, server_default=func.now())
    completed_at = Column(TIMESTAMP, comment="完成时间")
    updated_at = Column(TIMESTAMP, server_default=func.now(), onupdate=func.now())

    short_ids = relationship("ShortIdPool", back_populates="print_task", order_by="ShortIdPool.short_id")

    __table_args__ = (
        Index('idx_print_task_status', 'status'),
        Index('idx_print_task_created_at', 'created_at'),
    )


# =====================================================
# shortID 池
# =====================================================

class ShortIdPool(Base):
    """全局shortID池（shortID在所有实体类型间唯一，记录永不物理删除）"""
    __tablename__ = "short_id_pool"

    id = Column(Integer, primary_key=True, index=True)
    short_id = Column(Integer, unique=True, nullable=False, comment="shortID数值")
    entity_type = Column(String(32), comment="绑定的实体类型")
    entity_id = Column(String(64), comment="绑定的实体ID（仅BOUND状态非空）")
    status = Column(Enum(ShortIdStatusEnum), default=ShortIdStatusEnum.GENERATED, nullable=False, comment="状态")
    batch_no = Column(String(200), comment="生成批次号")
    print_task_id = Column(Integer, ForeignKey("print_tasks.id", ondelete="SET NULL"), comment="打印任务ID")
    bound_at = Column(TIMESTAMP, comment="绑定时间")
    printed_at = Column(TIMESTAMP, comment="打印时间")
    notes = Column(Text, comment="备注/报废原因")
    created_at = Column(TIMESTAMP, server_default=func.now())
    updated_at = Column(TIMESTAMP, server_default=func.now(), onupdate=func.now())

    print_task = relationship("PrintTask", back_populates="short_ids")

    __table_args__ = (
        Index('idx_pool_status', 'status'),
        Index('idx_pool_entity', 'entity_type', 'entity_id'),
        Index('idx_pool_batch_no', 'batch_no'),
        Index('idx_pool_print_task_id', 'print_task_id'),
    )


# =====================================================
# 旧版全局分配表（只读，迁移到shortID池后不再写入）
# =====================================================

class GlobalShortIdAllocation(Base):
    """旧版全局shortID分配表"""
    __tablename__ = "global_short_id_allocations"

    id = Column(Integer, primary_key=True, index=True)
    short_id = Column(Integer, unique=True, nullable=False)
    entity_type = Column(String(50), nullable=False, comment="实体类型（大小写混合，如Room）")
    entity_id = Column(String(64), comment="实体ID")
    created_at = Column(TIMESTAMP, server_default=func.now())
