"""
线缆模型
Cable 与 CableEndpoint 为一对多：点对点线缆有 A/B 两端，分支线缆(1xN)有 A、B1..Bn
"""

import enum
import uuid

from sqlalchemy import Column, Integer, String, Text, Enum, Float, ForeignKey, Index, UniqueConstraint, TIMESTAMP
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from dcim.db.session import Base


class CableTypeEnum(str, enum.Enum):
    CAT5E = "CAT5E"
    CAT6 = "CAT6"
    CAT6A = "CAT6A"
    CAT7 = "CAT7"
    FIBER_SM = "FIBER_SM"
    FIBER_MM = "FIBER_MM"
    POWER = "POWER"
    OTHER = "OTHER"


# 端点类型
END_TYPE_A = "A"
END_TYPE_B = "B"


def branch_end_type(index: int) -> str:
    """分支端点类型：B1, B2, ..."""
    return f"{END_TYPE_B}{index}"


class Cable(Base):
    """线缆表"""
    __tablename__ = "cables"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    label = Column(String(200), comment="线缆标签")
    type = Column(Enum(CableTypeEnum), nullable=False, comment="线缆类型")
    length = Column(Float, comment="长度（米）")
    color = Column(String(50), comment="颜色")
    notes = Column(Text, comment="备注")
    created_at = Column(TIMESTAMP, server_default=func.now())
    updated_at = Column(TIMESTAMP, server_default=func.now(), onupdate=func.now())

    endpoints = relationship(
        "CableEndpoint",
        back_populates="cable",
        cascade="all, delete-orphan",
        order_by="CableEndpoint.end_type",
    )


class CableEndpoint(Base):
    """线缆端点表（port_id 为空表示该端未插入任何端口）"""
    __tablename__ = "cable_endpoints"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    cable_id = Column(String(36), ForeignKey("cables.id", ondelete="CASCADE"), nullable=False)
    port_id = Column(String(36), ForeignKey("ports.id", ondelete="SET NULL"), nullable=True)
    end_type = Column(String(10), nullable=False, comment="端点类型：A/B/B1..Bn")
    short_id = Column(Integer, unique=True, nullable=True, comment="该端标签的shortID")
    created_at = Column(TIMESTAMP, server_default=func.now())
    updated_at = Column(TIMESTAMP, server_default=func.now(), onupdate=func.now())

    cable = relationship("Cable", back_populates="endpoints")
    port = relationship("Port", back_populates="cable_endpoints")

    __table_args__ = (
        UniqueConstraint('cable_id', 'end_type', name='uk_cable_end_type'),
        Index('idx_endpoint_cable_id', 'cable_id'),
        Index('idx_endpoint_port_id', 'port_id'),
    )
