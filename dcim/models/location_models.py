"""
位置层级模型
数据中心 -> 房间 -> 机柜 -> 设备 -> 面板 -> 端口
各实体的 short_id 字段是 shortID 池绑定关系的冗余副本，便于扫码查询
"""

import enum
import uuid

from sqlalchemy import Column, Integer, String, Text, Enum, ForeignKey, Index, UniqueConstraint, TIMESTAMP
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from dcim.db.session import Base


def _uuid() -> str:
    return str(uuid.uuid4())


class DeviceTypeEnum(str, enum.Enum):
    SERVER = "SERVER"
    SWITCH = "SWITCH"
    ROUTER = "ROUTER"
    FIREWALL = "FIREWALL"
    STORAGE = "STORAGE"
    PDU = "PDU"
    PATCH_PANEL = "PATCH_PANEL"
    OTHER = "OTHER"


class PanelTypeEnum(str, enum.Enum):
    ETHERNET = "ETHERNET"
    FIBER = "FIBER"
    POWER = "POWER"
    SERIAL = "SERIAL"
    USB = "USB"
    OTHER = "OTHER"


class PortStatusEnum(str, enum.Enum):
    """端口状态：OCCUPIED 当且仅当至少有一个线缆端点接在该端口上"""
    AVAILABLE = "AVAILABLE"
    OCCUPIED = "OCCUPIED"
    RESERVED = "RESERVED"
    FAULTY = "FAULTY"


class DataCenter(Base):
    """数据中心表"""
    __tablename__ = "data_centers"

    id = Column(String(36), primary_key=True, default=_uuid)
    name = Column(String(200), nullable=False, comment="数据中心名称")
    location = Column(String(200), comment="地址")
    short_id = Column(Integer, unique=True, comment="shortID")
    created_at = Column(TIMESTAMP, server_default=func.now())
    updated_at = Column(TIMESTAMP, server_default=func.now(), onupdate=func.now())

    rooms = relationship("Room", back_populates="data_center")


class Room(Base):
    """房间表"""
    __tablename__ = "rooms"

    id = Column(String(36), primary_key=True, default=_uuid)
    name = Column(String(200), nullable=False, comment="房间名称")
    floor = Column(String(20), comment="楼层")
    data_center_id = Column(String(36), ForeignKey("data_centers.id", ondelete="CASCADE"), nullable=False)
    short_id = Column(Integer, unique=True, comment="shortID")
    created_at = Column(TIMESTAMP, server_default=func.now())
    updated_at = Column(TIMESTAMP, server_default=func.now(), onupdate=func.now())

    data_center = relationship("DataCenter", back_populates="rooms")
    cabinets = relationship("Cabinet", back_populates="room")

    __table_args__ = (
        Index('idx_room_data_center_id', 'data_center_id'),
    )


class Cabinet(Base):
    """机柜表"""
    __tablename__ = "cabinets"

    id = Column(String(36), primary_key=True, default=_uuid)
    name = Column(String(200), nullable=False, comment="机柜编号/名称")
    position = Column(String(50), comment="机位")
    height = Column(Integer, default=42, comment="高度（U）")
    room_id = Column(String(36), ForeignKey("rooms.id", ondelete="CASCADE"), nullable=False)
    short_id = Column(Integer, unique=True, comment="shortID")
    created_at = Column(TIMESTAMP, server_default=func.now())
    updated_at = Column(TIMESTAMP, server_default=func.now(), onupdate=func.now())

    room = relationship("Room", back_populates="cabinets")
    devices = relationship("Device", back_populates="cabinet")

    __table_args__ = (
        Index('idx_cabinet_room_id', 'room_id'),
    )


class Device(Base):
    """设备表"""
    __tablename__ = "devices"

    id = Column(String(36), primary_key=True, default=_uuid)
    name = Column(String(200), nullable=False, comment="设备名称")
    type = Column(Enum(DeviceTypeEnum), default=DeviceTypeEnum.OTHER, nullable=False, comment="设备类型")
    model = Column(String(200), comment="型号")
    serial_no = Column(String(200), comment="序列号")
    u_position = Column(Integer, comment="起始U位")
    u_height = Column(Integer, default=1, comment="占用U数")
    cabinet_id = Column(String(36), ForeignKey("cabinets.id", ondelete="CASCADE"), nullable=False)
    short_id = Column(Integer, unique=True, comment="shortID")
    created_at = Column(TIMESTAMP, server_default=func.now())
    updated_at = Column(TIMESTAMP, server_default=func.now(), onupdate=func.now())

    cabinet = relationship("Cabinet", back_populates="devices")
    panels = relationship("Panel", back_populates="device")

    __table_args__ = (
        Index('idx_device_cabinet_id', 'cabinet_id'),
        Index('idx_device_serial_no', 'serial_no'),
    )


class Panel(Base):
    """面板表"""
    __tablename__ = "panels"

    id = Column(String(36), primary_key=True, default=_uuid)
    name = Column(String(200), nullable=False, comment="面板名称")
    type = Column(Enum(PanelTypeEnum), default=PanelTypeEnum.ETHERNET, nullable=False, comment="面板类型")
    device_id = Column(String(36), ForeignKey("devices.id", ondelete="CASCADE"), nullable=False)
    short_id = Column(Integer, unique=True, comment="shortID")
    notes = Column(Text, comment="备注")
    created_at = Column(TIMESTAMP, server_default=func.now())
    updated_at = Column(TIMESTAMP, server_default=func.now(), onupdate=func.now())

    device = relationship("Device", back_populates="panels")
    ports = relationship("Port", back_populates="panel", order_by="Port.number")

    __table_args__ = (
        Index('idx_panel_device_id', 'device_id'),
    )


class Port(Base):
    """端口表"""
    __tablename__ = "ports"

    id = Column(String(36), primary_key=True, default=_uuid)
    number = Column(String(20), nullable=False, comment="端口号")
    label = Column(String(100), comment="端口标签")
    port_type = Column(String(50), comment="端口类型（rj45/sfp/lc等）")
    status = Column(Enum(PortStatusEnum), default=PortStatusEnum.AVAILABLE, nullable=False, comment="端口状态")
    panel_id = Column(String(36), ForeignKey("panels.id", ondelete="CASCADE"), nullable=False)
    short_id = Column(Integer, unique=True, comment="shortID")
    created_at = Column(TIMESTAMP, server_default=func.now())
    updated_at = Column(TIMESTAMP, server_default=func.now(), onupdate=func.now())

    panel = relationship("Panel", back_populates="ports")
    cable_endpoints = relationship("CableEndpoint", back_populates="port")

    __table_args__ = (
        UniqueConstraint('panel_id', 'number', name='uk_port_panel_number'),
        Index('idx_port_panel_id', 'panel_id'),
        Index('idx_port_status', 'status'),
    )
