"""
位置层级 Schemas（数据中心/房间/机柜/设备/面板/端口）
创建时可携带shortId（数字或 E-00001 格式），由服务层校验并绑定
"""

from datetime import datetime
from typing import Any, Dict, List, Optional, Union

from pydantic import Field

from dcim.models.location_models import DeviceTypeEnum, PanelTypeEnum, PortStatusEnum
from dcim.schemas.base_schemas import BaseSchema

ShortIdField = Optional[Union[int, str]]


class LocationCreateBase(BaseSchema):
    short_id: ShortIdField = Field(None, description="shortID（可选）")


class DataCenterCreate(LocationCreateBase):
    name: str = Field(..., min_length=1, max_length=200, description="数据中心名称")
    location: Optional[str] = Field(None, max_length=200, description="地址")


class RoomCreate(LocationCreateBase):
    data_center_id: str = Field(..., description="数据中心ID")
    name: str = Field(..., min_length=1, max_length=200, description="房间名称")
    floor: Optional[str] = Field(None, max_length=20, description="楼层")


class CabinetCreate(LocationCreateBase):
    room_id: str = Field(..., description="房间ID")
    name: str = Field(..., min_length=1, max_length=200, description="机柜名称")
    position: Optional[str] = Field(None, max_length=50, description="机位")
    height: Optional[int] = Field(42, ge=1, le=60, description="高度（U）")


class DeviceCreate(LocationCreateBase):
    cabinet_id: str = Field(..., description="机柜ID")
    name: str = Field(..., min_length=1, max_length=200, description="设备名称")
    type: DeviceTypeEnum = Field(DeviceTypeEnum.OTHER, description="设备类型")
    model: Optional[str] = Field(None, max_length=200, description="型号")
    serial_no: Optional[str] = Field(None, max_length=200, description="序列号")
    u_position: Optional[int] = Field(None, ge=1, description="起始U位")
    u_height: Optional[int] = Field(1, ge=1, description="占用U数")


class PanelCreate(LocationCreateBase):
    device_id: str = Field(..., description="设备ID")
    name: str = Field(..., min_length=1, max_length=200, description="面板名称")
    type: PanelTypeEnum = Field(PanelTypeEnum.ETHERNET, description="面板类型")
    notes: Optional[str] = Field(None, description="备注")


class PortCreate(LocationCreateBase):
    panel_id: str = Field(..., description="面板ID")
    number: str = Field(..., min_length=1, max_length=20, description="端口号")
    label: Optional[str] = Field(None, max_length=100, description="端口标签")
    port_type: Optional[str] = Field(None, max_length=50, description="端口类型")


class PortBulkCreate(BaseSchema):
    count: int = Field(..., ge=1, le=96, description="端口数量")
    start: int = Field(1, ge=1, description="起始端口号")
    port_type: Optional[str] = Field(None, max_length=50, description="端口类型")
    label_prefix: Optional[str] = Field(None, max_length=50, description="标签前缀")


class PortStatusUpdate(BaseSchema):
    status: PortStatusEnum = Field(..., description="端口状态（不允许手动设置OCCUPIED）")


class LocationEntityResponse(BaseSchema):
    id: str
    name: Optional[str] = None
    short_id: Optional[int] = None
    created_at: Optional[datetime] = None


class PortResponse(BaseSchema):
    id: str
    panel_id: str
    number: str
    label: Optional[str] = None
    port_type: Optional[str] = None
    status: PortStatusEnum
    short_id: Optional[int] = None


class LocationLookupResponse(BaseSchema):
    entity_type: str
    entity_id: str
    short_id: int
    entity: Dict[str, Any]
    location: Optional[Dict[str, Any]] = None


class PortBulkResponse(BaseSchema):
    ports: List[PortResponse]
