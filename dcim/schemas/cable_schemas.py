"""
线缆连接 Schemas
"""

from datetime import datetime
from typing import Any, Dict, List, Optional, Union

from pydantic import Field

from dcim.models.cable_models import CableTypeEnum
from dcim.schemas.base_schemas import BaseSchema

ShortIdValue = Union[int, str]


class CableMetadata(BaseSchema):
    label: Optional[str] = Field(None, max_length=200, description="线缆标签")
    length: Optional[float] = Field(None, ge=0, description="长度（米）")
    color: Optional[str] = Field(None, max_length=50, description="颜色")
    notes: Optional[str] = Field(None, description="备注")


class ConnectSinglePortRequest(CableMetadata):
    port_id: str = Field(..., description="端口ID")
    short_id: ShortIdValue = Field(..., description="扫描到的线缆端shortID")
    type: Optional[CableTypeEnum] = Field(None, description="线缆类型（新线缆必填）")


class CableCreateRequest(CableMetadata):
    port_a_id: str = Field(..., description="A端端口ID")
    port_b_id: str = Field(..., description="B端端口ID")
    short_id_a: ShortIdValue = Field(..., description="A端shortID")
    short_id_b: ShortIdValue = Field(..., description="B端shortID")
    type: CableTypeEnum = Field(..., description="线缆类型")


class BranchEnd(BaseSchema):
    port_id: str = Field(..., description="分支端端口ID")
    short_id: ShortIdValue = Field(..., description="分支端shortID")


class BranchCableCreateRequest(CableMetadata):
    port_a_id: str = Field(..., description="主端端口ID")
    short_id_a: ShortIdValue = Field(..., description="主端shortID")
    branches: List[BranchEnd] = Field(..., min_length=1, description="分支端")
    type: CableTypeEnum = Field(..., description="线缆类型")


class EndpointsByShortIdRequest(BaseSchema):
    short_id: ShortIdValue = Field(..., description="线缆端shortID")


class CableDeleteRequest(BaseSchema):
    reason: Optional[str] = Field(None, description="删除原因（写入shortID报废备注）")


class CableEndpointResponse(BaseSchema):
    id: str
    cable_id: str
    port_id: Optional[str] = None
    end_type: str
    short_id: Optional[int] = None
    location: Optional[Dict[str, Any]] = None


class CableResponse(BaseSchema):
    id: str
    label: Optional[str] = None
    type: CableTypeEnum
    length: Optional[float] = None
    color: Optional[str] = None
    notes: Optional[str] = None
    created_at: Optional[datetime] = None
    endpoints: List[CableEndpointResponse] = Field(default_factory=list)


class ConnectSinglePortResponse(BaseSchema):
    outcome: str
    cable: CableResponse
    connected_endpoint: CableEndpointResponse
    other_endpoint: Optional[CableEndpointResponse] = None
    peer_info: Optional[Dict[str, Any]] = None


class EndpointsByShortIdResponse(BaseSchema):
    cable: CableResponse
    endpoint_a: Optional[CableEndpointResponse] = None
    endpoint_b: Optional[CableEndpointResponse] = None
    endpoints: List[CableEndpointResponse] = Field(default_factory=list)
